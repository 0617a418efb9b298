"""
Dry-run Vendor Client.

Echoes the assembled messages and options back as the assistant reply
without contacting any service. Handy for checking what a pattern
expands to before spending tokens on it.
"""

from __future__ import annotations

from typing import AsyncIterator, Optional

from ..domain.entities import ChatOptions, Message, StreamChunk
from .base import BaseVendorClient, VendorConfig


class DryRunVendor(BaseVendorClient):
    """Vendor that returns a readable dump of the request it was given."""

    VENDOR_NAME = "dryrun"
    DEFAULT_MODEL = "dry-run-model"

    def __init__(self, config: Optional[VendorConfig] = None):
        super().__init__(config or VendorConfig())

    def is_configured(self) -> bool:
        return True

    def format_request(self, messages: list[Message], options: ChatOptions) -> str:
        lines = ["Dry run: Would send the following request:", ""]

        for msg in messages:
            lines.append(f"{msg.role.value.capitalize()}:")
            lines.append(msg.content)
            lines.append("")

        lines.append("Options:")
        lines.append(f"Model: {self._model(options)}")
        lines.append(f"Temperature: {options.temperature}")
        if options.top_p is not None:
            lines.append(f"TopP: {options.top_p}")
        if options.max_tokens:
            lines.append(f"MaxTokens: {options.max_tokens}")
        if options.seed is not None:
            lines.append(f"Seed: {options.seed}")
        if options.raw:
            lines.append("Raw: true")

        return "\n".join(lines) + "\n"

    async def send(self, messages: list[Message], options: ChatOptions) -> str:
        return self.format_request(messages, options)

    async def send_stream(
        self, messages: list[Message], options: ChatOptions
    ) -> AsyncIterator[StreamChunk]:
        text = self.format_request(messages, options)
        for sequence, line in enumerate(text.splitlines(keepends=True), start=1):
            yield self._chunk(sequence, line)

    async def list_models(self) -> list[str]:
        return [self.DEFAULT_MODEL]
