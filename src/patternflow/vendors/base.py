"""
Base Vendor Client Implementation.

Provides common functionality for all vendor clients.
"""

from __future__ import annotations

import logging
from abc import ABC
from dataclasses import dataclass
from typing import Any, Optional

from ..domain.entities import ChatOptions, Message, StreamChunk, VendorDescriptor
from ..domain.ports import IVendorClient

logger = logging.getLogger(__name__)


@dataclass
class VendorConfig:
    """Configuration for vendor clients.

    Attributes:
        api_key: API key for the vendor (None = not configured)
        model: Default model name
        models: Additional model names the vendor is known to serve
        base_url: Optional custom base URL
        timeout: Request timeout in seconds
        max_retries: Maximum retry attempts inside the SDK client
        max_tokens: Default max tokens
        enable_thinking: Ask the vendor for private-reasoning output
        thinking_budget: Token budget for private reasoning
    """

    api_key: Optional[str] = None
    model: Optional[str] = None
    models: tuple[str, ...] = ()
    base_url: Optional[str] = None
    timeout: float = 60.0
    max_retries: int = 3
    max_tokens: int = 4096
    enable_thinking: bool = False
    thinking_budget: int = 8000


class BaseVendorClient(IVendorClient, ABC):
    """Base class for vendor client implementations.

    Subclasses set the class attributes below and implement send,
    send_stream and list_models for their specific API.
    """

    VENDOR_NAME = ""
    DEFAULT_MODEL: Optional[str] = None
    SUPPORTS_STREAMING = True
    SUPPORTS_RAW_MODE = True
    SUPPORTS_THINKING = False
    RAW_MODE_MODEL_PREFIXES: tuple[str, ...] = ()

    def __init__(self, config: VendorConfig):
        """Initialize the client.

        Args:
            config: Vendor configuration
        """
        self.config = config
        self._descriptor = VendorDescriptor(
            name=self.VENDOR_NAME,
            models=frozenset(m for m in (config.model, *config.models) if m),
            default_model=config.model or self.DEFAULT_MODEL,
            supports_streaming=self.SUPPORTS_STREAMING,
            supports_raw_mode=self.SUPPORTS_RAW_MODE,
            supports_thinking=self.SUPPORTS_THINKING,
            raw_mode_model_prefixes=self.RAW_MODE_MODEL_PREFIXES,
        )

    @property
    def name(self) -> str:
        return self.VENDOR_NAME

    @property
    def descriptor(self) -> VendorDescriptor:
        return self._descriptor

    def is_configured(self) -> bool:
        """Most vendors are ready once an API key is present."""
        return bool(self.config.api_key)

    def _model(self, options: ChatOptions) -> str:
        model = options.model or self._descriptor.default_model
        if not model:
            raise ValueError(f"No model given for vendor {self.name}")
        return model

    def _max_tokens(self, options: ChatOptions) -> int:
        return options.max_tokens or self.config.max_tokens

    def _thinking_requested(self) -> bool:
        """Thinking output is only requested from vendors that can produce it."""
        return self.config.enable_thinking and self._descriptor.supports_thinking

    @staticmethod
    def _chunk(sequence: int, text: str) -> StreamChunk:
        return StreamChunk(sequence=sequence, text=text)

    def _format_messages_for_api(
        self, messages: list[Message]
    ) -> list[dict[str, Any]]:
        """Convert domain messages to API format.

        Subclasses may override for vendor-specific formatting.
        """
        return [
            {"role": msg.role.value, "content": msg.content}
            for msg in messages
        ]
