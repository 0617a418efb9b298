"""
Anthropic Claude Vendor Client.

Implements the IVendorClient interface for Anthropic's Claude models.
Supports streaming and extended thinking. Thinking output is re-emitted
between the configured think tags so the dispatcher can strip it like
any other thinking segment.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator, Optional

import anthropic
from anthropic import AsyncAnthropic

from ..domain.entities import ChatOptions, ErrorType, Message, MessageRole, StreamChunk
from ..domain.exceptions import VendorError
from .base import BaseVendorClient, VendorConfig

logger = logging.getLogger(__name__)


class AnthropicVendor(BaseVendorClient):
    """Anthropic Claude vendor implementation.

    Supports:
    - Claude 3.5+ and Claude 4 models
    - Streaming responses
    - Extended thinking (CoT)

    Usage:
        config = VendorConfig(
            api_key="sk-ant-...",
            model="claude-sonnet-4-5-20250929",
        )
        vendor = AnthropicVendor(config)

        async for chunk in vendor.send_stream(messages, options):
            print(chunk.text)
    """

    VENDOR_NAME = "anthropic"
    DEFAULT_MODEL = "claude-sonnet-4-5-20250929"
    SUPPORTS_THINKING = True

    MODELS_WITH_THINKING = {
        "claude-opus-4-20250514",
        "claude-sonnet-4-20250514",
        "claude-sonnet-4-5-20250929",
    }

    def __init__(self, config: VendorConfig):
        """Initialize the Anthropic vendor.

        Args:
            config: Vendor configuration
        """
        super().__init__(config)

        self.client = AsyncAnthropic(
            api_key=config.api_key or "not-configured",
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=config.max_retries,
        )

    def _format_messages_for_api(
        self, messages: list[Message]
    ) -> tuple[Optional[str], list[dict[str, Any]]]:
        """Convert messages to Anthropic format.

        Anthropic uses a separate system parameter, not in messages.

        Returns:
            Tuple of (system_prompt, messages_list)
        """
        system_parts = []
        api_messages = []

        for msg in messages:
            if msg.role == MessageRole.SYSTEM:
                if msg.content:
                    system_parts.append(msg.content)
            else:
                api_messages.append({
                    "role": msg.role.value,
                    "content": msg.content,
                })

        system = "\n\n".join(system_parts) if system_parts else None
        return system, api_messages

    def _thinking_enabled(self, model: str) -> bool:
        return self._thinking_requested() and model in self.MODELS_WITH_THINKING

    def _build_kwargs(self, messages: list[Message], options: ChatOptions) -> dict[str, Any]:
        model = self._model(options)
        system, api_messages = self._format_messages_for_api(messages)

        kwargs: dict[str, Any] = {
            "model": model,
            "messages": api_messages,
        }

        if self._thinking_enabled(model):
            thinking_budget = self.config.thinking_budget
            kwargs["thinking"] = {"type": "enabled", "budget_tokens": thinking_budget}
            kwargs["temperature"] = 1  # Required for extended thinking
            # max_tokens must be greater than thinking budget
            kwargs["max_tokens"] = max(thinking_budget + 4096, options.max_tokens or 0)
        else:
            kwargs["temperature"] = options.temperature
            kwargs["max_tokens"] = self._max_tokens(options)
            if options.top_p is not None:
                kwargs["top_p"] = options.top_p

        if system:
            kwargs["system"] = system

        return kwargs

    def _translate_error(self, e: Exception) -> VendorError:
        if isinstance(e, anthropic.RateLimitError):
            logger.warning(f"Rate limited by Anthropic: {e}")
            return VendorError(f"Rate limited: {e}", self.name, ErrorType.RATE_LIMIT, cause=e)
        if isinstance(e, anthropic.APITimeoutError):
            logger.error(f"Anthropic API timeout: {e}")
            return VendorError(f"Request timed out: {e}", self.name, ErrorType.TIMEOUT, cause=e)
        logger.error(f"Anthropic API error: {e}")
        return VendorError(f"API error: {e}", self.name, ErrorType.RECOVERABLE, cause=e)

    async def send(self, messages: list[Message], options: ChatOptions) -> str:
        kwargs = self._build_kwargs(messages, options)

        try:
            response = await self.client.messages.create(**kwargs)
        except anthropic.APIError as e:
            raise self._translate_error(e) from e

        parts = []
        for block in response.content:
            if block.type == "thinking":
                parts.append(f"{options.think_start_tag}{block.thinking}{options.think_end_tag}")
            elif block.type == "text":
                parts.append(block.text)
        return "".join(parts)

    async def send_stream(
        self, messages: list[Message], options: ChatOptions
    ) -> AsyncIterator[StreamChunk]:
        kwargs = self._build_kwargs(messages, options)
        sequence = 0
        in_thinking = False

        try:
            async with self.client.messages.stream(**kwargs) as stream_response:
                async for event in stream_response:
                    text = None

                    if event.type == "content_block_start":
                        if event.content_block.type == "thinking":
                            in_thinking = True
                            text = options.think_start_tag

                    elif event.type == "content_block_delta":
                        if event.delta.type == "text_delta":
                            text = event.delta.text
                        elif event.delta.type == "thinking_delta":
                            text = event.delta.thinking

                    elif event.type == "content_block_stop":
                        if in_thinking:
                            in_thinking = False
                            text = options.think_end_tag

                    if text:
                        sequence += 1
                        yield self._chunk(sequence, text)

        except anthropic.APIError as e:
            raise self._translate_error(e) from e

    async def list_models(self) -> list[str]:
        try:
            return [model.id async for model in self.client.models.list()]
        except anthropic.APIError as e:
            raise self._translate_error(e) from e

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Close the client."""
        await self.client.close()
