"""
OpenAI Vendor Client.

Implements the IVendorClient interface for OpenAI chat completion models.
Supports blocking and streaming sends and model discovery.
"""

from __future__ import annotations

import logging
from typing import Any, AsyncIterator

import openai
from openai import AsyncOpenAI

from ..domain.entities import ChatOptions, ErrorType, Message, StreamChunk
from ..domain.exceptions import VendorError
from .base import BaseVendorClient, VendorConfig

logger = logging.getLogger(__name__)


class OpenAIVendor(BaseVendorClient):
    """OpenAI vendor implementation.

    Usage:
        config = VendorConfig(api_key="sk-...", model="gpt-4o")
        vendor = OpenAIVendor(config)

        text = await vendor.send(messages, ChatOptions(model="gpt-4o"))
    """

    VENDOR_NAME = "openai"
    DEFAULT_MODEL = "gpt-4o"

    # Reasoning models reject the system role and sampling parameters
    RAW_MODE_MODEL_PREFIXES = ("o1", "o3", "o4")

    def __init__(self, config: VendorConfig):
        """Initialize the OpenAI vendor.

        Args:
            config: Vendor configuration
        """
        super().__init__(config)

        self.client = AsyncOpenAI(
            api_key=config.api_key or "not-configured",
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=config.max_retries,
        )

    def _build_kwargs(
        self, messages: list[Message], options: ChatOptions, stream: bool
    ) -> dict[str, Any]:
        model = self._model(options)
        kwargs: dict[str, Any] = {
            "model": model,
            "messages": self._format_messages_for_api(messages),
            "stream": stream,
        }

        if not self.needs_raw_mode(model):
            kwargs["temperature"] = options.temperature
            if options.top_p is not None:
                kwargs["top_p"] = options.top_p

        if options.max_tokens:
            # Reasoning models take max_completion_tokens instead of max_tokens
            key = "max_completion_tokens" if self.needs_raw_mode(model) else "max_tokens"
            kwargs[key] = options.max_tokens
        if options.seed is not None:
            kwargs["seed"] = options.seed

        return kwargs

    def _translate_error(self, e: Exception) -> VendorError:
        if isinstance(e, openai.RateLimitError):
            logger.warning(f"Rate limited by OpenAI: {e}")
            return VendorError(f"Rate limited: {e}", self.name, ErrorType.RATE_LIMIT, cause=e)
        if isinstance(e, openai.APITimeoutError):
            logger.error(f"OpenAI API timeout: {e}")
            return VendorError(f"Request timed out: {e}", self.name, ErrorType.TIMEOUT, cause=e)
        logger.error(f"OpenAI API error: {e}")
        return VendorError(f"API error: {e}", self.name, ErrorType.RECOVERABLE, cause=e)

    async def send(self, messages: list[Message], options: ChatOptions) -> str:
        kwargs = self._build_kwargs(messages, options, stream=False)

        try:
            response = await self.client.chat.completions.create(**kwargs)
        except openai.APIError as e:
            raise self._translate_error(e) from e

        choice = response.choices[0] if response.choices else None
        if choice is None:
            return ""
        return choice.message.content or ""

    async def send_stream(
        self, messages: list[Message], options: ChatOptions
    ) -> AsyncIterator[StreamChunk]:
        kwargs = self._build_kwargs(messages, options, stream=True)

        try:
            stream_response = await self.client.chat.completions.create(**kwargs)
        except openai.APIError as e:
            raise self._translate_error(e) from e

        sequence = 0
        try:
            async for chunk in stream_response:
                choice = chunk.choices[0] if chunk.choices else None
                if not choice:
                    continue

                if choice.delta.content:
                    sequence += 1
                    yield self._chunk(sequence, choice.delta.content)

                if choice.finish_reason:
                    break
        except openai.APIError as e:
            raise self._translate_error(e) from e
        finally:
            await stream_response.close()

    async def list_models(self) -> list[str]:
        try:
            return [model.id async for model in self.client.models.list()]
        except openai.APIError as e:
            raise self._translate_error(e) from e

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Close the client."""
        await self.client.close()
