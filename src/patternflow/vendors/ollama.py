"""
Ollama Vendor Client.

Implements the IVendorClient interface for Ollama's local LLM API.
Supports streaming chat and model discovery with locally-hosted models.
"""

from __future__ import annotations

import json
import logging
from typing import Any, AsyncIterator

import httpx

from ..domain.entities import ChatOptions, ErrorType, Message, StreamChunk
from ..domain.exceptions import VendorError
from .base import BaseVendorClient, VendorConfig

logger = logging.getLogger(__name__)


class OllamaVendor(BaseVendorClient):
    """Ollama local LLM vendor implementation.

    Supports:
    - Locally-hosted models (qwen, llama, mistral, etc.)
    - Streaming responses
    - Thinking output, either inline or in the separate "thinking" field

    Usage:
        config = VendorConfig(
            model="qwen3:4b",
            base_url="http://localhost:11434",
        )
        vendor = OllamaVendor(config)
    """

    VENDOR_NAME = "ollama"
    DEFAULT_MODEL = "qwen3:4b"
    DEFAULT_BASE_URL = "http://localhost:11434"
    SUPPORTS_THINKING = True

    def __init__(self, config: VendorConfig):
        """Initialize the Ollama vendor.

        Args:
            config: Vendor configuration
        """
        super().__init__(config)

        self.base_url = config.base_url or self.DEFAULT_BASE_URL

        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=config.timeout,
        )

    def is_configured(self) -> bool:
        """Ollama needs no API key, only an explicitly configured server URL."""
        return bool(self.config.base_url)

    def _build_payload(
        self, messages: list[Message], options: ChatOptions, stream: bool
    ) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "model": self._model(options),
            "messages": self._format_messages_for_api(messages),
            "stream": stream,
            "options": {
                "temperature": options.temperature,
            },
        }

        if options.top_p is not None:
            payload["options"]["top_p"] = options.top_p
        if options.max_tokens:
            payload["options"]["num_predict"] = options.max_tokens
        if options.seed is not None:
            payload["options"]["seed"] = options.seed
        if self._thinking_requested():
            payload["think"] = True

        return payload

    def _translate_error(self, e: Exception) -> VendorError:
        if isinstance(e, httpx.HTTPStatusError):
            status = e.response.status_code
            error_type = ErrorType.RATE_LIMIT if status == 429 else ErrorType.RECOVERABLE
            error_msg = f"Ollama API error: {status} - {e.response.text}"
        elif isinstance(e, httpx.TimeoutException):
            error_type = ErrorType.TIMEOUT
            error_msg = f"Ollama request timeout: {str(e)}"
        else:
            error_type = ErrorType.FATAL
            error_msg = f"Ollama connection error: {str(e)}"

        logger.error(error_msg)
        return VendorError(error_msg, self.name, error_type, cause=e)

    async def send(self, messages: list[Message], options: ChatOptions) -> str:
        payload = self._build_payload(messages, options, stream=False)

        try:
            response = await self.client.post("/api/chat", json=payload)
            response.raise_for_status()
        except (httpx.HTTPStatusError, httpx.RequestError) as e:
            raise self._translate_error(e) from e

        message = response.json().get("message", {})
        thinking = message.get("thinking", "")
        content = message.get("content", "")
        if thinking:
            return f"{options.think_start_tag}{thinking}{options.think_end_tag}{content}"
        return content

    async def send_stream(
        self, messages: list[Message], options: ChatOptions
    ) -> AsyncIterator[StreamChunk]:
        payload = self._build_payload(messages, options, stream=True)
        sequence = 0
        in_thinking = False

        try:
            async with self.client.stream("POST", "/api/chat", json=payload) as response:
                if response.is_error:
                    # Error body must be read before it can be reported
                    await response.aread()
                response.raise_for_status()

                # Process newline-delimited JSON stream
                async for line in response.aiter_lines():
                    if not line.strip():
                        continue

                    try:
                        chunk = json.loads(line)
                    except json.JSONDecodeError as e:
                        logger.warning(f"Failed to parse Ollama response: {e}")
                        continue

                    message = chunk.get("message", {})
                    pieces = []

                    thinking = message.get("thinking", "")
                    if thinking:
                        if not in_thinking:
                            in_thinking = True
                            pieces.append(options.think_start_tag)
                        pieces.append(thinking)

                    content = message.get("content", "")
                    if in_thinking and (content or chunk.get("done")):
                        in_thinking = False
                        pieces.append(options.think_end_tag)
                    if content:
                        pieces.append(content)

                    text = "".join(pieces)
                    if text:
                        sequence += 1
                        yield self._chunk(sequence, text)

                    if chunk.get("done"):
                        break

        except (httpx.HTTPStatusError, httpx.RequestError) as e:
            raise self._translate_error(e) from e

    async def list_models(self) -> list[str]:
        try:
            response = await self.client.get("/api/tags")
            response.raise_for_status()
        except (httpx.HTTPStatusError, httpx.RequestError) as e:
            raise self._translate_error(e) from e

        return [model["name"] for model in response.json().get("models", []) if "name" in model]

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit - cleanup client."""
        await self.client.aclose()
