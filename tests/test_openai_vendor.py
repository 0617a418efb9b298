"""
Unit tests for the OpenAI vendor.

The SDK client is replaced with mocks; no network access.
"""

from types import SimpleNamespace

import httpx
import openai
import pytest
from unittest.mock import AsyncMock, MagicMock, patch

from patternflow.domain.entities import ChatOptions, ErrorType, Message, MessageRole
from patternflow.domain.exceptions import VendorError
from patternflow.vendors.base import VendorConfig
from patternflow.vendors.openai import OpenAIVendor

_REQUEST = httpx.Request("POST", "https://api.openai.com/v1/chat/completions")


def _completion(content):
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=content))]
    )


def _stream_chunk(content=None, finish_reason=None):
    return SimpleNamespace(
        choices=[SimpleNamespace(
            delta=SimpleNamespace(content=content),
            finish_reason=finish_reason,
        )]
    )


class FakeStream:
    """Async-iterable stand-in for an OpenAI stream response."""

    def __init__(self, chunks, error=None):
        self.chunks = chunks
        self.error = error
        self.closed = False

    def __aiter__(self):
        return self._iterate()

    async def _iterate(self):
        for chunk in self.chunks:
            yield chunk
        if self.error is not None:
            raise self.error

    async def close(self):
        self.closed = True


@pytest.fixture
def openai_config():
    return VendorConfig(api_key="sk-test", model="gpt-4o")


@pytest.fixture
def vendor(openai_config):
    with patch("patternflow.vendors.openai.AsyncOpenAI"):
        vendor = OpenAIVendor(openai_config)
    vendor.client = MagicMock()
    vendor.client.chat.completions.create = AsyncMock(return_value=_completion("Hi there"))
    vendor.client.close = AsyncMock()
    return vendor


@pytest.fixture
def messages():
    return [
        Message(MessageRole.SYSTEM, "You are helpful."),
        Message(MessageRole.USER, "hi"),
    ]


class TestOpenAIVendor:
    """Tests for vendor setup."""

    def test_descriptor(self, openai_config):
        with patch("patternflow.vendors.openai.AsyncOpenAI") as mock_client_class:
            vendor = OpenAIVendor(openai_config)

        assert vendor.name == "openai"
        assert vendor.descriptor.default_model == "gpt-4o"
        assert vendor.descriptor.serves("gpt-4o")
        assert vendor.is_configured()
        assert mock_client_class.call_args.kwargs["max_retries"] == 3

    def test_not_configured_without_key(self):
        with patch("patternflow.vendors.openai.AsyncOpenAI"):
            vendor = OpenAIVendor(VendorConfig())
        assert not vendor.is_configured()
        assert vendor.descriptor.default_model == OpenAIVendor.DEFAULT_MODEL

    @pytest.mark.parametrize("model", ["o1-mini", "o3", "o4-mini"])
    def test_reasoning_models_need_raw_mode(self, vendor, model):
        assert vendor.needs_raw_mode(model)

    def test_chat_models_do_not_need_raw_mode(self, vendor):
        assert not vendor.needs_raw_mode("gpt-4o")

    def test_thinking_not_requested_without_support(self):
        with patch("patternflow.vendors.openai.AsyncOpenAI"):
            vendor = OpenAIVendor(VendorConfig(api_key="sk-test", enable_thinking=True))
        assert not vendor.descriptor.supports_thinking
        assert not vendor._thinking_requested()


class TestOpenAISend:
    """Tests for blocking sends."""

    @pytest.mark.asyncio
    async def test_send(self, vendor, messages):
        text = await vendor.send(messages, ChatOptions(model="gpt-4o", temperature=0.3, seed=5))

        assert text == "Hi there"
        kwargs = vendor.client.chat.completions.create.call_args.kwargs
        assert kwargs["model"] == "gpt-4o"
        assert kwargs["messages"] == [
            {"role": "system", "content": "You are helpful."},
            {"role": "user", "content": "hi"},
        ]
        assert kwargs["temperature"] == 0.3
        assert kwargs["seed"] == 5
        assert kwargs["stream"] is False

    @pytest.mark.asyncio
    async def test_reasoning_model_omits_sampling(self, vendor, messages):
        await vendor.send(messages, ChatOptions(model="o1-mini", top_p=0.5))
        kwargs = vendor.client.chat.completions.create.call_args.kwargs
        assert "temperature" not in kwargs
        assert "top_p" not in kwargs

    @pytest.mark.asyncio
    async def test_reasoning_model_uses_max_completion_tokens(self, vendor, messages):
        await vendor.send(messages, ChatOptions(model="o3-mini", max_tokens=256))
        kwargs = vendor.client.chat.completions.create.call_args.kwargs
        assert kwargs["max_completion_tokens"] == 256
        assert "max_tokens" not in kwargs

    @pytest.mark.asyncio
    async def test_chat_model_uses_max_tokens(self, vendor, messages):
        await vendor.send(messages, ChatOptions(model="gpt-4o", max_tokens=256))
        kwargs = vendor.client.chat.completions.create.call_args.kwargs
        assert kwargs["max_tokens"] == 256
        assert "max_completion_tokens" not in kwargs

    @pytest.mark.asyncio
    async def test_rate_limit_translated(self, vendor, messages):
        error = openai.RateLimitError(
            "too many requests",
            response=httpx.Response(429, request=_REQUEST),
            body=None,
        )
        vendor.client.chat.completions.create = AsyncMock(side_effect=error)

        with pytest.raises(VendorError) as exc_info:
            await vendor.send(messages, ChatOptions(model="gpt-4o"))
        assert exc_info.value.error_type == ErrorType.RATE_LIMIT
        assert exc_info.value.recoverable

    @pytest.mark.asyncio
    async def test_timeout_translated(self, vendor, messages):
        vendor.client.chat.completions.create = AsyncMock(
            side_effect=openai.APITimeoutError(request=_REQUEST)
        )
        with pytest.raises(VendorError) as exc_info:
            await vendor.send(messages, ChatOptions(model="gpt-4o"))
        assert exc_info.value.error_type == ErrorType.TIMEOUT

    @pytest.mark.asyncio
    async def test_empty_choices(self, vendor, messages):
        vendor.client.chat.completions.create = AsyncMock(
            return_value=SimpleNamespace(choices=[])
        )
        assert await vendor.send(messages, ChatOptions(model="gpt-4o")) == ""


class TestOpenAIStream:
    """Tests for streamed sends."""

    @pytest.mark.asyncio
    async def test_stream_chunks_in_order(self, vendor, messages):
        stream = FakeStream([
            _stream_chunk("Hel"),
            _stream_chunk(None),
            _stream_chunk("lo"),
            _stream_chunk(None, finish_reason="stop"),
            _stream_chunk("ignored"),
        ])
        vendor.client.chat.completions.create = AsyncMock(return_value=stream)

        chunks = [c async for c in vendor.send_stream(messages, ChatOptions(model="gpt-4o"))]

        assert [c.text for c in chunks] == ["Hel", "lo"]
        assert [c.sequence for c in chunks] == [1, 2]
        assert stream.closed
        assert vendor.client.chat.completions.create.call_args.kwargs["stream"] is True

    @pytest.mark.asyncio
    async def test_stream_error_translated(self, vendor, messages):
        stream = FakeStream(
            [_stream_chunk("partial")],
            error=openai.APIConnectionError(request=_REQUEST),
        )
        vendor.client.chat.completions.create = AsyncMock(return_value=stream)

        received = []
        with pytest.raises(VendorError):
            async for chunk in vendor.send_stream(messages, ChatOptions(model="gpt-4o")):
                received.append(chunk.text)
        assert received == ["partial"]
        assert stream.closed


class TestOpenAIModels:
    """Tests for model discovery and cleanup."""

    @pytest.mark.asyncio
    async def test_list_models(self, vendor):
        async def pages():
            for model_id in ("gpt-4o", "o3-mini"):
                yield SimpleNamespace(id=model_id)

        vendor.client.models.list = MagicMock(return_value=pages())
        assert await vendor.list_models() == ["gpt-4o", "o3-mini"]

    @pytest.mark.asyncio
    async def test_context_manager_closes_client(self, vendor):
        async with vendor:
            pass
        vendor.client.close.assert_awaited_once()
