"""Shared fixtures and fake adapters for the test suite."""

from __future__ import annotations

import asyncio
from datetime import datetime, timezone
from typing import AsyncIterator, Optional, Sequence

import pytest

from patternflow.domain.entities import (
    ChatOptions,
    Message,
    StreamChunk,
    VendorDescriptor,
)
from patternflow.domain.ports import IVendorClient
from patternflow.storage.memory import (
    InMemoryPatternStore,
    InMemorySessionStore,
    InMemoryTextStore,
)
from patternflow.templates.directives import DirectiveResolver, SysDirective

FIXED_NOW = datetime(2024, 3, 15, 10, 30, 45, tzinfo=timezone.utc)


class FakeVendor(IVendorClient):
    """Scriptable vendor client.

    Streams the given chunks in order, then raises fail_with if set.
    Records every call so tests can assert on what reached the vendor.
    """

    def __init__(
        self,
        name: str = "fake",
        models: Sequence[str] = ("fake-model",),
        default_model: Optional[str] = "fake-model",
        configured: bool = True,
        chunks: Sequence[str] = ("Hello",),
        reply: Optional[str] = None,
        fail_with: Optional[BaseException] = None,
        discovered: Sequence[str] = (),
        list_error: Optional[BaseException] = None,
        list_delay: float = 0.0,
        chunk_delay: float = 0.0,
        supports_streaming: bool = True,
        supports_raw_mode: bool = True,
        raw_mode_model_prefixes: tuple[str, ...] = (),
    ):
        self._descriptor = VendorDescriptor(
            name=name,
            models=frozenset(models),
            default_model=default_model,
            supports_streaming=supports_streaming,
            supports_raw_mode=supports_raw_mode,
            raw_mode_model_prefixes=raw_mode_model_prefixes,
        )
        self.configured = configured
        self.chunks = list(chunks)
        self.reply = reply if reply is not None else "".join(chunks)
        self.fail_with = fail_with
        self.discovered = list(discovered)
        self.list_error = list_error
        self.list_delay = list_delay
        self.chunk_delay = chunk_delay

        self.sent: list[tuple[list[Message], ChatOptions]] = []
        self.list_calls = 0
        self.stream_closed = False
        self.stream_cancelled = False

    @property
    def name(self) -> str:
        return self._descriptor.name

    @property
    def descriptor(self) -> VendorDescriptor:
        return self._descriptor

    def is_configured(self) -> bool:
        return self.configured

    async def send(self, messages: list[Message], options: ChatOptions) -> str:
        self.sent.append((list(messages), options))
        if self.chunk_delay:
            await asyncio.sleep(self.chunk_delay)
        if self.fail_with is not None:
            raise self.fail_with
        return self.reply

    async def send_stream(
        self, messages: list[Message], options: ChatOptions
    ) -> AsyncIterator[StreamChunk]:
        self.sent.append((list(messages), options))
        try:
            for sequence, text in enumerate(self.chunks, start=1):
                if self.chunk_delay:
                    await asyncio.sleep(self.chunk_delay)
                yield StreamChunk(sequence=sequence, text=text)
            if self.fail_with is not None:
                raise self.fail_with
        except asyncio.CancelledError:
            self.stream_cancelled = True
            raise
        finally:
            self.stream_closed = True

    async def list_models(self) -> list[str]:
        self.list_calls += 1
        if self.list_delay:
            await asyncio.sleep(self.list_delay)
        if self.list_error is not None:
            raise self.list_error
        return list(self.discovered)


@pytest.fixture
def fake_vendor():
    """Configured vendor that streams "Hel", "lo"."""
    return FakeVendor(chunks=["Hel", "lo"])


@pytest.fixture
def sys_directive():
    """Host facts pinned to known values."""
    return SysDirective(
        environ={"PROJECT": "patternflow"},
        hostname="build-01",
        user="alice",
        os_name="linux",
        arch="x86_64",
        home="/home/alice",
        cwd="/srv/work",
    )


@pytest.fixture
def directives(sys_directive):
    """Built-in directives with a fixed clock."""
    return DirectiveResolver.default(clock=lambda: FIXED_NOW, sys_directive=sys_directive)


@pytest.fixture
def pattern_store():
    return InMemoryPatternStore(
        {
            "helpful": "You are helpful.",
            "summarize": "Summarize the following text:\n{{input}}",
            "greet": "Greet {{name}} in a {{tone}} tone.",
        },
        descriptions={"summarize": "Condense text"},
    )


@pytest.fixture
def context_store():
    return InMemoryTextStore({"project": "Project context."})


@pytest.fixture
def strategy_store():
    return InMemoryTextStore({"cot": "Think step by step."})


@pytest.fixture
def session_store():
    return InMemorySessionStore()
