"""
Unit tests for ChatOrchestrator.

End-to-end flows against fake vendors and in-memory stores: selection
before any vendor call, message assembly, and session persistence only
on a completed turn.
"""

from dataclasses import replace

import pytest

from patternflow.domain.entities import (
    ChatOptions,
    ChatRequest,
    Message,
    MessageRole,
    StreamEventType,
)
from patternflow.domain.exceptions import (
    ContextNotFoundError,
    ModelNotAvailableError,
    NoVendorsConfiguredError,
    PatternNotFoundError,
    RawModeNotSupportedError,
    StrategyNotFoundError,
    StreamInterruptedError,
    UnknownDirectiveError,
    VendorError,
)
from patternflow.orchestrator.engine import ChatOrchestrator, OrchestratorConfig
from patternflow.patterns.resolver import PatternResolver
from patternflow.session.assembler import SessionAssembler
from patternflow.session.bridge import SessionBridge
from patternflow.vendors.registry import VendorRegistry

from conftest import FakeVendor


@pytest.fixture
def vendor():
    return FakeVendor(name="fake", chunks=["Hel", "lo"])


@pytest.fixture
def registry(vendor):
    registry = VendorRegistry()
    registry.register(vendor)
    return registry


@pytest.fixture
def orchestrator(registry, pattern_store, context_store, strategy_store, session_store, directives):
    return ChatOrchestrator(
        registry=registry,
        patterns=PatternResolver(pattern_store),
        contexts=context_store,
        strategies=strategy_store,
        sessions=SessionBridge(session_store),
        assembler=SessionAssembler(directives=directives),
    )


class TestChat:
    """Tests for blocking chat turns."""

    @pytest.mark.asyncio
    async def test_pattern_and_input_reach_vendor(self, orchestrator, vendor):
        result = await orchestrator.chat(ChatRequest(pattern_name="helpful", user_input="hi"))

        sent_messages, sent_options = vendor.sent[0]
        assert sent_messages == [
            Message(MessageRole.SYSTEM, "You are helpful."),
            Message(MessageRole.USER, "hi"),
        ]
        assert sent_options.model == "fake-model"
        assert result.message == Message(MessageRole.ASSISTANT, "Hello")
        assert (result.vendor, result.model) == ("fake", "fake-model")

    @pytest.mark.asyncio
    async def test_context_and_strategy(self, orchestrator, vendor):
        await orchestrator.chat(ChatRequest(
            pattern_name="helpful",
            user_input="hi",
            context_name="project",
            strategy_name="cot",
            language="es",
        ))

        system = vendor.sent[0][0][0].content
        assert system == (
            "Project context.\nYou are helpful.\nThink step by step.\n"
            "Please use the language 'es' for the output."
        )

    @pytest.mark.asyncio
    async def test_streamed_chat_collects_chunks(self, orchestrator):
        seen = []
        result = await orchestrator.chat(
            ChatRequest(pattern_name="helpful", user_input="hi", stream=True),
            on_chunk=seen.append,
        )
        assert seen == ["Hel", "lo"]
        assert result.message.content == "Hello"

    @pytest.mark.asyncio
    async def test_named_session_persisted(self, orchestrator, session_store):
        request = ChatRequest(pattern_name="helpful", user_input="hi", session_name="chat")
        await orchestrator.chat(request)
        await orchestrator.chat(replace(request, user_input="again"))

        stored = await session_store.load("chat")
        assert [m.role for m in stored.messages] == [
            MessageRole.SYSTEM,
            MessageRole.USER,
            MessageRole.ASSISTANT,
            MessageRole.SYSTEM,
            MessageRole.USER,
            MessageRole.ASSISTANT,
        ]
        assert stored.messages[4].content == "again"

    @pytest.mark.asyncio
    async def test_prior_session_sent_to_vendor(self, orchestrator, vendor):
        request = ChatRequest(user_input="first", session_name="chat")
        await orchestrator.chat(request)
        await orchestrator.chat(replace(request, user_input="second"))

        second_call = vendor.sent[1][0]
        assert [m.content for m in second_call] == ["", "first", "Hello", "", "second"]

    @pytest.mark.asyncio
    async def test_vendor_failure_leaves_session_untouched(self, orchestrator, vendor, session_store):
        request = ChatRequest(user_input="first", session_name="chat")
        await orchestrator.chat(request)

        vendor.fail_with = VendorError("down", "fake")
        with pytest.raises(VendorError):
            await orchestrator.chat(replace(request, user_input="second"))

        stored = await session_store.load("chat")
        assert len(stored.messages) == 3

    @pytest.mark.asyncio
    async def test_caller_options_override_defaults(self, orchestrator, vendor):
        await orchestrator.chat(
            ChatRequest(user_input="hi"),
            options=ChatOptions(temperature=0.1, seed=7),
        )
        sent_options = vendor.sent[0][1]
        assert sent_options.temperature == 0.1
        assert sent_options.seed == 7
        assert sent_options.model == "fake-model"

    @pytest.mark.asyncio
    async def test_config_defaults_apply(self, registry, pattern_store, vendor):
        vendor.reply = "<think>hidden</think>Shown"
        orchestrator = ChatOrchestrator(
            registry=registry,
            patterns=pattern_store,
            config=OrchestratorConfig(temperature=0.2, suppress_thinking=True),
        )
        result = await orchestrator.chat(ChatRequest(user_input="hi"))

        assert result.message.content == "Shown"
        assert vendor.sent[0][1].temperature == 0.2

    @pytest.mark.asyncio
    async def test_vendor_requiring_raw_mode(self, pattern_store):
        vendor = FakeVendor(name="openai", models=["o1-mini"], default_model="o1-mini",
                            raw_mode_model_prefixes=("o1",))
        registry = VendorRegistry()
        registry.register(vendor)
        orchestrator = ChatOrchestrator(registry=registry, patterns=pattern_store)

        await orchestrator.chat(ChatRequest(pattern_name="helpful", user_input="hi"))

        sent_messages, sent_options = vendor.sent[0]
        assert sent_messages == [Message(MessageRole.USER, "You are helpful.\n\nhi")]
        assert sent_options.raw


class TestChatErrors:
    """Tests for errors raised before any vendor call."""

    @pytest.mark.asyncio
    async def test_zero_vendors(self, pattern_store, session_store):
        orchestrator = ChatOrchestrator(
            registry=VendorRegistry(),
            patterns=pattern_store,
            sessions=SessionBridge(session_store),
        )
        with pytest.raises(NoVendorsConfiguredError):
            await orchestrator.chat(ChatRequest(user_input="hi", session_name="chat"))
        assert await session_store.load("chat") is None

    @pytest.mark.asyncio
    async def test_unknown_model(self, orchestrator, vendor):
        with pytest.raises(ModelNotAvailableError):
            await orchestrator.chat(ChatRequest(user_input="hi", model="nope"))
        assert vendor.sent == []

    @pytest.mark.asyncio
    async def test_missing_pattern(self, orchestrator, vendor):
        with pytest.raises(PatternNotFoundError):
            await orchestrator.chat(ChatRequest(pattern_name="nope", user_input="hi"))
        assert vendor.sent == []

    @pytest.mark.asyncio
    async def test_missing_context(self, orchestrator, vendor):
        with pytest.raises(ContextNotFoundError):
            await orchestrator.chat(ChatRequest(user_input="hi", context_name="nope"))
        assert vendor.sent == []

    @pytest.mark.asyncio
    async def test_missing_strategy(self, orchestrator, vendor):
        with pytest.raises(StrategyNotFoundError):
            await orchestrator.chat(ChatRequest(user_input="hi", strategy_name="nope"))
        assert vendor.sent == []

    @pytest.mark.asyncio
    async def test_context_without_store(self, registry, pattern_store):
        orchestrator = ChatOrchestrator(registry=registry, patterns=pattern_store)
        with pytest.raises(ContextNotFoundError):
            await orchestrator.chat(ChatRequest(user_input="hi", context_name="project"))

    @pytest.mark.asyncio
    async def test_unknown_directive(self, orchestrator, vendor, session_store):
        request = ChatRequest(
            user_input="{{plugin:weather:today}}", session_name="chat"
        )
        with pytest.raises(UnknownDirectiveError):
            await orchestrator.chat(request)
        assert vendor.sent == []
        assert await session_store.load("chat") is None

    @pytest.mark.asyncio
    async def test_raw_mode_rejected_by_vendor(self, pattern_store, session_store):
        vendor = FakeVendor(name="strict", supports_raw_mode=False)
        registry = VendorRegistry()
        registry.register(vendor)
        orchestrator = ChatOrchestrator(
            registry=registry,
            patterns=pattern_store,
            sessions=SessionBridge(session_store),
        )

        with pytest.raises(RawModeNotSupportedError) as exc_info:
            await orchestrator.chat(
                ChatRequest(user_input="hi", raw_mode=True, session_name="chat")
            )
        assert exc_info.value.vendor == "strict"
        assert vendor.sent == []
        assert await session_store.load("chat") is None

    @pytest.mark.asyncio
    async def test_non_raw_request_to_vendor_without_raw_mode(self, pattern_store):
        vendor = FakeVendor(name="strict", supports_raw_mode=False)
        registry = VendorRegistry()
        registry.register(vendor)
        orchestrator = ChatOrchestrator(registry=registry, patterns=pattern_store)

        result = await orchestrator.chat(ChatRequest(user_input="hi"))
        assert result.message.content == "Hello"


class TestChatStream:
    """Tests for streamed turns."""

    @pytest.mark.asyncio
    async def test_events_and_persistence(self, orchestrator, session_store):
        stream = await orchestrator.chat_stream(
            ChatRequest(pattern_name="helpful", user_input="hi", session_name="chat")
        )
        events = [event async for event in stream]

        assert [e.type for e in events] == [
            StreamEventType.CHUNK,
            StreamEventType.CHUNK,
            StreamEventType.DONE,
        ]
        stored = await session_store.load("chat")
        assert stored.messages[-1] == Message(MessageRole.ASSISTANT, "Hello")

    @pytest.mark.asyncio
    async def test_selection_error_raised_before_stream(self, orchestrator):
        with pytest.raises(ModelNotAvailableError):
            await orchestrator.chat_stream(ChatRequest(user_input="hi", model="nope"))

    @pytest.mark.asyncio
    async def test_failed_stream_not_persisted(self, orchestrator, vendor, session_store):
        vendor.fail_with = ConnectionError("reset")
        stream = await orchestrator.chat_stream(
            ChatRequest(user_input="hi", session_name="chat")
        )
        events = [event async for event in stream]

        assert events[-1].type == StreamEventType.ERROR
        assert isinstance(events[-1].error, StreamInterruptedError)
        assert await session_store.load("chat") is None

    @pytest.mark.asyncio
    async def test_closed_stream_not_persisted(self, orchestrator, session_store):
        stream = await orchestrator.chat_stream(
            ChatRequest(user_input="hi", session_name="chat")
        )
        first = await stream.__anext__()
        assert first.content == "Hel"
        await stream.aclose()

        assert await session_store.load("chat") is None


class TestListing:
    """Tests for listing helpers."""

    @pytest.mark.asyncio
    async def test_list_patterns(self, orchestrator):
        assert await orchestrator.list_patterns() == ["greet", "helpful", "summarize"]

    @pytest.mark.asyncio
    async def test_list_models(self, orchestrator):
        assert await orchestrator.list_models() == {"fake": ["fake-model"]}
