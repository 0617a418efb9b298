"""
Chat Orchestrator.

Main orchestration logic. Coordinates:
- Vendor and model selection
- Pattern, context and strategy resolution
- Session loading and assembly
- Blocking or streamed dispatch
- Persisting the completed turn
"""

from __future__ import annotations

import logging
from contextlib import aclosing
from dataclasses import dataclass, replace
from typing import AsyncIterator, Callable, Optional

from ..dispatch.aggregator import Dispatcher
from ..domain.entities import (
    DEFAULT_THINK_END_TAG,
    DEFAULT_THINK_START_TAG,
    ChatOptions,
    ChatRequest,
    ChatResult,
    Message,
    MessageRole,
    Session,
    StreamEvent,
    StreamEventType,
)
from ..domain.exceptions import (
    ContextNotFoundError,
    RawModeNotSupportedError,
    ResourceNotFoundError,
    StrategyNotFoundError,
)
from ..domain.ports import IPatternStore, ITextStore, IVendorClient
from ..patterns.resolver import PatternResolver
from ..session.assembler import SessionAssembler
from ..session.bridge import SessionBridge
from ..vendors.registry import VendorRegistry

logger = logging.getLogger(__name__)


@dataclass
class OrchestratorConfig:
    """Default call options for the orchestrator.

    Attributes:
        temperature: Sampling temperature
        top_p: Nucleus sampling cutoff
        max_tokens: Maximum tokens per response
        seed: Sampling seed
        suppress_thinking: Strip thinking segments from replies
        think_start_tag: Delimiter opening a thinking segment
        think_end_tag: Delimiter closing a thinking segment
        timeout: Per-call deadline in seconds
    """

    temperature: float = 0.7
    top_p: Optional[float] = None
    max_tokens: Optional[int] = None
    seed: Optional[int] = None
    suppress_thinking: bool = False
    think_start_tag: str = DEFAULT_THINK_START_TAG
    think_end_tag: str = DEFAULT_THINK_END_TAG
    timeout: Optional[float] = None

    def to_options(self) -> ChatOptions:
        return ChatOptions(
            temperature=self.temperature,
            top_p=self.top_p,
            max_tokens=self.max_tokens,
            seed=self.seed,
            suppress_thinking=self.suppress_thinking,
            think_start_tag=self.think_start_tag,
            think_end_tag=self.think_end_tag,
            timeout=self.timeout,
        )


@dataclass
class PreparedChat:
    """Everything needed to dispatch one turn."""

    client: IVendorClient
    model: str
    session: Session
    options: ChatOptions


class ChatOrchestrator:
    """Runs a chat request end to end.

    Every fatal error (missing pattern, context or strategy, selection
    failure, unknown directive, vendor failure) is raised before the
    session is touched; only a completed turn is persisted.

    Usage:
        orchestrator = ChatOrchestrator(
            registry=registry,
            patterns=PatternResolver(pattern_store),
            contexts=context_store,
            strategies=strategy_store,
            sessions=SessionBridge(session_store),
        )

        result = await orchestrator.chat(ChatRequest(pattern_name="summarize", user_input=text))

        stream = await orchestrator.chat_stream(request)
        async for event in stream:
            ...
    """

    def __init__(
        self,
        registry: VendorRegistry,
        patterns: PatternResolver | IPatternStore,
        contexts: Optional[ITextStore] = None,
        strategies: Optional[ITextStore] = None,
        sessions: Optional[SessionBridge] = None,
        assembler: Optional[SessionAssembler] = None,
        dispatcher: Optional[Dispatcher] = None,
        config: Optional[OrchestratorConfig] = None,
    ):
        """Initialize the orchestrator.

        Args:
            registry: Vendor registry used for selection
            patterns: Pattern resolver, or a single pattern store
            contexts: Store of context texts
            strategies: Store of strategy texts
            sessions: Session bridge (anonymous-only when None)
            assembler: Session assembler
            dispatcher: Vendor dispatcher
            config: Default call options
        """
        self.registry = registry
        if isinstance(patterns, PatternResolver):
            self.patterns = patterns
        else:
            self.patterns = PatternResolver(patterns)
        self.contexts = contexts
        self.strategies = strategies
        self.sessions = sessions or SessionBridge()
        self.assembler = assembler or SessionAssembler()
        self.dispatcher = dispatcher or Dispatcher()
        self.config = config or OrchestratorConfig()

    async def _load_text(
        self,
        store: Optional[ITextStore],
        name: Optional[str],
        not_found: type[ResourceNotFoundError],
    ) -> Optional[str]:
        if not name:
            return None
        text = await store.get(name) if store is not None else None
        if text is None:
            raise not_found(name)
        return text

    async def prepare(
        self, request: ChatRequest, options: Optional[ChatOptions] = None
    ) -> PreparedChat:
        """Select a vendor and assemble the session for a request.

        Raises:
            SelectionError: If no vendor/model can serve the request, or
                raw mode is needed but the vendor does not accept it
            ResourceNotFoundError: If a named pattern, context or strategy
                does not exist
            TemplateError: If rendering fails
        """
        client, model = await self.registry.select(request.model, request.vendor)

        pattern = await self.patterns.resolve(request.pattern_name)
        context = await self._load_text(self.contexts, request.context_name, ContextNotFoundError)
        strategy = await self._load_text(
            self.strategies, request.strategy_name, StrategyNotFoundError
        )
        prior = await self.sessions.load(request.session_name)

        base = options or self.config.to_options()
        raw = request.raw_mode or base.raw or client.needs_raw_mode(model)
        if raw and not client.descriptor.supports_raw_mode:
            raise RawModeNotSupportedError(client.name, model)
        effective = replace(base, model=model, raw=raw)

        session = self.assembler.build(
            request,
            pattern,
            context=context,
            strategy=strategy,
            prior=prior,
            raw=raw,
        )

        logger.info(
            f"Prepared request for {client.name}/{model} "
            f"(pattern={request.pattern_name}, session={request.session_name}, raw={raw})"
        )
        return PreparedChat(client=client, model=model, session=session, options=effective)

    async def chat(
        self,
        request: ChatRequest,
        options: Optional[ChatOptions] = None,
        on_chunk: Optional[Callable[[str], None]] = None,
    ) -> ChatResult:
        """Run one turn and return the assistant reply.

        Streams from the vendor when request.stream is set, calling
        on_chunk with every relayed chunk.
        """
        prepared = await self.prepare(request, options)

        if request.stream:
            reply = await self.dispatcher.collect(
                prepared.client, prepared.session, prepared.options, on_chunk
            )
        else:
            reply = await self.dispatcher.send(
                prepared.client, prepared.session, prepared.options
            )

        session = await self.sessions.complete_turn(prepared.session, reply)
        return ChatResult(
            message=reply,
            session=session,
            vendor=prepared.client.name,
            model=prepared.model,
        )

    async def chat_stream(
        self, request: ChatRequest, options: Optional[ChatOptions] = None
    ) -> AsyncIterator[StreamEvent]:
        """Prepare a turn and return its event stream.

        Resolution and selection errors are raised here, before any event
        exists. The turn is persisted just before the DONE event is
        relayed.
        """
        prepared = await self.prepare(request, options)
        return self._relay(prepared)

    async def _relay(self, prepared: PreparedChat) -> AsyncIterator[StreamEvent]:
        events = self.dispatcher.send_stream(
            prepared.client, prepared.session, prepared.options
        )
        async with aclosing(events):
            async for event in events:
                if event.type == StreamEventType.DONE:
                    reply = Message(role=MessageRole.ASSISTANT, content=event.content or "")
                    await self.sessions.complete_turn(prepared.session, reply)
                yield event

    async def list_models(self) -> dict[str, list[str]]:
        """List models of every configured vendor."""
        return await self.registry.list_models()

    async def list_patterns(self) -> list[str]:
        return await self.patterns.list_patterns()
