"""
Domain entities for the prompt orchestration engine.

These are pure domain objects with no infrastructure dependencies.
They define the core data structures passed between the resolver,
assembler, vendor registry and dispatcher.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType
from typing import Any, Mapping, Optional

DEFAULT_THINK_START_TAG = "<think>"
DEFAULT_THINK_END_TAG = "</think>"

# ============================================
# Patterns
# ============================================


@dataclass(frozen=True)
class Pattern:
    """A named, reusable system-prompt template.

    Attributes:
        name: Unique pattern name
        content: Raw template text
        description: Optional human-readable description
    """

    name: str
    content: str
    description: Optional[str] = None


# ============================================
# Message Types
# ============================================


class MessageRole(str, Enum):
    """Role of a message in a session."""

    SYSTEM = "system"
    USER = "user"
    ASSISTANT = "assistant"


@dataclass
class Message:
    """A single role-tagged message."""

    role: MessageRole
    content: str

    def to_dict(self) -> dict[str, str]:
        return {"role": self.role.value, "content": self.content}

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> Message:
        return cls(role=MessageRole(data["role"]), content=data.get("content", ""))


# ============================================
# Session
# ============================================


@dataclass
class Session:
    """An ordered sequence of messages.

    A session with a name is persisted through the session store after
    each completed turn; an anonymous session lives only for one request.

    Attributes:
        name: Session name, or None for an ephemeral session
        messages: Messages in conversation order
    """

    name: Optional[str] = None
    messages: list[Message] = field(default_factory=list)

    @property
    def is_named(self) -> bool:
        return bool(self.name)

    @property
    def turn_open(self) -> bool:
        """True while the last message still awaits an assistant reply."""
        return bool(self.messages) and self.messages[-1].role != MessageRole.ASSISTANT

    def append(self, message: Message) -> None:
        """Append a message, keeping conversation order."""
        self.messages.append(message)

    def copy(self) -> Session:
        return Session(
            name=self.name,
            messages=[Message(role=m.role, content=m.content) for m in self.messages],
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "messages": [m.to_dict() for m in self.messages],
        }


# ============================================
# Requests and Options
# ============================================


@dataclass(frozen=True)
class ChatRequest:
    """Immutable description of one orchestration invocation.

    Attributes:
        pattern_name: Pattern to apply (None/empty for no pattern)
        user_input: Text supplied by the user
        context_name: Optional context prepended to the system text
        session_name: Optional session to load and persist
        strategy_name: Optional strategy appended to the system text
        language: Optional language code for the response
        model: Optional explicit model
        vendor: Optional explicit vendor
        stream: Whether the response should be streamed
        raw_mode: Fold system and user text into one user message
        variables: Extra template variables supplied by the caller
    """

    pattern_name: Optional[str] = None
    user_input: str = ""
    context_name: Optional[str] = None
    session_name: Optional[str] = None
    strategy_name: Optional[str] = None
    language: Optional[str] = None
    model: Optional[str] = None
    vendor: Optional[str] = None
    stream: bool = False
    raw_mode: bool = False
    variables: Mapping[str, str] = field(default_factory=dict)

    def __post_init__(self):
        # Callers may pass a plain dict; freeze it so the request stays read-only
        object.__setattr__(self, "variables", MappingProxyType(dict(self.variables)))


@dataclass
class ChatOptions:
    """Per-call options handed to a vendor client.

    Attributes:
        model: Model identifier resolved by the selector
        temperature: Sampling randomness
        top_p: Nucleus sampling cutoff
        max_tokens: Response length cap
        seed: Sampling seed, where the vendor supports one
        raw: Force system+user merge into one user message
        suppress_thinking: Strip private-reasoning segments from the output
        think_start_tag: Delimiter opening a thinking segment
        think_end_tag: Delimiter closing a thinking segment
        timeout: Per-call deadline in seconds (None = no deadline)
    """

    model: Optional[str] = None
    temperature: float = 0.7
    top_p: Optional[float] = None
    max_tokens: Optional[int] = None
    seed: Optional[int] = None
    raw: bool = False
    suppress_thinking: bool = False
    think_start_tag: str = DEFAULT_THINK_START_TAG
    think_end_tag: str = DEFAULT_THINK_END_TAG
    timeout: Optional[float] = None


# ============================================
# Vendors
# ============================================


@dataclass(frozen=True)
class VendorDescriptor:
    """Static description of a vendor and its capabilities.

    Attributes:
        name: Vendor name used for selection
        models: Model identifiers the vendor claims to serve
        default_model: Model used when the caller names none
        supports_streaming: Vendor can deliver incremental output
        supports_raw_mode: Vendor accepts a single merged user message
        supports_thinking: Vendor can emit private-reasoning segments
        raw_mode_model_prefixes: Models that reject a system role
    """

    name: str
    models: frozenset[str] = frozenset()
    default_model: Optional[str] = None
    supports_streaming: bool = True
    supports_raw_mode: bool = True
    supports_thinking: bool = False
    raw_mode_model_prefixes: tuple[str, ...] = ()

    def serves(self, model: str) -> bool:
        return model in self.models or model == self.default_model


# ============================================
# Streaming
# ============================================


@dataclass(frozen=True)
class StreamChunk:
    """An ordered fragment of assistant text produced by a vendor."""

    sequence: int
    text: str


class StreamEventType(str, Enum):
    """Types of events relayed to the caller of a streamed send."""

    CHUNK = "chunk"  # Relayed fragment of assistant text
    DONE = "done"  # Stream finished cleanly, content holds full text
    ERROR = "error"  # Stream ended abnormally, error holds the cause


class ErrorType(str, Enum):
    """Classification of vendor failures."""

    RECOVERABLE = "recoverable"  # Can retry
    FATAL = "fatal"  # Must abort
    TIMEOUT = "timeout"  # Per-call deadline exceeded
    RATE_LIMIT = "rate_limit"  # Rate limited, back off
    CANCELLED = "cancelled"  # Vendor call was cancelled


@dataclass
class StreamEvent:
    """An event relayed to the caller of a streamed send.

    Attributes:
        type: Event type
        sequence: Sequence number for ordering
        content: Chunk text (CHUNK) or full text (DONE)
        error: Exception describing the failure (ERROR)
        metadata: Additional event metadata
    """

    type: StreamEventType
    sequence: int
    content: Optional[str] = None
    error: Optional[BaseException] = None
    metadata: Optional[dict[str, Any]] = None

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        result: dict[str, Any] = {
            "type": self.type.value,
            "sequence": self.sequence,
        }
        if self.content is not None:
            result["content"] = self.content
        if self.error is not None:
            result["error"] = str(self.error)
            error_type = getattr(self.error, "error_type", None)
            if error_type is not None:
                result["error_type"] = error_type.value
        if self.metadata is not None:
            result["metadata"] = self.metadata
        return result

    @classmethod
    def chunk(cls, text: str, sequence: int) -> StreamEvent:
        """Create a chunk relay event."""
        return cls(type=StreamEventType.CHUNK, sequence=sequence, content=text)

    @classmethod
    def done(
        cls, full_text: str, sequence: int, metadata: Optional[dict[str, Any]] = None
    ) -> StreamEvent:
        """Create a done event carrying the accumulated text."""
        return cls(
            type=StreamEventType.DONE,
            sequence=sequence,
            content=full_text,
            metadata=metadata,
        )

    @classmethod
    def error_event(cls, error: BaseException, sequence: int) -> StreamEvent:
        """Create an error event."""
        return cls(type=StreamEventType.ERROR, sequence=sequence, error=error)


# ============================================
# Results
# ============================================


@dataclass
class ChatResult:
    """Outcome of a completed orchestration turn.

    Attributes:
        message: Assistant reply
        session: Session including the closed turn
        vendor: Vendor that served the request
        model: Model that served the request
    """

    message: Message
    session: Session
    vendor: str
    model: str
