"""Domain entities, port interfaces and errors for the orchestration engine."""

from .entities import (
    ChatOptions,
    ChatRequest,
    ChatResult,
    ErrorType,
    Message,
    MessageRole,
    Pattern,
    Session,
    StreamChunk,
    StreamEvent,
    StreamEventType,
    VendorDescriptor,
)
from .exceptions import (
    ConfigurationError,
    ContextNotFoundError,
    DirectiveError,
    DispatchError,
    EmptyResponseError,
    ModelNotAvailableError,
    NoVendorsConfiguredError,
    PatternFlowError,
    PatternNotFoundError,
    RawModeNotSupportedError,
    ResourceNotFoundError,
    SelectionError,
    StrategyNotFoundError,
    StreamInterruptedError,
    TemplateError,
    UnknownDirectiveError,
    VendorError,
    VendorNotConfiguredError,
)
from .ports import (
    IPatternStore,
    ISessionStore,
    ITextStore,
    IVendorClient,
)

__all__ = [
    # Entities
    "ChatOptions",
    "ChatRequest",
    "ChatResult",
    "ErrorType",
    "Message",
    "MessageRole",
    "Pattern",
    "Session",
    "StreamChunk",
    "StreamEvent",
    "StreamEventType",
    "VendorDescriptor",
    # Errors
    "ConfigurationError",
    "ContextNotFoundError",
    "DirectiveError",
    "DispatchError",
    "EmptyResponseError",
    "ModelNotAvailableError",
    "NoVendorsConfiguredError",
    "PatternFlowError",
    "PatternNotFoundError",
    "RawModeNotSupportedError",
    "ResourceNotFoundError",
    "SelectionError",
    "StrategyNotFoundError",
    "StreamInterruptedError",
    "TemplateError",
    "UnknownDirectiveError",
    "VendorError",
    "VendorNotConfiguredError",
    # Ports
    "IPatternStore",
    "ISessionStore",
    "ITextStore",
    "IVendorClient",
]
