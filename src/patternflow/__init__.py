"""
PatternFlow Prompt Orchestration Engine.

Turns a named prompt pattern plus user input into a request for one of
several LLM vendors, and returns the reply as a blocking message or an
incremental event stream.

Architecture:
- Domain: Core entities, port interfaces and errors
- Templates: Placeholder rendering and plugin directives
- Patterns: Pattern lookup across default and custom stores
- Session: Message assembly and session persistence bridge
- Vendors: Vendor clients (OpenAI, Anthropic, Ollama, dry run) and registry
- Dispatch: Blocking and streamed sends, thinking-segment stripping
- Orchestrator: End-to-end request coordination
- Config: Environment settings, logging and registry bootstrap

Key Features:
- Multi-vendor support with model-based selection
- Ordered streaming with exactly one terminal event
- Thinking-segment suppression for reasoning models
- Named sessions that persist only completed turns
"""

# Domain
from .domain import (
    ChatOptions,
    ChatRequest,
    ChatResult,
    ErrorType,
    Message,
    MessageRole,
    Pattern,
    PatternFlowError,
    Session,
    StreamEvent,
    StreamEventType,
)

# Orchestrator
from .orchestrator import ChatOrchestrator, OrchestratorConfig

# Building blocks
from .config import Settings, build_registry, configure_logging
from .dispatch import Dispatcher, strip_thinking
from .patterns import PatternResolver
from .session import SessionAssembler, SessionBridge
from .storage import InMemoryPatternStore, InMemorySessionStore, InMemoryTextStore
from .templates import DirectiveResolver, TemplateContext, TemplateEngine
from .vendors import VendorConfig, VendorRegistry

__version__ = "0.1.0"

__all__ = [
    # Domain
    "ChatOptions",
    "ChatRequest",
    "ChatResult",
    "ErrorType",
    "Message",
    "MessageRole",
    "Pattern",
    "PatternFlowError",
    "Session",
    "StreamEvent",
    "StreamEventType",
    # Orchestrator
    "ChatOrchestrator",
    "OrchestratorConfig",
    # Building blocks
    "Dispatcher",
    "DirectiveResolver",
    "InMemoryPatternStore",
    "InMemorySessionStore",
    "InMemoryTextStore",
    "PatternResolver",
    "SessionAssembler",
    "SessionBridge",
    "Settings",
    "TemplateContext",
    "TemplateEngine",
    "VendorConfig",
    "VendorRegistry",
    "build_registry",
    "configure_logging",
    "strip_thinking",
]
