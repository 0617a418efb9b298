"""Store adapters."""

from .memory import InMemoryPatternStore, InMemorySessionStore, InMemoryTextStore

__all__ = [
    "InMemoryPatternStore",
    "InMemorySessionStore",
    "InMemoryTextStore",
]
