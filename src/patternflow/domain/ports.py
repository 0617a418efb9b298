"""
Port interfaces (abstract base classes) for the orchestration engine.

These define the contracts that adapters must implement.
Following the Ports & Adapters (Hexagonal) architecture pattern.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING, AsyncIterator, Optional

if TYPE_CHECKING:
    from .entities import (
        ChatOptions,
        Message,
        Session,
        StreamChunk,
        VendorDescriptor,
    )


# ============================================
# Text Store Interfaces
# ============================================


class ITextStore(ABC):
    """Read-only store of named text documents (contexts, strategies).

    The engine never writes to these stores.
    """

    @abstractmethod
    async def get(self, name: str) -> Optional[str]:
        """Return the text stored under name, or None if absent."""
        pass

    @abstractmethod
    async def list_names(self) -> list[str]:
        """Return the names of all stored documents."""
        pass


class IPatternStore(ITextStore):
    """Store of pattern templates."""

    async def get_description(self, name: str) -> Optional[str]:
        """Return a short description of a pattern, if the store keeps one."""
        return None


# ============================================
# Session Store Interface
# ============================================


class ISessionStore(ABC):
    """Durable storage for named sessions."""

    @abstractmethod
    async def load(self, name: str) -> Optional[Session]:
        """Load a session by name, or None if it does not exist."""
        pass

    @abstractmethod
    async def save(self, name: str, session: Session) -> None:
        """Persist a session under name, replacing any previous copy."""
        pass


# ============================================
# Vendor Client Interface
# ============================================


class IVendorClient(ABC):
    """Interface for LLM vendors (OpenAI, Anthropic, Ollama, etc.).

    Implementations handle the specifics of each vendor API while
    providing a consistent interface to the dispatcher.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the vendor name used for selection."""
        pass

    @property
    @abstractmethod
    def descriptor(self) -> VendorDescriptor:
        """Return the vendor's static capability descriptor."""
        pass

    @abstractmethod
    def is_configured(self) -> bool:
        """Return True if the vendor is ready to serve requests."""
        pass

    def needs_raw_mode(self, model: str) -> bool:
        """Return True if model rejects a distinct system role."""
        return any(
            model.startswith(prefix)
            for prefix in self.descriptor.raw_mode_model_prefixes
        )

    @abstractmethod
    async def send(self, messages: list[Message], options: ChatOptions) -> str:
        """Send messages and return the complete assistant text.

        Args:
            messages: Ordered, role-tagged messages
            options: Per-call options (model, sampling, limits)

        Returns:
            Assistant text

        Raises:
            VendorError: On transport or protocol failures
        """
        pass

    @abstractmethod
    def send_stream(
        self, messages: list[Message], options: ChatOptions
    ) -> AsyncIterator[StreamChunk]:
        """Send messages and yield assistant text incrementally.

        Exhaustion of the iterator signals completion; a raised exception
        signals failure. Closing the iterator must release the underlying
        request.
        """
        pass

    @abstractmethod
    async def list_models(self) -> list[str]:
        """Return the model identifiers currently offered by the vendor."""
        pass

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        pass
