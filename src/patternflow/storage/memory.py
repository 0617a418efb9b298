"""
In-memory store adapters.

Implement the store ports without touching the filesystem. Useful for
embedding the engine in another process, for dry runs and for tests.
"""

from __future__ import annotations

import asyncio
from typing import Mapping, Optional

from ..domain.entities import Session
from ..domain.ports import IPatternStore, ISessionStore, ITextStore


class InMemoryTextStore(ITextStore):
    """Named text documents held in a dict."""

    def __init__(self, documents: Optional[Mapping[str, str]] = None):
        self._documents: dict[str, str] = dict(documents or {})

    def put(self, name: str, text: str) -> None:
        self._documents[name] = text

    async def get(self, name: str) -> Optional[str]:
        return self._documents.get(name)

    async def list_names(self) -> list[str]:
        return sorted(self._documents)


class InMemoryPatternStore(InMemoryTextStore, IPatternStore):
    """Pattern templates held in a dict, with optional descriptions."""

    def __init__(
        self,
        patterns: Optional[Mapping[str, str]] = None,
        descriptions: Optional[Mapping[str, str]] = None,
    ):
        super().__init__(patterns)
        self._descriptions: dict[str, str] = dict(descriptions or {})

    async def get_description(self, name: str) -> Optional[str]:
        return self._descriptions.get(name)


class InMemorySessionStore(ISessionStore):
    """Sessions held in a dict.

    Sessions are copied on the way in and out so callers never share
    state with the store's durable copy.
    """

    def __init__(self):
        self._sessions: dict[str, Session] = {}
        self._lock = asyncio.Lock()

    async def load(self, name: str) -> Optional[Session]:
        async with self._lock:
            session = self._sessions.get(name)
            return session.copy() if session is not None else None

    async def save(self, name: str, session: Session) -> None:
        async with self._lock:
            stored = session.copy()
            stored.name = name
            self._sessions[name] = stored

    async def names(self) -> list[str]:
        async with self._lock:
            return sorted(self._sessions)
