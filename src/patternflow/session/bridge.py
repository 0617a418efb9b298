"""
Session Store bridge.

Loads named sessions before a turn and writes them back once the turn
has completed successfully. Anonymous sessions never reach the store.
"""

from __future__ import annotations

import logging
from typing import Optional

from ..domain.entities import Message, MessageRole, Session
from ..domain.ports import ISessionStore

logger = logging.getLogger(__name__)


class SessionBridge:
    """Moves sessions between the orchestrator and the session store.

    Usage:
        bridge = SessionBridge(session_store)

        prior = await bridge.load(request.session_name)
        ...
        session = await bridge.complete_turn(session, reply)
    """

    def __init__(self, store: Optional[ISessionStore] = None):
        """Initialize the bridge.

        Args:
            store: Session store. If None, named sessions are not persisted.
        """
        self.store = store

    async def load(self, name: Optional[str]) -> Optional[Session]:
        """Load a named session.

        Returns:
            The stored session, an empty session carrying name if nothing
            is stored yet, or None for anonymous requests
        """
        if not name:
            return None

        if self.store is None:
            return Session(name=name)

        session = await self.store.load(name)
        if session is None:
            logger.debug(f"Session {name!r} not found, starting a new one")
            return Session(name=name)

        session.name = name
        return session

    async def complete_turn(self, session: Session, reply: Message) -> Session:
        """Close the current turn and persist named sessions.

        Args:
            session: Session whose last message is the pending user turn
            reply: Assistant message answering it

        Returns:
            The session with the reply appended
        """
        if reply.role != MessageRole.ASSISTANT:
            raise ValueError(f"reply must be an assistant message, got {reply.role.value}")

        session.append(reply)

        if session.is_named and self.store is not None:
            await self.store.save(session.name, session)
            logger.info(
                f"Saved session {session.name!r} ({len(session.messages)} messages)"
            )

        return session
