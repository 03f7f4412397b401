"""In-process registry of the sessions in one chat room.

Entries are keyed by connection identity. All access happens on the
event loop thread from synchronous code, so no lock is taken.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional

from domain.chat.entity import Session
from core.logging_config import get_logger


logger = get_logger(__name__)


class RoomRegistry:
    """Mutable collection of live sessions for a single room."""

    def __init__(self, room: str = "default") -> None:
        self.room = room
        # id(connection) -> Session; dicts keep insertion order for the roster
        self._sessions: Dict[int, Session] = {}

    def admit(self, connection: Any, username: str) -> Session:
        session = Session(connection=connection, username=username)
        self._sessions[id(connection)] = session
        logger.info("chat_session_admitted", room=self.room, username=session.username, size=len(self._sessions))
        return session

    def evict(self, connection: Any) -> Optional[Session]:
        session = self._sessions.pop(id(connection), None)
        if session is not None:
            session.mark_for_removal()
            logger.info("chat_session_evicted", room=self.room, username=session.username, size=len(self._sessions))
        return session

    def get(self, connection: Any) -> Optional[Session]:
        return self._sessions.get(id(connection))

    def snapshot(self) -> List[Session]:
        """Copy of the current sessions, safe to iterate while the registry changes."""
        return list(self._sessions.values())

    def sweep(self) -> List[Session]:
        """Evict every session marked for removal and return them."""
        dead = [s for s in self._sessions.values() if s.removal_pending]
        for session in dead:
            self.evict(session.connection)
        return dead

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, connection: Any) -> bool:
        return id(connection) in self._sessions
