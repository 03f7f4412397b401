"""Fan-out of serialized server messages to every session in a room.

A failing send marks the session for removal; the registry is only
mutated after the fan-out pass, never while it is being iterated.
"""
from __future__ import annotations

from application.ports.chat import ServerMessage, serialize
from domain.chat.entity import Session
from infrastructure.realtime.registry import RoomRegistry
from core.logging_config import get_logger


logger = get_logger(__name__)


class Broadcaster:
    def __init__(self, registry: RoomRegistry) -> None:
        self._registry = registry

    def broadcast(self, message: ServerMessage) -> int:
        """Send ``message`` to every live session. Returns the delivery count."""
        payload = serialize(message)
        delivered = 0
        for session in self._registry.snapshot():
            if not session.is_live:
                continue
            if self._deliver(session, payload):
                delivered += 1
        swept = self._registry.sweep()
        if swept:
            logger.info(
                "chat_broadcast_swept",
                room=self._registry.room,
                type=message.type,
                removed=[s.username for s in swept],
            )
        return delivered

    def send_to(self, session: Session, message: ServerMessage) -> bool:
        """Reply to a single session, bypassing fan-out."""
        if not session.is_live:
            return False
        ok = self._deliver(session, serialize(message))
        if not ok:
            self._registry.sweep()
        return ok

    def _deliver(self, session: Session, payload: str) -> bool:
        try:
            session.connection.send(payload)
        except Exception as exc:
            # Any transport failure counts; the session never gets another frame
            session.mark_for_removal()
            logger.warning(
                "chat_broadcast_send_failed",
                room=self._registry.room,
                username=session.username,
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return False
        return True
