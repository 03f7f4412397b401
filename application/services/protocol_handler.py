"""Per-session inbound protocol handling.

Each session is either active (frames are processed) or closed (terminal).
Every method here is synchronous: one event reaction runs to completion
before the event loop can start the next one, which keeps reactions for
the same room from overlapping.
"""
from __future__ import annotations

from typing import Any, Dict, Optional

from application.ports.chat import (
    ChatMessage,
    ClientChat,
    ClientPing,
    ErrorMessage,
    PongMessage,
    parse_frame,
)
from application.services.presence_service import PresencePublisher
from core.config import ChatSettings
from core.logging_config import get_logger
from domain.chat.entity import Session
from infrastructure.realtime.broadcaster import Broadcaster
from infrastructure.realtime.registry import RoomRegistry


logger = get_logger(__name__)


class ProtocolHandler:
    def __init__(
        self,
        *,
        registry: RoomRegistry,
        broadcaster: Broadcaster,
        presence: PresencePublisher,
        chat_settings: ChatSettings,
    ) -> None:
        self._registry = registry
        self._broadcaster = broadcaster
        self._presence = presence
        self._settings = chat_settings
        # id(connection) -> Session until its close or error signal, even after a prune
        self._sessions: Dict[int, Session] = {}

    # -------------------- lifecycle --------------------
    def open(self, connection: Any, username: str) -> Session:
        """Admit a connection: register it, publish the roster, announce the join."""
        session = self._registry.admit(connection, username)
        self._sessions[id(connection)] = session
        self._presence.publish_roster()
        self._announce(self._settings.join_template.format(username=session.username))
        return session

    def close(self, connection: Any, *, reason: str = "close", error: Optional[BaseException] = None) -> Optional[Session]:
        """Handle a close or error signal. Repeated signals are no-ops.

        A session already pruned by a failed send still gets its roster
        update and departure notice here.
        """
        session = self._sessions.pop(id(connection), None)
        if session is None or not session.close():
            return None
        self._registry.evict(connection)
        if error is not None:
            logger.warning("chat_session_errored", username=session.username, error=str(error))
        else:
            logger.info("chat_session_closed", username=session.username, reason=reason)
        self._presence.publish_roster()
        self._announce(self._settings.leave_template.format(username=session.username))
        return session

    # -------------------- inbound frames --------------------
    def handle_frame(self, connection: Any, raw: Any) -> None:
        session = self._registry.get(connection)
        if session is None or not session.is_live:
            logger.debug("chat_frame_dropped", reason="session_not_active")
            return

        result = parse_frame(raw)
        if not result.ok:
            logger.info("chat_frame_malformed", username=session.username, reason=result.reason)
            self._broadcaster.send_to(session, ErrorMessage(message=self._settings.invalid_message_text))
            return
        frame = result.frame
        if frame is None:
            logger.debug("chat_frame_ignored", username=session.username, reason=result.reason)
            return

        if isinstance(frame, ClientChat):
            self._broadcaster.broadcast(ChatMessage(username=session.username, text=frame.text))
        elif isinstance(frame, ClientPing):
            self._broadcaster.send_to(session, PongMessage.reply_to(frame.id))

    def _announce(self, text: str) -> None:
        self._broadcaster.broadcast(ChatMessage(username=self._settings.system_username, text=text))
