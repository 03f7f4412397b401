"""Application service for one chat room.

Owns exactly one registry and wires the broadcaster, presence publisher
and protocol handler around it. The transport layer talks only to this
class; it never touches the registry or a session directly.
"""
from __future__ import annotations

from typing import Any, List, Optional

from application.services.presence_service import PresencePublisher
from application.services.protocol_handler import ProtocolHandler
from core.config import ChatSettings
from core.logging_config import get_logger
from domain.chat.entity import Session
from infrastructure.realtime.broadcaster import Broadcaster
from infrastructure.realtime.registry import RoomRegistry


logger = get_logger(__name__)


class ChatRoomService:
    def __init__(self, *, chat_settings: Optional[ChatSettings] = None) -> None:
        self._settings = chat_settings or ChatSettings()
        self._registry = RoomRegistry(room=self._settings.room_name)
        self._broadcaster = Broadcaster(self._registry)
        self._presence = PresencePublisher(registry=self._registry, broadcaster=self._broadcaster)
        self._protocol = ProtocolHandler(
            registry=self._registry,
            broadcaster=self._broadcaster,
            presence=self._presence,
            chat_settings=self._settings,
        )

    @property
    def name(self) -> str:
        return self._settings.room_name

    # Connection lifecycle management
    def connect(self, connection: Any, username: str) -> Session:
        """Admit a new connection. ``username`` must already be validated."""
        return self._protocol.open(connection, username)

    def receive(self, connection: Any, raw: Any) -> None:
        self._protocol.handle_frame(connection, raw)

    def disconnect(self, connection: Any) -> Optional[Session]:
        return self._protocol.close(connection, reason="close")

    def fail(self, connection: Any, error: Optional[BaseException] = None) -> Optional[Session]:
        return self._protocol.close(connection, reason="error", error=error)

    # Read-only views
    def roster(self) -> List[str]:
        return self._presence.roster()

    def __len__(self) -> int:
        return len(self._registry)

    def __contains__(self, connection: Any) -> bool:
        return connection in self._registry
