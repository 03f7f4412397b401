"""Roster view over the room registry."""
from __future__ import annotations

from typing import List

from application.ports.chat import UserListMessage
from infrastructure.realtime.broadcaster import Broadcaster
from infrastructure.realtime.registry import RoomRegistry


class PresencePublisher:
    """Pushes the full roster; clients replace their list instead of diffing."""

    def __init__(self, *, registry: RoomRegistry, broadcaster: Broadcaster) -> None:
        self._registry = registry
        self._broadcaster = broadcaster

    def roster(self) -> List[str]:
        return [s.username for s in self._registry.snapshot() if not s.removal_pending]

    def publish_roster(self) -> int:
        return self._broadcaster.broadcast(UserListMessage(users=self.roster()))
