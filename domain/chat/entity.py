"""
Chat domain entities - one live connection bound to a display name
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from domain.common.exceptions import UsernameRequiredException


def normalize_username(raw: str | None) -> str:
    """Trim a claimed display name; reject it when nothing is left."""
    username = (raw or "").strip()
    if not username:
        raise UsernameRequiredException()
    return username


@dataclass(eq=False)
class Session:
    """Server-side record of one registered connection.

    Identity is the connection object itself, so two sessions claiming the
    same username remain distinct.
    """

    connection: Any
    username: str
    removal_pending: bool = False
    closed: bool = False

    def __post_init__(self):
        self.username = normalize_username(self.username)

    @property
    def is_live(self) -> bool:
        return not (self.removal_pending or self.closed)

    def mark_for_removal(self) -> None:
        """Rule: a session that failed once never receives another send."""
        self.removal_pending = True

    def close(self) -> bool:
        """Move to the terminal state. Returns False if already closed."""
        if self.closed:
            return False
        self.closed = True
        self.removal_pending = True
        return True
