"""Pytest bootstrap configuration.

Environment is pinned before application settings are imported, and a
recording connection handle is provided for the room core tests.
"""
import json
import os

import pytest

from application.ports.chat import ConnectionSendError

os.environ.setdefault("DEBUG", "false")
os.environ.setdefault("REALTIME_WS_SEND_OVERFLOW_POLICY", "drop_oldest")


class FakeConnection:
    """Connection handle that records frames instead of sending them."""

    def __init__(self, name: str = "conn", *, fail: bool = False) -> None:
        self.name = name
        self.fail = fail
        self.sent: list[str] = []

    def send(self, text: str) -> None:
        if self.fail:
            raise ConnectionSendError(f"{self.name} is gone")
        self.sent.append(text)

    def frames(self, type_: str | None = None) -> list[dict]:
        decoded = [json.loads(s) for s in self.sent]
        if type_ is None:
            return decoded
        return [f for f in decoded if f["type"] == type_]

    def clear(self) -> None:
        self.sent.clear()

    def __repr__(self) -> str:  # pragma: no cover
        return f"FakeConnection({self.name!r})"


@pytest.fixture
def make_conn():
    def _make(name: str = "conn", *, fail: bool = False) -> FakeConnection:
        return FakeConnection(name, fail=fail)
    return _make
