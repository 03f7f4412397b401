"""
Chat port and wire messages (contracts-first).

Defines the connection handle the room core talks to, the four outbound
message shapes, the two inbound client frames, and the parse step that
turns a raw frame into a tagged result. The application layer never sees
a transport exception for malformed input: it gets a ``ParseResult``.
"""
from __future__ import annotations

import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Literal, Optional, Protocol, Union

from pydantic import BaseModel, ConfigDict, Field, StrictStr, ValidationError


def utc_now_z() -> str:
    ts = datetime.now(timezone.utc)
    return ts.isoformat(timespec="milliseconds").replace("+00:00", "Z")


class ConnectionSendError(Exception):
    """Raised synchronously by a connection handle when a send cannot be queued."""


class ConnectionHandle(Protocol):
    """Bidirectional text channel supplied by the transport layer.

    ``send`` must not block on the remote peer. It raises when the transport
    already knows the frame cannot be delivered.
    """

    def send(self, text: str) -> None: ...


# -------------------- Outbound (server -> client) --------------------

class ChatMessage(BaseModel):
    type: Literal["message"] = "message"
    username: str
    text: str
    timestamp: str = Field(default_factory=utc_now_z)


class UserListMessage(BaseModel):
    type: Literal["userList"] = "userList"
    users: list[str]


class ErrorMessage(BaseModel):
    type: Literal["error"] = "error"
    message: str


class PongMessage(BaseModel):
    type: Literal["pong"] = "pong"
    timestamp: str
    id: Any = None
    serverTime: str

    @classmethod
    def reply_to(cls, ping_id: Any) -> "PongMessage":
        # Received time and reply time are the same instant
        now = utc_now_z()
        return cls(timestamp=now, id=ping_id, serverTime=now)


ServerMessage = Union[ChatMessage, UserListMessage, ErrorMessage, PongMessage]


def serialize(message: ServerMessage) -> str:
    return message.model_dump_json()


# -------------------- Inbound (client -> server) --------------------

class ClientChat(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Literal["message"]
    text: Optional[StrictStr] = None


class ClientPing(BaseModel):
    model_config = ConfigDict(extra="ignore")

    type: Literal["ping"]
    id: Any = None


_CLIENT_FRAMES = {
    "message": ClientChat,
    "ping": ClientPing,
}


@dataclass(frozen=True)
class ParseResult:
    """Outcome of parsing one inbound frame.

    ``ok`` False means the frame was malformed; ``frame`` None with ``ok``
    True means it was well formed but carries nothing to act on.
    """

    ok: bool
    frame: Optional[Union[ClientChat, ClientPing]] = None
    reason: Optional[str] = None

    @classmethod
    def malformed(cls, reason: str) -> "ParseResult":
        return cls(ok=False, reason=reason)

    @classmethod
    def ignored(cls, reason: str) -> "ParseResult":
        return cls(ok=True, reason=reason)


def parse_frame(raw: Union[str, bytes, None]) -> ParseResult:
    """Parse a raw inbound frame into a ``ParseResult``."""
    if not isinstance(raw, str):
        return ParseResult.malformed("non_text_frame")
    try:
        data = json.loads(raw)
    except (ValueError, RecursionError):
        return ParseResult.malformed("invalid_json")
    if not isinstance(data, dict):
        return ParseResult.malformed("not_an_object")

    mtype = data.get("type")
    model = _CLIENT_FRAMES.get(mtype) if isinstance(mtype, str) else None
    if model is None:
        return ParseResult.ignored("unknown_type")
    try:
        frame = model.model_validate(data)
    except ValidationError:
        return ParseResult.malformed("invalid_fields")

    if isinstance(frame, ClientChat) and not frame.text:
        return ParseResult.ignored("empty_text")
    if isinstance(frame, ClientPing) and "id" not in data:
        return ParseResult.ignored("missing_id")
    try:
        # echoed fields must survive re-serialization (lone surrogates,
        # nesting too deep); PydanticSerializationError is a ValueError
        frame.model_dump_json()
    except (ValueError, RecursionError):
        return ParseResult.malformed("unencodable_text")
    return ParseResult(ok=True, frame=frame)


__all__ = [
    "ConnectionHandle",
    "ConnectionSendError",
    "ChatMessage",
    "UserListMessage",
    "ErrorMessage",
    "PongMessage",
    "ServerMessage",
    "ClientChat",
    "ClientPing",
    "ParseResult",
    "parse_frame",
    "serialize",
    "utc_now_z",
]
