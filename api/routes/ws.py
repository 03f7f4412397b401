"""WebSocket route for the chat room.

The handshake is validated here, before the room is involved: a plain
HTTP request gets 426 and a blank username is refused with close code
1008. After admission every received event is handed to the room as a
synchronous call.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, WebSocket

from api.dependencies import get_chat_room
from core.config import settings
from core.logging_config import bind_connection_context, clear_connection_context, get_logger
from domain.chat.entity import normalize_username
from domain.common.exceptions import UpgradeRequiredException, UsernameRequiredException
from infrastructure.realtime.connection import WebSocketConnection


logger = get_logger(__name__)


router = APIRouter(tags=["WebSocket"])

# RFC 6455 policy violation
WS_POLICY_VIOLATION = 1008


@router.get(settings.chat.ws_path, include_in_schema=False)
async def websocket_upgrade_required() -> None:
    raise UpgradeRequiredException()


@router.websocket(settings.chat.ws_path)
async def chat_websocket(ws: WebSocket, username: Optional[str] = None) -> None:
    room = get_chat_room(ws)
    try:
        name = normalize_username(username)
    except UsernameRequiredException as exc:
        logger.info("ws_rejected", reason=exc.error_type)
        await ws.close(code=WS_POLICY_VIOLATION, reason=exc.message)
        return

    await ws.accept()
    conn = WebSocketConnection(ws)
    bind_connection_context(room=room.name, username=name)
    try:
        conn.start()
        room.connect(conn, name)
        while True:
            message = await ws.receive()
            if message["type"] == "websocket.disconnect":
                room.disconnect(conn)
                break
            text = message.get("text")
            room.receive(conn, text if text is not None else message.get("bytes"))
    except Exception as exc:
        logger.error("ws_error", error=str(exc), exc_info=True)
        room.fail(conn, exc)
    finally:
        await conn.aclose()
        # no-op unless the loop exited without a close or error signal
        room.disconnect(conn)
        clear_connection_context()
