"""
API dependencies - access to app-scoped services
"""
from starlette.requests import HTTPConnection

from application.services.chat_room_service import ChatRoomService


def get_chat_room(conn: HTTPConnection) -> ChatRoomService:
    """Return the room created by the lifespan (works for HTTP and WebSocket)."""
    room = getattr(conn.app.state, "chat_room", None)
    if room is None:
        raise RuntimeError("Chat room not initialized. Ensure lifespan sets app.state.chat_room.")
    return room
