"""
FastAPI application entry point
"""
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from contextlib import asynccontextmanager

from api.routes import ws as ws_routes
from api.dependencies import get_chat_room
from api.middleware import RequestIDMiddleware, LoggingMiddleware
from core.config import settings
from core.exceptions import register_exception_handlers
from core.response import success_response
from core.logging_config import get_logger, configure_logging
from application.services.chat_room_service import ChatRoomService


# Configure logging explicitly at the entry point rather than on import
configure_logging()
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan"""
    app.state.chat_room = ChatRoomService(chat_settings=settings.chat)
    logger.info("chat_room_initialized", room=settings.chat.room_name, path=settings.chat.ws_path)

    yield

    logger.info("application_shutdown", message="Application shutdown", connections=len(app.state.chat_room))


app = FastAPI(
    title=settings.PROJECT_NAME,
    version=settings.VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
    description="Single-room real-time chat over WebSocket",
)

# Middleware runs bottom-up: request id first so logging can use it
app.add_middleware(LoggingMiddleware)
app.add_middleware(RequestIDMiddleware)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

register_exception_handlers(app)

app.include_router(ws_routes.router)


@app.get("/", tags=["Root"])
async def root():
    """Service info"""
    return success_response(
        data={
            "name": settings.PROJECT_NAME,
            "version": settings.VERSION,
            "websocket": settings.chat.ws_path,
            "docs": "/docs",
        },
        message="Welcome"
    )


@app.get("/health", tags=["Health"])
async def health_check(request: Request):
    """Health check, including the live connection count"""
    room = get_chat_room(request)
    return success_response(
        data={"status": "healthy", "room": room.name, "connections": len(room)},
        message="OK",
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.DEBUG,
        log_level="debug" if settings.DEBUG else "info"
    )
