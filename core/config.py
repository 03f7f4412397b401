"""
Configuration - project settings management
"""
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator
from typing import Optional


class ChatSettings(BaseModel):
    # One process serves one room; the name only shows up in logs and /health
    room_name: str = "global-chat"
    ws_path: str = "/api/ws"
    system_username: str = "System"
    join_template: str = "{username} joined the chat"
    leave_template: str = "{username} left the chat"
    invalid_message_text: str = "Invalid message format"


class Settings(BaseSettings):
    """Project settings"""

    # Basics
    PROJECT_NAME: str = Field(default="Chat Room Coordinator")
    VERSION: str = Field(default="1.0.0")
    DEBUG: bool = Field(default=True)
    ENVIRONMENT: str = Field(default="development")
    LOG_LEVEL: Optional[str] = Field(default=None, description="Overrides the DEBUG-derived root level")

    chat: ChatSettings = Field(default_factory=ChatSettings)

    # CORS
    CORS_ORIGINS: list = Field(default=["http://localhost:3000", "http://localhost:8000"])

    # Request body logging
    LOG_REQUEST_BODY_ENABLE_BY_DEFAULT: bool = Field(default=True)
    LOG_REQUEST_BODY_MAX_BYTES: int = Field(default=2048)

    # Realtime/WebSocket
    REALTIME_WS_SEND_QUEUE_MAX: int = Field(default=100)
    REALTIME_WS_SEND_OVERFLOW_POLICY: str = Field(
        default="drop_oldest",
        description="Queue overflow policy: drop_oldest | drop_new | disconnect",
    )

    # pydantic-settings v2 configuration
    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        extra="allow",
        env_nested_delimiter="__",
    )

    @field_validator("CORS_ORIGINS", mode="before")
    @classmethod
    def _parse_cors_origins(cls, v):
        """Accept either a JSON array string or a comma separated string."""
        if isinstance(v, list):
            return v
        if isinstance(v, str):
            s = v.strip()
            if s.startswith("[") and s.endswith("]"):
                import json
                try:
                    arr = json.loads(s)
                    if isinstance(arr, list):
                        return arr
                except ValueError:
                    pass
            if "," in s:
                return [item.strip() for item in s.split(",") if item.strip()]
            return [s]
        return v

    @field_validator("REALTIME_WS_SEND_OVERFLOW_POLICY", mode="after")
    @classmethod
    def _normalize_overflow_policy(cls, v: str) -> str:
        return (v or "drop_oldest").strip().lower()


settings = Settings()
