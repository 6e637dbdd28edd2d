"""
SURYATRACK Configuration

Environment variables and application settings.
"""

from pydantic_settings import BaseSettings
from typing import List


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    APP_NAME: str = "SURYATRACK"
    DEBUG: bool = True
    LOG_LEVEL: str = "INFO"

    # CORS
    CORS_ORIGINS: List[str] = ["http://localhost:3000", "http://localhost:8080"]

    # WebSocket
    WS_MAX_CONNECTIONS: int = 100
    WS_HEARTBEAT_INTERVAL: int = 30

    # Sequence tracking
    CONFIRMATION_FRAMES: int = 10
    HISTORY_LIMIT: int = 10
    MAX_ACTIVE_SESSIONS: int = 100

    # Posture classification
    PROFILE_VIEW_MAX_SHOULDER_SPAN: float = 0.2
    MIN_LANDMARK_VISIBILITY: float = 0.0

    class Config:
        env_file = ".env"
        env_file_encoding = "utf-8"


settings = Settings()
