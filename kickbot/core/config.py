"""Application configuration settings.

All configuration values are loaded from environment variables (.env file).
No sensitive values should be hardcoded here.
"""

from typing import Optional
from pydantic_settings import BaseSettings


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Application
    PROJECT_NAME: str = "KickBot Moderation API"
    VERSION: str = "0.1.0"
    API_V1_PREFIX: str = "/api/v1"
    DEBUG: bool = False

    # Database
    DATABASE_URL: str = "sqlite+aiosqlite:///./data/kickbot.db"
    DATABASE_ECHO: bool = False

    # Redis / Celery
    REDIS_URL: str = "redis://localhost:6379/0"
    CELERY_BROKER_URL: str = ""
    CELERY_RESULT_BACKEND: str = ""

    # CORS (dashboard origins)
    CORS_ORIGINS: list[str] = []

    # Kick public API
    KICK_API_BASE: str = "https://api.kick.com/public/v1"
    KICK_ACCESS_TOKEN: Optional[str] = None
    KICK_API_TIMEOUT_SECONDS: float = 10.0
    KICK_BOT_USERNAME: str = "KickBot"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True

    # Moderation Settings
    PERMIT_DEFAULT_DURATION_SECONDS: int = 60
    PERMIT_SWEEP_INTERVAL_SECONDS: int = 60
    MOD_LOG_PAGE_SIZE: int = 100

    class Config:
        env_file = ".env"
        case_sensitive = True
        extra = "ignore"


settings = Settings()
