"""Core module for configuration and utilities."""

from kickbot.core.config import settings
from kickbot.core.database import Base, async_session_maker, get_session

__all__ = [
    "settings",
    "Base",
    "async_session_maker",
    "get_session",
]
