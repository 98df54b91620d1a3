"""Moderation models for chat moderation management.

Implements ModerationSettings, BannedWord, Permit and ModLog models, plus
the enumerations shared by the filter pipeline.
"""

from datetime import datetime
from enum import Enum
from typing import Optional

from sqlalchemy import Boolean, DateTime, Index, Integer, String, Text, JSON
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func

from kickbot.core.database import Base


class UserLevel(str, Enum):
    """Chat role levels, lowest first.

    The declaration order is the rank order used for filter exemptions.
    """
    EVERYONE = "everyone"
    FOLLOWER = "follower"
    SUBSCRIBER = "subscriber"
    VIP = "vip"
    MODERATOR = "moderator"
    BROADCASTER = "broadcaster"


class ModerationAction(str, Enum):
    """Actions a filter can decide on."""
    NONE = "none"
    DELETE = "delete"
    TIMEOUT = "timeout"
    BAN = "ban"


class LogAction(str, Enum):
    """Actions recorded in the moderation log."""
    DELETE = "delete"
    TIMEOUT = "timeout"
    BAN = "ban"
    UNBAN = "unban"
    WARN = "warn"


class FilterType(str, Enum):
    """Moderation filter kinds."""
    LINK = "link"
    CAPS = "caps"
    SPAM = "spam"
    SYMBOL = "symbol"
    BANNED_WORD = "banned_word"
    MANUAL = "manual"


class PermitType(str, Enum):
    """Scope of a permit."""
    LINK = "link"
    ALL = "all"


class SeverityLevel(str, Enum):
    """Severity levels for banned words."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class ModerationSettings(Base):
    """Per-account moderation filter configuration.

    One row per account. Each filter kind has its own enabled flag, action,
    timeout duration, thresholds and minimum exempt level.
    """

    __tablename__ = "moderation_settings"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(
        Integer, nullable=False, unique=True, index=True
    )

    # Link filter
    link_filter_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    link_filter_action: Mapped[str] = mapped_column(
        String(20), default=ModerationAction.DELETE.value
    )
    link_timeout_duration: Mapped[int] = mapped_column(Integer, default=60)
    link_whitelist: Mapped[list[str]] = mapped_column(JSON, default=list)
    link_permit_level: Mapped[str] = mapped_column(
        String(20), default=UserLevel.SUBSCRIBER.value
    )

    # Caps filter
    caps_filter_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    caps_filter_action: Mapped[str] = mapped_column(
        String(20), default=ModerationAction.DELETE.value
    )
    caps_timeout_duration: Mapped[int] = mapped_column(Integer, default=60)
    caps_threshold: Mapped[int] = mapped_column(Integer, default=70)
    caps_min_length: Mapped[int] = mapped_column(Integer, default=10)
    caps_permit_level: Mapped[str] = mapped_column(
        String(20), default=UserLevel.SUBSCRIBER.value
    )

    # Spam filter
    spam_filter_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    spam_filter_action: Mapped[str] = mapped_column(
        String(20), default=ModerationAction.DELETE.value
    )
    spam_timeout_duration: Mapped[int] = mapped_column(Integer, default=60)
    spam_max_repeats: Mapped[int] = mapped_column(Integer, default=4)
    spam_max_emotes: Mapped[int] = mapped_column(Integer, default=10)
    spam_permit_level: Mapped[str] = mapped_column(
        String(20), default=UserLevel.SUBSCRIBER.value
    )

    # Symbol filter
    symbol_filter_enabled: Mapped[bool] = mapped_column(Boolean, default=False)
    symbol_filter_action: Mapped[str] = mapped_column(
        String(20), default=ModerationAction.DELETE.value
    )
    symbol_timeout_duration: Mapped[int] = mapped_column(Integer, default=60)
    symbol_threshold: Mapped[int] = mapped_column(Integer, default=50)
    symbol_min_length: Mapped[int] = mapped_column(Integer, default=5)
    symbol_permit_level: Mapped[str] = mapped_column(
        String(20), default=UserLevel.SUBSCRIBER.value
    )

    # Banned words
    banned_words_enabled: Mapped[bool] = mapped_column(Boolean, default=True)
    banned_words_action: Mapped[str] = mapped_column(
        String(20), default=ModerationAction.TIMEOUT.value
    )
    banned_words_timeout_duration: Mapped[int] = mapped_column(Integer, default=300)

    # Timestamps
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<ModerationSettings(id={self.id}, account_id={self.account_id})>"


class BannedWord(Base):
    """Banned word or phrase, literal or regular expression."""

    __tablename__ = "banned_words"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)

    word: Mapped[str] = mapped_column(Text, nullable=False)
    is_regex: Mapped[bool] = mapped_column(Boolean, default=False)
    severity: Mapped[str] = mapped_column(
        String(20), default=SeverityLevel.MEDIUM.value
    )
    action: Mapped[str] = mapped_column(
        String(20), default=ModerationAction.TIMEOUT.value
    )
    timeout_duration: Mapped[int] = mapped_column(Integer, default=300)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<BannedWord(id={self.id}, word={self.word!r}, regex={self.is_regex})>"


class Permit(Base):
    """Temporary filter exemption granted to a chatter by a moderator."""

    __tablename__ = "permits"
    __table_args__ = (
        Index("idx_permits_account_user", "account_id", "user_id", "expires_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False)
    user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    username: Mapped[str] = mapped_column(String(255), nullable=False)
    permit_type: Mapped[str] = mapped_column(
        String(20), default=PermitType.LINK.value
    )
    expires_at: Mapped[datetime] = mapped_column(DateTime, nullable=False)
    granted_by: Mapped[str] = mapped_column(String(255), nullable=False)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now()
    )

    def __repr__(self) -> str:
        return f"<Permit(id={self.id}, user_id={self.user_id}, type={self.permit_type})>"


class ModLog(Base):
    """Moderation history entry.

    Written for every automatic filter action and every manual action taken
    through the bot.
    """

    __tablename__ = "mod_logs"
    __table_args__ = (
        Index("idx_mod_logs_account_created", "account_id", "created_at"),
    )

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    account_id: Mapped[int] = mapped_column(Integer, nullable=False)

    # Affected user
    target_user_id: Mapped[int] = mapped_column(Integer, nullable=False)
    target_username: Mapped[str] = mapped_column(String(255), nullable=False)

    # Acting moderator (the bot itself for filter actions)
    moderator_user_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    moderator_username: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)

    action: Mapped[str] = mapped_column(String(20), nullable=False)
    reason: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    duration: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    message_content: Mapped[Optional[str]] = mapped_column(Text, nullable=True)
    message_id: Mapped[Optional[str]] = mapped_column(String(255), nullable=True)
    filter_type: Mapped[Optional[str]] = mapped_column(String(20), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime, nullable=False, default=datetime.utcnow
    )

    def __repr__(self) -> str:
        return f"<ModLog(id={self.id}, action={self.action}, user={self.target_username})>"
