"""Pydantic schemas for moderation module.

Holds both the API request/response schemas and the frozen snapshot types
handed to the filter pipeline. Snapshots are validated once when loaded,
so unknown levels, actions or permit types never reach evaluation.
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, field_validator, model_validator

from kickbot.modules.moderation.models import (
    FilterType,
    LogAction,
    ModerationAction,
    PermitType,
    SeverityLevel,
    UserLevel,
)


def _reject_none_action(value: Optional[ModerationAction]) -> Optional[ModerationAction]:
    if value == ModerationAction.NONE:
        raise ValueError("action must be one of delete, timeout, ban")
    return value


# ============================================
# Moderation Settings Schemas
# ============================================


class ModerationSettingsBase(BaseModel):
    """Base schema for per-account moderation settings."""

    # Link filter
    link_filter_enabled: bool = False
    link_filter_action: ModerationAction = ModerationAction.DELETE
    link_timeout_duration: int = Field(default=60, ge=1)
    link_whitelist: list[str] = Field(default_factory=list)
    link_permit_level: UserLevel = UserLevel.SUBSCRIBER

    # Caps filter
    caps_filter_enabled: bool = False
    caps_filter_action: ModerationAction = ModerationAction.DELETE
    caps_timeout_duration: int = Field(default=60, ge=1)
    caps_threshold: int = Field(default=70, ge=0, le=100)
    caps_min_length: int = Field(default=10, ge=0)
    caps_permit_level: UserLevel = UserLevel.SUBSCRIBER

    # Spam filter
    spam_filter_enabled: bool = False
    spam_filter_action: ModerationAction = ModerationAction.DELETE
    spam_timeout_duration: int = Field(default=60, ge=1)
    spam_max_repeats: int = Field(default=4, ge=1)
    spam_max_emotes: int = Field(default=10, ge=0)
    spam_permit_level: UserLevel = UserLevel.SUBSCRIBER

    # Symbol filter
    symbol_filter_enabled: bool = False
    symbol_filter_action: ModerationAction = ModerationAction.DELETE
    symbol_timeout_duration: int = Field(default=60, ge=1)
    symbol_threshold: int = Field(default=50, ge=0, le=100)
    symbol_min_length: int = Field(default=5, ge=0)
    symbol_permit_level: UserLevel = UserLevel.SUBSCRIBER

    # Banned words
    banned_words_enabled: bool = True
    banned_words_action: ModerationAction = ModerationAction.TIMEOUT
    banned_words_timeout_duration: int = Field(default=300, ge=1)

    @field_validator(
        "link_filter_action",
        "caps_filter_action",
        "spam_filter_action",
        "symbol_filter_action",
        "banned_words_action",
    )
    @classmethod
    def validate_filter_action(cls, value: ModerationAction) -> ModerationAction:
        return _reject_none_action(value)


class ModerationConfig(ModerationSettingsBase):
    """Read-only settings snapshot consumed by the rule evaluator."""

    account_id: int

    class Config:
        from_attributes = True
        frozen = True


class ModerationSettingsUpdate(BaseModel):
    """Schema for updating moderation settings. Only set fields change."""

    link_filter_enabled: Optional[bool] = None
    link_filter_action: Optional[ModerationAction] = None
    link_timeout_duration: Optional[int] = Field(default=None, ge=1)
    link_whitelist: Optional[list[str]] = None
    link_permit_level: Optional[UserLevel] = None

    caps_filter_enabled: Optional[bool] = None
    caps_filter_action: Optional[ModerationAction] = None
    caps_timeout_duration: Optional[int] = Field(default=None, ge=1)
    caps_threshold: Optional[int] = Field(default=None, ge=0, le=100)
    caps_min_length: Optional[int] = Field(default=None, ge=0)
    caps_permit_level: Optional[UserLevel] = None

    spam_filter_enabled: Optional[bool] = None
    spam_filter_action: Optional[ModerationAction] = None
    spam_timeout_duration: Optional[int] = Field(default=None, ge=1)
    spam_max_repeats: Optional[int] = Field(default=None, ge=1)
    spam_max_emotes: Optional[int] = Field(default=None, ge=0)
    spam_permit_level: Optional[UserLevel] = None

    symbol_filter_enabled: Optional[bool] = None
    symbol_filter_action: Optional[ModerationAction] = None
    symbol_timeout_duration: Optional[int] = Field(default=None, ge=1)
    symbol_threshold: Optional[int] = Field(default=None, ge=0, le=100)
    symbol_min_length: Optional[int] = Field(default=None, ge=0)
    symbol_permit_level: Optional[UserLevel] = None

    banned_words_enabled: Optional[bool] = None
    banned_words_action: Optional[ModerationAction] = None
    banned_words_timeout_duration: Optional[int] = Field(default=None, ge=1)

    @field_validator(
        "link_filter_action",
        "caps_filter_action",
        "spam_filter_action",
        "symbol_filter_action",
        "banned_words_action",
    )
    @classmethod
    def validate_filter_action(
        cls, value: Optional[ModerationAction]
    ) -> Optional[ModerationAction]:
        return _reject_none_action(value)


class ModerationSettingsResponse(ModerationSettingsBase):
    """Schema for moderation settings response."""

    id: int
    account_id: int
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================
# Banned Word Schemas
# ============================================


class BannedWordRule(BaseModel):
    """Read-only banned word snapshot consumed by the rule evaluator."""

    id: Optional[int] = None
    word: str = Field(..., min_length=1)
    is_regex: bool = False
    enabled: bool = True
    severity: SeverityLevel = SeverityLevel.MEDIUM
    action: ModerationAction = ModerationAction.TIMEOUT
    timeout_duration: int = Field(default=300, ge=1)

    class Config:
        from_attributes = True
        frozen = True


class BannedWordCreate(BaseModel):
    """Schema for adding a banned word."""

    word: str = Field(..., min_length=1, max_length=500)
    is_regex: bool = False
    severity: SeverityLevel = SeverityLevel.MEDIUM
    action: ModerationAction = ModerationAction.TIMEOUT
    timeout_duration: int = Field(default=300, ge=1)

    @field_validator("word")
    @classmethod
    def validate_word(cls, value: str) -> str:
        if not value.strip():
            raise ValueError("Word is required")
        return value

    @field_validator("action")
    @classmethod
    def validate_action(cls, value: ModerationAction) -> ModerationAction:
        return _reject_none_action(value)


class BannedWordUpdate(BaseModel):
    """Schema for updating a banned word."""

    word: Optional[str] = Field(default=None, min_length=1, max_length=500)
    is_regex: Optional[bool] = None
    severity: Optional[SeverityLevel] = None
    action: Optional[ModerationAction] = None
    timeout_duration: Optional[int] = Field(default=None, ge=1)
    enabled: Optional[bool] = None

    @field_validator("action")
    @classmethod
    def validate_action(
        cls, value: Optional[ModerationAction]
    ) -> Optional[ModerationAction]:
        return _reject_none_action(value)


class BannedWordResponse(BaseModel):
    """Schema for banned word response."""

    id: int
    account_id: int
    word: str
    is_regex: bool
    severity: SeverityLevel
    action: ModerationAction
    timeout_duration: int
    enabled: bool
    created_at: Optional[datetime] = None

    class Config:
        from_attributes = True


# ============================================
# Permit Schemas
# ============================================


class PermitSnapshot(BaseModel):
    """Read-only permit snapshot consumed by the exemption checks."""

    user_id: int
    permit_type: PermitType = PermitType.LINK
    expires_at: datetime

    class Config:
        from_attributes = True
        frozen = True


class PermitCreate(BaseModel):
    """Schema for granting a permit."""

    user_id: int
    username: str = Field(..., min_length=1, max_length=255)
    type: PermitType = PermitType.LINK
    duration: int = Field(default=60, ge=1, le=86400)
    granted_by: str = Field(..., min_length=1, max_length=255)


class PermitResponse(BaseModel):
    """Schema for permit response."""

    id: int
    account_id: int
    user_id: int
    username: str
    permit_type: PermitType
    expires_at: datetime
    granted_by: str

    class Config:
        from_attributes = True


# ============================================
# Evaluation Schemas
# ============================================


class UserContext(BaseModel):
    """Role context of the chatter who sent a message.

    The broadcaster and moderator flags always agree with ``level``: a
    moderator level sets ``is_moderator``, and a set flag raises the level
    to at least that role. A broadcaster is also a moderator.
    """

    id: int
    username: str
    level: UserLevel = UserLevel.EVERYONE
    is_broadcaster: bool = False
    is_moderator: bool = False
    is_vip: bool = False
    is_subscriber: bool = False
    is_follower: bool = False

    class Config:
        frozen = True

    @model_validator(mode="before")
    @classmethod
    def align_role_flags(cls, data):
        if not isinstance(data, dict):
            return data

        data = dict(data)
        level = UserLevel(data.get("level") or UserLevel.EVERYONE)
        ranks = list(UserLevel)

        if data.get("is_broadcaster"):
            level = UserLevel.BROADCASTER
        elif data.get("is_moderator") and ranks.index(level) < ranks.index(UserLevel.MODERATOR):
            level = UserLevel.MODERATOR

        data["level"] = level
        if level == UserLevel.BROADCASTER:
            data["is_broadcaster"] = True
            data["is_moderator"] = True
        elif level == UserLevel.MODERATOR:
            data["is_moderator"] = True
        return data


class ModerationDecision(BaseModel):
    """Outcome of running the filter pipeline over one message."""

    should_act: bool = False
    action: ModerationAction = ModerationAction.NONE
    reason: str = ""
    filter_type: Optional[FilterType] = None
    duration: Optional[int] = None

    class Config:
        frozen = True

    @classmethod
    def no_action(cls) -> "ModerationDecision":
        """Decision for a message no filter fired on."""
        return cls()


class MessageCheckRequest(BaseModel):
    """Schema for a dry-run evaluation of a chat message."""

    content: str
    user: UserContext


# ============================================
# Mod Log Schemas
# ============================================


class ModLogResponse(BaseModel):
    """Schema for moderation log entry response."""

    id: int
    account_id: int
    target_user_id: int
    target_username: str
    moderator_user_id: Optional[int]
    moderator_username: Optional[str]
    action: LogAction
    reason: Optional[str]
    duration: Optional[int]
    message_content: Optional[str]
    message_id: Optional[str]
    filter_type: Optional[FilterType]
    created_at: datetime

    class Config:
        from_attributes = True
