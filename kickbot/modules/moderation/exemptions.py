"""Filter exemptions by role level and permit.

Also derives a chatter's role level from Kick chat badges.
"""

from datetime import datetime
from typing import Iterable, Optional

from kickbot.modules.moderation.models import FilterType, PermitType, UserLevel
from kickbot.modules.moderation.schemas import PermitSnapshot, UserContext


# Rank order, lowest first
LEVEL_ORDER: tuple[UserLevel, ...] = tuple(UserLevel)
_LEVEL_RANK: dict[UserLevel, int] = {level: rank for rank, level in enumerate(LEVEL_ORDER)}

_BADGE_LEVELS: dict[str, UserLevel] = {
    "moderator": UserLevel.MODERATOR,
    "mod": UserLevel.MODERATOR,
    "vip": UserLevel.VIP,
    "subscriber": UserLevel.SUBSCRIBER,
    "sub_gifter": UserLevel.SUBSCRIBER,
    "follower": UserLevel.FOLLOWER,
}


def meets_level(user_level: UserLevel, required_level: UserLevel) -> bool:
    """Check if a user's level is at or above the required level.

    Args:
        user_level: Level of the chatter
        required_level: Minimum level

    Returns:
        bool: True if user_level ranks at least as high as required_level
    """
    return _LEVEL_RANK[UserLevel(user_level)] >= _LEVEL_RANK[UserLevel(required_level)]


def has_active_permit(
    permits: Iterable[PermitSnapshot],
    user_id: int,
    filter_kind: FilterType,
    now: datetime,
) -> bool:
    """Check whether a user holds an unexpired permit covering a filter.

    A permit covers the filter when its type is ``all`` or equals the
    filter kind.

    Args:
        permits: Permits to search
        user_id: Chatter ID
        filter_kind: Filter being evaluated
        now: Reference time for expiry

    Returns:
        bool: True if a matching, unexpired permit exists
    """
    for permit in permits:
        if permit.user_id != user_id or permit.expires_at <= now:
            continue
        if permit.permit_type == PermitType.ALL or permit.permit_type.value == filter_kind.value:
            return True
    return False


def resolve_user_level(
    sender_id: int,
    broadcaster_user_id: Optional[int],
    badges: Iterable[str] = (),
    is_subscribed: bool = False,
) -> UserLevel:
    """Derive a chatter's level from their Kick badges.

    The broadcaster is recognised by user ID. Otherwise the first badge
    that maps to a level wins.
    """
    if broadcaster_user_id is not None and sender_id == broadcaster_user_id:
        return UserLevel.BROADCASTER

    for badge in badges:
        level = _BADGE_LEVELS.get(badge.lower())
        if level is not None:
            return level

    if is_subscribed:
        return UserLevel.SUBSCRIBER

    return UserLevel.EVERYONE


def build_user_context(
    sender_id: int,
    username: str,
    broadcaster_user_id: Optional[int],
    badges: Iterable[str] = (),
    is_subscribed: bool = False,
) -> UserContext:
    """Build the role context used by the filters for one chat message."""
    level = resolve_user_level(sender_id, broadcaster_user_id, badges, is_subscribed)
    is_broadcaster = level == UserLevel.BROADCASTER

    return UserContext(
        id=sender_id,
        username=username,
        level=level,
        is_broadcaster=is_broadcaster,
        is_moderator=level == UserLevel.MODERATOR or is_broadcaster,
        is_vip=level == UserLevel.VIP,
        is_subscriber=level == UserLevel.SUBSCRIBER or is_subscribed,
        is_follower=level == UserLevel.FOLLOWER,
    )
