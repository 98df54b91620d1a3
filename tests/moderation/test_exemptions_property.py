"""Property-based tests for role levels and permit exemptions."""

from datetime import datetime, timedelta

import pytest
from hypothesis import given, settings, strategies as st

from kickbot.modules.moderation.exemptions import (
    LEVEL_ORDER,
    build_user_context,
    has_active_permit,
    meets_level,
    resolve_user_level,
)
from kickbot.modules.moderation.models import FilterType, PermitType, UserLevel
from kickbot.modules.moderation.schemas import PermitSnapshot


level_strategy = st.sampled_from(list(UserLevel))

filter_kind_strategy = st.sampled_from([
    FilterType.LINK,
    FilterType.CAPS,
    FilterType.SPAM,
    FilterType.SYMBOL,
])

NOW = datetime(2026, 1, 1, 12, 0, 0)


class TestLevelOrdering:
    """Role levels form a total order."""

    @given(level=level_strategy)
    @settings(max_examples=20)
    def test_every_level_meets_itself(self, level: UserLevel) -> None:
        assert meets_level(level, level) is True

    @given(a=level_strategy, b=level_strategy)
    @settings(max_examples=100)
    def test_any_two_levels_are_comparable(self, a: UserLevel, b: UserLevel) -> None:
        assert meets_level(a, b) or meets_level(b, a)
        if a != b:
            assert meets_level(a, b) != meets_level(b, a)

    @given(level=level_strategy)
    @settings(max_examples=20)
    def test_everyone_is_the_lowest_level(self, level: UserLevel) -> None:
        assert meets_level(level, UserLevel.EVERYONE) is True
        assert meets_level(UserLevel.BROADCASTER, level) is True

    def test_rank_order(self) -> None:
        assert LEVEL_ORDER == (
            UserLevel.EVERYONE,
            UserLevel.FOLLOWER,
            UserLevel.SUBSCRIBER,
            UserLevel.VIP,
            UserLevel.MODERATOR,
            UserLevel.BROADCASTER,
        )

    def test_accepts_raw_level_strings(self) -> None:
        assert meets_level("vip", "subscriber") is True
        assert meets_level("follower", "subscriber") is False


class TestPermitCoverage:
    """A permit covers a filter by type until it expires."""

    @given(kind=filter_kind_strategy, seconds=st.integers(min_value=1, max_value=3600))
    @settings(max_examples=100)
    def test_all_permit_covers_every_filter(self, kind: FilterType, seconds: int) -> None:
        permits = [
            PermitSnapshot(
                user_id=5,
                permit_type=PermitType.ALL,
                expires_at=NOW + timedelta(seconds=seconds),
            )
        ]

        assert has_active_permit(permits, 5, kind, NOW) is True

    @given(kind=st.sampled_from([FilterType.CAPS, FilterType.SPAM, FilterType.SYMBOL]))
    @settings(max_examples=20)
    def test_link_permit_only_covers_links(self, kind: FilterType) -> None:
        permits = [
            PermitSnapshot(
                user_id=5,
                permit_type=PermitType.LINK,
                expires_at=NOW + timedelta(seconds=60),
            )
        ]

        assert has_active_permit(permits, 5, FilterType.LINK, NOW) is True
        assert has_active_permit(permits, 5, kind, NOW) is False

    @given(seconds_ago=st.integers(min_value=0, max_value=3600))
    @settings(max_examples=50)
    def test_expired_permit_covers_nothing(self, seconds_ago: int) -> None:
        permits = [
            PermitSnapshot(
                user_id=5,
                permit_type=PermitType.ALL,
                expires_at=NOW - timedelta(seconds=seconds_ago),
            )
        ]

        assert has_active_permit(permits, 5, FilterType.LINK, NOW) is False

    def test_unknown_permit_type_is_rejected(self) -> None:
        with pytest.raises(ValueError):
            PermitSnapshot(user_id=5, permit_type="caps", expires_at=NOW)


class TestBadgeResolution:
    """Chat badges map to role levels."""

    @given(badges=st.lists(st.sampled_from(["moderator", "vip", "subscriber", "og"])))
    @settings(max_examples=50)
    def test_broadcaster_wins_over_badges(self, badges: list[str]) -> None:
        assert resolve_user_level(10, 10, badges) == UserLevel.BROADCASTER

    @pytest.mark.parametrize(
        "badges,expected",
        [
            (["moderator"], UserLevel.MODERATOR),
            (["Mod"], UserLevel.MODERATOR),
            (["VIP"], UserLevel.VIP),
            (["sub_gifter"], UserLevel.SUBSCRIBER),
            (["follower"], UserLevel.FOLLOWER),
            (["og", "vip"], UserLevel.VIP),
            ([], UserLevel.EVERYONE),
        ],
    )
    def test_badge_levels(self, badges: list[str], expected: UserLevel) -> None:
        assert resolve_user_level(11, 10, badges) == expected

    def test_subscription_flag_without_badge(self) -> None:
        assert resolve_user_level(11, 10, [], is_subscribed=True) == UserLevel.SUBSCRIBER

    def test_unknown_broadcaster(self) -> None:
        assert resolve_user_level(11, None, ["vip"]) == UserLevel.VIP

    def test_build_context_for_broadcaster(self) -> None:
        user = build_user_context(10, "streamer", 10)

        assert user.level == UserLevel.BROADCASTER
        assert user.is_broadcaster is True
        assert user.is_moderator is True

    def test_build_context_for_moderator(self) -> None:
        user = build_user_context(11, "helper", 10, ["moderator"])

        assert user.level == UserLevel.MODERATOR
        assert user.is_broadcaster is False
        assert user.is_moderator is True
        assert user.username == "helper"
