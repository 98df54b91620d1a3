"""Tests for individual filter edge cases and settings validation."""

import logging

import pytest
from pydantic import ValidationError

from kickbot.modules.moderation.evaluator import RuleEvaluator, evaluate
from kickbot.modules.moderation.models import FilterType, ModerationAction, UserLevel
from kickbot.modules.moderation.schemas import (
    BannedWordCreate,
    BannedWordRule,
    ModerationConfig,
    ModerationDecision,
    ModerationSettingsUpdate,
    UserContext,
)


def make_config(**overrides) -> ModerationConfig:
    values = {"account_id": 1, "banned_words_enabled": False}
    values.update(overrides)
    return ModerationConfig(**values)


@pytest.fixture
def chatter() -> UserContext:
    return UserContext(id=99, username="chatter")


class TestBannedWords:

    def test_invalid_regex_is_skipped(self, chatter, caplog) -> None:
        config = make_config(banned_words_enabled=True)
        rules = [
            BannedWordRule(id=1, word="([", is_regex=True),
            BannedWordRule(id=2, word="spam", action=ModerationAction.DELETE),
        ]

        with caplog.at_level(logging.WARNING):
            decision = RuleEvaluator().evaluate(config, rules, "buy spam here", chatter)

        assert decision.should_act is True
        assert decision.action == ModerationAction.DELETE
        assert "Invalid regex pattern in banned words" in caplog.text

    def test_regex_rule_matches(self, chatter) -> None:
        config = make_config(banned_words_enabled=True)
        rules = [BannedWordRule(word=r"fr[e3]{2}\s*coins", is_regex=True)]

        decision = evaluate(config, rules, "get FR33 coins now", chatter)

        assert decision.filter_type == FilterType.BANNED_WORD

    def test_first_matching_rule_wins(self, chatter) -> None:
        config = make_config(banned_words_enabled=True)
        rules = [
            BannedWordRule(word="alpha", action=ModerationAction.BAN),
            BannedWordRule(word="beta", action=ModerationAction.DELETE),
        ]

        decision = evaluate(config, rules, "beta then alpha", chatter)

        assert decision.action == ModerationAction.BAN

    def test_literal_special_characters_are_escaped(self, chatter) -> None:
        config = make_config(banned_words_enabled=True)
        rules = [BannedWordRule(word="a.b")]

        assert evaluate(config, rules, "say axb", chatter).should_act is False
        assert evaluate(config, rules, "say a.b ok", chatter).should_act is True


class TestLinks:

    def test_whitelisted_domain_passes(self, chatter) -> None:
        config = make_config(link_filter_enabled=True, link_whitelist=["Kick.com"])

        decision = evaluate(config, [], "follow https://kick.com/streamer", chatter)

        assert decision.should_act is False

    def test_one_unlisted_link_fires(self, chatter) -> None:
        config = make_config(link_filter_enabled=True, link_whitelist=["kick.com"])

        decision = evaluate(
            config, [], "https://kick.com/streamer and http://evil.net", chatter
        )

        assert decision.filter_type == FilterType.LINK

    def test_bare_domain_counts_as_link(self, chatter) -> None:
        config = make_config(link_filter_enabled=True)

        decision = evaluate(config, [], "go to spam.example.com", chatter)

        assert decision.should_act is True

    def test_plain_text_passes(self, chatter) -> None:
        config = make_config(link_filter_enabled=True)

        decision = evaluate(config, [], "hello there friends", chatter)

        assert decision.should_act is False


class TestCaps:

    def test_subscriber_exempt_by_default(self) -> None:
        config = make_config(caps_filter_enabled=True)
        subscriber = UserContext(id=1, username="sub", level=UserLevel.SUBSCRIBER)

        decision = evaluate(config, [], "THIS IS ALL CAPS TEXT", subscriber)

        assert decision.should_act is False

    def test_non_ascii_letters_are_ignored(self, chatter) -> None:
        config = make_config(caps_filter_enabled=True, caps_min_length=3)

        decision = evaluate(config, [], "ÄÖÜÄÖÜÄÖÜ 1234", chatter)

        assert decision.should_act is False


class TestSpam:

    def test_emote_spam_fires(self, chatter) -> None:
        config = make_config(spam_filter_enabled=True, spam_max_emotes=10)
        content = " ".join(f":emote{i}:" for i in range(11))

        decision = evaluate(config, [], content, chatter)

        assert decision.filter_type == FilterType.SPAM
        assert decision.reason == "Emote spam (11 emotes)"

    def test_unicode_emoji_count_as_emotes(self, chatter) -> None:
        config = make_config(spam_filter_enabled=True, spam_max_emotes=3)

        decision = evaluate(config, [], "nice \U0001F525 \U0001F389 ❤ ☀", chatter)

        assert decision.reason == "Emote spam (4 emotes)"

    def test_single_letter_words_are_not_counted(self, chatter) -> None:
        config = make_config(spam_filter_enabled=True, spam_max_repeats=4)

        decision = evaluate(config, [], "a a a a a a", chatter)

        assert decision.should_act is False

    def test_repeated_words_are_case_insensitive(self, chatter) -> None:
        config = make_config(spam_filter_enabled=True, spam_max_repeats=2)

        decision = evaluate(config, [], "Buy buy BUY", chatter)

        assert decision.reason == 'Repeated word spam ("buy" x3)'


class TestSymbols:

    def test_symbol_heavy_message_fires(self, chatter) -> None:
        config = make_config(symbol_filter_enabled=True)

        decision = evaluate(config, [], "!!!!!!", chatter)

        assert decision.filter_type == FilterType.SYMBOL
        assert decision.reason == "Excessive symbols (100%)"

    def test_emoji_only_message_passes(self, chatter) -> None:
        config = make_config(symbol_filter_enabled=True)

        decision = evaluate(config, [], "\U0001F600" * 6, chatter)

        assert decision.should_act is False

    def test_short_message_passes(self, chatter) -> None:
        config = make_config(symbol_filter_enabled=True, symbol_min_length=5)

        decision = evaluate(config, [], "?!", chatter)

        assert decision.should_act is False


class TestSettingsValidation:

    def test_defaults(self) -> None:
        config = ModerationConfig(account_id=1)

        assert config.banned_words_enabled is True
        assert config.banned_words_action == ModerationAction.TIMEOUT
        assert config.banned_words_timeout_duration == 300
        assert config.caps_threshold == 70
        assert config.spam_max_repeats == 4
        assert config.link_permit_level == UserLevel.SUBSCRIBER

    def test_unknown_permit_level_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ModerationConfig(account_id=1, link_permit_level="admin")

    def test_none_action_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ModerationConfig(account_id=1, caps_filter_action="none")

    def test_threshold_out_of_range_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ModerationSettingsUpdate(caps_threshold=101)

    def test_blank_banned_word_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            BannedWordCreate(word="   ")

    def test_snapshot_is_frozen(self) -> None:
        config = ModerationConfig(account_id=1)

        with pytest.raises(ValidationError):
            config.caps_threshold = 10

    def test_no_action_decision(self) -> None:
        decision = ModerationDecision.no_action()

        assert decision.should_act is False
        assert decision.action == ModerationAction.NONE
        assert decision.filter_type is None


class TestUserContext:

    def test_moderator_level_sets_flag(self) -> None:
        user = UserContext(id=7, username="mod", level=UserLevel.MODERATOR, is_moderator=False)

        assert user.is_moderator is True
        assert user.is_broadcaster is False

    def test_broadcaster_level_sets_both_flags(self) -> None:
        user = UserContext(id=7, username="owner", level="broadcaster")

        assert user.is_broadcaster is True
        assert user.is_moderator is True

    def test_moderator_flag_raises_level(self) -> None:
        user = UserContext(id=7, username="mod", level=UserLevel.FOLLOWER, is_moderator=True)

        assert user.level == UserLevel.MODERATOR

    def test_unknown_level_is_rejected(self) -> None:
        with pytest.raises(ValidationError):
            UserContext(id=7, username="x", level="admin")

    def test_moderator_level_is_exempt_from_banned_words(self) -> None:
        config = make_config(banned_words_enabled=True)
        rules = [BannedWordRule(word="scam", action=ModerationAction.BAN)]
        user = UserContext.model_validate(
            {"id": 7, "username": "mod", "level": "moderator", "is_moderator": False}
        )

        decision = evaluate(config, rules, "this is a scam", user)

        assert decision == ModerationDecision.no_action()
