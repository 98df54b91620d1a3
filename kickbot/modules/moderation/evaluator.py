"""Rule evaluation for chat moderation.

Runs the enabled filters over a chat message in a fixed priority order
(banned words, links, caps, spam, symbols) and returns the decision of the
first filter that fires. Evaluation performs no I/O: settings, banned words
and the sender's permits are passed in already loaded.
"""

import logging
import math
import re
from datetime import datetime
from functools import lru_cache
from typing import Optional, Sequence

from kickbot.core.logging import log_warning
from kickbot.modules.moderation.exemptions import has_active_permit, meets_level
from kickbot.modules.moderation.models import FilterType
from kickbot.modules.moderation.schemas import (
    BannedWordRule,
    ModerationConfig,
    ModerationDecision,
    PermitSnapshot,
    UserContext,
)

logger = logging.getLogger(__name__)


URL_PATTERN = re.compile(
    r"(?:https?://)?(?:www\.)?[-a-zA-Z0-9@:%._+~#=]{1,256}\.[a-zA-Z0-9()]{1,6}\b"
    r"(?:[-a-zA-Z0-9()@:%_+.~#?&/=]*)",
    re.IGNORECASE,
)

_EMOJI_RANGES = "[\U0001F300-\U0001F9FF]|[\u2600-\u26FF]|[\u2700-\u27BF]"

# Unicode emoji plus Kick ":emote:" tokens
EMOTE_PATTERN = re.compile(_EMOJI_RANGES + r"|:\w+:")
EMOJI_PATTERN = re.compile(_EMOJI_RANGES)

NON_LETTER_PATTERN = re.compile(r"[^a-zA-Z]")
SYMBOL_PATTERN = re.compile(r"[^a-zA-Z0-9\s]")

# Shorter words are ignored by the repeated-word check
SPAM_MIN_WORD_LENGTH = 2


@lru_cache(maxsize=512)
def compile_banned_word(word: str, is_regex: bool) -> re.Pattern:
    """Compile a banned word into a case-insensitive pattern.

    Literal words are escaped and wrapped in word boundaries; regex rules
    are compiled as written.

    Raises:
        re.error: If a regex rule's pattern is invalid
    """
    if is_regex:
        return re.compile(word, re.IGNORECASE)
    return re.compile(rf"\b{re.escape(word)}\b", re.IGNORECASE)


@lru_cache(maxsize=64)
def _repeated_char_pattern(max_repeats: int) -> re.Pattern:
    return re.compile(rf"(.)\1{{{max_repeats},}}", re.IGNORECASE)


def _percent(part: int, whole: int) -> float:
    return (part / whole) * 100


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


class RuleEvaluator:
    """Evaluates chat messages against a tenant's moderation settings.

    The evaluator holds no state between calls; the same inputs always
    produce the same decision.
    """

    def evaluate(
        self,
        settings: Optional[ModerationConfig],
        banned_words: Sequence[BannedWordRule],
        content: str,
        user: UserContext,
        permits: Sequence[PermitSnapshot] = (),
        now: Optional[datetime] = None,
    ) -> ModerationDecision:
        """Run all enabled filters against a message.

        Args:
            settings: Settings snapshot, or None when the account has none
            banned_words: Banned word rules in evaluation order
            content: Message text
            user: Sender role context
            permits: Permits held by the sender
            now: Reference time for permit expiry (defaults to utcnow)

        Returns:
            ModerationDecision of the first filter that fired, or a
            no-action decision
        """
        if settings is None:
            return ModerationDecision.no_action()

        if user.is_broadcaster or user.is_moderator:
            return ModerationDecision.no_action()

        if settings.banned_words_enabled:
            decision = self._check_banned_words(banned_words, content)
            if decision is not None:
                return decision

        if settings.link_filter_enabled:
            decision = self._check_links(
                settings, content, user, permits, now or datetime.utcnow()
            )
            if decision is not None:
                return decision

        if settings.caps_filter_enabled:
            decision = self._check_caps(settings, content, user)
            if decision is not None:
                return decision

        if settings.spam_filter_enabled:
            decision = self._check_spam(settings, content, user)
            if decision is not None:
                return decision

        if settings.symbol_filter_enabled:
            decision = self._check_symbols(settings, content, user)
            if decision is not None:
                return decision

        return ModerationDecision.no_action()

    def _check_banned_words(
        self,
        banned_words: Sequence[BannedWordRule],
        content: str,
    ) -> Optional[ModerationDecision]:
        """Check for banned words; first matching rule wins."""
        for rule in banned_words:
            if not rule.enabled:
                continue

            try:
                pattern = compile_banned_word(rule.word, rule.is_regex)
            except re.error as e:
                log_warning(
                    logger,
                    "Invalid regex pattern in banned words",
                    word=rule.word,
                    rule_id=rule.id,
                    error=str(e),
                )
                continue

            if pattern.search(content):
                return ModerationDecision(
                    should_act=True,
                    action=rule.action,
                    reason="Banned word/phrase detected",
                    filter_type=FilterType.BANNED_WORD,
                    duration=rule.timeout_duration,
                )

        return None

    def _check_links(
        self,
        settings: ModerationConfig,
        content: str,
        user: UserContext,
        permits: Sequence[PermitSnapshot],
        now: datetime,
    ) -> Optional[ModerationDecision]:
        """Check for links outside the whitelist.

        Exempt by level or by an active link/all permit.
        """
        if meets_level(user.level, settings.link_permit_level):
            return None

        if has_active_permit(permits, user.id, FilterType.LINK, now):
            return None

        urls = URL_PATTERN.findall(content)
        if not urls:
            return None

        whitelist = [domain.lower() for domain in settings.link_whitelist]
        for url in urls:
            normalized = url.lower()
            if not any(domain in normalized for domain in whitelist):
                return ModerationDecision(
                    should_act=True,
                    action=settings.link_filter_action,
                    reason="Unauthorized link posted",
                    filter_type=FilterType.LINK,
                    duration=settings.link_timeout_duration,
                )

        return None

    def _check_caps(
        self,
        settings: ModerationConfig,
        content: str,
        user: UserContext,
    ) -> Optional[ModerationDecision]:
        """Check for excessive caps."""
        if meets_level(user.level, settings.caps_permit_level):
            return None

        letters = NON_LETTER_PATTERN.sub("", content)
        if not letters or len(letters) < settings.caps_min_length:
            return None

        caps_count = sum(1 for c in letters if c.isupper())
        caps_percent = _percent(caps_count, len(letters))

        if caps_count * 100 >= settings.caps_threshold * len(letters):
            return ModerationDecision(
                should_act=True,
                action=settings.caps_filter_action,
                reason=f"Excessive caps ({_round_half_up(caps_percent)}%)",
                filter_type=FilterType.CAPS,
                duration=settings.caps_timeout_duration,
            )

        return None

    def _check_spam(
        self,
        settings: ModerationConfig,
        content: str,
        user: UserContext,
    ) -> Optional[ModerationDecision]:
        """Check for spam patterns.

        Detects:
        - Repeated characters (e.g., "aaaaaaa")
        - Repeated words (e.g., "buy buy buy buy buy")
        - Excessive emojis and emotes
        """
        if meets_level(user.level, settings.spam_permit_level):
            return None

        max_repeats = settings.spam_max_repeats

        if _repeated_char_pattern(max_repeats).search(content):
            return self._spam_decision(settings, "Repeated characters spam")

        word_counts: dict[str, int] = {}
        for word in content.lower().split():
            if len(word) >= SPAM_MIN_WORD_LENGTH:
                word_counts[word] = word_counts.get(word, 0) + 1

        for word, count in word_counts.items():
            if count > max_repeats:
                return self._spam_decision(
                    settings, f'Repeated word spam ("{word}" x{count})'
                )

        emotes = EMOTE_PATTERN.findall(content)
        if len(emotes) > settings.spam_max_emotes:
            return self._spam_decision(
                settings, f"Emote spam ({len(emotes)} emotes)"
            )

        return None

    def _spam_decision(
        self,
        settings: ModerationConfig,
        reason: str,
    ) -> ModerationDecision:
        return ModerationDecision(
            should_act=True,
            action=settings.spam_filter_action,
            reason=reason,
            filter_type=FilterType.SPAM,
            duration=settings.spam_timeout_duration,
        )

    def _check_symbols(
        self,
        settings: ModerationConfig,
        content: str,
        user: UserContext,
    ) -> Optional[ModerationDecision]:
        """Check for excessive symbols, ignoring emoji."""
        if meets_level(user.level, settings.symbol_permit_level):
            return None

        if len(content) < settings.symbol_min_length:
            return None

        text_only = EMOJI_PATTERN.sub("", content)
        if not text_only:
            return None

        symbol_count = len(SYMBOL_PATTERN.findall(text_only))
        symbol_percent = _percent(symbol_count, len(text_only))

        if symbol_count * 100 >= settings.symbol_threshold * len(text_only):
            return ModerationDecision(
                should_act=True,
                action=settings.symbol_filter_action,
                reason=f"Excessive symbols ({_round_half_up(symbol_percent)}%)",
                filter_type=FilterType.SYMBOL,
                duration=settings.symbol_timeout_duration,
            )

        return None


_default_evaluator = RuleEvaluator()


def evaluate(
    settings: Optional[ModerationConfig],
    banned_words: Sequence[BannedWordRule],
    content: str,
    user: UserContext,
    permits: Sequence[PermitSnapshot] = (),
    now: Optional[datetime] = None,
) -> ModerationDecision:
    """Evaluate a message with a shared stateless RuleEvaluator."""
    return _default_evaluator.evaluate(settings, banned_words, content, user, permits, now)
