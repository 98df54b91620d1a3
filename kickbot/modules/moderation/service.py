"""Moderation service.

Loads per-account settings, banned words and permits, runs the rule
evaluator over chat messages and hands acting decisions to the action
executor and audit logger.
"""

import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Optional

from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from kickbot.core.config import settings as app_settings
from kickbot.core.logging import log_error, log_info, moderation_context
from kickbot.modules.moderation.actions import ActionError, ActionExecutor
from kickbot.modules.moderation.audit import AuditLogger, DatabaseAuditLogger
from kickbot.modules.moderation.evaluator import RuleEvaluator
from kickbot.modules.moderation.exemptions import has_active_permit
from kickbot.modules.moderation.models import (
    BannedWord,
    FilterType,
    LogAction,
    ModerationAction,
    ModerationSettings,
    ModLog,
    Permit,
    PermitType,
    SeverityLevel,
)
from kickbot.modules.moderation.repository import (
    BannedWordRepository,
    ModerationSettingsRepository,
    ModLogRepository,
    PermitRepository,
)
from kickbot.modules.moderation.schemas import (
    BannedWordRule,
    ModerationConfig,
    ModerationDecision,
    ModerationSettingsUpdate,
    PermitSnapshot,
    UserContext,
)

logger = logging.getLogger(__name__)


class ModerationServiceError(Exception):
    """Base exception for moderation service errors."""
    pass


def _column_values(fields: dict[str, Any]) -> dict[str, Any]:
    """Convert enum members to their stored string values."""
    return {
        key: value.value if isinstance(value, Enum) else value
        for key, value in fields.items()
    }


class ModerationService:
    """Service for chat moderation operations."""

    def __init__(
        self,
        session: AsyncSession,
        evaluator: Optional[RuleEvaluator] = None,
    ):
        self.session = session
        self.evaluator = evaluator or RuleEvaluator()
        self.settings_repo = ModerationSettingsRepository(session)
        self.banned_word_repo = BannedWordRepository(session)
        self.permit_repo = PermitRepository(session)
        self.mod_log_repo = ModLogRepository(session)

    # ============================================
    # Settings
    # ============================================

    async def get_settings(self, account_id: int) -> Optional[ModerationSettings]:
        """Get stored settings for an account, if any."""
        return await self.settings_repo.get_by_account(account_id)

    async def get_or_create_settings(self, account_id: int) -> ModerationSettings:
        """Get settings for an account, creating defaults on first access."""
        settings = await self.settings_repo.get_or_create(account_id)
        await self.session.commit()
        await self.session.refresh(settings)
        return settings

    async def update_settings(self, account_id: int, **fields: Any) -> ModerationSettings:
        """Update settings for an account.

        Only the given fields change; missing settings are created with
        defaults first.

        Raises:
            ModerationServiceError: If a field is unknown or its value invalid
        """
        unknown = set(fields) - set(ModerationSettingsUpdate.model_fields)
        if unknown:
            raise ModerationServiceError(
                f"Unknown settings: {', '.join(sorted(unknown))}"
            )
        try:
            validated = ModerationSettingsUpdate(**fields)
        except ValidationError as e:
            raise ModerationServiceError(f"Invalid settings: {e}") from e

        settings = await self.settings_repo.update(
            account_id, **_column_values(validated.model_dump(exclude_unset=True))
        )
        await self.session.commit()
        await self.session.refresh(settings)

        log_info(
            logger,
            "Moderation settings updated",
            account_id=account_id,
            fields=sorted(fields),
        )
        return settings

    async def load_settings_snapshot(self, account_id: int) -> Optional[ModerationConfig]:
        """Load a validated, read-only settings snapshot.

        Returns:
            ModerationConfig, or None when the account has no settings
        """
        row = await self.settings_repo.get_by_account(account_id)
        if row is None:
            return None
        return ModerationConfig.model_validate(row)

    # ============================================
    # Banned Words
    # ============================================

    async def get_banned_words(self, account_id: int) -> list[BannedWord]:
        """Get all banned words for an account."""
        return await self.banned_word_repo.get_by_account(account_id)

    async def add_banned_word(
        self,
        account_id: int,
        word: str,
        is_regex: bool = False,
        severity: SeverityLevel = SeverityLevel.MEDIUM,
        action: ModerationAction = ModerationAction.TIMEOUT,
        timeout_duration: int = 300,
    ) -> BannedWord:
        """Add a banned word or regex rule.

        Raises:
            ModerationServiceError: If the word is blank
        """
        if not word or not word.strip():
            raise ModerationServiceError("Word is required")

        banned_word = BannedWord(
            account_id=account_id,
            word=word,
            is_regex=is_regex,
            severity=SeverityLevel(severity).value,
            action=ModerationAction(action).value,
            timeout_duration=timeout_duration,
            enabled=True,
        )
        banned_word = await self.banned_word_repo.create(banned_word)
        await self.session.commit()
        await self.session.refresh(banned_word)
        return banned_word

    async def update_banned_word(
        self,
        account_id: int,
        word_id: int,
        **fields: Any,
    ) -> Optional[BannedWord]:
        """Update a banned word.

        Returns:
            The updated BannedWord, or None if it does not exist

        Raises:
            ModerationServiceError: If the new word is blank
        """
        word = fields.get("word")
        if word is not None and not word.strip():
            raise ModerationServiceError("Word is required")

        banned_word = await self.banned_word_repo.update(
            account_id, word_id, **_column_values(fields)
        )
        if banned_word:
            await self.session.commit()
            await self.session.refresh(banned_word)
        return banned_word

    async def delete_banned_word(self, account_id: int, word_id: int) -> bool:
        """Delete a banned word. Returns False if it does not exist."""
        deleted = await self.banned_word_repo.delete(account_id, word_id)
        if deleted:
            await self.session.commit()
        return deleted

    # ============================================
    # Permits
    # ============================================

    async def grant_permit(
        self,
        account_id: int,
        user_id: int,
        username: str,
        permit_type: PermitType = PermitType.LINK,
        granted_by: str = "",
        duration_seconds: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> Permit:
        """Grant a user a temporary filter exemption.

        Args:
            account_id: Channel account ID
            user_id: Chatter receiving the permit
            username: Chatter username
            permit_type: ``link`` or ``all``
            granted_by: Username of the granting moderator
            duration_seconds: Permit lifetime (defaults to 60 seconds)
            now: Grant time (defaults to utcnow)

        Returns:
            Permit: Created permit
        """
        duration = duration_seconds or app_settings.PERMIT_DEFAULT_DURATION_SECONDS
        granted_at = now or datetime.utcnow()

        permit = Permit(
            account_id=account_id,
            user_id=user_id,
            username=username,
            permit_type=PermitType(permit_type).value,
            expires_at=granted_at + timedelta(seconds=duration),
            granted_by=granted_by,
        )
        permit = await self.permit_repo.create(permit)
        await self.session.commit()

        log_info(
            logger,
            "Permit granted",
            account_id=account_id,
            user_id=user_id,
            permit_type=permit.permit_type,
            duration=duration,
        )
        return permit

    async def get_active_permits(
        self,
        account_id: int,
        user_id: int,
        now: Optional[datetime] = None,
    ) -> list[PermitSnapshot]:
        """Get unexpired permits held by a user as snapshots."""
        permits = await self.permit_repo.get_active_for_user(
            account_id, user_id, now or datetime.utcnow()
        )
        return [PermitSnapshot.model_validate(p) for p in permits]

    async def has_permit(
        self,
        account_id: int,
        user_id: int,
        kind: FilterType = FilterType.LINK,
        now: Optional[datetime] = None,
    ) -> bool:
        """Check whether a user holds an unexpired permit covering a filter."""
        now = now or datetime.utcnow()
        permits = await self.get_active_permits(account_id, user_id, now)
        return has_active_permit(permits, user_id, kind, now)

    async def purge_expired_permits(self, now: Optional[datetime] = None) -> int:
        """Delete expired permits across all accounts.

        Returns:
            int: Number of permits deleted
        """
        deleted = await self.permit_repo.delete_expired(now or datetime.utcnow())
        await self.session.commit()
        return deleted

    # ============================================
    # Message Evaluation
    # ============================================

    async def check_message(
        self,
        account_id: int,
        content: str,
        user: UserContext,
        now: Optional[datetime] = None,
    ) -> ModerationDecision:
        """Evaluate a chat message against the account's filters.

        Nothing is applied or recorded.
        """
        config = await self.load_settings_snapshot(account_id)
        if config is None:
            return ModerationDecision.no_action()

        now = now or datetime.utcnow()
        banned_words = [
            BannedWordRule.model_validate(w)
            for w in await self.banned_word_repo.get_by_account(account_id)
        ]
        permits = await self.get_active_permits(account_id, user.id, now)

        return self.evaluator.evaluate(config, banned_words, content, user, permits, now)

    def audit_logger(
        self,
        account_id: int,
        moderator_username: Optional[str] = None,
    ) -> DatabaseAuditLogger:
        """Build an audit logger bound to this service's session."""
        return DatabaseAuditLogger(self.session, account_id, moderator_username)

    async def moderate_message(
        self,
        account_id: int,
        message_id: str,
        content: str,
        user: UserContext,
        executor: ActionExecutor,
        audit_logger: Optional[AuditLogger] = None,
        now: Optional[datetime] = None,
    ) -> ModerationDecision:
        """Evaluate a chat message and act on the decision.

        Acting decisions are applied through the executor and, once applied,
        recorded with the audit logger. A failed action is logged and the
        decision is still returned. A failed check yields a no-action
        decision.
        """
        with moderation_context(account_id=account_id, message_id=message_id):
            return await self._moderate(
                account_id, message_id, content, user, executor, audit_logger, now
            )

    async def _moderate(
        self,
        account_id: int,
        message_id: str,
        content: str,
        user: UserContext,
        executor: ActionExecutor,
        audit_logger: Optional[AuditLogger],
        now: Optional[datetime],
    ) -> ModerationDecision:
        try:
            decision = await self.check_message(account_id, content, user, now)
        except (SQLAlchemyError, ValidationError) as e:
            log_error(
                logger,
                "Moderation check failed",
                exception=e,
                account_id=account_id,
                message_id=message_id,
            )
            return ModerationDecision.no_action()

        if not decision.should_act:
            return decision

        try:
            await executor.apply(decision, user.id, message_id)
        except ActionError as e:
            log_error(
                logger,
                "Moderation action failed",
                exception=e,
                account_id=account_id,
                action=decision.action.value,
                target_user_id=user.id,
                message_id=message_id,
            )
            return decision

        if audit_logger is not None:
            try:
                await audit_logger.record(
                    decision, user.id, user.username, content, message_id
                )
                await self.session.commit()
            except SQLAlchemyError as e:
                await self.session.rollback()
                log_error(
                    logger,
                    "Failed to record moderation action",
                    exception=e,
                    account_id=account_id,
                    message_id=message_id,
                )

        log_info(
            logger,
            "Message moderated",
            account_id=account_id,
            filter_type=decision.filter_type.value if decision.filter_type else None,
            action=decision.action.value,
            target_user_id=user.id,
        )
        return decision

    # ============================================
    # Moderation Logs
    # ============================================

    async def log_action(
        self,
        account_id: int,
        target_user_id: int,
        target_username: str,
        action: LogAction,
        reason: Optional[str] = None,
        duration: Optional[int] = None,
        message_content: Optional[str] = None,
        message_id: Optional[str] = None,
        filter_type: Optional[FilterType] = None,
        moderator_user_id: Optional[int] = None,
        moderator_username: Optional[str] = None,
    ) -> ModLog:
        """Record a moderation action in the account's history."""
        log = ModLog(
            account_id=account_id,
            target_user_id=target_user_id,
            target_username=target_username,
            moderator_user_id=moderator_user_id,
            moderator_username=moderator_username or app_settings.KICK_BOT_USERNAME,
            action=LogAction(action).value,
            reason=reason,
            duration=duration,
            message_content=message_content,
            message_id=message_id,
            filter_type=FilterType(filter_type).value if filter_type else None,
        )
        log = await self.mod_log_repo.create(log)
        await self.session.commit()
        return log

    async def get_mod_logs(
        self,
        account_id: int,
        limit: int = 100,
        offset: int = 0,
    ) -> list[ModLog]:
        """Get moderation history for an account, newest first."""
        return await self.mod_log_repo.get_by_account(account_id, limit, offset)
