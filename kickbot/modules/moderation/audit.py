"""Moderation history recording."""

from typing import Optional, Protocol

from sqlalchemy.ext.asyncio import AsyncSession

from kickbot.core.config import settings
from kickbot.modules.moderation.models import LogAction, ModLog, ModerationAction
from kickbot.modules.moderation.repository import ModLogRepository
from kickbot.modules.moderation.schemas import ModerationDecision


class AuditLogger(Protocol):
    """Persists applied moderation decisions."""

    async def record(
        self,
        decision: ModerationDecision,
        target_user_id: int,
        target_username: str,
        message_content: Optional[str],
        message_id: Optional[str],
    ) -> None:
        ...


class DatabaseAuditLogger:
    """AuditLogger writing ModLog rows for one account.

    Entries are attributed to the bot account. Rows are only flushed, so the
    logger must share the session of the ModerationService that commits
    them; use ModerationService.audit_logger() to build one.
    """

    def __init__(
        self,
        session: AsyncSession,
        account_id: int,
        moderator_username: Optional[str] = None,
    ):
        self.account_id = account_id
        self.moderator_username = moderator_username or settings.KICK_BOT_USERNAME
        self.repository = ModLogRepository(session)

    async def record(
        self,
        decision: ModerationDecision,
        target_user_id: int,
        target_username: str,
        message_content: Optional[str],
        message_id: Optional[str],
    ) -> None:
        if decision.action == ModerationAction.NONE:
            return

        await self.repository.create(
            ModLog(
                account_id=self.account_id,
                target_user_id=target_user_id,
                target_username=target_username,
                moderator_username=self.moderator_username,
                action=LogAction(decision.action.value).value,
                reason=decision.reason,
                duration=decision.duration
                if decision.action == ModerationAction.TIMEOUT
                else None,
                message_content=message_content,
                message_id=message_id,
                filter_type=decision.filter_type.value if decision.filter_type else None,
            )
        )
