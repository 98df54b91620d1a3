"""Celery tasks for moderation module.

Implements the periodic sweep of expired permits.
"""

import asyncio
import logging

from sqlalchemy.exc import SQLAlchemyError

from kickbot.core.celery_app import celery_app
from kickbot.core.database import async_session_maker
from kickbot.core.logging import log_info, log_warning

logger = logging.getLogger(__name__)


@celery_app.task(
    bind=True,
    max_retries=3,
    default_retry_delay=60,
    name="moderation.purge_expired_permits",
)
def purge_expired_permits_task(self):
    """Delete expired permits for all accounts.

    Scheduled by beat every PERMIT_SWEEP_INTERVAL_SECONDS. Database errors
    are retried up to max_retries times.
    """
    try:
        return asyncio.run(_purge_expired_permits())
    except SQLAlchemyError as exc:
        log_warning(
            logger,
            "Permit sweep failed, retrying",
            retries=self.request.retries,
            error=str(exc),
        )
        raise self.retry(exc=exc)


async def _purge_expired_permits() -> int:
    """Async implementation of the permit sweep."""
    from kickbot.modules.moderation.service import ModerationService

    async with async_session_maker() as session:
        try:
            service = ModerationService(session)
            deleted = await service.purge_expired_permits()
        except Exception:
            await session.rollback()
            raise

    if deleted:
        log_info(logger, "Expired permits purged", deleted=deleted)
    return deleted
