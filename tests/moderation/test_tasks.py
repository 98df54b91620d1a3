"""Tests for moderation background tasks."""

from datetime import datetime, timedelta
from unittest.mock import AsyncMock, patch

import pytest
from celery.exceptions import Retry
from sqlalchemy.exc import SQLAlchemyError

from kickbot.modules.moderation import tasks
from kickbot.modules.moderation.models import Permit


class TestPurgeExpiredPermits:

    def test_task_is_registered(self) -> None:
        assert tasks.purge_expired_permits_task.name == "moderation.purge_expired_permits"

    @pytest.mark.asyncio
    async def test_purge_removes_only_expired(self, session_maker) -> None:
        now = datetime.utcnow()
        async with session_maker() as session:
            session.add_all([
                Permit(
                    account_id=1,
                    user_id=1,
                    username="old",
                    permit_type="link",
                    expires_at=now - timedelta(minutes=5),
                    granted_by="mod",
                ),
                Permit(
                    account_id=1,
                    user_id=2,
                    username="fresh",
                    permit_type="all",
                    expires_at=now + timedelta(minutes=5),
                    granted_by="mod",
                ),
            ])
            await session.commit()

        with patch.object(tasks, "async_session_maker", session_maker):
            deleted = await tasks._purge_expired_permits()

        assert deleted == 1

    def test_database_error_is_retried(self) -> None:
        task = tasks.purge_expired_permits_task
        failure = SQLAlchemyError("database is locked")

        with patch.object(
            tasks, "_purge_expired_permits", AsyncMock(side_effect=failure)
        ), patch.object(task, "retry", return_value=Retry("again")) as retry:
            with pytest.raises(Retry):
                task()

        retry.assert_called_once_with(exc=failure)
