"""Repository for moderation data access."""

from datetime import datetime
from typing import Optional

from sqlalchemy import select, delete, and_
from sqlalchemy.ext.asyncio import AsyncSession

from kickbot.modules.moderation.models import (
    BannedWord,
    ModerationSettings,
    ModLog,
    Permit,
)


class ModerationSettingsRepository:
    """Repository for ModerationSettings operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def get_by_account(
        self,
        account_id: int,
    ) -> Optional[ModerationSettings]:
        """Get moderation settings for an account."""
        result = await self.session.execute(
            select(ModerationSettings).where(
                ModerationSettings.account_id == account_id
            )
        )
        return result.scalar_one_or_none()

    async def get_or_create(self, account_id: int) -> ModerationSettings:
        """Get or create moderation settings with defaults for an account."""
        settings = await self.get_by_account(account_id)
        if not settings:
            settings = ModerationSettings(account_id=account_id, link_whitelist=[])
            self.session.add(settings)
            await self.session.flush()
        return settings

    async def update(
        self,
        account_id: int,
        **kwargs,
    ) -> ModerationSettings:
        """Update moderation settings, creating the row if missing."""
        settings = await self.get_or_create(account_id)
        for key, value in kwargs.items():
            if hasattr(settings, key) and value is not None:
                setattr(settings, key, value)
        await self.session.flush()
        return settings


class BannedWordRepository:
    """Repository for BannedWord CRUD operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, banned_word: BannedWord) -> BannedWord:
        """Create a new banned word."""
        self.session.add(banned_word)
        await self.session.flush()
        return banned_word

    async def get_by_id(
        self,
        account_id: int,
        word_id: int,
    ) -> Optional[BannedWord]:
        """Get a banned word by ID within an account."""
        result = await self.session.execute(
            select(BannedWord).where(
                and_(
                    BannedWord.id == word_id,
                    BannedWord.account_id == account_id,
                )
            )
        )
        return result.scalar_one_or_none()

    async def get_by_account(self, account_id: int) -> list[BannedWord]:
        """Get all banned words for an account in insertion order."""
        result = await self.session.execute(
            select(BannedWord)
            .where(BannedWord.account_id == account_id)
            .order_by(BannedWord.id)
        )
        return list(result.scalars().all())

    async def update(
        self,
        account_id: int,
        word_id: int,
        **kwargs,
    ) -> Optional[BannedWord]:
        """Update a banned word."""
        banned_word = await self.get_by_id(account_id, word_id)
        if banned_word:
            for key, value in kwargs.items():
                if hasattr(banned_word, key) and value is not None:
                    setattr(banned_word, key, value)
            await self.session.flush()
        return banned_word

    async def delete(self, account_id: int, word_id: int) -> bool:
        """Delete a banned word."""
        banned_word = await self.get_by_id(account_id, word_id)
        if banned_word:
            await self.session.delete(banned_word)
            await self.session.flush()
            return True
        return False


class PermitRepository:
    """Repository for Permit operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, permit: Permit) -> Permit:
        """Create a new permit."""
        self.session.add(permit)
        await self.session.flush()
        return permit

    async def get_active_for_user(
        self,
        account_id: int,
        user_id: int,
        now: datetime,
    ) -> list[Permit]:
        """Get unexpired permits held by a user."""
        result = await self.session.execute(
            select(Permit).where(
                and_(
                    Permit.account_id == account_id,
                    Permit.user_id == user_id,
                    Permit.expires_at > now,
                )
            )
        )
        return list(result.scalars().all())

    async def delete_expired(self, now: datetime) -> int:
        """Delete all expired permits across accounts.

        Returns:
            int: Number of permits deleted
        """
        result = await self.session.execute(
            delete(Permit).where(Permit.expires_at <= now)
        )
        return result.rowcount or 0


class ModLogRepository:
    """Repository for ModLog operations."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, log: ModLog) -> ModLog:
        """Create a new moderation log entry."""
        self.session.add(log)
        await self.session.flush()
        return log

    async def get_by_account(
        self,
        account_id: int,
        limit: int = 100,
        offset: int = 0,
    ) -> list[ModLog]:
        """Get moderation logs for an account, newest first."""
        result = await self.session.execute(
            select(ModLog)
            .where(ModLog.account_id == account_id)
            .order_by(ModLog.created_at.desc(), ModLog.id.desc())
            .limit(limit)
            .offset(offset)
        )
        return list(result.scalars().all())
