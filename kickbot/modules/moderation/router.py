"""API router for moderation management.

Dashboard endpoints for filter settings, banned words, permits and the
moderation log.
"""

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from kickbot.core.config import settings as app_settings
from kickbot.core.database import get_session
from kickbot.modules.moderation.schemas import (
    BannedWordCreate,
    BannedWordResponse,
    BannedWordUpdate,
    MessageCheckRequest,
    ModerationDecision,
    ModerationSettingsResponse,
    ModerationSettingsUpdate,
    ModLogResponse,
    PermitCreate,
    PermitResponse,
)
from kickbot.modules.moderation.service import (
    ModerationService,
    ModerationServiceError,
)

router = APIRouter(prefix="/moderation", tags=["moderation"])


# ============================================
# Settings Endpoints
# ============================================


@router.get("/{account_id}/settings", response_model=ModerationSettingsResponse)
async def get_settings(
    account_id: int,
    session: AsyncSession = Depends(get_session),
):
    """Get moderation settings, creating defaults on first access."""
    service = ModerationService(session)
    settings = await service.get_or_create_settings(account_id)
    return ModerationSettingsResponse.model_validate(settings)


@router.patch("/{account_id}/settings", response_model=ModerationSettingsResponse)
async def update_settings(
    account_id: int,
    update: ModerationSettingsUpdate,
    session: AsyncSession = Depends(get_session),
):
    """Update moderation settings. Only the provided fields change."""
    service = ModerationService(session)
    try:
        settings = await service.update_settings(
            account_id, **update.model_dump(exclude_unset=True)
        )
    except ModerationServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    return ModerationSettingsResponse.model_validate(settings)


# ============================================
# Banned Word Endpoints
# ============================================


@router.get("/{account_id}/banned-words", response_model=list[BannedWordResponse])
async def list_banned_words(
    account_id: int,
    session: AsyncSession = Depends(get_session),
):
    """List banned words in evaluation order."""
    service = ModerationService(session)
    words = await service.get_banned_words(account_id)
    return [BannedWordResponse.model_validate(w) for w in words]


@router.post(
    "/{account_id}/banned-words",
    response_model=BannedWordResponse,
    status_code=status.HTTP_201_CREATED,
)
async def add_banned_word(
    account_id: int,
    data: BannedWordCreate,
    session: AsyncSession = Depends(get_session),
):
    """Add a banned word or regex rule."""
    service = ModerationService(session)
    try:
        word = await service.add_banned_word(account_id, **data.model_dump())
    except ModerationServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    return BannedWordResponse.model_validate(word)


@router.patch(
    "/{account_id}/banned-words/{word_id}",
    response_model=BannedWordResponse,
)
async def update_banned_word(
    account_id: int,
    word_id: int,
    update: BannedWordUpdate,
    session: AsyncSession = Depends(get_session),
):
    """Update a banned word."""
    service = ModerationService(session)
    try:
        word = await service.update_banned_word(
            account_id, word_id, **update.model_dump(exclude_unset=True)
        )
    except ModerationServiceError as e:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail=str(e),
        )
    if not word:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Banned word not found",
        )
    return BannedWordResponse.model_validate(word)


@router.delete(
    "/{account_id}/banned-words/{word_id}",
    status_code=status.HTTP_204_NO_CONTENT,
)
async def delete_banned_word(
    account_id: int,
    word_id: int,
    session: AsyncSession = Depends(get_session),
):
    """Delete a banned word."""
    service = ModerationService(session)
    deleted = await service.delete_banned_word(account_id, word_id)
    if not deleted:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Banned word not found",
        )


# ============================================
# Permit Endpoints
# ============================================


@router.post(
    "/{account_id}/permits",
    response_model=PermitResponse,
    status_code=status.HTTP_201_CREATED,
)
async def grant_permit(
    account_id: int,
    data: PermitCreate,
    session: AsyncSession = Depends(get_session),
):
    """Grant a chatter a temporary filter exemption."""
    service = ModerationService(session)
    permit = await service.grant_permit(
        account_id=account_id,
        user_id=data.user_id,
        username=data.username,
        permit_type=data.type,
        granted_by=data.granted_by,
        duration_seconds=data.duration,
    )
    return PermitResponse.model_validate(permit)


# ============================================
# Evaluation & Log Endpoints
# ============================================


@router.post("/{account_id}/check", response_model=ModerationDecision)
async def check_message(
    account_id: int,
    data: MessageCheckRequest,
    session: AsyncSession = Depends(get_session),
):
    """Dry-run a chat message through the filters. Nothing is applied."""
    service = ModerationService(session)
    return await service.check_message(account_id, data.content, data.user)


@router.get("/{account_id}/logs", response_model=list[ModLogResponse])
async def get_mod_logs(
    account_id: int,
    limit: int = Query(app_settings.MOD_LOG_PAGE_SIZE, ge=1, le=500),
    offset: int = Query(0, ge=0),
    session: AsyncSession = Depends(get_session),
):
    """Get moderation history, newest first."""
    service = ModerationService(session)
    logs = await service.get_mod_logs(account_id, limit=limit, offset=offset)
    return [ModLogResponse.model_validate(log) for log in logs]
