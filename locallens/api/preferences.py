import logging

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from locallens.api.deps import READ_LIMIT, get_registry, limiter
from locallens.api.schemas import PreferencesUpdate
from locallens.core.planner.models import UserPreferences
from locallens.core.session import SessionRegistry
from locallens.db import crud
from locallens.db.session import get_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users/{user_id}/preferences", tags=["preferences"])


@router.get("", response_model=UserPreferences)
@limiter.limit(READ_LIMIT)
async def read_preferences(
    request: Request,
    user_id: str,
    session: AsyncSession = Depends(get_session),
):
    """Stored preferences; a user with none gets an empty default"""
    # read straight from the store so lookups never create a planning session
    try:
        return await crud.get_user_preferences(session, user_id)
    except SQLAlchemyError:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Preferences could not be loaded"
        )


@router.put("", response_model=UserPreferences,
    responses={
        503: {"description": "Preference store unavailable"}
    },
    summary="Replace user preferences",
    description="Overwrites every preference field; omitted fields are reset to their defaults"
)
@limiter.limit(READ_LIMIT)
async def replace_preferences(
    request: Request,
    user_id: str,
    payload: PreferencesUpdate,
    registry: SessionRegistry = Depends(get_registry),
):
    session = await registry.get(user_id)
    prefs = UserPreferences(user_id=user_id, **payload.model_dump())
    resource = await session.save_preferences(prefs)
    if not resource.is_succeeded:
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Preferences could not be saved"
        )
    logger.info(f"Preferences replaced for user {user_id}")
    return resource.value
