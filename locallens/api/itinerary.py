import logging
import time
from contextlib import asynccontextmanager
from typing import List

from fastapi import APIRouter, Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from locallens.api.deps import GENERATE_LIMIT, READ_LIMIT, get_registry, limiter
from locallens.api.schemas import GenerateItineraryRequest, ResourceRead
from locallens.core.planner.models import Coordinate, Itinerary
from locallens.core.session import PreferencesUnavailableError, SessionRegistry
from locallens.db import crud
from locallens.db.session import get_session

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/users/{user_id}/itineraries", tags=["itineraries"])


@asynccontextmanager
async def performance_timer(operation: str):
    """Context manager for timing operations"""
    start = time.time()
    try:
        yield
    finally:
        duration = time.time() - start
        logger.info(f"{operation} completed in {duration:.2f}s")


@router.post("/generate",
    response_model=Itinerary,
    status_code=status.HTTP_201_CREATED,
    responses={
        412: {"description": "User preferences are not available"},
        429: {"description": "Rate limit exceeded"},
    },
    summary="Generate a local itinerary",
    description="Plans the next days from the traveler's current position using their stored preferences"
)
@limiter.limit(GENERATE_LIMIT)
async def generate_itinerary(
    request: Request,
    user_id: str,
    payload: GenerateItineraryRequest,
    registry: SessionRegistry = Depends(get_registry),
):
    planning_location = payload.planning_location or registry.settings.DEFAULT_PLANNING_LOCATION
    session = await registry.get(user_id)

    async with performance_timer("itinerary_generation"):
        if not session.preferences.is_succeeded:
            await session.refresh_preferences()
        if session.content_location != planning_location or not session.local_stories.is_succeeded:
            await session.refresh_local_content(planning_location)

        try:
            itinerary = await session.generate_itinerary(
                Coordinate(payload.latitude, payload.longitude),
                payload.days,
                planning_location,
            )
        except PreferencesUnavailableError as e:
            logger.warning(f"Itinerary generation refused for {user_id}: {e}")
            raise HTTPException(
                status_code=status.HTTP_412_PRECONDITION_FAILED,
                detail="User preferences are not available"
            )

    return itinerary


@router.get("", response_model=List[Itinerary])
@limiter.limit(READ_LIMIT)
async def list_itineraries(
    request: Request,
    user_id: str,
    skip: int = 0,
    limit: int = 100,
    session: AsyncSession = Depends(get_session)
):
    return await crud.get_user_itineraries(session, user_id, skip=skip, limit=limit)


@router.get("/current", response_model=ResourceRead)
@limiter.limit(READ_LIMIT)
async def read_current_itinerary(
    request: Request,
    user_id: str,
    registry: SessionRegistry = Depends(get_registry),
):
    """State of the user's most recent itinerary, falling back to the newest stored one"""
    session = await registry.get(user_id)
    resource = await session.refresh_current_itinerary()
    return resource.to_dict()


@router.get("/{itinerary_id}", response_model=Itinerary)
@limiter.limit(READ_LIMIT)
async def read_itinerary(
    request: Request,
    user_id: str,
    itinerary_id: str,
    session: AsyncSession = Depends(get_session)
):
    itinerary = await crud.get_itinerary(session, itinerary_id)
    if itinerary is None or itinerary.user_id != user_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Itinerary not found")
    return itinerary
