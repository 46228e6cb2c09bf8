"""
Read-only endpoints over the local content catalog: places, stories and
recommendations for a city.
"""

import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from locallens.api.deps import READ_LIMIT, limiter
from locallens.core.planner.models import CandidatePlace, LocalRecommendation, LocalStory
from locallens.db import crud
from locallens.db.session import get_session

logger = logging.getLogger(__name__)
router = APIRouter(tags=["content"])


@router.get("/places", response_model=List[CandidatePlace])
@limiter.limit(READ_LIMIT)
async def list_places(
    request: Request,
    location: str = Query(..., min_length=1, max_length=100),
    session: AsyncSession = Depends(get_session)
):
    return await crud.get_places(session, location)


@router.get("/stories", response_model=List[LocalStory],
    summary="List local stories",
    description="Stories attached to places in the given city"
)
@limiter.limit(READ_LIMIT)
async def list_stories(
    request: Request,
    location: str = Query(..., min_length=1, max_length=100),
    session: AsyncSession = Depends(get_session)
):
    return await crud.get_local_stories(session, location)


@router.get("/stories/{story_id}", response_model=LocalStory)
@limiter.limit(READ_LIMIT)
async def read_story(
    request: Request,
    story_id: str,
    session: AsyncSession = Depends(get_session)
):
    story = await crud.get_local_story_by_id(session, story_id)
    if story is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Story not found")
    return story


@router.get("/recommendations", response_model=List[LocalRecommendation])
@limiter.limit(READ_LIMIT)
async def list_recommendations(
    request: Request,
    location: str = Query(..., min_length=1, max_length=100),
    type: Optional[str] = Query(None, max_length=64, description="Restrict to one category, e.g. food"),
    session: AsyncSession = Depends(get_session)
):
    recommendations = await crud.get_local_recommendations(session, location, type)
    logger.info(f"Returning {len(recommendations)} recommendations for {location}")
    return recommendations
