"""
Async CRUD operations for preferences, itineraries and the local content catalog.

Every function takes an open AsyncSession and converts between table records
and the planner's value types, so callers never handle ORM rows directly.
"""

import logging
from typing import List, Optional

from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession

from locallens.core.planner.models import (
    CandidatePlace, DailyPlan, Itinerary, LocalRecommendation, LocalStory, UserPreferences
)
from locallens.db.models import (
    ItineraryRecord, LocalRecommendationRecord, LocalStoryRecord, PlaceRecord,
    UserPreferencesRecord
)

logger = logging.getLogger(__name__)

# ===== CONVERSIONS =====

def _preferences_from_record(record: UserPreferencesRecord) -> UserPreferences:
    return UserPreferences(
        user_id=record.user_id,
        travel_style=record.travel_style or [],
        interests=record.interests or [],
        food_preferences=record.food_preferences or [],
        budget=record.budget,
        pacing=record.pacing,
        preferred_transport_mode=record.preferred_transport_mode,
    )


def _itinerary_from_record(record: ItineraryRecord) -> Itinerary:
    return Itinerary(
        id=record.id,
        user_id=record.user_id,
        date=record.date,
        days=[DailyPlan.model_validate(day) for day in record.days or []],
    )


def _place_from_record(record: PlaceRecord) -> CandidatePlace:
    return CandidatePlace(
        id=record.id,
        name=record.name,
        latitude=record.latitude,
        longitude=record.longitude,
        address=record.address,
        rating=record.rating,
        user_ratings_total=record.user_ratings_total,
        types=record.types or [],
    )


def _story_from_record(record: LocalStoryRecord) -> LocalStory:
    return LocalStory.model_validate(record.model_dump())


def _recommendation_from_record(record: LocalRecommendationRecord) -> LocalRecommendation:
    return LocalRecommendation.model_validate(record.model_dump())

# ===== USER PREFERENCES =====

async def get_user_preferences(session: AsyncSession, user_id: str) -> UserPreferences:
    """Stored preferences, or an empty default carrying the user id"""
    try:
        record = await session.get(UserPreferencesRecord, user_id)
    except Exception as e:
        logger.error(f"Error getting preferences for user {user_id}: {e}")
        raise
    if record is None:
        return UserPreferences(user_id=user_id)
    return _preferences_from_record(record)


async def save_user_preferences(session: AsyncSession, prefs: UserPreferences) -> UserPreferences:
    """Full overwrite of the user's preference record"""
    try:
        record = UserPreferencesRecord(
            user_id=prefs.user_id,
            travel_style=list(prefs.travel_style),
            interests=list(prefs.interests),
            food_preferences=list(prefs.food_preferences),
            budget=prefs.budget,
            pacing=prefs.pacing,
            preferred_transport_mode=prefs.preferred_transport_mode,
        )
        await session.merge(record)
        await session.commit()
        logger.info(f"Saved preferences for user {prefs.user_id}")
        return prefs
    except Exception as e:
        await session.rollback()
        logger.error(f"Error saving preferences for user {prefs.user_id}: {e}")
        raise

# ===== ITINERARIES =====

async def save_itinerary(session: AsyncSession, itinerary: Itinerary) -> Itinerary:
    try:
        record = ItineraryRecord(
            id=itinerary.id,
            user_id=itinerary.user_id,
            date=itinerary.date,
            days=[day.model_dump() for day in itinerary.days],
        )
        await session.merge(record)
        await session.commit()
        logger.info(f"Saved itinerary {itinerary.id} for user {itinerary.user_id}")
        return itinerary
    except Exception as e:
        await session.rollback()
        logger.error(f"Error saving itinerary {itinerary.id}: {e}")
        raise


async def get_user_itineraries(
    session: AsyncSession,
    user_id: str,
    skip: int = 0,
    limit: int = 100
) -> List[Itinerary]:
    """User's itineraries, newest first"""
    try:
        result = await session.execute(
            select(ItineraryRecord)
            .where(ItineraryRecord.user_id == user_id)
            .order_by(desc(ItineraryRecord.created_at), desc(ItineraryRecord.id))
            .offset(skip)
            .limit(limit)
        )
        return [_itinerary_from_record(r) for r in result.scalars().all()]
    except Exception as e:
        logger.error(f"Error getting itineraries for user {user_id}: {e}")
        raise


async def get_itinerary(session: AsyncSession, itinerary_id: str) -> Optional[Itinerary]:
    try:
        record = await session.get(ItineraryRecord, itinerary_id)
    except Exception as e:
        logger.error(f"Error getting itinerary {itinerary_id}: {e}")
        raise
    return _itinerary_from_record(record) if record else None


async def get_latest_itinerary(session: AsyncSession, user_id: str) -> Optional[Itinerary]:
    itineraries = await get_user_itineraries(session, user_id, limit=1)
    return itineraries[0] if itineraries else None

# ===== CATALOG =====

async def get_places(session: AsyncSession, location: str) -> List[CandidatePlace]:
    """Candidate places for a city, in catalog order"""
    try:
        result = await session.execute(
            select(PlaceRecord)
            .where(PlaceRecord.location == location)
            .order_by(PlaceRecord.id)
        )
        return [_place_from_record(r) for r in result.scalars().all()]
    except Exception as e:
        logger.error(f"Error getting places for {location}: {e}")
        raise


async def get_local_stories(session: AsyncSession, location: str) -> List[LocalStory]:
    try:
        result = await session.execute(
            select(LocalStoryRecord)
            .where(LocalStoryRecord.location == location)
            .order_by(LocalStoryRecord.id)
        )
        return [_story_from_record(r) for r in result.scalars().all()]
    except Exception as e:
        logger.error(f"Error getting local stories for {location}: {e}")
        raise


async def get_local_story_by_id(session: AsyncSession, story_id: str) -> Optional[LocalStory]:
    try:
        record = await session.get(LocalStoryRecord, story_id)
    except Exception as e:
        logger.error(f"Error getting local story {story_id}: {e}")
        raise
    return _story_from_record(record) if record else None


async def get_local_recommendations(
    session: AsyncSession,
    location: str,
    type: Optional[str] = None
) -> List[LocalRecommendation]:
    """Recommendations for a city, optionally narrowed to one category"""
    try:
        query = select(LocalRecommendationRecord).where(
            LocalRecommendationRecord.location == location
        )
        if type:
            query = query.where(LocalRecommendationRecord.type == type)
        result = await session.execute(query.order_by(LocalRecommendationRecord.id))
        return [_recommendation_from_record(r) for r in result.scalars().all()]
    except Exception as e:
        logger.error(f"Error getting local recommendations for {location}: {e}")
        raise
