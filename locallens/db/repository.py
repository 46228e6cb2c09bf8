from typing import List, Optional

from locallens.core.planner.models import (
    CandidatePlace, Itinerary, LocalRecommendation, LocalStory, UserPreferences
)
from locallens.db import crud
from locallens.db.session import DatabaseManager


class SqlRepository:
    """
    Session-per-call facade over the CRUD module.

    Planning sessions outlive any single request, so they cannot borrow the
    request-scoped session; each call here opens and closes its own.
    """

    def __init__(self, db: DatabaseManager):
        self.db = db

    async def get_user_preferences(self, user_id: str) -> UserPreferences:
        async with self.db.get_session() as session:
            return await crud.get_user_preferences(session, user_id)

    async def save_user_preferences(self, prefs: UserPreferences) -> UserPreferences:
        async with self.db.get_session() as session:
            return await crud.save_user_preferences(session, prefs)

    async def get_places(self, location: str) -> List[CandidatePlace]:
        async with self.db.get_session() as session:
            return await crud.get_places(session, location)

    async def get_local_stories(self, location: str) -> List[LocalStory]:
        async with self.db.get_session() as session:
            return await crud.get_local_stories(session, location)

    async def get_local_story_by_id(self, story_id: str) -> Optional[LocalStory]:
        async with self.db.get_session() as session:
            return await crud.get_local_story_by_id(session, story_id)

    async def get_local_recommendations(
        self, location: str, type: Optional[str] = None
    ) -> List[LocalRecommendation]:
        async with self.db.get_session() as session:
            return await crud.get_local_recommendations(session, location, type)

    async def save_itinerary(self, itinerary: Itinerary) -> Itinerary:
        async with self.db.get_session() as session:
            return await crud.save_itinerary(session, itinerary)

    async def get_latest_itinerary(self, user_id: str) -> Optional[Itinerary]:
        async with self.db.get_session() as session:
            return await crud.get_latest_itinerary(session, user_id)
