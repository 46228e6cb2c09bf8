"""
Per-user planning state.

A PlanningSession keeps four independently refreshed values (preferences,
local stories, local recommendations and the current itinerary) as
`Resource`s and owns itinerary generation. Sessions live in a
`SessionRegistry`, which keeps the most recently used ones in memory.
"""
import asyncio
import logging
import time
from collections import OrderedDict
from datetime import datetime
from typing import List, Optional, Protocol, Set

from locallens.core.directions import DirectionsProvider
from locallens.core.planner.models import (
    CandidatePlace, Coordinate, Itinerary, LocalRecommendation, LocalStory, UserPreferences
)
from locallens.core.planner.scheduler import DayScheduler
from locallens.core.planner.selector import CandidateSelector
from locallens.core.planner.transport import TransportEstimator
from locallens.core.resource import Resource
from locallens.core.settings import Settings

logger = logging.getLogger(__name__)


class PreferencesUnavailableError(Exception):
    """Raised when an itinerary is requested before preferences have loaded."""


class PlanningRepository(Protocol):
    async def get_user_preferences(self, user_id: str) -> UserPreferences: ...
    async def save_user_preferences(self, prefs: UserPreferences) -> UserPreferences: ...
    async def get_places(self, location: str) -> List[CandidatePlace]: ...
    async def get_local_stories(self, location: str) -> List[LocalStory]: ...
    async def get_local_story_by_id(self, story_id: str) -> Optional[LocalStory]: ...
    async def get_local_recommendations(
        self, location: str, type: Optional[str] = None
    ) -> List[LocalRecommendation]: ...
    async def save_itinerary(self, itinerary: Itinerary) -> Itinerary: ...
    async def get_latest_itinerary(self, user_id: str) -> Optional[Itinerary]: ...


def make_itinerary_id(user_id: str, now_millis: Optional[int] = None) -> str:
    if now_millis is None:
        now_millis = int(time.time() * 1000)
    return f"{user_id}_{now_millis}"


class PlanningSession:
    def __init__(
        self,
        user_id: str,
        repository: PlanningRepository,
        provider: DirectionsProvider,
        settings: Optional[Settings] = None,
        selector: Optional[CandidateSelector] = None,
    ):
        self.user_id = user_id
        self.repository = repository
        self.settings = settings or Settings()
        self.selector = selector or CandidateSelector()
        self.scheduler = DayScheduler(
            TransportEstimator(provider),
            day_budget_minutes=self.settings.DAY_BUDGET_MINUTES,
            visit_duration_minutes=self.settings.VISIT_DURATION_MINUTES,
            leg_cutoff_minutes=self.settings.LEG_CUTOFF_MINUTES,
            min_remaining_minutes=self.settings.MIN_REMAINING_MINUTES,
        )

        self.preferences: Resource[UserPreferences] = Resource.pending()
        self.local_stories: Resource[List[LocalStory]] = Resource.pending()
        self.local_recommendations: Resource[List[LocalRecommendation]] = Resource.pending()
        self.content_location: Optional[str] = None
        self.current_itinerary: Resource[Itinerary] = Resource.pending()

        self._persist_tasks: Set[asyncio.Task] = set()

    # ----- preferences -----

    async def refresh_preferences(self) -> Resource[UserPreferences]:
        self.preferences = Resource.pending()
        try:
            prefs = await self.repository.get_user_preferences(self.user_id)
            self.preferences = Resource.succeeded(prefs)
        except Exception as e:
            logger.error(f"Failed to load preferences for {self.user_id}: {e}")
            self.preferences = Resource.failed(str(e))
        return self.preferences

    async def save_preferences(self, prefs: UserPreferences) -> Resource[UserPreferences]:
        """Overwrites stored preferences, then re-reads them"""
        prefs = prefs.model_copy(update={"user_id": self.user_id})
        try:
            await self.repository.save_user_preferences(prefs)
        except Exception as e:
            logger.error(f"Failed to save preferences for {self.user_id}: {e}")
            self.preferences = Resource.failed(str(e))
            return self.preferences
        return await self.refresh_preferences()

    # ----- local content -----

    async def refresh_local_content(self, location: str) -> None:
        self.content_location = location
        self.local_stories = Resource.pending()
        self.local_recommendations = Resource.pending()

        try:
            self.local_stories = Resource.succeeded(
                await self.repository.get_local_stories(location)
            )
        except Exception as e:
            logger.error(f"Failed to load local stories for {location}: {e}")
            self.local_stories = Resource.failed(str(e))

        try:
            self.local_recommendations = Resource.succeeded(
                await self.repository.get_local_recommendations(location)
            )
        except Exception as e:
            logger.error(f"Failed to load local recommendations for {location}: {e}")
            self.local_recommendations = Resource.failed(str(e))

    async def get_story(self, story_id: str) -> Optional[LocalStory]:
        return await self.repository.get_local_story_by_id(story_id)

    # ----- itinerary -----

    async def generate_itinerary(
        self,
        current_location: Coordinate,
        days: int,
        planning_location: str,
    ) -> Itinerary:
        if not self.preferences.is_succeeded:
            raise PreferencesUnavailableError(
                f"Preferences for user {self.user_id} are {self.preferences.status.value}"
            )
        prefs = self.preferences.value

        pool = await self.repository.get_places(planning_location)
        ranked = self.selector.select(pool, prefs)
        stories = self.local_stories.value if self.local_stories.is_succeeded else []

        daily_plans = await self.scheduler.schedule(
            ranked,
            Coordinate(*current_location),
            days,
            prefs.preferred_transport_mode,
            stories,
        )

        itinerary = Itinerary(
            id=make_itinerary_id(self.user_id),
            user_id=self.user_id,
            date=datetime.now().strftime("%Y-%m-%d"),
            days=daily_plans,
        )
        self.current_itinerary = Resource.succeeded(itinerary)
        logger.info(f"Generated itinerary {itinerary.id} with {len(daily_plans)} days")

        task = asyncio.create_task(self._persist(itinerary))
        self._persist_tasks.add(task)
        task.add_done_callback(self._persist_tasks.discard)
        return itinerary

    async def refresh_current_itinerary(self) -> Resource[Itinerary]:
        """Falls back to the newest stored itinerary when none was generated in this process"""
        if self.current_itinerary.is_succeeded:
            return self.current_itinerary
        try:
            latest = await self.repository.get_latest_itinerary(self.user_id)
        except Exception as e:
            logger.error(f"Failed to load latest itinerary for {self.user_id}: {e}")
            self.current_itinerary = Resource.failed(str(e))
            return self.current_itinerary
        self.current_itinerary = Resource.pending() if latest is None else Resource.succeeded(latest)
        return self.current_itinerary

    async def _persist(self, itinerary: Itinerary) -> None:
        try:
            await self.repository.save_itinerary(itinerary)
        except Exception as e:
            logger.error(f"Failed to persist itinerary {itinerary.id}: {e}")

    @property
    def has_pending_writes(self) -> bool:
        return bool(self._persist_tasks)

    async def drain(self) -> None:
        """Wait for outstanding itinerary writes"""
        if self._persist_tasks:
            await asyncio.gather(*list(self._persist_tasks))


class SessionRegistry:
    """
    Lazily creates one PlanningSession per user id.

    At most `MAX_PLANNING_SESSIONS` sessions are kept; the least recently used
    are dropped first. A session still writing an itinerary is never dropped,
    so the registry may run over the cap until those writes finish.
    """

    def __init__(
        self,
        repository: PlanningRepository,
        provider: DirectionsProvider,
        settings: Optional[Settings] = None,
    ):
        self.repository = repository
        self.provider = provider
        self.settings = settings or Settings()
        self.max_sessions = self.settings.MAX_PLANNING_SESSIONS
        self._sessions: "OrderedDict[str, PlanningSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, user_id: str) -> bool:
        return user_id in self._sessions

    async def get(self, user_id: str) -> PlanningSession:
        session = self._sessions.get(user_id)
        if session is not None:
            self._sessions.move_to_end(user_id)
            return session

        session = PlanningSession(user_id, self.repository, self.provider, self.settings)
        self._sessions[user_id] = session
        self._evict()
        await session.refresh_preferences()
        return session

    def _evict(self) -> None:
        excess = len(self._sessions) - self.max_sessions
        if excess <= 0:
            return
        # oldest first; the newest entry is the one being handed out
        for user_id in list(self._sessions)[:-1]:
            if excess <= 0:
                break
            if self._sessions[user_id].has_pending_writes:
                continue
            del self._sessions[user_id]
            excess -= 1
        if excess > 0:
            logger.warning(
                f"{len(self._sessions)} planning sessions held, over the cap of {self.max_sessions}"
            )

    async def drain(self) -> None:
        for session in list(self._sessions.values()):
            await session.drain()
