import json
from pathlib import Path
from typing import Dict, List, Optional
from unittest.mock import AsyncMock

import pytest

from locallens.core.planner.models import (
    CandidatePlace, Itinerary, LocalRecommendation, LocalStory, RouteInfo, UserPreferences
)

CATALOG_PATH = Path(__file__).resolve().parents[1] / "scripts" / "data" / "visakhapatnam.json"


def load_catalog() -> dict:
    with open(CATALOG_PATH, encoding="utf-8") as f:
        return json.load(f)


@pytest.fixture
def vizag_places() -> List[CandidatePlace]:
    return [CandidatePlace(**row) for row in load_catalog()["places"]]


@pytest.fixture
def vizag_stories() -> List[LocalStory]:
    return [LocalStory(**row) for row in load_catalog()["stories"]]


def fixed_route(duration: str = "20 mins", distance: str = "5 km") -> RouteInfo:
    return RouteInfo(distance=distance, duration=duration, polyline="abc")


@pytest.fixture
def provider():
    """Directions provider answering every leg with the same 20 minute route"""
    mock = AsyncMock()
    mock.get_directions.return_value = fixed_route()
    return mock


class InMemoryRepository:
    def __init__(self, places=None, stories=None, recommendations=None):
        self.preferences: Dict[str, UserPreferences] = {}
        self.places: List[CandidatePlace] = list(places or [])
        self.stories: List[LocalStory] = list(stories or [])
        self.recommendations: List[LocalRecommendation] = list(recommendations or [])
        self.itineraries: Dict[str, Itinerary] = {}
        self.fail_preferences = False
        self.fail_itineraries = False

    async def get_user_preferences(self, user_id: str) -> UserPreferences:
        if self.fail_preferences:
            raise ConnectionError("preference store offline")
        return self.preferences.get(user_id, UserPreferences(user_id=user_id))

    async def save_user_preferences(self, prefs: UserPreferences) -> UserPreferences:
        self.preferences[prefs.user_id] = prefs
        return prefs

    async def get_places(self, location: str) -> List[CandidatePlace]:
        return list(self.places)

    async def get_local_stories(self, location: str) -> List[LocalStory]:
        return [s for s in self.stories if s.location == location]

    async def get_local_story_by_id(self, story_id: str) -> Optional[LocalStory]:
        return next((s for s in self.stories if s.id == story_id), None)

    async def get_local_recommendations(self, location: str, type: Optional[str] = None):
        return [
            r for r in self.recommendations
            if r.location == location and (type is None or r.type == type)
        ]

    async def save_itinerary(self, itinerary: Itinerary) -> Itinerary:
        self.itineraries[itinerary.id] = itinerary
        return itinerary

    async def get_latest_itinerary(self, user_id: str) -> Optional[Itinerary]:
        if self.fail_itineraries:
            raise ConnectionError("itinerary store offline")
        owned = [i for i in self.itineraries.values() if i.user_id == user_id]
        return owned[-1] if owned else None


@pytest.fixture
def repository(vizag_places, vizag_stories):
    return InMemoryRepository(places=vizag_places, stories=vizag_stories)
