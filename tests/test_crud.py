import pytest
import pytest_asyncio

from locallens.core.planner.models import (
    Activity, DailyPlan, Itinerary, TransportDetails, UserPreferences
)
from locallens.core.settings import Settings
from locallens.db import crud
from locallens.db.session import DatabaseManager


@pytest_asyncio.fixture
async def db(tmp_path):
    manager = DatabaseManager(Settings(DB_URL=f"sqlite:///{tmp_path / 'crud.db'}"))
    await manager.initialize()
    await manager.init_db()
    yield manager
    await manager.close()


def itinerary(id, user_id="u1"):
    activity = Activity(
        place_id="p1", name="RK Beach", latitude=17.7121, longitude=83.3323,
        type="beach", how_to_reach=TransportDetails(mode="driving", travel_time_minutes=12, distance_km=3.2),
    )
    return Itinerary(id=id, user_id=user_id, date="2024-05-01",
                     days=[DailyPlan(day_number=1, activities=[activity])])


class TestCrud:

    @pytest.mark.asyncio
    async def test_preferences_round_trip(self, db):
        async with db.get_session() as session:
            assert await crud.get_user_preferences(session, "u1") == UserPreferences(user_id="u1")

            prefs = UserPreferences(user_id="u1", interests=["museum"], budget="Low", preferred_transport_mode="transit")
            await crud.save_user_preferences(session, prefs)

        async with db.get_session() as session:
            assert await crud.get_user_preferences(session, "u1") == prefs

    @pytest.mark.asyncio
    async def test_itineraries_newest_first(self, db):
        async with db.get_session() as session:
            await crud.save_itinerary(session, itinerary("u1_1000"))
            await crud.save_itinerary(session, itinerary("u1_2000"))
            await crud.save_itinerary(session, itinerary("u2_1500", user_id="u2"))

        async with db.get_session() as session:
            listed = await crud.get_user_itineraries(session, "u1")
            latest = await crud.get_latest_itinerary(session, "u1")
            stored = await crud.get_itinerary(session, "u1_1000")

        assert [i.id for i in listed] == ["u1_2000", "u1_1000"]
        assert latest.id == "u1_2000"
        assert stored == itinerary("u1_1000")

    @pytest.mark.asyncio
    async def test_missing_rows(self, db):
        async with db.get_session() as session:
            assert await crud.get_itinerary(session, "nope") is None
            assert await crud.get_latest_itinerary(session, "u1") is None
            assert await crud.get_local_story_by_id(session, "nope") is None
            assert await crud.get_places(session, "Visakhapatnam") == []
