import asyncio

import pytest
from fastapi.testclient import TestClient

from locallens.api.deps import limiter
from locallens.core.session import SessionRegistry
from locallens.core.settings import Settings
from locallens.db.repository import SqlRepository
from locallens.db.session import DatabaseManager, db_manager
from locallens.main import app
from scripts.seed_catalog import seed

from tests.conftest import InMemoryRepository

PREFIX = "/api/v1"
VIZAG = {"latitude": 17.72, "longitude": 83.32, "days": 2, "planning_location": "Visakhapatnam"}


@pytest.fixture
def settings(tmp_path):
    return Settings(DB_URL=f"sqlite:///{tmp_path / 'locallens.db'}", LOG_FILE="")


@pytest.fixture
def client(settings, monkeypatch, provider):
    async def seed_and_close():
        db = DatabaseManager(settings)
        try:
            await seed(db=db)
        finally:
            await db.close()

    asyncio.run(seed_and_close())
    monkeypatch.setattr(db_manager, "settings", settings)
    limiter.reset()

    with TestClient(app) as test_client:
        # keep generation off the network
        app.state.registry = SessionRegistry(SqlRepository(db_manager), provider, settings)
        yield test_client


def drain(client):
    client.portal.call(app.state.registry.drain)


class TestHealth:

    def test_root(self, client):
        assert client.get("/").json()["status"] == "API active"

    def test_health_reports_database(self, client):
        body = client.get("/health").json()

        assert body["status"] == "healthy"
        database = body["components"]["database"]
        assert database["status"] == "healthy"
        assert database["dialect"] == "sqlite"
        assert database["latency_ms"] >= 0

    def test_request_id_header(self, client):
        response = client.get("/", headers={"X-Request-ID": "abc-123"})

        assert response.headers["X-Request-ID"] == "abc-123"


class TestPreferencesApi:

    def test_unknown_user_gets_defaults(self, client):
        body = client.get(f"{PREFIX}/users/new-user/preferences").json()

        assert body["user_id"] == "new-user"
        assert body["interests"] == []
        assert body["preferred_transport_mode"] == "driving"

    def test_put_overwrites(self, client):
        url = f"{PREFIX}/users/u1/preferences"
        client.put(url, json={"interests": ["museum"], "budget": "High", "pacing": "Relaxed"})

        response = client.put(url, json={"interests": [" beach ", ""], "preferred_transport_mode": "transit"})

        assert response.status_code == 200
        stored = client.get(url).json()
        assert stored["interests"] == ["beach"]
        assert stored["budget"] is None
        assert stored["pacing"] is None
        assert stored["preferred_transport_mode"] == "transit"

    def test_rejects_unknown_mode(self, client):
        response = client.put(f"{PREFIX}/users/u1/preferences", json={"preferred_transport_mode": "ferry"})

        assert response.status_code == 422

    def test_reads_do_not_open_planning_sessions(self, client):
        for n in range(5):
            assert client.get(f"{PREFIX}/users/reader-{n}/preferences").status_code == 200

        assert len(app.state.registry) == 0


class TestContentApi:

    def test_places_for_city(self, client):
        places = client.get(f"{PREFIX}/places", params={"location": "Visakhapatnam"}).json()

        assert len(places) == 8
        assert {p["name"] for p in places} >= {"RK Beach", "Kailasagiri"}

    def test_places_for_unknown_city(self, client):
        assert client.get(f"{PREFIX}/places", params={"location": "Atlantis"}).json() == []

    def test_stories(self, client):
        stories = client.get(f"{PREFIX}/stories", params={"location": "Visakhapatnam"}).json()
        assert [s["id"] for s in stories] == ["s1", "s2", "s3"]

        story = client.get(f"{PREFIX}/stories/s2").json()
        assert story["place_id"] == "p3"

    def test_missing_story(self, client):
        assert client.get(f"{PREFIX}/stories/nope").status_code == 404

    def test_recommendations_by_type(self, client):
        params = {"location": "Visakhapatnam", "type": "food"}
        recommendations = client.get(f"{PREFIX}/recommendations", params=params).json()

        assert [r["id"] for r in recommendations] == ["r1", "r3"]

    def test_location_is_required(self, client):
        assert client.get(f"{PREFIX}/stories").status_code == 422


class TestItineraryApi:

    def test_generate_and_read_back(self, client):
        response = client.post(f"{PREFIX}/users/u1/itineraries/generate", json=VIZAG)

        assert response.status_code == 201
        itinerary = response.json()
        assert itinerary["id"].startswith("u1_")
        assert [d["day_number"] for d in itinerary["days"]] == [1, 2]
        first = itinerary["days"][0]["activities"][0]
        assert first["place_id"] == "p2"
        assert first["local_story_id"] == "s3"
        assert first["how_to_reach"]["travel_time_minutes"] == 20

        drain(client)

        listed = client.get(f"{PREFIX}/users/u1/itineraries").json()
        assert [i["id"] for i in listed] == [itinerary["id"]]

        stored = client.get(f"{PREFIX}/users/u1/itineraries/{itinerary['id']}").json()
        assert stored == itinerary

        current = client.get(f"{PREFIX}/users/u1/itineraries/current").json()
        assert current["status"] == "succeeded"
        assert current["value"]["id"] == itinerary["id"]

    def test_other_users_itinerary_is_hidden(self, client):
        itinerary = client.post(f"{PREFIX}/users/u1/itineraries/generate", json=VIZAG).json()
        drain(client)

        response = client.get(f"{PREFIX}/users/u2/itineraries/{itinerary['id']}")

        assert response.status_code == 404

    def test_current_before_generation_is_pending(self, client):
        current = client.get(f"{PREFIX}/users/u9/itineraries/current").json()

        assert current == {"status": "pending", "value": None, "reason": None}

    def test_current_survives_restart(self, client, provider, settings):
        itinerary = client.post(f"{PREFIX}/users/u1/itineraries/generate", json=VIZAG).json()
        drain(client)
        # a fresh registry stands in for a restarted process
        app.state.registry = SessionRegistry(SqlRepository(db_manager), provider, settings)

        current = client.get(f"{PREFIX}/users/u1/itineraries/current").json()

        assert current["status"] == "succeeded"
        assert current["value"]["id"] == itinerary["id"]
        assert current["value"]["days"] == itinerary["days"]

    def test_default_planning_location(self, client):
        payload = {"latitude": 17.72, "longitude": 83.32}

        response = client.post(f"{PREFIX}/users/u1/itineraries/generate", json=payload)

        assert response.status_code == 201
        assert len(response.json()["days"]) == 1

    def test_unknown_city_gives_empty_itinerary(self, client):
        payload = dict(VIZAG, planning_location="Atlantis")

        response = client.post(f"{PREFIX}/users/u1/itineraries/generate", json=payload)

        assert response.status_code == 201
        assert response.json()["days"] == []

    @pytest.mark.parametrize("days", [0, 8])
    def test_day_range_is_validated(self, client, days):
        payload = dict(VIZAG, days=days)

        response = client.post(f"{PREFIX}/users/u1/itineraries/generate", json=payload)

        assert response.status_code == 422

    def test_unavailable_preferences_is_precondition_failure(self, client, provider, settings):
        broken = InMemoryRepository()
        broken.fail_preferences = True
        app.state.registry = SessionRegistry(broken, provider, settings)

        response = client.post(f"{PREFIX}/users/u1/itineraries/generate", json=VIZAG)

        assert response.status_code == 412
        current = client.get(f"{PREFIX}/users/u1/itineraries/current").json()
        assert current["status"] == "pending"
