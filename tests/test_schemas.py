import pytest
from pydantic import ValidationError

from locallens.api import schemas
from locallens.api.schemas import GenerateItineraryRequest

POSITION = {"latitude": 17.72, "longitude": 83.32}


class TestGenerateItineraryRequest:

    def test_day_cap_follows_configured_settings(self, monkeypatch):
        monkeypatch.setattr(schemas.settings, "MAX_ITINERARY_DAYS", 3)

        assert GenerateItineraryRequest(**POSITION, days=3).days == 3
        with pytest.raises(ValidationError, match="limited to 3 days"):
            GenerateItineraryRequest(**POSITION, days=4)

    def test_blank_location_rejected(self):
        with pytest.raises(ValidationError):
            GenerateItineraryRequest(**POSITION, planning_location="   ")

    def test_location_is_trimmed(self):
        request = GenerateItineraryRequest(**POSITION, planning_location=" Visakhapatnam ")

        assert request.planning_location == "Visakhapatnam"
