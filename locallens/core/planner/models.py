"""
Domain value types shared by the selector, scheduler and transport estimator.
"""
from collections import namedtuple
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

# Simple lat/lng pair, used for the traveler's running position
Coordinate = namedtuple("Coordinate", ["latitude", "longitude"])


class BudgetTier(str, Enum):
    LOW = "Low"
    MEDIUM = "Medium"
    HIGH = "High"


class Pacing(str, Enum):
    RELAXED = "Relaxed"
    MODERATE = "Moderate"
    PACKED = "Packed"


class TransportMode(str, Enum):
    DRIVING = "driving"
    WALKING = "walking"
    TRANSIT = "transit"
    AUTO_RICKSHAW = "auto_rickshaw"


class UserPreferences(BaseModel):
    model_config = ConfigDict(frozen=True, use_enum_values=True, validate_default=True)

    user_id: str = ""
    travel_style: List[str] = Field(default_factory=list)
    interests: List[str] = Field(default_factory=list)
    food_preferences: List[str] = Field(default_factory=list)
    budget: Optional[BudgetTier] = None
    pacing: Optional[Pacing] = None
    preferred_transport_mode: TransportMode = TransportMode.DRIVING


class CandidatePlace(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    latitude: float
    longitude: float
    address: Optional[str] = None
    rating: Optional[float] = None
    user_ratings_total: Optional[int] = None
    types: List[str] = Field(default_factory=list)

    @property
    def coordinate(self) -> Coordinate:
        return Coordinate(self.latitude, self.longitude)


class TransitStep(BaseModel):
    instruction: str = ""
    travel_mode: str = ""
    line_name: Optional[str] = None
    departure_stop: Optional[str] = None
    arrival_stop: Optional[str] = None
    departure_time: Optional[str] = None
    arrival_time: Optional[str] = None
    num_stops: Optional[int] = None
    duration_minutes: int = 0


class RouteInfo(BaseModel):
    """Normalised result of a single directions lookup."""
    distance: str
    duration: str
    polyline: str = ""
    transit_steps: Optional[List[TransitStep]] = None


class TransportDetails(BaseModel):
    mode: str = ""
    travel_time_minutes: int = 0
    distance_km: float = 0.0
    fare_estimate_inr: float = Field(default=0.0, ge=0.0)
    transit_steps: Optional[List[TransitStep]] = None
    polyline: Optional[str] = None


class Activity(BaseModel):
    model_config = ConfigDict(frozen=True)

    place_id: str
    name: str
    latitude: float
    longitude: float
    type: str = "point_of_interest"
    start_time: Optional[str] = None
    end_time: Optional[str] = None
    local_story_id: Optional[str] = None
    audio_guide_id: Optional[str] = None
    how_to_reach: Optional[TransportDetails] = None


class DailyPlan(BaseModel):
    day_number: int = Field(..., ge=1)
    activities: List[Activity] = Field(default_factory=list)


class Itinerary(BaseModel):
    id: str
    user_id: str
    date: str
    days: List[DailyPlan] = Field(default_factory=list)


class LocalStory(BaseModel):
    id: str
    place_id: str = ""
    title: str = ""
    content: str = ""
    image_url: Optional[str] = None
    audio_url: Optional[str] = None
    location: str = ""
    fact_checked: bool = False


class LocalRecommendation(BaseModel):
    id: str
    place_id: str = ""
    name: str = ""
    type: str = ""
    description: str = ""
    location: str = ""
    recommended_by: str = ""
    image_url: Optional[str] = None
