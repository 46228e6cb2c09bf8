from typing import Any, List, Optional
from pydantic import BaseModel, Field, field_validator

from locallens.api.deps import settings
from locallens.core.planner.models import BudgetTier, Pacing, TransportMode


class PreferencesUpdate(BaseModel):
    travel_style: List[str] = Field(default_factory=list)
    interests: List[str] = Field(default_factory=list)
    food_preferences: List[str] = Field(default_factory=list)
    budget: Optional[BudgetTier] = None
    pacing: Optional[Pacing] = None
    preferred_transport_mode: TransportMode = TransportMode.DRIVING

    @field_validator("travel_style", "interests", "food_preferences")
    @classmethod
    def strip_labels(cls, v):
        return [label.strip() for label in v if label and label.strip()]


class GenerateItineraryRequest(BaseModel):
    latitude: float = Field(..., ge=-90, le=90, description="Traveler's current latitude")
    longitude: float = Field(..., ge=-180, le=180, description="Traveler's current longitude")
    days: int = Field(1, ge=1, description="Number of days to plan")
    planning_location: Optional[str] = Field(
        None, max_length=100, description="City whose catalog is used; defaults to the configured city"
    )

    @field_validator("days")
    @classmethod
    def validate_days(cls, v):
        max_days = settings.MAX_ITINERARY_DAYS
        if v > max_days:
            raise ValueError(f"Itineraries are limited to {max_days} days")
        return v

    @field_validator("planning_location")
    @classmethod
    def validate_location(cls, v):
        if v is not None and not v.strip():
            raise ValueError("planning_location cannot be blank")
        return v.strip() if v else v


class ResourceRead(BaseModel):
    status: str
    value: Optional[Any] = None
    reason: Optional[str] = None
