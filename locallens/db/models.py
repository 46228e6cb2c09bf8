from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlmodel import SQLModel, Field
from sqlalchemy import Column, DateTime, Index, JSON


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UserPreferencesRecord(SQLModel, table=True):
    __tablename__ = "user_preferences"

    user_id: str = Field(primary_key=True, max_length=128)
    travel_style: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    interests: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    food_preferences: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    budget: Optional[str] = Field(default=None, max_length=16)
    pacing: Optional[str] = Field(default=None, max_length=16)
    preferred_transport_mode: str = Field(default="driving", max_length=32)
    updated_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow),
    )


class ItineraryRecord(SQLModel, table=True):
    __tablename__ = "itineraries"

    __table_args__ = (
        Index("idx_itineraries_user_created", "user_id", "created_at"),
    )

    id: str = Field(primary_key=True, max_length=160)
    user_id: str = Field(index=True, nullable=False, max_length=128)
    date: str = Field(max_length=10, description="Generation date, YYYY-MM-DD")
    days: List[Dict[str, Any]] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
        description="Serialized DailyPlans in visiting order",
    )
    created_at: datetime = Field(
        default_factory=_utcnow,
        sa_column=Column(DateTime(timezone=True), nullable=False, default=_utcnow),
    )


class PlaceRecord(SQLModel, table=True):
    __tablename__ = "places"

    __table_args__ = (
        Index("idx_places_location", "location"),
    )

    id: str = Field(primary_key=True, max_length=128)
    name: str = Field(nullable=False, max_length=255)
    latitude: float
    longitude: float
    address: Optional[str] = Field(default=None, max_length=500)
    rating: Optional[float] = Field(default=None, ge=0, le=5)
    user_ratings_total: Optional[int] = Field(default=None, ge=0)
    types: List[str] = Field(default_factory=list, sa_column=Column(JSON, nullable=False))
    location: str = Field(max_length=100, description="City the place belongs to")


class LocalStoryRecord(SQLModel, table=True):
    __tablename__ = "local_stories"

    id: str = Field(primary_key=True, max_length=128)
    place_id: str = Field(index=True, max_length=128)
    title: str = Field(max_length=255)
    content: str = ""
    image_url: Optional[str] = None
    audio_url: Optional[str] = None
    location: str = Field(index=True, max_length=100)
    fact_checked: bool = False


class LocalRecommendationRecord(SQLModel, table=True):
    __tablename__ = "local_recommendations"

    __table_args__ = (
        Index("idx_local_recommendations_location_type", "location", "type"),
    )

    id: str = Field(primary_key=True, max_length=128)
    place_id: str = Field(default="", max_length=128)
    name: str = Field(max_length=255)
    type: str = Field(max_length=64)
    description: str = ""
    location: str = Field(max_length=100)
    recommended_by: str = Field(default="", max_length=255)
    image_url: Optional[str] = None
