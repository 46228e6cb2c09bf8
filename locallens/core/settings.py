from pathlib import Path
from typing import Union
from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    # Database
    DB_URL: str = "sqlite:///./locallens.db"
    DB_ECHO: bool = False  # Set to True for SQL query logging in development

    # Connection Pool Settings (PostgreSQL only)
    DB_POOL_SIZE: int = 10
    DB_MAX_OVERFLOW: int = 20
    DB_POOL_TIMEOUT: int = 30
    DB_POOL_RECYCLE: int = 3600  # Recycle connections after 1 hour

    # Directions provider
    GOOGLE_MAPS_API_KEY: str = ""
    DIRECTIONS_BASE_URL: str = "https://maps.googleapis.com"
    DIRECTIONS_TIMEOUT_SECONDS: float = 10.0

    # Day scheduling heuristics
    DAY_BUDGET_MINUTES: int = 480
    VISIT_DURATION_MINUTES: int = 90
    LEG_CUTOFF_MINUTES: int = 30
    MIN_REMAINING_MINUTES: int = 60

    # Application Settings
    MAX_ITINERARY_DAYS: int = 7
    DEFAULT_PLANNING_LOCATION: str = "Visakhapatnam"
    MAX_PLANNING_SESSIONS: int = 1000  # LRU cap on in-memory per-user sessions

    # Rate Limiting
    ENABLE_RATE_LIMITING: bool = True
    RATE_LIMIT_GENERATE: str = "5/minute"
    RATE_LIMIT_READ: str = "60/minute"

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_FILE: str = "app.log"

    # CORS
    ALLOWED_ORIGINS: Union[list, str] = ["http://localhost:3000", "http://localhost:3001"]

    @field_validator('ALLOWED_ORIGINS', mode='before')
    @classmethod
    def parse_allowed_origins(cls, v):
        """Parse ALLOWED_ORIGINS from comma-separated string or list"""
        if isinstance(v, str):
            return [origin.strip() for origin in v.split(',') if origin.strip()]
        return v

    model_config = SettingsConfigDict(
        env_file=str(Path(__file__).parents[2] / ".env"),
        env_file_encoding="utf-8",
        extra="ignore",
    )
