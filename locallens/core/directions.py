"""
Google Directions API client.

Fetches a single route between two coordinates and normalises it into a
`RouteInfo`. Every failure mode (HTTP error, non-OK status, empty routes,
missing legs, malformed JSON) is raised as `DirectionsError` so callers have
a single exception to handle.
"""
import math
from typing import List, Optional, Protocol

import requests
import structlog
from fastapi.concurrency import run_in_threadpool
from pydantic import BaseModel, ValidationError

from locallens.core.planner.models import Coordinate, RouteInfo, TransitStep
from locallens.core.settings import Settings

logger = structlog.get_logger(__name__)

DIRECTIONS_PATH = "/maps/api/directions/json"

# Modes the provider does not understand natively
PROVIDER_MODE_ALIASES = {
    "auto_rickshaw": "driving",
}


class DirectionsError(Exception):
    """Raised when a directions lookup does not produce a usable route."""


class DirectionsProvider(Protocol):
    async def get_directions(
        self, origin: Coordinate, destination: Coordinate, mode: str
    ) -> RouteInfo:
        ...


# ----- Provider payload -----

class ValueText(BaseModel):
    text: str
    value: int


class OverviewPolyline(BaseModel):
    points: str = ""


class StopLocation(BaseModel):
    name: str


class TimeDetails(BaseModel):
    text: str
    value: Optional[int] = None


class TransitLine(BaseModel):
    name: Optional[str] = None
    short_name: Optional[str] = None


class TransitDetails(BaseModel):
    arrival_stop: StopLocation
    arrival_time: TimeDetails
    departure_stop: StopLocation
    departure_time: TimeDetails
    line: TransitLine
    num_stops: Optional[int] = None


class Step(BaseModel):
    duration: ValueText
    html_instructions: str = ""
    travel_mode: str
    transit_details: Optional[TransitDetails] = None


class Leg(BaseModel):
    distance: ValueText
    duration: ValueText
    steps: List[Step] = []


class Route(BaseModel):
    legs: List[Leg] = []
    overview_polyline: OverviewPolyline = OverviewPolyline()


class DirectionsApiResponse(BaseModel):
    status: str
    routes: List[Route] = []
    error_message: Optional[str] = None


def _step_to_transit_step(step: Step) -> TransitStep:
    duration_minutes = math.floor(step.duration.value / 60.0 + 0.5)
    details = step.transit_details
    if step.travel_mode == "TRANSIT" and details is not None:
        return TransitStep(
            instruction=step.html_instructions,
            travel_mode=step.travel_mode,
            line_name=details.line.name,
            departure_stop=details.departure_stop.name,
            arrival_stop=details.arrival_stop.name,
            departure_time=details.departure_time.text,
            arrival_time=details.arrival_time.text,
            num_stops=details.num_stops,
            duration_minutes=duration_minutes,
        )
    return TransitStep(
        instruction=step.html_instructions,
        travel_mode=step.travel_mode,
        duration_minutes=duration_minutes,
    )


def parse_directions_payload(payload: dict, mode: str) -> RouteInfo:
    """Turn a raw Directions API JSON body into a RouteInfo"""
    try:
        response = DirectionsApiResponse.model_validate(payload)
    except ValidationError as e:
        raise DirectionsError(f"Malformed directions payload: {e}") from e

    if response.status != "OK" or not response.routes:
        raise DirectionsError(f"Directions API call failed with status: {response.status}")

    route = response.routes[0]
    if not route.legs:
        raise DirectionsError("No legs found in route.")
    leg = route.legs[0]

    transit_steps = None
    if mode == "transit":
        transit_steps = [_step_to_transit_step(step) for step in leg.steps]

    return RouteInfo(
        distance=leg.distance.text,
        duration=leg.duration.text,
        polyline=route.overview_polyline.points,
        transit_steps=transit_steps,
    )


class DirectionsClient:
    """DirectionsProvider backed by the Google Directions HTTP API"""

    def __init__(self, settings: Optional[Settings] = None, http: Optional[requests.Session] = None):
        self.settings = settings or Settings()
        self.http = http or requests.Session()
        self.url = self.settings.DIRECTIONS_BASE_URL.rstrip("/") + DIRECTIONS_PATH

    def _fetch(self, origin: Coordinate, destination: Coordinate, mode: str) -> dict:
        params = {
            "origin": f"{origin.latitude},{origin.longitude}",
            "destination": f"{destination.latitude},{destination.longitude}",
            "mode": PROVIDER_MODE_ALIASES.get(mode, mode),
            "alternatives": "true",
            "key": self.settings.GOOGLE_MAPS_API_KEY,
        }
        # requests embeds the full URL, key included, in its messages; never chain them
        try:
            response = self.http.get(
                self.url, params=params, timeout=self.settings.DIRECTIONS_TIMEOUT_SECONDS
            )
        except requests.RequestException as e:
            raise DirectionsError(f"Directions request failed: {type(e).__name__}") from None

        if not response.ok:
            raise DirectionsError(
                f"Directions request failed with HTTP {response.status_code} {response.reason or ''}".rstrip()
            )
        try:
            return response.json()
        except ValueError:
            raise DirectionsError("Directions response was not JSON") from None

    async def get_directions(
        self, origin: Coordinate, destination: Coordinate, mode: str = "driving"
    ) -> RouteInfo:
        payload = await run_in_threadpool(self._fetch, origin, destination, mode)
        route = parse_directions_payload(payload, mode)
        logger.debug(
            "directions_resolved",
            mode=mode,
            distance=route.distance,
            duration=route.duration,
        )
        return route
