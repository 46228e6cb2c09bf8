"""
Per-leg transport estimation.

Turns a directions lookup into `TransportDetails`: duration and distance text
are normalised to whole minutes and kilometres and a fare is derived from the
travel mode. Estimation never raises; a failed lookup yields zeroed details so
the scheduler always has a usable value.
"""
import logging
import math
from typing import List, Optional

from locallens.core.directions import DirectionsError, DirectionsProvider
from locallens.core.planner.models import Coordinate, TransitStep, TransportDetails

logger = logging.getLogger(__name__)

HOUR_UNITS = {"hour", "hours"}
MINUTE_UNITS = {"min", "mins", "minutes"}
KM_UNITS = {"km", "kms"}
METER_UNITS = {"m", "meters"}

# Flat per-line transit fares (INR); any other named line costs DEFAULT_LINE_FARE
TRANSIT_LINE_FARES = {
    "28": 15.0,
    "52": 15.0,
    "38": 15.0,
    "Metro": 20.0,
}
DEFAULT_LINE_FARE = 10.0
STOPS_PER_SURCHARGE = 5
STOP_SURCHARGE = 2.0
MIN_TRANSIT_FARE = 10.0

AUTO_RICKSHAW_BASE_FARE = 30.0
AUTO_RICKSHAW_RATE_PER_KM = 15.0
AUTO_RICKSHAW_ROUNDING = 5.0


def _round_half_up(value: float) -> int:
    return math.floor(value + 0.5)


def parse_duration_to_minutes(duration_text: str) -> int:
    """
    "2 hours 15 mins" -> 135. Each integer token is paired with the token
    after it; unknown units and stray words are skipped.
    """
    parts = duration_text.split(" ")
    minutes = 0
    i = 0
    while i < len(parts):
        try:
            value = int(parts[i])
        except ValueError:
            i += 1
            continue
        unit = parts[i + 1] if i + 1 < len(parts) else None
        if unit in HOUR_UNITS:
            minutes += value * 60
        elif unit in MINUTE_UNITS:
            minutes += value
        i += 2
    return minutes


def parse_distance_to_km(distance_text: str) -> float:
    """ "3.2 km" -> 3.2, "500 m" -> 0.5; a missing or unknown unit means km """
    parts = distance_text.split(" ")
    try:
        value = float(parts[0].replace(",", ""))
    except (ValueError, IndexError):
        value = 0.0
    unit = parts[1] if len(parts) > 1 else None
    if unit in METER_UNITS:
        return value / 1000.0
    return value


def _transit_fare(transit_steps: Optional[List[TransitStep]]) -> float:
    total = 0.0
    for step in transit_steps or []:
        if step.travel_mode != "TRANSIT":
            continue
        total += TRANSIT_LINE_FARES.get(step.line_name, DEFAULT_LINE_FARE)
        if step.num_stops is not None:
            total += max(step.num_stops // STOPS_PER_SURCHARGE, 0) * STOP_SURCHARGE
    if 0.0 < total < MIN_TRANSIT_FARE:
        return MIN_TRANSIT_FARE
    return total


def estimate_fare(
    mode: str,
    distance_km: float,
    transit_steps: Optional[List[TransitStep]] = None,
) -> float:
    mode = (mode or "").lower()
    if mode == "transit":
        fare = _transit_fare(transit_steps)
    elif mode == "auto_rickshaw":
        estimated = AUTO_RICKSHAW_BASE_FARE + distance_km * AUTO_RICKSHAW_RATE_PER_KM
        fare = _round_half_up(estimated / AUTO_RICKSHAW_ROUNDING) * AUTO_RICKSHAW_ROUNDING
    else:
        # driving, walking and unknown modes carry no fare
        fare = 0.0
    return max(float(fare), 0.0)


class TransportEstimator:
    """Computes TransportDetails for one leg using an injected directions provider"""

    def __init__(self, provider: DirectionsProvider):
        self.provider = provider

    async def estimate(
        self, origin: Coordinate, destination: Coordinate, mode: str
    ) -> TransportDetails:
        default_transport = TransportDetails(mode=mode)
        try:
            route = await self.provider.get_directions(origin, destination, mode)
            travel_time_minutes = parse_duration_to_minutes(route.duration)
            distance_km = parse_distance_to_km(route.distance)
            fare = estimate_fare(mode, distance_km, route.transit_steps)
            return TransportDetails(
                mode=mode,
                travel_time_minutes=travel_time_minutes,
                distance_km=distance_km,
                fare_estimate_inr=fare,
                transit_steps=route.transit_steps,
                polyline=route.polyline,
            )
        except DirectionsError as e:
            logger.warning(f"Error getting directions: {e}")
            return default_transport
        except Exception as e:
            logger.error(f"Exception during transport details: {e}")
            return default_transport
