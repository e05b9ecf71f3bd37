"""
modules/tool_usage/distance_tool.py
-------------------------------------
Arithmetic tool: great-circle distance and speed-based travel-time estimates.
Local computation, used whenever no distance matrix is available.

Speed assumptions (km/h):
    driving  25.0   urban driving with traffic
    walking   4.5   average walking pace
    transit  18.0   public transit including stops

Estimates are clamped to [MIN_TRAVEL_MIN, MAX_TRAVEL_MIN] so near-zero or
very long hops don't distort the schedule.
"""

from __future__ import annotations
import math

from adaptive_planner.schemas.itinerary import LatLng

_EARTH_RADIUS_KM = 6371.0

TRAVEL_SPEED_KMH: dict[str, float] = {
    "driving": 25.0,
    "walking": 4.5,
    "transit": 18.0,
}

MIN_TRAVEL_MIN: int = 5
MAX_TRAVEL_MIN: int = 90


def haversine_km(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """
    Compute great-circle distance between two points using the Haversine formula.

    Args:
        lat1, lng1: Coordinates of point A (decimal degrees).
        lat2, lng2: Coordinates of point B (decimal degrees).

    Returns:
        Distance in kilometres.
    """
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lam = math.radians(lng2 - lng1)

    a = math.sin(d_phi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
    return 2 * _EARTH_RADIUS_KM * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def distance_km(a: LatLng, b: LatLng) -> float:
    return haversine_km(a.lat, a.lng, b.lat, b.lng)


def estimate_travel_minutes(distance: float, mode: str = "driving") -> int:
    """
    Travel minutes for a distance at the mode's assumed speed.

    Rounded up, then clamped to [MIN_TRAVEL_MIN, MAX_TRAVEL_MIN].

    Raises:
        ValueError: unknown transport mode.
    """
    try:
        speed = TRAVEL_SPEED_KMH[mode]
    except KeyError:
        raise ValueError(f"unknown transport mode {mode!r}") from None
    minutes = math.ceil((distance / speed) * 60)
    return min(max(minutes, MIN_TRAVEL_MIN), MAX_TRAVEL_MIN)


class DistanceTool:
    """
    Haversine + speed estimator bound to one transport mode.
    Used by the scheduler and the suggestion builders to re-time plans.
    """

    def __init__(self, mode: str = "driving"):
        if mode not in TRAVEL_SPEED_KMH:
            raise ValueError(f"unknown transport mode {mode!r}")
        self.mode = mode

    def travel_minutes(self, a: LatLng, b: LatLng) -> int:
        return estimate_travel_minutes(distance_km(a, b), self.mode)
