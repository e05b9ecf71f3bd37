"""
modules/tool_usage/matrix_tool.py
-----------------------------------
Distance-matrix provider adapters.

A provider is any callable (coordinates, profile) -> seconds[sources][destinations]
ordered like `coordinates`. It may be slow and may fail; failures are raised
as ProviderUnavailable and the planner falls back to haversine estimates.

MapboxMatrixProvider wraps the Mapbox Directions Matrix API:
  - 2..25 coordinates per request
  - "mapbox/driving-traffic" only accepts 10 coordinates → falls back to
    "mapbox/driving" above that
  - coordinates are sent lng-first ("lng,lat;lng,lat;...")
"""

from __future__ import annotations
import logging
from typing import Callable, Optional, Sequence

import requests

from adaptive_planner import config
from adaptive_planner.exceptions import ProviderUnavailable
from adaptive_planner.schemas.itinerary import LatLng, Stop

logger = logging.getLogger(__name__)

DistanceMatrixProvider = Callable[[Sequence[LatLng], str], list[list[float]]]

MAX_COORDINATES: int         = 25
MAX_TRAFFIC_COORDINATES: int = 10
TRAFFIC_PROFILE: str         = "mapbox/driving-traffic"


def mapbox_profile(mode: str, traffic_profile: str = config.MAPBOX_TRAFFIC_PROFILE) -> str:
    """Routing profile for a transport mode. Mapbox has no transit profile."""
    if mode == "driving":
        return traffic_profile or TRAFFIC_PROFILE
    if mode == "walking":
        return "mapbox/walking"
    return "mapbox/driving"


def build_coordinate_list(stops: Sequence[Stop], start: Optional[LatLng] = None) -> list[LatLng]:
    """Matrix coordinate order: optional start location at index 0, then stops in list order."""
    coords: list[LatLng] = [start] if start is not None else []
    coords.extend(s.place.location for s in stops)
    return coords


class MapboxMatrixProvider:
    """
    requests-backed Mapbox Matrix client.

    Usage:
        provider  = MapboxMatrixProvider(access_token="pk.…")
        durations = provider(coords, mapbox_profile("driving"))
    """

    def __init__(
        self,
        access_token: str = config.MAPBOX_ACCESS_TOKEN,
        base_url: str = config.MAPBOX_MATRIX_URL,
        timeout: float = config.PROVIDER_TIMEOUT_SEC,
        session: requests.Session | None = None,
    ):
        self.access_token = access_token
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._http = session or requests

    def __call__(self, coordinates: Sequence[LatLng], profile: str) -> list[list[float]]:
        return self.fetch(coordinates, profile)

    def fetch(self, coordinates: Sequence[LatLng], profile: str) -> list[list[float]]:
        """
        Returns:
            Duration matrix in seconds (sources x destinations).

        Raises:
            ProviderUnavailable: missing token, bad coordinate count, HTTP failure,
                                 non-"Ok" response code or missing durations.
        """
        if not self.access_token:
            raise ProviderUnavailable("Mapbox access token is required")
        n = len(coordinates)
        if n < 2:
            raise ProviderUnavailable("At least 2 coordinates are required", {"count": n})
        if n > MAX_COORDINATES:
            raise ProviderUnavailable(
                f"Mapbox Matrix API supports a maximum of {MAX_COORDINATES} coordinates",
                {"count": n},
            )

        if profile == TRAFFIC_PROFILE and n > MAX_TRAFFIC_COORDINATES:
            logger.info(
                "Mapbox: falling back from driving-traffic to driving (%d coords > %d)",
                n, MAX_TRAFFIC_COORDINATES,
            )
            profile = "mapbox/driving"

        coords_str = ";".join(f"{c.lng},{c.lat}" for c in coordinates)
        url = f"{self.base_url}/{profile}/{coords_str}"
        params = {"annotations": "duration", "access_token": self.access_token}

        try:
            response = self._http.get(
                url, params=params, timeout=self.timeout, headers={"Accept": "application/json"}
            )
            response.raise_for_status()
            data = response.json()
        except (requests.RequestException, ValueError) as exc:
            raise ProviderUnavailable(
                f"Failed to get Mapbox duration matrix: {exc}", {"profile": profile}
            ) from exc

        if data.get("code") != "Ok":
            raise ProviderUnavailable(
                f"Mapbox API returned code: {data.get('code')}", {"profile": profile}
            )
        durations = data.get("durations")
        if not isinstance(durations, list):
            raise ProviderUnavailable("Mapbox response has no durations", {"profile": profile})
        return durations


def default_provider() -> Optional[MapboxMatrixProvider]:
    """Provider from environment config, or None when no token is configured."""
    if not config.MAPBOX_ACCESS_TOKEN:
        return None
    return MapboxMatrixProvider()
