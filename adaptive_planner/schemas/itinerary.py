"""
schemas/itinerary.py
--------------------
Dataclass definitions for stops, scheduled items and itinerary versions.

Times on ItineraryItem are "HH:MM" wall-clock strings within one day.
Durations and travel gaps are whole minutes.
"""

from __future__ import annotations
import secrets
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Literal, Optional

TransportMode = Literal["driving", "walking", "transit"]


def new_stop_id() -> str:
    return f"act_{secrets.token_urlsafe(9)[:12]}"


@dataclass(frozen=True)
class LatLng:
    lat: float
    lng: float


@dataclass
class Place:
    """
    Where a stop happens.

    place_id is the provider's identifier (crowd feeds key on it).
    is_indoor=None means "unknown" and is treated as outdoor by weather checks.
    """
    name: str
    lat: float
    lng: float
    place_id: str = ""
    provider: str = ""
    category: Optional[str] = None
    is_indoor: Optional[bool] = None
    address: Optional[str] = None

    @property
    def location(self) -> LatLng:
        return LatLng(self.lat, self.lng)


@dataclass
class Stop:
    """An activity the traveller wants to visit. locked pins its order position."""
    place: Place
    duration_min: int
    locked: bool = False
    stop_id: str = field(default_factory=new_stop_id)

    def __post_init__(self):
        if self.duration_min < 1:
            raise ValueError("duration_min must be at least 1 minute")


@dataclass(frozen=True)
class ItineraryItem:
    """One scheduled stop. travel_from_prev_min precedes start_time."""
    stop_id: str
    place_name: str
    start_time: str
    end_time: str
    travel_from_prev_min: int = 0


@dataclass(frozen=True)
class TravelMatrix:
    """
    Seconds matrix a plan was timed against.

    index maps stop_id to row/column; offset is 1 when row 0 is the trip
    start location.
    """
    durations: tuple[tuple[float, ...], ...]
    index: dict[str, int] = field(default_factory=dict)
    offset: int = 0


@dataclass(frozen=True)
class Itinerary:
    items: tuple[ItineraryItem, ...] = ()
    total_travel_min: int = 0
    warnings: tuple[str, ...] = ()   # non-fatal, e.g. overflow past trip end
    # travel source for re-timing this plan; None means haversine estimates
    travel_matrix: Optional[TravelMatrix] = field(default=None, compare=False, repr=False)

    def __post_init__(self):
        # Accept lists from callers; store immutably.
        object.__setattr__(self, "items", tuple(self.items))
        object.__setattr__(self, "warnings", tuple(self.warnings))

    @property
    def stop_ids(self) -> list[str]:
        return [i.stop_id for i in self.items]

    def __len__(self) -> int:
        return len(self.items)


@dataclass(frozen=True)
class ItineraryVersion:
    """An immutable, numbered snapshot in a trip's plan history."""
    version: int
    itinerary: Itinerary
    generated_at: str = field(
        default_factory=lambda: datetime.now(timezone.utc).isoformat()
    )


@dataclass
class TripSettings:
    """Day window and travel assumptions for one trip."""
    trip_id: str
    start_time: str = "09:00"
    end_time: str = "18:00"
    mode: TransportMode = "driving"
    start_location: Optional[LatLng] = None
    city: str = ""
    date: str = ""
