"""
modules/planning/trip_state.py
--------------------------------
Per-trip aggregate handed into the planner and suggestion engine.

The host owns storage; a TripPlan is just the in-memory view of one trip:
settings, the current stop list (full-set replace), the itinerary version
history and the latest signal of each type (last write wins).
"""

from __future__ import annotations
import threading
from dataclasses import dataclass, field
from typing import Optional, Sequence

from adaptive_planner.exceptions import TripNotFound
from adaptive_planner.schemas.itinerary import Itinerary, ItineraryVersion, Stop, TripSettings
from adaptive_planner.schemas.signals import (
    CommunitySignal,
    CrowdSignal,
    TransitSignal,
    WeatherSignal,
)


@dataclass
class TripPlan:
    """
    Single source of truth for one trip's planning inputs and outputs.

    versions is append-only; "latest" is always the last entry.
    """

    settings: TripSettings

    # ── Stops ──────────────────────────────────────────────────────────
    stops: list[Stop] = field(default_factory=list)

    # ── Plan history ──────────────────────────────────────────────────
    versions: list[ItineraryVersion] = field(default_factory=list)

    # ── Signals (last write wins) ─────────────────────────────────────
    weather: Optional[WeatherSignal] = None
    crowds: Optional[CrowdSignal] = None
    transit: Optional[TransitSignal] = None
    community: Optional[CommunitySignal] = None

    @property
    def trip_id(self) -> str:
        return self.settings.trip_id

    # ── Helpers ───────────────────────────────────────────────────────

    def replace_stops(self, stops: Sequence[Stop]) -> int:
        """Replace the whole stop list (not a merge). Returns the new count."""
        self.stops = list(stops)
        return len(self.stops)

    def stops_by_id(self) -> dict[str, Stop]:
        return {s.stop_id: s for s in self.stops}

    def append_version(self, itinerary: Itinerary) -> ItineraryVersion:
        record = ItineraryVersion(version=len(self.versions) + 1, itinerary=itinerary)
        self.versions.append(record)
        return record

    @property
    def latest(self) -> Optional[ItineraryVersion]:
        return self.versions[-1] if self.versions else None

    @property
    def latest_itinerary(self) -> Optional[Itinerary]:
        return self.versions[-1].itinerary if self.versions else None

    def set_signal(
        self,
        signal: WeatherSignal | CrowdSignal | TransitSignal | CommunitySignal,
    ) -> None:
        if isinstance(signal, WeatherSignal):
            self.weather = signal
        elif isinstance(signal, CrowdSignal):
            self.crowds = signal
        elif isinstance(signal, TransitSignal):
            self.transit = signal
        elif isinstance(signal, CommunitySignal):
            self.community = signal
        else:
            raise TypeError(f"unsupported signal type {type(signal).__name__}")


class TripRegistry:
    """
    Host-side keyed store of TripPlans with one lock per trip.

    Trips are independent; the per-trip lock serializes read-then-write
    sequences (recompute, apply, feedback) for the same trip only.
    """

    def __init__(self) -> None:
        self._trips: dict[str, TripPlan] = {}
        self._locks: dict[str, threading.RLock] = {}
        self._guard = threading.Lock()

    def add(self, plan: TripPlan) -> TripPlan:
        with self._guard:
            self._trips[plan.trip_id] = plan
            self._locks.setdefault(plan.trip_id, threading.RLock())
        return plan

    def get(self, trip_id: str) -> TripPlan:
        try:
            return self._trips[trip_id]
        except KeyError:
            raise TripNotFound(f"Trip {trip_id} not found", {"trip_id": trip_id}) from None

    def lock_for(self, trip_id: str) -> threading.RLock:
        self.get(trip_id)
        with self._guard:
            return self._locks.setdefault(trip_id, threading.RLock())

    def trip_ids(self) -> list[str]:
        return list(self._trips)

    def __contains__(self, trip_id: str) -> bool:
        return trip_id in self._trips
