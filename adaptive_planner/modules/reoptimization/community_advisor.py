"""
modules/reoptimization/community_advisor.py
---------------------------------------------
Community hazard-report suggestion builder.

Core logic
──────────
1. A report is ACTIVE while expires_at > now.
2. An item is HAZARDOUS when its stop lies within
   COMMUNITY_HAZARD_PROXIMITY_M of any active report.
3. Hazardous non-locked items move to the END of the non-locked sequence,
   giving the report time to clear or expire. Locked items stay put.
4. kind = reorder, trigger = mixed (community reports span several causes).

Trip-level filtering (which reports concern a trip at all) is the host's
job; trip_center() and reports_near() implement the usual rule for it.
"""

from __future__ import annotations
from datetime import datetime, timezone
from typing import Callable, Optional, Sequence

from adaptive_planner import config
from adaptive_planner.modules.reoptimization.base_builder import (
    Proposal,
    SuggestionBuilder,
    locked_ids_of,
    move_to_back,
)
from adaptive_planner.modules.tool_usage.distance_tool import haversine_km
from adaptive_planner.schemas.itinerary import Itinerary, ItineraryItem, LatLng, Stop
from adaptive_planner.schemas.signals import CommunitySignal, HazardReport
from adaptive_planner.schemas.suggestion import SuggestionKind, SuggestionTrigger


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def distance_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    return haversine_km(lat1, lng1, lat2, lng2) * 1000


def trip_center(stops: Sequence[Stop]) -> Optional[LatLng]:
    """A trip's reference point is its first stop."""
    return stops[0].place.location if stops else None


def reports_near(
    reports: Sequence[HazardReport],
    center: Optional[LatLng],
    radius_m: float = config.COMMUNITY_SIGNAL_RADIUS_M,
    now: Optional[datetime] = None,
) -> list[HazardReport]:
    """Unexpired reports within radius_m of center, newest first."""
    if center is None:
        return []
    now = now or _utcnow()
    nearby = [
        r for r in reports
        if r.is_active(now) and distance_m(center.lat, center.lng, r.lat, r.lng) <= radius_m
    ]
    return sorted(nearby, key=lambda r: r.created_at, reverse=True)


class CommunitySuggestionBuilder(SuggestionBuilder):
    trigger = SuggestionTrigger.MIXED
    kind = SuggestionKind.REORDER
    signal_source = "community"

    def __init__(
        self,
        *args,
        proximity_m: float = config.COMMUNITY_HAZARD_PROXIMITY_M,
        clock: Callable[[], datetime] = _utcnow,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.proximity_m = proximity_m
        self.clock = clock

    def has_data(self, signal: CommunitySignal) -> bool:
        return bool(signal.reports)

    def find_hazardous(
        self,
        items: Sequence[ItineraryItem],
        stops: Sequence[Stop],
        reports: Sequence[HazardReport],
    ) -> list[tuple[ItineraryItem, Stop, HazardReport]]:
        by_id = {s.stop_id: s for s in stops}
        flagged = []
        for item in items:
            stop = by_id.get(item.stop_id)
            if stop is None:
                continue
            for report in reports:
                d = distance_m(stop.place.lat, stop.place.lng, report.lat, report.lng)
                if d <= self.proximity_m:
                    flagged.append((item, stop, report))
                    break
        return flagged

    def propose(
        self,
        stops: Sequence[Stop],
        itinerary: Itinerary,
        signal: CommunitySignal,
    ) -> Optional[Proposal]:
        now = self.clock()
        active = [r for r in signal.reports if r.is_active(now)]
        if not active:
            return None

        flagged = self.find_hazardous(itinerary.items, stops, active)
        if not flagged:
            return None

        reasons = [
            f"Community report near {stop.place.name}: {report.message} (severity {report.severity}/5)"
            for _, stop, report in flagged
        ]
        reasons.append("Moved stops near reported hazards later so reports can clear")

        ordered = move_to_back(
            itinerary.items, locked_ids_of(stops), {item.stop_id for item, _, _ in flagged}
        )
        return Proposal(ordered=ordered, reasons=reasons)
