"""
modules/planning/itinerary_scheduler.py
-----------------------------------------
Assigns start/end times and travel gaps to an ordered list of stops.

For each stop in order:
    travel   = matrix[prev][cur] / 60 (halves up)    if a matrix is available
             = estimate(haversine(prev, cur), mode)  otherwise
             = 0                                     for the first stop with no start location
    start    = clock + travel
    end      = start + duration
    clock    = end

A stop ending after the trip end time is still scheduled; the overflow is
reported in Itinerary.warnings and logged.

The matrix a plan was timed against travels with it (Itinerary.travel_matrix)
so re-timed variants of the plan use the same travel source.
"""

from __future__ import annotations
import logging
from typing import Optional, Sequence

from adaptive_planner.modules.planning.route_planner import RoutePlan, RoutePlanner
from adaptive_planner.modules.tool_usage.distance_tool import DistanceTool
from adaptive_planner.modules.tool_usage.time_tool import format_hhmm, parse_hhmm, seconds_to_minutes
from adaptive_planner.schemas.itinerary import (
    Itinerary,
    ItineraryItem,
    LatLng,
    Stop,
    TravelMatrix,
    TripSettings,
)

logger = logging.getLogger(__name__)


def travel_matrix_of(plan: RoutePlan) -> Optional[TravelMatrix]:
    if plan.matrix is None:
        return None
    return TravelMatrix(
        durations=tuple(tuple(row) for row in plan.matrix),
        index=dict(plan.matrix_index),
        offset=plan.offset,
    )


class LegTimer:
    """
    Travel minutes between consecutive stops.

    Uses the matrix when both ends have a row in it, haversine estimates at
    the transport mode's speed otherwise.
    """

    def __init__(self, mode: str = "driving", matrix: Optional[TravelMatrix] = None):
        self.distance = DistanceTool(mode)
        self.matrix = matrix

    def index_of(self, stop_id: str) -> Optional[int]:
        return self.matrix.index.get(stop_id) if self.matrix is not None else None

    def start_index(self, start_location: Optional[LatLng]) -> Optional[int]:
        if self.matrix is not None and self.matrix.offset and start_location is not None:
            return 0
        return None

    def minutes(
        self,
        prev_loc: LatLng,
        prev_idx: Optional[int],
        cur_loc: LatLng,
        cur_idx: Optional[int],
    ) -> int:
        if prev_idx is not None and cur_idx is not None:
            return seconds_to_minutes(self.matrix.durations[prev_idx][cur_idx])
        return self.distance.travel_minutes(prev_loc, cur_loc)


class ItineraryScheduler:
    """
    Builds Itinerary values for a trip.

    Usage:
        scheduler = ItineraryScheduler(RoutePlanner(provider))
        itinerary = scheduler.generate(stops, settings)
    """

    def __init__(self, route_planner: RoutePlanner | None = None):
        self.route_planner = route_planner or RoutePlanner()

    # ── Public entry point ────────────────────────────────────────────────────

    def generate(
        self,
        stops: Sequence[Stop],
        settings: TripSettings,
        optimize: bool = True,
    ) -> Itinerary:
        """Optimize the visiting order (when possible) and schedule it."""
        if not stops:
            return Itinerary()
        plan = self.route_planner.plan(
            stops,
            mode=settings.mode,
            start_location=settings.start_location,
            optimize=optimize,
        )
        return self.schedule(plan, settings)

    def schedule(self, plan: RoutePlan | Sequence[Stop], settings: TripSettings) -> Itinerary:
        """
        Time an already-ordered plan.

        Args:
            plan:     RoutePlan (matrix-aware) or a plain ordered stop list.
            settings: Trip window, mode and optional start location.
        """
        if not isinstance(plan, RoutePlan):
            plan = RoutePlan(ordered=list(plan))
        if not plan.ordered:
            return Itinerary()

        trip_start = parse_hhmm(settings.start_time)
        trip_end   = parse_hhmm(settings.end_time)
        matrix     = travel_matrix_of(plan)
        timer      = LegTimer(settings.mode, matrix)

        items: list[ItineraryItem] = []
        warnings: list[str] = []
        clock = trip_start
        prev_loc: Optional[LatLng] = settings.start_location
        prev_idx: Optional[int] = timer.start_index(settings.start_location)

        for stop in plan.ordered:
            cur_loc = stop.place.location
            cur_idx = timer.index_of(stop.stop_id)

            travel = 0
            if prev_loc is not None:
                travel = timer.minutes(prev_loc, prev_idx, cur_loc, cur_idx)

            start = clock + travel
            end   = start + stop.duration_min
            if end > trip_end:
                msg = (
                    f"Activity {stop.stop_id} ({stop.place.name}) ends at {format_hhmm(end)}, "
                    f"which exceeds trip end time {settings.end_time}."
                )
                logger.warning(msg)
                warnings.append(msg)

            items.append(ItineraryItem(
                stop_id              = stop.stop_id,
                place_name           = stop.place.name,
                start_time           = format_hhmm(start),
                end_time             = format_hhmm(end),
                travel_from_prev_min = travel,
            ))

            clock    = end
            prev_loc = cur_loc
            prev_idx = cur_idx

        return Itinerary(
            items=items,
            total_travel_min=sum(i.travel_from_prev_min for i in items),
            warnings=warnings,
            travel_matrix=matrix,
        )


# ─────────────────────────────────────────────────────────────────────────────
# Re-timing helpers (suggestions)
# ─────────────────────────────────────────────────────────────────────────────

def trip_start_of(items: Sequence[ItineraryItem]) -> int:
    """Trip start recovered from a plan: first start minus its travel gap."""
    if not items:
        return 0
    return parse_hhmm(items[0].start_time) - items[0].travel_from_prev_min


def _duration_of(item: ItineraryItem, stops_by_id: dict[str, Stop]) -> int:
    # Clamped end times can shorten an item's own span; trust the stop.
    stop = stops_by_id.get(item.stop_id)
    if stop is not None:
        return stop.duration_min
    return parse_hhmm(item.end_time) - parse_hhmm(item.start_time)


def reschedule_items(
    ordered: Sequence[ItineraryItem],
    stops_by_id: dict[str, Stop],
    start_min: int,
    mode: str = "driving",
    start_location: Optional[LatLng] = None,
    matrix: Optional[TravelMatrix] = None,
) -> list[ItineraryItem]:
    """
    Re-time items in a new order with fresh travel gaps.

    Gaps come from `matrix` when given (same source as the plan being
    compared against), else from haversine estimates. Durations come from
    the stop when known, else from the item's own span.
    """
    timer = LegTimer(mode, matrix)
    result: list[ItineraryItem] = []
    clock = start_min
    prev_loc: Optional[LatLng] = start_location
    prev_idx: Optional[int] = timer.start_index(start_location)

    for item in ordered:
        stop = stops_by_id.get(item.stop_id)
        cur_loc: Optional[LatLng] = stop.place.location if stop is not None else None
        cur_idx = timer.index_of(item.stop_id) if stop is not None else None

        if prev_loc is not None and cur_loc is not None:
            travel = timer.minutes(prev_loc, prev_idx, cur_loc, cur_idx)
        elif not result and start_location is None:
            travel = 0
        else:
            travel = item.travel_from_prev_min

        start = clock + travel
        end   = start + _duration_of(item, stops_by_id)
        result.append(ItineraryItem(
            stop_id=item.stop_id,
            place_name=item.place_name,
            start_time=format_hhmm(start),
            end_time=format_hhmm(end),
            travel_from_prev_min=travel,
        ))
        clock = end
        prev_loc = cur_loc
        prev_idx = cur_idx
    return result


def retime_items(
    items: Sequence[ItineraryItem],
    start_min: int,
    stops_by_id: Optional[dict[str, Stop]] = None,
    keep_first_travel: bool = False,
) -> list[ItineraryItem]:
    """
    Shift a plan onto a fresh clock starting at start_min.

    Later items keep their travel gap; the first item's gap is kept only with
    keep_first_travel (trip has a start location), otherwise it becomes 0.
    Used when a suggestion is applied.
    """
    stops_by_id = stops_by_id or {}
    result: list[ItineraryItem] = []
    clock = start_min
    for i, item in enumerate(items):
        travel = item.travel_from_prev_min if (i > 0 or keep_first_travel) else 0
        start = clock + travel
        end = start + _duration_of(item, stops_by_id)
        result.append(ItineraryItem(
            stop_id=item.stop_id,
            place_name=item.place_name,
            start_time=format_hhmm(start),
            end_time=format_hhmm(end),
            travel_from_prev_min=travel,
        ))
        clock = end
    return result
