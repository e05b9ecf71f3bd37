"""
modules/planning/route_planner.py
-----------------------------------
Visiting-order optimizer for a single day.

Algorithm (greedy nearest-neighbour, no exact TSP):
  1. Partition stops into locked (keep their list index) and unlocked.
  2. All locked   → input order unchanged.
     None locked  → nearest-neighbour walk from the start location
                    (matrix index 0) or, without one, from the first stop.
     Mixed        → locked stops keep their absolute index; the unlocked
                    stops' nearest-neighbour order fills the free slots
                    left to right.
  3. Ties go to the first stop in list order.

Matrix contract: durations in seconds, index 0 = start location when
offset == 1, otherwise index i = stops[i]. Missing, failing or malformed
matrices degrade to the original order and never raise to the caller.

NOTE: the mixed case does not re-optimize each segment between locked
anchors; unlocked stops are slotted in global nearest-neighbour order.
"""

from __future__ import annotations
import logging
import math
from dataclasses import dataclass, field
from typing import Optional, Sequence

from adaptive_planner.modules.tool_usage.matrix_tool import (
    DistanceMatrixProvider,
    build_coordinate_list,
    mapbox_profile,
)
from adaptive_planner.schemas.itinerary import LatLng, Stop

logger = logging.getLogger(__name__)


@dataclass
class RoutePlan:
    """Ordered stops plus the matrix (if any) the schedule should time against."""
    ordered: list[Stop]
    matrix: Optional[list[list[float]]] = None
    offset: int = 0
    matrix_index: dict[str, int] = field(default_factory=dict)
    # ^ {stop_id: row/column in matrix}; empty when matrix is None
    optimized: bool = False


# ─────────────────────────────────────────────────────────────────────────────
# Matrix validation
# ─────────────────────────────────────────────────────────────────────────────

def is_valid_matrix(matrix: object, size: int) -> bool:
    """Square size x size, every entry a finite non-negative number."""
    if not isinstance(matrix, (list, tuple)) or len(matrix) != size:
        return False
    for row in matrix:
        if not isinstance(row, (list, tuple)) or len(row) != size:
            return False
        for value in row:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return False
            if not math.isfinite(value) or value < 0:
                return False
    return True


# ─────────────────────────────────────────────────────────────────────────────
# Ordering
# ─────────────────────────────────────────────────────────────────────────────

def nearest_neighbor_order(
    indexed: Sequence[tuple[int, Stop]],
    matrix: Sequence[Sequence[float]],
    offset: int,
) -> list[tuple[int, Stop]]:
    """
    Greedy walk over (original_index, stop) pairs.

    Matrix row/column for a stop is original_index + offset. With offset 0
    there is no known position before the first pick, so every candidate
    costs 0 and the first pair wins.
    """
    remaining = list(indexed)
    ordered: list[tuple[int, Stop]] = []
    current: Optional[int] = 0 if offset > 0 else None

    while remaining:
        best_pos = 0
        best_duration = math.inf
        for pos, (idx, _stop) in enumerate(remaining):
            duration = 0.0 if current is None else matrix[current][idx + offset]
            if duration < best_duration:
                best_duration = duration
                best_pos = pos
        idx, stop = remaining.pop(best_pos)
        ordered.append((idx, stop))
        current = idx + offset

    return ordered


def optimize_order(
    stops: Sequence[Stop],
    matrix: Optional[Sequence[Sequence[float]]] = None,
    offset: int = 0,
) -> list[Stop]:
    """
    Reorder stops to reduce travel while keeping locked stops in place.

    Args:
        stops:  Input order (locked positions refer to this list).
        matrix: Seconds matrix ordered like build_coordinate_list(stops, start).
        offset: 1 if the matrix includes a start location at index 0, else 0.

    Returns:
        New list; the input is never mutated.
    """
    stops = list(stops)
    if len(stops) <= 1:
        return stops

    if matrix is None:
        logger.warning("No distance matrix available; keeping original stop order")
        return stops
    if not is_valid_matrix(matrix, len(stops) + offset):
        logger.warning("Malformed distance matrix; keeping original stop order")
        return stops

    locked = [(i, s) for i, s in enumerate(stops) if s.locked]
    unlocked = [(i, s) for i, s in enumerate(stops) if not s.locked]

    if not unlocked:
        return stops
    if not locked:
        return [s for _, s in nearest_neighbor_order(unlocked, matrix, offset)]

    result: list[Optional[Stop]] = [None] * len(stops)
    for i, s in locked:
        result[i] = s

    fill = iter(s for _, s in nearest_neighbor_order(unlocked, matrix, offset))
    for i in range(len(result)):
        if result[i] is None:
            result[i] = next(fill)
    return result  # type: ignore[return-value]


# ─────────────────────────────────────────────────────────────────────────────
# RoutePlanner
# ─────────────────────────────────────────────────────────────────────────────

class RoutePlanner:
    """
    Fetches a duration matrix from an injected provider and orders stops.

    The provider is optional and may fail; any failure is logged and the
    plan keeps the original order with haversine timing.
    """

    def __init__(self, provider: Optional[DistanceMatrixProvider] = None):
        self.provider = provider

    def fetch_matrix(
        self,
        stops: Sequence[Stop],
        mode: str,
        start_location: Optional[LatLng] = None,
    ) -> Optional[list[list[float]]]:
        if self.provider is None:
            return None
        coords = build_coordinate_list(stops, start_location)
        try:
            matrix = self.provider(coords, mapbox_profile(mode))
        except Exception as exc:
            logger.warning(
                "Distance matrix provider failed, falling back to original order: %s", exc
            )
            return None
        if not is_valid_matrix(matrix, len(coords)):
            logger.warning("Distance matrix provider returned malformed data; ignoring it")
            return None
        return [list(row) for row in matrix]

    def plan(
        self,
        stops: Sequence[Stop],
        mode: str = "driving",
        start_location: Optional[LatLng] = None,
        optimize: bool = True,
    ) -> RoutePlan:
        stops = list(stops)
        offset = 1 if start_location is not None else 0

        if not optimize or len(stops) <= 1:
            return RoutePlan(ordered=stops, offset=offset)

        matrix = self.fetch_matrix(stops, mode, start_location)
        if matrix is None:
            return RoutePlan(ordered=optimize_order(stops, None, offset), offset=offset)

        ordered = optimize_order(stops, matrix, offset)
        logger.info("Route optimized over %d stops using distance matrix", len(stops))
        return RoutePlan(
            ordered=ordered,
            matrix=matrix,
            offset=offset,
            matrix_index={s.stop_id: i + offset for i, s in enumerate(stops)},
            optimized=True,
        )
