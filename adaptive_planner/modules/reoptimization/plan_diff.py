"""
modules/reoptimization/plan_diff.py
-------------------------------------
Human-readable delta between two itinerary plans.

moved   : same stop in both plans, different start time.
swapped : position i holds different stops before/after, and each of the
          two stops still appears somewhere in the other plan. A↔B is
          reported once (the mirrored B↔A position is skipped).
summary : "No changes" | "Swapped N place(s)" | "Reordered N place(s)";
          swaps take precedence over moves.
"""

from __future__ import annotations
from typing import Sequence

from adaptive_planner.schemas.itinerary import ItineraryItem
from adaptive_planner.schemas.suggestion import MovedEntry, PlanDiff, SwappedEntry


def _plural(n: int, noun: str) -> str:
    return f"{n} {noun}{'s' if n > 1 else ''}"


def build_plan_diff(
    before: Sequence[ItineraryItem],
    after: Sequence[ItineraryItem],
) -> PlanDiff:
    before_by_id = {i.stop_id: i for i in before}
    before_ids = set(before_by_id)
    after_ids = {i.stop_id for i in after}

    moved: list[MovedEntry] = []
    for item in after:
        prior = before_by_id.get(item.stop_id)
        if prior is not None and prior.start_time != item.start_time:
            moved.append(MovedEntry(
                place_name=item.place_name,
                from_time=prior.start_time,
                to_time=item.start_time,
            ))

    swapped: list[SwappedEntry] = []
    seen_pairs: set[frozenset[str]] = set()
    for b, a in zip(before, after):
        if b.stop_id == a.stop_id:
            continue
        if a.stop_id in before_ids and b.stop_id in after_ids:
            pair = frozenset((b.place_name, a.place_name))
            if pair in seen_pairs:
                continue
            seen_pairs.add(pair)
            swapped.append(SwappedEntry(from_place=b.place_name, to_place=a.place_name))

    if swapped:
        summary = f"Swapped {_plural(len(swapped), 'place')}"
    elif moved:
        summary = f"Reordered {_plural(len(moved), 'place')}"
    else:
        summary = "No changes"

    return PlanDiff(moved=moved, swapped=swapped, summary=summary)
