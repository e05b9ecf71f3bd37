"""
modules/reoptimization/base_builder.py
----------------------------------------
Abstract base class for signal-driven suggestion builders.

Every builder has the same contract:

    evaluate(stops, itinerary, signal) -> Suggestion | None

None is the normal "nothing to suggest" result: no signal data, empty
itinerary, nothing flagged, or a proposal that leaves the order unchanged.
Builders never raise for those cases.

Concrete builders only decide WHICH items are affected and HOW the
non-locked sequence is rearranged (propose()). This class re-times the
proposed order, then attaches diff, impact and confidence.
"""

from __future__ import annotations
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Optional, Sequence

from adaptive_planner.modules.planning.itinerary_scheduler import reschedule_items, trip_start_of
from adaptive_planner.modules.reoptimization.impact_scorer import (
    DEFAULT_POLICY,
    ImpactPolicy,
    compute_confidence,
    compute_impact,
)
from adaptive_planner.modules.reoptimization.plan_diff import build_plan_diff
from adaptive_planner.schemas.itinerary import Itinerary, ItineraryItem, LatLng, Stop
from adaptive_planner.schemas.suggestion import Suggestion, SuggestionKind, SuggestionTrigger

logger = logging.getLogger(__name__)


@dataclass
class Proposal:
    """New item order plus the human-readable reasons behind it."""
    ordered: list[ItineraryItem]
    reasons: list[str] = field(default_factory=list)


# ─────────────────────────────────────────────────────────────────────────────
# Locked-aware rearrangement
# ─────────────────────────────────────────────────────────────────────────────

def locked_ids_of(stops: Sequence[Stop]) -> set[str]:
    return {s.stop_id for s in stops if s.locked}


def rearrange_unlocked(
    items: Sequence[ItineraryItem],
    locked_ids: set[str],
    arrange: Callable[[list[ItineraryItem]], list[ItineraryItem]],
) -> list[ItineraryItem]:
    """
    Apply `arrange` to the non-locked subsequence only.

    Locked items keep their absolute positions; the rearranged non-locked
    items refill the remaining slots left to right.
    """
    unlocked = [i for i in items if i.stop_id not in locked_ids]
    refill = iter(arrange(unlocked))
    return [i if i.stop_id in locked_ids else next(refill) for i in items]


def move_to_front(
    items: Sequence[ItineraryItem],
    locked_ids: set[str],
    flagged_ids: set[str],
) -> list[ItineraryItem]:
    """Flagged non-locked items before all other non-locked items (stable)."""
    return rearrange_unlocked(
        items, locked_ids,
        lambda seq: [i for i in seq if i.stop_id in flagged_ids]
                    + [i for i in seq if i.stop_id not in flagged_ids],
    )


def move_to_back(
    items: Sequence[ItineraryItem],
    locked_ids: set[str],
    flagged_ids: set[str],
) -> list[ItineraryItem]:
    """Flagged non-locked items after all other non-locked items (stable)."""
    return rearrange_unlocked(
        items, locked_ids,
        lambda seq: [i for i in seq if i.stop_id not in flagged_ids]
                    + [i for i in seq if i.stop_id in flagged_ids],
    )


# ─────────────────────────────────────────────────────────────────────────────
# SuggestionBuilder
# ─────────────────────────────────────────────────────────────────────────────

class SuggestionBuilder(ABC):
    """
    One variant per signal source (weather, crowds, transit, community).

    Args:
        mode:           Transport mode used to re-time the proposed order.
        start_location: Optional trip start; first travel gap is measured from it.
        policy:         Trigger magnitudes for the impact scorer.
    """

    trigger: SuggestionTrigger = SuggestionTrigger.MIXED
    kind: SuggestionKind = SuggestionKind.REORDER
    signal_source: str = ""   # TripPlan attribute holding this builder's signal

    def __init__(
        self,
        mode: str = "driving",
        start_location: Optional[LatLng] = None,
        policy: ImpactPolicy = DEFAULT_POLICY,
    ):
        self.mode = mode
        self.start_location = start_location
        self.policy = policy

    @property
    def name(self) -> str:
        return type(self).__name__

    @abstractmethod
    def has_data(self, signal: Any) -> bool:
        """True when the signal carries anything worth evaluating."""
        ...

    @abstractmethod
    def propose(
        self,
        stops: Sequence[Stop],
        itinerary: Itinerary,
        signal: Any,
    ) -> Optional[Proposal]:
        """Return a new order for the itinerary items, or None if nothing is affected."""
        ...

    def evaluate(
        self,
        stops: Sequence[Stop],
        itinerary: Optional[Itinerary],
        signal: Any,
    ) -> Optional[Suggestion]:
        if signal is None or not self.has_data(signal):
            return None
        if itinerary is None or not itinerary.items:
            return None

        proposal = self.propose(stops, itinerary, signal)
        if proposal is None:
            return None

        if [i.stop_id for i in proposal.ordered] == itinerary.stop_ids:
            logger.debug("%s: affected stops already in best order; no suggestion", self.name)
            return None

        return self.build_suggestion(stops, itinerary, proposal)

    def retime(
        self,
        ordered: Sequence[ItineraryItem],
        stops: Sequence[Stop],
        start_min: int,
        itinerary: Itinerary,
    ) -> list[ItineraryItem]:
        return reschedule_items(
            ordered,
            {s.stop_id: s for s in stops},
            start_min,
            mode=self.mode,
            start_location=self.start_location,
            matrix=itinerary.travel_matrix,
        )

    def build_suggestion(
        self,
        stops: Sequence[Stop],
        itinerary: Itinerary,
        proposal: Proposal,
    ) -> Suggestion:
        """
        Impact compares the current and proposed orders, both timed from the
        itinerary's own travel source (matrix or haversine).
        """
        before = list(itinerary.items)
        start = trip_start_of(before)
        baseline = self.retime(before, stops, start, itinerary)
        after = self.retime(proposal.ordered, stops, start, itinerary)
        diff = build_plan_diff(before, after)
        impact = compute_impact(baseline, after, self.trigger, self.policy)
        return Suggestion(
            kind=self.kind,
            trigger=self.trigger,
            reasons=proposal.reasons,
            impact=impact,
            confidence=compute_confidence(self.trigger, impact, diff.num_changes),
            before_plan=tuple(before),
            after_plan=tuple(after),
            diff=diff,
        )
