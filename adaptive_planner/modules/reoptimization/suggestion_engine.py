"""
modules/reoptimization/suggestion_engine.py
---------------------------------------------
Orchestrates the planner for one trip at a time.

  generate_itinerary : optimize + schedule, append a version, publish it.
  recompute          : run every builder against the latest itinerary and
                       its signal; store non-duplicates, publish each stored one.
  apply_suggestion   : re-time the after-plan from the trip start, append it
                       as a new version, mark the suggestion applied.
  record_feedback    : accept/reject a suggestion and nudge the trip weights.

Builders run in a fixed order: community, weather, crowds, transit.
"""

from __future__ import annotations
import logging
from typing import Optional, Sequence

from adaptive_planner.modules.infrastructure.event_bus import (
    ITINERARY_VERSION,
    SUGGESTION_NEW,
    EventBus,
)
from adaptive_planner.modules.memory.suggestion_ledger import SuggestionLedger
from adaptive_planner.modules.planning.itinerary_scheduler import ItineraryScheduler, retime_items
from adaptive_planner.modules.planning.trip_state import TripPlan
from adaptive_planner.modules.reoptimization.base_builder import SuggestionBuilder
from adaptive_planner.modules.reoptimization.community_advisor import CommunitySuggestionBuilder
from adaptive_planner.modules.reoptimization.crowd_advisory import CrowdSuggestionBuilder
from adaptive_planner.modules.reoptimization.transit_advisor import TransitSuggestionBuilder
from adaptive_planner.modules.reoptimization.weather_advisor import WeatherSuggestionBuilder
from adaptive_planner.modules.tool_usage.time_tool import parse_hhmm
from adaptive_planner.schemas.itinerary import Itinerary, ItineraryVersion
from adaptive_planner.schemas.suggestion import Suggestion, Weights

logger = logging.getLogger(__name__)


def default_builders(plan: TripPlan) -> list[SuggestionBuilder]:
    kwargs = {"mode": plan.settings.mode, "start_location": plan.settings.start_location}
    return [
        CommunitySuggestionBuilder(**kwargs),
        WeatherSuggestionBuilder(**kwargs),
        CrowdSuggestionBuilder(**kwargs),
        TransitSuggestionBuilder(**kwargs),
    ]


def signal_for(plan: TripPlan, builder: SuggestionBuilder):
    if not builder.signal_source:
        raise TypeError(f"no signal source for {builder.name}")
    return getattr(plan, builder.signal_source)


class SuggestionEngine:
    """
    Usage:
        engine = SuggestionEngine(scheduler, ledger, bus)
        engine.generate_itinerary(plan)
        plan.set_signal(weather)
        new = engine.recompute(plan)
    """

    def __init__(
        self,
        scheduler: ItineraryScheduler | None = None,
        ledger: SuggestionLedger | None = None,
        sink: EventBus | None = None,
    ):
        self.scheduler = scheduler or ItineraryScheduler()
        self.ledger = ledger or SuggestionLedger()
        self.sink = sink or EventBus()

    # ── Planning ──────────────────────────────────────────────────────────────

    def generate_itinerary(self, plan: TripPlan, optimize: bool = True) -> ItineraryVersion:
        itinerary = self.scheduler.generate(plan.stops, plan.settings, optimize=optimize)
        record = plan.append_version(itinerary)
        self.sink.publish(plan.trip_id, ITINERARY_VERSION, record)
        return record

    # ── Suggestions ───────────────────────────────────────────────────────────

    def evaluate_all(
        self,
        plan: TripPlan,
        builders: Optional[Sequence[SuggestionBuilder]] = None,
    ) -> list[Suggestion]:
        """Run builders without storing anything."""
        latest = plan.latest_itinerary
        results: list[Suggestion] = []
        for builder in builders or default_builders(plan):
            suggestion = builder.evaluate(plan.stops, latest, signal_for(plan, builder))
            if suggestion is not None:
                results.append(suggestion)
        return results

    def recompute(
        self,
        plan: TripPlan,
        builders: Optional[Sequence[SuggestionBuilder]] = None,
    ) -> list[Suggestion]:
        """Returns only the suggestions that were newly stored."""
        stored: list[Suggestion] = []
        for suggestion in self.evaluate_all(plan, builders):
            if self.ledger.add(plan.trip_id, suggestion):
                self.sink.publish(plan.trip_id, SUGGESTION_NEW, suggestion)
                stored.append(suggestion)
        logger.info("trip %s: %d new suggestion(s)", plan.trip_id, len(stored))
        return stored

    def apply_suggestion(self, plan: TripPlan, suggestion_id: str) -> ItineraryVersion:
        """
        Raises:
            SuggestionNotFound:      unknown id.
            InvalidStatusTransition: suggestion already rejected or applied.
        """
        suggestion = self.ledger.get(plan.trip_id, suggestion_id)
        items = retime_items(
            suggestion.after_plan,
            parse_hhmm(plan.settings.start_time),
            plan.stops_by_id(),
            keep_first_travel=plan.settings.start_location is not None,
        )
        latest = plan.latest_itinerary
        itinerary = Itinerary(
            items=items,
            total_travel_min=sum(i.travel_from_prev_min for i in items),
            travel_matrix=latest.travel_matrix if latest is not None else None,
        )
        # only one concurrent caller gets past this
        self.ledger.mark_applied(plan.trip_id, suggestion_id)
        record = plan.append_version(itinerary)
        self.sink.publish(plan.trip_id, ITINERARY_VERSION, record)
        return record

    def record_feedback(self, plan: TripPlan, suggestion_id: str, accepted: bool) -> Weights:
        """Repeating the same feedback leaves the weights untouched."""
        return self.ledger.record_feedback(plan.trip_id, suggestion_id, accepted)
