"""
modules/reoptimization/weather_advisor.py
-------------------------------------------
Rain-risk suggestion builder.

Core logic
──────────
1. An item is RISKY when its stop is outdoor (is_indoor False or unknown)
   and its start OR end time lies within WEATHER_RISK_WINDOW_MIN (30) of
   any forecast risk hour.
2. Risky non-locked items move ahead of every other non-locked item, so
   outdoor visits happen before the rain; locked items stay put.
3. kind = reorder, trigger = weather.
"""

from __future__ import annotations
from typing import Optional, Sequence

from adaptive_planner import config
from adaptive_planner.modules.reoptimization.base_builder import (
    Proposal,
    SuggestionBuilder,
    locked_ids_of,
    move_to_front,
)
from adaptive_planner.modules.tool_usage.time_tool import within_minutes
from adaptive_planner.schemas.itinerary import Itinerary, ItineraryItem, Stop
from adaptive_planner.schemas.signals import WeatherSignal
from adaptive_planner.schemas.suggestion import SuggestionKind, SuggestionTrigger


def is_outdoor(stop: Stop) -> bool:
    return stop.place.is_indoor is not True


def format_risk_hours(risk_hours: Sequence[str]) -> str:
    if len(risk_hours) > 2:
        return f"{risk_hours[0]}–{risk_hours[-1]}"
    return ", ".join(risk_hours)


class WeatherSuggestionBuilder(SuggestionBuilder):
    """
    Usage:
        builder    = WeatherSuggestionBuilder(mode="walking")
        suggestion = builder.evaluate(stops, itinerary, weather_signal)
    """

    trigger = SuggestionTrigger.WEATHER
    kind = SuggestionKind.REORDER
    signal_source = "weather"

    def __init__(self, *args, risk_window_min: int = config.WEATHER_RISK_WINDOW_MIN, **kwargs):
        super().__init__(*args, **kwargs)
        self.risk_window_min = risk_window_min

    def has_data(self, signal: WeatherSignal) -> bool:
        return bool(signal.risk_hours)

    def find_risky(
        self,
        items: Sequence[ItineraryItem],
        stops: Sequence[Stop],
        risk_hours: list[str],
    ) -> list[ItineraryItem]:
        by_id = {s.stop_id: s for s in stops}
        risky: list[ItineraryItem] = []
        for item in items:
            stop = by_id.get(item.stop_id)
            if stop is None or not is_outdoor(stop):
                continue
            if (within_minutes(item.start_time, risk_hours, self.risk_window_min)
                    or within_minutes(item.end_time, risk_hours, self.risk_window_min)):
                risky.append(item)
        return risky

    def propose(
        self,
        stops: Sequence[Stop],
        itinerary: Itinerary,
        signal: WeatherSignal,
    ) -> Optional[Proposal]:
        risky = self.find_risky(itinerary.items, stops, signal.risk_hours)
        if not risky:
            return None

        n = len(risky)
        reasons = [
            f"Rain risk detected during {format_risk_hours(signal.risk_hours)}",
            f"{n} outdoor {'activity' if n == 1 else 'activities'} scheduled during rain risk",
            "Moved outdoor stops earlier to avoid rain",
        ]
        ordered = move_to_front(
            itinerary.items, locked_ids_of(stops), {i.stop_id for i in risky}
        )
        return Proposal(ordered=ordered, reasons=reasons)
