"""
modules/reoptimization/crowd_advisory.py
------------------------------------------
Crowd-spike suggestion builder.

An item is CROWDED when its place has a crowd reading (matched on
Place.place_id) and either:
  - live busyness ≥ CROWD_VERY_BUSY_THRESHOLD (85; feeds may exceed 100), or
  - its start or end hour is within CROWD_PEAK_WINDOW_HOURS (1) of a
    predicted peak hour (hour granularity, minutes ignored).

Crowded non-locked items are shifted ahead of the other non-locked items.
kind = shift, trigger = crowds.
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
from adaptive_planner.modules.tool_usage.time_tool import within_hours
from adaptive_planner.schemas.itinerary import Itinerary, ItineraryItem, Stop
from adaptive_planner.schemas.signals import CrowdReading, CrowdSignal
from adaptive_planner.schemas.suggestion import SuggestionKind, SuggestionTrigger

DISPLAY_BUSY_CAP: int = 150


class CrowdSuggestionBuilder(SuggestionBuilder):
    trigger = SuggestionTrigger.CROWDS
    kind = SuggestionKind.SHIFT
    signal_source = "crowds"

    def __init__(
        self,
        *args,
        very_busy_threshold: float = config.CROWD_VERY_BUSY_THRESHOLD,
        peak_window_hours: int = config.CROWD_PEAK_WINDOW_HOURS,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.very_busy_threshold = very_busy_threshold
        self.peak_window_hours = peak_window_hours

    def has_data(self, signal: CrowdSignal) -> bool:
        return bool(signal.crowds)

    def is_very_busy(self, reading: CrowdReading) -> bool:
        return reading.busy_now >= self.very_busy_threshold

    def find_crowded(
        self,
        items: Sequence[ItineraryItem],
        stops: Sequence[Stop],
        signal: CrowdSignal,
    ) -> list[tuple[ItineraryItem, Stop, CrowdReading]]:
        by_id = {s.stop_id: s for s in stops}
        crowded = []
        for item in items:
            stop = by_id.get(item.stop_id)
            if stop is None or not stop.place.place_id:
                continue
            reading = signal.reading_for(stop.place.place_id)
            if reading is None:
                continue
            during_peak = (
                within_hours(item.start_time, reading.peak_hours, self.peak_window_hours)
                or within_hours(item.end_time, reading.peak_hours, self.peak_window_hours)
            )
            if self.is_very_busy(reading) or during_peak:
                crowded.append((item, stop, reading))
        return crowded

    def _reason(self, stop: Stop, reading: CrowdReading) -> str:
        peak = ", ".join(reading.peak_hours[:2]) if reading.peak_hours else "peak hours"
        if self.is_very_busy(reading):
            busy = min(reading.busy_now, DISPLAY_BUSY_CAP)
            return f"{stop.place.name} is very busy around {peak} (live busyness {busy:g}%)"
        return f"{stop.place.name} is predicted very busy around {peak}"

    def propose(
        self,
        stops: Sequence[Stop],
        itinerary: Itinerary,
        signal: CrowdSignal,
    ) -> Optional[Proposal]:
        crowded = self.find_crowded(itinerary.items, stops, signal)
        if not crowded:
            return None

        reasons = [self._reason(stop, reading) for _, stop, reading in crowded]
        reasons.append("Shifted crowded stops earlier to avoid peak hours")

        ordered = move_to_front(
            itinerary.items, locked_ids_of(stops), {item.stop_id for item, _, _ in crowded}
        )
        return Proposal(ordered=ordered, reasons=reasons)
