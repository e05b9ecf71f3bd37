"""
modules/reoptimization/transit_advisor.py
-------------------------------------------
Transit-delay suggestion builder.

Core logic
──────────
1. Keep alerts with delay_min ≥ TRANSIT_DELAY_THRESHOLD_MIN (default 10).
2. If any remain, take the first TRANSIT_MAX_SHIFTED (2) non-locked items
   and move them to the end of the non-locked sequence. This buys buffer at
   the start of the day; it does not target stops near the delayed lines.
3. kind = reorder, trigger = transit.
"""

from __future__ import annotations
from typing import Optional, Sequence

from adaptive_planner import config
from adaptive_planner.modules.reoptimization.base_builder import (
    Proposal,
    SuggestionBuilder,
    locked_ids_of,
    rearrange_unlocked,
)
from adaptive_planner.schemas.itinerary import Itinerary, ItineraryItem, Stop
from adaptive_planner.schemas.signals import TransitAlert, TransitSignal
from adaptive_planner.schemas.suggestion import SuggestionKind, SuggestionTrigger


class TransitSuggestionBuilder(SuggestionBuilder):
    trigger = SuggestionTrigger.TRANSIT
    kind = SuggestionKind.REORDER
    signal_source = "transit"

    def __init__(
        self,
        *args,
        delay_threshold_min: int = config.TRANSIT_DELAY_THRESHOLD_MIN,
        max_shifted: int = config.TRANSIT_MAX_SHIFTED,
        **kwargs,
    ):
        super().__init__(*args, **kwargs)
        self.delay_threshold_min = delay_threshold_min
        self.max_shifted = max_shifted

    def has_data(self, signal: TransitSignal) -> bool:
        return bool(signal.alerts)

    def significant_alerts(self, signal: TransitSignal) -> list[TransitAlert]:
        return [a for a in signal.alerts if a.delay_min >= self.delay_threshold_min]

    def _buffer_first(self, seq: list[ItineraryItem]) -> list[ItineraryItem]:
        return seq[self.max_shifted:] + seq[:self.max_shifted]

    def propose(
        self,
        stops: Sequence[Stop],
        itinerary: Itinerary,
        signal: TransitSignal,
    ) -> Optional[Proposal]:
        delays = self.significant_alerts(signal)
        if not delays:
            return None

        reasons = [
            f"Transit delay detected: {a.line} delayed by {a.delay_min} min" for a in delays
        ]
        reasons.append("Reordered nearby stops to reduce idle time during delays")

        ordered = rearrange_unlocked(itinerary.items, locked_ids_of(stops), self._buffer_first)
        return Proposal(ordered=ordered, reasons=reasons)
