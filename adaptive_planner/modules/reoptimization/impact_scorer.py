"""
modules/reoptimization/impact_scorer.py
-----------------------------------------
Benefit and confidence of a proposed plan change.

impact:
    travel_saved_min = max(0, Σ before.travel − Σ after.travel)
    plus one trigger-specific magnitude from ImpactPolicy:
        weather          → weather_risk_reduced
        crowds           → crowd_reduced
        transit|traffic  → delay_avoided_min

confidence:
    0.55
    + 0.10  if travel_saved_min ≥ 10
    + 0.10  if delay_avoided_min ≥ 10
    − 0.05  per change (moved + swapped)
    clamped to [0.30, 0.95]

The trigger magnitudes are heuristic constants, not a physical model;
swap in a different ImpactPolicy to change them.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Sequence

from adaptive_planner.modules.tool_usage.time_tool import clamp
from adaptive_planner.schemas.itinerary import ItineraryItem
from adaptive_planner.schemas.suggestion import SuggestionImpact, SuggestionTrigger

BASE_CONFIDENCE: float       = 0.55
CONFIDENCE_BONUS: float      = 0.10
BONUS_THRESHOLD_MIN: int     = 10
PER_CHANGE_PENALTY: float    = 0.05
MIN_CONFIDENCE: float        = 0.30
MAX_CONFIDENCE: float        = 0.95


@dataclass(frozen=True)
class ImpactPolicy:
    weather_risk_reduced: float = 0.5
    crowd_reduced: float = 0.4
    delay_avoided_min: int = 10


DEFAULT_POLICY = ImpactPolicy()


def total_travel(items: Sequence[ItineraryItem]) -> int:
    return sum(i.travel_from_prev_min for i in items)


def compute_impact(
    before: Sequence[ItineraryItem],
    after: Sequence[ItineraryItem],
    trigger: SuggestionTrigger | str,
    policy: ImpactPolicy = DEFAULT_POLICY,
) -> SuggestionImpact:
    trigger = SuggestionTrigger(trigger)
    saved = max(0, total_travel(before) - total_travel(after))

    if trigger is SuggestionTrigger.WEATHER:
        return SuggestionImpact(travel_saved_min=saved, weather_risk_reduced=policy.weather_risk_reduced)
    if trigger is SuggestionTrigger.CROWDS:
        return SuggestionImpact(travel_saved_min=saved, crowd_reduced=policy.crowd_reduced)
    if trigger in (SuggestionTrigger.TRANSIT, SuggestionTrigger.TRAFFIC):
        return SuggestionImpact(travel_saved_min=saved, delay_avoided_min=policy.delay_avoided_min)
    return SuggestionImpact(travel_saved_min=saved)


def compute_confidence(
    trigger: SuggestionTrigger | str,
    impact: SuggestionImpact,
    num_changes: int,
) -> float:
    # trigger is accepted for policy symmetry; the current formula ignores it.
    score = BASE_CONFIDENCE
    if impact.travel_saved_min >= BONUS_THRESHOLD_MIN:
        score += CONFIDENCE_BONUS
    if (impact.delay_avoided_min or 0) >= BONUS_THRESHOLD_MIN:
        score += CONFIDENCE_BONUS
    score -= PER_CHANGE_PENALTY * num_changes
    return round(clamp(score, MIN_CONFIDENCE, MAX_CONFIDENCE), 4)
