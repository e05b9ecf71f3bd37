"""modules/reoptimization: signal-driven itinerary suggestions."""

from adaptive_planner.modules.reoptimization.base_builder import Proposal, SuggestionBuilder
from adaptive_planner.modules.reoptimization.community_advisor import CommunitySuggestionBuilder
from adaptive_planner.modules.reoptimization.crowd_advisory import CrowdSuggestionBuilder
from adaptive_planner.modules.reoptimization.impact_scorer import (
    ImpactPolicy, compute_confidence, compute_impact,
)
from adaptive_planner.modules.reoptimization.plan_diff import build_plan_diff
from adaptive_planner.modules.reoptimization.suggestion_engine import SuggestionEngine
from adaptive_planner.modules.reoptimization.transit_advisor import TransitSuggestionBuilder
from adaptive_planner.modules.reoptimization.weather_advisor import WeatherSuggestionBuilder

__all__ = [
    "Proposal",
    "SuggestionBuilder",
    "CommunitySuggestionBuilder",
    "CrowdSuggestionBuilder",
    "TransitSuggestionBuilder",
    "WeatherSuggestionBuilder",
    "ImpactPolicy",
    "compute_confidence",
    "compute_impact",
    "build_plan_diff",
    "SuggestionEngine",
]
