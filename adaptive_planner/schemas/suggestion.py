"""
schemas/suggestion.py
---------------------
Suggestion payloads delivered to the host, plus the per-trip feedback weights.

A Suggestion is frozen: the only field that ever changes is status, and
changing it produces a copy (see SuggestionLedger.set_status).
"""

from __future__ import annotations
import secrets
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from adaptive_planner.schemas.itinerary import ItineraryItem


def new_suggestion_id() -> str:
    return f"sug_{secrets.token_urlsafe(9)[:12]}"


class SuggestionKind(str, Enum):
    REORDER = "reorder"
    SWAP = "swap"
    SHIFT = "shift"


class SuggestionTrigger(str, Enum):
    WEATHER = "weather"
    CROWDS = "crowds"
    TRANSIT = "transit"
    TRAFFIC = "traffic"
    MIXED = "mixed"


class SuggestionStatus(str, Enum):
    PENDING = "pending"
    ACCEPTED = "accepted"
    REJECTED = "rejected"
    APPLIED = "applied"


class MovedEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    place_name: str
    from_time: str
    to_time: str


class SwappedEntry(BaseModel):
    model_config = ConfigDict(frozen=True)

    from_place: str
    to_place: str


class PlanDiff(BaseModel):
    model_config = ConfigDict(frozen=True)

    moved: List[MovedEntry] = []
    swapped: List[SwappedEntry] = []
    summary: str = "No changes"

    @property
    def num_changes(self) -> int:
        return len(self.moved) + len(self.swapped)


class SuggestionImpact(BaseModel):
    model_config = ConfigDict(frozen=True)

    travel_saved_min: int = 0
    weather_risk_reduced: Optional[float] = None
    crowd_reduced: Optional[float] = None
    delay_avoided_min: Optional[int] = None


class Suggestion(BaseModel):
    model_config = ConfigDict(frozen=True)

    suggestion_id: str = Field(default_factory=new_suggestion_id)
    kind: SuggestionKind
    trigger: SuggestionTrigger = SuggestionTrigger.MIXED
    status: SuggestionStatus = SuggestionStatus.PENDING
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    reasons: List[str] = []
    impact: SuggestionImpact = Field(default_factory=SuggestionImpact)
    confidence: float = Field(default=0.55, ge=0.0, le=1.0)
    before_plan: Tuple[ItineraryItem, ...] = ()
    after_plan: Tuple[ItineraryItem, ...] = ()
    diff: Optional[PlanDiff] = None

    @property
    def before_ids(self) -> list[str]:
        return [i.stop_id for i in self.before_plan]

    @property
    def after_ids(self) -> list[str]:
        return [i.stop_id for i in self.after_plan]


@dataclass(frozen=True)
class Weights:
    """
    Per-trip preference multipliers, nudged by accept/reject feedback.
    Every field stays within [config.WEIGHT_MIN, config.WEIGHT_MAX].
    """
    weather: float = 1.0
    crowd: float = 1.0
    transit: float = 1.0
    travel: float = 1.0
    change_aversion: float = 1.0
    version: int = 0
