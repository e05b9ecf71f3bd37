"""
modules/memory/suggestion_ledger.py
-------------------------------------
Stores proposed suggestions per trip, tracks their lifecycle and keeps the
per-trip feedback Weights.

Duplicate rule (the only one): a new suggestion is dropped when a stored
suggestion has the same kind AND the same before-plan stop-id sequence.
Trigger and reasons are not compared.

Lifecycle:
    pending  → accepted | rejected | applied
    accepted → applied
    rejected, applied: terminal

Weights start neutral (all 1.0) on first access. Each feedback moves the
trigger's weight by ±WEIGHT_STEP (up on accept) and change_aversion by
∓AVERSION_STEP, each clamped to [WEIGHT_MIN, WEIGHT_MAX].

add / set_status / update_weights read-then-write the same per-trip
collections, so each trip has its own lock. Trips never share a lock.
"""

from __future__ import annotations
import logging
import threading
from dataclasses import replace
from typing import Optional

from adaptive_planner import config
from adaptive_planner.exceptions import InvalidStatusTransition, SuggestionNotFound
from adaptive_planner.modules.tool_usage.time_tool import clamp
from adaptive_planner.schemas.suggestion import (
    Suggestion,
    SuggestionStatus,
    SuggestionTrigger,
    Weights,
)

logger = logging.getLogger(__name__)

WEIGHT_STEP: float   = 0.05
AVERSION_STEP: float = 0.03

# trigger → Weights field; "mixed" has no dedicated weight
TRIGGER_WEIGHT_FIELD: dict[SuggestionTrigger, Optional[str]] = {
    SuggestionTrigger.WEATHER: "weather",
    SuggestionTrigger.CROWDS:  "crowd",
    SuggestionTrigger.TRANSIT: "transit",
    SuggestionTrigger.TRAFFIC: "travel",
    SuggestionTrigger.MIXED:   None,
}

ALLOWED_TRANSITIONS: dict[SuggestionStatus, set[SuggestionStatus]] = {
    SuggestionStatus.PENDING:  {SuggestionStatus.ACCEPTED, SuggestionStatus.REJECTED,
                                SuggestionStatus.APPLIED},
    SuggestionStatus.ACCEPTED: {SuggestionStatus.APPLIED},
    SuggestionStatus.REJECTED: set(),
    SuggestionStatus.APPLIED:  set(),
}


def _clamp_weight(value: float) -> float:
    return round(clamp(value, config.WEIGHT_MIN, config.WEIGHT_MAX), 4)


def apply_feedback(
    weights: Weights,
    trigger: SuggestionTrigger | str,
    accepted: bool,
) -> Weights:
    """Pure transform: returns the next Weights version, never mutates."""
    sign = 1 if accepted else -1
    changes: dict[str, float] = {
        "change_aversion": _clamp_weight(weights.change_aversion - sign * AVERSION_STEP),
    }
    field_name = TRIGGER_WEIGHT_FIELD[SuggestionTrigger(trigger)]
    if field_name is not None:
        changes[field_name] = _clamp_weight(getattr(weights, field_name) + sign * WEIGHT_STEP)
    return replace(weights, version=weights.version + 1, **changes)


def dedup_key(suggestion: Suggestion) -> tuple[str, str]:
    return suggestion.kind.value, ",".join(suggestion.before_ids)


class SuggestionLedger:
    """
    Usage:
        ledger = SuggestionLedger()
        if ledger.add(trip_id, suggestion):
            sink.publish(trip_id, "suggestion:new", suggestion)
    """

    def __init__(self) -> None:
        self._suggestions: dict[str, list[Suggestion]] = {}
        self._weights: dict[str, Weights] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._guard = threading.Lock()

    def _lock(self, trip_id: str) -> threading.Lock:
        with self._guard:
            return self._locks.setdefault(trip_id, threading.Lock())

    # ── Suggestions ───────────────────────────────────────────────────────────

    def add(self, trip_id: str, suggestion: Suggestion) -> bool:
        """Store a suggestion. Returns False (and stores nothing) for duplicates."""
        key = dedup_key(suggestion)
        with self._lock(trip_id):
            stored = self._suggestions.setdefault(trip_id, [])
            if any(dedup_key(s) == key for s in stored):
                logger.info("Skipping duplicate suggestion of kind: %s", suggestion.kind.value)
                return False
            stored.append(suggestion)
            return True

    def get(self, trip_id: str, suggestion_id: str) -> Suggestion:
        for s in self._suggestions.get(trip_id, []):
            if s.suggestion_id == suggestion_id:
                return s
        raise SuggestionNotFound(
            f"Suggestion {suggestion_id} not found",
            {"trip_id": trip_id, "suggestion_id": suggestion_id},
        )

    def list_suggestions(
        self,
        trip_id: str,
        status: SuggestionStatus | str | None = None,
    ) -> list[Suggestion]:
        stored = list(self._suggestions.get(trip_id, []))
        if status is None:
            return stored
        status = SuggestionStatus(status)
        return [s for s in stored if s.status is status]

    def _transition(
        self,
        trip_id: str,
        suggestion_id: str,
        status: SuggestionStatus,
    ) -> tuple[Suggestion, bool]:
        """Caller holds the trip lock. Returns (suggestion, changed)."""
        stored = self._suggestions.get(trip_id, [])
        for idx, current in enumerate(stored):
            if current.suggestion_id != suggestion_id:
                continue
            if current.status is status:
                return current, False
            if status not in ALLOWED_TRANSITIONS[current.status]:
                raise InvalidStatusTransition(
                    f"Cannot move suggestion from {current.status.value} to {status.value}",
                    {"suggestion_id": suggestion_id, "current": current.status.value},
                )
            updated = current.model_copy(update={"status": status})
            stored[idx] = updated
            logger.debug("suggestion %s: %s -> %s", suggestion_id,
                         current.status.value, status.value)
            return updated, True
        raise SuggestionNotFound(
            f"Suggestion {suggestion_id} not found",
            {"trip_id": trip_id, "suggestion_id": suggestion_id},
        )

    def set_status(
        self,
        trip_id: str,
        suggestion_id: str,
        status: SuggestionStatus | str,
    ) -> Suggestion:
        """
        Replace the stored suggestion with a copy carrying the new status.
        Setting the current status again is a no-op.

        Raises:
            SuggestionNotFound:       unknown id.
            InvalidStatusTransition:  change outside ALLOWED_TRANSITIONS.
        """
        with self._lock(trip_id):
            suggestion, _ = self._transition(trip_id, suggestion_id, SuggestionStatus(status))
            return suggestion

    def mark_applied(self, trip_id: str, suggestion_id: str) -> Suggestion:
        """
        Claim a suggestion for applying. Exactly one caller wins; the others
        (and any later call) get InvalidStatusTransition.
        """
        with self._lock(trip_id):
            suggestion, changed = self._transition(trip_id, suggestion_id, SuggestionStatus.APPLIED)
            if not changed:
                raise InvalidStatusTransition(
                    f"Suggestion {suggestion_id} is already applied",
                    {"suggestion_id": suggestion_id, "current": suggestion.status.value},
                )
            return suggestion

    def record_feedback(self, trip_id: str, suggestion_id: str, accepted: bool) -> Weights:
        """
        Accept/reject a suggestion and nudge the weights in one step.
        Repeating the same feedback leaves the weights untouched.
        """
        status = SuggestionStatus.ACCEPTED if accepted else SuggestionStatus.REJECTED
        with self._lock(trip_id):
            suggestion, changed = self._transition(trip_id, suggestion_id, status)
            current = self._weights.setdefault(trip_id, Weights())
            if not changed:
                return current
            updated = apply_feedback(current, suggestion.trigger, accepted)
            self._weights[trip_id] = updated
            return updated

    # ── Weights ───────────────────────────────────────────────────────────────

    def weights(self, trip_id: str) -> Weights:
        with self._lock(trip_id):
            return self._weights.setdefault(trip_id, Weights())

    def update_weights(
        self,
        trip_id: str,
        trigger: SuggestionTrigger | str,
        accepted: bool,
    ) -> Weights:
        with self._lock(trip_id):
            current = self._weights.get(trip_id, Weights())
            updated = apply_feedback(current, trigger, accepted)
            self._weights[trip_id] = updated
            return updated
