"""
exceptions.py
-------------
Error taxonomy for the planner core.

Only InvalidTimeFormat and the ledger errors ever reach a caller of the
planning API. ProviderUnavailable is raised by provider adapters and
recovered inside the planner (haversine fallback).
"""

from __future__ import annotations
from typing import Any


class PlannerError(Exception):
    """Base exception for all planner errors."""

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.context = context or {}


class InvalidTimeFormat(PlannerError, ValueError):
    """A wall-clock string is not parseable as HH:MM."""


class ProviderUnavailable(PlannerError):
    """
    Distance-matrix / forecast provider call failed.

    Examples:
        - missing access token
        - HTTP error or timeout
        - provider returned a non-"Ok" code or malformed payload
    """


class TripNotFound(PlannerError, KeyError):
    """No trip registered under the requested id."""

    def __str__(self) -> str:
        return self.message


class SuggestionNotFound(PlannerError, KeyError):
    """No suggestion stored under the requested id."""

    def __str__(self) -> str:
        return self.message


class InvalidStatusTransition(PlannerError, ValueError):
    """Suggestion lifecycle change outside the allowed table."""
