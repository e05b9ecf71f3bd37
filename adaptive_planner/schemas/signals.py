"""
schemas/signals.py
------------------
Validated shapes for live disruption signals handed in by the host.

Signals are trip-scoped and last-write-wins per type; the core keeps no
history. Payloads come from third-party feeds, so they are pydantic models
and malformed ones fail loudly at the boundary.
"""

from __future__ import annotations
import re
from datetime import datetime, timezone
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

_HHMM = re.compile(r"^\d{1,2}:\d{2}$")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _check_hhmm(values: List[str]) -> List[str]:
    for v in values:
        if not _HHMM.match(v):
            raise ValueError(f"time {v!r} must be in HH:MM format")
    return values


class WeatherSignal(BaseModel):
    risk_hours: List[str] = []
    summary: str = ""
    observed_at: datetime = Field(default_factory=_utcnow)

    @field_validator("risk_hours")
    def risk_hours_must_be_hhmm(cls, v):
        return _check_hhmm(v)


class CrowdReading(BaseModel):
    place_id: str
    busy_now: float = Field(default=0, ge=0)    # live feeds may exceed 100
    peak_hours: List[str] = []

    @field_validator("peak_hours")
    def peak_hours_must_be_hhmm(cls, v):
        return _check_hhmm(v)


class CrowdSignal(BaseModel):
    crowds: List[CrowdReading] = []
    observed_at: datetime = Field(default_factory=_utcnow)

    def reading_for(self, place_id: str) -> Optional[CrowdReading]:
        for reading in self.crowds:
            if reading.place_id == place_id:
                return reading
        return None


class TransitAlert(BaseModel):
    line: str
    delay_min: int = Field(ge=0)
    message: str = ""


class TransitSignal(BaseModel):
    alerts: List[TransitAlert] = []
    observed_at: datetime = Field(default_factory=_utcnow)


class HazardReport(BaseModel):
    id: str
    type: str
    severity: int = Field(ge=1, le=5)
    message: str
    lat: float = Field(ge=-90, le=90)
    lng: float = Field(ge=-180, le=180)
    expires_at: datetime
    created_at: datetime = Field(default_factory=_utcnow)
    photo_url: Optional[str] = None

    @field_validator("expires_at", "created_at")
    def assume_utc_when_naive(cls, v: datetime) -> datetime:
        return v if v.tzinfo else v.replace(tzinfo=timezone.utc)

    def is_active(self, now: datetime) -> bool:
        return self.expires_at > now


class CommunitySignal(BaseModel):
    reports: List[HazardReport] = []
    observed_at: datetime = Field(default_factory=_utcnow)
