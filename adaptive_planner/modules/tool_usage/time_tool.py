"""
modules/tool_usage/time_tool.py
---------------------------------
Arithmetic tool: "HH:MM" wall-clock strings <-> minutes since midnight.
Local computation only. Everything is clamped to a single day.
"""

from __future__ import annotations
import math

from adaptive_planner.exceptions import InvalidTimeFormat

MINUTES_PER_DAY: int = 1440
LAST_MINUTE: int = MINUTES_PER_DAY - 1   # 23:59


def clamp(value: float, lo: float, hi: float) -> float:
    return min(max(value, lo), hi)


def parse_hhmm(time_str: str) -> int:
    """
    Parse "HH:MM" into minutes since midnight.

    Range is not validated ("25:00" -> 1500); only the two components must be
    integers.

    Raises:
        InvalidTimeFormat: no ':' separator or non-integer components.
    """
    parts = str(time_str).split(":")
    if len(parts) != 2:
        raise InvalidTimeFormat(f"expected HH:MM, got {time_str!r}", {"value": time_str})
    try:
        hours, minutes = int(parts[0]), int(parts[1])
    except ValueError:
        raise InvalidTimeFormat(
            f"expected HH:MM, got {time_str!r}", {"value": time_str}
        ) from None
    return hours * 60 + minutes


def format_hhmm(minutes: float) -> str:
    """Format minutes since midnight as zero-padded "HH:MM", clamped to 00:00..23:59."""
    clamped = int(clamp(minutes, 0, LAST_MINUTE))
    return f"{clamped // 60:02d}:{clamped % 60:02d}"


def seconds_to_minutes(seconds: float) -> int:
    """Whole minutes, halves rounded up (150 s -> 3 min)."""
    return math.floor(seconds / 60 + 0.5)


def parse_hour(time_str: str) -> int:
    """Hour component only (minutes ignored). Used for hour-granularity checks."""
    return parse_hhmm(time_str) // 60


def within_minutes(time_str: str, anchors: list[str], window_min: int) -> bool:
    """True if time_str lies within window_min minutes of any anchor time."""
    t = parse_hhmm(time_str)
    return any(abs(t - parse_hhmm(a)) <= window_min for a in anchors)


def within_hours(time_str: str, anchors: list[str], window_hours: int) -> bool:
    """Hour-granularity variant of within_minutes (minutes are ignored on both sides)."""
    h = parse_hour(time_str)
    return any(abs(h - parse_hour(a)) <= window_hours for a in anchors)
