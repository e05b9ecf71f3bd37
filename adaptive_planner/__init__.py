"""
adaptive_planner
----------------
Single-day itinerary scheduling plus signal-driven replanning suggestions.
"""

from __future__ import annotations
import logging

from adaptive_planner import config

__version__ = "0.1.0"


def configure_logging(level: str | None = None) -> None:
    """Set up root logging for host processes. The library never calls this itself."""
    logging.basicConfig(
        level=(level or config.LOG_LEVEL).upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
