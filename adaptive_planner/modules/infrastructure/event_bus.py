"""
modules/infrastructure/event_bus.py
-------------------------------------
In-process EventSink: the host subscribes transport handlers (SSE, websockets,
queues) per event name; the planner only ever calls publish().
A handler that raises is logged and skipped; the others still run.

Event names used by the planner:
    "suggestion:new"     payload = Suggestion
    "itinerary:version"  payload = ItineraryVersion
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Callable, Dict, List

logger = logging.getLogger(__name__)

SUGGESTION_NEW = "suggestion:new"
ITINERARY_VERSION = "itinerary:version"


@dataclass
class Event:
    trip_id: str
    name: str
    payload: Any
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


Handler = Callable[[Event], None]


class EventBus:
    def __init__(self):
        self._subscribers: Dict[str, List[Handler]] = {}

    def subscribe(self, name: str, handler: Handler) -> None:
        """name "*" receives every event."""
        self._subscribers.setdefault(name, []).append(handler)

    def publish(self, trip_id: str, name: str, payload: Any) -> Event:
        event = Event(trip_id=trip_id, name=name, payload=payload)
        handlers = self._subscribers.get(name, []) + self._subscribers.get("*", [])
        for handler in handlers:
            try:
                handler(event)
            except Exception:
                # a broken transport must not stop delivery or the caller
                logger.exception("handler %r failed on %s for trip %s", handler, name, trip_id)
        logger.debug("published %s for trip %s to %d handler(s)", name, trip_id, len(handlers))
        return event
