"""Shared factories for planner tests."""

import pytest

from adaptive_planner.schemas.itinerary import ItineraryItem, Place, Stop, TripSettings


@pytest.fixture
def make_stop():
    def _make(name, lat=0.0, lng=0.0, duration=60, **kwargs):
        place_kwargs = {k: kwargs.pop(k) for k in ("place_id", "is_indoor", "category") if k in kwargs}
        return Stop(
            place=Place(name=name, lat=lat, lng=lng, **place_kwargs),
            duration_min=duration,
            stop_id=kwargs.pop("stop_id", f"act_{name.lower()}"),
            **kwargs,
        )
    return _make


@pytest.fixture
def make_item():
    def _make(stop, start, end, travel=0):
        return ItineraryItem(
            stop_id=stop.stop_id,
            place_name=stop.place.name,
            start_time=start,
            end_time=end,
            travel_from_prev_min=travel,
        )
    return _make


@pytest.fixture
def settings():
    return TripSettings(trip_id="trip_1", start_time="09:00", end_time="18:00", mode="driving")
