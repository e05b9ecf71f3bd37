import pytest

from adaptive_planner.exceptions import TripNotFound
from adaptive_planner.modules.infrastructure.event_bus import EventBus
from adaptive_planner.modules.planning.trip_state import TripPlan, TripRegistry
from adaptive_planner.schemas.itinerary import Itinerary, TripSettings
from adaptive_planner.schemas.signals import (
    CommunitySignal,
    CrowdSignal,
    TransitAlert,
    TransitSignal,
    WeatherSignal,
)


@pytest.fixture
def plan(settings):
    return TripPlan(settings=settings)


def test_versions_are_numbered_in_order(plan):
    assert plan.latest is None
    assert plan.latest_itinerary is None

    first = plan.append_version(Itinerary())
    second = plan.append_version(Itinerary(total_travel_min=12))

    assert (first.version, second.version) == (1, 2)
    assert plan.latest is second
    assert plan.latest_itinerary.total_travel_min == 12


def test_replace_stops_is_full_set(plan, make_stop):
    plan.replace_stops([make_stop("A"), make_stop("B")])
    assert plan.replace_stops([make_stop("C")]) == 1
    assert list(plan.stops_by_id()) == ["act_c"]


def test_signals_are_last_write_wins(plan):
    plan.set_signal(TransitSignal(alerts=[TransitAlert(line="U2", delay_min=4)]))
    latest = TransitSignal(alerts=[TransitAlert(line="U2", delay_min=25)])
    plan.set_signal(latest)
    plan.set_signal(WeatherSignal(risk_hours=["15:00"]))
    plan.set_signal(CrowdSignal())
    plan.set_signal(CommunitySignal())

    assert plan.transit is latest
    assert plan.weather.risk_hours == ["15:00"]
    assert plan.crowds is not None
    assert plan.community is not None


def test_unknown_signal_type(plan):
    with pytest.raises(TypeError, match="unsupported signal type"):
        plan.set_signal({"riskHours": ["14:00"]})


def test_registry_lookup():
    registry = TripRegistry()
    plan = registry.add(TripPlan(settings=TripSettings(trip_id="trip_9")))

    assert registry.get("trip_9") is plan
    assert "trip_9" in registry
    assert registry.trip_ids() == ["trip_9"]
    with pytest.raises(TripNotFound, match="Trip nope not found"):
        registry.get("nope")


def test_registry_lock_is_stable_per_trip():
    registry = TripRegistry()
    registry.add(TripPlan(settings=TripSettings(trip_id="a")))
    registry.add(TripPlan(settings=TripSettings(trip_id="b")))

    assert registry.lock_for("a") is registry.lock_for("a")
    assert registry.lock_for("a") is not registry.lock_for("b")
    with pytest.raises(TripNotFound):
        registry.lock_for("c")


def test_event_bus_routes_by_name():
    bus = EventBus()
    named, everything = [], []
    bus.subscribe("suggestion:new", named.append)
    bus.subscribe("*", everything.append)

    bus.publish("trip_1", "itinerary:version", {"version": 1})
    event = bus.publish("trip_1", "suggestion:new", {"id": "sug_x"})

    assert named == [event]
    assert [e.name for e in everything] == ["itinerary:version", "suggestion:new"]
    assert event.trip_id == "trip_1"
