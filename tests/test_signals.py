from datetime import datetime, timedelta, timezone

import pytest
from pydantic import ValidationError

from adaptive_planner.schemas.itinerary import Place, Stop
from adaptive_planner.schemas.signals import (
    CrowdReading,
    CrowdSignal,
    HazardReport,
    TransitAlert,
    WeatherSignal,
)


def test_weather_risk_hours_must_be_hhmm():
    with pytest.raises(ValidationError, match="HH:MM"):
        WeatherSignal(risk_hours=["1400"])


def test_crowd_reading_rejects_negative_busyness():
    with pytest.raises(ValidationError):
        CrowdReading(place_id="pl_1", busy_now=-1)


def test_crowd_reading_allows_values_over_100():
    assert CrowdReading(place_id="pl_1", busy_now=140).busy_now == 140


def test_reading_for():
    signal = CrowdSignal(crowds=[CrowdReading(place_id="pl_1", busy_now=50)])
    assert signal.reading_for("pl_1").busy_now == 50
    assert signal.reading_for("pl_2") is None


def test_transit_delay_cannot_be_negative():
    with pytest.raises(ValidationError):
        TransitAlert(line="M1", delay_min=-3)


@pytest.mark.parametrize("severity", [0, 6])
def test_hazard_severity_range(severity):
    with pytest.raises(ValidationError):
        HazardReport(
            id="r1", type="flood", severity=severity, message="Flooded underpass",
            lat=0, lng=0, expires_at=datetime.now(timezone.utc),
        )


def test_naive_hazard_times_are_utc():
    report = HazardReport(
        id="r1", type="flood", severity=2, message="Flooded underpass",
        lat=0, lng=0, expires_at=datetime(2026, 10, 17, 12, 0),
    )
    assert report.expires_at.tzinfo is timezone.utc
    assert report.is_active(datetime(2026, 10, 17, 11, 59, tzinfo=timezone.utc))
    assert not report.is_active(report.expires_at)
    assert not report.is_active(report.expires_at + timedelta(seconds=1))


def test_stop_needs_positive_duration():
    with pytest.raises(ValueError, match="at least 1 minute"):
        Stop(place=Place(name="A", lat=0, lng=0), duration_min=0)


def test_stop_ids_are_generated():
    a = Stop(place=Place(name="A", lat=0, lng=0), duration_min=10)
    b = Stop(place=Place(name="B", lat=0, lng=0), duration_min=10)
    assert a.stop_id.startswith("act_")
    assert a.stop_id != b.stop_id
