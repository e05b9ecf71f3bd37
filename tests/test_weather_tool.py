from datetime import datetime, timezone
from unittest.mock import MagicMock, patch

import pytest
import requests

from adaptive_planner.exceptions import ProviderUnavailable
from adaptive_planner.modules.tool_usage.weather_tool import (
    WeatherTool,
    analyze_weather_forecast,
    summarize_risk_hours,
)


def ts(hour):
    return int(datetime(2026, 10, 17, hour, 0, tzinfo=timezone.utc).timestamp())


def slot(hour, pop=0.0, main="Clear"):
    return {"dt": ts(hour), "pop": pop, "weather": [{"main": main}]}


FORECAST = {
    "city": {"timezone": 0},
    "list": [
        slot(9),
        slot(12, pop=0.8, main="Clouds"),
        slot(15, pop=0.1, main="Rain"),
        slot(18, pop=0.59),
    ],
}


def test_risky_slots_by_pop_or_condition():
    signal = analyze_weather_forecast(FORECAST)
    assert signal.risk_hours == ["12:00", "15:00"]
    assert signal.summary == "Rain risk between 12:00–15:00"


def test_city_timezone_offset_applies():
    raw = {"city": {"timezone": 3600}, "list": [slot(12, main="Thunderstorm")]}
    assert analyze_weather_forecast(raw).risk_hours == ["13:00"]


def test_repeated_clock_times_are_deduplicated():
    next_day = {"dt": ts(12) + 86400, "pop": 0.9, "weather": []}
    raw = {"list": [slot(12, main="Drizzle"), next_day]}
    assert analyze_weather_forecast(raw).risk_hours == ["12:00"]


def test_custom_pop_threshold():
    assert analyze_weather_forecast(FORECAST, pop_threshold=0.5).risk_hours == ["12:00", "15:00", "18:00"]


@pytest.mark.parametrize("hours, summary", [
    ([], "No rain risk detected"),
    (["14:00"], "Rain risk around 14:00"),
])
def test_summaries(hours, summary):
    assert summarize_risk_hours(hours) == summary


@patch("adaptive_planner.modules.tool_usage.weather_tool.requests.get")
def test_fetch_signal(mock_get):
    mock_get.return_value = MagicMock(json=MagicMock(return_value=FORECAST))

    signal = WeatherTool(api_key="ow-key", api_url="https://weather.example/forecast").fetch_signal(48.85, 2.35)

    assert signal.risk_hours == ["12:00", "15:00"]
    args, kwargs = mock_get.call_args
    assert args == ("https://weather.example/forecast",)
    assert kwargs["params"] == {"lat": 48.85, "lon": 2.35, "appid": "ow-key", "units": "metric"}


@patch("adaptive_planner.modules.tool_usage.weather_tool.requests.get")
def test_fetch_failure_is_provider_unavailable(mock_get):
    mock_get.side_effect = requests.Timeout("read timed out")
    with pytest.raises(ProviderUnavailable, match="OpenWeather forecast failed"):
        WeatherTool(api_key="ow-key").fetch_forecast(0, 0)


def test_fetch_requires_key():
    with pytest.raises(ProviderUnavailable, match="API key is required"):
        WeatherTool(api_key="").fetch_forecast(0, 0)
