"""
modules/tool_usage/weather_tool.py
------------------------------------
Turns an OpenWeather 5-day/3-hour forecast into a WeatherSignal.

A forecast slot is a rain risk when:
    pop ≥ WEATHER_POP_THRESHOLD     (probability of precipitation)
    OR any condition ∈ {Rain, Thunderstorm, Drizzle}

Risk hours are the slot times as "HH:MM" (local to the forecast's `dt`),
deduplicated, in forecast order.
"""

from __future__ import annotations
import logging
from datetime import datetime, timezone, timedelta
from typing import Any

import requests

from adaptive_planner import config
from adaptive_planner.exceptions import ProviderUnavailable
from adaptive_planner.schemas.signals import WeatherSignal

logger = logging.getLogger(__name__)

RISKY_CONDITIONS: set[str] = {"Rain", "Thunderstorm", "Drizzle"}


def _slot_time(slot: dict[str, Any], tz_offset_sec: int) -> str:
    when = datetime.fromtimestamp(slot["dt"], tz=timezone(timedelta(seconds=tz_offset_sec)))
    return f"{when.hour:02d}:{when.minute:02d}"


def summarize_risk_hours(risk_hours: list[str]) -> str:
    if not risk_hours:
        return "No rain risk detected"
    if len(risk_hours) == 1:
        return f"Rain risk around {risk_hours[0]}"
    return f"Rain risk between {risk_hours[0]}–{risk_hours[-1]}"


def analyze_weather_forecast(
    raw: dict[str, Any],
    pop_threshold: float = config.WEATHER_POP_THRESHOLD,
) -> WeatherSignal:
    """
    Args:
        raw: OpenWeather forecast response ({"list": [...], "city": {"timezone": …}}).

    Returns:
        WeatherSignal with risk hours and a one-line summary.
    """
    tz_offset = int(raw.get("city", {}).get("timezone", 0) or 0)
    risk_hours: list[str] = []

    for slot in raw.get("list", []):
        conditions = {w.get("main") for w in slot.get("weather", [])}
        risky = slot.get("pop", 0.0) >= pop_threshold or bool(conditions & RISKY_CONDITIONS)
        if not risky:
            continue
        hhmm = _slot_time(slot, tz_offset)
        if hhmm not in risk_hours:
            risk_hours.append(hhmm)

    return WeatherSignal(risk_hours=risk_hours, summary=summarize_risk_hours(risk_hours))


class WeatherTool:
    """Fetches raw OpenWeather forecasts over HTTP."""

    def __init__(
        self,
        api_key: str = config.OPENWEATHER_API_KEY,
        api_url: str = config.OPENWEATHER_FORECAST_URL,
        timeout: float = config.PROVIDER_TIMEOUT_SEC,
    ):
        self.api_key = api_key
        self.api_url = api_url
        self.timeout = timeout

    def fetch_forecast(self, lat: float, lng: float) -> dict[str, Any]:
        if not self.api_key:
            raise ProviderUnavailable("OpenWeather API key is required")
        params = {"lat": lat, "lon": lng, "appid": self.api_key, "units": "metric"}
        try:
            response = requests.get(self.api_url, params=params, timeout=self.timeout)
            response.raise_for_status()
            return response.json()
        except (requests.RequestException, ValueError) as exc:
            raise ProviderUnavailable(f"OpenWeather forecast failed: {exc}") from exc

    def fetch_signal(self, lat: float, lng: float) -> WeatherSignal:
        signal = analyze_weather_forecast(self.fetch_forecast(lat, lng))
        logger.debug("weather at (%.4f, %.4f): %s", lat, lng, signal.summary)
        return signal
