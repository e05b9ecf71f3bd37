"""
config.py
---------
Central configuration for the adaptive itinerary planner.
All secrets are loaded from environment variables.
"""

import os

# ── Logging ───────────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

# ── Distance matrix provider (Mapbox) ─────────────────────────────────────────
# Empty token → no provider; planner falls back to haversine estimates.
MAPBOX_ACCESS_TOKEN: str    = os.getenv("MAPBOX_ACCESS_TOKEN", "")
MAPBOX_TRAFFIC_PROFILE: str = os.getenv("MAPBOX_TRAFFIC_PROFILE", "mapbox/driving-traffic")
MAPBOX_MATRIX_URL: str      = os.getenv("MAPBOX_MATRIX_URL", "https://api.mapbox.com/directions-matrix/v1")
PROVIDER_TIMEOUT_SEC: float = float(os.getenv("PROVIDER_TIMEOUT_SEC", "10"))

# ── Weather provider (OpenWeather) ────────────────────────────────────────────
OPENWEATHER_API_KEY: str      = os.getenv("OPENWEATHER_API_KEY", "")
OPENWEATHER_FORECAST_URL: str = os.getenv(
    "OPENWEATHER_FORECAST_URL", "https://api.openweathermap.org/data/2.5/forecast"
)

# ── Suggestion builders ───────────────────────────────────────────────────────
WEATHER_RISK_WINDOW_MIN: int   = int(os.getenv("WEATHER_RISK_WINDOW_MIN", "30"))
WEATHER_POP_THRESHOLD: float   = float(os.getenv("WEATHER_POP_THRESHOLD", "0.6"))

# Canonical "very busy" live reading. Earlier builds used 80; 85 is kept.
CROWD_VERY_BUSY_THRESHOLD: int = int(os.getenv("CROWD_VERY_BUSY_THRESHOLD", "85"))
CROWD_PEAK_WINDOW_HOURS: int   = int(os.getenv("CROWD_PEAK_WINDOW_HOURS", "1"))

TRANSIT_DELAY_THRESHOLD_MIN: int = int(os.getenv("TRANSIT_DELAY_THRESHOLD_MIN", "10"))
TRANSIT_MAX_SHIFTED: int         = int(os.getenv("TRANSIT_MAX_SHIFTED", "2"))

COMMUNITY_SIGNAL_RADIUS_M: float    = float(os.getenv("COMMUNITY_SIGNAL_RADIUS_M", "2500"))
COMMUNITY_HAZARD_PROXIMITY_M: float = float(os.getenv("COMMUNITY_HAZARD_PROXIMITY_M", "800"))

# ── Feedback weights ──────────────────────────────────────────────────────────
WEIGHT_MIN: float = float(os.getenv("WEIGHT_MIN", "0.5"))
WEIGHT_MAX: float = float(os.getenv("WEIGHT_MAX", "2.0"))
