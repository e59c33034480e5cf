"""
config.py
---------
Central configuration for the itinerary engine.
All secrets loaded from environment variables — never hard-coded.
"""

import os
from pathlib import Path

from dotenv import load_dotenv

# Load .env from the backend directory (if it exists) so env vars in that file
# are picked up by os.getenv() below.
_env_path = Path(__file__).parent / ".env"
if _env_path.exists():
    load_dotenv(_env_path, override=True)


def _flag(name: str, default: str) -> bool:
    return os.getenv(name, default).lower() in ("1", "true", "yes")


# ── Weather (OpenWeatherMap 5-day / 3-hour forecast) ──────────────────────────
# Obtain at: https://home.openweathermap.org/api_keys
# Set env: OPENWEATHER_API_KEY=...
OPENWEATHER_API_KEY: str = os.getenv("OPENWEATHER_API_KEY", "")
OPENWEATHER_BASE_URL: str = os.getenv(
    "OPENWEATHER_BASE_URL", "https://api.openweathermap.org/data/2.5"
)
WEATHER_REQUEST_TIMEOUT: int = int(os.getenv("WEATHER_REQUEST_TIMEOUT", "10"))

# Stub mode returns a deterministic mock forecast; forced on when no key is set.
USE_STUB_WEATHER: bool = _flag("USE_STUB_WEATHER", "true") or not OPENWEATHER_API_KEY

# ── PostgreSQL (location snapshot) ────────────────────────────────────────────
POSTGRES_HOST: str     = os.getenv("POSTGRES_HOST", "localhost")
POSTGRES_PORT: int     = int(os.getenv("POSTGRES_PORT", "5432"))
POSTGRES_DB: str       = os.getenv("POSTGRES_DB", "itinerary")
POSTGRES_USER: str     = os.getenv("POSTGRES_USER", "postgres")
POSTGRES_PASSWORD: str = os.getenv("POSTGRES_PASSWORD", "")
POSTGRES_MIN_CONN: int = int(os.getenv("POSTGRES_MIN_CONN", "1"))
POSTGRES_MAX_CONN: int = int(os.getenv("POSTGRES_MAX_CONN", "5"))

# ── Redis (weather forecast cache) ────────────────────────────────────────────
REDIS_HOST: str     = os.getenv("REDIS_HOST", "localhost")
REDIS_PORT: int     = int(os.getenv("REDIS_PORT", "6379"))
REDIS_DB: int       = int(os.getenv("REDIS_DB", "0"))
REDIS_PASSWORD: str = os.getenv("REDIS_PASSWORD", "")

USE_WEATHER_CACHE: bool = _flag("USE_WEATHER_CACHE", "false")
WEATHER_CACHE_TTL: int  = int(os.getenv("WEATHER_CACHE_TTL", str(3 * 3600)))

# ── Scheduling ────────────────────────────────────────────────────────────────
# Trip length used when duration is absent, zero or negative.
DEFAULT_TOTAL_DAYS: int = int(os.getenv("DEFAULT_TOTAL_DAYS", "5"))

# Upper bound on day trips; the effective cap is min(MAX_DAY_TRIPS, ceil(days / 4)).
MAX_DAY_TRIPS: int = int(os.getenv("MAX_DAY_TRIPS", "4"))
DAY_TRIP_MIN_UNUSED_LOCATIONS: int = int(os.getenv("DAY_TRIP_MIN_UNUSED_LOCATIONS", "3"))
TARGET_ACTIVITIES_PER_DAY: int = int(os.getenv("TARGET_ACTIVITIES_PER_DAY", "3"))

# Zone clustering (grid cells sized to a comfortable walk)
ZONE_CELL_SIZE_KM: float = float(os.getenv("ZONE_CELL_SIZE_KM", "1.5"))
ZONE_MIN_SIZE: int       = int(os.getenv("ZONE_MIN_SIZE", "3"))
ZONE_MIN_LOCATIONS: int  = int(os.getenv("ZONE_MIN_LOCATIONS", "6"))

# Geo validation
MAX_DISTANCE_FROM_CITY_KM: float = float(os.getenv("MAX_DISTANCE_FROM_CITY_KM", "100"))

# Haversine walking-speed used by DistanceTool (km/h)
WALKING_SPEED_KMH: float = float(os.getenv("WALKING_SPEED_KMH", "4.5"))

# ── Observability ─────────────────────────────────────────────────────────────
LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")
LOGS_DIR: str = os.getenv("LOGS_DIR", str(Path(__file__).parent.parent / "logs"))
ENABLE_RUN_LOG: bool = _flag("ENABLE_RUN_LOG", "false")
