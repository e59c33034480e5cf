"""
db/redis_client.py
-------------------
redis-py client — singleton plus helpers for the weather forecast cache.

Key schema:

  weather:{city}:{start}:{end}
       Type : String (JSON object {iso_date: forecast dict})
       TTL  : WEATHER_CACHE_TTL (default 10,800 s = 3 hours)

Environment variables (set in config.py):
    REDIS_HOST          default: localhost
    REDIS_PORT          default: 6379
    REDIS_DB            default: 0
    REDIS_PASSWORD      default: ""  (empty = no auth)
    WEATHER_CACHE_TTL   default: 10800
"""

from __future__ import annotations

from typing import Any

import redis

import config

# Module-level singleton; initialised lazily on first call to get_redis()
_client: redis.Redis | None = None


def get_redis() -> redis.Redis:
    """Return the singleton Redis client, creating it on first call."""
    global _client
    if _client is None:
        kwargs: dict[str, Any] = {
            "host":             config.REDIS_HOST,
            "port":             config.REDIS_PORT,
            "db":               config.REDIS_DB,
            "decode_responses": True,   # return str, not bytes
        }
        if config.REDIS_PASSWORD:
            kwargs["password"] = config.REDIS_PASSWORD
        _client = redis.Redis(**kwargs)
    return _client


# ── Weather forecast cache ─────────────────────────────────────────────────────

def _weather_key(city: str, start: str, end: str) -> str:
    return f"weather:{city}:{start}:{end}"


def get_cached_forecast(city: str, start: str, end: str) -> str | None:
    """Return the cached JSON payload, or None on cache miss."""
    return get_redis().get(_weather_key(city, start, end))


def set_cached_forecast(city: str, start: str, end: str, payload: str) -> None:
    """Write one forecast payload with WEATHER_CACHE_TTL expiry."""
    get_redis().setex(_weather_key(city, start, end), config.WEATHER_CACHE_TTL, payload)
