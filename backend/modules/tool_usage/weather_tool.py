"""
modules/tool_usage/weather_tool.py
-------------------------------------
Per-city daily forecasts backed by the OpenWeatherMap 5-day/3-hour Forecast API.

Endpoint:
    GET https://api.openweathermap.org/data/2.5/forecast
        ?lat={lat}&lon={lon}&appid={key}&units=metric

No OAuth — plain API key in `appid` query param.

The 3-hour items are aggregated per calendar date: min/max temperature, summed
precipitation, mean humidity. A day with any rain or drizzle item is "rain";
otherwise the middle item's condition wins.

Stub mode (USE_STUB_WEATHER, or no API key) returns a deterministic mock:
every fifth day of the year is rainy, all other days are clear.

Forecasts are optionally cached in Redis (USE_WEATHER_CACHE); cache errors are
logged and bypassed.
"""

from __future__ import annotations
import json
import logging
from dataclasses import asdict, dataclass
from datetime import date, datetime, timedelta, timezone
from typing import Optional

import redis
import requests

import config
from db.redis_client import get_cached_forecast, set_cached_forecast
from modules.tool_usage.city_tool import CITY_CENTER_COORDINATES, normalize_key

logger = logging.getLogger(__name__)

RAINY_CONDITIONS: frozenset[str] = frozenset({"rain", "drizzle", "thunderstorm"})


# ─────────────────────────────────────────────────────────────────────────────
# OWM code → internal condition string
# ─────────────────────────────────────────────────────────────────────────────

def _owm_code_to_condition(code: int) -> str:
    """
    Map an OpenWeatherMap weather condition code to our internal condition string.
    Codes: https://openweathermap.org/weather-conditions
    """
    if 200 <= code < 300:
        return "thunderstorm"
    if 300 <= code < 400:
        return "drizzle"
    if 500 <= code < 600:
        return "rain"
    if 600 <= code < 700:
        return "snow"
    if code in (701, 741):
        return "mist" if code == 701 else "fog"
    if code == 721:
        return "haze"
    if 700 <= code < 800:
        return "fog"
    if 801 <= code <= 804:
        return "clouds"
    return "clear"


_DESCRIPTIONS: dict[str, str] = {
    "clear":        "Clear sky",
    "clouds":       "Cloudy",
    "rain":         "Rainy",
    "drizzle":      "Light rain",
    "thunderstorm": "Thunderstorm",
    "snow":         "Snowy",
    "mist":         "Misty",
    "fog":          "Foggy",
    "haze":         "Hazy",
}


# ─────────────────────────────────────────────────────────────────────────────
# Result dataclass
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class WeatherForecast:
    """One city's aggregated forecast for a single calendar date."""
    date: str                       # ISO yyyy-mm-dd
    condition: str                  # "clear" | "rain" | "snow" | …
    temp_min: float
    temp_max: float
    precipitation_probability: int = 0     # [0, 100]
    precipitation_mm: Optional[float] = None
    humidity: int = 0
    description: str = ""
    is_stub: bool = False

    @property
    def is_rainy(self) -> bool:
        return self.condition in RAINY_CONDITIONS

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, raw: dict) -> "WeatherForecast":
        return cls(**raw)


# ─────────────────────────────────────────────────────────────────────────────
# WeatherTool
# ─────────────────────────────────────────────────────────────────────────────

class WeatherTool:
    """
    Weather source consumed by the itinerary generator.

    fetch_forecast() is blocking (requests); the generator runs one call per
    city concurrently via asyncio.to_thread.
    """

    def __init__(
        self,
        api_key: str | None = None,
        use_stub: bool | None = None,
        use_cache: bool | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.api_key = api_key if api_key is not None else config.OPENWEATHER_API_KEY
        self.use_stub = config.USE_STUB_WEATHER if use_stub is None else use_stub
        if not self.api_key:
            self.use_stub = True
        self.use_cache = config.USE_WEATHER_CACHE if use_cache is None else use_cache
        self._session = session or requests.Session()

    def fetch_forecast(self, city_id: str, start: date, end: date) -> dict[str, WeatherForecast]:
        """
        Return {iso_date: WeatherForecast} for every forecast date in [start, end].

        Raises RuntimeError("ERROR_WEATHER_FETCH: …") on HTTP / transport failure.
        """
        city_key = normalize_key(city_id)
        if self.use_stub:
            return self._mock_forecast(start, end)

        coords = CITY_CENTER_COORDINATES.get(city_key)
        if coords is None:
            logger.warning("No coordinates for city %r; no forecast available", city_key)
            return {}

        cached = self._cache_get(city_key, start, end)
        if cached is not None:
            return cached

        try:
            resp = self._session.get(
                f"{config.OPENWEATHER_BASE_URL}/forecast",
                params={
                    "lat": coords[0],
                    "lon": coords[1],
                    "appid": self.api_key,
                    "units": "metric",
                },
                timeout=config.WEATHER_REQUEST_TIMEOUT,
            )
            resp.raise_for_status()
            payload = resp.json()
        except (requests.RequestException, ValueError) as exc:
            raise RuntimeError(f"ERROR_WEATHER_FETCH: {city_key}: {exc}") from exc

        forecasts = {
            d: f for d, f in self._aggregate(payload.get("list", [])).items()
            if start.isoformat() <= d <= end.isoformat()
        }
        self._cache_set(city_key, start, end, forecasts)
        return forecasts

    # -------------------------------------------------------------------------
    # Private
    # -------------------------------------------------------------------------

    @staticmethod
    def _aggregate(items: list[dict]) -> dict[str, WeatherForecast]:
        by_date: dict[str, list[dict]] = {}
        for item in items:
            day = datetime.fromtimestamp(item["dt"], tz=timezone.utc).date().isoformat()
            by_date.setdefault(day, []).append({
                "temp": item["main"]["temp"],
                "humidity": item["main"].get("humidity", 0),
                "condition": _owm_code_to_condition((item.get("weather") or [{}])[0].get("id", 800)),
                "precip": (item.get("rain") or {}).get("3h") or (item.get("snow") or {}).get("3h") or 0.0,
            })

        out: dict[str, WeatherForecast] = {}
        for day, slots in by_date.items():
            temps = [s["temp"] for s in slots]
            has_rain = any(s["condition"] in ("rain", "drizzle") for s in slots)
            condition = "rain" if has_rain else slots[len(slots) // 2]["condition"]
            total_precip = sum(s["precip"] for s in slots)
            out[day] = WeatherForecast(
                date=day,
                condition=condition,
                temp_min=round(min(temps)),
                temp_max=round(max(temps)),
                precipitation_probability=min(100, round(total_precip * 10)) if has_rain else 0,
                precipitation_mm=round(total_precip, 1) if total_precip > 0 else None,
                humidity=round(sum(s["humidity"] for s in slots) / len(slots)),
                description=_DESCRIPTIONS.get(condition, "Clear sky"),
            )
        return out

    @staticmethod
    def _mock_forecast(start: date, end: date) -> dict[str, WeatherForecast]:
        out: dict[str, WeatherForecast] = {}
        current = start
        while current <= end:
            rainy = current.timetuple().tm_yday % 5 == 0
            out[current.isoformat()] = WeatherForecast(
                date=current.isoformat(),
                condition="rain" if rainy else "clear",
                temp_min=15,
                temp_max=25,
                precipitation_probability=60 if rainy else 0,
                precipitation_mm=5.2 if rainy else None,
                humidity=75 if rainy else 50,
                description="Light rain" if rainy else "Clear sky",
                is_stub=True,
            )
            current += timedelta(days=1)
        return out

    def _cache_get(self, city_key: str, start: date, end: date) -> dict[str, WeatherForecast] | None:
        if not self.use_cache:
            return None
        try:
            raw = get_cached_forecast(city_key, start.isoformat(), end.isoformat())
        except redis.RedisError as exc:
            logger.warning("Weather cache read failed for %s: %s", city_key, exc)
            return None
        if raw is None:
            return None
        return {d: WeatherForecast.from_dict(f) for d, f in json.loads(raw).items()}

    def _cache_set(
        self, city_key: str, start: date, end: date, forecasts: dict[str, WeatherForecast]
    ) -> None:
        if not self.use_cache:
            return
        try:
            set_cached_forecast(
                city_key, start.isoformat(), end.isoformat(),
                json.dumps({d: f.to_dict() for d, f in forecasts.items()}),
            )
        except redis.RedisError as exc:
            logger.warning("Weather cache write failed for %s: %s", city_key, exc)
