import sys
import os
import pytest

# backend/ holds the importable top-level packages (config, schemas, modules, ...)
_root = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
_backend_dir = os.path.join(_root, "backend")
if _backend_dir not in sys.path:
    sys.path.insert(0, _backend_dir)

from schemas.location import Coordinates, Location, OperatingPeriod
from schemas.trip import TripBuilderData


def make_location(
    loc_id,
    name=None,
    city="Kyoto",
    category="shrine",
    lat=35.0116,
    lng=135.7681,
    minutes=60,
    region="Kansai",
    **kwargs,
):
    """Location factory; minutes=None leaves duration to the category default."""
    return Location(
        id=loc_id,
        name=name or f"Place {loc_id}",
        city=city,
        region=region,
        category=category,
        coordinates=Coordinates(lat, lng) if lat is not None else None,
        recommended_visit_minutes=minutes,
        **kwargs,
    )


def _spread(prefix, city, base_lat, base_lng, categories, count, region="Kansai"):
    """`count` locations in a tight grid around (base_lat, base_lng)."""
    out = []
    for i in range(count):
        out.append(make_location(
            f"{prefix}-{i + 1:02d}",
            name=f"{city} {categories[i % len(categories)].title()} {i + 1}",
            city=city,
            category=categories[i % len(categories)],
            lat=base_lat + (i % 4) * 0.004,
            lng=base_lng + (i // 4) * 0.004,
            region=region,
            rating=4.0 + (i % 5) / 10,
            review_count=100 + i * 10,
        ))
    return out


_SIGHTS = ["shrine", "temple", "park", "museum", "garden", "shopping", "landmark"]


@pytest.fixture
def kyoto_locations():
    """15 non-food Kyoto sights plus two restaurants."""
    sights = _spread("kyo", "Kyoto", 35.0000, 135.7600, _SIGHTS, 15)
    food = [
        make_location("kyo-r1", name="Kyoto Ramen", category="restaurant", lat=35.003, lng=135.765),
        make_location("kyo-r2", name="Kyoto Cafe", category="cafe", lat=35.004, lng=135.766),
    ]
    return sights + food


@pytest.fixture
def nara_locations():
    return _spread("nara", "Nara", 34.6800, 135.8000, _SIGHTS, 8)


@pytest.fixture
def osaka_locations():
    return _spread("osa", "Osaka", 34.6900, 135.5000, _SIGHTS, 8)


@pytest.fixture
def tokyo_locations():
    return _spread("tok", "Tokyo", 35.6700, 139.7000, _SIGHTS, 12, region="Kanto")


@pytest.fixture
def kansai_snapshot(kyoto_locations, nara_locations, osaka_locations):
    return kyoto_locations + nara_locations + osaka_locations


@pytest.fixture
def kyoto_trip():
    return TripBuilderData(
        duration=3,
        cities=["kyoto"],
        interests=["culture", "nature"],
        style="balanced",
    )


class FakeWeatherSource:
    """In-memory weather source; cities in `failing` raise like the real tool."""

    def __init__(self, forecasts=None, failing=()):
        self.forecasts = forecasts or {}
        self.failing = set(failing)
        self.calls = []

    def fetch_forecast(self, city_id, start, end):
        self.calls.append((city_id, start, end))
        if city_id in self.failing:
            raise RuntimeError(f"ERROR_WEATHER_FETCH: {city_id}: boom")
        return dict(self.forecasts.get(city_id, {}))


class FakeLocationSource:
    def __init__(self, locations):
        self.locations = locations
        self.calls = []

    def fetch_all_locations(self, cities=None):
        self.calls.append(cities)
        if not cities:
            return list(self.locations)
        wanted = {c.lower() for c in cities}
        return [l for l in self.locations if l.city.lower() in wanted]
