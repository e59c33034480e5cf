"""
modules/planning/city_sequence.py
-----------------------------------
City Sequencer: which cities the trip visits, and which city each day is in.

resolve_city_sequence() tries an ordered list of strategies; the first one
that yields at least one city wins. Every strategy deduplicates by city key
and only accepts cities that have indexed locations. The last strategy always
succeeds, so the result is never empty.

  1. explicit cities   (per city: fall back to the first location-bearing
                        city in the same region)
  2. explicit regions  (one location-bearing city per region)
  3. default rotation  kyoto → tokyo → osaka
  4. first indexed location's city
  5. synthetic "Japan" placeholder
"""

from __future__ import annotations
from typing import Callable, Optional

from schemas.trip import TripBuilderData
from modules.planning.location_index import CityInfo, LocationIndex
from modules.tool_usage.city_tool import REGIONS, get_region_for_city, normalize_key


DEFAULT_CITY_ROTATION: tuple[str, ...] = ("kyoto", "tokyo", "osaka")
FALLBACK_CITY = CityInfo(key="japan", label="Japan")


class _SequenceBuilder:
    """Accumulates CityInfo entries, skipping repeats and empty cities."""

    def __init__(self, index: LocationIndex) -> None:
        self.index = index
        self.cities: list[CityInfo] = []
        self._seen: set[str] = set()

    def add(self, city_key: Optional[str]) -> bool:
        key = normalize_key(city_key)
        if not key or key in self._seen:
            return False
        info = self.index.get_city(key)
        if info is None or not self.index.has_locations(key):
            return False
        self.cities.append(info)
        self._seen.add(key)
        return True

    def add_first_in_region(self, region_id: Optional[str]) -> bool:
        region = REGIONS.get(region_id or "")
        if region is None:
            return False
        return any(self.add(city.id) for city in region.cities)


Strategy = Callable[[TripBuilderData, _SequenceBuilder], None]


def _from_cities(data: TripBuilderData, builder: _SequenceBuilder) -> None:
    for city in data.cities:
        if not builder.add(city):
            builder.add_first_in_region(get_region_for_city(city))


def _from_regions(data: TripBuilderData, builder: _SequenceBuilder) -> None:
    for region_id in data.regions:
        builder.add_first_in_region(normalize_key(region_id))


def _from_default_rotation(data: TripBuilderData, builder: _SequenceBuilder) -> None:
    for city in DEFAULT_CITY_ROTATION:
        builder.add(city)


def _from_first_location(data: TripBuilderData, builder: _SequenceBuilder) -> None:
    if builder.index.locations:
        builder.add(builder.index.locations[0].city)


def _fallback(data: TripBuilderData, builder: _SequenceBuilder) -> None:
    builder.cities.append(FALLBACK_CITY)


CITY_RESOLUTION_STRATEGIES: tuple[Strategy, ...] = (
    _from_cities,
    _from_regions,
    _from_default_rotation,
    _from_first_location,
    _fallback,
)


def resolve_city_sequence(data: TripBuilderData, index: LocationIndex) -> list[CityInfo]:
    for strategy in CITY_RESOLUTION_STRATEGIES:
        builder = _SequenceBuilder(index)
        strategy(data, builder)
        if builder.cities:
            return builder.cities
    return [FALLBACK_CITY]


def expand_city_sequence_for_days(sequence: list[CityInfo], total_days: int) -> list[CityInfo]:
    """One CityInfo per day, cycling through *sequence* round-robin."""
    if not sequence or total_days <= 0:
        return []
    return [sequence[day % len(sequence)] for day in range(total_days)]
