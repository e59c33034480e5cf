"""
modules/planning/itinerary_generator.py
-----------------------------------------
Itinerary Generator: turns a TripBuilderData skeleton plus a location snapshot
into a day-by-day Itinerary.

Per run (once):
  location fetch → LocationIndex → city sequence → interest sequence
  → weather batch (one concurrent fetch per city, failures tolerated)

Per day:
  1. city from the expanded sequence, consecutive-day counter
  2. day-trip check (≤2 selected cities, trip-wide cap, viable target)
  3. eligible pool: unused, same city, geo-valid, non-food, one row per name
  4. zone for the day
  5. saved places first, slotted by category
  6. slots in order: picker over zone → expanded zone → full city pool
  7. stop the day once the city pool is exhausted

The generator never raises for sparse data; days just get shorter.
"""

from __future__ import annotations

import asyncio
import logging
import random
import uuid
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import Optional, Protocol

import config
from schemas.itinerary import (
    Itinerary,
    ItineraryDay,
    NoteActivity,
    PlaceActivity,
    RecommendationReason,
)
from schemas.location import Coordinates, Location
from schemas.trip import TripBuilderData
from modules.observability.logger import StructuredLogger
from modules.planning.categories import (
    DEFAULT_INTEREST_ROTATION,
    build_tags,
    get_location_duration_minutes,
    is_food_category,
)
from modules.planning.city_sequence import (
    FALLBACK_CITY,
    expand_city_sequence_for_days,
    resolve_city_sequence,
)
from modules.planning.day_trips import (
    DayTripConfig,
    get_day_trips_from_city,
    max_day_trips_for,
    should_suggest_day_trip,
)
from modules.planning.location_index import CityInfo, LocationIndex
from modules.planning.location_picker import PickResult, pick_location_for_time_slot
from modules.planning.location_scoring import LocationScorer, ScoringContext
from modules.planning.reason_formatter import SAVED_REASON, format_recommendation_reason
from modules.planning.scheduling_state import SchedulingState
from modules.planning.time_slots import (
    SLOT_BASE_MINUTES,
    TIME_OF_DAY_SEQUENCE,
    get_slot_budget,
    get_travel_time,
)
from modules.planning.zone_clustering import (
    CityZoneMap,
    cluster_city_locations,
    get_expanded_zone_location_ids,
    get_zone_location_ids,
    select_zone_for_day,
)
from modules.tool_usage.city_tool import normalize_key
from modules.tool_usage.location_tool import LocationTool
from modules.tool_usage.weather_tool import WeatherForecast, WeatherTool
from modules.validation import is_location_valid_for_city

logger = logging.getLogger(__name__)


WEEKDAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
DEFAULT_WEEKDAY = "wednesday"

MAX_ACTIVITIES_PER_SLOT = 10
MAX_PICK_ATTEMPTS_PER_SLOT = 20
MAX_CONSECUTIVE_FAILURES = 3
SLOT_DONE_FRACTION = 0.2

_MEAL_BY_SLOT = {"morning": "breakfast", "afternoon": "lunch", "evening": "dinner"}

# Saved places: category → preferred slot (anything else goes to morning)
_SAVED_SLOT_BY_CATEGORY: dict[str, str] = {
    **dict.fromkeys(("bar", "entertainment"), "evening"),
    **dict.fromkeys(("museum", "shopping", "mall"), "afternoon"),
    **dict.fromkeys(("shrine", "temple", "park", "garden", "market", "nature", "viewpoint"), "morning"),
}
SAVED_SLOT_OVERFLOW = 0.8


class LocationSource(Protocol):
    def fetch_all_locations(self, cities: Optional[list[str]] = None) -> list[Location]: ...


class WeatherSource(Protocol):
    def fetch_forecast(self, city_id: str, start: date, end: date) -> dict[str, WeatherForecast]: ...


# ─────────────────────────────────────────────────────────────────────────────
# Small helpers
# ─────────────────────────────────────────────────────────────────────────────

def resolve_total_days(data: TripBuilderData) -> int:
    if data.duration is not None and data.duration > 0:
        return data.duration
    return config.DEFAULT_TOTAL_DAYS


def resolve_interest_sequence(data: TripBuilderData) -> list[str]:
    return list(data.interests) if data.interests else list(DEFAULT_INTEREST_ROTATION)


def infer_meal_type(slot: str) -> str:
    return _MEAL_BY_SLOT[slot]


def pick_time_slot_for_saved(
    category: Optional[str],
    slot_usage: dict[str, int],
    budgets: Optional[dict[str, int]] = None,
    cost: Optional[dict[str, int]] = None,
) -> str:
    """
    Category-preferred slot while it is under 80% of its budget and the place
    still fits; otherwise the least-filled slot that fits, or the least-filled
    slot overall when none does.

    `cost` is what the place would add to each slot, travel buffer included.
    """
    budgets = budgets or SLOT_BASE_MINUTES
    cost = cost or {}

    def fits(slot: str) -> bool:
        return slot_usage.get(slot, 0) + cost.get(slot, 0) <= budgets[slot]

    preferred = _SAVED_SLOT_BY_CATEGORY.get((category or "").lower(), "morning")
    if slot_usage.get(preferred, 0) < budgets[preferred] * SAVED_SLOT_OVERFLOW and fits(preferred):
        return preferred
    candidates = [s for s in TIME_OF_DAY_SEQUENCE if fits(s)] or list(TIME_OF_DAY_SEQUENCE)
    return min(candidates, key=lambda s: slot_usage.get(s, 0) / budgets[s])


def _day_id(day_number: int, rng: Optional[random.Random]) -> str:
    if rng is None:
        suffix = uuid.uuid4().hex[:8]
    else:
        suffix = uuid.UUID(int=rng.getrandbits(128)).hex[:8]
    return f"day-{day_number}-{suffix}"


# ─────────────────────────────────────────────────────────────────────────────
# Per-day working state
# ─────────────────────────────────────────────────────────────────────────────

@dataclass
class _DayState:
    slot_usage: dict[str, int] = field(default_factory=lambda: dict.fromkeys(TIME_OF_DAY_SEQUENCE, 0))
    slot_counts: dict[str, int] = field(default_factory=lambda: dict.fromkeys(TIME_OF_DAY_SEQUENCE, 0))
    categories: list[str] = field(default_factory=list)
    neighborhoods: list[str] = field(default_factory=list)
    last_coordinates: Optional[Coordinates] = None
    meals_used: set[str] = field(default_factory=set)
    activities: list = field(default_factory=list)

    def assign_meal(self, loc: Location, slot: str) -> tuple[Optional[str], Optional[str]]:
        """One full meal per type per day; further food stops become snacks."""
        if not is_food_category(loc.category):
            return None, None
        meal = infer_meal_type(slot)
        if meal in self.meals_used:
            return "snack", "Cafe / Snack stop"
        self.meals_used.add(meal)
        return meal, f"{meal.capitalize()} spot"

    def record(self, loc: Location, slot: str, minutes: int) -> None:
        self.slot_usage[slot] += minutes
        self.slot_counts[slot] += 1
        if loc.category:
            self.categories.append(loc.category)
        hood = loc.neighborhood or loc.city
        if hood:
            self.neighborhoods.append(hood)
        if loc.coordinates:
            self.last_coordinates = loc.coordinates


# ─────────────────────────────────────────────────────────────────────────────
# Generator
# ─────────────────────────────────────────────────────────────────────────────

class ItineraryGenerator:
    """
    One instance per generation run. Owns the SchedulingState; helpers only
    read it.
    """

    def __init__(
        self,
        data: TripBuilderData,
        index: LocationIndex,
        forecasts: Optional[dict[str, dict[str, WeatherForecast]]] = None,
        favorite_ids: Optional[list[str]] = None,
        seed: Optional[int] = None,
    ) -> None:
        self.data = data
        self.index = index
        self.forecasts = forecasts or {}
        self.state = SchedulingState()
        self.scorer = LocationScorer()
        self.rng = random.Random(seed) if seed is not None else None

        self.total_days = resolve_total_days(data)
        self.pace = data.style or "balanced"
        self.travel_minutes = get_travel_time(self.pace)
        self.interests = resolve_interest_sequence(data)
        self.content_ids = set(data.content_location_ids)

        self.city_sequence = resolve_city_sequence(data, index)
        self.day_cities = expand_city_sequence_for_days(self.city_sequence, self.total_days)

        self.saved_by_city = self._group_saved(list(data.saved_ids) + list(favorite_ids or []))
        self._zone_maps: dict[str, Optional[CityZoneMap]] = {}
        self._used_zones: dict[str, set[str]] = {}
        self._city_day_index: dict[str, int] = {}

    # ── Setup ────────────────────────────────────────────────────────────────

    def _group_saved(self, ids: list[str]) -> dict[str, list[Location]]:
        by_city: dict[str, list[Location]] = {}
        seen: set[str] = set()
        for loc_id in ids:
            loc = self.index.by_id.get(str(loc_id))
            if loc is None or loc.id in seen:
                continue
            seen.add(loc.id)
            by_city.setdefault(normalize_key(loc.city), []).append(loc)
        if by_city:
            logger.info(
                "Saved locations to include: %s",
                {city: [l.name for l in locs] for city, locs in by_city.items()},
            )
        return by_city

    # ── Public ───────────────────────────────────────────────────────────────

    def run(self) -> Itinerary:
        days: list[ItineraryDay] = []
        max_day_trips = max_day_trips_for(self.total_days)
        day_trip_count = 0
        last_city_key = ""
        consecutive = 0

        for day_index, base_city in enumerate(self.day_cities):
            if base_city.key == last_city_key:
                consecutive += 1
            else:
                consecutive = 1
                last_city_key = base_city.key

            city = base_city
            day_trip: Optional[DayTripConfig] = None
            if len(self.data.cities) <= 2 and day_trip_count < max_day_trips:
                day_trip = self._check_day_trip(base_city, consecutive)
                if day_trip is not None:
                    city = self.index.city_info[day_trip.city_id]
                    day_trip_count += 1
                    logger.info(
                        "Day %d: scheduling day trip from %s to %s (%d/%d)",
                        day_index + 1, base_city.key, city.key, day_trip_count, max_day_trips,
                    )

            days.append(self._plan_day(day_index, city, base_city, day_trip))

        return Itinerary(days=days)

    # ── Day trips ────────────────────────────────────────────────────────────

    def _unused_non_food(self, city_key: str) -> list[Location]:
        return [
            loc for loc in self.index.locations_in_city(city_key)
            if not self.state.is_used(loc) and not is_food_category(loc.category)
        ]

    def _check_day_trip(self, base_city: CityInfo, consecutive: int) -> Optional[DayTripConfig]:
        unused_in_base = len(self._unused_non_food(base_city.key))
        rejected: set[str] = {base_city.key}
        while True:
            trip = should_suggest_day_trip(
                base_city.key, consecutive, unused_in_base,
                config.TARGET_ACTIVITIES_PER_DAY, exclude=rejected,
            )
            if trip is None:
                return None
            viable = (
                trip.city_id in self.index.city_info
                and len(self._unused_non_food(trip.city_id)) >= config.DAY_TRIP_MIN_UNUSED_LOCATIONS
            )
            if viable:
                return trip
            rejected.add(trip.city_id)

    # ── Pools and zones ──────────────────────────────────────────────────────

    def _city_pool(self, city: CityInfo) -> list[Location]:
        raw = self.index.locations_in_city(city.key) or self.index.locations_in_region(city.region_id)
        seen_names: set[str] = set()
        pool: list[Location] = []
        for loc in raw:
            if self.state.is_used(loc):
                continue
            # collapse duplicate rows of the same real-world place
            if loc.normalized_name in seen_names:
                continue
            seen_names.add(loc.normalized_name)
            if normalize_key(loc.city) != city.key:
                continue
            if not is_location_valid_for_city(loc, city.key, city.region_id):
                continue
            if is_food_category(loc.category):
                continue
            pool.append(loc)
        return pool

    def _zone_map(self, city: CityInfo) -> Optional[CityZoneMap]:
        if city.key not in self._zone_maps:
            candidates = [
                loc for loc in self.index.locations_in_city(city.key)
                if not is_food_category(loc.category)
                and is_location_valid_for_city(loc, city.key, city.region_id)
            ]
            self._zone_maps[city.key] = cluster_city_locations(candidates)
        return self._zone_maps[city.key]

    def _tiered_pools(self, city: CityInfo, pool: list[Location]) -> list[list[Location]]:
        """zone → expanded zone → full city; a zone under ZONE_MIN_SIZE is bypassed."""
        zone_map = self._zone_map(city)
        day_in_city = self._city_day_index.get(city.key, 0)
        self._city_day_index[city.key] = day_in_city + 1
        if zone_map is None:
            return [pool]

        used = self._used_zones.setdefault(city.key, set())
        saved_ids = {loc.id for loc in self.saved_by_city.get(city.key, [])}
        zone_id = select_zone_for_day(
            zone_map,
            day_in_city,
            sum(1 for c in self.day_cities if c.key == city.key),
            used,
            self.interests,
            saved_ids,
        )
        if zone_id is None:
            return [pool]
        used.add(zone_id)

        tiers: list[list[Location]] = []
        zone_ids = get_zone_location_ids(zone_map, zone_id)
        if len(zone_ids) >= config.ZONE_MIN_SIZE:
            tiers.append([loc for loc in pool if loc.id in zone_ids])
        expanded_ids = get_expanded_zone_location_ids(zone_map, zone_id)
        tiers.append([loc for loc in pool if loc.id in expanded_ids])
        tiers.append(pool)
        return [t for t in tiers if t]

    # ── Day planning ─────────────────────────────────────────────────────────

    def _day_date(self, day_index: int) -> Optional[date]:
        start = self.data.dates.start
        return start + timedelta(days=day_index) if start else None

    def _plan_day(
        self,
        day_index: int,
        city: CityInfo,
        base_city: CityInfo,
        day_trip: Optional[DayTripConfig],
    ) -> ItineraryDay:
        day_number = day_index + 1
        day_date = self._day_date(day_index)
        weekday = WEEKDAY_NAMES[day_date.weekday()] if day_date else DEFAULT_WEEKDAY
        forecast = self.forecasts.get(city.key, {}).get(day_date.isoformat()) if day_date else None

        day = _DayState()
        if day_trip is not None:
            day.activities.append(NoteActivity(
                id=f"day-{day_number}-day-trip",
                title=f"Day trip to {city.label}",
                time_of_day="morning",
                notes=(
                    f"About {day_trip.travel_minutes} min each way from {base_city.label}; "
                    f"return to {base_city.label} in the evening."
                ),
            ))

        pool = self._city_pool(city)
        tiers = self._tiered_pools(city, pool)
        self._insert_saved(day_number, city, day, day_trip)

        ctx = ScoringContext(
            interests=self.interests,
            available_minutes=0,
            pace=self.pace,
            budget=self.data.budget,
            accessibility=self.data.accessibility,
            weather_forecast=forecast,
            weather_preferences=self.data.weather_preferences,
            weekday=weekday if day_date else None,
            group=self.data.group,
        )

        interest_index = 0
        for slot in TIME_OF_DAY_SEQUENCE:
            budget = get_slot_budget(slot, self.pace, day_trip.travel_minutes if day_trip else None)
            remaining = budget - day.slot_usage[slot]
            picked = 0
            failures = 0
            attempts = 0
            exhausted = False

            while remaining > 0 and picked < MAX_ACTIVITIES_PER_SLOT and attempts < MAX_PICK_ATTEMPTS_PER_SLOT:
                attempts += 1
                interest = self.interests[interest_index % len(self.interests)]
                first_in_slot = day.slot_counts[slot] == 0
                ctx.time_slot = slot
                ctx.current_location = day.last_coordinates
                ctx.recent_categories = day.categories
                ctx.recent_neighborhoods = day.neighborhoods

                result = self._pick(tiers, interest, remaining, first_in_slot, ctx)
                if result is None:
                    failures += 1
                    interest_index += 1
                    if failures >= MAX_CONSECUTIVE_FAILURES:
                        exhausted = not any(not self.state.is_used(loc) for loc in pool)
                        break
                    continue

                loc = result.location
                if loc.id in self.state.used_ids:
                    logger.warning("Duplicate location id %r (%s) reached commit; skipping", loc.id, loc.name)
                    interest_index += 1
                    continue
                if loc.normalized_name in self.state.used_names:
                    logger.warning("Duplicate location name %r reached commit; skipping", loc.name)
                    interest_index += 1
                    continue

                failures = 0
                time_needed = result.duration_min + (0 if first_in_slot else self.travel_minutes)
                meal_type, meal_note = day.assign_meal(loc, slot)
                day.activities.append(PlaceActivity(
                    id=f"{loc.id}-{day_number}-{slot}-{picked + 1}",
                    title=loc.name,
                    time_of_day=slot,
                    duration_min=result.duration_min,
                    location_id=loc.id,
                    coordinates=loc.coordinates,
                    neighborhood=loc.neighborhood or loc.city,
                    tags=build_tags(interest, loc.category),
                    notes=meal_note,
                    description=loc.description,
                    meal_type=meal_type,
                    recommendation_reason=format_recommendation_reason(
                        result.breakdown, loc, slot, result.runner_ups, featured=result.featured,
                    ),
                ))
                self.state.commit(loc)
                day.record(loc, slot, time_needed)
                remaining -= time_needed
                picked += 1
                interest_index += 1

                if remaining < budget * SLOT_DONE_FRACTION:
                    break

            if exhausted:
                logger.warning(
                    "Day %d: locations exhausted for %s during %s (%d used, pool %d)",
                    day_number, city.key, slot, len(self.state), len(pool),
                )
                break

        if day_trip is not None:
            label = f"Day {day_number} (Day Trip: {base_city.label} → {city.label})"
        else:
            label = f"Day {day_number} ({city.label})"

        return ItineraryDay(
            id=_day_id(day_number, self.rng),
            date_label=label,
            weekday=weekday,
            city_id=None if city is FALLBACK_CITY else city.key,
            activities=day.activities,
            is_day_trip=day_trip is not None,
            base_city_id=base_city.key if day_trip else None,
            day_trip_travel_minutes=day_trip.travel_minutes if day_trip else None,
        )

    def _pick(
        self,
        tiers: list[list[Location]],
        interest: str,
        remaining: float,
        first_in_slot: bool,
        ctx: ScoringContext,
    ) -> Optional[PickResult]:
        for tier in tiers:
            result = pick_location_for_time_slot(
                tier, interest, self.state, remaining, self.travel_minutes, ctx,
                first_in_slot=first_in_slot,
                content_location_ids=self.content_ids,
                scorer=self.scorer,
            )
            if result is not None:
                return result
        return None

    def _insert_saved(
        self,
        day_number: int,
        city: CityInfo,
        day: _DayState,
        day_trip: Optional[DayTripConfig],
    ) -> None:
        trip_minutes = day_trip.travel_minutes if day_trip else None
        budgets = {s: get_slot_budget(s, self.pace, trip_minutes) for s in TIME_OF_DAY_SEQUENCE}
        for loc in self.saved_by_city.get(city.key, []):
            if self.state.is_used(loc):
                continue
            duration = get_location_duration_minutes(loc)
            cost = {
                s: duration + (self.travel_minutes if day.slot_counts[s] else 0)
                for s in TIME_OF_DAY_SEQUENCE
            }
            slot = pick_time_slot_for_saved(loc.category, day.slot_usage, budgets, cost)
            meal_type, _ = day.assign_meal(loc, slot)
            day.activities.append(PlaceActivity(
                id=f"{loc.id}-{day_number}-fav",
                title=loc.name,
                time_of_day=slot,
                duration_min=duration,
                location_id=loc.id,
                coordinates=loc.coordinates,
                neighborhood=loc.neighborhood or loc.city,
                tags=[loc.category, "saved"] if loc.category else ["saved"],
                notes=SAVED_REASON,
                description=loc.description,
                meal_type=meal_type,
                recommendation_reason=RecommendationReason(primary_reason=SAVED_REASON),
            ))
            self.state.commit(loc)
            day.record(loc, slot, cost[slot])
            logger.info("Day %d: added saved location %r", day_number, loc.name)


# ─────────────────────────────────────────────────────────────────────────────
# I/O: location fetch and weather batch
# ─────────────────────────────────────────────────────────────────────────────

async def _fetch_locations(data: TripBuilderData, source: LocationSource) -> list[Location]:
    cities = [normalize_key(c) for c in data.cities]
    locations = await asyncio.to_thread(source.fetch_all_locations, cities or None)

    if cities and len(cities) <= 2:
        targets: list[str] = []
        for city in cities:
            for trip in get_day_trips_from_city(city):
                if trip.city_id not in cities and trip.city_id not in targets:
                    targets.append(trip.city_id)
        if targets:
            locations = locations + await asyncio.to_thread(source.fetch_all_locations, targets)
    return locations


async def fetch_trip_weather(
    city_keys: list[str],
    start: date,
    end: date,
    source: WeatherSource,
) -> dict[str, dict[str, WeatherForecast]]:
    """One concurrent fetch per city; a failed city is logged and left out."""
    results = await asyncio.gather(
        *(asyncio.to_thread(source.fetch_forecast, key, start, end) for key in city_keys),
        return_exceptions=True,
    )
    forecasts: dict[str, dict[str, WeatherForecast]] = {}
    for key, result in zip(city_keys, results):
        if isinstance(result, Exception):
            logger.warning("Failed to fetch weather for %s: %s", key, result)
            continue
        forecasts[key] = result
    return forecasts


def _weather_cities(generator: ItineraryGenerator) -> list[str]:
    keys: list[str] = []
    for city in generator.day_cities:
        if city is not FALLBACK_CITY and city.key not in keys:
            keys.append(city.key)
    if len(generator.data.cities) <= 2:
        for key in list(keys):
            for trip in get_day_trips_from_city(key):
                if trip.city_id not in keys and generator.index.has_locations(trip.city_id):
                    keys.append(trip.city_id)
    return keys


# ─────────────────────────────────────────────────────────────────────────────
# Entry points
# ─────────────────────────────────────────────────────────────────────────────

async def generate_itinerary(
    data: TripBuilderData,
    locations: Optional[list[Location]] = None,
    location_source: Optional[LocationSource] = None,
    weather_source: Optional[WeatherSource] = None,
    favorite_ids: Optional[list[str]] = None,
    seed: Optional[int] = None,
    run_log: Optional[StructuredLogger] = None,
) -> Itinerary:
    """
    Generate a complete itinerary.

    `locations` short-circuits the location source (tests, pre-fetched
    snapshots). `seed` makes day ids reproducible; everything else is already
    deterministic for identical inputs.
    """
    run_log = run_log or StructuredLogger()
    run_id = f"run_{uuid.uuid4().hex[:12]}"
    run_log.log(run_id, "generation_start", {
        "cities": data.cities, "regions": data.regions, "duration": data.duration, "style": data.style,
    })

    try:
        if locations is None:
            if location_source is None:
                location_source = LocationTool()
            with run_log.timed(run_id, "location_fetch"):
                locations = await _fetch_locations(data, location_source)

        with run_log.timed(run_id, "index_build", locations=len(locations)):
            index = LocationIndex.build(locations)
            generator = ItineraryGenerator(data, index, favorite_ids=favorite_ids, seed=seed)

        if data.dates.start and data.dates.end:
            if weather_source is None:
                weather_source = WeatherTool()
            with run_log.timed(run_id, "weather_fetch"):
                generator.forecasts = await fetch_trip_weather(
                    _weather_cities(generator), data.dates.start, data.dates.end, weather_source,
                )

        with run_log.timed(run_id, "scheduling", days=generator.total_days):
            itinerary = generator.run()

        run_log.log(run_id, "generation_complete", {
            "days": len(itinerary.days),
            "activities": sum(len(d.activities) for d in itinerary.days),
            "day_trips": sum(1 for d in itinerary.days if d.is_day_trip),
        })
    finally:
        run_log.close(run_id)
    return itinerary


async def generate_itinerary_from_trip(trip: dict | TripBuilderData, **kwargs) -> Itinerary:
    """Validate a raw trip payload into TripBuilderData, then generate."""
    data = trip if isinstance(trip, TripBuilderData) else TripBuilderData.model_validate(trip)
    return await generate_itinerary(data, **kwargs)
