"""
modules/planning/day_trips.py
-------------------------------
Day-Trip Advisor.

DAY_TRIPS lists, per base city, the nearby cities reachable as a day trip with
their one-way travel time. should_suggest_day_trip() fires when a stay in one
city has lasted at least two days and the city's unused non-food pool is
running low relative to the daily target. The generator applies the remaining
gates (≤2 selected cities, target city viability, trip-wide cap).
"""

from __future__ import annotations
import math
from dataclasses import dataclass
from typing import Optional

import config
from modules.tool_usage.city_tool import normalize_key


@dataclass(frozen=True)
class DayTripConfig:
    city_id: str
    travel_minutes: int


# base city → day-trip targets, nearest first
DAY_TRIPS: dict[str, tuple[DayTripConfig, ...]] = {
    "kyoto":     (DayTripConfig("nara", 45), DayTripConfig("osaka", 30), DayTripConfig("kobe", 55)),
    "osaka":     (DayTripConfig("nara", 40), DayTripConfig("kyoto", 30), DayTripConfig("kobe", 25)),
    "kobe":      (DayTripConfig("osaka", 25), DayTripConfig("kyoto", 55)),
    "nara":      (DayTripConfig("kyoto", 45), DayTripConfig("osaka", 40)),
    "tokyo":     (DayTripConfig("kamakura", 60), DayTripConfig("yokohama", 30), DayTripConfig("nikko", 120)),
    "yokohama":  (DayTripConfig("kamakura", 30), DayTripConfig("tokyo", 30)),
    "nagoya":    (DayTripConfig("takayama", 150), DayTripConfig("kyoto", 40)),
    "kanazawa":  (DayTripConfig("takayama", 135),),
    "hiroshima": (DayTripConfig("miyajima", 50),),
    "fukuoka":   (DayTripConfig("nagasaki", 90),),
    "sapporo":   (DayTripConfig("hakodate", 220),),
}

MIN_CONSECUTIVE_DAYS = 2


def get_day_trips_from_city(city_id: str) -> tuple[DayTripConfig, ...]:
    return DAY_TRIPS.get(normalize_key(city_id), ())


def max_day_trips_for(total_days: int) -> int:
    """Trip-wide cap: one per four days, never more than MAX_DAY_TRIPS."""
    return min(config.MAX_DAY_TRIPS, math.ceil(total_days / 4))


def should_suggest_day_trip(
    city_id: str,
    consecutive_days: int,
    unused_location_count: int,
    target_activities_per_day: int = config.TARGET_ACTIVITIES_PER_DAY,
    exclude: Optional[set[str]] = None,
) -> Optional[DayTripConfig]:
    """
    Return the nearest day-trip target when *city_id* is close to exhaustion,
    else None. Targets in *exclude* are skipped.
    """
    if consecutive_days < MIN_CONSECUTIVE_DAYS:
        return None
    if unused_location_count >= target_activities_per_day * 2:
        return None
    for trip in get_day_trips_from_city(city_id):
        if exclude and trip.city_id in exclude:
            continue
        return trip
    return None
