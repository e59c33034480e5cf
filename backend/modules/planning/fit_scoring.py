"""
modules/planning/fit_scoring.py
---------------------------------
Context-fit sub-scorers used by LocationScorer. Each returns a FitResult
(score adjustment + one-line reasoning) and never raises for missing data.

  score_weather_fit      — −8 … +5   indoor/outdoor vs forecast
  score_time_of_day_fit  — −3 … +8   category vs slot (opening hours: extra −5)
  check_opening_hours_fit            ≥ 30 min overlap with the slot window
  score_group_fit        — −5 … +10  group type, size and children ages
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import Optional

from schemas.location import Location
from schemas.trip import GroupInfo, WeatherPreferences
from modules.planning.time_slots import SLOT_WINDOWS, TIME_OF_DAY_SEQUENCE
from modules.tool_usage.weather_tool import RAINY_CONDITIONS, WeatherForecast


@dataclass(frozen=True)
class FitResult:
    score: float
    reasoning: str


# ─────────────────────────────────────────────────────────────────────────────
# Weather
# ─────────────────────────────────────────────────────────────────────────────

_ENVIRONMENT_BY_CATEGORY: dict[str, str] = {
    "park": "outdoor", "garden": "outdoor", "viewpoint": "outdoor",
    "nature": "outdoor", "beach": "outdoor",
    "museum": "indoor", "shopping": "indoor", "mall": "indoor",
    "restaurant": "indoor", "cafe": "indoor", "bar": "indoor",
    "entertainment": "indoor", "aquarium": "indoor",
}
_ENVIRONMENT_TAGS = ("indoor", "outdoor", "mixed")

_COLD_MAX_C = 5
_HOT_MAX_C = 35


def location_environment(loc: Location) -> str:
    """indoor / outdoor / mixed — an explicit tag overrides the category."""
    for tag in loc.tags:
        if tag.lower() in _ENVIRONMENT_TAGS:
            return tag.lower()
    return _ENVIRONMENT_BY_CATEGORY.get((loc.category or "").lower(), "mixed")


def score_weather_fit(
    loc: Location,
    forecast: Optional[WeatherForecast],
    prefs: Optional[WeatherPreferences] = None,
) -> FitResult:
    if forecast is None:
        return FitResult(0, "No weather forecast available")

    env = location_environment(loc)
    cond = forecast.condition

    if cond in RAINY_CONDITIONS:
        if env == "outdoor":
            penalty = -8 if prefs and prefs.prefer_indoor_on_rain else -5
            return FitResult(penalty, f"Outdoor location on a {cond} day")
        if env == "mixed":
            return FitResult(-3, f"Partly outdoor location on a {cond} day")
        return FitResult(5, f"Indoor option, ideal for {cond}")

    if cond == "snow":
        if env == "outdoor":
            return FitResult(-6, "Outdoor location on a snowy day")
        if env == "mixed":
            return FitResult(-2, "Partly outdoor location on a snowy day")
        return FitResult(4, "Indoor option, ideal for snow")

    if cond == "clear" and env != "indoor":
        return FitResult(2 if env == "outdoor" else 1, "Clear skies suit this location")

    too_cold = forecast.temp_max <= _COLD_MAX_C or (
        prefs is not None and prefs.min_temperature is not None
        and forecast.temp_max < prefs.min_temperature
    )
    too_hot = forecast.temp_max >= _HOT_MAX_C or (
        prefs is not None and prefs.max_temperature is not None
        and forecast.temp_max > prefs.max_temperature
    )
    if too_cold and env == "outdoor":
        return FitResult(-3, f"Cold day (max {forecast.temp_max:.0f}°C) for an outdoor visit")
    if too_hot and env == "indoor":
        return FitResult(2, f"Hot day (max {forecast.temp_max:.0f}°C), indoor is cooler")

    return FitResult(0, f"{forecast.description or cond} has no effect here")


# ─────────────────────────────────────────────────────────────────────────────
# Time of day / opening hours
# ─────────────────────────────────────────────────────────────────────────────

OPTIMAL_TIMES_BY_CATEGORY: dict[str, tuple[str, ...]] = {
    "viewpoint":     ("morning", "evening"),
    "park":          ("morning", "afternoon"),
    "garden":        ("morning", "afternoon"),
    "shrine":        ("morning", "evening"),
    "temple":        ("morning", "evening"),
    "restaurant":    ("afternoon", "evening"),
    "market":        ("morning", "afternoon"),
    "museum":        ("afternoon",),
    "shopping":      ("afternoon", "evening"),
    "bar":           ("evening",),
    "entertainment": ("evening",),
    "landmark":      ("morning", "afternoon"),
    "historic":      ("morning", "afternoon"),
}

CLOSED_DURING_SLOT_PENALTY = -5
MIN_VISIT_OVERLAP_MIN = 30


def _hhmm_to_minutes(value: str) -> int:
    hours, _, minutes = value.partition(":")
    return int(hours) * 60 + int(minutes or 0)


def check_opening_hours_fit(
    loc: Location,
    slot: str,
    weekday: Optional[str] = None,
    min_visit_minutes: int = MIN_VISIT_OVERLAP_MIN,
) -> FitResult:
    """score 1 = fits, 0 = does not; locations without hours always fit."""
    if not loc.operating_hours:
        return FitResult(1, "No opening hours information available")

    start, end = SLOT_WINDOWS[slot]
    slot_start = start.hour * 60 + start.minute
    slot_end = end.hour * 60 + end.minute

    for period in loc.operating_hours:
        if weekday and period.day and period.day != weekday:
            continue
        open_m = _hhmm_to_minutes(period.open)
        close_m = _hhmm_to_minutes(period.close)
        if period.is_overnight or close_m <= open_m:
            close_m += 24 * 60
        overlap = max(0, min(slot_end, close_m) - max(slot_start, open_m))
        if overlap >= min_visit_minutes:
            return FitResult(1, f"Open during {slot} ({period.open}-{period.close})")

    return FitResult(0, f"Insufficient opening hours during {slot} (need {min_visit_minutes}min)")


def score_time_of_day_fit(loc: Location, slot: str, weekday: Optional[str] = None) -> FitResult:
    category = (loc.category or "").lower()
    optimal = OPTIMAL_TIMES_BY_CATEGORY.get(category)

    if not optimal:
        result = FitResult(0, "No specific time preference for this category")
    elif slot in optimal:
        result = FitResult(8, f"{slot} is an optimal time to visit this {category}")
    else:
        idx = TIME_OF_DAY_SEQUENCE.index(slot)
        adjacent = any(abs(TIME_OF_DAY_SEQUENCE.index(o) - idx) == 1 for o in optimal)
        if adjacent:
            result = FitResult(3, f"{slot} works for this {category}, though {' or '.join(optimal)} is better")
        else:
            result = FitResult(-3, f"{slot} is not ideal for this {category}")

    hours = check_opening_hours_fit(loc, slot, weekday)
    if not hours.score:
        return FitResult(result.score + CLOSED_DURING_SLOT_PENALTY, f"{result.reasoning}; {hours.reasoning}")
    return result


# ─────────────────────────────────────────────────────────────────────────────
# Group
# ─────────────────────────────────────────────────────────────────────────────

_GROUP_PREFERENCES: dict[str, tuple[frozenset[str], frozenset[str]]] = {
    # type: (preferred, avoided)
    "solo":     (frozenset({"museum", "shrine", "temple", "viewpoint", "park"}),
                 frozenset({"bar", "entertainment"})),
    "couple":   (frozenset({"restaurant", "park", "garden", "viewpoint", "shrine"}),
                 frozenset()),
    "family":   (frozenset({"park", "museum", "garden", "entertainment"}),
                 frozenset({"bar", "shrine"})),
    "friends":  (frozenset({"restaurant", "bar", "entertainment", "shopping", "market"}),
                 frozenset()),
    "business": (frozenset({"restaurant", "landmark", "museum"}),
                 frozenset({"bar", "entertainment"})),
}
_LARGE_GROUP_FRIENDLY = frozenset({"restaurant", "park", "market", "shopping", "entertainment"})
_SMALL_GROUP_PREFERRED = frozenset({"shrine", "temple", "museum"})
_CHILD_FRIENDLY = frozenset({"park", "garden", "museum", "entertainment"})
_ADULT_FOCUSED = frozenset({"shrine", "temple", "bar"})


def score_group_fit(loc: Location, group: Optional[GroupInfo]) -> FitResult:
    if group is None or (group.type is None and not group.size and not group.children_ages):
        return FitResult(0, "No group information provided")

    category = (loc.category or "").lower()
    score = 0
    reasons: list[str] = []

    if group.type:
        preferred, avoided = _GROUP_PREFERENCES[group.type]
        if category in preferred:
            score += 6
            reasons.append(f"ideal for {group.type} travelers")
        elif category in avoided:
            score -= 4
            reasons.append(f"less suited to {group.type} travelers")

    size = group.size or 0
    if size >= 6:
        if category in _LARGE_GROUP_FRIENDLY:
            score += 5
            reasons.append(f"handles large groups ({size} people)")
        elif category in _SMALL_GROUP_PREFERRED:
            score -= 3
            reasons.append(f"can be crowded for {size} people")
    elif size >= 4 and category in _LARGE_GROUP_FRIENDLY:
        score += 2
        reasons.append(f"works well for {size} people")

    if group.children_ages:
        avg_age = sum(group.children_ages) / len(group.children_ages)
        if avg_age < 8:
            if category in _CHILD_FRIENDLY:
                score += 8
                reasons.append("great for young children")
            elif category in _ADULT_FOCUSED:
                score -= 5
                reasons.append("may not engage young children")
        elif avg_age >= 13 and category in _CHILD_FRIENDLY:
            score += 3
            reasons.append("good for teenagers")

    score = max(-5, min(10, score))
    return FitResult(score, "; ".join(reasons).capitalize() if reasons else "Suitable for your group")
