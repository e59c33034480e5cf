"""
modules/planning/location_scoring.py
--------------------------------------
Nine-factor location scoring for the Location Picker.

Every factor is computed and exposed individually (ScoreBreakdown) so the UI
can explain "why this place"; the total is the plain sum, hence monotonic in
each factor.

  Factor             Range      Neutral (no data)
  interest_match     0 … 30     10 (no category)
  rating_quality     0 … 25     12
  logistical_fit     0 … 20     base 10 (no coordinates)
  budget_fit         0 … 10     5
  accessibility_fit  0 … 10     5
  diversity_bonus   −5 … +5     0 (no category)
  weather_fit       −8 … +5     0 (no forecast)
  time_optimization −8 … +8     0 (no category preference)
  group_fit         −5 … +10    0 (no group)

Used locations are never scored here; the picker excludes them upstream.
"""

from __future__ import annotations
import re
from dataclasses import astuple, dataclass, field, fields
from typing import Optional

from schemas.location import Coordinates, Location
from schemas.trip import AccessibilityInfo, BudgetInfo, GroupInfo, WeatherPreferences
from modules.planning.categories import INTEREST_CATEGORIES, get_location_duration_minutes
from modules.planning.fit_scoring import score_group_fit, score_time_of_day_fit, score_weather_fit
from modules.tool_usage.distance_tool import haversine_km, walking_minutes
from modules.tool_usage.weather_tool import WeatherForecast


# category → interests it serves (reverse of INTEREST_CATEGORIES)
_CATEGORY_INTERESTS: dict[str, set[str]] = {}
for _interest, _cats in INTEREST_CATEGORIES.items():
    for _cat in _cats:
        _CATEGORY_INTERESTS.setdefault(_cat, set()).add(_interest)

# Budget level → expected yen range / "¥" symbol counts
_BUDGET_RANGES: dict[str, tuple[float, float]] = {
    "budget":   (0, 1000),
    "moderate": (500, 3000),
    "luxury":   (2000, float("inf")),
}
_SYMBOL_RANGES: dict[str, tuple[int, ...]] = {
    "budget":   (1, 2),
    "moderate": (2, 3),
    "luxury":   (3, 4),
}
# Single activity may take this share of the daily budget
_PER_ACTIVITY_SHARE = 0.3
# Total-budget mode assumes this many paid activities per trip
_ESTIMATED_TRIP_ACTIVITIES = 20

_PRICE_RE = re.compile(r"¥?\s*(\d+)")


@dataclass
class ScoreBreakdown:
    interest_match: float = 0
    rating_quality: float = 0
    logistical_fit: float = 0
    budget_fit: float = 0
    accessibility_fit: float = 0
    diversity_bonus: float = 0
    weather_fit: float = 0
    time_optimization: float = 0
    group_fit: float = 0

    @property
    def total(self) -> float:
        return sum(astuple(self))

    def items(self) -> list[tuple[str, float]]:
        return [(f.name, getattr(self, f.name)) for f in fields(self)]


@dataclass
class ScoringContext:
    """Everything the scorer needs to know about the slot being filled."""
    interests: list[str]
    available_minutes: float
    pace: str = "balanced"
    current_location: Optional[Coordinates] = None
    recent_categories: list[str] = field(default_factory=list)
    recent_neighborhoods: list[str] = field(default_factory=list)
    budget: Optional[BudgetInfo] = None
    accessibility: Optional[AccessibilityInfo] = None
    weather_forecast: Optional[WeatherForecast] = None
    weather_preferences: Optional[WeatherPreferences] = None
    time_slot: Optional[str] = None
    weekday: Optional[str] = None
    group: Optional[GroupInfo] = None


@dataclass
class LocationScore:
    location: Location
    score: float
    breakdown: ScoreBreakdown
    reasoning: list[str]


class LocationScorer:
    """Scores one candidate at a time against a ScoringContext."""

    def score(self, loc: Location, ctx: ScoringContext) -> LocationScore:
        interest, interest_r = self._score_interest_match(loc, ctx.interests)
        rating, rating_r = self._score_rating(loc)
        logistics, logistics_r = self._score_logistics(loc, ctx)
        budget, budget_r = self._score_budget(loc, ctx.budget)
        access, access_r = self._score_accessibility(loc, ctx.accessibility)
        diversity, diversity_r = self._score_diversity(loc, ctx.recent_categories, ctx.recent_neighborhoods)
        weather = score_weather_fit(loc, ctx.weather_forecast, ctx.weather_preferences)
        if ctx.time_slot:
            timing = score_time_of_day_fit(loc, ctx.time_slot, ctx.weekday)
        else:
            timing = None
        group = score_group_fit(loc, ctx.group)

        breakdown = ScoreBreakdown(
            interest_match=interest,
            rating_quality=rating,
            logistical_fit=logistics,
            budget_fit=budget,
            accessibility_fit=access,
            diversity_bonus=diversity,
            weather_fit=weather.score,
            time_optimization=timing.score if timing else 0,
            group_fit=group.score,
        )
        reasoning = [
            interest_r, rating_r, logistics_r, budget_r, access_r, diversity_r,
            weather.reasoning,
            timing.reasoning if timing else "No time slot specified",
            group.reasoning,
        ]
        return LocationScore(location=loc, score=breakdown.total, breakdown=breakdown, reasoning=reasoning)

    # ── Factor scorers ────────────────────────────────────────────────────────

    @staticmethod
    def _score_interest_match(loc: Location, interests: list[str]) -> tuple[float, str]:
        category = (loc.category or "").lower()
        if not category:
            return 10, "No category information available"
        if not interests:
            return 10, "No interests selected"

        served = _CATEGORY_INTERESTS.get(category, set())
        matched = [i for i in interests if i in served]
        if not matched:
            return 5, f'"{category}" doesn\'t match any selected interests'
        if len(matched) == len(interests):
            return 30, f'"{category}" aligns with all interests ({", ".join(matched)})'
        ratio = len(matched) / len(interests)
        return round(15 + ratio * 15), (
            f'"{category}" aligns with {len(matched)} of {len(interests)} interests ({", ".join(matched)})'
        )

    @staticmethod
    def _score_rating(loc: Location) -> tuple[float, str]:
        rating = loc.rating or 0.0
        reviews = loc.review_count or 0
        if rating == 0 and reviews == 0:
            return 12, "No rating data available, using neutral score"

        rating_pts = rating / 5 * 15
        if reviews <= 0:
            review_pts = 0
        elif reviews < 10:
            review_pts = 2
        elif reviews < 50:
            review_pts = 4
        elif reviews < 200:
            review_pts = 6
        elif reviews < 1000:
            review_pts = 8
        else:
            review_pts = 10

        total = round(rating_pts + review_pts)
        quality = "high" if total >= 20 else "good" if total >= 15 else "moderate"
        return total, f"Rating {rating:.1f}/5 ({reviews} reviews), {quality} quality"

    @staticmethod
    def _score_logistics(loc: Location, ctx: ScoringContext) -> tuple[float, str]:
        score = 10
        reasons: list[str] = []

        if ctx.current_location and loc.coordinates:
            km = haversine_km(
                ctx.current_location.lat, ctx.current_location.lng,
                loc.coordinates.lat, loc.coordinates.lng,
            )
            if km < 1:
                score += 8
            elif km < 3:
                score += 6
            elif km < 5:
                score += 4
            elif km < 10:
                score += 2
            else:
                score -= 2
            reasons.append(f"{km:.1f}km away (~{walking_minutes(km):.0f} min walk)")
        else:
            reasons.append("No distance data available")

        duration = get_location_duration_minutes(loc)
        available = ctx.available_minutes
        if duration <= available * 0.3:
            score += 2
            reasons.append("short visit, fits easily")
        elif duration <= available * 0.7:
            score += 7
            reasons.append("duration fits well in the slot")
        elif duration <= available * 1.1:
            score += 4
            reasons.append("duration nearly fills the slot")
        else:
            score -= 3
            reasons.append("duration exceeds available time")

        if ctx.pace == "fast" and duration > 180:
            score -= 2
            reasons.append("long for a fast pace")
        elif ctx.pace == "relaxed" and duration < 60:
            score -= 1
            reasons.append("short for a relaxed pace")

        return max(0, min(20, score)), "; ".join(reasons)

    @staticmethod
    def _parse_price(min_budget) -> tuple[float, str]:
        """(level, "numeric" | "symbol"); level 0 means unknown."""
        if min_budget is None or min_budget == "":
            return 0, "numeric"
        if isinstance(min_budget, (int, float)):
            return float(min_budget), "numeric"
        match = _PRICE_RE.search(min_budget)
        if match:
            return float(match.group(1)), "numeric"
        symbols = min_budget.count("¥")
        return (symbols, "symbol") if symbols else (0, "numeric")

    @classmethod
    def _score_budget(cls, loc: Location, budget: Optional[BudgetInfo]) -> tuple[float, str]:
        if budget is None:
            return 5, "No budget preference specified"
        level, kind = cls._parse_price(loc.min_budget)

        if budget.per_day is not None and kind == "numeric" and level > 0:
            cap = budget.per_day * _PER_ACTIVITY_SHARE
            if level <= cap:
                return 10, f"¥{level:.0f} fits the daily budget"
            if level <= budget.per_day:
                return 7, f"¥{level:.0f} is within the daily budget but high"
            return 2, f"¥{level:.0f} exceeds the daily budget (¥{budget.per_day:.0f})"

        if budget.total is not None and kind == "numeric" and level > 0:
            avg = budget.total / _ESTIMATED_TRIP_ACTIVITIES
            if level <= avg:
                return 10, f"¥{level:.0f} fits the trip budget"
            if level <= avg * 1.5:
                return 7, f"¥{level:.0f} is on the higher side of the trip budget"
            return 3, f"¥{level:.0f} may strain the trip budget (¥{budget.total:.0f})"

        if budget.level is None or level == 0:
            return 5, "No price information to compare"

        if kind == "numeric":
            lo, hi = _BUDGET_RANGES[budget.level]
            if lo <= level <= hi:
                return 10, f"¥{level:.0f} fits a {budget.level} budget"
            if level < lo:
                return 8, f"¥{level:.0f} is below the {budget.level} range"
            return 3, f"¥{level:.0f} exceeds a {budget.level} budget"

        expected = _SYMBOL_RANGES[budget.level]
        symbols = "¥" * int(level)
        if level in expected:
            return 10, f"{symbols} fits a {budget.level} budget"
        if level < expected[0]:
            return 8, f"{symbols} is below the {budget.level} range"
        return 3, f"{symbols} exceeds a {budget.level} budget"

    @staticmethod
    def _score_accessibility(
        loc: Location, needs: Optional[AccessibilityInfo]
    ) -> tuple[float, str]:
        if needs is None or not (needs.mobility or needs.elevator_required):
            return 5, "No accessibility requirements specified"
        info = loc.accessibility
        if info is None or all(v is None for v in astuple(info)):
            return 5, "Accessibility information not available"

        score = 0
        unmet = False
        reasons: list[str] = []
        if needs.mobility:
            if info.wheelchair_accessible:
                score += 5
                reasons.append("wheelchair accessible")
            elif info.wheelchair_accessible is False:
                score -= 3
                unmet = True
                reasons.append("not wheelchair accessible")
        if needs.elevator_required:
            if info.elevator_available:
                score += 3
                reasons.append("elevator available")
            elif info.step_free_access:
                score += 2
                reasons.append("step-free access")
            elif info.elevator_available is False:
                score -= 2
                unmet = True
                reasons.append("no elevator")
        if needs.mobility and info.step_free_access:
            score += 2
            reasons.append("step-free access confirmed")

        score = max(0, min(10, score))
        if unmet and score < 3:
            return 0, "Does not meet accessibility requirements: " + "; ".join(reasons)
        if not unmet:
            # Unknown flags count as neutral; known positives only add to it.
            score = max(5, score)
        return score, "; ".join(reasons).capitalize() or "Accessibility partly unknown"

    @staticmethod
    def _score_diversity(
        loc: Location, recent_categories: list[str], recent_neighborhoods: list[str]
    ) -> tuple[float, str]:
        category = (loc.category or "").lower()
        if not category:
            return 0, "No category information"

        count = sum(1 for c in recent_categories if c.lower() == category)
        if count == 0:
            score, why = 5, f'"{category}" adds variety'
        elif count == 1:
            score, why = 2, f'"{category}" already appears once today'
        elif count == 2:
            score, why = -2, f'"{category}" already appears twice today'
        else:
            score, why = -5, f'"{category}" already appears {count} times today'

        hood = loc.neighborhood or loc.city
        if hood and sum(1 for n in recent_neighborhoods if n == hood) >= 3:
            score -= 1
            why += f"; {hood} is well covered today"

        return max(-5, score), why


def score_location(loc: Location, ctx: ScoringContext) -> LocationScore:
    return LocationScorer().score(loc, ctx)
