"""
modules/planning/reason_formatter.py
--------------------------------------
Turns a ScoreBreakdown into a RecommendationReason the UI can show under
"why this place".
"""

from __future__ import annotations
from typing import Optional

from schemas.itinerary import ReasonFactor, RecommendationReason
from schemas.location import Location
from modules.planning.location_scoring import ScoreBreakdown


FEATURED_REASON = "Featured in our travel guides"
SAVED_REASON = "From your saved places"

# factor → (label, max magnitude)
_FACTOR_META: dict[str, tuple[str, float]] = {
    "interest_match":    ("Interest match", 30),
    "rating_quality":    ("Rating & reviews", 25),
    "logistical_fit":    ("Distance & logistics", 20),
    "budget_fit":        ("Budget fit", 10),
    "accessibility_fit": ("Accessibility", 10),
    "diversity_bonus":   ("Variety", 5),
    "weather_fit":       ("Weather fit", 8),
    "time_optimization": ("Time-of-day fit", 8),
    "group_fit":         ("Group fit", 10),
}


def _humanize(factor: str, score: float, loc: Location, time_slot: Optional[str]) -> str:
    if factor == "interest_match":
        if score >= 25:
            return f"{(loc.category or 'This place').capitalize()} matches your interests well"
        if score >= 15:
            return "Partially matches your interests"
        return "Outside your main interests, adds variety"

    if factor == "rating_quality":
        rating, reviews = loc.rating, loc.review_count
        if rating and rating >= 4.5 and reviews and reviews >= 200:
            return f"Highly rated ({rating:.1f}, {reviews:,}+ reviews)"
        if rating and rating >= 4.0:
            return f"Well rated ({rating:.1f})"
        if rating:
            return f"Rated {rating:.1f}"
        return "No rating data"

    if factor == "logistical_fit":
        if score >= 15:
            return "Very close to your previous stop"
        if score >= 10:
            return "Nearby, short commute"
        return "A bit of a trek, but worth it"

    if factor == "budget_fit":
        if score >= 9:
            return "Fits your budget perfectly"
        if score >= 6:
            return "Within budget"
        return "May stretch your budget"

    if factor == "accessibility_fit":
        if score >= 8:
            return "Fully accessible"
        if score >= 5:
            return "Accessibility not confirmed"
        return "Limited accessibility"

    if factor == "diversity_bonus":
        if score >= 4:
            return "Adds a fresh category to your day"
        if score <= -3:
            return "Similar to recent stops"
        return ""

    if factor == "weather_fit":
        if score >= 4:
            return "Great choice for today's weather"
        if score <= -5:
            return "Weather may not be ideal, consider an indoor backup"
        return ""

    if factor == "time_optimization":
        if score >= 5:
            return f"Well suited to the {time_slot or 'time slot'}"
        if score <= -3:
            return "Off-peak for this time slot"
        return ""

    if factor == "group_fit":
        if score >= 5:
            return "Great for your group"
        if score <= -3:
            return "May not suit your group well"
        return ""

    return ""


def _primary_reason(breakdown: ScoreBreakdown, loc: Location, time_slot: Optional[str]) -> str:
    positive = sorted(
        ((name, score) for name, score in breakdown.items() if score > 0),
        key=lambda item: item[1],
        reverse=True,
    )[:3]
    if not positive:
        return "Selected to round out your day"

    fragments = [t for t in (_humanize(n, s, loc, time_slot) for n, s in positive) if t]
    if not fragments:
        return "Selected based on your interests and preferences"
    if len(fragments) == 1:
        return fragments[0]
    if len(fragments) == 2:
        return f"{fragments[0]} — {fragments[1]}"
    return f"{fragments[0]} — {fragments[1]}. {fragments[2]}"


def format_recommendation_reason(
    breakdown: ScoreBreakdown,
    loc: Location,
    time_slot: Optional[str] = None,
    alternatives: Optional[list[str]] = None,
    featured: bool = False,
    saved: bool = False,
) -> RecommendationReason:
    """
    Build the reason for a committed activity.

    Zero factors and ±1 noise on low-magnitude factors are dropped; the rest
    are listed highest score first.
    """
    if saved:
        primary = SAVED_REASON
    elif featured:
        primary = FEATURED_REASON
    else:
        primary = _primary_reason(breakdown, loc, time_slot)

    factors: list[ReasonFactor] = []
    for name, score in breakdown.items():
        label, magnitude = _FACTOR_META[name]
        if score == 0 or (abs(score) <= 1 and magnitude <= 5):
            continue
        text = _humanize(name, score, loc, time_slot)
        if text:
            factors.append(ReasonFactor(factor=label, score=score, reasoning=text))
    factors.sort(key=lambda f: f.score, reverse=True)

    return RecommendationReason(
        primary_reason=primary,
        factors=factors,
        alternatives_considered=list(alternatives or []),
    )
