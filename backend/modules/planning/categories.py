"""
modules/planning/categories.py
--------------------------------
Category catalogue shared by the scorer, picker and generator.

  FOOD_CATEGORIES           — never scheduled by the main pass
  INTEREST_CATEGORIES       — interest → categories that serve it
  CATEGORY_VISIT_DURATION   — typical visit length per category [minutes]
  get_location_duration_minutes() — 4-step duration fallback chain
"""

from __future__ import annotations
import re
from typing import Callable, Optional

from schemas.location import Location


FOOD_CATEGORIES: frozenset[str] = frozenset({"restaurant", "cafe", "bar"})

DEFAULT_INTEREST_ROTATION: tuple[str, ...] = ("culture", "nature", "shopping")

# interest → categories considered a match for that interest
INTEREST_CATEGORIES: dict[str, tuple[str, ...]] = {
    "culture":     ("shrine", "temple", "landmark", "museum", "historic", "castle"),
    "food":        ("restaurant", "cafe", "market", "bar"),
    "nature":      ("park", "garden", "nature", "beach", "viewpoint"),
    "nightlife":   ("bar", "entertainment"),
    "shopping":    ("shopping", "market", "mall"),
    "photography": ("landmark", "viewpoint", "park", "garden"),
    "wellness":    ("onsen", "garden", "park"),
    "history":     ("shrine", "temple", "historic", "museum", "castle"),
}

CATEGORY_VISIT_DURATION: dict[str, int] = {
    "shrine":        60,
    "temple":        90,
    "landmark":      120,
    "museum":        120,
    "historic":      90,
    "park":          90,
    "garden":        60,
    "viewpoint":     30,
    "market":        90,
    "restaurant":    60,
    "bar":           90,
    "entertainment": 120,
    "onsen":         90,
    "culture":       90,
    "nature":        120,
    "shopping":      90,
    "view":          30,
}
DEFAULT_VISIT_DURATION = 90

# Activity tags: interest tag first, then category tag when it adds information.
_INTEREST_TAGS: dict[str, str] = {
    "culture":     "cultural",
    "food":        "dining",
    "nature":      "nature",
    "nightlife":   "nightlife",
    "shopping":    "shopping",
    "photography": "photo spot",
    "wellness":    "relaxation",
    "history":     "historical",
}
_CATEGORY_TAGS: dict[str, str] = {
    "shrine":        "shrine",
    "temple":        "temple",
    "landmark":      "landmark",
    "historic":      "historic site",
    "restaurant":    "restaurant",
    "market":        "market",
    "park":          "park",
    "garden":        "garden",
    "shopping":      "shopping",
    "bar":           "nightlife",
    "entertainment": "entertainment",
    "museum":        "museum",
    "viewpoint":     "viewpoint",
}

_HOURS_RE = re.compile(r"(\d+(?:\.\d+)?)\s*(?:hour|hours|hr|hrs)", re.IGNORECASE)


def is_food_category(category: Optional[str]) -> bool:
    return (category or "").lower() in FOOD_CATEGORIES


def categories_for_interest(interest: str) -> tuple[str, ...]:
    return INTEREST_CATEGORIES.get(interest, ())


def category_matches_interest(category: Optional[str], interest: str) -> bool:
    return (category or "").lower() in categories_for_interest(interest)


def category_default_duration(category: Optional[str]) -> int:
    return CATEGORY_VISIT_DURATION.get((category or "").lower(), DEFAULT_VISIT_DURATION)


def build_tags(interest: str, category: Optional[str]) -> list[str]:
    tags: list[str] = []
    interest_tag = _INTEREST_TAGS.get(interest)
    if interest_tag:
        tags.append(interest_tag)
    category_tag = _CATEGORY_TAGS.get((category or "").lower())
    if category_tag and category_tag != interest_tag:
        tags.append(category_tag)
    return tags


# ── Duration fallback chain ───────────────────────────────────────────────────

def _structured_minutes(loc: Location) -> Optional[int]:
    return loc.recommended_visit_minutes or None


def _parsed_free_text(loc: Location) -> Optional[int]:
    if not loc.estimated_duration:
        return None
    match = _HOURS_RE.search(loc.estimated_duration)
    return round(float(match.group(1)) * 60) if match else None


def _category_default(loc: Location) -> Optional[int]:
    minutes = category_default_duration(loc.category)
    return minutes if minutes != DEFAULT_VISIT_DURATION else None


DURATION_STRATEGIES: tuple[Callable[[Location], Optional[int]], ...] = (
    _structured_minutes,
    _parsed_free_text,
    _category_default,
)


def get_location_duration_minutes(loc: Location) -> int:
    """First strategy returning a positive value wins; otherwise 90 minutes."""
    for strategy in DURATION_STRATEGIES:
        minutes = strategy(loc)
        if minutes:
            return minutes
    return DEFAULT_VISIT_DURATION
