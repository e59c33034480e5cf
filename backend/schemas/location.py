"""
schemas/location.py
-------------------
Dataclass definitions for the read-only location snapshot consumed by the
itinerary engine. One Location per row of the location source; never mutated
during a generation run.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Optional, Union


@dataclass(frozen=True)
class Coordinates:
    lat: float
    lng: float

    def to_dict(self) -> dict:
        return {"lat": self.lat, "lng": self.lng}


@dataclass(frozen=True)
class OperatingPeriod:
    """
    One opening window on a given weekday.

    open / close are "HH:MM" strings. is_overnight marks windows whose close
    time belongs to the following calendar day (e.g. 18:00 → 02:00).
    """
    day: str                     # "monday" … "sunday"
    open: str
    close: str
    is_overnight: bool = False


@dataclass(frozen=True)
class LocationAccessibility:
    wheelchair_accessible: Optional[bool] = None
    elevator_available: Optional[bool] = None
    step_free_access: Optional[bool] = None


@dataclass
class Location:
    """
    A visitable place.

    Optional metadata (rating, budget, accessibility, hours) stays None when the
    source has no data; scorers treat None as neutral.
    """
    id: str
    name: str
    city: str
    region: str = ""
    category: str = ""
    coordinates: Optional[Coordinates] = None
    neighborhood: Optional[str] = None
    description: Optional[str] = None

    # Visit duration: structured minutes first, then free text ("1-2 hours")
    recommended_visit_minutes: Optional[int] = None
    estimated_duration: Optional[str] = None

    # Quality / cost / access metadata
    rating: Optional[float] = None
    review_count: Optional[int] = None
    min_budget: Optional[Union[float, str]] = None   # yen value or "¥¥" symbol string
    accessibility: Optional[LocationAccessibility] = None
    operating_hours: list[OperatingPeriod] = field(default_factory=list)
    tags: list[str] = field(default_factory=list)

    @property
    def normalized_name(self) -> str:
        return self.name.lower().strip()

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "Location":
        """Build a Location from a JSON/DB row using snake_case or camelCase keys."""
        def pick(*keys, default=None):
            for k in keys:
                if k in raw and raw[k] is not None:
                    return raw[k]
            return default

        coords = pick("coordinates")
        lat, lng = pick("lat"), pick("lng", "lon")
        if isinstance(coords, dict) and coords.get("lat") is not None:
            coordinates = Coordinates(float(coords["lat"]), float(coords.get("lng", coords.get("lon"))))
        elif lat is not None and lng is not None:
            coordinates = Coordinates(float(lat), float(lng))
        else:
            coordinates = None

        acc_raw = pick("accessibility")
        accessibility = None
        if isinstance(acc_raw, dict):
            accessibility = LocationAccessibility(
                wheelchair_accessible=acc_raw.get("wheelchair_accessible", acc_raw.get("wheelchairAccessible")),
                elevator_available=acc_raw.get("elevator_available", acc_raw.get("elevatorRequired")),
                step_free_access=acc_raw.get("step_free_access", acc_raw.get("stepFreeAccess")),
            )

        hours = []
        for p in pick("operating_hours", "operatingHours", default=[]) or []:
            hours.append(OperatingPeriod(
                day=str(p["day"]).lower(),
                open=p["open"],
                close=p["close"],
                is_overnight=bool(p.get("is_overnight", p.get("isOvernight", False))),
            ))

        recommended = pick("recommended_visit_minutes")
        rv = pick("recommendedVisit")
        if recommended is None and isinstance(rv, dict):
            recommended = rv.get("typicalMinutes")

        return cls(
            id=str(raw["id"]),
            name=raw["name"],
            city=pick("city", default=""),
            region=pick("region", default=""),
            category=pick("category", default=""),
            coordinates=coordinates,
            neighborhood=pick("neighborhood"),
            description=pick("description"),
            recommended_visit_minutes=int(recommended) if recommended is not None else None,
            estimated_duration=pick("estimated_duration", "estimatedDuration"),
            rating=pick("rating"),
            review_count=pick("review_count", "reviewCount"),
            min_budget=pick("min_budget", "minBudget"),
            accessibility=accessibility,
            operating_hours=hours,
            tags=list(pick("tags", default=[]) or []),
        )
