"""
schemas/itinerary.py
--------------------
Dataclass definitions for the output itinerary structures.

An activity is one of two variants:
  PlaceActivity — bound to a Location (slot, duration, tags, meal type, reason)
  NoteActivity  — freeform note (e.g. day-trip travel annotation)
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Literal, Optional, Union

from schemas.location import Coordinates


TimeSlot = Literal["morning", "afternoon", "evening"]
MealType = Literal["breakfast", "lunch", "dinner", "snack"]


@dataclass
class ReasonFactor:
    factor: str
    score: float
    reasoning: str

    def to_dict(self) -> dict:
        return {"factor": self.factor, "score": self.score, "reasoning": self.reasoning}


@dataclass
class RecommendationReason:
    """Why a place was chosen, for "why this place" explanations."""
    primary_reason: str
    factors: list[ReasonFactor] = field(default_factory=list)
    alternatives_considered: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        out: dict = {"primary_reason": self.primary_reason}
        if self.factors:
            out["factors"] = [f.to_dict() for f in self.factors]
        if self.alternatives_considered:
            out["alternatives_considered"] = list(self.alternatives_considered)
        return out


@dataclass
class PlaceActivity:
    id: str
    title: str
    time_of_day: TimeSlot
    duration_min: int
    location_id: str
    coordinates: Optional[Coordinates] = None
    neighborhood: Optional[str] = None
    tags: list[str] = field(default_factory=list)
    notes: Optional[str] = None
    description: Optional[str] = None
    meal_type: Optional[MealType] = None
    recommendation_reason: Optional[RecommendationReason] = None
    kind: Literal["place"] = "place"

    def to_dict(self) -> dict:
        out: dict = {
            "kind": self.kind,
            "id": self.id,
            "title": self.title,
            "time_of_day": self.time_of_day,
            "duration_min": self.duration_min,
            "location_id": self.location_id,
            "coordinates": self.coordinates.to_dict() if self.coordinates else None,
            "neighborhood": self.neighborhood,
            "tags": list(self.tags),
        }
        if self.notes:
            out["notes"] = self.notes
        if self.description:
            out["description"] = self.description
        if self.meal_type:
            out["meal_type"] = self.meal_type
        if self.recommendation_reason:
            out["recommendation_reason"] = self.recommendation_reason.to_dict()
        return out


@dataclass
class NoteActivity:
    id: str
    title: str
    time_of_day: TimeSlot
    notes: str = ""
    kind: Literal["note"] = "note"

    def to_dict(self) -> dict:
        return {
            "kind": self.kind,
            "id": self.id,
            "title": self.title,
            "time_of_day": self.time_of_day,
            "notes": self.notes,
        }


Activity = Union[PlaceActivity, NoteActivity]


@dataclass
class ItineraryDay:
    id: str
    date_label: str
    weekday: str
    city_id: Optional[str] = None
    activities: list[Activity] = field(default_factory=list)
    is_day_trip: bool = False
    base_city_id: Optional[str] = None
    day_trip_travel_minutes: Optional[int] = None

    @property
    def place_activities(self) -> list[PlaceActivity]:
        return [a for a in self.activities if isinstance(a, PlaceActivity)]

    def to_dict(self) -> dict:
        out: dict = {
            "id": self.id,
            "date_label": self.date_label,
            "weekday": self.weekday,
            "city_id": self.city_id,
            "activities": [a.to_dict() for a in self.activities],
        }
        if self.is_day_trip:
            out["is_day_trip"] = True
            out["base_city_id"] = self.base_city_id
            out["day_trip_travel_minutes"] = self.day_trip_travel_minutes
        return out


@dataclass
class Itinerary:
    days: list[ItineraryDay] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {"days": [d.to_dict() for d in self.days]}
