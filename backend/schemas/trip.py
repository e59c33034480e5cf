"""
schemas/trip.py
---------------
Pydantic models for the trip-builder input accepted by the itinerary engine
(library call, HTTP body and CLI file all share this shape).
"""

from __future__ import annotations
from datetime import date
from typing import Literal, Optional

from pydantic import BaseModel, Field


Pace = Literal["relaxed", "balanced", "fast"]


class TripDates(BaseModel):
    start: Optional[date] = None
    end: Optional[date] = None


class BudgetInfo(BaseModel):
    level: Optional[Literal["budget", "moderate", "luxury"]] = None
    total: Optional[float] = None
    per_day: Optional[float] = None


class AccessibilityInfo(BaseModel):
    mobility: bool = False
    elevator_required: bool = False


class GroupInfo(BaseModel):
    size: Optional[int] = None
    type: Optional[Literal["solo", "couple", "family", "friends", "business"]] = None
    children_ages: list[int] = Field(default_factory=list)


class WeatherPreferences(BaseModel):
    prefer_indoor_on_rain: bool = False
    min_temperature: Optional[float] = None
    max_temperature: Optional[float] = None


class TripBuilderData(BaseModel):
    """
    User trip skeleton.

    duration is left unconstrained: zero, negative or missing values fall back
    to config.DEFAULT_TOTAL_DAYS inside the generator.
    """
    duration: Optional[int] = None
    cities: list[str] = Field(default_factory=list)
    regions: list[str] = Field(default_factory=list)
    interests: list[str] = Field(default_factory=list)
    style: Pace = "balanced"
    dates: TripDates = Field(default_factory=TripDates)
    budget: Optional[BudgetInfo] = None
    accessibility: Optional[AccessibilityInfo] = None
    group: Optional[GroupInfo] = None
    weather_preferences: Optional[WeatherPreferences] = None

    # Editorially featured locations to bias toward
    content_location_ids: list[str] = Field(default_factory=list)
    # Saved / favorited locations to force-include
    saved_ids: list[str] = Field(default_factory=list)
