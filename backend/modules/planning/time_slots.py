"""
modules/planning/time_slots.py
--------------------------------
Daily time-slot model: three ordered slots, their minute budgets by pace, the
flat inter-activity travel buffer, and day-trip budget adjustments.
"""

from __future__ import annotations
from datetime import time
from typing import Optional

TIME_OF_DAY_SEQUENCE: tuple[str, ...] = ("morning", "afternoon", "evening")

# Balanced-pace budget per slot [minutes]
SLOT_BASE_MINUTES: dict[str, int] = {
    "morning":   180,
    "afternoon": 300,
    "evening":   240,
}

# Wall-clock window each slot covers; used for opening-hours overlap checks.
SLOT_WINDOWS: dict[str, tuple[time, time]] = {
    "morning":   (time(9, 0),  time(12, 0)),
    "afternoon": (time(12, 0), time(17, 0)),
    "evening":   (time(17, 0), time(21, 0)),
}

_PACE_MULTIPLIER: dict[str, float] = {
    "relaxed":  0.75,
    "balanced": 1.0,
    "fast":     1.25,
}

_TRAVEL_BUFFER_MIN: dict[str, int] = {
    "relaxed":  30,
    "balanced": 20,
    "fast":     15,
}

# A day-trip slot never drops below this after travel is deducted.
DAY_TRIP_SLOT_FLOOR_MIN = 60


def get_available_time_for_slot(slot: str, pace: Optional[str] = "balanced") -> int:
    """Minutes available in *slot* at *pace* (unknown pace → balanced)."""
    return round(SLOT_BASE_MINUTES[slot] * _PACE_MULTIPLIER.get(pace or "balanced", 1.0))


def get_travel_time(pace: Optional[str] = "balanced") -> int:
    """Flat buffer between consecutive activities in the same slot."""
    return _TRAVEL_BUFFER_MIN.get(pace or "balanced", _TRAVEL_BUFFER_MIN["balanced"])


def get_slot_budget(
    slot: str,
    pace: Optional[str] = "balanced",
    day_trip_travel_minutes: Optional[int] = None,
) -> int:
    """
    Slot budget with day-trip travel deducted: outbound from the morning,
    return from the evening, each floored at DAY_TRIP_SLOT_FLOOR_MIN.
    """
    available = get_available_time_for_slot(slot, pace)
    if day_trip_travel_minutes and slot in ("morning", "evening"):
        available = max(DAY_TRIP_SLOT_FLOOR_MIN, available - day_trip_travel_minutes)
    return available
