"""
modules/validation/ingestion_validator.py
------------------------------------------
Record-level data-quality guards applied when the location snapshot is
indexed for a generation run.

  Location:
    ✓ Non-empty id, name and city
    ✓ Coordinates (optional) — latitude in [-90, 90], longitude in [-180, 180]
    ✓ Coordinates are not both exactly 0.0 (likely missing)
    ✓ Rating in [0, 5] if present
    ✓ Structured visit minutes >= 0 if present

Geographic consistency with the claimed city lives in geo_validator.py.

Usage:
    from modules.validation import validate_location, filter_valid

    clean = filter_valid(locations, validate_location)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, TypeVar

from schemas.location import Location

logger = logging.getLogger(__name__)

T = TypeVar("T")


# ── Result dataclass ───────────────────────────────────────────────────────────

@dataclass
class ValidationResult:
    """
    Outcome of a single validation run.

    Attributes:
        valid:  True iff there are zero errors.
        errors: Human-readable list of failure reasons.
    """
    valid: bool
    errors: list[str] = field(default_factory=list)

    def __bool__(self) -> bool:
        return self.valid


# ── Location validation ────────────────────────────────────────────────────────

def validate_location(loc: Location) -> ValidationResult:
    errors: list[str] = []

    if not str(loc.id).strip():
        errors.append("id must not be empty")
    if not loc.name or not loc.name.strip():
        errors.append("name must not be empty")
    if not loc.city or not loc.city.strip():
        errors.append("city must not be empty")

    # ── Coordinates ────────────────────────────────────────────────────────
    if loc.coordinates is not None:
        lat, lng = loc.coordinates.lat, loc.coordinates.lng
        if not (-90.0 <= lat <= 90.0):
            errors.append(f"lat={lat} is outside valid range [-90, 90]")
        if not (-180.0 <= lng <= 180.0):
            errors.append(f"lng={lng} is outside valid range [-180, 180]")
        if lat == 0.0 and lng == 0.0:
            errors.append("lat=0.0 and lng=0.0: likely a missing/default value")

    # ── Rating ─────────────────────────────────────────────────────────────
    if loc.rating is not None and not (0.0 <= float(loc.rating) <= 5.0):
        errors.append(f"rating={loc.rating} is outside valid range [0, 5]")

    # ── Duration ───────────────────────────────────────────────────────────
    if loc.recommended_visit_minutes is not None and loc.recommended_visit_minutes < 0:
        errors.append(f"recommended_visit_minutes={loc.recommended_visit_minutes} must be >= 0")

    return ValidationResult(valid=len(errors) == 0, errors=errors)


# ── Batch filter helper ────────────────────────────────────────────────────────

def filter_valid(
    items: list[T],
    validator: Callable[[T], ValidationResult],
    log: bool = True,
) -> list[T]:
    """
    Apply a validator to every item in a list, return only the valid ones.

    Rejected records are logged at WARNING with their failure reasons.
    """
    valid_items: list[T] = []
    rejected = 0

    for item in items:
        result = validator(item)
        if result.valid:
            valid_items.append(item)
        else:
            rejected += 1
            if log:
                logger.warning(
                    "Rejected location %r: %s",
                    getattr(item, "name", "?"), "; ".join(result.errors),
                )

    if log and rejected:
        logger.warning("%d/%d records rejected; %d passed.", rejected, len(items), len(valid_items))

    return valid_items
