"""
modules/validation package — data quality guards for the location snapshot.
"""
from modules.validation.ingestion_validator import (
    ValidationResult,
    validate_location,
    filter_valid,
)
from modules.validation.geo_validator import (
    MAX_DISTANCE_FROM_CITY_KM,
    is_location_valid_for_city,
)

__all__ = [
    "ValidationResult",
    "validate_location",
    "filter_valid",
    "MAX_DISTANCE_FROM_CITY_KM",
    "is_location_valid_for_city",
]
