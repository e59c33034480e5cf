"""
modules/validation/geo_validator.py
------------------------------------
Checks that a location's coordinates and region are consistent with the city
it is being scheduled for. Filters out corrupted rows such as a place labelled
"Osaka" whose coordinates sit in Okinawa.

Checks, in order:
  1. Region field   — must equal the city's expected region (other-city rows only)
  2. Region bounds  — coordinates must fall in the expected region's box
                      (other-city rows only; skipped for overlapping regions)
  3. Distance       — coordinates within MAX_DISTANCE_FROM_CITY_KM of the
                      city centre (all rows)

Rows without coordinates or without a known city centre pass the checks that
need them.
"""

from __future__ import annotations

import logging
from typing import Optional

import config
from schemas.location import Location
from modules.tool_usage.city_tool import (
    CITY_CENTER_COORDINATES,
    OVERLAPPING_REGIONS,
    find_region_by_coordinates,
    get_region_for_city,
    normalize_key,
    region_name,
)
from modules.tool_usage.distance_tool import haversine_km

logger = logging.getLogger(__name__)

MAX_DISTANCE_FROM_CITY_KM: float = config.MAX_DISTANCE_FROM_CITY_KM


def is_location_valid_for_city(
    loc: Location,
    city_key: str,
    expected_region_id: Optional[str] = None,
) -> bool:
    same_city = normalize_key(loc.city) == city_key
    expected_region = region_name(expected_region_id or get_region_for_city(city_key))

    if not same_city and expected_region:
        if loc.region and normalize_key(loc.region) != normalize_key(expected_region):
            logger.debug(
                "Filtering out %r: region %r doesn't match expected %r for %s",
                loc.name, loc.region, expected_region, city_key,
            )
            return False

        if loc.coordinates and expected_region not in OVERLAPPING_REGIONS:
            found = find_region_by_coordinates(loc.coordinates.lat, loc.coordinates.lng)
            if found and found != expected_region:
                logger.debug(
                    "Filtering out %r: coordinates are in %s, not %s",
                    loc.name, found, expected_region,
                )
                return False

    center = CITY_CENTER_COORDINATES.get(city_key)
    if center and loc.coordinates:
        distance = haversine_km(center[0], center[1], loc.coordinates.lat, loc.coordinates.lng)
        if distance > MAX_DISTANCE_FROM_CITY_KM:
            logger.debug(
                "Filtering out %r: %.1fkm from %s centre (max %.0fkm)",
                loc.name, distance, city_key, MAX_DISTANCE_FROM_CITY_KM,
            )
            return False

    return True
