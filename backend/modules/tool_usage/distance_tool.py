"""
modules/tool_usage/distance_tool.py
-------------------------------------
Straight-line distance helpers using the Haversine formula.
No external HTTP calls are made.

Config knob (config.py):
  WALKING_SPEED_KMH -- walking speed used for travel-time estimates (default: 4.5)
"""

from __future__ import annotations
import math

import config

# ---------------------------------------------------------------------------
# Pure maths
# ---------------------------------------------------------------------------

_EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points (Haversine formula) in km."""
    r = _EARTH_RADIUS_KM
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lam = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
    )
    return 2 * r * math.asin(math.sqrt(a))


def walking_minutes(km: float, speed_kmh: float | None = None) -> float:
    """Straight-line km to minutes at walking speed."""
    return (km / (speed_kmh or config.WALKING_SPEED_KMH)) * 60.0
