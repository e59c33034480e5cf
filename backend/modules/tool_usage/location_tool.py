"""
modules/tool_usage/location_tool.py
-------------------------------------
Location source consumed by the itinerary generator.

LocationTool.fetch_all_locations(cities) reads the PostgreSQL snapshot once per
generation run. psycopg2 errors propagate: the run fails atomically.
"""

from __future__ import annotations
import logging
from typing import Optional

from db.connection import get_conn
from db.repositories import location_repo
from schemas.location import Location

logger = logging.getLogger(__name__)


class LocationTool:
    """PostgreSQL-backed location snapshot."""

    def fetch_all_locations(self, cities: Optional[list[str]] = None) -> list[Location]:
        with get_conn() as conn:
            rows = location_repo.fetch_locations(conn, cities)
        logger.info("Fetched %d locations for cities=%s", len(rows), cities or "all")
        return [Location.from_dict(r) for r in rows]
