"""
db/
----
Database access layer for the itinerary engine.

Storage architecture:
  PostgreSQL (psycopg2) — location snapshot
    tables: locations, location_operating_hours
    queries: db/repositories/location_repo.py

  Redis (redis-py) — volatile forecast cache
    weather:{city}:{start}:{end}  TTL = WEATHER_CACHE_TTL  (3 h)

Public exports (import from here for convenience):
    from db import get_conn, get_redis
    from db.repositories import location_repo
"""

from db.connection import get_conn, close_pool
from db.redis_client import get_redis

__all__ = ["get_conn", "close_pool", "get_redis"]
