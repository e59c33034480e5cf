"""
db/repositories/location_repo.py
----------------------------------
Read queries for the `locations` and `location_operating_hours` tables.

All functions accept a psycopg2 connection object.
Session handling is managed by the caller via db.connection.get_conn().
"""

from __future__ import annotations

from typing import Any, Optional

import psycopg2.extras


_LOCATION_COLUMNS = """
    l.id, l.name, l.city, l.region, l.category,
    l.lat, l.lng, l.neighborhood, l.description,
    l.recommended_visit_minutes, l.estimated_duration,
    l.rating, l.review_count, l.min_budget,
    l.wheelchair_accessible, l.elevator_available, l.step_free_access,
    l.tags
"""


def fetch_locations(conn, cities: Optional[list[str]] = None) -> list[dict[str, Any]]:
    """
    Return location rows (optionally restricted to *cities*, case-insensitive),
    each with an `operating_hours` list attached.
    Rows are ordered by id so the snapshot is stable between runs.
    """
    sql = f"SELECT {_LOCATION_COLUMNS} FROM locations l"
    params: dict[str, Any] = {}
    if cities:
        sql += " WHERE lower(l.city) = ANY(%(cities)s)"
        params["cities"] = [c.strip().lower() for c in cities]
    sql += " ORDER BY l.id"

    with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
        cur.execute(sql, params)
        rows = [dict(r) for r in cur.fetchall()]

    if not rows:
        return rows

    hours = fetch_operating_hours(conn, [r["id"] for r in rows])
    for row in rows:
        row["accessibility"] = {
            "wheelchair_accessible": row.pop("wheelchair_accessible"),
            "elevator_available":    row.pop("elevator_available"),
            "step_free_access":      row.pop("step_free_access"),
        }
        row["operating_hours"] = hours.get(row["id"], [])
    return rows


def fetch_operating_hours(conn, location_ids: list[Any]) -> dict[Any, list[dict[str, Any]]]:
    """Return {location_id: [{day, open, close, is_overnight}, ...]}."""
    sql = """
        SELECT location_id, day, open_time, close_time, is_overnight
        FROM location_operating_hours
        WHERE location_id = ANY(%(ids)s)
        ORDER BY location_id, day, open_time
    """
    out: dict[Any, list[dict[str, Any]]] = {}
    with conn.cursor(cursor_factory=psycopg2.extras.RealDictCursor) as cur:
        cur.execute(sql, {"ids": location_ids})
        for r in cur.fetchall():
            out.setdefault(r["location_id"], []).append({
                "day":          r["day"],
                "open":         str(r["open_time"])[:5],
                "close":        str(r["close_time"])[:5],
                "is_overnight": r["is_overnight"],
            })
    return out
