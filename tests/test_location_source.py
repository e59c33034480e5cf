"""Unit tests for db/repositories/location_repo.py and the LocationTool"""
from contextlib import contextmanager
from unittest.mock import MagicMock, patch

from db.repositories import location_repo
from modules.tool_usage.location_tool import LocationTool


_ROW = {
    "id": "loc-1", "name": "Fushimi Inari", "city": "Kyoto", "region": "Kansai",
    "category": "shrine", "lat": 34.9671, "lng": 135.7727, "neighborhood": "Fushimi",
    "description": None, "recommended_visit_minutes": 120, "estimated_duration": None,
    "rating": 4.8, "review_count": 52000, "min_budget": None,
    "wheelchair_accessible": False, "elevator_available": None, "step_free_access": None,
    "tags": ["outdoor"],
}
_HOURS = [{
    "location_id": "loc-1", "day": "monday", "open_time": "06:00:00",
    "close_time": "18:30:00", "is_overnight": False,
}]


def _conn(location_rows, hour_rows):
    """Connection whose successive cursors return the given result sets."""
    conn = MagicMock()
    cursors = []
    for result in (location_rows, hour_rows):
        cur = MagicMock()
        cur.fetchall.return_value = result
        cursors.append(cur)
    conn.cursor.return_value.__enter__.side_effect = cursors
    return conn, cursors


class TestLocationRepo:

    def test_fetch_filters_by_city(self):
        conn, (loc_cur, hours_cur) = _conn([dict(_ROW)], _HOURS)
        rows = location_repo.fetch_locations(conn, [" Kyoto "])

        sql, params = loc_cur.execute.call_args.args
        assert "lower(l.city) = ANY" in sql
        assert params == {"cities": ["kyoto"]}
        assert hours_cur.execute.call_args.args[1] == {"ids": ["loc-1"]}

        row = rows[0]
        assert row["accessibility"]["wheelchair_accessible"] is False
        assert "wheelchair_accessible" not in row
        assert row["operating_hours"] == [
            {"day": "monday", "open": "06:00", "close": "18:30", "is_overnight": False}
        ]

    def test_no_rows_skips_hours_query(self):
        conn, (loc_cur, hours_cur) = _conn([], [])
        assert location_repo.fetch_locations(conn) == []
        assert "WHERE" not in loc_cur.execute.call_args.args[0]
        hours_cur.execute.assert_not_called()


class TestLocationTool:

    def test_rows_become_locations(self):
        @contextmanager
        def fake_conn():
            yield MagicMock()

        with patch("modules.tool_usage.location_tool.get_conn", fake_conn), \
             patch("modules.tool_usage.location_tool.location_repo.fetch_locations") as mock_fetch:
            mock_fetch.return_value = [{
                **{k: v for k, v in _ROW.items() if not k.endswith(("accessible", "available", "access"))},
                "accessibility": {"wheelchair_accessible": True},
                "operating_hours": [{"day": "Monday", "open": "06:00", "close": "18:30"}],
            }]
            locations = LocationTool().fetch_all_locations(["kyoto"])

        loc = locations[0]
        assert loc.id == "loc-1"
        assert loc.coordinates.lat == 34.9671
        assert loc.accessibility.wheelchair_accessible is True
        assert loc.operating_hours[0].day == "monday"
        assert loc.recommended_visit_minutes == 120
        mock_fetch.assert_called_once()
