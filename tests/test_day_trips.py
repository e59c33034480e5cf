"""Unit tests for modules/planning/day_trips.py"""
import pytest

from modules.planning.day_trips import (
    get_day_trips_from_city,
    max_day_trips_for,
    should_suggest_day_trip,
)


class TestShouldSuggestDayTrip:

    def test_needs_two_days_in_city(self):
        assert should_suggest_day_trip("kyoto", 1, 0) is None

    def test_needs_low_pool(self):
        assert should_suggest_day_trip("kyoto", 2, 6) is None
        assert should_suggest_day_trip("kyoto", 2, 6, target_activities_per_day=4) is not None

    def test_nearest_target(self):
        trip = should_suggest_day_trip("Kyoto ", 3, 2)
        assert trip.city_id == "nara"
        assert trip.travel_minutes == 45

    def test_exclude_skips_targets(self):
        assert should_suggest_day_trip("kyoto", 2, 0, exclude={"nara"}).city_id == "osaka"
        assert should_suggest_day_trip("kyoto", 2, 0, exclude={"nara", "osaka", "kobe"}) is None

    def test_unknown_city(self):
        assert should_suggest_day_trip("sendai", 5, 0) is None
        assert get_day_trips_from_city("sendai") == ()


class TestDayTripCap:

    @pytest.mark.parametrize("days,cap", [(1, 1), (4, 1), (5, 2), (10, 3), (20, 4), (40, 4)])
    def test_cap(self, days, cap):
        assert max_day_trips_for(days) == cap
