"""
Tests for modules/planning/itinerary_generator.py

Every test drives the async entry point with asyncio.run and in-memory
locations / sources, so no database, Redis or network is touched.
"""
import asyncio
import logging
import re
from datetime import date

import pytest

from conftest import FakeLocationSource, FakeWeatherSource, make_location

from schemas.itinerary import NoteActivity
from schemas.location import OperatingPeriod
from schemas.trip import TripBuilderData, TripDates
from modules.observability.logger import StructuredLogger
from modules.planning.itinerary_generator import (
    generate_itinerary,
    generate_itinerary_from_trip,
    pick_time_slot_for_saved,
    resolve_total_days,
)
from modules.planning.time_slots import get_slot_budget, get_travel_time
from modules.tool_usage.weather_tool import WeatherForecast


def _run(data, locations=None, **kwargs):
    return asyncio.run(generate_itinerary(data, locations=locations, **kwargs))


def _all_place_activities(itinerary):
    return [a for d in itinerary.days for a in d.place_activities]


# ----------------------------------------------------------------
# Helpers
# ----------------------------------------------------------------

class TestHelpers:

    @pytest.mark.parametrize("duration,expected", [(None, 5), (0, 5), (-2, 5), (7, 7)])
    def test_total_days(self, duration, expected):
        assert resolve_total_days(TripBuilderData(duration=duration)) == expected

    def test_saved_slot_by_category(self):
        empty = {"morning": 0, "afternoon": 0, "evening": 0}
        assert pick_time_slot_for_saved("museum", empty) == "afternoon"
        assert pick_time_slot_for_saved("bar", empty) == "evening"
        assert pick_time_slot_for_saved("restaurant", empty) == "morning"

    def test_saved_slot_overflows_to_least_used(self):
        usage = {"morning": 150, "afternoon": 90, "evening": 30}
        assert pick_time_slot_for_saved("temple", usage) == "evening"

    def test_saved_slot_uses_day_budgets_and_travel(self):
        budgets = {"morning": 135, "afternoon": 225, "evening": 180}
        usage = {"morning": 60, "afternoon": 0, "evening": 0}
        cost = {"morning": 90, "afternoon": 60, "evening": 60}
        assert pick_time_slot_for_saved("shrine", usage, budgets, cost) == "afternoon"


# ----------------------------------------------------------------
# Core invariants
# ----------------------------------------------------------------

class TestSchedulingInvariants:

    def test_day_count(self):
        assert len(_run(TripBuilderData(duration=7), []).days) == 7
        assert len(_run(TripBuilderData(duration=0), []).days) == 5

    def test_no_location_repeats(self, kansai_snapshot):
        dup = make_location("kyo-dup", name="Kyoto Shrine 1", category="shrine", lat=35.001, lng=135.761)
        data = TripBuilderData(duration=6, cities=["kyoto"], interests=["culture", "nature"])
        itinerary = _run(data, kansai_snapshot + [dup])

        acts = _all_place_activities(itinerary)
        assert acts
        ids = [a.location_id for a in acts]
        names = [a.title.lower().strip() for a in acts]
        assert len(ids) == len(set(ids))
        assert len(names) == len(set(names))
        activity_ids = [a.id for d in itinerary.days for a in d.activities]
        assert len(activity_ids) == len(set(activity_ids))

    def test_food_never_picked_by_main_pass(self, kyoto_locations, kyoto_trip):
        acts = _all_place_activities(_run(kyoto_trip, kyoto_locations))
        assert all(a.meal_type is None for a in acts)
        assert {"kyo-r1", "kyo-r2"}.isdisjoint(a.location_id for a in acts)

    def test_slot_budgets_respected(self, kyoto_locations, kyoto_trip):
        itinerary = _run(kyoto_trip, kyoto_locations)
        travel = get_travel_time("balanced")
        for day in itinerary.days:
            for slot in ("morning", "afternoon", "evening"):
                acts = [a for a in day.place_activities if a.time_of_day == slot]
                used = sum(a.duration_min for a in acts) + travel * max(0, len(acts) - 1)
                assert used <= get_slot_budget(slot, "balanced") * 1.1

    def test_first_day_fills_slots_in_order(self, kyoto_locations, kyoto_trip):
        day1 = _run(kyoto_trip, kyoto_locations).days[0]
        slots = [a.time_of_day for a in day1.place_activities]
        assert slots == ["morning"] * 2 + ["afternoon"] * 4 + ["evening"] * 3
        first = day1.place_activities[0]
        assert first.id == f"{first.location_id}-1-morning-1"
        assert first.recommendation_reason is not None
        assert first.tags[0] in ("cultural", "nature")

    def test_city_runs_dry(self, kyoto_locations, kyoto_trip):
        itinerary = _run(kyoto_trip, kyoto_locations)
        counts = [len(d.activities) for d in itinerary.days]
        assert counts == [9, 6, 0]
        assert all(d.city_id == "kyoto" for d in itinerary.days)
        assert itinerary.days[0].date_label == "Day 1 (Kyoto)"
        assert itinerary.days[0].weekday == "wednesday"

    def test_faster_pace_fits_more(self, kyoto_locations):
        def first_day(style):
            data = TripBuilderData(duration=1, cities=["kyoto"], interests=["culture"], style=style)
            return len(_run(data, kyoto_locations).days[0].activities)

        assert first_day("fast") > first_day("balanced") > first_day("relaxed")

    def test_fast_trip_never_has_fewer_activities(self, kansai_snapshot):
        def total(style):
            data = TripBuilderData(duration=4, cities=["kyoto"], style=style)
            return len(_all_place_activities(_run(data, kansai_snapshot)))

        assert total("fast") >= total("relaxed")

    def test_deterministic_with_seed(self, kansai_snapshot):
        data = TripBuilderData(duration=4, cities=["kyoto"], interests=["culture"])
        a = _run(data, kansai_snapshot, seed=7).to_dict()
        b = _run(data, kansai_snapshot, seed=7).to_dict()
        assert a == b
        assert re.fullmatch(r"day-1-[0-9a-f]{8}", a["days"][0]["id"])


# ----------------------------------------------------------------
# Sparse data
# ----------------------------------------------------------------

class TestSparseData:

    def test_no_locations_at_all(self):
        itinerary = _run(TripBuilderData(duration=2, cities=["kyoto"]), [])
        assert [d.activities for d in itinerary.days] == [[], []]
        assert all(d.city_id is None for d in itinerary.days)
        assert itinerary.days[0].date_label == "Day 1 (Japan)"

    def test_food_only_city(self):
        food = [
            make_location(f"nf-{i}", city="Nara", category="restaurant", lat=34.68 + i * 0.001, lng=135.80)
            for i in range(5)
        ]
        itinerary = _run(TripBuilderData(duration=3, cities=["nara"]), food)
        assert all(d.activities == [] for d in itinerary.days)
        assert all(d.city_id == "nara" for d in itinerary.days)

    def test_from_trip_dict(self, kyoto_locations):
        itinerary = asyncio.run(generate_itinerary_from_trip(
            {"duration": 1, "cities": ["Kyoto"], "style": "fast"},
            locations=kyoto_locations,
        ))
        assert len(itinerary.days) == 1
        assert itinerary.days[0].place_activities


# ----------------------------------------------------------------
# Saved places and meals
# ----------------------------------------------------------------

class TestSavedLocations:

    def test_saved_place_included_once(self, kyoto_locations):
        museum = make_location("loc-42", name="Kyoto National Museum", category="museum",
                               lat=35.0, lng=135.77)
        data = TripBuilderData(duration=3, cities=["kyoto"], interests=["nature"], saved_ids=["loc-42"])
        itinerary = _run(data, kyoto_locations + [museum], favorite_ids=["loc-42"])

        hits = [a for a in _all_place_activities(itinerary) if a.location_id == "loc-42"]
        assert len(hits) == 1
        saved = hits[0]
        assert saved.id == "loc-42-1-fav"
        assert saved.time_of_day == "afternoon"
        assert saved.tags == ["museum", "saved"]
        assert saved.recommendation_reason.primary_reason == "From your saved places"

    def test_unknown_saved_id_ignored(self, kyoto_locations, kyoto_trip):
        itinerary = _run(kyoto_trip, kyoto_locations, favorite_ids=["nope"])
        assert len(itinerary.days) == 3

    def test_one_meal_of_each_type_per_day(self, kyoto_locations, kyoto_trip):
        itinerary = _run(kyoto_trip, kyoto_locations, favorite_ids=["kyo-r1", "kyo-r2"])
        day1 = itinerary.days[0]
        meals = [a.meal_type for a in day1.place_activities if a.meal_type]
        assert meals == ["breakfast", "snack"]

    @staticmethod
    def _slot_minutes(day, slot, travel):
        acts = [a for a in day.place_activities if a.time_of_day == slot]
        return sum(a.duration_min for a in acts) + travel * max(0, len(acts) - 1)

    def test_saved_places_respect_relaxed_budget(self, kyoto_locations):
        shrines = [
            make_location(f"s{i}", name=f"Saved Shrine {i}", category="shrine", lat=35.02, lng=135.78 + i * 0.001)
            for i in range(3)
        ]
        data = TripBuilderData(duration=1, cities=["kyoto"], style="relaxed", saved_ids=["s0", "s1", "s2"])
        day = _run(data, kyoto_locations + shrines).days[0]

        saved = {a.location_id: a.time_of_day for a in day.place_activities if "saved" in a.tags}
        assert saved == {"s0": "morning", "s1": "afternoon", "s2": "evening"}
        travel = get_travel_time("relaxed")
        for slot in ("morning", "afternoon", "evening"):
            assert self._slot_minutes(day, slot, travel) <= get_slot_budget(slot, "relaxed") * 1.1

    def test_saved_places_respect_day_trip_budget(self, kansai_snapshot):
        data = TripBuilderData(duration=3, cities=["kyoto"], interests=["culture"],
                               saved_ids=["nara-01", "nara-03", "nara-05"])
        nara_day = _run(data, kansai_snapshot).days[2]
        assert nara_day.is_day_trip and nara_day.city_id == "nara"

        saved = [a for a in nara_day.place_activities if "saved" in a.tags]
        assert {a.location_id for a in saved} == {"nara-01", "nara-03", "nara-05"}
        assert [a.time_of_day for a in saved].count("morning") == 1
        travel = get_travel_time("balanced")
        for slot in ("morning", "afternoon", "evening"):
            assert self._slot_minutes(nara_day, slot, travel) <= get_slot_budget(slot, "balanced", 45) * 1.1


# ----------------------------------------------------------------
# Day trips
# ----------------------------------------------------------------

class TestDayTrips:

    def test_day_trip_when_base_runs_dry(self, kansai_snapshot):
        data = TripBuilderData(duration=10, cities=["kyoto"], interests=["culture", "nature"])
        itinerary = _run(data, kansai_snapshot)

        trips = [d for d in itinerary.days if d.is_day_trip]
        assert trips
        assert any(d.is_day_trip for d in itinerary.days[:5])
        assert len(trips) <= 3
        assert {d.city_id for d in trips} <= {"nara", "osaka", "kobe"}

        first = trips[0]
        assert first.base_city_id == "kyoto"
        assert isinstance(first.activities[0], NoteActivity)
        assert first.activities[0].id == f"day-{itinerary.days.index(first) + 1}-day-trip"
        assert "Day Trip: Kyoto →" in first.date_label

    def test_day_trip_sequence(self, kansai_snapshot):
        data = TripBuilderData(duration=10, cities=["kyoto"], interests=["culture", "nature"])
        days = _run(data, kansai_snapshot).days
        assert [d.city_id for d in days[:4]] == ["kyoto", "kyoto", "nara", "osaka"]
        assert days[2].day_trip_travel_minutes == 45
        assert days[2].date_label == "Day 3 (Day Trip: Kyoto → Nara)"

    def test_day_trip_shortens_slots(self, kansai_snapshot):
        data = TripBuilderData(duration=3, cities=["kyoto"], interests=["culture"])
        nara_day = _run(data, kansai_snapshot).days[2]
        morning = [a for a in nara_day.place_activities if a.time_of_day == "morning"]
        used = sum(a.duration_min for a in morning) + get_travel_time() * max(0, len(morning) - 1)
        assert used <= get_slot_budget("morning", "balanced", 45) * 1.1

    def test_trip_cap(self, kansai_snapshot):
        data = TripBuilderData(duration=4, cities=["kyoto"])
        itinerary = _run(data, kansai_snapshot)
        assert sum(1 for d in itinerary.days if d.is_day_trip) == 1

    def test_no_day_trips_for_many_cities(self, kansai_snapshot):
        data = TripBuilderData(duration=9, cities=["kyoto", "osaka", "nara"])
        itinerary = _run(data, kansai_snapshot)
        assert not any(d.is_day_trip for d in itinerary.days)
        assert [d.city_id for d in itinerary.days[:3]] == ["kyoto", "osaka", "nara"]


# ----------------------------------------------------------------
# Sources
# ----------------------------------------------------------------

class TestSources:

    def test_location_fetch_widened_to_day_trip_targets(self, kansai_snapshot):
        source = FakeLocationSource(kansai_snapshot)
        data = TripBuilderData(duration=2, cities=["Kyoto"])
        asyncio.run(generate_itinerary(data, location_source=source))
        assert source.calls == [["kyoto"], ["nara", "osaka", "kobe"]]

    def test_weather_needs_both_dates(self, kyoto_locations):
        weather = FakeWeatherSource()
        data = TripBuilderData(duration=2, cities=["kyoto"], dates=TripDates(start=date(2026, 4, 1)))
        itinerary = _run(data, kyoto_locations, weather_source=weather)
        assert weather.calls == []
        assert itinerary.days[0].weekday == "wednesday"
        assert itinerary.days[1].weekday == "thursday"

    def test_weather_failure_is_tolerated(self, kansai_snapshot, caplog):
        rainy = {"2026-04-01": WeatherForecast(date="2026-04-01", condition="rain", temp_min=10, temp_max=14)}
        weather = FakeWeatherSource(forecasts={"nara": rainy}, failing={"kyoto"})
        data = TripBuilderData(
            duration=3, cities=["kyoto"],
            dates=TripDates(start=date(2026, 4, 1), end=date(2026, 4, 3)),
        )
        with caplog.at_level(logging.WARNING):
            itinerary = _run(data, kansai_snapshot, weather_source=weather)

        assert len(itinerary.days) == 3
        assert itinerary.days[0].place_activities
        assert sorted(c[0] for c in weather.calls) == ["kyoto", "nara", "osaka"]
        assert "Failed to fetch weather for kyoto" in caplog.text

    def test_opening_hours_respected_with_dates(self, kyoto_locations):
        # 2026-04-01 is a Wednesday
        night_only = make_location(
            "kyo-night", name="Night Market", category="shopping", lat=35.001, lng=135.761,
            operating_hours=[
                OperatingPeriod("wednesday", "18:00", "23:00"),
            ],
        )
        data = TripBuilderData(
            duration=1, cities=["kyoto"], interests=["shopping"],
            dates=TripDates(start=date(2026, 4, 1), end=date(2026, 4, 1)),
        )
        itinerary = _run(data, kyoto_locations + [night_only], weather_source=FakeWeatherSource())
        hits = [a for a in itinerary.days[0].place_activities if a.location_id == "kyo-night"]
        assert all(a.time_of_day == "evening" for a in hits)

    def test_run_log_closed_when_fetch_fails(self, tmp_path):
        class BrokenSource:
            def fetch_all_locations(self, cities=None):
                raise RuntimeError("connection refused")

        run_log = StructuredLogger(logs_dir=tmp_path, enabled=True)
        data = TripBuilderData(duration=2, cities=["kyoto"])
        with pytest.raises(RuntimeError, match="connection refused"):
            asyncio.run(generate_itinerary(data, location_source=BrokenSource(), run_log=run_log))

        assert run_log._handles == {}
        [log_file] = tmp_path.glob("run_*.jsonl")
        events = log_file.read_text(encoding="utf-8")
        assert "generation_start" in events
        assert "generation_complete" not in events
