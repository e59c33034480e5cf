"""Unit tests for modules/planning/categories.py"""
from conftest import make_location

from modules.planning.categories import (
    DEFAULT_VISIT_DURATION,
    build_tags,
    categories_for_interest,
    category_matches_interest,
    get_location_duration_minutes,
    is_food_category,
)


class TestFoodCategories:

    def test_food(self):
        for cat in ("restaurant", "cafe", "bar", "Restaurant"):
            assert is_food_category(cat)

    def test_non_food(self):
        for cat in ("shrine", "market", "", None):
            assert not is_food_category(cat)


class TestDurationChain:

    def test_structured_minutes_win(self):
        loc = make_location("a", category="museum", minutes=45, estimated_duration="3 hours")
        assert get_location_duration_minutes(loc) == 45

    def test_free_text_hours(self):
        loc = make_location("a", category="museum", minutes=None, estimated_duration="1.5 hours")
        assert get_location_duration_minutes(loc) == 90

    def test_unparseable_text_falls_to_category(self):
        loc = make_location("a", category="museum", minutes=None, estimated_duration="a while")
        assert get_location_duration_minutes(loc) == 120

    def test_category_default(self):
        assert get_location_duration_minutes(make_location("a", category="viewpoint", minutes=None)) == 30

    def test_global_default(self):
        loc = make_location("a", category="aquarium", minutes=None)
        assert get_location_duration_minutes(loc) == DEFAULT_VISIT_DURATION

    def test_zero_minutes_is_ignored(self):
        loc = make_location("a", category="garden", minutes=0)
        assert get_location_duration_minutes(loc) == 60


class TestTags:

    def test_interest_then_category(self):
        assert build_tags("culture", "shrine") == ["cultural", "shrine"]

    def test_duplicate_tag_collapsed(self):
        assert build_tags("nightlife", "bar") == ["nightlife"]

    def test_unknown_category(self):
        assert build_tags("nature", "onsen") == ["nature"]


class TestInterestMatch:

    def test_match(self):
        assert category_matches_interest("Temple", "history")

    def test_no_match(self):
        assert not category_matches_interest("bar", "culture")
        assert not category_matches_interest(None, "culture")

    def test_categories_for_interest(self):
        assert "viewpoint" in categories_for_interest("nature")
        assert categories_for_interest("skydiving") == ()
