"""Unit tests for modules/planning/city_sequence.py and location_index.py"""
from conftest import make_location

from schemas.trip import TripBuilderData
from modules.planning.city_sequence import (
    FALLBACK_CITY,
    expand_city_sequence_for_days,
    resolve_city_sequence,
)
from modules.planning.location_index import CityInfo, LocationIndex


def _keys(sequence):
    return [c.key for c in sequence]


# ----------------------------------------------------------------
# LocationIndex
# ----------------------------------------------------------------

class TestLocationIndex:

    def test_groups_and_sorts_by_name(self):
        index = LocationIndex.build([
            make_location("1", name="Zen Garden", city="Kyoto"),
            make_location("2", name="Arashiyama", city="kyoto "),
            make_location("3", name="Dotonbori", city="Osaka", lat=34.67, lng=135.50),
        ])
        assert [l.name for l in index.locations_in_city("kyoto")] == ["Arashiyama", "Zen Garden"]
        assert [l.id for l in index.locations_in_region("kansai")] == ["2", "3", "1"]
        assert index.by_id["3"].city == "Osaka"

    def test_invalid_rows_dropped(self):
        index = LocationIndex.build([
            make_location("ok", city="Kyoto"),
            make_location("bad-rating", city="Kyoto", rating=7.5),
            make_location("bad-name", name="  ", city="Kyoto"),
        ])
        assert [l.id for l in index.locations] == ["ok"]

    def test_unregistered_city_gets_info(self):
        index = LocationIndex.build([
            make_location("1", city="Ise", region="Kansai", lat=34.45, lng=136.72),
        ])
        assert index.get_city("ise") == CityInfo(key="ise", label="Ise", region_id="kansai")
        assert index.get_city("kyoto").region_id == "kansai"
        assert not index.has_locations("kyoto")


# ----------------------------------------------------------------
# resolve_city_sequence
# ----------------------------------------------------------------

class TestResolveCitySequence:

    def test_explicit_cities_in_order(self, kansai_snapshot):
        index = LocationIndex.build(kansai_snapshot)
        data = TripBuilderData(cities=["Osaka", "kyoto", "osaka"])
        assert _keys(resolve_city_sequence(data, index)) == ["osaka", "kyoto"]

    def test_city_without_locations_falls_back_to_region(self, kyoto_locations):
        index = LocationIndex.build(kyoto_locations)
        data = TripBuilderData(cities=["kobe"])
        assert _keys(resolve_city_sequence(data, index)) == ["kyoto"]

    def test_regions_used_when_no_city_resolves(self, kyoto_locations, tokyo_locations):
        index = LocationIndex.build(kyoto_locations + tokyo_locations)
        data = TripBuilderData(regions=["kanto", "kansai"])
        assert _keys(resolve_city_sequence(data, index)) == ["tokyo", "kyoto"]

    def test_default_rotation(self, kyoto_locations, tokyo_locations):
        index = LocationIndex.build(tokyo_locations + kyoto_locations)
        assert _keys(resolve_city_sequence(TripBuilderData(), index)) == ["kyoto", "tokyo"]

    def test_first_location_city(self):
        index = LocationIndex.build([
            make_location("s1", city="Sendai", region="Tohoku", lat=38.26, lng=140.87),
        ])
        data = TripBuilderData(cities=["naha"])
        assert _keys(resolve_city_sequence(data, index)) == ["sendai"]

    def test_japan_placeholder(self):
        sequence = resolve_city_sequence(TripBuilderData(cities=["kyoto"]), LocationIndex.build([]))
        assert sequence == [FALLBACK_CITY]
        assert FALLBACK_CITY.label == "Japan"


# ----------------------------------------------------------------
# expand_city_sequence_for_days
# ----------------------------------------------------------------

class TestExpandCitySequence:

    def test_round_robin(self):
        a, b = CityInfo("a", "A"), CityInfo("b", "B")
        assert _keys(expand_city_sequence_for_days([a, b], 5)) == ["a", "b", "a", "b", "a"]

    def test_exact_length(self):
        seq = [CityInfo(k, k.upper()) for k in "xyz"]
        assert len(expand_city_sequence_for_days(seq, 2)) == 2
        assert len(expand_city_sequence_for_days(seq, 9)) == 9

    def test_empty(self):
        assert expand_city_sequence_for_days([], 3) == []
        assert expand_city_sequence_for_days([CityInfo("a", "A")], 0) == []
