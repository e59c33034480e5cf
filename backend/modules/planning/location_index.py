"""
modules/planning/location_index.py
------------------------------------
Per-run lookup tables over the location snapshot.

A LocationIndex is built once per generation call and passed to every helper
that needs it; nothing here is process-global or mutated after construction.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional

from schemas.location import Location
from modules.tool_usage.city_tool import REGIONS, REGION_ID_BY_LABEL, normalize_key
from modules.validation import filter_valid, validate_location


@dataclass(frozen=True)
class CityInfo:
    key: str
    label: str
    region_id: Optional[str] = None


# Registry cities, known before any location is seen.
REGISTRY_CITIES: dict[str, CityInfo] = {
    city.id: CityInfo(key=city.id, label=city.name, region_id=region.id)
    for region in REGIONS.values()
    for city in region.cities
}


@dataclass
class LocationIndex:
    locations: list[Location]
    by_id: dict[str, Location] = field(default_factory=dict)
    by_city: dict[str, list[Location]] = field(default_factory=dict)
    by_region: dict[str, list[Location]] = field(default_factory=dict)
    city_info: dict[str, CityInfo] = field(default_factory=dict)

    @classmethod
    def build(cls, locations: list[Location], validate: bool = True) -> "LocationIndex":
        """
        Index *locations* by id, city key and region id.

        Rows failing ingestion checks are dropped. Cities not in the registry
        get a CityInfo from the first row that mentions them. Lists are sorted
        by name so that downstream picking is order-stable.
        """
        rows = filter_valid(locations, validate_location) if validate else list(locations)
        index = cls(locations=rows, city_info=dict(REGISTRY_CITIES))

        for loc in rows:
            index.by_id.setdefault(loc.id, loc)
            city_key = normalize_key(loc.city)
            if not city_key:
                continue
            info = index.city_info.get(city_key)
            if info is None:
                info = CityInfo(
                    key=city_key,
                    label=loc.city.strip(),
                    region_id=REGION_ID_BY_LABEL.get(normalize_key(loc.region)),
                )
                index.city_info[city_key] = info

            index.by_city.setdefault(city_key, []).append(loc)
            if info.region_id:
                index.by_region.setdefault(info.region_id, []).append(loc)

        for bucket in (*index.by_city.values(), *index.by_region.values()):
            bucket.sort(key=lambda l: (l.name.lower(), l.id))
        return index

    # ── Lookups ───────────────────────────────────────────────────────────────

    def get_city(self, city_key: str) -> Optional[CityInfo]:
        return self.city_info.get(normalize_key(city_key))

    def locations_in_city(self, city_key: str) -> list[Location]:
        return self.by_city.get(normalize_key(city_key), [])

    def locations_in_region(self, region_id: Optional[str]) -> list[Location]:
        return self.by_region.get(region_id or "", [])

    def has_locations(self, city_key: str) -> bool:
        return bool(self.by_city.get(normalize_key(city_key)))
