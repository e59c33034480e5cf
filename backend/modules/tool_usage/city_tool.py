"""
modules/tool_usage/city_tool.py
---------------------------------
Static region / city registry for Japan.

Provides:
  REGIONS                  — region id → RegionRecord (display name + cities)
  CITY_CENTER_COORDINATES  — city id → (lat, lng) used for distance validation
  REGION_BOUNDS            — region display name → lat/lng bounding box
  get_region_for_city()    — city id → region id
  find_region_by_coordinates()
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Optional


def normalize_key(value: Optional[str]) -> str:
    """Lower-cased, trimmed key used for city / region lookups."""
    return value.strip().lower() if isinstance(value, str) else ""


@dataclass(frozen=True)
class CityRecord:
    id: str
    name: str


@dataclass(frozen=True)
class RegionRecord:
    id: str
    name: str
    cities: tuple[CityRecord, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class RegionBounds:
    north: float
    south: float
    east: float
    west: float

    def contains(self, lat: float, lng: float) -> bool:
        return self.south <= lat <= self.north and self.west <= lng <= self.east


def _region(region_id: str, name: str, *cities: tuple[str, str]) -> RegionRecord:
    return RegionRecord(region_id, name, tuple(CityRecord(cid, cname) for cid, cname in cities))


# ── Registry ──────────────────────────────────────────────────────────────────

REGIONS: dict[str, RegionRecord] = {
    r.id: r
    for r in (
        _region("kansai", "Kansai",
                ("kyoto", "Kyoto"), ("osaka", "Osaka"), ("nara", "Nara"), ("kobe", "Kobe")),
        _region("kanto", "Kanto",
                ("tokyo", "Tokyo"), ("yokohama", "Yokohama"),
                ("kamakura", "Kamakura"), ("nikko", "Nikko")),
        _region("chubu", "Chubu",
                ("nagoya", "Nagoya"), ("kanazawa", "Kanazawa"), ("takayama", "Takayama")),
        _region("kyushu", "Kyushu", ("fukuoka", "Fukuoka"), ("nagasaki", "Nagasaki")),
        _region("hokkaido", "Hokkaido", ("sapporo", "Sapporo"), ("hakodate", "Hakodate")),
        _region("tohoku", "Tohoku", ("sendai", "Sendai")),
        _region("chugoku", "Chugoku", ("hiroshima", "Hiroshima"), ("miyajima", "Miyajima")),
        _region("shikoku", "Shikoku", ("matsuyama", "Matsuyama"), ("takamatsu", "Takamatsu")),
        _region("okinawa", "Okinawa", ("naha", "Naha")),
    )
}

# Used to validate that a location's coordinates are near its claimed city.
CITY_CENTER_COORDINATES: dict[str, tuple[float, float]] = {
    "tokyo":     (35.6762, 139.6503),
    "yokohama":  (35.4437, 139.6380),
    "kamakura":  (35.3192, 139.5467),
    "nikko":     (36.7199, 139.6982),
    "osaka":     (34.6937, 135.5023),
    "kyoto":     (35.0116, 135.7681),
    "nara":      (34.6851, 135.8048),
    "kobe":      (34.6901, 135.1956),
    "nagoya":    (35.1815, 136.9066),
    "kanazawa":  (36.5613, 136.6562),
    "takayama":  (36.1461, 137.2522),
    "fukuoka":   (33.5904, 130.4017),
    "nagasaki":  (32.7503, 129.8779),
    "sapporo":   (43.0618, 141.3545),
    "hakodate":  (41.7687, 140.7288),
    "sendai":    (38.2682, 140.8694),
    "hiroshima": (34.3853, 132.4553),
    "miyajima":  (34.2960, 132.3198),
    "naha":      (26.2124, 127.6809),
    "matsuyama": (33.8416, 132.7657),
    "takamatsu": (34.3401, 134.0434),
}

REGION_BOUNDS: dict[str, RegionBounds] = {
    "Hokkaido": RegionBounds(north=45.5, south=41.4, east=145.9, west=139.3),
    "Tohoku":   RegionBounds(north=41.5, south=37.0, east=142.1, west=139.0),
    "Kanto":    RegionBounds(north=37.0, south=34.5, east=140.9, west=138.2),
    "Chubu":    RegionBounds(north=37.5, south=34.5, east=139.2, west=135.8),
    "Kansai":   RegionBounds(north=36.0, south=33.4, east=136.8, west=134.0),
    "Chugoku":  RegionBounds(north=36.0, south=33.5, east=134.5, west=130.8),
    "Shikoku":  RegionBounds(north=34.5, south=32.7, east=134.8, west=132.0),
    "Kyushu":   RegionBounds(north=34.3, south=31.0, east=132.1, west=129.5),
    "Okinawa":  RegionBounds(north=27.5, south=24.0, east=131.5, west=122.9),
}

# Bounding boxes of these regions overlap their neighbours too much for a
# coordinate check to be trusted.
OVERLAPPING_REGIONS: frozenset[str] = frozenset({"Shikoku", "Chugoku", "Kansai"})

REGION_ID_BY_LABEL: dict[str, str] = {normalize_key(r.name): r.id for r in REGIONS.values()}

_REGION_BY_CITY: dict[str, str] = {
    c.id: r.id for r in REGIONS.values() for c in r.cities
}


# ── Lookups ───────────────────────────────────────────────────────────────────

def get_region_for_city(city_id: str) -> Optional[str]:
    return _REGION_BY_CITY.get(normalize_key(city_id))


def get_city_record(city_id: str) -> Optional[CityRecord]:
    region_id = get_region_for_city(city_id)
    if region_id is None:
        return None
    key = normalize_key(city_id)
    return next(c for c in REGIONS[region_id].cities if c.id == key)


def region_name(region_id: Optional[str]) -> Optional[str]:
    region = REGIONS.get(region_id or "")
    return region.name if region else None


def find_region_by_coordinates(lat: float, lng: float) -> Optional[str]:
    """Return the first region (display name) whose bounding box contains the point."""
    for name, bounds in REGION_BOUNDS.items():
        if bounds.contains(lat, lng):
            return name
    return None
