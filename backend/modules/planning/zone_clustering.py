"""
modules/planning/zone_clustering.py
-------------------------------------
Groups a city's locations into walkable zones so each day's activities stay
geographically coherent.

Algorithm (deterministic for a given input order):
  1. Bin coordinate-bearing locations into square grid cells of
     ZONE_CELL_SIZE_KM (≈1.5 km) anchored at the bounding-box south-west corner.
  2. Flood-fill 8-connected occupied cells into raw zones.
  3. Merge raw zones smaller than ZONE_MIN_SIZE into the nearest large zone
     (by centroid distance).
  4. Zones whose cells are at most one empty cell apart are neighbours
     (flood fill already joined every touching pair).

Cities with fewer than ZONE_MIN_LOCATIONS coordinate-bearing locations are not
clustered (cluster_city_locations returns None).
"""

from __future__ import annotations
import math
from dataclasses import dataclass, field
from typing import Iterable, Optional

import config
from schemas.location import Location
from modules.planning.categories import categories_for_interest

Cell = tuple[int, int]

# 8-connected neighbours (including diagonals)
_NEIGHBOR_OFFSETS: tuple[Cell, ...] = (
    (-1, -1), (-1, 0), (-1, 1),
    (0, -1),           (0, 1),
    (1, -1),  (1, 0),  (1, 1),
)
# Zone adjacency: any cell within two rows / columns
_LINK_OFFSETS: tuple[Cell, ...] = tuple(
    (dr, dc) for dr in range(-2, 3) for dc in range(-2, 3) if (dr, dc) != (0, 0)
)

# ── selection weights ─────────────────────────────────────────────────────────
_SIZE_CAP           = 20     # +1 per location, up to 20
_CATEGORY_POINTS    = 2      # per interest-relevant category present
_CATEGORY_CAP       = 12
_SAVED_POINTS       = 8      # per saved location in the zone
_CENTER_PENALTY     = 10.0   # × centroid distance from city centre [degrees]


@dataclass
class GeoZone:
    id: str
    cells: set[Cell] = field(default_factory=set)
    location_ids: list[str] = field(default_factory=list)
    centroid: tuple[float, float] = (0.0, 0.0)
    categories: set[str] = field(default_factory=set)
    neighbor_ids: list[str] = field(default_factory=list)

    @property
    def size(self) -> int:
        return len(self.location_ids)


@dataclass
class CityZoneMap:
    zones: dict[str, GeoZone]
    location_to_zone: dict[str, str]
    city_center: tuple[float, float]


@dataclass
class _RawZone:
    cells: set[Cell]
    locs: list[Location]


def _centroid(locs: Iterable[Location]) -> tuple[float, float]:
    pts = [(l.coordinates.lat, l.coordinates.lng) for l in locs]
    return sum(p[0] for p in pts) / len(pts), sum(p[1] for p in pts) / len(pts)


# ---------------------------------------------------------------------------
# Clustering
# ---------------------------------------------------------------------------

def cluster_city_locations(
    locations: list[Location],
    cell_size_km: float | None = None,
    min_zone_size: int | None = None,
) -> Optional[CityZoneMap]:
    cell_size_km = cell_size_km or config.ZONE_CELL_SIZE_KM
    min_zone_size = min_zone_size or config.ZONE_MIN_SIZE

    with_coords = [l for l in locations if l.coordinates is not None]
    if len(with_coords) < config.ZONE_MIN_LOCATIONS:
        return None

    min_lat = min(l.coordinates.lat for l in with_coords)
    min_lng = min(l.coordinates.lng for l in with_coords)
    city_center = _centroid(with_coords)

    cell_lat_deg = cell_size_km / 111.32
    cell_lng_deg = cell_size_km / (111.32 * math.cos(math.radians(city_center[0])))

    # dict preserves insertion order → deterministic zone numbering
    cell_to_locs: dict[Cell, list[Location]] = {}
    for loc in with_coords:
        row = math.floor((loc.coordinates.lat - min_lat) / cell_lat_deg)
        col = math.floor((loc.coordinates.lng - min_lng) / cell_lng_deg)
        cell_to_locs.setdefault((row, col), []).append(loc)

    raw_zones = _flood_fill(cell_to_locs)
    merged = _merge_small_zones(raw_zones, min_zone_size)

    zones: dict[str, GeoZone] = {}
    location_to_zone: dict[str, str] = {}
    for i, raw in enumerate(merged):
        zone = GeoZone(
            id=f"zone-{i}",
            cells=raw.cells,
            location_ids=[l.id for l in raw.locs],
            centroid=_centroid(raw.locs),
            categories={l.category for l in raw.locs if l.category},
        )
        zones[zone.id] = zone
        for loc_id in zone.location_ids:
            location_to_zone[loc_id] = zone.id

    _link_neighbors(zones)
    return CityZoneMap(zones=zones, location_to_zone=location_to_zone, city_center=city_center)


def _flood_fill(cell_to_locs: dict[Cell, list[Location]]) -> list[_RawZone]:
    visited: set[Cell] = set()
    raw_zones: list[_RawZone] = []

    for start in cell_to_locs:
        if start in visited:
            continue
        zone = _RawZone(cells=set(), locs=[])
        stack = [start]
        while stack:
            cell = stack.pop()
            if cell in visited:
                continue
            visited.add(cell)
            zone.cells.add(cell)
            zone.locs.extend(cell_to_locs[cell])
            r, c = cell
            for dr, dc in _NEIGHBOR_OFFSETS:
                nb = (r + dr, c + dc)
                if nb not in visited and nb in cell_to_locs:
                    stack.append(nb)
        raw_zones.append(zone)

    return raw_zones


def _merge_small_zones(raw_zones: list[_RawZone], min_zone_size: int) -> list[_RawZone]:
    large = [z for z in raw_zones if len(z.locs) >= min_zone_size]
    small = [z for z in raw_zones if len(z.locs) < min_zone_size]
    if not large:
        return raw_zones

    for sz in small:
        s_lat, s_lng = _centroid(sz.locs)
        target = min(
            large,
            key=lambda z: math.hypot(s_lat - _centroid(z.locs)[0], s_lng - _centroid(z.locs)[1]),
        )
        target.cells |= sz.cells
        target.locs.extend(sz.locs)

    return large


def _link_neighbors(zones: dict[str, GeoZone]) -> None:
    cell_to_zone = {cell: z.id for z in zones.values() for cell in z.cells}
    for zone in zones.values():
        found: list[str] = []
        for r, c in sorted(zone.cells):
            for dr, dc in _LINK_OFFSETS:
                other = cell_to_zone.get((r + dr, c + dc))
                if other and other != zone.id and other not in found:
                    found.append(other)
        zone.neighbor_ids = found


# ---------------------------------------------------------------------------
# Day selection
# ---------------------------------------------------------------------------

def select_zone_for_day(
    zone_map: CityZoneMap,
    day_index_in_city: int,
    total_days_in_city: int,
    used_zone_ids: set[str],
    interests: list[str],
    saved_location_ids: Optional[set[str]] = None,
) -> Optional[str]:
    """
    Pick the best unused zone for a day; reuse zones only once all are used.

    Zones score on size, interest-relevant categories and saved locations,
    with a small pull toward the city centre. Ties keep the first zone seen.
    """
    if not zone_map.zones:
        return None

    relevant = {cat for i in interests for cat in categories_for_interest(i)}
    saved = saved_location_ids or set()

    pool = [z for z in zone_map.zones.values() if z.id not in used_zone_ids]
    if not pool:
        pool = list(zone_map.zones.values())

    best_id: Optional[str] = None
    best_score = -math.inf
    for zone in pool:
        score = float(min(_SIZE_CAP, zone.size))
        score += min(_CATEGORY_CAP, _CATEGORY_POINTS * len(zone.categories & relevant))
        score += _SAVED_POINTS * sum(1 for lid in zone.location_ids if lid in saved)
        score -= _CENTER_PENALTY * math.hypot(
            zone.centroid[0] - zone_map.city_center[0],
            zone.centroid[1] - zone_map.city_center[1],
        )
        if score > best_score:
            best_score = score
            best_id = zone.id

    return best_id


def get_zone_location_ids(zone_map: CityZoneMap, zone_id: str) -> set[str]:
    zone = zone_map.zones.get(zone_id)
    return set(zone.location_ids) if zone else set()


def get_expanded_zone_location_ids(zone_map: CityZoneMap, zone_id: str) -> set[str]:
    """Selected zone's locations unioned with those of its adjacent zones."""
    zone = zone_map.zones.get(zone_id)
    if zone is None:
        return set()
    result = set(zone.location_ids)
    for nb_id in zone.neighbor_ids:
        result.update(zone_map.zones[nb_id].location_ids)
    return result
