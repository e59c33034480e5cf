"""
main.py
--------
Command-line entry point for the itinerary generator.

Reads a TripBuilderData JSON file (and optionally a location snapshot JSON
file), generates the itinerary and prints it.

Run:
  cd backend
  python main.py --trip trip.json --locations locations.json
  python main.py --trip trip.json --locations locations.json --seed 7 --summary
  python main.py --trip trip.json                # uses the PostgreSQL location source

Options:
  --trip         Trip JSON (TripBuilderData shape)
  --locations    Location snapshot JSON (list of location objects)
  --favorites    Comma-separated saved location ids
  --seed         Seed for reproducible day ids
  --stub-weather Force the offline weather stub
  --summary      Print a day-by-day overview instead of JSON
"""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from typing import Optional

import config
from schemas.itinerary import Itinerary, PlaceActivity
from schemas.location import Location
from schemas.trip import TripBuilderData
from modules.planning.itinerary_generator import generate_itinerary
from modules.tool_usage.weather_tool import WeatherTool


def _load_json(path: str):
    with open(path, encoding="utf-8") as fh:
        return json.load(fh)


def load_locations(path: str) -> list[Location]:
    raw = _load_json(path)
    if isinstance(raw, dict):
        raw = raw.get("locations", [])
    return [Location.from_dict(r) for r in raw]


def print_summary(itinerary: Itinerary) -> None:
    print(f"\n{'=' * 60}")
    print(f"  ITINERARY: {len(itinerary.days)} days")
    print(f"{'=' * 60}")
    for day in itinerary.days:
        print(f"\n  {day.date_label}  [{day.weekday}]")
        for act in day.activities:
            if isinstance(act, PlaceActivity):
                meal = f"  ({act.meal_type})" if act.meal_type else ""
                print(f"    {act.time_of_day:<9} {act.title}  {act.duration_min}min{meal}")
            else:
                print(f"    {act.time_of_day:<9} * {act.title}")
        if not day.activities:
            print("    (no activities)")


# ── CLI ────────────────────────────────────────────────────────────────────────

def _parse_args(argv: Optional[list[str]] = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(
        description="Generate a day-by-day itinerary from a trip skeleton",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    p.add_argument("--trip", required=True, help="Trip JSON file (TripBuilderData)")
    p.add_argument("--locations", default=None, help="Location snapshot JSON file")
    p.add_argument("--favorites", default="", help="Comma-separated saved location ids")
    p.add_argument("--seed", type=int, default=None, help="Seed for reproducible day ids")
    p.add_argument(
        "--stub-weather",
        action="store_true",
        dest="stub_weather",
        help="Use the offline weather stub",
    )
    p.add_argument("--summary", action="store_true", help="Print a readable overview")
    return p.parse_args(argv)


def main(argv: Optional[list[str]] = None) -> int:
    logging.basicConfig(
        level=config.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        stream=sys.stderr,
    )
    args = _parse_args(argv)

    trip = TripBuilderData.model_validate(_load_json(args.trip))
    locations = load_locations(args.locations) if args.locations else None
    favorites = [f.strip() for f in args.favorites.split(",") if f.strip()]

    itinerary = asyncio.run(generate_itinerary(
        trip,
        locations=locations,
        weather_source=WeatherTool(use_stub=True) if args.stub_weather else None,
        favorite_ids=favorites,
        seed=args.seed,
    ))

    if args.summary:
        print_summary(itinerary)
    else:
        print(json.dumps(itinerary.to_dict(), indent=2, ensure_ascii=False))
    return 0


if __name__ == "__main__":
    sys.exit(main())
