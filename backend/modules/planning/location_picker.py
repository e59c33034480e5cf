"""
modules/planning/location_picker.py
-------------------------------------
Location Picker: best unused candidate for one activity in one time slot.

Pipeline over the given pool:
  1. drop candidates already used (by id or normalized name)
  2. drop candidates whose opening hours miss the slot on the day's weekday
  3. drop candidates that don't fit the remaining slot time
       first activity in slot : duration            <= remaining
       later activities       : duration + travel   <= remaining × 1.1
  4. score the rest with LocationScorer
  5. prefer candidates whose category serves the current interest; fall back
     to any fitting candidate when none does
  6. highest score wins, ties keep pool order

Returns None when nothing survives; the generator treats that as one failed
attempt.
"""

from __future__ import annotations
import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, Optional

from schemas.location import Location
from modules.planning.categories import category_matches_interest, get_location_duration_minutes
from modules.planning.fit_scoring import check_opening_hours_fit
from modules.planning.location_scoring import LocationScorer, ScoreBreakdown, ScoringContext
from modules.planning.scheduling_state import SchedulingState

logger = logging.getLogger(__name__)

FIT_TOLERANCE = 1.1
FEATURED_BONUS = 5.0
MAX_RUNNER_UPS = 3


@dataclass
class PickResult:
    location: Location
    score: float
    breakdown: ScoreBreakdown
    reasoning: list[str]
    duration_min: int
    runner_ups: list[str] = field(default_factory=list)
    featured: bool = False


def fits_remaining_time(duration: int, travel_minutes: int, remaining: float, first_in_slot: bool) -> bool:
    if first_in_slot:
        return duration <= remaining
    return duration + travel_minutes <= remaining * FIT_TOLERANCE


def pick_location_for_time_slot(
    pool: Iterable[Location],
    interest: str,
    state: SchedulingState,
    remaining_minutes: float,
    travel_minutes: int,
    ctx: ScoringContext,
    first_in_slot: bool = False,
    content_location_ids: Optional[set[str]] = None,
    scorer: Optional[LocationScorer] = None,
) -> Optional[PickResult]:
    scorer = scorer or LocationScorer()
    featured_ids = content_location_ids or set()
    travel = 0 if first_in_slot else travel_minutes

    unused = [loc for loc in pool if not state.is_used(loc)]
    if not unused:
        return None

    candidates = unused
    if ctx.time_slot and ctx.weekday:
        candidates = [
            loc for loc in unused
            if check_opening_hours_fit(loc, ctx.time_slot, ctx.weekday).score
        ]
        if not candidates:
            logger.debug(
                "All %d unused locations closed during %s on %s",
                len(unused), ctx.time_slot, ctx.weekday,
            )
            return None

    slot_ctx = replace(ctx, available_minutes=max(0, remaining_minutes - travel))
    preferred: list[PickResult] = []
    others: list[PickResult] = []
    for loc in candidates:
        duration = get_location_duration_minutes(loc)
        if not fits_remaining_time(duration, travel, remaining_minutes, first_in_slot):
            continue
        scored = scorer.score(loc, slot_ctx)
        featured = loc.id in featured_ids
        result = PickResult(
            location=loc,
            score=scored.score + (FEATURED_BONUS if featured else 0),
            breakdown=scored.breakdown,
            reasoning=scored.reasoning,
            duration_min=duration,
            featured=featured,
        )
        if category_matches_interest(loc.category, interest):
            preferred.append(result)
        else:
            others.append(result)

    tier = preferred or others
    if not tier:
        return None

    # sorted() is stable: equal scores keep pool order
    ranked = sorted(tier, key=lambda r: r.score, reverse=True)
    best = ranked[0]
    best.runner_ups = [r.location.name for r in ranked[1:1 + MAX_RUNNER_UPS]]
    return best
