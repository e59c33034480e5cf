"""
modules/planning/scheduling_state.py
--------------------------------------
Cross-day dedup state for one generation run.

Only the generator calls commit(); the picker and the pool builders read
is_used() and never mutate the sets.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from schemas.location import Location


@dataclass
class SchedulingState:
    used_ids: set[str] = field(default_factory=set)
    used_names: set[str] = field(default_factory=set)

    def is_used(self, loc: Location) -> bool:
        return loc.id in self.used_ids or loc.normalized_name in self.used_names

    def commit(self, loc: Location) -> None:
        self.used_ids.add(loc.id)
        self.used_names.add(loc.normalized_name)

    def __len__(self) -> int:
        return len(self.used_ids)
