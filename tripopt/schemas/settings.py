"""
schemas/settings.py
-------------------
OptimizationSettings: the caller-supplied knobs for one optimization run.

Defaults come from config.py; the core never reads settings from a file.
"""

from __future__ import annotations

from dataclasses import dataclass, fields
from typing import Any, Mapping

from tripopt import config


@dataclass(frozen=True)
class OptimizationSettings:
    """
    fairness_weight / efficiency_weight : 0-1 each, need not sum to 1
    max_places_per_day                  : visit count cap per day
    max_total_duration_minutes          : stay-time cap per day
    max_daily_hours                     : stay + travel cap per day
    day_start_hour / day_end_hour       : time-of-day window (24h clock)
    prioritize_must_visit               : consider wish-level-5 places first
    """
    fairness_weight: float = config.DEFAULT_FAIRNESS_WEIGHT
    efficiency_weight: float = config.DEFAULT_EFFICIENCY_WEIGHT
    include_meals: bool = config.DEFAULT_INCLUDE_MEALS
    preferred_transport: str = config.DEFAULT_PREFERRED_TRANSPORT
    max_places_per_day: int = config.DEFAULT_MAX_PLACES_PER_DAY
    max_total_duration_minutes: int = config.DEFAULT_MAX_TOTAL_DURATION_MINUTES
    max_daily_hours: float = config.DEFAULT_MAX_DAILY_HOURS
    day_start_hour: int = config.DEFAULT_DAY_START_HOUR
    day_end_hour: int = config.DEFAULT_DAY_END_HOUR
    prioritize_must_visit: bool = False
    retry_profile: str = config.RETRY_PROFILE
    priority_weight: float = config.PRIORITY_WEIGHT
    rating_weight: float = config.RATING_WEIGHT
    location_weight: float = config.LOCATION_WEIGHT

    @property
    def day_start_minutes(self) -> int:
        return self.day_start_hour * 60

    @property
    def day_end_minutes(self) -> int:
        return self.day_end_hour * 60

    @property
    def max_daily_minutes(self) -> float:
        """Stay + travel budget: the tighter of max_daily_hours and the window."""
        window = max(self.day_end_minutes - self.day_start_minutes, 0)
        return min(self.max_daily_hours * 60, window)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any] | None) -> "OptimizationSettings":
        """Build settings from a plain mapping; unknown keys are ignored."""
        if not data:
            return cls()
        known = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in data.items() if k in known and v is not None})

    def to_dict(self) -> dict:
        return {f.name: getattr(self, f.name) for f in fields(self)}
