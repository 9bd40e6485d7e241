"""
schemas/schedule.py
-------------------
Derived records produced by one optimization run: scored/selected places,
timed visits, meal breaks, day schedules, the quality score and the final
result.  All clock values are integer minutes from midnight; use
format_minutes() for display.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, time
from typing import Optional

from tripopt.schemas.preferences import NormalizationResult
from tripopt.schemas.trip import Place


def format_minutes(mins: int) -> str:
    """Minutes from midnight -> 'HH:MM' (24:00 allowed for a midnight day end)."""
    mins = max(0, int(round(mins)))
    return f"{mins // 60:02d}:{mins % 60:02d}"


def _m2t(mins: int) -> time:
    """Convert minutes-from-midnight to a time object (clamped to [0, 1439])."""
    mins = max(0, min(int(mins), 23 * 60 + 59))
    return time(mins // 60, mins % 60)


# ── Selection ────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ScoredPlace:
    place: Place
    score: float
    day_index: Optional[int] = None  # bucket assigned by the selector


@dataclass(frozen=True)
class UnscheduledPlace:
    place: Place
    reason: str
    stage: str  # stage that excluded it: collecting | selecting | routing

    def to_dict(self) -> dict:
        return {
            "place_id": self.place.id,
            "name": self.place.name,
            "reason": self.reason,
            "stage": self.stage,
        }


@dataclass(frozen=True)
class SelectionResult:
    """
    scheduled_places   : selected, in selection order
    unscheduled_places : rejected, with the disqualifying check
    reason             : human-readable summary of the selection
    thresholds         : acceptance threshold evaluated for each scored candidate
    """
    scheduled_places: list[ScoredPlace]
    unscheduled_places: list[UnscheduledPlace]
    reason: str
    thresholds: list[float] = field(default_factory=list)

    @property
    def total_duration_minutes(self) -> int:
        return sum(sp.place.stay_duration_minutes for sp in self.scheduled_places)


# ── Schedule ─────────────────────────────────────────────────────────────────

@dataclass(frozen=True)
class ScheduledPlace:
    place: Place
    arrival_minute: int
    departure_minute: int
    transport_mode: str
    travel_time_from_previous_minutes: int
    distance_from_previous_km: float
    order_in_day: int

    @property
    def arrival_time(self) -> time:
        return _m2t(self.arrival_minute)

    @property
    def departure_time(self) -> time:
        return _m2t(self.departure_minute)

    def to_dict(self) -> dict:
        return {
            "place_id": self.place.id,
            "name": self.place.name,
            "order_in_day": self.order_in_day,
            "arrival_time": format_minutes(self.arrival_minute),
            "departure_time": format_minutes(self.departure_minute),
            "stay_duration_minutes": self.place.stay_duration_minutes,
            "transport_mode": self.transport_mode,
            "travel_time_from_previous_minutes": self.travel_time_from_previous_minutes,
            "distance_from_previous_km": round(self.distance_from_previous_km, 2),
        }


@dataclass(frozen=True)
class MealBreak:
    meal_type: str  # breakfast | lunch | dinner
    start_minute: int
    end_minute: int
    estimated_cost: Optional[float] = None

    @property
    def duration_minutes(self) -> int:
        return self.end_minute - self.start_minute

    def to_dict(self) -> dict:
        return {
            "type": self.meal_type,
            "start_time": format_minutes(self.start_minute),
            "end_time": format_minutes(self.end_minute),
            "estimated_cost": self.estimated_cost,
        }


@dataclass
class DailySchedule:
    """One calendar day. Filled in by the Schedule Builder, then left alone."""
    date: date
    day_index: int
    places: list[ScheduledPlace] = field(default_factory=list)
    meals: list[MealBreak] = field(default_factory=list)
    total_travel_minutes: int = 0
    total_visit_minutes: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.places

    def to_dict(self) -> dict:
        return {
            "date": self.date.isoformat(),
            "day_index": self.day_index,
            "places": [p.to_dict() for p in self.places],
            "meals": [m.to_dict() for m in self.meals],
            "total_travel_minutes": self.total_travel_minutes,
            "total_visit_minutes": self.total_visit_minutes,
        }


# ── Score & result ───────────────────────────────────────────────────────────

@dataclass(frozen=True)
class OptimizationScore:
    """All components are fractions in [0, 1]; overall_percent is for display."""
    overall: float
    fairness: float
    efficiency: float
    details: dict[str, float] = field(default_factory=dict)

    @property
    def overall_percent(self) -> int:
        return int(round(self.overall * 100))

    def to_dict(self) -> dict:
        return {
            "overall": round(self.overall, 4),
            "overall_percent": self.overall_percent,
            "fairness": round(self.fairness, 4),
            "efficiency": round(self.efficiency, 4),
            "details": {k: round(v, 4) for k, v in self.details.items()},
        }


@dataclass(frozen=True)
class OptimizationResult:
    daily_schedules: list[DailySchedule]
    optimization_score: OptimizationScore
    execution_time_ms: int
    correlation_id: str
    selection: SelectionResult
    normalization: NormalizationResult
    unscheduled_places: list[UnscheduledPlace] = field(default_factory=list)

    @property
    def scheduled_place_ids(self) -> list[str]:
        return [sp.place.id for day in self.daily_schedules for sp in day.places]

    def to_dict(self) -> dict:
        return {
            "correlation_id": self.correlation_id,
            "execution_time_ms": self.execution_time_ms,
            "daily_schedules": [d.to_dict() for d in self.daily_schedules],
            "optimization_score": self.optimization_score.to_dict(),
            "selection_reason": self.selection.reason,
            "normalization": self.normalization.to_dict(),
            "unscheduled_places": [u.to_dict() for u in self.unscheduled_places],
        }
