"""
modules/planning/score_aggregator.py
--------------------------------------
Overall quality score for a produced schedule.

  fairness   = mean(user_adoption_balance, wish_satisfaction_balance)
  efficiency = mean(travel_efficiency, time_constraint_compliance)
  overall    = fairness_weight * fairness + efficiency_weight * efficiency

Every component is clamped to [0, 1].  Pure function of its inputs.
"""

from __future__ import annotations

import math

from tripopt import config
from tripopt.schemas.preferences import NormalizationResult
from tripopt.schemas.schedule import DailySchedule, OptimizationScore
from tripopt.schemas.settings import OptimizationSettings


def _clamp(value: float) -> float:
    return min(max(value, 0.0), 1.0)


def _mean(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


# ── Fairness details ──────────────────────────────────────────────────────────

def user_adoption_balance(normalization: NormalizationResult, scheduled_ids: set[str]) -> float:
    """1 - coefficient of variation of per-member adoption rates."""
    if not scheduled_ids:
        return 0.0
    rates = [
        sum(1 for pid in prefs.normalized if pid in scheduled_ids) / prefs.place_count
        for prefs in normalization.members.values()
    ]
    if len(rates) <= 1:
        return 1.0
    mean = _mean(rates)
    if mean <= 0:
        return 0.0
    stdev = math.sqrt(sum((r - mean) ** 2 for r in rates) / len(rates))
    return _clamp(1.0 - stdev / mean)


def wish_satisfaction_balance(normalization: NormalizationResult, scheduled_ids: set[str]) -> float:
    """1 - spread of the share of each member's wish mass that got scheduled."""
    if not scheduled_ids:
        return 0.0
    shares = []
    for prefs in normalization.members.values():
        total = sum(prefs.normalized.values())
        got = sum(v for pid, v in prefs.normalized.items() if pid in scheduled_ids)
        shares.append(got / total if total > 0 else 0.0)
    if not shares:
        return 0.0
    if len(shares) == 1:
        return _clamp(shares[0])
    return _clamp(1.0 - (max(shares) - min(shares)))


# ── Efficiency details ────────────────────────────────────────────────────────

def travel_efficiency(days: list[DailySchedule]) -> float:
    visit = sum(d.total_visit_minutes for d in days)
    travel = sum(d.total_travel_minutes for d in days)
    if visit + travel <= 0:
        return 0.0
    return _clamp(visit / (visit + travel))


def constraint_issues(days: list[DailySchedule], settings: OptimizationSettings) -> list[str]:
    issues: list[str] = []
    for day in days:
        if (
            len(day.places) > settings.max_places_per_day
            or day.total_visit_minutes > settings.max_total_duration_minutes
            or day.total_visit_minutes + day.total_travel_minutes > settings.max_daily_minutes
        ):
            issues.append(f"day_{day.day_index + 1}_over_budget")
        for sp in day.places:
            if sp.travel_time_from_previous_minutes > config.MAX_REALISTIC_LEG_MINUTES:
                issues.append(f"unrealistic_leg_to_{sp.place.id}")

    active = [d for d in days if d.places]
    flight_days = [d for d in active if any(sp.transport_mode == "flight" for sp in d.places)]
    if active and len(flight_days) > config.MAX_FLIGHT_DAY_RATIO * len(active):
        issues.append("too_many_flight_days")
    return issues


def time_constraint_compliance(days: list[DailySchedule], settings: OptimizationSettings) -> float:
    issues = constraint_issues(days, settings)
    if not issues:
        return 1.0
    return max(0.1, 1.0 - 0.2 * len(issues))


# ── Public ────────────────────────────────────────────────────────────────────

def aggregate_score(
    settings: OptimizationSettings,
    normalization: NormalizationResult,
    days: list[DailySchedule],
) -> OptimizationScore:
    scheduled_ids = {sp.place.id for d in days for sp in d.places}

    details = {
        "user_adoption_balance": user_adoption_balance(normalization, scheduled_ids),
        "wish_satisfaction_balance": wish_satisfaction_balance(normalization, scheduled_ids),
        "travel_efficiency": travel_efficiency(days),
        "time_constraint_compliance": time_constraint_compliance(days, settings),
    }
    fairness = _clamp(_mean([details["user_adoption_balance"], details["wish_satisfaction_balance"]]))
    efficiency = _clamp(_mean([details["travel_efficiency"], details["time_constraint_compliance"]]))
    overall = _clamp(settings.fairness_weight * fairness + settings.efficiency_weight * efficiency)

    return OptimizationScore(
        overall=overall,
        fairness=fairness,
        efficiency=efficiency,
        details=details,
    )
