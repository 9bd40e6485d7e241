"""
modules/planning/preference_normalizer.py
-------------------------------------------
Rescales each member's wish levels against that member's own range, so one
generous rater does not dominate, and summarizes group balance.

Per member m with places P_m:
  normalized(p)  = 0.1 + 0.9 * (w_p - min_m) / (max_m - min_m)
                   (1.0 for every place when all of m's wishes are equal)
  contribution_m = sum(normalized) * sqrt(1 / |P_m|)

Group fairness over eligible contributing members:
  r_m      = contribution_m / mean(contribution)
  fairness = exp(-5 * variance(r))        (1.0 for a single member)

Pure function of its inputs.
"""

from __future__ import annotations

import math
from collections import defaultdict

from tripopt.modules.resilience.error_classifier import OptimizationInputError
from tripopt.schemas.preferences import MemberPreferences, NormalizationResult
from tripopt.schemas.trip import Member, Place

_FLOOR = 0.1
_SPAN = 0.9
_FAIRNESS_SHARPNESS = 5.0


def _normalize_member(member_id: str, places: list[Place]) -> tuple[MemberPreferences, bool]:
    wishes = [p.wish_level for p in places]
    lo, hi = min(wishes), max(wishes)
    uniform = hi == lo
    normalized = {
        p.id: 1.0 if uniform else _FLOOR + _SPAN * (p.wish_level - lo) / (hi - lo)
        for p in places
    }
    contribution = sum(normalized.values()) * math.sqrt(1.0 / len(places))
    prefs = MemberPreferences(
        member_id=member_id,
        normalized=normalized,
        contribution=contribution,
        min_wish=lo,
        max_wish=hi,
        place_count=len(places),
    )
    return prefs, uniform


def group_fairness(contributions: list[float]) -> float:
    """exp(-5 * variance of contributions relative to their mean)."""
    if len(contributions) <= 1:
        return 1.0
    mean = sum(contributions) / len(contributions)
    if mean <= 0:
        return 1.0
    ratios = [c / mean for c in contributions]
    variance = sum((r - 1.0) ** 2 for r in ratios) / len(ratios)
    return math.exp(-_FAIRNESS_SHARPNESS * variance)


def normalize_preferences(places: list[Place], members: list[Member]) -> NormalizationResult:
    """
    Args:
        places:  every candidate place of the trip.
        members: every trip member; only can_optimize members are measured.

    Raises:
        OptimizationInputError (EMPTY_TRIP / NO_MEMBERS).
    """
    if not places:
        raise OptimizationInputError("invalid trip: no places to optimize", code="EMPTY_TRIP")
    if not members:
        raise OptimizationInputError("invalid trip: no members to optimize for", code="NO_MEMBERS")

    by_owner: dict[str, list[Place]] = defaultdict(list)
    for place in places:
        by_owner[place.owner_id].append(place)

    edge_cases: list[str] = []
    known = {m.id for m in members}
    for owner_id in by_owner:
        if owner_id not in known:
            edge_cases.append(f"user_{owner_id}_not_a_member")

    result: dict[str, MemberPreferences] = {}
    for member in members:
        if not member.can_optimize:
            if member.id in by_owner:
                edge_cases.append(f"user_{member.id}_not_eligible")
            continue
        own = by_owner.get(member.id)
        if not own:
            edge_cases.append(f"user_{member.id}_no_places")
            continue
        prefs, uniform = _normalize_member(member.id, own)
        if uniform:
            edge_cases.append(f"user_{member.id}_uniform_wish_levels")
        result[member.id] = prefs

    if not result:
        edge_cases.append("no_eligible_contributors")

    fairness = group_fairness([p.contribution for p in result.values()])
    return NormalizationResult(
        members=result,
        fairness_score=fairness,
        total_places=len(places),
        edge_cases=edge_cases,
    )
