"""
modules/planning/place_selector.py
------------------------------------
Place scoring and greedy, budget-constrained selection.

Score per place:
  priority  = (wish_level / 5)  * Wp
  rating    = (rating / 5)      * Wr
  location  = proximity         * Wl      proximity = max(0, 1 - d / radius)
  penalty   = min(stay / 240, 1) * 0.1
  score     = clamp(priority + rating + location - penalty, 0, 1)

  d is the distance to the scoring anchor: the trip start location if given,
  else the centroid of all located candidates.  Unlocated places get 0.

Selection walks candidates by descending score (stable, so ties keep input
order).  Each trip day is a capacity bucket; a candidate goes into the first
bucket that still has room.  For each candidate:
  1. no bucket below max_places_per_day          -> "daily place limit reached"
  2. no bucket with room for its stay minutes    -> "daily duration budget exceeded"
  3. wish_level == 5                             -> selected
  4. score >= 0.5 + (selected / candidates) * 0.4 -> selected,
     else                                        -> "score below threshold"

The threshold only rises, so later picks must be increasingly compelling.
"""

from __future__ import annotations

import logging
from typing import Optional

from tripopt import config
from tripopt.modules.tool_usage.distance_tool import haversine_km
from tripopt.schemas.schedule import ScoredPlace, SelectionResult, UnscheduledPlace
from tripopt.schemas.settings import OptimizationSettings
from tripopt.schemas.trip import Location, Place

logger = logging.getLogger(__name__)

REASON_PLACE_LIMIT = "daily place limit reached"
REASON_DURATION_LIMIT = "daily duration budget exceeded"
REASON_LOW_SCORE = "score below threshold"


def scoring_anchor(
    places: list[Place],
    start_location: Optional[Location] = None,
) -> Optional[Location]:
    """Trip start location, else centroid of located places, else None."""
    if start_location is not None:
        return start_location
    located = [p.location for p in places if p.location is not None]
    if not located:
        return None
    return Location(
        lat=sum(loc.lat for loc in located) / len(located),
        lng=sum(loc.lng for loc in located) / len(located),
    )


class PlaceScorer:
    """Weighted priority/rating/proximity score with a long-stay penalty."""

    def __init__(
        self,
        priority_weight: float = config.PRIORITY_WEIGHT,
        rating_weight: float = config.RATING_WEIGHT,
        location_weight: float = config.LOCATION_WEIGHT,
        proximity_radius_km: float = config.PROXIMITY_RADIUS_KM,
    ) -> None:
        self.priority_weight = priority_weight
        self.rating_weight = rating_weight
        self.location_weight = location_weight
        self.proximity_radius_km = proximity_radius_km

    @classmethod
    def from_settings(cls, settings: OptimizationSettings) -> "PlaceScorer":
        return cls(
            priority_weight=settings.priority_weight,
            rating_weight=settings.rating_weight,
            location_weight=settings.location_weight,
        )

    # ── Public ────────────────────────────────────────────────────────────────

    def proximity(self, place: Place, anchor: Optional[Location]) -> float:
        if place.location is None or anchor is None or self.proximity_radius_km <= 0:
            return 0.0
        d = haversine_km(anchor.lat, anchor.lng, place.location.lat, place.location.lng)
        return max(0.0, 1.0 - d / self.proximity_radius_km)

    def score(self, place: Place, anchor: Optional[Location] = None) -> float:
        priority = (place.wish_level / 5.0) * self.priority_weight
        rating = (place.rating / 5.0) * self.rating_weight
        location = self.location_weight * self.proximity(place, anchor)
        penalty = (
            min(place.stay_duration_minutes / config.DURATION_PENALTY_CAP_MINUTES, 1.0)
            * config.DURATION_PENALTY_MAX
        )
        return min(max(priority + rating + location - penalty, 0.0), 1.0)

    def score_all(
        self,
        places: list[Place],
        anchor: Optional[Location] = None,
    ) -> list[ScoredPlace]:
        """Score every place; return sorted descending by score (stable)."""
        scored = [ScoredPlace(place=p, score=self.score(p, anchor)) for p in places]
        return sorted(scored, key=lambda sp: sp.score, reverse=True)


class PlaceSelector:
    """
    Greedy selector over per-day capacity buckets.

    A one-day trip (num_days=1) is the plain single-budget walk.
    """

    def __init__(
        self,
        settings: OptimizationSettings,
        num_days: int = 1,
        scorer: PlaceScorer | None = None,
    ) -> None:
        self.settings = settings
        self.num_days = max(num_days, 1)
        self.scorer = scorer or PlaceScorer.from_settings(settings)

    # ── Public ────────────────────────────────────────────────────────────────

    def select(
        self,
        places: list[Place],
        anchor: Optional[Location] = None,
    ) -> SelectionResult:
        if not places:
            return SelectionResult(
                scheduled_places=[],
                unscheduled_places=[],
                reason="No candidate places to select from.",
            )

        ranked = self.scorer.score_all(places, anchor)
        if self.settings.prioritize_must_visit:
            ranked = sorted(ranked, key=lambda sp: not sp.place.is_must_visit)

        max_count = self.settings.max_places_per_day
        max_minutes = self.settings.max_total_duration_minutes
        counts = [0] * self.num_days
        minutes = [0] * self.num_days

        selected: list[ScoredPlace] = []
        rejected: list[UnscheduledPlace] = []
        thresholds: list[float] = []
        total = len(ranked)

        for candidate in ranked:
            place = candidate.place
            threshold = (
                config.SELECTION_THRESHOLD_BASE
                + (len(selected) / max(total, 1)) * config.SELECTION_THRESHOLD_SPAN
            )
            thresholds.append(threshold)

            open_days = [d for d in range(self.num_days) if counts[d] + 1 <= max_count]
            if not open_days:
                rejected.append(UnscheduledPlace(place, REASON_PLACE_LIMIT, "selecting"))
                continue
            fitting = [
                d for d in open_days
                if minutes[d] + place.stay_duration_minutes <= max_minutes
            ]
            if not fitting:
                rejected.append(UnscheduledPlace(place, REASON_DURATION_LIMIT, "selecting"))
                continue
            if not place.is_must_visit and candidate.score < threshold:
                rejected.append(UnscheduledPlace(place, REASON_LOW_SCORE, "selecting"))
                continue

            day = fitting[0]
            counts[day] += 1
            minutes[day] += place.stay_duration_minutes
            selected.append(ScoredPlace(place=place, score=candidate.score, day_index=day))

        logger.debug(
            "Selected %d/%d places (final threshold %.3f)",
            len(selected), total, thresholds[-1] if thresholds else 0.0,
        )
        return SelectionResult(
            scheduled_places=selected,
            unscheduled_places=rejected,
            reason=build_selection_reason(selected, rejected, total),
            thresholds=thresholds,
        )


def build_selection_reason(
    selected: list[ScoredPlace],
    rejected: list[UnscheduledPlace],
    total: int,
) -> str:
    """One-paragraph summary of what got in and why the rest did not."""
    must_visit = sum(1 for sp in selected if sp.place.is_must_visit)
    high_rated = sum(1 for sp in selected if sp.place.rating >= config.HIGH_RATING_THRESHOLD)
    hours = sum(sp.place.stay_duration_minutes for sp in selected) / 60.0

    parts = [
        f"Selected {len(selected)} of {total} places",
        f"{must_visit} must-visit",
        f"{high_rated} highly rated (>= {config.HIGH_RATING_THRESHOLD:g})",
        f"{hours:.1f}h of visits",
    ]
    reason = ", ".join(parts) + "."

    if rejected:
        low_priority = sum(
            1 for u in rejected if u.place.wish_level <= config.LOW_PRIORITY_WISH_LEVEL
        )
        low_rating = sum(
            1 for u in rejected if u.place.rating < config.LOW_RATING_THRESHOLD
        )
        if low_priority == 0 and low_rating == 0:
            factor = "capacity limits"
        elif low_priority >= low_rating:
            factor = "low priority"
        else:
            factor = "low rating"
        reason += f" {len(rejected)} excluded, most often due to {factor}."
    return reason
