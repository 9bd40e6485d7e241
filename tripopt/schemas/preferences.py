"""
schemas/preferences.py
----------------------
Output of the Preference Normalizer.
"""

from __future__ import annotations

from dataclasses import dataclass, field


@dataclass(frozen=True)
class MemberPreferences:
    """
    One member's wishes rescaled against their own range.

    normalized   : place_id -> score in [0.1, 1.0]
    contribution : sum(normalized) * sqrt(1 / place_count)
    """
    member_id: str
    normalized: dict[str, float]
    contribution: float
    min_wish: int
    max_wish: int
    place_count: int


@dataclass(frozen=True)
class NormalizationResult:
    members: dict[str, MemberPreferences]
    fairness_score: float
    total_places: int
    edge_cases: list[str] = field(default_factory=list)

    def normalized_score(self, member_id: str, place_id: str, default: float = 0.0) -> float:
        prefs = self.members.get(member_id)
        if prefs is None:
            return default
        return prefs.normalized.get(place_id, default)

    def to_dict(self) -> dict:
        return {
            "fairness_score": round(self.fairness_score, 4),
            "total_places": self.total_places,
            "edge_cases": list(self.edge_cases),
            "members": {
                mid: {
                    "place_count": p.place_count,
                    "contribution": round(p.contribution, 4),
                    "wish_range": [p.min_wish, p.max_wish],
                }
                for mid, p in self.members.items()
            },
        }
