"""
schemas/trip.py
---------------
Immutable input records supplied by the surrounding application:
places contributed by trip members, the members themselves, and the trip span.

The pipeline never mutates these; selection and scheduling produce derived
records (see schemas/schedule.py).
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, timedelta
from typing import Any, Optional

from tripopt.modules.resilience.error_classifier import TripDataError


# Fallbacks used by the product when a member leaves a field blank
_DEFAULT_WISH_LEVEL: int = 3
_DEFAULT_STAY_MINUTES: int = 120
_DEFAULT_CATEGORY: str = "other"


@dataclass(frozen=True)
class Location:
    lat: float
    lng: float


@dataclass(frozen=True)
class Place:
    """
    A candidate place contributed by one member.

    wish_level  : 1-5 interest of the contributing member (5 = must-visit)
    rating      : 0-5 public rating (0.0 when unknown)
    location    : None when the place could not be geocoded upstream
    """
    id: str
    name: str
    location: Optional[Location]
    category: str
    wish_level: int
    rating: float
    stay_duration_minutes: int
    owner_id: str

    @property
    def is_must_visit(self) -> bool:
        return self.wish_level == 5

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Place":
        """
        Build a Place from a snake_case record as stored by the application.

        Accepts either ``latitude``/``longitude`` or a nested
        ``location: {lat, lng}``.  Raises TripDataError when a mandatory field
        (id, name, user_id) is missing.
        """
        missing = [k for k in ("id", "name", "user_id") if not record.get(k)]
        if missing:
            raise TripDataError(
                f"malformed place record: missing field(s) {', '.join(missing)}"
            )

        location: Optional[Location] = None
        nested = record.get("location") or {}
        lat = record.get("latitude", nested.get("lat"))
        lng = record.get("longitude", nested.get("lng"))
        if lat is not None and lng is not None:
            try:
                location = Location(lat=float(lat), lng=float(lng))
            except (TypeError, ValueError):
                raise TripDataError(
                    f"malformed place record {record['id']!r}: "
                    f"non-numeric coordinates ({lat!r}, {lng!r})"
                ) from None

        try:
            return cls(
                id=str(record["id"]),
                name=str(record["name"]),
                location=location,
                category=str(record.get("category") or _DEFAULT_CATEGORY),
                wish_level=int(record.get("wish_level") or _DEFAULT_WISH_LEVEL),
                rating=float(record.get("rating") or 0.0),
                stay_duration_minutes=int(
                    record.get("stay_duration_minutes") or _DEFAULT_STAY_MINUTES
                ),
                owner_id=str(record["user_id"]),
            )
        except (TypeError, ValueError) as exc:
            raise TripDataError(
                f"malformed place record {record['id']!r}: {exc}"
            ) from exc


@dataclass(frozen=True)
class Member:
    """A trip member. Only members with can_optimize count towards fairness."""
    id: str
    display_name: str = ""
    can_optimize: bool = True

    @classmethod
    def from_record(cls, record: dict[str, Any]) -> "Member":
        member_id = record.get("user_id") or record.get("id")
        if not member_id:
            raise TripDataError("malformed member record: missing field user_id")
        return cls(
            id=str(member_id),
            display_name=str(record.get("name") or record.get("display_name") or ""),
            can_optimize=bool(record.get("can_optimize", True)),
        )


@dataclass(frozen=True)
class TripContext:
    """Trip span (inclusive) plus an optional departure point."""
    trip_id: str
    start_date: date
    end_date: date
    start_location: Optional[Location] = None

    @property
    def num_days(self) -> int:
        return max((self.end_date - self.start_date).days + 1, 1)

    def dates(self) -> list[date]:
        return [self.start_date + timedelta(days=i) for i in range(self.num_days)]
