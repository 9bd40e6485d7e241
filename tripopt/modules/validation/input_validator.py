"""
modules/validation/input_validator.py
--------------------------------------
Input guards applied in the collecting stage, before any place reaches the
normalizer.

  Place record:
    ✓ id, name and user_id present
    ✓ wish_level an integer in [1, 5] if present
    ✓ rating in [0, 5] if present (0.0 means unrated)
    ✓ stay_duration_minutes > 0 if present
    ✓ latitude in [-90, 90], longitude in [-180, 180] if present
      (a record without coordinates is valid; the schedule builder reports it
       as "location unavailable")

  Settings:
    ✓ fairness/efficiency weights in [0, 1]
    ✓ scorer weights >= 0
    ✓ max_places_per_day >= 1, budgets > 0
    ✓ 0 <= day_start_hour < day_end_hour <= 24
    ✓ known transport mode and retry profile

  Trip:
    ✓ end_date >= start_date
    ✓ start location in range if present

Usage:
    from tripopt.modules.validation import validate_place_record, filter_valid

    valid, rejected = filter_valid(records, validate_place_record)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, TypeVar

from tripopt import config
from tripopt.schemas.settings import OptimizationSettings
from tripopt.schemas.trip import Place, TripContext

logger = logging.getLogger(__name__)

T = TypeVar("T")

_RETRY_PROFILES = ("default", "aggressive", "conservative")


# ── Result dataclass ───────────────────────────────────────────────────────────

@dataclass
class ValidationResult:
    """
    Outcome of a single validation run.

    Attributes:
        valid:  True iff there are zero errors.
        errors: Human-readable list of failure reasons.
        record: The input record (for logging purposes).
    """
    valid: bool
    errors: list[str] = field(default_factory=list)
    record: Any = field(default=None, repr=False)

    def __bool__(self) -> bool:
        return self.valid

    @property
    def summary(self) -> str:
        return "; ".join(self.errors)


def _check_range(
    errors: list[str],
    record: dict[str, Any],
    key: str,
    lo: float,
    hi: float,
    *,
    integer: bool = False,
) -> None:
    value = record.get(key)
    if value is None:
        return
    try:
        num = int(value) if integer else float(value)
        if integer and float(value) != num:
            raise ValueError
    except (TypeError, ValueError):
        kind = "an integer" if integer else "numeric"
        errors.append(f"{key}={value!r} must be {kind}")
        return
    if not (lo <= num <= hi):
        errors.append(f"{key}={num} is outside valid range [{lo:g}, {hi:g}]")


# ── Place validation ───────────────────────────────────────────────────────────

def validate_place_record(record: dict[str, Any]) -> ValidationResult:
    """Validate a raw place record as returned by the trip data provider."""
    errors: list[str] = []

    for key in ("id", "name", "user_id"):
        value = record.get(key)
        if value is None or not str(value).strip():
            errors.append(f"{key} must not be empty or NULL")

    _check_range(errors, record, "wish_level", 1, 5, integer=True)
    _check_range(errors, record, "rating", 0.0, 5.0)

    stay = record.get("stay_duration_minutes")
    if stay is not None:
        try:
            if float(stay) <= 0:
                errors.append(f"stay_duration_minutes={stay} must be > 0")
        except (TypeError, ValueError):
            errors.append(f"stay_duration_minutes={stay!r} must be numeric")

    # ── Coordinates ────────────────────────────────────────────────────────
    nested = record.get("location") or {}
    coords = {
        "latitude": record.get("latitude", nested.get("lat")),
        "longitude": record.get("longitude", nested.get("lng")),
    }
    if (coords["latitude"] is None) != (coords["longitude"] is None):
        errors.append(
            f"latitude/longitude must be given together "
            f"(got lat={coords['latitude']!r}, lng={coords['longitude']!r})"
        )
    else:
        _check_range(errors, coords, "latitude", -90.0, 90.0)
        _check_range(errors, coords, "longitude", -180.0, 180.0)

    return ValidationResult(valid=len(errors) == 0, errors=errors, record=record)


def placeholder_place(record: dict[str, Any]) -> Place:
    """Best-effort Place for reporting a record that failed validation."""
    return Place(
        id=str(record.get("id") or "?"),
        name=str(record.get("name") or record.get("id") or "?"),
        location=None,
        category=str(record.get("category") or "other"),
        wish_level=0,
        rating=0.0,
        stay_duration_minutes=0,
        owner_id=str(record.get("user_id") or ""),
    )


# ── Settings validation ────────────────────────────────────────────────────────

def validate_settings(settings: OptimizationSettings) -> ValidationResult:
    errors: list[str] = []

    for name in ("fairness_weight", "efficiency_weight"):
        value = getattr(settings, name)
        if not (0.0 <= value <= 1.0):
            errors.append(f"{name}={value} is outside valid range [0, 1]")

    for name in ("priority_weight", "rating_weight", "location_weight"):
        value = getattr(settings, name)
        if value < 0:
            errors.append(f"{name}={value} must be >= 0")

    if settings.max_places_per_day < 1:
        errors.append(f"max_places_per_day={settings.max_places_per_day} must be >= 1")
    if settings.max_total_duration_minutes <= 0:
        errors.append(
            f"max_total_duration_minutes={settings.max_total_duration_minutes} must be > 0"
        )
    if settings.max_daily_hours <= 0:
        errors.append(f"max_daily_hours={settings.max_daily_hours} must be > 0")

    if not (0 <= settings.day_start_hour < settings.day_end_hour <= 24):
        errors.append(
            f"day window {settings.day_start_hour}-{settings.day_end_hour} is invalid "
            f"(need 0 <= start < end <= 24)"
        )

    if settings.preferred_transport not in config.TRANSPORT_SPEED_KMH:
        errors.append(
            f"preferred_transport={settings.preferred_transport!r} must be one of "
            f"{sorted(config.TRANSPORT_SPEED_KMH)}"
        )
    if settings.retry_profile not in _RETRY_PROFILES:
        errors.append(
            f"retry_profile={settings.retry_profile!r} must be one of {list(_RETRY_PROFILES)}"
        )

    return ValidationResult(valid=len(errors) == 0, errors=errors, record=settings)


# ── Trip validation ────────────────────────────────────────────────────────────

def validate_trip_context(trip: TripContext) -> ValidationResult:
    errors: list[str] = []

    if not trip.trip_id:
        errors.append("trip_id must not be empty")
    if trip.end_date < trip.start_date:
        errors.append(f"end_date={trip.end_date} is before start_date={trip.start_date}")

    loc = trip.start_location
    if loc is not None:
        if not (-90.0 <= loc.lat <= 90.0):
            errors.append(f"start_location.lat={loc.lat} is outside valid range [-90, 90]")
        if not (-180.0 <= loc.lng <= 180.0):
            errors.append(f"start_location.lng={loc.lng} is outside valid range [-180, 180]")

    return ValidationResult(valid=len(errors) == 0, errors=errors, record=trip)


# ── Batch filter helper ────────────────────────────────────────────────────────

def filter_valid(
    items: list[T],
    validator: Callable[[T], ValidationResult],
    log: bool = True,
) -> tuple[list[T], list[ValidationResult]]:
    """
    Apply a validator to every item; split into (valid items, failed results).

    Each failed ValidationResult keeps the rejected item in ``record``.
    """
    valid_items: list[T] = []
    rejected: list[ValidationResult] = []

    for item in items:
        result = validator(item)
        if result.valid:
            valid_items.append(item)
            continue
        rejected.append(result)
        if log:
            name = item.get("name", item.get("id", "?")) if isinstance(item, dict) else "?"
            logger.warning("Rejected %r: %s", name, result.summary)

    if log and rejected:
        logger.info(
            "%d/%d records rejected; %d passed.",
            len(rejected), len(items), len(valid_items),
        )

    return valid_items, rejected
