from datetime import date

import pytest

from tripopt.modules.resilience.error_classifier import TripDataError
from tripopt.modules.validation import (
    filter_valid,
    placeholder_place,
    validate_place_record,
    validate_settings,
    validate_trip_context,
)
from tripopt.schemas.settings import OptimizationSettings
from tripopt.schemas.trip import Location, Member, Place, TripContext


# ── Place records ─────────────────────────────────────────────────────────────

def test_complete_record_passes(make_record):
    result = validate_place_record(make_record("p1"))
    assert result
    assert result.errors == []


def test_record_without_coordinates_passes(make_record):
    assert validate_place_record(make_record("p1", km_north=None))


@pytest.mark.parametrize(
    "override, fragment",
    [
        ({"name": ""}, "name must not be empty"),
        ({"user_id": None}, "user_id must not be empty"),
        ({"wish_level": 0}, "wish_level=0 is outside"),
        ({"wish_level": 2.5}, "must be an integer"),
        ({"rating": 7.5}, "rating=7.5 is outside"),
        ({"stay_duration_minutes": 0}, "must be > 0"),
        ({"latitude": 123.0}, "latitude=123.0 is outside"),
        ({"longitude": "east"}, "must be numeric"),
    ],
)
def test_bad_record_is_rejected(make_record, override, fragment):
    result = validate_place_record(make_record("p1", **override))
    assert not result
    assert fragment in result.summary


def test_half_a_coordinate_is_rejected(make_record):
    record = make_record("p1", km_north=None, latitude=48.8)
    assert "given together" in validate_place_record(record).summary


def test_filter_valid_splits_and_keeps_records(make_record):
    good = make_record("good")
    bad = make_record("bad", wish_level=9)
    valid, rejected = filter_valid([good, bad], validate_place_record)
    assert valid == [good]
    assert [r.record["id"] for r in rejected] == ["bad"]


def test_placeholder_for_broken_record():
    place = placeholder_place({"id": "x1", "user_id": "bob"})
    assert place.id == "x1"
    assert place.name == "x1"
    assert place.location is None
    assert place.owner_id == "bob"


# ── Record conversion ─────────────────────────────────────────────────────────

def test_place_from_record_defaults():
    place = Place.from_record({"id": "p1", "name": "Louvre", "user_id": "alice"})
    assert place.wish_level == 3
    assert place.stay_duration_minutes == 120
    assert place.rating == 0.0
    assert place.category == "other"
    assert place.location is None
    assert not place.is_must_visit


def test_place_from_record_nested_location():
    place = Place.from_record({
        "id": "p1", "name": "Louvre", "user_id": "alice", "wish_level": 5,
        "location": {"lat": 48.86, "lng": 2.34},
    })
    assert place.location == Location(48.86, 2.34)
    assert place.is_must_visit


def test_place_from_record_requires_owner():
    with pytest.raises(TripDataError):
        Place.from_record({"id": "p1", "name": "Louvre"})


def test_member_from_record():
    member = Member.from_record({"user_id": "guest", "name": "Guest", "can_optimize": False})
    assert member == Member("guest", "Guest", can_optimize=False)
    with pytest.raises(TripDataError):
        Member.from_record({"name": "nobody"})


# ── Settings ──────────────────────────────────────────────────────────────────

def test_default_settings_are_valid():
    assert validate_settings(OptimizationSettings())


@pytest.mark.parametrize(
    "kwargs, fragment",
    [
        ({"efficiency_weight": -0.1}, "efficiency_weight"),
        ({"rating_weight": -1.0}, "rating_weight"),
        ({"max_places_per_day": 0}, "max_places_per_day"),
        ({"max_total_duration_minutes": 0}, "max_total_duration_minutes"),
        ({"day_start_hour": 20, "day_end_hour": 8}, "day window"),
        ({"preferred_transport": "teleport"}, "preferred_transport"),
        ({"retry_profile": "reckless"}, "retry_profile"),
    ],
)
def test_bad_settings_are_rejected(kwargs, fragment):
    result = validate_settings(OptimizationSettings(**kwargs))
    assert not result
    assert fragment in result.summary


def test_settings_from_dict_ignores_unknown_and_null():
    settings = OptimizationSettings.from_dict(
        {"max_places_per_day": 4, "include_meals": None, "theme": "dark"}
    )
    assert settings.max_places_per_day == 4
    assert settings.include_meals is True
    assert OptimizationSettings.from_dict(None) == OptimizationSettings()
    assert OptimizationSettings.from_dict(settings.to_dict()) == settings


def test_daily_budget_is_tighter_of_hours_and_window():
    assert OptimizationSettings(max_daily_hours=8).max_daily_minutes == 480
    assert OptimizationSettings(day_start_hour=10, day_end_hour=16).max_daily_minutes == 360


# ── Trip ──────────────────────────────────────────────────────────────────────

def test_trip_context():
    trip = TripContext("t1", date(2025, 6, 1), date(2025, 6, 3))
    assert validate_trip_context(trip)
    assert trip.num_days == 3
    assert trip.dates()[-1] == date(2025, 6, 3)


def test_trip_ending_before_it_starts_is_rejected():
    result = validate_trip_context(TripContext("t1", date(2025, 6, 3), date(2025, 6, 1)))
    assert "before start_date" in result.summary


def test_trip_start_location_out_of_range():
    trip = TripContext("t1", date(2025, 6, 1), date(2025, 6, 1), start_location=Location(0.0, 200.0))
    assert "start_location.lng" in validate_trip_context(trip).summary
