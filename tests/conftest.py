import os

# The JSONL event log is exercised explicitly in the tests that need it.
os.environ["TRIPOPT_STRUCTURED_LOG_ENABLED"] = "false"

from datetime import date  # noqa: E402

import pytest  # noqa: E402

from tripopt.modules.resilience.retry import RetryConfig  # noqa: E402
from tripopt.schemas.trip import Location, Place, TripContext  # noqa: E402

BASE_LAT = 48.8566
BASE_LNG = 2.3522
KM_PER_DEG_LAT = 111.19493


def lat_offset(km: float) -> float:
    """Latitude delta (degrees) for a due-north shift of ``km``."""
    return km / KM_PER_DEG_LAT


@pytest.fixture
def fast_retry() -> RetryConfig:
    return RetryConfig(max_retries=3, base_delay=0.0, max_delay=0.0, jitter=0.0)


@pytest.fixture
def make_place():
    counter = {"n": 0}

    def _make(
        wish_level: int = 3,
        rating: float = 4.0,
        stay: int = 60,
        owner: str = "alice",
        km_north: float | None = 0.0,
        place_id: str | None = None,
    ) -> Place:
        counter["n"] += 1
        pid = place_id or f"p{counter['n']}"
        location = (
            None if km_north is None
            else Location(lat=BASE_LAT + lat_offset(km_north), lng=BASE_LNG)
        )
        return Place(
            id=pid,
            name=f"Place {pid}",
            location=location,
            category="sightseeing",
            wish_level=wish_level,
            rating=rating,
            stay_duration_minutes=stay,
            owner_id=owner,
        )

    return _make


@pytest.fixture
def make_record():
    def _make(
        place_id: str,
        user_id: str = "alice",
        wish_level: int = 3,
        rating: float = 4.0,
        stay: int = 60,
        km_north: float | None = 0.0,
        **extra,
    ) -> dict:
        record = {
            "id": place_id,
            "name": f"Place {place_id}",
            "user_id": user_id,
            "category": "sightseeing",
            "wish_level": wish_level,
            "rating": rating,
            "stay_duration_minutes": stay,
        }
        if km_north is not None:
            record["latitude"] = BASE_LAT + lat_offset(km_north)
            record["longitude"] = BASE_LNG
        record.update(extra)
        return record

    return _make


@pytest.fixture
def one_day_trip() -> TripContext:
    return TripContext(trip_id="trip_1", start_date=date(2025, 6, 1), end_date=date(2025, 6, 1))


@pytest.fixture
def two_day_trip() -> TripContext:
    return TripContext(trip_id="trip_1", start_date=date(2025, 6, 1), end_date=date(2025, 6, 2))
