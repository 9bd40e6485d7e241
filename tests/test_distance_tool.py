import asyncio

import pytest

from tripopt.modules.tool_usage.distance_tool import DistanceTool, TravelEstimate, haversine_km
from tripopt.schemas.trip import Location

PARIS = Location(48.8566, 2.3522)
LONDON = Location(51.5074, -0.1278)
NEW_YORK = Location(40.7128, -74.0060)


def test_haversine_paris_london():
    assert 340.0 < haversine_km(PARIS.lat, PARIS.lng, LONDON.lat, LONDON.lng) < 348.0


def test_travel_time_uses_mode_speed_and_overhead():
    tool = DistanceTool()
    km = tool.calculate(PARIS.lat, PARIS.lng, LONDON.lat, LONDON.lng)
    car = tool.travel_time_minutes(PARIS.lat, PARIS.lng, LONDON.lat, LONDON.lng, "car")
    flight = tool.travel_time_minutes(PARIS.lat, PARIS.lng, LONDON.lat, LONDON.lng, "flight")
    assert car == pytest.approx(km / 40.0 * 60 + 10)
    assert flight == pytest.approx(km / 700.0 * 60 + 60)


def test_long_haul_flight_overhead():
    tool = DistanceTool()
    km = tool.calculate(PARIS.lat, PARIS.lng, NEW_YORK.lat, NEW_YORK.lng)
    assert km > 3000
    minutes = tool.travel_time_minutes(PARIS.lat, PARIS.lng, NEW_YORK.lat, NEW_YORK.lng, "flight")
    assert minutes == pytest.approx(km / 700.0 * 60 + 90)


def test_identical_points_take_no_time():
    tool = DistanceTool()
    assert tool.travel_time_minutes(PARIS.lat, PARIS.lng, PARIS.lat, PARIS.lng, "walking") == 0.0


def test_unknown_mode_raises():
    with pytest.raises(ValueError):
        DistanceTool().travel_time_minutes(PARIS.lat, PARIS.lng, LONDON.lat, LONDON.lng, "boat")


def test_estimate_is_awaitable():
    estimate = asyncio.run(DistanceTool().estimate(PARIS, LONDON, "car"))
    assert isinstance(estimate, TravelEstimate)
    assert estimate.mode == "car"
    assert estimate.distance_km == pytest.approx(haversine_km(PARIS.lat, PARIS.lng, LONDON.lat, LONDON.lng))


def test_custom_speed_table():
    tool = DistanceTool(speeds_kmh={"car": 60.0}, overheads_min={"car": 0.0})
    km = tool.calculate(PARIS.lat, PARIS.lng, LONDON.lat, LONDON.lng)
    assert tool.travel_time_minutes(PARIS.lat, PARIS.lng, LONDON.lat, LONDON.lng) == pytest.approx(km)


def test_travel_time_matrix():
    matrix = DistanceTool().travel_time_matrix([PARIS, LONDON, NEW_YORK], mode="flight")
    assert [matrix[i][i] for i in range(3)] == [0.0, 0.0, 0.0]
    assert matrix[0][1] == pytest.approx(matrix[1][0])
    assert matrix[0][2] > matrix[0][1]
