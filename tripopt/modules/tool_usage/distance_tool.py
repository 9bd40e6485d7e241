"""
modules/tool_usage/distance_tool.py
-------------------------------------
Distance/travel-time provider using the Haversine formula with a per-mode
speed model.  No external HTTP calls are made.

Any object with the same ``calculate`` / ``estimate`` signatures (for example
a client for a routing service) can be passed to the pipeline instead.

Config knobs (config.py):
  TRANSPORT_SPEED_KMH     -- average speed per mode
  TRANSPORT_OVERHEAD_MIN  -- fixed minutes per leg (parking, waiting, boarding)
  LONG_HAUL_FLIGHT_KM     -- flights longer than this use the long-haul overhead
"""

from __future__ import annotations

import math
import logging
from dataclasses import dataclass
from typing import Protocol

from tripopt import config
from tripopt.schemas.trip import Location

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Pure maths
# ---------------------------------------------------------------------------

_EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """Great-circle distance between two points (Haversine formula) in km."""
    r = _EARTH_RADIUS_KM
    phi1, phi2 = math.radians(lat1), math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lam = math.radians(lon2 - lon1)
    a = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lam / 2) ** 2
    )
    return 2 * r * math.asin(math.sqrt(a))


def _km_to_minutes(km: float, speed_kmh: float) -> float:
    """Straight-line km to minutes at a given speed."""
    return (km / speed_kmh) * 60.0


# ---------------------------------------------------------------------------
# Provider contract
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TravelEstimate:
    distance_km: float
    travel_minutes: float
    mode: str


class DistanceProvider(Protocol):
    def calculate(self, lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        ...

    async def estimate(
        self, origin: Location, destination: Location, mode: str
    ) -> TravelEstimate:
        ...


# ---------------------------------------------------------------------------
# DistanceTool
# ---------------------------------------------------------------------------


class DistanceTool:
    """
    Computes travel times between lat/lon points using the Haversine formula
    plus the per-mode speed and overhead tables in config.py.
    """

    def __init__(
        self,
        speeds_kmh: dict[str, float] | None = None,
        overheads_min: dict[str, float] | None = None,
    ) -> None:
        self.speeds_kmh = dict(speeds_kmh or config.TRANSPORT_SPEED_KMH)
        self.overheads_min = dict(overheads_min or config.TRANSPORT_OVERHEAD_MIN)

    def calculate(self, lat1: float, lon1: float, lat2: float, lon2: float) -> float:
        """Return Haversine distance in km."""
        return haversine_km(lat1, lon1, lat2, lon2)

    def travel_time_minutes(
        self,
        lat1: float,
        lon1: float,
        lat2: float,
        lon2: float,
        mode: str = "car",
    ) -> float:
        """Return travel time in minutes between two points for ``mode``."""
        if lat1 == lat2 and lon1 == lon2:
            return 0.0
        if mode not in self.speeds_kmh:
            raise ValueError(f"invalid transport mode {mode!r}")
        km = haversine_km(lat1, lon1, lat2, lon2)
        overhead = self.overheads_min.get(mode, 0.0)
        if mode == "flight" and km > config.LONG_HAUL_FLIGHT_KM:
            overhead = config.LONG_HAUL_AIRPORT_OVERHEAD_MIN
        return _km_to_minutes(km, self.speeds_kmh[mode]) + overhead

    async def estimate(
        self, origin: Location, destination: Location, mode: str
    ) -> TravelEstimate:
        """Distance and travel minutes for one leg."""
        km = haversine_km(origin.lat, origin.lng, destination.lat, destination.lng)
        minutes = self.travel_time_minutes(
            origin.lat, origin.lng, destination.lat, destination.lng, mode
        )
        return TravelEstimate(distance_km=km, travel_minutes=minutes, mode=mode)

    def travel_time_matrix(
        self,
        locations: list[Location],
        mode: str = "car",
    ) -> list[list[float]]:
        """Return a full n x n travel-time matrix [minutes]."""
        return [
            [
                0.0 if i == j
                else self.travel_time_minutes(a.lat, a.lng, b.lat, b.lng, mode)
                for j, b in enumerate(locations)
            ]
            for i, a in enumerate(locations)
        ]
