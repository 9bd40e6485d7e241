"""
modules/tool_usage/data_provider.py
-------------------------------------
Trip data provider contract plus an in-memory implementation.

The surrounding application owns storage; the pipeline only asks for the
raw place and member records of one trip.  Records are plain snake_case
dicts (see Place.from_record / Member.from_record).
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Protocol

from tripopt.modules.resilience.error_classifier import TripDataError

logger = logging.getLogger(__name__)

Record = dict[str, Any]


class TripDataProvider(Protocol):
    async def get_places(self, trip_id: str) -> list[Record]:
        ...

    async def get_members(self, trip_id: str) -> list[Record]:
        ...


class InMemoryTripDataProvider:
    """
    Serves snapshots already held by the caller.

    Usage:
        provider = InMemoryTripDataProvider()
        provider.add_trip("trip_1", places=[...], members=[...])
    """

    def __init__(self) -> None:
        self._places: dict[str, list[Record]] = {}
        self._members: dict[str, list[Record]] = {}

    def add_trip(
        self,
        trip_id: str,
        places: Iterable[Record],
        members: Iterable[Record],
    ) -> None:
        self._places[trip_id] = [dict(p) for p in places]
        self._members[trip_id] = [dict(m) for m in members]
        logger.debug(
            "Registered trip %s: %d places, %d members",
            trip_id, len(self._places[trip_id]), len(self._members[trip_id]),
        )

    async def get_places(self, trip_id: str) -> list[Record]:
        if trip_id not in self._places:
            raise TripDataError(f"trip {trip_id!r} not found in data provider")
        return [dict(p) for p in self._places[trip_id]]

    async def get_members(self, trip_id: str) -> list[Record]:
        if trip_id not in self._members:
            raise TripDataError(f"trip {trip_id!r} not found in data provider")
        return [dict(m) for m in self._members[trip_id]]
