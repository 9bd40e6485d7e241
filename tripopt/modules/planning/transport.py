"""
modules/planning/transport.py
------------------------------
Transport-mode classification by leg distance.

  d <= WALKING_MAX_KM            -> walking
  d <= PUBLIC_TRANSPORT_MAX_KM   -> public_transport if preferred, else car
  d <= FLIGHT_MIN_KM             -> car
  d >  FLIGHT_MIN_KM             -> flight

A distance exactly on a boundary takes the shorter-distance mode.
"""

from __future__ import annotations

from enum import Enum

from tripopt import config


class TransportMode(str, Enum):
    WALKING = "walking"
    PUBLIC_TRANSPORT = "public_transport"
    CAR = "car"
    FLIGHT = "flight"


def classify_transport_mode(
    distance_km: float,
    preferred: str | TransportMode = TransportMode.CAR,
) -> TransportMode:
    preferred = TransportMode(preferred)
    if distance_km <= config.WALKING_MAX_KM:
        return TransportMode.WALKING
    if distance_km <= config.PUBLIC_TRANSPORT_MAX_KM:
        if preferred is TransportMode.PUBLIC_TRANSPORT:
            return TransportMode.PUBLIC_TRANSPORT
        return TransportMode.CAR
    if distance_km <= config.FLIGHT_MIN_KM:
        return TransportMode.CAR
    return TransportMode.FLIGHT
