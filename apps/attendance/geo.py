"""
Geofence checks for attendance submissions.

Distances use the haversine great-circle formula on a spherical Earth with
the mean radius below. Inputs are decimal degrees.
"""

from __future__ import annotations

import math
from dataclasses import dataclass


EARTH_RADIUS_M = 6_371_000


@dataclass(frozen=True)
class Coordinates:
    latitude: float
    longitude: float


@dataclass(frozen=True)
class GeofenceCheck:
    within_radius: bool
    distance_m: float


def haversine_distance_m(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = math.radians(lat2 - lat1)
    dlambda = math.radians(lon2 - lon1)

    a = math.sin(dphi / 2) ** 2 + math.cos(phi1) * math.cos(phi2) * math.sin(dlambda / 2) ** 2
    # Rounding can push `a` just outside [0, 1].
    a = min(1.0, max(0.0, a))
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_M * c


def classify(point: Coordinates, office_center: Coordinates, radius_m: float) -> GeofenceCheck:
    """
    Inclusive radius check. The comparison uses the unrounded distance;
    the reported distance is rounded to centimetres for display.
    """
    distance = haversine_distance_m(
        point.latitude,
        point.longitude,
        office_center.latitude,
        office_center.longitude,
    )
    return GeofenceCheck(
        within_radius=distance <= radius_m,
        distance_m=round(distance, 2),
    )


def is_accuracy_acceptable(accuracy_m: float, max_accuracy_m: float) -> bool:
    return accuracy_m <= max_accuracy_m
