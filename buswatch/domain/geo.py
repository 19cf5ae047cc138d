"""Geographic helpers: great-circle and planar-degree distances."""

from __future__ import annotations

import math

EARTH_RADIUS_M = 6371000.0

# Flat conversion used by the movement and speed estimators.  Only valid
# close to the equator; kept for numeric compatibility with field data.
DEFAULT_METERS_PER_DEGREE = 111000.0


def haversine_m(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Great-circle distance in meters."""
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    dphi = phi2 - phi1
    dlmb = math.radians(lng2 - lng1)

    s = (
        math.sin(dphi / 2.0) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(dlmb / 2.0) ** 2
    )
    return 2.0 * EARTH_RADIUS_M * math.asin(math.sqrt(s))


def manhattan_degrees(lat1: float, lng1: float, lat2: float, lng2: float) -> float:
    """Sum of absolute latitude and longitude differences, in degrees."""
    return abs(lat2 - lat1) + abs(lng2 - lng1)


def planar_meters(
    lat1: float,
    lng1: float,
    lat2: float,
    lng2: float,
    meters_per_degree: float = DEFAULT_METERS_PER_DEGREE,
) -> float:
    """Approximate displacement in meters from the degree-sum distance."""
    return manhattan_degrees(lat1, lng1, lat2, lng2) * meters_per_degree
