"""
Geospatial helpers for the public event map.

Provides haversine distances and the degree window that bounds a search
radius, used to prefilter candidate events in SQL before the exact
distance check.
"""

import math
from typing import Optional, Tuple


# Earth's mean radius in kilometres
EARTH_RADIUS_KM = 6371.0

# Length of one degree of latitude
KM_PER_DEGREE = 111.32


def haversine_km(
    point_a: Tuple[float, float],
    point_b: Tuple[float, float],
) -> float:
    """
    Calculate the great-circle distance between two points on Earth.

    Args:
        point_a: (latitude, longitude) in decimal degrees
        point_b: (latitude, longitude) in decimal degrees

    Returns:
        Distance in kilometres
    """
    lat1, lon1 = math.radians(point_a[0]), math.radians(point_a[1])
    lat2, lon2 = math.radians(point_b[0]), math.radians(point_b[1])

    dlat = lat2 - lat1
    dlon = lon2 - lon1

    a = (
        math.sin(dlat / 2) ** 2
        + math.cos(lat1) * math.cos(lat2) * math.sin(dlon / 2) ** 2
    )
    c = 2 * math.asin(math.sqrt(a))

    return EARTH_RADIUS_KM * c


def radius_window(
    latitude: float,
    longitude: float,
    radius_km: float,
) -> Tuple[Tuple[float, float], Optional[Tuple[float, float]]]:
    """
    Degree window enclosing a circle of radius_km around a point.

    Returns:
        ((south, north), (west, east)). The longitude range is None when
        the circle reaches a pole or crosses the antimeridian; callers
        then rely on the latitude range and the exact distance alone.
    """
    dlat = radius_km / KM_PER_DEGREE
    south, north = max(latitude - dlat, -90.0), min(latitude + dlat, 90.0)

    if north >= 90.0 or south <= -90.0:
        return (south, north), None

    dlng = radius_km / (KM_PER_DEGREE * math.cos(math.radians(latitude)))
    west, east = longitude - dlng, longitude + dlng
    if west < -180.0 or east > 180.0:
        return (south, north), None
    return (south, north), (west, east)
