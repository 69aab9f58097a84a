"""Great-circle distance helpers."""

import math

EARTH_RADIUS_KM = 6371.0


def has_coordinates(latitude, longitude) -> bool:
    """Missing or zero coordinates mean "location unknown"."""
    return bool(latitude) and bool(longitude)


def distance_km(lat1, lon1, lat2, lon2) -> float:
    """
    Haversine distance between two points on a spherical Earth.

    Returns 0.0 when either point is unknown, so callers must not treat a
    zero distance as "right here".
    """
    if not has_coordinates(lat1, lon1) or not has_coordinates(lat2, lon2):
        return 0.0

    lat1, lon1, lat2, lon2 = (float(v) for v in (lat1, lon1, lat2, lon2))
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)

    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    c = 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))
    return EARTH_RADIUS_KM * c
