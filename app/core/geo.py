"""
Great-circle distance and radius filtering.

Radius queries are a linear scan over the candidate records; there is no
spatial index.
"""

import math
from typing import Iterable, List, Optional, Protocol, Tuple, TypeVar

EARTH_RADIUS_KM = 6371.0

MIN_LATITUDE, MAX_LATITUDE = -90.0, 90.0
MIN_LONGITUDE, MAX_LONGITUDE = -180.0, 180.0


class Located(Protocol):
    id: Optional[int]
    latitude: Optional[float]
    longitude: Optional[float]


L = TypeVar("L", bound=Located)


def is_valid_latitude(value: float) -> bool:
    return math.isfinite(value) and MIN_LATITUDE <= value <= MAX_LATITUDE


def is_valid_longitude(value: float) -> bool:
    return math.isfinite(value) and MIN_LONGITUDE <= value <= MAX_LONGITUDE


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Distance in kilometres between two points given in degrees.

    d = 2R * asin(sqrt(sin^2(dlat/2) + cos(lat1) * cos(lat2) * sin^2(dlon/2)))
    """
    phi1 = math.radians(lat1)
    phi2 = math.radians(lat2)
    d_phi = math.radians(lat2 - lat1)
    d_lambda = math.radians(lon2 - lon1)

    h = (
        math.sin(d_phi / 2) ** 2
        + math.cos(phi1) * math.cos(phi2) * math.sin(d_lambda / 2) ** 2
    )
    # Rounding can push h marginally past 1 for antipodal points
    return 2 * EARTH_RADIUS_KM * math.asin(min(1.0, math.sqrt(h)))


def within_radius(
    records: Iterable[L],
    latitude: float,
    longitude: float,
    radius_km: float,
) -> List[Tuple[L, float]]:
    """
    Keep records whose distance to (latitude, longitude) is <= radius_km.

    Records without both coordinates are skipped. Results are ordered by
    ascending distance, ties broken by id.

    Returns:
        List of (record, distance_km) pairs
    """
    matches: List[Tuple[L, float]] = []
    for record in records:
        if record.latitude is None or record.longitude is None:
            continue
        distance = haversine_km(latitude, longitude, record.latitude, record.longitude)
        if distance <= radius_km:
            matches.append((record, distance))

    matches.sort(key=lambda pair: (pair[1], pair[0].id or 0))
    return matches
