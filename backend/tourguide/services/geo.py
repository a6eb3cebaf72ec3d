"""
Distance helpers for the nearby guide/place searches
"""

import math
from typing import Iterable, TypeVar

T = TypeVar("T")

EARTH_RADIUS_KM = 6371.0


def haversine_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    d_lat = math.radians(lat2 - lat1)
    d_lon = math.radians(lon2 - lon1)
    a = (
        math.sin(d_lat / 2) ** 2
        + math.cos(math.radians(lat1)) * math.cos(math.radians(lat2)) * math.sin(d_lon / 2) ** 2
    )
    return EARTH_RADIUS_KM * 2 * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def within_radius(
    items: Iterable[T],
    latitude: float,
    longitude: float,
    radius_km: float,
    lat_attr: str,
    lng_attr: str,
) -> list[T]:
    """Items with coordinates inside the radius, nearest first."""
    scored = []
    for item in items:
        item_lat = getattr(item, lat_attr, None)
        item_lng = getattr(item, lng_attr, None)
        if item_lat is None or item_lng is None:
            continue
        distance = haversine_km(latitude, longitude, item_lat, item_lng)
        if distance <= radius_km:
            scored.append((distance, item))
    scored.sort(key=lambda pair: pair[0])
    return [item for _, item in scored]
