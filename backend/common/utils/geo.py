"""
Geographic utility functions.

This module provides the great-circle calculations used by trip/package matching.
"""

from math import radians, cos, sin, asin, sqrt
from typing import NamedTuple

EARTH_RADIUS_KM = 6371.0


def distance_km(lat1: float, lon1: float, lat2: float, lon2: float) -> float:
    """
    Calculate distance between two points in kilometers using Haversine formula.
    
    Args:
        lat1: Latitude of first point
        lon1: Longitude of first point
        lat2: Latitude of second point
        lon2: Longitude of second point
    
    Returns:
        Distance in kilometers
    """
    lat1, lon1, lat2, lon2 = map(radians, [float(lat1), float(lon1), float(lat2), float(lon2)])
    dlat = lat2 - lat1
    dlon = lon2 - lon1
    a = sin(dlat / 2) ** 2 + cos(lat1) * cos(lat2) * sin(dlon / 2) ** 2
    # Float error can push `a` a hair above 1 for antipodal points
    c = 2 * asin(sqrt(min(1.0, a)))
    return c * EARTH_RADIUS_KM


def is_within_radius(lat1: float, lon1: float, lat2: float, lon2: float, radius_km: float) -> bool:
    """Return True when the two points are at most ``radius_km`` apart."""
    return distance_km(lat1, lon1, lat2, lon2) <= radius_km


class GeoPoint(NamedTuple):
    """A named place: city, street address and coordinates."""
    city: str
    address: str
    lat: float
    lng: float
