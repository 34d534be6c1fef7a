"""Common utility functions."""

from .geo import GeoPoint, distance_km, is_within_radius
from .fuzzy import normalize, edit_distance, similarity, fuzzy_equals, match_city

__all__ = [
    "GeoPoint",
    "distance_km",
    "is_within_radius",
    "normalize",
    "edit_distance",
    "similarity",
    "fuzzy_equals",
    "match_city",
]
