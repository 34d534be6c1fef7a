"""
Trip/package matching service.

This module handles:
    - Ranking active trips for a pending package
    - Ranking pending packages for an active trip
"""

from .trip_matcher import (
    TripMatch,
    PackageMatch,
    match_score,
    find_matching_trips,
    find_matching_packages,
)

__all__ = [
    "TripMatch",
    "PackageMatch",
    "match_score",
    "find_matching_trips",
    "find_matching_packages",
]
