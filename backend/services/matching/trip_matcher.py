"""
Pair pending packages with active trips.

A package and a trip match when both city names fuzzy-match or both ends
are within MATCHING_DISTANCE_THRESHOLD_KM of each other, and the trip still
has a free slot. Matches are ranked by a proximity score (highest first).
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import List, Optional, Tuple

from django.conf import settings
from django.db.models import F
from django.utils import timezone

from common.utils import distance_km, match_city
from parcels.models import Package
from trips.models import Trip
from services.exceptions import PackageNotFoundError, TripNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class TripMatch:
    trip: Trip
    score: float
    origin_distance_km: float
    destination_distance_km: float
    available_capacity: int
    city_match: bool


@dataclass
class PackageMatch:
    package: Package
    score: float
    origin_distance_km: float
    destination_distance_km: float
    available_capacity: int
    city_match: bool


def match_score(origin_km: float, destination_km: float, city_match: bool, available_capacity: int) -> float:
    """100 - 2 per km at each end + 20 for a city match + 5 per free slot, never below 0."""
    score = 100.0
    score -= origin_km * 2
    score -= destination_km * 2
    if city_match:
        score += 20
    score += available_capacity * 5
    return max(0.0, score)


def _radius_km() -> float:
    return float(getattr(settings, "MATCHING_DISTANCE_THRESHOLD_KM", 50))


def _window_end(now: datetime) -> datetime:
    return now + timedelta(days=getattr(settings, "MATCHING_DATE_WINDOW_DAYS", 3))


def _compare(package: Package, trip: Trip) -> Optional[Tuple[float, float, bool]]:
    """
    Return (origin_km, destination_km, city_match) when the pair matches, else None.
    """
    origin_km = distance_km(package.origin_lat, package.origin_lng, trip.origin_lat, trip.origin_lng)
    destination_km = distance_km(
        package.destination_lat, package.destination_lng,
        trip.destination_lat, trip.destination_lng,
    )

    city_match = (
        match_city(package.origin_city, trip.origin_city)
        and match_city(package.destination_city, trip.destination_city)
    )
    radius = _radius_km()
    within_radius = origin_km <= radius and destination_km <= radius

    if not (city_match or within_radius):
        return None
    return origin_km, destination_km, city_match


def find_matching_trips(package_id, now: Optional[datetime] = None) -> List[TripMatch]:
    """
    Rank active trips departing within the matching window for a pending package.

    Args:
        package_id: ID of the package to place
        now: Reference time (defaults to timezone.now())

    Returns:
        TripMatch list sorted by score, empty if the package is not pending
    """
    try:
        package = Package.objects.get(pk=package_id)
    except (Package.DoesNotExist, ValueError, TypeError):
        raise PackageNotFoundError()

    if package.status != Package.STATUS_PENDING:
        return []

    now = now or timezone.now()
    trips = (
        Trip.objects.select_related("traveller")
        .filter(
            status=Trip.STATUS_ACTIVE,
            departure_date__gte=now,
            departure_date__lte=_window_end(now),
            accepted_count__lt=F("capacity"),
        )
        .exclude(traveller_id=package.sender_id)
    )

    matches: List[TripMatch] = []
    for trip in trips:
        compared = _compare(package, trip)
        if compared is None:
            continue
        origin_km, destination_km, city_match = compared
        matches.append(TripMatch(
            trip=trip,
            score=match_score(origin_km, destination_km, city_match, trip.available_capacity),
            origin_distance_km=origin_km,
            destination_distance_km=destination_km,
            available_capacity=trip.available_capacity,
            city_match=city_match,
        ))

    matches.sort(key=lambda match: match.score, reverse=True)
    logger.info("Found %d matching trips for package %s", len(matches), package.code)
    return matches


def find_matching_packages(trip_id, now: Optional[datetime] = None) -> List[PackageMatch]:
    """
    Rank pending, unassigned packages for an active trip.

    Returns an empty list when the trip is not active, is full, or departs
    after the matching window.
    """
    try:
        trip = Trip.objects.get(pk=trip_id)
    except (Trip.DoesNotExist, ValueError, TypeError):
        raise TripNotFoundError()

    if trip.status != Trip.STATUS_ACTIVE:
        return []

    now = now or timezone.now()
    if trip.departure_date > _window_end(now):
        return []

    available = trip.available_capacity
    if available <= 0:
        return []

    packages = (
        Package.objects.select_related("sender")
        .filter(status=Package.STATUS_PENDING, traveller__isnull=True)
        .exclude(sender_id=trip.traveller_id)
    )

    matches: List[PackageMatch] = []
    for package in packages:
        compared = _compare(package, trip)
        if compared is None:
            continue
        origin_km, destination_km, city_match = compared
        matches.append(PackageMatch(
            package=package,
            score=match_score(origin_km, destination_km, city_match, available),
            origin_distance_km=origin_km,
            destination_distance_km=destination_km,
            available_capacity=available,
            city_match=city_match,
        ))

    matches.sort(key=lambda match: match.score, reverse=True)
    logger.info("Found %d matching packages for trip %s", len(matches), trip.id)
    return matches
