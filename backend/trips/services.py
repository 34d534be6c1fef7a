"""
Trip operations for travellers.

Capacity changes are applied with a conditional update so a trip can never
shrink below the number of packages already accepted onto it.
"""

import logging
from datetime import datetime
from typing import Any, Dict

from django.db import transaction
from django.utils import timezone
from django.utils.dateparse import parse_datetime

from accounts.models import User
from services.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidInputError,
    TripNotActiveError,
    TripNotFoundError,
    VerificationRequiredError,
)
from services.validation import location_fields, parse_amount, parse_location
from trips.models import Trip

logger = logging.getLogger(__name__)


def _parse_departure(value) -> datetime:
    if isinstance(value, datetime):
        departure = value
    else:
        departure = parse_datetime(str(value or ""))
        if departure is None:
            raise InvalidInputError("Departure date must be an ISO 8601 datetime")
    if timezone.is_naive(departure):
        departure = timezone.make_aware(departure)
    return departure


def _parse_capacity(value) -> int:
    try:
        capacity = int(value)
    except (TypeError, ValueError):
        raise InvalidInputError("Capacity must be a whole number")
    if capacity < 1:
        raise InvalidInputError("Capacity must be at least 1")
    return capacity


def _get_owned_trip(actor: User, trip_id) -> Trip:
    try:
        trip = Trip.objects.get(pk=trip_id)
    except (Trip.DoesNotExist, ValueError, TypeError):
        raise TripNotFoundError()
    if trip.traveller_id != actor.id and actor.role != "admin":
        raise AuthorizationError("Not authorized")
    return trip


@transaction.atomic
def create_trip(traveller: User, data: Dict[str, Any]) -> Trip:
    """
    Post a new active trip.

    Args:
        traveller: User offering the capacity (must be verified)
        data: origin, destination ({city, address, lat, lng}), departure_date,
              capacity (>= 1), price (>= 0)
    """
    if not traveller.verified:
        raise VerificationRequiredError()

    fields = location_fields(
        parse_location(data.get("origin"), "Origin"),
        parse_location(data.get("destination"), "Destination"),
    )
    if data.get("departure_date") in (None, ""):
        raise InvalidInputError("Departure date is required")

    trip = Trip.objects.create(
        traveller=traveller,
        departure_date=_parse_departure(data["departure_date"]),
        capacity=_parse_capacity(data.get("capacity")),
        price=parse_amount(data.get("price"), "Price"),
        **fields,
    )
    logger.info("Trip %s created by traveller %s", trip.id, traveller.id)
    return trip


@transaction.atomic
def update_trip(actor: User, trip_id, data: Dict[str, Any]) -> Trip:
    """Change the route, departure, capacity or price of an active trip."""
    if not actor.verified:
        raise VerificationRequiredError()
    trip = _get_owned_trip(actor, trip_id)
    if trip.status != Trip.STATUS_ACTIVE:
        raise TripNotActiveError("Only active trips can be changed")

    changes: Dict[str, Any] = {}
    if "origin" in data or "destination" in data:
        origin = parse_location(data.get("origin"), "Origin") if "origin" in data else trip.origin._asdict()
        destination = (
            parse_location(data.get("destination"), "Destination")
            if "destination" in data else trip.destination._asdict()
        )
        changes.update(location_fields(origin, destination))
    if "departure_date" in data:
        changes["departure_date"] = _parse_departure(data["departure_date"])
    if "capacity" in data:
        changes["capacity"] = _parse_capacity(data["capacity"])
    if "price" in data:
        changes["price"] = parse_amount(data["price"], "Price")

    if not changes:
        return trip

    expected = {"status": Trip.STATUS_ACTIVE}
    if "capacity" in changes:
        expected["accepted_count__lte"] = changes["capacity"]

    updated = Trip.objects.filter(pk=trip.pk, **expected).update(**changes)
    if not updated:
        trip.refresh_from_db()
        if trip.status != Trip.STATUS_ACTIVE:
            raise TripNotActiveError("Only active trips can be changed")
        raise ConflictError(
            f"Capacity cannot be lower than the {trip.accepted_count} package(s) already accepted"
        )

    trip.refresh_from_db()
    logger.info("Trip %s updated by user %s", trip.id, actor.id)
    return trip


@transaction.atomic
def cancel_trip(actor: User, trip_id) -> Trip:
    """
    Cancel an active trip. Packages already accepted onto it are left as they are.
    """
    if not actor.verified:
        raise VerificationRequiredError()
    trip = _get_owned_trip(actor, trip_id)

    cancelled = Trip.objects.filter(pk=trip.pk, status=Trip.STATUS_ACTIVE).update(status=Trip.STATUS_CANCELLED)
    if not cancelled:
        raise TripNotActiveError("Only active trips can be changed")

    trip.refresh_from_db()
    logger.info("Trip %s cancelled by user %s", trip.id, actor.id)
    return trip
