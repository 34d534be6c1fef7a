"""
Core package lifecycle operations.

This module contains the package state machine:

    pending -> accepted -> picked_up -> in_transit -> delivered
    pending -> expired                      (expiration sweep)
    any allowed state -> disputed           (sender or traveller)

Every status change is a conditional UPDATE filtered on the state the
operation expects, so two racing requests (double accept, confirm vs.
dispute) cannot both win. Notifications are queued after commit.
"""

import logging
import secrets
import string
import time
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Dict, Any, List

from django.conf import settings
from django.db import transaction
from django.db.models import F
from django.utils import timezone

from accounts.models import User
from notifications.services import notify, queue_delivery_otp_email
from parcels.models import Package, TrackingPoint
from trips.models import Trip
from services.escrow import refund_funds, release_funds
from services.exceptions import (
    AuthorizationError,
    ConflictError,
    InvalidInputError,
    PackageNotAvailableError,
    PackageNotFoundError,
    TripCapacityFullError,
    TripNotActiveError,
    TripNotFoundError,
    VerificationRequiredError,
)
from services.validation import location_fields, parse_amount, parse_coordinate, parse_location
from .otp import generate_otp, delivery_otp_expiry, verify_delivery_otp

logger = logging.getLogger(__name__)

_BASE36 = string.digits + string.ascii_uppercase


@dataclass
class PackageResult:
    """Result object for package operations."""
    success: bool
    package: Optional[Package] = None
    message: str = ""
    extra: Optional[Dict[str, Any]] = None


# ===================== Helpers =====================

def _to_base36(number: int) -> str:
    digits = []
    while number:
        number, remainder = divmod(number, 36)
        digits.append(_BASE36[remainder])
    return "".join(reversed(digits)) or "0"


def generate_package_code() -> str:
    """PKG + base36 millisecond timestamp + 4 random base36 characters."""
    timestamp = _to_base36(int(time.time() * 1000))
    suffix = "".join(secrets.choice(_BASE36) for _ in range(4))
    return f"PKG{timestamp}{suffix}"


def _unique_package_code() -> str:
    for _ in range(5):
        code = generate_package_code()
        if not Package.objects.filter(code=code).exists():
            return code
    raise ConflictError("Could not allocate a unique package code, please retry")


def _get_package(package_id) -> Package:
    try:
        return Package.objects.select_related("sender", "traveller", "trip").get(pk=package_id)
    except (Package.DoesNotExist, ValueError, TypeError):
        raise PackageNotFoundError()


def _get_trip(trip_id) -> Trip:
    if trip_id in (None, ""):
        raise InvalidInputError("Trip ID is required")
    try:
        return Trip.objects.get(pk=trip_id)
    except (Trip.DoesNotExist, ValueError, TypeError):
        raise TripNotFoundError()


def _require_verified(actor: User) -> None:
    if not getattr(actor, "verified", False):
        raise VerificationRequiredError()


def _require_sender(package: Package, actor: User, message: str = "Not authorized") -> None:
    if package.sender_id != actor.id:
        raise AuthorizationError(message)


def _require_assigned_traveller(package: Package, actor: User) -> None:
    if package.traveller_id is None or package.traveller_id != actor.id:
        raise AuthorizationError("Only the assigned traveller can perform this action")


def _compare_and_set(package: Package, expected: Dict[str, Any], conflict: ConflictError, **changes) -> Package:
    """
    Apply ``changes`` only if the row still matches ``expected``.

    Raises ``conflict`` when another request changed the package first.
    """
    updated = Package.objects.filter(pk=package.pk, **expected).update(**changes)
    if not updated:
        raise conflict
    package.refresh_from_db()
    return package


def _package_fields(data: Dict[str, Any]) -> Dict[str, Any]:
    """Validate create/update input and flatten it into model fields."""
    origin = parse_location(data.get("origin"), "Origin")
    destination = parse_location(data.get("destination"), "Destination")

    receiver_name = str(data.get("receiver_name") or "").strip()
    receiver_phone = str(data.get("receiver_phone") or "").strip()
    if not receiver_name or not receiver_phone:
        raise InvalidInputError("Receiver name and phone are required")

    fee = parse_amount(data.get("fee"), "Fee")

    payer = data.get("payer")
    if payer not in (Package.PAYER_SENDER, Package.PAYER_RECEIVER):
        raise InvalidInputError("Payer must be 'sender' or 'receiver'")

    return dict(
        location_fields(origin, destination),
        receiver_name=receiver_name,
        receiver_phone=receiver_phone,
        description=data.get("description") or "",
        photos=list(data.get("photos") or []),
        fee=fee,
        payer=payer,
    )


def _package_meta(package: Package, **extra) -> Dict[str, Any]:
    return {"package_id": package.id, "code": package.code, **extra}


def _disputable_statuses() -> List[str]:
    if getattr(settings, "PACKAGE_DISPUTES_ALLOW_TERMINAL", True):
        return [status for status, _ in Package.STATUS_CHOICES]
    return list(Package.ACTIVE_STATUSES)


# ===================== Sender Operations =====================

@transaction.atomic
def create_package(sender: User, data: Dict[str, Any]) -> PackageResult:
    """
    Create a new package in the pending state.

    Args:
        sender: User posting the package (must be verified)
        data: origin/destination ({city, address, lat, lng}), receiver_name,
              receiver_phone, fee, payer, optional description and photos

    Returns:
        PackageResult with the created package
    """
    _require_verified(sender)
    fields = _package_fields(data)

    package = Package.objects.create(
        sender=sender,
        code=_unique_package_code(),
        status=Package.STATUS_PENDING,
        **fields,
    )
    logger.info("Package %s created by user %s", package.code, sender.id)

    notify(
        sender.id,
        "Package created",
        f"Your package {package.code} has been created.",
        "package_created",
        _package_meta(package),
    )

    return PackageResult(success=True, package=package, message="Package created")


@transaction.atomic
def update_package(sender: User, package_id, data: Dict[str, Any]) -> PackageResult:
    """
    Replace the editable fields of a pending or expired package.

    An expired package goes back to pending and its 24h matching window
    restarts from now.
    """
    _require_verified(sender)
    package = _get_package(package_id)
    _require_sender(
        package, sender,
        "You are not authorized to update this package. Only the package sender can make updates.",
    )

    not_editable = ConflictError(
        f"Cannot update package. This package is currently {package.status} and cannot be modified. "
        "Only pending or expired packages can be updated."
    )
    if package.status not in Package.EDITABLE_STATUSES:
        raise not_editable

    fields = _package_fields(data)
    if package.payment_status == Package.PAYMENT_HELD and fields["fee"] != package.fee:
        raise ConflictError("Cannot change the fee while funds are held for this package")

    changes = dict(fields, status=Package.STATUS_PENDING)
    if package.status == Package.STATUS_EXPIRED:
        changes["created_at"] = timezone.now()

    _compare_and_set(
        package,
        {"status__in": Package.EDITABLE_STATUSES, "sender": sender},
        not_editable,
        **changes,
    )
    logger.info("Package %s updated by sender %s", package.code, sender.id)

    return PackageResult(success=True, package=package, message="Package updated successfully")


@transaction.atomic
def delete_package(sender: User, package_id) -> PackageResult:
    """
    Hard-delete a pending or expired package. Held funds go back to the sender first.
    """
    package = _get_package(package_id)
    _require_sender(
        package, sender,
        "You are not authorized to delete this package. Only the package sender can delete it.",
    )

    not_deletable = ConflictError(
        f"Cannot delete package. This package is currently {package.status} and cannot be deleted. "
        "Only pending or expired packages can be deleted."
    )
    if package.status not in Package.EDITABLE_STATUSES:
        raise not_deletable

    refunded = False
    if package.payment_status == Package.PAYMENT_HELD:
        refund_funds(package.id)
        refunded = True

    deleted, _ = Package.objects.filter(pk=package.pk, status__in=Package.EDITABLE_STATUSES).delete()
    if not deleted:
        raise not_deletable

    logger.info("Package %s deleted by sender %s (refunded=%s)", package.code, sender.id, refunded)
    return PackageResult(
        success=True,
        message="Package deleted successfully",
        extra={"refunded": refunded},
    )


@transaction.atomic
def confirm_delivery(sender: User, package_id, otp, now: Optional[datetime] = None) -> PackageResult:
    """
    Sender confirms delivery with the OTP emailed by mark_delivered.

    On success the package becomes delivered, the OTP is cleared, both users'
    stats are bumped, the trip is completed if nothing on it is left
    undelivered, and held escrow is released to the traveller.
    """
    _require_verified(sender)
    now = now or timezone.now()
    package = _get_package(package_id)
    _require_sender(package, sender, "Only the sender can verify delivery")

    verify_delivery_otp(package, otp, now)

    _compare_and_set(
        package,
        {
            "status__in": Package.DELIVERABLE_STATUSES,
            "delivery_otp": package.delivery_otp,
            "delivery_otp_expires_at": package.delivery_otp_expires_at,
        },
        ConflictError("Package changed while verifying delivery. Please try again."),
        status=Package.STATUS_DELIVERED,
        delivered_at=now,
        delivery_otp=None,
        delivery_otp_expires_at=None,
    )

    # Update traveller and sender stats
    User.objects.filter(pk=package.traveller_id).update(total_deliveries=F("total_deliveries") + 1)
    User.objects.filter(pk=package.sender_id).update(total_packages=F("total_packages") + 1)

    trip_completed = _complete_trip_if_delivered(package.trip_id)

    payment_released = False
    if package.payment_status == Package.PAYMENT_HELD:
        release_funds(package.id)
        package.refresh_from_db(fields=["payment_status"])
        payment_released = True

    logger.info(
        "Package %s delivered (trip_completed=%s, payment_released=%s)",
        package.code, trip_completed, payment_released,
    )

    notify(
        [package.sender_id, package.traveller_id],
        "Package delivered",
        f"Package {package.code} has been verified and delivered successfully.",
        "package_status",
        _package_meta(package, status=Package.STATUS_DELIVERED),
    )

    return PackageResult(
        success=True,
        package=package,
        message="Package delivery verified successfully",
        extra={"trip_completed": trip_completed, "payment_released": payment_released},
    )


# ===================== Traveller Operations =====================

@transaction.atomic
def accept_package(traveller: User, package_id, trip_id) -> PackageResult:
    """
    Accept a pending package onto one of the traveller's active trips.

    The trip slot is claimed with a conditional increment of
    ``accepted_count`` and the package is claimed with a conditional update
    on ``status == pending``. If either loses a race the whole block rolls
    back.

    Args:
        traveller: User accepting the package (must be verified, not the sender)
        package_id: ID of the package to accept
        trip_id: ID of the traveller's trip to carry it on

    Returns:
        PackageResult with the accepted package
    """
    _require_verified(traveller)
    package = _get_package(package_id)
    trip = _get_trip(trip_id)

    if package.sender_id == traveller.id:
        raise AuthorizationError("You cannot accept your own package")
    if trip.traveller_id != traveller.id:
        raise AuthorizationError("You can only accept packages onto your own trip")
    if package.status != Package.STATUS_PENDING:
        raise PackageNotAvailableError()
    if trip.status != Trip.STATUS_ACTIVE:
        raise TripNotActiveError()

    # Claim a capacity slot on the trip
    claimed = Trip.objects.filter(
        pk=trip.pk,
        status=Trip.STATUS_ACTIVE,
        accepted_count__lt=F("capacity"),
    ).update(accepted_count=F("accepted_count") + 1)
    if not claimed:
        trip.refresh_from_db(fields=["status", "accepted_count"])
        if trip.status != Trip.STATUS_ACTIVE:
            raise TripNotActiveError()
        raise TripCapacityFullError()

    _compare_and_set(
        package,
        {"status": Package.STATUS_PENDING, "traveller__isnull": True},
        PackageNotAvailableError(),
        status=Package.STATUS_ACCEPTED,
        traveller=traveller,
        trip=trip,
        accepted_at=timezone.now(),
        delivery_otp=generate_otp(),
    )
    logger.info("Package %s accepted by traveller %s on trip %s", package.code, traveller.id, trip.id)

    notify(
        [package.sender_id, traveller.id],
        "Package accepted",
        f"Package {package.code} has been accepted.",
        "package_accepted",
        _package_meta(package, trip_id=trip.id),
    )

    return PackageResult(success=True, package=package, message="Package accepted")


@transaction.atomic
def pickup_package(traveller: User, package_id, pickup_proof: Optional[str] = None) -> PackageResult:
    """Traveller collected the package from the sender."""
    _require_verified(traveller)
    package = _get_package(package_id)
    _require_assigned_traveller(package, traveller)

    not_accepted = ConflictError("Package not in accepted state")
    if package.status != Package.STATUS_ACCEPTED:
        raise not_accepted

    changes = {"status": Package.STATUS_PICKED_UP, "picked_up_at": timezone.now()}
    if pickup_proof:
        changes["pickup_proof"] = pickup_proof

    _compare_and_set(
        package,
        {"status": Package.STATUS_ACCEPTED, "traveller": traveller},
        not_accepted,
        **changes,
    )

    notify(
        [package.sender_id, package.traveller_id],
        "Package picked up",
        f"Package {package.code} has been picked up.",
        "package_status",
        _package_meta(package, status=Package.STATUS_PICKED_UP),
    )

    return PackageResult(success=True, package=package, message="Package picked up")


@transaction.atomic
def mark_in_transit(traveller: User, package_id) -> PackageResult:
    """Traveller has set off with a picked-up package."""
    _require_verified(traveller)
    package = _get_package(package_id)
    _require_assigned_traveller(package, traveller)

    not_picked_up = ConflictError("Package not in picked_up state")
    if package.status != Package.STATUS_PICKED_UP:
        raise not_picked_up

    _compare_and_set(
        package,
        {"status": Package.STATUS_PICKED_UP, "traveller": traveller},
        not_picked_up,
        status=Package.STATUS_IN_TRANSIT,
    )

    notify(
        package.sender_id,
        "Package in transit",
        f"Package {package.code} is on its way.",
        "package_status",
        _package_meta(package, status=Package.STATUS_IN_TRANSIT),
    )

    return PackageResult(success=True, package=package, message="Package in transit")


@transaction.atomic
def mark_delivered(
    traveller: User,
    package_id,
    delivery_proof: Optional[str] = None,
    now: Optional[datetime] = None,
) -> PackageResult:
    """
    Traveller hands the package over and asks the sender to confirm.

    Issues a fresh delivery OTP valid for DELIVERY_OTP_EXPIRY_MINUTES and
    emails it to the sender. The status only becomes delivered once the
    sender confirms the code.
    """
    _require_verified(traveller)
    package = _get_package(package_id)
    _require_assigned_traveller(package, traveller)

    not_ready = ConflictError("Package not ready for delivery")
    if package.status not in Package.DELIVERABLE_STATUSES:
        raise not_ready

    otp = generate_otp()
    changes = {
        "delivery_otp": otp,
        "delivery_otp_expires_at": delivery_otp_expiry(now),
    }
    if delivery_proof:
        changes["delivery_proof"] = delivery_proof

    _compare_and_set(
        package,
        {"status__in": Package.DELIVERABLE_STATUSES, "traveller": traveller},
        not_ready,
        **changes,
    )

    queue_delivery_otp_email(package.sender.email, otp, package.code)
    notify(
        package.sender_id,
        "Package delivery pending verification",
        f"Package {package.code} has been marked as delivered. "
        "Please verify with the OTP sent to your email.",
        "package_status",
        _package_meta(package, status="pending_verification"),
    )

    return PackageResult(
        success=True,
        package=package,
        message="Delivery OTP sent to sender. Package will be marked as delivered after sender verification.",
    )


@transaction.atomic
def record_location(traveller: User, package_id, lat, lng, now: Optional[datetime] = None) -> List[TrackingPoint]:
    """
    Append a GPS fix to the package's tracking trail.

    Only the newest PACKAGE_TRACKING_LIMIT points are kept.
    """
    lat = parse_coordinate(lat, "Latitude", 90)
    lng = parse_coordinate(lng, "Longitude", 180)

    package = _get_package(package_id)
    _require_assigned_traveller(package, traveller)
    if package.status not in Package.TRACKABLE_STATUSES:
        raise ConflictError("Package not in trackable state")

    TrackingPoint.objects.create(package=package, lat=lat, lng=lng, timestamp=now or timezone.now())

    limit = getattr(settings, "PACKAGE_TRACKING_LIMIT", 100)
    stale_ids = list(
        package.tracking.order_by("-timestamp", "-id").values_list("id", flat=True)[limit:]
    )
    if stale_ids:
        TrackingPoint.objects.filter(id__in=stale_ids).delete()

    return list(package.tracking.all())


def get_tracking_history(package_id) -> List[TrackingPoint]:
    package = _get_package(package_id)
    return list(package.tracking.all())


# ===================== Shared Operations =====================

@transaction.atomic
def raise_dispute(actor: User, package_id, reason: str) -> PackageResult:
    """
    Sender or assigned traveller flags a problem with the package.

    Held funds stay held until an admin releases or refunds them.
    """
    package = _get_package(package_id)

    is_sender = package.sender_id == actor.id
    is_traveller = package.traveller_id is not None and package.traveller_id == actor.id
    if not (is_sender or is_traveller):
        raise AuthorizationError("Only the sender or the assigned traveller can raise a dispute")

    reason = (reason or "").strip()
    if not reason:
        raise InvalidInputError("A dispute reason is required")

    allowed = _disputable_statuses()
    not_disputable = ConflictError(f"Cannot dispute a package that is {package.status}")
    if package.status not in allowed:
        raise not_disputable

    _compare_and_set(
        package,
        {"status__in": allowed},
        not_disputable,
        status=Package.STATUS_DISPUTED,
        dispute_reason=reason,
        delivery_otp=None,
        delivery_otp_expires_at=None,
    )
    logger.info("Dispute raised on package %s by user %s", package.code, actor.id)

    counterpart = package.traveller_id if is_sender else package.sender_id
    notify(
        counterpart,
        "Dispute raised",
        f"A dispute has been raised on package {package.code}: {reason}",
        "package_status",
        _package_meta(package, status=Package.STATUS_DISPUTED),
    )

    return PackageResult(success=True, package=package, message="Dispute raised")


def _complete_trip_if_delivered(trip_id) -> bool:
    """Mark the trip completed once every package on it is delivered."""
    if trip_id is None:
        return False

    undelivered = Package.objects.filter(trip_id=trip_id).exclude(status=Package.STATUS_DELIVERED)
    if undelivered.exists():
        return False

    completed = Trip.objects.filter(pk=trip_id, status=Trip.STATUS_ACTIVE).update(status=Trip.STATUS_COMPLETED)
    if completed:
        logger.info("Trip %s marked as completed - all packages delivered", trip_id)
    return bool(completed)
