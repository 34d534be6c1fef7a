"""
Package lifecycle service - the package state machine.

This module handles:
    - Creating, updating and deleting packages
    - Accepting packages onto trips
    - Pickup, transit and delivery
    - OTP-gated delivery confirmation
    - Disputes and location tracking
"""

from .package_lifecycle import (
    PackageResult,
    create_package,
    update_package,
    delete_package,
    accept_package,
    pickup_package,
    mark_in_transit,
    mark_delivered,
    confirm_delivery,
    raise_dispute,
    record_location,
    get_tracking_history,
    generate_package_code,
)
from .otp import generate_otp, verify_delivery_otp

__all__ = [
    "PackageResult",
    # Lifecycle operations
    "create_package",
    "update_package",
    "delete_package",
    "accept_package",
    "pickup_package",
    "mark_in_transit",
    "mark_delivered",
    "confirm_delivery",
    "raise_dispute",
    "record_location",
    "get_tracking_history",
    "generate_package_code",
    # OTP
    "generate_otp",
    "verify_delivery_otp",
]
