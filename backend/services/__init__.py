"""
Services package - Business logic layer.

This package contains all business logic services that operate on Django models
but are decoupled from the HTTP layer.

Modules:
    - package_lifecycle: Package state machine and delivery OTP
    - matching: Trip/package matching
    - escrow: Wallet balances and the transaction ledger
"""

# Expose commonly used functions at package level
from .matching import (
    find_matching_trips,
    find_matching_packages,
)
from .package_lifecycle import (
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
)
from .escrow import (
    top_up,
    hold_funds,
    release_funds,
    refund_funds,
)
from .exceptions import (
    ServiceError,
    InvalidInputError,
    NotFoundError,
    AuthorizationError,
    ConflictError,
    InsufficientFundsError,
)

__all__ = [
    # Matching
    "find_matching_trips",
    "find_matching_packages",
    # Package lifecycle
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
    # Escrow
    "top_up",
    "hold_funds",
    "release_funds",
    "refund_funds",
    # Exceptions
    "ServiceError",
    "InvalidInputError",
    "NotFoundError",
    "AuthorizationError",
    "ConflictError",
    "InsufficientFundsError",
]
