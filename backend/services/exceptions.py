"""
Custom exceptions for the service layer.

Every error carries an HTTP status and a stable ``error_code`` so the API
layer can render it without knowing which operation raised it.
"""


class ServiceError(Exception):
    """Base class for errors raised by service operations."""
    status_code = 500
    error_code = "internal_error"
    default_message = "Internal error"

    def __init__(self, message=None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ===================== Validation =====================

class InvalidInputError(ServiceError):
    """Raised when input is missing or malformed. Nothing has been mutated."""
    status_code = 400
    error_code = "validation_error"
    default_message = "Invalid input"


# ===================== Not found =====================

class NotFoundError(ServiceError):
    status_code = 404
    error_code = "not_found"
    default_message = "Not found"


class PackageNotFoundError(NotFoundError):
    error_code = "package_not_found"
    default_message = "Package not found"


class TripNotFoundError(NotFoundError):
    error_code = "trip_not_found"
    default_message = "Trip not found"


class UserNotFoundError(NotFoundError):
    error_code = "user_not_found"
    default_message = "User not found"


# ===================== Authorization =====================

class AuthorizationError(ServiceError):
    """Raised when the actor is not permitted to perform the action."""
    status_code = 403
    error_code = "not_authorized"
    default_message = "Not authorized"


class VerificationRequiredError(AuthorizationError):
    error_code = "verification_required"
    default_message = "Account verification required"


# ===================== Conflict =====================

class ConflictError(ServiceError):
    """Raised when the current state does not allow the operation."""
    status_code = 409
    error_code = "conflict"
    default_message = "Operation not allowed in the current state"


class PackageNotAvailableError(ConflictError):
    error_code = "package_not_available"
    default_message = "Package already accepted or not available"


class TripNotActiveError(ConflictError):
    error_code = "trip_not_active"
    default_message = "Cannot accept packages to a completed or cancelled trip"


class TripCapacityFullError(ConflictError):
    error_code = "trip_capacity_full"
    default_message = "Trip capacity full"


class DeliveryOTPMissingError(ConflictError):
    error_code = "otp_missing"
    default_message = (
        "No delivery OTP found. Please ask the traveller to mark the package as delivered first."
    )


class DeliveryOTPExpiredError(ConflictError):
    error_code = "otp_expired"
    default_message = (
        "Delivery OTP has expired. Please ask the traveller to mark the package as delivered again."
    )


class DeliveryOTPMismatchError(ConflictError):
    error_code = "otp_mismatch"
    default_message = "Invalid OTP. Please check the code sent to your email."


class PaymentStateError(ConflictError):
    error_code = "invalid_payment_state"
    default_message = "Funds not held"


class NoTravellerAssignedError(ConflictError):
    error_code = "no_traveller_assigned"
    default_message = "No traveller assigned"


# ===================== Escrow =====================

class InsufficientFundsError(ServiceError):
    status_code = 400
    error_code = "insufficient_funds"
    default_message = "Insufficient balance"
