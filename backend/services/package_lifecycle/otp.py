"""
Delivery OTP protocol.

A 6-digit code is seeded when a traveller accepts a package and re-issued,
with an expiry, when the traveller marks it delivered. Only the re-issued
code opens a confirmation window; verification is single-use and fails
closed with a distinct error for each failed precondition.
"""

import secrets
from datetime import datetime, timedelta
from typing import Optional

from django.conf import settings
from django.utils import timezone

from services.exceptions import (
    DeliveryOTPExpiredError,
    DeliveryOTPMismatchError,
    DeliveryOTPMissingError,
)

OTP_MIN = 100000
OTP_MAX = 999999


def generate_otp() -> str:
    """Uniform 6-digit numeric code in [100000, 999999]."""
    return str(OTP_MIN + secrets.randbelow(OTP_MAX - OTP_MIN + 1))


def delivery_otp_expiry(now: Optional[datetime] = None) -> datetime:
    minutes = getattr(settings, "DELIVERY_OTP_EXPIRY_MINUTES", 10)
    return (now or timezone.now()) + timedelta(minutes=minutes)


def verify_delivery_otp(package, otp, now: Optional[datetime] = None) -> None:
    """
    Check ``otp`` against the package's open delivery window.

    Raises:
        DeliveryOTPMissingError: no delivery code has been issued
        DeliveryOTPExpiredError: the window closed before verification
        DeliveryOTPMismatchError: the code does not match (the window stays open)
    """
    if not package.delivery_otp or package.delivery_otp_expires_at is None:
        raise DeliveryOTPMissingError()

    if (now or timezone.now()) > package.delivery_otp_expires_at:
        raise DeliveryOTPExpiredError()

    candidate = str(otp if otp is not None else "").strip()
    if not secrets.compare_digest(candidate.encode(), package.delivery_otp.encode()):
        raise DeliveryOTPMismatchError()
