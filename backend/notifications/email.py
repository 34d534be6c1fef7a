"""
Email transport for delivery verification codes.

Uses Django's configured EMAIL_BACKEND (console in development, SMTP in prod).
"""

import logging

from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)

DELIVERY_OTP_SUBJECT = "Package Delivery Verification - Pathaideu"


def send_delivery_otp_email(address: str, otp: str, package_code: str) -> int:
    """
    Email the delivery verification code to the package sender.

    Returns the number of messages sent (0 or 1). Transport errors propagate
    so the calling task can retry.
    """
    expiry_minutes = getattr(settings, "DELIVERY_OTP_EXPIRY_MINUTES", 10)
    body = (
        "Hello,\n\n"
        f"Your package {package_code} has been marked as delivered by the traveller.\n"
        "To verify and confirm the delivery, please use the verification code below:\n\n"
        f"    {otp}\n\n"
        f"This code will expire in {expiry_minutes} minutes. "
        "If you did not receive your package, do not share this code.\n"
    )
    sent = send_mail(
        DELIVERY_OTP_SUBJECT,
        body,
        settings.DEFAULT_FROM_EMAIL,
        [address],
        fail_silently=False,
    )
    logger.info("Delivery OTP email for package %s sent to %s", package_code, address)
    return sent
