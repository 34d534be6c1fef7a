"""
Notification sink used by the lifecycle, escrow and expiry services.

Notifications are handed to Celery only after the surrounding database
transaction commits. Enqueue failures are logged and never reach the caller.
"""

import logging
from typing import Any, Dict, Iterable, Optional, Union

from django.db import transaction

from .tasks import deliver_notification_task, send_delivery_otp_email_task

logger = logging.getLogger(__name__)


def _enqueue(task, *args) -> None:
    try:
        task.delay(*args)
    except Exception:
        logger.exception("Failed to enqueue %s", task.name)


def notify(
    user_ids: Union[int, Iterable[Optional[int]]],
    title: str,
    message: str,
    category: str = "package_status",
    metadata: Optional[Dict[str, Any]] = None,
) -> bool:
    """
    Queue an in-app notification for one or more users.

    Args:
        user_ids: A user id or an iterable of ids; falsy ids are skipped
        title: Short headline
        message: Body text
        category: One of Notification.CATEGORY_CHOICES
        metadata: JSON-serialisable extras (package id, code, status)

    Returns:
        True if a notification was scheduled, False if there were no recipients
    """
    if user_ids is None or isinstance(user_ids, int):
        user_ids = [user_ids]

    recipients = []
    for user_id in user_ids:
        if user_id and user_id not in recipients:
            recipients.append(user_id)

    if not recipients:
        logger.warning("Notification '%s' has no valid recipients", title)
        return False

    args = (recipients, title, message, category, dict(metadata or {}))
    transaction.on_commit(lambda: _enqueue(deliver_notification_task, *args))
    return True


def queue_delivery_otp_email(address: Optional[str], otp: str, package_code: str) -> bool:
    """Schedule the delivery OTP email once the current transaction commits."""
    if not address:
        logger.warning("Sender email not found for package %s, cannot send OTP", package_code)
        return False

    transaction.on_commit(lambda: _enqueue(send_delivery_otp_email_task, address, otp, package_code))
    return True
