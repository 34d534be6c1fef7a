"""Celery tasks for notification and email delivery."""

import logging
from smtplib import SMTPException

from celery import shared_task
from django.db import DatabaseError

logger = logging.getLogger(__name__)


@shared_task(
    autoretry_for=(DatabaseError,),
    retry_backoff=True,
    retry_backoff_max=300,
    max_retries=5,
)
def deliver_notification_task(user_ids, title, message, category="package_status", meta=None):
    """Persist one Notification row per recipient."""
    from notifications.models import Notification

    created = Notification.objects.bulk_create([
        Notification(user_id=user_id, title=title, message=message, category=category, meta=meta or {})
        for user_id in user_ids
    ])
    logger.info("Created %d notification(s): %s", len(created), title)
    return len(created)


@shared_task(
    autoretry_for=(SMTPException, OSError),
    retry_backoff=True,
    retry_backoff_max=120,
    max_retries=3,
)
def send_delivery_otp_email_task(address, otp, package_code):
    from notifications.email import send_delivery_otp_email

    return send_delivery_otp_email(address, otp, package_code)
