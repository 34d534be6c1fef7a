"""Celery tasks for package background processing."""

import logging

from celery import shared_task

from parcels.services.package_expiration import expire_stale_packages

logger = logging.getLogger(__name__)


@shared_task
def expire_stale_packages_task():
    """
    Periodic sweep scheduled hourly by celery beat.

    Returns the number of packages expired on this run.
    """
    expired_count, notified_count = expire_stale_packages()
    if expired_count:
        logger.info(
            "Expiration sweep: %d package(s) expired, %d notification(s) queued",
            expired_count, notified_count,
        )
    return expired_count
