"""
Expire packages that nobody accepted in time.

A package that is still pending and unassigned PACKAGE_EXPIRY_HOURS after it
was created becomes expired and its sender is notified. The bulk update is
filtered on the same conditions it selected by, so a traveller accepting the
package at the same moment wins or loses cleanly and a second run finds
nothing left to do.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional, Tuple

from django.conf import settings
from django.db import close_old_connections, transaction
from django.utils import timezone

from notifications.services import notify
from parcels.models import Package

logger = logging.getLogger(__name__)


def expire_stale_packages(now: Optional[datetime] = None, hours: Optional[int] = None) -> Tuple[int, int]:
    """
    Expire stale pending packages and notify their senders.

    Args:
        now: Reference time (defaults to timezone.now())
        hours: Age in hours after which a pending package expires
               (defaults to PACKAGE_EXPIRY_HOURS)

    Returns a tuple of (expired_count, notified_count).
    """
    now = now or timezone.now()
    if hours is None:
        hours = getattr(settings, "PACKAGE_EXPIRY_HOURS", 24)
    cutoff = now - timedelta(hours=hours)

    stale_filter = {
        "status": Package.STATUS_PENDING,
        "traveller__isnull": True,
        "created_at__lte": cutoff,
    }

    notified_count = 0
    with transaction.atomic():
        stale = list(
            Package.objects.select_for_update()
            .filter(**stale_filter)
            .values_list("id", "code", "sender_id")
        )
        if not stale:
            return 0, 0

        expired_count = Package.objects.filter(
            id__in=[package_id for package_id, _, _ in stale],
            **stale_filter,
        ).update(status=Package.STATUS_EXPIRED)

        for package_id, code, sender_id in stale:
            scheduled = notify(
                sender_id,
                "Package Expired",
                f"Your package {code} has expired as no traveller picked it up within {hours} hours.",
                "package_status",
                {"package_id": package_id, "code": code, "status": Package.STATUS_EXPIRED},
            )
            if scheduled:
                notified_count += 1

    logger.info("Expired %d package(s), notified %d sender(s)", expired_count, notified_count)

    # Close stale DB connections for long-running workers
    close_old_connections()
    return expired_count, notified_count
