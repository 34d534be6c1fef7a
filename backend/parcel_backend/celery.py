"""Celery application for background processing (notifications, expiry sweep)."""

import os

from celery import Celery

os.environ.setdefault("DJANGO_SETTINGS_MODULE", "parcel_backend.settings.base")

app = Celery("parcel_backend")
app.config_from_object("django.conf:settings", namespace="CELERY")
app.autodiscover_tasks()
