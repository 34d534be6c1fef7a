"""Fixture builders shared by the app test suites."""

from datetime import timedelta
from decimal import Decimal

from django.utils import timezone

from accounts.models import User
from parcels.models import Package
from services.package_lifecycle import generate_package_code
from services.validation import location_fields
from trips.models import Trip

KATHMANDU = {"city": "Kathmandu", "address": "Thamel Marg", "lat": 27.7172, "lng": 85.3240}
LALITPUR = {"city": "Lalitpur", "address": "Mangal Bazar", "lat": 27.6644, "lng": 85.3188}
POKHARA = {"city": "Pokhara", "address": "Lakeside Road", "lat": 28.2096, "lng": 83.9856}
BIRATNAGAR = {"city": "Biratnagar", "address": "Main Road", "lat": 26.4525, "lng": 87.2718}


def make_user(username, **extra):
    defaults = {
        "email": f"{username}@example.com",
        "password": "pass1234",
        "verified": True,
    }
    defaults.update(extra)
    return User.objects.create_user(username=username, **defaults)


def package_payload(origin=KATHMANDU, destination=POKHARA, **overrides):
    payload = {
        "origin": dict(origin),
        "destination": dict(destination),
        "receiver_name": "Sita Sharma",
        "receiver_phone": "9800000000",
        "description": "Books",
        "fee": "500.00",
        "payer": Package.PAYER_SENDER,
    }
    payload.update(overrides)
    return payload


def make_package(sender, origin=KATHMANDU, destination=POKHARA, **overrides):
    fields = {
        "code": generate_package_code(),
        "receiver_name": "Sita Sharma",
        "receiver_phone": "9800000000",
        "fee": Decimal("500.00"),
        "payer": Package.PAYER_SENDER,
    }
    fields.update(location_fields(origin, destination))
    fields.update(overrides)
    return Package.objects.create(sender=sender, **fields)


def make_trip(traveller, origin=KATHMANDU, destination=POKHARA, **overrides):
    fields = {
        "departure_date": timezone.now() + timedelta(days=1),
        "capacity": 2,
        "price": Decimal("300.00"),
    }
    fields.update(location_fields(origin, destination))
    fields.update(overrides)
    return Trip.objects.create(traveller=traveller, **fields)


def age_package(package, hours):
    """Backdate ``created_at`` (auto_now_add ignores values passed to create())."""
    Package.objects.filter(pk=package.pk).update(created_at=timezone.now() - timedelta(hours=hours))
    package.refresh_from_db()
    return package
