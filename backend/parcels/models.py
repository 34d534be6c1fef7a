from django.db import models
from django.db.models import Q
from django.conf import settings

from common.utils import GeoPoint


class Package(models.Model):
    """A single parcel delivery request from a sender to a receiver."""

    STATUS_PENDING = 'pending'
    STATUS_ACCEPTED = 'accepted'
    STATUS_PICKED_UP = 'picked_up'
    STATUS_IN_TRANSIT = 'in_transit'
    STATUS_DELIVERED = 'delivered'
    STATUS_CANCELLED = 'cancelled'
    STATUS_DISPUTED = 'disputed'
    STATUS_EXPIRED = 'expired'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_ACCEPTED, 'Accepted'),
        (STATUS_PICKED_UP, 'Picked Up'),
        (STATUS_IN_TRANSIT, 'In Transit'),
        (STATUS_DELIVERED, 'Delivered'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_DISPUTED, 'Disputed'),
        (STATUS_EXPIRED, 'Expired'),
    ]

    ACTIVE_STATUSES = (STATUS_PENDING, STATUS_ACCEPTED, STATUS_PICKED_UP, STATUS_IN_TRANSIT)
    EDITABLE_STATUSES = (STATUS_PENDING, STATUS_EXPIRED)
    TRACKABLE_STATUSES = (STATUS_ACCEPTED, STATUS_PICKED_UP, STATUS_IN_TRANSIT)
    DELIVERABLE_STATUSES = (STATUS_PICKED_UP, STATUS_IN_TRANSIT)

    PAYMENT_PENDING = 'pending'
    PAYMENT_HELD = 'held'
    PAYMENT_RELEASED = 'released'
    PAYMENT_REFUNDED = 'refunded'

    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, 'Pending'),
        (PAYMENT_HELD, 'Held'),
        (PAYMENT_RELEASED, 'Released'),
        (PAYMENT_REFUNDED, 'Refunded'),
    ]

    PAYER_SENDER = 'sender'
    PAYER_RECEIVER = 'receiver'
    PAYER_CHOICES = [
        (PAYER_SENDER, 'Sender'),
        (PAYER_RECEIVER, 'Receiver'),
    ]

    # Human-readable identity, e.g. PKGLX2K9F3A7QZ1
    code = models.CharField(max_length=32, unique=True)

    # Parties
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='sent_packages'
    )
    traveller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='carried_packages'
    )
    trip = models.ForeignKey(
        'trips.Trip',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='accepted_packages'
    )

    # Origin
    origin_city = models.CharField(max_length=120)
    origin_address = models.CharField(max_length=255)
    origin_lat = models.FloatField()
    origin_lng = models.FloatField()

    # Destination
    destination_city = models.CharField(max_length=120)
    destination_address = models.CharField(max_length=255)
    destination_lat = models.FloatField()
    destination_lng = models.FloatField()

    # Receiver & contents
    receiver_name = models.CharField(max_length=120)
    receiver_phone = models.CharField(max_length=20)
    description = models.TextField(blank=True, default='')
    photos = models.JSONField(default=list, blank=True)

    # Payment
    fee = models.DecimalField(max_digits=12, decimal_places=2)
    payer = models.CharField(max_length=10, choices=PAYER_CHOICES)
    payment_status = models.CharField(
        max_length=10,
        choices=PAYMENT_STATUS_CHOICES,
        default=PAYMENT_PENDING
    )

    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)

    # Proofs (opaque upload references)
    pickup_proof = models.CharField(max_length=255, null=True, blank=True)
    delivery_proof = models.CharField(max_length=255, null=True, blank=True)

    # Delivery confirmation window
    delivery_otp = models.CharField(max_length=6, null=True, blank=True)
    delivery_otp_expires_at = models.DateTimeField(null=True, blank=True)

    dispute_reason = models.TextField(null=True, blank=True)

    # Timestamps
    created_at = models.DateTimeField(auto_now_add=True)
    accepted_at = models.DateTimeField(null=True, blank=True)
    picked_up_at = models.DateTimeField(null=True, blank=True)
    delivered_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'packages'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['status', '-created_at'], name='package_status_created_idx'),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(fee__gte=0), name='package_fee_non_negative'),
            models.CheckConstraint(
                condition=(
                    Q(traveller__isnull=True, trip__isnull=True)
                    | Q(traveller__isnull=False, trip__isnull=False)
                ),
                name='package_traveller_trip_paired',
            ),
        ]

    def __str__(self):
        return f"Package {self.code} - {self.sender} - {self.status}"

    @property
    def origin(self) -> GeoPoint:
        return GeoPoint(self.origin_city, self.origin_address, self.origin_lat, self.origin_lng)

    @property
    def destination(self) -> GeoPoint:
        return GeoPoint(
            self.destination_city, self.destination_address,
            self.destination_lat, self.destination_lng,
        )


class TrackingPoint(models.Model):
    """One GPS fix reported by the traveller while carrying a package."""

    package = models.ForeignKey(
        Package,
        on_delete=models.CASCADE,
        related_name='tracking'
    )
    lat = models.FloatField()
    lng = models.FloatField()
    timestamp = models.DateTimeField()

    class Meta:
        db_table = 'package_tracking_points'
        ordering = ['timestamp', 'id']

    def __str__(self):
        return f"{self.package_id} @ ({self.lat}, {self.lng})"
