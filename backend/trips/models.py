from django.db import models
from django.db.models import F, Q
from django.conf import settings

from common.utils import GeoPoint

User = settings.AUTH_USER_MODEL


class Trip(models.Model):
    """A traveller's planned journey offering spare carrying capacity."""

    STATUS_ACTIVE = 'active'
    STATUS_COMPLETED = 'completed'
    STATUS_CANCELLED = 'cancelled'

    STATUS_CHOICES = [
        (STATUS_ACTIVE, 'Active'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_CANCELLED, 'Cancelled'),
    ]

    traveller = models.ForeignKey(User, on_delete=models.CASCADE, related_name='trips')

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

    departure_date = models.DateTimeField()
    capacity = models.PositiveIntegerField()
    price = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_ACTIVE)

    # Number of packages accepted onto this trip; bumped with a conditional
    # UPDATE so concurrent accepts can never exceed capacity.
    accepted_count = models.PositiveIntegerField(default=0)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'trips'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['departure_date', 'status'], name='trip_departure_status_idx'),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(capacity__gte=1), name='trip_capacity_positive'),
            models.CheckConstraint(condition=Q(price__gte=0), name='trip_price_non_negative'),
            models.CheckConstraint(
                condition=Q(accepted_count__lte=F('capacity')),
                name='trip_accepted_within_capacity',
            ),
        ]

    def __str__(self):
        return f"Trip #{self.id} {self.origin_city} -> {self.destination_city} ({self.status})"

    @property
    def origin(self) -> GeoPoint:
        return GeoPoint(self.origin_city, self.origin_address, self.origin_lat, self.origin_lng)

    @property
    def destination(self) -> GeoPoint:
        return GeoPoint(
            self.destination_city, self.destination_address,
            self.destination_lat, self.destination_lng,
        )

    @property
    def available_capacity(self) -> int:
        return self.capacity - self.accepted_count
