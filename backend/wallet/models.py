from django.db import models
from django.db.models import Q
from django.conf import settings


class WalletTransaction(models.Model):
    """
    Escrow ledger entry.

    Append-only: a row is written together with the balance change it
    records and is never edited through ``save()`` afterwards.
    """

    TYPE_HOLD = 'hold'
    TYPE_RELEASE = 'release'
    TYPE_REFUND = 'refund'
    TYPE_TOPUP = 'topup'

    TYPE_CHOICES = [
        (TYPE_HOLD, 'Hold'),
        (TYPE_RELEASE, 'Release'),
        (TYPE_REFUND, 'Refund'),
        (TYPE_TOPUP, 'Top-up'),
    ]

    STATUS_PENDING = 'pending'
    STATUS_COMPLETED = 'completed'
    STATUS_FAILED = 'failed'

    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_COMPLETED, 'Completed'),
        (STATUS_FAILED, 'Failed'),
    ]

    # Null for top-ups, and kept (as null) if the package is later deleted
    package = models.ForeignKey(
        'parcels.Package',
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name='transactions'
    )
    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name='sent_transactions'
    )
    traveller = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name='received_transactions'
    )
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    type = models.CharField(max_length=10, choices=TYPE_CHOICES)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)
    description = models.CharField(max_length=255, blank=True, default='')

    created_at = models.DateTimeField(auto_now_add=True)
    completed_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        db_table = 'transactions'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['package'], name='transaction_package_idx'),
            models.Index(fields=['sender', 'traveller'], name='transaction_parties_idx'),
            models.Index(fields=['status', '-created_at'], name='transaction_status_idx'),
        ]
        constraints = [
            models.CheckConstraint(condition=Q(amount__gte=0), name='transaction_amount_non_negative'),
        ]

    def __str__(self):
        return f"{self.type} {self.amount} ({self.status})"

    def save(self, *args, **kwargs):
        if not self._state.adding:
            raise ValueError("Ledger entries are append-only")
        super().save(*args, **kwargs)
