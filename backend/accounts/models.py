from django.db import models
from django.db.models import Q
from django.contrib.auth.models import AbstractUser


class User(AbstractUser):
    """Platform user. The same account can send packages and post trips."""
    ROLE_CHOICES = [
        ('sender', 'Sender'),
        ('traveller', 'Traveller'),
        ('admin', 'Admin'),
    ]
    
    # Role & basic info
    role = models.CharField(max_length=10, choices=ROLE_CHOICES, default='sender')
    phone_number = models.CharField(max_length=20, blank=True)
    verified = models.BooleanField(default=False)

    # Wallet balance is mutated only by services.escrow
    wallet_balance = models.DecimalField(max_digits=12, decimal_places=2, default=0)

    # Stats
    rating = models.FloatField(default=0)
    total_deliveries = models.IntegerField(default=0)
    total_packages = models.IntegerField(default=0)
    
    class Meta:
        db_table = 'users'
        constraints = [
            models.CheckConstraint(
                condition=Q(wallet_balance__gte=0),
                name='wallet_balance_non_negative',
            ),
        ]
        
    def __str__(self):
        return f"{self.username} ({self.get_role_display()})"
