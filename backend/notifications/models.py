from django.db import models
from django.conf import settings


class Notification(models.Model):
    """In-app notification shown to a user."""

    CATEGORY_CHOICES = [
        ('package_created', 'Package Created'),
        ('package_accepted', 'Package Accepted'),
        ('package_status', 'Package Status'),
    ]

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name='notifications'
    )
    title = models.CharField(max_length=200)
    message = models.TextField()
    category = models.CharField(max_length=30, choices=CATEGORY_CHOICES, default='package_status')
    meta = models.JSONField(default=dict, blank=True)
    read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at', '-id']
        indexes = [
            models.Index(fields=['user', '-created_at'], name='notification_user_idx'),
        ]

    def __str__(self):
        return f"{self.user_id}: {self.title}"
