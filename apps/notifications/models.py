# apps/notifications/models.py
from django.conf import settings
from django.db import models

from apps.utils.models import TimestampedModel


class NotificationStatus(models.TextChoices):
    PENDING = "pending", "Pending"
    SENT = "sent", "Sent"
    FAILED = "failed", "Failed"


class EmailNotification(TimestampedModel):
    """
    One outbound email and the outcome of delivering it.

    Created before the transport is called, so a broken mail server still
    leaves a FAILED row behind for support to look at.
    """
    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        null=True,
        blank=True,
        on_delete=models.SET_NULL,
        related_name="email_notifications",
    )
    recipient = models.EmailField()
    subject = models.CharField(max_length=255)
    body_html = models.TextField()

    event_key = models.CharField(max_length=100, db_index=True)
    data = models.JSONField(default=dict, blank=True)

    status = models.CharField(
        max_length=20,
        choices=NotificationStatus.choices,
        default=NotificationStatus.PENDING,
        db_index=True,
    )
    attempts = models.PositiveSmallIntegerField(default=0)
    error_message = models.TextField(blank=True)
    sent_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"[{self.status}] {self.event_key} -> {self.recipient}"
