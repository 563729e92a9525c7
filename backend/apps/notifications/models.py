"""Delivery log of customer notifications."""
from django.db import models

from apps.core.models import TimestampedModel


class NotificationLog(TimestampedModel):
    """One attempt to deliver a message to a customer."""

    class Channel(models.TextChoices):
        WHATSAPP = "whatsapp", "WhatsApp"

    class Status(models.TextChoices):
        SENT = "sent", "Sent"
        FAILED = "failed", "Failed"

    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.CASCADE,
        related_name="notification_logs",
    )
    channel = models.CharField(
        max_length=20,
        choices=Channel.choices,
        default=Channel.WHATSAPP,
    )
    message_type = models.CharField(
        max_length=30,
        blank=True,
        help_text="e.g. 'receipt', 'reminder', 'suspension', 'reactivation'",
    )
    phone = models.CharField(max_length=20, blank=True)
    content = models.TextField()
    attachment = models.CharField(max_length=500, blank=True)
    status = models.CharField(max_length=10, choices=Status.choices)
    error = models.TextField(blank=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.message_type or 'message'} to {self.customer_id} ({self.status})"
