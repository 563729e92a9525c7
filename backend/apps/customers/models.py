"""Customer models."""
from django.db import models

from apps.core.models import TimestampedModel


class Customer(TimestampedModel):
    """A subscriber of the internet service."""

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        INACTIVE = "inactive", "Inactive"

    code = models.CharField(max_length=50, unique=True)
    name = models.CharField(max_length=255)
    document_number = models.CharField(max_length=20, blank=True)
    phone = models.CharField(
        max_length=20,
        blank=True,
        help_text="Mobile number used for WhatsApp notifications",
    )
    email = models.EmailField(blank=True)
    address = models.TextField(blank=True)
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.ACTIVE,
    )

    class Meta:
        ordering = ["name"]

    def __str__(self):
        return f"{self.code} - {self.name}"
