"""Service plans and their assignment to customers."""
from django.db import models

from apps.core.models import TimestampedModel


class Plan(TimestampedModel):
    """A sellable internet plan with a monthly price."""

    name = models.CharField(max_length=100, unique=True)
    description = models.TextField(blank=True)
    monthly_price = models.DecimalField(max_digits=12, decimal_places=2)
    download_speed_mbps = models.PositiveIntegerField(null=True, blank=True)
    upload_speed_mbps = models.PositiveIntegerField(null=True, blank=True)
    network_profile_name = models.CharField(
        max_length=100,
        help_text="Profile applied on the network controller while the service is active",
    )
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["monthly_price", "name"]

    def __str__(self):
        return self.name


class CustomerPlan(TimestampedModel):
    """A plan subscribed by a customer."""

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        SUSPENDED = "suspended", "Suspended"
        CANCELLED = "cancelled", "Cancelled"

    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.CASCADE,
        related_name="customer_plans",
    )
    plan = models.ForeignKey(
        Plan,
        on_delete=models.PROTECT,
        related_name="subscriptions",
    )
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.ACTIVE,
    )
    start_date = models.DateField()
    end_date = models.DateField(null=True, blank=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["-start_date", "-id"]
        indexes = [
            models.Index(fields=["customer", "status"], name="custplan_customer_status_idx"),
        ]

    def __str__(self):
        return f"{self.customer} - {self.plan} ({self.status})"
