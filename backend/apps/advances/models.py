"""Advance payments: credit pre-paid for specific future months."""
from django.db import models
from django.utils import timezone

from apps.core.models import TimestampedModel


class AdvancePayment(TimestampedModel):
    """A pre-paid bundle, split into one allocation per month."""

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        CANCELLED = "cancelled", "Cancelled"

    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="advance_payments",
    )
    account = models.ForeignKey(
        "billing.BillingAccount",
        on_delete=models.PROTECT,
        related_name="advance_payments",
    )
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    months_count = models.PositiveSmallIntegerField()
    amount_per_month = models.DecimalField(max_digits=12, decimal_places=2)
    method = models.CharField(max_length=20)
    reference = models.CharField(max_length=255, blank=True)
    notes = models.TextField(blank=True)
    payment_date = models.DateTimeField(default=timezone.now)
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.ACTIVE,
    )
    recorded_by = models.CharField(max_length=150, blank=True)
    cancelled_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["-payment_date", "-id"]

    def __str__(self):
        return f"Advance payment {self.id} of {self.customer} ({self.total_amount})"


class AdvanceMonthlyPayment(TimestampedModel):
    """The part of an advance payment reserved for one (month, year)."""

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        APPLIED = "applied", "Applied"
        CANCELLED = "cancelled", "Cancelled"

    advance_payment = models.ForeignKey(
        AdvancePayment,
        on_delete=models.CASCADE,
        related_name="monthly_payments",
    )
    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="advance_monthly_payments",
    )
    month = models.PositiveSmallIntegerField()
    year = models.PositiveSmallIntegerField()
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.PENDING,
    )
    applied_at = models.DateTimeField(null=True, blank=True)
    applied_to_invoice = models.ForeignKey(
        "billing.Invoice",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="advance_allocations",
    )

    class Meta:
        ordering = ["year", "month", "id"]
        constraints = [
            models.UniqueConstraint(
                fields=["customer", "month", "year"],
                condition=models.Q(status="pending"),
                name="unique_pending_advance_per_customer_month",
            ),
        ]

    def __str__(self):
        return f"{self.month:02d}/{self.year} - {self.amount} ({self.status})"
