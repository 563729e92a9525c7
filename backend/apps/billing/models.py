"""Billing models: accounts, invoices, payments, ledger and document numbering."""
from decimal import Decimal

from auditlog.registry import auditlog
from django.db import models
from django.utils import timezone

from apps.core.models import TimestampedModel

ZERO = Decimal("0.00")


class BillingAccount(TimestampedModel):
    """Running balance and suspension state of a customer (positive balance = debt)."""

    class Status(models.TextChoices):
        ACTIVE = "active", "Active"
        SUSPENDED = "suspended", "Suspended"
        CANCELLED = "cancelled", "Cancelled"

    customer = models.OneToOneField(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="billing_account",
    )
    balance = models.DecimalField(max_digits=12, decimal_places=2, default=ZERO)
    credit_limit = models.DecimalField(max_digits=12, decimal_places=2, default=ZERO)
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.ACTIVE,
    )
    billing_cycle = models.PositiveSmallIntegerField(
        default=1,
        help_text="Day of the month the billing period starts",
    )
    auto_suspend = models.BooleanField(default=True)
    suspended_at = models.DateTimeField(null=True, blank=True)
    payment_commitment_date = models.DateField(
        null=True,
        blank=True,
        help_text="Promise-to-pay date; blocks automatic suspension while not passed",
    )
    payment_commitment_notes = models.TextField(blank=True)
    last_payment_date = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["customer_id"]

    def __str__(self):
        return f"Account of {self.customer} ({self.balance})"

    def has_live_commitment(self, today) -> bool:
        return (
            self.payment_commitment_date is not None
            and self.payment_commitment_date >= today
        )


class DocumentSequence(TimestampedModel):
    """Yearly counter for sequential invoice and payment numbers."""

    prefix = models.CharField(max_length=10, unique=True)
    next_counter = models.PositiveIntegerField(default=1)
    last_reset_year = models.PositiveIntegerField(null=True, blank=True)

    def __str__(self):
        return f"{self.prefix}: {self.next_counter}"


class Invoice(TimestampedModel):
    """A bill for a service period, or the container of a standalone payment."""

    class Status(models.TextChoices):
        PENDING = "pending", "Pending"
        PARTIAL = "partial", "Partially paid"
        PAID = "paid", "Paid"
        OVERDUE = "overdue", "Overdue"
        CANCELLED = "cancelled", "Cancelled"
        VOID = "void", "Void"

    class Kind(models.TextChoices):
        SERVICE = "service", "Service"
        STANDALONE = "standalone", "Standalone payment"

    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    account = models.ForeignKey(
        BillingAccount,
        on_delete=models.PROTECT,
        related_name="invoices",
    )
    invoice_number = models.CharField(max_length=30, unique=True)
    kind = models.CharField(
        max_length=12,
        choices=Kind.choices,
        default=Kind.SERVICE,
    )
    period_start = models.DateField()
    period_end = models.DateField()
    issue_date = models.DateField()
    due_date = models.DateField()
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    tax = models.DecimalField(max_digits=12, decimal_places=2, default=ZERO)
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=ZERO)
    total = models.DecimalField(max_digits=12, decimal_places=2)
    balance_due = models.DecimalField(max_digits=12, decimal_places=2)
    currency = models.CharField(max_length=3)
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.PENDING,
    )
    notes = models.TextField(blank=True)
    created_by = models.CharField(max_length=150, blank=True)

    class Meta:
        ordering = ["-issue_date", "-id"]
        indexes = [
            models.Index(
                fields=["customer", "period_start", "period_end"],
                name="invoice_customer_period_idx",
            ),
            models.Index(fields=["status", "due_date"], name="invoice_status_due_idx"),
        ]

    def __str__(self):
        return f"Invoice {self.invoice_number} - {self.customer}"


class InvoiceItem(models.Model):
    """A line of an invoice."""

    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.CASCADE,
        related_name="items",
    )
    position = models.PositiveSmallIntegerField(default=0)
    description = models.CharField(max_length=255)
    quantity = models.DecimalField(max_digits=8, decimal_places=2, default=Decimal("1"))
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    line_total = models.DecimalField(max_digits=12, decimal_places=2)
    plan = models.ForeignKey(
        "subscriptions.Plan",
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="invoice_items",
    )

    class Meta:
        ordering = ["position", "id"]

    def __str__(self):
        return self.description


class Payment(TimestampedModel):
    """Money received from a customer, applied to one invoice."""

    class Method(models.TextChoices):
        CASH = "cash", "Cash"
        BANK_TRANSFER = "bank_transfer", "Bank transfer"
        CREDIT_CARD = "credit_card", "Credit card"
        DEBIT_CARD = "debit_card", "Debit card"
        CHECK = "check", "Check"
        DIGITAL_WALLET = "digital_wallet", "Digital wallet"

    class Status(models.TextChoices):
        COMPLETED = "completed", "Completed"
        CANCELLED = "cancelled", "Cancelled"

    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.PROTECT,
        related_name="payments",
    )
    account = models.ForeignKey(
        BillingAccount,
        on_delete=models.PROTECT,
        related_name="payments",
    )
    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.PROTECT,
        related_name="payments",
    )
    payment_number = models.CharField(max_length=30, unique=True)
    amount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Money collected, net of discount",
    )
    discount = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=ZERO,
        help_text="Debt forgiven together with this payment",
    )
    currency = models.CharField(max_length=3)
    method = models.CharField(max_length=20, choices=Method.choices)
    reference = models.CharField(max_length=255, blank=True)
    status = models.CharField(
        max_length=10,
        choices=Status.choices,
        default=Status.COMPLETED,
    )
    payment_date = models.DateTimeField(default=timezone.now)
    processed_at = models.DateTimeField(default=timezone.now)
    notes = models.TextField(blank=True)
    receipt_location = models.CharField(max_length=500, blank=True)
    recorded_by = models.CharField(max_length=150, blank=True)
    voided_at = models.DateTimeField(null=True, blank=True)
    void_reason = models.TextField(blank=True)

    class Meta:
        ordering = ["-payment_date", "-id"]

    def __str__(self):
        return f"Payment {self.payment_number} ({self.amount})"

    @property
    def applied_amount(self) -> Decimal:
        """Amount taken off the invoice and the account balance."""
        return self.amount + self.discount


class LedgerEntry(TimestampedModel):
    """Append-only record of every balance-affecting event."""

    class EntryType(models.TextChoices):
        DEBIT = "debit", "Debit"
        CREDIT = "credit", "Credit"

    class ReferenceType(models.TextChoices):
        INVOICE = "invoice", "Invoice"
        PAYMENT = "payment", "Payment"
        PAYMENT_VOID = "payment_void", "Payment void"
        ADVANCE_PAYMENT = "advance_payment", "Advance payment"
        ADVANCE_PAYMENT_CANCELLATION = "advance_payment_cancellation", "Advance payment cancellation"
        ADVANCE_PAYMENT_APPLICATION = "advance_payment_application", "Advance payment application"

    account = models.ForeignKey(
        BillingAccount,
        on_delete=models.PROTECT,
        related_name="ledger_entries",
    )
    entry_type = models.CharField(max_length=6, choices=EntryType.choices)
    amount = models.DecimalField(max_digits=12, decimal_places=2)
    balance_delta = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        help_text="Signed change applied to the account balance (0 for memo entries)",
    )
    balance_after = models.DecimalField(max_digits=12, decimal_places=2)
    description = models.CharField(max_length=255)
    invoice = models.ForeignKey(
        Invoice,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="ledger_entries",
    )
    payment = models.ForeignKey(
        Payment,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="ledger_entries",
    )
    reference_type = models.CharField(max_length=30, choices=ReferenceType.choices)
    reference_id = models.CharField(max_length=50, blank=True)
    transaction_date = models.DateTimeField(default=timezone.now)

    class Meta:
        ordering = ["id"]
        verbose_name_plural = "Ledger entries"

    def __str__(self):
        return f"{self.entry_type} {self.amount} ({self.reference_type})"


auditlog.register(BillingAccount)
auditlog.register(Invoice)
auditlog.register(Payment)
