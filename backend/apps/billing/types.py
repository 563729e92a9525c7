"""Billing data classes for inputs and structured return values."""
from dataclasses import dataclass, field
from datetime import date, datetime
from decimal import Decimal
from enum import Enum
from typing import Optional

from apps.billing.models import Invoice, Payment


class BillingStatus(str, Enum):
    """Per-customer outcome of a monthly billing run."""

    BILLED = "BILLED"
    SKIPPED_NO_CHARGE = "SKIPPED_NO_CHARGE"
    SKIPPED_ALREADY_BILLED = "SKIPPED_ALREADY_BILLED"
    FAILED = "FAILED"


@dataclass
class InvoiceItemInput:
    """A line to put on a new invoice."""

    description: str
    unit_price: Decimal
    quantity: Decimal = Decimal("1")
    plan_id: Optional[int] = None

    @property
    def line_total(self) -> Decimal:
        return self.unit_price * self.quantity


@dataclass
class BillingOutcome:
    """What happened to one customer in a billing run."""

    customer_id: int
    status: BillingStatus
    invoice: Optional[Invoice] = None
    amount: Decimal = Decimal("0.00")
    error: Optional[str] = None


@dataclass
class PaymentInput:
    """A payment as entered by the operator."""

    customer_id: int
    amount: Decimal
    method: str
    invoice_id: Optional[int] = None
    discount: Decimal = Decimal("0.00")
    reference: str = ""
    wallet_provider: str = ""
    payment_date: Optional[datetime] = None
    notes: str = ""
    recorded_by: str = ""


@dataclass
class PaymentResult:
    """A committed payment plus the outcome of its best-effort side effects."""

    payment: Payment
    invoice: Invoice
    notification_sent: bool = False
    notification_error: Optional[str] = None
    receipt_location: Optional[str] = None
    reactivated: bool = False
    reactivation_error: Optional[str] = None
    warnings: list[str] = field(default_factory=list)


@dataclass
class InvoiceFilter:
    """Filters accepted by invoice listings."""

    customer_id: Optional[int] = None
    status: Optional[str] = None
    date_from: Optional[date] = None
    date_to: Optional[date] = None
    search: Optional[str] = None
