"""Advance-credit manager.

Creating an advance payment only writes memo ledger entries; the account
balance changes when an allocation is matched to an invoice of its month.
"""
import logging
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, InvalidOperation

from django.db import IntegrityError, transaction
from django.db.models import QuerySet
from django.utils import timezone

from apps.advances.models import AdvanceMonthlyPayment, AdvancePayment
from apps.billing.exceptions import (
    AdvancePaymentAlreadyAppliedError,
    AdvancePaymentConflictError,
    AdvancePaymentNotFoundError,
    BillingValidationError,
    BusinessRuleViolation,
    CustomerNotFoundError,
    InvoiceNotFoundError,
)
from apps.billing.models import Invoice, LedgerEntry, Payment
from apps.billing.money import month_bounds, to_money
from apps.billing.store import LedgerStore
from apps.customers.models import Customer

logger = logging.getLogger(__name__)


@dataclass
class MonthAllocation:
    """Credit requested for one month."""

    month: int
    year: int
    amount: Decimal


@dataclass
class AdvancePaymentResult:
    advance_payment: AdvancePayment
    monthly_payments: list[AdvanceMonthlyPayment]


@dataclass
class ApplyAdvancesResult:
    applied_count: int
    total_invoices: int


class AdvancePaymentService:
    """Creates, applies and cancels advance payments."""

    def __init__(self, store: LedgerStore | None = None):
        self.store = store or LedgerStore()

    @staticmethod
    def _validate(customer_id: int, allocations: list[MonthAllocation], method: str) -> list[MonthAllocation]:
        if not allocations:
            raise BillingValidationError("At least one month is required")
        if method not in Payment.Method.values:
            raise BillingValidationError(f"Unknown payment method: {method}")

        cleaned = []
        seen = set()
        for allocation in allocations:
            if not 1 <= allocation.month <= 12:
                raise BillingValidationError(f"Invalid month: {allocation.month}")
            if allocation.year < 2000:
                raise BillingValidationError(f"Invalid year: {allocation.year}")
            try:
                amount = to_money(allocation.amount)
            except (InvalidOperation, TypeError, ValueError):
                raise BillingValidationError(f"Invalid amount for {allocation.month:02d}/{allocation.year}")
            if amount <= 0:
                raise BillingValidationError(
                    f"Amount for {allocation.month:02d}/{allocation.year} must be greater than zero"
                )
            key = (allocation.month, allocation.year)
            if key in seen:
                raise BillingValidationError(f"Month {allocation.month:02d}/{allocation.year} is repeated")
            seen.add(key)
            cleaned.append(MonthAllocation(month=allocation.month, year=allocation.year, amount=amount))

        if not Customer.objects.filter(id=customer_id).exists():
            raise CustomerNotFoundError(f"Customer {customer_id} not found")
        return cleaned

    def create_advance_payment(
        self,
        customer_id: int,
        allocations: list[MonthAllocation],
        method: str,
        reference: str = "",
        notes: str = "",
        payment_date: datetime | None = None,
        recorded_by: str = "",
    ) -> AdvancePaymentResult:
        allocations = self._validate(customer_id, allocations, method)
        total = to_money(sum((a.amount for a in allocations), Decimal("0")))
        payment_date = payment_date or timezone.now()

        try:
            with transaction.atomic():
                account = self.store.lock_account(customer_id)

                taken = [
                    f"{a.month:02d}/{a.year}"
                    for a in allocations
                    if AdvanceMonthlyPayment.objects.filter(
                        customer_id=customer_id,
                        month=a.month,
                        year=a.year,
                        status=AdvanceMonthlyPayment.Status.PENDING,
                    ).exists()
                ]
                if taken:
                    raise AdvancePaymentConflictError(
                        f"Pending advance payment already exists for: {', '.join(taken)}"
                    )

                advance = AdvancePayment.objects.create(
                    customer_id=customer_id,
                    account=account,
                    total_amount=total,
                    months_count=len(allocations),
                    amount_per_month=to_money(total / len(allocations)),
                    method=method,
                    reference=reference,
                    notes=notes,
                    payment_date=payment_date,
                    recorded_by=recorded_by,
                )
                monthly_payments = [
                    AdvanceMonthlyPayment.objects.create(
                        advance_payment=advance,
                        customer_id=customer_id,
                        month=a.month,
                        year=a.year,
                        amount=a.amount,
                    )
                    for a in allocations
                ]
                months = ", ".join(f"{a.month:02d}/{a.year}" for a in allocations)
                self.store.post(
                    account,
                    entry_type=LedgerEntry.EntryType.CREDIT,
                    amount=total,
                    balance_delta=Decimal("0"),
                    description=f"Advance payment for {months}",
                    reference_type=LedgerEntry.ReferenceType.ADVANCE_PAYMENT,
                    reference_id=advance.id,
                    transaction_date=payment_date,
                )
        except IntegrityError:
            raise AdvancePaymentConflictError("Pending advance payment already exists for one of the months")

        logger.info(
            "Created advance payment %s for customer %s: %s over %s months",
            advance.id, customer_id, total, len(allocations),
        )
        return AdvancePaymentResult(advance_payment=advance, monthly_payments=monthly_payments)

    def apply_advance_payment_to_invoice(
        self, customer_id: int, invoice_id: int, month: int, year: int
    ) -> AdvanceMonthlyPayment | None:
        """
        Consume the pending allocation of (customer, month, year), if any.

        Returns None when nothing is pending, which also makes a second call
        for the same month a no-op. The invoice must belong to the customer.
        """
        with transaction.atomic():
            account = self.store.lock_account(customer_id)
            invoice = Invoice.objects.filter(id=invoice_id, customer_id=customer_id).first()
            if invoice is None:
                raise InvoiceNotFoundError(f"Invoice {invoice_id} not found for customer {customer_id}")

            allocation = (
                AdvanceMonthlyPayment.objects.select_for_update()
                .filter(
                    customer_id=customer_id,
                    month=month,
                    year=year,
                    status=AdvanceMonthlyPayment.Status.PENDING,
                    advance_payment__status=AdvancePayment.Status.ACTIVE,
                )
                .first()
            )
            if allocation is None:
                return None

            allocation.status = AdvanceMonthlyPayment.Status.APPLIED
            allocation.applied_at = timezone.now()
            allocation.applied_to_invoice = invoice
            allocation.save(update_fields=["status", "applied_at", "applied_to_invoice", "updated_at"])

            self.store.post(
                account,
                entry_type=LedgerEntry.EntryType.DEBIT,
                amount=allocation.amount,
                balance_delta=-allocation.amount,
                description=f"Advance credit for {month:02d}/{year} applied to invoice {invoice.invoice_number}",
                reference_type=LedgerEntry.ReferenceType.ADVANCE_PAYMENT_APPLICATION,
                reference_id=allocation.id,
                invoice=invoice,
            )

        logger.info(
            "Applied advance credit %s (%02d/%s) to invoice %s of customer %s",
            allocation.amount, month, year, invoice_id, customer_id,
        )
        return allocation

    def apply_to_pending_invoices(self, today=None) -> ApplyAdvancesResult:
        """Match pending allocations against every pending invoice up to the current month."""
        today = today or timezone.localdate()
        _, current_month_end = month_bounds(today.year, today.month)
        invoices = Invoice.objects.filter(
            kind=Invoice.Kind.SERVICE,
            status=Invoice.Status.PENDING,
            period_start__lte=current_month_end,
        ).order_by("period_start", "id")

        applied = 0
        total = 0
        for invoice in invoices:
            total += 1
            try:
                allocation = self.apply_advance_payment_to_invoice(
                    invoice.customer_id,
                    invoice.id,
                    invoice.period_start.month,
                    invoice.period_start.year,
                )
            except Exception:
                logger.exception("Applying advance credit to invoice %s failed", invoice.id)
                continue
            if allocation is not None:
                applied += 1

        logger.info("Advance reconciliation: %s applied over %s pending invoices", applied, total)
        return ApplyAdvancesResult(applied_count=applied, total_invoices=total)

    def delete_advance_payment(self, advance_payment_id: int) -> AdvancePayment:
        """Cancel an advance payment whose months are all still pending."""
        with transaction.atomic():
            advance = AdvancePayment.objects.select_for_update().filter(id=advance_payment_id).first()
            if advance is None:
                raise AdvancePaymentNotFoundError(f"Advance payment {advance_payment_id} not found")
            if advance.status == AdvancePayment.Status.CANCELLED:
                raise BusinessRuleViolation(f"Advance payment {advance_payment_id} is already cancelled")

            account = self.store.lock_account(advance.customer_id, create=False)
            if advance.monthly_payments.filter(status=AdvanceMonthlyPayment.Status.APPLIED).exists():
                raise AdvancePaymentAlreadyAppliedError(
                    "Advance payment has months already applied to invoices and cannot be cancelled"
                )

            advance.monthly_payments.filter(
                status=AdvanceMonthlyPayment.Status.PENDING,
            ).update(status=AdvanceMonthlyPayment.Status.CANCELLED, updated_at=timezone.now())
            advance.status = AdvancePayment.Status.CANCELLED
            advance.cancelled_at = timezone.now()
            advance.save(update_fields=["status", "cancelled_at", "updated_at"])

            self.store.post(
                account,
                entry_type=LedgerEntry.EntryType.DEBIT,
                amount=advance.total_amount,
                balance_delta=Decimal("0"),
                description=f"Advance payment {advance.id} cancelled",
                reference_type=LedgerEntry.ReferenceType.ADVANCE_PAYMENT_CANCELLATION,
                reference_id=advance.id,
            )

        logger.info("Cancelled advance payment %s of customer %s", advance.id, advance.customer_id)
        return advance

    def list_advance_payments(
        self, customer_id: int | None = None, status: str | None = None
    ) -> QuerySet[AdvancePayment]:
        queryset = AdvancePayment.objects.select_related("customer").prefetch_related("monthly_payments")
        if customer_id:
            queryset = queryset.filter(customer_id=customer_id)
        if status:
            queryset = queryset.filter(status=status)
        return queryset.order_by("-payment_date", "-id")
