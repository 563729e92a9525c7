"""Invoice generation: monthly debt run, manual invoices and overdue marking."""
import logging
from datetime import date, timedelta
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.billing.exceptions import (
    BillingValidationError,
    CustomerNotFoundError,
    NothingToBillError,
    OverlappingBillingPeriodError,
)
from apps.billing.models import Invoice, InvoiceItem, LedgerEntry
from apps.billing.money import month_bounds, prorate, to_money
from apps.billing.numbering import INVOICE_PREFIX, DocumentNumberService
from apps.billing.store import LedgerStore
from apps.billing.types import BillingOutcome, BillingStatus, InvoiceItemInput
from apps.customers.models import Customer
from apps.subscriptions.directory import SubscriptionDirectory

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")


class InvoiceGenerator:
    """Creates invoices and runs the monthly billing batch."""

    def __init__(
        self,
        store: LedgerStore | None = None,
        directory: SubscriptionDirectory | None = None,
    ):
        self.store = store or LedgerStore()
        self.directory = directory or SubscriptionDirectory()
        self.numbers = DocumentNumberService(INVOICE_PREFIX)

    def generate_monthly_debt(
        self, year: int | None = None, month: int | None = None
    ) -> list[BillingOutcome]:
        """
        Bill every customer with an active plan for one calendar month.

        Defaults to the current month. Safe to re-run: customers already
        billed for an overlapping period are reported as
        SKIPPED_ALREADY_BILLED. One customer's failure never stops the batch.
        """
        today = timezone.localdate()
        period_start, period_end = month_bounds(year or today.year, month or today.month)
        logger.info("Generating monthly debt for %s to %s", period_start, period_end)

        outcomes = []
        for customer in self.directory.billable_customers():
            try:
                outcome = self._bill_customer(customer, period_start, period_end)
            except Exception as e:
                logger.exception("Billing failed for customer %s", customer.id)
                outcome = BillingOutcome(
                    customer_id=customer.id,
                    status=BillingStatus.FAILED,
                    error=str(e),
                )
            outcomes.append(outcome)

        billed = sum(1 for o in outcomes if o.status == BillingStatus.BILLED)
        logger.info(
            "Monthly debt for %s: %s billed, %s customers processed",
            period_start.strftime("%Y-%m"), billed, len(outcomes),
        )
        return outcomes

    def _bill_customer(self, customer: Customer, period_start: date, period_end: date) -> BillingOutcome:
        items = []
        for customer_plan in self.directory.active_plans(customer.id):
            plan = customer_plan.plan
            charge = prorate(plan.monthly_price, customer_plan.start_date, period_start, period_end)
            if charge <= ZERO:
                continue
            description = f"{plan.name} ({period_start:%m/%Y})"
            if customer_plan.start_date >= period_start:
                description = (
                    f"{plan.name} ({customer_plan.start_date:%d/%m} - {period_end:%d/%m/%Y}, prorated)"
                )
            items.append(InvoiceItemInput(description=description, unit_price=charge, plan_id=plan.id))

        candidate = to_money(sum((item.line_total for item in items), ZERO))
        if candidate <= ZERO:
            return BillingOutcome(customer_id=customer.id, status=BillingStatus.SKIPPED_NO_CHARGE)

        existing = self.store.find_overlapping_invoice(customer.id, period_start, period_end)
        if existing is not None:
            return BillingOutcome(
                customer_id=customer.id,
                status=BillingStatus.SKIPPED_ALREADY_BILLED,
                invoice=existing,
            )

        try:
            invoice = self.create_invoice(
                customer.id,
                period_start,
                period_end,
                items,
                apply_credit=True,
                created_by="system",
            )
        except NothingToBillError:
            return BillingOutcome(customer_id=customer.id, status=BillingStatus.SKIPPED_NO_CHARGE)
        except OverlappingBillingPeriodError as e:
            return BillingOutcome(
                customer_id=customer.id,
                status=BillingStatus.SKIPPED_ALREADY_BILLED,
                invoice=Invoice.objects.filter(id=e.invoice_id).first(),
            )
        return BillingOutcome(
            customer_id=customer.id,
            status=BillingStatus.BILLED,
            invoice=invoice,
            amount=invoice.total,
        )

    def create_invoice(
        self,
        customer_id: int,
        period_start: date,
        period_end: date,
        items: list[InvoiceItemInput],
        tax: Decimal = ZERO,
        discount: Decimal = ZERO,
        notes: str = "",
        currency: str | None = None,
        created_by: str = "",
        apply_credit: bool = False,
    ) -> Invoice:
        """
        Create a service invoice and debit the account in one transaction.

        With ``apply_credit`` the account's credit (a negative balance) is
        read under the account lock and added to the discount, up to the
        invoice total. ``NothingToBillError`` is raised when the credit
        covers everything.
        """
        if not items:
            raise BillingValidationError("An invoice needs at least one item")
        if period_end < period_start:
            raise BillingValidationError("Period end must not be before period start")
        for item in items:
            if item.quantity <= 0 or item.unit_price <= 0:
                raise BillingValidationError(f"Invalid quantity or price for item '{item.description}'")
        tax = to_money(tax)
        discount = to_money(discount)
        if tax < 0 or discount < 0:
            raise BillingValidationError("Tax and discount must not be negative")

        subtotal = to_money(sum((item.line_total for item in items), ZERO))
        total = to_money(subtotal + tax - discount)
        if total <= ZERO:
            raise BillingValidationError("Invoice total must be positive")
        if not Customer.objects.filter(id=customer_id).exists():
            raise CustomerNotFoundError(f"Customer {customer_id} not found")

        issue_date = timezone.localdate()
        with transaction.atomic():
            account = self.store.lock_account(customer_id)

            existing = self.store.find_overlapping_invoice(customer_id, period_start, period_end)
            if existing is not None:
                raise OverlappingBillingPeriodError(
                    f"Customer {customer_id} already has invoice {existing.invoice_number} "
                    f"for {existing.period_start} - {existing.period_end}",
                    invoice_id=existing.id,
                )

            if apply_credit:
                credit = min(max(-account.balance, ZERO), total)
                if credit >= total:
                    raise NothingToBillError(
                        f"Credit of customer {customer_id} ({-account.balance}) covers the charge of {total}"
                    )
                if credit:
                    discount += credit
                    total -= credit
                    notes = f"{notes}\nCredit applied: {credit}".strip()

            invoice = Invoice.objects.create(
                customer_id=customer_id,
                account=account,
                invoice_number=self.numbers.get_next_number(issue_date),
                kind=Invoice.Kind.SERVICE,
                period_start=period_start,
                period_end=period_end,
                issue_date=issue_date,
                due_date=period_end + timedelta(days=settings.BILLING_DUE_DAYS),
                subtotal=subtotal,
                tax=tax,
                discount=discount,
                total=total,
                balance_due=total,
                currency=currency or settings.BILLING_CURRENCY,
                status=Invoice.Status.PENDING,
                notes=notes,
                created_by=created_by,
            )
            InvoiceItem.objects.bulk_create([
                InvoiceItem(
                    invoice=invoice,
                    position=position,
                    description=item.description,
                    quantity=item.quantity,
                    unit_price=to_money(item.unit_price),
                    line_total=to_money(item.line_total),
                    plan_id=item.plan_id,
                )
                for position, item in enumerate(items)
            ])
            self.store.post(
                account,
                entry_type=LedgerEntry.EntryType.DEBIT,
                amount=total,
                balance_delta=total,
                description=f"Invoice {invoice.invoice_number} ({period_start} - {period_end})",
                reference_type=LedgerEntry.ReferenceType.INVOICE,
                reference_id=invoice.id,
                invoice=invoice,
            )

        logger.info(
            "Created invoice %s for customer %s: %s %s",
            invoice.invoice_number, customer_id, invoice.total, invoice.currency,
        )
        return invoice

    def mark_overdue_invoices(self, today: date | None = None) -> int:
        """Flag pending and partially paid invoices whose due date has passed."""
        today = today or timezone.localdate()
        updated = Invoice.objects.filter(
            status__in=[Invoice.Status.PENDING, Invoice.Status.PARTIAL],
            due_date__lt=today,
        ).update(status=Invoice.Status.OVERDUE, updated_at=timezone.now())
        if updated:
            logger.info("Marked %s invoices as overdue", updated)
        return updated
