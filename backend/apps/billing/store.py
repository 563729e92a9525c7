"""Ledger & account store.

``LedgerStore.post`` is the only place where ``BillingAccount.balance``
changes; every call writes exactly one ``LedgerEntry``. Callers must hold
the account row lock (``lock_account``) inside ``transaction.atomic()``.
"""
import logging
from datetime import date
from decimal import Decimal

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.billing.exceptions import BillingAccountNotFoundError, CustomerNotFoundError
from apps.billing.models import BillingAccount, Invoice, LedgerEntry, Payment
from apps.billing.money import to_money
from apps.customers.models import Customer

logger = logging.getLogger(__name__)

# Invoices in these states never block billing the same period again.
RELEASED_INVOICE_STATUSES = [Invoice.Status.VOID, Invoice.Status.CANCELLED]


class LedgerStore:
    """Repository for billing accounts and their ledger."""

    def get_account(self, customer_id: int) -> BillingAccount:
        account = BillingAccount.objects.filter(customer_id=customer_id).first()
        if account is None:
            raise BillingAccountNotFoundError(f"Billing account for customer {customer_id} not found")
        return account

    def ensure_account(self, customer_id: int) -> BillingAccount:
        """Return the customer's account, creating it with default terms on first use."""
        if not Customer.objects.filter(id=customer_id).exists():
            raise CustomerNotFoundError(f"Customer {customer_id} not found")
        account, created = BillingAccount.objects.get_or_create(
            customer_id=customer_id,
            defaults={
                "credit_limit": settings.BILLING_DEFAULT_CREDIT_LIMIT,
                "billing_cycle": settings.BILLING_DEFAULT_CYCLE_DAY,
                "auto_suspend": True,
            },
        )
        if created:
            logger.info("Created billing account for customer %s", customer_id)
        return account

    def lock_account(self, customer_id: int, create: bool = True) -> BillingAccount:
        """Lock and return the account row; must run inside transaction.atomic()."""
        if create:
            self.ensure_account(customer_id)
        account = BillingAccount.objects.select_for_update().filter(customer_id=customer_id).first()
        if account is None:
            raise BillingAccountNotFoundError(f"Billing account for customer {customer_id} not found")
        return account

    def post(
        self,
        account: BillingAccount,
        *,
        entry_type: str,
        amount: Decimal,
        balance_delta: Decimal,
        description: str,
        reference_type: str,
        reference_id: str | int = "",
        invoice: Invoice | None = None,
        payment: Payment | None = None,
        transaction_date=None,
        extra_update_fields: list[str] | None = None,
    ) -> LedgerEntry:
        """Apply ``balance_delta`` to the locked account and append its ledger entry."""
        if not transaction.get_connection().in_atomic_block:
            raise RuntimeError("LedgerStore.post() must run inside transaction.atomic()")

        balance_delta = to_money(balance_delta)
        update_fields = list(extra_update_fields or [])
        if balance_delta:
            account.balance = to_money(account.balance + balance_delta)
            update_fields.append("balance")
        if update_fields:
            account.save(update_fields=update_fields + ["updated_at"])

        return LedgerEntry.objects.create(
            account=account,
            entry_type=entry_type,
            amount=to_money(amount),
            balance_delta=balance_delta,
            balance_after=account.balance,
            description=description[:255],
            invoice=invoice,
            payment=payment,
            reference_type=reference_type,
            reference_id=str(reference_id or ""),
            transaction_date=transaction_date or timezone.now(),
        )

    def replay_balance(self, account: BillingAccount) -> Decimal:
        """Rebuild the balance from the ledger, oldest entry first."""
        balance = Decimal("0.00")
        for delta in account.ledger_entries.order_by("id").values_list("balance_delta", flat=True):
            balance += delta
        return to_money(balance)

    def find_overlapping_invoice(
        self, customer_id: int, period_start: date, period_end: date
    ) -> Invoice | None:
        """Live service invoice of the customer whose period intersects the given one."""
        return (
            Invoice.objects.filter(
                customer_id=customer_id,
                kind=Invoice.Kind.SERVICE,
                period_start__lte=period_end,
                period_end__gte=period_start,
            )
            .exclude(status__in=RELEASED_INVOICE_STATUSES)
            .order_by("id")
            .first()
        )
