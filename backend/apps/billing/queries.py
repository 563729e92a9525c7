"""Read side of billing: invoice, payment, account and ledger listings."""
from datetime import date
from decimal import Decimal

from django.db import transaction
from django.db.models import Q, QuerySet

from apps.billing.exceptions import BillingValidationError, InvoiceNotFoundError
from apps.billing.models import BillingAccount, Invoice, LedgerEntry, Payment
from apps.billing.money import to_money
from apps.billing.store import LedgerStore
from apps.billing.types import InvoiceFilter


def list_invoices(filters: InvoiceFilter | None = None) -> QuerySet[Invoice]:
    filters = filters or InvoiceFilter()
    queryset = Invoice.objects.select_related("customer").prefetch_related("items")
    if filters.customer_id:
        queryset = queryset.filter(customer_id=filters.customer_id)
    if filters.status:
        queryset = queryset.filter(status=filters.status)
    if filters.date_from:
        queryset = queryset.filter(issue_date__gte=filters.date_from)
    if filters.date_to:
        queryset = queryset.filter(issue_date__lte=filters.date_to)
    if filters.search:
        queryset = queryset.filter(
            Q(invoice_number__icontains=filters.search)
            | Q(customer__name__icontains=filters.search)
            | Q(customer__code__icontains=filters.search)
        )
    return queryset.order_by("-issue_date", "-id")


def get_invoice(invoice_id: int) -> Invoice:
    invoice = (
        Invoice.objects.select_related("customer")
        .prefetch_related("items", "payments")
        .filter(id=invoice_id)
        .first()
    )
    if invoice is None:
        raise InvoiceNotFoundError(f"Invoice {invoice_id} not found")
    return invoice


def list_payments(
    customer_id: int | None = None,
    method: str | None = None,
    date_from: date | None = None,
    date_to: date | None = None,
    include_cancelled: bool = True,
) -> QuerySet[Payment]:
    queryset = Payment.objects.select_related("customer", "invoice")
    if customer_id:
        queryset = queryset.filter(customer_id=customer_id)
    if method:
        queryset = queryset.filter(method=method)
    if date_from:
        queryset = queryset.filter(payment_date__date__gte=date_from)
    if date_to:
        queryset = queryset.filter(payment_date__date__lte=date_to)
    if not include_cancelled:
        queryset = queryset.filter(status=Payment.Status.COMPLETED)
    return queryset.order_by("-payment_date", "-id")


BALANCE_FILTERS = {
    "pending": Q(balance__gt=0),
    "up-to-date": Q(balance__lte=0),
    "all": Q(),
}


def list_billing_accounts(balance_filter: str = "all", status: str | None = None) -> QuerySet[BillingAccount]:
    if balance_filter not in BALANCE_FILTERS:
        raise BillingValidationError(
            f"Unknown balance filter '{balance_filter}', expected one of {', '.join(BALANCE_FILTERS)}"
        )
    queryset = BillingAccount.objects.select_related("customer").filter(BALANCE_FILTERS[balance_filter])
    if status:
        queryset = queryset.filter(status=status)
    return queryset.order_by("-balance", "customer__name")


def get_billing_account(customer_id: int, store: LedgerStore | None = None) -> BillingAccount:
    """The customer's account, created with default terms if it does not exist yet."""
    return (store or LedgerStore()).ensure_account(customer_id)


def update_billing_account(
    customer_id: int,
    credit_limit: Decimal | None = None,
    billing_cycle: int | None = None,
    auto_suspend: bool | None = None,
    store: LedgerStore | None = None,
) -> BillingAccount:
    """Change account terms; the balance is never edited here."""
    if credit_limit is not None and to_money(credit_limit) < 0:
        raise BillingValidationError("Credit limit must not be negative")
    if billing_cycle is not None and not 1 <= billing_cycle <= 28:
        raise BillingValidationError("Billing cycle day must be between 1 and 28")

    store = store or LedgerStore()
    with transaction.atomic():
        account = store.lock_account(customer_id)
        update_fields = ["updated_at"]
        if credit_limit is not None:
            account.credit_limit = to_money(credit_limit)
            update_fields.append("credit_limit")
        if billing_cycle is not None:
            account.billing_cycle = billing_cycle
            update_fields.append("billing_cycle")
        if auto_suspend is not None:
            account.auto_suspend = auto_suspend
            update_fields.append("auto_suspend")
        account.save(update_fields=update_fields)
    return account


def list_ledger_entries(customer_id: int) -> QuerySet[LedgerEntry]:
    return LedgerEntry.objects.filter(account__customer_id=customer_id).order_by("id")
