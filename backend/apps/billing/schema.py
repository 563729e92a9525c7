"""GraphQL schema for billing: invoices, payments, accounts and ledger."""
from datetime import date, datetime
from decimal import Decimal
from typing import List

import strawberry
from django.utils import timezone
from strawberry.types import Info

from apps.billing import queries
from apps.billing.invoicing import InvoiceGenerator
from apps.billing.models import BillingAccount, Invoice, InvoiceItem, LedgerEntry, Payment
from apps.billing.payments import PaymentProcessor
from apps.billing.types import BillingOutcome, InvoiceFilter, InvoiceItemInput, PaymentInput


# =============================================================================
# Types
# =============================================================================


@strawberry.type
class InvoiceItemType:
    description: str
    quantity: Decimal
    unit_price: Decimal
    line_total: Decimal
    plan_id: int | None


@strawberry.type
class InvoiceType:
    id: int
    invoice_number: str
    customer_id: int
    customer_name: str
    kind: str
    period_start: date
    period_end: date
    issue_date: date
    due_date: date
    subtotal: Decimal
    tax: Decimal
    discount: Decimal
    total: Decimal
    balance_due: Decimal
    currency: str
    status: str
    notes: str
    items: List[InvoiceItemType]


@strawberry.type
class PaymentType:
    id: int
    payment_number: str
    customer_id: int
    invoice_id: int
    invoice_number: str
    amount: Decimal
    discount: Decimal
    method: str
    reference: str
    status: str
    payment_date: datetime
    receipt_location: str
    recorded_by: str


@strawberry.type
class BillingAccountType:
    id: int
    customer_id: int
    customer_name: str
    balance: Decimal
    credit_limit: Decimal
    status: str
    billing_cycle: int
    auto_suspend: bool
    suspended_at: datetime | None
    payment_commitment_date: date | None
    payment_commitment_notes: str
    last_payment_date: datetime | None


@strawberry.type
class LedgerEntryType:
    id: int
    entry_type: str
    amount: Decimal
    balance_delta: Decimal
    balance_after: Decimal
    description: str
    reference_type: str
    reference_id: str
    invoice_id: int | None
    payment_id: int | None
    transaction_date: datetime


@strawberry.type
class BillingOutcomeType:
    customer_id: int
    status: str
    invoice: InvoiceType | None
    amount: Decimal
    error: str | None


def _convert_item(item: InvoiceItem) -> InvoiceItemType:
    return InvoiceItemType(
        description=item.description,
        quantity=item.quantity,
        unit_price=item.unit_price,
        line_total=item.line_total,
        plan_id=item.plan_id,
    )


def _convert_invoice(invoice: Invoice) -> InvoiceType:
    return InvoiceType(
        id=invoice.id,
        invoice_number=invoice.invoice_number,
        customer_id=invoice.customer_id,
        customer_name=invoice.customer.name,
        kind=invoice.kind,
        period_start=invoice.period_start,
        period_end=invoice.period_end,
        issue_date=invoice.issue_date,
        due_date=invoice.due_date,
        subtotal=invoice.subtotal,
        tax=invoice.tax,
        discount=invoice.discount,
        total=invoice.total,
        balance_due=invoice.balance_due,
        currency=invoice.currency,
        status=invoice.status,
        notes=invoice.notes,
        items=[_convert_item(item) for item in invoice.items.all()],
    )


def _convert_payment(payment: Payment) -> PaymentType:
    return PaymentType(
        id=payment.id,
        payment_number=payment.payment_number,
        customer_id=payment.customer_id,
        invoice_id=payment.invoice_id,
        invoice_number=payment.invoice.invoice_number,
        amount=payment.amount,
        discount=payment.discount,
        method=payment.method,
        reference=payment.reference,
        status=payment.status,
        payment_date=payment.payment_date,
        receipt_location=payment.receipt_location,
        recorded_by=payment.recorded_by,
    )


def convert_account(account: BillingAccount) -> BillingAccountType:
    return BillingAccountType(
        id=account.id,
        customer_id=account.customer_id,
        customer_name=account.customer.name,
        balance=account.balance,
        credit_limit=account.credit_limit,
        status=account.status,
        billing_cycle=account.billing_cycle,
        auto_suspend=account.auto_suspend,
        suspended_at=account.suspended_at,
        payment_commitment_date=account.payment_commitment_date,
        payment_commitment_notes=account.payment_commitment_notes,
        last_payment_date=account.last_payment_date,
    )


def _convert_entry(entry: LedgerEntry) -> LedgerEntryType:
    return LedgerEntryType(
        id=entry.id,
        entry_type=entry.entry_type,
        amount=entry.amount,
        balance_delta=entry.balance_delta,
        balance_after=entry.balance_after,
        description=entry.description,
        reference_type=entry.reference_type,
        reference_id=entry.reference_id,
        invoice_id=entry.invoice_id,
        payment_id=entry.payment_id,
        transaction_date=entry.transaction_date,
    )


def _convert_outcome(outcome: BillingOutcome) -> BillingOutcomeType:
    return BillingOutcomeType(
        customer_id=outcome.customer_id,
        status=outcome.status.value,
        invoice=_convert_invoice(outcome.invoice) if outcome.invoice else None,
        amount=outcome.amount,
        error=outcome.error,
    )


# =============================================================================
# Inputs and results
# =============================================================================


@strawberry.input
class InvoiceItemInputType:
    description: str
    unit_price: Decimal
    quantity: Decimal = Decimal("1")
    plan_id: int | None = None


@strawberry.input
class CreateInvoiceInput:
    customer_id: int
    period_start: date
    period_end: date
    items: List[InvoiceItemInputType]
    tax: Decimal = Decimal("0")
    discount: Decimal = Decimal("0")
    notes: str = ""


@strawberry.input
class RecordPaymentInput:
    customer_id: int
    amount: Decimal
    method: str
    invoice_id: int | None = None
    discount: Decimal = Decimal("0")
    reference: str = ""
    wallet_provider: str = ""
    payment_date: datetime | None = None
    notes: str = ""


@strawberry.input
class UpdateBillingAccountInput:
    customer_id: int
    credit_limit: Decimal | None = None
    billing_cycle: int | None = None
    auto_suspend: bool | None = None


@strawberry.type
class InvoiceResult:
    invoice: InvoiceType | None = None
    success: bool = False
    error: str | None = None


@strawberry.type
class RecordPaymentResult:
    payment: PaymentType | None = None
    invoice: InvoiceType | None = None
    success: bool = False
    error: str | None = None
    notification_sent: bool = False
    notification_error: str | None = None
    reactivated: bool = False
    warnings: List[str] = strawberry.field(default_factory=list)


@strawberry.type
class PaymentResult:
    payment: PaymentType | None = None
    success: bool = False
    error: str | None = None


@strawberry.type
class BillingAccountResult:
    account: BillingAccountType | None = None
    success: bool = False
    error: str | None = None


@strawberry.type
class GenerateDebtResult:
    outcomes: List[BillingOutcomeType] = strawberry.field(default_factory=list)
    billed: int = 0
    success: bool = False
    error: str | None = None


# =============================================================================
# Query and mutation
# =============================================================================


@strawberry.type
class BillingQuery:
    @strawberry.field
    def invoices(
        self,
        customer_id: int | None = None,
        status: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
        search: str | None = None,
    ) -> List[InvoiceType]:
        filters = InvoiceFilter(
            customer_id=customer_id,
            status=status,
            date_from=date_from,
            date_to=date_to,
            search=search,
        )
        return [_convert_invoice(invoice) for invoice in queries.list_invoices(filters)]

    @strawberry.field
    def invoice(self, id: int) -> InvoiceType | None:
        try:
            return _convert_invoice(queries.get_invoice(id))
        except ValueError:
            return None

    @strawberry.field
    def payments(
        self,
        customer_id: int | None = None,
        method: str | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> List[PaymentType]:
        return [
            _convert_payment(payment)
            for payment in queries.list_payments(customer_id, method, date_from, date_to)
        ]

    @strawberry.field
    def billing_accounts(self, balance_filter: str = "all", status: str | None = None) -> List[BillingAccountType]:
        return [convert_account(a) for a in queries.list_billing_accounts(balance_filter, status)]

    @strawberry.field
    def billing_account(self, customer_id: int) -> BillingAccountType | None:
        try:
            return convert_account(queries.get_billing_account(customer_id))
        except ValueError:
            return None

    @strawberry.field
    def ledger(self, customer_id: int) -> List[LedgerEntryType]:
        return [_convert_entry(entry) for entry in queries.list_ledger_entries(customer_id)]


@strawberry.type
class BillingMutation:
    @strawberry.mutation
    def create_invoice(self, info: Info, input: CreateInvoiceInput) -> InvoiceResult:
        """Create a manual service invoice."""
        items = [
            InvoiceItemInput(
                description=item.description,
                unit_price=item.unit_price,
                quantity=item.quantity,
                plan_id=item.plan_id,
            )
            for item in input.items
        ]
        try:
            invoice = InvoiceGenerator().create_invoice(
                input.customer_id,
                input.period_start,
                input.period_end,
                items,
                tax=input.tax,
                discount=input.discount,
                notes=input.notes,
                created_by=info.context.operator,
            )
        except ValueError as e:
            return InvoiceResult(error=str(e))
        return InvoiceResult(invoice=_convert_invoice(invoice), success=True)

    @strawberry.mutation
    def record_payment(self, info: Info, input: RecordPaymentInput) -> RecordPaymentResult:
        """Apply a payment; receipt and reactivation problems come back as warnings."""
        data = PaymentInput(
            customer_id=input.customer_id,
            amount=input.amount,
            method=input.method,
            invoice_id=input.invoice_id,
            discount=input.discount,
            reference=input.reference,
            wallet_provider=input.wallet_provider,
            payment_date=input.payment_date,
            notes=input.notes,
            recorded_by=info.context.operator,
        )
        try:
            result = PaymentProcessor().record_payment(data)
        except ValueError as e:
            return RecordPaymentResult(error=str(e))
        return RecordPaymentResult(
            payment=_convert_payment(result.payment),
            invoice=_convert_invoice(result.invoice),
            success=True,
            notification_sent=result.notification_sent,
            notification_error=result.notification_error,
            reactivated=result.reactivated,
            warnings=result.warnings,
        )

    @strawberry.mutation
    def void_payment(self, info: Info, payment_id: int, reason: str = "") -> PaymentResult:
        try:
            payment = PaymentProcessor().void_payment(payment_id, reason=reason)
        except ValueError as e:
            return PaymentResult(error=str(e))
        return PaymentResult(payment=_convert_payment(payment), success=True)

    @strawberry.mutation
    def update_billing_account(
        self, info: Info, input: UpdateBillingAccountInput
    ) -> BillingAccountResult:
        try:
            account = queries.update_billing_account(
                input.customer_id,
                credit_limit=input.credit_limit,
                billing_cycle=input.billing_cycle,
                auto_suspend=input.auto_suspend,
            )
        except ValueError as e:
            return BillingAccountResult(error=str(e))
        return BillingAccountResult(account=convert_account(account), success=True)

    @strawberry.mutation
    def generate_monthly_debt(
        self, info: Info, year: int | None = None, month: int | None = None
    ) -> GenerateDebtResult:
        """Run the monthly billing batch now (defaults to the current month)."""
        if month is not None and not 1 <= month <= 12:
            return GenerateDebtResult(error="Month must be between 1 and 12")
        today = timezone.localdate()
        outcomes = InvoiceGenerator().generate_monthly_debt(year=year or today.year, month=month or today.month)
        converted = [_convert_outcome(outcome) for outcome in outcomes]
        return GenerateDebtResult(
            outcomes=converted,
            billed=sum(1 for o in converted if o.status == "BILLED"),
            success=True,
        )
