"""Payment processing: apply payments to invoices, then deliver receipts and reactivate."""
import logging
from datetime import timedelta
from decimal import Decimal, InvalidOperation

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.billing.documents import DocumentGenerator, get_document_generator
from apps.billing.exceptions import (
    BillingValidationError,
    BusinessRuleViolation,
    CustomerNotFoundError,
    InvoiceNotFoundError,
    PaymentExceedsBalanceError,
    PaymentNotFoundError,
)
from apps.billing.models import BillingAccount, Invoice, InvoiceItem, LedgerEntry, Payment
from apps.billing.money import to_money
from apps.billing.numbering import INVOICE_PREFIX, PAYMENT_PREFIX, DocumentNumberService
from apps.billing.store import LedgerStore
from apps.billing.types import PaymentInput, PaymentResult
from apps.customers.models import Customer
from apps.notifications.gateway import NotificationGateway, get_notification_gateway

logger = logging.getLogger(__name__)

ZERO = Decimal("0.00")

CLOSED_INVOICE_STATUSES = [Invoice.Status.PAID, Invoice.Status.CANCELLED, Invoice.Status.VOID]


def invoice_status_for(invoice: Invoice, remaining: Decimal, today=None) -> str:
    """Status an invoice takes once ``remaining`` is left to pay."""
    if remaining <= ZERO:
        return Invoice.Status.PAID
    if remaining < invoice.total:
        return Invoice.Status.PARTIAL
    if invoice.status in CLOSED_INVOICE_STATUSES or invoice.status == Invoice.Status.PARTIAL:
        today = today or timezone.localdate()
        return Invoice.Status.OVERDUE if invoice.due_date < today else Invoice.Status.PENDING
    return invoice.status


class PaymentProcessor:
    """Records and voids payments against the ledger."""

    def __init__(
        self,
        store: LedgerStore | None = None,
        documents: DocumentGenerator | None = None,
        notifier: NotificationGateway | None = None,
        suspension=None,
    ):
        self.store = store or LedgerStore()
        self.documents = documents or get_document_generator()
        self.notifier = notifier or get_notification_gateway()
        self._suspension = suspension
        self.payment_numbers = DocumentNumberService(PAYMENT_PREFIX)
        self.invoice_numbers = DocumentNumberService(INVOICE_PREFIX)

    @property
    def suspension(self):
        if self._suspension is None:
            from apps.dunning.suspension import SuspensionService

            self._suspension = SuspensionService(notifier=self.notifier)
        return self._suspension

    def _validate(self, data: PaymentInput) -> tuple[Decimal, Decimal]:
        try:
            amount = to_money(data.amount)
            discount = to_money(data.discount or 0)
        except (InvalidOperation, TypeError, ValueError):
            raise BillingValidationError("Amount and discount must be numbers")
        if amount <= ZERO:
            raise BillingValidationError("Payment amount must be greater than zero")
        if discount < ZERO or discount > amount:
            raise BillingValidationError("Discount must be between zero and the payment amount")
        if data.method not in Payment.Method.values:
            raise BillingValidationError(f"Unknown payment method: {data.method}")
        if not Customer.objects.filter(id=data.customer_id).exists():
            raise CustomerNotFoundError(f"Customer {data.customer_id} not found")
        return amount, discount

    def record_payment(self, data: PaymentInput) -> PaymentResult:
        """
        Apply a payment inside one transaction, then run its side effects.

        ``amount`` is what the invoice and the balance are reduced by;
        ``discount`` is the part of it that is forgiven rather than
        collected, so the payment row stores ``amount - discount``.
        Receipt delivery and reactivation run after commit and only ever
        report their failures in the result.
        """
        amount, discount = self._validate(data)
        net = amount - discount
        payment_date = data.payment_date or timezone.now()

        reference = data.reference or ""
        if data.method == Payment.Method.DIGITAL_WALLET and data.wallet_provider:
            reference = f"{data.wallet_provider} - {reference}" if reference else data.wallet_provider

        with transaction.atomic():
            account = self.store.lock_account(data.customer_id)

            if data.invoice_id:
                invoice = (
                    Invoice.objects.select_for_update()
                    .filter(id=data.invoice_id, customer_id=data.customer_id)
                    .first()
                )
                if invoice is None:
                    raise InvoiceNotFoundError(f"Invoice {data.invoice_id} not found for this customer")
                if invoice.status in CLOSED_INVOICE_STATUSES:
                    raise BusinessRuleViolation(
                        f"Invoice {invoice.invoice_number} is {invoice.get_status_display().lower()}"
                    )
                if net > invoice.balance_due:
                    raise PaymentExceedsBalanceError(
                        f"Payment ({net}) exceeds the invoice balance ({invoice.balance_due})"
                    )
            else:
                if net > account.balance:
                    raise PaymentExceedsBalanceError(
                        f"Payment ({net}) exceeds the account balance ({account.balance})"
                    )
                invoice = self._create_payment_invoice(account, amount, payment_date, data.recorded_by)

            payment = Payment.objects.create(
                customer_id=data.customer_id,
                account=account,
                invoice=invoice,
                payment_number=self.payment_numbers.get_next_number(timezone.localdate(payment_date)),
                amount=net,
                discount=discount,
                currency=invoice.currency,
                method=data.method,
                reference=reference,
                status=Payment.Status.COMPLETED,
                payment_date=payment_date,
                processed_at=timezone.now(),
                notes=data.notes,
                recorded_by=data.recorded_by,
            )

            remaining = to_money(invoice.balance_due - amount)
            invoice.status = invoice_status_for(invoice, remaining)
            invoice.balance_due = remaining
            invoice.save(update_fields=["balance_due", "status", "updated_at"])

            account.last_payment_date = payment_date
            description = f"Payment {payment.payment_number} applied to {invoice.invoice_number}"
            if discount:
                description += f" (discount {discount})"
            self.store.post(
                account,
                entry_type=LedgerEntry.EntryType.CREDIT,
                amount=net,
                balance_delta=-amount,
                description=description,
                reference_type=LedgerEntry.ReferenceType.PAYMENT,
                reference_id=payment.id,
                invoice=invoice,
                payment=payment,
                transaction_date=payment_date,
                extra_update_fields=["last_payment_date"],
            )

        logger.info(
            "Recorded payment %s for customer %s: %s (discount %s) on %s",
            payment.payment_number, data.customer_id, net, discount, invoice.invoice_number,
        )

        result = PaymentResult(payment=payment, invoice=invoice)
        self._deliver_receipt(result)
        self._reactivate_if_settled(result)
        return result

    def _create_payment_invoice(self, account: BillingAccount, amount: Decimal, payment_date, recorded_by: str) -> Invoice:
        """Container invoice for a payment made against the account balance."""
        day = timezone.localdate(payment_date)
        invoice = Invoice.objects.create(
            customer_id=account.customer_id,
            account=account,
            invoice_number=self.invoice_numbers.get_next_number(day),
            kind=Invoice.Kind.STANDALONE,
            period_start=day,
            period_end=day,
            issue_date=day,
            due_date=day + timedelta(days=settings.BILLING_DUE_DAYS),
            subtotal=amount,
            total=amount,
            balance_due=amount,
            currency=settings.BILLING_CURRENCY,
            status=Invoice.Status.PENDING,
            notes="Generated automatically for a payment on account",
            created_by=recorded_by,
        )
        InvoiceItem.objects.create(
            invoice=invoice,
            description=f"Payment on account {day:%d/%m/%Y}",
            quantity=Decimal("1"),
            unit_price=amount,
            line_total=amount,
        )
        return invoice

    def _deliver_receipt(self, result: PaymentResult):
        payment = result.payment
        try:
            location = self.documents.render_invoice(result.invoice.id, payment_id=payment.id)
        except Exception as e:
            logger.exception("Receipt rendering failed for payment %s", payment.payment_number)
            result.notification_error = f"Receipt could not be generated: {e}"
            result.warnings.append(result.notification_error)
            return

        payment.receipt_location = location
        payment.save(update_fields=["receipt_location", "updated_at"])
        result.receipt_location = location

        text = (
            f"Pago registrado: {settings.BILLING_CURRENCY_SYMBOL} {payment.amount:.2f} "
            f"({payment.payment_number}). Adjuntamos su recibo."
        )
        try:
            self.notifier.send(payment.customer_id, text, attachment=location, message_type="receipt")
            result.notification_sent = True
        except Exception as e:
            logger.warning(
                "Receipt for payment %s could not be delivered to customer %s: %s",
                payment.payment_number, payment.customer_id, e,
            )
            result.notification_error = str(e)
            result.warnings.append(f"Receipt not delivered: {e}")

    def _reactivate_if_settled(self, result: PaymentResult):
        customer_id = result.payment.customer_id
        account = BillingAccount.objects.get(customer_id=customer_id)
        if account.status != BillingAccount.Status.SUSPENDED:
            return
        if account.balance > ZERO and not account.has_live_commitment(timezone.localdate()):
            logger.info("Customer %s still owes %s, staying suspended", customer_id, account.balance)
            return

        try:
            outcome = self.suspension.reactivate_customer(customer_id)
        except Exception as e:
            logger.exception("Reactivation after payment failed for customer %s", customer_id)
            result.reactivation_error = str(e)
            result.warnings.append(f"Reactivation failed: {e}")
            return

        result.reactivated = outcome.changed
        if outcome.failed:
            result.reactivation_error = "; ".join(outcome.errors)
            result.warnings.append(f"{outcome.failed} network profile(s) could not be restored")

    def void_payment(self, payment_id: int, reason: str = "") -> Payment:
        """Reverse a completed payment: the invoice and the balance owe it again."""
        with transaction.atomic():
            payment = Payment.objects.select_for_update().filter(id=payment_id).first()
            if payment is None:
                raise PaymentNotFoundError(f"Payment {payment_id} not found")
            if payment.status != Payment.Status.COMPLETED:
                raise BusinessRuleViolation(f"Payment {payment.payment_number} is already cancelled")

            account = self.store.lock_account(payment.customer_id, create=False)
            invoice = Invoice.objects.select_for_update().get(id=payment.invoice_id)
            applied = payment.applied_amount

            invoice.balance_due = to_money(invoice.balance_due + applied)
            if invoice.kind == Invoice.Kind.STANDALONE and invoice.balance_due >= invoice.total:
                invoice.status = Invoice.Status.VOID
            else:
                invoice.status = invoice_status_for(invoice, invoice.balance_due)
            invoice.save(update_fields=["balance_due", "status", "updated_at"])

            payment.status = Payment.Status.CANCELLED
            payment.voided_at = timezone.now()
            payment.void_reason = reason
            payment.save(update_fields=["status", "voided_at", "void_reason", "updated_at"])

            self.store.post(
                account,
                entry_type=LedgerEntry.EntryType.DEBIT,
                amount=applied,
                balance_delta=applied,
                description=f"Payment {payment.payment_number} voided" + (f": {reason}" if reason else ""),
                reference_type=LedgerEntry.ReferenceType.PAYMENT_VOID,
                reference_id=payment.id,
                invoice=invoice,
                payment=payment,
            )

        logger.info("Voided payment %s for customer %s", payment.payment_number, payment.customer_id)
        return payment
