"""Tests for advance payments."""
from datetime import date
from decimal import Decimal

import pytest

from apps.advances.models import AdvanceMonthlyPayment, AdvancePayment
from apps.advances.services import AdvancePaymentService, MonthAllocation
from apps.billing.exceptions import (
    AdvancePaymentAlreadyAppliedError,
    AdvancePaymentConflictError,
    AdvancePaymentNotFoundError,
    BillingValidationError,
    BusinessRuleViolation,
    CustomerNotFoundError,
    InvoiceNotFoundError,
)
from apps.billing.invoicing import InvoiceGenerator
from apps.billing.models import BillingAccount, LedgerEntry, Payment
from apps.billing.store import LedgerStore
from apps.billing.types import InvoiceItemInput


@pytest.fixture
def service(db):
    return AdvancePaymentService()


def _create(service, customer, *months):
    return service.create_advance_payment(
        customer.id,
        [MonthAllocation(month=m, year=y, amount=Decimal(a)) for m, y, a in months],
        Payment.Method.CASH,
        reference="REC-001",
    )


class TestCreateAdvancePayment:
    def test_creates_pending_allocations_without_touching_balance(self, service, customer):
        result = _create(service, customer, (11, 2025, "60.00"), (12, 2025, "60.00"))

        advance = result.advance_payment
        assert advance.total_amount == Decimal("120.00")
        assert advance.months_count == 2
        assert advance.amount_per_month == Decimal("60.00")
        assert advance.status == AdvancePayment.Status.ACTIVE
        assert [(m.month, m.year, m.status) for m in result.monthly_payments] == [
            (11, 2025, AdvanceMonthlyPayment.Status.PENDING),
            (12, 2025, AdvanceMonthlyPayment.Status.PENDING),
        ]

        account = BillingAccount.objects.get(customer=customer)
        assert account.balance == Decimal("0.00")
        entry = account.ledger_entries.get()
        assert entry.entry_type == LedgerEntry.EntryType.CREDIT
        assert entry.amount == Decimal("120.00")
        assert entry.balance_delta == Decimal("0.00")

    def test_pending_month_cannot_be_prepaid_twice(self, service, customer):
        _create(service, customer, (11, 2025, "60.00"))

        with pytest.raises(AdvancePaymentConflictError):
            _create(service, customer, (10, 2025, "60.00"), (11, 2025, "60.00"))

        assert AdvancePayment.objects.count() == 1
        assert AdvanceMonthlyPayment.objects.count() == 1

    def test_other_customer_can_prepay_the_same_month(self, service, customer, other_customer):
        _create(service, customer, (11, 2025, "60.00"))
        _create(service, other_customer, (11, 2025, "60.00"))

        assert AdvanceMonthlyPayment.objects.filter(month=11, year=2025).count() == 2

    @pytest.mark.parametrize(
        "months",
        [
            [],
            [(13, 2025, "60.00")],
            [(11, 2025, "0.00")],
            [(11, 2025, "60.00"), (11, 2025, "30.00")],
        ],
    )
    def test_invalid_allocations(self, service, customer, months):
        with pytest.raises(BillingValidationError):
            _create(service, customer, *months)
        assert not AdvancePayment.objects.exists()

    def test_unknown_method(self, service, customer):
        with pytest.raises(BillingValidationError):
            service.create_advance_payment(
                customer.id, [MonthAllocation(month=11, year=2025, amount=Decimal("60"))], "barter"
            )

    def test_unknown_customer(self, service):
        with pytest.raises(CustomerNotFoundError):
            service.create_advance_payment(
                999, [MonthAllocation(month=11, year=2025, amount=Decimal("60"))], Payment.Method.CASH
            )


class TestApplyAdvancePayments:
    def test_credit_is_applied_once_to_the_matching_invoice(self, service, customer_plan):
        customer = customer_plan.customer
        _create(service, customer, (11, 2025, "60.00"))
        invoice = InvoiceGenerator().generate_monthly_debt(year=2025, month=11)[0].invoice
        account = BillingAccount.objects.get(customer=customer)
        assert account.balance == Decimal("60.00")

        result = service.apply_to_pending_invoices()

        assert result.applied_count == 1
        allocation = AdvanceMonthlyPayment.objects.get(customer=customer)
        assert allocation.status == AdvanceMonthlyPayment.Status.APPLIED
        assert allocation.applied_to_invoice == invoice
        account.refresh_from_db()
        assert account.balance == Decimal("0.00")
        entry = LedgerEntry.objects.get(reference_type=LedgerEntry.ReferenceType.ADVANCE_PAYMENT_APPLICATION)
        assert entry.entry_type == LedgerEntry.EntryType.DEBIT
        assert entry.invoice == invoice
        assert entry.balance_delta == Decimal("-60.00")

        again = service.apply_to_pending_invoices()

        assert again.applied_count == 0
        account.refresh_from_db()
        assert account.balance == Decimal("0.00")
        assert LedgerStore().replay_balance(account) == account.balance

    def test_credit_for_another_month_stays_pending(self, service, customer_plan):
        _create(service, customer_plan.customer, (12, 2025, "60.00"))
        InvoiceGenerator().generate_monthly_debt(year=2025, month=11)

        assert service.apply_to_pending_invoices().applied_count == 0
        assert AdvanceMonthlyPayment.objects.get().status == AdvanceMonthlyPayment.Status.PENDING

    def test_no_pending_allocation_is_a_noop(self, service, customer_plan):
        invoice = InvoiceGenerator().generate_monthly_debt(year=2025, month=11)[0].invoice

        assert service.apply_advance_payment_to_invoice(customer_plan.customer_id, invoice.id, 11, 2025) is None
        assert BillingAccount.objects.get(customer=customer_plan.customer).balance == Decimal("60.00")

    def test_unknown_invoice_leaves_the_credit_pending(self, service, customer):
        _create(service, customer, (11, 2025, "60.00"))

        with pytest.raises(InvoiceNotFoundError):
            service.apply_advance_payment_to_invoice(customer.id, 999999, 11, 2025)

        assert AdvanceMonthlyPayment.objects.get().status == AdvanceMonthlyPayment.Status.PENDING
        account = BillingAccount.objects.get(customer=customer)
        assert account.balance == Decimal("0.00")
        assert not account.ledger_entries.filter(
            reference_type=LedgerEntry.ReferenceType.ADVANCE_PAYMENT_APPLICATION
        ).exists()

    def test_another_customers_invoice_is_rejected(self, service, customer, other_customer):
        _create(service, customer, (11, 2025, "60.00"))
        foreign = InvoiceGenerator().create_invoice(
            other_customer.id,
            date(2025, 11, 1),
            date(2025, 11, 30),
            [InvoiceItemInput(description="Fibra 100", unit_price=Decimal("60.00"))],
        )

        with pytest.raises(InvoiceNotFoundError):
            service.apply_advance_payment_to_invoice(customer.id, foreign.id, 11, 2025)

        assert AdvanceMonthlyPayment.objects.get().status == AdvanceMonthlyPayment.Status.PENDING
        assert BillingAccount.objects.get(customer=other_customer).balance == Decimal("60.00")


class TestDeleteAdvancePayment:
    def test_cancels_pending_months(self, service, customer):
        advance = _create(service, customer, (11, 2025, "60.00"), (12, 2025, "60.00")).advance_payment

        service.delete_advance_payment(advance.id)

        advance.refresh_from_db()
        assert advance.status == AdvancePayment.Status.CANCELLED
        assert advance.cancelled_at is not None
        assert set(advance.monthly_payments.values_list("status", flat=True)) == {
            AdvanceMonthlyPayment.Status.CANCELLED
        }
        account = BillingAccount.objects.get(customer=customer)
        assert account.balance == Decimal("0.00")
        reversal = account.ledger_entries.get(
            reference_type=LedgerEntry.ReferenceType.ADVANCE_PAYMENT_CANCELLATION
        )
        assert reversal.amount == Decimal("120.00")
        assert reversal.balance_delta == Decimal("0.00")

    def test_cancelled_months_can_be_prepaid_again(self, service, customer):
        advance = _create(service, customer, (11, 2025, "60.00")).advance_payment
        service.delete_advance_payment(advance.id)

        _create(service, customer, (11, 2025, "55.00"))

        assert AdvanceMonthlyPayment.objects.filter(status=AdvanceMonthlyPayment.Status.PENDING).count() == 1

    def test_applied_advance_cannot_be_cancelled(self, service, customer_plan):
        advance = _create(service, customer_plan.customer, (11, 2025, "60.00")).advance_payment
        InvoiceGenerator().generate_monthly_debt(year=2025, month=11)
        service.apply_to_pending_invoices()

        with pytest.raises(AdvancePaymentAlreadyAppliedError):
            service.delete_advance_payment(advance.id)

        advance.refresh_from_db()
        assert advance.status == AdvancePayment.Status.ACTIVE

    def test_cannot_cancel_twice(self, service, customer):
        advance = _create(service, customer, (11, 2025, "60.00")).advance_payment
        service.delete_advance_payment(advance.id)

        with pytest.raises(BusinessRuleViolation):
            service.delete_advance_payment(advance.id)

    def test_unknown_advance(self, service):
        with pytest.raises(AdvancePaymentNotFoundError):
            service.delete_advance_payment(999)
