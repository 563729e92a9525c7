"""Tests for the invoice generator."""
from datetime import date, timedelta
from decimal import Decimal

import pytest
from django.utils import timezone

from apps.billing.exceptions import (
    BillingValidationError,
    NothingToBillError,
    OverlappingBillingPeriodError,
)
from apps.billing.invoicing import InvoiceGenerator
from apps.billing.models import BillingAccount, Invoice, LedgerEntry
from apps.billing.store import LedgerStore
from apps.billing.types import BillingStatus, InvoiceItemInput
from apps.subscriptions.directory import SubscriptionDirectory
from apps.subscriptions.models import CustomerPlan


@pytest.fixture
def generator(db):
    return InvoiceGenerator()


def _items(amount="60.00"):
    return [InvoiceItemInput(description="Fibra 100", unit_price=Decimal(amount))]


class TestGenerateMonthlyDebt:
    def test_bills_active_subscription(self, generator, customer_plan):
        outcomes = generator.generate_monthly_debt(year=2025, month=11)

        assert len(outcomes) == 1
        outcome = outcomes[0]
        assert outcome.status == BillingStatus.BILLED
        assert outcome.amount == Decimal("60.00")

        invoice = outcome.invoice
        assert invoice.period_start == date(2025, 11, 1)
        assert invoice.period_end == date(2025, 11, 30)
        assert invoice.due_date == date(2025, 12, 7)
        assert invoice.status == Invoice.Status.PENDING
        assert invoice.balance_due == invoice.total == Decimal("60.00")
        assert invoice.items.count() == 1

        account = BillingAccount.objects.get(customer=customer_plan.customer)
        assert account.balance == Decimal("60.00")
        entry = LedgerEntry.objects.get(account=account)
        assert entry.entry_type == LedgerEntry.EntryType.DEBIT
        assert entry.amount == Decimal("60.00")
        assert entry.invoice == invoice

    def test_second_run_reports_already_billed(self, generator, customer_plan):
        generator.generate_monthly_debt(year=2025, month=11)
        outcomes = generator.generate_monthly_debt(year=2025, month=11)

        assert [o.status for o in outcomes] == [BillingStatus.SKIPPED_ALREADY_BILLED]
        assert Invoice.objects.filter(customer=customer_plan.customer).count() == 1
        account = BillingAccount.objects.get(customer=customer_plan.customer)
        assert account.balance == Decimal("60.00")
        assert account.ledger_entries.count() == 1

    def test_prorates_subscription_started_in_period(self, generator, customer, plan):
        CustomerPlan.objects.create(customer=customer, plan=plan, start_date=date(2025, 11, 16))

        outcome = generator.generate_monthly_debt(year=2025, month=11)[0]

        assert outcome.status == BillingStatus.BILLED
        assert outcome.invoice.total == Decimal("30.00")
        assert "prorated" in outcome.invoice.items.get().description

    def test_sums_every_active_subscription(self, generator, customer_plan, plan):
        CustomerPlan.objects.create(customer=customer_plan.customer, plan=plan, start_date=date(2025, 1, 1))

        outcome = generator.generate_monthly_debt(year=2025, month=11)[0]

        assert outcome.invoice.total == Decimal("120.00")
        assert outcome.invoice.items.count() == 2

    def test_ignores_customers_without_active_plan(self, generator, customer_plan):
        customer_plan.status = CustomerPlan.Status.CANCELLED
        customer_plan.save()

        assert generator.generate_monthly_debt(year=2025, month=11) == []

    def test_credit_is_applied_as_discount(self, generator, customer_plan):
        BillingAccount.objects.create(customer=customer_plan.customer, balance=Decimal("-20.00"))

        outcome = generator.generate_monthly_debt(year=2025, month=11)[0]

        assert outcome.status == BillingStatus.BILLED
        assert outcome.invoice.discount == Decimal("20.00")
        assert outcome.invoice.total == Decimal("40.00")
        account = BillingAccount.objects.get(customer=customer_plan.customer)
        assert account.balance == Decimal("20.00")

    def test_credit_covering_the_charge_skips_customer(self, generator, customer_plan):
        BillingAccount.objects.create(customer=customer_plan.customer, balance=Decimal("-100.00"))

        outcome = generator.generate_monthly_debt(year=2025, month=11)[0]

        assert outcome.status == BillingStatus.SKIPPED_NO_CHARGE
        assert not Invoice.objects.exists()
        assert BillingAccount.objects.get(customer=customer_plan.customer).balance == Decimal("-100.00")

    def test_credit_is_read_when_the_invoice_is_written(self, customer_plan):
        account = BillingAccount.objects.create(customer=customer_plan.customer, balance=Decimal("-20.00"))

        class SpendingStore(LedgerStore):
            def find_overlapping_invoice(self, *args, **kwargs):
                # credit spent elsewhere between pricing and writing the invoice
                BillingAccount.objects.filter(id=account.id).update(balance=Decimal("0.00"))
                return super().find_overlapping_invoice(*args, **kwargs)

        outcome = InvoiceGenerator(store=SpendingStore()).generate_monthly_debt(year=2025, month=11)[0]

        assert outcome.status == BillingStatus.BILLED
        assert outcome.invoice.discount == Decimal("0.00")
        assert outcome.invoice.total == Decimal("60.00")
        account.refresh_from_db()
        assert account.balance == Decimal("60.00")

    def test_voided_invoice_does_not_block_billing(self, generator, customer_plan):
        first = generator.generate_monthly_debt(year=2025, month=11)[0].invoice
        Invoice.objects.filter(id=first.id).update(status=Invoice.Status.VOID)

        outcome = generator.generate_monthly_debt(year=2025, month=11)[0]

        assert outcome.status == BillingStatus.BILLED
        assert outcome.invoice.id != first.id

    def test_failing_customer_does_not_stop_the_run(self, customer_plan, other_customer, plan):
        CustomerPlan.objects.create(customer=other_customer, plan=plan, start_date=date(2024, 1, 1))
        broken_id = customer_plan.customer_id

        class BrokenDirectory(SubscriptionDirectory):
            def active_plans(self, customer_id):
                if customer_id == broken_id:
                    raise RuntimeError("plan lookup failed")
                return super().active_plans(customer_id)

        outcomes = InvoiceGenerator(directory=BrokenDirectory()).generate_monthly_debt(year=2025, month=11)

        by_customer = {o.customer_id: o for o in outcomes}
        assert by_customer[broken_id].status == BillingStatus.FAILED
        assert by_customer[broken_id].error == "plan lookup failed"
        assert by_customer[other_customer.id].status == BillingStatus.BILLED


class TestCreateInvoice:
    def test_numbers_are_sequential(self, generator, customer):
        first = generator.create_invoice(customer.id, date(2025, 10, 1), date(2025, 10, 31), _items())
        second = generator.create_invoice(customer.id, date(2025, 11, 1), date(2025, 11, 30), _items())

        year = timezone.localdate().year
        assert first.invoice_number == f"INV-{year}-00001"
        assert second.invoice_number == f"INV-{year}-00002"

    def test_tax_and_discount(self, generator, customer):
        invoice = generator.create_invoice(
            customer.id,
            date(2025, 11, 1),
            date(2025, 11, 30),
            _items("100.00"),
            tax=Decimal("18.00"),
            discount=Decimal("8.00"),
        )
        assert invoice.subtotal == Decimal("100.00")
        assert invoice.total == Decimal("110.00")
        assert invoice.balance_due == Decimal("110.00")

    def test_credit_is_ignored_unless_requested(self, generator, customer):
        BillingAccount.objects.create(customer=customer, balance=Decimal("-20.00"))

        invoice = generator.create_invoice(customer.id, date(2025, 11, 1), date(2025, 11, 30), _items())

        assert invoice.discount == Decimal("0.00")
        assert invoice.total == Decimal("60.00")

    def test_credit_covering_everything_writes_nothing(self, generator, customer):
        BillingAccount.objects.create(customer=customer, balance=Decimal("-60.00"))

        with pytest.raises(NothingToBillError):
            generator.create_invoice(
                customer.id, date(2025, 11, 1), date(2025, 11, 30), _items(), apply_credit=True
            )

        assert not Invoice.objects.exists()
        account = BillingAccount.objects.get(customer=customer)
        assert account.balance == Decimal("-60.00")
        assert not account.ledger_entries.exists()

    def test_overlapping_period_is_rejected(self, generator, customer):
        generator.create_invoice(customer.id, date(2025, 11, 1), date(2025, 11, 30), _items())

        with pytest.raises(OverlappingBillingPeriodError):
            generator.create_invoice(customer.id, date(2025, 11, 15), date(2025, 12, 14), _items())

        assert Invoice.objects.count() == 1
        assert BillingAccount.objects.get(customer=customer).balance == Decimal("60.00")

    def test_adjacent_period_is_allowed(self, generator, customer):
        generator.create_invoice(customer.id, date(2025, 11, 1), date(2025, 11, 30), _items())
        generator.create_invoice(customer.id, date(2025, 12, 1), date(2025, 12, 31), _items())

        assert BillingAccount.objects.get(customer=customer).balance == Decimal("120.00")

    @pytest.mark.parametrize(
        "period_end, items",
        [
            (date(2025, 11, 30), []),
            (date(2025, 10, 31), [InvoiceItemInput(description="x", unit_price=Decimal("1"))]),
            (date(2025, 11, 30), [InvoiceItemInput(description="x", unit_price=Decimal("-5"))]),
        ],
    )
    def test_invalid_input_writes_nothing(self, generator, customer, period_end, items):
        with pytest.raises(BillingValidationError):
            generator.create_invoice(customer.id, date(2025, 11, 1), period_end, items)

        assert not Invoice.objects.exists()
        assert not BillingAccount.objects.exists()


class TestMarkOverdue:
    def test_marks_only_open_invoices_past_due(self, generator, customer):
        today = timezone.localdate()
        past = generator.create_invoice(
            customer.id, today - timedelta(days=60), today - timedelta(days=31), _items()
        )
        paid = generator.create_invoice(
            customer.id, today - timedelta(days=30), today - timedelta(days=10), _items()
        )
        Invoice.objects.filter(id=paid.id).update(status=Invoice.Status.PAID)
        current = generator.create_invoice(customer.id, today, today + timedelta(days=29), _items())

        assert generator.mark_overdue_invoices() == 1

        past.refresh_from_db()
        paid.refresh_from_db()
        current.refresh_from_db()
        assert past.status == Invoice.Status.OVERDUE
        assert paid.status == Invoice.Status.PAID
        assert current.status == Invoice.Status.PENDING
