"""Tests for the ledger store and account queries."""
from datetime import date
from decimal import Decimal

import pytest
from django.db import transaction

from apps.billing import queries
from apps.billing.exceptions import BillingAccountNotFoundError, BillingValidationError, CustomerNotFoundError
from apps.billing.models import BillingAccount, Invoice, LedgerEntry
from apps.billing.store import LedgerStore


@pytest.fixture
def store():
    return LedgerStore()


class TestAccounts:
    def test_account_is_created_with_default_terms(self, store, customer, settings):
        settings.BILLING_DEFAULT_CREDIT_LIMIT = Decimal("250.00")

        account = store.ensure_account(customer.id)

        assert account.balance == Decimal("0.00")
        assert account.credit_limit == Decimal("250.00")
        assert account.status == BillingAccount.Status.ACTIVE
        assert account.auto_suspend is True
        assert store.ensure_account(customer.id).id == account.id

    def test_unknown_customer(self, store, db):
        with pytest.raises(CustomerNotFoundError):
            store.ensure_account(999)

    def test_get_account_does_not_create(self, store, customer):
        with pytest.raises(BillingAccountNotFoundError):
            store.get_account(customer.id)


class TestPost:
    def test_every_post_writes_one_entry(self, store, customer):
        with transaction.atomic():
            account = store.lock_account(customer.id)
            store.post(
                account,
                entry_type=LedgerEntry.EntryType.DEBIT,
                amount=Decimal("60"),
                balance_delta=Decimal("60"),
                description="Monthly service",
                reference_type=LedgerEntry.ReferenceType.INVOICE,
            )
            store.post(
                account,
                entry_type=LedgerEntry.EntryType.CREDIT,
                amount=Decimal("25"),
                balance_delta=Decimal("-25"),
                description="Cash payment",
                reference_type=LedgerEntry.ReferenceType.PAYMENT,
            )

        account.refresh_from_db()
        assert account.balance == Decimal("35.00")
        entries = list(account.ledger_entries.order_by("id"))
        assert [e.balance_after for e in entries] == [Decimal("60.00"), Decimal("35.00")]
        assert store.replay_balance(account) == account.balance

    def test_memo_entry_leaves_balance_alone(self, store, customer):
        with transaction.atomic():
            account = store.lock_account(customer.id)
            entry = store.post(
                account,
                entry_type=LedgerEntry.EntryType.CREDIT,
                amount=Decimal("120"),
                balance_delta=Decimal("0"),
                description="Advance payment",
                reference_type=LedgerEntry.ReferenceType.ADVANCE_PAYMENT,
                reference_id=7,
            )

        account.refresh_from_db()
        assert account.balance == Decimal("0.00")
        assert entry.amount == Decimal("120.00")
        assert entry.reference_id == "7"


class TestOverlap:
    def _invoice(self, account, start, end, status=Invoice.Status.PENDING, kind=Invoice.Kind.SERVICE):
        return Invoice.objects.create(
            customer=account.customer,
            account=account,
            invoice_number=f"T-{Invoice.objects.count() + 1:04d}",
            kind=kind,
            period_start=start,
            period_end=end,
            issue_date=start,
            due_date=end,
            subtotal=Decimal("60"),
            total=Decimal("60"),
            balance_due=Decimal("60"),
            status=status,
        )

    def test_finds_live_overlapping_service_invoice(self, store, account):
        invoice = self._invoice(account, date(2025, 11, 1), date(2025, 11, 30))

        found = store.find_overlapping_invoice(account.customer_id, date(2025, 11, 30), date(2025, 12, 29))

        assert found == invoice

    def test_ignores_released_and_standalone_invoices(self, store, account):
        self._invoice(account, date(2025, 11, 1), date(2025, 11, 30), status=Invoice.Status.VOID)
        self._invoice(account, date(2025, 11, 1), date(2025, 11, 30), status=Invoice.Status.CANCELLED)
        self._invoice(account, date(2025, 11, 5), date(2025, 11, 5), kind=Invoice.Kind.STANDALONE)

        assert store.find_overlapping_invoice(account.customer_id, date(2025, 11, 1), date(2025, 11, 30)) is None


class TestAccountQueries:
    def test_balance_filters(self, customer, other_customer):
        BillingAccount.objects.create(customer=customer, balance=Decimal("40.00"))
        BillingAccount.objects.create(customer=other_customer, balance=Decimal("-10.00"))

        assert [a.customer_id for a in queries.list_billing_accounts("pending")] == [customer.id]
        assert [a.customer_id for a in queries.list_billing_accounts("up-to-date")] == [other_customer.id]
        assert queries.list_billing_accounts().count() == 2

    def test_unknown_balance_filter(self, db):
        with pytest.raises(BillingValidationError):
            queries.list_billing_accounts("overdue")

    def test_update_terms_never_touches_balance(self, account):
        BillingAccount.objects.filter(id=account.id).update(balance=Decimal("80.00"))

        updated = queries.update_billing_account(
            account.customer_id,
            credit_limit=Decimal("300"),
            billing_cycle=15,
            auto_suspend=False,
        )

        assert updated.credit_limit == Decimal("300.00")
        assert updated.billing_cycle == 15
        assert updated.auto_suspend is False
        updated.refresh_from_db()
        assert updated.balance == Decimal("80.00")

    @pytest.mark.parametrize("kwargs", [{"billing_cycle": 29}, {"billing_cycle": 0}, {"credit_limit": Decimal("-1")}])
    def test_invalid_terms(self, account, kwargs):
        with pytest.raises(BillingValidationError):
            queries.update_billing_account(account.customer_id, **kwargs)
