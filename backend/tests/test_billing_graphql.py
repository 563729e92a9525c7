"""GraphQL tests for billing, advances and dunning."""
from datetime import timedelta
from decimal import Decimal

import pytest
from django.test import RequestFactory
from django.utils import timezone

from apps.billing.models import BillingAccount, Payment
from apps.core.context import Context
from config.schema import schema


def run_graphql(query, variables=None, context=None):
    """Helper to run GraphQL queries synchronously."""
    return schema.execute_sync(query, variable_values=variables, context_value=context)


@pytest.fixture
def context():
    request = RequestFactory().post("/graphql", HTTP_X_OPERATOR="caja-1")
    return Context(request=request)


CREATE_INVOICE = """
mutation CreateInvoice($input: CreateInvoiceInput!) {
  createInvoice(input: $input) {
    success
    error
    invoice { id invoiceNumber total balanceDue status items { description lineTotal } }
  }
}
"""

RECORD_PAYMENT = """
mutation RecordPayment($input: RecordPaymentInput!) {
  recordPayment(input: $input) {
    success
    error
    notificationSent
    warnings
    payment { amount discount recordedBy status }
    invoice { balanceDue status }
  }
}
"""


def _create_invoice(context, customer, start="2025-11-01", end="2025-11-30", price="50.00"):
    result = run_graphql(
        CREATE_INVOICE,
        {
            "input": {
                "customerId": customer.id,
                "periodStart": start,
                "periodEnd": end,
                "items": [{"description": "Fibra 50", "unitPrice": price}],
            }
        },
        context,
    )
    assert result.errors is None
    return result.data["createInvoice"]


class TestInvoiceMutations:
    def test_create_invoice(self, context, customer):
        data = _create_invoice(context, customer)

        assert data["success"] is True
        assert data["error"] is None
        assert Decimal(data["invoice"]["total"]) == Decimal("50.00")
        assert data["invoice"]["status"] == "pending"
        assert data["invoice"]["items"][0]["description"] == "Fibra 50"

    def test_overlap_is_reported_as_error(self, context, customer):
        _create_invoice(context, customer)

        data = _create_invoice(context, customer, start="2025-11-15", end="2025-12-14")

        assert data["success"] is False
        assert "already has invoice" in data["error"]

    def test_generate_monthly_debt(self, context, customer_plan):
        query = """
        mutation {
          generateMonthlyDebt(year: 2025, month: 11) {
            success billed outcomes { customerId status amount }
          }
        }
        """
        data = run_graphql(query, context=context).data["generateMonthlyDebt"]

        assert data["success"] is True
        assert data["billed"] == 1
        assert data["outcomes"][0]["status"] == "BILLED"

        again = run_graphql(query, context=context).data["generateMonthlyDebt"]
        assert again["billed"] == 0
        assert again["outcomes"][0]["status"] == "SKIPPED_ALREADY_BILLED"


class TestPaymentMutations:
    def test_record_payment_with_discount(self, context, customer):
        invoice = _create_invoice(context, customer)["invoice"]

        result = run_graphql(
            RECORD_PAYMENT,
            {
                "input": {
                    "customerId": customer.id,
                    "invoiceId": int(invoice["id"]),
                    "amount": "50.00",
                    "discount": "10.00",
                    "method": "cash",
                }
            },
            context,
        )

        assert result.errors is None
        data = result.data["recordPayment"]
        assert data["success"] is True
        assert Decimal(data["payment"]["amount"]) == Decimal("40.00")
        assert Decimal(data["payment"]["discount"]) == Decimal("10.00")
        assert data["payment"]["recordedBy"] == "caja-1"
        assert data["invoice"]["status"] == "paid"
        assert Decimal(data["invoice"]["balanceDue"]) == Decimal("0.00")
        assert data["notificationSent"] is True
        assert BillingAccount.objects.get(customer=customer).balance == Decimal("0.00")

    def test_overpayment_is_rejected(self, context, customer):
        invoice = _create_invoice(context, customer)["invoice"]

        data = run_graphql(
            RECORD_PAYMENT,
            {
                "input": {
                    "customerId": customer.id,
                    "invoiceId": int(invoice["id"]),
                    "amount": "75.00",
                    "method": "cash",
                }
            },
            context,
        ).data["recordPayment"]

        assert data["success"] is False
        assert "exceeds" in data["error"]
        assert not Payment.objects.exists()

    def test_void_payment(self, context, customer):
        invoice = _create_invoice(context, customer)["invoice"]
        run_graphql(
            RECORD_PAYMENT,
            {"input": {"customerId": customer.id, "invoiceId": int(invoice["id"]), "amount": "50.00", "method": "cash"}},
            context,
        )
        payment = Payment.objects.get()

        query = """
        mutation Void($id: Int!) {
          voidPayment(paymentId: $id, reason: "duplicated") { success error payment { status } }
        }
        """
        data = run_graphql(query, {"id": payment.id}, context).data["voidPayment"]

        assert data["success"] is True
        assert data["payment"]["status"] == "cancelled"
        assert BillingAccount.objects.get(customer=customer).balance == Decimal("50.00")


class TestAccountQueries:
    def test_billing_account_and_ledger(self, context, customer):
        _create_invoice(context, customer)

        query = """
        query Account($customerId: Int!) {
          billingAccount(customerId: $customerId) { balance status autoSuspend }
          ledger(customerId: $customerId) { entryType amount balanceAfter }
          billingAccounts(balanceFilter: "pending") { customerId }
        }
        """
        result = run_graphql(query, {"customerId": customer.id}, context)

        assert result.errors is None
        assert Decimal(result.data["billingAccount"]["balance"]) == Decimal("50.00")
        assert result.data["billingAccount"]["status"] == "active"
        assert [e["entryType"] for e in result.data["ledger"]] == ["debit"]
        assert result.data["billingAccounts"] == [{"customerId": customer.id}]

    def test_update_billing_account_validation(self, context, account):
        query = """
        mutation {
          updateBillingAccount(input: {customerId: %d, billingCycle: 31}) { success error }
        }
        """ % account.customer_id

        data = run_graphql(query, context=context).data["updateBillingAccount"]

        assert data["success"] is False
        assert "between 1 and 28" in data["error"]


class TestAdvanceMutations:
    def test_create_and_delete_advance_payment(self, context, customer):
        create = """
        mutation Create($input: CreateAdvancePaymentInput!) {
          createAdvancePayment(input: $input) {
            success error advancePayment { id totalAmount monthlyPayments { month year status } }
          }
        }
        """
        variables = {
            "input": {
                "customerId": customer.id,
                "method": "cash",
                "allocations": [
                    {"month": 11, "year": 2025, "amount": "60.00"},
                    {"month": 12, "year": 2025, "amount": "60.00"},
                ],
            }
        }
        data = run_graphql(create, variables, context).data["createAdvancePayment"]

        assert data["success"] is True
        assert Decimal(data["advancePayment"]["totalAmount"]) == Decimal("120.00")
        assert [m["status"] for m in data["advancePayment"]["monthlyPayments"]] == ["pending", "pending"]

        conflict = run_graphql(create, variables, context).data["createAdvancePayment"]
        assert conflict["success"] is False

        delete = """
        mutation Delete($id: Int!) { deleteAdvancePayment(id: $id) { success advancePayment { status } } }
        """
        deleted = run_graphql(delete, {"id": int(data["advancePayment"]["id"])}, context).data
        assert deleted["deleteAdvancePayment"]["advancePayment"]["status"] == "cancelled"


class TestDunningMutations:
    @pytest.fixture
    def debtor(self, customer, customer_plan, binding):
        return BillingAccount.objects.create(customer=customer, balance=Decimal("60.00"))

    def test_suspend_and_reactivate(self, context, debtor):
        suspend = "mutation($id: Int!) { suspendCustomer(customerId: $id) { changed successCount } }"
        reactivate = "mutation($id: Int!) { reactivateCustomer(customerId: $id) { changed successCount } }"

        first = run_graphql(suspend, {"id": debtor.customer_id}, context).data["suspendCustomer"]
        second = run_graphql(suspend, {"id": debtor.customer_id}, context).data["suspendCustomer"]

        assert first == {"changed": True, "successCount": 1}
        assert second == {"changed": False, "successCount": 0}

        restored = run_graphql(reactivate, {"id": debtor.customer_id}, context).data["reactivateCustomer"]
        assert restored == {"changed": True, "successCount": 1}

    def test_commitment_protects_from_daily_cut(self, context, debtor):
        promised = (timezone.localdate() + timedelta(days=5)).isoformat()
        create = """
        mutation($input: PaymentCommitmentInput!) {
          createPaymentCommitment(input: $input) { success error account { paymentCommitmentDate } }
        }
        """
        data = run_graphql(
            create,
            {"input": {"customerId": debtor.customer_id, "commitmentDate": promised}},
            context,
        ).data["createPaymentCommitment"]
        assert data["success"] is True
        assert data["account"]["paymentCommitmentDate"] == promised

        active = run_graphql("{ activeCommitments { customerId } }", context=context).data
        assert active["activeCommitments"] == [{"customerId": debtor.customer_id}]

        cut = run_graphql("mutation { runDailyCut { total cut } }", context=context).data["runDailyCut"]
        assert cut == {"total": 0, "cut": 0}

    def test_commitment_in_the_past_is_rejected(self, context, debtor):
        query = """
        mutation($input: PaymentCommitmentInput!) { createPaymentCommitment(input: $input) { success error } }
        """
        yesterday = (timezone.localdate() - timedelta(days=1)).isoformat()

        data = run_graphql(
            query, {"input": {"customerId": debtor.customer_id, "commitmentDate": yesterday}}, context
        ).data["createPaymentCommitment"]

        assert data["success"] is False
        assert "future" in data["error"]
