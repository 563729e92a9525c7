"""Pytest configuration and fixtures."""
from datetime import date
from decimal import Decimal

import pytest

from apps.billing.models import BillingAccount
from apps.customers.models import Customer
from apps.network.models import NetworkBinding
from apps.subscriptions.models import CustomerPlan, Plan
from tests.doubles import FakeDocuments, RecordingController, RecordingNotifier


@pytest.fixture
def controller():
    return RecordingController()


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def documents():
    return FakeDocuments()


@pytest.fixture
def customer(db):
    """Create a test customer."""
    return Customer.objects.create(
        code="CLI-0001",
        name="Rosa Quispe",
        phone="987654321",
    )


@pytest.fixture
def other_customer(db):
    return Customer.objects.create(
        code="CLI-0002",
        name="Jorge Huaman",
        phone="912345678",
    )


@pytest.fixture
def plan(db):
    return Plan.objects.create(
        name="Fibra 100",
        monthly_price=Decimal("60.00"),
        download_speed_mbps=100,
        upload_speed_mbps=50,
        network_profile_name="PLAN-100M",
    )


@pytest.fixture
def customer_plan(db, customer, plan):
    """An active subscription that started well before any tested period."""
    return CustomerPlan.objects.create(
        customer=customer,
        plan=plan,
        start_date=date(2024, 1, 1),
    )


@pytest.fixture
def binding(db, customer, plan):
    return NetworkBinding.objects.create(
        customer=customer,
        username="rosa.quispe",
        profile=plan.network_profile_name,
        device_name="MK-CENTRO",
    )


@pytest.fixture
def account(db, customer):
    """Billing account with no debt."""
    return BillingAccount.objects.create(customer=customer)
