"""Tests for receipt rendering."""
from datetime import date
from decimal import Decimal
from unittest.mock import MagicMock, patch

import pytest
from django.core.files.storage import default_storage

from apps.billing.documents import (
    HtmlReceiptGenerator,
    WeasyPrintReceiptGenerator,
    get_document_generator,
)
from apps.billing.exceptions import InvoiceNotFoundError
from apps.billing.invoicing import InvoiceGenerator
from apps.billing.models import Payment
from apps.billing.payments import PaymentProcessor
from apps.billing.types import InvoiceItemInput, PaymentInput


@pytest.fixture
def invoice(db, customer):
    return InvoiceGenerator().create_invoice(
        customer.id,
        date(2025, 11, 1),
        date(2025, 11, 30),
        [InvoiceItemInput(description="Fibra 100 (11/2025)", unit_price=Decimal("60.00"))],
    )


class TestHtmlReceiptGenerator:
    def test_stores_receipt_under_customer_folder(self, invoice, settings):
        settings.BILLING_RECEIPTS_DIR = "receipts"

        location = HtmlReceiptGenerator().render_invoice(invoice.id)

        assert location.startswith("receipts/Rosa-Quispe/")
        assert location.endswith(".html")
        assert invoice.invoice_number in location
        with default_storage.open(location) as f:
            content = f.read().decode("utf-8")
        assert invoice.invoice_number in content
        assert "Fibra 100 (11/2025)" in content

    def test_receipt_of_a_payment_is_named_after_it(self, invoice, notifier):
        generator = HtmlReceiptGenerator()
        result = PaymentProcessor(documents=generator, notifier=notifier).record_payment(
            PaymentInput(
                customer_id=invoice.customer_id,
                invoice_id=invoice.id,
                amount=Decimal("60.00"),
                method=Payment.Method.CASH,
            )
        )

        assert result.payment.payment_number in result.receipt_location
        html = default_storage.open(result.receipt_location).read().decode("utf-8")
        assert result.payment.payment_number in html

    def test_unknown_invoice(self, db):
        with pytest.raises(InvoiceNotFoundError):
            HtmlReceiptGenerator().render_invoice(999)


class TestWeasyPrintReceiptGenerator:
    def test_renders_pdf(self, invoice):
        weasyprint = MagicMock()
        weasyprint.HTML.return_value.write_pdf.return_value = b"%PDF-1.7"

        with patch.dict("sys.modules", {"weasyprint": weasyprint}):
            location = WeasyPrintReceiptGenerator().render_invoice(invoice.id)

        assert location.endswith(".pdf")
        assert default_storage.open(location).read() == b"%PDF-1.7"


def test_settings_select_the_generator(settings):
    settings.BILLING_DOCUMENT_GENERATOR = "apps.billing.documents.HtmlReceiptGenerator"
    assert type(get_document_generator()) is HtmlReceiptGenerator
