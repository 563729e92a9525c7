"""Receipt documents rendered from Django templates with WeasyPrint."""
import logging
import re
from typing import Protocol

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.template.loader import render_to_string
from django.utils import timezone
from django.utils.module_loading import import_string

from apps.billing.exceptions import InvoiceNotFoundError
from apps.billing.models import Invoice, Payment

logger = logging.getLogger(__name__)


class DocumentGenerator(Protocol):
    """Renders an invoice (with the payment just applied) and returns its storage location."""

    def render_invoice(self, invoice_id: int, payment_id: int | None = None) -> str:
        ...


def _safe_filename(name: str) -> str:
    """Convert a name to a safe filename component."""
    safe = re.sub(r"[^\w\s-]", "", name)
    safe = re.sub(r"[-\s]+", "-", safe).strip("-")
    return safe[:50]


class HtmlReceiptGenerator:
    """Renders ``billing/receipt.html`` and saves the HTML to default storage."""

    template_name = "billing/receipt.html"
    extension = "html"

    def render_html(self, invoice: Invoice, payment: Payment | None = None) -> str:
        return render_to_string(
            self.template_name,
            {
                "invoice": invoice,
                "items": list(invoice.items.all()),
                "customer": invoice.customer,
                "payment": payment,
                "payments": list(
                    invoice.payments.filter(status=Payment.Status.COMPLETED).order_by("payment_date", "id")
                ),
                "currency_symbol": settings.BILLING_CURRENCY_SYMBOL,
                "company_name": settings.BILLING_COMPANY_NAME,
                "generated_at": timezone.localtime(),
            },
        )

    def to_bytes(self, html: str) -> bytes:
        return html.encode("utf-8")

    def render_invoice(self, invoice_id: int, payment_id: int | None = None) -> str:
        invoice = Invoice.objects.select_related("customer").filter(id=invoice_id).first()
        if invoice is None:
            raise InvoiceNotFoundError(f"Invoice {invoice_id} not found")
        payment = Payment.objects.filter(id=payment_id).first() if payment_id else None

        content = self.to_bytes(self.render_html(invoice, payment))

        document_number = payment.payment_number if payment else invoice.invoice_number
        path = (
            f"{settings.BILLING_RECEIPTS_DIR}/{_safe_filename(invoice.customer.name) or invoice.customer_id}/"
            f"{document_number}.{self.extension}"
        )
        location = default_storage.save(path, ContentFile(content))
        logger.info("Stored receipt for invoice %s at %s", invoice.invoice_number, location)
        return location


class WeasyPrintReceiptGenerator(HtmlReceiptGenerator):
    """Renders the receipt to PDF with WeasyPrint."""

    extension = "pdf"

    def to_bytes(self, html: str) -> bytes:
        from weasyprint import HTML

        return HTML(string=html).write_pdf()


def get_document_generator() -> DocumentGenerator:
    """Instantiate the generator configured in BILLING_DOCUMENT_GENERATOR."""
    return import_string(settings.BILLING_DOCUMENT_GENERATOR)()
