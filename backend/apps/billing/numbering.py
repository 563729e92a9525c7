"""Sequential document numbers for invoices and payments."""
from datetime import date

from django.db import transaction

from apps.billing.models import DocumentSequence

INVOICE_PREFIX = "INV"
PAYMENT_PREFIX = "PAY"


class DocumentNumberService:
    """Generates numbers like ``INV-2025-00042``; counters restart every year."""

    def __init__(self, prefix: str):
        self.prefix = prefix

    def get_next_number(self, on_date: date) -> str:
        """
        Atomically increment the counter and return the formatted number.

        Uses select_for_update() so concurrent payments never share a number.
        """
        with transaction.atomic():
            sequence, _ = DocumentSequence.objects.get_or_create(prefix=self.prefix)
            sequence = DocumentSequence.objects.select_for_update().get(pk=sequence.pk)

            if sequence.last_reset_year is not None and sequence.last_reset_year != on_date.year:
                sequence.next_counter = 1
            sequence.last_reset_year = on_date.year
            current_counter = sequence.next_counter

            sequence.next_counter = current_counter + 1
            sequence.save(update_fields=["next_counter", "last_reset_year", "updated_at"])

            return self._format_number(on_date, current_counter)

    def _format_number(self, on_date: date, counter: int) -> str:
        return f"{self.prefix}-{on_date.year:04d}-{counter:05d}"
