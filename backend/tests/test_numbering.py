"""Tests for document numbering."""
from datetime import date

import pytest

from apps.billing.models import DocumentSequence
from apps.billing.numbering import INVOICE_PREFIX, PAYMENT_PREFIX, DocumentNumberService


@pytest.fixture
def invoice_numbers(db):
    return DocumentNumberService(INVOICE_PREFIX)


class TestDocumentNumberService:
    def test_first_number(self, invoice_numbers):
        assert invoice_numbers.get_next_number(date(2025, 11, 3)) == "INV-2025-00001"

    def test_sequential_numbers(self, invoice_numbers):
        numbers = [invoice_numbers.get_next_number(date(2025, 11, day)) for day in (1, 2, 3)]
        assert numbers == ["INV-2025-00001", "INV-2025-00002", "INV-2025-00003"]

    def test_prefixes_count_independently(self, invoice_numbers):
        invoice_numbers.get_next_number(date(2025, 11, 1))
        invoice_numbers.get_next_number(date(2025, 11, 1))

        assert DocumentNumberService(PAYMENT_PREFIX).get_next_number(date(2025, 11, 1)) == "PAY-2025-00001"

    def test_yearly_reset(self, invoice_numbers):
        DocumentSequence.objects.create(prefix=INVOICE_PREFIX, next_counter=57, last_reset_year=2025)

        assert invoice_numbers.get_next_number(date(2026, 1, 2)) == "INV-2026-00001"
        assert invoice_numbers.get_next_number(date(2026, 1, 3)) == "INV-2026-00002"

    def test_no_reset_within_the_year(self, invoice_numbers):
        DocumentSequence.objects.create(prefix=INVOICE_PREFIX, next_counter=57, last_reset_year=2025)

        assert invoice_numbers.get_next_number(date(2025, 12, 30)) == "INV-2025-00057"
