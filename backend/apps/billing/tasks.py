"""Celery tasks for billing runs."""

import logging
from collections import Counter

from celery import shared_task

from apps.billing.invoicing import InvoiceGenerator

logger = logging.getLogger(__name__)


@shared_task(acks_late=True)
def generate_monthly_debt_task(year: int | None = None, month: int | None = None) -> dict:
    """
    Monthly billing run, followed by advance-credit reconciliation.

    Returns:
        Count of customers per outcome status
    """
    from apps.advances.tasks import apply_advance_payments_task

    outcomes = InvoiceGenerator().generate_monthly_debt(year=year, month=month)
    summary = dict(Counter(outcome.status.value for outcome in outcomes))
    logger.info("Monthly debt run finished: %s", summary)

    apply_advance_payments_task.delay()
    return summary


@shared_task
def mark_overdue_invoices_task() -> int:
    return InvoiceGenerator().mark_overdue_invoices()
