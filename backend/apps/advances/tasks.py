"""Celery tasks for advance-credit reconciliation."""

from celery import shared_task

from apps.advances.services import AdvancePaymentService


@shared_task(acks_late=True)
def apply_advance_payments_task() -> dict:
    """Apply pending advance credit to pending invoices; safe to repeat."""
    result = AdvancePaymentService().apply_to_pending_invoices()
    return {"applied_count": result.applied_count, "total_invoices": result.total_invoices}
