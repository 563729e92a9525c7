"""Celery tasks for the dunning triggers.

Each trigger runs independently; overlapping runs are harmless because
every suspension goes through the status check in SuspensionService.
"""

from celery import shared_task

from apps.dunning.commitments import PaymentCommitmentService
from apps.dunning.services import DunningService


@shared_task
def payment_reminders_task(force: bool = False) -> dict:
    tally = DunningService().send_payment_reminders(force=force)
    return {"ran": tally.ran, "total": tally.total, "sent": tally.sent, "failed": tally.failed}


@shared_task(acks_late=True)
def daily_cut_task() -> dict:
    return DunningService().run_daily_cut().as_dict()


@shared_task(acks_late=True)
def monthly_cut_task() -> dict:
    return DunningService().run_monthly_cut().as_dict()


@shared_task(acks_late=True)
def process_expired_commitments_task() -> dict:
    return PaymentCommitmentService().process_expired().as_dict()
