"""Dunning evaluators: payment reminders and the daily and monthly cut runs."""
import logging
from dataclasses import dataclass, field
from datetime import date
from typing import Callable

from dateutil.relativedelta import relativedelta
from django.conf import settings
from django.db.models import Q, QuerySet
from django.utils import timezone

from apps.billing.models import BillingAccount
from apps.dunning.suspension import SuspensionOutcome, SuspensionService
from apps.notifications.gateway import NotificationGateway, get_notification_gateway

logger = logging.getLogger(__name__)


@dataclass
class RunTally:
    """Summary of one dunning run."""

    total: int = 0
    cut: int = 0
    failed: int = 0
    skipped: int = 0
    errors: list[str] = field(default_factory=list)

    def record(self, outcome: SuspensionOutcome):
        if not outcome.changed:
            self.skipped += 1
        elif outcome.failed:
            self.failed += 1
            self.errors.extend(f"customer {outcome.customer_id}: {e}" for e in outcome.errors)
        else:
            self.cut += 1

    def as_dict(self) -> dict:
        return {"total": self.total, "cut": self.cut, "failed": self.failed, "skipped": self.skipped}


@dataclass
class ReminderTally:
    ran: bool = False
    total: int = 0
    sent: int = 0
    failed: int = 0


def next_period_start(today: date) -> date:
    return (today + relativedelta(months=1)).replace(day=1)


def cut_candidates(today: date) -> QuerySet[BillingAccount]:
    """Active, auto-suspendable accounts that owe money and have no live commitment."""
    return (
        BillingAccount.objects.filter(
            status=BillingAccount.Status.ACTIVE,
            balance__gt=0,
            auto_suspend=True,
        )
        .filter(
            Q(payment_commitment_date__isnull=True)
            | Q(payment_commitment_date__lt=today)
        )
        .order_by("customer_id")
    )


def is_cut_due(account: BillingAccount, today: date) -> bool:
    """Row-level form of ``cut_candidates``, checked again under the account lock."""
    commitment = account.payment_commitment_date
    return (
        account.status == BillingAccount.Status.ACTIVE
        and account.balance > 0
        and account.auto_suspend
        and (commitment is None or commitment < today)
    )


def suspend_accounts(
    suspension: SuspensionService,
    customer_ids: list[int],
    clear_commitment: bool = False,
    reason: str = "",
    still_due: Callable[[BillingAccount], bool] | None = None,
) -> RunTally:
    """Suspend customers one by one; a failing customer never stops the run."""
    tally = RunTally(total=len(customer_ids))
    for customer_id in customer_ids:
        try:
            outcome = suspension.suspend_customer(
                customer_id,
                clear_commitment=clear_commitment,
                reason=reason,
                still_due=still_due,
            )
        except Exception as e:
            logger.exception("Suspension of customer %s failed", customer_id)
            tally.failed += 1
            tally.errors.append(f"customer {customer_id}: {e}")
            continue
        tally.record(outcome)
    return tally


class DunningService:
    """Time-triggered evaluators; all cuts go through SuspensionService."""

    def __init__(
        self,
        suspension: SuspensionService | None = None,
        notifier: NotificationGateway | None = None,
    ):
        self.notifier = notifier or get_notification_gateway()
        self.suspension = suspension or SuspensionService(notifier=self.notifier)

    def send_payment_reminders(self, today: date | None = None, force: bool = False) -> ReminderTally:
        """
        Remind every account that owes money before the next period starts.

        Runs only within DUNNING_REMINDER_DAYS_BEFORE days of the next period
        unless forced. Purely informational: no state changes.
        """
        today = today or timezone.localdate()
        cut_date = next_period_start(today)
        days_left = (cut_date - today).days
        if not force and days_left > settings.DUNNING_REMINDER_DAYS_BEFORE:
            logger.debug("Reminders not due: %s days to %s", days_left, cut_date)
            return ReminderTally()

        tally = ReminderTally(ran=True)
        accounts = BillingAccount.objects.filter(balance__gt=0).exclude(
            status=BillingAccount.Status.CANCELLED,
        ).order_by("customer_id")
        symbol = settings.BILLING_CURRENCY_SYMBOL
        for account in accounts:
            tally.total += 1
            text = (
                f"Recordatorio: tiene un saldo pendiente de {symbol} {account.balance:.2f}. "
                f"Evite el corte del servicio pagando antes del {cut_date:%d/%m/%Y}."
            )
            try:
                self.notifier.send(account.customer_id, text, message_type="reminder")
                tally.sent += 1
            except Exception as e:
                logger.warning("Reminder to customer %s failed: %s", account.customer_id, e)
                tally.failed += 1

        logger.info("Payment reminders: %s sent, %s failed of %s", tally.sent, tally.failed, tally.total)
        return tally

    def run_daily_cut(self, today: date | None = None) -> RunTally:
        return self._run_cut("daily cut", today)

    def run_monthly_cut(self, today: date | None = None) -> RunTally:
        return self._run_cut("monthly cut", today)

    def _run_cut(self, trigger: str, today: date | None) -> RunTally:
        today = today or timezone.localdate()
        customer_ids = list(cut_candidates(today).values_list("customer_id", flat=True))
        tally = suspend_accounts(
            self.suspension,
            customer_ids,
            reason=trigger,
            still_due=lambda account: is_cut_due(account, today),
        )
        logger.info(
            "Dunning %s: %s candidates, %s cut, %s failed, %s skipped",
            trigger, tally.total, tally.cut, tally.failed, tally.skipped,
        )
        return tally
