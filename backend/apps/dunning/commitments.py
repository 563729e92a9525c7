"""Payment commitments: operator-granted promise-to-pay dates."""
import logging
from dataclasses import dataclass
from datetime import date

from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from apps.billing.exceptions import BillingValidationError
from apps.billing.models import BillingAccount
from apps.billing.store import LedgerStore
from apps.dunning.services import RunTally, suspend_accounts
from apps.dunning.suspension import SuspensionService

logger = logging.getLogger(__name__)


def commitment_expired(account: BillingAccount, today: date) -> bool:
    commitment = account.payment_commitment_date
    return account.balance > 0 and commitment is not None and commitment < today


@dataclass
class CommitmentResult:
    account: BillingAccount
    reactivated: bool = False
    reactivation_error: str | None = None


class PaymentCommitmentService:
    """
    A live commitment (date not yet passed) keeps an account out of every
    cut run; creating one on a suspended account restores the service.
    """

    def __init__(
        self,
        store: LedgerStore | None = None,
        suspension: SuspensionService | None = None,
    ):
        self.store = store or LedgerStore()
        self._suspension = suspension

    @property
    def suspension(self) -> SuspensionService:
        if self._suspension is None:
            self._suspension = SuspensionService()
        return self._suspension

    def create_or_update(self, customer_id: int, commitment_date: date, notes: str = "") -> CommitmentResult:
        today = timezone.localdate()
        if commitment_date is None:
            raise BillingValidationError("Commitment date is required")
        if commitment_date <= today:
            raise BillingValidationError("Commitment date must be in the future")
        self.store.get_account(customer_id)

        with transaction.atomic():
            account = self.store.lock_account(customer_id, create=False)
            account.payment_commitment_date = commitment_date
            account.payment_commitment_notes = notes or ""
            account.save(update_fields=["payment_commitment_date", "payment_commitment_notes", "updated_at"])
            was_suspended = account.status == BillingAccount.Status.SUSPENDED

        logger.info("Payment commitment for customer %s set to %s", customer_id, commitment_date)
        result = CommitmentResult(account=account)
        if not was_suspended:
            return result

        try:
            outcome = self.suspension.reactivate_customer(
                customer_id,
                message=(
                    "Su servicio ha sido reactivado por su compromiso de pago "
                    f"hasta el {commitment_date:%d/%m/%Y}."
                ),
            )
        except Exception as e:
            logger.exception("Reactivation after commitment failed for customer %s", customer_id)
            result.reactivation_error = str(e)
        else:
            result.reactivated = outcome.changed
            if outcome.failed:
                result.reactivation_error = "; ".join(outcome.errors)
        result.account.refresh_from_db()
        return result

    def remove(self, customer_id: int) -> BillingAccount:
        """Clear the commitment; suspension state is left as it is."""
        self.store.get_account(customer_id)
        with transaction.atomic():
            account = self.store.lock_account(customer_id, create=False)
            account.payment_commitment_date = None
            account.payment_commitment_notes = ""
            account.save(update_fields=["payment_commitment_date", "payment_commitment_notes", "updated_at"])
        logger.info("Payment commitment removed for customer %s", customer_id)
        return account

    def get_active(
        self,
        customer_id: int | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> QuerySet[BillingAccount]:
        queryset = (
            BillingAccount.objects.select_related("customer")
            .filter(payment_commitment_date__gte=timezone.localdate())
            .exclude(status=BillingAccount.Status.CANCELLED)
        )
        if customer_id:
            queryset = queryset.filter(customer_id=customer_id)
        if date_from:
            queryset = queryset.filter(payment_commitment_date__gte=date_from)
        if date_to:
            queryset = queryset.filter(payment_commitment_date__lte=date_to)
        return queryset.order_by("payment_commitment_date", "customer_id")

    def process_expired(self, today: date | None = None) -> RunTally:
        """Suspend accounts whose commitment passed while they still owe money."""
        today = today or timezone.localdate()
        customer_ids = list(
            BillingAccount.objects.filter(
                payment_commitment_date__lt=today,
                balance__gt=0,
            )
            .exclude(status=BillingAccount.Status.SUSPENDED)
            .order_by("customer_id")
            .values_list("customer_id", flat=True)
        )
        tally = suspend_accounts(
            self.suspension,
            customer_ids,
            clear_commitment=True,
            reason="payment commitment expired",
            still_due=lambda account: commitment_expired(account, today),
        )
        logger.info(
            "Expired commitments: %s found, %s cut, %s failed, %s skipped",
            tally.total, tally.cut, tally.failed, tally.skipped,
        )
        return tally
