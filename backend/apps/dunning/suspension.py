"""Idempotent suspend / reactivate primitive shared by every dunning trigger."""
import logging
from dataclasses import dataclass, field
from typing import Callable

from django.conf import settings
from django.db import transaction
from django.utils import timezone

from apps.billing.models import BillingAccount
from apps.network.controller import NetworkProfileController, get_network_controller, is_cut_profile
from apps.network.models import NetworkBinding
from apps.notifications.gateway import NotificationGateway, get_notification_gateway
from apps.subscriptions.directory import SubscriptionDirectory
from apps.subscriptions.models import CustomerPlan

logger = logging.getLogger(__name__)


@dataclass
class SuspensionOutcome:
    """Tally of one suspend or reactivate call."""

    customer_id: int
    changed: bool = False
    success: int = 0
    failed: int = 0
    skipped: int = 0
    notification_sent: bool = False
    errors: list[str] = field(default_factory=list)


class SuspensionService:
    """
    Cuts and restores a customer's service.

    The account status is compared and flipped inside one transaction while
    the account row is locked, so overlapping triggers act at most once.
    Network and notification calls only happen after that transaction has
    committed; their failures are counted in the outcome, never raised.
    """

    def __init__(
        self,
        controller: NetworkProfileController | None = None,
        notifier: NotificationGateway | None = None,
        directory: SubscriptionDirectory | None = None,
    ):
        self.controller = controller or get_network_controller()
        self.notifier = notifier or get_notification_gateway()
        self.directory = directory or SubscriptionDirectory()

    def suspend_customer(
        self,
        customer_id: int,
        clear_commitment: bool = False,
        reason: str = "overdue balance",
        still_due: Callable[[BillingAccount], bool] | None = None,
    ) -> SuspensionOutcome:
        """
        Cut an active customer.

        ``still_due`` is evaluated on the locked account row; automatic runs
        pass the condition they selected the customer with, so a payment or
        commitment that landed after the selection leaves the account alone.
        """
        outcome = SuspensionOutcome(customer_id=customer_id)

        with transaction.atomic():
            account = BillingAccount.objects.select_for_update().filter(customer_id=customer_id).first()
            if account is None or account.status != BillingAccount.Status.ACTIVE:
                logger.info("Customer %s is not active, suspension skipped", customer_id)
                return outcome
            if still_due is not None and not still_due(account):
                logger.info(
                    "Customer %s no longer meets the %s condition, suspension skipped",
                    customer_id, reason,
                )
                return outcome

            account.status = BillingAccount.Status.SUSPENDED
            account.suspended_at = timezone.now()
            update_fields = ["status", "suspended_at", "updated_at"]
            if clear_commitment:
                account.payment_commitment_date = None
                account.payment_commitment_notes = ""
                update_fields += ["payment_commitment_date", "payment_commitment_notes"]
            account.save(update_fields=update_fields)

            CustomerPlan.objects.filter(
                customer_id=customer_id,
                status=CustomerPlan.Status.ACTIVE,
            ).update(status=CustomerPlan.Status.SUSPENDED, updated_at=timezone.now())

        outcome.changed = True
        logger.info("Customer %s suspended (%s)", customer_id, reason)

        cut_profile = settings.NETWORK_CUT_PROFILE
        for binding in self.directory.active_bindings(customer_id):
            self._switch_profile(binding, cut_profile, outcome)

        self._notify(
            outcome,
            "Su servicio ha sido suspendido por falta de pago. "
            "Regularice su saldo para restablecerlo.",
            "suspension",
        )
        return outcome

    def reactivate_customer(self, customer_id: int, message: str | None = None) -> SuspensionOutcome:
        """
        Restore service: flip SUSPENDED back to ACTIVE and switch every binding
        still on a cut profile to the profile of the customer's current plan.

        Bindings are checked even when the account is already active, so
        calling this again retries bindings that failed before.
        """
        outcome = SuspensionOutcome(customer_id=customer_id)

        with transaction.atomic():
            account = BillingAccount.objects.select_for_update().filter(customer_id=customer_id).first()
            if account is None or account.status == BillingAccount.Status.CANCELLED:
                logger.info("Customer %s has no reactivatable account", customer_id)
                return outcome

            if account.status == BillingAccount.Status.SUSPENDED:
                account.status = BillingAccount.Status.ACTIVE
                account.suspended_at = None
                account.save(update_fields=["status", "suspended_at", "updated_at"])
                CustomerPlan.objects.filter(
                    customer_id=customer_id,
                    status=CustomerPlan.Status.SUSPENDED,
                ).update(status=CustomerPlan.Status.ACTIVE, updated_at=timezone.now())
                outcome.changed = True
                logger.info("Customer %s reactivated", customer_id)

        target_profile = self.directory.current_profile(customer_id)
        for binding in self.directory.active_bindings(customer_id):
            if not is_cut_profile(binding.profile):
                continue
            if not target_profile:
                outcome.skipped += 1
                outcome.errors.append(f"{binding.username}: customer has no plan profile to restore")
                continue
            self._switch_profile(binding, target_profile, outcome)

        if outcome.changed:
            self._notify(
                outcome,
                message or "Su servicio ha sido reactivado. Gracias por su pago.",
                "reactivation",
            )
        return outcome

    def _switch_profile(self, binding: NetworkBinding, profile_name: str, outcome: SuspensionOutcome):
        if not binding.username:
            outcome.skipped += 1
            return
        try:
            result = self.controller.change_profile(binding.username, profile_name)
        except Exception as e:
            logger.exception("Profile change to %s failed for %s", profile_name, binding.username)
            outcome.failed += 1
            outcome.errors.append(f"{binding.username}: {e}")
            return

        if not result.success:
            logger.warning(
                "Profile change to %s failed for %s: %s",
                profile_name, binding.username, result.error,
            )
            outcome.failed += 1
            outcome.errors.append(f"{binding.username}: {result.error}")
            return

        binding.profile = profile_name
        binding.save(update_fields=["profile", "updated_at"])
        outcome.success += 1

    def _notify(self, outcome: SuspensionOutcome, text: str, message_type: str):
        try:
            self.notifier.send(outcome.customer_id, text, message_type=message_type)
            outcome.notification_sent = True
        except Exception as e:
            logger.warning(
                "Could not send %s notice to customer %s: %s",
                message_type, outcome.customer_id, e,
            )
            outcome.errors.append(f"notification: {e}")
