"""GraphQL schema for commitments, suspension and the dunning runs."""
from datetime import date
from typing import List

import strawberry
from strawberry.types import Info

from apps.billing.schema import BillingAccountType, convert_account
from apps.dunning.commitments import PaymentCommitmentService
from apps.dunning.services import DunningService, RunTally
from apps.dunning.suspension import SuspensionOutcome, SuspensionService


@strawberry.type
class SuspensionResultType:
    customer_id: int
    changed: bool
    success_count: int
    failed_count: int
    skipped_count: int
    notification_sent: bool
    errors: List[str]


@strawberry.type
class RunTallyType:
    total: int
    cut: int
    failed: int
    skipped: int
    errors: List[str]


@strawberry.type
class ReminderRunType:
    ran: bool
    total: int
    sent: int
    failed: int


def _convert_outcome(outcome: SuspensionOutcome) -> SuspensionResultType:
    return SuspensionResultType(
        customer_id=outcome.customer_id,
        changed=outcome.changed,
        success_count=outcome.success,
        failed_count=outcome.failed,
        skipped_count=outcome.skipped,
        notification_sent=outcome.notification_sent,
        errors=outcome.errors,
    )


def _convert_tally(tally: RunTally) -> RunTallyType:
    return RunTallyType(
        total=tally.total,
        cut=tally.cut,
        failed=tally.failed,
        skipped=tally.skipped,
        errors=tally.errors,
    )


@strawberry.input
class PaymentCommitmentInput:
    customer_id: int
    commitment_date: date
    notes: str = ""


@strawberry.type
class CommitmentResult:
    account: BillingAccountType | None = None
    reactivated: bool = False
    reactivation_error: str | None = None
    success: bool = False
    error: str | None = None


@strawberry.type
class DunningQuery:
    @strawberry.field
    def active_commitments(
        self,
        customer_id: int | None = None,
        date_from: date | None = None,
        date_to: date | None = None,
    ) -> List[BillingAccountType]:
        accounts = PaymentCommitmentService().get_active(customer_id, date_from, date_to)
        return [convert_account(account) for account in accounts]


@strawberry.type
class DunningMutation:
    @strawberry.mutation
    def create_payment_commitment(
        self, info: Info, input: PaymentCommitmentInput
    ) -> CommitmentResult:
        """Grant a promise-to-pay date; a suspended customer is restored."""
        try:
            result = PaymentCommitmentService().create_or_update(
                input.customer_id, input.commitment_date, notes=input.notes
            )
        except ValueError as e:
            return CommitmentResult(error=str(e))
        return CommitmentResult(
            account=convert_account(result.account),
            reactivated=result.reactivated,
            reactivation_error=result.reactivation_error,
            success=True,
        )

    @strawberry.mutation
    def remove_payment_commitment(self, info: Info, customer_id: int) -> CommitmentResult:
        try:
            account = PaymentCommitmentService().remove(customer_id)
        except ValueError as e:
            return CommitmentResult(error=str(e))
        return CommitmentResult(account=convert_account(account), success=True)

    @strawberry.mutation
    def suspend_customer(self, info: Info, customer_id: int) -> SuspensionResultType:
        outcome = SuspensionService().suspend_customer(
            customer_id, reason=f"manual suspension by {info.context.operator}"
        )
        return _convert_outcome(outcome)

    @strawberry.mutation
    def reactivate_customer(self, info: Info, customer_id: int) -> SuspensionResultType:
        return _convert_outcome(SuspensionService().reactivate_customer(customer_id))

    @strawberry.mutation
    def run_daily_cut(self, info: Info) -> RunTallyType:
        return _convert_tally(DunningService().run_daily_cut())

    @strawberry.mutation
    def run_monthly_cut(self, info: Info) -> RunTallyType:
        return _convert_tally(DunningService().run_monthly_cut())

    @strawberry.mutation
    def send_payment_reminders(self, info: Info, force: bool = False) -> ReminderRunType:
        tally = DunningService().send_payment_reminders(force=force)
        return ReminderRunType(ran=tally.ran, total=tally.total, sent=tally.sent, failed=tally.failed)

    @strawberry.mutation
    def process_expired_commitments(self, info: Info) -> RunTallyType:
        return _convert_tally(PaymentCommitmentService().process_expired())
