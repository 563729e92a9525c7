"""Management command to run a scheduled billing or dunning job by hand."""

from django.core.management.base import BaseCommand, CommandError

from apps.advances.services import AdvancePaymentService
from apps.billing.invoicing import InvoiceGenerator
from apps.dunning.commitments import PaymentCommitmentService
from apps.dunning.services import DunningService

JOBS = [
    "generate-debt",
    "mark-overdue",
    "apply-advances",
    "reminders",
    "daily-cut",
    "monthly-cut",
    "expired-commitments",
]


class Command(BaseCommand):
    help = "Run one of the scheduled billing/dunning jobs immediately"

    def add_arguments(self, parser):
        parser.add_argument("job", choices=JOBS, help="Job to run")
        parser.add_argument("--year", type=int, help="Billing year (generate-debt)")
        parser.add_argument("--month", type=int, help="Billing month 1-12 (generate-debt)")
        parser.add_argument(
            "--force",
            action="store_true",
            help="Send reminders even outside the reminder window",
        )

    def handle(self, *args, **options):
        job = options["job"]

        if job == "generate-debt":
            month = options.get("month")
            if month is not None and not 1 <= month <= 12:
                raise CommandError("--month must be between 1 and 12")
            outcomes = InvoiceGenerator().generate_monthly_debt(year=options.get("year"), month=month)
            for outcome in outcomes:
                line = f"customer {outcome.customer_id}: {outcome.status.value}"
                if outcome.invoice is not None:
                    line += f" ({outcome.invoice.invoice_number})"
                if outcome.error:
                    line += f" - {outcome.error}"
                self.stdout.write(line)
            self.stdout.write(self.style.SUCCESS(f"Processed {len(outcomes)} customers"))

        elif job == "mark-overdue":
            count = InvoiceGenerator().mark_overdue_invoices()
            self.stdout.write(self.style.SUCCESS(f"Marked {count} invoices as overdue"))

        elif job == "apply-advances":
            result = AdvancePaymentService().apply_to_pending_invoices()
            self.stdout.write(self.style.SUCCESS(
                f"Applied {result.applied_count} advance credits over {result.total_invoices} invoices"
            ))

        elif job == "reminders":
            tally = DunningService().send_payment_reminders(force=options["force"])
            if not tally.ran:
                self.stdout.write("Reminders are not due today (use --force)")
                return
            self.stdout.write(self.style.SUCCESS(f"Sent {tally.sent} of {tally.total} reminders"))

        else:
            if job == "daily-cut":
                tally = DunningService().run_daily_cut()
            elif job == "monthly-cut":
                tally = DunningService().run_monthly_cut()
            else:
                tally = PaymentCommitmentService().process_expired()
            self.stdout.write(self.style.SUCCESS(
                f"{tally.total} accounts: {tally.cut} cut, {tally.failed} failed, {tally.skipped} skipped"
            ))
            for error in tally.errors:
                self.stderr.write(error)
