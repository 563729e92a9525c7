import django.db.models.deletion
import django.utils.timezone
from decimal import Decimal
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("customers", "0001_initial"),
        ("subscriptions", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="BillingAccount",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("balance", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("credit_limit", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("status", models.CharField(choices=[("active", "Active"), ("suspended", "Suspended"), ("cancelled", "Cancelled")], default="active", max_length=10)),
                ("billing_cycle", models.PositiveSmallIntegerField(default=1, help_text="Day of the month the billing period starts")),
                ("auto_suspend", models.BooleanField(default=True)),
                ("suspended_at", models.DateTimeField(blank=True, null=True)),
                ("payment_commitment_date", models.DateField(blank=True, help_text="Promise-to-pay date; blocks automatic suspension while not passed", null=True)),
                ("payment_commitment_notes", models.TextField(blank=True)),
                ("last_payment_date", models.DateTimeField(blank=True, null=True)),
                ("customer", models.OneToOneField(on_delete=django.db.models.deletion.PROTECT, related_name="billing_account", to="customers.customer")),
            ],
            options={
                "ordering": ["customer_id"],
            },
        ),
        migrations.CreateModel(
            name="DocumentSequence",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("prefix", models.CharField(max_length=10, unique=True)),
                ("next_counter", models.PositiveIntegerField(default=1)),
                ("last_reset_year", models.PositiveIntegerField(blank=True, null=True)),
            ],
            options={
                "abstract": False,
            },
        ),
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("invoice_number", models.CharField(max_length=30, unique=True)),
                ("kind", models.CharField(choices=[("service", "Service"), ("standalone", "Standalone payment")], default="service", max_length=12)),
                ("period_start", models.DateField()),
                ("period_end", models.DateField()),
                ("issue_date", models.DateField()),
                ("due_date", models.DateField()),
                ("subtotal", models.DecimalField(decimal_places=2, max_digits=12)),
                ("tax", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("discount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), max_digits=12)),
                ("total", models.DecimalField(decimal_places=2, max_digits=12)),
                ("balance_due", models.DecimalField(decimal_places=2, max_digits=12)),
                ("currency", models.CharField(max_length=3)),
                ("status", models.CharField(choices=[("pending", "Pending"), ("partial", "Partially paid"), ("paid", "Paid"), ("overdue", "Overdue"), ("cancelled", "Cancelled"), ("void", "Void")], default="pending", max_length=10)),
                ("notes", models.TextField(blank=True)),
                ("created_by", models.CharField(blank=True, max_length=150)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="invoices", to="billing.billingaccount")),
                ("customer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="invoices", to="customers.customer")),
            ],
            options={
                "ordering": ["-issue_date", "-id"],
                "indexes": [
                    models.Index(fields=["customer", "period_start", "period_end"], name="invoice_customer_period_idx"),
                    models.Index(fields=["status", "due_date"], name="invoice_status_due_idx"),
                ],
            },
        ),
        migrations.CreateModel(
            name="InvoiceItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("position", models.PositiveSmallIntegerField(default=0)),
                ("description", models.CharField(max_length=255)),
                ("quantity", models.DecimalField(decimal_places=2, default=Decimal("1"), max_digits=8)),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("line_total", models.DecimalField(decimal_places=2, max_digits=12)),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="billing.invoice")),
                ("plan", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="invoice_items", to="subscriptions.plan")),
            ],
            options={
                "ordering": ["position", "id"],
            },
        ),
        migrations.CreateModel(
            name="Payment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("payment_number", models.CharField(max_length=30, unique=True)),
                ("amount", models.DecimalField(decimal_places=2, help_text="Money collected, net of discount", max_digits=12)),
                ("discount", models.DecimalField(decimal_places=2, default=Decimal("0.00"), help_text="Debt forgiven together with this payment", max_digits=12)),
                ("currency", models.CharField(max_length=3)),
                ("method", models.CharField(choices=[("cash", "Cash"), ("bank_transfer", "Bank transfer"), ("credit_card", "Credit card"), ("debit_card", "Debit card"), ("check", "Check"), ("digital_wallet", "Digital wallet")], max_length=20)),
                ("reference", models.CharField(blank=True, max_length=255)),
                ("status", models.CharField(choices=[("completed", "Completed"), ("cancelled", "Cancelled")], default="completed", max_length=10)),
                ("payment_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("processed_at", models.DateTimeField(default=django.utils.timezone.now)),
                ("notes", models.TextField(blank=True)),
                ("receipt_location", models.CharField(blank=True, max_length=500)),
                ("recorded_by", models.CharField(blank=True, max_length=150)),
                ("voided_at", models.DateTimeField(blank=True, null=True)),
                ("void_reason", models.TextField(blank=True)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="billing.billingaccount")),
                ("customer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="customers.customer")),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="payments", to="billing.invoice")),
            ],
            options={
                "ordering": ["-payment_date", "-id"],
            },
        ),
        migrations.CreateModel(
            name="LedgerEntry",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("entry_type", models.CharField(choices=[("debit", "Debit"), ("credit", "Credit")], max_length=6)),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("balance_delta", models.DecimalField(decimal_places=2, help_text="Signed change applied to the account balance (0 for memo entries)", max_digits=12)),
                ("balance_after", models.DecimalField(decimal_places=2, max_digits=12)),
                ("description", models.CharField(max_length=255)),
                ("reference_type", models.CharField(choices=[("invoice", "Invoice"), ("payment", "Payment"), ("payment_void", "Payment void"), ("advance_payment", "Advance payment"), ("advance_payment_cancellation", "Advance payment cancellation"), ("advance_payment_application", "Advance payment application")], max_length=30)),
                ("reference_id", models.CharField(blank=True, max_length=50)),
                ("transaction_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="ledger_entries", to="billing.billingaccount")),
                ("invoice", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="ledger_entries", to="billing.invoice")),
                ("payment", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="ledger_entries", to="billing.payment")),
            ],
            options={
                "verbose_name_plural": "Ledger entries",
                "ordering": ["id"],
            },
        ),
    ]
