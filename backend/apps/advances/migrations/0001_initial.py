import django.db.models.deletion
import django.utils.timezone
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("customers", "0001_initial"),
        ("billing", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="AdvancePayment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("total_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("months_count", models.PositiveSmallIntegerField()),
                ("amount_per_month", models.DecimalField(decimal_places=2, max_digits=12)),
                ("method", models.CharField(max_length=20)),
                ("reference", models.CharField(blank=True, max_length=255)),
                ("notes", models.TextField(blank=True)),
                ("payment_date", models.DateTimeField(default=django.utils.timezone.now)),
                ("status", models.CharField(choices=[("active", "Active"), ("cancelled", "Cancelled")], default="active", max_length=10)),
                ("recorded_by", models.CharField(blank=True, max_length=150)),
                ("cancelled_at", models.DateTimeField(blank=True, null=True)),
                ("account", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="advance_payments", to="billing.billingaccount")),
                ("customer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="advance_payments", to="customers.customer")),
            ],
            options={
                "ordering": ["-payment_date", "-id"],
            },
        ),
        migrations.CreateModel(
            name="AdvanceMonthlyPayment",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("month", models.PositiveSmallIntegerField()),
                ("year", models.PositiveSmallIntegerField()),
                ("amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("status", models.CharField(choices=[("pending", "Pending"), ("applied", "Applied"), ("cancelled", "Cancelled")], default="pending", max_length=10)),
                ("applied_at", models.DateTimeField(blank=True, null=True)),
                ("advance_payment", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="monthly_payments", to="advances.advancepayment")),
                ("applied_to_invoice", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="advance_allocations", to="billing.invoice")),
                ("customer", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="advance_monthly_payments", to="customers.customer")),
            ],
            options={
                "ordering": ["year", "month", "id"],
                "constraints": [
                    models.UniqueConstraint(condition=models.Q(("status", "pending")), fields=("customer", "month", "year"), name="unique_pending_advance_per_customer_month"),
                ],
            },
        ),
    ]
