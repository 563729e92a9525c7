import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("customers", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Plan",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=100, unique=True)),
                ("description", models.TextField(blank=True)),
                ("monthly_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("download_speed_mbps", models.PositiveIntegerField(blank=True, null=True)),
                ("upload_speed_mbps", models.PositiveIntegerField(blank=True, null=True)),
                ("network_profile_name", models.CharField(help_text="Profile applied on the network controller while the service is active", max_length=100)),
                ("is_active", models.BooleanField(default=True)),
            ],
            options={
                "ordering": ["monthly_price", "name"],
            },
        ),
        migrations.CreateModel(
            name="CustomerPlan",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("status", models.CharField(choices=[("active", "Active"), ("suspended", "Suspended"), ("cancelled", "Cancelled")], default="active", max_length=10)),
                ("start_date", models.DateField()),
                ("end_date", models.DateField(blank=True, null=True)),
                ("notes", models.TextField(blank=True)),
                ("customer", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="customer_plans", to="customers.customer")),
                ("plan", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="subscriptions", to="subscriptions.plan")),
            ],
            options={
                "ordering": ["-start_date", "-id"],
                "indexes": [models.Index(fields=["customer", "status"], name="custplan_customer_status_idx")],
            },
        ),
    ]
