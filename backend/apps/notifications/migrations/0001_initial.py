import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("customers", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="NotificationLog",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("channel", models.CharField(choices=[("whatsapp", "WhatsApp")], default="whatsapp", max_length=20)),
                ("message_type", models.CharField(blank=True, help_text="e.g. 'receipt', 'reminder', 'suspension', 'reactivation'", max_length=30)),
                ("phone", models.CharField(blank=True, max_length=20)),
                ("content", models.TextField()),
                ("attachment", models.CharField(blank=True, max_length=500)),
                ("status", models.CharField(choices=[("sent", "Sent"), ("failed", "Failed")], max_length=10)),
                ("error", models.TextField(blank=True)),
                ("customer", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="notification_logs", to="customers.customer")),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
