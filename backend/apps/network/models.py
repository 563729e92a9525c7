"""Network service bindings (PPPoE credentials and their current profile)."""
from auditlog.registry import auditlog
from django.db import models

from apps.core.models import TimestampedModel


class NetworkBinding(TimestampedModel):
    """A customer's credential on a network device, bound to a service profile."""

    customer = models.ForeignKey(
        "customers.Customer",
        on_delete=models.CASCADE,
        related_name="network_bindings",
    )
    username = models.CharField(
        max_length=100,
        unique=True,
        blank=True,
        null=True,
        help_text="Credential name on the network controller",
    )
    profile = models.CharField(
        max_length=100,
        blank=True,
        help_text="Profile currently applied on the network controller",
    )
    device_name = models.CharField(max_length=100, blank=True)
    is_active = models.BooleanField(default=True)
    deleted_at = models.DateTimeField(null=True, blank=True)

    class Meta:
        ordering = ["customer", "username"]

    def __str__(self):
        return f"{self.username or '(no credential)'} [{self.profile}]"


auditlog.register(NetworkBinding)
