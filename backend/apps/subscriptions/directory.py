"""Read-only lookups of plans and network bindings used by billing and dunning."""
from django.db.models import QuerySet

from apps.customers.models import Customer
from apps.network.models import NetworkBinding
from apps.subscriptions.models import CustomerPlan


class SubscriptionDirectory:
    """Answers which plans and bindings a customer currently has."""

    def billable_customers(self) -> QuerySet[Customer]:
        """Active customers with at least one active plan."""
        return (
            Customer.objects.filter(
                status=Customer.Status.ACTIVE,
                customer_plans__status=CustomerPlan.Status.ACTIVE,
            )
            .distinct()
            .order_by("id")
        )

    def active_plans(self, customer_id: int) -> QuerySet[CustomerPlan]:
        return (
            CustomerPlan.objects.filter(
                customer_id=customer_id,
                status=CustomerPlan.Status.ACTIVE,
            )
            .select_related("plan")
            .order_by("start_date", "id")
        )

    def current_profile(self, customer_id: int) -> str | None:
        """Network profile implied by the customer's most recent live plan."""
        customer_plan = (
            CustomerPlan.objects.filter(customer_id=customer_id)
            .exclude(status=CustomerPlan.Status.CANCELLED)
            .select_related("plan")
            .order_by("-start_date", "-id")
            .first()
        )
        if customer_plan is None:
            return None
        return customer_plan.plan.network_profile_name or None

    def active_bindings(self, customer_id: int) -> QuerySet[NetworkBinding]:
        return NetworkBinding.objects.filter(
            customer_id=customer_id,
            is_active=True,
            deleted_at__isnull=True,
        ).order_by("id")
