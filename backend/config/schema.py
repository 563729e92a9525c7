"""Root GraphQL schema."""
import strawberry

from apps.advances.schema import AdvanceMutation, AdvanceQuery
from apps.billing.schema import BillingMutation, BillingQuery
from apps.customers.schema import CustomerQuery
from apps.dunning.schema import DunningMutation, DunningQuery


@strawberry.type
class Query(
    CustomerQuery,
    BillingQuery,
    AdvanceQuery,
    DunningQuery,
):
    @strawberry.field
    def health(self) -> str:
        return "ok"


@strawberry.type
class Mutation(BillingMutation, AdvanceMutation, DunningMutation):
    pass


schema = strawberry.Schema(
    query=Query,
    mutation=Mutation,
)
