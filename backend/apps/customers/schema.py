"""GraphQL schema for customers."""
from typing import List

import strawberry
import strawberry_django
from django.db.models import Q
from strawberry import auto

from .models import Customer


@strawberry_django.type(Customer)
class CustomerType:
    id: auto
    code: auto
    name: auto
    document_number: auto
    phone: auto
    email: auto
    address: auto
    status: str
    created_at: auto


@strawberry.type
class CustomerQuery:
    @strawberry.field
    def customers(self, search: str | None = None) -> List[CustomerType]:
        """List customers, optionally filtered by code, name or phone."""
        queryset = Customer.objects.all()
        if search:
            queryset = queryset.filter(
                Q(name__icontains=search)
                | Q(code__icontains=search)
                | Q(phone__icontains=search)
            )
        return list(queryset)

    @strawberry.field
    def customer(self, id: strawberry.ID) -> CustomerType | None:
        return Customer.objects.filter(id=id).first()
