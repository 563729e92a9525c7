"""GraphQL schema for advance payments."""
from datetime import date, datetime
from decimal import Decimal
from typing import List

import strawberry
from strawberry.types import Info

from apps.advances.models import AdvanceMonthlyPayment, AdvancePayment
from apps.advances.services import AdvancePaymentService, MonthAllocation


@strawberry.type
class AdvanceMonthlyPaymentType:
    id: int
    month: int
    year: int
    amount: Decimal
    status: str
    applied_at: datetime | None
    applied_to_invoice_id: int | None


@strawberry.type
class AdvancePaymentType:
    id: int
    customer_id: int
    customer_name: str
    total_amount: Decimal
    months_count: int
    amount_per_month: Decimal
    method: str
    reference: str
    notes: str
    payment_date: datetime
    status: str
    recorded_by: str
    monthly_payments: List[AdvanceMonthlyPaymentType]


def _convert_monthly(monthly: AdvanceMonthlyPayment) -> AdvanceMonthlyPaymentType:
    return AdvanceMonthlyPaymentType(
        id=monthly.id,
        month=monthly.month,
        year=monthly.year,
        amount=monthly.amount,
        status=monthly.status,
        applied_at=monthly.applied_at,
        applied_to_invoice_id=monthly.applied_to_invoice_id,
    )


def _convert_advance(advance: AdvancePayment) -> AdvancePaymentType:
    return AdvancePaymentType(
        id=advance.id,
        customer_id=advance.customer_id,
        customer_name=advance.customer.name,
        total_amount=advance.total_amount,
        months_count=advance.months_count,
        amount_per_month=advance.amount_per_month,
        method=advance.method,
        reference=advance.reference,
        notes=advance.notes,
        payment_date=advance.payment_date,
        status=advance.status,
        recorded_by=advance.recorded_by,
        monthly_payments=[
            _convert_monthly(m) for m in advance.monthly_payments.order_by("year", "month")
        ],
    )


@strawberry.input
class MonthAllocationInput:
    month: int
    year: int
    amount: Decimal


@strawberry.input
class CreateAdvancePaymentInput:
    customer_id: int
    allocations: List[MonthAllocationInput]
    method: str
    reference: str = ""
    notes: str = ""
    payment_date: datetime | None = None


@strawberry.type
class AdvancePaymentResult:
    advance_payment: AdvancePaymentType | None = None
    success: bool = False
    error: str | None = None


@strawberry.type
class ApplyAdvancesResult:
    applied_count: int = 0
    total_invoices: int = 0
    success: bool = False
    error: str | None = None


@strawberry.type
class AdvanceQuery:
    @strawberry.field
    def advance_payments(self, customer_id: int | None = None, status: str | None = None) -> List[AdvancePaymentType]:
        service = AdvancePaymentService()
        return [_convert_advance(a) for a in service.list_advance_payments(customer_id, status)]


@strawberry.type
class AdvanceMutation:
    @strawberry.mutation
    def create_advance_payment(
        self, info: Info, input: CreateAdvancePaymentInput
    ) -> AdvancePaymentResult:
        allocations = [
            MonthAllocation(month=a.month, year=a.year, amount=a.amount)
            for a in input.allocations
        ]
        try:
            result = AdvancePaymentService().create_advance_payment(
                input.customer_id,
                allocations,
                input.method,
                reference=input.reference,
                notes=input.notes,
                payment_date=input.payment_date,
                recorded_by=info.context.operator,
            )
        except ValueError as e:
            return AdvancePaymentResult(error=str(e))
        return AdvancePaymentResult(advance_payment=_convert_advance(result.advance_payment), success=True)

    @strawberry.mutation
    def delete_advance_payment(self, info: Info, id: int) -> AdvancePaymentResult:
        try:
            advance = AdvancePaymentService().delete_advance_payment(id)
        except ValueError as e:
            return AdvancePaymentResult(error=str(e))
        return AdvancePaymentResult(advance_payment=_convert_advance(advance), success=True)

    @strawberry.mutation
    def apply_advance_payments(self, info: Info, today: date | None = None) -> ApplyAdvancesResult:
        """Match pending advance credit against pending invoices now."""
        result = AdvancePaymentService().apply_to_pending_invoices(today=today)
        return ApplyAdvancesResult(
            applied_count=result.applied_count,
            total_invoices=result.total_invoices,
            success=True,
        )
