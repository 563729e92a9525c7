"""Money and billing-period helpers."""
from calendar import monthrange
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

CENT = Decimal("0.01")


def to_money(value) -> Decimal:
    """Coerce to a Decimal rounded half-up to cents."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First and last day of a calendar month."""
    return date(year, month, 1), date(year, month, monthrange(year, month)[1])


def prorate(monthly_price: Decimal, start_date: date, period_start: date, period_end: date) -> Decimal:
    """
    Charge for a plan within a billing period.

    Plans that started before the period pay the full price. Plans starting
    inside the period pay for the days from their start to the period end,
    both inclusive. Plans starting after the period pay nothing.
    """
    if start_date < period_start:
        return to_money(monthly_price)
    if start_date > period_end:
        return Decimal("0.00")
    days_in_period = (period_end - period_start).days + 1
    days_remaining = (period_end - start_date).days + 1
    return to_money(Decimal(monthly_price) * days_remaining / days_in_period)
