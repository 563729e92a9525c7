"""Billing errors.

All of them are ``ValueError`` subclasses so API layers can report them
as plain business errors.
"""


class BillingError(ValueError):
    """Base exception for billing operations."""
    pass


class BillingValidationError(BillingError):
    """Input rejected before anything was written."""
    pass


class BusinessRuleViolation(BillingError):
    """A rule checked inside the transaction failed; the transaction is rolled back."""
    pass


class OverlappingBillingPeriodError(BusinessRuleViolation):
    """The customer already has a live invoice overlapping the period."""

    def __init__(self, message: str, invoice_id: int | None = None):
        super().__init__(message)
        self.invoice_id = invoice_id


class NothingToBillError(BusinessRuleViolation):
    """Available credit covers the whole charge."""
    pass


class PaymentExceedsBalanceError(BusinessRuleViolation):
    """The payment is larger than what is owed."""
    pass


class AdvancePaymentConflictError(BusinessRuleViolation):
    """A pending advance allocation already exists for the month."""
    pass


class AdvancePaymentAlreadyAppliedError(BusinessRuleViolation):
    """An advance payment with applied months cannot be cancelled."""
    pass


class NotFoundError(BillingError):
    """A referenced record does not exist."""
    pass


class CustomerNotFoundError(NotFoundError):
    pass


class BillingAccountNotFoundError(NotFoundError):
    pass


class InvoiceNotFoundError(NotFoundError):
    pass


class PaymentNotFoundError(NotFoundError):
    pass


class AdvancePaymentNotFoundError(NotFoundError):
    pass
