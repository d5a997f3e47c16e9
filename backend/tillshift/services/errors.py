# Overview: Error taxonomy shared by the sales, shift, stock and invoice services.

"""
Engine errors

Every error carries a human-readable message plus a `details` dict with the
ids and amounts an operator-facing message needs (expected vs actual, on hand
vs requested). Routes turn them into JSON using `http_status` and `code`.

All errors except TransactionFailedError are raised before anything is
written and can be retried with corrected input.
"""


class EngineError(Exception):
    """Base class for sales/shift engine errors."""
    http_status = 400

    def __init__(self, message: str, details: dict | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    @property
    def code(self) -> str:
        return type(self).__name__

    def to_dict(self) -> dict:
        return {"error": self.message, "code": self.code, "details": self.details}


class InvalidCartError(EngineError):
    """Bad quantity, price, discount or tax rate."""


class InvalidPaymentError(EngineError):
    """Payment entry with an unknown method or a non-positive amount."""


class InvalidAmountError(EngineError):
    """Negative or non-integer cash amount for a shift operation."""


class PaymentMismatchError(EngineError):
    """Sum of payments differs from the sale total."""

    def __init__(self, expected_cents: int, actual_cents: int):
        super().__init__(
            f"Payments total {actual_cents} but sale total is {expected_cents}",
            details={
                "expected_cents": expected_cents,
                "actual_cents": actual_cents,
                "difference_cents": actual_cents - expected_cents,
            },
        )
        self.expected_cents = expected_cents
        self.actual_cents = actual_cents


class InsufficientStockError(EngineError):
    """A stock decrement would take a product below zero."""
    http_status = 409

    def __init__(self, items: list[dict]):
        super().__init__("Insufficient stock", details={"items": items})
        self.items = items


class ProductNotFoundError(EngineError):
    http_status = 404


class NoActiveShiftError(EngineError):
    """Operator tried to sell without an open shift."""
    http_status = 409


class ShiftAlreadyOpenError(EngineError):
    http_status = 409


class ShiftNotFoundError(EngineError):
    http_status = 404


class ShiftClosedError(EngineError):
    """Sale applied to a shift that is no longer open."""
    http_status = 409


class ShiftNotOpenError(EngineError):
    """Close requested for a shift that is already closed."""
    http_status = 409


class SaleNotInShiftError(EngineError):
    http_status = 409


class SaleNotFoundError(EngineError):
    http_status = 404


class InvoiceSequenceError(EngineError):
    """Invoice number requested without an issue date."""


class PermissionDeniedError(EngineError):
    http_status = 403


class TransactionFailedError(EngineError):
    """
    Storage failure inside a commit/reverse/close unit.

    The unit has been rolled back; the underlying exception is chained as
    __cause__.
    """
    http_status = 500
