"""Custom exceptions for the billing engine."""

from __future__ import annotations

from typing import Any


class BillingError(Exception):
    """Base exception for the billing engine.

    Every subclass carries a stable ``code`` plus the minimal structured
    context the API layer needs to build an error envelope.
    """

    code = "billing_error"

    def __init__(
        self,
        message: str,
        *,
        entity: str | None = None,
        entity_id: str | None = None,
        field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.entity = entity
        self.entity_id = entity_id
        self.field = field

    def to_dict(self) -> dict[str, Any]:
        payload: dict[str, Any] = {"error_code": self.code, "detail": self.message}
        if self.entity is not None:
            payload["entity"] = self.entity
        if self.entity_id is not None:
            payload["entity_id"] = self.entity_id
        if self.field is not None:
            payload["field"] = self.field
        return payload


class ValidationError(BillingError):
    """Raised when input is malformed. Nothing has been mutated."""

    code = "validation_error"


class NotFoundError(BillingError):
    """Raised when a resource is not found."""

    code = "not_found"


class PaymentNotFoundError(NotFoundError):
    code = "payment_not_found"


class InvalidTransitionError(BillingError):
    """Raised when a disallowed state transition is attempted."""

    code = "invalid_transition"

    def __init__(self, message: str, *, current: str | None = None, target: str | None = None, **context: Any) -> None:
        super().__init__(message, **context)
        self.current = current
        self.target = target

    def to_dict(self) -> dict[str, Any]:
        payload = super().to_dict()
        if self.current is not None:
            payload["current"] = self.current
        if self.target is not None:
            payload["target"] = self.target
        return payload


class DuplicatePaymentError(BillingError):
    """Raised when paying an invoice that is already Paid."""

    code = "duplicate_payment"


class AlreadyReversedError(BillingError):
    code = "already_reversed"


class InconsistentStatusError(BillingError):
    """Raised when a manual status override contradicts the payment totals."""

    code = "inconsistent_status"


class DatabaseError(BillingError):
    """Raised when a database operation fails."""

    code = "database_error"


class ConfigurationError(BillingError):
    """Raised when configuration is invalid."""

    code = "configuration_error"
