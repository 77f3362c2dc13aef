"""Translation of billing errors into HTTP responses for API v1 route modules."""

from __future__ import annotations

from typing import Any

from fastapi import HTTPException, status

from billing_core.core.exceptions import (
    AlreadyReversedError,
    BillingError,
    DatabaseError,
    DuplicatePaymentError,
    InconsistentStatusError,
    InvalidTransitionError,
    NotFoundError,
    ValidationError,
)
from billing_core.schemas.common import ErrorEnvelope

_STATUS_BY_ERROR: tuple[tuple[type[BillingError], int], ...] = (
    (NotFoundError, status.HTTP_404_NOT_FOUND),
    (ValidationError, status.HTTP_422_UNPROCESSABLE_ENTITY),
    (InvalidTransitionError, status.HTTP_409_CONFLICT),
    (DuplicatePaymentError, status.HTTP_409_CONFLICT),
    (AlreadyReversedError, status.HTTP_409_CONFLICT),
    (InconsistentStatusError, status.HTTP_409_CONFLICT),
    (DatabaseError, status.HTTP_503_SERVICE_UNAVAILABLE),
)


def map_billing_error(exc: BillingError) -> tuple[int, dict[str, Any]]:
    envelope = ErrorEnvelope(**exc.to_dict()).model_dump(exclude_none=True)
    for error_type, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_type):
            return code, envelope
    return status.HTTP_400_BAD_REQUEST, envelope


def to_http(exc: BillingError) -> HTTPException:
    code, detail = map_billing_error(exc)
    return HTTPException(status_code=code, detail=detail)
