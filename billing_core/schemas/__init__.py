"""Pydantic request/response contracts for the billing API."""

from billing_core.schemas.common import ErrorEnvelope
from billing_core.schemas.invoices import (
    InvoiceGenerateRequest,
    InvoiceResponse,
    InvoiceStatusUpdateRequest,
)
from billing_core.schemas.jobs import BatchFailureResponse, BatchResultResponse
from billing_core.schemas.payments import PaymentCreateRequest, PaymentResponse, PaymentReverseRequest
from billing_core.schemas.reports import ClientStandingItem, FinancialMonth, FinancialSummaryResponse
from billing_core.schemas.subscriptions import SubscriptionCreateRequest, SubscriptionResponse

__all__ = [
    "BatchFailureResponse",
    "BatchResultResponse",
    "ClientStandingItem",
    "ErrorEnvelope",
    "FinancialMonth",
    "FinancialSummaryResponse",
    "InvoiceGenerateRequest",
    "InvoiceResponse",
    "InvoiceStatusUpdateRequest",
    "PaymentCreateRequest",
    "PaymentResponse",
    "PaymentReverseRequest",
    "SubscriptionCreateRequest",
    "SubscriptionResponse",
]
