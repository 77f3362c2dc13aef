"""Payment request/response schemas for API contracts."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field

from billing_core.core.enums import PaymentMethod, PaymentStatus


class PaymentCreateRequest(BaseModel):
    invoice_id: str = Field(min_length=1, max_length=36)
    amount: int
    method: str = PaymentMethod.MANUAL.value
    transaction_id: str | None = Field(default=None, max_length=128)
    notes: str | None = Field(default=None, max_length=2000)
    status: str = PaymentStatus.APPROVED.value


class PaymentReverseRequest(BaseModel):
    notes: str | None = Field(default=None, max_length=2000)


class PaymentResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    invoice_id: str
    client_id: str
    amount: int
    payment_date: datetime
    method: str
    transaction_id: str | None = None
    status: str
    notes: str | None = None
    reversed_at: datetime | None = None
