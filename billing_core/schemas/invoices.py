"""Invoice request/response schemas for API contracts."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class InvoiceStatusUpdateRequest(BaseModel):
    status: str = Field(min_length=2, max_length=20)


class InvoiceGenerateRequest(BaseModel):
    reference_month: str = Field(pattern=r"^\d{4}-\d{2}$")


class InvoiceResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    subscription_id: str
    client_id: str
    amount: int
    due_date: date
    status: str
    reference_month: str
    paid_at: datetime | None = None
    created_at: datetime | None = None
    updated_at: datetime | None = None
