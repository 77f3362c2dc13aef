"""Subscription request/response schemas for API contracts."""

from __future__ import annotations

from datetime import date, datetime

from pydantic import BaseModel, ConfigDict, Field


class SubscriptionCreateRequest(BaseModel):
    client_id: str = Field(min_length=1, max_length=36)
    plan_id: str = Field(min_length=1, max_length=36)
    start_date: date | None = None
    # Range is enforced by the service so the error carries the billing error envelope.
    billing_day: int | None = None


class SubscriptionResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    client_id: str
    plan_id: str
    start_date: date
    end_date: datetime | None = None
    status: str
    billing_day: int
    created_at: datetime | None = None
    updated_at: datetime | None = None
