"""Batch job result schemas."""

from __future__ import annotations

from datetime import date

from pydantic import BaseModel, ConfigDict


class BatchFailureResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    item_id: str
    error_code: str
    detail: str


class BatchResultResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    job: str
    as_of: date
    processed: int
    skipped: int
    affected_ids: list[str]
    failures: list[BatchFailureResponse]
