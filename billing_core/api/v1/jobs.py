"""Manual triggers for the periodic billing jobs."""

from __future__ import annotations

from datetime import date

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from billing_core.api.v1._errors import to_http
from billing_core.core.dependencies import get_db_session
from billing_core.core.exceptions import BillingError
from billing_core.schemas.jobs import BatchResultResponse
from billing_core.tasks.registry import default_registry

router = APIRouter(prefix="/jobs", tags=["jobs"])


@router.get("")
def list_jobs() -> dict:
    return {"items": default_registry.keys()}


@router.post("/{job_key}", response_model=BatchResultResponse)
def run_job(
    job_key: str,
    as_of: date | None = Query(default=None),
    db: Session = Depends(get_db_session),
) -> BatchResultResponse:
    try:
        executor = default_registry.get(job_key)
    except KeyError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=f"Unknown job: {job_key}") from exc
    try:
        result = executor(db, as_of)
    except BillingError as exc:
        raise to_http(exc) from exc
    return BatchResultResponse.model_validate(result)
