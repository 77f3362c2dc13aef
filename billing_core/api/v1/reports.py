"""Back-office report endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from billing_core.api.v1._errors import to_http
from billing_core.core.dependencies import get_db_session
from billing_core.core.enums import ClientStatus
from billing_core.core.exceptions import BillingError
from billing_core.schemas.reports import ClientStandingItem, FinancialSummaryResponse
from billing_core.services.report_service import ReportService

router = APIRouter(prefix="/reports", tags=["reports"])


@router.get("/financial", response_model=FinancialSummaryResponse)
def financial_summary(
    reference_month: str | None = Query(default=None),
    db: Session = Depends(get_db_session),
) -> FinancialSummaryResponse:
    try:
        summary = ReportService(db=db).financial_summary(reference_month=reference_month)
    except BillingError as exc:
        raise to_http(exc) from exc
    return FinancialSummaryResponse.model_validate(summary)


@router.get("/clients", response_model=list[ClientStandingItem])
def client_standing(
    status_filter: str = Query(default=ClientStatus.DELINQUENT.value, alias="status"),
    plan_id: list[str] | None = Query(default=None),
    db: Session = Depends(get_db_session),
) -> list[ClientStandingItem]:
    try:
        rows = ReportService(db=db).client_standing_report(status=status_filter, plan_ids=plan_id)
    except BillingError as exc:
        raise to_http(exc) from exc
    return [ClientStandingItem.model_validate(row) for row in rows]
