"""Invoice endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from billing_core.api.v1._errors import to_http
from billing_core.core.clock import Clock
from billing_core.core.dependencies import get_clock, get_db_session
from billing_core.core.exceptions import BillingError
from billing_core.schemas.invoices import InvoiceResponse, InvoiceStatusUpdateRequest
from billing_core.services.invoice_service import InvoiceService

router = APIRouter(prefix="/invoices", tags=["invoices"])


@router.get("", response_model=list[InvoiceResponse])
def list_invoices(
    client_id: str | None = Query(default=None),
    status_filter: str | None = Query(default=None, alias="status"),
    reference_month: str | None = Query(default=None),
    db: Session = Depends(get_db_session),
) -> list[InvoiceResponse]:
    try:
        rows = InvoiceService(db=db).list_invoices(
            client_id=client_id, status=status_filter, reference_month=reference_month
        )
    except BillingError as exc:
        raise to_http(exc) from exc
    return [InvoiceResponse.model_validate(row) for row in rows]


@router.get("/{invoice_id}", response_model=InvoiceResponse)
def get_invoice(invoice_id: str, db: Session = Depends(get_db_session)) -> InvoiceResponse:
    try:
        invoice = InvoiceService(db=db).get_invoice(invoice_id)
    except BillingError as exc:
        raise to_http(exc) from exc
    return InvoiceResponse.model_validate(invoice)


@router.patch("/{invoice_id}/status", response_model=InvoiceResponse)
def update_invoice_status(
    invoice_id: str,
    payload: InvoiceStatusUpdateRequest,
    db: Session = Depends(get_db_session),
    clock: Clock = Depends(get_clock),
) -> InvoiceResponse:
    try:
        invoice = InvoiceService(db=db, clock=clock).update_invoice_status(invoice_id, payload.status)
    except BillingError as exc:
        raise to_http(exc) from exc
    return InvoiceResponse.model_validate(invoice)
