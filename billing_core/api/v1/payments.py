"""Payment endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from billing_core.api.v1._errors import to_http
from billing_core.core.clock import Clock
from billing_core.core.dependencies import get_clock, get_db_session
from billing_core.core.exceptions import BillingError
from billing_core.schemas.payments import PaymentCreateRequest, PaymentResponse, PaymentReverseRequest
from billing_core.services.payment_service import PaymentService

router = APIRouter(prefix="/payments", tags=["payments"])


@router.post("", response_model=PaymentResponse, status_code=status.HTTP_201_CREATED)
def record_payment(
    payload: PaymentCreateRequest,
    db: Session = Depends(get_db_session),
    clock: Clock = Depends(get_clock),
) -> PaymentResponse:
    try:
        payment = PaymentService(db=db, clock=clock).record_payment(
            invoice_id=payload.invoice_id,
            amount=payload.amount,
            method=payload.method,
            transaction_id=payload.transaction_id,
            notes=payload.notes,
            status=payload.status,
        )
    except BillingError as exc:
        raise to_http(exc) from exc
    return PaymentResponse.model_validate(payment)


@router.get("", response_model=list[PaymentResponse])
def list_payments(
    invoice_id: str | None = Query(default=None),
    client_id: str | None = Query(default=None),
    db: Session = Depends(get_db_session),
) -> list[PaymentResponse]:
    rows = PaymentService(db=db).list_payments(invoice_id=invoice_id, client_id=client_id)
    return [PaymentResponse.model_validate(row) for row in rows]


@router.post("/{payment_id}/reverse", response_model=PaymentResponse)
def reverse_payment(
    payment_id: str,
    payload: PaymentReverseRequest | None = None,
    db: Session = Depends(get_db_session),
    clock: Clock = Depends(get_clock),
) -> PaymentResponse:
    try:
        payment = PaymentService(db=db, clock=clock).reverse_payment(
            payment_id, notes=payload.notes if payload else None
        )
    except BillingError as exc:
        raise to_http(exc) from exc
    return PaymentResponse.model_validate(payment)
