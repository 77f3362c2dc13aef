"""Subscription lifecycle endpoints for API v1."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session

from billing_core.api.v1._errors import to_http
from billing_core.core.clock import Clock
from billing_core.core.dependencies import get_clock, get_db_session
from billing_core.core.exceptions import BillingError
from billing_core.schemas.invoices import InvoiceGenerateRequest, InvoiceResponse
from billing_core.schemas.subscriptions import SubscriptionCreateRequest, SubscriptionResponse
from billing_core.services.invoice_generator import InvoiceGenerator
from billing_core.services.subscription_service import SubscriptionService

router = APIRouter(prefix="/subscriptions", tags=["subscriptions"])


@router.post("", response_model=SubscriptionResponse, status_code=status.HTTP_201_CREATED)
def create_subscription(
    payload: SubscriptionCreateRequest,
    db: Session = Depends(get_db_session),
    clock: Clock = Depends(get_clock),
) -> SubscriptionResponse:
    try:
        subscription = SubscriptionService(db=db, clock=clock).create_subscription(
            client_id=payload.client_id,
            plan_id=payload.plan_id,
            start_date=payload.start_date,
            billing_day=payload.billing_day,
        )
    except BillingError as exc:
        raise to_http(exc) from exc
    return SubscriptionResponse.model_validate(subscription)


@router.get("", response_model=list[SubscriptionResponse])
def list_subscriptions(
    client_id: str | None = Query(default=None),
    status_filter: str | None = Query(default=None, alias="status"),
    db: Session = Depends(get_db_session),
) -> list[SubscriptionResponse]:
    try:
        rows = SubscriptionService(db=db).list_subscriptions(client_id=client_id, status=status_filter)
    except BillingError as exc:
        raise to_http(exc) from exc
    return [SubscriptionResponse.model_validate(row) for row in rows]


@router.get("/{subscription_id}", response_model=SubscriptionResponse)
def get_subscription(subscription_id: str, db: Session = Depends(get_db_session)) -> SubscriptionResponse:
    try:
        subscription = SubscriptionService(db=db).get_subscription(subscription_id)
    except BillingError as exc:
        raise to_http(exc) from exc
    return SubscriptionResponse.model_validate(subscription)


@router.post("/{subscription_id}/cancel", response_model=SubscriptionResponse)
def cancel_subscription(
    subscription_id: str,
    db: Session = Depends(get_db_session),
    clock: Clock = Depends(get_clock),
) -> SubscriptionResponse:
    try:
        subscription = SubscriptionService(db=db, clock=clock).cancel_subscription(subscription_id)
    except BillingError as exc:
        raise to_http(exc) from exc
    return SubscriptionResponse.model_validate(subscription)


@router.post("/{subscription_id}/activate", response_model=SubscriptionResponse)
def activate_subscription(
    subscription_id: str,
    db: Session = Depends(get_db_session),
    clock: Clock = Depends(get_clock),
) -> SubscriptionResponse:
    try:
        subscription = SubscriptionService(db=db, clock=clock).activate_subscription(subscription_id)
    except BillingError as exc:
        raise to_http(exc) from exc
    return SubscriptionResponse.model_validate(subscription)


@router.post("/{subscription_id}/suspend", response_model=SubscriptionResponse)
def suspend_subscription(
    subscription_id: str,
    db: Session = Depends(get_db_session),
    clock: Clock = Depends(get_clock),
) -> SubscriptionResponse:
    try:
        subscription = SubscriptionService(db=db, clock=clock).suspend_subscription(subscription_id)
    except BillingError as exc:
        raise to_http(exc) from exc
    return SubscriptionResponse.model_validate(subscription)


@router.post("/{subscription_id}/invoices", response_model=InvoiceResponse)
def generate_invoice(
    subscription_id: str,
    payload: InvoiceGenerateRequest,
    db: Session = Depends(get_db_session),
    clock: Clock = Depends(get_clock),
) -> InvoiceResponse:
    try:
        invoice = InvoiceGenerator(db=db, clock=clock).generate_for_period(subscription_id, payload.reference_month)
    except BillingError as exc:
        raise to_http(exc) from exc
    return InvoiceResponse.model_validate(invoice)
