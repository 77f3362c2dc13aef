"""Subscription lifecycle: creation rules and Active/Suspended/Cancelled transitions."""

from __future__ import annotations

import logging
from datetime import date, datetime, timedelta

from sqlalchemy import select

from billing_core.core.clock import Clock
from billing_core.core.config import get_config
from billing_core.core.enums import ClientStatus, InvoiceStatus, SubscriptionStatus
from billing_core.core.exceptions import NotFoundError, ValidationError
from billing_core.core.logging import LogContext, build_log_event
from billing_core.models import Client, Invoice, Plan, Subscription
from billing_core.orchestration.state_machine import SUBSCRIPTION_LIFECYCLE
from billing_core.services.base_service import BaseService
from billing_core.services.batch import BatchResult
from billing_core.utils.periods import (
    MAX_BILLING_DAY,
    MIN_BILLING_DAY,
    default_billing_day,
    is_valid_billing_day,
)

logger = logging.getLogger(__name__)

SUSPEND_DELINQUENT_JOB = "billing.suspend_delinquent"


def _to_date(value: str | date | datetime) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, "%Y-%m-%d").date()
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"Invalid date: {value!r}", field="start_date") from exc


class SubscriptionService(BaseService):
    """Service for subscription creation and status transitions."""

    def __init__(self, db=None, clock: Clock | None = None, block_delinquent: bool | None = None) -> None:
        super().__init__(db=db, clock=clock)
        if block_delinquent is None:
            block_delinquent = get_config().BLOCK_DELINQUENT_SUBSCRIPTIONS
        self.block_delinquent = block_delinquent

    def get_subscription(self, subscription_id: str) -> Subscription:
        subscription = self.db.get(Subscription, subscription_id)
        if subscription is None:
            raise NotFoundError(
                f"Subscription not found: {subscription_id}", entity="subscription", entity_id=subscription_id
            )
        return subscription

    def _lock_subscription(self, subscription_id: str) -> Subscription:
        subscription = self.db.get(Subscription, subscription_id, with_for_update=True, populate_existing=True)
        if subscription is None:
            raise NotFoundError(
                f"Subscription not found: {subscription_id}", entity="subscription", entity_id=subscription_id
            )
        return subscription

    def list_subscriptions(self, client_id: str | None = None, status: str | None = None) -> list[Subscription]:
        stmt = select(Subscription)
        if client_id is not None:
            stmt = stmt.where(Subscription.client_id == client_id)
        if status is not None:
            try:
                stmt = stmt.where(Subscription.status == SubscriptionStatus(status).value)
            except ValueError as exc:
                raise ValidationError(f"Unknown subscription status: {status}", field="status") from exc
        return list(self.db.scalars(stmt.order_by(Subscription.created_at.desc())))

    def create_subscription(
        self,
        client_id: str,
        plan_id: str,
        start_date: str | date | datetime | None = None,
        billing_day: int | None = None,
    ) -> Subscription:
        start = _to_date(start_date) if start_date is not None else self.clock().date()
        if billing_day is None:
            billing_day = default_billing_day(start)
        elif isinstance(billing_day, bool) or not isinstance(billing_day, int) or not is_valid_billing_day(billing_day):
            raise ValidationError(
                f"billing_day must be an integer between {MIN_BILLING_DAY} and {MAX_BILLING_DAY}.",
                field="billing_day",
            )

        with self.atomic():
            # Locking the client row serialises overlap checks for the same client.
            client = self.db.get(Client, client_id, with_for_update=True, populate_existing=True)
            if client is None:
                raise NotFoundError(f"Client not found: {client_id}", entity="client", entity_id=client_id)
            plan = self.db.get(Plan, plan_id)
            if plan is None:
                raise NotFoundError(f"Plan not found: {plan_id}", entity="plan", entity_id=plan_id)
            if not plan.is_active:
                raise ValidationError(
                    f"Plan {plan_id} is not active.", entity="plan", entity_id=plan_id, field="plan_id"
                )
            if self.block_delinquent and client.status == ClientStatus.DELINQUENT.value:
                raise ValidationError(
                    f"Client {client_id} is delinquent and cannot open new subscriptions.",
                    entity="client",
                    entity_id=client_id,
                    field="client_id",
                )
            self._ensure_no_overlap(client_id, plan_id, start)

            subscription = Subscription(
                client_id=client_id,
                plan_id=plan_id,
                start_date=start,
                billing_day=billing_day,
                status=SubscriptionStatus.ACTIVE.value,
            )
            self.db.add(subscription)
            self.db.flush()
            logger.info(
                "subscription.created",
                extra=build_log_event(
                    "subscription.created",
                    LogContext(client_id=client_id, subscription_id=subscription.id),
                    plan_id=plan_id,
                    start_date=start.isoformat(),
                    billing_day=billing_day,
                ),
            )
            return subscription

    def _ensure_no_overlap(self, client_id: str, plan_id: str, start: date) -> None:
        existing = self.db.scalars(
            select(Subscription).where(Subscription.client_id == client_id, Subscription.plan_id == plan_id)
        )
        for other in existing:
            # The new subscription is open-ended, so any window still open at ``start`` overlaps.
            if other.end_date is None or other.end_date.date() > start:
                raise ValidationError(
                    f"Client {client_id} already holds subscription {other.id} to plan {plan_id}.",
                    entity="subscription",
                    entity_id=other.id,
                    field="plan_id",
                )

    def _transition(self, subscription_id: str, target: str) -> Subscription:
        with self.atomic():
            subscription = self._lock_subscription(subscription_id)
            if subscription.status == target:
                return subscription
            SUBSCRIPTION_LIFECYCLE.assert_transition(subscription.status, target, entity_id=subscription_id)

            previous = subscription.status
            subscription.status = target
            if target == SubscriptionStatus.CANCELLED.value:
                subscription.end_date = self.clock()
            self.db.flush()
            logger.info(
                "subscription.status_changed",
                extra=build_log_event(
                    "subscription.status_changed",
                    LogContext(client_id=subscription.client_id, subscription_id=subscription_id),
                    previous=previous,
                    current=target,
                ),
            )
            return subscription

    def cancel_subscription(self, subscription_id: str) -> Subscription:
        """Cancel for good. Cancelling twice is a no-op that keeps the first end date."""
        return self._transition(subscription_id, SubscriptionStatus.CANCELLED.value)

    def activate_subscription(self, subscription_id: str) -> Subscription:
        return self._transition(subscription_id, SubscriptionStatus.ACTIVE.value)

    def suspend_subscription(self, subscription_id: str) -> Subscription:
        return self._transition(subscription_id, SubscriptionStatus.SUSPENDED.value)

    def suspend_delinquent_subscriptions(self, as_of: date | None = None, grace_days: int | None = None) -> BatchResult:
        """Suspend Active subscriptions of clients with an invoice overdue past the grace period."""
        as_of = as_of or self.clock().date()
        if grace_days is None:
            grace_days = get_config().DELINQUENT_SUSPENSION_GRACE_DAYS
        result = BatchResult(job=SUSPEND_DELINQUENT_JOB, as_of=as_of)
        if grace_days <= 0:
            return result

        cutoff = as_of - timedelta(days=grace_days)
        delinquent_clients = (
            select(Invoice.client_id)
            .where(Invoice.status == InvoiceStatus.OVERDUE.value, Invoice.due_date < cutoff)
            .distinct()
        )
        subscription_ids = list(
            self.db.scalars(
                select(Subscription.id).where(
                    Subscription.status == SubscriptionStatus.ACTIVE.value,
                    Subscription.client_id.in_(delinquent_clients),
                )
            )
        )
        for subscription_id in subscription_ids:
            result.processed += 1
            try:
                self.suspend_subscription(subscription_id)
                result.affected_ids.append(subscription_id)
            except Exception as exc:
                self.rollback()
                result.record_failure(subscription_id, exc)
                logger.error(
                    "subscription.suspend_failed",
                    extra=build_log_event(
                        "subscription.suspend_failed",
                        LogContext(subscription_id=subscription_id, job=SUSPEND_DELINQUENT_JOB),
                        error=str(exc),
                    ),
                )
        return result
