"""Invoice generation: one invoice per (subscription, reference month)."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError

from billing_core.core.clock import Clock
from billing_core.core.config import get_config
from billing_core.core.enums import SubscriptionStatus
from billing_core.core.exceptions import InvalidTransitionError, NotFoundError, ValidationError
from billing_core.core.logging import LogContext, build_log_event
from billing_core.models import Invoice, Plan, Subscription
from billing_core.services.base_service import BaseService
from billing_core.services.batch import BatchResult
from billing_core.services.invoice_service import derive_invoice_status
from billing_core.utils.periods import due_date_for, parse_reference_month, reference_month_of

logger = logging.getLogger(__name__)

GENERATE_JOB = "billing.generate_due_invoices"


class InvoiceGenerator(BaseService):
    """Turns Active subscriptions into a stream of monthly invoices."""

    def __init__(self, db=None, clock: Clock | None = None, allow_future_billing: bool | None = None) -> None:
        super().__init__(db=db, clock=clock)
        if allow_future_billing is None:
            allow_future_billing = get_config().ALLOW_FUTURE_BILLING
        self.allow_future_billing = allow_future_billing

    def find_existing(self, subscription_id: str, reference_month: str) -> Invoice | None:
        return self.db.scalar(
            select(Invoice).where(
                Invoice.subscription_id == subscription_id,
                Invoice.reference_month == reference_month,
            )
        )

    def _resolve_subscription(self, subscription: Subscription | str) -> Subscription:
        if isinstance(subscription, Subscription):
            return subscription
        row = self.db.get(Subscription, subscription)
        if row is None:
            raise NotFoundError(
                f"Subscription not found: {subscription}", entity="subscription", entity_id=subscription
            )
        return row

    def generate_for_period(self, subscription: Subscription | str, reference_month: str) -> Invoice:
        """Return the invoice for ``reference_month``, creating it on first call."""
        return self._generate(subscription, reference_month, today=self.clock().date())

    def _generate(self, subscription: Subscription | str, reference_month: str, today: date) -> Invoice:
        parse_reference_month(reference_month)
        with self.atomic():
            sub = self._resolve_subscription(subscription)
            existing = self.find_existing(sub.id, reference_month)
            if existing is not None:
                return existing

            self._check_preconditions(sub, reference_month, today)
            plan = self.db.get(Plan, sub.plan_id)
            if plan is None:
                raise NotFoundError(f"Plan not found: {sub.plan_id}", entity="plan", entity_id=sub.plan_id)

            due_date = due_date_for(reference_month, sub.billing_day)
            invoice = Invoice(
                subscription_id=sub.id,
                client_id=sub.client_id,
                amount=plan.price,
                due_date=due_date,
                reference_month=reference_month,
                # No payments yet: zero-priced plans come out Paid.
                status=derive_invoice_status(plan.price, 0, due_date, due_date),
            )
            if plan.price == 0:
                invoice.paid_at = self.clock()
            try:
                with self.db.begin_nested():
                    self.db.add(invoice)
                    self.db.flush()
            except IntegrityError:
                # Lost the race on uq_invoices_subscription_period; the winner's row is the answer.
                winner = self.find_existing(sub.id, reference_month)
                if winner is None:
                    raise
                logger.info(
                    "invoice.generation_race_lost",
                    extra=build_log_event(
                        "invoice.generation_race_lost",
                        LogContext(client_id=sub.client_id, subscription_id=sub.id, invoice_id=winner.id),
                        reference_month=reference_month,
                    ),
                )
                return winner

            logger.info(
                "invoice.generated",
                extra=build_log_event(
                    "invoice.generated",
                    LogContext(client_id=sub.client_id, subscription_id=sub.id, invoice_id=invoice.id),
                    reference_month=reference_month,
                    amount=invoice.amount,
                    due_date=due_date.isoformat(),
                ),
            )
            return invoice

    def _check_preconditions(self, sub: Subscription, reference_month: str, today: date) -> None:
        if sub.status != SubscriptionStatus.ACTIVE.value:
            raise InvalidTransitionError(
                f"Subscription {sub.id} is {sub.status}; invoices are generated only for Active subscriptions.",
                current=sub.status,
                entity="subscription",
                entity_id=sub.id,
            )
        if reference_month < reference_month_of(sub.start_date):
            raise ValidationError(
                f"Reference month {reference_month} precedes subscription start {sub.start_date.isoformat()}.",
                entity="subscription",
                entity_id=sub.id,
                field="reference_month",
            )
        if not self.allow_future_billing and reference_month > reference_month_of(today):
            raise ValidationError(
                f"Reference month {reference_month} is in the future.",
                entity="subscription",
                entity_id=sub.id,
                field="reference_month",
            )

    def generate_due_invoices(self, as_of: date | None = None) -> BatchResult:
        """Bill the current reference month of every Active subscription. Safe to re-run."""
        as_of = as_of or self.clock().date()
        # Without future billing, "today" never runs past the clock.
        today = as_of if self.allow_future_billing else min(as_of, self.clock().date())
        reference_month = reference_month_of(as_of)
        result = BatchResult(job=GENERATE_JOB, as_of=as_of)

        subscription_ids = list(
            self.db.scalars(
                select(Subscription.id)
                .where(
                    Subscription.status == SubscriptionStatus.ACTIVE.value,
                    Subscription.start_date <= as_of,
                )
                .order_by(Subscription.start_date, Subscription.id)
            )
        )
        for subscription_id in subscription_ids:
            result.processed += 1
            try:
                if self.find_existing(subscription_id, reference_month) is not None:
                    result.skipped += 1
                    continue
                invoice = self._generate(subscription_id, reference_month, today=today)
                result.affected_ids.append(invoice.id)
            except Exception as exc:
                self.rollback()
                result.record_failure(subscription_id, exc)
                logger.error(
                    "invoice.generation_failed",
                    extra=build_log_event(
                        "invoice.generation_failed",
                        LogContext(subscription_id=subscription_id, job=GENERATE_JOB),
                        reference_month=reference_month,
                        error=str(exc),
                    ),
                )

        logger.info(
            "invoice.batch_finished",
            extra=build_log_event(
                "invoice.batch_finished",
                LogContext(job=GENERATE_JOB),
                as_of=as_of.isoformat(),
                processed=result.processed,
                created=len(result.affected_ids),
                failed=len(result.failures),
            ),
        )
        return result
