"""Periodic promotion of past-due Pending invoices to Overdue."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import select

from billing_core.core.enums import InvoiceStatus
from billing_core.core.exceptions import ValidationError
from billing_core.core.logging import LogContext, build_log_event
from billing_core.models import Invoice
from billing_core.orchestration.state_machine import INVOICE_LIFECYCLE
from billing_core.services.base_service import BaseService
from billing_core.services.batch import BatchResult
from billing_core.services.client_standing_service import ClientStandingService
from billing_core.services.invoice_service import InvoiceService

logger = logging.getLogger(__name__)

SWEEP_JOB = "billing.sweep_overdue"


class OverdueSweeper(BaseService):
    def sweep(self, as_of: date | None = None) -> BatchResult:
        """Mark Pending invoices due before ``as_of`` Overdue. Re-running is a no-op."""
        today = self.clock().date()
        as_of = as_of or today
        if as_of > today:
            raise ValidationError(
                f"Cannot sweep as of {as_of.isoformat()}: it is later than today ({today.isoformat()}).",
                field="as_of",
            )
        result = BatchResult(job=SWEEP_JOB, as_of=as_of)
        invoices = InvoiceService(db=self.db, clock=self.clock)
        standing = ClientStandingService(db=self.db, clock=self.clock)

        candidate_ids = list(
            self.db.scalars(
                select(Invoice.id)
                .where(Invoice.status == InvoiceStatus.PENDING.value, Invoice.due_date < as_of)
                .order_by(Invoice.due_date, Invoice.id)
            )
        )
        for invoice_id in candidate_ids:
            result.processed += 1
            try:
                with self.atomic():
                    invoice = invoices.lock_invoice(invoice_id)
                    # Re-check under the lock: a payment may have landed since the scan.
                    if invoice.status != InvoiceStatus.PENDING.value or not invoice.due_date < as_of:
                        result.skipped += 1
                        continue
                    INVOICE_LIFECYCLE.assert_transition(invoice.status, InvoiceStatus.OVERDUE.value, entity_id=invoice_id)
                    invoice.status = InvoiceStatus.OVERDUE.value
                    self.db.flush()
                    standing.refresh(invoice.client_id)
                result.affected_ids.append(invoice_id)
            except Exception as exc:
                self.rollback()
                result.record_failure(invoice_id, exc)
                logger.error(
                    "sweep.invoice_failed",
                    extra=build_log_event(
                        "sweep.invoice_failed",
                        LogContext(invoice_id=invoice_id, job=SWEEP_JOB),
                        error=str(exc),
                    ),
                )

        logger.info(
            "sweep.finished",
            extra=build_log_event(
                "sweep.finished",
                LogContext(job=SWEEP_JOB),
                as_of=as_of.isoformat(),
                processed=result.processed,
                overdue=len(result.affected_ids),
                failed=len(result.failures),
            ),
        )
        return result
