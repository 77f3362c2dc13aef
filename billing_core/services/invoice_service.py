"""Invoice queries, status derivation and the constrained manual override."""

from __future__ import annotations

import logging
from datetime import date

from sqlalchemy import func, select

from billing_core.core.enums import InvoiceStatus, PaymentStatus
from billing_core.core.exceptions import InconsistentStatusError, NotFoundError, ValidationError
from billing_core.core.logging import LogContext, build_log_event
from billing_core.models import Invoice, Payment
from billing_core.orchestration.state_machine import INVOICE_LIFECYCLE
from billing_core.services.base_service import BaseService
from billing_core.services.client_standing_service import ClientStandingService
from billing_core.utils.periods import parse_reference_month

logger = logging.getLogger(__name__)


def derive_invoice_status(amount: int, approved_total: int, due_date: date, today: date) -> str:
    """Invoice status as a pure function of (due date, today, approved payments)."""
    if approved_total == amount:
        return InvoiceStatus.PAID.value
    if today > due_date:
        return InvoiceStatus.OVERDUE.value
    return InvoiceStatus.PENDING.value


def _coerce_status(status: str | InvoiceStatus) -> str:
    try:
        return InvoiceStatus(status).value
    except ValueError as exc:
        raise ValidationError(f"Unknown invoice status: {status}", field="status") from exc


class InvoiceService(BaseService):
    """Service for invoice reads and status transitions."""

    def get_invoice(self, invoice_id: str) -> Invoice:
        invoice = self.db.get(Invoice, invoice_id)
        if invoice is None:
            raise NotFoundError(f"Invoice not found: {invoice_id}", entity="invoice", entity_id=invoice_id)
        return invoice

    def lock_invoice(self, invoice_id: str) -> Invoice:
        invoice = self.db.get(Invoice, invoice_id, with_for_update=True, populate_existing=True)
        if invoice is None:
            raise NotFoundError(f"Invoice not found: {invoice_id}", entity="invoice", entity_id=invoice_id)
        return invoice

    def list_invoices(
        self,
        client_id: str | None = None,
        status: str | None = None,
        reference_month: str | None = None,
    ) -> list[Invoice]:
        stmt = select(Invoice)
        if client_id is not None:
            stmt = stmt.where(Invoice.client_id == client_id)
        if status is not None:
            stmt = stmt.where(Invoice.status == _coerce_status(status))
        if reference_month is not None:
            parse_reference_month(reference_month)
            stmt = stmt.where(Invoice.reference_month == reference_month)
        stmt = stmt.order_by(Invoice.due_date.desc(), Invoice.created_at.desc())
        return list(self.db.scalars(stmt))

    def approved_total(self, invoice_id: str) -> int:
        self.db.flush()
        total = self.db.scalar(
            select(func.coalesce(func.sum(Payment.amount), 0)).where(
                Payment.invoice_id == invoice_id,
                Payment.status == PaymentStatus.APPROVED.value,
            )
        )
        return int(total or 0)

    def computed_status(self, invoice: Invoice) -> str:
        return derive_invoice_status(
            amount=invoice.amount,
            approved_total=self.approved_total(invoice.id),
            due_date=invoice.due_date,
            today=self.clock().date(),
        )

    def refresh_status(self, invoice: Invoice) -> bool:
        """Apply the derived status inside the caller's transaction. Returns True on change."""
        target = self.computed_status(invoice)
        if target == invoice.status:
            return False

        INVOICE_LIFECYCLE.assert_transition(invoice.status, target, entity_id=invoice.id)
        previous = invoice.status
        invoice.status = target
        invoice.paid_at = self.clock() if target == InvoiceStatus.PAID.value else None
        self.db.flush()
        logger.info(
            "invoice.status_changed",
            extra=build_log_event(
                "invoice.status_changed",
                LogContext(client_id=invoice.client_id, invoice_id=invoice.id),
                previous=previous,
                current=target,
            ),
        )
        return True

    def update_invoice_status(self, invoice_id: str, status: str | InvoiceStatus) -> Invoice:
        """Administrative override, constrained by the payment totals.

        Paid versus unpaid is decided by approved payments alone, so a request
        on the wrong side of that line is rejected. Pending versus Overdue is
        decided by the due date, so such a request is resolved by recomputing.
        """
        requested = _coerce_status(status)
        with self.atomic():
            invoice = self.lock_invoice(invoice_id)
            computed = self.computed_status(invoice)
            paid_requested = requested == InvoiceStatus.PAID.value
            paid_computed = computed == InvoiceStatus.PAID.value
            if paid_requested != paid_computed:
                raise InconsistentStatusError(
                    f"Invoice {invoice_id} cannot be {requested}: approved payments put it at {computed}.",
                    entity="invoice",
                    entity_id=invoice_id,
                    field="status",
                )
            if requested != computed:
                logger.warning(
                    "invoice.manual_status_recomputed",
                    extra=build_log_event(
                        "invoice.manual_status_recomputed",
                        LogContext(client_id=invoice.client_id, invoice_id=invoice.id),
                        requested=requested,
                        applied=computed,
                    ),
                )
            if self.refresh_status(invoice):
                ClientStandingService(db=self.db, clock=self.clock).refresh(invoice.client_id)
            return invoice
