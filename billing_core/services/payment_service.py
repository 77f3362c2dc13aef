"""Payment recording and reversal."""

from __future__ import annotations

import logging
from datetime import datetime

from sqlalchemy import select

from billing_core.core.enums import InvoiceStatus, PaymentMethod, PaymentStatus
from billing_core.core.exceptions import (
    AlreadyReversedError,
    DuplicatePaymentError,
    InvalidTransitionError,
    PaymentNotFoundError,
    ValidationError,
)
from billing_core.core.logging import LogContext, build_log_event
from billing_core.models import Payment
from billing_core.services.base_service import BaseService
from billing_core.services.client_standing_service import ClientStandingService
from billing_core.services.invoice_service import InvoiceService

logger = logging.getLogger(__name__)

RECORDABLE_STATUSES = {PaymentStatus.APPROVED.value, PaymentStatus.FAILED.value}


class PaymentService(BaseService):
    """Applies payments to invoices and keeps invoice and client status in step."""

    def _invoices(self) -> InvoiceService:
        return InvoiceService(db=self.db, clock=self.clock)

    def _standing(self) -> ClientStandingService:
        return ClientStandingService(db=self.db, clock=self.clock)

    def get_payment(self, payment_id: str) -> Payment:
        payment = self.db.get(Payment, payment_id)
        if payment is None:
            raise PaymentNotFoundError(f"Payment not found: {payment_id}", entity="payment", entity_id=payment_id)
        return payment

    def list_payments(self, invoice_id: str | None = None, client_id: str | None = None) -> list[Payment]:
        stmt = select(Payment)
        if invoice_id is not None:
            stmt = stmt.where(Payment.invoice_id == invoice_id)
        if client_id is not None:
            stmt = stmt.where(Payment.client_id == client_id)
        return list(self.db.scalars(stmt.order_by(Payment.payment_date.desc())))

    def record_payment(
        self,
        invoice_id: str,
        amount: int,
        method: str = PaymentMethod.MANUAL.value,
        transaction_id: str | None = None,
        notes: str | None = None,
        payment_date: datetime | None = None,
        status: str = PaymentStatus.APPROVED.value,
    ) -> Payment:
        if isinstance(amount, bool) or not isinstance(amount, int) or amount <= 0:
            raise ValidationError("Payment amount must be a positive integer in minor units.", field="amount")
        try:
            method = PaymentMethod(method).value
        except ValueError as exc:
            raise ValidationError(f"Unknown payment method: {method}", field="method") from exc
        if status not in RECORDABLE_STATUSES:
            raise ValidationError(f"Payments cannot be recorded as {status}.", field="status")

        invoices = self._invoices()
        with self.atomic():
            invoice = invoices.lock_invoice(invoice_id)
            if invoice.status == InvoiceStatus.PAID.value:
                raise DuplicatePaymentError(
                    f"Invoice {invoice_id} is already paid.", entity="invoice", entity_id=invoice_id
                )
            if transaction_id and self._transaction_seen(transaction_id):
                raise DuplicatePaymentError(
                    f"Transaction {transaction_id} was already recorded.",
                    entity="invoice",
                    entity_id=invoice_id,
                    field="transaction_id",
                )
            outstanding = invoice.amount - invoices.approved_total(invoice.id)
            if status == PaymentStatus.APPROVED.value and amount != outstanding:
                raise ValidationError(
                    f"Partial payments are not supported: invoice {invoice_id} needs exactly {outstanding}.",
                    entity="invoice",
                    entity_id=invoice_id,
                    field="amount",
                )

            payment = Payment(
                invoice_id=invoice.id,
                client_id=invoice.client_id,
                amount=amount,
                payment_date=payment_date or self.clock(),
                method=method,
                transaction_id=transaction_id,
                status=status,
                notes=notes,
            )
            self.db.add(payment)
            self.db.flush()
            if status == PaymentStatus.APPROVED.value and invoices.refresh_status(invoice):
                self._standing().refresh(invoice.client_id)

            logger.info(
                "payment.recorded",
                extra=build_log_event(
                    "payment.recorded",
                    LogContext(client_id=invoice.client_id, invoice_id=invoice.id, payment_id=payment.id),
                    amount=amount,
                    method=method,
                    status=status,
                    invoice_status=invoice.status,
                ),
            )
            return payment

    def _transaction_seen(self, transaction_id: str) -> bool:
        return (
            self.db.scalar(
                select(Payment.id).where(
                    Payment.transaction_id == transaction_id,
                    Payment.status == PaymentStatus.APPROVED.value,
                )
            )
            is not None
        )

    def reverse_payment(self, payment_id: str, notes: str | None = None) -> Payment:
        invoices = self._invoices()
        with self.atomic():
            payment = self.db.get(Payment, payment_id, with_for_update=True, populate_existing=True)
            if payment is None:
                raise PaymentNotFoundError(
                    f"Payment not found: {payment_id}", entity="payment", entity_id=payment_id
                )
            if payment.status == PaymentStatus.REVERSED.value:
                raise AlreadyReversedError(
                    f"Payment {payment_id} is already reversed.", entity="payment", entity_id=payment_id
                )
            if payment.status != PaymentStatus.APPROVED.value:
                raise InvalidTransitionError(
                    f"Only approved payments can be reversed; payment {payment_id} is {payment.status}.",
                    current=payment.status,
                    target=PaymentStatus.REVERSED.value,
                    entity="payment",
                    entity_id=payment_id,
                )

            payment.status = PaymentStatus.REVERSED.value
            payment.reversed_at = self.clock()
            if notes:
                payment.notes = f"{payment.notes}\n{notes}" if payment.notes else notes
            self.db.flush()

            invoice = invoices.lock_invoice(payment.invoice_id)
            if invoices.refresh_status(invoice):
                self._standing().refresh(invoice.client_id)

            logger.info(
                "payment.reversed",
                extra=build_log_event(
                    "payment.reversed",
                    LogContext(client_id=payment.client_id, invoice_id=invoice.id, payment_id=payment.id),
                    amount=payment.amount,
                    invoice_status=invoice.status,
                ),
            )
            return payment
