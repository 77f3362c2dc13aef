"""Payment model module."""

from __future__ import annotations

from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, Index, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from billing_core.core.enums import PaymentMethod, PaymentStatus
from billing_core.models.base import AuditMixin, Base, IdMixin


class Payment(Base, IdMixin, AuditMixin):
    __tablename__ = "payments"
    __table_args__ = (Index("idx_payments_invoice_status", "invoice_id", "status"),)

    invoice_id: Mapped[str] = mapped_column(ForeignKey("invoices.id", ondelete="RESTRICT"), nullable=False)
    client_id: Mapped[str] = mapped_column(ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False)
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    payment_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    method: Mapped[str] = mapped_column(String(20), default=PaymentMethod.MANUAL.value, nullable=False)
    transaction_id: Mapped[str | None] = mapped_column(String(128))
    status: Mapped[str] = mapped_column(String(20), default=PaymentStatus.APPROVED.value, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)
    reversed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    invoice = relationship("Invoice", back_populates="payments")
