"""Invoice model module."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from billing_core.core.enums import InvoiceStatus
from billing_core.models.base import AuditMixin, Base, IdMixin


class Invoice(Base, IdMixin, AuditMixin):
    __tablename__ = "invoices"
    __table_args__ = (
        UniqueConstraint("subscription_id", "reference_month", name="uq_invoices_subscription_period"),
        Index("idx_invoices_status_due", "status", "due_date"),
        Index("idx_invoices_client_status", "client_id", "status"),
    )

    subscription_id: Mapped[str] = mapped_column(ForeignKey("subscriptions.id", ondelete="RESTRICT"), nullable=False)
    client_id: Mapped[str] = mapped_column(ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False)
    # Snapshot of the plan price at generation time; never rewritten.
    amount: Mapped[int] = mapped_column(Integer, nullable=False)
    due_date: Mapped[date] = mapped_column(Date, nullable=False)
    status: Mapped[str] = mapped_column(String(20), default=InvoiceStatus.PENDING.value, nullable=False)
    reference_month: Mapped[str] = mapped_column(String(7), nullable=False)
    paid_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))

    subscription = relationship("Subscription", back_populates="invoices")
    client = relationship("Client", back_populates="invoices")
    payments = relationship("Payment", back_populates="invoice", order_by="Payment.payment_date")
