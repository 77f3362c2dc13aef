"""Subscription model module."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import Date, DateTime, ForeignKey, Index, Integer, String
from sqlalchemy.orm import Mapped, mapped_column, relationship

from billing_core.core.enums import SubscriptionStatus
from billing_core.models.base import AuditMixin, Base, IdMixin


class Subscription(Base, IdMixin, AuditMixin):
    __tablename__ = "subscriptions"
    __table_args__ = (
        Index("idx_subscriptions_status", "status"),
        Index("idx_subscriptions_client_plan", "client_id", "plan_id"),
    )

    client_id: Mapped[str] = mapped_column(ForeignKey("clients.id", ondelete="RESTRICT"), nullable=False)
    plan_id: Mapped[str] = mapped_column(ForeignKey("plans.id", ondelete="RESTRICT"), nullable=False)
    start_date: Mapped[date] = mapped_column(Date, nullable=False)
    end_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    status: Mapped[str] = mapped_column(String(20), default=SubscriptionStatus.ACTIVE.value, nullable=False)
    billing_day: Mapped[int] = mapped_column(Integer, nullable=False)

    client = relationship("Client", back_populates="subscriptions")
    plan = relationship("Plan")
    invoices = relationship("Invoice", back_populates="subscription")
