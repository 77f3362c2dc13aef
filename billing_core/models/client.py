"""Client model module."""

from __future__ import annotations

from sqlalchemy import Index, String, Text
from sqlalchemy.orm import Mapped, mapped_column, relationship

from billing_core.core.enums import ClientStatus
from billing_core.models.base import AuditMixin, Base, IdMixin


class Client(Base, IdMixin, AuditMixin):
    __tablename__ = "clients"
    __table_args__ = (Index("idx_clients_status", "status"),)

    name: Mapped[str] = mapped_column(String(200), nullable=False)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    tax_id: Mapped[str] = mapped_column(String(32), unique=True, nullable=False)
    phone: Mapped[str | None] = mapped_column(String(32))
    address: Mapped[str | None] = mapped_column(Text)
    # Derived from invoices; written only by the client standing service.
    status: Mapped[str] = mapped_column(String(20), default=ClientStatus.ACTIVE.value, nullable=False)

    subscriptions = relationship("Subscription", back_populates="client")
    invoices = relationship("Invoice", back_populates="client")
