"""Plan model module."""

from __future__ import annotations

from sqlalchemy import JSON, Boolean, CheckConstraint, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from billing_core.models.base import AuditMixin, Base, IdMixin


class Plan(Base, IdMixin, AuditMixin):
    __tablename__ = "plans"
    __table_args__ = (CheckConstraint("price >= 0", name="ck_plans_price_non_negative"),)

    name: Mapped[str] = mapped_column(String(100), nullable=False)
    slug: Mapped[str] = mapped_column(String(50), unique=True, nullable=False)
    description: Mapped[str | None] = mapped_column(Text)
    # Minor units (cents). Invoices snapshot this at generation time.
    price: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    features: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    tools: Mapped[list[str]] = mapped_column(JSON, default=list, nullable=False)
    max_artifacts_per_month: Mapped[int] = mapped_column(Integer, default=10, nullable=False)
    is_active: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False)
