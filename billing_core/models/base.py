"""Shared SQLAlchemy base and common mixins for billing models."""

from __future__ import annotations

import uuid
from datetime import datetime

from sqlalchemy import DateTime, String
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column

from billing_core.core.clock import utcnow


def new_id() -> str:
    """Create a UUID4-based row identifier."""
    return str(uuid.uuid4())


class Base(DeclarativeBase):
    """Declarative base class for the billing schema."""


class IdMixin:
    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)


class AuditMixin:
    """Standard audit fields for all domain models."""

    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False)
