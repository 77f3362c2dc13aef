"""Dependency providers for API handlers."""

from __future__ import annotations

from collections.abc import Generator

from sqlalchemy.orm import Session

from billing_core.core.clock import Clock, utcnow
from billing_core.core.config import Config, get_config
from billing_core.database.db import get_db


def get_settings() -> Config:
    """Return validated application configuration."""
    return get_config()


def get_db_session() -> Generator[Session, None, None]:
    """Yield SQLAlchemy session for dependency injection."""
    yield from get_db()


def get_clock() -> Clock:
    """Wall clock; overridden in tests with a fixed clock."""
    return utcnow
