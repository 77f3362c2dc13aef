"""Shared service base with robust session lifecycle behavior."""

from __future__ import annotations

from collections.abc import Generator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

import billing_core.database.db as db_module
from billing_core.core.clock import Clock, utcnow
from billing_core.core.exceptions import DatabaseError


class BaseService:
    """Base class for services that operate on a SQLAlchemy session."""

    def __init__(self, db: Session | None = None, clock: Clock | None = None) -> None:
        self.db = db or db_module.SessionLocal()
        self.clock = clock or utcnow

    def commit(self) -> None:
        """Commit current transaction and rollback on failure."""
        try:
            self.db.commit()
        except SQLAlchemyError as exc:
            self.db.rollback()
            raise DatabaseError(f"Commit failed: {exc.__class__.__name__}") from exc

    def rollback(self) -> None:
        self.db.rollback()

    @contextmanager
    def atomic(self) -> Generator[Session, None, None]:
        """Run a state transition and its triggered recomputes as one unit."""
        try:
            yield self.db
        except Exception:
            self.db.rollback()
            raise
        self.commit()

    def close(self) -> None:
        self.db.close()

    def __enter__(self) -> "BaseService":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if exc_type:
            self.rollback()
        self.close()
