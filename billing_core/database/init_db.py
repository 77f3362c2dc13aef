"""Schema bootstrap: Alembic upgrade for real databases, create_all for throwaway sqlite."""

from __future__ import annotations

import logging
from pathlib import Path

from alembic import command
from alembic.config import Config as AlembicConfig

import billing_core.database.db as db_module
from billing_core.models import Base

logger = logging.getLogger(__name__)

PROJECT_ROOT = Path(__file__).resolve().parents[2]


def _build_alembic_config(database_url: str) -> AlembicConfig:
    cfg = AlembicConfig(str(PROJECT_ROOT / "alembic.ini"))
    cfg.set_main_option("script_location", str(PROJECT_ROOT / "migrations"))
    cfg.set_main_option("sqlalchemy.url", database_url)
    return cfg


def upgrade_to_head(database_url: str | None = None) -> None:
    """Apply all Alembic migrations to the active database."""
    url = database_url or db_module.get_active_database_url()
    command.upgrade(_build_alembic_config(url), "head")
    logger.info("database.migrated", extra={"event": "database.migrated", "scheme": url.split("://", 1)[0]})


def create_schema() -> None:
    """Create every table directly from model metadata (local sqlite only)."""
    Base.metadata.create_all(bind=db_module.get_engine())
    logger.info("database.schema_created", extra={"event": "database.schema_created"})


def init_db(use_migrations: bool = True) -> None:
    if use_migrations:
        upgrade_to_head()
    else:
        create_schema()
