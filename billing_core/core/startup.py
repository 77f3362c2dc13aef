"""Startup validation and bootstrap helpers."""

from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import inspect

from billing_core.core.config import Config, get_config
from billing_core.core.logging_config import configure_logging
from billing_core.database.db import get_active_database_url, get_engine, verify_database_connection
from billing_core.models import Base

logger = logging.getLogger(__name__)


def billing_policy(config: Config) -> dict[str, Any]:
    """Billing flags and job schedule in effect, as logged at startup."""
    grace_days = config.DELINQUENT_SUSPENSION_GRACE_DAYS
    return {
        "allow_future_billing": config.ALLOW_FUTURE_BILLING,
        "block_delinquent_subscriptions": config.BLOCK_DELINQUENT_SUBSCRIPTIONS,
        "delinquent_suspension_grace_days": grace_days,
        "scheduled_jobs": {
            "billing.generate_due_invoices": f"{config.BILLING_JOB_HOUR:02d}:00 UTC",
            "billing.sweep_overdue": f"{config.BILLING_JOB_HOUR:02d}:15 UTC",
            "billing.suspend_delinquent": f"{config.BILLING_JOB_HOUR:02d}:30 UTC" if grace_days > 0 else None,
        },
    }


def missing_billing_tables() -> list[str]:
    """Model tables absent from the connected database, e.g. before ``alembic upgrade head``."""
    existing = set(inspect(get_engine()).get_table_names())
    return sorted(set(Base.metadata.tables) - existing)


def validate_startup_config() -> None:
    """Fail-fast config, connectivity and schema checks."""
    config = get_config()
    database_ok = verify_database_connection()
    if not database_ok and config.DB_CONNECTIVITY_REQUIRED:
        raise RuntimeError("Database connectivity check failed.")
    if not database_ok:
        logger.warning(
            "startup.database.connectivity_optional_failed",
            extra={"event": "startup.database.connectivity_optional_failed"},
        )
    else:
        missing = missing_billing_tables()
        if missing and config.is_production:
            raise RuntimeError(f"Billing schema is incomplete; missing tables: {', '.join(missing)}.")
        if missing:
            logger.warning(
                "startup.database.schema_incomplete",
                extra={"event": "startup.database.schema_incomplete", "missing_tables": missing},
            )

    active_database_url = get_active_database_url()
    if config.is_production and active_database_url.startswith("sqlite"):
        logger.warning(
            "startup.production.sqlite_detected",
            extra={"event": "startup.production.sqlite_detected"},
        )
    if config.is_production and config.ALLOW_FUTURE_BILLING:
        logger.warning(
            "startup.production.future_billing_enabled",
            extra={"event": "startup.production.future_billing_enabled"},
        )

    logger.info(
        "startup.config.validated",
        extra={
            "event": "startup.config.validated",
            "env": config.ENV,
            "database_url_scheme": active_database_url.split("://", 1)[0],
            "db_connectivity_required": config.DB_CONNECTIVITY_REQUIRED,
            "billing_policy": billing_policy(config),
        },
    )


def bootstrap() -> None:
    """Initialize logging and validate runtime configuration."""
    configure_logging()
    validate_startup_config()
