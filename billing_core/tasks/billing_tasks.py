"""Celery tasks wrapping the billing batch jobs."""

from __future__ import annotations

import logging
import uuid
from datetime import date
from typing import Any

from billing_core.database.db import get_db_session
from billing_core.services.invoice_generator import GENERATE_JOB
from billing_core.services.overdue_sweeper import SWEEP_JOB
from billing_core.services.subscription_service import SUSPEND_DELINQUENT_JOB
from billing_core.tasks.celery_app import celery_app
from billing_core.tasks.hooks import after_job, before_job
from billing_core.tasks.registry import default_registry

logger = logging.getLogger(__name__)


def _parse_as_of(as_of: str | date | None) -> date | None:
    if as_of is None or isinstance(as_of, date):
        return as_of
    return date.fromisoformat(as_of)


def run_job(job_key: str, as_of: str | date | None = None) -> dict[str, Any]:
    """Run one batch job in a fresh session and return its JSON-ready result."""
    executor = default_registry.get(job_key)
    parsed = _parse_as_of(as_of)
    context = {"trace_id": uuid.uuid4().hex, "as_of": parsed.isoformat() if parsed else None}
    logger.info("job.start", extra=before_job(job_key=job_key, context=context))

    try:
        with get_db_session() as session:
            result = executor(session, parsed)
    except Exception:
        logger.exception("job.failed", extra=after_job(job_key=job_key, context=context, status="failed"))
        raise

    status = "succeeded" if result.ok else "partial"
    logger.info(
        "job.finish",
        extra=after_job(
            job_key=job_key,
            context=context,
            status=status,
            processed=result.processed,
            affected=len(result.affected_ids),
            failed=len(result.failures),
        ),
    )
    return result.to_dict()


@celery_app.task(name=GENERATE_JOB)
def generate_due_invoices_task(as_of: str | None = None) -> dict[str, Any]:
    return run_job(GENERATE_JOB, as_of)


@celery_app.task(name=SWEEP_JOB)
def sweep_overdue_task(as_of: str | None = None) -> dict[str, Any]:
    return run_job(SWEEP_JOB, as_of)


@celery_app.task(name=SUSPEND_DELINQUENT_JOB)
def suspend_delinquent_task(as_of: str | None = None) -> dict[str, Any]:
    return run_job(SUSPEND_DELINQUENT_JOB, as_of)
