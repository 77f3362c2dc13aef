"""Lifecycle hooks for batch job execution."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any

from billing_core.core.logging import LogContext, build_log_event


def before_job(job_key: str, context: dict[str, Any]) -> dict[str, Any]:
    """Build pre-job log payload."""
    return build_log_event(
        event="job.start",
        context=LogContext(job=job_key, trace_id=context.get("trace_id")),
        as_of=context.get("as_of"),
    )


def after_job(job_key: str, context: dict[str, Any], status: str, **fields: Any) -> dict[str, Any]:
    """Build post-job log payload."""
    return build_log_event(
        event="job.finish",
        context=LogContext(job=job_key, trace_id=context.get("trace_id")),
        as_of=context.get("as_of"),
        status=status,
        finished_at=datetime.now(timezone.utc).isoformat(),
        **fields,
    )
