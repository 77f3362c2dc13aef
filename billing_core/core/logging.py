"""Structured logging helpers for billing events."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any


@dataclass(frozen=True)
class LogContext:
    """Normalized context fields expected in structured logs."""

    client_id: str | None = None
    subscription_id: str | None = None
    invoice_id: str | None = None
    payment_id: str | None = None
    job: str | None = None
    trace_id: str | None = None


def build_log_event(event: str, context: LogContext, **fields: Any) -> dict[str, Any]:
    """Build a normalized structured log payload."""
    payload: dict[str, Any] = {
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "event": event,
        "client_id": context.client_id,
        "subscription_id": context.subscription_id,
        "invoice_id": context.invoice_id,
        "payment_id": context.payment_id,
        "job": context.job,
        "trace_id": context.trace_id,
    }
    payload.update(fields)
    return payload
