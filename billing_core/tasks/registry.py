"""Job registry mapping job keys to batch executors."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date

from sqlalchemy.orm import Session

from billing_core.services.batch import BatchResult
from billing_core.services.invoice_generator import GENERATE_JOB, InvoiceGenerator
from billing_core.services.overdue_sweeper import SWEEP_JOB, OverdueSweeper
from billing_core.services.subscription_service import SUSPEND_DELINQUENT_JOB, SubscriptionService

JobExecutor = Callable[[Session, date | None], BatchResult]


class JobRegistry:
    """Mutable registry of the idempotent billing batch jobs."""

    def __init__(self) -> None:
        self._executors: dict[str, JobExecutor] = {}

    def register(self, job_key: str, executor: JobExecutor) -> None:
        self._executors[job_key] = executor

    def get(self, job_key: str) -> JobExecutor:
        if job_key not in self._executors:
            raise KeyError(f"Unknown job key: {job_key}")
        return self._executors[job_key]

    def keys(self) -> list[str]:
        return sorted(self._executors.keys())


def _generate_due_invoices(db: Session, as_of: date | None) -> BatchResult:
    return InvoiceGenerator(db=db).generate_due_invoices(as_of)


def _sweep_overdue(db: Session, as_of: date | None) -> BatchResult:
    return OverdueSweeper(db=db).sweep(as_of)


def _suspend_delinquent(db: Session, as_of: date | None) -> BatchResult:
    return SubscriptionService(db=db).suspend_delinquent_subscriptions(as_of)


def build_default_registry() -> JobRegistry:
    registry = JobRegistry()
    registry.register(GENERATE_JOB, _generate_due_invoices)
    registry.register(SWEEP_JOB, _sweep_overdue)
    registry.register(SUSPEND_DELINQUENT_JOB, _suspend_delinquent)
    return registry


default_registry = build_default_registry()
