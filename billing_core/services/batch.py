"""Result bookkeeping for the unattended batch jobs."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from typing import Any

from billing_core.core.exceptions import BillingError


@dataclass
class BatchFailure:
    item_id: str
    error_code: str
    detail: str


@dataclass
class BatchResult:
    """Outcome of one pass over a batch job; failures never abort the pass."""

    job: str
    as_of: date
    processed: int = 0
    skipped: int = 0
    affected_ids: list[str] = field(default_factory=list)
    failures: list[BatchFailure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures

    def record_failure(self, item_id: str, exc: Exception) -> None:
        code = exc.code if isinstance(exc, BillingError) else exc.__class__.__name__
        self.failures.append(BatchFailure(item_id=item_id, error_code=code, detail=str(exc)))

    def to_dict(self) -> dict[str, Any]:
        return {
            "job": self.job,
            "as_of": self.as_of.isoformat(),
            "processed": self.processed,
            "skipped": self.skipped,
            "affected_ids": list(self.affected_ids),
            "failures": [failure.__dict__ for failure in self.failures],
        }
