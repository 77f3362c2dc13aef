"""Run a billing batch job once, e.g. from cron: ``python scripts/run_billing_job.py billing.sweep_overdue``."""

from __future__ import annotations

import argparse
import json
import sys
from datetime import date
from pathlib import Path

PROJECT_ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(PROJECT_ROOT))

from billing_core.core.exceptions import BillingError
from billing_core.core.logging_config import configure_logging
from billing_core.tasks.billing_tasks import run_job
from billing_core.tasks.registry import default_registry


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description="Run one idempotent billing batch job.")
    parser.add_argument("job", choices=default_registry.keys(), help="Job key to run.")
    parser.add_argument(
        "--as-of",
        type=date.fromisoformat,
        default=None,
        help="Reference date (YYYY-MM-DD). Defaults to today (UTC).",
    )
    args = parser.parse_args(argv)

    configure_logging()
    try:
        result = run_job(args.job, args.as_of)
    except BillingError as exc:
        print(json.dumps(exc.to_dict(), indent=2), file=sys.stderr)
        return 2
    print(json.dumps(result, indent=2))
    return 0 if not result["failures"] else 1


if __name__ == "__main__":
    sys.exit(main())
