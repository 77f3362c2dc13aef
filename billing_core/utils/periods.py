"""Billing period arithmetic.

Reference months are ``YYYY-MM`` strings. Every function here is pure; range
checks on billing days belong to the subscription service, so ``due_date_for``
clamps instead of rejecting (legacy rows may hold days past 28).
"""

from __future__ import annotations

import calendar
import re
from datetime import date

from billing_core.core.exceptions import ValidationError

_REFERENCE_MONTH_RE = re.compile(r"^(\d{4})-(0[1-9]|1[0-2])$")

MIN_BILLING_DAY = 1
MAX_BILLING_DAY = 28


def parse_reference_month(reference_month: str) -> tuple[int, int]:
    """Split ``YYYY-MM`` into ``(year, month)``."""
    match = _REFERENCE_MONTH_RE.match(reference_month or "")
    if match is None:
        raise ValidationError(
            f"Reference month must be formatted YYYY-MM, got {reference_month!r}.",
            field="reference_month",
        )
    return int(match.group(1)), int(match.group(2))


def format_reference_month(year: int, month: int) -> str:
    return f"{year:04d}-{month:02d}"


def reference_month_of(day: date) -> str:
    """Reference month containing ``day``."""
    return format_reference_month(day.year, day.month)


def days_in_month(reference_month: str) -> int:
    year, month = parse_reference_month(reference_month)
    return calendar.monthrange(year, month)[1]


def due_date_for(reference_month: str, billing_day: int) -> date:
    """Due date inside ``reference_month``, clamped to the month's last day."""
    year, month = parse_reference_month(reference_month)
    last_day = calendar.monthrange(year, month)[1]
    return date(year, month, max(1, min(billing_day, last_day)))


def next_reference_month(reference_month: str) -> str:
    year, month = parse_reference_month(reference_month)
    if month == 12:
        return format_reference_month(year + 1, 1)
    return format_reference_month(year, month + 1)


def previous_reference_month(reference_month: str) -> str:
    year, month = parse_reference_month(reference_month)
    if month == 1:
        return format_reference_month(year - 1, 12)
    return format_reference_month(year, month - 1)


def default_billing_day(start_date: date) -> int:
    """Billing day derived from a start date, capped so every month has it."""
    return min(start_date.day, MAX_BILLING_DAY)


def is_valid_billing_day(billing_day: int) -> bool:
    return MIN_BILLING_DAY <= billing_day <= MAX_BILLING_DAY
