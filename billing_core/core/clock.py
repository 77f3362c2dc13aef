"""Injectable clock used by every time-dependent billing operation."""

from __future__ import annotations

from collections.abc import Callable
from datetime import date, datetime, timezone

Clock = Callable[[], datetime]


def utcnow() -> datetime:
    """Timezone-aware UTC timestamp helper."""
    return datetime.now(timezone.utc)


def fixed_clock(moment: datetime | date) -> Clock:
    """Return a clock frozen at ``moment`` (dates are taken at midnight UTC)."""
    if not isinstance(moment, datetime):
        moment = datetime(moment.year, moment.month, moment.day, tzinfo=timezone.utc)
    elif moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)

    def _now() -> datetime:
        return moment

    return _now
