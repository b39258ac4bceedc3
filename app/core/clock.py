"""
Clock abstraction for everything that branches on "today".

Payroll policies (future month, current month, days elapsed) depend on the
calendar date; components take a Clock instead of calling date.today().
"""

from datetime import date, datetime, time, timezone


class Clock:
    """Source of the current date and time."""

    def today(self) -> date:
        raise NotImplementedError

    def now(self) -> datetime:
        raise NotImplementedError


class SystemClock(Clock):
    """Wall-clock time."""

    def today(self) -> date:
        return date.today()

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class FixedClock(Clock):
    """Clock pinned to a given day, used by tests and backfills."""

    def __init__(self, today: date):
        self._today = today

    def today(self) -> date:
        return self._today

    def now(self) -> datetime:
        return datetime.combine(self._today, time(12, 0), tzinfo=timezone.utc)


system_clock = SystemClock()


def get_clock() -> Clock:
    return system_clock
