"""
Calendar utilities.

Every function that needs "now" takes a Clock, so tests can pin the date.
"""

import calendar
from datetime import date, datetime
from typing import Optional, Protocol
from zoneinfo import ZoneInfo

from spendwise.utils.formatters import month_key


class Clock(Protocol):
    """Anything that can tell the current time."""

    def now(self) -> datetime:
        ...


class SystemClock:
    """Wall clock, in `timezone` if given, otherwise local time."""

    def __init__(self, timezone: Optional[str] = None):
        self._tz = ZoneInfo(timezone) if timezone else None

    def now(self) -> datetime:
        return datetime.now(self._tz)


class FixedClock:
    """A clock that always reports the same moment. Can be moved by hand."""

    def __init__(self, moment: datetime):
        self._moment = moment

    @classmethod
    def on(cls, year: int, month: int, day: int) -> 'FixedClock':
        return cls(datetime(year, month, day, 12, 0))

    def now(self) -> datetime:
        return self._moment

    def set(self, moment: datetime) -> None:
        self._moment = moment


def current_month(clock: Clock) -> str:
    """Current month as `YYYY-MM` (1-indexed, zero-padded)."""
    return month_key(clock.now().date())


def today(clock: Clock) -> date:
    """Current calendar date."""
    return clock.now().date()


def today_iso(clock: Clock) -> str:
    """Current date as `YYYY-MM-DD`, the form stored on spending entries."""
    return today(clock).isoformat()


def days_remaining_in_month(clock: Clock) -> int:
    """
    Days left in the current month, counting today.

    Returns 1 on the last day of the month and never less.
    """
    now = clock.now()
    last_day = calendar.monthrange(now.year, now.month)[1]
    return last_day - now.day + 1
