"""
Clock

Injectable source of the current time. Services never call ``datetime.now``
directly so that "today" comparisons and live service sessions can be tested
deterministically.
"""

from datetime import date, datetime
from typing import Protocol

from iskolar.core.config import settings


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in the configured local timezone."""

    def now(self) -> datetime:
        return datetime.now(settings.tzinfo)


class FixedClock:
    """Clock frozen at a given instant (tests, replays)."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant


def today(clock: Clock) -> date:
    return clock.now().date()


system_clock = SystemClock()


def get_clock() -> Clock:
    """FastAPI dependency returning the wall clock."""
    return system_clock
