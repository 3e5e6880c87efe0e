"""
Time Session Calculator

Converts a service session (date, time in, time out or "now") into credited
hours. Pure functions; the caller supplies the current instant.
"""

from dataclasses import dataclass
from datetime import date, datetime, time
from decimal import ROUND_HALF_UP, Decimal

from iskolar.core.exceptions import (
    InvalidIntervalError,
    NonPositiveDurationError,
    ValidationError,
)

HOURS_QUANTUM = Decimal("0.01")


@dataclass(frozen=True)
class SessionHours:
    hours: Decimal
    time_out: time


def round_hours(minutes: int) -> Decimal:
    """Minutes to hours, rounded half-up to 2 decimal places."""
    return (Decimal(minutes) / Decimal(60)).quantize(HOURS_QUANTUM, rounding=ROUND_HALF_UP)


def minutes_between(start: datetime, end: datetime) -> int:
    """Whole minutes elapsed from ``start`` to ``end`` (partial minutes dropped)."""
    return int((end - start).total_seconds() // 60)


def compute_hours(
    service_date: date,
    time_in: time,
    time_out: time | None,
    now: datetime,
) -> SessionHours:
    """
    Compute the hours credited for a session.

    With an explicit ``time_out`` the session length is ``time_out - time_in``
    on ``service_date``. Without one the session is closed live: it must be
    dated today, and the elapsed time runs from ``time_in`` on
    ``service_date`` to ``now``.

    Args:
        service_date: Date the session took place
        time_in: Start time of the session
        time_out: End time, or None to close the session at ``now``
        now: Current instant (timezone of the service location)

    Returns:
        SessionHours with the rounded hours and the resolved time out

    Raises:
        ValidationError: If no time out is given for a session not dated today
        InvalidIntervalError: If the end time is not after the start time
        NonPositiveDurationError: If the computed hours round to zero or less
    """
    if time_out is None:
        if service_date != now.date():
            raise ValidationError(
                "A time out is required to end a session from a past date "
                f"({service_date.isoformat()})."
            )

        resolved = now.time().replace(second=0, microsecond=0)
        if resolved <= time_in:
            raise InvalidIntervalError(time_in, resolved)

        started_at = datetime.combine(service_date, time_in, tzinfo=now.tzinfo)
        minutes = minutes_between(started_at, now)
    else:
        if time_out <= time_in:
            raise InvalidIntervalError(time_in, time_out)

        resolved = time_out
        minutes = minutes_between(
            datetime.combine(service_date, time_in),
            datetime.combine(service_date, time_out),
        )

    hours = round_hours(minutes)
    if hours <= 0:
        raise NonPositiveDurationError(hours)

    return SessionHours(hours=hours, time_out=resolved)
