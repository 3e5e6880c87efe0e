"""
Community Service Ledger

Aggregate views over an application's service entries and reports. Nothing
here is cached on the application row; every figure is recomputed from the
child rows on demand.
"""

from collections.abc import Iterable
from dataclasses import dataclass, field
from datetime import date
from decimal import ROUND_HALF_UP, Decimal

from .models import (
    CommunityServiceEntry,
    CommunityServiceReport,
    EntryStatus,
    ReportStatus,
)

QUANTUM = Decimal("0.01")


def _q(value: Decimal) -> Decimal:
    return value.quantize(QUANTUM, rounding=ROUND_HALF_UP)


def hours_to_days(hours: Decimal, hours_per_day: int) -> Decimal:
    """Fractional service days for ``hours`` (e.g. 4 hours -> 0.50 days)."""
    return _q(Decimal(hours) / Decimal(hours_per_day))


def days_to_hours(days: Decimal, hours_per_day: int) -> Decimal:
    return _q(Decimal(days) * Decimal(hours_per_day))


def total_days_reported(reports: Iterable[CommunityServiceReport]) -> Decimal:
    """Days claimed across every report, whatever its review state."""
    return _q(sum((Decimal(r.days_completed) for r in reports), Decimal(0)))


def approved_days(reports: Iterable[CommunityServiceReport]) -> Decimal:
    return _q(
        sum(
            (Decimal(r.days_completed) for r in reports if r.status == ReportStatus.APPROVED),
            Decimal(0),
        )
    )


def total_hours_logged(entries: Iterable[CommunityServiceEntry]) -> Decimal:
    return _q(sum((Decimal(e.hours_completed) for e in entries), Decimal(0)))


def remaining_days(required_days: int, reports: Iterable[CommunityServiceReport]) -> Decimal:
    """Required days not yet claimed by a report, floor-clamped at 0."""
    return max(Decimal(0), _q(Decimal(required_days) - total_days_reported(reports)))


def all_reports_approved(reports: Iterable[CommunityServiceReport]) -> bool:
    """True iff at least one report exists and every report is approved."""
    reports = list(reports)
    return bool(reports) and all(r.status == ReportStatus.APPROVED for r in reports)


def service_requirement_met(
    required_days: int, reports: Iterable[CommunityServiceReport]
) -> bool:
    """Approved days cover the program's required days."""
    return approved_days(reports) >= Decimal(required_days)


def active_entry_for_date(
    entries: Iterable[CommunityServiceEntry], service_date: date
) -> CommunityServiceEntry | None:
    for entry in entries:
        if entry.service_date == service_date and entry.status == EntryStatus.IN_PROGRESS:
            return entry
    return None


@dataclass(frozen=True)
class ServiceSummary:
    required_days: int
    required_hours: Decimal
    days_completed: Decimal
    hours_completed: Decimal
    approved_days: Decimal
    remaining_days: Decimal
    remaining_hours: Decimal
    active_entries: list[CommunityServiceEntry] = field(default_factory=list)


def summarize(
    required_days: int,
    reports: list[CommunityServiceReport],
    entries: list[CommunityServiceEntry],
    hours_per_day: int,
) -> ServiceSummary:
    """Dashboard figures for an application's community service."""
    required_hours = days_to_hours(Decimal(required_days), hours_per_day)
    days_done = total_days_reported(reports)
    hours_done = total_hours_logged(entries)

    return ServiceSummary(
        required_days=required_days,
        required_hours=required_hours,
        days_completed=days_done,
        hours_completed=hours_done,
        approved_days=approved_days(reports),
        remaining_days=max(Decimal(0), _q(Decimal(required_days) - days_done)),
        remaining_hours=max(Decimal(0), _q(required_hours - hours_done)),
        active_entries=[e for e in entries if e.status == EntryStatus.IN_PROGRESS],
    )
