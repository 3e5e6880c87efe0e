"""
Community Service Repository

Database operations for service entries and reports. Functions flush but
never commit; the calling service owns the transaction.
"""

from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    CommunityServiceEntry,
    CommunityServiceReport,
    EntryStatus,
    ReportStatus,
    ReportType,
)

# ============================================
# Entries
# ============================================


async def get_entry(db: AsyncSession, id: UUID) -> CommunityServiceEntry | None:
    """Get entry by ID."""
    return await db.get(CommunityServiceEntry, id)


async def get_active_entry(
    db: AsyncSession, application_id: UUID, service_date: date
) -> CommunityServiceEntry | None:
    """The in-progress entry for (application, date), if any."""
    result = await db.execute(
        select(CommunityServiceEntry).where(
            CommunityServiceEntry.scholarship_application_id == application_id,
            CommunityServiceEntry.service_date == service_date,
            CommunityServiceEntry.status == EntryStatus.IN_PROGRESS,
        )
    )
    return result.scalars().first()


async def list_entries(db: AsyncSession, application_id: UUID) -> list[CommunityServiceEntry]:
    result = await db.execute(
        select(CommunityServiceEntry)
        .where(CommunityServiceEntry.scholarship_application_id == application_id)
        .order_by(CommunityServiceEntry.service_date.desc(), CommunityServiceEntry.time_in.desc())
    )
    return list(result.scalars().all())


async def create_entry(
    db: AsyncSession,
    application_id: UUID,
    service_date: date,
    time_in: time,
    task_description: str,
) -> CommunityServiceEntry:
    """Insert a new entry in ``in_progress``."""
    entry = CommunityServiceEntry(
        scholarship_application_id=application_id,
        service_date=service_date,
        time_in=time_in,
        task_description=task_description,
        photos=[],
        hours_completed=Decimal(0),
        status=EntryStatus.IN_PROGRESS,
    )

    db.add(entry)
    await db.flush()

    return entry


async def complete_entry(
    db: AsyncSession,
    entry: CommunityServiceEntry,
    time_out: time,
    hours: Decimal,
    lessons_learned: str | None,
    photos: list[str],
) -> CommunityServiceEntry:
    entry.time_out = time_out
    entry.hours_completed = hours
    entry.lessons_learned = lessons_learned
    entry.photos = list(photos)
    entry.status = EntryStatus.COMPLETED

    await db.flush()

    return entry


async def delete_entry(db: AsyncSession, entry: CommunityServiceEntry) -> None:
    await db.delete(entry)
    await db.flush()


async def update_entry_review(
    db: AsyncSession,
    entry: CommunityServiceEntry,
    status: EntryStatus,
    admin_notes: str | None,
) -> CommunityServiceEntry:
    entry.status = status
    entry.admin_notes = admin_notes

    await db.flush()

    return entry


# ============================================
# Reports
# ============================================


async def get_report(db: AsyncSession, id: UUID) -> CommunityServiceReport | None:
    """Get report by ID."""
    return await db.get(CommunityServiceReport, id)


async def list_reports(db: AsyncSession, application_id: UUID) -> list[CommunityServiceReport]:
    result = await db.execute(
        select(CommunityServiceReport)
        .where(CommunityServiceReport.scholarship_application_id == application_id)
        .order_by(CommunityServiceReport.submitted_at)
    )
    return list(result.scalars().all())


async def create_report(
    db: AsyncSession,
    application_id: UUID,
    report_type: ReportType,
    description: str,
    days_completed: Decimal,
    total_hours: Decimal,
    submitted_at: datetime,
    service_date: date | None = None,
    lessons_learned: str | None = None,
    pdf_report_path: str | None = None,
) -> CommunityServiceReport:
    """Insert a new report in ``pending_review``."""
    report = CommunityServiceReport(
        scholarship_application_id=application_id,
        report_type=report_type,
        description=description,
        service_date=service_date,
        lessons_learned=lessons_learned,
        pdf_report_path=pdf_report_path,
        days_completed=days_completed,
        total_hours=total_hours,
        status=ReportStatus.PENDING_REVIEW,
        submitted_at=submitted_at,
    )

    db.add(report)
    await db.flush()

    return report


async def update_review(
    db: AsyncSession,
    report: CommunityServiceReport,
    status: ReportStatus,
    rejection_reason: str | None,
    reviewed_at: datetime,
    days_completed: Decimal | None = None,
    total_hours: Decimal | None = None,
) -> CommunityServiceReport:
    report.status = status
    report.rejection_reason = rejection_reason
    report.reviewed_at = reviewed_at
    if days_completed is not None:
        report.days_completed = days_completed
    if total_hours is not None:
        report.total_hours = total_hours

    await db.flush()

    return report


async def delete_report(db: AsyncSession, report: CommunityServiceReport) -> None:
    await db.delete(report)
    await db.flush()
