"""
Community Service Service Layer

Business logic for logging service sessions and submitting service reports.

This module implements:
1. Time-tracked sessions:
   - Start a session (one in-progress session per date)
   - End a session (hours computed once, photos attached)
   - Cancel an in-progress session

2. Reports:
   - Tracked reports (hours claimed, capped by the remaining required days)
   - PDF reports (credited according to the configured credit policy)
   - Undo a report that has not been approved
   - Undo service completion

3. Administrator review:
   - Reports, one at a time or in bulk, completing the service requirement
     once approved days cover the program's required days
   - Completed sessions (approve/reject with notes, undo an approval)

Sessions and reports are accepted only while the application is ``enrolled``
or ``service_pending``.
"""

import logging
from dataclasses import dataclass
from datetime import date, time
from decimal import Decimal
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from iskolar.core.auth import StudentActor
from iskolar.core.clock import Clock
from iskolar.core.config import PdfReportCreditPolicy, settings
from iskolar.core.database import commit
from iskolar.core.events import ReviewEvent, publish_review
from iskolar.core.exceptions import (
    CannotUndoApprovedError,
    DuplicateActiveSessionError,
    ExceedsRemainingDaysError,
    InvalidTransitionError,
    NotFoundError,
    StorageFailureError,
    TooManyPhotosError,
    ValidationError,
)
from iskolar.core.storage import FileStore, UploadedFile, unique_path, validate_upload
from iskolar.modules.applications import service as applications_service
from iskolar.modules.applications.models import ApplicationStatus, ScholarshipApplication
from iskolar.modules.applications.state_machine import (
    SERVICE_REPORTING_STATUSES,
    ApplicationAction,
)
from iskolar.modules.community_service import ledger, repository
from iskolar.modules.community_service.models import (
    CommunityServiceEntry,
    CommunityServiceReport,
    EntryStatus,
    ReportStatus,
    ReportType,
)
from iskolar.modules.community_service.timesession import compute_hours
from iskolar.modules.documents.service import discard_file, restore_file, snapshot_file

logger = logging.getLogger(__name__)

ALLOWED_PHOTO_EXTENSIONS = {"jpg", "jpeg", "png"}
ALLOWED_REPORT_EXTENSIONS = {"pdf"}

MIN_TASK_DESCRIPTION_LENGTH = 10
MIN_LESSONS_LEARNED_LENGTH = 10
MIN_REPORT_DESCRIPTION_LENGTH = 50
MIN_REPORT_HOURS = Decimal("0.5")


@dataclass(frozen=True)
class TrackedReportPayload:
    description: str
    total_hours: Decimal
    service_date: date
    lessons_learned: str | None = None


@dataclass(frozen=True)
class PdfReportPayload:
    pdf: UploadedFile
    description: str = "PDF community service report"


ReportPayload = TrackedReportPayload | PdfReportPayload


async def _get_reporting_application(
    db: AsyncSession,
    actor: StudentActor,
    application_id: UUID,
    action: str,
) -> ScholarshipApplication:
    """
    Get an owned application that accepts community service.

    Raises:
        NotFoundError: If the application doesn't exist
        ForbiddenError: If it belongs to another student
        InvalidTransitionError: If the application is not enrolled or service pending
    """
    application = await applications_service.get_owned_application(db, actor, application_id)

    if application.status not in SERVICE_REPORTING_STATUSES:
        logger.warning(
            f"Community service {action} rejected for application {application.id}: "
            f"status={application.status.value}"
        )
        raise InvalidTransitionError(application.status.value, action)

    return application


async def _get_owned_entry(
    db: AsyncSession, actor: StudentActor, entry_id: UUID
) -> tuple[CommunityServiceEntry, ScholarshipApplication]:
    entry = await repository.get_entry(db, entry_id)
    if not entry:
        raise NotFoundError("Service entry", entry_id)

    application = await applications_service.get_owned_application(
        db, actor, entry.scholarship_application_id
    )
    return entry, application


def _check_min_length(value: str | None, minimum: int, label: str) -> None:
    if value is None or len(value.strip()) < minimum:
        raise ValidationError(f"The {label} must be at least {minimum} characters.")


# ============================================
# Sessions
# ============================================


async def start_entry(
    db: AsyncSession,
    actor: StudentActor,
    application_id: UUID,
    service_date: date,
    time_in: time,
    task_description: str,
    clock: Clock,
) -> CommunityServiceEntry:
    """
    Start a service session.

    Raises:
        ValidationError: If the date is in the future or the description is too short
        InvalidTransitionError: If the application does not accept service
        DuplicateActiveSessionError: If a session for the date is already in progress
    """
    _check_min_length(task_description, MIN_TASK_DESCRIPTION_LENGTH, "task description")
    if service_date > clock.now().date():
        raise ValidationError("The service date cannot be in the future.")

    application = await _get_reporting_application(db, actor, application_id, "start_entry")

    if await repository.get_active_entry(db, application.id, service_date):
        logger.warning(
            f"Duplicate active session for application {application.id} on {service_date}"
        )
        raise DuplicateActiveSessionError(service_date)

    try:
        entry = await repository.create_entry(
            db, application.id, service_date, time_in, task_description.strip()
        )
    except IntegrityError as e:
        # Lost a race against a concurrent start for the same date
        await db.rollback()
        raise DuplicateActiveSessionError(service_date) from e

    await commit(db, "service entry start")

    logger.info(f"Started service entry {entry.id} for application {application.id}")
    return entry


async def end_entry(
    db: AsyncSession,
    store: FileStore,
    actor: StudentActor,
    entry_id: UUID,
    time_out: time | None,
    lessons_learned: str | None,
    photos: list[UploadedFile],
    clock: Clock,
) -> CommunityServiceEntry:
    """
    End an in-progress session and credit its hours.

    Without ``time_out`` the session closes at the current time, which is only
    allowed for a session dated today.

    Raises:
        NotFoundError: If the entry doesn't exist
        ForbiddenError: If it belongs to another student
        InvalidTransitionError: If the entry is not in progress
        TooManyPhotosError: If more photos than allowed are attached
        ValidationError: If a photo or the lessons learned are not accepted
        InvalidIntervalError: If the end time is not after the start time
        NonPositiveDurationError: If the hours round to zero
        StorageFailureError: If storing photos or committing fails
    """
    entry, application = await _get_owned_entry(db, actor, entry_id)

    if application.status not in SERVICE_REPORTING_STATUSES:
        raise InvalidTransitionError(application.status.value, "end_entry")
    if entry.status != EntryStatus.IN_PROGRESS:
        raise InvalidTransitionError(entry.status.value, "end_entry")

    if len(photos) > settings.max_entry_photos:
        raise TooManyPhotosError(len(photos), settings.max_entry_photos)
    if lessons_learned is not None:
        _check_min_length(lessons_learned, MIN_LESSONS_LEARNED_LENGTH, "lessons learned")
    for photo in photos:
        validate_upload(
            photo, ALLOWED_PHOTO_EXTENSIONS, settings.max_photo_size_bytes, label="photo"
        )

    session = compute_hours(entry.service_date, entry.time_in, time_out, clock.now())

    stored: list[str] = []
    try:
        for photo in photos:
            stored.append(
                store.store(photo.content, unique_path(f"service-photos/{application.id}", photo))
            )
    except StorageFailureError:
        for ref in stored:
            discard_file(store, ref)
        raise

    await repository.complete_entry(
        db,
        entry,
        time_out=session.time_out,
        hours=session.hours,
        lessons_learned=lessons_learned.strip() if lessons_learned else None,
        photos=stored,
    )

    try:
        await commit(db, "service entry end")
    except StorageFailureError:
        for ref in stored:
            discard_file(store, ref)
        raise

    logger.info(f"Completed service entry {entry.id}: {session.hours} hours")
    return entry


async def cancel_entry(db: AsyncSession, actor: StudentActor, entry_id: UUID) -> None:
    """
    Discard an in-progress session. No partial credit is kept.

    Raises:
        NotFoundError: If the entry doesn't exist
        ForbiddenError: If it belongs to another student
        InvalidTransitionError: If the entry is no longer in progress
    """
    entry, application = await _get_owned_entry(db, actor, entry_id)

    if entry.status != EntryStatus.IN_PROGRESS:
        raise InvalidTransitionError(entry.status.value, "cancel_entry")

    await repository.delete_entry(db, entry)
    await commit(db, "service entry cancellation")

    logger.info(f"Cancelled service entry {entry_id} on application {application.id}")


async def list_entries(
    db: AsyncSession, actor: StudentActor, application_id: UUID
) -> list[CommunityServiceEntry]:
    application = await applications_service.get_owned_application(db, actor, application_id)
    return await repository.list_entries(db, application.id)


# ============================================
# Reports
# ============================================


def _validate_tracked(payload: TrackedReportPayload, today: date) -> None:
    _check_min_length(payload.description, MIN_REPORT_DESCRIPTION_LENGTH, "description")
    if payload.total_hours < MIN_REPORT_HOURS:
        raise ValidationError(f"The total hours must be at least {MIN_REPORT_HOURS}.")
    if payload.service_date > today:
        raise ValidationError("The service date cannot be in the future.")


async def submit_report(
    db: AsyncSession,
    store: FileStore,
    actor: StudentActor,
    application_id: UUID,
    payload: ReportPayload,
    clock: Clock,
) -> CommunityServiceReport:
    """
    Submit a community service report for review.

    A tracked report is credited ``total_hours / hours_per_service_day`` days
    and is rejected outright when that exceeds the days still required. A PDF
    report is credited according to ``pdf_report_credit_policy``: all
    remaining days, or none until the reviewer assigns them.

    Submitting moves an ``enrolled`` application to ``service_pending``.

    Raises:
        NotFoundError: If the application doesn't exist
        ForbiddenError: If it belongs to another student
        InvalidTransitionError: If the application does not accept service
        ValidationError: If the payload or the PDF is not accepted
        ExceedsRemainingDaysError: If the report claims more than the remaining days
        StorageFailureError: If storing the PDF or committing fails
    """
    now = clock.now()
    hours_per_day = settings.hours_per_service_day

    if isinstance(payload, TrackedReportPayload):
        _validate_tracked(payload, now.date())
    else:
        validate_upload(
            payload.pdf,
            ALLOWED_REPORT_EXTENSIONS,
            settings.max_upload_size_bytes,
            label="PDF report",
        )

    application = await _get_reporting_application(db, actor, application_id, "submit_report")
    program = await applications_service.get_program(db, application.scholarship_program_id)

    reports = await repository.list_reports(db, application.id)
    remaining = ledger.remaining_days(program.community_service_days, reports)

    pdf_ref = None
    if isinstance(payload, TrackedReportPayload):
        days = ledger.hours_to_days(payload.total_hours, hours_per_day)
        if days > remaining:
            logger.warning(
                f"Report for application {application.id} claims {days} days, "
                f"{remaining} remaining"
            )
            raise ExceedsRemainingDaysError(
                remaining, ledger.days_to_hours(remaining, hours_per_day)
            )
        report_fields = {
            "report_type": ReportType.TRACKED,
            "description": payload.description.strip(),
            "days_completed": days,
            "total_hours": payload.total_hours,
            "service_date": payload.service_date,
            "lessons_learned": payload.lessons_learned,
        }
    else:
        if remaining <= 0:
            raise ExceedsRemainingDaysError(remaining, Decimal("0.00"))

        if settings.pdf_report_credit_policy == PdfReportCreditPolicy.FULL_REMAINING:
            days = remaining
        else:
            days = Decimal("0.00")

        pdf_ref = store.store(
            payload.pdf.content,
            unique_path(f"service-reports/{application.id}", payload.pdf),
        )
        report_fields = {
            "report_type": ReportType.PDF_UPLOAD,
            "description": payload.description,
            "days_completed": days,
            "total_hours": ledger.days_to_hours(days, hours_per_day),
            "pdf_report_path": pdf_ref,
        }

    try:
        report = await repository.create_report(
            db, application_id=application.id, submitted_at=now, **report_fields
        )

        events = []
        if application.status == ApplicationStatus.ENROLLED:
            events.append(
                await applications_service.apply_transition(
                    db, application, ApplicationAction.BEGIN_SERVICE_REPORTING, clock
                )
            )
        if application.status == ApplicationStatus.SERVICE_PENDING and (
            ledger.all_reports_approved([*reports, report])
        ):
            events.append(
                await applications_service.apply_transition(
                    db, application, ApplicationAction.COMPLETE_SERVICE, clock
                )
            )
    except SQLAlchemyError as e:
        await db.rollback()
        if pdf_ref:
            discard_file(store, pdf_ref)
        logger.error(f"Failed to save report for application {application.id}: {e}")
        raise StorageFailureError() from e

    try:
        await commit(db, "service report submission")
    except StorageFailureError:
        if pdf_ref:
            discard_file(store, pdf_ref)
        raise

    await applications_service.publish_events(events)

    logger.info(
        f"Submitted {report.report_type.value} report {report.id} for application "
        f"{application.id}: {report.days_completed} days"
    )
    return report


async def undo_report(
    db: AsyncSession,
    store: FileStore,
    actor: StudentActor,
    report_id: UUID,
) -> None:
    """
    Withdraw a report that has not been approved.

    Raises:
        NotFoundError: If the report doesn't exist
        ForbiddenError: If it belongs to another student
        CannotUndoApprovedError: If the report is approved
        StorageFailureError: If the PDF or row could not be removed
    """
    report = await repository.get_report(db, report_id)
    if not report:
        raise NotFoundError("Service report", report_id)

    application = await applications_service.get_owned_application(
        db, actor, report.scholarship_application_id
    )

    if report.status == ReportStatus.APPROVED:
        raise CannotUndoApprovedError()

    pdf_path = report.pdf_report_path
    pdf_content = None
    try:
        if pdf_path:
            pdf_content = snapshot_file(store, pdf_path)
        await repository.delete_report(db, report)
        if pdf_path:
            store.delete(pdf_path)
    except StorageFailureError:
        await db.rollback()
        logger.error(f"Failed to remove PDF {pdf_path} of report {report_id}")
        raise

    try:
        await commit(db, "service report undo")
    except StorageFailureError:
        if pdf_path:
            restore_file(store, pdf_path, pdf_content)
        raise

    logger.info(f"Withdrew report {report_id} from application {application.id}")


async def undo_service_completion(
    db: AsyncSession,
    actor: StudentActor,
    application_id: UUID,
    clock: Clock,
) -> ScholarshipApplication:
    """
    Move a ``service_completed`` application back to ``service_pending``.

    Raises:
        NotFoundError: If the application doesn't exist
        ForbiddenError: If it belongs to another student
        InvalidTransitionError: If the service is not completed
    """
    application = await applications_service.get_owned_application(db, actor, application_id)

    event = await applications_service.apply_transition(
        db, application, ApplicationAction.UNDO_SERVICE_COMPLETION, clock
    )
    await commit(db, "service completion undo")
    await applications_service.publish_events([event])

    return application


async def list_reports(
    db: AsyncSession, actor: StudentActor, application_id: UUID
) -> list[CommunityServiceReport]:
    application = await applications_service.get_owned_application(db, actor, application_id)
    return await repository.list_reports(db, application.id)


async def get_service_summary(
    db: AsyncSession, actor: StudentActor, application_id: UUID
) -> ledger.ServiceSummary:
    """Days/hours completed and remaining for an owned application."""
    application = await applications_service.get_owned_application(db, actor, application_id)
    program = await applications_service.get_program(db, application.scholarship_program_id)

    reports = await repository.list_reports(db, application.id)
    entries = await repository.list_entries(db, application.id)

    return ledger.summarize(
        program.community_service_days, reports, entries, settings.hours_per_service_day
    )


# ============================================
# Administrator Review
# ============================================


def _validate_report_decision(status: ReportStatus, rejection_reason: str | None) -> None:
    if status == ReportStatus.PENDING_REVIEW:
        raise ValidationError("A review must approve or reject the report.")
    if status.is_rejection and not (rejection_reason and rejection_reason.strip()):
        raise ValidationError("A rejection reason is required.")


async def _record_report_review(
    db: AsyncSession,
    report: CommunityServiceReport,
    status: ReportStatus,
    clock: Clock,
    rejection_reason: str | None,
    days_completed: Decimal | None,
) -> tuple[ReviewEvent, list]:
    """Apply one review decision without committing; returns the events to publish."""
    application = await applications_service.get_application(
        db, report.scholarship_application_id
    )
    program = await applications_service.get_program(db, application.scholarship_program_id)
    reports = await repository.list_reports(db, application.id)
    hours_per_day = settings.hours_per_service_day

    credited_hours = None
    if status == ReportStatus.APPROVED:
        if days_completed is None and report.days_completed <= 0:
            raise ValidationError("Assign the days completed before approving this report.")
        if days_completed is not None:
            if days_completed <= 0:
                raise ValidationError("The days completed must be greater than zero.")
            others = [r for r in reports if r.id != report.id]
            remaining = ledger.remaining_days(program.community_service_days, others)
            if days_completed > remaining:
                raise ExceedsRemainingDaysError(
                    remaining, ledger.days_to_hours(remaining, hours_per_day)
                )
            credited_hours = ledger.days_to_hours(days_completed, hours_per_day)
    elif days_completed is not None:
        raise ValidationError("Days can only be assigned when approving a report.")

    now = clock.now()
    previous = report.status
    await repository.update_review(
        db,
        report,
        status=status,
        rejection_reason=rejection_reason if status.is_rejection else None,
        reviewed_at=now,
        days_completed=days_completed,
        total_hours=credited_hours,
    )

    events = []
    if (
        status == ReportStatus.APPROVED
        and application.status == ApplicationStatus.SERVICE_PENDING
        and ledger.service_requirement_met(program.community_service_days, reports)
    ):
        events.append(
            await applications_service.apply_transition(
                db, application, ApplicationAction.COMPLETE_SERVICE, clock
            )
        )

    review = ReviewEvent(
        application_id=application.id,
        subject="service_report",
        subject_id=report.id,
        old_status=previous.value,
        new_status=status.value,
        occurred_at=now,
        rejection_reason=report.rejection_reason,
    )
    return review, events


async def admin_review_report(
    db: AsyncSession,
    report_id: UUID,
    status: ReportStatus,
    clock: Clock,
    rejection_reason: str | None = None,
    days_completed: Decimal | None = None,
) -> CommunityServiceReport:
    """
    Record an administrator's decision on a report.

    ``days_completed`` overrides the credited days on approval; it is
    required when approving a PDF report that was submitted without credit.
    Once approved days cover the required days a ``service_pending``
    application moves to ``service_completed``.

    Raises:
        ValidationError: If the decision, reason or days are missing or invalid
        NotFoundError: If the report doesn't exist
        ExceedsRemainingDaysError: If the assigned days exceed the remaining days
    """
    _validate_report_decision(status, rejection_reason)

    report = await repository.get_report(db, report_id)
    if not report:
        raise NotFoundError("Service report", report_id)

    review, events = await _record_report_review(
        db, report, status, clock, rejection_reason, days_completed
    )

    await commit(db, "service report review")

    await publish_review(review)
    await applications_service.publish_events(events)

    logger.info(f"Service report {report.id} reviewed as {status.value}")
    return report


async def admin_bulk_review_reports(
    db: AsyncSession,
    report_ids: list[UUID],
    status: ReportStatus,
    clock: Clock,
    rejection_reason: str | None = None,
) -> list[CommunityServiceReport]:
    """
    Approve or reject several reports in one transaction.

    Each report goes through the same checks as a single review; if any of
    them fails nothing is recorded.

    Raises:
        ValidationError: If the decision or reason is missing, or a report cannot be approved
        NotFoundError: If any report doesn't exist
    """
    _validate_report_decision(status, rejection_reason)
    if not report_ids:
        raise ValidationError("Select at least one report.")

    reports = []
    for report_id in dict.fromkeys(report_ids):
        report = await repository.get_report(db, report_id)
        if not report:
            raise NotFoundError("Service report", report_id)
        reports.append(report)

    reviews = []
    events = []
    try:
        for report in reports:
            review, report_events = await _record_report_review(
                db, report, status, clock, rejection_reason, None
            )
            reviews.append(review)
            events.extend(report_events)
    except (ValidationError, InvalidTransitionError):
        await db.rollback()
        raise

    await commit(db, "bulk service report review")

    for review in reviews:
        await publish_review(review)
    await applications_service.publish_events(events)

    logger.info(f"Bulk reviewed {len(reports)} service reports as {status.value}")
    return reports


async def admin_review_entry(
    db: AsyncSession,
    entry_id: UUID,
    status: EntryStatus,
    clock: Clock,
    admin_notes: str | None = None,
) -> CommunityServiceEntry:
    """
    Approve or reject a completed service session.

    Raises:
        ValidationError: If the decision is not approve or reject
        NotFoundError: If the entry doesn't exist
        InvalidTransitionError: If the entry is not completed
    """
    if status not in (EntryStatus.APPROVED, EntryStatus.REJECTED):
        raise ValidationError("A review must approve or reject the entry.")

    entry = await repository.get_entry(db, entry_id)
    if not entry:
        raise NotFoundError("Service entry", entry_id)

    if entry.status != EntryStatus.COMPLETED:
        raise InvalidTransitionError(entry.status.value, "review_entry")

    previous = entry.status
    notes = admin_notes.strip() if admin_notes and admin_notes.strip() else None
    await repository.update_entry_review(db, entry, status=status, admin_notes=notes)
    await commit(db, "service entry review")

    await publish_review(
        ReviewEvent(
            application_id=entry.scholarship_application_id,
            subject="service_entry",
            subject_id=entry.id,
            old_status=previous.value,
            new_status=status.value,
            occurred_at=clock.now(),
            rejection_reason=notes if status == EntryStatus.REJECTED else None,
        )
    )

    logger.info(f"Service entry {entry.id} reviewed as {status.value}")
    return entry


async def admin_undo_entry_approval(
    db: AsyncSession, entry_id: UUID
) -> CommunityServiceEntry:
    """
    Return an approved entry to ``completed`` and clear the reviewer's notes.

    Raises:
        NotFoundError: If the entry doesn't exist
        InvalidTransitionError: If the entry is not approved
    """
    entry = await repository.get_entry(db, entry_id)
    if not entry:
        raise NotFoundError("Service entry", entry_id)

    if entry.status != EntryStatus.APPROVED:
        raise InvalidTransitionError(entry.status.value, "undo_entry_approval")

    await repository.update_entry_review(
        db, entry, status=EntryStatus.COMPLETED, admin_notes=None
    )
    await commit(db, "service entry approval undo")

    logger.info(f"Undid approval of service entry {entry.id}")
    return entry
