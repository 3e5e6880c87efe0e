"""
Unit tests for community service reports.

These tests cover:
- Tracked and PDF report submission against the remaining required days
- The enrolled -> service_pending -> service_completed path
- Undoing reports and service completion
- Administrator review of reports, singly and in bulk, and of service entries
"""

from datetime import date
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4

import pytest
from sqlalchemy.exc import SQLAlchemyError

from iskolar.core.config import PdfReportCreditPolicy, settings
from iskolar.core.exceptions import (
    CannotUndoApprovedError,
    ExceedsRemainingDaysError,
    ForbiddenError,
    InvalidTransitionError,
    NotFoundError,
    StorageFailureError,
    ValidationError,
)
from iskolar.core.storage import UploadedFile
from iskolar.modules.applications.models import ApplicationStatus
from iskolar.modules.community_service import repository as service_repository
from iskolar.modules.community_service.models import (
    CommunityServiceReport,
    EntryStatus,
    ReportStatus,
    ReportType,
)
from iskolar.modules.community_service.service import (
    PdfReportPayload,
    TrackedReportPayload,
    admin_bulk_review_reports,
    admin_review_entry,
    admin_review_report,
    admin_undo_entry_approval,
    get_service_summary,
    submit_report,
    undo_report,
    undo_service_completion,
)

S = ApplicationStatus

DESCRIPTION = (
    "Assisted the barangay health center with the vaccination drive registration desk."
)


def _tracked(hours: str, service_date: date = date(2026, 3, 9)) -> TrackedReportPayload:
    return TrackedReportPayload(
        description=DESCRIPTION, total_hours=Decimal(hours), service_date=service_date
    )


@pytest.fixture
def pdf_payload():
    return PdfReportPayload(pdf=UploadedFile(filename="service.pdf", content=b"%PDF-1.4 log"))


@pytest.fixture
def programs_repo(program):
    program.community_service_days = 3
    with patch("iskolar.modules.applications.service.programs_repository") as mock_repo:
        mock_repo.get_by_id = AsyncMock(return_value=program)
        yield mock_repo


@pytest.fixture
def reports_repo():
    def _create_report(db, application_id, submitted_at, **fields):
        report = MagicMock(spec=CommunityServiceReport)
        report.id = uuid4()
        report.scholarship_application_id = application_id
        report.submitted_at = submitted_at
        report.status = ReportStatus.PENDING_REVIEW
        report.rejection_reason = None
        report.pdf_report_path = None
        for key, value in fields.items():
            setattr(report, key, value)
        return report

    with patch("iskolar.modules.community_service.service.repository") as mock_repo:
        mock_repo.list_reports = AsyncMock(return_value=[])
        mock_repo.list_entries = AsyncMock(return_value=[])
        mock_repo.create_report = AsyncMock(side_effect=_create_report)
        mock_repo.update_review = AsyncMock(side_effect=service_repository.update_review)
        mock_repo.delete_report = AsyncMock()
        mock_repo.update_entry_review = AsyncMock(
            side_effect=service_repository.update_entry_review
        )
        yield mock_repo


class TestSubmitTrackedReport:
    """Tests for tracked report submission."""

    @pytest.mark.asyncio
    async def test_first_report_starts_service_reporting(
        self, mock_db, store, actor, clock, events, make_application,
        application_repo, programs_repo, reports_repo,
    ):
        app = make_application(S.ENROLLED)
        application_repo.get_by_id = AsyncMock(return_value=app)

        report = await submit_report(mock_db, store, actor, app.id, _tracked("8"), clock)

        assert report.report_type == ReportType.TRACKED
        assert report.days_completed == Decimal("1.00")
        assert report.status == ReportStatus.PENDING_REVIEW
        assert app.status == S.SERVICE_PENDING
        assert events.statuses() == [("enrolled", "service_pending")]
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_half_day(
        self, mock_db, store, actor, clock, make_application,
        application_repo, programs_repo, reports_repo,
    ):
        app = make_application(S.SERVICE_PENDING)
        application_repo.get_by_id = AsyncMock(return_value=app)

        report = await submit_report(mock_db, store, actor, app.id, _tracked("4"), clock)

        assert report.days_completed == Decimal("0.50")
        assert app.status == S.SERVICE_PENDING

    @pytest.mark.asyncio
    async def test_exceeding_remaining_days(
        self, mock_db, store, actor, clock, make_application, make_report,
        application_repo, programs_repo, reports_repo,
    ):
        """With 0.5 days left an 8 hour report is refused, not truncated."""
        app = make_application(S.SERVICE_PENDING)
        application_repo.get_by_id = AsyncMock(return_value=app)
        reports_repo.list_reports = AsyncMock(
            return_value=[
                make_report(app, "2.00", ReportStatus.APPROVED),
                make_report(app, "0.50"),
            ]
        )

        with pytest.raises(ExceedsRemainingDaysError) as exc_info:
            await submit_report(mock_db, store, actor, app.id, _tracked("8"), clock)

        assert exc_info.value.remaining_days == Decimal("0.50")
        assert exc_info.value.max_hours == Decimal("4.00")
        reports_repo.create_report.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_short_description(
        self, mock_db, store, actor, clock, application_repo, reports_repo,
    ):
        payload = TrackedReportPayload(
            description="Cleaned up", total_hours=Decimal("8"), service_date=date(2026, 3, 9)
        )

        with pytest.raises(ValidationError):
            await submit_report(mock_db, store, actor, uuid4(), payload, clock)

    @pytest.mark.asyncio
    async def test_minimum_hours(self, mock_db, store, actor, clock, application_repo):
        with pytest.raises(ValidationError):
            await submit_report(mock_db, store, actor, uuid4(), _tracked("0.25"), clock)

    @pytest.mark.asyncio
    async def test_future_service_date(self, mock_db, store, actor, clock, application_repo):
        with pytest.raises(ValidationError):
            await submit_report(
                mock_db, store, actor, uuid4(), _tracked("8", date(2026, 3, 11)), clock
            )

    @pytest.mark.asyncio
    async def test_not_enrolled(
        self, mock_db, store, actor, clock, make_application, application_repo, reports_repo,
    ):
        app = make_application(S.ELIGIBILITY_VERIFIED)
        application_repo.get_by_id = AsyncMock(return_value=app)

        with pytest.raises(InvalidTransitionError):
            await submit_report(mock_db, store, actor, app.id, _tracked("8"), clock)

    @pytest.mark.asyncio
    async def test_other_students_application(
        self, mock_db, store, other_actor, clock, make_application,
        application_repo, reports_repo,
    ):
        app = make_application(S.ENROLLED)
        application_repo.get_by_id = AsyncMock(return_value=app)

        with pytest.raises(ForbiddenError):
            await submit_report(mock_db, store, other_actor, app.id, _tracked("8"), clock)


class TestSubmitPdfReport:
    """Tests for PDF report submission."""

    @pytest.mark.asyncio
    async def test_credits_remaining_days(
        self, mock_db, store, actor, clock, pdf_payload, make_application, make_report,
        application_repo, programs_repo, reports_repo,
    ):
        app = make_application(S.SERVICE_PENDING)
        application_repo.get_by_id = AsyncMock(return_value=app)
        reports_repo.list_reports = AsyncMock(return_value=[make_report(app, "1.00")])

        report = await submit_report(mock_db, store, actor, app.id, pdf_payload, clock)

        assert report.report_type == ReportType.PDF_UPLOAD
        assert report.days_completed == Decimal("2.00")
        assert report.total_hours == Decimal("16.00")
        assert store.files == {report.pdf_report_path: pdf_payload.pdf.content}

    @pytest.mark.asyncio
    async def test_admin_assigned_policy(
        self, mock_db, store, actor, clock, pdf_payload, monkeypatch, make_application,
        application_repo, programs_repo, reports_repo,
    ):
        monkeypatch.setattr(
            settings, "pdf_report_credit_policy", PdfReportCreditPolicy.ADMIN_ASSIGNED
        )
        app = make_application(S.ENROLLED)
        application_repo.get_by_id = AsyncMock(return_value=app)

        report = await submit_report(mock_db, store, actor, app.id, pdf_payload, clock)

        assert report.days_completed == Decimal("0.00")
        assert app.status == S.SERVICE_PENDING

    @pytest.mark.asyncio
    async def test_nothing_remaining(
        self, mock_db, store, actor, clock, pdf_payload, make_application, make_report,
        application_repo, programs_repo, reports_repo,
    ):
        app = make_application(S.SERVICE_PENDING)
        application_repo.get_by_id = AsyncMock(return_value=app)
        reports_repo.list_reports = AsyncMock(return_value=[make_report(app, "3.00")])

        with pytest.raises(ExceedsRemainingDaysError):
            await submit_report(mock_db, store, actor, app.id, pdf_payload, clock)

        assert store.files == {}

    @pytest.mark.asyncio
    async def test_rejects_non_pdf(self, mock_db, store, actor, clock, application_repo):
        payload = PdfReportPayload(pdf=UploadedFile(filename="service.png", content=b"png"))

        with pytest.raises(ValidationError):
            await submit_report(mock_db, store, actor, uuid4(), payload, clock)


class TestUndoReport:
    @pytest.mark.asyncio
    async def test_approved_report_cannot_be_undone(
        self, mock_db, store, actor, make_application, make_report,
        application_repo, reports_repo,
    ):
        app = make_application(S.SERVICE_PENDING)
        report = make_report(app, "1.00", ReportStatus.APPROVED)
        application_repo.get_by_id = AsyncMock(return_value=app)
        reports_repo.get_report = AsyncMock(return_value=report)

        with pytest.raises(CannotUndoApprovedError):
            await undo_report(mock_db, store, actor, report.id)

        reports_repo.delete_report.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_undo_pdf_report_removes_file(
        self, mock_db, store, actor, make_application, make_report,
        application_repo, reports_repo,
    ):
        app = make_application(S.SERVICE_PENDING)
        report = make_report(app, "2.00", report_type=ReportType.PDF_UPLOAD)
        report.pdf_report_path = f"service-reports/{app.id}/log.pdf"
        store.files[report.pdf_report_path] = b"%PDF"
        application_repo.get_by_id = AsyncMock(return_value=app)
        reports_repo.get_report = AsyncMock(return_value=report)

        await undo_report(mock_db, store, actor, report.id)

        reports_repo.delete_report.assert_awaited_once_with(mock_db, report)
        assert store.files == {}
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_commit_failure_keeps_pdf(
        self, mock_db, store, actor, make_application, make_report,
        application_repo, reports_repo,
    ):
        app = make_application(S.SERVICE_PENDING)
        report = make_report(app, "2.00", report_type=ReportType.PDF_UPLOAD)
        report.pdf_report_path = f"service-reports/{app.id}/log.pdf"
        store.files[report.pdf_report_path] = b"%PDF"
        application_repo.get_by_id = AsyncMock(return_value=app)
        reports_repo.get_report = AsyncMock(return_value=report)
        mock_db.commit = AsyncMock(side_effect=SQLAlchemyError("connection lost"))

        with pytest.raises(StorageFailureError):
            await undo_report(mock_db, store, actor, report.id)

        mock_db.rollback.assert_awaited_once()
        assert store.files == {report.pdf_report_path: b"%PDF"}


class TestUndoServiceCompletion:
    @pytest.mark.asyncio
    async def test_back_to_service_pending(
        self, mock_db, actor, clock, events, make_application, application_repo,
    ):
        app = make_application(S.SERVICE_COMPLETED)
        application_repo.get_by_id = AsyncMock(return_value=app)

        result = await undo_service_completion(mock_db, actor, app.id, clock)

        assert result.status == S.SERVICE_PENDING
        assert events.statuses() == [("service_completed", "service_pending")]

    @pytest.mark.asyncio
    async def test_only_from_service_completed(
        self, mock_db, actor, clock, make_application, application_repo,
    ):
        app = make_application(S.SERVICE_PENDING)
        application_repo.get_by_id = AsyncMock(return_value=app)

        with pytest.raises(InvalidTransitionError):
            await undo_service_completion(mock_db, actor, app.id, clock)


class TestServiceSummary:
    @pytest.mark.asyncio
    async def test_summary(
        self, mock_db, actor, make_application, make_report,
        application_repo, programs_repo, reports_repo,
    ):
        app = make_application(S.SERVICE_PENDING)
        application_repo.get_by_id = AsyncMock(return_value=app)
        reports_repo.list_reports = AsyncMock(
            return_value=[make_report(app, "1.00", ReportStatus.APPROVED)]
        )

        summary = await get_service_summary(mock_db, actor, app.id)

        assert summary.required_days == 3
        assert summary.remaining_days == Decimal("2.00")
        assert summary.approved_days == Decimal("1.00")


class TestAdminReviewReport:
    """Tests for admin_review_report."""

    @pytest.mark.asyncio
    async def test_last_approval_completes_service(
        self, mock_db, clock, events, make_application, make_report,
        application_repo, programs_repo, reports_repo,
    ):
        app = make_application(S.SERVICE_PENDING)
        approved = make_report(app, "2.00", ReportStatus.APPROVED)
        pending = make_report(app, "1.00")
        application_repo.get_by_id = AsyncMock(return_value=app)
        reports_repo.get_report = AsyncMock(return_value=pending)
        reports_repo.list_reports = AsyncMock(return_value=[approved, pending])

        result = await admin_review_report(mock_db, pending.id, ReportStatus.APPROVED, clock)

        assert result.status == ReportStatus.APPROVED
        assert app.status == S.SERVICE_COMPLETED
        review = events.report_review.await_args.args[0]
        assert review.subject == "service_report"
        assert review.new_status == "approved"
        assert events.statuses() == [("service_pending", "service_completed")]

    @pytest.mark.asyncio
    async def test_partial_approval_keeps_service_pending(
        self, mock_db, clock, events, make_application, make_report,
        application_repo, programs_repo, reports_repo,
    ):
        app = make_application(S.SERVICE_PENDING)
        pending = make_report(app, "1.00")
        application_repo.get_by_id = AsyncMock(return_value=app)
        reports_repo.get_report = AsyncMock(return_value=pending)
        reports_repo.list_reports = AsyncMock(return_value=[pending])

        await admin_review_report(mock_db, pending.id, ReportStatus.APPROVED, clock)

        assert app.status == S.SERVICE_PENDING
        assert events.statuses() == []

    @pytest.mark.asyncio
    async def test_assign_days_to_pdf_report(
        self, mock_db, clock, make_application, make_report,
        application_repo, programs_repo, reports_repo,
    ):
        app = make_application(S.SERVICE_PENDING)
        report = make_report(app, "0", report_type=ReportType.PDF_UPLOAD)
        application_repo.get_by_id = AsyncMock(return_value=app)
        reports_repo.get_report = AsyncMock(return_value=report)
        reports_repo.list_reports = AsyncMock(return_value=[report])

        result = await admin_review_report(
            mock_db, report.id, ReportStatus.APPROVED, clock, days_completed=Decimal("3")
        )

        assert result.days_completed == Decimal("3")
        assert result.total_hours == Decimal("24.00")
        assert app.status == S.SERVICE_COMPLETED

    @pytest.mark.asyncio
    async def test_uncredited_pdf_needs_days(
        self, mock_db, clock, make_application, make_report,
        application_repo, programs_repo, reports_repo,
    ):
        app = make_application(S.SERVICE_PENDING)
        report = make_report(app, "0", report_type=ReportType.PDF_UPLOAD)
        application_repo.get_by_id = AsyncMock(return_value=app)
        reports_repo.get_report = AsyncMock(return_value=report)
        reports_repo.list_reports = AsyncMock(return_value=[report])

        with pytest.raises(ValidationError):
            await admin_review_report(mock_db, report.id, ReportStatus.APPROVED, clock)

        reports_repo.update_review.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_assigned_days_capped_by_other_reports(
        self, mock_db, clock, make_application, make_report,
        application_repo, programs_repo, reports_repo,
    ):
        app = make_application(S.SERVICE_PENDING)
        other = make_report(app, "2.50", ReportStatus.APPROVED)
        report = make_report(app, "0", report_type=ReportType.PDF_UPLOAD)
        application_repo.get_by_id = AsyncMock(return_value=app)
        reports_repo.get_report = AsyncMock(return_value=report)
        reports_repo.list_reports = AsyncMock(return_value=[other, report])

        with pytest.raises(ExceedsRemainingDaysError) as exc_info:
            await admin_review_report(
                mock_db, report.id, ReportStatus.APPROVED, clock, days_completed=Decimal("1")
            )

        assert exc_info.value.remaining_days == Decimal("0.50")

    @pytest.mark.asyncio
    async def test_rejection(
        self, mock_db, clock, events, make_application, make_report,
        application_repo, programs_repo, reports_repo,
    ):
        app = make_application(S.SERVICE_PENDING)
        report = make_report(app, "1.00")
        application_repo.get_by_id = AsyncMock(return_value=app)
        reports_repo.get_report = AsyncMock(return_value=report)
        reports_repo.list_reports = AsyncMock(return_value=[report])

        result = await admin_review_report(
            mock_db, report.id, ReportStatus.REJECTED_INSUFFICIENT_HOURS, clock,
            rejection_reason="Attendance sheet does not show the hours claimed",
        )

        assert result.status == ReportStatus.REJECTED_INSUFFICIENT_HOURS
        assert result.rejection_reason == "Attendance sheet does not show the hours claimed"
        assert app.status == S.SERVICE_PENDING

    @pytest.mark.asyncio
    async def test_rejection_requires_reason(self, mock_db, clock, reports_repo):
        with pytest.raises(ValidationError):
            await admin_review_report(mock_db, uuid4(), ReportStatus.REJECTED_OTHER, clock)

    @pytest.mark.asyncio
    async def test_days_only_on_approval(
        self, mock_db, clock, make_application, make_report,
        application_repo, programs_repo, reports_repo,
    ):
        app = make_application(S.SERVICE_PENDING)
        report = make_report(app, "1.00")
        application_repo.get_by_id = AsyncMock(return_value=app)
        reports_repo.get_report = AsyncMock(return_value=report)

        with pytest.raises(ValidationError):
            await admin_review_report(
                mock_db, report.id, ReportStatus.REJECTED_OTHER, clock,
                rejection_reason="Wrong program", days_completed=Decimal("1"),
            )


class TestAdminBulkReviewReports:
    """Tests for admin_bulk_review_reports."""

    @pytest.mark.asyncio
    async def test_approving_batch_completes_service(
        self, mock_db, clock, events, make_application, make_report,
        application_repo, programs_repo, reports_repo,
    ):
        app = make_application(S.SERVICE_PENDING)
        approved = make_report(app, "1.00", ReportStatus.APPROVED)
        first = make_report(app, "1.00")
        second = make_report(app, "1.00")
        application_repo.get_by_id = AsyncMock(return_value=app)
        reports_repo.get_report = AsyncMock(side_effect=[first, second])
        reports_repo.list_reports = AsyncMock(return_value=[approved, first, second])

        result = await admin_bulk_review_reports(
            mock_db, [first.id, second.id], ReportStatus.APPROVED, clock
        )

        assert result == [first, second]
        assert first.status == ReportStatus.APPROVED
        assert second.status == ReportStatus.APPROVED
        assert app.status == S.SERVICE_COMPLETED
        mock_db.commit.assert_awaited_once()
        assert events.report_review.await_count == 2
        assert events.statuses() == [("service_pending", "service_completed")]

    @pytest.mark.asyncio
    async def test_bulk_rejection(
        self, mock_db, clock, make_application, make_report,
        application_repo, programs_repo, reports_repo,
    ):
        app = make_application(S.SERVICE_PENDING)
        report = make_report(app, "1.00")
        application_repo.get_by_id = AsyncMock(return_value=app)
        reports_repo.get_report = AsyncMock(return_value=report)
        reports_repo.list_reports = AsyncMock(return_value=[report])

        await admin_bulk_review_reports(
            mock_db, [report.id], ReportStatus.REJECTED_OTHER, clock,
            rejection_reason="Photos do not match the activity",
        )

        assert report.status == ReportStatus.REJECTED_OTHER
        assert report.rejection_reason == "Photos do not match the activity"

    @pytest.mark.asyncio
    async def test_uncredited_pdf_aborts_batch(
        self, mock_db, clock, events, make_application, make_report,
        application_repo, programs_repo, reports_repo,
    ):
        app = make_application(S.SERVICE_PENDING)
        tracked = make_report(app, "1.00")
        uncredited = make_report(app, "0", report_type=ReportType.PDF_UPLOAD)
        application_repo.get_by_id = AsyncMock(return_value=app)
        reports_repo.get_report = AsyncMock(side_effect=[tracked, uncredited])
        reports_repo.list_reports = AsyncMock(return_value=[tracked, uncredited])

        with pytest.raises(ValidationError):
            await admin_bulk_review_reports(
                mock_db, [tracked.id, uncredited.id], ReportStatus.APPROVED, clock
            )

        mock_db.rollback.assert_awaited_once()
        mock_db.commit.assert_not_awaited()
        events.report_review.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_unknown_report(
        self, mock_db, clock, make_application, make_report, reports_repo,
    ):
        report = make_report(make_application(S.SERVICE_PENDING), "1.00")
        reports_repo.get_report = AsyncMock(side_effect=[report, None])

        with pytest.raises(NotFoundError):
            await admin_bulk_review_reports(
                mock_db, [report.id, uuid4()], ReportStatus.APPROVED, clock
            )

        reports_repo.update_review.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_rejection_requires_reason(self, mock_db, clock, reports_repo):
        with pytest.raises(ValidationError):
            await admin_bulk_review_reports(
                mock_db, [uuid4()], ReportStatus.REJECTED_OTHER, clock
            )


class TestAdminReviewEntry:
    """Tests for admin_review_entry and admin_undo_entry_approval."""

    @pytest.mark.asyncio
    async def test_approve_completed_entry(
        self, mock_db, clock, events, make_application, make_entry, reports_repo,
    ):
        entry = make_entry(make_application(S.SERVICE_PENDING), status=EntryStatus.COMPLETED)
        reports_repo.get_entry = AsyncMock(return_value=entry)

        result = await admin_review_entry(
            mock_db, entry.id, EntryStatus.APPROVED, clock, admin_notes="  Well documented  "
        )

        assert result.status == EntryStatus.APPROVED
        assert result.admin_notes == "Well documented"
        mock_db.commit.assert_awaited_once()
        review = events.report_review.await_args.args[0]
        assert review.subject == "service_entry"
        assert (review.old_status, review.new_status) == ("completed", "approved")
        assert review.rejection_reason is None

    @pytest.mark.asyncio
    async def test_reject_with_notes(
        self, mock_db, clock, events, make_application, make_entry, reports_repo,
    ):
        entry = make_entry(make_application(S.SERVICE_PENDING), status=EntryStatus.COMPLETED)
        reports_repo.get_entry = AsyncMock(return_value=entry)

        await admin_review_entry(
            mock_db, entry.id, EntryStatus.REJECTED, clock, admin_notes="No photos attached"
        )

        assert entry.status == EntryStatus.REJECTED
        review = events.report_review.await_args.args[0]
        assert review.rejection_reason == "No photos attached"

    @pytest.mark.asyncio
    async def test_in_progress_entry_cannot_be_reviewed(
        self, mock_db, clock, make_application, make_entry, reports_repo,
    ):
        entry = make_entry(make_application(S.SERVICE_PENDING))
        reports_repo.get_entry = AsyncMock(return_value=entry)

        with pytest.raises(InvalidTransitionError):
            await admin_review_entry(mock_db, entry.id, EntryStatus.APPROVED, clock)

        assert entry.status == EntryStatus.IN_PROGRESS
        reports_repo.update_entry_review.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_decision_must_approve_or_reject(self, mock_db, clock, reports_repo):
        with pytest.raises(ValidationError):
            await admin_review_entry(mock_db, uuid4(), EntryStatus.COMPLETED, clock)

    @pytest.mark.asyncio
    async def test_unknown_entry(self, mock_db, clock, reports_repo):
        reports_repo.get_entry = AsyncMock(return_value=None)

        with pytest.raises(NotFoundError):
            await admin_review_entry(mock_db, uuid4(), EntryStatus.APPROVED, clock)

    @pytest.mark.asyncio
    async def test_undo_approval(self, mock_db, make_application, make_entry, reports_repo):
        entry = make_entry(make_application(S.SERVICE_PENDING), status=EntryStatus.APPROVED)
        entry.admin_notes = "Well documented"
        reports_repo.get_entry = AsyncMock(return_value=entry)

        result = await admin_undo_entry_approval(mock_db, entry.id)

        assert result.status == EntryStatus.COMPLETED
        assert result.admin_notes is None
        mock_db.commit.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_undo_requires_approval(
        self, mock_db, make_application, make_entry, reports_repo,
    ):
        entry = make_entry(make_application(S.SERVICE_PENDING), status=EntryStatus.REJECTED)
        reports_repo.get_entry = AsyncMock(return_value=entry)

        with pytest.raises(InvalidTransitionError):
            await admin_undo_entry_approval(mock_db, entry.id)

        reports_repo.update_entry_review.assert_not_awaited()
