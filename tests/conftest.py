"""
Shared fixtures: mocked session, fixed clock, in-memory file store, model
factories and captured status-change events.
"""

from datetime import date, datetime, time
from decimal import Decimal
from types import SimpleNamespace
from unittest.mock import AsyncMock, MagicMock, patch
from uuid import uuid4
from zoneinfo import ZoneInfo

import pytest

from iskolar.core.auth import StudentActor
from iskolar.core.clock import FixedClock
from iskolar.core.exceptions import StorageFailureError
from iskolar.modules.applications import repository as applications_repository
from iskolar.modules.applications.models import ApplicationStatus, ScholarshipApplication
from iskolar.modules.community_service.models import (
    CommunityServiceEntry,
    CommunityServiceReport,
    EntryStatus,
    ReportStatus,
    ReportType,
)
from iskolar.modules.documents.models import DocumentStatus, DocumentUpload
from iskolar.modules.programs.models import (
    DocumentRequirement,
    ScholarshipProgram,
    SchoolTypeEligibility,
)
from iskolar.modules.students.models import SchoolType, StudentProfile

MANILA = ZoneInfo("Asia/Manila")

# Real transition function, kept so patched repositories still run the state machine
real_transition = applications_repository.transition


class InMemoryFileStore:
    """FileStore double keeping files in a dict; failures can be switched on."""

    def __init__(self):
        self.files: dict[str, bytes] = {}
        self.fail_store = False
        # Refs whose deletion fails
        self.undeletable: set[str] = set()

    def store(self, data: bytes, path: str) -> str:
        if self.fail_store:
            raise StorageFailureError()
        self.files[path] = data
        return path

    def delete(self, ref: str) -> bool:
        if ref in self.undeletable:
            raise StorageFailureError()
        self.files.pop(ref, None)
        return True

    def exists(self, ref: str) -> bool:
        return ref in self.files

    def read(self, ref: str) -> bytes:
        if ref not in self.files:
            raise StorageFailureError()
        return self.files[ref]


@pytest.fixture
def mock_db():
    """Create a mock database session."""
    db = AsyncMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.flush = AsyncMock()
    db.refresh = AsyncMock()
    db.delete = AsyncMock()
    db.get = AsyncMock()
    db.execute = AsyncMock()
    db.add = MagicMock()
    return db


@pytest.fixture
def now():
    return datetime(2026, 3, 10, 14, 30, tzinfo=MANILA)


@pytest.fixture
def clock(now):
    return FixedClock(now)


@pytest.fixture
def store():
    return InMemoryFileStore()


@pytest.fixture
def profile():
    p = MagicMock(spec=StudentProfile)
    p.id = uuid4()
    p.user_id = uuid4()
    p.first_name = "Juan"
    p.last_name = "Dela Cruz"
    p.school_type = SchoolType.COLLEGE
    return p


@pytest.fixture
def actor(profile):
    return StudentActor(user_id=profile.user_id, student_profile_id=profile.id)


@pytest.fixture
def other_actor():
    return StudentActor(user_id=uuid4(), student_profile_id=uuid4())


@pytest.fixture
def program():
    p = MagicMock(spec=ScholarshipProgram)
    p.id = uuid4()
    p.name = "Iskolar ng Bayan Grant"
    p.available_slots = 10
    p.school_type_eligibility = SchoolTypeEligibility.BOTH
    p.application_deadline = date(2026, 3, 31)
    p.community_service_days = 6
    p.active = True
    return p


@pytest.fixture
def make_application(profile, program):
    def _make(status: ApplicationStatus = ApplicationStatus.DRAFT):
        app = MagicMock(spec=ScholarshipApplication)
        app.id = uuid4()
        app.student_profile_id = profile.id
        app.scholarship_program_id = program.id
        app.status = status
        app.submitted_at = None
        app.reviewed_at = None
        app.admin_notes = None
        return app

    return _make


@pytest.fixture
def make_requirement(program):
    def _make(name: str = "Certificate of Enrollment", is_required: bool = True):
        requirement = MagicMock(spec=DocumentRequirement)
        requirement.id = uuid4()
        requirement.scholarship_program_id = program.id
        requirement.name = name
        requirement.description = None
        requirement.is_required = is_required
        return requirement

    return _make


@pytest.fixture
def make_upload():
    def _make(application, requirement, status: DocumentStatus = DocumentStatus.PENDING_REVIEW):
        upload = MagicMock(spec=DocumentUpload)
        upload.id = uuid4()
        upload.scholarship_application_id = application.id
        upload.document_requirement_id = requirement.id
        upload.file_path = f"documents/{application.id}/{uuid4().hex}.pdf"
        upload.original_filename = "document.pdf"
        upload.status = status
        upload.rejection_reason = None
        return upload

    return _make


@pytest.fixture
def make_report():
    def _make(
        application,
        days: str = "1.00",
        status: ReportStatus = ReportStatus.PENDING_REVIEW,
        report_type: ReportType = ReportType.TRACKED,
    ):
        report = MagicMock(spec=CommunityServiceReport)
        report.id = uuid4()
        report.scholarship_application_id = application.id
        report.report_type = report_type
        report.days_completed = Decimal(days)
        report.total_hours = Decimal(days) * 8
        report.status = status
        report.rejection_reason = None
        report.pdf_report_path = None
        return report

    return _make


@pytest.fixture
def make_entry():
    def _make(
        application,
        service_date: date = date(2026, 3, 10),
        time_in: time = time(8, 0),
        status: EntryStatus = EntryStatus.IN_PROGRESS,
        hours: str = "0",
    ):
        entry = MagicMock(spec=CommunityServiceEntry)
        entry.id = uuid4()
        entry.scholarship_application_id = application.id
        entry.service_date = service_date
        entry.time_in = time_in
        entry.time_out = None
        entry.status = status
        entry.hours_completed = Decimal(hours)
        entry.photos = []
        entry.admin_notes = None
        return entry

    return _make


@pytest.fixture
def application_repo():
    """
    Patch the applications service repository.

    ``transition`` keeps its real behavior so status changes go through the
    transition table.
    """
    with patch("iskolar.modules.applications.service.repository") as mock_repo:
        mock_repo.transition = AsyncMock(side_effect=real_transition)
        mock_repo.get_by_id = AsyncMock(return_value=None)
        yield mock_repo


@pytest.fixture(autouse=True)
def events():
    """Capture published events instead of sending them to Redis."""
    with (
        patch(
            "iskolar.modules.applications.service.publish_status_change",
            new_callable=AsyncMock,
        ) as status_change,
        patch(
            "iskolar.modules.documents.service.publish_review", new_callable=AsyncMock
        ) as document_review,
        patch(
            "iskolar.modules.community_service.service.publish_review", new_callable=AsyncMock
        ) as report_review,
    ):
        yield SimpleNamespace(
            status_change=status_change,
            document_review=document_review,
            report_review=report_review,
            # (old, new) pairs of the status changes published so far
            statuses=lambda: [
                (call.args[0].old_status, call.args[0].new_status)
                for call in status_change.await_args_list
            ],
        )
