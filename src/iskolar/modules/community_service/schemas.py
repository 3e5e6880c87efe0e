"""
Community Service Schemas

Pydantic schemas for service sessions, reports and the service summary.
"""

from datetime import date, datetime, time
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from iskolar.modules.community_service.ledger import ServiceSummary
from iskolar.modules.community_service.models import (
    EntryStatus,
    ReportStatus,
    ReportType,
)


class EntryStart(BaseModel):
    """Request body for starting a session."""

    service_date: date
    time_in: time
    task_description: str = Field(..., min_length=10, max_length=2000)


class EntryResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    scholarship_application_id: UUID
    service_date: date
    time_in: time
    time_out: time | None = None
    task_description: str
    lessons_learned: str | None = None
    photos: list[str]
    hours_completed: Decimal
    status: EntryStatus
    admin_notes: str | None = None


class TrackedReportCreate(BaseModel):
    """Request body for a tracked hours report."""

    description: str = Field(..., min_length=50, max_length=5000)
    total_hours: Decimal = Field(..., ge=Decimal("0.5"), max_digits=7, decimal_places=2)
    service_date: date
    lessons_learned: str | None = Field(None, max_length=5000)


class ReportResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    scholarship_application_id: UUID
    report_type: ReportType
    description: str
    service_date: date | None = None
    lessons_learned: str | None = None
    days_completed: Decimal
    total_hours: Decimal
    status: ReportStatus
    rejection_reason: str | None = None
    submitted_at: datetime
    reviewed_at: datetime | None = None


class ReportReviewRequest(BaseModel):
    """Request body for POST /admin/community-service/reports/{id}/review."""

    status: ReportStatus
    rejection_reason: str | None = Field(None, max_length=1000)
    days_completed: Decimal | None = Field(None, gt=0, max_digits=6, decimal_places=2)


class BulkReportReviewRequest(BaseModel):
    report_ids: list[UUID] = Field(..., min_length=1, max_length=100)
    status: ReportStatus
    rejection_reason: str | None = Field(None, max_length=1000)


class EntryReviewRequest(BaseModel):
    """Request body for POST /admin/community-service/entries/{id}/review."""

    status: EntryStatus
    admin_notes: str | None = Field(None, max_length=500)


class ServiceSummaryResponse(BaseModel):
    required_days: int
    required_hours: Decimal
    days_completed: Decimal
    hours_completed: Decimal
    approved_days: Decimal
    remaining_days: Decimal
    remaining_hours: Decimal
    active_entries: list[EntryResponse]

    @classmethod
    def from_summary(cls, summary: ServiceSummary) -> "ServiceSummaryResponse":
        return cls(
            required_days=summary.required_days,
            required_hours=summary.required_hours,
            days_completed=summary.days_completed,
            hours_completed=summary.hours_completed,
            approved_days=summary.approved_days,
            remaining_days=summary.remaining_days,
            remaining_hours=summary.remaining_hours,
            active_entries=[EntryResponse.model_validate(e) for e in summary.active_entries],
        )
