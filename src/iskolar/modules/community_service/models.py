"""
Community Service Models

Entries are time-tracked service sessions; reports are the batches a student
submits for review (either a tracked hours report or a single PDF).
"""

import enum
import uuid
from datetime import date, datetime, time
from decimal import Decimal

from sqlalchemy import (
    JSON,
    Date,
    DateTime,
    ForeignKey,
    Index,
    Numeric,
    String,
    Text,
    Time,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from iskolar.core.database import Base, enum_type


class EntryStatus(str, enum.Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    APPROVED = "approved"
    REJECTED = "rejected"


class ReportType(str, enum.Enum):
    TRACKED = "tracked"
    PDF_UPLOAD = "pdf_upload"


class ReportStatus(str, enum.Enum):
    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    REJECTED_INSUFFICIENT_HOURS = "rejected_insufficient_hours"
    REJECTED_INCOMPLETE_DOCUMENTATION = "rejected_incomplete_documentation"
    REJECTED_OTHER = "rejected_other"

    @property
    def is_rejection(self) -> bool:
        return self.value.startswith("rejected_")


class CommunityServiceEntry(Base):
    """
    A single service session.

    ``hours_completed`` is computed once when the session ends and is final.
    ``photos`` is an ordered list of file store references (at most 5).
    """

    __tablename__ = "community_service_entries"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    scholarship_application_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("scholarship_applications.id", ondelete="CASCADE"),
        nullable=False,
    )

    service_date: Mapped[date] = mapped_column(Date, nullable=False)
    time_in: Mapped[time] = mapped_column(Time, nullable=False)
    time_out: Mapped[time | None] = mapped_column(Time, nullable=True)
    task_description: Mapped[str] = mapped_column(Text, nullable=False)
    lessons_learned: Mapped[str | None] = mapped_column(Text, nullable=True)
    photos: Mapped[list] = mapped_column(JSON, nullable=False, default=list)
    hours_completed: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=0)

    status: Mapped[EntryStatus] = mapped_column(
        enum_type(EntryStatus, "service_entry_status"),
        nullable=False,
        default=EntryStatus.IN_PROGRESS,
    )
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_community_service_entries_application", "scholarship_application_id"),
        # Backstop for the one-active-session-per-date rule
        Index(
            "uq_community_service_entries_active_date",
            "scholarship_application_id",
            "service_date",
            unique=True,
            postgresql_where=text("status = 'in_progress'"),
        ),
    )


class CommunityServiceReport(Base):
    """A submitted batch of community service awaiting or past review."""

    __tablename__ = "community_service_reports"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    scholarship_application_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("scholarship_applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )

    report_type: Mapped[ReportType] = mapped_column(
        enum_type(ReportType, "service_report_type"), nullable=False
    )
    description: Mapped[str] = mapped_column(Text, nullable=False)
    service_date: Mapped[date | None] = mapped_column(Date, nullable=True)
    lessons_learned: Mapped[str | None] = mapped_column(Text, nullable=True)
    pdf_report_path: Mapped[str | None] = mapped_column(String(500), nullable=True)

    days_completed: Mapped[Decimal] = mapped_column(Numeric(6, 2), nullable=False, default=0)
    total_hours: Mapped[Decimal] = mapped_column(Numeric(7, 2), nullable=False, default=0)

    status: Mapped[ReportStatus] = mapped_column(
        enum_type(ReportStatus, "service_report_status"),
        nullable=False,
        default=ReportStatus.PENDING_REVIEW,
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    submitted_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
