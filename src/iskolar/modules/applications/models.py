"""
Scholarship Application Models

A student's application to a program, and the disbursements paid against it.
Applications are never hard-deleted; cancellation is a status.
"""

import enum
import uuid
from datetime import datetime
from decimal import Decimal

from sqlalchemy import DateTime, ForeignKey, Index, Numeric, String, Text, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from iskolar.core.database import Base, enum_type


class ApplicationStatus(str, enum.Enum):
    """Status of a scholarship application."""

    DRAFT = "draft"
    SUBMITTED = "submitted"
    DOCUMENTS_PENDING = "documents_pending"
    DOCUMENTS_UNDER_REVIEW = "documents_under_review"
    DOCUMENTS_APPROVED = "documents_approved"
    DOCUMENTS_REJECTED = "documents_rejected"
    ELIGIBILITY_VERIFIED = "eligibility_verified"
    APPROVED = "approved"
    ENROLLED = "enrolled"
    SERVICE_PENDING = "service_pending"
    SERVICE_COMPLETED = "service_completed"
    DISBURSEMENT_PENDING = "disbursement_pending"
    DISBURSEMENT_PROCESSED = "disbursement_processed"
    COMPLETED = "completed"
    REJECTED = "rejected"
    CANCELLED = "cancelled"
    ARCHIVED = "archived"


class DisbursementStatus(str, enum.Enum):
    PENDING = "pending"
    PROCESSING = "processing"
    DISBURSED = "disbursed"
    ON_HOLD = "on_hold"
    CANCELLED = "cancelled"


class ScholarshipApplication(Base):
    """
    Scholarship application.

    At most one application exists per (student profile, program); this is
    checked by the service before insert rather than by a constraint.
    """

    __tablename__ = "scholarship_applications"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    student_profile_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("student_profiles.id", ondelete="CASCADE"),
        nullable=False,
    )
    scholarship_program_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("scholarship_programs.id", ondelete="CASCADE"),
        nullable=False,
    )

    status: Mapped[ApplicationStatus] = mapped_column(
        enum_type(ApplicationStatus, "application_status"),
        nullable=False,
        default=ApplicationStatus.DRAFT,
    )
    admin_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    submitted_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        Index("ix_scholarship_applications_status", "status"),
        Index(
            "ix_scholarship_applications_student_program",
            "student_profile_id",
            "scholarship_program_id",
        ),
        Index("ix_scholarship_applications_program_status", "scholarship_program_id", "status"),
    )


class Disbursement(Base):
    """A payment made (or scheduled) to the student for an application."""

    __tablename__ = "disbursements"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    scholarship_application_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("scholarship_applications.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    amount: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    status: Mapped[DisbursementStatus] = mapped_column(
        enum_type(DisbursementStatus, "disbursement_status"),
        nullable=False,
        default=DisbursementStatus.PENDING,
    )
    payment_method: Mapped[str | None] = mapped_column(String(50), nullable=True)
    reference_number: Mapped[str | None] = mapped_column(String(100), nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    disbursed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
