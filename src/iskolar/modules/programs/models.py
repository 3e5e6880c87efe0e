"""
Scholarship Program Models

Programs define budget, slot capacity, eligibility and the community service
requirement. Document requirements list what applicants must upload.
"""

import enum
import uuid
from datetime import date, datetime
from decimal import Decimal

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    ForeignKey,
    Integer,
    Numeric,
    String,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from iskolar.core.database import Base, enum_type


class SchoolTypeEligibility(str, enum.Enum):
    """Which school type a program accepts."""

    HIGH_SCHOOL = "high_school"
    COLLEGE = "college"
    BOTH = "both"


class ScholarshipProgram(Base):
    """A scholarship program students can apply to."""

    __tablename__ = "scholarship_programs"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False, default="")

    # Budget and capacity
    total_budget: Mapped[Decimal] = mapped_column(Numeric(12, 2), nullable=False)
    per_student_budget: Mapped[Decimal] = mapped_column(Numeric(10, 2), nullable=False)
    available_slots: Mapped[int] = mapped_column(Integer, nullable=False)

    # Eligibility
    school_type_eligibility: Mapped[SchoolTypeEligibility] = mapped_column(
        enum_type(SchoolTypeEligibility, "school_type_eligibility"), nullable=False
    )
    # Informational only; the gate does not check grades
    min_gpa: Mapped[Decimal] = mapped_column(Numeric(5, 2), nullable=False, default=0)
    min_units: Mapped[int | None] = mapped_column(Integer, nullable=True)

    semester: Mapped[str] = mapped_column(String(50), nullable=False)
    academic_year: Mapped[str] = mapped_column(String(20), nullable=False)
    application_deadline: Mapped[date] = mapped_column(Date, nullable=False)
    community_service_days: Mapped[int] = mapped_column(Integer, nullable=False, default=6)
    active: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )


class DocumentRequirement(Base):
    """A document applicants to a program must upload."""

    __tablename__ = "document_requirements"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    scholarship_program_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("scholarship_programs.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    name: Mapped[str] = mapped_column(String(200), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_required: Mapped[bool] = mapped_column(Boolean, nullable=False, default=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )
