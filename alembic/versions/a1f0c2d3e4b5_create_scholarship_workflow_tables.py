"""create scholarship workflow tables

Revision ID: a1f0c2d3e4b5
Revises:
Create Date: 2026-10-19 09:00:00.000000

This migration:
1. Creates the enum types for every workflow status
2. Creates student profiles, programs and document requirements
3. Creates applications, document uploads, service entries, service reports
   and disbursements
4. Adds the one-upload-per-requirement unique constraint and the partial
   unique index allowing one in-progress service entry per date
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = "a1f0c2d3e4b5"
down_revision: str | Sequence[str] | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


ENUMS: dict[str, tuple[str, ...]] = {
    "school_type": ("high_school", "college"),
    "school_type_eligibility": ("high_school", "college", "both"),
    "application_status": (
        "draft",
        "submitted",
        "documents_pending",
        "documents_under_review",
        "documents_approved",
        "documents_rejected",
        "eligibility_verified",
        "approved",
        "enrolled",
        "service_pending",
        "service_completed",
        "disbursement_pending",
        "disbursement_processed",
        "completed",
        "rejected",
        "cancelled",
        "archived",
    ),
    "disbursement_status": ("pending", "processing", "disbursed", "on_hold", "cancelled"),
    "document_status": (
        "pending_review",
        "approved",
        "rejected_invalid",
        "rejected_incomplete",
        "rejected_incorrect_format",
        "rejected_unreadable",
        "rejected_other",
    ),
    "service_entry_status": ("in_progress", "completed", "approved", "rejected"),
    "service_report_type": ("tracked", "pdf_upload"),
    "service_report_status": (
        "pending_review",
        "approved",
        "rejected_insufficient_hours",
        "rejected_incomplete_documentation",
        "rejected_other",
    ),
}


def _enum(name: str) -> postgresql.ENUM:
    return postgresql.ENUM(*ENUMS[name], name=name, create_type=False)


def _timestamps(updated: bool = True) -> list[sa.Column]:
    columns = [
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            server_default=sa.text("now()"),
            nullable=False,
        )
    ]
    if updated:
        columns.append(
            sa.Column(
                "updated_at",
                sa.DateTime(timezone=True),
                server_default=sa.text("now()"),
                nullable=False,
            )
        )
    return columns


def _application_fk() -> sa.Column:
    return sa.Column(
        "scholarship_application_id",
        postgresql.UUID(as_uuid=True),
        sa.ForeignKey("scholarship_applications.id", ondelete="CASCADE"),
        nullable=False,
    )


def upgrade() -> None:
    """Create the workflow tables."""
    bind = op.get_bind()
    for name in ENUMS:
        _enum(name).create(bind, checkfirst=True)

    op.create_table(
        "student_profiles",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("user_id", postgresql.UUID(as_uuid=True), nullable=True, unique=True),
        sa.Column("first_name", sa.String(length=100), nullable=False),
        sa.Column("last_name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=255), nullable=True),
        sa.Column("phone_number", sa.String(length=20), nullable=True),
        sa.Column("address", sa.String(length=500), nullable=True),
        sa.Column("city", sa.String(length=100), nullable=True),
        sa.Column("state", sa.String(length=100), nullable=True),
        sa.Column("zip_code", sa.String(length=20), nullable=True),
        sa.Column("school_type", _enum("school_type"), nullable=False),
        sa.Column("school_level", sa.String(length=50), nullable=True),
        sa.Column("school_name", sa.String(length=200), nullable=True),
        sa.Column("student_id", sa.String(length=50), nullable=True),
        sa.Column("gpa", sa.Numeric(5, 2), nullable=True),
        *_timestamps(),
    )
    op.create_index("ix_student_profiles_user_id", "student_profiles", ["user_id"])

    op.create_table(
        "scholarship_programs",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=False, server_default=""),
        sa.Column("total_budget", sa.Numeric(12, 2), nullable=False),
        sa.Column("per_student_budget", sa.Numeric(10, 2), nullable=False),
        sa.Column("available_slots", sa.Integer(), nullable=False),
        sa.Column("school_type_eligibility", _enum("school_type_eligibility"), nullable=False),
        sa.Column("min_gpa", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column("min_units", sa.Integer(), nullable=True),
        sa.Column("semester", sa.String(length=50), nullable=False),
        sa.Column("academic_year", sa.String(length=20), nullable=False),
        sa.Column("application_deadline", sa.Date(), nullable=False),
        sa.Column("community_service_days", sa.Integer(), nullable=False, server_default="6"),
        sa.Column("active", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(),
    )

    op.create_table(
        "document_requirements",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "scholarship_program_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("scholarship_programs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("name", sa.String(length=200), nullable=False),
        sa.Column("description", sa.Text(), nullable=True),
        sa.Column("is_required", sa.Boolean(), nullable=False, server_default=sa.true()),
        *_timestamps(updated=False),
    )
    op.create_index(
        "ix_document_requirements_scholarship_program_id",
        "document_requirements",
        ["scholarship_program_id"],
    )

    op.create_table(
        "scholarship_applications",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column(
            "student_profile_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("student_profiles.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "scholarship_program_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("scholarship_programs.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column(
            "status", _enum("application_status"), nullable=False, server_default="draft"
        ),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=True),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_scholarship_applications_status", "scholarship_applications", ["status"]
    )
    op.create_index(
        "ix_scholarship_applications_student_program",
        "scholarship_applications",
        ["student_profile_id", "scholarship_program_id"],
    )
    op.create_index(
        "ix_scholarship_applications_program_status",
        "scholarship_applications",
        ["scholarship_program_id", "status"],
    )

    op.create_table(
        "document_uploads",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _application_fk(),
        sa.Column(
            "document_requirement_id",
            postgresql.UUID(as_uuid=True),
            sa.ForeignKey("document_requirements.id", ondelete="CASCADE"),
            nullable=False,
        ),
        sa.Column("file_path", sa.String(length=500), nullable=False),
        sa.Column("original_filename", sa.String(length=255), nullable=False),
        sa.Column(
            "status", _enum("document_status"), nullable=False, server_default="pending_review"
        ),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("uploaded_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(updated=False),
        sa.UniqueConstraint(
            "scholarship_application_id",
            "document_requirement_id",
            name="uq_document_uploads_application_requirement",
        ),
    )

    op.create_table(
        "community_service_entries",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _application_fk(),
        sa.Column("service_date", sa.Date(), nullable=False),
        sa.Column("time_in", sa.Time(), nullable=False),
        sa.Column("time_out", sa.Time(), nullable=True),
        sa.Column("task_description", sa.Text(), nullable=False),
        sa.Column("lessons_learned", sa.Text(), nullable=True),
        sa.Column("photos", sa.JSON(), nullable=False, server_default=sa.text("'[]'")),
        sa.Column("hours_completed", sa.Numeric(5, 2), nullable=False, server_default="0"),
        sa.Column(
            "status",
            _enum("service_entry_status"),
            nullable=False,
            server_default="in_progress",
        ),
        sa.Column("admin_notes", sa.Text(), nullable=True),
        *_timestamps(),
    )
    op.create_index(
        "ix_community_service_entries_application",
        "community_service_entries",
        ["scholarship_application_id"],
    )
    # One in-progress session per (application, date)
    op.create_index(
        "uq_community_service_entries_active_date",
        "community_service_entries",
        ["scholarship_application_id", "service_date"],
        unique=True,
        postgresql_where=sa.text("status = 'in_progress'"),
    )

    op.create_table(
        "community_service_reports",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _application_fk(),
        sa.Column("report_type", _enum("service_report_type"), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("service_date", sa.Date(), nullable=True),
        sa.Column("lessons_learned", sa.Text(), nullable=True),
        sa.Column("pdf_report_path", sa.String(length=500), nullable=True),
        sa.Column("days_completed", sa.Numeric(6, 2), nullable=False, server_default="0"),
        sa.Column("total_hours", sa.Numeric(7, 2), nullable=False, server_default="0"),
        sa.Column(
            "status",
            _enum("service_report_status"),
            nullable=False,
            server_default="pending_review",
        ),
        sa.Column("rejection_reason", sa.Text(), nullable=True),
        sa.Column("submitted_at", sa.DateTime(timezone=True), nullable=False),
        sa.Column("reviewed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index(
        "ix_community_service_reports_scholarship_application_id",
        "community_service_reports",
        ["scholarship_application_id"],
    )

    op.create_table(
        "disbursements",
        sa.Column("id", postgresql.UUID(as_uuid=True), primary_key=True),
        _application_fk(),
        sa.Column("amount", sa.Numeric(10, 2), nullable=False),
        sa.Column(
            "status", _enum("disbursement_status"), nullable=False, server_default="pending"
        ),
        sa.Column("payment_method", sa.String(length=50), nullable=True),
        sa.Column("reference_number", sa.String(length=100), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("disbursed_at", sa.DateTime(timezone=True), nullable=True),
        *_timestamps(updated=False),
    )
    op.create_index(
        "ix_disbursements_scholarship_application_id",
        "disbursements",
        ["scholarship_application_id"],
    )


def downgrade() -> None:
    """Drop the workflow tables and enum types."""
    op.drop_table("disbursements")
    op.drop_table("community_service_reports")
    op.drop_index(
        "uq_community_service_entries_active_date", table_name="community_service_entries"
    )
    op.drop_table("community_service_entries")
    op.drop_table("document_uploads")
    op.drop_table("scholarship_applications")
    op.drop_table("document_requirements")
    op.drop_table("scholarship_programs")
    op.drop_table("student_profiles")

    bind = op.get_bind()
    for name in reversed(list(ENUMS)):
        _enum(name).drop(bind, checkfirst=True)
