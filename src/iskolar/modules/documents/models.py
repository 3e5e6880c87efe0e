"""
Document Upload Models

One upload per (application, document requirement). Replacing an upload
deletes the previous row and file in the same transaction.
"""

import enum
import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Text, UniqueConstraint, func
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from iskolar.core.database import Base, enum_type


class DocumentStatus(str, enum.Enum):
    """Review state of an uploaded document."""

    PENDING_REVIEW = "pending_review"
    APPROVED = "approved"
    REJECTED_INVALID = "rejected_invalid"
    REJECTED_INCOMPLETE = "rejected_incomplete"
    REJECTED_INCORRECT_FORMAT = "rejected_incorrect_format"
    REJECTED_UNREADABLE = "rejected_unreadable"
    REJECTED_OTHER = "rejected_other"

    @property
    def is_rejection(self) -> bool:
        return self.value.startswith("rejected_")


class DocumentUpload(Base):
    __tablename__ = "document_uploads"

    id: Mapped[uuid.UUID] = mapped_column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    scholarship_application_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("scholarship_applications.id", ondelete="CASCADE"),
        nullable=False,
    )
    document_requirement_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("document_requirements.id", ondelete="CASCADE"),
        nullable=False,
    )

    file_path: Mapped[str] = mapped_column(String(500), nullable=False)
    original_filename: Mapped[str] = mapped_column(String(255), nullable=False)

    status: Mapped[DocumentStatus] = mapped_column(
        enum_type(DocumentStatus, "document_status"),
        nullable=False,
        default=DocumentStatus.PENDING_REVIEW,
    )
    rejection_reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    uploaded_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint(
            "scholarship_application_id",
            "document_requirement_id",
            name="uq_document_uploads_application_requirement",
        ),
    )
