"""
Document Uploads Repository

Database operations for document uploads. Functions flush but never commit.
"""

from datetime import datetime
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import DocumentStatus, DocumentUpload


async def get_by_id(db: AsyncSession, id: UUID) -> DocumentUpload | None:
    """Get upload by ID."""
    return await db.get(DocumentUpload, id)


async def get_for_requirement(
    db: AsyncSession, application_id: UUID, requirement_id: UUID
) -> DocumentUpload | None:
    """The upload filed against a requirement, if any."""
    result = await db.execute(
        select(DocumentUpload).where(
            DocumentUpload.scholarship_application_id == application_id,
            DocumentUpload.document_requirement_id == requirement_id,
        )
    )
    return result.scalar_one_or_none()


async def list_for_application(db: AsyncSession, application_id: UUID) -> list[DocumentUpload]:
    result = await db.execute(
        select(DocumentUpload)
        .where(DocumentUpload.scholarship_application_id == application_id)
        .order_by(DocumentUpload.uploaded_at)
    )
    return list(result.scalars().all())


async def create(
    db: AsyncSession,
    application_id: UUID,
    requirement_id: UUID,
    file_path: str,
    original_filename: str,
    uploaded_at: datetime,
) -> DocumentUpload:
    """Insert a new upload in ``pending_review``."""
    upload = DocumentUpload(
        scholarship_application_id=application_id,
        document_requirement_id=requirement_id,
        file_path=file_path,
        original_filename=original_filename,
        status=DocumentStatus.PENDING_REVIEW,
        uploaded_at=uploaded_at,
    )

    db.add(upload)
    await db.flush()

    return upload


async def delete(db: AsyncSession, upload: DocumentUpload) -> None:
    await db.delete(upload)
    await db.flush()


async def update_review(
    db: AsyncSession,
    upload: DocumentUpload,
    status: DocumentStatus,
    rejection_reason: str | None,
    reviewed_at: datetime,
) -> DocumentUpload:
    upload.status = status
    upload.rejection_reason = rejection_reason
    upload.reviewed_at = reviewed_at

    await db.flush()

    return upload
