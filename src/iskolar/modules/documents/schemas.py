"""
Document Uploads Schemas
"""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from iskolar.modules.documents.models import DocumentStatus


class DocumentUploadResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    scholarship_application_id: UUID
    document_requirement_id: UUID
    original_filename: str
    status: DocumentStatus
    rejection_reason: str | None = None
    uploaded_at: datetime
    reviewed_at: datetime | None = None


class DocumentReviewRequest(BaseModel):
    """Request body for POST /admin/documents/{id}/review."""

    status: DocumentStatus
    rejection_reason: str | None = Field(None, max_length=1000)
