"""
Document Review Admin Router

Endpoints:
- POST /admin/documents/{upload_id}/review - Approve or reject an upload
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from iskolar.core.auth import AuthenticatedUser, get_current_admin_user
from iskolar.core.clock import Clock, get_clock
from iskolar.core.database import get_db
from iskolar.core.exceptions import ServiceError, to_http_exception
from iskolar.modules.documents import service
from iskolar.modules.documents.schemas import DocumentReviewRequest, DocumentUploadResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/{upload_id}/review",
    response_model=DocumentUploadResponse,
    summary="Review Document",
    description="""
Approve or reject an uploaded document. Rejections require a reason.

While the application is `documents_under_review`, approving the last
required document moves it to `documents_approved`; a rejection moves it to
`documents_pending`.
""",
    responses={
        400: {"description": "Missing decision or rejection reason"},
        404: {"description": "Upload not found"},
    },
)
async def review_document(
    upload_id: UUID,
    data: DocumentReviewRequest,
    db: AsyncSession = Depends(get_db),
    admin: AuthenticatedUser = Depends(get_current_admin_user),
    clock: Clock = Depends(get_clock),
) -> DocumentUploadResponse:
    try:
        upload = await service.admin_review_document(
            db, upload_id, data.status, clock, rejection_reason=data.rejection_reason
        )
    except ServiceError as e:
        raise to_http_exception(e) from e

    logger.info(f"Admin {admin.id} reviewed document {upload_id}: {data.status.value}")
    return DocumentUploadResponse.model_validate(upload)
