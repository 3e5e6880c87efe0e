"""
Document Uploads Router

Endpoints:
- POST /student/applications/{id}/documents/{requirement_id} - Upload or replace
- DELETE /student/documents/{upload_id} - Delete an upload that is not approved
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, File, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from iskolar.core.auth import StudentActor, get_current_student
from iskolar.core.clock import Clock, get_clock
from iskolar.core.config import settings
from iskolar.core.database import get_db
from iskolar.core.exceptions import ServiceError, to_http_exception
from iskolar.core.storage import FileStore, get_file_store, read_upload
from iskolar.modules.documents import service
from iskolar.modules.documents.schemas import DocumentUploadResponse

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/applications/{application_id}/documents/{requirement_id}",
    response_model=DocumentUploadResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload Document",
    description="""
Upload the document for one requirement of the application's program.

An existing upload for the requirement is replaced. Accepted types are
pdf, jpg, jpeg and png up to 10 MB.
""",
    responses={
        400: {"description": "File type or size not accepted"},
        403: {"description": "Not your application"},
        404: {"description": "Application or requirement not found"},
        409: {"description": "Documents can no longer be changed"},
        500: {"description": "Previous upload could not be replaced"},
        503: {"description": "Storage failure, retry"},
    },
)
async def upload_document(
    application_id: UUID,
    requirement_id: UUID,
    file: UploadFile = File(...),
    db: AsyncSession = Depends(get_db),
    student: StudentActor = Depends(get_current_student),
    store: FileStore = Depends(get_file_store),
    clock: Clock = Depends(get_clock),
) -> DocumentUploadResponse:
    uploaded = await read_upload(file, settings.max_upload_size_bytes)

    try:
        upload = await service.upload_document(
            db, store, student, application_id, requirement_id, uploaded, clock
        )
    except ServiceError as e:
        raise to_http_exception(e) from e

    return DocumentUploadResponse.model_validate(upload)


@router.delete(
    "/documents/{upload_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete Document",
    responses={
        403: {"description": "Not your application"},
        404: {"description": "Upload not found"},
        409: {"description": "Approved, or documents can no longer be changed"},
    },
)
async def delete_document(
    upload_id: UUID,
    db: AsyncSession = Depends(get_db),
    student: StudentActor = Depends(get_current_student),
    store: FileStore = Depends(get_file_store),
) -> None:
    try:
        await service.delete_document(db, store, student, upload_id)
    except ServiceError as e:
        raise to_http_exception(e) from e
