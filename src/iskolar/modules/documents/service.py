"""
Document Uploads Service Layer

Upload, replace and delete a student's documents, and the administrator's
review of them.

Replacing an upload is all-or-nothing: the new file is stored first, the old
row is swapped for the new one, and only then is the old file removed. If the
old file cannot be removed the transaction is rolled back, the new file is
discarded and the previous upload is left exactly as it was. If the final
commit fails after the old file was removed, its contents are written back.
"""

import logging
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from iskolar.core.auth import StudentActor
from iskolar.core.clock import Clock
from iskolar.core.config import settings
from iskolar.core.database import commit
from iskolar.core.events import ReviewEvent, publish_review
from iskolar.core.exceptions import (
    CannotDeleteDocumentError,
    InvalidTransitionError,
    NotFoundError,
    ReplaceFailedError,
    StorageFailureError,
    ValidationError,
)
from iskolar.core.storage import FileStore, UploadedFile, unique_path, validate_upload
from iskolar.modules.applications import service as applications_service
from iskolar.modules.applications.models import ApplicationStatus, ScholarshipApplication
from iskolar.modules.applications.state_machine import (
    DOCUMENT_EDITABLE_STATUSES,
    ApplicationAction,
)
from iskolar.modules.documents import repository, tracker
from iskolar.modules.documents.models import DocumentStatus, DocumentUpload
from iskolar.modules.programs import repository as programs_repository

logger = logging.getLogger(__name__)

ALLOWED_DOCUMENT_EXTENSIONS = {"pdf", "jpg", "jpeg", "png"}


def discard_file(store: FileStore, ref: str) -> None:
    """Remove a file stored during a failed operation; leftovers are only logged."""
    try:
        store.delete(ref)
    except StorageFailureError:
        logger.error(f"Could not clean up stored file {ref}; it is now orphaned")


def snapshot_file(store: FileStore, ref: str) -> bytes | None:
    """Contents of a file about to be removed, kept until the commit succeeds."""
    return store.read(ref) if store.exists(ref) else None


def restore_file(store: FileStore, ref: str, content: bytes | None) -> None:
    """Write back a file removed by a transaction that then failed to commit."""
    if content is None:
        return
    try:
        store.store(content, ref)
    except StorageFailureError:
        logger.error(f"Could not restore file {ref} after a failed commit")


def _ensure_documents_editable(application: ScholarshipApplication, action: str) -> None:
    if application.status not in DOCUMENT_EDITABLE_STATUSES:
        logger.warning(
            f"Document {action} rejected for application {application.id}: "
            f"status={application.status.value}"
        )
        raise InvalidTransitionError(application.status.value, action)


async def upload_document(
    db: AsyncSession,
    store: FileStore,
    actor: StudentActor,
    application_id: UUID,
    requirement_id: UUID,
    file: UploadedFile,
    clock: Clock,
) -> DocumentUpload:
    """
    Upload (or replace) the document for one requirement.

    Args:
        db: Database session
        store: File store
        actor: Acting student
        application_id: Application the document belongs to
        requirement_id: Requirement of the application's program
        file: Incoming file
        clock: Source of the upload timestamp

    Returns:
        The new upload, in ``pending_review``

    Raises:
        NotFoundError: If the application or requirement doesn't exist
        ForbiddenError: If the application belongs to another student
        InvalidTransitionError: If documents can no longer be changed
        ValidationError: If the file type or size is not accepted
        ReplaceFailedError: If the previous file could not be removed
        StorageFailureError: If storing the file or committing fails
    """
    application = await applications_service.get_owned_application(db, actor, application_id)
    _ensure_documents_editable(application, "upload_document")

    requirement = await programs_repository.get_requirement(
        db, application.scholarship_program_id, requirement_id
    )
    if not requirement:
        raise NotFoundError("Document requirement", requirement_id)

    validate_upload(
        file, ALLOWED_DOCUMENT_EXTENSIONS, settings.max_upload_size_bytes, label="document"
    )

    existing = await repository.get_for_requirement(db, application.id, requirement.id)
    if existing and existing.status == DocumentStatus.APPROVED:
        logger.warning(
            f"Replacing approved document {existing.id} on application {application.id}"
        )

    new_ref = store.store(file.content, unique_path(f"documents/{application.id}", file))

    try:
        if existing:
            await repository.delete(db, existing)
        upload = await repository.create(
            db,
            application_id=application.id,
            requirement_id=requirement.id,
            file_path=new_ref,
            original_filename=file.filename,
            uploaded_at=clock.now(),
        )
    except SQLAlchemyError as e:
        await db.rollback()
        discard_file(store, new_ref)
        logger.error(f"Failed to save upload for application {application.id}: {e}")
        raise StorageFailureError() from e

    old_content = None
    if existing:
        try:
            old_content = snapshot_file(store, existing.file_path)
            store.delete(existing.file_path)
        except StorageFailureError as e:
            await db.rollback()
            discard_file(store, new_ref)
            logger.error(
                f"Failed to remove previous file {existing.file_path}; "
                f"upload {existing.id} left in place"
            )
            raise ReplaceFailedError(existing.file_path) from e

    try:
        await commit(db, "document upload")
    except StorageFailureError:
        discard_file(store, new_ref)
        if existing:
            restore_file(store, existing.file_path, old_content)
        raise

    logger.info(
        f"Stored document for requirement {requirement.id} on application {application.id}"
        + (" (replaced previous upload)" if existing else "")
    )
    return upload


async def delete_document(
    db: AsyncSession,
    store: FileStore,
    actor: StudentActor,
    upload_id: UUID,
) -> None:
    """
    Delete an upload that has not been approved.

    Raises:
        NotFoundError: If the upload doesn't exist
        ForbiddenError: If the application belongs to another student
        InvalidTransitionError: If documents can no longer be changed
        CannotDeleteDocumentError: If the upload is approved
        StorageFailureError: If the file or row could not be removed
    """
    upload = await repository.get_by_id(db, upload_id)
    if not upload:
        raise NotFoundError("Document upload", upload_id)

    application = await applications_service.get_owned_application(
        db, actor, upload.scholarship_application_id
    )
    _ensure_documents_editable(application, "delete_document")

    if upload.status == DocumentStatus.APPROVED:
        raise CannotDeleteDocumentError()

    file_path = upload.file_path
    try:
        content = snapshot_file(store, file_path)
        await repository.delete(db, upload)
        store.delete(file_path)
    except (SQLAlchemyError, StorageFailureError) as e:
        await db.rollback()
        logger.error(f"Failed to delete document {upload_id}: {e}")
        raise StorageFailureError() from e

    try:
        await commit(db, "document deletion")
    except StorageFailureError:
        restore_file(store, file_path, content)
        raise

    logger.info(f"Deleted document {upload_id} from application {application.id}")


async def admin_review_document(
    db: AsyncSession,
    upload_id: UUID,
    status: DocumentStatus,
    clock: Clock,
    rejection_reason: str | None = None,
) -> DocumentUpload:
    """
    Record an administrator's decision on an upload.

    While the application is under document review, approving the last
    required document moves it to ``documents_approved`` and rejecting any
    document sends it back to ``documents_pending``.

    Raises:
        ValidationError: If the decision is missing or a rejection has no reason
        NotFoundError: If the upload doesn't exist
    """
    if status == DocumentStatus.PENDING_REVIEW:
        raise ValidationError("A review must approve or reject the document.")
    if status.is_rejection and not (rejection_reason and rejection_reason.strip()):
        raise ValidationError("A rejection reason is required.")

    upload = await repository.get_by_id(db, upload_id)
    if not upload:
        raise NotFoundError("Document upload", upload_id)

    application = await applications_service.get_application(db, upload.scholarship_application_id)

    now = clock.now()
    previous = upload.status
    await repository.update_review(
        db,
        upload,
        status=status,
        rejection_reason=rejection_reason if status.is_rejection else None,
        reviewed_at=now,
    )

    events = []
    if application.status == ApplicationStatus.DOCUMENTS_UNDER_REVIEW:
        requirements = await programs_repository.get_requirements(
            db, application.scholarship_program_id
        )
        uploads = await repository.list_for_application(db, application.id)

        if tracker.all_required_approved(requirements, uploads):
            action = ApplicationAction.APPROVE_DOCUMENTS
        elif status.is_rejection:
            action = ApplicationAction.REQUEST_DOCUMENTS
        else:
            action = None

        if action:
            events.append(
                await applications_service.apply_transition(
                    db, application, action, clock, reviewed_at=now
                )
            )

    await commit(db, "document review")

    await publish_review(
        ReviewEvent(
            application_id=application.id,
            subject="document",
            subject_id=upload.id,
            old_status=previous.value,
            new_status=status.value,
            occurred_at=now,
            rejection_reason=upload.rejection_reason,
        )
    )
    await applications_service.publish_events(events)

    logger.info(f"Document {upload.id} reviewed as {status.value}")
    return upload
