"""
Community Service Router

Student endpoints for logging service sessions and submitting reports.

Endpoints:
- POST /student/applications/{id}/service/entries - Start a session
- GET /student/applications/{id}/service/entries - List sessions
- POST /student/service/entries/{entry_id}/end - End a session (multipart, photos)
- DELETE /student/service/entries/{entry_id} - Cancel an in-progress session
- POST /student/applications/{id}/service/reports - Submit a tracked report
- POST /student/applications/{id}/service/reports/pdf - Submit a PDF report
- GET /student/applications/{id}/service/reports - List reports
- DELETE /student/service/reports/{report_id} - Withdraw a report
- GET /student/applications/{id}/service/summary - Days/hours completed and remaining
- POST /student/applications/{id}/service/undo-completion - Reopen service reporting
"""

import logging
from datetime import time
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from iskolar.core.auth import StudentActor, get_current_student
from iskolar.core.clock import Clock, get_clock
from iskolar.core.config import settings
from iskolar.core.database import get_db
from iskolar.core.exceptions import ServiceError, to_http_exception
from iskolar.core.storage import FileStore, get_file_store, read_upload
from iskolar.modules.applications.schemas import ApplicationResponse
from iskolar.modules.community_service import service
from iskolar.modules.community_service.schemas import (
    EntryResponse,
    EntryStart,
    ReportResponse,
    ServiceSummaryResponse,
    TrackedReportCreate,
)

logger = logging.getLogger(__name__)

router = APIRouter()


# ============================================
# Sessions
# ============================================


@router.post(
    "/applications/{application_id}/service/entries",
    response_model=EntryResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start Service Session",
    responses={
        400: {"description": "Future date or description too short"},
        409: {"description": "Session already in progress for the date, or not enrolled"},
    },
)
async def start_entry(
    application_id: UUID,
    data: EntryStart,
    db: AsyncSession = Depends(get_db),
    student: StudentActor = Depends(get_current_student),
    clock: Clock = Depends(get_clock),
) -> EntryResponse:
    try:
        entry = await service.start_entry(
            db,
            student,
            application_id,
            service_date=data.service_date,
            time_in=data.time_in,
            task_description=data.task_description,
            clock=clock,
        )
    except ServiceError as e:
        raise to_http_exception(e) from e

    return EntryResponse.model_validate(entry)


@router.get(
    "/applications/{application_id}/service/entries",
    response_model=list[EntryResponse],
    summary="List Service Sessions",
)
async def list_entries(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    student: StudentActor = Depends(get_current_student),
) -> list[EntryResponse]:
    try:
        entries = await service.list_entries(db, student, application_id)
    except ServiceError as e:
        raise to_http_exception(e) from e

    return [EntryResponse.model_validate(e) for e in entries]


@router.post(
    "/service/entries/{entry_id}/end",
    response_model=EntryResponse,
    summary="End Service Session",
    description="""
End an in-progress session.

Omit `time_out` to close a session dated today at the current time. Up to 5
photos (jpg, jpeg, png, 2 MB each) may be attached.
""",
    responses={
        400: {"description": "Invalid interval, too many photos or bad file"},
        409: {"description": "Session is not in progress"},
    },
)
async def end_entry(
    entry_id: UUID,
    time_out: time | None = Form(None),
    lessons_learned: str | None = Form(None),
    photos: list[UploadFile] = File(default=[]),
    db: AsyncSession = Depends(get_db),
    student: StudentActor = Depends(get_current_student),
    store: FileStore = Depends(get_file_store),
    clock: Clock = Depends(get_clock),
) -> EntryResponse:
    uploaded = [await read_upload(photo, settings.max_photo_size_bytes) for photo in photos]

    try:
        entry = await service.end_entry(
            db, store, student, entry_id, time_out, lessons_learned, uploaded, clock
        )
    except ServiceError as e:
        raise to_http_exception(e) from e

    return EntryResponse.model_validate(entry)


@router.delete(
    "/service/entries/{entry_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Cancel Service Session",
)
async def cancel_entry(
    entry_id: UUID,
    db: AsyncSession = Depends(get_db),
    student: StudentActor = Depends(get_current_student),
) -> None:
    try:
        await service.cancel_entry(db, student, entry_id)
    except ServiceError as e:
        raise to_http_exception(e) from e


# ============================================
# Reports
# ============================================


@router.post(
    "/applications/{application_id}/service/reports",
    response_model=ReportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit Tracked Report",
    description="""
Submit a tracked hours report. Credited days are `total_hours / 8`, and the
report is rejected if that exceeds the days still required.
""",
    responses={
        400: {"description": "Invalid payload or exceeds remaining days"},
        409: {"description": "Application is not enrolled"},
    },
)
async def submit_tracked_report(
    application_id: UUID,
    data: TrackedReportCreate,
    db: AsyncSession = Depends(get_db),
    student: StudentActor = Depends(get_current_student),
    store: FileStore = Depends(get_file_store),
    clock: Clock = Depends(get_clock),
) -> ReportResponse:
    payload = service.TrackedReportPayload(
        description=data.description,
        total_hours=data.total_hours,
        service_date=data.service_date,
        lessons_learned=data.lessons_learned,
    )

    try:
        report = await service.submit_report(db, store, student, application_id, payload, clock)
    except ServiceError as e:
        raise to_http_exception(e) from e

    return ReportResponse.model_validate(report)


@router.post(
    "/applications/{application_id}/service/reports/pdf",
    response_model=ReportResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Submit PDF Report",
    responses={
        400: {"description": "Not a PDF, too large, or nothing remaining"},
        409: {"description": "Application is not enrolled"},
    },
)
async def submit_pdf_report(
    application_id: UUID,
    pdf: UploadFile = File(...),
    description: str | None = Form(None),
    db: AsyncSession = Depends(get_db),
    student: StudentActor = Depends(get_current_student),
    store: FileStore = Depends(get_file_store),
    clock: Clock = Depends(get_clock),
) -> ReportResponse:
    uploaded = await read_upload(pdf, settings.max_upload_size_bytes)
    payload = (
        service.PdfReportPayload(pdf=uploaded, description=description)
        if description
        else service.PdfReportPayload(pdf=uploaded)
    )

    try:
        report = await service.submit_report(db, store, student, application_id, payload, clock)
    except ServiceError as e:
        raise to_http_exception(e) from e

    return ReportResponse.model_validate(report)


@router.get(
    "/applications/{application_id}/service/reports",
    response_model=list[ReportResponse],
    summary="List Service Reports",
)
async def list_reports(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    student: StudentActor = Depends(get_current_student),
) -> list[ReportResponse]:
    try:
        reports = await service.list_reports(db, student, application_id)
    except ServiceError as e:
        raise to_http_exception(e) from e

    return [ReportResponse.model_validate(r) for r in reports]


@router.delete(
    "/service/reports/{report_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Withdraw Service Report",
    responses={409: {"description": "Report is approved"}},
)
async def undo_report(
    report_id: UUID,
    db: AsyncSession = Depends(get_db),
    student: StudentActor = Depends(get_current_student),
    store: FileStore = Depends(get_file_store),
) -> None:
    try:
        await service.undo_report(db, store, student, report_id)
    except ServiceError as e:
        raise to_http_exception(e) from e


@router.get(
    "/applications/{application_id}/service/summary",
    response_model=ServiceSummaryResponse,
    summary="Service Summary",
)
async def get_service_summary(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    student: StudentActor = Depends(get_current_student),
) -> ServiceSummaryResponse:
    try:
        summary = await service.get_service_summary(db, student, application_id)
    except ServiceError as e:
        raise to_http_exception(e) from e

    return ServiceSummaryResponse.from_summary(summary)


@router.post(
    "/applications/{application_id}/service/undo-completion",
    response_model=ApplicationResponse,
    summary="Undo Service Completion",
    responses={409: {"description": "Service is not completed"}},
)
async def undo_service_completion(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    student: StudentActor = Depends(get_current_student),
    clock: Clock = Depends(get_clock),
) -> ApplicationResponse:
    try:
        application = await service.undo_service_completion(db, student, application_id, clock)
    except ServiceError as e:
        raise to_http_exception(e) from e

    return ApplicationResponse.model_validate(application)
