"""
Community Service Review Admin Router

Endpoints:
- POST /admin/community-service/reports/{report_id}/review - Approve or reject a report
- POST /admin/community-service/reports/bulk-review - Approve or reject several reports
- POST /admin/community-service/entries/{entry_id}/review - Approve or reject a session
- POST /admin/community-service/entries/{entry_id}/undo-approval - Undo a session approval
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from iskolar.core.auth import AuthenticatedUser, get_current_admin_user
from iskolar.core.clock import Clock, get_clock
from iskolar.core.database import get_db
from iskolar.core.exceptions import ServiceError, to_http_exception
from iskolar.modules.community_service import service
from iskolar.modules.community_service.schemas import (
    BulkReportReviewRequest,
    EntryResponse,
    EntryReviewRequest,
    ReportResponse,
    ReportReviewRequest,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "/reports/bulk-review",
    response_model=list[ReportResponse],
    summary="Bulk Review Service Reports",
    description="""
Approve or reject several reports at once. Rejections require a reason.

Either every report is reviewed or none is. PDF reports submitted without
credit must be approved one at a time with their `days_completed`.
""",
    responses={
        400: {"description": "Missing decision or reason, or a report needs assigned days"},
        404: {"description": "A report was not found"},
    },
)
async def bulk_review_reports(
    data: BulkReportReviewRequest,
    db: AsyncSession = Depends(get_db),
    admin: AuthenticatedUser = Depends(get_current_admin_user),
    clock: Clock = Depends(get_clock),
) -> list[ReportResponse]:
    try:
        reports = await service.admin_bulk_review_reports(
            db,
            data.report_ids,
            data.status,
            clock,
            rejection_reason=data.rejection_reason,
        )
    except ServiceError as e:
        raise to_http_exception(e) from e

    logger.info(f"Admin {admin.id} bulk reviewed {len(reports)} reports: {data.status.value}")
    return [ReportResponse.model_validate(r) for r in reports]


@router.post(
    "/reports/{report_id}/review",
    response_model=ReportResponse,
    summary="Review Service Report",
    description="""
Approve or reject a service report. Rejections require a reason.

`days_completed` overrides the credited days on approval and is required for
PDF reports submitted without credit. Once approved days cover the program's
required days, a `service_pending` application moves to `service_completed`.
""",
    responses={
        400: {"description": "Missing decision, reason or days"},
        404: {"description": "Report not found"},
    },
)
async def review_report(
    report_id: UUID,
    data: ReportReviewRequest,
    db: AsyncSession = Depends(get_db),
    admin: AuthenticatedUser = Depends(get_current_admin_user),
    clock: Clock = Depends(get_clock),
) -> ReportResponse:
    try:
        report = await service.admin_review_report(
            db,
            report_id,
            data.status,
            clock,
            rejection_reason=data.rejection_reason,
            days_completed=data.days_completed,
        )
    except ServiceError as e:
        raise to_http_exception(e) from e

    logger.info(f"Admin {admin.id} reviewed service report {report_id}: {data.status.value}")
    return ReportResponse.model_validate(report)


@router.post(
    "/entries/{entry_id}/review",
    response_model=EntryResponse,
    summary="Review Service Entry",
    description="Approve or reject a completed service session, with optional notes.",
    responses={
        400: {"description": "Decision is not approve or reject"},
        404: {"description": "Entry not found"},
        409: {"description": "Entry is not completed"},
    },
)
async def review_entry(
    entry_id: UUID,
    data: EntryReviewRequest,
    db: AsyncSession = Depends(get_db),
    admin: AuthenticatedUser = Depends(get_current_admin_user),
    clock: Clock = Depends(get_clock),
) -> EntryResponse:
    try:
        entry = await service.admin_review_entry(
            db, entry_id, data.status, clock, admin_notes=data.admin_notes
        )
    except ServiceError as e:
        raise to_http_exception(e) from e

    logger.info(f"Admin {admin.id} reviewed service entry {entry_id}: {data.status.value}")
    return EntryResponse.model_validate(entry)


@router.post(
    "/entries/{entry_id}/undo-approval",
    response_model=EntryResponse,
    summary="Undo Entry Approval",
    responses={
        404: {"description": "Entry not found"},
        409: {"description": "Entry is not approved"},
    },
)
async def undo_entry_approval(
    entry_id: UUID,
    db: AsyncSession = Depends(get_db),
    admin: AuthenticatedUser = Depends(get_current_admin_user),
) -> EntryResponse:
    try:
        entry = await service.admin_undo_entry_approval(db, entry_id)
    except ServiceError as e:
        raise to_http_exception(e) from e

    logger.info(f"Admin {admin.id} undid approval of service entry {entry_id}")
    return EntryResponse.model_validate(entry)
