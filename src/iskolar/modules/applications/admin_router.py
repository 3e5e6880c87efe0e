"""
Scholarship Applications Admin Router

API endpoints for administrators to move applications through the
downstream workflow. All endpoints require a JWT with the admin role.

Endpoints:
- GET /admin/applications - List applications with filters and pagination
- GET /admin/applications/{id} - Application detail with document checklist
- POST /admin/applications/{id}/actions - Apply a workflow action
- POST /admin/applications/{id}/disbursements - Record a payment
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from iskolar.core.auth import AuthenticatedUser, get_current_admin_user
from iskolar.core.clock import Clock, get_clock
from iskolar.core.database import get_db
from iskolar.core.exceptions import ServiceError, to_http_exception
from iskolar.modules.applications import service
from iskolar.modules.applications.models import ApplicationStatus
from iskolar.modules.applications.schemas import (
    AdminActionRequest,
    ApplicationDetailResponse,
    ApplicationListResponse,
    ApplicationResponse,
    DisbursementCreate,
    DisbursementResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=ApplicationListResponse,
    summary="List Applications",
)
async def list_applications(
    status_filter: ApplicationStatus | None = Query(None, alias="status"),
    program_id: UUID | None = Query(None),
    page: int = Query(1, ge=1),
    page_size: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
    _admin: AuthenticatedUser = Depends(get_current_admin_user),
) -> ApplicationListResponse:
    applications = await service.admin_list_applications(
        db, status=status_filter, program_id=program_id, page=page, page_size=page_size
    )
    return ApplicationListResponse(
        items=[ApplicationResponse.model_validate(a) for a in applications],
        total=len(applications),
    )


@router.get(
    "/{application_id}",
    response_model=ApplicationDetailResponse,
    summary="Get Application Details",
    responses={404: {"description": "Application not found"}},
)
async def get_application_detail(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    _admin: AuthenticatedUser = Depends(get_current_admin_user),
) -> ApplicationDetailResponse:
    try:
        detail = await service.admin_get_application_detail(db, application_id)
    except ServiceError as e:
        raise to_http_exception(e) from e

    return ApplicationDetailResponse.from_detail(detail)


@router.post(
    "/{application_id}/actions",
    response_model=ApplicationResponse,
    summary="Apply Workflow Action",
    description="""
Apply an administrator action to an application.

The action must be legal from the current status and its precondition must
hold:
- `approve_documents`: every required document approved
- `approve` / `enroll`: a slot remains in the program
- `complete_service`: approved service days cover the required days
- `process_disbursement`: a disbursed payment has been recorded
""",
    responses={
        400: {"description": "Action reserved for students"},
        404: {"description": "Application not found"},
        409: {"description": "Transition or precondition not met"},
    },
)
async def apply_action(
    application_id: UUID,
    data: AdminActionRequest,
    db: AsyncSession = Depends(get_db),
    admin: AuthenticatedUser = Depends(get_current_admin_user),
    clock: Clock = Depends(get_clock),
) -> ApplicationResponse:
    try:
        application = await service.admin_apply_action(
            db, application_id, data.action, clock, admin_notes=data.admin_notes
        )
    except ServiceError as e:
        raise to_http_exception(e) from e

    logger.info(f"Admin {admin.id} applied {data.action.value} to application {application_id}")
    return ApplicationResponse.model_validate(application)


@router.post(
    "/{application_id}/disbursements",
    response_model=DisbursementResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Record Disbursement",
    responses={
        404: {"description": "Application not found"},
        409: {"description": "Application is not awaiting disbursement"},
    },
)
async def record_disbursement(
    application_id: UUID,
    data: DisbursementCreate,
    db: AsyncSession = Depends(get_db),
    admin: AuthenticatedUser = Depends(get_current_admin_user),
    clock: Clock = Depends(get_clock),
) -> DisbursementResponse:
    try:
        disbursement = await service.admin_record_disbursement(
            db,
            application_id,
            amount=data.amount,
            status=data.status,
            clock=clock,
            payment_method=data.payment_method,
            reference_number=data.reference_number,
            notes=data.notes,
        )
    except ServiceError as e:
        raise to_http_exception(e) from e

    logger.info(f"Admin {admin.id} recorded disbursement {disbursement.id}")
    return DisbursementResponse.model_validate(disbursement)
