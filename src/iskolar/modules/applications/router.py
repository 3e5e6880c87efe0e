"""
Scholarship Applications Router

Student endpoints for the application lifecycle. The caller's student profile
is resolved from the bearer token; every mutation checks ownership.

Endpoints:
- POST /student/applications - Create a draft application
- GET /student/applications - List the student's applications
- GET /student/applications/{id} - Application detail with document checklist
- POST /student/applications/{id}/submit - Submit a draft
- POST /student/applications/{id}/cancel - Cancel an application
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from iskolar.core.auth import StudentActor, get_current_student
from iskolar.core.clock import Clock, get_clock
from iskolar.core.database import get_db
from iskolar.core.exceptions import ServiceError, to_http_exception
from iskolar.modules.applications import service
from iskolar.modules.applications.schemas import (
    ApplicationCreate,
    ApplicationDetailResponse,
    ApplicationListResponse,
    ApplicationResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post(
    "",
    response_model=ApplicationResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Application",
    description="""
Create a draft application for a program.

**Requirements:**
- The student has a profile
- No existing application for the program
- Program active, deadline not passed, slots remaining, school type eligible
""",
    responses={
        400: {"description": "Profile missing or not eligible"},
        404: {"description": "Program not found"},
        409: {
            "description": "Already applied or no slots remaining",
            "content": {
                "application/json": {
                    "example": {
                        "detail": {
                            "error": "DUPLICATE_APPLICATION",
                            "message": "You have already applied for this scholarship.",
                        }
                    }
                }
            },
        },
    },
)
async def create_application(
    data: ApplicationCreate,
    db: AsyncSession = Depends(get_db),
    student: StudentActor = Depends(get_current_student),
    clock: Clock = Depends(get_clock),
) -> ApplicationResponse:
    try:
        application = await service.create_application(
            db, student, data.scholarship_program_id, clock
        )
    except ServiceError as e:
        raise to_http_exception(e) from e

    return ApplicationResponse.model_validate(application)


@router.get("", response_model=ApplicationListResponse, summary="List My Applications")
async def list_applications(
    db: AsyncSession = Depends(get_db),
    student: StudentActor = Depends(get_current_student),
) -> ApplicationListResponse:
    applications = await service.list_applications(db, student)
    return ApplicationListResponse(
        items=[ApplicationResponse.model_validate(a) for a in applications],
        total=len(applications),
    )


@router.get(
    "/{application_id}",
    response_model=ApplicationDetailResponse,
    summary="Get Application",
    responses={403: {"description": "Not your application"}, 404: {"description": "Not found"}},
)
async def get_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    student: StudentActor = Depends(get_current_student),
) -> ApplicationDetailResponse:
    try:
        detail = await service.get_application_detail(db, student, application_id)
    except ServiceError as e:
        raise to_http_exception(e) from e

    return ApplicationDetailResponse.from_detail(detail)


@router.post(
    "/{application_id}/submit",
    response_model=ApplicationResponse,
    summary="Submit Application",
    description="""
Submit a draft application.

Every document requirement must have an upload; approval is not needed.
Submitting an application that is not a draft fails with `INVALID_TRANSITION`.
""",
    responses={
        403: {"description": "Not your application"},
        404: {"description": "Application not found"},
        409: {"description": "Not a draft, or documents missing"},
    },
)
async def submit_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    student: StudentActor = Depends(get_current_student),
    clock: Clock = Depends(get_clock),
) -> ApplicationResponse:
    try:
        application = await service.submit_application(db, student, application_id, clock)
    except ServiceError as e:
        raise to_http_exception(e) from e

    logger.info(f"User {student.user_id} submitted application {application_id}")
    return ApplicationResponse.model_validate(application)


@router.post(
    "/{application_id}/cancel",
    response_model=ApplicationResponse,
    summary="Cancel Application",
    description="""
Cancel an application.

Allowed from `draft`, `submitted`, `documents_pending` and
`documents_under_review`. Cancellation is final.
""",
    responses={
        403: {"description": "Not your application"},
        404: {"description": "Application not found"},
        409: {"description": "Application can no longer be cancelled"},
    },
)
async def cancel_application(
    application_id: UUID,
    db: AsyncSession = Depends(get_db),
    student: StudentActor = Depends(get_current_student),
    clock: Clock = Depends(get_clock),
) -> ApplicationResponse:
    try:
        application = await service.cancel_application(db, student, application_id, clock)
    except ServiceError as e:
        raise to_http_exception(e) from e

    logger.info(f"User {student.user_id} cancelled application {application_id}")
    return ApplicationResponse.model_validate(application)
