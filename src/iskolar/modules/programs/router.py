"""
Scholarship Programs Router

Endpoints:
- GET /student/programs - List open programs with can-apply flags
- GET /student/programs/{id} - Program detail with document requirements
"""

import logging
from uuid import UUID

from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from iskolar.core.auth import StudentActor, get_current_student
from iskolar.core.clock import Clock, get_clock
from iskolar.core.database import get_db
from iskolar.core.exceptions import ServiceError, to_http_exception
from iskolar.modules.programs import service
from iskolar.modules.programs.schemas import (
    ProgramDetailResponse,
    ProgramListItem,
    ProgramListResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get(
    "",
    response_model=ProgramListResponse,
    summary="List Open Programs",
    description="""
List active programs whose application deadline has not passed.

Each program carries `remaining_slots`, `has_applied`, `can_apply` and the
reasons the student cannot apply, computed by the same gate that application
creation uses.
""",
)
async def list_programs(
    db: AsyncSession = Depends(get_db),
    student: StudentActor = Depends(get_current_student),
    clock: Clock = Depends(get_clock),
) -> ProgramListResponse:
    listings = await service.list_programs(db, student, clock)
    items = [ProgramListItem.from_listing(listing) for listing in listings]
    return ProgramListResponse(items=items, total=len(items))


@router.get(
    "/{program_id}",
    response_model=ProgramDetailResponse,
    summary="Get Program",
    responses={404: {"description": "Program not found"}},
)
async def get_program(
    program_id: UUID,
    db: AsyncSession = Depends(get_db),
    student: StudentActor = Depends(get_current_student),
    clock: Clock = Depends(get_clock),
) -> ProgramDetailResponse:
    try:
        listing = await service.get_program(db, student, program_id, clock)
    except ServiceError as e:
        raise to_http_exception(e) from e

    return ProgramDetailResponse.from_listing(listing)
