"""
Scholarship Programs Repository

Database operations for programs, their document requirements and the slot
counts the eligibility gate needs. Functions never commit; the calling service
owns the transaction.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from iskolar.modules.applications.models import ScholarshipApplication
from iskolar.modules.applications.state_machine import SLOT_HOLDING_STATUSES

from .models import DocumentRequirement, ScholarshipProgram


async def get_by_id(db: AsyncSession, id: UUID) -> ScholarshipProgram | None:
    """Get program by ID."""
    return await db.get(ScholarshipProgram, id)


async def get_for_update(db: AsyncSession, id: UUID) -> ScholarshipProgram | None:
    """
    Get a program and lock its row until the transaction ends.

    Used by application creation so that concurrent applicants for the last
    slot are serialized on the program row.
    """
    result = await db.execute(
        select(ScholarshipProgram).where(ScholarshipProgram.id == id).with_for_update()
    )
    return result.scalar_one_or_none()


async def list_open(db: AsyncSession, today: date) -> list[ScholarshipProgram]:
    """Active programs whose application deadline has not passed."""
    result = await db.execute(
        select(ScholarshipProgram)
        .where(
            ScholarshipProgram.active == True,  # noqa: E712
            ScholarshipProgram.application_deadline >= today,
        )
        .order_by(ScholarshipProgram.application_deadline, ScholarshipProgram.name)
    )
    return list(result.scalars().all())


async def get_requirements(db: AsyncSession, program_id: UUID) -> list[DocumentRequirement]:
    result = await db.execute(
        select(DocumentRequirement)
        .where(DocumentRequirement.scholarship_program_id == program_id)
        .order_by(DocumentRequirement.created_at, DocumentRequirement.name)
    )
    return list(result.scalars().all())


async def get_requirement(
    db: AsyncSession, program_id: UUID, requirement_id: UUID
) -> DocumentRequirement | None:
    """Get a requirement only if it belongs to the given program."""
    result = await db.execute(
        select(DocumentRequirement).where(
            DocumentRequirement.id == requirement_id,
            DocumentRequirement.scholarship_program_id == program_id,
        )
    )
    return result.scalar_one_or_none()


async def count_slot_holders(db: AsyncSession, program_id: UUID) -> int:
    """Number of the program's applications currently holding a slot."""
    result = await db.execute(
        select(func.count(ScholarshipApplication.id)).where(
            ScholarshipApplication.scholarship_program_id == program_id,
            ScholarshipApplication.status.in_(SLOT_HOLDING_STATUSES),
        )
    )
    return result.scalar_one()


async def count_slot_holders_by_program(
    db: AsyncSession, program_ids: list[UUID]
) -> dict[UUID, int]:
    """Slot holder counts for several programs in one query; absent means 0."""
    if not program_ids:
        return {}

    result = await db.execute(
        select(
            ScholarshipApplication.scholarship_program_id,
            func.count(ScholarshipApplication.id),
        )
        .where(
            ScholarshipApplication.scholarship_program_id.in_(program_ids),
            ScholarshipApplication.status.in_(SLOT_HOLDING_STATUSES),
        )
        .group_by(ScholarshipApplication.scholarship_program_id)
    )
    return {program_id: count for program_id, count in result.all()}
