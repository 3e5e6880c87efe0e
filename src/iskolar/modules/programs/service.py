"""
Scholarship Programs Service Layer

Program listing for students, with the can-apply flag computed by the same
eligibility gate that application creation uses.
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from iskolar.core.auth import StudentActor
from iskolar.core.clock import Clock
from iskolar.core.exceptions import NotFoundError
from iskolar.modules.applications import repository as applications_repository
from iskolar.modules.programs import eligibility, repository
from iskolar.modules.programs.eligibility import IneligibilityReason
from iskolar.modules.programs.models import DocumentRequirement, ScholarshipProgram
from iskolar.modules.students import repository as students_repository
from iskolar.modules.students.models import StudentProfile

logger = logging.getLogger(__name__)


@dataclass
class ProgramListing:
    program: ScholarshipProgram
    remaining_slots: int
    has_applied: bool
    reasons: list[IneligibilityReason]
    requirements: list[DocumentRequirement] = field(default_factory=list)

    @property
    def can_apply(self) -> bool:
        return not self.reasons


async def _get_profile(db: AsyncSession, actor: StudentActor) -> StudentProfile | None:
    if actor.student_profile_id is None:
        return None
    return await students_repository.get_by_id(db, actor.student_profile_id)


def _listing(
    program: ScholarshipProgram,
    profile: StudentProfile | None,
    applied_program_ids: set[UUID],
    slot_holders: int,
    clock: Clock,
) -> ProgramListing:
    has_applied = program.id in applied_program_ids
    return ProgramListing(
        program=program,
        remaining_slots=eligibility.remaining_slots(program, slot_holders),
        has_applied=has_applied,
        reasons=eligibility.ineligibility_reasons(
            profile,
            program,
            has_existing_application=has_applied,
            slot_holders=slot_holders,
            today=clock.now().date(),
        ),
    )


async def list_programs(
    db: AsyncSession, actor: StudentActor, clock: Clock
) -> list[ProgramListing]:
    """
    Open programs (active, deadline not passed) with per-student flags.

    Args:
        db: Database session
        actor: Acting student (may not have a profile yet)
        clock: Source of the current date

    Returns:
        One listing per open program
    """
    programs = await repository.list_open(db, clock.now().date())
    profile = await _get_profile(db, actor)

    applied: set[UUID] = set()
    if profile:
        applied = await applications_repository.list_program_ids_for_student(db, profile.id)

    counts = await repository.count_slot_holders_by_program(db, [p.id for p in programs])

    return [
        _listing(program, profile, applied, counts.get(program.id, 0), clock)
        for program in programs
    ]


async def get_program(
    db: AsyncSession, actor: StudentActor, program_id: UUID, clock: Clock
) -> ProgramListing:
    """
    A single program with its document requirements and the student's flags.

    Raises:
        NotFoundError: If the program doesn't exist
    """
    program = await repository.get_by_id(db, program_id)
    if not program:
        raise NotFoundError("Scholarship program", program_id)

    profile = await _get_profile(db, actor)
    applied: set[UUID] = set()
    if profile:
        existing = await applications_repository.get_for_student_and_program(
            db, profile.id, program.id
        )
        if existing:
            applied.add(program.id)

    slot_holders = await repository.count_slot_holders(db, program.id)
    listing = _listing(program, profile, applied, slot_holders, clock)
    listing.requirements = await repository.get_requirements(db, program.id)

    return listing
