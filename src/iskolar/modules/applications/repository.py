"""
Scholarship Applications Repository

Database operations for applications and disbursements.

Every status change goes through ``transition``, which resolves the target
status from the state machine table before touching the row. Functions flush
but never commit; the calling service owns the transaction.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from .models import (
    ApplicationStatus,
    Disbursement,
    DisbursementStatus,
    ScholarshipApplication,
)
from .state_machine import ApplicationAction, next_status


async def create(
    db: AsyncSession,
    student_profile_id: UUID,
    scholarship_program_id: UUID,
) -> ScholarshipApplication:
    """Create a new application in ``draft``."""
    application = ScholarshipApplication(
        student_profile_id=student_profile_id,
        scholarship_program_id=scholarship_program_id,
        status=ApplicationStatus.DRAFT,
    )

    db.add(application)
    await db.flush()
    await db.refresh(application)

    return application


async def get_by_id(db: AsyncSession, id: UUID) -> ScholarshipApplication | None:
    """Get application by ID."""
    return await db.get(ScholarshipApplication, id)


async def get_for_student_and_program(
    db: AsyncSession,
    student_profile_id: UUID,
    scholarship_program_id: UUID,
) -> ScholarshipApplication | None:
    result = await db.execute(
        select(ScholarshipApplication).where(
            ScholarshipApplication.student_profile_id == student_profile_id,
            ScholarshipApplication.scholarship_program_id == scholarship_program_id,
        )
    )
    return result.scalars().first()


async def list_program_ids_for_student(db: AsyncSession, student_profile_id: UUID) -> set[UUID]:
    """Programs the student has already applied to."""
    result = await db.execute(
        select(ScholarshipApplication.scholarship_program_id).where(
            ScholarshipApplication.student_profile_id == student_profile_id
        )
    )
    return set(result.scalars().all())


async def list_for_student(
    db: AsyncSession, student_profile_id: UUID
) -> list[ScholarshipApplication]:
    result = await db.execute(
        select(ScholarshipApplication)
        .where(ScholarshipApplication.student_profile_id == student_profile_id)
        .order_by(ScholarshipApplication.created_at.desc())
    )
    return list(result.scalars().all())


async def list_all(
    db: AsyncSession,
    status: ApplicationStatus | None = None,
    program_id: UUID | None = None,
    page: int = 1,
    page_size: int = 20,
) -> list[ScholarshipApplication]:
    """Applications for the admin queue, newest first."""
    query = select(ScholarshipApplication)

    if status:
        query = query.where(ScholarshipApplication.status == status)
    if program_id:
        query = query.where(ScholarshipApplication.scholarship_program_id == program_id)

    query = (
        query.order_by(ScholarshipApplication.created_at.desc())
        .offset((page - 1) * page_size)
        .limit(page_size)
    )

    result = await db.execute(query)
    return list(result.scalars().all())


async def transition(
    db: AsyncSession,
    application: ScholarshipApplication,
    action: ApplicationAction,
    **kwargs,
) -> ApplicationStatus:
    """
    Apply an action to an application.

    The target status is resolved before any attribute is set, so an illegal
    action leaves the row untouched.

    Args:
        db: Database session
        application: Application to move
        action: Action being applied
        **kwargs: Additional fields to update (e.g., submitted_at)

    Returns:
        The status the application had before the transition

    Raises:
        InvalidTransitionError: If the action is not legal from the current status
    """
    previous = application.status
    application.status = next_status(previous, action)

    for key, value in kwargs.items():
        if hasattr(application, key):
            setattr(application, key, value)

    await db.flush()

    return previous


# ============================================
# Disbursement Repository
# ============================================


async def create_disbursement(
    db: AsyncSession,
    application_id: UUID,
    amount: Decimal,
    status: DisbursementStatus,
    payment_method: str | None = None,
    reference_number: str | None = None,
    notes: str | None = None,
    disbursed_at: datetime | None = None,
) -> Disbursement:
    disbursement = Disbursement(
        scholarship_application_id=application_id,
        amount=amount,
        status=status,
        payment_method=payment_method,
        reference_number=reference_number,
        notes=notes,
        disbursed_at=disbursed_at,
    )

    db.add(disbursement)
    await db.flush()
    await db.refresh(disbursement)

    return disbursement


async def list_disbursements(db: AsyncSession, application_id: UUID) -> list[Disbursement]:
    result = await db.execute(
        select(Disbursement)
        .where(Disbursement.scholarship_application_id == application_id)
        .order_by(Disbursement.created_at)
    )
    return list(result.scalars().all())


async def has_disbursed(db: AsyncSession, application_id: UUID) -> bool:
    """Whether any disbursement for the application has been paid out."""
    result = await db.execute(
        select(Disbursement.id)
        .where(
            Disbursement.scholarship_application_id == application_id,
            Disbursement.status == DisbursementStatus.DISBURSED,
        )
        .limit(1)
    )
    return result.scalar_one_or_none() is not None
