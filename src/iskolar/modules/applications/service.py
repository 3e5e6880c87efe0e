"""
Scholarship Applications Service Layer

Business logic for the application lifecycle.

This module implements:
1. Student Flow:
   - Create an application (profile, duplicate and eligibility checks, with
     the slot count re-checked under a lock on the program row)
   - Submit once every document requirement has an upload
   - Cancel while still in the early document stages

2. Administrator Flow:
   - Drive the downstream transitions (document approval, eligibility,
     enrollment, service completion, disbursement, archival), each guarded by
     the aggregate precondition it depends on
   - Record disbursements

Every status change goes through the state machine table. Each operation
commits once; status-change events are published after the commit.
"""

import logging
from dataclasses import dataclass
from decimal import Decimal
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from iskolar.core.auth import StudentActor, ensure_owner
from iskolar.core.clock import Clock
from iskolar.core.database import commit
from iskolar.core.events import StatusChangeEvent, publish_status_change
from iskolar.core.exceptions import (
    CapacityExceededError,
    DocumentsIncompleteError,
    DuplicateApplicationError,
    InvalidTransitionError,
    NotEligibleError,
    NotFoundError,
    ProfileRequiredError,
    ServiceError,
    ValidationError,
)
from iskolar.modules.applications import repository
from iskolar.modules.applications.models import (
    ApplicationStatus,
    Disbursement,
    DisbursementStatus,
    ScholarshipApplication,
)
from iskolar.modules.applications.state_machine import (
    ADMIN_ACTIONS,
    SLOT_HOLDING_STATUSES,
    ApplicationAction,
    can_transition,
)
from iskolar.modules.community_service import ledger
from iskolar.modules.community_service import repository as service_repository
from iskolar.modules.documents import repository as documents_repository
from iskolar.modules.documents import tracker
from iskolar.modules.documents.tracker import RequirementState
from iskolar.modules.programs import eligibility
from iskolar.modules.programs import repository as programs_repository
from iskolar.modules.programs.eligibility import IneligibilityReason
from iskolar.modules.programs.models import ScholarshipProgram
from iskolar.modules.students import repository as students_repository

logger = logging.getLogger(__name__)


@dataclass
class ApplicationDetail:
    """An application with its program and per-requirement document state."""

    application: ScholarshipApplication
    program: ScholarshipProgram
    documents: list[RequirementState]
    can_submit: bool


# ============================================
# Shared helpers (also used by the documents and
# community service services)
# ============================================


async def get_application(db: AsyncSession, application_id: UUID) -> ScholarshipApplication:
    """
    Get an application by ID.

    Raises:
        NotFoundError: If the application doesn't exist
    """
    application = await repository.get_by_id(db, application_id)

    if not application:
        raise NotFoundError("Application", application_id)

    return application


async def get_owned_application(
    db: AsyncSession,
    actor: StudentActor,
    application_id: UUID,
) -> ScholarshipApplication:
    """
    Get an application the acting student owns.

    Raises:
        NotFoundError: If the application doesn't exist
        ForbiddenError: If it belongs to another student
    """
    application = await get_application(db, application_id)
    ensure_owner(actor, application)
    return application


async def get_program(db: AsyncSession, program_id: UUID) -> ScholarshipProgram:
    program = await programs_repository.get_by_id(db, program_id)

    if not program:
        raise NotFoundError("Scholarship program", program_id)

    return program


async def apply_transition(
    db: AsyncSession,
    application: ScholarshipApplication,
    action: ApplicationAction,
    clock: Clock,
    **kwargs,
) -> StatusChangeEvent:
    """
    Move an application through the state machine (flush only).

    Returns:
        The event to publish once the surrounding transaction commits

    Raises:
        InvalidTransitionError: If the action is not legal from the current status
    """
    previous = await repository.transition(db, application, action, **kwargs)

    logger.info(
        f"Application {application.id} moved to {application.status.value.upper()} "
        f"(from {previous.value}, action={action.value})"
    )

    return StatusChangeEvent(
        application_id=application.id,
        student_profile_id=application.student_profile_id,
        old_status=previous.value,
        new_status=application.status.value,
        action=action.value,
        occurred_at=clock.now(),
    )


async def publish_events(events: list[StatusChangeEvent]) -> None:
    """Publish committed status changes in the order they happened."""
    for event in events:
        await publish_status_change(event)


# ============================================
# Student Operations
# ============================================


async def create_application(
    db: AsyncSession,
    actor: StudentActor,
    program_id: UUID,
    clock: Clock,
) -> ScholarshipApplication:
    """
    Create a draft application for the acting student.

    The program row is locked and the approved/enrolled count re-read inside
    the transaction, so two students racing for the last slot cannot both
    pass the capacity check.

    Args:
        db: Database session
        actor: Acting student
        program_id: Program being applied to
        clock: Source of the current date

    Returns:
        The new application, in ``draft``

    Raises:
        ProfileRequiredError: If the student has no profile yet
        NotFoundError: If the program doesn't exist
        DuplicateApplicationError: If the student already applied to the program
        CapacityExceededError: If the program has no remaining slots
        NotEligibleError: If any other eligibility rule fails
    """
    if actor.student_profile_id is None:
        raise ProfileRequiredError()

    profile = await students_repository.get_by_id(db, actor.student_profile_id)
    if not profile:
        raise ProfileRequiredError()

    try:
        program = await programs_repository.get_for_update(db, program_id)
        if not program:
            raise NotFoundError("Scholarship program", program_id)

        existing = await repository.get_for_student_and_program(db, profile.id, program.id)
        if existing:
            logger.warning(
                f"Duplicate application attempt: profile={profile.id}, program={program.id}"
            )
            raise DuplicateApplicationError(existing.id)

        slot_holders = await programs_repository.count_slot_holders(db, program.id)
        reasons = eligibility.ineligibility_reasons(
            profile,
            program,
            has_existing_application=False,
            slot_holders=slot_holders,
            today=clock.now().date(),
        )

        blocking = [r for r in reasons if r != IneligibilityReason.NO_SLOTS_REMAINING]
        if blocking:
            logger.warning(
                f"Profile {profile.id} not eligible for program {program.id}: "
                f"{[r.value for r in blocking]}"
            )
            raise NotEligibleError([r.value for r in blocking])
        if reasons:
            logger.warning(f"Program {program.id} has no remaining slots")
            raise CapacityExceededError(program.id)

        application = await repository.create(db, profile.id, program.id)
    except ServiceError:
        # Releases the program row lock
        await db.rollback()
        raise

    await commit(db, "application creation")

    logger.info(f"Created application {application.id} for program {program.id}")
    return application


async def list_applications(
    db: AsyncSession, actor: StudentActor
) -> list[ScholarshipApplication]:
    if actor.student_profile_id is None:
        return []
    return await repository.list_for_student(db, actor.student_profile_id)


async def _build_detail(
    db: AsyncSession, application: ScholarshipApplication
) -> ApplicationDetail:
    program = await get_program(db, application.scholarship_program_id)
    requirements = await programs_repository.get_requirements(db, program.id)
    uploads = await documents_repository.list_for_application(db, application.id)

    return ApplicationDetail(
        application=application,
        program=program,
        documents=list(tracker.document_status(requirements, uploads).values()),
        can_submit=tracker.can_submit(application, requirements, uploads),
    )


async def get_application_detail(
    db: AsyncSession,
    actor: StudentActor,
    application_id: UUID,
) -> ApplicationDetail:
    """
    Get an owned application with its document checklist.

    Raises:
        NotFoundError: If the application doesn't exist
        ForbiddenError: If it belongs to another student
    """
    application = await get_owned_application(db, actor, application_id)
    return await _build_detail(db, application)


async def submit_application(
    db: AsyncSession,
    actor: StudentActor,
    application_id: UUID,
    clock: Clock,
) -> ScholarshipApplication:
    """
    Submit a draft application.

    Only presence of an upload per requirement is needed, not approval.
    Submitting an application that is already submitted fails and leaves
    ``submitted_at`` untouched.

    Raises:
        NotFoundError: If the application doesn't exist
        ForbiddenError: If it belongs to another student
        InvalidTransitionError: If the application is not a draft
        DocumentsIncompleteError: If a requirement has no upload
    """
    application = await get_owned_application(db, actor, application_id)

    if not can_transition(application.status, ApplicationAction.SUBMIT):
        logger.warning(
            f"Submit rejected for application {application.id}: status={application.status.value}"
        )
        raise InvalidTransitionError(application.status.value, ApplicationAction.SUBMIT.value)

    requirements = await programs_repository.get_requirements(
        db, application.scholarship_program_id
    )
    uploads = await documents_repository.list_for_application(db, application.id)

    missing = tracker.missing_requirements(requirements, uploads)
    if missing:
        logger.warning(
            f"Submit rejected for application {application.id}: "
            f"{len(missing)} document(s) missing"
        )
        raise DocumentsIncompleteError(application.status.value, [r.name for r in missing])

    event = await apply_transition(
        db, application, ApplicationAction.SUBMIT, clock, submitted_at=clock.now()
    )
    await commit(db, "application submission")
    await publish_events([event])

    return application


async def cancel_application(
    db: AsyncSession,
    actor: StudentActor,
    application_id: UUID,
    clock: Clock,
) -> ScholarshipApplication:
    """
    Cancel an application that has not progressed past document review.

    Raises:
        NotFoundError: If the application doesn't exist
        ForbiddenError: If it belongs to another student
        InvalidTransitionError: If the application can no longer be cancelled
    """
    application = await get_owned_application(db, actor, application_id)

    event = await apply_transition(
        db, application, ApplicationAction.CANCEL, clock, reviewed_at=clock.now()
    )
    await commit(db, "application cancellation")
    await publish_events([event])

    return application


# ============================================
# Administrator Operations
# ============================================


async def admin_list_applications(
    db: AsyncSession,
    status: ApplicationStatus | None = None,
    program_id: UUID | None = None,
    page: int = 1,
    page_size: int = 20,
) -> list[ScholarshipApplication]:
    return await repository.list_all(
        db, status=status, program_id=program_id, page=page, page_size=page_size
    )


async def admin_get_application_detail(
    db: AsyncSession, application_id: UUID
) -> ApplicationDetail:
    application = await get_application(db, application_id)
    return await _build_detail(db, application)


async def _check_action_preconditions(
    db: AsyncSession,
    application: ScholarshipApplication,
    action: ApplicationAction,
) -> None:
    """
    Check the aggregate fact an administrator action depends on.

    Raises:
        InvalidTransitionError: If the precondition does not hold
        CapacityExceededError: If approving/enrolling would exceed the slots
    """
    current = application.status.value

    if action == ApplicationAction.APPROVE_DOCUMENTS:
        requirements = await programs_repository.get_requirements(
            db, application.scholarship_program_id
        )
        uploads = await documents_repository.list_for_application(db, application.id)
        if not tracker.all_required_approved(requirements, uploads):
            raise InvalidTransitionError(
                current,
                action.value,
                message="All required documents must be approved first.",
            )

    elif action in (ApplicationAction.APPROVE, ApplicationAction.ENROLL):
        # Moving between slot-holding statuses keeps the same slot
        if application.status in SLOT_HOLDING_STATUSES:
            return
        program = await programs_repository.get_for_update(db, application.scholarship_program_id)
        if not program:
            raise NotFoundError("Scholarship program", application.scholarship_program_id)
        slot_holders = await programs_repository.count_slot_holders(db, program.id)
        if eligibility.remaining_slots(program, slot_holders) <= 0:
            raise CapacityExceededError(program.id)

    elif action == ApplicationAction.COMPLETE_SERVICE:
        program = await get_program(db, application.scholarship_program_id)
        reports = await service_repository.list_reports(db, application.id)
        if not ledger.service_requirement_met(program.community_service_days, reports):
            raise InvalidTransitionError(
                current,
                action.value,
                message=(
                    f"Approved service days ({ledger.approved_days(reports)}) do not cover "
                    f"the required {program.community_service_days} days."
                ),
            )

    elif action == ApplicationAction.PROCESS_DISBURSEMENT:
        if not await repository.has_disbursed(db, application.id):
            raise InvalidTransitionError(
                current,
                action.value,
                message="Record a disbursed payment before processing the disbursement.",
            )


async def admin_apply_action(
    db: AsyncSession,
    application_id: UUID,
    action: ApplicationAction,
    clock: Clock,
    admin_notes: str | None = None,
) -> ScholarshipApplication:
    """
    Apply an administrator action to an application.

    Args:
        db: Database session
        application_id: Application to act on
        action: Administrator action
        clock: Source of the review timestamp
        admin_notes: Optional notes stored on the application

    Returns:
        The updated application

    Raises:
        ValidationError: If the action is reserved for students
        NotFoundError: If the application doesn't exist
        InvalidTransitionError: If the action or its precondition is not met
        CapacityExceededError: If approving/enrolling would exceed the slots
    """
    if action not in ADMIN_ACTIONS:
        raise ValidationError(f"Action '{action.value}' cannot be applied by an administrator.")

    application = await get_application(db, application_id)

    if not can_transition(application.status, action):
        logger.warning(
            f"Admin action {action.value} rejected for application {application.id}: "
            f"status={application.status.value}"
        )
        raise InvalidTransitionError(application.status.value, action.value)

    try:
        await _check_action_preconditions(db, application, action)
    except ServiceError as e:
        await db.rollback()
        logger.warning(
            f"Admin action {action.value} precondition failed for application "
            f"{application.id}: {e.message}"
        )
        raise

    fields = {"reviewed_at": clock.now()}
    if admin_notes is not None:
        fields["admin_notes"] = admin_notes

    event = await apply_transition(db, application, action, clock, **fields)
    await commit(db, f"admin action {action.value}")
    await publish_events([event])

    return application


# Statuses in which payments may be recorded
DISBURSEMENT_RECORDING_STATUSES = frozenset(
    {
        ApplicationStatus.DISBURSEMENT_PENDING,
        ApplicationStatus.DISBURSEMENT_PROCESSED,
    }
)


async def admin_record_disbursement(
    db: AsyncSession,
    application_id: UUID,
    amount: Decimal,
    status: DisbursementStatus,
    clock: Clock,
    payment_method: str | None = None,
    reference_number: str | None = None,
    notes: str | None = None,
) -> Disbursement:
    """
    Record a payment against an application.

    A ``disbursed`` payment on a ``disbursement_pending`` application moves it
    to ``disbursement_processed``.

    Raises:
        ValidationError: If the amount is not positive
        NotFoundError: If the application doesn't exist
        InvalidTransitionError: If the application is not awaiting disbursement
    """
    if amount <= 0:
        raise ValidationError("Disbursement amount must be greater than zero.")

    application = await get_application(db, application_id)

    if application.status not in DISBURSEMENT_RECORDING_STATUSES:
        raise InvalidTransitionError(application.status.value, "record_disbursement")

    now = clock.now()
    disbursement = await repository.create_disbursement(
        db,
        application_id=application.id,
        amount=amount,
        status=status,
        payment_method=payment_method,
        reference_number=reference_number,
        notes=notes,
        disbursed_at=now if status == DisbursementStatus.DISBURSED else None,
    )

    events = []
    if (
        status == DisbursementStatus.DISBURSED
        and application.status == ApplicationStatus.DISBURSEMENT_PENDING
    ):
        events.append(
            await apply_transition(
                db, application, ApplicationAction.PROCESS_DISBURSEMENT, clock, reviewed_at=now
            )
        )

    await commit(db, "disbursement recording")
    await publish_events(events)

    logger.info(
        f"Recorded {status.value} disbursement {disbursement.id} of {amount} "
        f"for application {application.id}"
    )
    return disbursement
