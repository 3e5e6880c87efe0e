"""
Eligibility & Capacity Gate

The single predicate deciding whether a student may apply to a program. It is
evaluated when programs are listed (to grey out ineligible ones) and again
inside the application-creation transaction (to reject races), so both call
sites must go through ``ineligibility_reasons``.
"""

import enum
from datetime import date

from iskolar.modules.students.models import StudentProfile

from .models import ScholarshipProgram, SchoolTypeEligibility


class IneligibilityReason(str, enum.Enum):
    PROFILE_REQUIRED = "profile_required"
    ALREADY_APPLIED = "already_applied"
    PROGRAM_INACTIVE = "program_inactive"
    DEADLINE_PASSED = "deadline_passed"
    NO_SLOTS_REMAINING = "no_slots_remaining"
    SCHOOL_TYPE_MISMATCH = "school_type_mismatch"


def remaining_slots(program: ScholarshipProgram, slot_holders: int) -> int:
    """Available slots minus approved/enrolled applications, never below 0."""
    return max(0, program.available_slots - slot_holders)


def school_type_matches(program: ScholarshipProgram, profile: StudentProfile) -> bool:
    eligibility = program.school_type_eligibility
    return eligibility == SchoolTypeEligibility.BOTH or eligibility.value == (
        profile.school_type.value
    )


def ineligibility_reasons(
    profile: StudentProfile | None,
    program: ScholarshipProgram,
    *,
    has_existing_application: bool,
    slot_holders: int,
    today: date,
) -> list[IneligibilityReason]:
    """
    Every reason the student cannot apply; empty when they can.

    Args:
        profile: The student's profile, or None if not completed yet
        program: Program being applied to
        has_existing_application: Whether the student already applied to it
        slot_holders: Count of the program's approved/enrolled applications
        today: Current local date
    """
    reasons: list[IneligibilityReason] = []

    if profile is None:
        reasons.append(IneligibilityReason.PROFILE_REQUIRED)
    if has_existing_application:
        reasons.append(IneligibilityReason.ALREADY_APPLIED)
    if not program.active:
        reasons.append(IneligibilityReason.PROGRAM_INACTIVE)
    if program.application_deadline < today:
        reasons.append(IneligibilityReason.DEADLINE_PASSED)
    if remaining_slots(program, slot_holders) <= 0:
        reasons.append(IneligibilityReason.NO_SLOTS_REMAINING)
    if profile is not None and not school_type_matches(program, profile):
        reasons.append(IneligibilityReason.SCHOOL_TYPE_MISMATCH)

    return reasons


def can_apply(
    profile: StudentProfile | None,
    program: ScholarshipProgram,
    *,
    has_existing_application: bool,
    slot_holders: int,
    today: date,
) -> bool:
    return not ineligibility_reasons(
        profile,
        program,
        has_existing_application=has_existing_application,
        slot_holders=slot_holders,
        today=today,
    )
