"""
Scholarship Programs Schemas

Pydantic schemas for program listing responses.
"""

from datetime import date
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict

from iskolar.modules.programs.eligibility import IneligibilityReason
from iskolar.modules.programs.models import SchoolTypeEligibility
from iskolar.modules.programs.service import ProgramListing


class DocumentRequirementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    name: str
    description: str | None = None
    is_required: bool


class ProgramListItem(BaseModel):
    """A program as shown to a student, with their can-apply flags."""

    id: UUID
    name: str
    description: str
    per_student_budget: Decimal
    available_slots: int
    remaining_slots: int
    school_type_eligibility: SchoolTypeEligibility
    min_gpa: Decimal
    min_units: int | None = None
    semester: str
    academic_year: str
    application_deadline: date
    community_service_days: int
    has_applied: bool
    can_apply: bool
    ineligibility_reasons: list[IneligibilityReason]

    @classmethod
    def from_listing(cls, listing: ProgramListing) -> "ProgramListItem":
        program = listing.program
        return cls(
            id=program.id,
            name=program.name,
            description=program.description,
            per_student_budget=program.per_student_budget,
            available_slots=program.available_slots,
            remaining_slots=listing.remaining_slots,
            school_type_eligibility=program.school_type_eligibility,
            min_gpa=program.min_gpa,
            min_units=program.min_units,
            semester=program.semester,
            academic_year=program.academic_year,
            application_deadline=program.application_deadline,
            community_service_days=program.community_service_days,
            has_applied=listing.has_applied,
            can_apply=listing.can_apply,
            ineligibility_reasons=listing.reasons,
        )


class ProgramListResponse(BaseModel):
    items: list[ProgramListItem]
    total: int


class ProgramDetailResponse(ProgramListItem):
    requirements: list[DocumentRequirementResponse]

    @classmethod
    def from_listing(cls, listing: ProgramListing) -> "ProgramDetailResponse":
        base = ProgramListItem.from_listing(listing)
        return cls(
            **base.model_dump(),
            requirements=[
                DocumentRequirementResponse.model_validate(r) for r in listing.requirements
            ],
        )
