"""
Scholarship Applications Schemas

Pydantic schemas for request validation and response serialization.
"""

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from iskolar.modules.applications.models import ApplicationStatus, DisbursementStatus
from iskolar.modules.applications.service import ApplicationDetail
from iskolar.modules.applications.state_machine import ApplicationAction, allowed_actions


class ApplicationCreate(BaseModel):
    """Request body for POST /student/applications."""

    scholarship_program_id: UUID


class ApplicationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    student_profile_id: UUID
    scholarship_program_id: UUID
    status: ApplicationStatus
    admin_notes: str | None = None
    submitted_at: datetime | None = None
    reviewed_at: datetime | None = None
    created_at: datetime
    updated_at: datetime


class ApplicationListResponse(BaseModel):
    items: list[ApplicationResponse]
    total: int


class DocumentChecklistItem(BaseModel):
    """One requirement of the program and the student's upload for it."""

    requirement_id: UUID
    name: str
    description: str | None = None
    is_required: bool
    upload_id: UUID | None = None
    original_filename: str | None = None
    review_state: str  # "missing" or the upload status
    rejection_reason: str | None = None


class ApplicationDetailResponse(BaseModel):
    application: ApplicationResponse
    program_name: str
    community_service_days: int
    documents: list[DocumentChecklistItem]
    can_submit: bool
    allowed_actions: list[ApplicationAction]

    @classmethod
    def from_detail(cls, detail: ApplicationDetail) -> "ApplicationDetailResponse":
        documents = []
        for state in detail.documents:
            upload = state.upload
            documents.append(
                DocumentChecklistItem(
                    requirement_id=state.requirement.id,
                    name=state.requirement.name,
                    description=state.requirement.description,
                    is_required=state.requirement.is_required,
                    upload_id=upload.id if upload else None,
                    original_filename=upload.original_filename if upload else None,
                    review_state=state.review_state,
                    rejection_reason=upload.rejection_reason if upload else None,
                )
            )

        return cls(
            application=ApplicationResponse.model_validate(detail.application),
            program_name=detail.program.name,
            community_service_days=detail.program.community_service_days,
            documents=documents,
            can_submit=detail.can_submit,
            allowed_actions=sorted(
                allowed_actions(detail.application.status), key=lambda a: a.value
            ),
        )


class AdminActionRequest(BaseModel):
    """Request body for POST /admin/applications/{id}/actions."""

    action: ApplicationAction
    admin_notes: str | None = Field(None, max_length=2000)


class DisbursementCreate(BaseModel):
    """Request body for POST /admin/applications/{id}/disbursements."""

    amount: Decimal = Field(..., gt=0, max_digits=10, decimal_places=2)
    status: DisbursementStatus = DisbursementStatus.PENDING
    payment_method: str | None = Field(None, max_length=50)
    reference_number: str | None = Field(None, max_length=100)
    notes: str | None = Field(None, max_length=2000)


class DisbursementResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    scholarship_application_id: UUID
    amount: Decimal
    status: DisbursementStatus
    payment_method: str | None = None
    reference_number: str | None = None
    notes: str | None = None
    disbursed_at: datetime | None = None
