"""
Document Verification Tracker

Per-application view of document requirements against uploads.

"Complete" means every requirement has an upload, regardless of review
outcome; approval is tracked per upload and only matters to the
administrator-side transitions.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from uuid import UUID

from iskolar.modules.applications.models import ApplicationStatus, ScholarshipApplication
from iskolar.modules.programs.models import DocumentRequirement

from .models import DocumentStatus, DocumentUpload

MISSING = "missing"


@dataclass(frozen=True)
class RequirementState:
    """A requirement paired with its upload, if any."""

    requirement: DocumentRequirement
    upload: DocumentUpload | None

    @property
    def is_missing(self) -> bool:
        return self.upload is None

    @property
    def review_state(self) -> str:
        return MISSING if self.upload is None else self.upload.status.value

    @property
    def is_approved(self) -> bool:
        return self.upload is not None and self.upload.status == DocumentStatus.APPROVED


def _uploads_by_requirement(uploads: Iterable[DocumentUpload]) -> dict[UUID, DocumentUpload]:
    return {upload.document_requirement_id: upload for upload in uploads}


def document_status(
    requirements: Iterable[DocumentRequirement],
    uploads: Iterable[DocumentUpload],
) -> dict[UUID, RequirementState]:
    """Map every requirement id to its upload and review state."""
    by_requirement = _uploads_by_requirement(uploads)
    return {
        requirement.id: RequirementState(requirement, by_requirement.get(requirement.id))
        for requirement in requirements
    }


def missing_requirements(
    requirements: Iterable[DocumentRequirement],
    uploads: Iterable[DocumentUpload],
) -> list[DocumentRequirement]:
    states = document_status(requirements, uploads)
    return [state.requirement for state in states.values() if state.is_missing]


def is_complete(
    requirements: Iterable[DocumentRequirement],
    uploads: Iterable[DocumentUpload],
) -> bool:
    """True iff every requirement has an upload."""
    return not missing_requirements(requirements, uploads)


def all_required_approved(
    requirements: Iterable[DocumentRequirement],
    uploads: Iterable[DocumentUpload],
) -> bool:
    """
    True iff every requirement flagged ``is_required`` has an approved upload.

    A program without required documents is trivially approved.
    """
    required = [r for r in requirements if r.is_required]
    states = document_status(required, uploads)
    return all(state.is_approved for state in states.values())


def can_submit(
    application: ScholarshipApplication,
    requirements: Iterable[DocumentRequirement],
    uploads: Iterable[DocumentUpload],
) -> bool:
    return application.status == ApplicationStatus.DRAFT and is_complete(requirements, uploads)
