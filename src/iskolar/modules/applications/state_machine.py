"""
Application State Machine

Explicit transition table for ``ScholarshipApplication.status``. Every status
change in the system goes through ``next_status``; an action that is not in
the table for the current status is rejected before anything is mutated.

Aggregate preconditions (documents complete, service days fulfilled, slots
remaining) are checked by the services that drive each action; this module
only knows which (status, action) pairs are legal.
"""

import enum

from iskolar.core.exceptions import InvalidTransitionError

from .models import ApplicationStatus


class ApplicationAction(str, enum.Enum):
    """Actions that move an application between statuses."""

    # Student-driven
    SUBMIT = "submit"
    CANCEL = "cancel"
    BEGIN_SERVICE_REPORTING = "begin_service_reporting"
    UNDO_SERVICE_COMPLETION = "undo_service_completion"

    # Driven by service-report aggregates (student submission or admin review)
    COMPLETE_SERVICE = "complete_service"

    # Administrator-driven
    START_DOCUMENT_REVIEW = "start_document_review"
    REQUEST_DOCUMENTS = "request_documents"
    APPROVE_DOCUMENTS = "approve_documents"
    REJECT_DOCUMENTS = "reject_documents"
    VERIFY_ELIGIBILITY = "verify_eligibility"
    APPROVE = "approve"
    ENROLL = "enroll"
    REQUEST_DISBURSEMENT = "request_disbursement"
    PROCESS_DISBURSEMENT = "process_disbursement"
    COMPLETE = "complete"
    REJECT = "reject"
    ARCHIVE = "archive"


S = ApplicationStatus
A = ApplicationAction

TRANSITIONS: dict[ApplicationStatus, dict[ApplicationAction, ApplicationStatus]] = {
    S.DRAFT: {
        A.SUBMIT: S.SUBMITTED,
        A.CANCEL: S.CANCELLED,
    },
    S.SUBMITTED: {
        A.CANCEL: S.CANCELLED,
        A.START_DOCUMENT_REVIEW: S.DOCUMENTS_UNDER_REVIEW,
        A.REQUEST_DOCUMENTS: S.DOCUMENTS_PENDING,
        A.REJECT: S.REJECTED,
    },
    S.DOCUMENTS_PENDING: {
        A.CANCEL: S.CANCELLED,
        A.START_DOCUMENT_REVIEW: S.DOCUMENTS_UNDER_REVIEW,
        A.APPROVE_DOCUMENTS: S.DOCUMENTS_APPROVED,  # Admin uploaded the missing documents
        A.REJECT_DOCUMENTS: S.DOCUMENTS_REJECTED,
        A.REJECT: S.REJECTED,
    },
    S.DOCUMENTS_UNDER_REVIEW: {
        A.CANCEL: S.CANCELLED,
        A.APPROVE_DOCUMENTS: S.DOCUMENTS_APPROVED,
        A.REQUEST_DOCUMENTS: S.DOCUMENTS_PENDING,  # A document was rejected
        A.REJECT_DOCUMENTS: S.DOCUMENTS_REJECTED,
        A.REJECT: S.REJECTED,
    },
    S.DOCUMENTS_REJECTED: {
        A.START_DOCUMENT_REVIEW: S.DOCUMENTS_UNDER_REVIEW,  # Re-uploaded
        A.REQUEST_DOCUMENTS: S.DOCUMENTS_PENDING,
        A.REJECT: S.REJECTED,
    },
    S.DOCUMENTS_APPROVED: {
        A.VERIFY_ELIGIBILITY: S.ELIGIBILITY_VERIFIED,
        A.REJECT: S.REJECTED,
    },
    S.ELIGIBILITY_VERIFIED: {
        A.APPROVE: S.APPROVED,
        A.ENROLL: S.ENROLLED,
        A.REJECT: S.REJECTED,
    },
    S.APPROVED: {
        A.ENROLL: S.ENROLLED,
        A.REJECT: S.REJECTED,
    },
    S.ENROLLED: {
        A.BEGIN_SERVICE_REPORTING: S.SERVICE_PENDING,
    },
    S.SERVICE_PENDING: {
        A.COMPLETE_SERVICE: S.SERVICE_COMPLETED,
    },
    S.SERVICE_COMPLETED: {
        A.UNDO_SERVICE_COMPLETION: S.SERVICE_PENDING,
        A.REQUEST_DISBURSEMENT: S.DISBURSEMENT_PENDING,
    },
    S.DISBURSEMENT_PENDING: {
        A.PROCESS_DISBURSEMENT: S.DISBURSEMENT_PROCESSED,
    },
    S.DISBURSEMENT_PROCESSED: {
        A.COMPLETE: S.COMPLETED,
    },
    S.COMPLETED: {
        A.ARCHIVE: S.ARCHIVED,
    },
    S.REJECTED: {
        A.ARCHIVE: S.ARCHIVED,
    },
    # Terminal states
    S.CANCELLED: {},
    S.ARCHIVED: {},
}

STUDENT_ACTIONS: frozenset[ApplicationAction] = frozenset(
    {
        A.SUBMIT,
        A.CANCEL,
        A.BEGIN_SERVICE_REPORTING,
        A.UNDO_SERVICE_COMPLETION,
        A.COMPLETE_SERVICE,
    }
)

ADMIN_ACTIONS: frozenset[ApplicationAction] = frozenset(
    set(ApplicationAction)
    - {A.SUBMIT, A.CANCEL, A.BEGIN_SERVICE_REPORTING, A.UNDO_SERVICE_COMPLETION}
)

# Applications holding one of a program's slots
SLOT_HOLDING_STATUSES: frozenset[ApplicationStatus] = frozenset({S.APPROVED, S.ENROLLED})

# Statuses in which community service may be logged and reported
SERVICE_REPORTING_STATUSES: frozenset[ApplicationStatus] = frozenset(
    {S.ENROLLED, S.SERVICE_PENDING}
)

# Statuses in which the student may still upload or delete documents
DOCUMENT_EDITABLE_STATUSES: frozenset[ApplicationStatus] = frozenset(
    {
        S.DRAFT,
        S.SUBMITTED,
        S.DOCUMENTS_PENDING,
        S.DOCUMENTS_UNDER_REVIEW,
        S.DOCUMENTS_REJECTED,
    }
)

TERMINAL_STATUSES: frozenset[ApplicationStatus] = frozenset(
    status for status, actions in TRANSITIONS.items() if not actions
)


def allowed_actions(status: ApplicationStatus) -> set[ApplicationAction]:
    """Actions legal from ``status``."""
    return set(TRANSITIONS[status])


def can_transition(status: ApplicationStatus, action: ApplicationAction) -> bool:
    return action in TRANSITIONS[status]


def next_status(status: ApplicationStatus, action: ApplicationAction) -> ApplicationStatus:
    """
    Resolve the status an action leads to.

    Raises:
        InvalidTransitionError: If the action is not legal from ``status``
    """
    target = TRANSITIONS[status].get(action)
    if target is None:
        raise InvalidTransitionError(status.value, action.value)
    return target
