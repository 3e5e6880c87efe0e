"""
Service Errors

Typed failures raised by the service layer. Every error carries a
machine-readable ``error_code`` and the HTTP status the routers map it to.
Business-rule errors are meant for direct display to the student;
``StorageFailureError`` is the generic retry-able failure raised after a
rollback.
"""

from datetime import time
from decimal import Decimal
from uuid import UUID

from fastapi import HTTPException


class ServiceError(Exception):
    """Base exception for service errors."""

    def __init__(self, message: str, error_code: str, status_code: int = 400):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        super().__init__(message)


class ValidationError(ServiceError):
    """Raised for malformed input (missing field, bad format, bad file)."""

    def __init__(self, message: str):
        super().__init__(message=message, error_code="VALIDATION_ERROR", status_code=400)


class NotFoundError(ServiceError):
    """Raised when a record does not exist."""

    def __init__(self, entity: str, entity_id: UUID | None = None):
        message = f"{entity} {entity_id} not found" if entity_id else f"{entity} not found"
        super().__init__(message=message, error_code="NOT_FOUND", status_code=404)


class ForbiddenError(ServiceError):
    """Raised when the acting student does not own the record."""

    def __init__(self, message: str = "You are not allowed to modify this application."):
        super().__init__(message=message, error_code="FORBIDDEN", status_code=403)


class InvalidTransitionError(ServiceError):
    """Raised when an action is not allowed from the current status."""

    def __init__(self, current_status: str, action: str, message: str | None = None):
        self.current_status = current_status
        self.action = action
        super().__init__(
            message=message
            or f"Cannot {action.replace('_', ' ')} while status is '{current_status}'.",
            error_code="INVALID_TRANSITION",
            status_code=409,
        )


class DocumentsIncompleteError(InvalidTransitionError):
    """Raised when submitting an application with missing document uploads."""

    def __init__(self, current_status: str, missing: list[str]):
        self.missing = missing
        super().__init__(
            current_status,
            "submit",
            message="Please upload all required documents before submitting. "
            f"Missing: {', '.join(missing)}",
        )


class ProfileRequiredError(ServiceError):
    """Raised when a user without a student profile tries to apply."""

    def __init__(self):
        super().__init__(
            message="You need to complete your profile before applying for scholarships.",
            error_code="PROFILE_REQUIRED",
            status_code=400,
        )


class DuplicateApplicationError(ServiceError):
    """Raised when the student already applied to the program."""

    def __init__(self, application_id: UUID):
        self.application_id = application_id
        super().__init__(
            message="You have already applied for this scholarship.",
            error_code="DUPLICATE_APPLICATION",
            status_code=409,
        )


class NotEligibleError(ServiceError):
    """Raised when the eligibility gate rejects an application."""

    def __init__(self, reasons: list[str]):
        self.reasons = reasons
        super().__init__(
            message="You are not eligible for this scholarship or the program is no longer "
            f"accepting applications ({', '.join(reasons)}).",
            error_code="NOT_ELIGIBLE",
            status_code=400,
        )


class CapacityExceededError(ServiceError):
    """Raised when no slots remain for the program."""

    def __init__(self, program_id: UUID):
        self.program_id = program_id
        super().__init__(
            message="This scholarship program has no remaining slots.",
            error_code="CAPACITY_EXCEEDED",
            status_code=409,
        )


class DuplicateActiveSessionError(ServiceError):
    """Raised when an in-progress service entry already exists for the date."""

    def __init__(self, service_date):
        self.service_date = service_date
        super().__init__(
            message=f"You already have an active entry for {service_date.isoformat()}.",
            error_code="DUPLICATE_ACTIVE_SESSION",
            status_code=409,
        )


class TooManyPhotosError(ServiceError):
    def __init__(self, count: int, limit: int):
        super().__init__(
            message=f"At most {limit} photos may be attached ({count} given).",
            error_code="TOO_MANY_PHOTOS",
            status_code=400,
        )


class InvalidIntervalError(ServiceError):
    """Raised when a session's end time is not after its start time."""

    def __init__(self, time_in: time, time_out: time):
        self.time_in = time_in
        self.time_out = time_out
        super().__init__(
            message=f"End time ({time_out.strftime('%H:%M')}) must be after "
            f"start time ({time_in.strftime('%H:%M')}).",
            error_code="INVALID_INTERVAL",
            status_code=400,
        )


class NonPositiveDurationError(ServiceError):
    def __init__(self, hours: Decimal):
        self.hours = hours
        super().__init__(
            message=f"Invalid time calculation ({hours} hours). Please try again.",
            error_code="NON_POSITIVE_DURATION",
            status_code=400,
        )


class ExceedsRemainingDaysError(ServiceError):
    """Raised when a tracked report claims more days than remain."""

    def __init__(self, remaining_days: Decimal, max_hours: Decimal):
        self.remaining_days = remaining_days
        self.max_hours = max_hours
        super().__init__(
            message=f"You can only report up to {remaining_days} days ({max_hours} hours).",
            error_code="EXCEEDS_REMAINING_DAYS",
            status_code=400,
        )


class CannotUndoApprovedError(ServiceError):
    def __init__(self):
        super().__init__(
            message="Cannot undo an approved report.",
            error_code="CANNOT_UNDO_APPROVED",
            status_code=409,
        )


class CannotDeleteDocumentError(ServiceError):
    def __init__(self, message: str = "Approved documents cannot be deleted."):
        super().__init__(message=message, error_code="CANNOT_DELETE_DOCUMENT", status_code=409)


class StorageFailureError(ServiceError):
    """Raised after a rollback when the file store or database fails."""

    def __init__(self, message: str = "Storage operation failed. Please try again."):
        super().__init__(message=message, error_code="STORAGE_FAILURE", status_code=503)


class ReplaceFailedError(StorageFailureError):
    """Raised when the previous upload could not be removed; it is left intact."""

    def __init__(self, file_ref: str):
        self.file_ref = file_ref
        super().__init__("Failed to replace the existing document. Please try again.")
        self.error_code = "REPLACE_FAILED"
        self.status_code = 500


def to_http_exception(e: ServiceError) -> HTTPException:
    """Convert a service error into the HTTP error body the API returns."""
    return HTTPException(
        status_code=e.status_code,
        detail={
            "error": e.error_code,
            "message": e.message,
        },
    )
