"""
Unit tests for the mapping of service errors to HTTP errors.
"""

from decimal import Decimal
from uuid import uuid4

from iskolar.core.exceptions import (
    DocumentsIncompleteError,
    ExceedsRemainingDaysError,
    NotFoundError,
    ReplaceFailedError,
    to_http_exception,
)


def test_not_found():
    exc = to_http_exception(NotFoundError("Application", uuid4()))

    assert exc.status_code == 404
    assert exc.detail["error"] == "NOT_FOUND"


def test_documents_incomplete_is_a_transition_error():
    error = DocumentsIncompleteError("draft", ["Report Card", "ID"])
    exc = to_http_exception(error)

    assert exc.status_code == 409
    assert exc.detail["error"] == "INVALID_TRANSITION"
    assert "Report Card, ID" in exc.detail["message"]


def test_exceeds_remaining_days_message():
    error = ExceedsRemainingDaysError(Decimal("0.50"), Decimal("4.00"))

    assert error.message == "You can only report up to 0.50 days (4.00 hours)."


def test_replace_failed():
    exc = to_http_exception(ReplaceFailedError("documents/app/old.pdf"))

    assert exc.status_code == 500
    assert exc.detail["error"] == "REPLACE_FAILED"
