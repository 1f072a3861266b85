"""Custom exceptions for review moderation services."""

from __future__ import annotations

from fastapi import status


class ReviewError(Exception):
    """Base class for review related errors."""

    status_code: int = status.HTTP_400_BAD_REQUEST
    detail: str = "review_error"

    def __init__(self, detail: str | None = None) -> None:
        super().__init__(detail or self.detail)
        if detail:
            self.detail = detail


class ValidationError(ReviewError):
    """Raised for invalid submissions, including unknown property references."""

    status_code = status.HTTP_400_BAD_REQUEST
    detail = "validation_error"


class NotFoundError(ReviewError):
    """Thrown when a targeted review or property is missing."""

    status_code = status.HTTP_404_NOT_FOUND
    detail = "not_found"


class TransactionFailure(ReviewError):
    """Raised when the store fails mid-operation; the transaction was rolled back and may be retried."""

    status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    detail = "transaction_failed"
