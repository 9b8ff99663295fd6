"""Error taxonomy shared by the report services."""
from __future__ import annotations


class FieldReportsError(RuntimeError):
    """Base exception for field report service errors."""


class ReportValidationError(FieldReportsError):
    """Raised when a draft is missing required fields or has no complete items."""

    def __init__(self, message: str, *, fields: list[str] | None = None) -> None:
        super().__init__(message)
        self.fields = fields or []


class AuthenticationRequired(FieldReportsError):
    """Raised when a report operation is attempted without a current identity."""


class ReportNotFoundError(FieldReportsError):
    """Raised when a report identifier is missing or owned by someone else."""


class PersistenceError(FieldReportsError):
    """Raised when the backing store rejects or fails a read or write."""


class ExternalServiceError(FieldReportsError):
    """Raised by the inference client; callers replace it with a local fallback."""


class ComputationError(FieldReportsError):
    """Reserved for aggregation failures; the analytics functions are total."""


class DuplicateUserError(FieldReportsError):
    """Raised when signing up with an email that already has an account."""


class InvalidCredentialsError(FieldReportsError):
    """Raised when an email and password pair does not match a stored account."""


__all__ = [
    "AuthenticationRequired",
    "ComputationError",
    "DuplicateUserError",
    "ExternalServiceError",
    "FieldReportsError",
    "InvalidCredentialsError",
    "PersistenceError",
    "ReportNotFoundError",
    "ReportValidationError",
]
