"""
Authentication error taxonomy.

Each error carries a stable error_code that clients switch on and that
views map to an HTTP status (see HTTP_STATUS_BY_ERROR_CODE).

Hierarchy:
    InvalidCredentialsError (PermissionDeniedError) - wrong email/password
    DuplicateAccountError (ConflictError) - email already registered
    AccountNotFoundError (NotFoundError) - no account for email
    SecurityAnswerMismatchError (ValidationError) - wrong recovery answer
    InvalidTokenError (ValidationError) - bad refresh or reset token
    BackendFailureError (ExternalServiceError) - database unavailable
"""

from rest_framework import status

from core.exceptions import (
    ConflictError,
    ExternalServiceError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)


class InvalidCredentialsError(PermissionDeniedError):
    """Raised when login fails; the message never says which part was wrong."""

    default_error_code = "INVALID_CREDENTIALS"

    def __init__(self, message="Invalid email or password", **kwargs):
        super().__init__(message, **kwargs)


class DuplicateAccountError(ConflictError):
    """Raised when registering an email that already exists."""

    default_error_code = "DUPLICATE_ACCOUNT"

    def __init__(self, message="User with this email already exists", **kwargs):
        super().__init__(message, **kwargs)


class AccountNotFoundError(NotFoundError):
    """Raised when a recovery flow targets an unknown email."""

    default_error_code = "ACCOUNT_NOT_FOUND"

    def __init__(self, message="No account found with this email", **kwargs):
        super().__init__(message, **kwargs)


class SecurityAnswerMismatchError(ValidationError):
    """Raised when the security answer does not match."""

    default_error_code = "SECURITY_ANSWER_MISMATCH"

    def __init__(self, message="Security answer is incorrect", **kwargs):
        super().__init__(message, **kwargs)


class InvalidTokenError(ValidationError):
    """Raised for unknown, used, expired or malformed tokens."""

    default_error_code = "INVALID_TOKEN"

    def __init__(self, message="Token is invalid or expired", **kwargs):
        super().__init__(message, **kwargs)


class BackendFailureError(ExternalServiceError):
    """Raised when the database fails during an authentication call."""

    default_error_code = "BACKEND_FAILURE"

    def __init__(self, message="Service temporarily unavailable", **kwargs):
        super().__init__(message, **kwargs)


HTTP_STATUS_BY_ERROR_CODE = {
    InvalidCredentialsError.default_error_code: status.HTTP_401_UNAUTHORIZED,
    DuplicateAccountError.default_error_code: status.HTTP_409_CONFLICT,
    AccountNotFoundError.default_error_code: status.HTTP_404_NOT_FOUND,
    SecurityAnswerMismatchError.default_error_code: status.HTTP_400_BAD_REQUEST,
    InvalidTokenError.default_error_code: status.HTTP_400_BAD_REQUEST,
    BackendFailureError.default_error_code: status.HTTP_503_SERVICE_UNAVAILABLE,
}


def http_status_for(error_code: str | None) -> int:
    """Return the HTTP status for an error code (400 when unmapped)."""
    return HTTP_STATUS_BY_ERROR_CODE.get(error_code, status.HTTP_400_BAD_REQUEST)
