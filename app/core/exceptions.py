"""
Application error hierarchy.

Every error carries a human-readable message and a machine-readable
error_code. Services usually convert them into ServiceResult failures;
views render them as {"error": ..., "error_code": ...}.

Hierarchy:
    BaseApplicationError
    ├── ValidationError         bad input the serializers cannot catch
    ├── NotFoundError           missing account or record
    ├── PermissionDeniedError   wrong credentials, non-contact recipient
    ├── ConflictError           duplicate account
    └── ExternalServiceError    database or channel layer down

Usage:
    from core.exceptions import NotFoundError

    raise NotFoundError("No account found with this email", error_code="ACCOUNT_NOT_FOUND")

Subclasses in the apps pin the message and code:

    class AccountNotFoundError(NotFoundError):
        default_error_code = "ACCOUNT_NOT_FOUND"
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from typing import Any


class BaseApplicationError(Exception):
    """
    Base exception for application errors.

    Attributes:
        message: Human-readable description, safe to show to users
        error_code: Machine-readable code (defaults to default_error_code)
        details: Optional extra context
    """

    default_error_code: str = "APPLICATION_ERROR"

    def __init__(
        self,
        message: str,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.message = message
        self.error_code = error_code or self.default_error_code
        self.details = details or {}
        super().__init__(message)

    def to_dict(self) -> dict[str, Any]:
        """
        Render the error as a response body.

        Example:
            {"error": "Invalid email or password", "error_code": "INVALID_CREDENTIALS"}
        """
        body: dict[str, Any] = {"error": self.message, "error_code": self.error_code}
        if self.details:
            body["details"] = self.details
        return body

    def __str__(self) -> str:
        return f"[{self.error_code}] {self.message}"


class ValidationError(BaseApplicationError):
    """Input rejected by a business rule."""

    default_error_code: str = "VALIDATION_ERROR"


class NotFoundError(BaseApplicationError):
    """Requested record does not exist (or is inactive)."""

    default_error_code: str = "NOT_FOUND"


class PermissionDeniedError(BaseApplicationError):
    """
    Caller may not perform the operation.

    Note:
        Missing or invalid JWTs are DRF's AuthenticationFailed; this is
        for failures after the caller is known.
    """

    default_error_code: str = "PERMISSION_DENIED"


class ConflictError(BaseApplicationError):
    """Operation clashes with existing state (HTTP 409)."""

    default_error_code: str = "CONFLICT"


class ExternalServiceError(BaseApplicationError):
    """
    A backing service failed.

    Log the original exception; never expose its text to clients.
    """

    default_error_code: str = "EXTERNAL_SERVICE_ERROR"
