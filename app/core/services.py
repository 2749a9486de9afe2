"""
Service layer building blocks.

- ServiceResult: Outcome of an operation that can fail in expected ways
- BaseService: Logger and transaction helpers shared by every service

Services own the business rules; views translate HTTP or WebSocket frames
into service calls and service results back into responses.

Expected failures (wrong password, empty message, non-contact recipient)
come back as ServiceResult.failure() with an error_code. Unexpected ones
propagate as exceptions.

Usage:
    from core.services import BaseService, ServiceResult

    class AuthService(BaseService):
        @classmethod
        def login(cls, email: str, password: str) -> ServiceResult[AuthSession]:
            user = cls._find_user(email)
            if user is None or not user.check_password(password):
                return ServiceResult.from_error(InvalidCredentialsError())
            return ServiceResult.success(cls._issue_session(user))

    # In a view
    result = AuthService.login(email, password)
    if not result.success:
        return Response(
            {"error": result.error, "error_code": result.error_code},
            status=http_status_for(result.error_code),
        )
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from dataclasses import dataclass
from typing import TYPE_CHECKING, Generic, TypeVar

from django.db import transaction

if TYPE_CHECKING:
    from collections.abc import Generator

    from core.exceptions import BaseApplicationError

T = TypeVar("T")


@dataclass
class ServiceResult(Generic[T]):
    """
    Outcome of a service call.

    Attributes:
        success: Whether the operation succeeded
        data: Payload on success
        error: Human-readable message on failure
        error_code: Machine-readable code on failure (e.g. "EMPTY_MESSAGE")

    A result is truthy exactly when it succeeded:

        result = store.send_message(sender, recipient, "Hi")
        if result:
            message = result.data
    """

    success: bool
    data: T | None = None
    error: str | None = None
    error_code: str | None = None

    @classmethod
    def success(cls, data: T) -> ServiceResult[T]:
        return cls(success=True, data=data)

    @classmethod
    def failure(cls, error: str, error_code: str | None = None) -> ServiceResult[T]:
        return cls(success=False, error=error, error_code=error_code)

    @classmethod
    def from_error(cls, exc: BaseApplicationError) -> ServiceResult[T]:
        """
        Turn an application error into a failed result.

        The error's message and code are kept as they are; they are what
        the client eventually sees.
        """
        return cls.failure(exc.message, error_code=exc.error_code)

    def __bool__(self) -> bool:
        return self.success


class BaseService:
    """
    Base class for services.

    Stateless services expose classmethods (AuthService). Services with
    collaborators are instantiated (MessageStore takes a UserDirectory).
    Either way get_logger() and atomic() are available on the class.
    """

    @classmethod
    def get_logger(cls) -> logging.Logger:
        """Return a logger named <module>.<ServiceClass>."""
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    @classmethod
    @contextmanager
    def atomic(cls) -> Generator[None, None, None]:
        """
        Run the block in a transaction (a savepoint when nested).

        Example:
            with cls.atomic():
                user.set_password(new_password)
                user.save(update_fields=["password"])
                cls.revoke_sessions(user)
        """
        with transaction.atomic():
            yield
