"""
Authentication services.

This module provides:
- AuthService: login, registration (first registrant becomes admin),
  logout, and security-question password recovery
- UserDirectory: read access to the list of chat users

Related files:
    - models.py: User, PasswordResetToken
    - exceptions.py: Error taxonomy carried in failed results
    - views.py: REST endpoints calling these services

Security:
    - Login failures never reveal whether the email exists
    - Reset tokens are cryptographically random (32 bytes) and expire
    - A password change blacklists every outstanding refresh token
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timedelta
from typing import TYPE_CHECKING

from django.conf import settings
from django.contrib.auth.models import update_last_login
from django.db import DatabaseError, IntegrityError
from django.utils import timezone
from rest_framework_simplejwt.exceptions import TokenError
from rest_framework_simplejwt.token_blacklist.models import (
    BlacklistedToken,
    OutstandingToken,
)
from rest_framework_simplejwt.tokens import RefreshToken

from core.exceptions import BaseApplicationError
from core.helpers import generate_token
from core.services import BaseService, ServiceResult
from authentication.exceptions import (
    AccountNotFoundError,
    BackendFailureError,
    DuplicateAccountError,
    InvalidCredentialsError,
    InvalidTokenError,
    SecurityAnswerMismatchError,
)
from authentication.models import PasswordResetToken, User

if TYPE_CHECKING:
    from django.db.models import QuerySet

logger = logging.getLogger(__name__)

DEFAULT_SECURITY_QUESTION = "What is your favorite color?"


@dataclass
class AuthSession:
    """
    An authenticated user together with a freshly issued JWT pair.

    Attributes:
        user: The authenticated user
        access: Short-lived access token (Authorization: Bearer ...)
        refresh: Refresh token, blacklisted on logout
    """

    user: User
    access: str
    refresh: str


class AuthService(BaseService):
    """
    Centralized authentication business logic.

    Every public method returns a ServiceResult. Expected failures carry
    an error code from authentication.exceptions; views translate the
    code into an HTTP status.

    Usage:
        from authentication.services import AuthService

        result = AuthService.login("jane@example.com", "secret1")
        if result.success:
            session = result.data
            print(session.user.is_admin, session.access)
        else:
            print(result.error_code)  # "INVALID_CREDENTIALS"
    """

    # =========================================================================
    # Sessions
    # =========================================================================

    @classmethod
    def login(cls, email: str, password: str) -> ServiceResult[AuthSession]:
        """
        Authenticate with email and password.

        Email matching is case-insensitive. Unknown email, wrong password
        and inactive account all produce the same failure.

        Args:
            email: Account email
            password: Plain-text password

        Returns:
            ServiceResult with AuthSession on success

        Error codes:
            INVALID_CREDENTIALS, BACKEND_FAILURE
        """
        try:
            user = cls._find_user(email)
            if user is None or not user.is_active or not user.check_password(password):
                logger.warning(f"Failed login attempt for {cls._normalize_email(email)}")
                raise InvalidCredentialsError()

            update_last_login(None, user)
            session = cls._issue_session(user)
        except BaseApplicationError as e:
            return ServiceResult.from_error(e)
        except DatabaseError:
            logger.exception("Database failure during login")
            return ServiceResult.from_error(BackendFailureError())

        logger.info(
            f"User logged in: {user.email}",
            extra={"user_id": user.id, "is_admin": user.is_admin},
        )
        return ServiceResult.success(session)

    @classmethod
    def register(
        cls,
        name: str,
        email: str,
        password: str,
        security_question: str,
        security_answer: str,
        avatar: str | None = None,
    ) -> ServiceResult[AuthSession]:
        """
        Create an account and log it in.

        The first account ever registered becomes the admin. The admin
        check and the insert share one transaction; if a concurrent
        registration claims the admin slot first, the single_admin
        constraint fires inside a savepoint and this account is created
        as a standard user instead.

        Args:
            name: Display name
            email: Account email (stored lower-cased)
            password: Plain-text password (validated by the serializer)
            security_question: Recovery question
            security_answer: Recovery answer (hashed, case-insensitive)
            avatar: Optional avatar URL

        Returns:
            ServiceResult with AuthSession on success

        Error codes:
            DUPLICATE_ACCOUNT, BACKEND_FAILURE
        """
        email = cls._normalize_email(email)
        fields = {
            "name": name.strip(),
            "avatar": avatar or "",
            "security_question": security_question.strip(),
            "security_answer": security_answer,
        }

        try:
            with cls.atomic():
                if User.objects.filter(email__iexact=email).exists():
                    raise DuplicateAccountError()

                user = None
                if not User.objects.filter(is_admin=True).exists():
                    try:
                        with cls.atomic():
                            user = User.objects.create_user(
                                email, password, is_admin=True, **fields
                            )
                    except IntegrityError:
                        logger.info(
                            f"Admin slot taken concurrently, registering {email} as user"
                        )
                if user is None:
                    user = User.objects.create_user(
                        email, password, is_admin=False, **fields
                    )
        except BaseApplicationError as e:
            logger.info(f"Registration rejected for {email}: {e.error_code}")
            return ServiceResult.from_error(e)
        except IntegrityError:
            # Lost a race against another registration for the same email
            logger.info(f"Registration rejected for {email}: duplicate on insert")
            return ServiceResult.from_error(DuplicateAccountError())
        except DatabaseError:
            logger.exception("Database failure during registration")
            return ServiceResult.from_error(BackendFailureError())

        logger.info(
            f"User registered: {user.email}",
            extra={"user_id": user.id, "is_admin": user.is_admin},
        )
        update_last_login(None, user)
        return ServiceResult.success(cls._issue_session(user))

    @classmethod
    def logout(cls, refresh_token: str) -> ServiceResult[None]:
        """
        End a session by blacklisting its refresh token.

        Access tokens stay valid until they expire; clients discard them.

        Error codes:
            INVALID_TOKEN, BACKEND_FAILURE
        """
        try:
            token = RefreshToken(refresh_token)
            token.blacklist()
        except TokenError:
            return ServiceResult.from_error(InvalidTokenError())
        except DatabaseError:
            logger.exception("Database failure during logout")
            return ServiceResult.from_error(BackendFailureError())

        logger.info("User logged out", extra={"user_id": token.get("user_id")})
        return ServiceResult.success(None)

    # =========================================================================
    # Password recovery
    # =========================================================================

    @classmethod
    def reset_password(
        cls,
        email: str,
        security_answer: str,
        new_password: str,
    ) -> ServiceResult[User]:
        """
        Replace a password after checking the security answer.

        The answer comparison is case-insensitive and ignores surrounding
        whitespace. An account without a stored answer never matches.
        The new password takes effect immediately and every outstanding
        refresh token of the account is blacklisted.

        Error codes:
            ACCOUNT_NOT_FOUND, SECURITY_ANSWER_MISMATCH, BACKEND_FAILURE
        """
        try:
            user = cls._require_account(email)
            if not user.check_security_answer(security_answer):
                logger.warning(f"Security answer mismatch for {user.email}")
                raise SecurityAnswerMismatchError()

            with cls.atomic():
                cls._set_password(user, new_password)
        except BaseApplicationError as e:
            return ServiceResult.from_error(e)
        except DatabaseError:
            logger.exception("Database failure during password reset")
            return ServiceResult.from_error(BackendFailureError())

        logger.info(f"Password reset for user: {user.email}")
        return ServiceResult.success(user)

    @classmethod
    def get_security_question(cls, email: str) -> ServiceResult[str]:
        """
        Look up the security question for an account.

        Accounts registered without a question get the default one.

        Error codes:
            ACCOUNT_NOT_FOUND, BACKEND_FAILURE
        """
        try:
            user = cls._require_account(email)
        except BaseApplicationError as e:
            return ServiceResult.from_error(e)
        except DatabaseError:
            logger.exception("Database failure during security question lookup")
            return ServiceResult.from_error(BackendFailureError())

        return ServiceResult.success(user.security_question or DEFAULT_SECURITY_QUESTION)

    @classmethod
    def verify_security_answer(
        cls,
        email: str,
        security_answer: str,
    ) -> ServiceResult[PasswordResetToken]:
        """
        Check a security answer and issue a short-lived reset token.

        The token lifetime is PASSWORD_RESET_TOKEN_MINUTES. Redeem it with
        confirm_password_reset().

        Error codes:
            ACCOUNT_NOT_FOUND, SECURITY_ANSWER_MISMATCH, BACKEND_FAILURE
        """
        try:
            user = cls._require_account(email)
            if not user.check_security_answer(security_answer):
                logger.warning(f"Security answer mismatch for {user.email}")
                raise SecurityAnswerMismatchError()

            reset_token = PasswordResetToken.objects.create(
                user=user,
                token=generate_token(32),
                expires_at=timezone.now()
                + timedelta(minutes=settings.PASSWORD_RESET_TOKEN_MINUTES),
            )
        except BaseApplicationError as e:
            return ServiceResult.from_error(e)
        except DatabaseError:
            logger.exception("Database failure while issuing reset token")
            return ServiceResult.from_error(BackendFailureError())

        logger.info(f"Password reset token issued for user: {user.email}")
        return ServiceResult.success(reset_token)

    @classmethod
    def confirm_password_reset(cls, token: str, new_password: str) -> ServiceResult[User]:
        """
        Redeem a reset token and set a new password.

        The token is marked used, every other unused reset token of the
        user is invalidated, and outstanding refresh tokens are blacklisted.

        Error codes:
            INVALID_TOKEN, BACKEND_FAILURE
        """
        try:
            with cls.atomic():
                reset_token = (
                    PasswordResetToken.objects.select_for_update()
                    .select_related("user")
                    .filter(token=token)
                    .first()
                )
                if reset_token is None or not reset_token.is_valid:
                    raise InvalidTokenError()

                now = timezone.now()
                user = reset_token.user
                PasswordResetToken.objects.filter(
                    user=user, used_at__isnull=True
                ).update(used_at=now)
                cls._set_password(user, new_password)
        except BaseApplicationError as e:
            return ServiceResult.from_error(e)
        except DatabaseError:
            logger.exception("Database failure during password reset confirmation")
            return ServiceResult.from_error(BackendFailureError())

        logger.info(f"Password reset via token for user: {user.email}")
        return ServiceResult.success(user)

    # =========================================================================
    # Helpers
    # =========================================================================

    @staticmethod
    def _normalize_email(email: str) -> str:
        return (email or "").strip().lower()

    @classmethod
    def _find_user(cls, email: str) -> User | None:
        return User.objects.filter(email__iexact=cls._normalize_email(email)).first()

    @classmethod
    def _require_account(cls, email: str) -> User:
        user = cls._find_user(email)
        if user is None or not user.is_active:
            raise AccountNotFoundError()
        return user

    @staticmethod
    def _issue_session(user: User) -> AuthSession:
        refresh = RefreshToken.for_user(user)
        return AuthSession(user=user, access=str(refresh.access_token), refresh=str(refresh))

    @classmethod
    def _set_password(cls, user: User, new_password: str) -> None:
        """Store a new password and revoke every refresh token of the user."""
        user.set_password(new_password)
        user.save(update_fields=["password", "updated_at"])
        cls.revoke_sessions(user)

    @staticmethod
    def revoke_sessions(user: User) -> int:
        """
        Blacklist every outstanding refresh token of a user.

        Returns:
            Number of tokens newly blacklisted
        """
        outstanding = OutstandingToken.objects.filter(
            user=user, blacklistedtoken__isnull=True
        )
        count = 0
        for token in outstanding:
            _, created = BlacklistedToken.objects.get_or_create(token=token)
            count += int(created)
        if count:
            logger.info(f"Revoked {count} session(s) for user: {user.email}")
        return count


class UserDirectory(BaseService):
    """
    Read access to the registered chat users.

    Only active accounts are listed, in registration order so the admin
    (the first registrant) comes first.

    Usage:
        directory = UserDirectory()
        users = directory.list_users()
        admin = directory.get_admin()

    Note:
        Instances hold no state; MessageStore takes one in its constructor
        so tests can substitute their own directory.
    """

    def active_users(self) -> QuerySet[User]:
        return User.objects.filter(is_active=True).order_by("date_joined", "id")

    def list_users(self) -> list[User]:
        """
        Return every active user.

        Raises:
            BackendFailureError: If the database query fails
        """
        try:
            return list(self.active_users())
        except DatabaseError as e:
            self.get_logger().error(f"Failed to list users: {e}", exc_info=True)
            raise BackendFailureError() from e

    def get_admin(self) -> User | None:
        """Return the admin user, or None before anyone registered."""
        try:
            return self.active_users().filter(is_admin=True).first()
        except DatabaseError as e:
            self.get_logger().error(f"Failed to load admin: {e}", exc_info=True)
            raise BackendFailureError() from e
