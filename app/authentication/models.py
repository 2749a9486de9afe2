"""
Authentication models.

This module defines the core authentication models:
- User: Custom user model with email-based authentication, a chat role
  (admin or standard) and security-question recovery data
- PasswordResetToken: Single-use token issued after a verified security answer

Related files:
    - managers.py: Custom user manager for email-based creation
    - services.py: AuthService and UserDirectory business logic
    - signals.py: Registration logging

Security:
    - User passwords hashed with Django's configured hasher
    - Security answers hashed the same way, over the normalized answer
    - Reset tokens are cryptographically random and expire
"""

from django.conf import settings
from django.contrib.auth.hashers import check_password, make_password
from django.contrib.auth.models import AbstractBaseUser, PermissionsMixin
from django.db import models
from django.db.models.functions import Lower
from django.utils import timezone

from core.models import BaseModel
from authentication.managers import UserManager

# Avatar service used when a user registers without one
DEFAULT_AVATAR_URL = "https://i.pravatar.cc/150?u={email}"


def normalize_security_answer(answer: str) -> str:
    """Return the comparison form of a security answer (trimmed, lower-cased)."""
    return (answer or "").strip().lower()


class User(AbstractBaseUser, PermissionsMixin):
    """
    Custom User model using email as the primary identifier.

    Fields:
        email: Primary identifier, unique (case-insensitive), used for login
        name: Display name shown in contact lists
        avatar: Avatar URL (generated from the email when not supplied)
        is_admin: Whether this user is the single chat admin
        security_question: Recovery question chosen at registration
        security_answer: Hashed, normalized recovery answer
        is_active: Whether the user account is active
        is_staff: Whether the user can access Django admin
        date_joined: When the user account was created (arrival order)
        updated_at: When the user record was last modified

    Constraints:
        - At most one row has is_admin=True, so concurrent first
          registrations cannot both become admin.
        - Lower(email) is unique.

    Usage:
        user = User.objects.create_user(
            email='user@example.com',
            password='secret1',
            name='Jane',
        )
        user.set_security_answer('Blue')
        user.check_security_answer('  blue ')  # True
    """

    email = models.EmailField(
        unique=True,
        db_index=True,
        max_length=254,
        help_text="User's email address (primary identifier)",
    )
    name = models.CharField(
        max_length=150,
        help_text="Display name",
    )
    avatar = models.URLField(
        max_length=500,
        blank=True,
        help_text="Avatar image URL",
    )

    is_admin = models.BooleanField(
        default=False,
        db_index=True,
        help_text="Whether this user is the chat admin (first registrant)",
    )

    security_question = models.CharField(
        max_length=255,
        blank=True,
        help_text="Security question used for password recovery",
    )
    security_answer = models.CharField(
        max_length=128,
        blank=True,
        help_text="Hashed security answer (normalized before hashing)",
    )

    is_active = models.BooleanField(
        default=True,
        help_text="Whether this user account is active. Deselect instead of deleting.",
    )
    is_staff = models.BooleanField(
        default=False,
        help_text="Whether the user can access the admin site.",
    )

    date_joined = models.DateTimeField(
        auto_now_add=True,
        help_text="When the user account was created",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        help_text="When the user record was last modified",
    )

    USERNAME_FIELD = "email"
    EMAIL_FIELD = "email"
    REQUIRED_FIELDS = ["name"]

    objects = UserManager()

    class Meta:
        verbose_name = "user"
        verbose_name_plural = "users"
        ordering = ["date_joined", "id"]
        constraints = [
            models.UniqueConstraint(
                Lower("email"),
                name="unique_email_case_insensitive",
            ),
            models.UniqueConstraint(
                fields=["is_admin"],
                condition=models.Q(is_admin=True),
                name="single_admin",
            ),
        ]

    def __str__(self):
        return self.email

    def save(self, *args, **kwargs):
        self.email = (self.email or "").strip().lower()
        if not self.avatar and self.email:
            self.avatar = DEFAULT_AVATAR_URL.format(email=self.email)
        super().save(*args, **kwargs)

    def get_full_name(self):
        return self.name or self.email

    def get_short_name(self):
        return self.name or self.email.split("@")[0]

    @property
    def role(self) -> str:
        """Return "admin" or "user"."""
        return "admin" if self.is_admin else "user"

    def set_security_answer(self, answer: str) -> None:
        """
        Hash and store a security answer.

        The answer is trimmed and lower-cased first so later checks are
        case-insensitive. Does not save the instance.
        """
        self.security_answer = make_password(normalize_security_answer(answer))

    def check_security_answer(self, answer: str) -> bool:
        """
        Check a candidate answer against the stored hash.

        Returns:
            False when no answer is stored or the candidate is blank
        """
        candidate = normalize_security_answer(answer)
        if not self.security_answer or not candidate:
            return False
        return check_password(candidate, self.security_answer)


class PasswordResetToken(BaseModel):
    """
    Single-use token for the two-step security-question reset.

    Issued by AuthService.verify_security_answer once the answer matched,
    redeemed by AuthService.confirm_password_reset.

    Fields:
        user: User this token belongs to
        token: Unique, cryptographically random token string (64 hex chars)
        expires_at: When this token expires
        used_at: When this token was redeemed (null if unused)

    Usage:
        token = PasswordResetToken.objects.create(
            user=user,
            token=generate_token(),
            expires_at=timezone.now() + timedelta(minutes=15),
        )
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="password_reset_tokens",
        help_text="User this token belongs to",
    )
    token = models.CharField(
        max_length=64,
        unique=True,
        db_index=True,
        help_text="Unique reset token",
    )
    expires_at = models.DateTimeField(
        db_index=True,
        help_text="When this token expires",
    )
    used_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When this token was used (null if unused)",
    )

    class Meta:
        db_table = "authentication_password_reset_token"
        verbose_name = "password reset token"
        verbose_name_plural = "password reset tokens"
        indexes = [
            models.Index(
                fields=["user", "used_at"],
                name="auth_reset_user_used_idx",
            ),
        ]

    def __str__(self):
        return f"Password reset for {self.user}"

    @property
    def is_valid(self):
        """Check if token is valid (not used and not expired)."""
        return self.used_at is None and self.expires_at > timezone.now()
