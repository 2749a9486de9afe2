"""
Serializers for authentication endpoints.

This module provides DRF serializers for:
- User model (read operations, never exposes password or security answer)
- Login, registration and logout requests
- Security-question password recovery (one-step and two-step)
- Auth session responses (JWT pair + user)

Related files:
    - models.py: User and PasswordResetToken models
    - views.py: Views that use these serializers
    - services.py: AuthService performs the actual work

Security:
    - Password and answer fields are write-only
    - Validation (confirmation match, minimum length, required fields)
      happens here, before any service call
"""

from rest_framework import serializers

from authentication.models import User

PASSWORD_MIN_LENGTH = 6


def password_field(**kwargs):
    """Write-only password input enforcing the minimum length."""
    kwargs.setdefault("min_length", PASSWORD_MIN_LENGTH)
    return serializers.CharField(
        write_only=True,
        trim_whitespace=False,
        style={"input_type": "password"},
        **kwargs,
    )


class PasswordConfirmationMixin:
    """
    Checks that two password fields match.

    Subclasses name the pair through password_fields.
    """

    password_fields = ("password1", "password2")

    def validate(self, attrs):
        first, second = self.password_fields
        if attrs[first] != attrs[second]:
            raise serializers.ValidationError({second: "Passwords do not match."})
        return attrs


class UserSerializer(serializers.ModelSerializer):
    """
    Serializer for User model (read operations).

    Used for /api/v1/auth/user/, the user directory and auth responses.
    """

    role = serializers.CharField(read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "email",
            "name",
            "avatar",
            "is_admin",
            "role",
            "date_joined",
        ]
        read_only_fields = fields


class LoginSerializer(serializers.Serializer):
    """Email/password credentials."""

    email = serializers.EmailField()
    password = serializers.CharField(
        write_only=True,
        trim_whitespace=False,
        style={"input_type": "password"},
    )

    def validate_email(self, value):
        return value.strip().lower()


class RegisterSerializer(PasswordConfirmationMixin, serializers.Serializer):
    """
    Serializer for user registration.

    Duplicate emails are not rejected here; AuthService.register reports
    them as DUPLICATE_ACCOUNT so the check and the insert stay atomic.
    """

    name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    password1 = password_field(
        help_text=f"Password must be at least {PASSWORD_MIN_LENGTH} characters.",
    )
    password2 = password_field(min_length=None, help_text="Confirm your password.")
    security_question = serializers.CharField(max_length=255)
    security_answer = serializers.CharField(write_only=True, max_length=255)
    avatar = serializers.URLField(
        required=False,
        allow_blank=True,
        max_length=500,
        help_text="Optional avatar URL; generated from the email when omitted.",
    )

    def validate_email(self, value):
        return value.strip().lower()

    def validate_name(self, value):
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name is required.")
        return value

    def validate_security_answer(self, value):
        if not value.strip():
            raise serializers.ValidationError("Security answer is required.")
        return value


class LogoutSerializer(serializers.Serializer):
    """Refresh token to blacklist."""

    refresh = serializers.CharField()


class AuthSessionSerializer(serializers.Serializer):
    """Response body for login and registration."""

    access = serializers.CharField()
    refresh = serializers.CharField()
    user = UserSerializer()


# -----------------------------------------------------------------------------
# Password Recovery Serializers
# -----------------------------------------------------------------------------


class PasswordResetSerializer(PasswordConfirmationMixin, serializers.Serializer):
    """One-step reset: email, security answer and the new password."""

    password_fields = ("new_password1", "new_password2")

    email = serializers.EmailField()
    security_answer = serializers.CharField(write_only=True, max_length=255)
    new_password1 = password_field()
    new_password2 = password_field(min_length=None)

    def validate_security_answer(self, value):
        if not value.strip():
            raise serializers.ValidationError("Security answer is required.")
        return value


class SecurityQuestionRequestSerializer(serializers.Serializer):
    """Email whose security question is requested."""

    email = serializers.EmailField()


class SecurityQuestionResponseSerializer(serializers.Serializer):
    email = serializers.EmailField()
    security_question = serializers.CharField()


class VerifySecurityAnswerSerializer(serializers.Serializer):
    """Email and answer exchanged for a reset token."""

    email = serializers.EmailField()
    security_answer = serializers.CharField(write_only=True, max_length=255)

    def validate_security_answer(self, value):
        if not value.strip():
            raise serializers.ValidationError("Security answer is required.")
        return value


class PasswordResetTokenSerializer(serializers.Serializer):
    token = serializers.CharField()
    expires_at = serializers.DateTimeField()


class PasswordResetConfirmSerializer(PasswordConfirmationMixin, serializers.Serializer):
    """Reset token plus the new password."""

    password_fields = ("new_password1", "new_password2")

    token = serializers.CharField(max_length=64)
    new_password1 = password_field()
    new_password2 = password_field(min_length=None)


class ErrorResponseSerializer(serializers.Serializer):
    """Body of every failed service call."""

    error = serializers.CharField()
    error_code = serializers.CharField()
