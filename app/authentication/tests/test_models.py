"""
Tests for authentication models.

Covers:
- User email normalization and case-insensitive uniqueness
- Generated avatars
- Security answer hashing and comparison
- The single-admin constraint
- PasswordResetToken validity
"""

from datetime import timedelta

import pytest
from django.db import IntegrityError, transaction
from django.utils import timezone

from authentication.models import DEFAULT_AVATAR_URL, User
from authentication.tests.factories import (
    AdminUserFactory,
    PasswordResetTokenFactory,
    UserFactory,
)


# =============================================================================
# TestUser
# =============================================================================


class TestUser:
    """Tests for the User model."""

    def test_email_is_stored_lowercase(self, db):
        """
        Emails are normalized on save.

        Why it matters: Login and duplicate checks compare emails
        case-insensitively; storing one form keeps that cheap.
        """
        user = UserFactory(email="Jane.Doe@Example.COM")

        assert user.email == "jane.doe@example.com"

    def test_email_unique_ignoring_case(self, db):
        """Two accounts cannot differ only in email casing."""
        UserFactory(email="jane@example.com")

        other = UserFactory(email="other@example.com")

        # update() skips save() normalization, so only the Lower(email)
        # constraint stands in the way
        with pytest.raises(IntegrityError), transaction.atomic():
            User.objects.filter(pk=other.pk).update(email="JANE@EXAMPLE.COM")

    def test_avatar_generated_from_email_when_missing(self, db):
        user = UserFactory(email="bob@example.com", avatar="")

        assert user.avatar == DEFAULT_AVATAR_URL.format(email="bob@example.com")

    def test_explicit_avatar_is_kept(self, db):
        user = UserFactory(avatar="https://cdn.example.com/me.png")

        assert user.avatar == "https://cdn.example.com/me.png"

    def test_role_property(self, db):
        assert AdminUserFactory().role == "admin"
        assert UserFactory().role == "user"

    def test_string_representation(self, db):
        assert str(UserFactory(email="x@example.com")) == "x@example.com"


# =============================================================================
# TestSecurityAnswer
# =============================================================================


class TestSecurityAnswer:
    """Tests for User.set_security_answer() / check_security_answer()."""

    def test_answer_is_not_stored_in_plain_text(self, db):
        """
        The stored answer is a hash.

        Why it matters: Security answers work like passwords and must not
        leak through a database dump.
        """
        user = UserFactory(security_answer="Blue")

        assert user.security_answer
        assert "blue" not in user.security_answer.lower()

    @pytest.mark.parametrize("candidate", ["Blue", "blue", "  BLUE  "])
    def test_check_is_case_and_whitespace_insensitive(self, db, candidate):
        user = UserFactory(security_answer="Blue")

        assert user.check_security_answer(candidate) is True

    def test_wrong_answer_fails(self, db):
        user = UserFactory(security_answer="Blue")

        assert user.check_security_answer("Green") is False

    def test_blank_candidate_fails(self, db):
        user = UserFactory(security_answer="Blue")

        assert user.check_security_answer("   ") is False

    def test_account_without_answer_never_matches(self, db):
        user = UserFactory(security_answer=None)

        assert user.security_answer == ""
        assert user.check_security_answer("") is False
        assert user.check_security_answer("anything") is False


# =============================================================================
# TestSingleAdminConstraint
# =============================================================================


class TestSingleAdminConstraint:
    """Tests for the single_admin partial unique constraint."""

    def test_second_admin_is_rejected(self, db):
        """
        The database refuses a second admin row.

        Why it matters: This constraint is what makes "first registrant
        becomes admin" safe under concurrent registrations.
        """
        AdminUserFactory()

        with pytest.raises(IntegrityError), transaction.atomic():
            AdminUserFactory()

    def test_many_standard_users_allowed(self, db):
        UserFactory.create_batch(3)

        assert User.objects.filter(is_admin=False).count() == 3


# =============================================================================
# TestPasswordResetToken
# =============================================================================


class TestPasswordResetToken:
    """Tests for PasswordResetToken.is_valid."""

    def test_fresh_token_is_valid(self, db):
        assert PasswordResetTokenFactory().is_valid is True

    def test_expired_token_is_invalid(self, db):
        assert PasswordResetTokenFactory(expired=True).is_valid is False

    def test_used_token_is_invalid(self, db):
        assert PasswordResetTokenFactory(used=True).is_valid is False

    def test_token_expiring_now_is_invalid(self, db):
        token = PasswordResetTokenFactory(expires_at=timezone.now() - timedelta(seconds=1))

        assert token.is_valid is False
