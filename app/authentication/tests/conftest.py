"""
Test configuration and fixtures for authentication tests.

This module provides:
- Reusable user fixtures (admin, standard, inactive)
- API client helpers for authenticated requests

Usage:
    def test_example(user, authenticated_client):
        response = authenticated_client.get('/api/v1/auth/user/')
        assert response.status_code == 200
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import (
    AdminUserFactory,
    PasswordResetTokenFactory,
    UserFactory,
)


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def admin_user(db):
    """Create the chat admin."""
    return AdminUserFactory(email="admin@example.com")


@pytest.fixture
def user(db):
    """Create a standard user with security answer "Blue"."""
    return UserFactory(email="user@example.com", name="Standard User")


@pytest.fixture
def inactive_user(db):
    """Create a deactivated user (is_active=False)."""
    return UserFactory(is_active=False)


@pytest.fixture
def reset_token(user):
    """Create a valid reset token for the standard user."""
    return PasswordResetTokenFactory(user=user)


# =============================================================================
# API Client Fixtures
# =============================================================================


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def user_tokens(user):
    """Issue a JWT pair for the standard user."""
    refresh = RefreshToken.for_user(user)
    return {"refresh": str(refresh), "access": str(refresh.access_token)}


@pytest.fixture
def authenticated_client(user_tokens):
    """Return an API client authenticated as the standard user via JWT."""
    client = APIClient()
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {user_tokens['access']}")
    return client
