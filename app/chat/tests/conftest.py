"""
Test configuration and fixtures for chat tests.

This module provides:
- The admin and two standard users
- A short conversation between the admin and a user
- API clients authenticated via JWT
- A manual scheduler for typing timers

Usage:
    def test_example(user, user_client, admin_user):
        response = user_client.get('/api/v1/chat/contacts/')
        assert response.json()[0]["id"] == admin_user.id
"""

import pytest
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from authentication.tests.factories import AdminUserFactory, UserFactory
from chat.tests.factories import MessageFactory


# =============================================================================
# User Fixtures
# =============================================================================


@pytest.fixture
def admin_user(db):
    """Create the chat admin."""
    return AdminUserFactory(email="admin@example.com", name="Admin")


@pytest.fixture
def user(db):
    """Create a standard user."""
    return UserFactory(email="alice@example.com", name="Alice")


@pytest.fixture
def other_user(db):
    """Create a second standard user."""
    return UserFactory(email="bob@example.com", name="Bob")


# =============================================================================
# Message Fixtures
# =============================================================================


@pytest.fixture
def conversation(admin_user, user):
    """
    Create three messages between the admin and the user.

    Returns [user->admin (unread), admin->user (read), admin->user (unread)].
    """
    return [
        MessageFactory(sender=user, recipient=admin_user, content="Hi admin"),
        MessageFactory(sender=admin_user, recipient=user, content="Hello", read=True),
        MessageFactory(sender=admin_user, recipient=user, content="How can I help?"),
    ]


# =============================================================================
# API Client Fixtures
# =============================================================================


def _client_for(user):
    client = APIClient()
    token = RefreshToken.for_user(user).access_token
    client.credentials(HTTP_AUTHORIZATION=f"Bearer {token}")
    return client


@pytest.fixture
def api_client():
    """Return an unauthenticated API client."""
    return APIClient()


@pytest.fixture
def user_client(user):
    """Return an API client authenticated as the standard user."""
    return _client_for(user)


@pytest.fixture
def admin_client(admin_user):
    """Return an API client authenticated as the admin."""
    return _client_for(admin_user)


@pytest.fixture
def access_token():
    """Return a factory issuing access tokens for WebSocket connections."""

    def issue(user):
        return str(RefreshToken.for_user(user).access_token)

    return issue


# =============================================================================
# Scheduler Fixture
# =============================================================================


class ManualTimer:
    """Handle returned by ManualScheduler."""

    def __init__(self, delay, callback):
        self.delay = delay
        self.callback = callback
        self.cancelled = False

    def cancel(self):
        self.cancelled = True


class ManualScheduler:
    """
    Scheduler whose timers only fire when the test says so.

    Usage:
        scheduler = ManualScheduler()
        session = ChatSession(user, store, scheduler=scheduler)
        scheduler.fire_pending()
    """

    def __init__(self):
        self.timers = []

    def __call__(self, delay, callback):
        timer = ManualTimer(delay, callback)
        self.timers.append(timer)
        return timer

    @property
    def pending(self):
        return [t for t in self.timers if not t.cancelled]

    def fire_pending(self):
        for timer in self.pending:
            timer.cancelled = True
            timer.callback()


@pytest.fixture
def scheduler():
    """Return a ManualScheduler."""
    return ManualScheduler()
