"""
Tests for the chat REST API.

URL Structure:
    /api/v1/chat/contacts/                   GET
    /api/v1/chat/contacts/{id}/messages/     GET, POST
    /api/v1/chat/contacts/{id}/read/         POST
    /api/v1/chat/messages/                   GET
    /api/v1/chat/messages/read/              POST
"""

from unittest.mock import patch

from django.db import DatabaseError
from rest_framework import status

from chat.models import Message
from chat.tests.factories import MessageFactory

CONTACTS_URL = "/api/v1/chat/contacts/"
MESSAGES_URL = "/api/v1/chat/messages/"
READ_URL = "/api/v1/chat/messages/read/"


def conversation_url(contact_id):
    return f"/api/v1/chat/contacts/{contact_id}/messages/"


def conversation_read_url(contact_id):
    return f"/api/v1/chat/contacts/{contact_id}/read/"


# =============================================================================
# TestContactListView
# =============================================================================


class TestContactListView:
    """Tests for GET /api/v1/chat/contacts/."""

    def test_requires_authentication(self, api_client, db):
        response = api_client.get(CONTACTS_URL)

        assert response.status_code == status.HTTP_401_UNAUTHORIZED

    def test_user_sees_the_admin(self, user_client, admin_user, other_user, conversation):
        response = user_client.get(CONTACTS_URL)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert [c["id"] for c in data] == [admin_user.id]
        assert data[0]["last_message"] == "How can I help?"
        assert data[0]["unread_count"] == 1
        assert data[0]["is_online"] is True

    def test_admin_sees_every_user(self, admin_client, user, other_user):
        response = admin_client.get(CONTACTS_URL)

        assert [c["id"] for c in response.json()] == [user.id, other_user.id]

    def test_backend_failure_is_503(self, user_client, admin_user):
        with patch(
            "authentication.services.UserDirectory.active_users",
            side_effect=DatabaseError("down"),
        ):
            response = user_client.get(CONTACTS_URL)

        assert response.status_code == status.HTTP_503_SERVICE_UNAVAILABLE
        assert response.json()["error_code"] == "BACKEND_FAILURE"


# =============================================================================
# TestMessageListView
# =============================================================================


class TestMessageListView:
    """Tests for GET /api/v1/chat/messages/."""

    def test_messages_grouped_by_contact(self, admin_client, user, other_user, conversation):
        response = admin_client.get(MESSAGES_URL)

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert set(data) == {str(user.id), str(other_user.id)}
        assert [m["id"] for m in data[str(user.id)]] == [m.pk for m in conversation]
        assert data[str(other_user.id)] == []


# =============================================================================
# TestConversationMessagesView
# =============================================================================


class TestConversationMessagesView:
    """Tests for /api/v1/chat/contacts/{id}/messages/."""

    def test_list_is_paginated_oldest_first(self, user_client, admin_user, conversation):
        response = user_client.get(conversation_url(admin_user.id), {"page_size": 2})

        assert response.status_code == status.HTTP_200_OK
        data = response.json()
        assert [m["id"] for m in data["results"]] == [m.pk for m in conversation[:2]]
        assert data["next"] is not None

    def test_list_rejects_non_contacts(self, user_client, admin_user, other_user):
        response = user_client.get(conversation_url(other_user.id))

        assert response.status_code == status.HTTP_403_FORBIDDEN
        assert response.json()["error_code"] == "NOT_A_CONTACT"

    def test_send_message(self, user_client, user, admin_user):
        response = user_client.post(
            conversation_url(admin_user.id), {"content": "Hello"}, format="json"
        )

        assert response.status_code == status.HTTP_201_CREATED
        data = response.json()
        assert data["sender_id"] == user.id
        assert data["recipient_id"] == admin_user.id
        assert data["content"] == "Hello"
        assert data["is_read"] is False

    def test_send_attachment(self, admin_client, user):
        response = admin_client.post(
            conversation_url(user.id),
            {"message_type": "file", "file_url": "https://cdn.example.com/report.pdf"},
            format="json",
        )

        assert response.status_code == status.HTTP_201_CREATED
        assert response.json()["content"] == "Attachment"

    def test_send_empty_message_is_400(self, user_client, admin_user):
        response = user_client.post(
            conversation_url(admin_user.id), {"content": "  "}, format="json"
        )

        assert response.status_code == status.HTTP_400_BAD_REQUEST
        assert response.json()["error_code"] == "EMPTY_MESSAGE"
        assert Message.objects.count() == 0

    def test_send_to_non_contact_is_403(self, user_client, admin_user, other_user):
        response = user_client.post(
            conversation_url(other_user.id), {"content": "Hi Bob"}, format="json"
        )

        assert response.status_code == status.HTTP_403_FORBIDDEN


# =============================================================================
# TestReadViews
# =============================================================================


class TestReadViews:
    """Tests for the read receipt endpoints."""

    def test_mark_messages_read(self, user_client, user, admin_user, conversation):
        response = user_client.post(
            READ_URL, {"message_ids": [m.pk for m in conversation]}, format="json"
        )

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"message_ids": [conversation[2].pk]}

    def test_mark_messages_read_validates_ids(self, user_client):
        response = user_client.post(READ_URL, {"message_ids": ["abc"]}, format="json")

        assert response.status_code == status.HTTP_400_BAD_REQUEST

    def test_mark_conversation_read(self, admin_client, admin_user, user):
        first = MessageFactory(sender=user, recipient=admin_user)
        second = MessageFactory(sender=user, recipient=admin_user)

        response = admin_client.post(conversation_read_url(user.id))

        assert response.status_code == status.HTTP_200_OK
        assert response.json() == {"message_ids": [first.pk, second.pk]}
        assert not Message.objects.filter(is_read=False).exists()
