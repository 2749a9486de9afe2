"""
Tests for the chat WebSocket consumer.

Each test talks to JWTAuthMiddleware(URLRouter(websocket_urlpatterns))
through channels.testing.WebsocketCommunicator, with the in-memory
channel layer configured by the root conftest.

Tokens are issued in synchronous fixtures; the ORM must not be called
from inside the event loop.
"""

import pytest
from channels.routing import URLRouter
from channels.testing import WebsocketCommunicator

from chat.middleware import JWTAuthMiddleware
from chat.models import Message
from chat.routing import websocket_urlpatterns

pytestmark = [pytest.mark.asyncio, pytest.mark.django_db(transaction=True)]

application = JWTAuthMiddleware(URLRouter(websocket_urlpatterns))


@pytest.fixture
def user_token(user, access_token):
    return access_token(user)


@pytest.fixture
def admin_token(admin_user, access_token):
    return access_token(admin_user)


async def open_chat(token, **kwargs):
    """Connect and consume the contacts and messages frames sent on connect."""
    communicator = WebsocketCommunicator(application, f"/ws/chat/?token={token}", **kwargs)
    connected, _ = await communicator.connect()
    assert connected is True

    contacts = await communicator.receive_json_from()
    assert contacts["type"] == "contacts"
    for _ in contacts["contacts"]:
        frame = await communicator.receive_json_from()
        assert frame["type"] == "messages"
    return communicator, contacts


async def select(communicator, contact_id):
    await communicator.send_json_to({"type": "select", "contact_id": contact_id})
    messages = await communicator.receive_json_from()
    contacts = await communicator.receive_json_from()
    return messages, contacts


# =============================================================================
# TestConnect
# =============================================================================


class TestConnect:
    """Tests for connection authentication and the initial frames."""

    async def test_rejects_missing_token(self):
        communicator = WebsocketCommunicator(application, "/ws/chat/")

        connected, _ = await communicator.connect()

        assert connected is False

    async def test_rejects_invalid_token(self):
        communicator = WebsocketCommunicator(application, "/ws/chat/?token=not-a-jwt")

        connected, _ = await communicator.connect()

        assert connected is False

    async def test_sends_contacts_and_history(self, admin_user, user, user_token, conversation):
        """
        A connected user immediately receives contacts and their messages.
        """
        communicator = WebsocketCommunicator(application, f"/ws/chat/?token={user_token}")
        connected, _ = await communicator.connect()
        assert connected is True

        contacts = await communicator.receive_json_from()
        messages = await communicator.receive_json_from()

        assert [c["id"] for c in contacts["contacts"]] == [admin_user.id]
        assert contacts["contacts"][0]["unread_count"] == 1
        assert messages["contact_id"] == admin_user.id
        assert [m["id"] for m in messages["messages"]] == [m.pk for m in conversation]

        await communicator.disconnect()

    async def test_accepts_token_as_subprotocol(self, admin_user, user, user_token):
        communicator = WebsocketCommunicator(
            application, "/ws/chat/", subprotocols=["jwt", user_token]
        )

        connected, subprotocol = await communicator.connect()

        assert connected is True
        assert subprotocol == "jwt"
        await communicator.disconnect()


# =============================================================================
# TestMessaging
# =============================================================================


class TestMessaging:
    """Tests for selecting, sending and receiving."""

    async def test_select_returns_conversation(self, admin_user, user, user_token, conversation):
        communicator, _ = await open_chat(user_token)

        messages, contacts = await select(communicator, admin_user.id)

        assert messages["contact_id"] == admin_user.id
        assert len(messages["messages"]) == 3
        assert contacts["contacts"][0]["unread_count"] == 0
        await communicator.disconnect()

    async def test_message_reaches_both_participants(self, admin_user, user, user_token, admin_token):
        """
        A message sent over the socket is stored and pushed to both sides.

        Why it matters: This is the realtime path of the whole product.
        """
        user_socket, _ = await open_chat(user_token)
        admin_socket, _ = await open_chat(admin_token)
        await select(user_socket, admin_user.id)

        await user_socket.send_json_to({"type": "message", "content": "Hello admin"})

        echoed = await user_socket.receive_json_from()
        received = await admin_socket.receive_json_from()

        assert echoed["type"] == "message"
        assert echoed["action"] == "insert"
        assert echoed["message"]["content"] == "Hello admin"
        assert received["message"]["id"] == echoed["message"]["id"]
        assert received["contact"]["id"] == user.id
        assert received["contact"]["unread_count"] == 1
        assert received["contact"]["last_message"] == "Hello admin"

        await user_socket.disconnect()
        await admin_socket.disconnect()

    async def test_message_without_selection_is_an_error(self, admin_user, user, user_token):
        communicator, _ = await open_chat(user_token)

        await communicator.send_json_to({"type": "message", "content": "Hi"})
        error = await communicator.receive_json_from()

        assert error == {
            "type": "error",
            "message": "No recipient selected",
            "error_code": "NO_RECIPIENT",
        }
        await communicator.disconnect()

    async def test_blank_message_is_an_error(self, admin_user, user, user_token):
        communicator, _ = await open_chat(user_token)
        await select(communicator, admin_user.id)

        await communicator.send_json_to({"type": "message", "content": "   "})
        error = await communicator.receive_json_from()

        assert error["error_code"] == "EMPTY_MESSAGE"
        await communicator.disconnect()

    async def test_malformed_message_frame_keeps_connection_open(
        self, admin_user, user, user_token
    ):
        """
        Non-string content or file_url is reported, not raised.

        Why it matters: An exception escaping receive_json tears down the
        socket, and the client loses its session instead of retrying.
        """
        communicator, _ = await open_chat(user_token)
        await select(communicator, admin_user.id)

        await communicator.send_json_to({"type": "message", "content": {"text": "Hi"}})
        first = await communicator.receive_json_from()
        await communicator.send_json_to(
            {"type": "message", "content": "", "file_url": ["https://cdn.example.com/a.png"]}
        )
        second = await communicator.receive_json_from()
        await communicator.send_json_to({"type": "message", "content": "Hi", "file_url": None})
        sent = await communicator.receive_json_from()

        assert first == {"type": "error", "message": "Invalid payload", "error_code": "INVALID_PAYLOAD"}
        assert second["error_code"] == "INVALID_PAYLOAD"
        assert sent["type"] == "message"
        assert sent["message"]["content"] == "Hi"
        await communicator.disconnect()

        assert await Message.objects.filter(sender=user).acount() == 1

    async def test_select_non_contact_is_an_error(self, admin_user, user, other_user, user_token):
        communicator, _ = await open_chat(user_token)

        await communicator.send_json_to({"type": "select", "contact_id": other_user.id})
        error = await communicator.receive_json_from()

        assert error["error_code"] == "NOT_A_CONTACT"
        await communicator.disconnect()

    async def test_unknown_frame_keeps_connection_open(self, admin_user, user, user_token):
        communicator, _ = await open_chat(user_token)

        await communicator.send_json_to({"type": "dance"})
        error = await communicator.receive_json_from()
        await communicator.send_json_to({"type": "message", "content": "still here"})
        second = await communicator.receive_json_from()

        assert error["error_code"] == "UNKNOWN_TYPE"
        assert second["error_code"] == "NO_RECIPIENT"
        await communicator.disconnect()

    async def test_read_frame_marks_messages(self, admin_user, user, admin_token, conversation):
        communicator, _ = await open_chat(admin_token)
        unread = conversation[0]

        await communicator.send_json_to({"type": "read", "message_ids": [unread.pk]})
        update = await communicator.receive_json_from()

        assert update["type"] == "message"
        assert update["action"] == "update"
        assert update["message"]["id"] == unread.pk
        assert update["message"]["is_read"] is True
        assert update["contact"]["unread_count"] == 0
        await communicator.disconnect()

        assert await Message.objects.filter(pk=unread.pk, is_read=True).aexists()

    async def test_malformed_read_frame_is_an_error(self, admin_user, user, admin_token):
        communicator, _ = await open_chat(admin_token)

        await communicator.send_json_to({"type": "read", "message_ids": ["x"]})
        error = await communicator.receive_json_from()

        assert error["error_code"] == "INVALID_PAYLOAD"
        await communicator.disconnect()


# =============================================================================
# TestTyping
# =============================================================================


class TestTyping:
    """Tests for typing indicators."""

    async def test_typing_is_forwarded_to_the_contact(self, admin_user, user, user_token, admin_token):
        user_socket, _ = await open_chat(user_token)
        admin_socket, _ = await open_chat(admin_token)
        await select(user_socket, admin_user.id)

        await user_socket.send_json_to({"type": "typing", "is_typing": True})
        typing = await admin_socket.receive_json_from()

        assert typing == {"type": "typing", "contact_id": user.id, "is_typing": True}
        assert await user_socket.receive_nothing()

        await user_socket.disconnect()
        await admin_socket.disconnect()
