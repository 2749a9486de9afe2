"""
WebSocket consumers for the chat application.

Each client opens one connection and gets a ChatSession holding its
contacts and conversations. The consumer joins the channel group of its
own user, so the change feed (chat.signals) and typing notifications
reach every open tab of a user.

Authentication:
    JWT access token via query parameter or subprotocol.
    chat.middleware.JWTAuthMiddleware attaches the user to scope["user"].

Message Types (from client):
    - select: {"type": "select", "contact_id": 2}
    - message: {"type": "message", "content": "Hi", "message_type": "text", "file_url": null}
    - typing: {"type": "typing", "is_typing": true}
    - read: {"type": "read", "message_ids": [1, 2]}

Message Types (to client):
    - contacts: {"type": "contacts", "contacts": [...]}
    - messages: {"type": "messages", "contact_id": 2, "messages": [...]}
    - message: {"type": "message", "action": "insert"|"update", "message": {...}, "contact": {...}}
    - typing: {"type": "typing", "contact_id": 2, "is_typing": true}
    - error: {"type": "error", "message": "...", "error_code": "..."}
"""

from __future__ import annotations

import asyncio
import logging

from channels.db import database_sync_to_async
from channels.generic.websocket import AsyncJsonWebsocketConsumer

from core.exceptions import BaseApplicationError
from chat.constants import REALTIME_CONFIG, user_group_name
from chat.middleware import JWT_SUBPROTOCOL
from chat.serializers import SendMessageSerializer
from chat.session import ChatSession
from chat.store import MessageStore

logger = logging.getLogger(__name__)


class ChatConsumer(AsyncJsonWebsocketConsumer):
    """
    WebSocket consumer for real-time chat.

    Handles:
        - Connection authentication
        - Joining/leaving the user's channel group
        - Contact selection and message history
        - Sending messages and read receipts
        - Typing indicators

    Attributes:
        session: ChatSession of the connected user (after connect)
        group_name: Channel layer group of the connected user
    """

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.session: ChatSession | None = None
        self.group_name: str | None = None

    @property
    def user(self):
        return self.scope.get("user")

    async def connect(self):
        """
        Handle WebSocket connection.

        Unauthenticated connections are closed with code 4001. Otherwise
        the consumer joins the user's group, accepts, and sends the
        contact list followed by one "messages" frame per contact.
        """
        user = self.user
        if user is None or not user.is_authenticated:
            logger.warning("Rejected unauthenticated WebSocket connection")
            await self.close(code=REALTIME_CONFIG.CLOSE_UNAUTHENTICATED)
            return

        self.session = ChatSession(
            user,
            MessageStore(),
            on_typing_change=self._on_typing_cleared,
        )
        self.group_name = user_group_name(user.id)
        await self.channel_layer.group_add(self.group_name, self.channel_name)

        subprotocols = self.scope.get("subprotocols") or []
        subprotocol = JWT_SUBPROTOCOL if JWT_SUBPROTOCOL in subprotocols else None
        await self.accept(subprotocol=subprotocol)
        logger.info(f"User {user.id} connected to chat")

        try:
            await database_sync_to_async(self.session.load)()
        except BaseApplicationError as e:
            await self.send_error(e.message, e.error_code)
            return

        await self.send_contacts()
        for contact in self.session.contacts:
            await self.send_messages(contact.id)

    async def disconnect(self, close_code):
        """Close the session and leave the user's group."""
        if self.session is not None:
            self.session.close()
        if self.group_name:
            await self.channel_layer.group_discard(self.group_name, self.channel_name)
            logger.info(f"User {self.user.id} disconnected from chat ({close_code})")

    async def receive_json(self, content, **kwargs):
        """
        Dispatch a client frame.

        Errors never close the connection; they are reported as
        {"type": "error"} frames.
        """
        if not isinstance(content, dict):
            await self.send_error("Invalid payload", "INVALID_PAYLOAD")
            return

        handlers = {
            "select": self._handle_select,
            "message": self._handle_message,
            "typing": self._handle_typing,
            "read": self._handle_read,
        }
        frame_type = content.get("type")
        handler = handlers.get(frame_type)
        if handler is None:
            await self.send_error(f"Unknown message type: {frame_type}", "UNKNOWN_TYPE")
            return

        try:
            await handler(content)
        except BaseApplicationError as e:
            await self.send_error(e.message, e.error_code)
        except (TypeError, ValueError) as e:
            logger.warning(f"Malformed {frame_type} frame from user {self.user.id}: {e}")
            await self.send_error("Invalid payload", "INVALID_PAYLOAD")

    # =========================================================================
    # Client frames
    # =========================================================================

    async def _handle_select(self, content):
        contact = await database_sync_to_async(self.session.select_contact)(
            content.get("contact_id")
        )
        if contact is None:
            await self.send_error("Unknown contact", "NOT_A_CONTACT")
            return
        await self.send_messages(contact.id)
        await self.send_contacts()

    async def _handle_message(self, content):
        if self.session.selected_id is None:
            await self.send_error("No recipient selected", "NO_RECIPIENT")
            return

        # Null fields fall back to the serializer defaults
        serializer = SendMessageSerializer(
            data={key: value for key, value in content.items() if value is not None}
        )
        if not serializer.is_valid():
            logger.warning(f"Invalid message frame from user {self.user.id}: {serializer.errors}")
            await self.send_error("Invalid payload", "INVALID_PAYLOAD")
            return

        data = serializer.validated_data
        result = await database_sync_to_async(self.session.send_message)(
            data["content"],
            message_type=data["message_type"],
            file_url=data["file_url"],
        )
        if result is None:
            await self.send_error("Message content cannot be empty", "EMPTY_MESSAGE")
        elif not result.success:
            await self.send_error(result.error, result.error_code)
        # Successful sends reach every tab through chat_event

    async def _handle_typing(self, content):
        contact_id = self.session.selected_id
        if contact_id is None:
            return

        is_typing = bool(content.get("is_typing"))
        self.session.set_typing(is_typing)
        await self.channel_layer.group_send(
            user_group_name(contact_id),
            {
                "type": REALTIME_CONFIG.TYPING_EVENT,
                "user_id": self.user.id,
                "is_typing": is_typing,
            },
        )

    async def _handle_read(self, content):
        message_ids = [int(i) for i in content.get("message_ids") or []]
        result = await database_sync_to_async(self.session.mark_as_read)(message_ids)
        if not result.success:
            await self.send_error(result.error, result.error_code)

    # =========================================================================
    # Channel layer events
    # =========================================================================

    async def chat_event(self, event):
        """
        Handle chat.event messages (message inserts and updates).

        Events outside the user's conversations are dropped.
        """
        if self.session is None:
            return

        applied = await database_sync_to_async(self.session.apply_event)(event)
        if not applied:
            return

        message = event["message"]
        contact_id = (
            message["recipient_id"]
            if message["sender_id"] == self.user.id
            else message["sender_id"]
        )
        contact = self.session.get_contact(contact_id)
        await self.send_json(
            {
                "type": "message",
                "action": event["action"],
                "message": message,
                "contact": contact.to_dict() if contact else None,
            }
        )

    async def chat_typing(self, event):
        """Handle chat.typing messages from the other participant."""
        if self.session is None or event["user_id"] == self.user.id:
            return
        if self.session.receive_typing(event["user_id"], event["is_typing"]):
            await self.send_typing(event["user_id"], event["is_typing"])

    # =========================================================================
    # Outgoing frames
    # =========================================================================

    async def send_contacts(self):
        await self.send_json(
            {
                "type": "contacts",
                "contacts": [c.to_dict() for c in self.session.contacts],
            }
        )

    async def send_messages(self, contact_id):
        await self.send_json(
            {
                "type": "messages",
                "contact_id": contact_id,
                "messages": [m.to_dict() for m in self.session.messages.get(contact_id, [])],
            }
        )

    async def send_typing(self, contact_id, is_typing: bool):
        await self.send_json(
            {"type": "typing", "contact_id": contact_id, "is_typing": is_typing}
        )

    async def send_error(self, message: str, error_code: str | None = None):
        await self.send_json(
            {"type": "error", "message": message, "error_code": error_code}
        )

    def _on_typing_cleared(self, contact_id, is_typing):
        # Runs from a loop timer, outside any coroutine
        asyncio.ensure_future(self.send_typing(contact_id, is_typing))
