"""
Message change feed.

Every insert or update of a Message is published twice:
- In process, through the message_changed signal (MessageStore.subscribe)
- Across processes, after the transaction commits, as a "chat.event"
  sent to the channel groups of the sender and the recipient

Bulk updates bypass post_save; callers that use them (MessageStore.
mark_as_read) publish through publish_message_event() themselves.

Related files:
    - store.py: MessageStore.subscribe()
    - consumers.py: ChatConsumer.chat_event() receives the group messages
    - apps.py: Signal import in ready()
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from asgiref.sync import async_to_sync
from channels.layers import get_channel_layer
from django.db import transaction
from django.db.models.signals import post_save
from django.dispatch import Signal, receiver

from chat.constants import REALTIME_CONFIG, user_group_name
from chat.models import Message

if TYPE_CHECKING:
    from typing import Any

logger = logging.getLogger(__name__)

# Sent with event=MessageEvent for every message insert/update
message_changed = Signal()


@dataclass(frozen=True)
class MessageEvent:
    """
    One change on the message table.

    Attributes:
        action: "insert" or "update"
        message: The message after the change
    """

    action: str
    message: Any

    INSERT = "insert"
    UPDATE = "update"


def message_payload(message: Message) -> dict:
    """Serialize a message for the channel layer (plain JSON types only)."""
    from chat.serializers import MessageSerializer

    return dict(MessageSerializer(message).data)


def publish_message_event(event: MessageEvent) -> None:
    """
    Publish a change to in-process subscribers and, on commit, to clients.

    Subscribers see the event immediately; channel groups only after the
    surrounding transaction commits, so clients never receive rows that
    could still roll back.
    """
    message_changed.send(sender=Message, event=event)
    transaction.on_commit(lambda: broadcast_message_event(event))


def broadcast_message_event(event: MessageEvent) -> None:
    """Send a chat.event to both participants' channel groups."""
    layer = get_channel_layer()
    if layer is None:
        return

    message = event.message
    payload = {
        "type": REALTIME_CONFIG.MESSAGE_EVENT,
        "action": event.action,
        "message": message_payload(message),
    }
    for user_id in {message.sender_id, message.recipient_id}:
        try:
            async_to_sync(layer.group_send)(user_group_name(user_id), payload)
        except Exception:  # noqa: BLE001 - delivery loss must not fail the commit
            logger.exception(
                f"Failed to broadcast message {message.id} to user {user_id}"
            )


@receiver(post_save, sender=Message)
def on_message_saved(sender, instance, created, raw=False, **kwargs):
    """
    Publish inserts and updates of a Message.

    Args:
        sender: The Message model class
        instance: The saved Message
        created: True for inserts
        raw: True while loading fixtures (nothing is published)
    """
    if raw:
        return
    action = MessageEvent.INSERT if created else MessageEvent.UPDATE
    logger.debug(f"Message {instance.id} {action}")
    publish_message_event(MessageEvent(action=action, message=instance))
