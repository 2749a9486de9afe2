"""
Chat models.

This module defines the single persisted chat entity:
- Message: A direct message between two users (one of them the admin)

Conversations are not stored. A conversation is identified by the
conversation_key of its two participants, which every Message carries.

Related files:
    - resolver.py: conversation_key() and contact derivation
    - store.py: MessageStore, the only writer of messages
    - signals.py: Change feed emitted on save
"""

from django.conf import settings
from django.db import models

from core.models import BaseModel
from chat.constants import MESSAGE_CONFIG
from chat.resolver import conversation_key


class Message(BaseModel):
    """
    A direct message.

    Fields:
        sender: User who wrote the message
        recipient: User the message is addressed to
        conversation_key: Order-independent key of the participant pair
        content: Trimmed text ("Attachment" for file-only messages)
        message_type: text, image, file or video
        file_url: URL of an already-hosted attachment (optional)
        is_read: Whether the recipient has read it (only goes false -> true)
        read_at: When it was marked read
        created_at: Message timestamp (from BaseModel)

    Ordering:
        Chronological, with the auto-increment id breaking ties between
        messages stored within the same timestamp.

    Note:
        file_url is a CharField, not a URLField, because clients may send
        blob or object-storage URLs that URL validation rejects.
    """

    class MessageType(models.TextChoices):
        """Kinds of message content."""

        TEXT = "text", "Text"
        IMAGE = "image", "Image"
        FILE = "file", "File"
        VIDEO = "video", "Video"

    sender = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="sent_messages",
        help_text="User who sent this message",
    )
    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="received_messages",
        help_text="User this message is addressed to",
    )
    conversation_key = models.CharField(
        max_length=64,
        db_index=True,
        editable=False,
        help_text="Participant pair key, identical for both directions",
    )
    content = models.TextField(
        blank=True,
        help_text="Message text",
    )
    message_type = models.CharField(
        max_length=10,
        choices=MessageType.choices,
        default=MessageType.TEXT,
        help_text="Kind of content",
    )
    file_url = models.CharField(
        max_length=MESSAGE_CONFIG.MAX_FILE_URL_LENGTH,
        blank=True,
        help_text="URL of the attached file, if any",
    )
    is_read = models.BooleanField(
        default=False,
        help_text="Whether the recipient has read this message",
    )
    read_at = models.DateTimeField(
        null=True,
        blank=True,
        help_text="When the recipient read this message",
    )

    class Meta:
        db_table = "chat_message"
        ordering = ["created_at", "id"]
        indexes = [
            models.Index(
                fields=["conversation_key", "created_at"],
                name="chat_msg_conv_created_idx",
            ),
            models.Index(
                fields=["recipient", "is_read"],
                name="chat_msg_recipient_read_idx",
            ),
        ]

    def __str__(self):
        return f"Message {self.pk} from {self.sender_id} to {self.recipient_id}"

    def save(self, *args, **kwargs):
        self.conversation_key = conversation_key(self.sender_id, self.recipient_id)
        update_fields = kwargs.get("update_fields")
        if update_fields is not None and "conversation_key" not in update_fields:
            kwargs["update_fields"] = [*update_fields, "conversation_key"]
        super().save(*args, **kwargs)
