"""
Serializers for chat API.

This module provides serializers for the chat system:
- MessageSerializer: Message as sent to REST and WebSocket clients
- SendMessageSerializer: Validates a new message
- MarkReadSerializer: Validates message ids to mark as read
- ContactSerializer: Derived contact with preview and unread count

Design Decisions:
    - Read and write serializers are separate for clarity
    - Participants are exposed as ids; clients already hold the user list
    - Non-empty content is enforced by MessageStore, because a message may
      be an attachment with no text at all
"""

from __future__ import annotations

from rest_framework import serializers

from chat.constants import MESSAGE_CONFIG
from chat.models import Message


class MessageSerializer(serializers.ModelSerializer):
    """
    Serializer for Message (read operations).

    The same representation is pushed through the change feed, so
    WebSocket and REST clients see identical payloads.
    """

    sender_id = serializers.IntegerField(read_only=True)
    recipient_id = serializers.IntegerField(read_only=True)

    class Meta:
        model = Message
        fields = [
            "id",
            "sender_id",
            "recipient_id",
            "conversation_key",
            "content",
            "message_type",
            "file_url",
            "is_read",
            "read_at",
            "created_at",
        ]
        read_only_fields = fields


class SendMessageSerializer(serializers.Serializer):
    """
    Serializer for sending a message.

    Example:
        {"content": "Hi", "message_type": "text"}
        {"content": "", "message_type": "image", "file_url": "https://..."}
    """

    content = serializers.CharField(
        allow_blank=True,
        required=False,
        default="",
        trim_whitespace=False,
        max_length=MESSAGE_CONFIG.MAX_CONTENT_LENGTH,
    )
    message_type = serializers.CharField(required=False, default=Message.MessageType.TEXT)
    file_url = serializers.CharField(
        allow_blank=True,
        required=False,
        default="",
        max_length=MESSAGE_CONFIG.MAX_FILE_URL_LENGTH,
    )


class MarkReadSerializer(serializers.Serializer):
    """Message ids to mark as read."""

    message_ids = serializers.ListField(child=serializers.IntegerField(min_value=1))


class ContactSerializer(serializers.Serializer):
    """Serializer for chat.resolver.Contact."""

    id = serializers.IntegerField()
    name = serializers.CharField()
    email = serializers.EmailField()
    avatar = serializers.CharField(allow_blank=True)
    is_admin = serializers.BooleanField()
    last_message = serializers.CharField(allow_blank=True)
    last_message_time = serializers.DateTimeField(allow_null=True)
    unread_count = serializers.IntegerField()
    is_online = serializers.BooleanField()
    is_typing = serializers.BooleanField()


class MarkedReadSerializer(serializers.Serializer):
    """Response body for read endpoints."""

    message_ids = serializers.ListField(child=serializers.IntegerField())
