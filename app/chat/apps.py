"""
Chat application configuration.

This app provides admin/user direct messaging with:
- Contact derivation (admin sees everyone, users see the admin)
- Messages with attachments, read receipts and typing indicators
- A realtime change feed over Django Channels
"""

from django.apps import AppConfig


class ChatConfig(AppConfig):
    """Configuration for the chat application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "chat"
    verbose_name = "Chat"

    def ready(self):
        """Connect the message change feed."""
        from chat import signals  # noqa: F401
