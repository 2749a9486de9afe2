"""
Django admin configuration for chat models.

Provides an admin interface for message moderation.
"""

from django.contrib import admin

from chat.models import Message


@admin.register(Message)
class MessageAdmin(admin.ModelAdmin):
    """Admin interface for Message model."""

    list_display = [
        "id",
        "sender",
        "recipient",
        "message_type",
        "content_preview",
        "is_read",
        "created_at",
    ]
    list_filter = ["message_type", "is_read", "created_at"]
    search_fields = ["content", "sender__email", "recipient__email"]
    readonly_fields = ["conversation_key", "read_at", "created_at", "updated_at"]
    raw_id_fields = ["sender", "recipient"]
    date_hierarchy = "created_at"

    @admin.display(description="Content")
    def content_preview(self, obj):
        """Show the first 50 characters of content."""
        if len(obj.content) > 50:
            return f"{obj.content[:50]}..."
        return obj.content
