"""
Constants and configuration for the chat module.

This module centralizes configuration values for:
- Message content (types, placeholders, limits)
- Contact previews
- Realtime delivery (channel groups, event names, close codes)

Runtime-tunable values (typing timeout, preview length) live in Django
settings; the defaults here are used when a setting is absent.

Import example:
    from chat.constants import MESSAGE_CONFIG, REALTIME_CONFIG
"""

from typing import Final


# =============================================================================
# Message Configuration
# =============================================================================


class MESSAGE_CONFIG:
    """Configuration for message content."""

    # Content limits
    MAX_CONTENT_LENGTH: Final[int] = 10000  # Characters
    MAX_FILE_URL_LENGTH: Final[int] = 2048

    # Stored in place of blank content when only a file was sent
    ATTACHMENT_PLACEHOLDER: Final[str] = "Attachment"


# =============================================================================
# Preview Configuration
# =============================================================================


class PREVIEW_CONFIG:
    """Configuration for contact list previews."""

    DEFAULT_LENGTH: Final[int] = 30
    ELLIPSIS: Final[str] = "..."

    # Shown instead of the placeholder for attachment-only messages
    ATTACHMENT_LABELS: Final[dict] = {
        "image": "Image sent",
        "file": "File sent",
        "video": "Video sent",
    }


# =============================================================================
# Realtime Configuration
# =============================================================================


class REALTIME_CONFIG:
    """Configuration for the change feed and the WebSocket protocol."""

    # Every connected client joins the group of its own user
    USER_GROUP_PREFIX: Final[str] = "user_"

    # Channel layer event types (dots map to consumer handler names)
    MESSAGE_EVENT: Final[str] = "chat.event"
    TYPING_EVENT: Final[str] = "chat.typing"

    DEFAULT_TYPING_TIMEOUT_SECONDS: Final[float] = 3.0

    # WebSocket close codes
    CLOSE_UNAUTHENTICATED: Final[int] = 4001


def user_group_name(user_id) -> str:
    """Return the channel group name for a user."""
    return f"{REALTIME_CONFIG.USER_GROUP_PREFIX}{user_id}"
