"""
Conversation resolution.

Pure functions deciding who may talk to whom and how contacts are
summarized. Nothing here touches the database: callers pass users and
messages in, so the same rules serve the REST views, the WebSocket
session and the tests.

Topology:
    - The admin sees every other user as a contact.
    - A standard user sees exactly one contact, the admin (or none
      before an admin exists).

Users are any objects with id, name, email, avatar and is_admin.
Messages are any objects with id, sender_id, recipient_id, content,
message_type, is_read and created_at (Message rows or session snapshots).
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import TYPE_CHECKING

from django.conf import settings

from chat.constants import MESSAGE_CONFIG, PREVIEW_CONFIG

if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime
    from typing import Any


@dataclass
class Contact:
    """
    A chat partner as shown in the contact list.

    Attributes:
        id: User id of the contact
        name: Display name
        email: Email address
        avatar: Avatar URL
        is_admin: Whether the contact is the admin
        last_message: Preview of the latest message in the conversation
        last_message_time: Timestamp of that message
        unread_count: Messages from this contact not yet read by the viewer
        is_online: Always True (presence is not tracked)
        is_typing: Transient typing indicator
    """

    id: int
    name: str
    email: str
    avatar: str = ""
    is_admin: bool = False
    last_message: str = ""
    last_message_time: datetime | None = None
    unread_count: int = 0
    is_online: bool = True
    is_typing: bool = False

    @classmethod
    def from_user(cls, user) -> Contact:
        return cls(
            id=user.id,
            name=user.name,
            email=user.email,
            avatar=user.avatar or "",
            is_admin=user.is_admin,
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        if self.last_message_time is not None:
            data["last_message_time"] = self.last_message_time.isoformat()
        return data


def conversation_key(id_a, id_b) -> str:
    """
    Return the key shared by both directions of a conversation.

    The two ids are compared as strings, so conversation_key(2, 10) is
    "10_2". Both argument orders give the same key.
    """
    return "_".join(sorted([str(id_a), str(id_b)]))


def resolve_contacts(current_user, all_users: Iterable) -> list[Contact]:
    """
    Return the contacts visible to current_user.

    Args:
        current_user: The viewer
        all_users: Every registered user (may include the viewer)

    Returns:
        Admin viewer: every other user, in the given order.
        Standard viewer: [admin], or [] when there is no admin.
    """
    others = [u for u in all_users if u.id != current_user.id]
    if current_user.is_admin:
        return [Contact.from_user(u) for u in others]

    admin = next((u for u in others if u.is_admin), None)
    return [Contact.from_user(admin)] if admin else []


def is_contact(current_user, other, all_users: Iterable) -> bool:
    """
    Return whether current_user may exchange messages with other.

    Args:
        other: A user or a user id
    """
    other_id = getattr(other, "id", other)
    if other_id is None:
        return False
    return any(
        str(c.id) == str(other_id) for c in resolve_contacts(current_user, all_users)
    )


def counterpart_id(user_id, message):
    """
    Return the other participant of a message from user_id's point of view.

    Returns:
        The counterpart id, or None when user_id took no part in the message
    """
    if message.sender_id == user_id:
        return message.recipient_id
    if message.recipient_id == user_id:
        return message.sender_id
    return None


def preview_text(content: str, message_type: str = "text", length: int | None = None) -> str:
    """
    Return the contact-list preview for a message.

    Attachment-only messages (blank content or the "Attachment"
    placeholder) on image/file/video messages render as "Image sent",
    "File sent" or "Video sent". Longer text is cut to `length`
    characters followed by "...".

    Args:
        content: Stored message content
        message_type: text, image, file or video
        length: Preview length (defaults to CHAT_PREVIEW_LENGTH)
    """
    if length is None:
        length = getattr(settings, "CHAT_PREVIEW_LENGTH", PREVIEW_CONFIG.DEFAULT_LENGTH)

    content = content or ""
    label = PREVIEW_CONFIG.ATTACHMENT_LABELS.get(message_type)
    if label and content.strip() in ("", MESSAGE_CONFIG.ATTACHMENT_PLACEHOLDER):
        return label

    if len(content) > length:
        return content[:length] + PREVIEW_CONFIG.ELLIPSIS
    return content


def _sort_key(message):
    return (message.created_at, message.id)


def build_contacts(current_user, all_users: Iterable, messages: Iterable) -> list[Contact]:
    """
    Resolve contacts and fill in their conversation summaries.

    For each contact, last_message / last_message_time come from the
    newest message of the conversation and unread_count counts messages
    from the contact to current_user that are not read yet. Messages
    outside the viewer's conversations are ignored.

    Returns:
        Contacts in resolve_contacts() order
    """
    contacts = resolve_contacts(current_user, all_users)
    by_id = {c.id: c for c in contacts}
    latest = {}

    for message in messages:
        other = counterpart_id(current_user.id, message)
        contact = by_id.get(other)
        if contact is None:
            continue

        if other not in latest or _sort_key(message) > _sort_key(latest[other]):
            latest[other] = message
        if message.sender_id == other and not message.is_read:
            contact.unread_count += 1

    for contact_id, message in latest.items():
        contact = by_id[contact_id]
        contact.last_message = preview_text(message.content, message.message_type)
        contact.last_message_time = message.created_at

    return contacts
