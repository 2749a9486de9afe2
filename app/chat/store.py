"""
Message store.

MessageStore is the only component that reads and writes chat messages.
Every query is scoped to the viewer (sender = me OR recipient = me) and
to the contacts chat.resolver allows, so a third party never sees a
conversation it is not part of.

Design Principles:
    - One instance per caller; the user directory is injected
    - Expected failures return ServiceResult.failure()
    - Database failures surface as BACKEND_FAILURE
    - Changes are published through chat.signals

Usage:
    from chat.store import MessageStore

    store = MessageStore()
    result = store.send_message(sender=user, recipient=admin, content="Hi")
    if result.success:
        message = result.data

    grouped = store.fetch_messages(user)   # {admin.id: [Message, ...]}

    unsubscribe = store.subscribe(lambda event: print(event.action))
    ...
    unsubscribe()
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.db import DatabaseError
from django.db.models import Q
from django.utils import timezone

from core.exceptions import PermissionDeniedError
from core.services import BaseService, ServiceResult
from authentication.exceptions import BackendFailureError
from authentication.services import UserDirectory
from chat.constants import MESSAGE_CONFIG
from chat.models import Message
from chat.resolver import (
    Contact,
    build_contacts,
    conversation_key,
    counterpart_id,
    resolve_contacts,
)
from chat.signals import MessageEvent, message_changed, publish_message_event

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from django.db.models import QuerySet

    from authentication.models import User

__all__ = ["MessageEvent", "MessageStore", "NotAContactError"]


class NotAContactError(PermissionDeniedError):
    """Raised when a user addresses someone outside their contacts."""

    default_error_code = "NOT_A_CONTACT"

    def __init__(self, message="You cannot message this user", **kwargs):
        super().__init__(message, **kwargs)


class MessageStore(BaseService):
    """
    Persistence and change feed for direct messages.

    Args:
        directory: Source of the user list used for contact resolution
            (defaults to UserDirectory())

    Methods:
        list_users: Users known to the directory
        contacts: Contacts of a user with previews and unread counts
        fetch_messages: All visible messages grouped by contact
        fetch_conversation: Queryset of one conversation
        send_message: Validate and store a message
        mark_as_read: Mark messages addressed to the reader as read
        mark_conversation_read: Mark everything from one contact as read
        subscribe: Receive MessageEvents for every change
    """

    def __init__(self, directory: UserDirectory | None = None):
        self.directory = directory or UserDirectory()

    # =========================================================================
    # Reads
    # =========================================================================

    def list_users(self) -> list[User]:
        return self.directory.list_users()

    def contacts(self, user: User, users: Iterable[User] | None = None) -> list[Contact]:
        """
        Return user's contacts with last message and unread count.

        Args:
            user: The viewer
            users: Pre-fetched user list (fetched from the directory if None)
        """
        users = self.list_users() if users is None else list(users)
        grouped = self._visible_messages(user, resolve_contacts(user, users))
        messages = [m for conversation in grouped.values() for m in conversation]
        return build_contacts(user, users, messages)

    def fetch_messages(
        self,
        user: User,
        users: Iterable[User] | None = None,
    ) -> dict[int, list[Message]]:
        """
        Return every message the user may see, grouped by contact id.

        Every contact has an entry (possibly empty). Each list is in
        chronological order (created_at, then id).

        Raises:
            BackendFailureError: If the database query fails
        """
        users = self.list_users() if users is None else list(users)
        return self._visible_messages(user, resolve_contacts(user, users))

    def fetch_conversation(self, user: User, contact_id) -> QuerySet[Message]:
        """
        Return the conversation between user and one contact.

        Raises:
            NotAContactError: If contact_id is not one of user's contacts
        """
        contact = self._require_contact(user, contact_id)
        return (
            Message.objects.filter(conversation_key=conversation_key(user.id, contact.id))
            .filter(Q(sender=user) | Q(recipient=user))
            .order_by("created_at", "id")
        )

    # =========================================================================
    # Writes
    # =========================================================================

    def send_message(
        self,
        sender: User,
        recipient,
        content: str,
        message_type: str = Message.MessageType.TEXT,
        file_url: str | None = None,
    ) -> ServiceResult[Message]:
        """
        Validate and store a message.

        Content is stored trimmed. A message with a file but no text gets
        the "Attachment" placeholder as content.

        Args:
            sender: Author
            recipient: Recipient user (or user id); None is rejected
            content: Message text
            message_type: text, image, file or video
            file_url: URL of an already-hosted attachment

        Returns:
            ServiceResult with the created Message

        Error codes:
            NO_RECIPIENT: No recipient given
            INVALID_MESSAGE_TYPE: Unknown message_type
            EMPTY_MESSAGE: Blank content and no file
            NOT_A_CONTACT: Recipient is not visible to the sender
            BACKEND_FAILURE: Database failure
        """
        if recipient is None:
            return ServiceResult.failure("No recipient selected", error_code="NO_RECIPIENT")

        if message_type not in Message.MessageType.values:
            return ServiceResult.failure(
                f"Unsupported message type: {message_type}",
                error_code="INVALID_MESSAGE_TYPE",
            )

        content = (content or "").strip()
        file_url = (file_url or "").strip()
        if not content and not file_url:
            return ServiceResult.failure(
                "Message content cannot be empty",
                error_code="EMPTY_MESSAGE",
            )
        if not content:
            content = MESSAGE_CONFIG.ATTACHMENT_PLACEHOLDER

        try:
            contact = self._require_contact(sender, getattr(recipient, "id", recipient))
            with self.atomic():
                message = Message.objects.create(
                    sender_id=sender.id,
                    recipient_id=contact.id,
                    content=content,
                    message_type=message_type,
                    file_url=file_url,
                )
        except NotAContactError as e:
            self.get_logger().warning(
                f"User {sender.id} tried to message non-contact {getattr(recipient, 'id', recipient)}"
            )
            return ServiceResult.from_error(e)
        except BackendFailureError as e:
            return ServiceResult.from_error(e)
        except DatabaseError:
            self.get_logger().exception("Failed to store message")
            return ServiceResult.from_error(BackendFailureError())

        self.get_logger().info(
            f"Message {message.id} sent from {sender.id} to {contact.id}",
            extra={"message_type": message_type},
        )
        return ServiceResult.success(message)

    def mark_as_read(self, message_ids: Iterable[int], reader: User) -> ServiceResult[list[int]]:
        """
        Mark messages addressed to reader as read.

        Idempotent: messages already read, sent by the reader, or
        addressed to someone else are left untouched. One update event
        is published per message that actually changed.

        Returns:
            ServiceResult with the ids that changed (ascending)

        Error codes:
            BACKEND_FAILURE: Database failure
        """
        ids = sorted({int(i) for i in message_ids})
        if not ids:
            return ServiceResult.success([])

        try:
            with self.atomic():
                candidates = Message.objects.select_for_update().filter(
                    id__in=ids, recipient=reader, is_read=False
                )
                changed = list(candidates.values_list("id", flat=True))
                if changed:
                    now = timezone.now()
                    Message.objects.filter(id__in=changed).update(
                        is_read=True, read_at=now, updated_at=now
                    )
                    for message in Message.objects.filter(id__in=changed).order_by("id"):
                        publish_message_event(
                            MessageEvent(action=MessageEvent.UPDATE, message=message)
                        )
        except DatabaseError:
            self.get_logger().exception("Failed to mark messages as read")
            return ServiceResult.from_error(BackendFailureError())

        if changed:
            self.get_logger().debug(f"User {reader.id} read messages {changed}")
        return ServiceResult.success(sorted(changed))

    def mark_conversation_read(self, reader: User, contact_id) -> ServiceResult[list[int]]:
        """
        Mark every unread message from one contact to reader as read.

        Error codes:
            NOT_A_CONTACT, BACKEND_FAILURE
        """
        try:
            contact = self._require_contact(reader, contact_id)
            unread = Message.objects.filter(
                sender_id=contact.id, recipient=reader, is_read=False
            ).values_list("id", flat=True)
            ids = list(unread)
        except (NotAContactError, BackendFailureError) as e:
            return ServiceResult.from_error(e)
        except DatabaseError:
            self.get_logger().exception("Failed to load unread messages")
            return ServiceResult.from_error(BackendFailureError())
        return self.mark_as_read(ids, reader)

    # =========================================================================
    # Change feed
    # =========================================================================

    def subscribe(self, callback: Callable[[MessageEvent], None]) -> Callable[[], None]:
        """
        Call callback with a MessageEvent for every message insert/update.

        Returns:
            A function that stops the subscription (safe to call twice)
        """

        def handler(sender, event, **kwargs):
            callback(event)

        message_changed.connect(handler, sender=Message, weak=False)

        def unsubscribe():
            message_changed.disconnect(handler, sender=Message)

        return unsubscribe

    # =========================================================================
    # Helpers
    # =========================================================================

    def _require_contact(self, user: User, contact_id) -> Contact:
        contacts = resolve_contacts(user, self.list_users())
        for contact in contacts:
            if str(contact.id) == str(contact_id):
                return contact
        raise NotAContactError()

    def _visible_messages(self, user: User, contacts: list[Contact]) -> dict[int, list[Message]]:
        grouped: dict[int, list[Message]] = {c.id: [] for c in contacts}
        if not grouped:
            return grouped

        contact_ids = list(grouped)
        queryset = Message.objects.filter(
            Q(sender=user, recipient_id__in=contact_ids)
            | Q(recipient=user, sender_id__in=contact_ids)
        ).order_by("created_at", "id")

        try:
            for message in queryset:
                grouped[counterpart_id(user.id, message)].append(message)
        except DatabaseError as e:
            self.get_logger().error(f"Failed to load messages: {e}", exc_info=True)
            raise BackendFailureError() from e
        return grouped
