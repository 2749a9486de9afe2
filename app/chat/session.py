"""
Chat session state.

A ChatSession holds what one connected client sees: its contacts, the
messages of every conversation, the selected contact and the transient
typing flags. It is the reconciliation boundary between the client's own
actions and the change feed: both go through the same dedup-by-id logic,
so a message is never shown twice.

Threading:
    Methods that reach the store (load, select_contact, send_message,
    mark_as_read, apply_event) hit the database and must run in a
    synchronous context (database_sync_to_async from the consumer).
    Typing methods only touch memory and the scheduler; with the default
    scheduler they must be called from the event loop.

    The consumer awaits each worker-thread call before handling the next
    frame, but typing timers can fire on the loop while one is running.
    Timers only write Contact.is_typing and the timer tables. Worker
    calls write messages, previews, unread counts and selection, and
    load() rebinds the contacts list instead of mutating it. The two
    sides never write the same attribute of one object, so no lock is
    taken.

Usage:
    session = ChatSession(user, MessageStore())
    session.load()
    session.select_contact(admin.id)
    session.send_message("Hello")
    session.apply_event({"action": "insert", "message": payload})
    session.close()
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import asdict, dataclass
from datetime import datetime
from typing import TYPE_CHECKING

from django.conf import settings
from django.utils.dateparse import parse_datetime

from chat.constants import REALTIME_CONFIG
from chat.resolver import build_contacts, counterpart_id, preview_text

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable
    from typing import Any

    from authentication.models import User
    from chat.resolver import Contact
    from chat.store import MessageStore

logger = logging.getLogger(__name__)


@dataclass
class ChatMessage:
    """
    Snapshot of a message as held by a session.

    Built from a Message row or from the JSON payload of a chat.event,
    so the session never keeps ORM objects across threads.
    """

    id: int
    sender_id: int
    recipient_id: int
    content: str
    message_type: str = "text"
    file_url: str = ""
    is_read: bool = False
    read_at: datetime | None = None
    created_at: datetime | None = None

    @classmethod
    def from_message(cls, message) -> ChatMessage:
        return cls(
            id=message.id,
            sender_id=message.sender_id,
            recipient_id=message.recipient_id,
            content=message.content,
            message_type=message.message_type,
            file_url=message.file_url or "",
            is_read=message.is_read,
            read_at=message.read_at,
            created_at=message.created_at,
        )

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> ChatMessage:
        return cls(
            id=int(payload["id"]),
            sender_id=int(payload["sender_id"]),
            recipient_id=int(payload["recipient_id"]),
            content=payload.get("content") or "",
            message_type=payload.get("message_type") or "text",
            file_url=payload.get("file_url") or "",
            is_read=bool(payload.get("is_read")),
            read_at=_parse_timestamp(payload.get("read_at")),
            created_at=_parse_timestamp(payload.get("created_at")),
        )

    def to_dict(self) -> dict[str, Any]:
        data = asdict(self)
        for key in ("read_at", "created_at"):
            if data[key] is not None:
                data[key] = data[key].isoformat()
        return data


def _parse_timestamp(value):
    if value is None or isinstance(value, datetime):
        return value
    return parse_datetime(value)


def _order_key(message: ChatMessage):
    # Messages without a timestamp sort last
    created = message.created_at
    return (created is None, created or datetime.min, message.id)


def default_scheduler(delay: float, callback: Callable[[], None]):
    """Schedule callback on the running event loop."""
    return asyncio.get_running_loop().call_later(delay, callback)


class ChatSession:
    """
    State of one connected client.

    Args:
        user: The connected user
        store: MessageStore used for every read and write
        scheduler: (delay_seconds, callback) -> handle with cancel();
            defaults to the running loop's call_later
        typing_timeout: Seconds before a typing flag clears itself
            (defaults to CHAT_TYPING_TIMEOUT_SECONDS)
        on_typing_change: Called with (contact_id, is_typing) when a
            contact's typing flag clears itself

    Attributes:
        contacts: Contacts in resolver order
        messages: Conversation lists keyed by contact id, oldest first
        selected_id: Id of the selected contact, or None
        typing_to: Id of the contact this user is typing to, or None
        closed: True after close(); later results are discarded
    """

    def __init__(
        self,
        user: User,
        store: MessageStore,
        scheduler: Callable | None = None,
        typing_timeout: float | None = None,
        on_typing_change: Callable[[int, bool], None] | None = None,
    ):
        self.user = user
        self.store = store
        self.scheduler = scheduler or default_scheduler
        if typing_timeout is None:
            typing_timeout = getattr(
                settings,
                "CHAT_TYPING_TIMEOUT_SECONDS",
                REALTIME_CONFIG.DEFAULT_TYPING_TIMEOUT_SECONDS,
            )
        self.typing_timeout = typing_timeout
        self.on_typing_change = on_typing_change

        self.contacts: list[Contact] = []
        self.messages: dict[int, list[ChatMessage]] = {}
        self.selected_id: int | None = None
        self.closed = False
        self.typing_to: int | None = None
        self._typing_timers: dict[int, Any] = {}
        self._outgoing_timer = None

    # =========================================================================
    # Loading and selection
    # =========================================================================

    def load(self, users: Iterable[User] | None = None) -> list[Contact]:
        """
        Derive contacts and conversations from the store.

        Raises:
            BackendFailureError: If the store cannot be read
        """
        users = self.store.list_users() if users is None else list(users)
        grouped = self.store.fetch_messages(self.user, users)
        if self.closed:
            return []

        self.messages = {
            contact_id: [ChatMessage.from_message(m) for m in conversation]
            for contact_id, conversation in grouped.items()
        }
        snapshots = [m for conversation in self.messages.values() for m in conversation]
        self.contacts = build_contacts(self.user, users, snapshots)

        if self.selected_id is not None and self.get_contact(self.selected_id) is None:
            self.selected_id = None
        return self.contacts

    def get_contact(self, contact_id) -> Contact | None:
        if contact_id is None:
            return None
        return next((c for c in self.contacts if str(c.id) == str(contact_id)), None)

    @property
    def selected_contact(self) -> Contact | None:
        return self.get_contact(self.selected_id)

    def select_contact(self, contact_id) -> Contact | None:
        """
        Select a contact and mark its unread messages as read.

        Unknown ids leave the session unchanged.

        Returns:
            The selected contact, or None for an unknown id
        """
        if self.closed:
            return None
        contact = self.get_contact(contact_id)
        if contact is None:
            return None

        self.selected_id = contact.id
        contact.unread_count = 0

        unread = [
            m.id
            for m in self.messages.get(contact.id, [])
            if m.sender_id == contact.id and not m.is_read
        ]
        if unread:
            self.mark_as_read(unread)
        return contact

    def visible_messages(self) -> list[ChatMessage]:
        """Return the selected conversation (empty without a selection)."""
        if self.selected_id is None:
            return []
        return list(self.messages.get(self.selected_id, []))

    # =========================================================================
    # Writes
    # =========================================================================

    def send_message(self, content: str, message_type: str = "text", file_url: str | None = None):
        """
        Send a message to the selected contact.

        Returns:
            None when nothing was sent (no selection, blank message, or
            closed session), otherwise the store's ServiceResult
        """
        if self.closed or self.selected_id is None:
            return None
        if not (content or "").strip() and not file_url:
            return None

        contact_id = self.selected_id
        result = self.store.send_message(
            sender=self.user,
            recipient=contact_id,
            content=content,
            message_type=message_type,
            file_url=file_url,
        )
        if self.closed:
            return None
        if result.success:
            self._store_message(contact_id, ChatMessage.from_message(result.data))
        return result

    def mark_as_read(self, message_ids: Iterable[int]):
        """Mark messages as read through the store and update local flags."""
        result = self.store.mark_as_read(message_ids, self.user)
        if self.closed or not result.success:
            return result

        changed = set(result.data)
        for contact_id, conversation in self.messages.items():
            touched = False
            for message in conversation:
                if message.id in changed and not message.is_read:
                    message.is_read = True
                    touched = True
            if touched:
                self._refresh_unread(contact_id)
        return result

    # =========================================================================
    # Change feed
    # =========================================================================

    def apply_event(self, event) -> bool:
        """
        Merge a change-feed event into the session.

        Args:
            event: A chat.signals.MessageEvent or a channel-layer dict
                {"action": "insert"|"update", "message": {...}}

        Returns:
            True if the event concerned one of this user's conversations
        """
        if self.closed:
            return False

        if isinstance(event, dict):
            action = event.get("action")
            snapshot = ChatMessage.from_payload(event["message"])
        else:
            action = event.action
            snapshot = ChatMessage.from_message(event.message)

        contact_id = counterpart_id(self.user.id, snapshot)
        if contact_id is None or self.get_contact(contact_id) is None:
            return False

        is_new = self._store_message(contact_id, snapshot)
        incoming = snapshot.sender_id == contact_id and not snapshot.is_read

        if is_new and incoming and contact_id == self.selected_id:
            self.mark_as_read([snapshot.id])

        logger.debug(f"User {self.user.id} applied {action} of message {snapshot.id}")
        return True

    # =========================================================================
    # Typing indicators
    # =========================================================================

    def set_typing(self, is_typing: bool) -> None:
        """
        Record that this user is (or stopped) typing to the selected contact.

        Outgoing state lives in typing_to with its own timer, so it never
        touches Contact.is_typing, which reflects the contact's typing.
        """
        if self.closed or self.selected_id is None:
            return

        if self._outgoing_timer is not None:
            self._outgoing_timer.cancel()
            self._outgoing_timer = None

        if is_typing:
            self.typing_to = self.selected_id
            self._outgoing_timer = self.scheduler(self.typing_timeout, self._clear_outgoing_typing)
        else:
            self.typing_to = None

    def receive_typing(self, contact_id, is_typing: bool) -> bool:
        """
        Apply a typing notification from another participant.

        Returns:
            False when contact_id is not a contact
        """
        if self.closed:
            return False
        contact = self.get_contact(contact_id)
        if contact is None:
            return False
        self._set_typing_flag(contact.id, is_typing)
        return True

    def _set_typing_flag(self, contact_id: int, is_typing: bool) -> None:
        contact = self.get_contact(contact_id)
        contact.is_typing = bool(is_typing)

        previous = self._typing_timers.pop(contact_id, None)
        if previous is not None:
            previous.cancel()

        if is_typing:
            self._typing_timers[contact_id] = self.scheduler(
                self.typing_timeout, lambda: self._clear_typing(contact_id)
            )

    def _clear_outgoing_typing(self) -> None:
        self._outgoing_timer = None
        self.typing_to = None

    def _clear_typing(self, contact_id: int) -> None:
        self._typing_timers.pop(contact_id, None)
        if self.closed:
            return
        contact = self.get_contact(contact_id)
        if contact is None or not contact.is_typing:
            return
        contact.is_typing = False
        if self.on_typing_change is not None:
            self.on_typing_change(contact_id, False)

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def close(self) -> None:
        """Cancel pending timers and discard every later result."""
        self.closed = True
        for handle in self._typing_timers.values():
            handle.cancel()
        self._typing_timers.clear()
        if self._outgoing_timer is not None:
            self._outgoing_timer.cancel()
            self._outgoing_timer = None
        self.typing_to = None

    # =========================================================================
    # Helpers
    # =========================================================================

    def _store_message(self, contact_id: int, snapshot: ChatMessage) -> bool:
        """
        Insert or replace a message by id; return True if it was new.

        Read state is monotonic: a stale copy arriving after a read update
        keeps the message read.
        """
        conversation = self.messages.setdefault(contact_id, [])
        index = next((i for i, m in enumerate(conversation) if m.id == snapshot.id), None)
        if index is None:
            conversation.append(snapshot)
        else:
            held = conversation[index]
            if held.is_read and not snapshot.is_read:
                snapshot.is_read = True
            read_times = [t for t in (held.read_at, snapshot.read_at) if t is not None]
            snapshot.read_at = min(read_times) if read_times else None
            conversation[index] = snapshot
        conversation.sort(key=_order_key)

        self._refresh_preview(contact_id)
        self._refresh_unread(contact_id)
        return index is None

    def _refresh_preview(self, contact_id: int) -> None:
        contact = self.get_contact(contact_id)
        conversation = self.messages.get(contact_id)
        if contact is None or not conversation:
            return
        latest = conversation[-1]
        contact.last_message = preview_text(latest.content, latest.message_type)
        contact.last_message_time = latest.created_at

    def _refresh_unread(self, contact_id: int) -> None:
        contact = self.get_contact(contact_id)
        if contact is None:
            return
        if contact_id == self.selected_id:
            contact.unread_count = 0
            return
        contact.unread_count = sum(
            1
            for m in self.messages.get(contact_id, [])
            if m.sender_id == contact_id and not m.is_read
        )
