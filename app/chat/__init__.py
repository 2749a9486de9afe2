"""
Chat app for direct messaging between users and the admin.

This app handles:
- Contact resolution (admin sees everyone, users see the admin)
- Message storage, history and read receipts
- The change feed (signals + channel layer)
- WebSocket sessions with typing indicators

Related apps:
    - authentication: User model and user directory

WebSocket Support:
    Uses Django Channels for real-time communication.
    See consumers.py for WebSocket handlers.
    See routing.py for WebSocket URL patterns.

Usage:
    from chat.store import MessageStore

    store = MessageStore()
    result = store.send_message(sender=user, recipient=admin, content="Hello!")
    contacts = store.contacts(user)
"""
