"""
Tests for chat app.

This package contains test modules for:
- test_resolver.py: Contact topology, conversation keys and previews
- test_models.py: Message model tests
- test_store.py: MessageStore tests
- test_session.py: ChatSession state and typing timers
- test_views.py: REST API endpoint tests
- test_consumers.py: WebSocket consumer tests

Usage:
    pytest app/chat/tests/
    pytest app/chat/tests/test_consumers.py
"""
