"""
URL configuration for chat API.

URL Structure:
    /contacts/                   GET
    /contacts/{id}/messages/     GET, POST
    /contacts/{id}/read/         POST
    /messages/                   GET
    /messages/read/              POST

All URLs are prefixed with /api/v1/chat/ in the main URL configuration.
"""

from django.urls import path

from chat.views import (
    ContactListView,
    ConversationMessagesView,
    ConversationReadView,
    MarkReadView,
    MessageListView,
)

app_name = "chat"

urlpatterns = [
    path("contacts/", ContactListView.as_view(), name="contacts"),
    path(
        "contacts/<int:contact_id>/messages/",
        ConversationMessagesView.as_view(),
        name="conversation-messages",
    ),
    path(
        "contacts/<int:contact_id>/read/",
        ConversationReadView.as_view(),
        name="conversation-read",
    ),
    path("messages/", MessageListView.as_view(), name="messages"),
    path("messages/read/", MarkReadView.as_view(), name="messages-read"),
]
