"""
Views for chat API.

This module provides REST API endpoints for the chat system:
- ContactListView: Contacts with previews and unread counts
- MessageListView: Every visible message grouped by contact
- MarkReadView: Mark messages as read
- ConversationMessagesView: One conversation (paginated) and sending
- ConversationReadView: Mark a whole conversation as read

URL Structure:
    /api/v1/chat/contacts/                   GET
    /api/v1/chat/contacts/{id}/messages/     GET, POST
    /api/v1/chat/contacts/{id}/read/         POST
    /api/v1/chat/messages/                   GET
    /api/v1/chat/messages/read/              POST

Design Decisions:
    - Every operation goes through MessageStore
    - Failed results answer {"error", "error_code"}; NOT_A_CONTACT is 403,
      BACKEND_FAILURE is 503, other codes are 400
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.generics import GenericAPIView
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import BaseApplicationError
from authentication.exceptions import http_status_for
from authentication.serializers import ErrorResponseSerializer
from chat.pagination import MessageCursorPagination
from chat.serializers import (
    ContactSerializer,
    MarkedReadSerializer,
    MarkReadSerializer,
    MessageSerializer,
    SendMessageSerializer,
)
from chat.store import MessageStore

CHAT_HTTP_STATUS = {
    "NOT_A_CONTACT": status.HTTP_403_FORBIDDEN,
}


def error_status(error_code: str | None) -> int:
    return CHAT_HTTP_STATUS.get(error_code) or http_status_for(error_code)


def failure_response(result):
    """Render a failed ServiceResult."""
    return Response(
        {"error": result.error, "error_code": result.error_code},
        status=error_status(result.error_code),
    )


def error_response(exc: BaseApplicationError):
    return Response(exc.to_dict(), status=error_status(exc.error_code))


class ContactListView(APIView):
    """
    API view for the contact list.

    GET: Contacts of the current user

    URL: /api/v1/chat/contacts/

    The admin gets every other user; a standard user gets the admin only.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List contacts",
        tags=["Chat"],
        responses={200: ContactSerializer(many=True), 503: ErrorResponseSerializer},
    )
    def get(self, request):
        try:
            contacts = MessageStore().contacts(request.user)
        except BaseApplicationError as e:
            return error_response(e)
        return Response(ContactSerializer(contacts, many=True).data)


class MessageListView(APIView):
    """
    API view for every visible message.

    GET: Messages grouped by contact id, oldest first

    URL: /api/v1/chat/messages/

    Response:
        {"2": [{...}, {...}], "3": []}
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List messages by contact",
        tags=["Chat"],
        responses={200: OpenApiResponse(description="Message lists keyed by contact id")},
    )
    def get(self, request):
        try:
            grouped = MessageStore().fetch_messages(request.user)
        except BaseApplicationError as e:
            return error_response(e)
        return Response(
            {
                str(contact_id): MessageSerializer(messages, many=True).data
                for contact_id, messages in grouped.items()
            }
        )


class MarkReadView(APIView):
    """
    API view for read receipts.

    POST: Mark messages addressed to the current user as read

    URL: /api/v1/chat/messages/read/

    Messages already read or not addressed to the user are skipped; the
    response lists the ids that changed.
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Mark messages as read",
        tags=["Chat"],
        request=MarkReadSerializer,
        responses={200: MarkedReadSerializer, 503: ErrorResponseSerializer},
    )
    def post(self, request):
        serializer = MarkReadSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MessageStore().mark_as_read(
            serializer.validated_data["message_ids"], request.user
        )
        if not result.success:
            return failure_response(result)
        return Response({"message_ids": result.data})


class ConversationMessagesView(GenericAPIView):
    """
    API view for one conversation.

    GET: Messages with the contact (cursor-paginated, oldest first)
    POST: Send a message to the contact

    URL: /api/v1/chat/contacts/{contact_id}/messages/
    """

    permission_classes = [IsAuthenticated]
    pagination_class = MessageCursorPagination
    serializer_class = MessageSerializer

    @extend_schema(
        summary="List conversation",
        tags=["Chat"],
        responses={
            200: MessageSerializer(many=True),
            403: ErrorResponseSerializer,
        },
    )
    def get(self, request, contact_id):
        store = MessageStore()
        try:
            queryset = store.fetch_conversation(request.user, contact_id)
        except BaseApplicationError as e:
            return error_response(e)

        page = self.paginate_queryset(queryset)
        if page is not None:
            return self.get_paginated_response(MessageSerializer(page, many=True).data)
        return Response(MessageSerializer(queryset, many=True).data)

    @extend_schema(
        summary="Send message",
        tags=["Chat"],
        request=SendMessageSerializer,
        responses={
            201: MessageSerializer,
            400: ErrorResponseSerializer,
            403: ErrorResponseSerializer,
            503: ErrorResponseSerializer,
        },
    )
    def post(self, request, contact_id):
        serializer = SendMessageSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = MessageStore().send_message(
            sender=request.user,
            recipient=contact_id,
            content=serializer.validated_data["content"],
            message_type=serializer.validated_data["message_type"],
            file_url=serializer.validated_data["file_url"],
        )
        if not result.success:
            return failure_response(result)
        return Response(MessageSerializer(result.data).data, status=status.HTTP_201_CREATED)


class ConversationReadView(APIView):
    """
    API view for reading a whole conversation.

    POST: Mark every unread message from the contact as read

    URL: /api/v1/chat/contacts/{contact_id}/read/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Mark conversation as read",
        tags=["Chat"],
        request=None,
        responses={200: MarkedReadSerializer, 403: ErrorResponseSerializer},
    )
    def post(self, request, contact_id):
        result = MessageStore().mark_conversation_read(request.user, contact_id)
        if not result.success:
            return failure_response(result)
        return Response({"message_ids": result.data})
