"""
Factory Boy factories for chat models.

Provides realistic test data generation for:
- Message: Text and attachment messages between two users

Usage:
    from chat.tests.factories import MessageFactory

    # A message from a user to the admin
    message = MessageFactory(sender=user, recipient=admin)

    # An image with no text
    message = MessageFactory(image=True, sender=admin, recipient=user)
"""

import factory
from django.utils import timezone

from authentication.tests.factories import AdminUserFactory, UserFactory
from chat.models import Message


class MessageFactory(factory.django.DjangoModelFactory):
    """
    Factory for Message model.

    Defaults to an unread text message from a new standard user to a
    new admin. Pass sender/recipient to place it in a conversation.

    Examples:
        message = MessageFactory(sender=user, recipient=admin, content="Hi")
        read = MessageFactory(sender=admin, recipient=user, read=True)
    """

    class Meta:
        model = Message

    sender = factory.SubFactory(UserFactory)
    recipient = factory.SubFactory(AdminUserFactory)
    content = factory.Sequence(lambda n: f"Message {n}")
    message_type = Message.MessageType.TEXT
    file_url = ""
    is_read = False

    class Params:
        read = factory.Trait(
            is_read=True,
            read_at=factory.LazyFunction(timezone.now),
        )
        image = factory.Trait(
            content="",
            message_type=Message.MessageType.IMAGE,
            file_url="https://cdn.example.com/photo.jpg",
        )
