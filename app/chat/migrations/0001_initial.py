"""
Initial chat schema: direct messages keyed by participant pair.
"""

import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):
    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Message",
            fields=[
                (
                    "id",
                    models.BigAutoField(
                        auto_created=True,
                        primary_key=True,
                        serialize=False,
                        verbose_name="ID",
                    ),
                ),
                (
                    "created_at",
                    models.DateTimeField(
                        auto_now_add=True,
                        db_index=True,
                        help_text="Timestamp when this record was created",
                    ),
                ),
                (
                    "updated_at",
                    models.DateTimeField(
                        auto_now=True,
                        help_text="Timestamp when this record was last modified",
                    ),
                ),
                (
                    "conversation_key",
                    models.CharField(
                        db_index=True,
                        editable=False,
                        help_text="Participant pair key, identical for both directions",
                        max_length=64,
                    ),
                ),
                ("content", models.TextField(blank=True, help_text="Message text")),
                (
                    "message_type",
                    models.CharField(
                        choices=[
                            ("text", "Text"),
                            ("image", "Image"),
                            ("file", "File"),
                            ("video", "Video"),
                        ],
                        default="text",
                        help_text="Kind of content",
                        max_length=10,
                    ),
                ),
                (
                    "file_url",
                    models.CharField(
                        blank=True,
                        help_text="URL of the attached file, if any",
                        max_length=2048,
                    ),
                ),
                (
                    "is_read",
                    models.BooleanField(
                        default=False,
                        help_text="Whether the recipient has read this message",
                    ),
                ),
                (
                    "read_at",
                    models.DateTimeField(
                        blank=True,
                        help_text="When the recipient read this message",
                        null=True,
                    ),
                ),
                (
                    "recipient",
                    models.ForeignKey(
                        help_text="User this message is addressed to",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="received_messages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
                (
                    "sender",
                    models.ForeignKey(
                        help_text="User who sent this message",
                        on_delete=django.db.models.deletion.CASCADE,
                        related_name="sent_messages",
                        to=settings.AUTH_USER_MODEL,
                    ),
                ),
            ],
            options={
                "db_table": "chat_message",
                "ordering": ["created_at", "id"],
                "indexes": [
                    models.Index(
                        fields=["conversation_key", "created_at"],
                        name="chat_msg_conv_created_idx",
                    ),
                    models.Index(
                        fields=["recipient", "is_read"],
                        name="chat_msg_recipient_read_idx",
                    ),
                ],
            },
        ),
    ]
