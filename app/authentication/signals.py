"""
Django signals for authentication.

This module defines signal handlers for:
- Logging account creation and chat role

Related files:
    - models.py: User model
    - apps.py: Signal import in ready()
"""

import logging

from django.conf import settings
from django.db.models.signals import post_save
from django.dispatch import receiver

logger = logging.getLogger(__name__)


@receiver(post_save, sender=settings.AUTH_USER_MODEL)
def log_user_created(sender, instance, created, **kwargs):
    """
    Log newly created accounts with their role.

    Args:
        sender: The User model class
        instance: The User instance that was saved
        created: Boolean indicating if this is a new record
        **kwargs: Additional signal arguments
    """
    if created:
        logger.info(
            f"Account created: {instance.email} ({instance.role})",
            extra={"user_id": instance.id, "is_admin": instance.is_admin},
        )
