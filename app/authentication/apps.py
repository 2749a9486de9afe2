"""
Authentication application configuration.

This app owns the email-based User model with its admin/user role, the
security-question password recovery and the JWT session endpoints.
"""

from django.apps import AppConfig


class AuthenticationConfig(AppConfig):
    """Configuration for the authentication application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "authentication"
    verbose_name = "Accounts"

    def ready(self):
        """Connect the account lifecycle logging."""
        from authentication import signals  # noqa: F401
