"""
Django admin configuration for authentication models.

This module registers User and PasswordResetToken with the Django admin
site for management.

Related files:
    - models.py: Model definitions
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from authentication.models import PasswordResetToken, User


@admin.register(User)
class UserAdmin(BaseUserAdmin):
    """
    Admin configuration for User model.

    Customized for email-based authentication. The security answer hash
    is never shown; the chat role is read-only because only registration
    assigns it.
    """

    list_display = (
        "email",
        "name",
        "is_admin",
        "is_active",
        "is_staff",
        "date_joined",
    )
    list_filter = (
        "is_admin",
        "is_active",
        "is_staff",
        "date_joined",
    )
    search_fields = ("email", "name")
    ordering = ("date_joined",)

    fieldsets = (
        (None, {"fields": ("email", "password")}),
        ("Profile", {"fields": ("name", "avatar", "security_question")}),
        (
            "Status",
            {"fields": ("is_admin", "is_active", "is_staff", "is_superuser")},
        ),
        (
            "Permissions",
            {"fields": ("groups", "user_permissions")},
        ),
        (
            "Important dates",
            {"fields": ("date_joined", "last_login")},
        ),
    )

    add_fieldsets = (
        (
            None,
            {
                "classes": ("wide",),
                "fields": ("email", "name", "password1", "password2"),
            },
        ),
    )

    readonly_fields = ("is_admin", "date_joined", "last_login")


@admin.register(PasswordResetToken)
class PasswordResetTokenAdmin(admin.ModelAdmin):
    """Read-mostly view of issued reset tokens."""

    list_display = ("user", "created_at", "expires_at", "used_at")
    list_filter = ("used_at",)
    search_fields = ("user__email",)
    readonly_fields = ("user", "token", "created_at", "expires_at", "used_at")
    ordering = ("-created_at",)
