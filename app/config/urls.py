"""
URL configuration for the messaging backend.

URL Structure:
    /                              - ReDoc API documentation
    /admin/                        - Django admin interface
    /health/                       - Health check endpoint
    /schema/                       - OpenAPI schema (YAML)
    /api/v1/auth/                  - Authentication endpoints
        register/                  - Registration (first account becomes admin)
        login/                     - Email/password login
        logout/                    - Blacklist refresh token
        user/                      - Current user
        token/refresh/             - Refresh access token
        users/                     - User directory
        password/reset/            - One-step security-question reset
        password/reset/question/   - Look up the security question
        password/reset/verify/     - Verify answer, issue reset token
        password/reset/confirm/    - Set new password with reset token
    /api/v1/chat/                  - Chat endpoints
        contacts/                  - Contacts with previews and unread counts
        messages/                  - All visible messages grouped by contact
        messages/read/             - Mark messages as read
        contacts/{id}/messages/    - Conversation list/send
        contacts/{id}/read/        - Mark a conversation as read
    ws/chat/?token=<jwt>           - Realtime chat (see chat.routing)
"""

from django.contrib import admin
from django.urls import include, path
from drf_spectacular.views import SpectacularAPIView, SpectacularRedocView

from core.views import health_check

# =============================================================================
# API v1 Routes
# =============================================================================
api_v1_patterns = [
    path("auth/", include("authentication.urls")),
    path("chat/", include("chat.urls")),
]

urlpatterns = [
    # Documentation
    path("", SpectacularRedocView.as_view(url_name="schema"), name="redoc"),
    path("schema/", SpectacularAPIView.as_view(), name="schema"),
    # Admin
    path("admin/", admin.site.urls),
    # Health check
    path("health/", health_check, name="health_check"),
    # API v1
    path("api/v1/", include(api_v1_patterns)),
]

# =============================================================================
# Admin Site Customization
# =============================================================================
admin.site.site_header = "Messaging Admin"
admin.site.site_title = "Messaging Admin Portal"
admin.site.index_title = "Users and messages"
