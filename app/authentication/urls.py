"""
URL configuration for authentication app.

URL structure (prefixed with /api/v1/auth/):
    register/                  - Create account (first one becomes admin)
    login/                     - Email/password login
    logout/                    - Blacklist refresh token
    user/                      - Current user
    token/refresh/             - Refresh access token (simplejwt)
    users/                     - User directory
    password/reset/            - One-step reset with security answer
    password/reset/question/   - Security question lookup
    password/reset/verify/     - Verify answer, receive reset token
    password/reset/confirm/    - Redeem reset token
"""

from django.urls import path
from rest_framework_simplejwt.views import TokenRefreshView

from authentication.views import (
    CurrentUserView,
    LoginView,
    LogoutView,
    PasswordResetConfirmView,
    PasswordResetView,
    RegisterView,
    SecurityQuestionView,
    UserListView,
    VerifySecurityAnswerView,
)

app_name = "authentication"

urlpatterns = [
    # Sessions
    path("register/", RegisterView.as_view(), name="register"),
    path("login/", LoginView.as_view(), name="login"),
    path("logout/", LogoutView.as_view(), name="logout"),
    path("token/refresh/", TokenRefreshView.as_view(), name="token-refresh"),
    # Users
    path("user/", CurrentUserView.as_view(), name="user"),
    path("users/", UserListView.as_view(), name="users"),
    # Password recovery
    path("password/reset/", PasswordResetView.as_view(), name="password-reset"),
    path(
        "password/reset/question/",
        SecurityQuestionView.as_view(),
        name="password-reset-question",
    ),
    path(
        "password/reset/verify/",
        VerifySecurityAnswerView.as_view(),
        name="password-reset-verify",
    ),
    path(
        "password/reset/confirm/",
        PasswordResetConfirmView.as_view(),
        name="password-reset-confirm",
    ),
]
