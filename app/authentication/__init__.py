"""
Authentication application.

Email/password accounts with a chat role (one admin, many standard users),
JWT sessions and security-question password recovery.

Key components:
    - User model: Custom email-based user with is_admin and recovery data
    - PasswordResetToken: Single-use reset token
    - AuthService: Login, registration, logout and recovery
    - UserDirectory: Listing of chat users

Usage:
    from authentication.models import User
    from authentication.services import AuthService, UserDirectory
"""
