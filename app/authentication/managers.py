"""
Custom user manager for email-based authentication.

This module provides the UserManager class that handles user creation
with email as the primary identifier instead of username.

Related files:
    - models.py: User model that uses this manager

Security:
    - Passwords are automatically hashed via set_password()
    - Security answers are hashed via set_security_answer()
    - Email addresses are stored lower-cased
"""

from django.contrib.auth.models import BaseUserManager


class UserManager(BaseUserManager):
    """
    Custom manager for User model with email-based authentication.

    Usage:
        user = User.objects.create_user(
            email='user@example.com',
            password='secret1',
            name='Jane',
            security_question='What is your favorite color?',
            security_answer='Blue',
        )

        superuser = User.objects.create_superuser(
            email='ops@example.com',
            password='adminpassword',
        )

    Note:
        create_user never decides the chat role. Pass is_admin explicitly;
        AuthService.register is the only caller that assigns it.
    """

    def get_by_natural_key(self, username):
        """Look users up case-insensitively so login ignores email casing."""
        return self.get(email__iexact=username)

    def create_user(self, email, password=None, **extra_fields):
        """
        Create and save a user with the given email and password.

        Args:
            email: User's email address (required)
            password: User's password
            **extra_fields: Additional fields; a plain-text security_answer
                is hashed before saving

        Returns:
            User: The created user instance

        Raises:
            ValueError: If email is not provided
        """
        if not email:
            raise ValueError("The Email field must be set")

        email = self.normalize_email(email).strip().lower()

        extra_fields.setdefault("is_staff", False)
        extra_fields.setdefault("is_superuser", False)
        extra_fields.setdefault("name", email.split("@")[0])
        security_answer = extra_fields.pop("security_answer", None)

        user = self.model(email=email, **extra_fields)

        if password:
            user.set_password(password)
        else:
            user.set_unusable_password()

        if security_answer:
            user.set_security_answer(security_answer)

        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        """
        Create and save a Django admin superuser.

        A superuser is an operator account for the Django admin site; it
        does not become the chat admin.

        Raises:
            ValueError: If is_staff or is_superuser is not True
        """
        extra_fields.setdefault("is_staff", True)
        extra_fields.setdefault("is_superuser", True)

        if extra_fields.get("is_staff") is not True:
            raise ValueError("Superuser must have is_staff=True.")
        if extra_fields.get("is_superuser") is not True:
            raise ValueError("Superuser must have is_superuser=True.")

        return self.create_user(email, password, **extra_fields)
