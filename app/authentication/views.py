"""
Authentication views.

This module provides API views for:
- Registration, login and logout (JWT pairs via simplejwt)
- The current user and the user directory
- Security-question password recovery

Related files:
    - serializers.py: Request/response serialization
    - services.py: Business logic (AuthService, UserDirectory)
    - exceptions.py: Error code to HTTP status mapping
    - urls.py: URL routing

Note:
    Failed service calls answer {"error": ..., "error_code": ...} with the
    status from authentication.exceptions.http_status_for().
    Token refresh is served by simplejwt's TokenRefreshView (see urls.py).
"""

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from core.exceptions import BaseApplicationError
from authentication.exceptions import http_status_for
from authentication.serializers import (
    AuthSessionSerializer,
    ErrorResponseSerializer,
    LoginSerializer,
    LogoutSerializer,
    PasswordResetConfirmSerializer,
    PasswordResetSerializer,
    PasswordResetTokenSerializer,
    RegisterSerializer,
    SecurityQuestionRequestSerializer,
    SecurityQuestionResponseSerializer,
    UserSerializer,
    VerifySecurityAnswerSerializer,
)
from authentication.services import AuthService, UserDirectory


def failure_response(result):
    """Render a failed ServiceResult with its mapped HTTP status."""
    return Response(
        {"error": result.error, "error_code": result.error_code},
        status=http_status_for(result.error_code),
    )


def session_response(session, status_code=status.HTTP_200_OK):
    """Render an AuthSession (tokens + user)."""
    return Response(
        AuthSessionSerializer(
            {"access": session.access, "refresh": session.refresh, "user": session.user}
        ).data,
        status=status_code,
    )


# =============================================================================
# Session Views
# =============================================================================


class RegisterView(APIView):
    """
    API view for account registration.

    POST: Create an account and log it in

    URL: /api/v1/auth/register/

    The first account ever registered becomes the admin; every later
    account is a standard user.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Register",
        description=(
            "Create an account with a security question for recovery. "
            "The first registrant becomes the admin."
        ),
        tags=["Auth"],
        request=RegisterSerializer,
        responses={
            201: AuthSessionSerializer,
            400: OpenApiResponse(description="Validation failed"),
            409: OpenApiResponse(ErrorResponseSerializer, description="Email already registered"),
        },
    )
    def post(self, request):
        """
        Register a new account.

        Request body:
            {
                "name": "Jane",
                "email": "jane@example.com",
                "password1": "secret1",
                "password2": "secret1",
                "security_question": "What is your favorite color?",
                "security_answer": "Blue",
                "avatar": "https://..."   // optional
            }

        Returns:
            {"access": ..., "refresh": ..., "user": {...}}
        """
        serializer = RegisterSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = AuthService.register(
            name=data["name"],
            email=data["email"],
            password=data["password1"],
            security_question=data["security_question"],
            security_answer=data["security_answer"],
            avatar=data.get("avatar") or None,
        )
        if not result.success:
            return failure_response(result)
        return session_response(result.data, status.HTTP_201_CREATED)


class LoginView(APIView):
    """
    API view for email/password login.

    POST: Exchange credentials for a JWT pair

    URL: /api/v1/auth/login/
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Log in",
        tags=["Auth"],
        request=LoginSerializer,
        responses={
            200: AuthSessionSerializer,
            401: OpenApiResponse(ErrorResponseSerializer, description="Invalid credentials"),
        },
    )
    def post(self, request):
        serializer = LoginSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.login(
            serializer.validated_data["email"],
            serializer.validated_data["password"],
        )
        if not result.success:
            return failure_response(result)
        return session_response(result.data)


class LogoutView(APIView):
    """
    API view for logout.

    POST: Blacklist the given refresh token

    URL: /api/v1/auth/logout/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Log out",
        tags=["Auth"],
        request=LogoutSerializer,
        responses={
            200: OpenApiResponse(description="Logged out"),
            400: OpenApiResponse(ErrorResponseSerializer, description="Invalid token"),
        },
    )
    def post(self, request):
        serializer = LogoutSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.logout(serializer.validated_data["refresh"])
        if not result.success:
            return failure_response(result)
        return Response({"detail": "Successfully logged out."})


class CurrentUserView(APIView):
    """
    API view for the authenticated user.

    GET: Return the user behind the access token

    URL: /api/v1/auth/user/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Get current user", tags=["Auth"], responses={200: UserSerializer})
    def get(self, request):
        return Response(UserSerializer(request.user).data)


class UserListView(APIView):
    """
    API view for the user directory.

    GET: List every active user in registration order

    URL: /api/v1/auth/users/
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="List users",
        tags=["Auth"],
        responses={200: UserSerializer(many=True)},
    )
    def get(self, request):
        try:
            users = UserDirectory().list_users()
        except BaseApplicationError as e:
            return Response(e.to_dict(), status=http_status_for(e.error_code))
        return Response(UserSerializer(users, many=True).data)


# =============================================================================
# Password Recovery Views
# =============================================================================


class PasswordResetView(APIView):
    """
    API view for the one-step security-question reset.

    POST: Check the answer and set the new password immediately

    URL: /api/v1/auth/password/reset/
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Reset password with security answer",
        tags=["Auth - Password"],
        request=PasswordResetSerializer,
        responses={
            200: OpenApiResponse(description="Password updated"),
            400: OpenApiResponse(ErrorResponseSerializer, description="Wrong answer"),
            404: OpenApiResponse(ErrorResponseSerializer, description="Unknown email"),
        },
    )
    def post(self, request):
        serializer = PasswordResetSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        result = AuthService.reset_password(
            data["email"], data["security_answer"], data["new_password1"]
        )
        if not result.success:
            return failure_response(result)
        return Response({"detail": "Password has been reset."})


class SecurityQuestionView(APIView):
    """
    API view for the "find account" step.

    POST: Return the security question for an email

    URL: /api/v1/auth/password/reset/question/
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Get security question",
        tags=["Auth - Password"],
        request=SecurityQuestionRequestSerializer,
        responses={
            200: SecurityQuestionResponseSerializer,
            404: OpenApiResponse(ErrorResponseSerializer, description="Unknown email"),
        },
    )
    def post(self, request):
        serializer = SecurityQuestionRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        email = serializer.validated_data["email"]

        result = AuthService.get_security_question(email)
        if not result.success:
            return failure_response(result)
        return Response({"email": email.strip().lower(), "security_question": result.data})


class VerifySecurityAnswerView(APIView):
    """
    API view for the "verify answer" step.

    POST: Exchange a correct answer for a reset token

    URL: /api/v1/auth/password/reset/verify/
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Verify security answer",
        tags=["Auth - Password"],
        request=VerifySecurityAnswerSerializer,
        responses={
            200: PasswordResetTokenSerializer,
            400: OpenApiResponse(ErrorResponseSerializer, description="Wrong answer"),
            404: OpenApiResponse(ErrorResponseSerializer, description="Unknown email"),
        },
    )
    def post(self, request):
        serializer = VerifySecurityAnswerSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.verify_security_answer(
            serializer.validated_data["email"],
            serializer.validated_data["security_answer"],
        )
        if not result.success:
            return failure_response(result)
        return Response(PasswordResetTokenSerializer(result.data).data)


class PasswordResetConfirmView(APIView):
    """
    API view for the final reset step.

    POST: Redeem a reset token and set the new password

    URL: /api/v1/auth/password/reset/confirm/
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Confirm password reset",
        tags=["Auth - Password"],
        request=PasswordResetConfirmSerializer,
        responses={
            200: OpenApiResponse(description="Password updated"),
            400: OpenApiResponse(ErrorResponseSerializer, description="Invalid token"),
        },
    )
    def post(self, request):
        serializer = PasswordResetConfirmSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        result = AuthService.confirm_password_reset(
            serializer.validated_data["token"],
            serializer.validated_data["new_password1"],
        )
        if not result.success:
            return failure_response(result)
        return Response({"detail": "Password has been reset."})
