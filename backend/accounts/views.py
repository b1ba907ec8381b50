"""
Accounts app views.

All views follow the **Thin View** pattern: validate input via
serializers, delegate to the service layer, and return the result
wrapped in a DRF ``Response``.  **No business logic** resides here.

View Map
--------
- ``RegisterView``     — POST /auth/register/
- ``VerifyEmailView``  — POST /auth/verify/{id}/
- ``LoginView``        — POST /auth/login/
- ``MeView``           — GET /me/
- ``UserViewSet``      — GET /users/{id}/  (administrators)
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import (
    LoginRequestSerializer,
    RegisterRequestSerializer,
    RegistrationResponseSerializer,
    TokenResponseSerializer,
    UserDetailSerializer,
    VerifyEmailRequestSerializer,
)
from .services import (
    AuthenticationService,
    UserDirectoryService,
    UserRegistrationService,
)

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  Authentication Views
# ═══════════════════════════════════════════════════════════════════


class RegisterView(APIView):
    """
    POST /api/accounts/auth/register/

    Public endpoint.  Creates a new, unverified citizen.

    Request body  → ``RegisterRequestSerializer``
    Response body → ``RegistrationResponseSerializer`` (201 Created)
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Register a citizen",
        request=RegisterRequestSerializer,
        responses={
            201: RegistrationResponseSerializer,
            409: OpenApiResponse(description="Email or phone already registered."),
        },
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        serializer = RegisterRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserRegistrationService().register_user(dict(serializer.validated_data))
        return Response(RegistrationResponseSerializer(user).data, status=status.HTTP_201_CREATED)


class VerifyEmailView(APIView):
    """
    POST /api/accounts/auth/verify/{user_id}/

    Marks the account as verified.  Stands in for the emailed link, so
    it is public, but the body must carry the signed ``token`` issued at
    registration: a bare user id is rejected with ``400``.  Verifying
    twice is harmless.
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="Verify a citizen's email",
        request=VerifyEmailRequestSerializer,
        responses={
            200: UserDetailSerializer,
            400: OpenApiResponse(description="Missing, forged or expired token."),
            404: OpenApiResponse(description="Unknown user."),
        },
        tags=["Auth"],
    )
    def post(self, request: Request, user_id: int) -> Response:
        serializer = VerifyEmailRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user = UserRegistrationService().verify_email(
            user_id, token=serializer.validated_data["token"]
        )
        return Response(UserDetailSerializer(user).data, status=status.HTTP_200_OK)


class LoginView(APIView):
    """
    POST /api/accounts/auth/login/

    Public endpoint.  Authenticates via username, email or phone number
    plus password.

    Flow:
        1. Validate input via ``LoginRequestSerializer``.
        2. Delegate to ``AuthenticationService.authenticate()``.
        3. ``None`` → 401; unverified citizen → 403 (``NOT_VERIFIED``).
        4. Return tokens + user info.
    """

    permission_classes = [AllowAny]
    authentication_classes = []

    @extend_schema(
        summary="Log in",
        request=LoginRequestSerializer,
        responses={
            200: TokenResponseSerializer,
            401: OpenApiResponse(description="Invalid credentials."),
            403: OpenApiResponse(description="Account not verified."),
        },
        tags=["Auth"],
    )
    def post(self, request: Request) -> Response:
        serializer = LoginRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        user = AuthenticationService.authenticate(
            data["identifier"],
            data["password"],
            role=data.get("role"),
            request=request,
        )
        if user is None:
            logger.info("Failed login for identifier=%s", data["identifier"])
            return Response(
                {"detail": "Invalid credentials.", "code": "INVALID_CREDENTIALS"},
                status=status.HTTP_401_UNAUTHORIZED,
            )

        payload = AuthenticationService.generate_tokens(user)
        payload["user"] = UserDetailSerializer(user).data
        return Response(payload, status=status.HTTP_200_OK)


# ═══════════════════════════════════════════════════════════════════
#  Current User ("Me") View
# ═══════════════════════════════════════════════════════════════════


class MeView(APIView):
    """GET /api/accounts/me/ → the authenticated user's profile."""

    permission_classes = [IsAuthenticated]

    @extend_schema(summary="Current user", responses={200: UserDetailSerializer}, tags=["Auth"])
    def get(self, request: Request) -> Response:
        return Response(UserDetailSerializer(request.user).data)


# ═══════════════════════════════════════════════════════════════════
#  User Directory ViewSet
# ═══════════════════════════════════════════════════════════════════


class UserViewSet(viewsets.ViewSet):
    """
    /api/accounts/users/{id}/

    Lets administrators see who filed a complaint.  Citizens may only
    retrieve themselves.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    @extend_schema(
        summary="Retrieve a user",
        responses={
            200: UserDetailSerializer,
            403: OpenApiResponse(description="Not an administrator."),
            404: OpenApiResponse(description="Unknown user."),
        },
        tags=["Users"],
    )
    def retrieve(self, request: Request, pk: str = None) -> Response:
        user = UserDirectoryService().get_user(request.user, int(pk))
        return Response(UserDetailSerializer(user).data)
