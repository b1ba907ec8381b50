"""
Accounts Service Layer.

This module is the **single source of truth** for all business logic
within the ``accounts`` app.  Views must remain *thin*: they validate
input through serializers, call a service method, and return the result
wrapped in a DRF ``Response``.

Architecture
------------
- ``UserRegistrationService``  — new-citizen creation and email verification.
- ``AuthenticationService``    — multi-field login + JWT issuance.
- ``UserDirectoryService``     — administrator look-ups of user details.

Registration and verification go through the configured ``EntityStore``
so the complaint lifecycle sees exactly the users written here.  Password
checking and token issuance are delegated to Django auth and SimpleJWT.
"""

from __future__ import annotations

import logging
from typing import Any

from django.contrib.auth import authenticate as django_authenticate
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core import signing
from rest_framework_simplejwt.tokens import RefreshToken

from core.domain.access import require_role
from core.domain.exceptions import (
    AccountNotVerified,
    Conflict,
    NotFound,
    PermissionDenied,
    ValidationFailed,
)
from core.domain.store import EntityStore, get_entity_store

from .models import Role

User = get_user_model()
logger = logging.getLogger(__name__)

#: Namespaces verification tokens so no other signed value is accepted.
VERIFICATION_SALT = "accounts.verify-email"


def make_verification_token(user_id: int) -> str:
    """Signed, timestamped token that stands in for the emailed link."""
    return signing.dumps(user_id, salt=VERIFICATION_SALT)


def _check_verification_token(user_id: int, token: str) -> None:
    max_age = getattr(settings, "ACCOUNT_VERIFICATION_MAX_AGE_SECONDS", None)
    try:
        signed_id = signing.loads(token, salt=VERIFICATION_SALT, max_age=max_age)
    except signing.SignatureExpired as exc:
        raise ValidationFailed("The verification link has expired.", field="token") from exc
    except signing.BadSignature as exc:
        raise ValidationFailed("Invalid verification token.", field="token") from exc
    if signed_id != user_id:
        raise ValidationFailed("Invalid verification token.", field="token")


# ═══════════════════════════════════════════════════════════════════
#  Registration Service
# ═══════════════════════════════════════════════════════════════════


class UserRegistrationService:
    """
    Citizen registration and the one-way verification step.
    """

    def __init__(self, store: EntityStore | None = None) -> None:
        self.store = store or get_entity_store()

    def register_user(self, validated_data: dict[str, Any]) -> User:
        """
        Create a new, unverified citizen account.

        Parameters
        ----------
        validated_data : dict
            Cleaned data from ``RegisterRequestSerializer`` containing
            ``name``, ``email``, ``password`` and optionally
            ``phone_number``.  The email doubles as the username.

        Returns
        -------
        User
            The saved user with ``role=USER`` and ``is_verified=False``.

        Raises
        ------
        core.domain.exceptions.Conflict
            If the email or phone number is already registered.
        """
        validated_data.pop("password_confirm", None)
        password = validated_data.pop("password")
        email = validated_data["email"].strip().lower()
        phone_number = validated_data.get("phone_number") or None

        user = User(
            username=email,
            email=email,
            name=validated_data.get("name", ""),
            phone_number=phone_number,
            role=Role.USER,
            is_verified=False,
        )
        user.set_password(password)

        with self.store.atomic():
            conflicts = []
            if self.store.find_by(User, email=email):
                conflicts.append("email")
            if phone_number and self.store.find_by(User, phone_number=phone_number):
                conflicts.append("phone_number")
            if conflicts:
                raise Conflict(
                    f"The following field(s) already exist: {', '.join(conflicts)}."
                )
            try:
                self.store.put(user)
            except Conflict as exc:
                # A concurrent registration won the unique constraint.
                raise Conflict("The email or phone number is already registered.") from exc
        logger.info("Registered citizen user=%s", user.pk)
        return user

    def verify_email(self, user_id: int, *, token: str) -> User:
        """
        Mark a user's email as verified.

        ``token`` must come from ``make_verification_token(user_id)``, so
        knowing an account id is not enough to verify it.  Idempotent and
        one-way: verifying an already verified account is a no-op and
        nothing ever resets the flag.

        Raises
        ------
        core.domain.exceptions.ValidationFailed
            If the token is forged, expired or issued for another user.
        core.domain.exceptions.NotFound
            If no user has that id.
        """
        _check_verification_token(user_id, token)
        with self.store.atomic():
            user = self.store.get_for_update(User, user_id)
            if user is None:
                raise NotFound(f"User with id {user_id} does not exist.")
            if not user.is_verified:
                user.is_verified = True
                self.store.put(user)
                logger.info("Verified user=%s", user.pk)
        return user


# ═══════════════════════════════════════════════════════════════════
#  Authentication Service
# ═══════════════════════════════════════════════════════════════════


class AuthenticationService:
    """
    Handles multi-field login and JWT token generation.
    """

    @staticmethod
    def authenticate(
        identifier: str,
        password: str,
        *,
        role: str | None = None,
        request: Any = None,
    ) -> User | None:
        """
        Validate credentials and return the user if successful.

        Parameters
        ----------
        identifier : str
            Username, email, or phone number.
        password : str
            The raw password.
        role : str, optional
            When given, the account must hold this role (the citizen and
            administrator login screens are separate).

        Returns
        -------
        User or None
            ``None`` for bad credentials or a role mismatch.

        Raises
        ------
        core.domain.exceptions.AccountNotVerified
            Credentials are valid but the citizen has not verified yet.
        """
        user = django_authenticate(request=request, identifier=identifier, password=password)
        if user is None:
            return None
        if role is not None and user.role != role and not (role == Role.ADMIN and user.is_superuser):
            return None
        if not user.can_authenticate:
            raise AccountNotVerified()
        return user

    @staticmethod
    def generate_tokens(user: User) -> dict[str, str]:
        """
        Issue a JWT access/refresh token pair for the given user.

        Returns
        -------
        dict
            ``{"access": "<token>", "refresh": "<token>"}``.
        """
        refresh = RefreshToken.for_user(user)
        refresh["role"] = user.role
        refresh["is_verified"] = user.is_verified
        return {
            "access": str(refresh.access_token),
            "refresh": str(refresh),
        }


# ═══════════════════════════════════════════════════════════════════
#  User Directory Service
# ═══════════════════════════════════════════════════════════════════


class UserDirectoryService:
    """
    Administrator look-ups, e.g. showing who filed a complaint.
    """

    def __init__(self, store: EntityStore | None = None) -> None:
        self.store = store or get_entity_store()

    def get_user(self, requesting_user: Any, user_id: int) -> User:
        """
        Return a user's details.  Administrators may look up anyone;
        citizens only themselves.

        Raises
        ------
        PermissionDenied
            Citizen asking for somebody else.
        NotFound
            Unknown id.
        """
        if requesting_user.pk != user_id:
            require_role(
                requesting_user,
                Role.ADMIN,
                message="Only administrators can view other users.",
            )
        user = self.store.get_by_id(User, user_id)
        if user is None:
            raise NotFound(f"User with id {user_id} does not exist.")
        return user


def ensure_can_file(user: User) -> None:
    """Raise unless ``user`` is allowed to perform lifecycle actions."""
    if not user.is_active:
        raise PermissionDenied("This account is disabled.")
    if not user.can_authenticate:
        raise AccountNotVerified()
