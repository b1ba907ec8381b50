"""
Accounts app serializers.

Contains all Request and Response serializers for the accounts API.
Serializers handle field definitions, read/write constraints, and
basic validation.  **No business logic** lives here; all domain
rules are delegated to ``services.py``.
"""

from __future__ import annotations

import re
from typing import Any

from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import Role
from .services import make_verification_token

User = get_user_model()

_PHONE_RE = re.compile(r"^\+?\d{7,15}$")


# ═══════════════════════════════════════════════════════════════════
#  Authentication Serializers
# ═══════════════════════════════════════════════════════════════════


class RegisterRequestSerializer(serializers.Serializer):
    """
    Validates new-citizen registration data.

    Required fields: name, email, password, password_confirm.
    Optional: phone_number.

    Uniqueness of email / phone number is checked by the service so the
    conflict surfaces as a ``409`` rather than a field error.
    """

    name = serializers.CharField(max_length=150)
    email = serializers.EmailField()
    phone_number = serializers.CharField(
        max_length=15,
        required=False,
        allow_blank=True,
        help_text="Optional. Digits, optionally prefixed with '+'.",
    )
    password = serializers.CharField(
        write_only=True,
        min_length=8,
        style={"input_type": "password"},
        help_text="Minimum 8 characters.",
    )
    password_confirm = serializers.CharField(
        write_only=True,
        style={"input_type": "password"},
        help_text="Must match 'password'.",
    )

    def validate_name(self, value: str) -> str:
        value = value.strip()
        if not value:
            raise serializers.ValidationError("Name must not be empty.")
        return value

    def validate(self, attrs: dict[str, Any]) -> dict[str, Any]:
        if attrs["password"] != attrs["password_confirm"]:
            raise serializers.ValidationError(
                {"password_confirm": "Passwords do not match."}
            )

        phone = (attrs.get("phone_number") or "").strip()
        if phone and not _PHONE_RE.match(phone):
            raise serializers.ValidationError(
                {"phone_number": "Phone number must contain 7 to 15 digits."}
            )
        attrs["phone_number"] = phone or None

        attrs.pop("password_confirm")
        return attrs


class LoginRequestSerializer(serializers.Serializer):
    """
    Accepts multi-field login credentials.

    ``identifier`` may be a username, email or phone number.  ``role``
    selects the login screen: citizens and administrators sign in
    separately, and an account of the other role is rejected as if the
    credentials were wrong.
    """

    identifier = serializers.CharField(
        help_text="Username, Email, or Phone Number.",
    )
    password = serializers.CharField(
        write_only=True,
        style={"input_type": "password"},
    )
    role = serializers.ChoiceField(
        choices=Role.choices,
        required=False,
        help_text="Expected role of the account (user / admin).",
    )


class UserDetailSerializer(serializers.ModelSerializer):
    """Public view of a user, used by login, ``/me/`` and ``/users/{id}/``."""

    role_display = serializers.CharField(source="get_role_display", read_only=True)

    class Meta:
        model = User
        fields = [
            "id",
            "username",
            "name",
            "email",
            "phone_number",
            "role",
            "role_display",
            "is_verified",
            "date_joined",
        ]
        read_only_fields = fields


class VerifyEmailRequestSerializer(serializers.Serializer):
    """Body of the verification request."""

    token = serializers.CharField(help_text="Token returned at registration.")


class RegistrationResponseSerializer(UserDetailSerializer):
    """
    The new user plus the signed verification token.  There is no mail
    delivery, so the token is handed to the registering client.
    """

    verification_token = serializers.SerializerMethodField()

    class Meta(UserDetailSerializer.Meta):
        fields = UserDetailSerializer.Meta.fields + ["verification_token"]
        read_only_fields = fields

    def get_verification_token(self, obj: Any) -> str:
        return make_verification_token(obj.pk)


class TokenResponseSerializer(serializers.Serializer):
    """Shape of a successful login response (documentation only)."""

    access = serializers.CharField()
    refresh = serializers.CharField()
    user = UserDetailSerializer()
