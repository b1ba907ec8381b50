"""
Smoke tests — verify that Django boots, URL routing resolves, and
the core domain modules are importable.

These tests do NOT require real data; they just prove the plumbing
works.
"""

from __future__ import annotations

import pytest
from django.urls import resolve, reverse


# ════════════════════════════════════════════════════════════════════
#  URL Routing Smoke Tests
# ════════════════════════════════════════════════════════════════════

class TestURLRouting:
    """Ensure all top-level app URL namespaces resolve without 404."""

    EXPECTED_URLS = [
        # (url_name, expected_path_prefix)
        ("complaint-list",                "/api/complaints/"),
        ("accounts:register",             "/api/accounts/auth/register/"),
        ("accounts:login",                "/api/accounts/auth/login/"),
        ("accounts:me",                   "/api/accounts/me/"),
        ("core:dashboard-stats",          "/api/core/dashboard/"),
        ("core:system-constants",         "/api/core/constants/"),
        ("core:notification-list",        "/api/core/notifications/"),
        ("core:notification-unread-count", "/api/core/notifications/unread-count/"),
        ("schema",                        "/api/schema/"),
    ]

    @pytest.mark.parametrize("url_name,expected_prefix", EXPECTED_URLS)
    def test_url_resolves(self, url_name: str, expected_prefix: str):
        """Named URL reverses to the expected path prefix."""
        url = reverse(url_name)
        assert url.startswith(expected_prefix), (
            f"{url_name} resolved to {url}, expected prefix {expected_prefix}"
        )

    @pytest.mark.parametrize("url_name,expected_prefix", EXPECTED_URLS)
    def test_url_resolve_matches_view(self, url_name: str, expected_prefix: str):
        """Path resolves to a view function (not a 404)."""
        match = resolve(expected_prefix)
        assert match.func is not None

    def test_detail_routes_accept_reference(self):
        assert reverse("complaint-detail", args=["CMP007"]) == "/api/complaints/CMP007/"
        assert resolve("/api/complaints/cmp007/update-status/").url_name == "complaint-update-status"
        assert reverse("complaint-track", args=["CMP007"]) == "/api/complaints/CMP007/track/"


@pytest.mark.django_db
def test_openapi_schema_renders(api_client):
    resp = api_client.get(reverse("schema"))

    assert resp.status_code == 200


# ════════════════════════════════════════════════════════════════════
#  Core Domain Module Import Tests
# ════════════════════════════════════════════════════════════════════

class TestCoreDomainImports:
    """Verify that shared domain utility modules are importable."""

    def test_import_exceptions(self):
        from core.domain.exceptions import (
            AccountNotVerified,
            Conflict,
            DomainError,
            InvalidTransition,
            NotFound,
            PermissionDenied,
            StoreIntegrityError,
            TransientIOError,
            ValidationFailed,
        )
        # Ensure they form an inheritance chain
        assert issubclass(InvalidTransition, Conflict)
        assert issubclass(Conflict, DomainError)
        assert issubclass(AccountNotVerified, PermissionDenied)
        assert issubclass(PermissionDenied, DomainError)
        assert issubclass(NotFound, DomainError)
        assert issubclass(ValidationFailed, DomainError)
        assert issubclass(TransientIOError, DomainError)
        assert not issubclass(StoreIntegrityError, DomainError)

    def test_import_notifications(self):
        from core.domain.notifications import NotificationGenerator
        assert callable(NotificationGenerator.derive)

    def test_import_store(self):
        from core.domain.store import (
            DjangoEntityStore,
            EntityStore,
            InMemoryEntityStore,
            get_entity_store,
        )
        assert callable(get_entity_store)
        assert EntityStore is not None
        assert DjangoEntityStore is not InMemoryEntityStore

    def test_import_sync(self):
        from core.sync import NotificationSyncEngine, StoreNotificationSource
        assert callable(NotificationSyncEngine)
        assert callable(StoreNotificationSource)


# ════════════════════════════════════════════════════════════════════
#  Exception Behaviour Tests
# ════════════════════════════════════════════════════════════════════

class TestDomainExceptions:
    """Unit tests for domain exception classes."""

    def test_domain_error_message(self):
        from core.domain.exceptions import DomainError
        err = DomainError("test message")
        assert str(err) == "test message"

    def test_codes(self):
        from core.domain.exceptions import (
            AccountNotVerified,
            NotFound,
            TransientIOError,
            ValidationFailed,
        )
        assert ValidationFailed.code == "VALIDATION_ERROR"
        assert NotFound.code == "NOT_FOUND"
        assert TransientIOError.code == "TRANSIENT_IO_ERROR"
        assert AccountNotVerified.code == "NOT_VERIFIED"

    def test_invalid_transition_structured(self):
        from core.domain.exceptions import InvalidTransition
        err = InvalidTransition(
            current="resolved",
            target="pending",
            reason="Resolved complaints can only be reopened as in progress",
        )
        assert "resolved" in str(err)
        assert "pending" in str(err)
        assert err.current == "resolved"
        assert err.target == "pending"

    def test_invalid_transition_plain_message(self):
        from core.domain.exceptions import InvalidTransition
        err = InvalidTransition("Cannot reopen complaint.")
        assert str(err) == "Cannot reopen complaint."


# ════════════════════════════════════════════════════════════════════
#  Access Helper Unit Tests
# ════════════════════════════════════════════════════════════════════

class TestAccessHelpers:
    """Unit tests for core.domain.access helpers."""

    def _user(self, role="user", superuser=False):
        from unittest.mock import MagicMock

        user = MagicMock()
        user.is_authenticated = True
        user.is_superuser = superuser
        user.role = role
        user.pk = 5
        return user

    def test_resolve_scope_unknown_role_default_none(self):
        from core.domain.access import resolve_scope

        assert resolve_scope(self._user(role="inspector"), scope_rules=[]) is None

    def test_resolve_scope_unknown_role_default_all(self):
        from core.domain.access import resolve_scope

        assert resolve_scope(self._user(role="inspector"), scope_rules=[], default="all") == {}

    def test_resolve_scope_first_match(self):
        from core.domain.access import resolve_scope

        rules = [("user", lambda u: {"user_id": u.pk})]
        assert resolve_scope(self._user(), scope_rules=rules) == {"user_id": 5}

    def test_require_role_raises(self):
        from core.domain.access import require_role
        from core.domain.exceptions import PermissionDenied

        with pytest.raises(PermissionDenied):
            require_role(self._user(), "admin")

    def test_get_user_role_name_superuser(self):
        """Superusers are mapped to 'admin'."""
        from core.domain.access import get_user_role_name

        assert get_user_role_name(self._user(role="user", superuser=True)) == "admin"

    def test_anonymous_user_has_no_role(self):
        from django.contrib.auth.models import AnonymousUser

        from core.domain.access import get_user_role_name, is_admin

        assert get_user_role_name(AnonymousUser()) is None
        assert is_admin(AnonymousUser()) is False
