"""
Root conftest.py — shared fixtures for the entire test suite.

Provides:
  - ``api_client`` fixture returning a DRF ``APIClient``.
  - ``create_user`` factory fixture for creating test users.
  - ``auth_header`` fixture for authenticated requests (JWT).
  - ``memory_store`` fixture returning an empty ``InMemoryEntityStore``.
"""

from __future__ import annotations

import pytest
from rest_framework.test import APIClient


@pytest.fixture()
def api_client() -> APIClient:
    """Unauthenticated DRF test client."""
    return APIClient()


@pytest.fixture()
def memory_store():
    """A fresh process-local entity store, independent of the database."""
    from core.domain.store import InMemoryEntityStore

    return InMemoryEntityStore()


@pytest.fixture()
def create_user(db):
    """
    Factory fixture that creates a user with sensible defaults.

    Usage::

        def test_something(create_user):
            user = create_user(email="alice@example.com")
            admin = create_user(role=Role.ADMIN)
            pending = create_user(is_verified=False)
    """
    from accounts.models import Role, User

    _counter = 0

    def _factory(
        *,
        email: str | None = None,
        password: str = "TestPass123!",
        name: str | None = None,
        phone_number: str | None = None,
        role: str = Role.USER,
        is_verified: bool = True,
        **kwargs,
    ) -> User:
        nonlocal _counter
        _counter += 1
        if email is None:
            email = f"testuser{_counter}@test.local"
        if name is None:
            name = f"Test User {_counter}"
        if phone_number is None:
            phone_number = f"555{_counter:07d}"

        return User.objects.create_user(
            username=email,
            password=password,
            email=email,
            name=name,
            phone_number=phone_number,
            role=role,
            is_verified=is_verified,
            **kwargs,
        )

    return _factory


@pytest.fixture()
def auth_header(create_user):
    """
    Returns a helper that creates a user and returns an ``Authorization``
    header dict with a valid JWT access token.

    Usage::

        def test_protected(auth_header, api_client):
            header = auth_header(role=Role.ADMIN)
            api_client.credentials(HTTP_AUTHORIZATION=header["Authorization"])
            resp = api_client.get("/api/core/dashboard/")
            assert resp.status_code == 200
    """
    from rest_framework_simplejwt.tokens import AccessToken

    def _make(**user_kwargs) -> dict[str, str]:
        user = create_user(**user_kwargs)
        token = AccessToken.for_user(user)
        return {"Authorization": f"Bearer {token}"}

    return _make
