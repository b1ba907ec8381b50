"""
core.domain — Shared domain utilities for cross-app service layers.

Modules
-------
exceptions         Domain-specific exceptions that map cleanly to HTTP responses.
exception_handler  DRF handler translating those exceptions into responses.
store              ``EntityStore`` contract plus Django and in-memory backends.
notifications      Pure derivation of notifications from status changes.
access             Role-scoped selectors and guards.

Usage from any app::

    from core.domain.exceptions import DomainError, NotFound
    from core.domain.notifications import NotificationGenerator
    from core.domain.store import get_entity_store
    from core.domain.access import resolve_scope, require_role
"""
