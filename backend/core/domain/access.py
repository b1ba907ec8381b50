"""
core.domain.access — Role-scoped query selectors (shared patterns).

This module provides shared utilities that each app's service layer
calls to decide what the requesting user may see or do.

╔══════════════════════════════════════════════════════════════════╗
║  IMPORTANT — Per-app scoping logic does NOT live here.         ║
║  Each app's ``services.py`` owns its own scope-rules list.     ║
║  This module provides:                                         ║
║    1) ``resolve_scope`` — ordered role dispatch → criteria.    ║
║    2) ``require_role``  — guard that checks the user's role.   ║
║    3) ``get_user_role_name`` — informational role-name helper. ║
╚══════════════════════════════════════════════════════════════════╝

Scopes are returned as ``find_by`` criteria dicts so they work against
any ``EntityStore`` backend::

    from core.domain.access import resolve_scope

    COMPLAINT_SCOPE_RULES = [
        ("admin", lambda u: {}),
        ("user",  lambda u: {"user_id": u.pk}),
    ]

    criteria = resolve_scope(user, scope_rules=COMPLAINT_SCOPE_RULES)
    if criteria is None:
        return []
    return store.find_by(Complaint, **criteria)
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from accounts.models import User

# Takes the user and returns ``find_by`` criteria.
ScopeFilter = Callable[["User"], dict[str, Any]]

# A single scope rule: (role_name, filter_fn).
ScopeRule = tuple[str, ScopeFilter]


def get_user_role_name(user: User) -> str | None:
    """
    Return the role value for a user, or ``None`` for anonymous users.

    Superusers are always treated as administrators.
    """
    if not getattr(user, "is_authenticated", False):
        return None
    if user.is_superuser:
        return "admin"
    return getattr(user, "role", None) or None


def is_admin(user: User) -> bool:
    return get_user_role_name(user) == "admin"


def resolve_scope(
    user: User,
    *,
    scope_rules: list[ScopeRule],
    default: str = "none",
) -> dict[str, Any] | None:
    """
    Return the criteria of the first rule matching the user's role.

    Args:
        user:         The requesting user.
        scope_rules:  Ordered list of ``(role_name, filter_fn)`` tuples.
        default:      ``"none"`` (default) → ``None`` meaning nothing
                      is visible.  ``"all"`` → ``{}`` (unfiltered).

    Returns:
        A criteria dict for ``EntityStore.find_by``, or ``None``.
    """
    role_name = get_user_role_name(user)
    for role, filter_fn in scope_rules:
        if role == role_name:
            return filter_fn(user)

    if default == "none":
        return None
    return {}


def require_role(user: User, *allowed_roles: str, message: str = "") -> None:
    """
    Guard that raises ``PermissionDenied`` if the user's role is not
    among ``allowed_roles``.

    Example::

        require_role(user, "admin")
    """
    from core.domain.exceptions import PermissionDenied as DomainPermissionDenied

    role_name = get_user_role_name(user)
    if role_name not in allowed_roles:
        raise DomainPermissionDenied(
            message
            or (
                f"Role '{role_name}' is not permitted for this operation. "
                f"Required: {', '.join(allowed_roles)}."
            )
        )
