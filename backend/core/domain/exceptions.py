"""
core.domain.exceptions — Domain-specific exception hierarchy.

These exceptions represent business-rule violations inside service layers.
They are deliberately **not** DRF exceptions so that the domain layer stays
framework-agnostic.  ``core.domain.exception_handler`` maps them to HTTP
responses at the API boundary.

Mapping cheatsheet
------------------
┌─────────────────────┬──────────────────────┬──────┐
│ Domain Exception    │ Code                 │ HTTP │
├─────────────────────┼──────────────────────┼──────┤
│ DomainError         │ DOMAIN_ERROR         │ 400  │
│ ValidationFailed    │ VALIDATION_ERROR     │ 400  │
│ PermissionDenied    │ PERMISSION_DENIED    │ 403  │
│ AccountNotVerified  │ NOT_VERIFIED         │ 403  │
│ NotFound            │ NOT_FOUND            │ 404  │
│ Conflict            │ CONFLICT             │ 409  │
│ InvalidTransition   │ INVALID_TRANSITION   │ 409  │
│ TransientIOError    │ TRANSIENT_IO_ERROR   │ 503  │
└─────────────────────┴──────────────────────┴──────┘

Only ``TransientIOError`` is eligible for caller-initiated retry.  The
notification sync engine treats it as a skipped tick.

``StoreIntegrityError`` is intentionally outside the ``DomainError``
tree: an id collision in the entity store is an invariant violation,
not a business-rule failure, and must never be caught and retried.

Recommended usage inside a service::

    from core.domain.exceptions import NotFound

    complaint = store.get_by_id(Complaint, pk)
    if complaint is None:
        raise NotFound(f"Complaint {pk} does not exist.")
"""

from __future__ import annotations


class DomainError(Exception):
    """
    Base class for all domain / business-rule errors.

    Catch this at the view boundary and convert to a 400 Bad Request.
    """

    code = "DOMAIN_ERROR"

    def __init__(self, message: str = "A business rule was violated.") -> None:
        self.message = message
        super().__init__(self.message)


class ValidationFailed(DomainError):
    """
    Bad input (e.g. an empty required field).  Surfaced to the caller
    for correction, never retried automatically.

    Maps to HTTP 400.
    """

    code = "VALIDATION_ERROR"

    def __init__(
        self,
        message: str = "The submitted data is invalid.",
        *,
        field: str | None = None,
    ) -> None:
        super().__init__(message)
        self.field = field


class PermissionDenied(DomainError):
    """
    The authenticated user does not have the required role for this
    operation.

    Maps to HTTP 403.
    """

    code = "PERMISSION_DENIED"

    def __init__(self, message: str = "You do not have permission to perform this action.") -> None:
        super().__init__(message)


class AccountNotVerified(PermissionDenied):
    """
    A citizen account exists but has not completed email verification.

    Maps to HTTP 403.
    """

    code = "NOT_VERIFIED"

    def __init__(self, message: str = "This account has not been verified yet.") -> None:
        super().__init__(message)


class NotFound(DomainError):
    """
    The requested resource does not exist (or is not visible to the
    requesting user).

    Maps to HTTP 404.
    """

    code = "NOT_FOUND"

    def __init__(self, message: str = "The requested resource was not found.") -> None:
        super().__init__(message)


class Conflict(DomainError):
    """
    The operation conflicts with the current state of the resource.

    Typical usage: duplicate registration attempt.
    Maps to HTTP 409.
    """

    code = "CONFLICT"

    def __init__(self, message: str = "The operation conflicts with the current state.") -> None:
        super().__init__(message)


class InvalidTransition(Conflict):
    """
    A status change rejected by a configured transition graph.

    Only raised when ``COMPLAINT_ALLOWED_TRANSITIONS`` is set; the default
    lifecycle lets an administrator set any status from any status.

    Example::

        raise InvalidTransition(
            current="resolved",
            target="pending",
            reason="Resolved complaints can only be reopened as in progress.",
        )
    """

    code = "INVALID_TRANSITION"

    def __init__(
        self,
        message: str | None = None,
        *,
        current: str | None = None,
        target: str | None = None,
        reason: str | None = None,
    ) -> None:
        if message is None:
            parts = ["Invalid state transition"]
            if current and target:
                parts.append(f"from '{current}' to '{target}'")
            if reason:
                parts.append(f"({reason})")
            message = " ".join(parts) + "."
        super().__init__(message)
        self.current = current
        self.target = target
        self.reason = reason


class TransientIOError(DomainError):
    """
    The backing store (or the remote API) could not be reached.

    The only error class eligible for retry.  Maps to HTTP 503.
    """

    code = "TRANSIENT_IO_ERROR"

    def __init__(self, message: str = "The data store is temporarily unavailable.") -> None:
        super().__init__(message)


class StoreIntegrityError(RuntimeError):
    """
    The entity store generated an id that is already taken.

    Fatal: indicates a broken store, not bad input.
    """
