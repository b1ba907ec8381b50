"""
Complaints app Service Layer.

This module is the **single source of truth** for all business logic in
the ``complaints`` app.  Views must remain thin: validate input via
serializers, call a service method, and return the result wrapped in a
DRF ``Response``.

Architecture
------------
- ``ComplaintLifecycleService`` — filing and the admin status/remarks
  update; the only writer of ``Complaint.status``.
- ``ComplaintQueryService``     — look-ups and role-scoped listings.

Both talk to the configured ``EntityStore`` only (see
``core.domain.store``), never to a model manager directly.

Lifecycle
---------
::

    PENDING ──▶ IN_PROGRESS ──▶ RESOLVED
       ▲             ▲  │           │
       └─────────────┴──┴───────────┘   (admin may set any status)

By default every status can be set from every status.  Deployments that
need a stricter workflow set ``COMPLAINT_ALLOWED_TRANSITIONS`` to a
mapping of ``status → [allowed target statuses]``; anything else then
raises ``InvalidTransition``.

Update contract
---------------
Inside one ``store.atomic()`` block ``update`` overwrites status and
remarks and, when the status actually changed, writes a
``ComplaintStatusLog`` row plus, for non-anonymous complaints, exactly
one ``Notification``.  If any of those writes fails, none of them
persist.
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Mapping

from django.conf import settings

from accounts.models import Role, User
from accounts.services import ensure_can_file
from core.domain.access import resolve_scope, require_role
from core.domain.exceptions import InvalidTransition, NotFound, ValidationFailed
from core.domain.notifications import NotificationGenerator
from core.domain.store import EntityStore, get_entity_store

from .models import (
    REFERENCE_PREFIX,
    Complaint,
    ComplaintCategory,
    ComplaintStatus,
    ComplaintStatusLog,
    parse_reference,
)

logger = logging.getLogger(__name__)

#: Newest first; id breaks ties between identical timestamps.
NEWEST_FIRST: tuple[str, ...] = ("-created_at", "-id")

#: Role → ``find_by`` criteria for complaint listings.
COMPLAINT_SCOPE_RULES = [
    (Role.ADMIN, lambda u: {}),
    (Role.USER, lambda u: {"user_id": u.pk}),
]


def get_allowed_transitions() -> dict[str, set[str]] | None:
    """
    Read ``COMPLAINT_ALLOWED_TRANSITIONS`` from settings.

    ``None`` (the default) means the unrestricted reference behaviour.
    """
    raw = getattr(settings, "COMPLAINT_ALLOWED_TRANSITIONS", None)
    if raw is None:
        return None
    return {str(source): {str(t) for t in targets} for source, targets in raw.items()}


def _require_text(value: Any, field: str) -> str:
    text = (value or "").strip() if isinstance(value, str) or value is None else str(value).strip()
    if not text:
        raise ValidationFailed(f"{field.capitalize()} must not be empty.", field=field)
    return text


def _clean_location(location: Mapping[str, Any] | None) -> tuple[float | None, float | None]:
    if not location:
        return None, None
    try:
        latitude = float(location["latitude"])
        longitude = float(location["longitude"])
    except (KeyError, TypeError, ValueError):
        raise ValidationFailed(
            "Location must provide numeric 'latitude' and 'longitude'.",
            field="location",
        )
    if not (-90 <= latitude <= 90 and -180 <= longitude <= 180):
        raise ValidationFailed("Location is out of range.", field="location")
    return latitude, longitude


# ═══════════════════════════════════════════════════════════════════
#  Complaint Lifecycle Service
# ═══════════════════════════════════════════════════════════════════


class ComplaintLifecycleService:
    """
    Enforces the complaint state machine and field-mutation rules.

    Parameters
    ----------
    store : EntityStore, optional
        Defaults to the process-wide store from ``get_entity_store()``.
    allowed_transitions : mapping, optional
        Overrides ``COMPLAINT_ALLOWED_TRANSITIONS`` (``None`` → permissive).
    """

    def __init__(
        self,
        store: EntityStore | None = None,
        *,
        allowed_transitions: Mapping[str, Iterable[str]] | None = None,
    ) -> None:
        self.store = store or get_entity_store()
        if allowed_transitions is not None:
            self.allowed_transitions = {
                str(source): {str(t) for t in targets}
                for source, targets in allowed_transitions.items()
            }
        else:
            self.allowed_transitions = get_allowed_transitions()

    # ── Filing ──────────────────────────────────────────────────────

    def submit(
        self,
        *,
        author_id: int | None,
        category: str,
        title: str,
        description: str,
        attachments: Iterable[str] | None = None,
        location: Mapping[str, Any] | None = None,
        anonymous: bool = False,
    ) -> Complaint:
        """
        File a new complaint.

        Parameters
        ----------
        author_id : int or None
            The filing user.  ``None`` files an anonymous complaint.
        category : str
            A ``ComplaintCategory`` value.
        title, description : str
            Required, non-blank.
        attachments : iterable of str, optional
            Opaque media URIs.
        location : mapping, optional
            ``{"latitude": ..., "longitude": ...}``.
        anonymous : bool
            When ``True`` the author is not recorded, even if known.

        Returns
        -------
        Complaint
            Saved, ``status=PENDING``, ``remarks=""``.

        Raises
        ------
        ValidationFailed
            Blank title/description, unknown category, bad location.
        NotFound
            ``author_id`` does not exist.
        AccountNotVerified / PermissionDenied
            The author may not file complaints yet.
        """
        title = _require_text(title, "title")
        description = _require_text(description, "description")
        if category not in ComplaintCategory.values:
            raise ValidationFailed(
                f"Unknown category '{category}'. "
                f"Must be one of: {', '.join(ComplaintCategory.values)}.",
                field="category",
            )
        latitude, longitude = _clean_location(location)

        if author_id is not None:
            author = self.store.get_by_id(User, author_id)
            if author is None:
                raise NotFound(f"User with id {author_id} does not exist.")
            ensure_can_file(author)

        is_anonymous = anonymous or author_id is None
        complaint = Complaint(
            user_id=None if is_anonymous else author_id,
            is_anonymous=is_anonymous,
            title=title,
            description=description,
            category=category,
            status=ComplaintStatus.PENDING,
            remarks="",
            attachments=[str(uri) for uri in (attachments or [])],
            latitude=latitude,
            longitude=longitude,
        )
        self.store.put(complaint)
        logger.info(
            "Complaint %s filed (category=%s, anonymous=%s)",
            complaint.reference,
            category,
            is_anonymous,
        )
        return complaint

    # ── Administrator update ────────────────────────────────────────

    def update(
        self,
        complaint_id: int | str,
        *,
        status: str,
        remarks: str,
        actor: User | None = None,
    ) -> Complaint:
        """
        **The central state-machine gateway.**

        Overwrite ``status`` and ``remarks``; on a real status change also
        log it and notify the filer, atomically.

        Parameters
        ----------
        complaint_id : int or str
            Numeric id or ``CMPnnn`` reference.
        status : str
            Target ``ComplaintStatus`` value.
        remarks : str
            Replaces the current remarks (may be empty).
        actor : User, optional
            When given, must be an administrator; recorded in the log.

        Raises
        ------
        NotFound
            Unknown complaint.
        ValidationFailed
            Unknown status.
        PermissionDenied
            ``actor`` is not an administrator.
        InvalidTransition
            A configured transition graph forbids the change.
        """
        if actor is not None:
            require_role(
                actor,
                Role.ADMIN,
                message="Only administrators can update complaints.",
            )
        if status not in ComplaintStatus.values:
            raise ValidationFailed(
                f"Unknown status '{status}'. "
                f"Must be one of: {', '.join(ComplaintStatus.values)}.",
                field="status",
            )
        pk = parse_reference(complaint_id)
        if pk is None:
            raise NotFound(f"Complaint '{complaint_id}' does not exist.")

        with self.store.atomic():
            complaint = self.store.get_for_update(Complaint, pk)
            if complaint is None:
                raise NotFound(f"Complaint '{complaint_id}' does not exist.")

            old_status = complaint.status
            self._check_transition(old_status, status)

            complaint.status = status
            complaint.remarks = remarks or ""
            self.store.put(complaint)

            if old_status != status:
                self.store.put(
                    ComplaintStatusLog(
                        complaint_id=complaint.pk,
                        from_status=old_status,
                        to_status=status,
                        changed_by_id=actor.pk if actor is not None else None,
                        remarks=complaint.remarks,
                    )
                )
                if NotificationGenerator.should_notify(complaint, old_status, status):
                    notification = NotificationGenerator.derive(complaint, old_status, status)
                    self.store.put(notification)
                    logger.info(
                        "Notification %s queued for user=%s",
                        notification.pk,
                        complaint.user_id,
                    )

        logger.info(
            "Complaint %s updated: %s -> %s",
            complaint.reference,
            old_status,
            status,
        )
        return complaint

    def _check_transition(self, current: str, target: str) -> None:
        if self.allowed_transitions is None or current == target:
            return
        if target not in self.allowed_transitions.get(current, set()):
            raise InvalidTransition(
                current=current,
                target=target,
                reason="not permitted by COMPLAINT_ALLOWED_TRANSITIONS",
            )


# ═══════════════════════════════════════════════════════════════════
#  Complaint Query Service
# ═══════════════════════════════════════════════════════════════════


class ComplaintQueryService:
    """
    Read-side helpers.  Listings are newest first.
    """

    def __init__(self, store: EntityStore | None = None) -> None:
        self.store = store or get_entity_store()

    def get_complaint_by_id(self, complaint_id: int | str) -> Complaint:
        """
        Look up a complaint by numeric id or ``CMPnnn`` reference.

        Raises
        ------
        NotFound
        """
        pk = parse_reference(complaint_id)
        complaint = self.store.get_by_id(Complaint, pk) if pk is not None else None
        if complaint is None:
            raise NotFound(f"Complaint '{complaint_id}' does not exist.")
        return complaint

    def track(self, reference: str) -> Complaint:
        """
        Public look-up by ``CMPnnn`` reference for the tracking page.

        Works without an account, so it is the only way to follow an
        anonymous complaint.  Bare numeric ids are not accepted.

        Raises
        ------
        NotFound
        """
        if not str(reference).upper().startswith(REFERENCE_PREFIX):
            raise NotFound(f"Complaint '{reference}' does not exist.")
        return self.get_complaint_by_id(reference)

    def get_complaint_for_viewer(self, user: User, complaint_id: int | str) -> Complaint:
        """
        Like ``get_complaint_by_id`` but citizens may only open their own
        complaints.

        Raises
        ------
        NotFound
        PermissionDenied
        """
        complaint = self.get_complaint_by_id(complaint_id)
        if complaint.user_id != user.pk:
            require_role(
                user,
                Role.ADMIN,
                message="You can only view your own complaints.",
            )
        return complaint

    def get_complaints_by_user(self, user_id: int) -> list[Complaint]:
        return self.store.find_by(Complaint, order_by=NEWEST_FIRST, user_id=user_id)

    def get_all_complaints(
        self,
        *,
        status: str | None = None,
        category: str | None = None,
    ) -> list[Complaint]:
        criteria: dict[str, Any] = {}
        if status:
            criteria["status"] = status
        if category:
            criteria["category"] = category
        return self.store.find_by(Complaint, order_by=NEWEST_FIRST, **criteria)

    def list_for_viewer(
        self,
        user: User,
        *,
        status: str | None = None,
        category: str | None = None,
    ) -> list[Complaint]:
        """
        Administrators see every complaint; citizens only their own
        (anonymous complaints are never listed for anyone but admins).
        """
        criteria = resolve_scope(user, scope_rules=COMPLAINT_SCOPE_RULES)
        if criteria is None:
            return []
        if status:
            criteria["status"] = status
        if category:
            criteria["category"] = category
        return self.store.find_by(Complaint, order_by=NEWEST_FIRST, **criteria)

    def get_status_log(
        self,
        complaint_id: int | str,
        *,
        viewer: User | None = None,
    ) -> list[ComplaintStatusLog]:
        if viewer is not None:
            complaint = self.get_complaint_for_viewer(viewer, complaint_id)
        else:
            complaint = self.get_complaint_by_id(complaint_id)
        return self.store.find_by(
            ComplaintStatusLog,
            order_by=NEWEST_FIRST,
            complaint_id=complaint.pk,
        )
