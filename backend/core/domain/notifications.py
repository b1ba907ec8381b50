"""
core.domain.notifications — Notification derivation from status changes.

Centralises notification construction so the complaint lifecycle uses
one consistent entry-point rather than building ``Notification`` objects
by hand.

Design decisions
----------------
* **Pure** — ``NotificationGenerator.derive`` only constructs an unsaved
  ``Notification``; the caller persists it through its ``EntityStore``
  inside the same ``atomic()`` block as the complaint write.
* **Fixed language** — messages are rendered from the English status
  labels and stored as-is.  They never pass through the translation
  layer; clients localise the text around them if they need to.
* **Recipient is the filer** — anonymous complaints (``user_id is None``)
  never produce a notification.

Usage::

    from core.domain.notifications import NotificationGenerator

    if NotificationGenerator.should_notify(complaint, old_status, new_status):
        store.put(NotificationGenerator.derive(complaint, old_status, new_status))
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from complaints.models import Complaint
    from core.models import Notification

logger = logging.getLogger(__name__)

# ── Event-type → (title, message template) ──────────────────────────
_EVENT_TEMPLATES: dict[str, tuple[str, str]] = {
    "complaint_status_changed": (
        "Complaint Status Updated",
        'The status of your complaint #{reference} has been updated to "{status}".',
    ),
}


def render_status_message(reference: str, status_label: str) -> str:
    """Render the fixed-language status-change message."""
    _, template = _EVENT_TEMPLATES["complaint_status_changed"]
    return template.format(reference=reference, status=status_label)


class NotificationGenerator:
    """
    Stateless helper that turns a complaint status transition into a
    ``Notification`` record.

    All methods are classmethods — no instance state is needed.
    """

    event_type = "complaint_status_changed"

    @classmethod
    def should_notify(cls, complaint: Complaint, old_status: str, new_status: str) -> bool:
        """True iff the status actually changed and the complaint has an owner."""
        return old_status != new_status and complaint.user_id is not None

    @classmethod
    def derive(cls, complaint: Complaint, old_status: str, new_status: str) -> Notification:
        """
        Build (but do not save) the notification for one transition.

        Args:
            complaint:  The complaint *after* the update was applied.
            old_status: Status before the update.
            new_status: Status after the update.

        Returns:
            An unsaved ``Notification`` owned by ``complaint.user_id``.

        Raises:
            ValueError: If the transition should not notify anyone; callers
                        are expected to check ``should_notify`` first.
        """
        from complaints.models import ComplaintStatus
        from core.models import Notification  # lazy import — avoids circular deps

        if not cls.should_notify(complaint, old_status, new_status):
            raise ValueError(
                f"No notification for complaint {complaint.pk}: "
                f"{old_status!r} -> {new_status!r}, owner={complaint.user_id!r}."
            )

        title, _ = _EVENT_TEMPLATES[cls.event_type]
        message = render_status_message(
            complaint.reference,
            str(ComplaintStatus(new_status).label),
        )
        logger.debug(
            "Derived notification for user=%s complaint=%s (%s -> %s)",
            complaint.user_id,
            complaint.pk,
            old_status,
            new_status,
        )
        return Notification(
            recipient_id=complaint.user_id,
            complaint_id=complaint.pk,
            complaint_title=complaint.title,
            title=title,
            message=message,
            is_read=False,
        )
