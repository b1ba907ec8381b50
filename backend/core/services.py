"""
Core app services — **Service Layer**.

Contains the notification read-side, the public constants endpoint and
the administrator dashboard.  Views delegate all business logic to the
service classes defined here.

╔══════════════════════════════════════════════════════════════════════╗
║  CROSS-APP IMPORT RULEBOOK                                         ║
║                                                                    ║
║  ``complaints.models`` imports ``core.models`` (TimeStampedModel), ║
║  so models of other apps are NEVER imported at module level here.  ║
║  Import them inside the method that needs them, or via             ║
║  ``TYPE_CHECKING`` for annotations.                                ║
║                                                                    ║
║  Every read and write goes through the configured ``EntityStore``. ║
╚══════════════════════════════════════════════════════════════════════╝
"""

from __future__ import annotations

import logging
from collections import Counter
from typing import TYPE_CHECKING, Any

from core.domain.access import require_role
from core.domain.exceptions import NotFound
from core.domain.store import EntityStore, get_entity_store

from .models import Notification

if TYPE_CHECKING:
    from accounts.models import User

logger = logging.getLogger(__name__)


# ═══════════════════════════════════════════════════════════════════
#  Notification Service
# ═══════════════════════════════════════════════════════════════════

class NotificationService:
    """
    Listing and read-marking of a citizen's notifications.

    Notifications are only ever *created* by
    ``ComplaintLifecycleService.update``; this service never inserts.
    """

    #: Newest first; id breaks ties between identical timestamps.
    ORDERING: tuple[str, ...] = ("-created_at", "-id")

    def __init__(self, store: EntityStore | None = None) -> None:
        self.store = store or get_entity_store()

    def get_notifications_by_user(self, user_id: int) -> list[Notification]:
        """Return all notifications for ``user_id``, most recent first."""
        return self.store.find_by(
            Notification,
            order_by=self.ORDERING,
            recipient_id=user_id,
        )

    def mark_as_read(self, notification_id: int, *, user_id: int | None = None) -> Notification:
        """
        Set ``is_read`` on one notification.  Idempotent.

        Parameters
        ----------
        notification_id : int
        user_id : int, optional
            When given, the notification must belong to this user;
            someone else's notification is reported as missing.

        Raises
        ------
        NotFound
        """
        with self.store.atomic():
            notification = self.store.get_for_update(Notification, notification_id)
            if notification is None or (
                user_id is not None and notification.recipient_id != user_id
            ):
                raise NotFound(f"Notification with id {notification_id} does not exist.")
            if not notification.is_read:
                notification.is_read = True
                self.store.put(notification)
                logger.debug("Notification %s marked read", notification_id)
        return notification

    def unread_count(self, user_id: int) -> int:
        return len(self.store.find_by(Notification, recipient_id=user_id, is_read=False))


# ════════════════════════════════════════════════════════════════════
#  System Constants Service
# ════════════════════════════════════════════════════════════════════

class SystemConstantsService:
    """
    Gathers the choice enumerations the clients render as dropdowns and
    labels.

    This service is **stateless**: it does not depend on the requesting
    user.
    """

    @staticmethod
    def get_constants() -> dict[str, Any]:
        """Return all system constants as a dict."""
        from accounts.models import Role
        from complaints.models import ComplaintCategory, ComplaintStatus

        from .constants import get_poll_interval_seconds

        to_list = SystemConstantsService._choices_to_list
        return {
            "complaint_categories": to_list(ComplaintCategory),
            "complaint_statuses": to_list(ComplaintStatus),
            "roles": to_list(Role),
            "notification_poll_interval_seconds": get_poll_interval_seconds(),
        }

    @staticmethod
    def _choices_to_list(
        choices_class: type,
    ) -> list[dict[str, str]]:
        """
        Convert a Django ``TextChoices`` class to a list of
        ``{"value": ..., "label": ...}`` dicts.
        """
        return [
            {"value": str(value), "label": str(label)}
            for value, label in choices_class.choices
        ]


# ════════════════════════════════════════════════════════════════════
#  Dashboard Aggregation Service
# ════════════════════════════════════════════════════════════════════

class DashboardAggregationService:
    """
    Produces the statistics dict consumed by ``DashboardStatsSerializer``.

    Administrators only: the figures cover every complaint in the system.
    """

    #: Maximum number of recent complaints to return.
    RECENT_LIMIT: int = 5

    def __init__(self, user: User, store: EntityStore | None = None) -> None:
        self.user = user
        self.store = store or get_entity_store()

    def get_stats(self) -> dict[str, Any]:
        """
        Raises
        ------
        PermissionDenied
            The requesting user is not an administrator.
        """
        from accounts.models import Role
        from complaints.models import Complaint, ComplaintCategory, ComplaintStatus

        require_role(self.user, Role.ADMIN, message="Only administrators can view the dashboard.")

        complaints = self.store.find_by(Complaint, order_by=("-created_at", "-id"))
        by_status = Counter(c.status for c in complaints)
        by_category = Counter(c.category for c in complaints)

        return {
            "total_complaints": len(complaints),
            "anonymous_complaints": sum(1 for c in complaints if c.is_anonymous),
            "complaints_by_status": [
                {"status": value, "label": str(label), "count": by_status.get(value, 0)}
                for value, label in ComplaintStatus.choices
            ],
            "complaints_by_category": [
                {"category": value, "label": str(label), "count": by_category.get(value, 0)}
                for value, label in ComplaintCategory.choices
            ],
            "recent_complaints": [
                {
                    "id": c.pk,
                    "reference": c.reference,
                    "title": c.title,
                    "status": c.status,
                    "created_at": c.created_at,
                }
                for c in complaints[: self.RECENT_LIMIT]
            ],
        }
