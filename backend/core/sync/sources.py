"""
core.sync.sources — Where the sync engine reads notifications from.

A ``NotificationSource`` is the engine's only collaborator: it returns the
viewer's full notification set and records a read.  Two implementations
ship with the project:

``StoreNotificationSource``
    In-process; goes through ``NotificationService`` (and therefore the
    configured ``EntityStore``) on a worker thread via ``sync_to_async``.

``HttpNotificationSource``
    Talks to the REST API with a JWT bearer token using ``httpx``.
    Transport failures and ``5xx`` responses surface as
    ``TransientIOError`` so the engine can skip the tick.
"""

from __future__ import annotations

import dataclasses
import logging
from datetime import datetime
from typing import Any, Mapping, Protocol

import httpx
from asgiref.sync import sync_to_async
from django.utils.dateparse import parse_datetime

from core.domain.exceptions import DomainError, NotFound, PermissionDenied, TransientIOError

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class NotificationSnapshot:
    """Immutable client-side copy of one notification."""

    id: int
    complaint_id: int
    complaint_title: str
    title: str
    message: str
    is_read: bool
    created_at: datetime

    @classmethod
    def from_model(cls, notification: Any) -> NotificationSnapshot:
        return cls(
            id=notification.pk,
            complaint_id=notification.complaint_id,
            complaint_title=notification.complaint_title,
            title=notification.title,
            message=notification.message,
            is_read=notification.is_read,
            created_at=notification.created_at,
        )

    @classmethod
    def from_payload(cls, data: Mapping[str, Any]) -> NotificationSnapshot:
        """Build from one item of ``GET /api/core/notifications/``."""
        created_at = data["created_at"]
        if isinstance(created_at, str):
            created_at = parse_datetime(created_at)
        if not isinstance(created_at, datetime):
            raise ValueError(f"Invalid created_at: {data['created_at']!r}")
        return cls(
            id=int(data["id"]),
            complaint_id=int(data["complaint_id"]),
            complaint_title=data.get("complaint_title", ""),
            title=data["title"],
            message=data["message"],
            is_read=bool(data["is_read"]),
            created_at=created_at,
        )

    def as_read(self) -> NotificationSnapshot:
        return dataclasses.replace(self, is_read=True)


class NotificationSource(Protocol):
    async def fetch(self, user_id: int) -> list[NotificationSnapshot]:
        """Return every notification of ``user_id``."""
        ...

    async def mark_read(self, notification_id: int, *, user_id: int) -> None:
        ...


# ═══════════════════════════════════════════════════════════════════
#  In-process source
# ═══════════════════════════════════════════════════════════════════


class StoreNotificationSource:
    """Reads and writes through ``NotificationService``."""

    def __init__(self, service: Any = None) -> None:
        if service is None:
            from core.services import NotificationService

            service = NotificationService()
        self.service = service

    def _fetch(self, user_id: int) -> list[NotificationSnapshot]:
        return [
            NotificationSnapshot.from_model(n)
            for n in self.service.get_notifications_by_user(user_id)
        ]

    async def fetch(self, user_id: int) -> list[NotificationSnapshot]:
        return await sync_to_async(self._fetch)(user_id)

    async def mark_read(self, notification_id: int, *, user_id: int) -> None:
        await sync_to_async(self.service.mark_as_read)(notification_id, user_id=user_id)


# ═══════════════════════════════════════════════════════════════════
#  HTTP source
# ═══════════════════════════════════════════════════════════════════


class HttpNotificationSource:
    """
    ``NotificationSource`` backed by the REST API.

    Parameters
    ----------
    base_url : str
        Server root, e.g. ``"http://localhost:8000"``.
    token : str
        JWT access token of the viewer; the server derives the user from
        it, so ``user_id`` is only used for logging.
    client : httpx.AsyncClient, optional
        Reused for every request when given (tests pass one built on
        ``httpx.MockTransport``).  Otherwise a short-lived client is
        opened per request.
    timeout : float
        Per-request timeout in seconds.
    """

    NOTIFICATIONS_PATH = "/api/core/notifications/"

    def __init__(
        self,
        base_url: str,
        token: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        user_agent: str = "civic-complaints-sync/1.0",
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self._token = token
        self._client = client
        self._timeout = timeout
        self._user_agent = user_agent

    def _headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self._token}",
            "Accept": "application/json",
            "User-Agent": self._user_agent,
        }

    async def _request(self, method: str, path: str) -> httpx.Response:
        url = f"{self.base_url}{path}"
        try:
            if self._client is not None:
                response = await self._client.request(method, url, headers=self._headers())
            else:
                async with httpx.AsyncClient(timeout=self._timeout) as client:
                    response = await client.request(method, url, headers=self._headers())
        except httpx.TransportError as exc:
            raise TransientIOError(f"{method} {url} failed: {exc}") from exc

        if response.status_code >= 500:
            raise TransientIOError(f"{method} {url} returned HTTP {response.status_code}")
        if response.status_code == 404:
            raise NotFound(f"{method} {url} returned HTTP 404")
        if response.status_code in (401, 403):
            raise PermissionDenied(f"{method} {url} returned HTTP {response.status_code}")
        if response.status_code >= 400:
            raise DomainError(f"{method} {url} returned HTTP {response.status_code}")
        return response

    async def fetch(self, user_id: int) -> list[NotificationSnapshot]:
        response = await self._request("GET", self.NOTIFICATIONS_PATH)
        try:
            items = response.json()
            return [NotificationSnapshot.from_payload(item) for item in items]
        except (ValueError, KeyError, TypeError) as exc:
            raise TransientIOError(f"Malformed notification payload for user={user_id}: {exc}") from exc

    async def mark_read(self, notification_id: int, *, user_id: int) -> None:
        await self._request("POST", f"{self.NOTIFICATIONS_PATH}{notification_id}/read/")
        logger.debug("Marked notification %s read for user=%s over HTTP", notification_id, user_id)
