"""
core.sync.engine — Per-viewer notification polling.

``NotificationSyncEngine`` keeps a local mirror of one viewer's
notifications and derives the unread badge from it.

Session lifecycle
-----------------
::

    start_session(u) ── blocking fetch-all ──▶ polling every ``interval`` s
          ▲                                          │
          └──────── start_session(v) / end_session ◀─┘

* Every refresh is a **full replace** of the cache, newest first (ties
  by id descending).
* A tick that fires while the previous fetch is still running is
  dropped, never queued.
* ``TransientIOError`` and fetch timeouts are logged and skipped; the
  cache stays as it was.
* Each session has a generation number.  Results that arrive for an
  ended or replaced session are discarded.
* ``mark_as_read`` remembers the id until a server snapshot reports the
  notification as read, and re-applies it to every refresh in between,
  so a snapshot taken before the mark cannot flip it back to unread.

Usage::

    engine = NotificationSyncEngine(StoreNotificationSource())
    await engine.start_session(user.pk)
    engine.unread_count
    await engine.mark_as_read(42)
    await engine.end_session()
"""

from __future__ import annotations

import asyncio
import contextlib
import logging
from datetime import datetime

from django.utils import timezone

from core.constants import get_fetch_timeout_seconds, get_poll_interval_seconds
from core.domain.exceptions import DomainError, TransientIOError

from .sources import NotificationSnapshot, NotificationSource

logger = logging.getLogger(__name__)


class NotificationSyncEngine:
    """
    Parameters
    ----------
    source : NotificationSource
    interval : float, optional
        Seconds between polls.  Defaults to
        ``CIVIC_NOTIFICATIONS["POLL_INTERVAL_SECONDS"]``.
    fetch_timeout : float, optional
        Upper bound for one fetch.  Defaults to
        ``CIVIC_NOTIFICATIONS["FETCH_TIMEOUT_SECONDS"]``; ``None`` there
        means no bound.
    """

    def __init__(
        self,
        source: NotificationSource,
        *,
        interval: float | None = None,
        fetch_timeout: float | None = None,
    ) -> None:
        self.source = source
        self.interval = interval if interval is not None else get_poll_interval_seconds()
        self.fetch_timeout = (
            fetch_timeout if fetch_timeout is not None else get_fetch_timeout_seconds()
        )

        self._user_id: int | None = None
        self._generation = 0
        self._cache: list[NotificationSnapshot] = []
        self._pending_reads: set[int] = set()
        self._in_flight: int | None = None  # generation of the running fetch
        self._poll_task: asyncio.Task | None = None
        self._tick_task: asyncio.Task | None = None

        self.last_synced_at: datetime | None = None
        self.failed_ticks = 0
        self.dropped_ticks = 0

    # ── Read-only view ──────────────────────────────────────────────

    @property
    def user_id(self) -> int | None:
        return self._user_id

    @property
    def is_active(self) -> bool:
        return self._user_id is not None

    @property
    def notifications(self) -> tuple[NotificationSnapshot, ...]:
        return tuple(self._cache)

    @property
    def unread_count(self) -> int:
        return sum(1 for n in self._cache if not n.is_read)

    # ── Session control ─────────────────────────────────────────────

    async def start_session(self, user_id: int) -> None:
        """
        Begin mirroring ``user_id``'s notifications.

        Any previous session is ended first.  The initial load happens
        before this returns; if it fails transiently the session still
        starts with an empty cache and the next tick retries.

        Raises
        ------
        DomainError
            Non-transient failure of the initial load (e.g. the token was
            rejected).  The session is not started.  Any other exception
            from the source also ends the session and propagates.
        """
        await self.end_session()
        self._generation += 1
        generation = self._generation
        self._user_id = user_id
        logger.info("Notification session started for user=%s", user_id)

        try:
            await self._poll_once(generation)
        except BaseException:
            await self.end_session()
            raise

        self._poll_task = asyncio.ensure_future(self._poll_loop(generation))

    async def end_session(self) -> None:
        """Stop polling and forget the cache.  Safe to call repeatedly."""
        was_active = self._user_id is not None
        self._generation += 1
        for task in (self._poll_task, self._tick_task):
            if task is not None and not task.done():
                task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await task
        self._poll_task = None
        self._tick_task = None
        self._in_flight = None
        self._cache = []
        self._pending_reads.clear()
        if was_active:
            logger.info("Notification session ended for user=%s", self._user_id)
        self._user_id = None

    # ── Operations ──────────────────────────────────────────────────

    async def refresh(self) -> bool:
        """
        Poll once now.

        Returns ``False`` when the refresh was dropped, failed
        transiently, or belonged to a session that has since ended.
        """
        if self._user_id is None:
            return False
        return await self._poll_once(self._generation)

    async def mark_as_read(self, notification_id: int) -> None:
        """
        Record the read in the source, then flip the cached copy.

        Idempotent.  Errors from the source (``NotFound`` for an unknown
        or foreign id, ``TransientIOError``) propagate.
        """
        if self._user_id is None:
            raise DomainError("No notification session is active.")
        generation = self._generation

        # An earlier successful call may already have queued this id.
        was_pending = notification_id in self._pending_reads
        self._pending_reads.add(notification_id)
        try:
            await self.source.mark_read(notification_id, user_id=self._user_id)
        except Exception:
            if not was_pending:
                self._pending_reads.discard(notification_id)
            raise

        if generation != self._generation:
            return
        self._cache = [
            n.as_read() if n.id == notification_id and not n.is_read else n
            for n in self._cache
        ]

    # ── Internals ───────────────────────────────────────────────────

    async def _poll_loop(self, generation: int) -> None:
        while generation == self._generation:
            await asyncio.sleep(self.interval)
            if generation != self._generation:
                break
            if self._tick_task is not None and not self._tick_task.done():
                self.dropped_ticks += 1
                logger.debug("Previous fetch still running; tick dropped")
                continue
            self._tick_task = asyncio.ensure_future(self._background_tick(generation))

    async def _background_tick(self, generation: int) -> None:
        try:
            await self._poll_once(generation)
        except DomainError as exc:
            self.failed_ticks += 1
            logger.error("Notification poll failed for user=%s: %s", self._user_id, exc)
        except Exception:
            self.failed_ticks += 1
            logger.exception("Unexpected error while polling notifications for user=%s", self._user_id)

    async def _poll_once(self, generation: int) -> bool:
        if self._in_flight == generation:
            self.dropped_ticks += 1
            logger.debug("Fetch already in flight for this session; skipped")
            return False

        user_id = self._user_id
        self._in_flight = generation
        try:
            snapshots = await self._fetch(user_id)
        except (TransientIOError, asyncio.TimeoutError) as exc:
            self.failed_ticks += 1
            logger.warning("Transient notification fetch failure for user=%s: %s", user_id, exc)
            return False
        finally:
            if self._in_flight == generation:
                self._in_flight = None

        if generation != self._generation:
            logger.debug("Discarding notifications fetched for an ended session")
            return False

        self._apply(snapshots)
        return True

    async def _fetch(self, user_id: int) -> list[NotificationSnapshot]:
        if self.fetch_timeout:
            return await asyncio.wait_for(self.source.fetch(user_id), self.fetch_timeout)
        return await self.source.fetch(user_id)

    def _apply(self, snapshots: list[NotificationSnapshot]) -> None:
        self._pending_reads -= {s.id for s in snapshots if s.is_read}
        merged = [
            s.as_read() if s.id in self._pending_reads else s
            for s in snapshots
        ]
        merged.sort(key=lambda s: s.id, reverse=True)
        merged.sort(key=lambda s: s.created_at, reverse=True)
        self._cache = merged
        self.last_synced_at = timezone.now()
        logger.debug(
            "Synced %d notifications for user=%s (%d unread)",
            len(merged),
            self._user_id,
            self.unread_count,
        )
