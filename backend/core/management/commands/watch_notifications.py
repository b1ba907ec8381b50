"""
Management command: watch_notifications
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~

Runs a ``NotificationSyncEngine`` for one user and prints the unread
count after every poll interval, the way a client's notification bell
would see it.

Reads in-process through the configured entity store by default; with
``--base-url`` and ``--token`` it polls a running server over HTTP
instead.

Usage::

    python manage.py watch_notifications 1
    python manage.py watch_notifications 1 --interval 2 --ticks 5
    python manage.py watch_notifications 1 --base-url http://localhost:8000 --token <jwt>
"""

import asyncio

from django.core.management.base import BaseCommand, CommandError

from core.domain.exceptions import DomainError
from core.sync import HttpNotificationSource, NotificationSyncEngine, StoreNotificationSource


class Command(BaseCommand):
    help = "Poll one user's notifications and print the unread count."

    def add_arguments(self, parser):
        parser.add_argument("user_id", type=int)
        parser.add_argument(
            "--interval",
            type=float,
            default=None,
            help="Seconds between polls (default: CIVIC_NOTIFICATIONS setting).",
        )
        parser.add_argument(
            "--ticks",
            type=int,
            default=0,
            help="Stop after this many intervals (0 runs until interrupted).",
        )
        parser.add_argument("--base-url", default=None, help="Poll a server over HTTP.")
        parser.add_argument("--token", default=None, help="JWT access token for --base-url.")

    def handle(self, *args, **options):
        if options["base_url"]:
            if not options["token"]:
                raise CommandError("--token is required with --base-url.")
            source = HttpNotificationSource(options["base_url"], options["token"])
        else:
            source = StoreNotificationSource()

        engine = NotificationSyncEngine(source, interval=options["interval"])
        try:
            asyncio.run(self._watch(engine, options["user_id"], options["ticks"]))
        except KeyboardInterrupt:
            self.stdout.write("Stopped.")
        except DomainError as exc:
            raise CommandError(str(exc)) from exc

    async def _watch(self, engine, user_id, ticks):
        await engine.start_session(user_id)
        self._report(engine)
        try:
            count = 0
            while not ticks or count < ticks:
                await asyncio.sleep(engine.interval)
                count += 1
                self._report(engine)
        finally:
            await engine.end_session()

    def _report(self, engine):
        synced = engine.last_synced_at.isoformat() if engine.last_synced_at else "never"
        self.stdout.write(
            f"user={engine.user_id} unread={engine.unread_count} "
            f"total={len(engine.notifications)} last_sync={synced} "
            f"failed_ticks={engine.failed_ticks}"
        )
