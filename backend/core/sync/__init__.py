"""
core.sync — Client-side notification synchronisation.

Modules
-------
sources   NotificationSnapshot and the store / HTTP notification sources.
engine    NotificationSyncEngine: per-viewer polling cache.
"""

from .engine import NotificationSyncEngine
from .sources import (
    HttpNotificationSource,
    NotificationSnapshot,
    NotificationSource,
    StoreNotificationSource,
)

__all__ = [
    "HttpNotificationSource",
    "NotificationSnapshot",
    "NotificationSource",
    "NotificationSyncEngine",
    "StoreNotificationSource",
]
