"""
Core constants — **Single Source of Truth** for project-wide magic numbers.

Anything that reads the polling cadence or fetch timeout should go
through the helpers here instead of hardcoding the values, so the
Django setting ``CIVIC_NOTIFICATIONS`` stays the only override point.
"""

from __future__ import annotations

from django.conf import settings

# ── Notification polling ────────────────────────────────────────────
# Clients re-fetch a signed-in user's notifications on this cadence.
DEFAULT_POLL_INTERVAL_SECONDS: float = 10.0

# ``None`` means a fetch may take as long as the source needs.
DEFAULT_FETCH_TIMEOUT_SECONDS: float | None = None


def _notification_setting(key: str, default):
    return getattr(settings, "CIVIC_NOTIFICATIONS", {}).get(key, default)


def get_poll_interval_seconds() -> float:
    return float(_notification_setting("POLL_INTERVAL_SECONDS", DEFAULT_POLL_INTERVAL_SECONDS))


def get_fetch_timeout_seconds() -> float | None:
    value = _notification_setting("FETCH_TIMEOUT_SECONDS", DEFAULT_FETCH_TIMEOUT_SECONDS)
    return float(value) if value else None
