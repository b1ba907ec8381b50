"""
Core app URL configuration.

Provides the administrator dashboard, system-wide constants/enums, and
the citizen notification API.

URL prefix (registered in ``backend/urls.py``)::

    path('api/core/', include('core.urls'))

Endpoint summary
----------------
GET  /api/core/dashboard/                     — Complaint statistics (administrators).
GET  /api/core/constants/                     — Categories, statuses, roles.
GET  /api/core/notifications/                 — List notifications for the authenticated user.
POST /api/core/notifications/{id}/read/       — Mark a single notification as read.
GET  /api/core/notifications/unread-count/    — Number of unread notifications.
"""

from django.urls import include, path
from rest_framework.routers import DefaultRouter

from . import views

app_name = "core"

# ── Router for ViewSet-based endpoints ───────────────────────────────
router = DefaultRouter()
router.register(
    prefix=r"notifications",
    viewset=views.NotificationViewSet,
    basename="notification",
)

urlpatterns = [
    # ── Dashboard ────────────────────────────────────────────────────
    path(
        "dashboard/",
        views.DashboardStatsView.as_view(),
        name="dashboard-stats",
    ),

    # ── System Constants / Enums ─────────────────────────────────────
    path(
        "constants/",
        views.SystemConstantsView.as_view(),
        name="system-constants",
    ),

    # ── Notifications (router-generated URLs) ────────────────────────
    path("", include(router.urls)),
]
