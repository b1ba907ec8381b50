"""
Complaints app URL configuration.

All routes are registered under the ``/api/`` prefix.

Route Hierarchy
---------------
  /api/complaints/                           → list / create
  /api/complaints/{id}/                      → retrieve ({id} or CMPnnn)

  ── Workflow @actions ───────────────────────────────────────────
  POST /api/complaints/{id}/update-status/   → administrator update
  GET  /api/complaints/{id}/status-log/      → status history
"""

from rest_framework.routers import DefaultRouter

from .views import ComplaintViewSet

router = DefaultRouter()
router.register(
    prefix=r"complaints",
    viewset=ComplaintViewSet,
    basename="complaint",
)

urlpatterns = router.urls
