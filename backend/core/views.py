"""
Core app views — **Thin Views**.

Each view delegates all business logic to the corresponding service in
``core.services``.  Views are responsible only for:

1. Extracting the authenticated user and path parameters.
2. Calling the service.
3. Serialising the result and returning an HTTP ``Response``.
"""

from __future__ import annotations

from drf_spectacular.utils import OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response
from rest_framework.views import APIView

from .serializers import (
    DashboardStatsSerializer,
    NotificationSerializer,
    SystemConstantsSerializer,
    UnreadCountSerializer,
)
from .services import (
    DashboardAggregationService,
    NotificationService,
    SystemConstantsService,
)


class DashboardStatsView(APIView):
    """
    **GET /api/core/dashboard/**

    Complaint counts by status and category plus the latest filings.

    **Authentication**: Required; administrators only (``403`` otherwise).
    """

    permission_classes = [IsAuthenticated]

    @extend_schema(
        summary="Dashboard statistics",
        responses={
            200: OpenApiResponse(response=DashboardStatsSerializer, description="Dashboard stats."),
            403: OpenApiResponse(description="Not an administrator."),
        },
        tags=["Dashboard"],
    )
    def get(self, request: Request) -> Response:
        data = DashboardAggregationService(user=request.user).get_stats()
        return Response(DashboardStatsSerializer(data).data, status=status.HTTP_200_OK)


class SystemConstantsView(APIView):
    """
    **GET /api/core/constants/**

    Complaint categories, statuses and roles so clients can build
    dropdowns and labels without hardcoding values.

    **Authentication**: Not required (``AllowAny``).
    """

    permission_classes = [AllowAny]

    @extend_schema(
        summary="System constants",
        responses={200: OpenApiResponse(response=SystemConstantsSerializer, description="System constants.")},
        tags=["System"],
    )
    def get(self, request: Request) -> Response:
        data = SystemConstantsService.get_constants()
        return Response(SystemConstantsSerializer(data).data, status=status.HTTP_200_OK)


class NotificationViewSet(viewsets.ViewSet):
    """
    **Notification API** — for the authenticated user only.

    Endpoints
    ---------
    GET  /api/core/notifications/               → list, newest first
    POST /api/core/notifications/{id}/read/     → mark one as read
    GET  /api/core/notifications/unread-count/  → badge count

    **Authentication**: Required (``IsAuthenticated``).
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"\d+"

    @extend_schema(
        summary="List notifications",
        responses={200: OpenApiResponse(response=NotificationSerializer(many=True), description="Notification list.")},
        tags=["Notifications"],
    )
    def list(self, request: Request) -> Response:
        notifications = NotificationService().get_notifications_by_user(request.user.pk)
        serializer = NotificationSerializer(notifications, many=True)
        return Response(serializer.data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Mark notification as read",
        request=None,
        responses={
            200: OpenApiResponse(response=NotificationSerializer, description="Updated notification."),
            404: OpenApiResponse(description="Unknown notification."),
        },
        tags=["Notifications"],
    )
    @action(detail=True, methods=["post"], url_path="read")
    def mark_as_read(self, request: Request, pk: str = None) -> Response:
        notification = NotificationService().mark_as_read(int(pk), user_id=request.user.pk)
        return Response(NotificationSerializer(notification).data, status=status.HTTP_200_OK)

    @extend_schema(
        summary="Unread notification count",
        responses={200: UnreadCountSerializer},
        tags=["Notifications"],
    )
    @action(detail=False, methods=["get"], url_path="unread-count")
    def unread_count(self, request: Request) -> Response:
        count = NotificationService().unread_count(request.user.pk)
        return Response({"unread_count": count}, status=status.HTTP_200_OK)
