"""
Complaints app ViewSets.

Views are intentionally thin.  Every view follows the three-step pattern:

    1. Parse / validate input via a serializer.
    2. Delegate all business logic to the appropriate service class.
    3. Serialize the result and return a DRF ``Response``.

Domain exceptions raised by the services are translated to HTTP by
``core.domain.exception_handler``.
"""

from __future__ import annotations

import logging

from drf_spectacular.utils import OpenApiParameter, OpenApiResponse, extend_schema
from rest_framework import status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.request import Request
from rest_framework.response import Response

from .serializers import (
    ComplaintCreateSerializer,
    ComplaintFilterSerializer,
    ComplaintSerializer,
    ComplaintStatusLogSerializer,
    ComplaintStatusUpdateSerializer,
    ComplaintTrackingSerializer,
)
from .services import ComplaintLifecycleService, ComplaintQueryService

logger = logging.getLogger(__name__)


class ComplaintViewSet(viewsets.ViewSet):
    """
    Central ViewSet for the complaints app.

    ``{id}`` accepts either the numeric id or the ``CMPnnn`` reference.

    Permission Strategy
    -------------------
    The base permission is ``IsAuthenticated``; only ``track`` is public.
    Role and ownership checks live in the service layer.
    """

    permission_classes = [IsAuthenticated]
    lookup_value_regex = r"(?:[Cc][Mm][Pp])?\d+"

    @extend_schema(
        summary="List complaints",
        description=(
            "Administrators see every complaint; citizens only their own. "
            "Newest first."
        ),
        parameters=[
            OpenApiParameter(name="status", type=str, location=OpenApiParameter.QUERY, description="Filter by status."),
            OpenApiParameter(name="category", type=str, location=OpenApiParameter.QUERY, description="Filter by category."),
        ],
        responses={200: ComplaintSerializer(many=True)},
        tags=["Complaints"],
    )
    def list(self, request: Request) -> Response:
        filters = ComplaintFilterSerializer(data=request.query_params)
        filters.is_valid(raise_exception=True)
        complaints = ComplaintQueryService().list_for_viewer(
            request.user,
            status=filters.validated_data.get("status"),
            category=filters.validated_data.get("category"),
        )
        return Response(ComplaintSerializer(complaints, many=True).data)

    @extend_schema(
        summary="File a complaint",
        request=ComplaintCreateSerializer,
        responses={
            201: ComplaintSerializer,
            403: OpenApiResponse(description="Account not verified."),
        },
        tags=["Complaints"],
    )
    def create(self, request: Request) -> Response:
        serializer = ComplaintCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        complaint = ComplaintLifecycleService().submit(
            author_id=request.user.pk,
            category=data["category"],
            title=data["title"],
            description=data["description"],
            attachments=data.get("attachments"),
            location=data.get("location"),
            anonymous=data.get("anonymous", False),
        )
        return Response(ComplaintSerializer(complaint).data, status=status.HTTP_201_CREATED)

    @extend_schema(
        summary="Retrieve a complaint",
        responses={
            200: ComplaintSerializer,
            403: OpenApiResponse(description="Not your complaint."),
            404: OpenApiResponse(description="Unknown complaint."),
        },
        tags=["Complaints"],
    )
    def retrieve(self, request: Request, pk: str = None) -> Response:
        complaint = ComplaintQueryService().get_complaint_for_viewer(request.user, pk)
        return Response(ComplaintSerializer(complaint).data)

    # ── Workflow @actions ─────────────────────────────────────────────

    @extend_schema(
        summary="Update status and remarks (administrators)",
        request=ComplaintStatusUpdateSerializer,
        responses={
            200: ComplaintSerializer,
            403: OpenApiResponse(description="Not an administrator."),
            404: OpenApiResponse(description="Unknown complaint."),
            409: OpenApiResponse(description="Transition not allowed."),
        },
        tags=["Complaints"],
    )
    @action(detail=True, methods=["post"], url_path="update-status")
    def update_status(self, request: Request, pk: str = None) -> Response:
        serializer = ComplaintStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        complaint = ComplaintLifecycleService().update(
            pk,
            status=serializer.validated_data["status"],
            remarks=serializer.validated_data.get("remarks", ""),
            actor=request.user,
        )
        return Response(ComplaintSerializer(complaint).data)

    @extend_schema(
        summary="Status history of a complaint",
        responses={200: ComplaintStatusLogSerializer(many=True)},
        tags=["Complaints"],
    )
    @action(detail=True, methods=["get"], url_path="status-log")
    def status_log(self, request: Request, pk: str = None) -> Response:
        logs = ComplaintQueryService().get_status_log(pk, viewer=request.user)
        return Response(ComplaintStatusLogSerializer(logs, many=True).data)

    @extend_schema(
        summary="Track a complaint by reference (public)",
        description=(
            "Status card for a ``CMPnnn`` reference.  No login needed, so "
            "anonymous filers can follow their complaint."
        ),
        responses={
            200: ComplaintTrackingSerializer,
            404: OpenApiResponse(description="Unknown reference."),
        },
        tags=["Complaints"],
    )
    @action(detail=True, methods=["get"], url_path="track", permission_classes=[AllowAny])
    def track(self, request: Request, pk: str = None) -> Response:
        complaint = ComplaintQueryService().track(pk)
        return Response(ComplaintTrackingSerializer(complaint).data)
