"""
Complaints app serializers.

Request serializers only shape and type-check input; the rules (blank
titles, who may file, status values) are enforced again by
``ComplaintLifecycleService`` so non-HTTP callers get the same checks.
"""

from __future__ import annotations

from rest_framework import serializers

from .models import Complaint, ComplaintCategory, ComplaintStatus, ComplaintStatusLog


# ═══════════════════════════════════════════════════════════════════
#  Request Serializers
# ═══════════════════════════════════════════════════════════════════


class LocationSerializer(serializers.Serializer):
    latitude = serializers.FloatField(min_value=-90, max_value=90)
    longitude = serializers.FloatField(min_value=-180, max_value=180)


class ComplaintCreateSerializer(serializers.Serializer):
    """
    Body of ``POST /api/complaints/``.

    ``anonymous=true`` files the complaint without recording the author;
    such a complaint never produces notifications.
    """

    category = serializers.ChoiceField(choices=ComplaintCategory.choices)
    title = serializers.CharField(max_length=255)
    description = serializers.CharField()
    attachments = serializers.ListField(
        child=serializers.CharField(max_length=500),
        required=False,
        default=list,
        help_text="Opaque media URIs (photo, voice note).",
    )
    location = LocationSerializer(required=False, allow_null=True)
    anonymous = serializers.BooleanField(required=False, default=False)


class ComplaintFilterSerializer(serializers.Serializer):
    """Query parameters of ``GET /api/complaints/``."""

    status = serializers.ChoiceField(choices=ComplaintStatus.choices, required=False)
    category = serializers.ChoiceField(choices=ComplaintCategory.choices, required=False)


class ComplaintStatusUpdateSerializer(serializers.Serializer):
    """Body of ``POST /api/complaints/{id}/update-status/``."""

    status = serializers.ChoiceField(choices=ComplaintStatus.choices)
    remarks = serializers.CharField(required=False, allow_blank=True, default="")


# ═══════════════════════════════════════════════════════════════════
#  Response Serializers
# ═══════════════════════════════════════════════════════════════════


class ComplaintSerializer(serializers.ModelSerializer):
    reference = serializers.CharField(read_only=True)
    category_display = serializers.CharField(source="get_category_display", read_only=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)
    location = LocationSerializer(read_only=True, allow_null=True)

    class Meta:
        model = Complaint
        fields = [
            "id",
            "reference",
            "user",
            "is_anonymous",
            "title",
            "description",
            "category",
            "category_display",
            "status",
            "status_display",
            "remarks",
            "attachments",
            "location",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ComplaintTrackingSerializer(serializers.ModelSerializer):
    """Public status card: no author, description, attachments or location."""

    reference = serializers.CharField(read_only=True)
    category_display = serializers.CharField(source="get_category_display", read_only=True)
    status_display = serializers.CharField(source="get_status_display", read_only=True)

    class Meta:
        model = Complaint
        fields = [
            "reference",
            "title",
            "category",
            "category_display",
            "status",
            "status_display",
            "remarks",
            "created_at",
            "updated_at",
        ]
        read_only_fields = fields


class ComplaintStatusLogSerializer(serializers.ModelSerializer):
    class Meta:
        model = ComplaintStatusLog
        fields = [
            "id",
            "complaint",
            "from_status",
            "to_status",
            "changed_by",
            "remarks",
            "created_at",
        ]
        read_only_fields = fields
