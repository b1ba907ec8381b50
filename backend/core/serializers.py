"""
Core app serializers.

Read-only serializers for the dashboard, the constants endpoint and the
notification API.  They shape plain dicts / model instances produced by
``core.services``; none of them write.
"""

from __future__ import annotations

from rest_framework import serializers


# ═══════════════════════════════════════════════════════════════════
#  Dashboard
# ═══════════════════════════════════════════════════════════════════


class StatusCountSerializer(serializers.Serializer):
    status = serializers.CharField()
    label = serializers.CharField()
    count = serializers.IntegerField()


class CategoryCountSerializer(serializers.Serializer):
    category = serializers.CharField()
    label = serializers.CharField()
    count = serializers.IntegerField()


class RecentComplaintSerializer(serializers.Serializer):
    id = serializers.IntegerField()
    reference = serializers.CharField()
    title = serializers.CharField()
    status = serializers.CharField()
    created_at = serializers.DateTimeField()


class DashboardStatsSerializer(serializers.Serializer):
    """Administrator overview of every complaint in the system."""

    total_complaints = serializers.IntegerField()
    anonymous_complaints = serializers.IntegerField()
    complaints_by_status = StatusCountSerializer(many=True)
    complaints_by_category = CategoryCountSerializer(many=True)
    recent_complaints = RecentComplaintSerializer(many=True)


# ═══════════════════════════════════════════════════════════════════
#  System Constants
# ═══════════════════════════════════════════════════════════════════


class ChoiceItemSerializer(serializers.Serializer):
    value = serializers.CharField()
    label = serializers.CharField()


class SystemConstantsSerializer(serializers.Serializer):
    complaint_categories = ChoiceItemSerializer(many=True)
    complaint_statuses = ChoiceItemSerializer(many=True)
    roles = ChoiceItemSerializer(many=True)
    notification_poll_interval_seconds = serializers.FloatField()


# ═══════════════════════════════════════════════════════════════════
#  Notifications
# ═══════════════════════════════════════════════════════════════════


class NotificationSerializer(serializers.Serializer):
    """
    Read-only serializer for ``Notification`` instances.

    ``complaint_title`` and ``message`` are the snapshots taken when the
    status changed.
    """

    id = serializers.IntegerField(read_only=True)
    complaint_id = serializers.IntegerField(read_only=True)
    complaint_title = serializers.CharField(read_only=True)
    title = serializers.CharField(read_only=True)
    message = serializers.CharField(read_only=True)
    is_read = serializers.BooleanField(
        read_only=True,
        help_text="Whether the recipient has marked this notification as read.",
    )
    created_at = serializers.DateTimeField(read_only=True)


class UnreadCountSerializer(serializers.Serializer):
    unread_count = serializers.IntegerField()
