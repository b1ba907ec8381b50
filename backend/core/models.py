"""
Core app models.

Provides the abstract timestamp base used across the project and the
``Notification`` record shown in a citizen's notification bell.
"""

from django.conf import settings
from django.db import models


class TimeStampedModel(models.Model):
    """
    Abstract base model that provides self-updating ``created_at`` and
    ``updated_at`` timestamp fields for every concrete child model.
    """

    created_at = models.DateTimeField(
        auto_now_add=True,
        verbose_name="Created At",
    )
    updated_at = models.DateTimeField(
        auto_now=True,
        verbose_name="Updated At",
    )

    class Meta:
        abstract = True


class Notification(TimeStampedModel):
    """
    Notification sent to a citizen when one of their complaints changes
    status.

    ``message`` and ``complaint_title`` are snapshots taken when the
    status changed; later edits to the complaint do not rewrite them.
    ``is_read`` only ever moves from ``False`` to ``True``.
    """

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
        verbose_name="Recipient",
    )
    complaint = models.ForeignKey(
        "complaints.Complaint",
        on_delete=models.CASCADE,
        related_name="notifications",
        verbose_name="Complaint",
    )
    complaint_title = models.CharField(
        max_length=255,
        blank=True,
        default="",
        verbose_name="Complaint Title",
    )
    title = models.CharField(max_length=255, verbose_name="Title")
    message = models.TextField(verbose_name="Message")
    is_read = models.BooleanField(default=False, verbose_name="Read")

    class Meta:
        verbose_name = "Notification"
        verbose_name_plural = "Notifications"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["recipient", "is_read"], name="notif_recipient_read_idx"),
        ]

    def __str__(self):
        return f"[{self.recipient_id}] {self.title}"
