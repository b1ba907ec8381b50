"""
Complaints app models.

Covers the civic complaint lifecycle — a citizen files a complaint
(optionally anonymously), an administrator moves it through
``PENDING → IN_PROGRESS → RESOLVED`` and adds remarks, and every status
change is recorded in an audit trail.
"""

from __future__ import annotations

import re

from django.conf import settings
from django.db import models

from core.models import TimeStampedModel

#: Prefix of the public complaint reference (``CMP001``).
REFERENCE_PREFIX = "CMP"

_REFERENCE_RE = re.compile(rf"^{REFERENCE_PREFIX}(\d+)$", re.IGNORECASE)


# ────────────────────────────────────────────────────────────────────
# Choice enumerations
# ────────────────────────────────────────────────────────────────────

class ComplaintCategory(models.TextChoices):
    """Fixed set of complaint categories offered to citizens."""

    STREETLIGHT = "streetlight", "Streetlight"
    WATER_SUPPLY = "water_supply", "Water Supply"
    ROAD_POTHOLES = "road_potholes", "Road Potholes"
    GARBAGE = "garbage", "Garbage"
    OTHER = "other", "Other"


class ComplaintStatus(models.TextChoices):
    """
    Complaint lifecycle states.

    The labels are stored verbatim inside notification messages, so they
    are plain strings rather than lazily translated ones.
    """

    PENDING = "pending", "Pending"
    IN_PROGRESS = "in_progress", "In Progress"
    RESOLVED = "resolved", "Resolved"


def format_reference(pk: int) -> str:
    """``12`` → ``"CMP012"``."""
    return f"{REFERENCE_PREFIX}{pk:03d}"


def parse_reference(value: int | str) -> int | None:
    """
    Accept a numeric id or a ``CMPnnn`` reference and return the id.

    Returns ``None`` for anything that cannot be a complaint id.
    """
    if isinstance(value, int):
        return value if value > 0 else None
    text = str(value).strip()
    match = _REFERENCE_RE.match(text)
    if match:
        text = match.group(1)
    if not text.isdigit():
        return None
    pk = int(text)
    return pk if pk > 0 else None


# ────────────────────────────────────────────────────────────────────
# Models
# ────────────────────────────────────────────────────────────────────

class Complaint(TimeStampedModel):
    """
    A civic complaint filed by a citizen.

    * ``user`` is ``NULL`` for anonymous complaints and is never filled
      in afterwards.
    * ``status`` and ``remarks`` are written only by
      ``ComplaintLifecycleService.update``.
    * ``attachments`` holds opaque media URIs (photo, voice note); the
      files themselves live outside this system.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        null=True,
        blank=True,
        related_name="complaints",
        verbose_name="Filed By",
    )
    is_anonymous = models.BooleanField(
        default=False,
        verbose_name="Anonymous",
    )
    title = models.CharField(
        max_length=255,
        verbose_name="Title",
    )
    description = models.TextField(
        verbose_name="Description",
    )
    category = models.CharField(
        max_length=20,
        choices=ComplaintCategory.choices,
        verbose_name="Category",
        db_index=True,
    )
    status = models.CharField(
        max_length=20,
        choices=ComplaintStatus.choices,
        default=ComplaintStatus.PENDING,
        verbose_name="Current Status",
        db_index=True,
    )
    remarks = models.TextField(
        blank=True,
        default="",
        verbose_name="Administrator Remarks",
    )
    attachments = models.JSONField(
        default=list,
        blank=True,
        verbose_name="Attachment URIs",
    )
    latitude = models.FloatField(
        null=True,
        blank=True,
        verbose_name="Latitude",
    )
    longitude = models.FloatField(
        null=True,
        blank=True,
        verbose_name="Longitude",
    )

    class Meta:
        verbose_name = "Complaint"
        verbose_name_plural = "Complaints"
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["status", "category"], name="complaint_status_category_idx"),
        ]

    def __str__(self):
        return f"{self.reference} — {self.title}"

    @property
    def reference(self) -> str:
        """Public identifier shown to citizens (``CMP001``)."""
        return format_reference(self.pk) if self.pk else ""

    @property
    def location(self) -> dict[str, float] | None:
        if self.latitude is None or self.longitude is None:
            return None
        return {"latitude": self.latitude, "longitude": self.longitude}


class ComplaintStatusLog(TimeStampedModel):
    """
    Immutable audit trail of every status change of a complaint.

    Remarks-only updates do not produce a row.
    """

    complaint = models.ForeignKey(
        Complaint,
        on_delete=models.CASCADE,
        related_name="status_logs",
        verbose_name="Complaint",
    )
    from_status = models.CharField(
        max_length=20,
        choices=ComplaintStatus.choices,
        verbose_name="Previous Status",
    )
    to_status = models.CharField(
        max_length=20,
        choices=ComplaintStatus.choices,
        verbose_name="New Status",
    )
    changed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="complaint_status_changes",
        verbose_name="Changed By",
    )
    remarks = models.TextField(
        blank=True,
        default="",
        verbose_name="Remarks At Change",
    )

    class Meta:
        verbose_name = "Complaint Status Log"
        verbose_name_plural = "Complaint Status Logs"
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return (
            f"{format_reference(self.complaint_id)}: "
            f"{self.from_status} → {self.to_status}"
        )
