"""
Integration tests — complaint filing, listing and administrator updates
through the REST API.

Endpoints under test:
    GET/POST /api/complaints/                        (complaint-list)
    GET      /api/complaints/{id|CMPnnn}/            (complaint-detail)
    POST     /api/complaints/{id}/update-status/     (complaint-update-status)
    GET      /api/complaints/{id}/status-log/        (complaint-status-log)
"""

from __future__ import annotations

from django.contrib.auth import get_user_model
from django.test import TestCase
from django.urls import reverse
from rest_framework import status
from rest_framework.test import APIClient

from accounts.models import Role
from complaints.models import Complaint, ComplaintCategory, ComplaintStatus
from core.models import Notification

User = get_user_model()

_PASSWORD = "Str0ng!Pass99"


class TestComplaintsApi(TestCase):

    @classmethod
    def setUpTestData(cls):
        cls.citizen = User.objects.create_user(
            username="john@example.com",
            email="john@example.com",
            name="John Doe",
            password=_PASSWORD,
            is_verified=True,
        )
        cls.neighbour = User.objects.create_user(
            username="meera@example.com",
            email="meera@example.com",
            name="Meera Shah",
            password=_PASSWORD,
            is_verified=True,
        )
        cls.admin = User.objects.create_user(
            username="jane.admin@example.com",
            email="jane.admin@example.com",
            name="Jane Smith",
            password=_PASSWORD,
            role=Role.ADMIN,
        )

    def setUp(self):
        self.client = APIClient()
        self.list_url = reverse("complaint-list")

    def login(self, user) -> None:
        resp = self.client.post(
            reverse("accounts:login"),
            {"identifier": user.email, "password": _PASSWORD},
            format="json",
        )
        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.client.credentials(HTTP_AUTHORIZATION=f"Bearer {resp.data['access']}")

    def file_complaint(self, **overrides) -> dict:
        payload = {
            "category": ComplaintCategory.STREETLIGHT,
            "title": "Broken light",
            "description": "The light on 5th street has been out for a week.",
        }
        payload.update(overrides)
        resp = self.client.post(self.list_url, payload, format="json")
        self.assertEqual(resp.status_code, status.HTTP_201_CREATED, msg=resp.data)
        return resp.data

    # ── Filing ────────────────────────────────────────────────────────

    def test_file_complaint(self):
        self.login(self.citizen)
        data = self.file_complaint(
            attachments=["file:///photos/light.jpg"],
            location={"latitude": 18.52, "longitude": 73.85},
        )

        self.assertEqual(data["status"], ComplaintStatus.PENDING)
        self.assertEqual(data["status_display"], "Pending")
        self.assertEqual(data["user"], self.citizen.pk)
        self.assertEqual(data["reference"], f"CMP{data['id']:03d}")
        self.assertEqual(data["location"], {"latitude": 18.52, "longitude": 73.85})
        self.assertEqual(data["remarks"], "")

    def test_file_anonymously(self):
        self.login(self.citizen)
        data = self.file_complaint(anonymous=True)

        self.assertIsNone(data["user"])
        self.assertTrue(data["is_anonymous"])

    def test_blank_title_is_rejected(self):
        self.login(self.citizen)
        resp = self.client.post(
            self.list_url,
            {"category": ComplaintCategory.GARBAGE, "title": "", "description": "x"},
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(Complaint.objects.count(), 0)

    def test_filing_requires_authentication(self):
        resp = self.client.post(self.list_url, {}, format="json")

        self.assertEqual(resp.status_code, status.HTTP_401_UNAUTHORIZED)

    # ── Listing / retrieval ───────────────────────────────────────────

    def test_citizen_lists_only_own_complaints(self):
        self.login(self.neighbour)
        self.file_complaint(title="Overflowing bin", category=ComplaintCategory.GARBAGE)
        self.login(self.citizen)
        mine = self.file_complaint()

        resp = self.client.get(self.list_url)

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual([c["id"] for c in resp.data], [mine["id"]])

    def test_admin_lists_all_and_filters(self):
        self.login(self.citizen)
        light = self.file_complaint()
        water = self.file_complaint(title="No water", category=ComplaintCategory.WATER_SUPPLY)

        self.login(self.admin)
        every = self.client.get(self.list_url)
        only_water = self.client.get(self.list_url, {"category": ComplaintCategory.WATER_SUPPLY})

        self.assertEqual([c["id"] for c in every.data], [water["id"], light["id"]])
        self.assertEqual([c["id"] for c in only_water.data], [water["id"]])

    def test_invalid_filter_is_400(self):
        self.login(self.admin)
        resp = self.client.get(self.list_url, {"status": "closed"})

        self.assertEqual(resp.status_code, status.HTTP_400_BAD_REQUEST)

    def test_retrieve_by_reference(self):
        self.login(self.citizen)
        data = self.file_complaint()

        resp = self.client.get(reverse("complaint-detail", args=[data["reference"]]))

        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertEqual(resp.data["id"], data["id"])

    def test_citizen_cannot_open_neighbours_complaint(self):
        self.login(self.neighbour)
        theirs = self.file_complaint()
        self.login(self.citizen)

        resp = self.client.get(reverse("complaint-detail", args=[theirs["id"]]))

        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)

    def test_unknown_complaint_is_404(self):
        self.login(self.admin)
        resp = self.client.get(reverse("complaint-detail", args=["CMP999"]))

        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data["code"], "NOT_FOUND")

    # ── Administrator update ──────────────────────────────────────────

    def test_admin_status_update_notifies_owner(self):
        self.login(self.citizen)
        data = self.file_complaint()

        self.login(self.admin)
        resp = self.client.post(
            reverse("complaint-update-status", args=[data["id"]]),
            {"status": ComplaintStatus.IN_PROGRESS, "remarks": "Crew assigned."},
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertEqual(resp.data["status"], ComplaintStatus.IN_PROGRESS)
        self.assertEqual(resp.data["remarks"], "Crew assigned.")
        notifications = Notification.objects.filter(recipient=self.citizen)
        self.assertEqual(notifications.count(), 1)
        self.assertIn('"In Progress"', notifications.get().message)

    def test_remarks_only_update_does_not_notify(self):
        self.login(self.citizen)
        data = self.file_complaint()

        self.login(self.admin)
        resp = self.client.post(
            reverse("complaint-update-status", args=[data["id"]]),
            {"status": ComplaintStatus.PENDING, "remarks": "In the queue."},
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertEqual(Notification.objects.count(), 0)

    def test_citizen_cannot_update_status(self):
        self.login(self.citizen)
        data = self.file_complaint()

        resp = self.client.post(
            reverse("complaint-update-status", args=[data["id"]]),
            {"status": ComplaintStatus.RESOLVED, "remarks": ""},
            format="json",
        )

        self.assertEqual(resp.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(Complaint.objects.get(pk=data["id"]).status, ComplaintStatus.PENDING)

    def test_status_log(self):
        self.login(self.citizen)
        data = self.file_complaint()
        self.login(self.admin)
        update_url = reverse("complaint-update-status", args=[data["id"]])
        self.client.post(update_url, {"status": ComplaintStatus.IN_PROGRESS}, format="json")
        self.client.post(update_url, {"status": ComplaintStatus.RESOLVED, "remarks": "Fixed."}, format="json")

        resp = self.client.get(reverse("complaint-status-log", args=[data["id"]]))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(
            [(row["from_status"], row["to_status"]) for row in resp.data],
            [
                (ComplaintStatus.IN_PROGRESS, ComplaintStatus.RESOLVED),
                (ComplaintStatus.PENDING, ComplaintStatus.IN_PROGRESS),
            ],
        )
        self.assertEqual(resp.data[0]["changed_by"], self.admin.pk)

    # ── Public tracking ───────────────────────────────────────────────

    def test_anonymous_complaint_can_be_tracked_without_login(self):
        self.login(self.citizen)
        data = self.file_complaint(anonymous=True, location={"latitude": 18.52, "longitude": 73.85})
        self.login(self.admin)
        self.client.post(
            reverse("complaint-update-status", args=[data["id"]]),
            {"status": ComplaintStatus.IN_PROGRESS, "remarks": "Crew assigned."},
            format="json",
        )
        self.client.credentials()

        resp = self.client.get(reverse("complaint-track", args=[data["reference"]]))

        self.assertEqual(resp.status_code, status.HTTP_200_OK, msg=resp.data)
        self.assertEqual(resp.data["reference"], data["reference"])
        self.assertEqual(resp.data["status"], ComplaintStatus.IN_PROGRESS)
        self.assertEqual(resp.data["remarks"], "Crew assigned.")
        self.assertEqual(resp.data["category"], ComplaintCategory.STREETLIGHT)
        for private in ("user", "description", "attachments", "location", "id"):
            self.assertNotIn(private, resp.data)

    def test_tracking_reference_is_case_insensitive(self):
        self.login(self.citizen)
        data = self.file_complaint()
        self.client.credentials()

        resp = self.client.get(reverse("complaint-track", args=[data["reference"].lower()]))

        self.assertEqual(resp.status_code, status.HTTP_200_OK)
        self.assertEqual(resp.data["title"], "Broken light")

    def test_tracking_unknown_reference_is_404(self):
        resp = self.client.get(reverse("complaint-track", args=["CMP999"]))

        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(resp.data["code"], "NOT_FOUND")

    def test_tracking_rejects_bare_numeric_ids(self):
        self.login(self.citizen)
        data = self.file_complaint()
        self.client.credentials()

        resp = self.client.get(reverse("complaint-track", args=[data["id"]]))

        self.assertEqual(resp.status_code, status.HTTP_404_NOT_FOUND)
