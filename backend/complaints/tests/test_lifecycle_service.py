"""
Unit tests for ``ComplaintLifecycleService`` and ``ComplaintQueryService``
running against ``InMemoryEntityStore`` (no database).
"""

from __future__ import annotations

import pytest

from accounts.models import Role, User
from complaints.models import Complaint, ComplaintCategory, ComplaintStatus, ComplaintStatusLog
from complaints.services import ComplaintLifecycleService, ComplaintQueryService
from core.domain.exceptions import (
    AccountNotVerified,
    InvalidTransition,
    NotFound,
    PermissionDenied,
    ValidationFailed,
)
from core.models import Notification


def _user(store, *, role=Role.USER, verified=True, email=None) -> User:
    user = User(
        username=email or f"u{len(store.find_by(User)) + 1}@test.local",
        email=email or f"u{len(store.find_by(User)) + 1}@test.local",
        name="Citizen",
        role=role,
        is_verified=verified,
    )
    return store.put(user)


@pytest.fixture()
def citizen(memory_store):
    return _user(memory_store, email="u1@test.local")


@pytest.fixture()
def admin(memory_store):
    return _user(memory_store, role=Role.ADMIN, email="admin@test.local")


@pytest.fixture()
def lifecycle(memory_store):
    return ComplaintLifecycleService(memory_store)


@pytest.fixture()
def queries(memory_store):
    return ComplaintQueryService(memory_store)


def _file(lifecycle, author_id, **overrides):
    data = {
        "author_id": author_id,
        "category": ComplaintCategory.STREETLIGHT,
        "title": "Broken light",
        "description": "The light on 5th street has been out for a week.",
    }
    data.update(overrides)
    return lifecycle.submit(**data)


# ── submit ─────────────────────────────────────────────────────────────


class TestSubmit:

    def test_new_complaint_is_pending_with_fresh_id(self, lifecycle, queries, citizen):
        complaint = _file(lifecycle, citizen.pk)

        assert complaint.pk is not None
        assert complaint.status == ComplaintStatus.PENDING
        assert complaint.remarks == ""
        assert complaint.created_at is not None
        assert complaint.reference == f"CMP{complaint.pk:03d}"
        assert [c.pk for c in queries.get_complaints_by_user(citizen.pk)] == [complaint.pk]

    def test_ids_are_unique(self, lifecycle, citizen):
        ids = {_file(lifecycle, citizen.pk).pk for _ in range(5)}

        assert len(ids) == 5

    @pytest.mark.parametrize("field", ["title", "description"])
    def test_blank_text_is_rejected(self, lifecycle, memory_store, citizen, field):
        with pytest.raises(ValidationFailed) as excinfo:
            _file(lifecycle, citizen.pk, **{field: "   "})

        assert excinfo.value.field == field
        assert memory_store.find_by(Complaint) == []

    def test_unknown_category_is_rejected(self, lifecycle, citizen):
        with pytest.raises(ValidationFailed):
            _file(lifecycle, citizen.pk, category="graffiti")

    def test_bad_location_is_rejected(self, lifecycle, citizen):
        with pytest.raises(ValidationFailed):
            _file(lifecycle, citizen.pk, location={"latitude": "north"})

    def test_location_and_attachments_are_kept(self, lifecycle, citizen):
        complaint = _file(
            lifecycle,
            citizen.pk,
            attachments=["file:///photos/light.jpg"],
            location={"latitude": 18.52, "longitude": 73.85},
        )

        assert complaint.attachments == ["file:///photos/light.jpg"]
        assert complaint.location == {"latitude": 18.52, "longitude": 73.85}

    def test_anonymous_complaint_has_no_owner(self, lifecycle, queries, citizen):
        complaint = _file(lifecycle, citizen.pk, anonymous=True)

        assert complaint.user_id is None
        assert complaint.is_anonymous is True
        assert queries.get_complaints_by_user(citizen.pk) == []

    def test_no_author_means_anonymous(self, lifecycle):
        complaint = _file(lifecycle, None)

        assert complaint.user_id is None
        assert complaint.is_anonymous is True

    def test_unverified_citizen_cannot_file(self, lifecycle, memory_store):
        pending = _user(memory_store, verified=False, email="pending@test.local")

        with pytest.raises(AccountNotVerified):
            _file(lifecycle, pending.pk)

    def test_unknown_author_is_not_found(self, lifecycle):
        with pytest.raises(NotFound):
            _file(lifecycle, 404)


# ── update ─────────────────────────────────────────────────────────────


class TestUpdate:

    def test_status_change_creates_exactly_one_notification(self, lifecycle, memory_store, citizen, admin):
        complaint = _file(lifecycle, citizen.pk)

        updated = lifecycle.update(
            complaint.pk, status=ComplaintStatus.IN_PROGRESS, remarks="Crew assigned.", actor=admin
        )

        assert updated.status == ComplaintStatus.IN_PROGRESS
        assert updated.remarks == "Crew assigned."
        notifications = memory_store.find_by(Notification, recipient_id=citizen.pk)
        assert len(notifications) == 1
        notification = notifications[0]
        assert notification.complaint_id == complaint.pk
        assert notification.is_read is False
        assert notification.complaint_title == "Broken light"
        assert notification.message == (
            f'The status of your complaint #{complaint.reference} has been updated to "In Progress".'
        )

    def test_remarks_only_update_creates_nothing(self, lifecycle, memory_store, citizen):
        complaint = _file(lifecycle, citizen.pk)

        updated = lifecycle.update(complaint.pk, status=ComplaintStatus.PENDING, remarks="Queued.")

        assert updated.remarks == "Queued."
        assert memory_store.find_by(Notification) == []
        assert memory_store.find_by(ComplaintStatusLog) == []

    def test_anonymous_complaint_never_notifies(self, lifecycle, memory_store, citizen):
        complaint = _file(lifecycle, citizen.pk, anonymous=True)

        for target in (ComplaintStatus.IN_PROGRESS, ComplaintStatus.RESOLVED, ComplaintStatus.PENDING):
            lifecycle.update(complaint.pk, status=target, remarks="")

        assert memory_store.find_by(Notification) == []
        assert len(memory_store.find_by(ComplaintStatusLog, complaint_id=complaint.pk)) == 3

    def test_any_status_can_be_set_from_any_status(self, lifecycle, citizen):
        complaint = _file(lifecycle, citizen.pk)
        lifecycle.update(complaint.pk, status=ComplaintStatus.RESOLVED, remarks="")

        reopened = lifecycle.update(complaint.pk, status=ComplaintStatus.PENDING, remarks="")

        assert reopened.status == ComplaintStatus.PENDING

    def test_status_log_records_the_change(self, lifecycle, queries, citizen, admin):
        complaint = _file(lifecycle, citizen.pk)
        lifecycle.update(complaint.pk, status=ComplaintStatus.IN_PROGRESS, remarks="", actor=admin)
        lifecycle.update(complaint.pk, status=ComplaintStatus.RESOLVED, remarks="Fixed.", actor=admin)

        log = queries.get_status_log(complaint.reference)

        assert [(row.from_status, row.to_status) for row in log] == [
            (ComplaintStatus.IN_PROGRESS, ComplaintStatus.RESOLVED),
            (ComplaintStatus.PENDING, ComplaintStatus.IN_PROGRESS),
        ]
        assert log[0].changed_by_id == admin.pk
        assert log[0].remarks == "Fixed."

    def test_update_accepts_reference(self, lifecycle, citizen):
        complaint = _file(lifecycle, citizen.pk)

        updated = lifecycle.update(complaint.reference, status=ComplaintStatus.RESOLVED, remarks="")

        assert updated.pk == complaint.pk

    def test_unknown_complaint_is_not_found(self, lifecycle):
        with pytest.raises(NotFound):
            lifecycle.update(999, status=ComplaintStatus.RESOLVED, remarks="")

    def test_unknown_status_is_rejected(self, lifecycle, citizen):
        complaint = _file(lifecycle, citizen.pk)

        with pytest.raises(ValidationFailed):
            lifecycle.update(complaint.pk, status="closed", remarks="")

    def test_citizen_actor_is_refused(self, lifecycle, memory_store, citizen):
        complaint = _file(lifecycle, citizen.pk)

        with pytest.raises(PermissionDenied):
            lifecycle.update(complaint.pk, status=ComplaintStatus.RESOLVED, remarks="", actor=citizen)

        assert memory_store.get_by_id(Complaint, complaint.pk).status == ComplaintStatus.PENDING

    def test_configured_transition_graph_is_enforced(self, memory_store, citizen):
        strict = ComplaintLifecycleService(
            memory_store,
            allowed_transitions={
                ComplaintStatus.PENDING: [ComplaintStatus.IN_PROGRESS],
                ComplaintStatus.IN_PROGRESS: [ComplaintStatus.RESOLVED],
                ComplaintStatus.RESOLVED: [ComplaintStatus.IN_PROGRESS],
            },
        )
        complaint = _file(strict, citizen.pk)

        with pytest.raises(InvalidTransition):
            strict.update(complaint.pk, status=ComplaintStatus.RESOLVED, remarks="")

        # Remarks-only updates are always allowed.
        strict.update(complaint.pk, status=ComplaintStatus.PENDING, remarks="Noted.")
        assert memory_store.find_by(Notification) == []


class _FailingNotificationStore:
    """Wraps a store and fails every Notification write."""

    def __init__(self, inner):
        self._inner = inner

    def __getattr__(self, name):
        return getattr(self._inner, name)

    def put(self, entity):
        if isinstance(entity, Notification):
            raise RuntimeError("notification write failed")
        return self._inner.put(entity)


def test_failed_notification_write_rolls_back_the_update(memory_store, citizen):
    complaint = _file(ComplaintLifecycleService(memory_store), citizen.pk)
    failing = ComplaintLifecycleService(_FailingNotificationStore(memory_store))

    with pytest.raises(RuntimeError):
        failing.update(complaint.pk, status=ComplaintStatus.RESOLVED, remarks="Done.")

    stored = memory_store.get_by_id(Complaint, complaint.pk)
    assert stored.status == ComplaintStatus.PENDING
    assert stored.remarks == ""
    assert memory_store.find_by(ComplaintStatusLog) == []
    assert memory_store.find_by(Notification) == []


# ── queries ────────────────────────────────────────────────────────────


class TestQueries:

    def test_track_by_reference_finds_anonymous_complaints(self, lifecycle, queries):
        complaint = _file(lifecycle, None)

        assert queries.track(complaint.reference).pk == complaint.pk
        assert queries.track(complaint.reference.lower()).pk == complaint.pk

    def test_track_rejects_numeric_ids(self, lifecycle, queries, citizen):
        complaint = _file(lifecycle, citizen.pk)

        with pytest.raises(NotFound):
            queries.track(str(complaint.pk))

    def test_listing_is_newest_first(self, lifecycle, queries, citizen):
        first = _file(lifecycle, citizen.pk, title="First")
        second = _file(lifecycle, citizen.pk, title="Second")

        assert [c.pk for c in queries.get_all_complaints()] == [second.pk, first.pk]

    def test_filters_by_status_and_category(self, lifecycle, queries, citizen):
        light = _file(lifecycle, citizen.pk)
        water = _file(lifecycle, citizen.pk, category=ComplaintCategory.WATER_SUPPLY, title="No water")
        lifecycle.update(water.pk, status=ComplaintStatus.IN_PROGRESS, remarks="")

        assert [c.pk for c in queries.get_all_complaints(status=ComplaintStatus.PENDING)] == [light.pk]
        assert [
            c.pk for c in queries.get_all_complaints(category=ComplaintCategory.WATER_SUPPLY)
        ] == [water.pk]

    def test_viewer_scope(self, lifecycle, queries, memory_store, citizen, admin):
        other = _user(memory_store, email="other@test.local")
        mine = _file(lifecycle, citizen.pk)
        _file(lifecycle, other.pk)
        _file(lifecycle, None)

        assert [c.pk for c in queries.list_for_viewer(citizen)] == [mine.pk]
        assert len(queries.list_for_viewer(admin)) == 3

    def test_citizen_cannot_open_someone_elses_complaint(self, lifecycle, queries, memory_store, citizen):
        other = _user(memory_store, email="other@test.local")
        theirs = _file(lifecycle, other.pk)

        with pytest.raises(PermissionDenied):
            queries.get_complaint_for_viewer(citizen, theirs.pk)

    def test_lookup_by_reference(self, lifecycle, queries, citizen):
        complaint = _file(lifecycle, citizen.pk)

        assert queries.get_complaint_by_id(complaint.reference).pk == complaint.pk
        assert queries.get_complaint_by_id(complaint.reference.lower()).pk == complaint.pk

    @pytest.mark.parametrize("bad", [0, "CMP", "abc", 12345])
    def test_unknown_reference_is_not_found(self, queries, bad):
        with pytest.raises(NotFound):
            queries.get_complaint_by_id(bad)
