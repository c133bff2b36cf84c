"""
Unit tests for EventService.

Tests the mutation guard (edit, cancel, reactivate, delete), ownership
checks, notification intents and the organizer/admin listings.
"""

from datetime import timedelta

import pytest
from sqlalchemy.exc import OperationalError

from backend.src.middleware.actor import ActorContext
from backend.src.models import AccountStatus, Event, EventInterest
from backend.src.schemas.event import EventCreate, EventUpdate
from backend.src.services.event_service import EventService, like_pattern
from backend.src.services.event_status import EventStatus, event_status
from backend.src.services.exceptions import (
    AlreadyCancelledError,
    AlreadyCompletedError,
    ForbiddenError,
    InvalidStateError,
    NotCancelledError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from backend.src.services.notification_service import NotificationQueue


VALID_REASON = "Pastor is ill, rescheduling"


# ============================================================================
# Fixtures
# ============================================================================


@pytest.fixture
def event_service(test_db_session, clock, notification_queue):
    """EventService on the fixed clock with a recording queue."""
    return EventService(test_db_session, clock=clock, notifier=notification_queue)


@pytest.fixture
def pastor_actor(test_pastor):
    return ActorContext.from_account(test_pastor)


@pytest.fixture
def other_actor(other_pastor):
    return ActorContext.from_account(other_pastor)


@pytest.fixture
def admin_actor(test_super_admin):
    return ActorContext.from_account(test_super_admin)


@pytest.fixture
def upcoming_event(create_event, test_church):
    return create_event(church=test_church, title="Culte de louange")


@pytest.fixture
def ongoing_event(create_event, fixed_now):
    return create_event(
        title="Etude biblique",
        start_time=fixed_now - timedelta(hours=1),
        end_time=fixed_now + timedelta(hours=1),
    )


@pytest.fixture
def completed_event(create_event, fixed_now):
    return create_event(
        title="Concert de Noel",
        start_time=fixed_now - timedelta(days=1),
        end_time=fixed_now - timedelta(days=1) + timedelta(hours=2),
    )


@pytest.fixture
def cancelled_event(create_event):
    return create_event(title="Bapteme", cancelled=True)


class FailingQueue(NotificationQueue):
    def enqueue(self, intent):
        raise RuntimeError("queue unavailable")


# ============================================================================
# Test: cancel
# ============================================================================


class TestCancel:
    """Tests for EventService.cancel."""

    def test_cancels_upcoming_event(
        self, event_service, pastor_actor, upcoming_event, fixed_now, test_pastor
    ):
        """Should set all three cancellation fields and report CANCELLED."""
        event = event_service.cancel(upcoming_event.id, pastor_actor, VALID_REASON)

        assert event.cancelled_at == fixed_now
        assert event.cancellation_reason == VALID_REASON
        assert event.cancelled_by == test_pastor.id
        assert event_status(event, fixed_now) == EventStatus.CANCELLED

    def test_reason_is_trimmed(self, event_service, pastor_actor, upcoming_event):
        event = event_service.cancel(
            upcoming_event.id, pastor_actor, f"   {VALID_REASON}  "
        )
        assert event.cancellation_reason == VALID_REASON

    @pytest.mark.parametrize("reason", [None, "", "Too short", "   short    "])
    def test_short_reason_rejected_without_change(
        self, event_service, pastor_actor, upcoming_event, test_db_session,
        notification_queue, reason
    ):
        """A reason under 10 characters (after trim) is rejected and nothing changes."""
        with pytest.raises(ValidationError) as exc_info:
            event_service.cancel(upcoming_event.id, pastor_actor, reason)

        assert exc_info.value.field == "cancellation_reason"
        test_db_session.refresh(upcoming_event)
        assert upcoming_event.cancelled_at is None
        assert upcoming_event.cancellation_reason is None
        assert notification_queue.intents == []

    def test_exactly_ten_characters_accepted(self, event_service, pastor_actor, upcoming_event):
        event = event_service.cancel(upcoming_event.id, pastor_actor, "0123456789")
        assert event.is_cancelled

    def test_short_reason_checked_before_lookup(self, event_service, pastor_actor):
        """Validation of the reason happens before the event is read."""
        with pytest.raises(ValidationError):
            event_service.cancel(999999, pastor_actor, "short")

    def test_already_cancelled(self, event_service, pastor_actor, cancelled_event, test_db_session):
        """Cancelling twice fails and leaves the first cancellation intact."""
        with pytest.raises(AlreadyCancelledError):
            event_service.cancel(cancelled_event.id, pastor_actor, VALID_REASON)

        test_db_session.refresh(cancelled_event)
        assert cancelled_event.cancellation_reason == "Weather alert, postponed"

    def test_ongoing_event_rejected(self, event_service, pastor_actor, ongoing_event):
        with pytest.raises(InvalidStateError) as exc_info:
            event_service.cancel(ongoing_event.id, pastor_actor, VALID_REASON)
        assert "ongoing" in exc_info.value.message

    def test_completed_event_rejected(self, event_service, pastor_actor, completed_event):
        with pytest.raises(AlreadyCompletedError):
            event_service.cancel(completed_event.id, pastor_actor, VALID_REASON)

    def test_other_pastor_forbidden(
        self, event_service, other_actor, upcoming_event, test_db_session
    ):
        with pytest.raises(ForbiddenError):
            event_service.cancel(upcoming_event.id, other_actor, VALID_REASON)

        test_db_session.refresh(upcoming_event)
        assert upcoming_event.cancelled_at is None

    def test_super_admin_may_cancel(
        self, event_service, admin_actor, upcoming_event, test_super_admin
    ):
        event = event_service.cancel(upcoming_event.id, admin_actor, VALID_REASON)
        assert event.cancelled_by == test_super_admin.id

    def test_missing_event(self, event_service, pastor_actor):
        with pytest.raises(NotFoundError):
            event_service.cancel(999999, pastor_actor, VALID_REASON)

    def test_queues_cancelled_notification(
        self, event_service, pastor_actor, upcoming_event, notification_queue
    ):
        event_service.cancel(upcoming_event.id, pastor_actor, VALID_REASON)

        assert notification_queue.kinds == ["cancelled"]
        intent = notification_queue.intents[0]
        assert intent.event_id == upcoming_event.id
        assert intent.extra == {"reason": VALID_REASON}

    def test_queue_failure_does_not_fail_cancel(
        self, test_db_session, clock, pastor_actor, upcoming_event
    ):
        """The cancellation stays committed when queueing the notification fails."""
        service = EventService(test_db_session, clock=clock, notifier=FailingQueue())

        event = service.cancel(upcoming_event.id, pastor_actor, VALID_REASON)

        assert event.is_cancelled
        test_db_session.refresh(upcoming_event)
        assert upcoming_event.is_cancelled


# ============================================================================
# Test: reactivate
# ============================================================================


class TestReactivate:
    """Tests for EventService.reactivate."""

    def test_reactivates_cancelled_event(self, event_service, pastor_actor, cancelled_event, fixed_now):
        """Should clear all three cancellation fields."""
        event = event_service.reactivate(cancelled_event.id, pastor_actor)

        assert event.cancelled_at is None
        assert event.cancellation_reason is None
        assert event.cancelled_by is None
        assert event_status(event, fixed_now) == EventStatus.UPCOMING

    def test_not_cancelled(self, event_service, pastor_actor, upcoming_event):
        with pytest.raises(NotCancelledError):
            event_service.reactivate(upcoming_event.id, pastor_actor)

    def test_ended_event_cannot_be_reactivated(
        self, event_service, pastor_actor, create_event, fixed_now, test_db_session
    ):
        event = create_event(
            start_time=fixed_now - timedelta(days=1),
            end_time=fixed_now - timedelta(hours=20),
            cancelled=True,
        )

        with pytest.raises(AlreadyCompletedError):
            event_service.reactivate(event.id, pastor_actor)

        test_db_session.refresh(event)
        assert event.is_cancelled

    def test_ongoing_cancelled_event_can_be_reactivated(
        self, event_service, pastor_actor, create_event, fixed_now
    ):
        """End time not yet passed: reactivation lands on ONGOING."""
        event = create_event(
            start_time=fixed_now - timedelta(hours=1),
            end_time=fixed_now + timedelta(hours=1),
            cancelled=True,
        )

        event = event_service.reactivate(event.id, pastor_actor)
        assert event_status(event, fixed_now) == EventStatus.ONGOING

    def test_other_pastor_forbidden(self, event_service, other_actor, cancelled_event):
        with pytest.raises(ForbiddenError):
            event_service.reactivate(cancelled_event.id, other_actor)

    def test_sends_no_notification(
        self, event_service, pastor_actor, cancelled_event, notification_queue
    ):
        event_service.reactivate(cancelled_event.id, pastor_actor)
        assert notification_queue.intents == []

    def test_cancel_reactivate_round_trip(
        self, event_service, pastor_actor, upcoming_event, fixed_now
    ):
        """cancel then reactivate gives back an uncancelled UPCOMING event."""
        event_service.cancel(upcoming_event.id, pastor_actor, VALID_REASON)
        event = event_service.reactivate(upcoming_event.id, pastor_actor)

        assert not event.is_cancelled
        assert event_status(event, fixed_now) == EventStatus.UPCOMING
        assert event.start_time == upcoming_event.start_time


# ============================================================================
# Test: update
# ============================================================================


class TestUpdate:
    """Tests for EventService.update."""

    def test_partial_update(self, event_service, pastor_actor, upcoming_event):
        """Only fields present in the request change."""
        original_start = upcoming_event.start_time

        event = event_service.update(
            upcoming_event.id, pastor_actor, EventUpdate(title="Culte special")
        )

        assert event.title == "Culte special"
        assert event.start_time == original_start
        assert event.detail.city == "Paris"

    def test_updates_detail_fields(self, event_service, pastor_actor, upcoming_event):
        event = event_service.update(
            upcoming_event.id,
            pastor_actor,
            EventUpdate(city="Lyon", max_seats=120, has_parking=True),
        )

        assert event.detail.city == "Lyon"
        assert event.detail.max_seats == 120
        assert event.detail.has_parking is True
        assert event.detail.speaker_name == "Pasteur Paul"

    def test_creates_detail_when_missing(self, event_service, pastor_actor, create_event):
        event = create_event(with_detail=False)

        event = event_service.update(event.id, pastor_actor, EventUpdate(speaker_name="Invite"))

        assert event.detail.speaker_name == "Invite"
        assert event.detail.is_free is False

    def test_replaces_translations(self, event_service, pastor_actor, upcoming_event):
        event_service.update(
            upcoming_event.id, pastor_actor, EventUpdate(translation_language_ids=[2, 3])
        )
        event = event_service.update(
            upcoming_event.id, pastor_actor, EventUpdate(translation_language_ids=[3, 4])
        )

        assert sorted(t.language_id for t in event.translations) == [3, 4]

    def test_ongoing_event_can_be_edited(self, event_service, pastor_actor, ongoing_event):
        event = event_service.update(
            ongoing_event.id, pastor_actor, EventUpdate(title="Etude prolongee")
        )
        assert event.title == "Etude prolongee"

    def test_completed_event_rejected(
        self, event_service, pastor_actor, completed_event, notification_queue
    ):
        with pytest.raises(AlreadyCompletedError) as exc_info:
            event_service.update(completed_event.id, pastor_actor, EventUpdate(title="Trop tard"))

        assert "already ended" in exc_info.value.message
        assert notification_queue.intents == []

    def test_cancelled_event_rejected(
        self, event_service, pastor_actor, cancelled_event, test_db_session
    ):
        with pytest.raises(InvalidStateError) as exc_info:
            event_service.update(cancelled_event.id, pastor_actor, EventUpdate(title="Nouveau"))

        assert "Reactivate it first" in exc_info.value.message
        test_db_session.refresh(cancelled_event)
        assert cancelled_event.title == "Bapteme"

    def test_cancelled_and_ended_reports_ended(
        self, event_service, pastor_actor, create_event, fixed_now
    ):
        """Completion is checked before cancellation."""
        event = create_event(
            start_time=fixed_now - timedelta(days=2),
            end_time=fixed_now - timedelta(days=1),
            cancelled=True,
        )

        with pytest.raises(AlreadyCompletedError):
            event_service.update(event.id, pastor_actor, EventUpdate(title="Nouveau"))

    def test_end_before_stored_start_rejected(
        self, event_service, pastor_actor, upcoming_event, test_db_session
    ):
        """Sending only end_time is validated against the stored start_time."""
        with pytest.raises(ValidationError):
            event_service.update(
                upcoming_event.id,
                pastor_actor,
                EventUpdate(end_time=upcoming_event.start_time - timedelta(minutes=1)),
            )

    def test_other_pastor_forbidden(self, event_service, other_actor, upcoming_event):
        with pytest.raises(ForbiddenError):
            event_service.update(upcoming_event.id, other_actor, EventUpdate(title="Pirate"))

    def test_super_admin_may_edit(self, event_service, admin_actor, upcoming_event):
        event = event_service.update(
            upcoming_event.id, admin_actor, EventUpdate(title="Modere")
        )
        assert event.title == "Modere"

    def test_queues_modified_notification(
        self, event_service, pastor_actor, upcoming_event, notification_queue
    ):
        event_service.update(upcoming_event.id, pastor_actor, EventUpdate(city="Lille"))

        assert notification_queue.kinds == ["modified"]
        assert notification_queue.intents[0].event_id == upcoming_event.id

    def test_empty_edit_changes_and_notifies_nothing(
        self, event_service, pastor_actor, upcoming_event, notification_queue
    ):
        updated_at = upcoming_event.updated_at

        event = event_service.update(upcoming_event.id, pastor_actor, EventUpdate())

        assert event.updated_at == updated_at
        assert event.title == "Culte de louange"
        assert notification_queue.intents == []

    def test_empty_edit_still_rejected_on_completed_event(
        self, event_service, pastor_actor, completed_event
    ):
        with pytest.raises(AlreadyCompletedError):
            event_service.update(completed_event.id, pastor_actor, EventUpdate())


# ============================================================================
# Test: delete
# ============================================================================


class TestDelete:
    """Tests for EventService.delete."""

    def test_pastor_cannot_delete_own_event(
        self, event_service, pastor_actor, upcoming_event, test_db_session
    ):
        with pytest.raises(ForbiddenError):
            event_service.delete(upcoming_event.id, pastor_actor)

        assert test_db_session.get(Event, upcoming_event.id) is not None

    @pytest.mark.parametrize(
        "fixture_name",
        ["upcoming_event", "ongoing_event", "completed_event", "cancelled_event"],
    )
    def test_super_admin_deletes_any_status(
        self, event_service, admin_actor, test_db_session, request, fixture_name
    ):
        event_id = request.getfixturevalue(fixture_name).id

        event_service.delete(event_id, admin_actor)

        test_db_session.expire_all()
        assert test_db_session.get(Event, event_id) is None

    def test_delete_removes_interests(
        self, event_service, admin_actor, upcoming_event, add_interest, test_db_session
    ):
        add_interest(upcoming_event, "device-1")
        add_interest(upcoming_event, "device-2")
        event_id = upcoming_event.id

        event_service.delete(event_id, admin_actor)

        remaining = (
            test_db_session.query(EventInterest)
            .filter(EventInterest.event_id == event_id)
            .count()
        )
        assert remaining == 0

    def test_missing_event(self, event_service, admin_actor):
        with pytest.raises(NotFoundError):
            event_service.delete(999999, admin_actor)


# ============================================================================
# Test: send_notification
# ============================================================================


class TestSendNotification:
    """Tests for EventService.send_notification."""

    @pytest.mark.parametrize("kind", ["reminder", "new_info"])
    def test_queues_intent(self, event_service, pastor_actor, upcoming_event, notification_queue, kind):
        event_service.send_notification(upcoming_event.id, pastor_actor, kind, "Bring a friend")

        assert notification_queue.kinds == [kind]
        assert notification_queue.intents[0].extra == {"message": "Bring a friend"}

    def test_unknown_kind_rejected(self, event_service, pastor_actor, upcoming_event):
        with pytest.raises(ValidationError):
            event_service.send_notification(upcoming_event.id, pastor_actor, "cancelled")

    def test_completed_event_rejected(self, event_service, pastor_actor, completed_event):
        with pytest.raises(InvalidStateError):
            event_service.send_notification(completed_event.id, pastor_actor, "reminder")

    def test_cancelled_event_rejected(self, event_service, pastor_actor, cancelled_event):
        with pytest.raises(InvalidStateError):
            event_service.send_notification(cancelled_event.id, pastor_actor, "reminder")

    def test_other_pastor_forbidden(self, event_service, other_actor, upcoming_event):
        with pytest.raises(ForbiddenError):
            event_service.send_notification(upcoming_event.id, other_actor, "reminder")


# ============================================================================
# Test: create and reads
# ============================================================================


class TestCreate:
    """Tests for EventService.create."""

    def test_creates_event_with_detail_and_translations(
        self, event_service, test_pastor, test_church, fixed_now
    ):
        actor = ActorContext.from_account(test_pastor)
        data = EventCreate(
            title="  Culte de louange  ",
            start_time=fixed_now + timedelta(days=3),
            end_time=fixed_now + timedelta(days=3, hours=2),
            translation_language_ids=[2, 1],
            speaker_name="Pasteur Martin",
            is_free=True,
        )

        event = event_service.create(actor, data)

        assert event.id is not None
        assert event.title == "Culte de louange"
        assert event.organizer_id == test_pastor.id
        assert event.church_id == test_church.id
        assert event.interested_count == 0
        assert event.detail.speaker_name == "Pasteur Martin"
        assert event.detail.is_free is True
        assert event.detail.has_parking is False
        assert sorted(t.language_id for t in event.translations) == [1, 2]

    def test_unknown_church(self, event_service, pastor_actor, fixed_now):
        data = EventCreate(
            title="Culte",
            church_id=424242,
            start_time=fixed_now + timedelta(days=1),
            end_time=fixed_now + timedelta(days=1, hours=1),
        )
        with pytest.raises(NotFoundError):
            event_service.create(pastor_actor, data)


class TestReads:
    """Tests for get_owned, list_for_organizer, list_all and build_event_response."""

    def test_get_owned_hides_other_events(self, event_service, other_actor, upcoming_event):
        with pytest.raises(NotFoundError):
            event_service.get_owned(upcoming_event.id, other_actor)

    def test_list_for_organizer_filters_by_status(
        self, event_service, pastor_actor, upcoming_event, ongoing_event,
        completed_event, cancelled_event, create_event, other_pastor
    ):
        create_event(organizer=other_pastor, title="Not mine")

        all_events = event_service.list_for_organizer(pastor_actor)
        upcoming = event_service.list_for_organizer(pastor_actor, EventStatus.UPCOMING)
        cancelled = event_service.list_for_organizer(pastor_actor, EventStatus.CANCELLED)

        assert len(all_events) == 4
        assert [e.id for e in upcoming] == [upcoming_event.id]
        assert [e.id for e in cancelled] == [cancelled_event.id]

    def test_list_for_organizer_newest_first(
        self, event_service, pastor_actor, upcoming_event, completed_event
    ):
        events = event_service.list_for_organizer(pastor_actor)
        assert [e.id for e in events] == [upcoming_event.id, completed_event.id]

    def test_list_all_paginates(self, event_service, create_event, fixed_now):
        for i in range(5):
            create_event(title=f"Event {i}", start_time=fixed_now + timedelta(days=i + 1))

        events, meta = event_service.list_all(page=2, limit=2)

        assert meta == {"total": 5, "page": 2, "limit": 2, "total_pages": 3}
        assert [e.title for e in events] == ["Event 2", "Event 1"]

    def test_list_all_search_matches_church_and_organizer(
        self, event_service, upcoming_event, create_event, other_pastor
    ):
        create_event(organizer=other_pastor, title="Priere du soir")

        by_church, _ = event_service.list_all(search="grace")
        by_organizer, _ = event_service.list_all(search="Durand")
        by_title, _ = event_service.list_all(search="priere")

        assert [e.id for e in by_church] == [upcoming_event.id]
        assert len(by_organizer) == 1 and by_organizer[0].organizer_id == other_pastor.id
        assert [e.title for e in by_title] == ["Priere du soir"]

    def test_list_all_status_filter(
        self, event_service, upcoming_event, cancelled_event, completed_event
    ):
        events, meta = event_service.list_all(status=EventStatus.COMPLETED)
        assert [e.id for e in events] == [completed_event.id]
        assert meta["total"] == 1

    def test_build_event_response_falls_back_to_church_location(
        self, event_service, upcoming_event, test_church, fixed_now
    ):
        data = event_service.build_event_response(upcoming_event, fixed_now)

        assert data["status"] == EventStatus.UPCOMING
        assert data["church_name"] == "Eglise de la Grace"
        assert data["latitude"] == test_church.latitude
        assert data["organizer_name"] == "Paul Martin"
        assert data["detail"]["city"] == "Paris"


# ============================================================================
# Test: storage failures
# ============================================================================


def locked_database_error():
    return OperationalError("COMMIT", {}, Exception("database is locked"))


class TestStorageFailure:
    """A failing commit rolls back and surfaces as a generic StorageError."""

    def test_cancel_commit_failure(
        self, event_service, pastor_actor, upcoming_event, test_db_session,
        notification_queue, mocker
    ):
        mocker.patch.object(test_db_session, "commit", side_effect=locked_database_error())

        with pytest.raises(StorageError) as exc_info:
            event_service.cancel(upcoming_event.id, pastor_actor, VALID_REASON)

        assert exc_info.value.message == "Failed to cancel event. Please try again later."
        assert "locked" not in exc_info.value.message
        test_db_session.refresh(upcoming_event)
        assert upcoming_event.cancelled_at is None
        assert upcoming_event.cancellation_reason is None
        assert upcoming_event.cancelled_by is None
        assert notification_queue.intents == []

    def test_update_commit_failure(
        self, event_service, pastor_actor, upcoming_event, test_db_session,
        notification_queue, mocker
    ):
        mocker.patch.object(test_db_session, "commit", side_effect=locked_database_error())

        with pytest.raises(StorageError) as exc_info:
            event_service.update(
                upcoming_event.id, pastor_actor, EventUpdate(title="Culte special")
            )

        assert exc_info.value.message == "Failed to update event. Please try again later."
        test_db_session.refresh(upcoming_event)
        assert upcoming_event.title == "Culte de louange"
        assert notification_queue.intents == []

    def test_reactivate_commit_failure_rolls_back(
        self, event_service, pastor_actor, cancelled_event, test_db_session, mocker
    ):
        mocker.patch.object(test_db_session, "commit", side_effect=locked_database_error())
        rollback = mocker.spy(test_db_session, "rollback")

        with pytest.raises(StorageError):
            event_service.reactivate(cancelled_event.id, pastor_actor)

        rollback.assert_called_once()
        test_db_session.refresh(cancelled_event)
        assert cancelled_event.is_cancelled
        assert cancelled_event.cancellation_reason == "Weather alert, postponed"


# ============================================================================
# Test: public listing
# ============================================================================


PARIS = (48.8566, 2.3522)
LYON = (45.7640, 4.8357)


@pytest.fixture
def public_events(create_event, test_church, fixed_now, test_db_session):
    """Paris (church location), Lyon (own location) and an event without location."""
    paris = create_event(church=test_church, title="Culte a Paris")
    lyon = create_event(title="Concert a Lyon", start_time=fixed_now + timedelta(days=2))
    lyon.latitude, lyon.longitude = LYON
    nowhere = create_event(title="Priere en ligne", start_time=fixed_now + timedelta(days=3))
    test_db_session.commit()
    return {"paris": paris, "lyon": lyon, "nowhere": nowhere}


class TestListPublic:
    """Tests for EventService.list_public."""

    def test_lists_upcoming_ongoing_and_cancelled(
        self, event_service, upcoming_event, ongoing_event, completed_event, cancelled_event
    ):
        rows = event_service.list_public()

        ids = [event.id for event, _ in rows]
        assert set(ids) == {upcoming_event.id, ongoing_event.id, cancelled_event.id}
        assert all(distance is None for _, distance in rows)

    def test_ordered_by_start_time(self, event_service, public_events):
        titles = [event.title for event, _ in event_service.list_public()]

        assert titles == ["Culte a Paris", "Concert a Lyon", "Priere en ligne"]

    def test_hides_events_of_unvalidated_organizers(
        self, event_service, create_account, create_event
    ):
        pending = create_account(status=AccountStatus.PENDING)
        create_event(organizer=pending, title="Hidden")

        assert event_service.list_public() == []

    def test_bounding_box_uses_church_location_fallback(self, event_service, public_events):
        rows = event_service.list_public(north=49.5, south=48.0, east=3.0, west=2.0)

        assert [event.title for event, _ in rows] == ["Culte a Paris"]

    def test_bounding_box_with_point_orders_by_distance(self, event_service, public_events):
        rows = event_service.list_public(
            north=50.0, south=45.0, east=6.0, west=2.0,
            latitude=LYON[0], longitude=LYON[1],
        )

        assert [event.title for event, _ in rows] == ["Concert a Lyon", "Culte a Paris"]
        assert rows[0][1] == 0.0
        assert 380 < rows[1][1] < 400

    def test_radius(self, event_service, public_events):
        near = event_service.list_public(latitude=PARIS[0], longitude=PARIS[1], radius_km=50)
        far = event_service.list_public(latitude=PARIS[0], longitude=PARIS[1], radius_km=500)

        assert [event.title for event, _ in near] == ["Culte a Paris"]
        assert [event.title for event, _ in far] == ["Culte a Paris", "Concert a Lyon"]

    def test_search_matches_title_church_and_city(self, event_service, public_events):
        by_title = event_service.list_public(search="lyon")
        by_church = event_service.list_public(search="Grace")
        by_city = event_service.list_public(search="paris")

        assert [e.title for e, _ in by_title] == ["Concert a Lyon"]
        assert [e.title for e, _ in by_church] == ["Culte a Paris"]
        # Every factory event has Paris as its city
        assert len(by_city) == 3

    def test_limit(self, event_service, public_events):
        assert len(event_service.list_public(limit=2)) == 2

    @pytest.mark.parametrize("params", [
        {"north": 49.0},
        {"north": 48.0, "south": 49.0, "east": 3.0, "west": 2.0},
        {"latitude": 48.0},
    ])
    def test_invalid_geometry(self, event_service, params):
        with pytest.raises(ValidationError):
            event_service.list_public(**params)


# ============================================================================
# Test: search escaping
# ============================================================================


class TestSearchEscaping:

    def test_like_pattern_escapes_wildcards(self):
        assert like_pattern("50%_off\\") == "%50\\%\\_off\\\\%"

    def test_list_all_treats_wildcards_literally(self, event_service, create_event):
        create_event(title="Culte 100% louange")
        create_event(title="Culte 1000 louanges")

        percent, _ = event_service.list_all(search="100%")
        underscore, _ = event_service.list_all(search="Culte_")

        assert [e.title for e in percent] == ["Culte 100% louange"]
        assert underscore == []
