"""Tests for CalendarEventRepository."""

from datetime import date, datetime, timezone

import pytest

from flexcalendar.database.calendar_event_repository import (
    CalendarEventRepository,
    FixedEventDeletionError,
)
from flexcalendar.database.occurrence_repository import OccurrenceRepository
from flexcalendar.engine.lifecycle import start_occurrence
from flexcalendar.models.occurrence import OccurrenceDraft
from flexcalendar.models.task_factory import create_calendar_event

START = datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)
FINISH = datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc)


@pytest.fixture
def event_repository(db_session):
    return CalendarEventRepository(db_session)


@pytest.fixture
def occurrence(db_session, task_repository, sample_task, test_user_id):
    task_repository.create(sample_task)
    repo = OccurrenceRepository(db_session)
    occ = repo.insert_drafts(test_user_id, [OccurrenceDraft(task_id=sample_task.id, start_date=date(2024, 1, 1))])[0]
    return repo.save(start_occurrence(occ))


class TestCreate:
    def test_create_and_get(self, event_repository, test_user_id):
        created = event_repository.create(create_calendar_event(test_user_id, START, FINISH))
        stored = event_repository.get(test_user_id, created.id)
        assert stored.start == START
        assert stored.finish == FINISH
        assert event_repository.get("someone-else", created.id) is None

    def test_bound_event_syncs_time_consumed(self, event_repository, db_session, occurrence, test_user_id):
        event_repository.create(
            create_calendar_event(test_user_id, START, FINISH, occurrence_id=occurrence.id, dedicated_time=1.0)
        )
        event_repository.create(
            create_calendar_event(test_user_id, START, FINISH, occurrence_id=occurrence.id, dedicated_time=0.5)
        )
        stored = OccurrenceRepository(db_session).get(test_user_id, occurrence.id)
        assert stored.time_consumed == 1.5


class TestDelete:
    def test_fixed_event_cannot_be_deleted(self, event_repository, test_user_id):
        fixed = event_repository.create(create_calendar_event(test_user_id, START, FINISH, is_fixed=True))
        with pytest.raises(FixedEventDeletionError) as exc:
            event_repository.delete(test_user_id, fixed.id)
        assert "Use skip or complete instead" in str(exc.value)
        assert event_repository.get(test_user_id, fixed.id) is not None

    def test_missing_event_returns_false(self, event_repository, test_user_id):
        assert event_repository.delete(test_user_id, "nope") is False

    def test_occurrence_survives_and_is_resynced(self, event_repository, db_session, occurrence, test_user_id):
        first = event_repository.create(
            create_calendar_event(test_user_id, START, FINISH, occurrence_id=occurrence.id, dedicated_time=1.0)
        )
        event_repository.create(
            create_calendar_event(test_user_id, START, FINISH, occurrence_id=occurrence.id, dedicated_time=0.5)
        )

        assert event_repository.delete(test_user_id, first.id) is True
        stored = OccurrenceRepository(db_session).get(test_user_id, occurrence.id)
        assert stored.time_consumed == 0.5
        assert stored.status == "In Progress"

    def test_last_event_unschedules_occurrence(self, event_repository, db_session, occurrence, test_user_id):
        only = event_repository.create(
            create_calendar_event(test_user_id, START, FINISH, occurrence_id=occurrence.id, dedicated_time=1.0)
        )
        event_repository.delete(test_user_id, only.id)

        stored = OccurrenceRepository(db_session).get(test_user_id, occurrence.id)
        assert stored is not None
        assert stored.status == "Pending"
        assert stored.time_consumed == 0.0
