"""Tests for OccurrenceRepository."""

from datetime import date, datetime, timezone

import pytest

from flexcalendar.database.occurrence_repository import OccurrenceRepository
from flexcalendar.database.calendar_event_repository import CalendarEventRepository
from flexcalendar.engine.lifecycle import complete_occurrence, start_occurrence
from flexcalendar.models.calendar_event import CalendarEventDraft
from flexcalendar.models.occurrence import OccurrenceDraft, OccurrenceStatus


@pytest.fixture
def occurrence_repository(db_session):
    return OccurrenceRepository(db_session)


@pytest.fixture
def stored_task(task_repository, sample_task):
    return task_repository.create(sample_task)


def draft(task_id, day, **kwargs):
    return OccurrenceDraft(task_id=task_id, start_date=day, target_date=day, limit_date=day, **kwargs)


class TestInsertDrafts:
    def test_inserts_pending_occurrences(self, occurrence_repository, stored_task, test_user_id):
        created = occurrence_repository.insert_drafts(
            test_user_id, [draft(stored_task.id, date(2024, 1, 1)), draft(stored_task.id, date(2024, 1, 2))]
        )
        assert len(created) == 2
        assert all(occ.status == "Pending" for occ in created)
        assert occurrence_repository.start_dates(stored_task.id) == {date(2024, 1, 1), date(2024, 1, 2)}

    def test_duplicate_start_date_is_skipped(self, occurrence_repository, stored_task, test_user_id):
        occurrence_repository.insert_drafts(test_user_id, [draft(stored_task.id, date(2024, 1, 1))])
        created = occurrence_repository.insert_drafts(
            test_user_id, [draft(stored_task.id, date(2024, 1, 1)), draft(stored_task.id, date(2024, 1, 3))]
        )
        assert [occ.start_date for occ in created] == [date(2024, 1, 3)]
        assert len(occurrence_repository.list_for_task(stored_task.id)) == 2

    def test_fixed_draft_creates_event(self, occurrence_repository, db_session, stored_task, test_user_id):
        event = CalendarEventDraft(
            start=datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc),
            finish=datetime(2024, 1, 1, 10, 0, tzinfo=timezone.utc),
        )
        created = occurrence_repository.insert_drafts(
            test_user_id, [draft(stored_task.id, date(2024, 1, 1), event=event)]
        )
        events = CalendarEventRepository(db_session).list_for_occurrence(created[0].id)
        assert len(events) == 1
        assert events[0].is_fixed
        assert events[0].start == datetime(2024, 1, 1, 9, 0, tzinfo=timezone.utc)


class TestQueries:
    def test_get_is_user_scoped(self, occurrence_repository, stored_task, test_user_id):
        occ = occurrence_repository.insert_drafts(test_user_id, [draft(stored_task.id, date(2024, 1, 1))])[0]
        assert occurrence_repository.get(test_user_id, occ.id).id == occ.id
        assert occurrence_repository.get("someone-else", occ.id) is None

    def test_list_filters_by_status(self, occurrence_repository, stored_task, test_user_id):
        first, second = occurrence_repository.insert_drafts(
            test_user_id, [draft(stored_task.id, date(2024, 1, 1)), draft(stored_task.id, date(2024, 1, 2))]
        )
        occurrence_repository.save(complete_occurrence(first))

        open_ids = [o.id for o in occurrence_repository.list_for_task(stored_task.id, [OccurrenceStatus.PENDING])]
        assert open_ids == [second.id]
        assert [o.id for o in occurrence_repository.list_open_for_user(test_user_id)] == [second.id]


class TestSave:
    def test_save_persists_status_and_time(self, occurrence_repository, stored_task, test_user_id):
        occ = occurrence_repository.insert_drafts(test_user_id, [draft(stored_task.id, date(2024, 1, 1))])[0]
        done = complete_occurrence(
            start_occurrence(occ),
            completed_at=datetime(2024, 1, 1, 18, 0, tzinfo=timezone.utc),
            time_consumed=2.0,
        )
        occurrence_repository.save(done)

        stored = occurrence_repository.get(test_user_id, occ.id)
        assert stored.status == "Completed"
        assert stored.time_consumed == 2.0
        assert stored.completed_at == datetime(2024, 1, 1, 18, 0)

    def test_save_without_commit_joins_transaction(self, db_session, occurrence_repository, stored_task, test_user_id):
        occs = occurrence_repository.insert_drafts(
            test_user_id, [draft(stored_task.id, date(2024, 1, d)) for d in (1, 2, 3)]
        )
        for o in occs:
            occurrence_repository.save(start_occurrence(o), commit=False)
        db_session.commit()
        assert all(o.status == "In Progress" for o in occurrence_repository.list_for_task(stored_task.id))

    def test_save_missing_raises(self, occurrence_repository, make_occurrence):
        with pytest.raises(ValueError):
            occurrence_repository.save(make_occurrence())
