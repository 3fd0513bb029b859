"""Tests for occurrence materialization (generation + storage)."""

import pytest
from datetime import date, time

from flexcalendar.dates import DateWindow, Deadline
from flexcalendar.database.calendar_event_repository import CalendarEventRepository
from flexcalendar.database.occurrence_repository import OccurrenceRepository
from flexcalendar.database.recurrence_repository import RecurrenceRepository
from flexcalendar.database.repository import TaskRepository
from flexcalendar.engine.lifecycle import complete_occurrence, skip_occurrence
from flexcalendar.models.recurrence import RecurrencePattern, Weekday
from flexcalendar.models.task_factory import create_task_base
from flexcalendar.recurrence.materialize import materialize_task_occurrences, record_finished

WINDOW = DateWindow.from_horizon(Deadline.from_components(2024, 1, 1), 14)


@pytest.fixture
def recurrence_repo(db_session):
    return RecurrenceRepository(db_session)


@pytest.fixture
def task_repo(db_session):
    return TaskRepository(db_session)


@pytest.fixture
def occurrence_repo(db_session):
    return OccurrenceRepository(db_session)


def _task_with_pattern(task_repo, recurrence_repo, user_id, pattern, **task_kwargs):
    stored = recurrence_repo.create(user_id, pattern)
    return task_repo.create(create_task_base(user_id, "Recurring", recurrence_id=stored.id, **task_kwargs))


class TestMaterialize:
    def test_creates_window_occurrences(self, db_session, task_repo, recurrence_repo, occurrence_repo, test_user_id):
        task = _task_with_pattern(
            task_repo, recurrence_repo, test_user_id,
            RecurrencePattern(creation_date=date(2024, 1, 1), days_of_week=[Weekday.MON, Weekday.WED, Weekday.FRI]),
        )
        created = materialize_task_occurrences(db_session, user_id=test_user_id, task_id=task.id, window=WINDOW)

        assert len(created) == 6
        assert len(occurrence_repo.list_for_task(task.id)) == 6

    def test_second_run_creates_nothing(self, db_session, task_repo, recurrence_repo, occurrence_repo, test_user_id):
        task = _task_with_pattern(
            task_repo, recurrence_repo, test_user_id,
            RecurrencePattern(creation_date=date(2024, 1, 1), interval=2),
        )
        first = materialize_task_occurrences(db_session, user_id=test_user_id, task_id=task.id, window=WINDOW)
        second = materialize_task_occurrences(db_session, user_id=test_user_id, task_id=task.id, window=WINDOW)

        assert len(first) == 7
        assert second == []
        assert len(occurrence_repo.list_for_task(task.id)) == 7

    def test_skipped_days_are_not_regenerated(self, db_session, task_repo, recurrence_repo, occurrence_repo, test_user_id):
        task = _task_with_pattern(
            task_repo, recurrence_repo, test_user_id,
            RecurrencePattern(creation_date=date(2024, 1, 1), interval=7),
        )
        first = materialize_task_occurrences(db_session, user_id=test_user_id, task_id=task.id, window=WINDOW)
        occurrence_repo.save(skip_occurrence(first[0]))

        assert materialize_task_occurrences(db_session, user_id=test_user_id, task_id=task.id, window=WINDOW) == []

    def test_one_off_task_single_occurrence(self, db_session, task_repo, occurrence_repo, test_user_id):
        task = task_repo.create(create_task_base(test_user_id, "Once"))
        materialize_task_occurrences(db_session, user_id=test_user_id, task_id=task.id, window=WINDOW)
        later = DateWindow.from_horizon(Deadline.from_components(2024, 2, 1), 14)
        materialize_task_occurrences(db_session, user_id=test_user_id, task_id=task.id, window=later)

        assert len(occurrence_repo.list_for_task(task.id)) == 1

    def test_fixed_task_gets_events(self, db_session, task_repo, recurrence_repo, test_user_id):
        task = _task_with_pattern(
            task_repo, recurrence_repo, test_user_id,
            RecurrencePattern(creation_date=date(2024, 1, 1), days_of_week=[Weekday.TUE]),
            is_fixed=True, fixed_start_time=time(18, 0), fixed_end_time=time(19, 0),
        )
        created = materialize_task_occurrences(db_session, user_id=test_user_id, task_id=task.id, window=WINDOW)

        events = CalendarEventRepository(db_session)
        assert len(created) == 2
        assert all(len(events.list_for_occurrence(occ.id)) == 1 for occ in created)

    def test_unknown_task_raises(self, db_session, test_user_id):
        with pytest.raises(ValueError):
            materialize_task_occurrences(db_session, user_id=test_user_id, task_id="missing", window=WINDOW)

    def test_per_period_pattern_rolls_forward(self, db_session, task_repo, recurrence_repo, test_user_id):
        task = _task_with_pattern(
            task_repo, recurrence_repo, test_user_id,
            RecurrencePattern(creation_date=date(2024, 1, 1), interval=7, max_occurrences=2, completed_occurrences=2),
        )
        window = DateWindow.from_horizon(Deadline.from_components(2024, 1, 15), 7)
        created = materialize_task_occurrences(db_session, user_id=test_user_id, task_id=task.id, window=window)

        pattern = recurrence_repo.get(test_user_id, task.recurrence_id)
        assert pattern.last_period_start == date(2024, 1, 15)
        assert pattern.completed_occurrences == 0
        assert [occ.start_date for occ in created] == [date(2024, 1, 15), date(2024, 1, 18)]


def _finish(db_session, occurrence_repo, task, occurrence, skip=False):
    finished = skip_occurrence(occurrence) if skip else complete_occurrence(occurrence)
    occurrence_repo.save(finished, commit=False)
    return record_finished(db_session, task=task, occurrence_starts=[occurrence.start_date], window=WINDOW)


class TestRecordFinished:
    def test_total_cap_counts_and_stops(self, db_session, task_repo, recurrence_repo, occurrence_repo, test_user_id):
        task = _task_with_pattern(
            task_repo, recurrence_repo, test_user_id,
            RecurrencePattern(creation_date=date(2024, 1, 1), days_of_week=[Weekday.MON], max_occurrences=2),
        )
        created = materialize_task_occurrences(db_session, user_id=test_user_id, task_id=task.id, window=WINDOW)
        assert len(created) == 2

        record_finished(db_session, task=task, occurrence_starts=[created[0].start_date], window=WINDOW)
        pattern = recurrence_repo.get(test_user_id, task.recurrence_id)
        assert pattern.completed_occurrences == 1
        assert len(occurrence_repo.list_for_task(task.id)) == 2

    def test_skip_counts_on_pattern(self, db_session, task_repo, recurrence_repo, occurrence_repo, test_user_id):
        task = _task_with_pattern(
            task_repo, recurrence_repo, test_user_id,
            RecurrencePattern(creation_date=date(2024, 1, 1), days_of_week=[Weekday.MON], max_occurrences=3),
        )
        created = materialize_task_occurrences(db_session, user_id=test_user_id, task_id=task.id, window=WINDOW)

        _finish(db_session, occurrence_repo, task, created[0], skip=True)

        assert recurrence_repo.get(test_user_id, task.recurrence_id).completed_occurrences == 1
        assert task_repo.get(test_user_id, task.id).is_active is True

    def test_habit_skip_keeps_task_active(self, db_session, task_repo, recurrence_repo, occurrence_repo, test_user_id):
        task = _task_with_pattern(
            task_repo, recurrence_repo, test_user_id,
            RecurrencePattern(creation_date=date(2024, 1, 1), interval=7),
        )
        created = materialize_task_occurrences(db_session, user_id=test_user_id, task_id=task.id, window=WINDOW)
        for occurrence in created:
            _finish(db_session, occurrence_repo, task, occurrence, skip=True)

        assert recurrence_repo.get(test_user_id, task.recurrence_id).completed_occurrences == 2
        assert task_repo.get(test_user_id, task.id).is_active is True

    def test_one_off_completion_deactivates(self, db_session, task_repo, occurrence_repo, test_user_id):
        task = task_repo.create(create_task_base(test_user_id, "Once"))
        created = materialize_task_occurrences(db_session, user_id=test_user_id, task_id=task.id, window=WINDOW)

        assert _finish(db_session, occurrence_repo, task, created[0]) == []
        assert task_repo.get(test_user_id, task.id).is_active is False

    def test_one_off_skip_deactivates(self, db_session, task_repo, occurrence_repo, test_user_id):
        task = task_repo.create(create_task_base(test_user_id, "Once"))
        created = materialize_task_occurrences(db_session, user_id=test_user_id, task_id=task.id, window=WINDOW)

        _finish(db_session, occurrence_repo, task, created[0], skip=True)
        assert task_repo.get(test_user_id, task.id).is_active is False

    def test_fixed_single_deactivates(self, db_session, task_repo, occurrence_repo, test_user_id):
        task = task_repo.create(create_task_base(
            test_user_id, "Dentist", is_fixed=True, fixed_start_time=time(9, 0), fixed_end_time=time(10, 0),
        ))
        created = materialize_task_occurrences(db_session, user_id=test_user_id, task_id=task.id, window=WINDOW)

        _finish(db_session, occurrence_repo, task, created[0])
        assert task_repo.get(test_user_id, task.id).is_active is False

    def test_finite_series_deactivates_at_cap(self, db_session, task_repo, recurrence_repo, occurrence_repo, test_user_id):
        task = _task_with_pattern(
            task_repo, recurrence_repo, test_user_id,
            RecurrencePattern(creation_date=date(2024, 1, 1), days_of_week=[Weekday.MON], max_occurrences=2),
        )
        first, second = materialize_task_occurrences(db_session, user_id=test_user_id, task_id=task.id, window=WINDOW)

        _finish(db_session, occurrence_repo, task, first)
        assert task_repo.get(test_user_id, task.id).is_active is True

        _finish(db_session, occurrence_repo, task, second, skip=True)
        assert task_repo.get(test_user_id, task.id).is_active is False
        assert recurrence_repo.get(test_user_id, task.recurrence_id).completed_occurrences == 2

    def test_fixed_repetitive_deactivates_when_all_finished(
        self, db_session, task_repo, recurrence_repo, occurrence_repo, test_user_id
    ):
        task = _task_with_pattern(
            task_repo, recurrence_repo, test_user_id,
            RecurrencePattern(creation_date=date(2024, 1, 1), days_of_week=[Weekday.TUE], max_occurrences=2),
            is_fixed=True, fixed_start_time=time(18, 0), fixed_end_time=time(19, 0),
        )
        first, second = materialize_task_occurrences(db_session, user_id=test_user_id, task_id=task.id, window=WINDOW)

        _finish(db_session, occurrence_repo, task, first)
        assert task_repo.get(test_user_id, task.id).is_active is True

        _finish(db_session, occurrence_repo, task, second)
        assert task_repo.get(test_user_id, task.id).is_active is False

    def test_uncapped_fixed_series_stays_active(self, db_session, task_repo, recurrence_repo, occurrence_repo, test_user_id):
        task = _task_with_pattern(
            task_repo, recurrence_repo, test_user_id,
            RecurrencePattern(creation_date=date(2024, 1, 1), days_of_week=[Weekday.TUE]),
            is_fixed=True, fixed_start_time=time(18, 0), fixed_end_time=time(19, 0),
        )
        created = materialize_task_occurrences(db_session, user_id=test_user_id, task_id=task.id, window=WINDOW)
        for occurrence in created:
            _finish(db_session, occurrence_repo, task, occurrence)

        assert task_repo.get(test_user_id, task.id).is_active is True
