"""Occurrence materialization (storage boundary).

Reads the task and its pattern, asks the pure generator for the missing
drafts and inserts them. Generation for one task is serialized by a row lock
on the task plus the unique (task_id, start_date) constraint, so two
concurrent runs cannot insert the same day twice.
"""

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional

from sqlalchemy.orm import Session

from flexcalendar.dates import DateWindow, Deadline
from flexcalendar.database.occurrence_repository import OccurrenceRepository
from flexcalendar.database.recurrence_repository import RecurrenceRepository
from flexcalendar.database.repository import TaskRepository
from flexcalendar.engine.task_type import calculate_task_type, cap_mode_for
from flexcalendar.models.occurrence import OPEN_STATUSES, TERMINAL_STATUSES, TaskOccurrence
from flexcalendar.models.recurrence import CapMode, RecurrencePattern
from flexcalendar.models.task import Task, TaskType
from flexcalendar.recurrence.evaluator import next_occurrence_date
from flexcalendar.recurrence.generate import generate_occurrences
from flexcalendar.recurrence.periods import register_completion, roll_period

logger = logging.getLogger(__name__)


def _load_pattern(db: Session, task: Task) -> Optional[RecurrencePattern]:
    if not task.recurrence_id:
        return None
    return RecurrenceRepository(db).get(task.user_id, task.recurrence_id)


def materialize_task_occurrences(
    db: Session,
    *,
    user_id: str,
    task_id: str,
    window: DateWindow,
    time_zone: str = "UTC",
) -> List[TaskOccurrence]:
    """Create the missing occurrences of one task inside `window`.

    Per-period patterns are first rolled forward to the period containing
    the window start. Safe to call repeatedly: a second run creates nothing.

    Returns:
        The occurrences created by this call (possibly empty)
    """
    task = TaskRepository(db).lock(user_id, task_id)
    if task is None:
        raise ValueError(f"Task {task_id} not found")

    pattern = _load_pattern(db, task)
    if pattern is not None and cap_mode_for(calculate_task_type(pattern, task)) == CapMode.PER_PERIOD:
        rolled = roll_period(pattern, window.start)
        if rolled is not pattern:
            pattern = RecurrenceRepository(db).update(user_id, rolled, commit=False)

    occurrence_repo = OccurrenceRepository(db)
    drafts = generate_occurrences(
        task,
        pattern,
        window,
        occurrence_repo.start_dates(task.id),
        time_zone=time_zone,
    )
    created = occurrence_repo.insert_drafts(user_id, drafts)
    logger.info(f"Materialized {len(created)} occurrences for task {task.id}")
    return created


def _series_finished(db: Session, task: Task, pattern: Optional[RecurrencePattern], task_type: TaskType) -> bool:
    """Whether the task has nothing left to do and should be retired.

    One-off and fixed single tasks are done with their only occurrence. Finite
    series are done once completed plus skipped occurrences reach the cap.
    Fixed repetitive series are done when no occurrence is open and the series
    itself has ended (cap reached or past its end date).
    """
    if task_type in (TaskType.SINGLE, TaskType.FIXED_SINGLE):
        return True

    occurrence_repo = OccurrenceRepository(db)
    if task_type == TaskType.FINITE_RECURRING:
        finished = occurrence_repo.list_for_task(task.id, statuses=TERMINAL_STATUSES)
        return len(finished) >= pattern.max_occurrences

    if task_type == TaskType.FIXED_REPETITIVE:
        if occurrence_repo.list_for_task(task.id, statuses=OPEN_STATUSES):
            return False
        if pattern.max_occurrences is not None:
            return pattern.completed_occurrences >= pattern.max_occurrences
        if pattern.end_date is not None:
            last = max(occurrence_repo.start_dates(task.id), default=None)
            return last is not None and next_occurrence_date(pattern, Deadline.from_date(last)) is None
    return False


def record_finished(
    db: Session,
    *,
    task: Task,
    occurrence_starts: Iterable[date],
    window: DateWindow,
    time_zone: str = "UTC",
) -> List[TaskOccurrence]:
    """Count completed or skipped occurrences, then retire the task or top it up.

    Every finished occurrence counts on the pattern, skips included. A task
    whose series is over is deactivated and nothing new is generated.

    Returns:
        The occurrences created by the top-up (possibly empty)
    """
    pattern = _load_pattern(db, task)
    task_type = calculate_task_type(pattern, task)
    if pattern is not None:
        cap_mode = cap_mode_for(task_type)
        updated = pattern
        for occurrence_start in occurrence_starts:
            updated = register_completion(updated, occurrence_start, cap_mode)
        if updated is not pattern:
            pattern = RecurrenceRepository(db).update(task.user_id, updated, commit=False)

    if task.is_active and _series_finished(db, task, pattern, task_type):
        TaskRepository(db).update(
            task.model_copy(update={"is_active": False, "updated_at": datetime.utcnow()})
        )
        logger.info(f"Task {task.id} ({task_type.value}) finished its series, deactivated")
        return []

    return materialize_task_occurrences(
        db, user_id=task.user_id, task_id=task.id, window=window, time_zone=time_zone
    )
