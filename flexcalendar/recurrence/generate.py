"""Generate occurrence drafts for a task over a bounded horizon.

Pure: the caller supplies the task, its pattern, the window and the days that
are already materialized; the result is the list of drafts still missing.
Running it again with an up-to-date `existing_dates` yields nothing.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Iterable, List, Optional, Set, Tuple

from flexcalendar.dates import DateWindow, Deadline, EventTime
from flexcalendar.engine.task_type import calculate_task_type, cap_mode_for
from flexcalendar.models.calendar_event import CalendarEventDraft
from flexcalendar.models.constants import (
    ONE_OFF_LIMIT_DAYS,
    ONE_OFF_TARGET_DAYS,
    TARGET_DATE_FRACTION,
)
from flexcalendar.models.occurrence import OccurrenceDraft
from flexcalendar.models.recurrence import RecurrenceKind, RecurrencePattern
from flexcalendar.models.task import Task
from flexcalendar.recurrence.evaluator import next_occurrence_date, occurrence_dates

logger = logging.getLogger(__name__)


def occurrence_due_dates(
    start: Deadline,
    pattern: Optional[RecurrencePattern],
    task: Task,
) -> Tuple[Deadline, Deadline]:
    """Target and limit dates for an occurrence starting on `start`.

    The limit is the target plus a grace period that depends on the task:
    - fixed tasks: no grace, both dates are the start day
    - one-off tasks: target next day, limit a week out
    - interval: target at 60% of the interval, limit at the full interval
    - weekday / day-of-month sets: limit at the next qualifying day, target at
      60% of the way there (at least one day)
    """
    if task.is_fixed:
        return start, start

    if pattern is None:
        return start.add_days(ONE_OFF_TARGET_DAYS), start.add_days(ONE_OFF_LIMIT_DAYS)

    if pattern.kind == RecurrenceKind.INTERVAL:
        target = start.add_days(int(pattern.interval * TARGET_DATE_FRACTION))
        return target, start.add_days(pattern.interval)

    following = next_occurrence_date(pattern, start, bounded=False)
    gap = start.days_between(following)
    target = start.add_days(max(1, int(gap * TARGET_DATE_FRACTION)))
    return target, following


def _event_draft(task: Task, day: Deadline, time_zone: str) -> Optional[CalendarEventDraft]:
    if not task.has_fixed_times:
        return None
    start = EventTime.from_local(day.to_date(), task.fixed_start_time, time_zone)
    finish = EventTime.from_local(day.to_date(), task.fixed_end_time, time_zone)
    if finish <= start:
        # Spans midnight.
        finish = finish.add_days(1)
    return CalendarEventDraft(start=start.to_datetime(), finish=finish.to_datetime(), is_fixed=True)


def _draft(
    task: Task,
    pattern: Optional[RecurrencePattern],
    day: Deadline,
    target_time_consumption: Optional[float],
    time_zone: str,
) -> OccurrenceDraft:
    target, limit = occurrence_due_dates(day, pattern, task)
    return OccurrenceDraft(
        task_id=task.id,
        start_date=day.to_date(),
        target_date=target.to_date(),
        limit_date=limit.to_date(),
        target_time_consumption=target_time_consumption
        if target_time_consumption is not None
        else task.target_time_consumption,
        event=_event_draft(task, day, time_zone),
    )


def generate_occurrences(
    task: Task,
    pattern: Optional[RecurrencePattern],
    window: DateWindow,
    existing_dates: Iterable[date],
    *,
    target_time_consumption: Optional[float] = None,
    time_zone: str = "UTC",
) -> List[OccurrenceDraft]:
    """Create the missing occurrence drafts for `task` inside `window`.

    Args:
        task: Task being expanded
        pattern: Its recurrence pattern, or None for a one-off task
        window: Generation horizon [start, end)
        existing_dates: Start days already materialized for this task
        target_time_consumption: Per-occurrence override of the task default
        time_zone: Zone in which fixed start/end times are read

    Returns:
        Drafts ordered by start date; empty when nothing is missing
    """
    if not task.is_active:
        return []

    existing: Set[Deadline] = {Deadline.parse(d) for d in existing_dates}

    if pattern is None:
        # One-off: the task itself is the single instance.
        if existing:
            return []
        return [_draft(task, None, window.start, target_time_consumption, time_zone)]

    cap_mode = cap_mode_for(calculate_task_type(pattern, task))
    candidates = occurrence_dates(pattern, window, cap_mode)

    drafts: List[OccurrenceDraft] = []
    for day in candidates:
        if day in existing:
            continue
        existing.add(day)
        drafts.append(_draft(task, pattern, day, target_time_consumption, time_zone))

    logger.debug(
        f"Generated {len(drafts)} of {len(candidates)} candidate occurrences for task {task.id} "
        f"in [{window.start}, {window.end})"
    )
    return drafts
