"""Backlog detection for recurring tasks.

A task builds a backlog when its open occurrences pile up faster than they
are worked off. Past a threshold the backlog is "severe" and the user is
offered to skip everything but the most recent occurrence.
"""

from datetime import date, datetime
from typing import List, Optional

from pydantic import BaseModel, Field

from flexcalendar.dates import Deadline
from flexcalendar.models.constants import SEVERE_BACKLOG_THRESHOLD
from flexcalendar.models.occurrence import OPEN_STATUSES, TaskOccurrence
from flexcalendar.models.recurrence import RecurrenceKind, RecurrencePattern
from flexcalendar.recurrence.evaluator import iter_series


class BacklogReport(BaseModel):
    """Open occurrences of one task, oldest first."""
    task_id: str
    has_severe_backlog: bool = False
    pending_count: int = 0
    oldest_pending_date: Optional[date] = None
    estimated_backlog_count: int = Field(
        0, description="Occurrences the pattern produced since the oldest open one"
    )
    pending_occurrences: List[TaskOccurrence] = Field(default_factory=list)


def estimate_backlog_count(pattern: RecurrencePattern, oldest: Deadline, today: Deadline) -> int:
    """How many occurrences the pattern yields between `oldest` and `today`.

    Interval patterns count elapsed periods (times the per-period cap when
    there is one); weekday and day-of-month patterns count qualifying days.
    """
    if today <= oldest:
        return 0
    if pattern.kind == RecurrenceKind.INTERVAL:
        periods = oldest.days_between(today) // pattern.interval
        return periods * (pattern.max_occurrences or 1)

    count = 0
    for day in iter_series(pattern, oldest, bounded=False):
        if day >= today:
            break
        count += 1
    return count


def detect_backlog(
    task_id: str,
    pattern: Optional[RecurrencePattern],
    occurrences: List[TaskOccurrence],
    now: Optional[datetime] = None,
    time_zone: str = "UTC",
) -> BacklogReport:
    """Summarize the open occurrences of a task.

    One-off tasks (no pattern) never have a backlog.

    Args:
        task_id: Task the occurrences belong to
        pattern: Its recurrence pattern
        occurrences: Occurrences of the task (any status)
        now: Evaluation instant

    Returns:
        BacklogReport; severe when more than SEVERE_BACKLOG_THRESHOLD are open
    """
    if pattern is None:
        return BacklogReport(task_id=task_id)

    pending = sorted(
        (occ for occ in occurrences if occ.status in OPEN_STATUSES),
        key=lambda occ: (occ.start_date, occ.id),
    )
    if not pending:
        return BacklogReport(task_id=task_id)

    oldest = Deadline.from_date(pending[0].start_date)
    today = Deadline.today(now, time_zone)

    return BacklogReport(
        task_id=task_id,
        has_severe_backlog=len(pending) > SEVERE_BACKLOG_THRESHOLD,
        pending_count=len(pending),
        oldest_pending_date=oldest.to_date(),
        estimated_backlog_count=estimate_backlog_count(pattern, oldest, today),
        pending_occurrences=pending,
    )


def backlog_to_skip(report: BacklogReport) -> List[TaskOccurrence]:
    """Occurrences to skip for a severe backlog: all but the most recent one."""
    if not report.has_severe_backlog or len(report.pending_occurrences) <= 1:
        return []
    return report.pending_occurrences[:-1]
