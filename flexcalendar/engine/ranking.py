"""Prioritized occurrence views for Flex Calendar.

Urgency is recomputed on every read from the occurrence dates and the owning
task's importance. Only open (Pending / In Progress) occurrences are listed.
"""

from datetime import datetime
from typing import Dict, List

from flexcalendar.engine.eisenhower import is_important, is_urgent
from flexcalendar.engine.urgency import score_urgency
from flexcalendar.models.occurrence import OPEN_STATUSES, TaskOccurrence
from flexcalendar.models.task import Task


def with_urgency(
    occurrences: List[TaskOccurrence],
    tasks: Dict[str, Task],
    now: datetime,
    time_zone: str = "UTC",
) -> List[TaskOccurrence]:
    """Copies of the open occurrences with `urgency` filled in.

    Occurrences whose task is not in `tasks` are dropped.
    """
    scored = []
    for occurrence in occurrences:
        task = tasks.get(occurrence.task_id)
        if task is None or occurrence.status not in OPEN_STATUSES:
            continue
        urgency = score_urgency(occurrence, task, now, time_zone=time_zone)
        scored.append(occurrence.model_copy(update={"urgency": urgency}))
    return scored


def rank_occurrences(
    occurrences: List[TaskOccurrence],
    tasks: Dict[str, Task],
    now: datetime,
    time_zone: str = "UTC",
) -> List[TaskOccurrence]:
    """Rank open occurrences for "what next".

    Sorted:
    1. By urgency (highest first)
    2. Then by task importance (highest first)
    3. Then by start date (earliest first)

    This function is deterministic - same inputs always produce same outputs.

    Args:
        occurrences: Occurrences to rank (any status)
        tasks: Owning tasks keyed by id
        now: Evaluation instant

    Returns:
        Open occurrences with urgency set, highest priority first
    """
    scored = with_urgency(occurrences, tasks, now, time_zone=time_zone)
    return sorted(scored, key=lambda occ: _rank_sort_key(occ, tasks[occ.task_id]))


def _rank_sort_key(occurrence: TaskOccurrence, task: Task) -> tuple:
    # Ties fall back to the id so the order never depends on input order.
    return (-occurrence.urgency, -task.importance, occurrence.start_date, occurrence.id)


def urgent_occurrences(
    occurrences: List[TaskOccurrence],
    tasks: Dict[str, Task],
    now: datetime,
    time_zone: str = "UTC",
) -> List[TaskOccurrence]:
    """Open occurrences whose urgency reaches the priority threshold, ranked."""
    ranked = rank_occurrences(occurrences, tasks, now, time_zone=time_zone)
    return [occ for occ in ranked if is_urgent(occ.urgency)]


def important_occurrences(
    occurrences: List[TaskOccurrence],
    tasks: Dict[str, Task],
    now: datetime,
    time_zone: str = "UTC",
) -> List[TaskOccurrence]:
    """Open occurrences of important tasks, ranked."""
    ranked = rank_occurrences(occurrences, tasks, now, time_zone=time_zone)
    return [occ for occ in ranked if is_important(tasks[occ.task_id].importance)]
