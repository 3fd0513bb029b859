"""Task type classification.

The task type decides how a recurrence's `max_occurrences` is read: as a
total for the whole series, or as a per-period quota for habits.
"""

from typing import Optional

from flexcalendar.models.recurrence import CapMode, RecurrencePattern
from flexcalendar.models.task import Task, TaskType


def calculate_task_type(pattern: Optional[RecurrencePattern], task: Optional[Task] = None) -> TaskType:
    """Calculate task type from the recurrence pattern and the fixed flag.

    Rules, in order:
    - fixed task without a pattern (or capped at 1): FIXED_SINGLE; otherwise FIXED_REPETITIVE
    - no pattern, or a cap of 1 without an interval: SINGLE
    - weekday / day-of-month sets capped above 1: FINITE_RECURRING
    - interval capped above 1: HABIT_PLUS
    - anything else (uncapped): HABIT

    Args:
        pattern: Recurrence pattern (None for one-off tasks)
        task: Task providing the fixed flag

    Returns:
        TaskType
    """
    if task is not None and task.is_fixed:
        if pattern is None or pattern.max_occurrences == 1:
            return TaskType.FIXED_SINGLE
        return TaskType.FIXED_REPETITIVE

    if pattern is None:
        return TaskType.SINGLE

    if pattern.max_occurrences == 1 and pattern.interval is None:
        return TaskType.SINGLE

    capped = pattern.max_occurrences is not None and pattern.max_occurrences > 1

    if pattern.interval is None and capped:
        return TaskType.FINITE_RECURRING

    if pattern.interval is not None and capped:
        return TaskType.HABIT_PLUS

    return TaskType.HABIT


def cap_mode_for(task_type: TaskType) -> CapMode:
    """Habit+ tasks read the cap per period; every other type reads it as a total."""
    if task_type == TaskType.HABIT_PLUS:
        return CapMode.PER_PERIOD
    return CapMode.TOTAL
