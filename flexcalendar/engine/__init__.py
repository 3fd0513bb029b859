"""Occurrence engine for Flex Calendar."""

from flexcalendar.engine.task_type import calculate_task_type, cap_mode_for
from flexcalendar.engine.urgency import calculate_urgency, score_urgency, UrgencyResult
from flexcalendar.engine.eisenhower import (
    Quadrant,
    calculate_quadrant,
    get_quadrant_label,
    is_important,
    is_urgent,
)
from flexcalendar.engine.ranking import (
    important_occurrences,
    rank_occurrences,
    urgent_occurrences,
    with_urgency,
)
from flexcalendar.engine.lifecycle import (
    OccurrenceTransitionError,
    complete_occurrence,
    correct_occurrence,
    skip_occurrence,
    start_occurrence,
    unschedule_occurrence,
)
from flexcalendar.engine.backlog import BacklogReport, backlog_to_skip, detect_backlog

__all__ = [
    "calculate_task_type",
    "cap_mode_for",
    "calculate_urgency",
    "score_urgency",
    "UrgencyResult",
    "Quadrant",
    "calculate_quadrant",
    "get_quadrant_label",
    "is_important",
    "is_urgent",
    "important_occurrences",
    "rank_occurrences",
    "urgent_occurrences",
    "with_urgency",
    "OccurrenceTransitionError",
    "complete_occurrence",
    "correct_occurrence",
    "skip_occurrence",
    "start_occurrence",
    "unschedule_occurrence",
    "BacklogReport",
    "backlog_to_skip",
    "detect_backlog",
]
