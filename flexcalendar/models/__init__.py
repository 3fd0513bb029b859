"""Data models for Flex Calendar."""

from flexcalendar.models.task import Task, TaskType
from flexcalendar.models.recurrence import (
    CapMode,
    RecurrenceInvariantError,
    RecurrenceKind,
    RecurrencePattern,
    Weekday,
)
from flexcalendar.models.occurrence import OccurrenceDraft, OccurrenceStatus, TaskOccurrence
from flexcalendar.models.calendar_event import CalendarEvent, CalendarEventDraft
from flexcalendar.models.user import User

__all__ = [
    "Task",
    "TaskType",
    "CapMode",
    "RecurrenceInvariantError",
    "RecurrenceKind",
    "RecurrencePattern",
    "Weekday",
    "OccurrenceDraft",
    "OccurrenceStatus",
    "TaskOccurrence",
    "CalendarEvent",
    "CalendarEventDraft",
    "User",
]
