"""Task and occurrence creation factory for Flex Calendar.

This module centralizes creation logic to eliminate duplication
and ensure consistent default values across the application.
"""

import uuid
from datetime import datetime, time
from typing import Any, Dict, Optional

from flexcalendar.models.calendar_event import CalendarEvent
from flexcalendar.models.constants import DEFAULT_IMPORTANCE
from flexcalendar.models.occurrence import OccurrenceDraft, OccurrenceStatus, TaskOccurrence
from flexcalendar.models.task import Task


def create_task_defaults() -> Dict[str, Any]:
    """Get default task values as a dictionary.
    
    Returns:
        Dictionary with default task field values using constants
    """
    return {
        "description": None,
        "importance": DEFAULT_IMPORTANCE,
        "is_active": True,
        "is_fixed": False,
        "fixed_start_time": None,
        "fixed_end_time": None,
        "recurrence_id": None,
        "target_time_consumption": None,
    }


def create_task_base(
    user_id: str,
    name: str,
    description: Optional[str] = None,
    importance: Optional[int] = None,
    is_active: Optional[bool] = None,
    is_fixed: Optional[bool] = None,
    fixed_start_time: Optional[time] = None,
    fixed_end_time: Optional[time] = None,
    recurrence_id: Optional[str] = None,
    target_time_consumption: Optional[float] = None,
) -> Task:
    """Create a task with defaults, allowing overrides.
    
    Args:
        user_id: User ID who owns this task (required)
        name: Task name (required)
        description: Task description
        importance: Importance 1-10 (defaults to constant)
        is_active: Whether the task generates occurrences
        is_fixed: Whether the task happens at fixed times of day
        fixed_start_time: Fixed start time of day
        fixed_end_time: Fixed end time of day
        recurrence_id: Recurrence pattern id (None for one-off tasks)
        target_time_consumption: Default planned hours per occurrence
        
    Returns:
        Task object with defaults applied
    """
    now = datetime.utcnow()
    defaults = create_task_defaults()

    return Task(
        id=str(uuid.uuid4()),
        user_id=user_id,
        name=name,
        description=description if description is not None else defaults["description"],
        importance=importance if importance is not None else defaults["importance"],
        is_active=is_active if is_active is not None else defaults["is_active"],
        is_fixed=is_fixed if is_fixed is not None else defaults["is_fixed"],
        fixed_start_time=fixed_start_time if fixed_start_time is not None else defaults["fixed_start_time"],
        fixed_end_time=fixed_end_time if fixed_end_time is not None else defaults["fixed_end_time"],
        recurrence_id=recurrence_id if recurrence_id is not None else defaults["recurrence_id"],
        target_time_consumption=target_time_consumption
        if target_time_consumption is not None
        else defaults["target_time_consumption"],
        created_at=now,
        updated_at=now,
    )


def create_occurrence_from_draft(draft: OccurrenceDraft) -> TaskOccurrence:
    """Turn a generator draft into a Pending occurrence with a fresh id."""
    now = datetime.utcnow()
    return TaskOccurrence(
        id=str(uuid.uuid4()),
        task_id=draft.task_id,
        start_date=draft.start_date,
        target_date=draft.target_date,
        limit_date=draft.limit_date,
        target_time_consumption=draft.target_time_consumption,
        time_consumed=0.0,
        status=OccurrenceStatus.PENDING,
        completed_at=None,
        created_at=now,
        updated_at=now,
    )


def create_calendar_event(
    user_id: str,
    start: datetime,
    finish: datetime,
    occurrence_id: Optional[str] = None,
    is_fixed: bool = False,
    dedicated_time: float = 0.0,
) -> CalendarEvent:
    """Create a calendar event with a fresh id, optionally bound to an occurrence."""
    return CalendarEvent(
        id=str(uuid.uuid4()),
        user_id=user_id,
        occurrence_id=occurrence_id,
        start=start,
        finish=finish,
        is_fixed=is_fixed,
        is_completed=False,
        dedicated_time=dedicated_time,
        created_at=datetime.utcnow(),
    )
