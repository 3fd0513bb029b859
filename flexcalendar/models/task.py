"""Task data model for Flex Calendar."""

from datetime import datetime, time
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field, model_validator

from flexcalendar.models.constants import DEFAULT_IMPORTANCE, MAX_IMPORTANCE, MIN_IMPORTANCE


class TaskType(str, Enum):
    """Behavioral task type, derived from the recurrence shape and the fixed flag."""
    SINGLE = "single"
    FIXED_SINGLE = "fixed_single"
    FIXED_REPETITIVE = "fixed_repetitive"
    FINITE_RECURRING = "finite_recurring"
    HABIT = "habit"
    HABIT_PLUS = "habit_plus"


class Task(BaseModel):
    """Canonical Task model.

    A task with no `recurrence_id` is one-off. The recurrence pattern is a
    separate record referenced by id, never embedded.
    """
    
    id: str = Field(..., description="Unique task identifier (UUID v4)")
    user_id: str = Field(..., description="User ID who owns this task")
    name: str = Field(..., min_length=1, description="Task name")
    description: Optional[str] = Field(None, description="Task description")
    importance: int = Field(
        DEFAULT_IMPORTANCE, ge=MIN_IMPORTANCE, le=MAX_IMPORTANCE, description="Importance (1-10)"
    )
    is_active: bool = Field(True, description="Inactive tasks generate no occurrences")
    is_fixed: bool = Field(False, description="Fixed tasks occur at fixed times of day")
    fixed_start_time: Optional[time] = Field(None, description="Fixed start time of day")
    fixed_end_time: Optional[time] = Field(None, description="Fixed end time of day")
    recurrence_id: Optional[str] = Field(None, description="Recurrence pattern id (null for one-off tasks)")
    target_time_consumption: Optional[float] = Field(
        None, ge=0, description="Default planned hours per occurrence"
    )
    created_at: datetime = Field(..., description="Task creation timestamp")
    updated_at: datetime = Field(..., description="Task last update timestamp")

    @model_validator(mode="after")
    def _check_fixed_times(self):
        if self.fixed_end_time is not None and self.fixed_start_time is None:
            raise ValueError("fixed_end_time requires fixed_start_time")
        return self

    @property
    def has_fixed_times(self) -> bool:
        return self.is_fixed and self.fixed_start_time is not None and self.fixed_end_time is not None
