"""TaskOccurrence data model for Flex Calendar."""

from datetime import date, datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field

from flexcalendar.models.calendar_event import CalendarEventDraft


class OccurrenceStatus(str, Enum):
    """Occurrence status enumeration."""
    PENDING = "Pending"
    IN_PROGRESS = "In Progress"
    COMPLETED = "Completed"
    SKIPPED = "Skipped"


OPEN_STATUSES = (OccurrenceStatus.PENDING, OccurrenceStatus.IN_PROGRESS)
TERMINAL_STATUSES = (OccurrenceStatus.COMPLETED, OccurrenceStatus.SKIPPED)


class TaskOccurrence(BaseModel):
    """One concrete, dated instance of a task."""
    
    id: str = Field(..., description="Unique occurrence identifier (UUID v4)")
    task_id: str = Field(..., description="Owning task id")
    start_date: date = Field(..., description="Day the occurrence becomes actionable")
    target_date: Optional[date] = Field(None, description="Soft goal date")
    limit_date: Optional[date] = Field(None, description="Hard deadline")
    target_time_consumption: Optional[float] = Field(None, ge=0, description="Planned hours")
    time_consumed: float = Field(0.0, ge=0, description="Actual hours")
    status: OccurrenceStatus = Field(OccurrenceStatus.PENDING, description="Occurrence status")
    urgency: Optional[float] = Field(None, description="Derived urgency, recomputed on read")
    completed_at: Optional[datetime] = Field(None, description="Completion timestamp")
    created_at: datetime = Field(..., description="Creation timestamp")
    updated_at: datetime = Field(..., description="Last update timestamp")
    
    class Config:
        """Pydantic configuration."""
        use_enum_values = True


class OccurrenceDraft(BaseModel):
    """Occurrence the generator wants inserted; ids and timestamps are assigned on insert."""

    task_id: str
    start_date: date
    target_date: Optional[date] = None
    limit_date: Optional[date] = None
    target_time_consumption: Optional[float] = None
    event: Optional[CalendarEventDraft] = Field(
        None, description="Fixed-time calendar event to create alongside the occurrence"
    )
