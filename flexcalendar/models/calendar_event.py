"""CalendarEvent data model for Flex Calendar."""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field, model_validator


class CalendarEventDraft(BaseModel):
    """Event the generator wants created for a fixed task."""

    start: datetime
    finish: datetime
    is_fixed: bool = True


class CalendarEvent(BaseModel):
    """A scheduled time block, optionally bound to one occurrence."""
    
    id: str = Field(..., description="Unique event identifier")
    user_id: str = Field(..., description="User ID who owns this event")
    occurrence_id: Optional[str] = Field(None, description="Bound occurrence (nullable)")
    start: datetime = Field(..., description="Event start (UTC)")
    finish: datetime = Field(..., description="Event finish (UTC)")
    is_fixed: bool = Field(False, description="Created from a fixed task; cannot be deleted")
    is_completed: bool = Field(False, description="Whether the block was completed")
    dedicated_time: float = Field(0.0, ge=0, description="Hours dedicated in this block")
    created_at: Optional[datetime] = Field(None, description="Creation timestamp")

    @model_validator(mode="after")
    def _check_order(self):
        if self.finish <= self.start:
            raise ValueError("finish must be after start")
        return self
