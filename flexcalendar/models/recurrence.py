"""Recurrence models for Flex Calendar.

A recurrence pattern has exactly one shape: every N days, a set of weekdays,
or a set of days of the month. Caps and end dates bound the series.
"""

from __future__ import annotations

from datetime import date
from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator, model_validator


MIXED_KINDS_MESSAGE = (
    "Recurrence must have exactly one type: interval, days_of_week, or days_of_month "
    "(cannot mix types)"
)


class RecurrenceInvariantError(RuntimeError):
    """A pattern with zero or several kinds reached code that assumes validation ran."""


class RecurrenceKind(str, Enum):
    INTERVAL = "interval"
    DAYS_OF_WEEK = "days_of_week"
    DAYS_OF_MONTH = "days_of_month"


class CapMode(str, Enum):
    """How `max_occurrences` is read; chosen by the task type, not the pattern."""

    TOTAL = "total"
    PER_PERIOD = "per_period"


class Weekday(str, Enum):
    MON = "Mon"
    TUE = "Tue"
    WED = "Wed"
    THU = "Thu"
    FRI = "Fri"
    SAT = "Sat"
    SUN = "Sun"

    @classmethod
    def _missing_(cls, value):
        # Exact abbreviation or full day name, any case: "mon", "MONDAY".
        if isinstance(value, str):
            return _WEEKDAY_NAMES.get(value.strip().lower())
        return None

    @property
    def day_index(self) -> int:
        """Monday=0 ... Sunday=6, matching date.weekday()."""
        return list(Weekday).index(self)

    @classmethod
    def from_day_index(cls, idx: int) -> "Weekday":
        return list(Weekday)[idx]


_FULL_DAY_NAMES = ("monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday")
_WEEKDAY_NAMES = {
    **{day.value.lower(): day for day in Weekday},
    **{name: day for day, name in zip(Weekday, _FULL_DAY_NAMES)},
}


class RecurrencePattern(BaseModel):
    """Recurrence definition.

    Notes:
    - `interval` is in days.
    - `end_date` is inclusive.
    - `last_period_start` anchors the series; `creation_date` is the fallback anchor.
    """

    id: Optional[str] = Field(None, description="Recurrence identifier")
    creation_date: date = Field(..., description="Day the pattern was created")

    interval: Optional[int] = Field(None, ge=1, description="Every N days")
    days_of_week: Optional[List[Weekday]] = Field(None, description="Weekdays on which it occurs")
    days_of_month: Optional[List[int]] = Field(None, description="Days of month (1-31) on which it occurs")

    max_occurrences: Optional[int] = Field(
        None, ge=1, description="Cap: total, or per period for habit-style tasks"
    )
    completed_occurrences: int = Field(0, ge=0, description="Running completion counter")
    last_period_start: Optional[date] = Field(None, description="Start of the current period")
    end_date: Optional[date] = Field(None, description="Last day the series may occur on")

    @field_validator("days_of_week")
    @classmethod
    def _validate_days_of_week(cls, v):
        if v is None:
            return None
        return sorted(set(v), key=lambda d: d.day_index)

    @field_validator("days_of_month")
    @classmethod
    def _validate_days_of_month(cls, v):
        if v is None:
            return None
        out_of_range = [str(d) for d in v if d < 1 or d > 31]
        if out_of_range:
            raise ValueError(
                f"Day-of-month values out of range: {', '.join(out_of_range)}. "
                "Days must be between 1 and 31."
            )
        return sorted(set(v))

    @model_validator(mode="after")
    def _validate_shape(self):
        if len(self.populated_kinds()) != 1:
            raise ValueError(MIXED_KINDS_MESSAGE)
        if self.end_date is not None and self.end_date < self.creation_date:
            raise ValueError("end_date must be >= creation_date")
        return self

    def populated_kinds(self) -> List[RecurrenceKind]:
        """Kinds that are present; empty day lists count as absent."""
        kinds: List[RecurrenceKind] = []
        if self.interval is not None:
            kinds.append(RecurrenceKind.INTERVAL)
        if self.days_of_week:
            kinds.append(RecurrenceKind.DAYS_OF_WEEK)
        if self.days_of_month:
            kinds.append(RecurrenceKind.DAYS_OF_MONTH)
        return kinds

    @property
    def kind(self) -> RecurrenceKind:
        kinds = self.populated_kinds()
        if len(kinds) != 1:
            raise RecurrenceInvariantError(
                f"Recurrence {self.id or '<unsaved>'} has {len(kinds)} kinds populated "
                f"({', '.join(k.value for k in kinds) or 'none'}); it was not validated"
            )
        return kinds[0]

    @property
    def anchor(self) -> date:
        return self.last_period_start or self.creation_date
