"""EventTime value object: a precise instant used for scheduling."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone

import pytz

from flexcalendar.dates.deadline import Deadline
from flexcalendar.dates.errors import DateParseError
from flexcalendar.dates.instant import Instant


@dataclass(frozen=True, order=True)
class EventTime(Instant):
    """Date + time of a calendar event, always held in UTC.

    Arithmetic is linear on the underlying instant, so adding 24 hours and
    adding one day are the same operation.
    """

    @classmethod
    def from_components(
        cls,
        year: int,
        month: int,
        day: int,
        hour: int,
        minute: int,
        second: int = 0,
    ) -> "EventTime":
        try:
            return cls(datetime(year, month, day, hour, minute, second, tzinfo=timezone.utc))
        except ValueError as e:
            raise DateParseError(
                f"Invalid event time components: {year}-{month}-{day} {hour}:{minute}:{second}",
                value=(year, month, day, hour, minute, second),
            ) from e

    @classmethod
    def from_local(cls, day: date, at: time, time_zone: str = "UTC") -> "EventTime":
        """Wall-clock `at` on `day` in `time_zone`, converted to UTC."""
        if isinstance(day, Deadline):
            day = day.to_date()
        local = pytz.timezone(time_zone).localize(datetime.combine(day, at.replace(tzinfo=None)))
        return cls(local.astimezone(timezone.utc))

    def add_minutes(self, minutes: float) -> "EventTime":
        return EventTime(self.instant + timedelta(minutes=minutes))

    def add_hours(self, hours: float) -> "EventTime":
        return EventTime(self.instant + timedelta(hours=hours))

    def add_days(self, days: float) -> "EventTime":
        return EventTime(self.instant + timedelta(days=days))

    def minutes_until(self, other: "EventTime") -> float:
        return (other.instant - self.instant).total_seconds() / 60.0

    def to_deadline(self) -> Deadline:
        return Deadline.from_date(self.instant)
