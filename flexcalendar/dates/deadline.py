"""Deadline value object.

A Deadline is a calendar day where only the day matters, not the time.
It is stored as midnight UTC so that arithmetic and comparisons happen in
whole days and never drift across timezone boundaries.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime, time, timedelta, timezone
from typing import Any, Dict, Optional

import pytz

from flexcalendar.dates.errors import DateParseError
from flexcalendar.dates.parsing import to_utc_datetime


@dataclass(frozen=True, order=True)
class Deadline:
    """Immutable calendar day stored at UTC midnight."""

    utc_midnight: datetime

    def __post_init__(self):
        dt = self.utc_midnight
        if dt.tzinfo is None or dt.utcoffset() != timedelta(0):
            raise ValueError("Deadline must be built from an aware UTC datetime")
        if dt.time() != time(0, 0):
            raise ValueError("Deadline must be at midnight UTC")

    # Construction

    @classmethod
    def from_components(cls, year: int, month: int, day: int) -> "Deadline":
        try:
            return cls(datetime(year, month, day, tzinfo=timezone.utc))
        except ValueError as e:
            raise DateParseError(
                f"Invalid date components: {year}-{month}-{day}", value=(year, month, day)
            ) from e

    @classmethod
    def from_date(cls, value: Any) -> "Deadline":
        """Build from a date or datetime using its UTC calendar day."""
        utc = to_utc_datetime(value)
        return cls.from_components(utc.year, utc.month, utc.day)

    @classmethod
    def from_local_datetime(cls, value: datetime, time_zone: Optional[str] = None) -> "Deadline":
        """Build from the wall-clock day the viewer sees.

        The viewer's offset is cancelled: 2024-11-14 21:00 at UTC-3 is the 14th,
        even though the same instant is already the 15th in UTC.
        """
        local = value
        if time_zone is not None:
            local = to_utc_datetime(value).astimezone(pytz.timezone(time_zone))
        return cls.from_components(local.year, local.month, local.day)

    @classmethod
    def from_iso(cls, text: str) -> "Deadline":
        return cls.from_date(to_utc_datetime(text))

    @classmethod
    def from_epoch_millis(cls, millis: int) -> "Deadline":
        return cls.from_date(to_utc_datetime(millis))

    @classmethod
    def parse(cls, value: Any) -> "Deadline":
        """Normalize any supported input (Deadline, date, datetime, ISO string, epoch millis)."""
        if isinstance(value, Deadline):
            return value
        return cls.from_date(value)

    @classmethod
    def today(cls, now: Optional[datetime] = None, time_zone: str = "UTC") -> "Deadline":
        """Today's day as seen in `time_zone`."""
        current = to_utc_datetime(now) if now is not None else datetime.now(timezone.utc)
        return cls.from_local_datetime(current, time_zone=time_zone)

    # Accessors

    def get_components(self) -> Dict[str, int]:
        return {
            "year": self.utc_midnight.year,
            "month": self.utc_midnight.month,
            "day": self.utc_midnight.day,
        }

    @property
    def day_of_month(self) -> int:
        return self.utc_midnight.day

    def weekday(self) -> int:
        """Day of week, Monday=0 ... Sunday=6."""
        return self.utc_midnight.weekday()

    def to_date(self) -> date:
        return self.utc_midnight.date()

    def to_datetime(self) -> datetime:
        return self.utc_midnight

    def isoformat(self) -> str:
        return self.utc_midnight.strftime("%Y-%m-%dT%H:%M:%SZ")

    def __str__(self) -> str:
        return self.to_date().isoformat()

    # Arithmetic

    def add_days(self, days: int) -> "Deadline":
        return Deadline(self.utc_midnight + timedelta(days=days))

    def days_between(self, other: "Deadline") -> int:
        """Signed whole days from self to other."""
        return (other.utc_midnight - self.utc_midnight).days

    def days_until(self, today: Optional["Deadline"] = None) -> int:
        """Signed whole days from `today` to this deadline (negative if past)."""
        reference = today if today is not None else Deadline.today()
        return reference.days_between(self)

    def is_today(self, today: Optional["Deadline"] = None) -> bool:
        return self.days_until(today) == 0

    def is_past(self, today: Optional["Deadline"] = None) -> bool:
        return self.days_until(today) < 0

    def is_future(self, today: Optional["Deadline"] = None) -> bool:
        return self.days_until(today) > 0

    def is_before(self, other: "Deadline") -> bool:
        return self < other

    def is_after(self, other: "Deadline") -> bool:
        return self > other
