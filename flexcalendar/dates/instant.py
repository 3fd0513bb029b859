"""Shared base for precise-instant value objects."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict

from flexcalendar.dates.parsing import to_utc_datetime


@dataclass(frozen=True, order=True)
class Instant:
    """Aware UTC instant. Subclasses are distinct types that never compare equal."""

    instant: datetime

    def __post_init__(self):
        if self.instant.tzinfo is None or self.instant.utcoffset() != timedelta(0):
            raise ValueError(f"{type(self).__name__} must be built from an aware UTC datetime")

    @classmethod
    def from_datetime(cls, value: datetime):
        return cls(to_utc_datetime(value))

    @classmethod
    def from_iso(cls, text: str):
        return cls(to_utc_datetime(text))

    @classmethod
    def from_epoch_millis(cls, millis: int):
        return cls(to_utc_datetime(millis))

    @classmethod
    def parse(cls, value: Any):
        if isinstance(value, cls):
            return value
        if isinstance(value, Instant):
            return cls(value.instant)
        return cls(to_utc_datetime(value))

    @classmethod
    def now(cls):
        return cls(datetime.now(timezone.utc))

    def to_datetime(self) -> datetime:
        return self.instant

    def epoch_millis(self) -> int:
        return int(self.instant.timestamp() * 1000)

    def isoformat(self) -> str:
        return self.instant.isoformat(timespec="milliseconds").replace("+00:00", "Z")

    def get_components(self) -> Dict[str, int]:
        return {
            "year": self.instant.year,
            "month": self.instant.month,
            "day": self.instant.day,
            "hour": self.instant.hour,
            "minute": self.instant.minute,
            "second": self.instant.second,
        }

    def __str__(self) -> str:
        return self.isoformat()
