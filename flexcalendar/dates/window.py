"""Half-open day windows used as generation horizons."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator

from flexcalendar.dates.deadline import Deadline


@dataclass(frozen=True)
class DateWindow:
    """Days in [start, end)."""

    start: Deadline
    end: Deadline

    def __post_init__(self):
        if self.end < self.start:
            raise ValueError("DateWindow end must not be before start")

    @classmethod
    def from_horizon(cls, start: Deadline, days: int) -> "DateWindow":
        return cls(start, start.add_days(days))

    def contains(self, day: Deadline) -> bool:
        return self.start <= day < self.end

    def days(self) -> Iterator[Deadline]:
        cur = self.start
        while cur < self.end:
            yield cur
            cur = cur.add_days(1)

    def __len__(self) -> int:
        return self.start.days_between(self.end)
