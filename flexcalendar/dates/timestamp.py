"""Timestamp value object for audit fields (created/updated/completed)."""

from __future__ import annotations

from dataclasses import dataclass

from flexcalendar.dates.instant import Instant


@dataclass(frozen=True, order=True)
class Timestamp(Instant):
    """Audit-only instant.

    Same representation as EventTime but deliberately without scheduling
    arithmetic: timestamps are displayed and sorted, never scheduled against.
    """

    def format(self, fmt: str = "%Y-%m-%d %H:%M") -> str:
        return self.instant.strftime(fmt)
