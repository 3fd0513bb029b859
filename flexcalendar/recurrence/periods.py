"""Period bookkeeping for capped recurrences.

Counters live on the pattern (`completed_occurrences`, `last_period_start`).
These helpers return updated copies; persisting them is the caller's job.
"""

from __future__ import annotations

from datetime import date

from flexcalendar.dates import Deadline
from flexcalendar.models.recurrence import CapMode, RecurrencePattern
from flexcalendar.recurrence.evaluator import next_period_start, period_end


def period_containing(pattern: RecurrencePattern, day: Deadline) -> Deadline:
    """Start of the period (counted from the anchor) that contains `day`.

    Days before the anchor belong to the anchor's period.
    """
    start = Deadline.from_date(pattern.anchor)
    while day >= period_end(pattern, start):
        start = next_period_start(pattern, start)
    return start


def register_completion(
    pattern: RecurrencePattern,
    occurrence_start: date,
    cap_mode: CapMode,
) -> RecurrencePattern:
    """Count one completed occurrence.

    Total caps simply increment. Per-period caps increment only when the
    occurrence belongs to the current period; an occurrence from a later period
    moves the pattern to that period with a count of 1, and a backlog
    occurrence from an earlier period leaves the counter alone.
    """
    if cap_mode != CapMode.PER_PERIOD or pattern.max_occurrences is None:
        return pattern.model_copy(
            update={"completed_occurrences": pattern.completed_occurrences + 1}
        )

    current_start = Deadline.from_date(pattern.anchor)
    current_end = period_end(pattern, current_start)
    occurrence_day = Deadline.from_date(occurrence_start)

    if current_start <= occurrence_day < current_end:
        return pattern.model_copy(
            update={"completed_occurrences": pattern.completed_occurrences + 1}
        )
    if occurrence_day >= current_end:
        return pattern.model_copy(
            update={
                "last_period_start": period_containing(pattern, occurrence_day).to_date(),
                "completed_occurrences": 1,
            }
        )
    return pattern


def roll_period(pattern: RecurrencePattern, today: Deadline) -> RecurrencePattern:
    """Advance a per-period pattern to the period containing `today`, resetting the counter.

    Returns the pattern unchanged while `today` is still in the current period.
    """
    if pattern.max_occurrences is None:
        return pattern
    current = Deadline.from_date(pattern.anchor)
    if today < period_end(pattern, current):
        return pattern
    return pattern.model_copy(
        update={
            "last_period_start": period_containing(pattern, today).to_date(),
            "completed_occurrences": 0,
        }
    )
