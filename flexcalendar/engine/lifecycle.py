"""Occurrence status transitions.

Pending -> In Progress -> Completed, with Skipped reachable from any open
status. Completed and Skipped are terminal; afterwards only the recorded
time and completion timestamp may be corrected.

All functions return updated copies and never touch storage.
"""

from datetime import datetime
from typing import Iterable, Optional

from flexcalendar.models.occurrence import (
    OPEN_STATUSES,
    TERMINAL_STATUSES,
    OccurrenceStatus,
    TaskOccurrence,
)


class OccurrenceTransitionError(ValueError):
    """Requested status change is not allowed from the current status."""

    def __init__(self, occurrence_id: str, current: OccurrenceStatus, requested: str):
        self.occurrence_id = occurrence_id
        self.current = OccurrenceStatus(current)
        self.requested = requested
        super().__init__(
            f"Cannot {requested} occurrence {occurrence_id}: status is {self.current.value}"
        )


def _require(occurrence: TaskOccurrence, allowed: Iterable[OccurrenceStatus], requested: str) -> None:
    if occurrence.status not in tuple(allowed):
        raise OccurrenceTransitionError(occurrence.id, occurrence.status, requested)


def _check_time(time_consumed: Optional[float]) -> None:
    if time_consumed is not None and time_consumed < 0:
        raise ValueError("time_consumed must be >= 0")


def start_occurrence(occurrence: TaskOccurrence, now: Optional[datetime] = None) -> TaskOccurrence:
    """Pending -> In Progress."""
    _require(occurrence, (OccurrenceStatus.PENDING,), "start")
    return occurrence.model_copy(
        update={
            "status": OccurrenceStatus.IN_PROGRESS.value,
            "updated_at": now or datetime.utcnow(),
        }
    )


def complete_occurrence(
    occurrence: TaskOccurrence,
    completed_at: Optional[datetime] = None,
    time_consumed: Optional[float] = None,
) -> TaskOccurrence:
    """Pending or In Progress -> Completed.

    Args:
        occurrence: Open occurrence
        completed_at: Completion instant (defaults to now)
        time_consumed: Hours actually spent; keeps the recorded value when None

    Raises:
        OccurrenceTransitionError: If the occurrence is already terminal
    """
    _require(occurrence, OPEN_STATUSES, "complete")
    _check_time(time_consumed)
    when = completed_at or datetime.utcnow()
    update = {
        "status": OccurrenceStatus.COMPLETED.value,
        "completed_at": when,
        "updated_at": when,
    }
    if time_consumed is not None:
        update["time_consumed"] = time_consumed
    return occurrence.model_copy(update=update)


def skip_occurrence(occurrence: TaskOccurrence, now: Optional[datetime] = None) -> TaskOccurrence:
    """Pending or In Progress -> Skipped."""
    _require(occurrence, OPEN_STATUSES, "skip")
    return occurrence.model_copy(
        update={
            "status": OccurrenceStatus.SKIPPED.value,
            "updated_at": now or datetime.utcnow(),
        }
    )


def unschedule_occurrence(occurrence: TaskOccurrence, now: Optional[datetime] = None) -> TaskOccurrence:
    """In Progress -> Pending, used when its last calendar event goes away.

    Any other status is returned unchanged.
    """
    if occurrence.status != OccurrenceStatus.IN_PROGRESS:
        return occurrence
    return occurrence.model_copy(
        update={
            "status": OccurrenceStatus.PENDING.value,
            "updated_at": now or datetime.utcnow(),
        }
    )


def correct_occurrence(
    occurrence: TaskOccurrence,
    time_consumed: Optional[float] = None,
    completed_at: Optional[datetime] = None,
    now: Optional[datetime] = None,
) -> TaskOccurrence:
    """Corrective edit of a terminal occurrence.

    Only `time_consumed` and, for completed occurrences, `completed_at` can
    change. Status, dates and ownership stay as they are.
    """
    _require(occurrence, TERMINAL_STATUSES, "correct")
    _check_time(time_consumed)
    if completed_at is not None and occurrence.status != OccurrenceStatus.COMPLETED:
        raise OccurrenceTransitionError(occurrence.id, occurrence.status, "set completed_at on")

    update = {"updated_at": now or datetime.utcnow()}
    if time_consumed is not None:
        update["time_consumed"] = time_consumed
    if completed_at is not None:
        update["completed_at"] = completed_at
    return occurrence.model_copy(update=update)
