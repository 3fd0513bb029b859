"""Urgency scoring for Flex Calendar.

Urgency is derived on read, never stored as the source of truth. The score
lives on a 0-10 scale so it can be thresholded next to importance (1-10):

- with a limit date, urgency climbs toward URGENCY_MAX as the limit approaches
  and sits at URGENCY_MAX on and after the limit day; a target date can claim
  part of the remaining headroom
- with only a target date, the same curve tops out at TARGET_ONLY_CEILING
- with no dates at all, urgency comes from importance alone

Higher importance raises the floor of the curve, so it never lowers urgency.
This function is deterministic - same inputs always produce same outputs.
"""

from datetime import date, datetime
from typing import Optional, Union

from pydantic import BaseModel

from flexcalendar.dates import Deadline
from flexcalendar.models.constants import (
    IMPORTANCE_URGENCY_WEIGHT,
    TARGET_HEADROOM_SHARE,
    TARGET_ONLY_CEILING,
    URGENCY_DECAY_DAYS,
    URGENCY_MAX,
)
from flexcalendar.models.task import Task

DateLike = Union[date, datetime, str, Deadline]


class UrgencyResult(BaseModel):
    """Urgency plus the day counts it was computed from."""
    urgency: float
    is_overdue: bool
    days_until_target: Optional[int] = None
    days_until_limit: Optional[int] = None


def importance_base(importance: int) -> float:
    """Urgency floor contributed by importance alone."""
    return importance * IMPORTANCE_URGENCY_WEIGHT


def date_pressure(days_left: int) -> float:
    """Pressure in (0, 1]: 1 on or after the day, halving every URGENCY_DECAY_DAYS out."""
    if days_left <= 0:
        return 1.0
    return 1.0 / (1.0 + days_left / URGENCY_DECAY_DAYS)


def calculate_urgency(
    target_date: Optional[DateLike],
    limit_date: Optional[DateLike],
    importance: int,
    now: datetime,
    time_zone: str = "UTC",
) -> UrgencyResult:
    """Calculate urgency for an occurrence.

    Args:
        target_date: Soft goal date (optional)
        limit_date: Hard deadline (optional)
        importance: Task importance (1-10)
        now: Evaluation instant; "today" is derived from it once
        time_zone: Zone in which "today" is read

    Returns:
        UrgencyResult with the score and day counts
    """
    today = Deadline.today(now, time_zone)
    base = importance_base(importance)

    days_until_target = Deadline.parse(target_date).days_until(today) if target_date is not None else None
    days_until_limit = Deadline.parse(limit_date).days_until(today) if limit_date is not None else None

    if days_until_limit is not None:
        urgency = base + (URGENCY_MAX - base) * date_pressure(days_until_limit)
        if days_until_target is not None:
            urgency += (URGENCY_MAX - urgency) * TARGET_HEADROOM_SHARE * date_pressure(days_until_target)
        is_overdue = days_until_limit < 0
    elif days_until_target is not None:
        urgency = base + (TARGET_ONLY_CEILING - base) * date_pressure(days_until_target)
        is_overdue = days_until_target < 0
    else:
        urgency = base
        is_overdue = False

    return UrgencyResult(
        urgency=min(urgency, URGENCY_MAX),
        is_overdue=is_overdue,
        days_until_target=days_until_target,
        days_until_limit=days_until_limit,
    )


def score_urgency(occurrence, task: Task, now: datetime, time_zone: str = "UTC") -> float:
    """Urgency of an occurrence (or draft) belonging to `task`."""
    return calculate_urgency(
        getattr(occurrence, "target_date", None),
        getattr(occurrence, "limit_date", None),
        task.importance,
        now,
        time_zone=time_zone,
    ).urgency
