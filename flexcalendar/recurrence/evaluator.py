"""Recurrence pattern evaluation.

Answers "which days does this pattern produce inside a window" without
touching any state. Caps and end dates are terminal conditions: the series
simply ends, nothing is raised.
"""

from __future__ import annotations

from typing import Iterator, List, Optional

from flexcalendar.dates import DateWindow, Deadline
from flexcalendar.models.recurrence import CapMode, RecurrenceKind, RecurrencePattern


def _first_of_next_month(day: Deadline) -> Deadline:
    c = day.get_components()
    if c["month"] == 12:
        return Deadline.from_components(c["year"] + 1, 1, 1)
    return Deadline.from_components(c["year"], c["month"] + 1, 1)


def occurs_on(pattern: RecurrencePattern, day: Deadline) -> bool:
    """Whether `day` matches the pattern shape (ignores caps, respects anchor and end_date)."""
    kind = pattern.kind
    anchor = Deadline.from_date(pattern.anchor)
    if day < anchor:
        return False
    if pattern.end_date is not None and day > Deadline.from_date(pattern.end_date):
        return False

    if kind == RecurrenceKind.INTERVAL:
        return anchor.days_between(day) % pattern.interval == 0

    if kind == RecurrenceKind.DAYS_OF_WEEK:
        return any(d.day_index == day.weekday() for d in pattern.days_of_week)

    # A configured 31 never matches February: skipped, not clamped to the 28th/29th.
    return day.day_of_month in pattern.days_of_month


def iter_series(
    pattern: RecurrencePattern,
    start: Deadline,
    *,
    bounded: bool = True,
) -> Iterator[Deadline]:
    """Yield qualifying days from max(start, anchor) onwards, ascending.

    With `bounded`, the series stops after `end_date`; otherwise it is endless
    and the caller must stop consuming.
    """
    kind = pattern.kind
    anchor = Deadline.from_date(pattern.anchor)
    end = Deadline.from_date(pattern.end_date) if (bounded and pattern.end_date) else None
    cur = max(start, anchor)

    if kind == RecurrenceKind.INTERVAL:
        n = pattern.interval
        offset = anchor.days_between(cur)
        k = -(-offset // n)
        cur = anchor.add_days(k * n)
        while end is None or cur <= end:
            yield cur
            cur = cur.add_days(n)
        return

    while end is None or cur <= end:
        if kind == RecurrenceKind.DAYS_OF_WEEK:
            hit = any(d.day_index == cur.weekday() for d in pattern.days_of_week)
        else:
            hit = cur.day_of_month in pattern.days_of_month
        if hit:
            yield cur
        cur = cur.add_days(1)


def next_occurrence_date(
    pattern: RecurrencePattern,
    after: Deadline,
    *,
    bounded: bool = True,
) -> Optional[Deadline]:
    """First qualifying day strictly after `after`, ignoring caps."""
    return next(iter_series(pattern, after.add_days(1), bounded=bounded), None)


def period_end(pattern: RecurrencePattern, period_start: Deadline) -> Deadline:
    """Exclusive end of the period that starts at `period_start`.

    Interval patterns use `interval`-day periods, weekday patterns 7-day
    periods and day-of-month patterns calendar months.
    """
    kind = pattern.kind
    if kind == RecurrenceKind.INTERVAL:
        return period_start.add_days(pattern.interval)
    if kind == RecurrenceKind.DAYS_OF_WEEK:
        return period_start.add_days(7)
    return _first_of_next_month(period_start)


def next_period_start(pattern: RecurrencePattern, period_start: Deadline) -> Deadline:
    return period_end(pattern, period_start)


def _period_slots(
    pattern: RecurrencePattern,
    start: Deadline,
    end: Deadline,
    cap: int,
) -> List[Deadline]:
    """Up to `cap` occurrence days inside [start, end)."""
    if pattern.kind == RecurrenceKind.INTERVAL:
        # Spread the cap across the period: every interval // cap days.
        step = max(1, pattern.interval // cap)
        slots = [start.add_days(i * step) for i in range(cap)]
        return [d for d in slots if d < end]

    slots: List[Deadline] = []
    for day in iter_series(pattern, start, bounded=False):
        if day >= end or len(slots) >= cap:
            break
        slots.append(day)
    return slots


def _capped_per_period(pattern: RecurrencePattern, window: DateWindow) -> List[Deadline]:
    cap = pattern.max_occurrences
    end_date = Deadline.from_date(pattern.end_date) if pattern.end_date else None
    out: List[Deadline] = []

    start = Deadline.from_date(pattern.anchor)
    index = 0
    while start < window.end:
        end = period_end(pattern, start)
        if end > window.start:
            # In the current period, completed slots are already used up.
            consumed = min(pattern.completed_occurrences, cap) if index == 0 else 0
            for day in _period_slots(pattern, start, end, cap)[consumed:]:
                if end_date is not None and day > end_date:
                    return out
                if window.contains(day):
                    out.append(day)
        start = end
        index += 1
    return out


def _capped_total(pattern: RecurrencePattern, window: DateWindow) -> List[Deadline]:
    cap = pattern.max_occurrences
    if pattern.completed_occurrences >= cap:
        return []
    out: List[Deadline] = []
    # Only the first `cap` members of the series, counted from the anchor, exist.
    for position, day in enumerate(iter_series(pattern, Deadline.from_date(pattern.anchor))):
        if position >= cap or day >= window.end:
            break
        if day >= window.start:
            out.append(day)
    return out


def occurrence_dates(
    pattern: RecurrencePattern,
    window: DateWindow,
    cap_mode: CapMode = CapMode.TOTAL,
) -> List[Deadline]:
    """Occurrence days of `pattern` inside `window`, sorted and unique.

    Args:
        pattern: A validated recurrence pattern
        window: Half-open day window to evaluate
        cap_mode: How to read `max_occurrences` (decided by the task type)

    Raises:
        RecurrenceInvariantError: If the pattern has zero or several kinds
    """
    pattern.kind  # raises RecurrenceInvariantError when validation was bypassed

    if pattern.max_occurrences is None:
        out: List[Deadline] = []
        for day in iter_series(pattern, window.start):
            if day >= window.end:
                break
            out.append(day)
        return out

    if cap_mode == CapMode.PER_PERIOD:
        return _capped_per_period(pattern, window)
    return _capped_total(pattern, window)
