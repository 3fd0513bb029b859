"""Input normalization shared by Deadline, EventTime and Timestamp.

Every constructor funnels through `to_utc_datetime`, so there is exactly one
place that decides how naive values, ISO strings and epoch millis map onto a
UTC instant.
"""

from __future__ import annotations

import logging
from datetime import date, datetime, time, timezone
from typing import Any, Optional

from flexcalendar.dates.errors import DateParseError

logger = logging.getLogger(__name__)


def to_utc_datetime(value: Any) -> datetime:
    """Normalize a datetime, date, ISO string or epoch millis to an aware UTC datetime.

    Naive datetimes are taken as UTC. Plain dates map to UTC midnight.

    Raises:
        DateParseError: If the value cannot be interpreted.
    """
    if isinstance(value, datetime):
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value.astimezone(timezone.utc)

    if isinstance(value, date):
        return datetime.combine(value, time(0, 0), tzinfo=timezone.utc)

    if isinstance(value, bool):
        raise DateParseError(f"Invalid date value: {value!r}", value=value)

    if isinstance(value, (int, float)):
        try:
            return datetime.fromtimestamp(value / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as e:
            raise DateParseError(f"Epoch millis out of range: {value!r}", value=value) from e

    if isinstance(value, str):
        text = value.strip()
        if not text:
            raise DateParseError("Empty date string", value=value)
        if text.endswith(("Z", "z")):
            text = text[:-1] + "+00:00"
        try:
            return to_utc_datetime(datetime.fromisoformat(text))
        except ValueError:
            pass
        try:
            return to_utc_datetime(date.fromisoformat(text))
        except ValueError as e:
            raise DateParseError(f"Invalid ISO-8601 date: {value!r}", value=value) from e

    raise DateParseError(
        f"Unsupported date input type: {type(value).__name__}", value=value
    )


def parse_or_now(cls, value: Any, now: Optional[datetime] = None):
    """Parse `value` with `cls.parse`, falling back to `now` on malformed input.

    The value objects themselves are strict; this is the opt-in lenient path
    for callers that prefer a best-effort value over a failure.
    """
    try:
        return cls.parse(value)
    except DateParseError as e:
        logger.warning(f"Falling back to current time for {cls.__name__}: {e}")
        return cls.parse(now if now is not None else datetime.now(timezone.utc))
