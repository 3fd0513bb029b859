"""Recurrence validation.

Validation runs when a pattern is created or updated and fails fast with a
message naming the offending input. Nothing is coerced silently: a bad token
is an error, not a dropped value.
"""

from __future__ import annotations

import re
from datetime import date, datetime
from typing import Any, List, Mapping, Optional, Union

from pydantic import ValidationError

from flexcalendar.models.recurrence import RecurrencePattern, Weekday

_INT_TOKEN = re.compile(r"^[+-]?\d+$")


class RecurrenceValidationError(ValueError):
    """User-correctable recurrence error that can be surfaced as a 422."""

    def __init__(self, message: str, *, field: Optional[str] = None, invalid: Optional[list] = None):
        super().__init__(message)
        self.field = field
        self.invalid = invalid or []


def _split_tokens(value: Any, field: str) -> list:
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip() != ""]
    if isinstance(value, (list, tuple, set)):
        return list(value)
    raise RecurrenceValidationError(
        f"{field} must be a list or a comma separated string", field=field
    )


def parse_days_of_month(value: Union[str, List[Any], None]) -> Optional[List[int]]:
    """Parse "1, 15, 30" or [1, "15", 30] into sorted unique day numbers.

    Non-numeric tokens are reported before out-of-range ones, each with its own message.
    An empty input parses to an empty list (which validation treats as "not populated").
    """
    if value is None:
        return None
    tokens = _split_tokens(value, "days_of_month")

    invalid: List[str] = []
    out_of_range: List[str] = []
    days: List[int] = []
    for token in tokens:
        if isinstance(token, bool):
            invalid.append(str(token))
            continue
        if isinstance(token, int):
            number = token
        elif isinstance(token, float) and token.is_integer():
            number = int(token)
        elif isinstance(token, str) and _INT_TOKEN.match(token.strip()):
            number = int(token.strip())
        else:
            invalid.append(str(token).strip())
            continue
        if number < 1 or number > 31:
            out_of_range.append(str(token).strip())
        else:
            days.append(number)

    if invalid:
        raise RecurrenceValidationError(
            f"Invalid day-of-month values: {', '.join(invalid)}. Only whole numbers are allowed.",
            field="days_of_month",
            invalid=invalid,
        )
    if out_of_range:
        raise RecurrenceValidationError(
            f"Day-of-month values out of range: {', '.join(out_of_range)}. "
            "Days must be between 1 and 31.",
            field="days_of_month",
            invalid=out_of_range,
        )
    return sorted(set(days))


def parse_days_of_week(value: Union[str, List[Any], None]) -> Optional[List[Weekday]]:
    """Parse weekday names ("Mon", "monday", Weekday.MON) into Weekday members."""
    if value is None:
        return None
    tokens = _split_tokens(value, "days_of_week")

    invalid: List[str] = []
    days: List[Weekday] = []
    for token in tokens:
        try:
            days.append(Weekday(token))
        except ValueError:
            invalid.append(str(token))
    if invalid:
        raise RecurrenceValidationError(
            f"Invalid weekday names: {', '.join(invalid)}. "
            f"Use {', '.join(d.value for d in Weekday)}.",
            field="days_of_week",
            invalid=invalid,
        )
    return sorted(set(days), key=lambda d: d.day_index)


def _first_error_message(e: ValidationError) -> str:
    err = e.errors()[0]
    ctx_error = (err.get("ctx") or {}).get("error")
    if ctx_error is not None:
        return str(ctx_error)
    loc = ".".join(str(part) for part in err.get("loc", ()))
    return f"{loc}: {err['msg']}" if loc else err["msg"]


def validate_recurrence(
    data: Union[RecurrencePattern, Mapping[str, Any]],
    *,
    today: Optional[date] = None,
) -> RecurrencePattern:
    """Validate a recurrence definition and return the normalized pattern.

    Exactly one of interval / days_of_week / days_of_month must be populated;
    empty lists count as not populated.

    Args:
        data: Raw mapping (API payload) or an existing pattern
        today: creation_date to use when the payload has none

    Raises:
        RecurrenceValidationError: With a human-readable message
    """
    if isinstance(data, RecurrencePattern):
        raw = data.model_dump()
    else:
        raw = dict(data)

    raw["days_of_month"] = parse_days_of_month(raw.get("days_of_month"))
    raw["days_of_week"] = parse_days_of_week(raw.get("days_of_week"))
    if raw.get("creation_date") is None:
        raw["creation_date"] = today or datetime.utcnow().date()

    try:
        return RecurrencePattern.model_validate(raw)
    except ValidationError as e:
        raise RecurrenceValidationError(_first_error_message(e)) from e
