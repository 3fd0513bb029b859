"""Calendar date value objects for Flex Calendar."""

from flexcalendar.dates.errors import DateParseError
from flexcalendar.dates.deadline import Deadline
from flexcalendar.dates.event_time import EventTime
from flexcalendar.dates.timestamp import Timestamp
from flexcalendar.dates.window import DateWindow
from flexcalendar.dates.parsing import parse_or_now

__all__ = [
    "DateParseError",
    "Deadline",
    "EventTime",
    "Timestamp",
    "DateWindow",
    "parse_or_now",
]
