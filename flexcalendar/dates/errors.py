"""Errors raised by the date value objects."""


class DateParseError(ValueError):
    """Malformed date input (bad ISO string, out-of-range epoch, wrong type)."""

    def __init__(self, message: str, *, value=None):
        super().__init__(message)
        self.value = value
