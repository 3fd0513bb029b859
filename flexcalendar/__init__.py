"""Flex Calendar: recurrence expansion, occurrence generation and urgency scoring."""

__version__ = "0.1.0"
