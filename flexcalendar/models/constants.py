"""Constants for Flex Calendar.

This module centralizes all magic numbers and default values used throughout the application.
"""

# Task defaults
DEFAULT_IMPORTANCE = 5
MIN_IMPORTANCE = 1
MAX_IMPORTANCE = 10

# Shared boundary for the "important" / "urgent" dashboards and the Eisenhower matrix.
# importance >= PRIORITY_THRESHOLD is important; urgency >= PRIORITY_THRESHOLD is urgent.
PRIORITY_THRESHOLD = 6

# Urgency scale
URGENCY_MAX = 10.0
IMPORTANCE_URGENCY_WEIGHT = 0.3  # importance-only base: 0.3 .. 3.0
TARGET_ONLY_CEILING = 8.0  # occurrences without a limit date never reach URGENCY_MAX
TARGET_HEADROOM_SHARE = 0.25  # share of remaining headroom a near target date can claim
URGENCY_DECAY_DAYS = 3.0  # date pressure halves this many days out

# Occurrence generation
DEFAULT_HORIZON_DAYS = 14
TARGET_DATE_FRACTION = 0.6  # target sits at 60% of the gap to the limit date
ONE_OFF_TARGET_DAYS = 1
ONE_OFF_LIMIT_DAYS = 7

# Backlog
SEVERE_BACKLOG_THRESHOLD = 5
