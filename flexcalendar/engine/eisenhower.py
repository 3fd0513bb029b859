"""Eisenhower matrix classification for Flex Calendar.

Importance (1-10) and urgency (0-10) share one threshold, so "important"
and "urgent" mean the same thing on the dashboard, in the matrix and in
the prioritized lists.
"""

from enum import Enum

from pydantic import BaseModel

from flexcalendar.models.constants import PRIORITY_THRESHOLD


class Quadrant(str, Enum):
    """Eisenhower quadrant."""
    DO_FIRST = "do_first"
    SCHEDULE = "schedule"
    DELEGATE = "delegate"
    ELIMINATE = "eliminate"


class QuadrantPosition(BaseModel):
    quadrant: Quadrant
    label: str
    importance: int
    urgency: float


def is_important(importance: float) -> bool:
    return importance >= PRIORITY_THRESHOLD


def is_urgent(urgency: float) -> bool:
    return urgency >= PRIORITY_THRESHOLD


def calculate_quadrant(importance: int, urgency: float) -> QuadrantPosition:
    """Place an occurrence in the matrix.

    Args:
        importance: Task importance (1-10)
        urgency: Occurrence urgency (0-10)

    Returns:
        QuadrantPosition with quadrant and human-readable label
    """
    important = is_important(importance)
    urgent = is_urgent(urgency)

    if important and urgent:
        quadrant = Quadrant.DO_FIRST
    elif important:
        quadrant = Quadrant.SCHEDULE
    elif urgent:
        quadrant = Quadrant.DELEGATE
    else:
        quadrant = Quadrant.ELIMINATE

    return QuadrantPosition(
        quadrant=quadrant,
        label=get_quadrant_label(quadrant),
        importance=importance,
        urgency=urgency,
    )


def get_quadrant_label(quadrant: Quadrant) -> str:
    """Get human-readable name for a quadrant."""
    labels = {
        Quadrant.DO_FIRST: "Do First",
        Quadrant.SCHEDULE: "Schedule",
        Quadrant.DELEGATE: "Delegate",
        Quadrant.ELIMINATE: "Eliminate",
    }
    return labels.get(Quadrant(quadrant), "Unknown")
