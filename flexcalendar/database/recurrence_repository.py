"""Repository for recurrence pattern database operations."""

import logging
from datetime import datetime
from typing import Optional
from sqlalchemy.orm import Session

from flexcalendar.models.recurrence import RecurrencePattern
from flexcalendar.database.models import RecurrenceDB

logger = logging.getLogger(__name__)


class RecurrenceRepository:
    """Repository for RecurrencePattern database operations.

    Patterns are validated before they reach this layer; rows are written as given.
    """

    def __init__(self, db: Session):
        self.db = db

    def create(self, user_id: str, pattern: RecurrencePattern) -> RecurrencePattern:
        """Create a new recurrence pattern."""
        try:
            row = RecurrenceDB.from_pydantic(pattern, user_id)
            self.db.add(row)
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Created recurrence {row.id} for user {user_id}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create recurrence for user {user_id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, user_id: str, recurrence_id: str) -> Optional[RecurrencePattern]:
        """Get recurrence pattern by ID (user-scoped)."""
        row = self.db.query(RecurrenceDB).filter(
            RecurrenceDB.id == recurrence_id,
            RecurrenceDB.user_id == user_id,
        ).first()
        return row.to_pydantic() if row else None

    def update(self, user_id: str, pattern: RecurrencePattern, *, commit: bool = True) -> RecurrencePattern:
        """Overwrite a stored pattern, counters included.

        With `commit=False` the change is only flushed so it joins the
        caller's transaction.
        """
        row = self.db.query(RecurrenceDB).filter(
            RecurrenceDB.id == pattern.id,
            RecurrenceDB.user_id == user_id,
        ).first()
        if not row:
            raise ValueError(f"Recurrence {pattern.id} not found")

        row.apply(pattern)
        row.updated_at = datetime.utcnow()
        try:
            if commit:
                self.db.commit()
                self.db.refresh(row)
            else:
                self.db.flush()
            logger.debug(
                f"Updated recurrence {pattern.id}: completed={pattern.completed_occurrences} "
                f"period_start={pattern.last_period_start}"
            )
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update recurrence {pattern.id}: {type(e).__name__}: {str(e)}")
            raise
