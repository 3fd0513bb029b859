"""Repository for CalendarEvent database operations."""

import logging
from typing import List, Optional
from sqlalchemy.orm import Session

from flexcalendar.engine.lifecycle import unschedule_occurrence
from flexcalendar.models.calendar_event import CalendarEvent
from flexcalendar.database.models import CalendarEventDB, TaskOccurrenceDB

logger = logging.getLogger(__name__)


class FixedEventDeletionError(ValueError):
    """Events generated for fixed tasks cannot be deleted."""

    def __init__(self, event_id: str):
        self.event_id = event_id
        super().__init__("Cannot delete events from fixed tasks. Use skip or complete instead.")


class CalendarEventRepository:
    """Repository for CalendarEvent database operations."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, calendar_event: CalendarEvent) -> CalendarEvent:
        """Create a new calendar event; a bound occurrence gets its time re-synced."""
        try:
            row = CalendarEventDB.from_pydantic(calendar_event)
            self.db.add(row)
            self.db.flush()
            if calendar_event.occurrence_id is not None:
                self._sync_occurrence(calendar_event.occurrence_id)
            self.db.commit()
            self.db.refresh(row)
            logger.debug(f"Created calendar event {calendar_event.id}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create calendar event {calendar_event.id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, user_id: str, event_id: str) -> Optional[CalendarEvent]:
        """Get a calendar event by ID (user-scoped)."""
        row = self.db.query(CalendarEventDB).filter(
            CalendarEventDB.id == event_id,
            CalendarEventDB.user_id == user_id,
        ).first()
        return row.to_pydantic() if row else None

    def list_for_occurrence(self, occurrence_id: str) -> List[CalendarEvent]:
        """Events bound to an occurrence sorted by start."""
        rows = self.db.query(CalendarEventDB).filter(
            CalendarEventDB.occurrence_id == occurrence_id
        ).order_by(CalendarEventDB.start).all()
        return [row.to_pydantic() for row in rows]

    def delete(self, user_id: str, event_id: str) -> bool:
        """Delete a non-fixed event.

        The bound occurrence survives: its time_consumed is re-synced from the
        remaining events, and with no events left an In Progress occurrence
        goes back to Pending.

        Raises:
            FixedEventDeletionError: If the event belongs to a fixed task
        """
        row = self.db.query(CalendarEventDB).filter(
            CalendarEventDB.id == event_id,
            CalendarEventDB.user_id == user_id,
        ).first()
        if not row:
            return False
        if row.is_fixed:
            raise FixedEventDeletionError(event_id)

        occurrence_id = row.occurrence_id
        try:
            self.db.delete(row)
            self.db.flush()
            if occurrence_id is not None:
                self._sync_occurrence(occurrence_id)
            self.db.commit()
            logger.debug(f"Deleted calendar event {event_id}")
            return True
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to delete calendar event {event_id}: {type(e).__name__}: {str(e)}")
            raise

    def _sync_occurrence(self, occurrence_id: str) -> None:
        occurrence_db = self.db.query(TaskOccurrenceDB).filter(TaskOccurrenceDB.id == occurrence_id).first()
        if occurrence_db is None:
            return
        remaining = self.list_for_occurrence(occurrence_id)
        occurrence_db.time_consumed = sum(e.dedicated_time for e in remaining)
        if not remaining:
            occurrence = unschedule_occurrence(occurrence_db.to_pydantic())
            occurrence_db.status = occurrence.status
            occurrence_db.updated_at = occurrence.updated_at
