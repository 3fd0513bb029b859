"""Repository for TaskOccurrence database operations."""

import logging
from datetime import date
from typing import Iterable, List, Optional, Set
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from flexcalendar.models.occurrence import OPEN_STATUSES, OccurrenceDraft, TaskOccurrence
from flexcalendar.models.task_factory import create_calendar_event, create_occurrence_from_draft
from flexcalendar.database.models import (
    CalendarEventDB,
    TaskDB,
    TaskOccurrenceDB,
    enum_to_value,
    to_naive_utc,
)

logger = logging.getLogger(__name__)


class OccurrenceRepository:
    """Repository for TaskOccurrence database operations.

    Occurrences carry no user_id of their own; ownership goes through the task.
    """

    def __init__(self, db: Session):
        self.db = db

    def _owned(self, user_id: str):
        return self.db.query(TaskOccurrenceDB).join(TaskDB, TaskDB.id == TaskOccurrenceDB.task_id).filter(
            TaskDB.user_id == user_id
        )

    def get(self, user_id: str, occurrence_id: str) -> Optional[TaskOccurrence]:
        """Get occurrence by ID (user-scoped)."""
        row = self._owned(user_id).filter(TaskOccurrenceDB.id == occurrence_id).first()
        return row.to_pydantic() if row else None

    def list_for_task(self, task_id: str, statuses: Optional[Iterable[str]] = None) -> List[TaskOccurrence]:
        """Occurrences of a task ordered by start date, optionally filtered by status."""
        query = self.db.query(TaskOccurrenceDB).filter(TaskOccurrenceDB.task_id == task_id)
        if statuses is not None:
            query = query.filter(TaskOccurrenceDB.status.in_([enum_to_value(s) for s in statuses]))
        rows = query.order_by(TaskOccurrenceDB.start_date, TaskOccurrenceDB.id).all()
        return [row.to_pydantic() for row in rows]

    def list_open_for_user(self, user_id: str) -> List[TaskOccurrence]:
        """Pending / In Progress occurrences across all of a user's tasks."""
        rows = (
            self._owned(user_id)
            .filter(TaskOccurrenceDB.status.in_([s.value for s in OPEN_STATUSES]))
            .order_by(TaskOccurrenceDB.start_date, TaskOccurrenceDB.id)
            .all()
        )
        return [row.to_pydantic() for row in rows]

    def start_dates(self, task_id: str) -> Set[date]:
        """Start days already materialized for a task, in any status."""
        rows = self.db.query(TaskOccurrenceDB.start_date).filter(TaskOccurrenceDB.task_id == task_id).all()
        return {row[0] for row in rows}

    def insert_drafts(self, user_id: str, drafts: List[OccurrenceDraft]) -> List[TaskOccurrence]:
        """Insert generator drafts, each in its own savepoint, then commit once.

        A draft whose (task_id, start_date) already exists was inserted by a
        concurrent generator; it is skipped rather than failing the batch.
        Fixed-time drafts get their calendar event in the same savepoint.
        """
        created: List[TaskOccurrence] = []
        try:
            for draft in drafts:
                occurrence = create_occurrence_from_draft(draft)
                try:
                    with self.db.begin_nested():
                        self.db.add(TaskOccurrenceDB.from_pydantic(occurrence))
                        if draft.event is not None:
                            calendar_event = create_calendar_event(
                                user_id,
                                draft.event.start,
                                draft.event.finish,
                                occurrence_id=occurrence.id,
                                is_fixed=draft.event.is_fixed,
                            )
                            # The event row references the occurrence row.
                            self.db.flush()
                            self.db.add(CalendarEventDB.from_pydantic(calendar_event))
                except IntegrityError:
                    logger.info(
                        f"Occurrence for task {draft.task_id} on {draft.start_date} already exists, skipping"
                    )
                    continue
                created.append(occurrence)
            self.db.commit()
            if created:
                logger.debug(f"Inserted {len(created)} occurrences for user {user_id}")
            return created
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to insert occurrences for user {user_id}: {type(e).__name__}: {str(e)}")
            raise

    def save(self, occurrence: TaskOccurrence, *, commit: bool = True) -> TaskOccurrence:
        """Persist the mutable fields of an occurrence (status, time, completion)."""
        row = self.db.query(TaskOccurrenceDB).filter(TaskOccurrenceDB.id == occurrence.id).first()
        if not row:
            raise ValueError(f"Occurrence {occurrence.id} not found")

        row.status = enum_to_value(occurrence.status)
        row.time_consumed = occurrence.time_consumed
        row.completed_at = to_naive_utc(occurrence.completed_at)
        row.updated_at = occurrence.updated_at
        try:
            if commit:
                self.db.commit()
                self.db.refresh(row)
            else:
                self.db.flush()
            logger.debug(f"Saved occurrence {occurrence.id}: status={row.status}")
            return row.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to save occurrence {occurrence.id}: {type(e).__name__}: {str(e)}")
            raise
