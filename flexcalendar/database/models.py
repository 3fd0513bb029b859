"""SQLAlchemy database models for Flex Calendar."""

from datetime import datetime, timezone
from typing import Optional, TypeVar, Union
import uuid
from sqlalchemy import (
    Boolean,
    Column,
    Date,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    JSON,
    String,
    Time,
    UniqueConstraint,
)

from flexcalendar.database.database import Base
from flexcalendar.models.occurrence import OccurrenceStatus

T = TypeVar('T')


def enum_to_value(enum_obj: Union[str, T]) -> str:
    """Convert enum to string value (handles both enum and string).

    Args:
        enum_obj: Enum instance or string value

    Returns:
        String value of the enum, or the string itself if already a string
    """
    if hasattr(enum_obj, 'value'):
        return enum_obj.value
    return str(enum_obj)


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Re-attach UTC to datetimes that come back naive (SQLite drops tzinfo)."""
    if value is None or value.tzinfo is not None:
        return value
    return value.replace(tzinfo=timezone.utc)


def to_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Store instants as naive UTC so SQLite and Postgres round-trip the same value."""
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


class UserDB(Base):
    """Database model for User."""

    __tablename__ = "users"

    id = Column(String, primary_key=True)

    # User profile
    email = Column(String, nullable=False, unique=True)
    name = Column(String, nullable=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from flexcalendar.models.user import User
        return User(
            id=self.id,
            email=self.email,
            name=self.name,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, user):
        """Create database model from Pydantic model."""
        return cls(
            id=user.id,
            email=user.email,
            name=user.name,
            created_at=user.created_at,
            updated_at=user.updated_at,
        )


class RecurrenceDB(Base):
    """Database model for a recurrence pattern.

    Exactly one of interval / days_of_week / days_of_month is populated; the
    check happens in `validate_recurrence` before anything is written.
    """

    __tablename__ = "recurrences"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    creation_date = Column(Date, nullable=False)
    interval = Column(Integer, nullable=True)
    # Weekday values ("Mon", ...) and day numbers, stored as JSON arrays
    days_of_week = Column(JSON, nullable=True)
    days_of_month = Column(JSON, nullable=True)

    max_occurrences = Column(Integer, nullable=True)
    completed_occurrences = Column(Integer, nullable=False, default=0)
    last_period_start = Column(Date, nullable=True)
    end_date = Column(Date, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from flexcalendar.models.recurrence import RecurrencePattern
        return RecurrencePattern(
            id=self.id,
            creation_date=self.creation_date,
            interval=self.interval,
            days_of_week=self.days_of_week,
            days_of_month=self.days_of_month,
            max_occurrences=self.max_occurrences,
            completed_occurrences=self.completed_occurrences or 0,
            last_period_start=self.last_period_start,
            end_date=self.end_date,
        )

    def apply(self, pattern) -> None:
        """Copy pattern fields onto this row (id and owner untouched)."""
        self.creation_date = pattern.creation_date
        self.interval = pattern.interval
        self.days_of_week = [enum_to_value(d) for d in pattern.days_of_week] if pattern.days_of_week else None
        self.days_of_month = list(pattern.days_of_month) if pattern.days_of_month else None
        self.max_occurrences = pattern.max_occurrences
        self.completed_occurrences = pattern.completed_occurrences
        self.last_period_start = pattern.last_period_start
        self.end_date = pattern.end_date

    @classmethod
    def from_pydantic(cls, pattern, user_id: str):
        """Create database model from Pydantic model."""
        row = cls(id=pattern.id or str(uuid.uuid4()), user_id=user_id)
        row.apply(pattern)
        return row


class TaskDB(Base):
    """Database model for Task."""

    __tablename__ = "tasks"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))

    # User association
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)

    # Basic fields
    name = Column(String, nullable=False)
    description = Column(String, nullable=True)
    importance = Column(Integer, nullable=False, default=5)
    is_active = Column(Boolean, nullable=False, default=True)

    # Fixed-time tasks
    is_fixed = Column(Boolean, nullable=False, default=False)
    fixed_start_time = Column(Time, nullable=True)
    fixed_end_time = Column(Time, nullable=True)

    recurrence_id = Column(String, ForeignKey("recurrences.id", ondelete="SET NULL"), nullable=True, index=True)
    target_time_consumption = Column(Float, nullable=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from flexcalendar.models.task import Task
        return Task(
            id=self.id,
            user_id=self.user_id,
            name=self.name,
            description=self.description,
            importance=self.importance,
            is_active=self.is_active,
            is_fixed=self.is_fixed,
            fixed_start_time=self.fixed_start_time,
            fixed_end_time=self.fixed_end_time,
            recurrence_id=self.recurrence_id,
            target_time_consumption=self.target_time_consumption,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, task):
        """Create database model from Pydantic model."""
        return cls(
            id=task.id,
            user_id=task.user_id,
            name=task.name,
            description=task.description,
            importance=task.importance,
            is_active=task.is_active,
            is_fixed=task.is_fixed,
            fixed_start_time=task.fixed_start_time,
            fixed_end_time=task.fixed_end_time,
            recurrence_id=task.recurrence_id,
            target_time_consumption=task.target_time_consumption,
            created_at=task.created_at,
            updated_at=task.updated_at,
        )


class TaskOccurrenceDB(Base):
    """Database model for TaskOccurrence."""

    __tablename__ = "task_occurrences"
    __table_args__ = (
        # At most one occurrence per task and start day; concurrent generators
        # racing on the same task collide here instead of duplicating.
        UniqueConstraint("task_id", "start_date", name="uq_occurrence_task_start"),
    )

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    task_id = Column(String, ForeignKey("tasks.id", ondelete="CASCADE"), nullable=False, index=True)

    start_date = Column(Date, nullable=False, index=True)
    target_date = Column(Date, nullable=True)
    limit_date = Column(Date, nullable=True)

    target_time_consumption = Column(Float, nullable=True)
    time_consumed = Column(Float, nullable=False, default=0.0)
    status = Column(String, nullable=False, default=OccurrenceStatus.PENDING.value, index=True)
    completed_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from flexcalendar.models.occurrence import TaskOccurrence
        return TaskOccurrence(
            id=self.id,
            task_id=self.task_id,
            start_date=self.start_date,
            target_date=self.target_date,
            limit_date=self.limit_date,
            target_time_consumption=self.target_time_consumption,
            time_consumed=self.time_consumed or 0.0,
            status=OccurrenceStatus(self.status),
            completed_at=self.completed_at,
            created_at=self.created_at,
            updated_at=self.updated_at,
        )

    @classmethod
    def from_pydantic(cls, occurrence):
        """Create database model from Pydantic model."""
        return cls(
            id=occurrence.id,
            task_id=occurrence.task_id,
            start_date=occurrence.start_date,
            target_date=occurrence.target_date,
            limit_date=occurrence.limit_date,
            target_time_consumption=occurrence.target_time_consumption,
            time_consumed=occurrence.time_consumed,
            status=enum_to_value(occurrence.status),
            completed_at=to_naive_utc(occurrence.completed_at),
            created_at=occurrence.created_at,
            updated_at=occurrence.updated_at,
        )


class CalendarEventDB(Base):
    """Database model for CalendarEvent."""

    __tablename__ = "calendar_events"

    id = Column(String, primary_key=True, default=lambda: str(uuid.uuid4()))
    user_id = Column(String, ForeignKey("users.id", ondelete="CASCADE"), nullable=False, index=True)
    occurrence_id = Column(
        String, ForeignKey("task_occurrences.id", ondelete="SET NULL"), nullable=True, index=True
    )

    # Naive UTC
    start = Column(DateTime, nullable=False)
    finish = Column(DateTime, nullable=False)

    is_fixed = Column(Boolean, nullable=False, default=False)
    is_completed = Column(Boolean, nullable=False, default=False)
    dedicated_time = Column(Float, nullable=False, default=0.0)

    created_at = Column(DateTime, nullable=False, default=datetime.utcnow)

    def to_pydantic(self):
        """Convert database model to Pydantic model."""
        from flexcalendar.models.calendar_event import CalendarEvent
        return CalendarEvent(
            id=self.id,
            user_id=self.user_id,
            occurrence_id=self.occurrence_id,
            start=as_utc(self.start),
            finish=as_utc(self.finish),
            is_fixed=self.is_fixed,
            is_completed=self.is_completed,
            dedicated_time=self.dedicated_time or 0.0,
            created_at=self.created_at,
        )

    @classmethod
    def from_pydantic(cls, calendar_event):
        """Create database model from Pydantic model."""
        return cls(
            id=calendar_event.id,
            user_id=calendar_event.user_id,
            occurrence_id=calendar_event.occurrence_id,
            start=to_naive_utc(calendar_event.start),
            finish=to_naive_utc(calendar_event.finish),
            is_fixed=calendar_event.is_fixed,
            is_completed=calendar_event.is_completed,
            dedicated_time=calendar_event.dedicated_time,
            created_at=calendar_event.created_at or datetime.utcnow(),
        )
