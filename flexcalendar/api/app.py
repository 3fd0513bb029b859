"""FastAPI web application for Flex Calendar."""

import logging
import os
from contextlib import asynccontextmanager
from datetime import datetime, time, timezone
from typing import Any, Dict, List, Optional

from fastapi import Depends, FastAPI, HTTPException, Request, status
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field, ValidationError
from sqlalchemy.orm import Session

from flexcalendar import __version__
from flexcalendar.auth.dependencies import get_current_user
from flexcalendar.database.calendar_event_repository import (
    CalendarEventRepository,
    FixedEventDeletionError,
)
from flexcalendar.database.database import get_db, init_db
from flexcalendar.database.occurrence_repository import OccurrenceRepository
from flexcalendar.database.recurrence_repository import RecurrenceRepository
from flexcalendar.database.repository import TaskRepository
from flexcalendar.dates import DateParseError, DateWindow, Deadline, Timestamp
from flexcalendar.engine.backlog import BacklogReport, backlog_to_skip, detect_backlog
from flexcalendar.engine.eisenhower import Quadrant, calculate_quadrant
from flexcalendar.engine.lifecycle import (
    OccurrenceTransitionError,
    complete_occurrence,
    correct_occurrence,
    skip_occurrence,
    start_occurrence,
)
from flexcalendar.engine.ranking import important_occurrences, rank_occurrences, urgent_occurrences
from flexcalendar.engine.task_type import calculate_task_type
from flexcalendar.models.calendar_event import CalendarEvent
from flexcalendar.models.constants import DEFAULT_HORIZON_DAYS, MAX_IMPORTANCE, MIN_IMPORTANCE
from flexcalendar.models.occurrence import TaskOccurrence
from flexcalendar.models.recurrence import RecurrenceInvariantError, RecurrencePattern
from flexcalendar.models.task import Task, TaskType
from flexcalendar.models.task_factory import create_calendar_event, create_task_base
from flexcalendar.models.user import User
from flexcalendar.recurrence.materialize import materialize_task_occurrences, record_finished
from flexcalendar.recurrence.validation import RecurrenceValidationError, validate_recurrence

logger = logging.getLogger(__name__)

# Forward horizon for occurrence generation after writes
GENERATION_HORIZON_DAYS = int(os.getenv("GENERATION_HORIZON_DAYS", str(DEFAULT_HORIZON_DAYS)))
# Zone in which fixed start/end times and "today" are read
CALENDAR_TIME_ZONE = os.getenv("CALENDAR_TIME_ZONE", "UTC")


@asynccontextmanager
async def lifespan(app: FastAPI):
    init_db()
    yield


# Initialize FastAPI app
app = FastAPI(
    title="Flex Calendar API",
    description="Recurring tasks, dated occurrences and what to work on next",
    version=__version__,
    lifespan=lifespan,
)


# Request models
class TaskCreateRequest(BaseModel):
    """Request model for creating a task."""
    name: str = Field(..., min_length=1)
    description: Optional[str] = None
    importance: Optional[int] = Field(None, ge=MIN_IMPORTANCE, le=MAX_IMPORTANCE)
    is_active: Optional[bool] = None
    is_fixed: Optional[bool] = None
    fixed_start_time: Optional[time] = None
    fixed_end_time: Optional[time] = None
    target_time_consumption: Optional[float] = Field(None, ge=0)
    # Raw recurrence payload; validated by validate_recurrence for readable errors
    recurrence: Optional[Dict[str, Any]] = None


class TaskUpdateRequest(BaseModel):
    """Request model for updating a task (all fields optional)."""
    name: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = None
    importance: Optional[int] = Field(None, ge=MIN_IMPORTANCE, le=MAX_IMPORTANCE)
    is_active: Optional[bool] = None
    is_fixed: Optional[bool] = None
    fixed_start_time: Optional[time] = None
    fixed_end_time: Optional[time] = None
    target_time_consumption: Optional[float] = Field(None, ge=0)
    recurrence: Optional[Dict[str, Any]] = None


class CompleteOccurrenceRequest(BaseModel):
    completed_at: Optional[datetime] = None
    time_consumed: Optional[float] = Field(None, ge=0)


class CorrectOccurrenceRequest(BaseModel):
    """Corrective edit of a completed or skipped occurrence."""
    time_consumed: Optional[float] = Field(None, ge=0)
    completed_at: Optional[datetime] = None


class EventCreateRequest(BaseModel):
    occurrence_id: Optional[str] = None
    start: datetime
    finish: datetime
    dedicated_time: float = Field(0.0, ge=0)


# Response models
class RecurrenceValidationResponse(BaseModel):
    recurrence: RecurrencePattern
    task_type: TaskType


class TaskResponse(BaseModel):
    """Response for a single task."""
    task: Task
    recurrence: Optional[RecurrencePattern] = None
    task_type: TaskType
    occurrences_created: int = 0


class TaskListResponse(BaseModel):
    tasks: List[Task]
    count: int


class OccurrenceResponse(BaseModel):
    occurrence: TaskOccurrence
    occurrences_created: int = 0


class OccurrenceListResponse(BaseModel):
    occurrences: List[TaskOccurrence]
    count: int


class EisenhowerEntry(BaseModel):
    occurrence: TaskOccurrence
    task_name: str
    quadrant: Quadrant
    label: str


class EisenhowerResponse(BaseModel):
    """Open occurrences grouped by quadrant, each group ranked."""
    quadrants: Dict[str, List[EisenhowerEntry]]


class BacklogSkipResponse(BaseModel):
    skipped_count: int
    skipped_ids: List[str]


class EventResponse(BaseModel):
    event: CalendarEvent


# Domain errors
@app.exception_handler(RecurrenceValidationError)
async def recurrence_validation_error_handler(request: Request, exc: RecurrenceValidationError):
    return JSONResponse(status_code=422, content={"detail": str(exc), "field": exc.field})


@app.exception_handler(DateParseError)
async def date_parse_error_handler(request: Request, exc: DateParseError):
    return JSONResponse(status_code=422, content={"detail": str(exc)})


@app.exception_handler(ValidationError)
async def model_validation_error_handler(request: Request, exc: ValidationError):
    err = exc.errors()[0]
    return JSONResponse(status_code=422, content={"detail": err["msg"]})


@app.exception_handler(OccurrenceTransitionError)
async def occurrence_transition_error_handler(request: Request, exc: OccurrenceTransitionError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(FixedEventDeletionError)
async def fixed_event_deletion_error_handler(request: Request, exc: FixedEventDeletionError):
    return JSONResponse(status_code=409, content={"detail": str(exc)})


@app.exception_handler(RecurrenceInvariantError)
async def recurrence_invariant_error_handler(request: Request, exc: RecurrenceInvariantError):
    logger.error(f"Recurrence invariant violated: {str(exc)}")
    return JSONResponse(status_code=500, content={"detail": "Stored recurrence is invalid"})


# Helpers
def _now() -> datetime:
    return datetime.now(timezone.utc)


def _generation_window(now: datetime) -> DateWindow:
    return DateWindow.from_horizon(Deadline.today(now, CALENDAR_TIME_ZONE), GENERATION_HORIZON_DAYS)


def _get_task_or_404(db: Session, user_id: str, task_id: str) -> Task:
    task = TaskRepository(db).get(user_id, task_id)
    if task is None:
        raise HTTPException(status_code=404, detail=f"Task {task_id} not found")
    return task


def _get_occurrence_or_404(db: Session, user_id: str, occurrence_id: str) -> TaskOccurrence:
    occurrence = OccurrenceRepository(db).get(user_id, occurrence_id)
    if occurrence is None:
        raise HTTPException(status_code=404, detail=f"Occurrence {occurrence_id} not found")
    return occurrence


def _get_pattern(db: Session, task: Task) -> Optional[RecurrencePattern]:
    if not task.recurrence_id:
        return None
    return RecurrenceRepository(db).get(task.user_id, task.recurrence_id)


def _task_map(db: Session, user_id: str) -> Dict[str, Task]:
    return {task.id: task for task in TaskRepository(db).get_all(user_id)}


def _rounded(occurrences: List[TaskOccurrence]) -> List[TaskOccurrence]:
    return [occ.model_copy(update={"urgency": round(occ.urgency, 2)}) for occ in occurrences]


def _materialize(db: Session, task: Task, now: datetime) -> int:
    created = materialize_task_occurrences(
        db,
        user_id=task.user_id,
        task_id=task.id,
        window=_generation_window(now),
        time_zone=CALENDAR_TIME_ZONE,
    )
    return len(created)


# Endpoints
@app.get("/health")
async def health():
    """Health check endpoint."""
    return {"status": "healthy", "version": __version__}


@app.post("/recurrences/validate", response_model=RecurrenceValidationResponse)
async def validate_recurrence_endpoint(payload: Dict[str, Any]):
    """Validate a recurrence definition without storing it."""
    pattern = validate_recurrence(payload, today=Deadline.today(_now(), CALENDAR_TIME_ZONE).to_date())
    return RecurrenceValidationResponse(recurrence=pattern, task_type=calculate_task_type(pattern))


@app.post("/tasks", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
async def create_task(
    request: TaskCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a task (with optional recurrence) and materialize its occurrences."""
    now = _now()
    pattern = None
    if request.recurrence is not None:
        pattern = validate_recurrence(
            request.recurrence, today=Deadline.today(now, CALENDAR_TIME_ZONE).to_date()
        )

    task = create_task_base(
        user_id=current_user.id,
        name=request.name,
        description=request.description,
        importance=request.importance,
        is_active=request.is_active,
        is_fixed=request.is_fixed,
        fixed_start_time=request.fixed_start_time,
        fixed_end_time=request.fixed_end_time,
        target_time_consumption=request.target_time_consumption,
    )
    if pattern is not None:
        pattern = RecurrenceRepository(db).create(current_user.id, pattern)
        task = task.model_copy(update={"recurrence_id": pattern.id})

    task = TaskRepository(db).create(task)
    created = _materialize(db, task, now)
    logger.info(f"Created task {task.id} with {created} occurrences")
    return TaskResponse(
        task=task,
        recurrence=pattern,
        task_type=calculate_task_type(pattern, task),
        occurrences_created=created,
    )


@app.get("/tasks", response_model=TaskListResponse)
async def list_tasks(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """List all tasks of the current user (newest first)."""
    tasks = TaskRepository(db).get_all(current_user.id)
    return TaskListResponse(tasks=tasks, count=len(tasks))


@app.get("/tasks/{task_id}", response_model=TaskResponse)
async def get_task(
    task_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Get a task with its recurrence pattern."""
    task = _get_task_or_404(db, current_user.id, task_id)
    pattern = _get_pattern(db, task)
    return TaskResponse(task=task, recurrence=pattern, task_type=calculate_task_type(pattern, task))


@app.put("/tasks/{task_id}", response_model=TaskResponse)
async def update_task(
    task_id: str,
    request: TaskUpdateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Update a task (and its recurrence), then top up its occurrences.

    Occurrences already materialized are kept; generation only adds missing days.
    """
    now = _now()
    task = _get_task_or_404(db, current_user.id, task_id)
    pattern = _get_pattern(db, task)
    recurrence_repo = RecurrenceRepository(db)

    if request.recurrence is not None:
        raw = dict(request.recurrence)
        if pattern is not None:
            # Keep the series anchor and counters unless the payload overrides them.
            for key in ("creation_date", "completed_occurrences", "last_period_start"):
                raw.setdefault(key, getattr(pattern, key))
        updated = validate_recurrence(raw, today=Deadline.today(now, CALENDAR_TIME_ZONE).to_date())
        if pattern is not None:
            pattern = recurrence_repo.update(current_user.id, updated.model_copy(update={"id": pattern.id}))
        else:
            pattern = recurrence_repo.create(current_user.id, updated)

    changes = request.model_dump(exclude_unset=True, exclude={"recurrence"})
    changes["updated_at"] = datetime.utcnow()
    if pattern is not None:
        changes["recurrence_id"] = pattern.id
    task = Task.model_validate({**task.model_dump(), **changes})
    task = TaskRepository(db).update(task)

    created = _materialize(db, task, now)
    return TaskResponse(
        task=task,
        recurrence=pattern,
        task_type=calculate_task_type(pattern, task),
        occurrences_created=created,
    )


@app.get("/tasks/{task_id}/occurrences", response_model=OccurrenceListResponse)
async def list_task_occurrences(
    task_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """All occurrences of a task ordered by start date."""
    task = _get_task_or_404(db, current_user.id, task_id)
    occurrences = OccurrenceRepository(db).list_for_task(task.id)
    return OccurrenceListResponse(occurrences=occurrences, count=len(occurrences))


@app.post("/occurrences/{occurrence_id}/start", response_model=OccurrenceResponse)
async def start_occurrence_endpoint(
    occurrence_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    occurrence = _get_occurrence_or_404(db, current_user.id, occurrence_id)
    occurrence = OccurrenceRepository(db).save(start_occurrence(occurrence))
    return OccurrenceResponse(occurrence=occurrence)


@app.post("/occurrences/{occurrence_id}/complete", response_model=OccurrenceResponse)
async def complete_occurrence_endpoint(
    occurrence_id: str,
    request: Optional[CompleteOccurrenceRequest] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Complete an occurrence, count it on the pattern and top up the series."""
    now = _now()
    request = request or CompleteOccurrenceRequest()
    occurrence = _get_occurrence_or_404(db, current_user.id, occurrence_id)
    task = _get_task_or_404(db, current_user.id, occurrence.task_id)

    completed = complete_occurrence(
        occurrence,
        completed_at=request.completed_at,
        time_consumed=request.time_consumed,
    )
    OccurrenceRepository(db).save(completed, commit=False)
    logger.info(
        f"Completed occurrence {completed.id} of task {task.id} "
        f"at {Timestamp.parse(completed.completed_at).format()}"
    )
    created = record_finished(
        db,
        task=task,
        occurrence_starts=[completed.start_date],
        window=_generation_window(now),
        time_zone=CALENDAR_TIME_ZONE,
    )
    occurrence = _get_occurrence_or_404(db, current_user.id, occurrence_id)
    return OccurrenceResponse(occurrence=occurrence, occurrences_created=len(created))


@app.post("/occurrences/{occurrence_id}/skip", response_model=OccurrenceResponse)
async def skip_occurrence_endpoint(
    occurrence_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Skip an occurrence; it counts on the pattern like a completion."""
    now = _now()
    occurrence = _get_occurrence_or_404(db, current_user.id, occurrence_id)
    task = _get_task_or_404(db, current_user.id, occurrence.task_id)

    skipped = OccurrenceRepository(db).save(skip_occurrence(occurrence), commit=False)
    created = record_finished(
        db,
        task=task,
        occurrence_starts=[skipped.start_date],
        window=_generation_window(now),
        time_zone=CALENDAR_TIME_ZONE,
    )
    occurrence = _get_occurrence_or_404(db, current_user.id, occurrence_id)
    return OccurrenceResponse(occurrence=occurrence, occurrences_created=len(created))


@app.patch("/occurrences/{occurrence_id}", response_model=OccurrenceResponse)
async def correct_occurrence_endpoint(
    occurrence_id: str,
    request: CorrectOccurrenceRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Correct time consumed / completion time of a finished occurrence."""
    occurrence = _get_occurrence_or_404(db, current_user.id, occurrence_id)
    corrected = correct_occurrence(
        occurrence,
        time_consumed=request.time_consumed,
        completed_at=request.completed_at,
    )
    return OccurrenceResponse(occurrence=OccurrenceRepository(db).save(corrected))


@app.get("/dashboard/urgent", response_model=OccurrenceListResponse)
async def urgent_dashboard(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Open occurrences at or above the urgency threshold, most urgent first."""
    occurrences = urgent_occurrences(
        OccurrenceRepository(db).list_open_for_user(current_user.id),
        _task_map(db, current_user.id),
        _now(),
        time_zone=CALENDAR_TIME_ZONE,
    )
    return OccurrenceListResponse(occurrences=_rounded(occurrences), count=len(occurrences))


@app.get("/dashboard/important", response_model=OccurrenceListResponse)
async def important_dashboard(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Open occurrences of important tasks, most urgent first."""
    occurrences = important_occurrences(
        OccurrenceRepository(db).list_open_for_user(current_user.id),
        _task_map(db, current_user.id),
        _now(),
        time_zone=CALENDAR_TIME_ZONE,
    )
    return OccurrenceListResponse(occurrences=_rounded(occurrences), count=len(occurrences))


@app.get("/eisenhower", response_model=EisenhowerResponse)
async def eisenhower_matrix(
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Open occurrences placed in the Eisenhower matrix."""
    tasks = _task_map(db, current_user.id)
    ranked = rank_occurrences(
        OccurrenceRepository(db).list_open_for_user(current_user.id),
        tasks,
        _now(),
        time_zone=CALENDAR_TIME_ZONE,
    )

    quadrants: Dict[str, List[EisenhowerEntry]] = {q.value: [] for q in Quadrant}
    for occurrence in _rounded(ranked):
        task = tasks[occurrence.task_id]
        position = calculate_quadrant(task.importance, occurrence.urgency)
        quadrants[position.quadrant.value].append(
            EisenhowerEntry(
                occurrence=occurrence,
                task_name=task.name,
                quadrant=position.quadrant,
                label=position.label,
            )
        )
    return EisenhowerResponse(quadrants=quadrants)


@app.get("/tasks/{task_id}/backlog", response_model=BacklogReport)
async def get_backlog(
    task_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Open occurrences of a task and whether the backlog is severe."""
    task = _get_task_or_404(db, current_user.id, task_id)
    return detect_backlog(
        task.id,
        _get_pattern(db, task),
        OccurrenceRepository(db).list_for_task(task.id),
        _now(),
        time_zone=CALENDAR_TIME_ZONE,
    )


@app.post("/tasks/{task_id}/backlog/skip", response_model=BacklogSkipResponse)
async def skip_backlog(
    task_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Skip all but the most recent open occurrence of a severe backlog."""
    now = _now()
    task = _get_task_or_404(db, current_user.id, task_id)
    occurrence_repo = OccurrenceRepository(db)
    report = detect_backlog(
        task.id,
        _get_pattern(db, task),
        occurrence_repo.list_for_task(task.id),
        now,
        time_zone=CALENDAR_TIME_ZONE,
    )
    skipped = [occurrence_repo.save(skip_occurrence(occ), commit=False) for occ in backlog_to_skip(report)]
    if skipped:
        record_finished(
            db,
            task=task,
            occurrence_starts=[occ.start_date for occ in skipped],
            window=_generation_window(now),
            time_zone=CALENDAR_TIME_ZONE,
        )
    logger.info(f"Skipped {len(skipped)} backlog occurrences for task {task.id}")
    return BacklogSkipResponse(skipped_count=len(skipped), skipped_ids=[occ.id for occ in skipped])


@app.post("/events", response_model=EventResponse, status_code=status.HTTP_201_CREATED)
async def create_event(
    request: EventCreateRequest,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Create a calendar event, optionally bound to an occurrence."""
    if request.occurrence_id is not None:
        _get_occurrence_or_404(db, current_user.id, request.occurrence_id)
    calendar_event = create_calendar_event(
        current_user.id,
        request.start,
        request.finish,
        occurrence_id=request.occurrence_id,
        dedicated_time=request.dedicated_time,
    )
    return EventResponse(event=CalendarEventRepository(db).create(calendar_event))


@app.delete("/events/{event_id}")
async def delete_event(
    event_id: str,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db),
):
    """Delete a non-fixed calendar event."""
    if not CalendarEventRepository(db).delete(current_user.id, event_id):
        raise HTTPException(status_code=404, detail=f"Event {event_id} not found")
    return {"deleted": True, "event_id": event_id}
