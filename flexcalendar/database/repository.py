"""Repository layer for task database operations."""

import logging
from typing import List, Optional
from sqlalchemy.orm import Session
from sqlalchemy import desc

from flexcalendar.models.task import Task
from flexcalendar.database.models import TaskDB

logger = logging.getLogger(__name__)


class TaskRepository:
    """Repository for Task database operations."""

    def __init__(self, db: Session):
        self.db = db

    def create(self, task: Task) -> Task:
        """Create a new task."""
        try:
            task_db = TaskDB.from_pydantic(task)
            self.db.add(task_db)
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Created task {task.id}: {task.name[:50]}")
            return task_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to create task {task.id}: {type(e).__name__}: {str(e)}")
            raise

    def get(self, user_id: str, task_id: str) -> Optional[Task]:
        """Get task by ID for a specific user."""
        task_db = self.db.query(TaskDB).filter(
            TaskDB.id == task_id,
            TaskDB.user_id == user_id,
        ).first()
        return task_db.to_pydantic() if task_db else None

    def lock(self, user_id: str, task_id: str) -> Optional[Task]:
        """Get a task and hold its row lock until the transaction ends.

        Serializes occurrence generation per task. SQLite ignores FOR UPDATE;
        there the unique (task_id, start_date) constraint is the only guard.
        """
        task_db = (
            self.db.query(TaskDB)
            .filter(TaskDB.id == task_id, TaskDB.user_id == user_id)
            .with_for_update()
            .first()
        )
        return task_db.to_pydantic() if task_db else None

    def get_all(self, user_id: str) -> List[Task]:
        """Get all tasks for a user sorted by creation date (newest first)."""
        tasks_db = self.db.query(TaskDB).filter(
            TaskDB.user_id == user_id,
        ).order_by(desc(TaskDB.created_at)).all()
        return [task_db.to_pydantic() for task_db in tasks_db]

    def update(self, task: Task) -> Task:
        """Update an existing task (user_id must match task.user_id)."""
        task_db = self.db.query(TaskDB).filter(
            TaskDB.id == task.id,
            TaskDB.user_id == task.user_id,
        ).first()
        if not task_db:
            raise ValueError(f"Task {task.id} not found")

        task_db.name = task.name
        task_db.description = task.description
        task_db.importance = task.importance
        task_db.is_active = task.is_active
        task_db.is_fixed = task.is_fixed
        task_db.fixed_start_time = task.fixed_start_time
        task_db.fixed_end_time = task.fixed_end_time
        task_db.recurrence_id = task.recurrence_id
        task_db.target_time_consumption = task.target_time_consumption
        task_db.updated_at = task.updated_at

        try:
            self.db.commit()
            self.db.refresh(task_db)
            logger.debug(f"Updated task {task.id}: {task.name[:50]}")
            return task_db.to_pydantic()
        except Exception as e:
            self.db.rollback()
            logger.error(f"Failed to update task {task.id}: {type(e).__name__}: {str(e)}")
            raise

