"""Pytest fixtures and configuration for Flex Calendar tests."""

import pytest
from datetime import date, datetime
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from fastapi.testclient import TestClient
import uuid

from flexcalendar.database.database import Base, get_db
from flexcalendar.database import models  # noqa: F401  (registers tables on Base)
from flexcalendar.database.repository import TaskRepository
from flexcalendar.models.task import Task


# Test database URL (in-memory SQLite)
TEST_DATABASE_URL = "sqlite:///:memory:"


@pytest.fixture(scope="function")
def db_session(test_user_id):
    """Create a database session for testing.

    Uses an in-memory SQLite database that is created fresh for each test.
    Also creates a test user in the database.
    """
    from flexcalendar.database.models import UserDB

    # Create engine with StaticPool for in-memory database
    engine = create_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        echo=False
    )

    @event.listens_for(engine, "connect")
    def set_sqlite_pragmas(dbapi_conn, connection_record):
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    # Create all tables
    Base.metadata.create_all(bind=engine)

    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()

    # Create test user (required for foreign key constraints)
    now = datetime.utcnow()
    session.add(UserDB(
        id=test_user_id,
        email="test@example.com",
        name="Test User",
        created_at=now,
        updated_at=now,
    ))
    session.commit()

    try:
        yield session
    finally:
        session.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def task_repository(db_session: Session):
    """Create a TaskRepository instance for testing."""
    return TaskRepository(db_session)


@pytest.fixture
def test_user_id():
    """Test user ID for multi-user testing."""
    return "test-user-123"


@pytest.fixture
def sample_task_base(test_user_id):
    """Base task data for creating test tasks.

    Returns a dict with default task attributes that can be overridden.
    """
    now = datetime.utcnow()
    return {
        "id": str(uuid.uuid4()),
        "user_id": test_user_id,
        "name": "Test Task",
        "description": "Test description",
        "importance": 5,
        "is_active": True,
        "is_fixed": False,
        "fixed_start_time": None,
        "fixed_end_time": None,
        "recurrence_id": None,
        "target_time_consumption": 1.0,
        "created_at": now,
        "updated_at": now,
    }


@pytest.fixture
def sample_task(sample_task_base):
    """Create a sample Task object for testing."""
    return Task(**sample_task_base)


@pytest.fixture
def make_occurrence(sample_task):
    """Factory for TaskOccurrence objects belonging to `sample_task` by default."""
    from flexcalendar.models.occurrence import TaskOccurrence

    def _make(**overrides):
        now = datetime.utcnow()
        data = {
            "id": str(uuid.uuid4()),
            "task_id": sample_task.id,
            "start_date": date(2024, 1, 1),
            "target_date": None,
            "limit_date": None,
            "target_time_consumption": 1.0,
            "time_consumed": 0.0,
            "status": "Pending",
            "completed_at": None,
            "created_at": now,
            "updated_at": now,
        }
        data.update(overrides)
        return TaskOccurrence(**data)

    return _make


@pytest.fixture
def test_user(test_user_id):
    """Create a test user object."""
    from flexcalendar.models.user import User
    now = datetime.utcnow()
    return User(
        id=test_user_id,
        email="test@example.com",
        name="Test User",
        created_at=now,
        updated_at=now,
    )


@pytest.fixture
def test_client(db_session: Session, test_user, monkeypatch):
    """Create a FastAPI test client with overridden database dependency and authentication."""
    from flexcalendar.api import app as app_module
    from flexcalendar.auth.dependencies import get_current_user

    app = app_module.app
    # Schema already exists on the test engine.
    monkeypatch.setattr(app_module, "init_db", lambda: None)

    # Override the get_db dependency to use our test database session
    def override_get_db():
        try:
            yield db_session
        finally:
            pass  # Don't close the session here, let the fixture handle it

    # Override authentication to return test user
    def override_get_current_user():
        return test_user

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_current_user] = override_get_current_user

    with TestClient(app) as client:
        yield client

    # Clean up dependency overrides
    app.dependency_overrides.clear()
