"""Tests for UserRepository."""

from datetime import datetime

from flexcalendar.database.user_repository import UserRepository
from flexcalendar.models.user import User


class TestUserRepository:
    def test_get_existing_user(self, db_session, test_user_id):
        user = UserRepository(db_session).get(test_user_id)
        assert user is not None
        assert user.email == "test@example.com"

    def test_get_unknown_user(self, db_session):
        assert UserRepository(db_session).get("nobody") is None

    def test_create_or_update(self, db_session):
        repo = UserRepository(db_session)
        now = datetime.utcnow()
        created = repo.create_or_update(User(id="u-2", email="a@example.com", created_at=now, updated_at=now))
        assert created.name is None

        updated = repo.create_or_update(
            User(id="u-2", email="b@example.com", name="Bee", created_at=now, updated_at=now)
        )
        assert updated.email == "b@example.com"
        assert repo.get("u-2").name == "Bee"
