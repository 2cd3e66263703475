import pytest
from sqlalchemy.exc import OperationalError

from notes_database import user_directory
from notes_database.errors import InfrastructureError, ValidationError
from notes_database.models import User


def test_register_twice_returns_same_user(db_session):
    user, created = user_directory.register_or_fetch(db_session, "alice")
    assert created is True
    assert user.username == "alice"

    again, created_again = user_directory.register_or_fetch(db_session, "alice")
    assert created_again is False
    assert again.id == user.id
    assert db_session.query(User).count() == 1


def test_register_requires_username(db_session):
    with pytest.raises(ValidationError):
        user_directory.register_or_fetch(db_session, "")
    with pytest.raises(ValidationError):
        user_directory.register_or_fetch(db_session, None)
    assert db_session.query(User).count() == 0


def test_fetch_by_id(db_session):
    user, _ = user_directory.register_or_fetch(db_session, "bob")
    assert user_directory.fetch_by_id(db_session, user.id).username == "bob"
    assert user_directory.fetch_by_id(db_session, str(user.id)).username == "bob"
    assert user_directory.fetch_by_id(db_session, user.id + 100) is None
    assert user_directory.fetch_by_id(db_session, "bob") is None


def test_register_reload_failure_is_infrastructure_error(db_session, monkeypatch):
    def failing_refresh(instance):
        raise OperationalError("SELECT", {}, Exception("disk I/O error"))

    monkeypatch.setattr(db_session, "refresh", failing_refresh)
    with pytest.raises(InfrastructureError, match="disk I/O error"):
        user_directory.register_or_fetch(db_session, "dave")
