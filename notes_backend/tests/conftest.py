import os
import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

# Keep the application's own engine off the filesystem.
os.environ.setdefault("DATABASE_URL", "sqlite://")

from notes_backend.src.api.main import app, get_db
from notes_database.models import Base

@pytest.fixture(scope="session")
def sqlite_url():
    """Fixture to provide a SQLite in-memory database URL for testing."""
    return "sqlite://"

@pytest.fixture(scope="session")
def engine(sqlite_url):
    """Fixture for a persistent in-memory SQLite engine for the test session."""
    return create_engine(
        sqlite_url, connect_args={"check_same_thread": False}, poolclass=StaticPool
    )

@pytest.fixture
def tables(engine):
    """Create tables for one test and drop them afterwards."""
    Base.metadata.create_all(bind=engine)
    yield
    Base.metadata.drop_all(bind=engine)

@pytest.fixture
def db_session(engine, tables):
    """Provide a SQLAlchemy session for isolated test usage."""
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = TestingSessionLocal()
    try:
        yield session
    finally:
        session.rollback()
        session.close()

@pytest.fixture
def client(db_session):
    """Fixture for FastAPI TestClient with test DB dependency override."""
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    with TestClient(app) as c:
        yield c

    app.dependency_overrides.clear()

def register(client, username):
    """Helper for registering a username and returning its id."""
    r = client.post("/users", json={"username": username})
    assert r.status_code in (200, 201)
    return r.json()["id"]

@pytest.fixture
def alice_header(client):
    """Returns {'X-User-Id': <id>} for user alice."""
    return {"X-User-Id": str(register(client, "alice"))}

@pytest.fixture
def bob_header(client):
    """Returns the identity header for user bob."""
    return {"X-User-Id": str(register(client, "bob"))}
