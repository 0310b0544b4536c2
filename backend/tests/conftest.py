import os
import tempfile

# Point the engine at a throwaway SQLite file before db.py is imported
os.environ["DATABASE_PATH"] = os.path.join(tempfile.mkdtemp(prefix="labdaily-test-"), "test.db")
os.environ.pop("DATABASE_URL", None)
os.environ.pop("RENDER", None)
os.environ["ENV"] = "test"

import pytest  # noqa: E402
from fastapi.testclient import TestClient  # noqa: E402
from sqlmodel import Session, delete  # noqa: E402

from app import app  # noqa: E402
from db import create_db_and_tables, engine, get_session  # noqa: E402
from local_store import ClientState, MemoryStore  # noqa: E402
from models import DailyReport, InterestLead  # noqa: E402


@pytest.fixture(scope="function")
def test_session():
    """Create a test database session."""
    create_db_and_tables()
    with Session(engine) as session:
        yield session
        # Clean up all test data after test
        session.exec(delete(DailyReport))
        session.exec(delete(InterestLead))
        session.commit()


@pytest.fixture(scope="function")
def client(test_session):
    """Create a test client with dependency override."""

    def get_test_session():
        yield test_session

    app.dependency_overrides[get_session] = get_test_session
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def state():
    return ClientState(MemoryStore())
