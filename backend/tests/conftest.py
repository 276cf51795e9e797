"""Shared test fixtures for the BRMS backend test suite.

Tests run against a throwaway SQLite database (override with
TEST_DATABASE_URL). Every table is emptied before each test and the default
organisation, project, user and environments are seeded again, so each test
starts from the same state as a fresh install.

The decision engine is replaced by FakeEngine through dependency overrides;
no test needs the zen-engine binding.
"""

import os
import tempfile

_TEST_DB_DIR = tempfile.mkdtemp(prefix="brms-tests-")

# Force auth off and use the test database before any app imports.
os.environ["DATABASE_URL"] = os.environ.get(
    "TEST_DATABASE_URL",
    f"sqlite:///{os.path.join(_TEST_DB_DIR, 'brms_test.db')}",
)
os.environ["AUTH_ENABLED"] = "false"
os.environ["LOG_FORMAT"] = "text"
os.environ["AUDIT_RETENTION_DAYS"] = "0"

import pytest
from fastapi.testclient import TestClient

from brms.database import Base, get_db, SessionLocal
from brms.main import app
from brms.core.auth import default_actor
from brms.core.seeder import seed_defaults
from brms.exceptions import EvaluationError
from brms.middleware.request_context import reset_rate_limits
from brms.services.evaluation_engine import get_decision_engine


class FakeEngine:
    """Stands in for the Zen engine: records calls and echoes the payload."""

    def __init__(self):
        self.calls = []
        self.error = None

    def evaluate(self, graph, payload):
        self.calls.append((graph, payload))
        if self.error is not None:
            raise EvaluationError(self.error)
        return {"performance": "1µs", "result": {"echo": payload, "nodes": len(graph["nodes"])}}


@pytest.fixture(autouse=True)
def _clean_tables():
    """Empty every table (children first), then re-seed the defaults.

    Runs before the test (not after) so test failures leave data
    available for debugging.
    """
    db = SessionLocal()
    try:
        for table in reversed(Base.metadata.sorted_tables):
            db.execute(table.delete())
        db.commit()
        seed_defaults(db)
    finally:
        db.close()
    yield


@pytest.fixture()
def db():
    """Per-test database session."""
    session = SessionLocal()
    yield session
    session.close()


@pytest.fixture()
def actor():
    """The default identity used when authentication is disabled."""
    return default_actor("127.0.0.1")


@pytest.fixture()
def fake_engine():
    return FakeEngine()


@pytest.fixture()
def client(db, fake_engine):
    """FastAPI TestClient using the test session and the fake engine."""

    def _override_get_db():
        yield db

    app.dependency_overrides[get_db] = _override_get_db
    app.dependency_overrides[get_decision_engine] = lambda: fake_engine
    reset_rate_limits()  # so tests don't hit 429
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


@pytest.fixture()
def graph():
    """Factory for minimal decision graphs: ``graph("a", "b")``."""

    def _make(*node_ids: str) -> dict:
        return {"nodes": [{"id": n, "type": "inputNode"} for n in node_ids], "edges": []}

    return _make


@pytest.fixture()
def create_version(client):
    """POST a version through the API and return the response body."""

    def _create(key: str, content, comment: str = None) -> dict:
        resp = client.post(f"/api/documents/{key}/versions", json={"content": content, "comment": comment})
        assert resp.status_code == 201, resp.text
        return resp.json()

    return _create
