"""
Test configuration and fixtures for impact-flow tests.
"""
import sqlite3
from typing import Dict, Optional
from unittest.mock import patch

import httpx
import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker

from impact_flow.config import Settings
from impact_flow.db.database import create_sqlite_engine, get_db
from impact_flow.db.init_db import create_tables
from impact_flow.domain.events import event_publisher
from impact_flow.main import app
from impact_flow.storage.factory import reset_repositories
from impact_flow.storage.memory import create_memory_repositories
from impact_flow.storage.remote import RemoteClient, create_remote_repositories
from impact_flow.storage.snapshots.interface import SnapshotStore
from impact_flow.storage.sqlite import SQLiteDatabase, create_sqlite_repositories


class RecordingSnapshotStore(SnapshotStore):
    """In-memory snapshot store that counts writes."""

    def __init__(self):
        self.blobs: Dict[str, bytes] = {}
        self.saves = 0

    def save(self, key: str, data: bytes) -> None:
        self.saves += 1
        self.blobs[key] = data

    def load(self, key: str) -> Optional[bytes]:
        return self.blobs.get(key)

    def delete(self, key: str) -> bool:
        return self.blobs.pop(key, None) is not None


@pytest.fixture(autouse=True)
def test_settings(tmp_path):
    """Override settings for testing."""
    settings = Settings(
        STORAGE_TYPE="memory",
        SQLITE_PERSISTENCE="memory",
        DEMO_MODE=False,
        SNAPSHOT_DIR=str(tmp_path / "snapshots"),
        SERVER_DATABASE_URL="sqlite://",
    )
    with patch("impact_flow.config.settings", settings):
        yield settings


@pytest.fixture(autouse=True)
def clean_state():
    """Start every test with no active backend and no event subscribers."""
    reset_repositories()
    event_publisher.clear_subscribers()
    yield
    reset_repositories()
    event_publisher.clear_subscribers()


@pytest.fixture
def server_engine():
    """Fresh in-memory database for the companion service."""
    engine = create_sqlite_engine("sqlite://")
    create_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def server_app(server_engine):
    """The FastAPI app bound to the test database."""
    TestingSession = sessionmaker(autocommit=False, autoflush=False, bind=server_engine)

    def override_get_db():
        db = TestingSession()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(server_app):
    """Create test client."""
    return TestClient(server_app)


@pytest.fixture
def memory_repos():
    return create_memory_repositories()


@pytest.fixture
def snapshot_store():
    return RecordingSnapshotStore()


@pytest.fixture
def sqlite_database():
    """Embedded database in memory-only mode. Call ``await initialize()`` before use."""
    database = SQLiteDatabase(persistence="memory")
    yield database
    database.close()


@pytest.fixture
def sqlite_repos(sqlite_database):
    return create_sqlite_repositories(sqlite_database)


@pytest.fixture
def remote_repos(server_app):
    """Remote repositories talking to the in-process service."""
    client = RemoteClient("http://testserver/api", transport=httpx.ASGITransport(app=server_app))
    return create_remote_repositories(client)


@pytest.fixture
def counting_connect():
    """sqlite3 connection factory that records how often it was called."""
    calls = []

    def connect():
        calls.append(1)
        return sqlite3.connect(":memory:", check_same_thread=False)

    connect.calls = calls
    return connect


@pytest.fixture
def profile_input():
    return {"name": "Alice", "role": "Eng"}


@pytest.fixture
def project_input():
    def build(profile_id: str, **overrides):
        data = {
            "profileId": profile_id,
            "name": "X",
            "purpose": "Ship the thing",
            "importance": "Customers are waiting",
            "idealOutcome": "Thing shipped",
            "status": "planned",
        }
        data.update(overrides)
        return data
    return build
