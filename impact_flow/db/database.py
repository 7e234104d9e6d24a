import logging
import sqlite3

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from impact_flow.config import settings

logger = logging.getLogger(__name__)


def _enable_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores REFERENCES clauses unless this is set on every connection
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys = ON")
    cursor.close()


def create_sqlite_engine(url: str) -> Engine:
    """Create an engine for a SQLite URL with foreign keys enforced."""
    kwargs = {"connect_args": {"check_same_thread": False}}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # One shared connection, otherwise every checkout sees an empty database
        kwargs["poolclass"] = StaticPool
    engine = create_engine(url, **kwargs)
    event.listen(engine, "connect", _enable_foreign_keys)
    return engine


def create_engine_for_connection(connection: sqlite3.Connection) -> Engine:
    """Wrap an existing sqlite3 connection (e.g. one restored from a snapshot) in an engine."""
    connection.execute("PRAGMA foreign_keys = ON")
    return create_engine(
        "sqlite://",
        creator=lambda: connection,
        poolclass=StaticPool,
    )


# Companion service engine
engine = create_sqlite_engine(settings.SERVER_DATABASE_URL)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Create a database session dependency
def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
