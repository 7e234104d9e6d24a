"""
Database initialization utilities for the companion service.
"""
import logging
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.engine import Engine, make_url

from impact_flow.config import settings
from impact_flow.db.models import Base

logger = logging.getLogger(__name__)


def ensure_database_directory(url: str = None):
    """Create the directory holding a file-based SQLite database."""
    database = make_url(url or settings.SERVER_DATABASE_URL).database
    if not database or database == ":memory:":
        return
    directory = Path(database).parent
    if not directory.exists():
        directory.mkdir(parents=True, exist_ok=True)
        logger.info(f"[Database] Created data directory: {directory}")


def create_tables(engine: Engine):
    """Create all tables and indexes defined in models."""
    logger.info("Creating database tables...")
    Base.metadata.create_all(bind=engine)
    logger.info("All tables created successfully")


def drop_all_tables(engine: Engine):
    """Drop all tables (useful for testing)."""
    logger.info("Dropping all database tables...")
    Base.metadata.drop_all(bind=engine)
    logger.info("All tables dropped successfully")


def reset_database(engine: Engine):
    """Drop and recreate all tables."""
    logger.info("Resetting database...")
    drop_all_tables(engine)
    create_tables(engine)
    logger.info("Database reset complete")


def init_database(engine: Engine = None):
    """Complete database initialization."""
    if engine is None:
        from impact_flow.db.database import engine
    logger.info("Initializing database...")
    ensure_database_directory(str(engine.url))
    create_tables(engine)
    logger.info("Database initialization complete")


def check_connection(engine: Engine) -> bool:
    """Test database connection."""
    with engine.connect() as conn:
        result = conn.execute(text("SELECT 1"))
        assert result.fetchone()[0] == 1

    logger.info("Database connection test successful")
    return True
