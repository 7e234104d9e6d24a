import logging
from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings

logger = logging.getLogger(__name__)

# Get the repository root directory (parent of impact_flow directory)
REPO_ROOT = Path(__file__).parent.parent.absolute()

STORAGE_TYPES = ("memory", "sqlite", "remote")
STORAGE_TYPE_ALIASES = {"embedded-sql": "sqlite", "server": "remote"}
SQLITE_PERSISTENCE_MODES = ("memory", "durable")
SNAPSHOT_STORES = ("filesystem", "s3")


class Settings(BaseSettings):
    """Application settings."""

    # Companion service settings
    API_HOST: str = "0.0.0.0"
    API_PORT: int = 3001
    API_RELOAD: bool = False

    # Version and environment
    VERSION: str = "0.1.0"
    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"

    # Repository backend: "memory", "sqlite" or "remote"
    STORAGE_TYPE: str = "memory"
    DEMO_MODE: bool = True

    # Embedded SQLite backend
    SQLITE_PERSISTENCE: str = "durable"  # "memory" or "durable"
    PERSIST_DEBOUNCE_MS: int = 100

    # Snapshot store for the durable SQLite image
    SNAPSHOT_STORE: str = "filesystem"  # "filesystem" or "s3"
    SNAPSHOT_DIR: str = str(REPO_ROOT / "storage" / "snapshots")
    SNAPSHOT_KEY: str = "impact-flow-sqlite"

    # S3 settings (only used if SNAPSHOT_STORE = "s3")
    AWS_ACCESS_KEY_ID: str = ""
    AWS_SECRET_ACCESS_KEY: str = ""
    AWS_REGION: str = "us-east-1"
    S3_BUCKET: str = ""

    # Remote backend
    API_URL: str = "http://localhost:3001/api"
    REMOTE_TIMEOUT_SECONDS: float = 10.0

    # Companion service database
    SERVER_DATABASE_URL: str = f"sqlite:///{REPO_ROOT / 'storage' / 'impact-flow.db'}"

    class Config:
        env_file = ".env"

    @field_validator("STORAGE_TYPE")
    @classmethod
    def _check_storage_type(cls, value: str) -> str:
        value = STORAGE_TYPE_ALIASES.get(value.lower(), value.lower())
        if value not in STORAGE_TYPES:
            logger.warning(f'Invalid STORAGE_TYPE "{value}", defaulting to "memory"')
            return "memory"
        return value

    @field_validator("SQLITE_PERSISTENCE")
    @classmethod
    def _check_sqlite_persistence(cls, value: str) -> str:
        value = value.lower()
        if value not in SQLITE_PERSISTENCE_MODES:
            logger.warning(f'Invalid SQLITE_PERSISTENCE "{value}", defaulting to "durable"')
            return "durable"
        return value

    @field_validator("SNAPSHOT_STORE")
    @classmethod
    def _check_snapshot_store(cls, value: str) -> str:
        value = value.lower()
        if value not in SNAPSHOT_STORES:
            logger.warning(f'Invalid SNAPSHOT_STORE "{value}", defaulting to "filesystem"')
            return "filesystem"
        return value

    @property
    def persist_delay(self) -> float:
        """Debounce window for durable writes, in seconds."""
        return max(self.PERSIST_DEBOUNCE_MS, 0) / 1000.0


settings = Settings()
