"""
Repository factory.

Selects the storage backend from configuration and hands out one process-wide
:class:`Repositories` bundle. Backends without async setup (memory, remote) are
built on first access; the embedded SQLite backend must be initialized with
``await initialize_repositories()`` first.
"""
from __future__ import annotations

import asyncio
import logging
import sqlite3
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Optional, Set, Tuple

import httpx

from impact_flow.config import Settings
from impact_flow.domain.errors import ConfigurationError
from impact_flow.storage.interface import Repositories
from impact_flow.storage.memory import create_memory_repositories
from impact_flow.storage.remote import RemoteClient, create_remote_repositories
from impact_flow.storage.snapshots.factory import get_snapshot_store
from impact_flow.storage.snapshots.interface import SnapshotStore
from impact_flow.storage.sqlite.connection import SQLiteDatabase, connect_memory
from impact_flow.storage.sqlite.repositories import create_sqlite_repositories

logger = logging.getLogger(__name__)


class FactoryState(str, Enum):
    UNINITIALIZED = "uninitialized"
    INITIALIZING = "initializing"
    READY = "ready"


@dataclass(frozen=True)
class StorageConfig:
    """The storage-related settings, captured once."""
    storage_type: str
    sqlite_persistence: str
    api_url: str
    remote_timeout: float
    persist_delay: float
    snapshot_key: str

    @classmethod
    def from_settings(cls, settings: Settings) -> StorageConfig:
        return cls(
            storage_type=settings.STORAGE_TYPE,
            sqlite_persistence=settings.SQLITE_PERSISTENCE,
            api_url=settings.API_URL,
            remote_timeout=settings.REMOTE_TIMEOUT_SECONDS,
            persist_delay=settings.persist_delay,
            snapshot_key=settings.SNAPSHOT_KEY,
        )


class RepositoryFactory:
    """Process-wide owner of the active backend.

    Lifecycle: UNINITIALIZED -> INITIALIZING -> READY. ``reset`` returns to
    UNINITIALIZED and forgets the cached configuration.
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        snapshot_store_factory: Callable[[Settings], SnapshotStore] = get_snapshot_store,
        sqlite_connect: Callable[[], sqlite3.Connection] = connect_memory,
        remote_transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._settings = settings
        self._snapshot_store_factory = snapshot_store_factory
        self._sqlite_connect = sqlite_connect
        self._remote_transport = remote_transport
        self._config: Optional[StorageConfig] = None
        self._repositories: Optional[Repositories] = None
        self._init_task: Optional[asyncio.Task] = None
        self._database: Optional[SQLiteDatabase] = None
        self._remote_client: Optional[RemoteClient] = None
        self._closing: Set[asyncio.Task] = set()

    def _current_settings(self) -> Settings:
        if self._settings is not None:
            return self._settings
        # Looked up late so tests can patch the module-level instance
        from impact_flow import config
        return config.settings

    @property
    def config(self) -> StorageConfig:
        if self._config is None:
            self._config = StorageConfig.from_settings(self._current_settings())
            logger.info(f"Storage backend: {self._config.storage_type}")
        return self._config

    @property
    def state(self) -> FactoryState:
        if self._repositories is not None:
            return FactoryState.READY
        if self._init_task is not None and not self._init_task.done():
            return FactoryState.INITIALIZING
        return FactoryState.UNINITIALIZED

    @property
    def database(self) -> Optional[SQLiteDatabase]:
        return self._database

    def requires_async_init(self) -> bool:
        return self.config.storage_type == "sqlite"

    def get_repositories(self) -> Repositories:
        """
        Return the active repositories.

        Raises:
            ConfigurationError: the SQLite backend has not been initialized yet
        """
        if self._repositories is not None:
            return self._repositories
        if self.requires_async_init():
            raise ConfigurationError(
                "SQLite storage requires async initialization. Call initialize_repositories() first."
            )
        self._repositories = self._build_sync()
        return self._repositories

    def _build_sync(self) -> Repositories:
        if self.config.storage_type == "remote":
            self._remote_client = RemoteClient(
                self.config.api_url,
                timeout=self.config.remote_timeout,
                transport=self._remote_transport,
            )
            logger.info(f"Using remote storage at {self.config.api_url}")
            return create_remote_repositories(self._remote_client)
        logger.info("Using in-memory storage")
        return create_memory_repositories()

    async def initialize_repositories(self) -> Repositories:
        """Build the active repositories, sharing one setup among concurrent callers."""
        if self._repositories is not None:
            return self._repositories
        if not self.requires_async_init():
            return self.get_repositories()

        task = self._init_task
        if task is None:
            task = self._init_task = asyncio.ensure_future(self._build_sqlite())
        try:
            database, repositories = await asyncio.shield(task)
        except Exception:
            if self._init_task is task:
                self._init_task = None
            raise
        if self._init_task is not task:
            # reset_repositories() ran while this setup was in flight
            database.close()
            raise ConfigurationError("Storage was reset during initialization")
        self._database = database
        self._repositories = repositories
        return repositories

    async def _build_sqlite(self) -> Tuple[SQLiteDatabase, Repositories]:
        config = self.config
        store = None
        if config.sqlite_persistence == "durable":
            store = self._snapshot_store_factory(self._current_settings())
        database = SQLiteDatabase(
            persistence=config.sqlite_persistence,
            store=store,
            snapshot_key=config.snapshot_key,
            persist_delay=config.persist_delay,
            connect=self._sqlite_connect,
        )
        await database.initialize()
        return database, create_sqlite_repositories(database)

    async def shutdown_repositories(self) -> None:
        """Write any pending snapshot and close the HTTP client."""
        if self._database is not None:
            await self._database.flush()
        if self._remote_client is not None:
            await self._remote_client.aclose()
            self._remote_client = None
            self._repositories = None

    def reset_repositories(self) -> None:
        """Forget the active backend and its configuration (tests)."""
        if self._database is not None:
            self._database.close()
        self._database = None
        if self._remote_client is not None:
            self._close_later(self._remote_client)
        self._remote_client = None
        self._repositories = None
        self._init_task = None
        self._config = None

    def _close_later(self, client: RemoteClient) -> None:
        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            logger.debug("No running event loop, remote client dropped without closing")
            return
        task = loop.create_task(client.aclose())
        self._closing.add(task)
        task.add_done_callback(self._closing.discard)


repository_factory = RepositoryFactory()


def get_repositories() -> Repositories:
    return repository_factory.get_repositories()


async def initialize_repositories() -> Repositories:
    return await repository_factory.initialize_repositories()


def reset_repositories() -> None:
    repository_factory.reset_repositories()


def requires_async_init() -> bool:
    return repository_factory.requires_async_init()


async def shutdown_repositories() -> None:
    await repository_factory.shutdown_repositories()
