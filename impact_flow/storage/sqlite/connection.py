"""
Embedded SQLite database handle.

One instance owns the process-wide connection, the session factory and the
pending-write timer; every embedded repository shares it. The database lives in
memory; in durable mode its serialized image is written to a snapshot store
after mutations (debounced) and restored on the next start.
"""
from __future__ import annotations

import asyncio
import atexit
import logging
import sqlite3
from typing import Callable, Optional, TypeVar

from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from impact_flow.db.database import create_engine_for_connection
from impact_flow.db.init_db import create_tables
from impact_flow.domain.errors import ConfigurationError, StorageError
from impact_flow.storage.snapshots.interface import SnapshotStore
from impact_flow.storage.sqlite.persistence import DEFAULT_PERSIST_DELAY, PersistScheduler

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_SNAPSHOT_KEY = "impact-flow-sqlite"


def connect_memory() -> sqlite3.Connection:
    return sqlite3.connect(":memory:", check_same_thread=False)


class SQLiteDatabase:
    def __init__(
        self,
        persistence: str = "memory",
        store: Optional[SnapshotStore] = None,
        snapshot_key: str = DEFAULT_SNAPSHOT_KEY,
        persist_delay: float = DEFAULT_PERSIST_DELAY,
        connect: Callable[[], sqlite3.Connection] = connect_memory,
    ) -> None:
        if persistence == "durable" and store is None:
            raise ConfigurationError("Durable SQLite persistence needs a snapshot store")
        self.persistence = persistence
        self.snapshot_key = snapshot_key
        self._store = store
        self._connect = connect
        self._connection: Optional[sqlite3.Connection] = None
        self._engine: Optional[Engine] = None
        self._sessions: Optional[sessionmaker] = None
        self._init_task: Optional[asyncio.Task] = None
        self._exit_hook_registered = False
        self._scheduler = PersistScheduler(self.persist, persist_delay)

    @property
    def durable(self) -> bool:
        return self.persistence == "durable"

    @property
    def is_initialized(self) -> bool:
        return self._engine is not None

    @property
    def scheduler(self) -> PersistScheduler:
        return self._scheduler

    async def initialize(self) -> Engine:
        """
        Open the database: restore the saved image in durable mode, otherwise
        create a fresh schema. Concurrent callers share one initialization.
        """
        if self._engine is not None:
            return self._engine

        task = self._init_task
        if task is None:
            task = self._init_task = asyncio.ensure_future(self._open())
        try:
            return await asyncio.shield(task)
        finally:
            if task.done() and (task.cancelled() or task.exception() is not None):
                if self._init_task is task:
                    # Let the next caller retry
                    self._init_task = None

    async def _open(self) -> Engine:
        saved = None
        if self.durable:
            try:
                saved = await asyncio.to_thread(self._store.load, self.snapshot_key)
            except Exception as e:
                raise StorageError(f"Failed to load database snapshot: {e}") from e

        connection = self._connect()
        try:
            if saved:
                connection.deserialize(saved)
                logger.info(f"Restored SQLite database from snapshot '{self.snapshot_key}' ({len(saved)} bytes)")
            engine = create_engine_for_connection(connection)
            # Idempotent; also upgrades images saved before an index or table existed
            create_tables(engine)
        except (sqlite3.Error, SQLAlchemyError) as e:
            connection.close()
            raise StorageError(f"Failed to open SQLite database: {e}") from e

        self._connection = connection
        self._engine = engine
        self._sessions = sessionmaker(bind=engine, autoflush=False)

        if self.durable:
            if not saved:
                await self.persist()
            self._register_exit_hook()

        logger.info(f"SQLite database ready (persistence={self.persistence})")
        return engine

    def session(self) -> Session:
        if self._sessions is None:
            raise ConfigurationError("Database not initialized. Call initialize() first.")
        return self._sessions()

    def run(self, work: Callable[[Session], T], *, mutates: bool = False) -> T:
        """
        Run ``work`` in a fresh session. Mutations that changed something
        (a truthy result) schedule a debounced snapshot write.
        """
        with self.session() as session:
            try:
                result = work(session)
            except SQLAlchemyError as e:
                session.rollback()
                raise StorageError(f"SQLite operation failed: {e}") from e
        if mutates and result:
            self.schedule_persist()
        return result

    def snapshot(self) -> bytes:
        """Serialize the current database to bytes."""
        if self._connection is None:
            raise ConfigurationError("Database not initialized. Call initialize() first.")
        return self._connection.serialize()

    async def persist(self) -> None:
        """Write the current image to the snapshot store now."""
        if not self.durable or self._connection is None:
            return
        data = self.snapshot()
        try:
            await asyncio.to_thread(self._store.save, self.snapshot_key, data)
        except Exception as e:
            raise StorageError(f"Failed to save database snapshot: {e}") from e
        logger.debug(f"Persisted SQLite snapshot '{self.snapshot_key}' ({len(data)} bytes)")

    def schedule_persist(self, delay: float | None = None) -> None:
        if not self.durable:
            return
        self._scheduler.schedule(delay)

    async def flush(self) -> None:
        """Complete any pending debounced write before returning."""
        await self._scheduler.flush()

    def flush_sync(self) -> None:
        """Blocking flush for interpreter shutdown, where no event loop is running."""
        if self._scheduler.cancel() and self._connection is not None:
            self._store.save(self.snapshot_key, self.snapshot())
            logger.info("Flushed pending SQLite snapshot on exit")

    def _register_exit_hook(self) -> None:
        if not self._exit_hook_registered:
            atexit.register(self.flush_sync)
            self._exit_hook_registered = True

    def close(self) -> None:
        """Drop the handle without flushing (tests, reset)."""
        self._scheduler.cancel()
        if self._exit_hook_registered:
            atexit.unregister(self.flush_sync)
            self._exit_hook_registered = False
        if self._engine is not None:
            self._engine.dispose()
        if self._connection is not None:
            self._connection.close()
        self._engine = None
        self._sessions = None
        self._connection = None
        self._init_task = None
