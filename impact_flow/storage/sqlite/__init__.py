from impact_flow.storage.sqlite.connection import SQLiteDatabase
from impact_flow.storage.sqlite.persistence import PersistScheduler
from impact_flow.storage.sqlite.repositories import create_sqlite_repositories

__all__ = ['SQLiteDatabase', 'PersistScheduler', 'create_sqlite_repositories']
