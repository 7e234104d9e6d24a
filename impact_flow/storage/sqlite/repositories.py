"""Embedded SQLite repositories.

Thin async adapters over the synchronous row repositories in
``impact_flow.db.repositories``; each call opens one session on the shared
:class:`SQLiteDatabase`. Writes that change something schedule a snapshot.
"""
from __future__ import annotations

from typing import Iterable, List, Optional

from impact_flow.db.repositories import SqlCriteriaRepository, SqlProfileRepository, SqlProjectRepository
from impact_flow.domain.entities import (
    Profile,
    ProfileCreate,
    Project,
    ProjectCreate,
    SuccessCriteria,
    SuccessCriteriaCreate,
    as_model,
    new_id,
    utc_now_iso,
)
from impact_flow.storage.interface import (
    CriteriaChanges,
    CriteriaInput,
    CriteriaRepository,
    ProfileChanges,
    ProfileInput,
    ProfileRepository,
    ProjectChanges,
    ProjectInput,
    ProjectRepository,
    Repositories,
)
from impact_flow.storage.sqlite.connection import SQLiteDatabase


class SQLiteProfileRepository(ProfileRepository):
    def __init__(self, database: SQLiteDatabase) -> None:
        self.database = database

    async def get_all(self) -> List[Profile]:
        return self.database.run(lambda db: SqlProfileRepository(db).get_all())

    async def get_by_id(self, profile_id: str) -> Optional[Profile]:
        return self.database.run(lambda db: SqlProfileRepository(db).get(profile_id))

    async def create(self, data: ProfileInput) -> Profile:
        data = as_model(ProfileCreate, data)
        profile = Profile(id=new_id(), **data.model_dump())
        return self.database.run(lambda db: SqlProfileRepository(db).insert(profile), mutates=True)

    async def update(self, profile_id: str, changes: ProfileChanges) -> Optional[Profile]:
        def work(db):
            repo = SqlProfileRepository(db)
            existing = repo.get(profile_id)
            if existing is None:
                return None
            return repo.replace(existing.merge(changes))

        return self.database.run(work, mutates=True)

    async def delete(self, profile_id: str) -> bool:
        return self.database.run(lambda db: SqlProfileRepository(db).delete(profile_id), mutates=True)

    async def seed(self, profiles: Iterable[Profile]) -> None:
        items = [as_model(Profile, p) for p in profiles]
        self.database.run(lambda db: SqlProfileRepository(db).upsert_many(items), mutates=True)

    async def clear(self) -> None:
        self.database.run(lambda db: SqlProfileRepository(db).delete_all(), mutates=True)


class SQLiteProjectRepository(ProjectRepository):
    def __init__(self, database: SQLiteDatabase) -> None:
        self.database = database

    async def get_all(self) -> List[Project]:
        return self.database.run(lambda db: SqlProjectRepository(db).get_all())

    async def get_by_id(self, project_id: str) -> Optional[Project]:
        return self.database.run(lambda db: SqlProjectRepository(db).get(project_id))

    async def get_by_profile_id(self, profile_id: str) -> List[Project]:
        return self.database.run(lambda db: SqlProjectRepository(db).list_for_profile(profile_id))

    async def create(self, data: ProjectInput) -> Project:
        data = as_model(ProjectCreate, data)
        project = Project(id=new_id(), created_at=utc_now_iso(), **data.model_dump())
        return self.database.run(lambda db: SqlProjectRepository(db).insert(project), mutates=True)

    async def update(self, project_id: str, changes: ProjectChanges) -> Optional[Project]:
        def work(db):
            repo = SqlProjectRepository(db)
            existing = repo.get(project_id)
            if existing is None:
                return None
            return repo.replace(existing.merge(changes))

        return self.database.run(work, mutates=True)

    async def delete(self, project_id: str) -> bool:
        return self.database.run(lambda db: SqlProjectRepository(db).delete(project_id), mutates=True)

    async def delete_by_profile_id(self, profile_id: str) -> int:
        return self.database.run(
            lambda db: SqlProjectRepository(db).delete_for_profile(profile_id), mutates=True
        )

    async def seed(self, projects: Iterable[Project]) -> None:
        items = [as_model(Project, p) for p in projects]
        self.database.run(lambda db: SqlProjectRepository(db).upsert_many(items), mutates=True)

    async def clear(self) -> None:
        self.database.run(lambda db: SqlProjectRepository(db).delete_all(), mutates=True)


class SQLiteCriteriaRepository(CriteriaRepository):
    def __init__(self, database: SQLiteDatabase) -> None:
        self.database = database

    async def get_all(self) -> List[SuccessCriteria]:
        return self.database.run(lambda db: SqlCriteriaRepository(db).get_all())

    async def get_by_id(self, criteria_id: str) -> Optional[SuccessCriteria]:
        return self.database.run(lambda db: SqlCriteriaRepository(db).get(criteria_id))

    async def get_by_project_id(self, project_id: str) -> List[SuccessCriteria]:
        return self.database.run(lambda db: SqlCriteriaRepository(db).list_for_project(project_id))

    async def create(self, data: CriteriaInput) -> SuccessCriteria:
        data = as_model(SuccessCriteriaCreate, data)
        criteria = SuccessCriteria(id=new_id(), **data.model_dump())
        return self.database.run(lambda db: SqlCriteriaRepository(db).insert(criteria), mutates=True)

    async def update(self, criteria_id: str, changes: CriteriaChanges) -> Optional[SuccessCriteria]:
        def work(db):
            repo = SqlCriteriaRepository(db)
            existing = repo.get(criteria_id)
            if existing is None:
                return None
            return repo.replace(existing.merge(changes))

        return self.database.run(work, mutates=True)

    async def delete(self, criteria_id: str) -> bool:
        return self.database.run(lambda db: SqlCriteriaRepository(db).delete(criteria_id), mutates=True)

    async def delete_by_project_id(self, project_id: str) -> int:
        return self.database.run(
            lambda db: SqlCriteriaRepository(db).delete_for_project(project_id), mutates=True
        )

    async def seed(self, criteria: Iterable[SuccessCriteria]) -> None:
        items = [as_model(SuccessCriteria, c) for c in criteria]
        self.database.run(lambda db: SqlCriteriaRepository(db).upsert_many(items), mutates=True)

    async def clear(self) -> None:
        self.database.run(lambda db: SqlCriteriaRepository(db).delete_all(), mutates=True)


def create_sqlite_repositories(database: SQLiteDatabase) -> Repositories:
    return Repositories(
        profiles=SQLiteProfileRepository(database),
        projects=SQLiteProjectRepository(database),
        criteria=SQLiteCriteriaRepository(database),
    )
