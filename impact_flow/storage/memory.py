"""In-memory repositories. Nothing survives a restart; used for demos and tests."""
from __future__ import annotations

from typing import Dict, Iterable, List, Optional

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


class InMemoryProfileRepository(ProfileRepository):
    def __init__(self) -> None:
        self._profiles: Dict[str, Profile] = {}

    async def get_all(self) -> List[Profile]:
        return list(self._profiles.values())

    async def get_by_id(self, profile_id: str) -> Optional[Profile]:
        return self._profiles.get(profile_id)

    async def create(self, data: ProfileInput) -> Profile:
        data = as_model(ProfileCreate, data)
        profile = Profile(id=new_id(), **data.model_dump())
        self._profiles[profile.id] = profile
        return profile

    async def update(self, profile_id: str, changes: ProfileChanges) -> Optional[Profile]:
        existing = self._profiles.get(profile_id)
        if existing is None:
            return None
        updated = existing.merge(changes)
        self._profiles[profile_id] = updated
        return updated

    async def delete(self, profile_id: str) -> bool:
        return self._profiles.pop(profile_id, None) is not None

    async def seed(self, profiles: Iterable[Profile]) -> None:
        for profile in profiles:
            profile = as_model(Profile, profile)
            self._profiles[profile.id] = profile

    async def clear(self) -> None:
        self._profiles.clear()


class InMemoryProjectRepository(ProjectRepository):
    def __init__(self) -> None:
        self._projects: Dict[str, Project] = {}

    async def get_all(self) -> List[Project]:
        return list(self._projects.values())

    async def get_by_id(self, project_id: str) -> Optional[Project]:
        return self._projects.get(project_id)

    async def get_by_profile_id(self, profile_id: str) -> List[Project]:
        return [p for p in self._projects.values() if p.profile_id == profile_id]

    async def create(self, data: ProjectInput) -> Project:
        data = as_model(ProjectCreate, data)
        project = Project(id=new_id(), created_at=utc_now_iso(), **data.model_dump())
        self._projects[project.id] = project
        return project

    async def update(self, project_id: str, changes: ProjectChanges) -> Optional[Project]:
        existing = self._projects.get(project_id)
        if existing is None:
            return None
        updated = existing.merge(changes)
        self._projects[project_id] = updated
        return updated

    async def delete(self, project_id: str) -> bool:
        return self._projects.pop(project_id, None) is not None

    async def delete_by_profile_id(self, profile_id: str) -> int:
        to_delete = [p.id for p in self._projects.values() if p.profile_id == profile_id]
        for project_id in to_delete:
            del self._projects[project_id]
        return len(to_delete)

    async def seed(self, projects: Iterable[Project]) -> None:
        for project in projects:
            project = as_model(Project, project)
            self._projects[project.id] = project

    async def clear(self) -> None:
        self._projects.clear()


class InMemoryCriteriaRepository(CriteriaRepository):
    def __init__(self) -> None:
        self._criteria: Dict[str, SuccessCriteria] = {}

    async def get_all(self) -> List[SuccessCriteria]:
        return list(self._criteria.values())

    async def get_by_id(self, criteria_id: str) -> Optional[SuccessCriteria]:
        return self._criteria.get(criteria_id)

    async def get_by_project_id(self, project_id: str) -> List[SuccessCriteria]:
        return [c for c in self._criteria.values() if c.project_id == project_id]

    async def create(self, data: CriteriaInput) -> SuccessCriteria:
        data = as_model(SuccessCriteriaCreate, data)
        criteria = SuccessCriteria(id=new_id(), **data.model_dump())
        self._criteria[criteria.id] = criteria
        return criteria

    async def update(self, criteria_id: str, changes: CriteriaChanges) -> Optional[SuccessCriteria]:
        existing = self._criteria.get(criteria_id)
        if existing is None:
            return None
        updated = existing.merge(changes)
        self._criteria[criteria_id] = updated
        return updated

    async def delete(self, criteria_id: str) -> bool:
        return self._criteria.pop(criteria_id, None) is not None

    async def delete_by_project_id(self, project_id: str) -> int:
        to_delete = [c.id for c in self._criteria.values() if c.project_id == project_id]
        for criteria_id in to_delete:
            del self._criteria[criteria_id]
        return len(to_delete)

    async def seed(self, criteria: Iterable[SuccessCriteria]) -> None:
        for item in criteria:
            item = as_model(SuccessCriteria, item)
            self._criteria[item.id] = item

    async def clear(self) -> None:
        self._criteria.clear()


def create_memory_repositories() -> Repositories:
    return Repositories(
        profiles=InMemoryProfileRepository(),
        projects=InMemoryProjectRepository(),
        criteria=InMemoryCriteriaRepository(),
    )
