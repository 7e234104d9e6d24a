"""
Delegation service: the application layer over the repositories.

Holds the local view of profiles, projects and success criteria, orchestrates
cascading deletes and offers optimistic creates. An optimistic create returns a
provisional record immediately and writes it in the background; once the write
lands the provisional record is swapped for the stored one.
"""
from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Dict, List, Optional, Set, TypeVar

from impact_flow.domain.entities import (
    Entity,
    Profile,
    ProfileCreate,
    ProfileUpdate,
    Project,
    ProjectCreate,
    ProjectUpdate,
    SuccessCriteria,
    SuccessCriteriaCreate,
    SuccessCriteriaUpdate,
    as_model,
    new_id,
    utc_now_iso,
)
from impact_flow.domain.errors import ReferentialIntegrityError
from impact_flow.domain.events import (
    CriteriaCreated,
    CriteriaDeleted,
    CriteriaUpdated,
    DomainEventPublisher,
    ProfileCreated,
    ProfileDeleted,
    ProfileUpdated,
    ProjectCreated,
    ProjectDeleted,
    ProjectUpdated,
    event_publisher,
)
from impact_flow.storage.interface import (
    CriteriaChanges,
    CriteriaInput,
    ProfileChanges,
    ProfileInput,
    ProjectChanges,
    ProjectInput,
    Repositories,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)


def _replace(items: List[E], entity_id: str, record: E) -> List[E]:
    return [record if item.id == entity_id else item for item in items]


def _without(items: List[E], entity_id: str) -> List[E]:
    return [item for item in items if item.id != entity_id]


class DelegationService:
    """Application service behind the delegation views."""

    def __init__(self, repositories: Repositories, publisher: DomainEventPublisher = event_publisher) -> None:
        self.repos = repositories
        self._publisher = publisher
        self.profiles: List[Profile] = []
        self.projects: List[Project] = []
        self.success_criteria: List[SuccessCriteria] = []
        # provisional id -> background create
        self._inflight: Dict[str, asyncio.Task] = {}
        # provisional id -> stored id
        self._resolved: Dict[str, str] = {}
        self._failures: List[BaseException] = []
        # provisional ids whose create failed
        self._failed: Set[str] = set()

    async def load(self) -> None:
        """Replace the local view with what storage currently holds."""
        self.profiles = await self.repos.profiles.get_all()
        self.projects = await self.repos.projects.get_all()
        self.success_criteria = await self.repos.criteria.get_all()

    # Queries

    def get_profile_projects(self, profile_id: str) -> List[Project]:
        return [project for project in self.projects if project.profile_id == profile_id]

    def get_project_criteria(self, project_id: str) -> List[SuccessCriteria]:
        return [criteria for criteria in self.success_criteria if criteria.project_id == project_id]

    @property
    def pending(self) -> int:
        """Number of optimistic creates still being written."""
        return len(self._inflight)

    # Background writes

    def _dispatch(self, provisional_id: str, work: Awaitable[E]) -> None:
        task = asyncio.get_running_loop().create_task(work)
        self._inflight[provisional_id] = task
        task.add_done_callback(lambda t: self._settle(provisional_id, t))

    def _settle(self, provisional_id: str, task: asyncio.Task) -> None:
        self._inflight.pop(provisional_id, None)
        if task.cancelled():
            return
        error = task.exception()
        if error is None:
            self._resolved[provisional_id] = task.result().id
            return
        logger.error(f"Background create of {provisional_id} failed: {error}")
        self._failures.append(error)
        self._failed.add(provisional_id)
        self.profiles = _without(self.profiles, provisional_id)
        self.projects = _without(self.projects, provisional_id)
        self.success_criteria = _without(self.success_criteria, provisional_id)

    async def _resolve(self, entity_id: str) -> str:
        """
        Map a provisional id to its stored id, waiting for its create if needed.

        A provisional id whose create failed maps to itself, which no backend
        holds, so updates and deletes report it absent.
        """
        task = self._inflight.get(entity_id)
        if task is None:
            return self._resolved.get(entity_id, entity_id)
        await asyncio.wait({task})
        if task.cancelled() or task.exception() is not None:
            return entity_id
        return task.result().id

    async def _resolve_parent(self, parent_id: str) -> str:
        """Like :meth:`_resolve`, but a parent that was never stored fails the child's create."""
        task = self._inflight.get(parent_id)
        if task is not None:
            return (await task).id
        if parent_id in self._failed:
            raise ReferentialIntegrityError(f"Parent {parent_id} was never stored")
        return self._resolved.get(parent_id, parent_id)

    async def _settle_children(self, records: List[E], parent_field: str, parent_ids: Set[str]) -> None:
        """Let in-flight creates under ``parent_ids`` land so a cascade sees them."""
        waiting = [
            self._inflight[record.id]
            for record in records
            if record.id in self._inflight and getattr(record, parent_field) in parent_ids
        ]
        if waiting:
            await asyncio.wait(waiting)

    async def wait_for_pending(self) -> None:
        """
        Wait until every optimistic create has been written.

        Raises:
            The first error raised by a background create since the last call
        """
        while self._inflight:
            await asyncio.gather(*list(self._inflight.values()), return_exceptions=True)
        if self._failures:
            error = self._failures[0]
            self._failures.clear()
            raise error

    # Profiles

    def add_profile(self, data: ProfileInput) -> Profile:
        data = as_model(ProfileCreate, data)
        provisional = Profile(id=new_id(), **data.model_dump())
        self.profiles.append(provisional)
        self._dispatch(provisional.id, self._create_profile(provisional.id, data))
        return provisional

    async def _create_profile(self, provisional_id: str, data: ProfileCreate) -> Profile:
        profile = await self.repos.profiles.create(data)
        self.profiles = _replace(self.profiles, provisional_id, profile)
        self.projects = [
            project.model_copy(update={"profile_id": profile.id}) if project.profile_id == provisional_id else project
            for project in self.projects
        ]
        self._publisher.publish(ProfileCreated(profile.id, name=profile.name, role=profile.role))
        return profile

    async def update_profile(self, profile_id: str, changes: ProfileChanges) -> Optional[Profile]:
        changes = as_model(ProfileUpdate, changes)
        profile_id = await self._resolve(profile_id)
        profile = await self.repos.profiles.update(profile_id, changes)
        if profile is None:
            return None
        self.profiles = _replace(self.profiles, profile_id, profile)
        self._publisher.publish(ProfileUpdated(profile_id, changes=changes.model_dump(exclude_unset=True)))
        return profile

    async def delete_profile(self, profile_id: str) -> bool:
        """
        Delete a profile, its projects and their success criteria.

        Returns:
            False if no such profile was stored
        """
        requested_id = profile_id
        profile_id = await self._resolve(profile_id)
        parent_ids = {requested_id, profile_id}
        await self._settle_children(self.projects, "profile_id", parent_ids)
        await self._settle_children(
            self.success_criteria,
            "project_id",
            {project.id for project in self.projects if project.profile_id in parent_ids},
        )
        # Read children before the parent goes; SQL backends cascade on delete
        owned = await self.repos.projects.get_by_profile_id(profile_id)
        if not await self.repos.profiles.delete(profile_id):
            return False

        project_ids = {project.id for project in owned}
        project_ids.update(project.id for project in self.get_profile_projects(profile_id))
        for project_id in sorted(project_ids):
            await self.repos.criteria.delete_by_project_id(project_id)
        await self.repos.projects.delete_by_profile_id(profile_id)

        self.profiles = _without(self.profiles, profile_id)
        self.projects = [project for project in self.projects if project.profile_id != profile_id]
        self.success_criteria = [
            criteria for criteria in self.success_criteria if criteria.project_id not in project_ids
        ]
        self._publisher.publish(ProfileDeleted(profile_id, project_ids=sorted(project_ids)))
        return True

    # Projects

    def add_project(self, data: ProjectInput) -> Project:
        data = as_model(ProjectCreate, data)
        provisional = Project(id=new_id(), created_at=utc_now_iso(), **data.model_dump())
        self.projects.append(provisional)
        self._dispatch(provisional.id, self._create_project(provisional.id, data))
        return provisional

    async def _create_project(self, provisional_id: str, data: ProjectCreate) -> Project:
        profile_id = await self._resolve_parent(data.profile_id)
        if profile_id != data.profile_id:
            data = data.model_copy(update={"profile_id": profile_id})
        project = await self.repos.projects.create(data)
        self.projects = _replace(self.projects, provisional_id, project)
        self.success_criteria = [
            criteria.model_copy(update={"project_id": project.id}) if criteria.project_id == provisional_id else criteria
            for criteria in self.success_criteria
        ]
        self._publisher.publish(ProjectCreated(project.id, profile_id=project.profile_id, name=project.name))
        return project

    async def update_project(self, project_id: str, changes: ProjectChanges) -> Optional[Project]:
        changes = as_model(ProjectUpdate, changes)
        project_id = await self._resolve(project_id)
        if changes.profile_id is not None:
            changes = changes.model_copy(update={"profile_id": await self._resolve(changes.profile_id)})
        project = await self.repos.projects.update(project_id, changes)
        if project is None:
            return None
        self.projects = _replace(self.projects, project_id, project)
        self._publisher.publish(ProjectUpdated(project_id, changes=changes.model_dump(exclude_unset=True)))
        return project

    async def delete_project(self, project_id: str) -> bool:
        """Delete a project and its success criteria. False if it was not stored."""
        requested_id = project_id
        project_id = await self._resolve(project_id)
        await self._settle_children(self.success_criteria, "project_id", {requested_id, project_id})
        if not await self.repos.projects.delete(project_id):
            return False
        removed = await self.repos.criteria.delete_by_project_id(project_id)

        self.projects = _without(self.projects, project_id)
        self.success_criteria = [
            criteria for criteria in self.success_criteria if criteria.project_id != project_id
        ]
        self._publisher.publish(ProjectDeleted(project_id, criteria_deleted=removed))
        return True

    # Success criteria

    def add_success_criteria(self, data: CriteriaInput) -> SuccessCriteria:
        data = as_model(SuccessCriteriaCreate, data)
        provisional = SuccessCriteria(id=new_id(), **data.model_dump())
        self.success_criteria.append(provisional)
        self._dispatch(provisional.id, self._create_criteria(provisional.id, data))
        return provisional

    async def _create_criteria(self, provisional_id: str, data: SuccessCriteriaCreate) -> SuccessCriteria:
        project_id = await self._resolve_parent(data.project_id)
        if project_id != data.project_id:
            data = data.model_copy(update={"project_id": project_id})
        criteria = await self.repos.criteria.create(data)
        self.success_criteria = _replace(self.success_criteria, provisional_id, criteria)
        self._publisher.publish(
            CriteriaCreated(criteria.id, project_id=criteria.project_id, description=criteria.description)
        )
        return criteria

    async def update_success_criteria(self, criteria_id: str, changes: CriteriaChanges) -> Optional[SuccessCriteria]:
        changes = as_model(SuccessCriteriaUpdate, changes)
        criteria_id = await self._resolve(criteria_id)
        if changes.project_id is not None:
            changes = changes.model_copy(update={"project_id": await self._resolve(changes.project_id)})
        criteria = await self.repos.criteria.update(criteria_id, changes)
        if criteria is None:
            return None
        self.success_criteria = _replace(self.success_criteria, criteria_id, criteria)
        self._publisher.publish(CriteriaUpdated(criteria_id, changes=changes.model_dump(exclude_unset=True)))
        return criteria

    async def delete_success_criteria(self, criteria_id: str) -> bool:
        criteria_id = await self._resolve(criteria_id)
        if not await self.repos.criteria.delete(criteria_id):
            return False
        self.success_criteria = _without(self.success_criteria, criteria_id)
        self._publisher.publish(CriteriaDeleted(criteria_id))
        return True


async def start_delegation_service(demo_mode: Optional[bool] = None) -> DelegationService:
    """
    Initialize the configured storage, seed demo data into empty storage and
    return a service with its view loaded.
    """
    from impact_flow import config
    from impact_flow.application.demo_data import seed_repositories
    from impact_flow.storage.factory import initialize_repositories

    if demo_mode is None:
        demo_mode = config.settings.DEMO_MODE
    repositories = await initialize_repositories()
    await seed_repositories(repositories, demo_mode)
    service = DelegationService(repositories)
    await service.load()
    return service
