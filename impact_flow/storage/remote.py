"""
Remote repositories backed by the companion HTTP service.

Every call is one or more requests against ``API_URL``. A 404 is an absent
record; any other non-success status or a transport failure raises
:class:`RemoteStorageError`. Updates read the current record, merge locally and
PUT the full record back.
"""
from __future__ import annotations

import logging
from typing import Any, Dict, Generic, Iterable, List, Optional, Type, TypeVar
from urllib.parse import quote

import httpx

from impact_flow.domain.entities import (
    Entity,
    Profile,
    ProfileCreate,
    Project,
    ProjectCreate,
    SuccessCriteria,
    SuccessCriteriaCreate,
    as_model,
)
from impact_flow.domain.errors import RemoteStorageError
from impact_flow.storage.interface import (
    CriteriaInput,
    CriteriaRepository,
    ProfileInput,
    ProfileRepository,
    ProjectInput,
    ProjectRepository,
    Repositories,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=Entity)


class RemoteClient:
    """Shared ``httpx.AsyncClient`` for the three remote repositories."""

    def __init__(self, api_url: str, timeout: float = 10.0, transport: httpx.AsyncBaseTransport = None):
        self.api_url = api_url.rstrip("/")
        self._client = httpx.AsyncClient(base_url=self.api_url, timeout=timeout, transport=transport)

    async def request(self, method: str, path: str, json: Any = None) -> httpx.Response:
        try:
            return await self._client.request(method, path, json=json)
        except httpx.HTTPError as e:
            logger.error(f"{method} {self.api_url}{path} failed: {e}")
            raise RemoteStorageError(f"{method} {path} failed: {e}") from e

    async def aclose(self) -> None:
        await self._client.aclose()


def _check(response: httpx.Response) -> httpx.Response:
    if response.is_success:
        return response
    detail = response.text
    try:
        body = response.json()
        if isinstance(body, dict):
            detail = body.get("detail") or body.get("error") or detail
    except ValueError:
        pass
    raise RemoteStorageError(
        f"{response.request.method} {response.request.url.path} returned {response.status_code}: {detail}",
        status_code=response.status_code,
    )


class _RemoteRepository(Generic[E]):
    """Request plumbing shared by the remote repositories of one resource."""

    resource: str
    entity: Type[E]
    seed_key: str

    def __init__(self, client: RemoteClient) -> None:
        self.client = client

    def _path(self, *parts: str) -> str:
        return "/".join([f"/{self.resource}", *(quote(str(p), safe="") for p in parts)])

    async def _list(self, *parts: str) -> List[E]:
        response = _check(await self.client.request("GET", self._path(*parts)))
        return [self.entity.model_validate(item) for item in response.json()]

    async def get_all(self) -> List[E]:
        return await self._list()

    async def get_by_id(self, entity_id: str) -> Optional[E]:
        response = await self.client.request("GET", self._path(entity_id))
        if response.status_code == 404:
            return None
        return self.entity.model_validate(_check(response).json())

    async def _create(self, body: Dict[str, Any]) -> E:
        response = _check(await self.client.request("POST", self._path(), json=body))
        return self.entity.model_validate(response.json())

    async def update(self, entity_id: str, changes) -> Optional[E]:
        existing = await self.get_by_id(entity_id)
        if existing is None:
            return None
        merged = existing.merge(changes)
        response = await self.client.request("PUT", self._path(entity_id), json=merged.to_wire())
        if response.status_code == 404:
            return None
        return self.entity.model_validate(_check(response).json())

    async def delete(self, entity_id: str) -> bool:
        response = await self.client.request("DELETE", self._path(entity_id))
        if response.status_code == 404:
            return False
        _check(response)
        return True

    async def _delete_by_parent(self, parent: str, parent_id: str) -> int:
        response = _check(await self.client.request("DELETE", self._path(parent, parent_id)))
        return int(response.json().get("deleted", 0))

    async def seed(self, records: Iterable[E]) -> None:
        items = [as_model(self.entity, r).to_wire() for r in records]
        _check(await self.client.request("POST", self._path("seed"), json={self.seed_key: items}))

    async def clear(self) -> None:
        # The service has no bulk delete; remove rows one by one
        for record in await self.get_all():
            await self.delete(record.id)


class ApiProfileRepository(_RemoteRepository[Profile], ProfileRepository):
    resource = "profiles"
    entity = Profile
    seed_key = "profiles"

    async def create(self, data: ProfileInput) -> Profile:
        return await self._create(as_model(ProfileCreate, data).to_wire())


class ApiProjectRepository(_RemoteRepository[Project], ProjectRepository):
    resource = "projects"
    entity = Project
    seed_key = "projects"

    async def get_by_profile_id(self, profile_id: str) -> List[Project]:
        return await self._list("profile", profile_id)

    async def create(self, data: ProjectInput) -> Project:
        return await self._create(as_model(ProjectCreate, data).to_wire())

    async def delete_by_profile_id(self, profile_id: str) -> int:
        return await self._delete_by_parent("profile", profile_id)


class ApiCriteriaRepository(_RemoteRepository[SuccessCriteria], CriteriaRepository):
    resource = "criteria"
    entity = SuccessCriteria
    seed_key = "criteria"

    async def get_by_project_id(self, project_id: str) -> List[SuccessCriteria]:
        return await self._list("project", project_id)

    async def create(self, data: CriteriaInput) -> SuccessCriteria:
        return await self._create(as_model(SuccessCriteriaCreate, data).to_wire())

    async def delete_by_project_id(self, project_id: str) -> int:
        return await self._delete_by_parent("project", project_id)


def create_remote_repositories(client: RemoteClient) -> Repositories:
    return Repositories(
        profiles=ApiProfileRepository(client),
        projects=ApiProjectRepository(client),
        criteria=ApiCriteriaRepository(client),
    )
