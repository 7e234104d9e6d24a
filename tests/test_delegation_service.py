"""Tests for the delegation service: cascades, optimistic creates and local state."""
from __future__ import annotations

import asyncio
from unittest.mock import AsyncMock, Mock

import pytest

from impact_flow.application.delegation_service import DelegationService, start_delegation_service
from impact_flow.application.demo_data import get_initial_data
from impact_flow.domain.errors import ReferentialIntegrityError, StorageError
from impact_flow.domain.events import (
    CriteriaCreated,
    DomainEventPublisher,
    ProfileCreated,
    ProfileDeleted,
    ProjectDeleted,
    ProjectUpdated,
)
from impact_flow.storage.memory import create_memory_repositories
from impact_flow.storage.sqlite import SQLiteDatabase, create_sqlite_repositories


@pytest.fixture(params=["memory", "sqlite", "remote"])
def open_service(request):
    """Async opener for a service over each backend."""
    if request.param == "memory":
        async def opener():
            return DelegationService(create_memory_repositories())
    elif request.param == "sqlite":
        database = SQLiteDatabase(persistence="memory")
        request.addfinalizer(database.close)

        async def opener():
            await database.initialize()
            return DelegationService(create_sqlite_repositories(database))
    else:
        repos = request.getfixturevalue("remote_repos")

        async def opener():
            return DelegationService(repos)
    return opener


@pytest.fixture
def recorded_events():
    """Capture every event published during the test."""
    events = []
    publisher = DomainEventPublisher()
    for event_type in (ProfileCreated, ProfileDeleted, ProjectDeleted, ProjectUpdated, CriteriaCreated):
        publisher.subscribe(event_type, events.append)
    return events


class TestScenario:
    """End-to-end behaviour on every backend."""

    @pytest.mark.asyncio
    async def test_alice_scenario(self, open_service):
        """Deleting a profile removes its projects and their criteria."""
        service = await open_service()
        repos = service.repos

        alice = await repos.profiles.create({"name": "Alice", "role": "Eng"})
        assert alice.name == "Alice" and alice.role == "Eng" and alice.avatar is None

        project = await repos.projects.create({
            "profileId": alice.id, "name": "X", "status": "planned",
            "purpose": "p", "importance": "i", "idealOutcome": "o",
        })
        assert project.created_at
        assert project.status == "planned"

        criteria = await repos.criteria.create({"projectId": project.id, "description": "done", "isComplete": False})

        assert await service.delete_profile(alice.id) is True

        assert await repos.projects.get_by_profile_id(alice.id) == []
        assert await repos.criteria.get_by_project_id(project.id) == []
        assert await repos.criteria.get_by_id(criteria.id) is None

    @pytest.mark.asyncio
    async def test_profile_delete_removes_exactly_its_projects(self, open_service):
        service = await open_service()
        data = get_initial_data(True)
        await service.repos.profiles.seed(data.profiles)
        await service.repos.projects.seed(data.projects)
        await service.repos.criteria.seed(data.criteria)
        await service.load()

        await service.delete_profile("2")

        remaining = {p.id for p in await service.repos.projects.get_all()}
        assert remaining == {"p1", "p3"}
        assert {c.project_id for c in await service.repos.criteria.get_all()} == {"p1", "p3"}
        assert {p.id for p in service.projects} == {"p1", "p3"}
        assert len(service.success_criteria) == 5

    @pytest.mark.asyncio
    async def test_project_delete_removes_exactly_its_criteria(self, open_service):
        service = await open_service()
        data = get_initial_data(True)
        await service.repos.profiles.seed(data.profiles)
        await service.repos.projects.seed(data.projects)
        await service.repos.criteria.seed(data.criteria)
        await service.load()

        assert await service.delete_project("p1") is True

        assert await service.repos.criteria.get_by_project_id("p1") == []
        assert len(await service.repos.criteria.get_all()) == 6
        assert service.get_project_criteria("p1") == []

    @pytest.mark.asyncio
    async def test_missing_ids(self, open_service):
        service = await open_service()
        assert await service.delete_profile("nope") is False
        assert await service.delete_project("nope") is False
        assert await service.delete_success_criteria("nope") is False
        assert await service.update_profile("nope", {"name": "X"}) is None


class TestOptimisticCreate:
    """Test the two-phase create."""

    @pytest.mark.asyncio
    async def test_provisional_record_is_returned_immediately(self, open_service):
        service = await open_service()

        provisional = service.add_profile({"name": "Alice", "role": "Eng"})

        assert provisional.id
        assert provisional.name == "Alice"
        assert service.profiles == [provisional]
        assert service.pending == 1

        await service.wait_for_pending()

        stored = await service.repos.profiles.get_all()
        assert len(stored) == 1
        assert stored[0].name == "Alice"
        assert service.profiles == stored
        assert service.pending == 0

    @pytest.mark.asyncio
    async def test_children_of_provisional_parents(self, open_service, project_input):
        """A chain of optimistic creates lands with the stored parent ids."""
        service = await open_service()

        profile = service.add_profile({"name": "Alice", "role": "Eng"})
        project = service.add_project(project_input(profile.id))
        assert project.created_at
        criteria = service.add_success_criteria({"projectId": project.id, "description": "done"})
        assert service.get_project_criteria(project.id) == [criteria]

        await service.wait_for_pending()

        stored_profile = (await service.repos.profiles.get_all())[0]
        stored_project = (await service.repos.projects.get_by_profile_id(stored_profile.id))[0]
        stored_criteria = await service.repos.criteria.get_by_project_id(stored_project.id)
        assert [c.description for c in stored_criteria] == ["done"]
        assert service.get_profile_projects(stored_profile.id) == [stored_project]
        assert service.get_project_criteria(stored_project.id) == stored_criteria

    @pytest.mark.asyncio
    async def test_update_with_provisional_id_waits_for_create(self):
        service = DelegationService(create_memory_repositories())
        provisional = service.add_profile({"name": "Alice", "role": "Eng"})

        updated = await service.update_profile(provisional.id, {"role": "Lead"})

        assert updated.role == "Lead"
        assert service.profiles == [updated]

    @pytest.mark.asyncio
    async def test_failed_background_create(self, caplog):
        repos = create_memory_repositories()
        repos.profiles.create = AsyncMock(side_effect=StorageError("disk gone"))
        service = DelegationService(repos)

        service.add_profile({"name": "Alice", "role": "Eng"})

        with pytest.raises(StorageError, match="disk gone"):
            await service.wait_for_pending()
        assert service.profiles == []
        assert "Background create" in caplog.text

        await service.wait_for_pending()

    @pytest.mark.asyncio
    async def test_update_and_delete_of_failed_create_report_absent(self):
        repos = create_memory_repositories()
        repos.profiles.create = AsyncMock(side_effect=StorageError("down"))
        service = DelegationService(repos)

        first = service.add_profile({"name": "A", "role": "Eng"})
        second = service.add_profile({"name": "B", "role": "Eng"})

        assert await service.update_profile(first.id, {"name": "C"}) is None
        assert await service.delete_profile(second.id) is False

        with pytest.raises(StorageError, match="down"):
            await service.wait_for_pending()
        await service.wait_for_pending()

    @pytest.mark.asyncio
    async def test_child_of_failed_parent_is_not_stored(self, project_input):
        repos = create_memory_repositories()
        repos.profiles.create = AsyncMock(side_effect=StorageError("down"))
        service = DelegationService(repos)
        profile = service.add_profile({"name": "A", "role": "Eng"})
        with pytest.raises(StorageError):
            await service.wait_for_pending()

        service.add_project(project_input(profile.id))

        with pytest.raises(ReferentialIntegrityError):
            await service.wait_for_pending()
        assert await repos.projects.get_all() == []
        assert service.projects == []


class TestCascadeWithPendingChildren:
    """Deletes wait for optimistic creates of their children."""

    @pytest.mark.asyncio
    async def test_profile_delete_during_child_creates(self, open_service, project_input):
        service = await open_service()
        profile = service.add_profile({"name": "Alice", "role": "Eng"})
        await service.wait_for_pending()

        project = service.add_project(project_input(profile.id))
        service.add_success_criteria({"projectId": project.id, "description": "done"})

        assert await service.delete_profile(profile.id) is True
        await service.wait_for_pending()

        assert await service.repos.profiles.get_all() == []
        assert await service.repos.projects.get_all() == []
        assert await service.repos.criteria.get_all() == []
        assert service.projects == []
        assert service.success_criteria == []

    @pytest.mark.asyncio
    async def test_project_delete_during_criteria_create(self, open_service, project_input):
        service = await open_service()
        profile = service.add_profile({"name": "Alice", "role": "Eng"})
        project = service.add_project(project_input(profile.id))
        await service.wait_for_pending()

        service.add_success_criteria({"projectId": project.id, "description": "done"})

        assert await service.delete_project(project.id) is True
        await service.wait_for_pending()

        assert await service.repos.projects.get_all() == []
        assert await service.repos.criteria.get_all() == []
        assert service.success_criteria == []


class TestLocalState:
    """Test the view state kept by the service."""

    @pytest.mark.asyncio
    async def test_updates_are_reflected(self, project_input):
        service = DelegationService(create_memory_repositories())
        profile = await service.repos.profiles.create({"name": "Alice", "role": "Eng"})
        project = await service.repos.projects.create(project_input(profile.id))
        await service.load()

        updated = await service.update_project(project.id, {"status": "in_progress"})

        assert updated.status == "in_progress"
        assert service.get_profile_projects(profile.id) == [updated]

    @pytest.mark.asyncio
    async def test_criteria_update(self, project_input):
        service = DelegationService(create_memory_repositories())
        profile = await service.repos.profiles.create({"name": "Alice", "role": "Eng"})
        project = await service.repos.projects.create(project_input(profile.id))
        criteria = await service.repos.criteria.create({"projectId": project.id, "description": "done"})
        await service.load()

        updated = await service.update_success_criteria(criteria.id, {"isComplete": True})

        assert service.get_project_criteria(project.id) == [updated]
        assert updated.is_complete is True


class TestEvents:
    """Test published domain events."""

    @pytest.mark.asyncio
    async def test_create_and_delete_events(self, recorded_events, project_input):
        service = DelegationService(create_memory_repositories())
        profile = service.add_profile({"name": "Alice", "role": "Eng"})
        project = service.add_project(project_input(profile.id))
        service.add_success_criteria({"projectId": project.id, "description": "done"})
        await service.wait_for_pending()

        stored_profile = service.profiles[0]
        stored_project = service.projects[0]
        await service.update_project(stored_project.id, {"status": "blocked"})
        await service.delete_profile(stored_profile.id)

        kinds = [type(event) for event in recorded_events]
        assert kinds == [ProfileCreated, CriteriaCreated, ProjectUpdated, ProfileDeleted]
        deleted = recorded_events[-1]
        assert isinstance(deleted, ProfileDeleted)
        assert deleted.aggregate_id == stored_profile.id
        assert deleted.project_ids == [stored_project.id]
        updated = next(e for e in recorded_events if isinstance(e, ProjectUpdated))
        assert updated.changes == {"status": "blocked"}

    @pytest.mark.asyncio
    async def test_custom_publisher(self):
        publisher = Mock()
        service = DelegationService(create_memory_repositories(), publisher=publisher)
        profile = await service.repos.profiles.create({"name": "Alice", "role": "Eng"})

        await service.delete_profile(profile.id)

        event = publisher.publish.call_args.args[0]
        assert isinstance(event, ProfileDeleted)
        assert event.project_ids == []


class TestStartup:
    """Test service bootstrap from settings."""

    @pytest.mark.asyncio
    async def test_demo_mode_seeds_empty_storage(self):
        service = await start_delegation_service(demo_mode=True)
        assert len(service.profiles) == 3
        assert len(service.projects) == 4
        assert len(service.success_criteria) == 9

    @pytest.mark.asyncio
    async def test_without_demo_mode(self, test_settings):
        service = await start_delegation_service()
        assert service.profiles == []

    @pytest.mark.asyncio
    async def test_sqlite_backend(self, test_settings):
        test_settings.STORAGE_TYPE = "sqlite"
        first = await start_delegation_service(demo_mode=True)
        second = await start_delegation_service(demo_mode=True)
        assert first.repos is second.repos
        assert len(second.profiles) == 3

    @pytest.mark.asyncio
    async def test_concurrent_events_loop(self):
        service = DelegationService(create_memory_repositories())
        for i in range(10):
            service.add_profile({"name": f"P{i}", "role": "r"})
        await asyncio.gather(service.wait_for_pending(), service.wait_for_pending())
        assert len(await service.repos.profiles.get_all()) == 10
