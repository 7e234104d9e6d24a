from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Union

from impact_flow.domain.entities import (
    Profile,
    ProfileCreate,
    ProfileUpdate,
    Project,
    ProjectCreate,
    ProjectUpdate,
    SuccessCriteria,
    SuccessCriteriaCreate,
    SuccessCriteriaUpdate,
)

ProfileInput = Union[ProfileCreate, Mapping[str, Any]]
ProfileChanges = Union[ProfileUpdate, Mapping[str, Any]]
ProjectInput = Union[ProjectCreate, Mapping[str, Any]]
ProjectChanges = Union[ProjectUpdate, Mapping[str, Any]]
CriteriaInput = Union[SuccessCriteriaCreate, Mapping[str, Any]]
CriteriaChanges = Union[SuccessCriteriaUpdate, Mapping[str, Any]]


class ProfileRepository(ABC):
    """
    Abstract interface for profile storage. Implemented in memory, on the
    embedded SQLite database and against the companion HTTP service.

    A missing id is never an error: lookups return None, deletes return False.
    """

    @abstractmethod
    async def get_all(self) -> List[Profile]:
        """Return every stored profile."""

    @abstractmethod
    async def get_by_id(self, profile_id: str) -> Optional[Profile]:
        """
        Get a profile by ID.

        Args:
            profile_id: Profile ID

        Returns:
            Profile if found, None otherwise
        """

    @abstractmethod
    async def create(self, data: ProfileInput) -> Profile:
        """
        Create a profile and assign it a new ID.

        Args:
            data: Profile fields without an ID

        Returns:
            The stored profile
        """

    @abstractmethod
    async def update(self, profile_id: str, changes: ProfileChanges) -> Optional[Profile]:
        """
        Merge the given fields into an existing profile.

        Args:
            profile_id: Profile ID
            changes: Only the fields that should change

        Returns:
            Updated profile, or None if the ID is unknown
        """

    @abstractmethod
    async def delete(self, profile_id: str) -> bool:
        """
        Delete a profile by ID.

        Returns:
            True if a row existed and was removed, False otherwise
        """

    @abstractmethod
    async def seed(self, profiles: Iterable[Profile]) -> None:
        """Insert or replace every given profile by ID."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every profile."""


class ProjectRepository(ABC):
    """Abstract interface for project storage."""

    @abstractmethod
    async def get_all(self) -> List[Project]:
        """Return every stored project."""

    @abstractmethod
    async def get_by_id(self, project_id: str) -> Optional[Project]:
        """Get a project by ID, None if not found."""

    @abstractmethod
    async def get_by_profile_id(self, profile_id: str) -> List[Project]:
        """Return the projects owned by a profile."""

    @abstractmethod
    async def create(self, data: ProjectInput) -> Project:
        """
        Create a project, assigning a new ID and the creation timestamp.

        Args:
            data: Project fields without ``id`` and ``created_at``

        Returns:
            The stored project
        """

    @abstractmethod
    async def update(self, project_id: str, changes: ProjectChanges) -> Optional[Project]:
        """Merge fields into a project. ``created_at`` never changes. None if not found."""

    @abstractmethod
    async def delete(self, project_id: str) -> bool:
        """Delete a project by ID. True iff a row was removed."""

    @abstractmethod
    async def delete_by_profile_id(self, profile_id: str) -> int:
        """
        Delete every project owned by a profile.

        Returns:
            Number of projects removed, 0 if none
        """

    @abstractmethod
    async def seed(self, projects: Iterable[Project]) -> None:
        """Insert or replace every given project by ID."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every project."""


class CriteriaRepository(ABC):
    """Abstract interface for success criteria storage."""

    @abstractmethod
    async def get_all(self) -> List[SuccessCriteria]:
        """Return every stored criterion."""

    @abstractmethod
    async def get_by_id(self, criteria_id: str) -> Optional[SuccessCriteria]:
        """Get a criterion by ID, None if not found."""

    @abstractmethod
    async def get_by_project_id(self, project_id: str) -> List[SuccessCriteria]:
        """Return the criteria attached to a project."""

    @abstractmethod
    async def create(self, data: CriteriaInput) -> SuccessCriteria:
        """Create a criterion and assign it a new ID."""

    @abstractmethod
    async def update(self, criteria_id: str, changes: CriteriaChanges) -> Optional[SuccessCriteria]:
        """Merge fields into a criterion. None if not found."""

    @abstractmethod
    async def delete(self, criteria_id: str) -> bool:
        """Delete a criterion by ID. True iff a row was removed."""

    @abstractmethod
    async def delete_by_project_id(self, project_id: str) -> int:
        """Delete every criterion of a project and return how many were removed."""

    @abstractmethod
    async def seed(self, criteria: Iterable[SuccessCriteria]) -> None:
        """Insert or replace every given criterion by ID."""

    @abstractmethod
    async def clear(self) -> None:
        """Remove every criterion."""


@dataclass(frozen=True)
class Repositories:
    """The three repositories of one backend, handed out as a unit."""
    profiles: ProfileRepository
    projects: ProjectRepository
    criteria: CriteriaRepository
