from typing import Iterable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from impact_flow.db.models import ProjectModel, as_dict
from impact_flow.db.repositories.base import write_guard
from impact_flow.domain.entities import Project


def to_project(row: ProjectModel) -> Project:
    return Project.model_validate(as_dict(row))


class SqlProjectRepository:
    """Repository for project rows."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(self) -> List[Project]:
        rows = self.db.execute(select(ProjectModel)).scalars().all()
        return [to_project(row) for row in rows]

    def get(self, project_id: str) -> Optional[Project]:
        """
        Get a project by ID.

        Args:
            project_id: Project ID

        Returns:
            Project if found, None otherwise
        """
        row = self.db.get(ProjectModel, project_id)
        return to_project(row) if row else None

    def list_for_profile(self, profile_id: str) -> List[Project]:
        """
        Get all projects owned by a profile.

        Args:
            profile_id: Profile ID

        Returns:
            List of projects, empty if the profile owns none
        """
        rows = self.db.execute(
            select(ProjectModel).where(ProjectModel.profile_id == profile_id)
        ).scalars().all()
        return [to_project(row) for row in rows]

    def insert(self, project: Project) -> Project:
        """Insert a fully-formed project. Fails if ``profile_id`` is unknown."""
        with write_guard(self.db, f"create project {project.id}"):
            self.db.add(ProjectModel(**project.model_dump()))
            self.db.commit()
        return project

    def replace(self, project: Project) -> Optional[Project]:
        """
        Overwrite an existing project's columns, keeping its stored ``created_at``.

        Returns:
            The stored project, or None if the ID is unknown
        """
        row = self.db.get(ProjectModel, project.id)
        if row is None:
            return None
        with write_guard(self.db, f"update project {project.id}"):
            for key, value in project.model_dump(exclude={"id", "created_at"}).items():
                setattr(row, key, value)
            self.db.commit()
        return to_project(row)

    def delete(self, project_id: str) -> bool:
        """
        Delete a project by ID. Its criteria go with it through the foreign key.

        Returns:
            True if project was deleted, False otherwise
        """
        with write_guard(self.db, f"delete project {project_id}"):
            result = self.db.execute(delete(ProjectModel).where(ProjectModel.id == project_id))
            self.db.commit()
        return result.rowcount > 0

    def delete_for_profile(self, profile_id: str) -> int:
        """Delete every project owned by a profile and return how many went."""
        with write_guard(self.db, f"delete projects of profile {profile_id}"):
            result = self.db.execute(delete(ProjectModel).where(ProjectModel.profile_id == profile_id))
            self.db.commit()
        return result.rowcount

    def upsert_many(self, projects: Iterable[Project]) -> int:
        """Insert or replace projects by ID in one transaction."""
        count = 0
        with write_guard(self.db, "seed projects"):
            for project in projects:
                self.db.merge(ProjectModel(**project.model_dump()))
                count += 1
            self.db.commit()
        return count

    def delete_all(self) -> int:
        with write_guard(self.db, "clear projects"):
            result = self.db.execute(delete(ProjectModel))
            self.db.commit()
        return result.rowcount
