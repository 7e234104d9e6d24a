from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Path, Response
from sqlalchemy.orm import Session

from impact_flow.db.database import get_db
from impact_flow.db.repositories import SqlProjectRepository
from impact_flow.domain.entities import Project, ProjectCreate, new_id, utc_now_iso
from impact_flow.domain.errors import NotFoundError
from impact_flow.schemas.api_schemas import DeletedResponse, MessageResponse, ProjectSeed

router = APIRouter(prefix="/projects")


@router.get("")
def get_all_projects(db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    """
    Retrieve all projects.
    """
    return [project.to_wire() for project in SqlProjectRepository(db).get_all()]


@router.post("/seed", response_model=MessageResponse, status_code=201)
def seed_projects(body: ProjectSeed, db: Session = Depends(get_db)):
    """
    Insert or replace projects by id (demo mode). Owning profiles must exist.
    """
    count = SqlProjectRepository(db).upsert_many(body.projects)
    return MessageResponse(message=f"Seeded {count} projects")


@router.get("/profile/{profile_id}")
def get_projects_by_profile(
    profile_id: str = Path(..., title="The ID of the owning profile"),
    db: Session = Depends(get_db)
) -> List[Dict[str, Any]]:
    return [project.to_wire() for project in SqlProjectRepository(db).list_for_profile(profile_id)]


@router.delete("/profile/{profile_id}", response_model=DeletedResponse)
def delete_projects_by_profile(
    profile_id: str = Path(..., title="The ID of the owning profile"),
    db: Session = Depends(get_db)
):
    """
    Delete every project of a profile. Always succeeds, reporting how many went.
    """
    return DeletedResponse(deleted=SqlProjectRepository(db).delete_for_profile(profile_id))


@router.get("/{project_id}")
def get_project(
    project_id: str = Path(..., title="The ID of the project to retrieve"),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    Get a specific project by ID.
    """
    project = SqlProjectRepository(db).get(project_id)
    if not project:
        raise NotFoundError("Project not found")
    return project.to_wire()


@router.post("", status_code=201)
def create_project(project_data: ProjectCreate, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """
    Create a project. The id and creation timestamp are assigned here.
    """
    project = Project(id=new_id(), created_at=utc_now_iso(), **project_data.model_dump())
    return SqlProjectRepository(db).insert(project).to_wire()


@router.put("/{project_id}")
def update_project(
    project_data: ProjectCreate,
    project_id: str = Path(..., title="The ID of the project to update"),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    Replace a project's fields. ``createdAt`` keeps its stored value.
    """
    repo = SqlProjectRepository(db)
    existing = repo.get(project_id)
    if existing is None:
        raise NotFoundError("Project not found")
    project = repo.replace(Project(id=project_id, created_at=existing.created_at, **project_data.model_dump()))
    return project.to_wire()


@router.delete("/{project_id}", status_code=204)
def delete_project(
    project_id: str = Path(..., title="The ID of the project to delete"),
    db: Session = Depends(get_db)
):
    if not SqlProjectRepository(db).delete(project_id):
        raise NotFoundError("Project not found")
    return Response(status_code=204)
