from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Path, Response
from sqlalchemy.orm import Session

from impact_flow.db.database import get_db
from impact_flow.db.repositories import SqlCriteriaRepository
from impact_flow.domain.entities import SuccessCriteria, SuccessCriteriaCreate, new_id
from impact_flow.domain.errors import NotFoundError
from impact_flow.schemas.api_schemas import CriteriaSeed, DeletedResponse, MessageResponse

router = APIRouter(prefix="/criteria")


@router.get("")
def get_all_criteria(db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    return [criteria.to_wire() for criteria in SqlCriteriaRepository(db).get_all()]


@router.post("/seed", response_model=MessageResponse, status_code=201)
def seed_criteria(body: CriteriaSeed, db: Session = Depends(get_db)):
    """
    Insert or replace success criteria by id (demo mode).
    """
    count = SqlCriteriaRepository(db).upsert_many(body.criteria)
    return MessageResponse(message=f"Seeded {count} criteria")


@router.get("/project/{project_id}")
def get_criteria_by_project(
    project_id: str = Path(..., title="The ID of the project"),
    db: Session = Depends(get_db)
) -> List[Dict[str, Any]]:
    return [criteria.to_wire() for criteria in SqlCriteriaRepository(db).list_for_project(project_id)]


@router.delete("/project/{project_id}", response_model=DeletedResponse)
def delete_criteria_by_project(
    project_id: str = Path(..., title="The ID of the project"),
    db: Session = Depends(get_db)
):
    return DeletedResponse(deleted=SqlCriteriaRepository(db).delete_for_project(project_id))


@router.get("/{criteria_id}")
def get_criteria(
    criteria_id: str = Path(..., title="The ID of the criterion to retrieve"),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    criteria = SqlCriteriaRepository(db).get(criteria_id)
    if not criteria:
        raise NotFoundError("Criteria not found")
    return criteria.to_wire()


@router.post("", status_code=201)
def create_criteria(criteria_data: SuccessCriteriaCreate, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """
    Add a success criterion to a project.
    """
    criteria = SuccessCriteria(id=new_id(), **criteria_data.model_dump())
    return SqlCriteriaRepository(db).insert(criteria).to_wire()


@router.put("/{criteria_id}")
def update_criteria(
    criteria_data: SuccessCriteriaCreate,
    criteria_id: str = Path(..., title="The ID of the criterion to update"),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    criteria = SqlCriteriaRepository(db).replace(SuccessCriteria(id=criteria_id, **criteria_data.model_dump()))
    if criteria is None:
        raise NotFoundError("Criteria not found")
    return criteria.to_wire()


@router.delete("/{criteria_id}", status_code=204)
def delete_criteria(
    criteria_id: str = Path(..., title="The ID of the criterion to delete"),
    db: Session = Depends(get_db)
):
    if not SqlCriteriaRepository(db).delete(criteria_id):
        raise NotFoundError("Criteria not found")
    return Response(status_code=204)
