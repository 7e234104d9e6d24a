from typing import Any, Dict, List

from fastapi import APIRouter, Depends, Path, Response
from sqlalchemy.orm import Session

from impact_flow.db.database import get_db
from impact_flow.db.repositories import SqlProfileRepository
from impact_flow.domain.entities import Profile, ProfileCreate, new_id
from impact_flow.domain.errors import NotFoundError
from impact_flow.schemas.api_schemas import MessageResponse, ProfileSeed

router = APIRouter(prefix="/profiles")


@router.get("")
def get_all_profiles(db: Session = Depends(get_db)) -> List[Dict[str, Any]]:
    """
    Retrieve all profiles.
    """
    return [profile.to_wire() for profile in SqlProfileRepository(db).get_all()]


@router.post("/seed", response_model=MessageResponse, status_code=201)
def seed_profiles(body: ProfileSeed, db: Session = Depends(get_db)):
    """
    Insert or replace profiles by id (demo mode).
    """
    count = SqlProfileRepository(db).upsert_many(body.profiles)
    return MessageResponse(message=f"Seeded {count} profiles")


@router.get("/{profile_id}")
def get_profile(
    profile_id: str = Path(..., title="The ID of the profile to retrieve"),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    profile = SqlProfileRepository(db).get(profile_id)
    if not profile:
        raise NotFoundError("Profile not found")
    return profile.to_wire()


@router.post("", status_code=201)
def create_profile(profile_data: ProfileCreate, db: Session = Depends(get_db)) -> Dict[str, Any]:
    """
    Create a profile with a freshly generated id.
    """
    profile = Profile(id=new_id(), **profile_data.model_dump())
    return SqlProfileRepository(db).insert(profile).to_wire()


@router.put("/{profile_id}")
def update_profile(
    profile_data: ProfileCreate,
    profile_id: str = Path(..., title="The ID of the profile to update"),
    db: Session = Depends(get_db)
) -> Dict[str, Any]:
    """
    Replace every field of a profile.
    """
    profile = SqlProfileRepository(db).replace(Profile(id=profile_id, **profile_data.model_dump()))
    if profile is None:
        raise NotFoundError("Profile not found")
    return profile.to_wire()


@router.delete("/{profile_id}", status_code=204)
def delete_profile(
    profile_id: str = Path(..., title="The ID of the profile to delete"),
    db: Session = Depends(get_db)
):
    """
    Delete a profile. Its projects and their criteria are removed by the database.
    """
    if not SqlProfileRepository(db).delete(profile_id):
        raise NotFoundError("Profile not found")
    return Response(status_code=204)
