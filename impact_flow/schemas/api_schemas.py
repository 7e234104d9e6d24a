"""
API Request/Response Schemas using Pydantic.

Structure of HTTP requests and responses for the Impact Flow service. Record
bodies reuse the domain models, which already speak camelCase on the wire.
"""
from typing import List

from pydantic import BaseModel, Field

from impact_flow.domain.entities import Profile, Project, SuccessCriteria


class ProfileSeed(BaseModel):
    profiles: List[Profile] = Field(..., description="Profiles to insert or replace by id")


class ProjectSeed(BaseModel):
    projects: List[Project] = Field(..., description="Projects to insert or replace by id")


class CriteriaSeed(BaseModel):
    criteria: List[SuccessCriteria] = Field(..., description="Success criteria to insert or replace by id")


class MessageResponse(BaseModel):
    message: str = Field(..., description="Human readable outcome")


class DeletedResponse(BaseModel):
    deleted: int = Field(..., description="Number of rows removed")
