"""Domain entities shared by every storage backend and the companion service.

Attributes are snake_case in Python and camelCase on the wire (``profileId``,
``idealOutcome``...). Each entity has a ``*Create`` input without the generated
fields and a ``*Update`` input where every field is optional; only fields that
were explicitly set take part in a merge.
"""
from __future__ import annotations

import uuid
from datetime import datetime, timezone
from enum import Enum
from typing import Annotated, Any, ClassVar, Dict, Mapping, Optional, Type, TypeVar, Union
from urllib.parse import urlparse

from pydantic import AfterValidator, BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ProjectStatus(str, Enum):
    PLANNED = "planned"
    IN_PROGRESS = "in_progress"
    COMPLETE = "complete"
    BLOCKED = "blocked"


PROJECT_STATUSES = tuple(status.value for status in ProjectStatus)

STATUS_LABELS: Dict[str, str] = {
    ProjectStatus.PLANNED.value: "Planned",
    ProjectStatus.IN_PROGRESS.value: "In Progress",
    ProjectStatus.COMPLETE.value: "Complete",
    ProjectStatus.BLOCKED.value: "Blocked",
}


def new_id() -> str:
    return str(uuid.uuid4())


def utc_now_iso() -> str:
    """Current UTC time as an ISO-8601 string with millisecond precision."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


def _check_avatar(value: Optional[str]) -> Optional[str]:
    if value is None:
        return value
    parsed = urlparse(value)
    if parsed.scheme not in ("http", "https") or not parsed.netloc:
        raise ValueError("Avatar must be an http(s) URL")
    return value


AvatarUrl = Annotated[Optional[str], AfterValidator(_check_avatar)]


class CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        use_enum_values=True,
        validate_default=True,
    )

    def to_wire(self) -> Dict[str, Any]:
        """JSON-ready dict with camelCase keys."""
        return self.model_dump(by_alias=True, mode="json")


# Profile

class ProfileCreate(CamelModel):
    name: str = Field(..., min_length=1)
    role: str = Field(..., min_length=1)
    avatar: AvatarUrl = None


class ProfileUpdate(CamelModel):
    name: Optional[str] = Field(None, min_length=1)
    role: Optional[str] = Field(None, min_length=1)
    avatar: AvatarUrl = None


# Project

class ProjectCreate(CamelModel):
    profile_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    purpose: str = Field(..., min_length=1)
    importance: str = Field(..., min_length=1)
    ideal_outcome: str = Field(..., min_length=1)
    status: ProjectStatus = ProjectStatus.PLANNED
    due_date: Optional[str] = None
    comments: str = ""


class ProjectUpdate(CamelModel):
    profile_id: Optional[str] = Field(None, min_length=1)
    name: Optional[str] = Field(None, min_length=1)
    purpose: Optional[str] = Field(None, min_length=1)
    importance: Optional[str] = Field(None, min_length=1)
    ideal_outcome: Optional[str] = Field(None, min_length=1)
    status: Optional[ProjectStatus] = None
    due_date: Optional[str] = None
    comments: Optional[str] = None


# Success criteria

class SuccessCriteriaCreate(CamelModel):
    project_id: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    is_complete: bool = False


class SuccessCriteriaUpdate(CamelModel):
    project_id: Optional[str] = Field(None, min_length=1)
    description: Optional[str] = Field(None, min_length=1)
    is_complete: Optional[bool] = None


E = TypeVar("E", bound="Entity")


class Entity(CamelModel):
    """Stored record. ``merge`` applies a partial update and returns a new record."""

    update_model: ClassVar[Type[CamelModel]]

    id: str = Field(..., min_length=1)

    def merge(self: E, changes: Union[CamelModel, Mapping[str, Any]]) -> E:
        if not isinstance(changes, BaseModel):
            changes = self.update_model.model_validate(changes)
        data = self.model_dump()
        data.update(changes.model_dump(exclude_unset=True))
        return type(self).model_validate(data)


class Profile(Entity):
    update_model: ClassVar[Type[CamelModel]] = ProfileUpdate

    name: str = Field(..., min_length=1)
    role: str = Field(..., min_length=1)
    avatar: AvatarUrl = None


class Project(Entity):
    update_model: ClassVar[Type[CamelModel]] = ProjectUpdate

    profile_id: str = Field(..., min_length=1)
    name: str = Field(..., min_length=1)
    purpose: str = Field(..., min_length=1)
    importance: str = Field(..., min_length=1)
    ideal_outcome: str = Field(..., min_length=1)
    status: ProjectStatus
    due_date: Optional[str] = None
    comments: str = ""
    created_at: str


class SuccessCriteria(Entity):
    update_model: ClassVar[Type[CamelModel]] = SuccessCriteriaUpdate

    project_id: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    is_complete: bool = False


M = TypeVar("M", bound=BaseModel)


def as_model(model_cls: Type[M], data: Union[M, Mapping[str, Any]]) -> M:
    """Accept either a model instance or a plain mapping (snake or camel keys)."""
    if isinstance(data, model_cls):
        return data
    if isinstance(data, BaseModel):
        data = data.model_dump(exclude_unset=True)
    return model_cls.model_validate(data)
