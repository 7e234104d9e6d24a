"""
Database Models using SQLAlchemy.

These define the relational schema shared by the embedded SQLite backend and
the companion HTTP service: profiles, projects and success criteria. Foreign
keys cascade on delete at the schema level; the application-level cascade in
the delegation service still runs for backends without a database.
"""
from sqlalchemy import Boolean, CheckConstraint, Column, ForeignKey, Index, String, Text
from sqlalchemy.orm import declarative_base

from impact_flow.domain.entities import PROJECT_STATUSES

Base = declarative_base()

_status_list = ", ".join(f"'{status}'" for status in PROJECT_STATUSES)


class ProfileModel(Base):
    __tablename__ = "profiles"

    id = Column(String, primary_key=True)
    name = Column(String, nullable=False)
    role = Column(String, nullable=False)
    avatar = Column(String, nullable=True)


class ProjectModel(Base):
    __tablename__ = "projects"
    __table_args__ = (
        CheckConstraint(f"status IN ({_status_list})", name="ck_projects_status"),
        Index("idx_projects_profile_id", "profile_id"),
    )

    id = Column(String, primary_key=True)
    profile_id = Column(String, ForeignKey("profiles.id", ondelete="CASCADE"), nullable=False)
    name = Column(String, nullable=False)
    purpose = Column(Text, nullable=False)
    importance = Column(Text, nullable=False)
    ideal_outcome = Column(Text, nullable=False)
    status = Column(String, nullable=False, default="planned")
    due_date = Column(String, nullable=True)
    comments = Column(Text, nullable=False, default="")
    created_at = Column(String, nullable=False)


class SuccessCriteriaModel(Base):
    __tablename__ = "success_criteria"
    __table_args__ = (
        Index("idx_criteria_project_id", "project_id"),
    )

    id = Column(String, primary_key=True)
    project_id = Column(String, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False)
    description = Column(Text, nullable=False)
    is_complete = Column(Boolean, nullable=False, default=False)


def as_dict(row) -> dict:
    """Column values of a mapped row keyed by column name."""
    return {column.name: getattr(row, column.name) for column in row.__table__.columns}
