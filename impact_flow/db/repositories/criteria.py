from typing import Iterable, List, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from impact_flow.db.models import SuccessCriteriaModel, as_dict
from impact_flow.db.repositories.base import write_guard
from impact_flow.domain.entities import SuccessCriteria


def to_criteria(row: SuccessCriteriaModel) -> SuccessCriteria:
    return SuccessCriteria.model_validate(as_dict(row))


class SqlCriteriaRepository:
    """Repository for success criteria rows."""

    def __init__(self, db: Session):
        self.db = db

    def get_all(self) -> List[SuccessCriteria]:
        rows = self.db.execute(select(SuccessCriteriaModel)).scalars().all()
        return [to_criteria(row) for row in rows]

    def get(self, criteria_id: str) -> Optional[SuccessCriteria]:
        row = self.db.get(SuccessCriteriaModel, criteria_id)
        return to_criteria(row) if row else None

    def list_for_project(self, project_id: str) -> List[SuccessCriteria]:
        rows = self.db.execute(
            select(SuccessCriteriaModel).where(SuccessCriteriaModel.project_id == project_id)
        ).scalars().all()
        return [to_criteria(row) for row in rows]

    def insert(self, criteria: SuccessCriteria) -> SuccessCriteria:
        with write_guard(self.db, f"create criteria {criteria.id}"):
            self.db.add(SuccessCriteriaModel(**criteria.model_dump()))
            self.db.commit()
        return criteria

    def replace(self, criteria: SuccessCriteria) -> Optional[SuccessCriteria]:
        row = self.db.get(SuccessCriteriaModel, criteria.id)
        if row is None:
            return None
        with write_guard(self.db, f"update criteria {criteria.id}"):
            for key, value in criteria.model_dump(exclude={"id"}).items():
                setattr(row, key, value)
            self.db.commit()
        return criteria

    def delete(self, criteria_id: str) -> bool:
        with write_guard(self.db, f"delete criteria {criteria_id}"):
            result = self.db.execute(
                delete(SuccessCriteriaModel).where(SuccessCriteriaModel.id == criteria_id)
            )
            self.db.commit()
        return result.rowcount > 0

    def delete_for_project(self, project_id: str) -> int:
        with write_guard(self.db, f"delete criteria of project {project_id}"):
            result = self.db.execute(
                delete(SuccessCriteriaModel).where(SuccessCriteriaModel.project_id == project_id)
            )
            self.db.commit()
        return result.rowcount

    def upsert_many(self, criteria: Iterable[SuccessCriteria]) -> int:
        count = 0
        with write_guard(self.db, "seed criteria"):
            for item in criteria:
                self.db.merge(SuccessCriteriaModel(**item.model_dump()))
                count += 1
            self.db.commit()
        return count

    def delete_all(self) -> int:
        with write_guard(self.db, "clear criteria"):
            result = self.db.execute(delete(SuccessCriteriaModel))
            self.db.commit()
        return result.rowcount
