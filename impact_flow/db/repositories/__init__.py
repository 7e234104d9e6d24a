from impact_flow.db.repositories.profiles import SqlProfileRepository
from impact_flow.db.repositories.projects import SqlProjectRepository
from impact_flow.db.repositories.criteria import SqlCriteriaRepository

__all__ = ['SqlProfileRepository', 'SqlProjectRepository', 'SqlCriteriaRepository']
