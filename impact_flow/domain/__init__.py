from impact_flow.domain.entities import (
    PROJECT_STATUSES,
    STATUS_LABELS,
    Profile,
    ProfileCreate,
    ProfileUpdate,
    Project,
    ProjectCreate,
    ProjectStatus,
    ProjectUpdate,
    SuccessCriteria,
    SuccessCriteriaCreate,
    SuccessCriteriaUpdate,
)
from impact_flow.domain.errors import (
    ConfigurationError,
    DomainError,
    NotFoundError,
    ReferentialIntegrityError,
    RemoteStorageError,
    StorageError,
)

__all__ = [
    'PROJECT_STATUSES', 'STATUS_LABELS', 'ProjectStatus',
    'Profile', 'ProfileCreate', 'ProfileUpdate',
    'Project', 'ProjectCreate', 'ProjectUpdate',
    'SuccessCriteria', 'SuccessCriteriaCreate', 'SuccessCriteriaUpdate',
    'ConfigurationError', 'DomainError', 'NotFoundError', 'ReferentialIntegrityError', 'RemoteStorageError', 'StorageError',
]
