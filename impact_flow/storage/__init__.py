from impact_flow.storage.interface import (
    CriteriaRepository,
    ProfileRepository,
    ProjectRepository,
    Repositories,
)
from impact_flow.storage.factory import (
    FactoryState,
    RepositoryFactory,
    get_repositories,
    initialize_repositories,
    repository_factory,
    requires_async_init,
    reset_repositories,
    shutdown_repositories,
)

__all__ = [
    'CriteriaRepository', 'ProfileRepository', 'ProjectRepository', 'Repositories',
    'FactoryState', 'RepositoryFactory', 'repository_factory',
    'get_repositories', 'initialize_repositories', 'requires_async_init',
    'reset_repositories', 'shutdown_repositories',
]
