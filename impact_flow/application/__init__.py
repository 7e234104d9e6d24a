from impact_flow.application.delegation_service import DelegationService, start_delegation_service
from impact_flow.application.demo_data import SeedData, get_initial_data, seed_repositories

__all__ = ['DelegationService', 'start_delegation_service', 'SeedData', 'get_initial_data', 'seed_repositories']
