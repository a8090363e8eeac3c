"""
Coordinators compose single-entity stores into multi-store operations.

Each write spanning several stores is an explicit saga with ordered steps
and compensating actions (see ``saga``).
"""

from .cluster_coordinator import ClusterCoordinator
from .node_coordinator import NodeCoordinator
from .organization_coordinator import OrganizationCoordinator
from .role_coordinator import RoleCoordinator
from .saga import Saga, SagaStep

__all__ = [
    "ClusterCoordinator",
    "NodeCoordinator",
    "OrganizationCoordinator",
    "RoleCoordinator",
    "Saga",
    "SagaStep",
]
