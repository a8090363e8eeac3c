"""Domain entities of the topology model."""

from .cluster import (
    Cluster,
    ClusterRequest,
    ClusterState,
    ClusterStatus,
    ClusterType,
    ClusterUpdate,
    MultitenantSupport,
)
from .node import UNATTACHED, Node, NodeRequest, NodeState, NodeStatus, NodeUpdate
from .organization import Organization, OrganizationUpdate
from .role import Role, RoleRequest

__all__ = [
    "Cluster",
    "ClusterRequest",
    "ClusterState",
    "ClusterStatus",
    "ClusterType",
    "ClusterUpdate",
    "MultitenantSupport",
    "Node",
    "NodeRequest",
    "NodeState",
    "NodeStatus",
    "NodeUpdate",
    "Organization",
    "OrganizationUpdate",
    "Role",
    "RoleRequest",
    "UNATTACHED",
]
