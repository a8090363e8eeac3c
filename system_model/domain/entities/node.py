"""
Node Entity - Machine that belongs to an organization and optionally a cluster
"""

from __future__ import annotations

# Standard library imports
from dataclasses import dataclass, field
from enum import Enum
from uuid import uuid4

from .labels import apply_label_changes

# Value of cluster_id for a node that is not attached to any cluster
UNATTACHED = ""


class NodeStatus(Enum):
    """Infrastructure status of a node"""

    INSTALLING = "installing"
    RUNNING = "running"
    ERROR = "error"


class NodeState(Enum):
    """Assignment state of a node"""

    UNREGISTERED = "unregistered"
    UNASSIGNED = "unassigned"
    ASSIGNED = "assigned"


@dataclass
class NodeRequest:
    """Request parameters for creating a node."""

    ip: str
    labels: dict[str, str] = field(default_factory=dict)
    # Optional caller supplied identifier, used to retry an interrupted add
    node_id: str | None = None


@dataclass
class NodeUpdate:
    """Optional changes to a node. Fields left as None are untouched."""

    status: NodeStatus | None = None
    state: NodeState | None = None
    add_labels: dict[str, str] = field(default_factory=dict)
    remove_labels: list[str] = field(default_factory=list)


@dataclass
class Node:
    """Node entity."""

    # Identity
    node_id: str = field(default_factory=lambda: str(uuid4()))
    organization_id: str = ""
    cluster_id: str = UNATTACHED

    # Attributes
    ip: str = ""
    labels: dict[str, str] = field(default_factory=dict)
    status: NodeStatus = NodeStatus.INSTALLING
    state: NodeState = NodeState.UNREGISTERED

    def __post_init__(self) -> None:
        """Validate node after initialization"""
        if not self.node_id:
            raise ValueError("Node identifier cannot be empty")
        if not self.organization_id:
            raise ValueError("Node organization cannot be empty")

    @classmethod
    def create(cls, organization_id: str, request: NodeRequest) -> Node:
        """Create a new, unattached node owned by the given organization."""
        node = cls(
            organization_id=organization_id,
            cluster_id=UNATTACHED,
            ip=request.ip,
            labels=dict(request.labels),
        )
        if request.node_id:
            node.node_id = request.node_id
        return node

    @property
    def is_attached(self) -> bool:
        """Check if the node is attached to a cluster."""
        return self.cluster_id != UNATTACHED

    def apply_update(self, update: NodeUpdate) -> None:
        """Apply the fields set in the update."""
        if update.status is not None:
            self.status = update.status
        if update.state is not None:
            self.state = update.state
        if update.add_labels or update.remove_labels:
            self.labels = apply_label_changes(self.labels, update.add_labels, update.remove_labels)
