"""
Cluster Entity - Collection of nodes supporting application orchestration
"""

from __future__ import annotations

# Standard library imports
from dataclasses import dataclass, field
from enum import Enum
from uuid import uuid4

from .labels import apply_label_changes


class ClusterType(Enum):
    """Cluster type enumeration"""

    KUBERNETES = "kubernetes"
    DOCKER = "docker"


class MultitenantSupport(Enum):
    """Multitenancy support enumeration"""

    YES = "yes"
    NO = "no"


class ClusterStatus(Enum):
    """Cluster status from monitoring information"""

    UNKNOWN = "unknown"
    OFFLINE = "offline"
    ONLINE = "online"
    OFFLINE_CORDON = "offline_cordon"
    ONLINE_CORDON = "online_cordon"


class ClusterState(Enum):
    """Cluster state regarding provisioning and installation"""

    PROVISIONING = "provisioning"
    INSTALL_IN_PROGRESS = "install_in_progress"
    INSTALLED = "installed"
    SCALING = "scaling"
    FAILURE = "failure"
    UNINSTALLING = "uninstalling"
    DECOMISSIONING = "decomissioning"


@dataclass
class ClusterRequest:
    """Request parameters for creating a cluster."""

    name: str
    hostname: str = ""
    control_plane_hostname: str = ""
    cluster_type: ClusterType = ClusterType.KUBERNETES
    multitenant: MultitenantSupport = MultitenantSupport.YES
    labels: dict[str, str] = field(default_factory=dict)
    # Optional caller supplied identifier, used to retry an interrupted add
    cluster_id: str | None = None


@dataclass
class ClusterUpdate:
    """Optional changes to a cluster. Fields left as None are untouched."""

    name: str | None = None
    hostname: str | None = None
    status: ClusterStatus | None = None
    state: ClusterState | None = None
    last_alive_timestamp: int | None = None
    add_labels: dict[str, str] = field(default_factory=dict)
    remove_labels: list[str] = field(default_factory=list)


@dataclass
class Cluster:
    """
    Cluster entity.

    Logically owned by one organization but keyed only by its own
    identifier. ``node_ids`` is kept in insertion order without duplicates
    and is maintained exclusively by the cluster store's node list
    operations.
    """

    # Identity
    cluster_id: str = field(default_factory=lambda: str(uuid4()))
    organization_id: str = ""

    # Descriptive attributes
    name: str = ""
    cluster_type: ClusterType = ClusterType.KUBERNETES
    hostname: str = ""
    control_plane_hostname: str = ""
    multitenant: MultitenantSupport = MultitenantSupport.YES
    status: ClusterStatus = ClusterStatus.UNKNOWN
    state: ClusterState | None = None
    labels: dict[str, str] = field(default_factory=dict)
    cordon: bool = False
    last_alive_timestamp: int = 0

    # Attached nodes
    node_ids: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        """Validate cluster after initialization"""
        if not self.cluster_id:
            raise ValueError("Cluster identifier cannot be empty")
        if not self.organization_id:
            raise ValueError("Cluster organization cannot be empty")

    @classmethod
    def create(cls, organization_id: str, request: ClusterRequest) -> Cluster:
        """Create a new cluster owned by the given organization."""
        cluster = cls(
            organization_id=organization_id,
            name=request.name,
            cluster_type=request.cluster_type,
            hostname=request.hostname,
            control_plane_hostname=request.control_plane_hostname,
            multitenant=request.multitenant,
            status=ClusterStatus.UNKNOWN,
            labels=dict(request.labels),
            cordon=False,
        )
        if request.cluster_id:
            cluster.cluster_id = request.cluster_id
        return cluster

    def apply_update(self, update: ClusterUpdate) -> None:
        """Apply the fields set in the update."""
        if update.name is not None:
            self.name = update.name
        if update.hostname is not None:
            self.hostname = update.hostname
        if update.add_labels or update.remove_labels:
            self.labels = apply_label_changes(self.labels, update.add_labels, update.remove_labels)
        if update.status is not None:
            self.status = update.status
        if update.state is not None:
            self.state = update.state
        if update.last_alive_timestamp is not None:
            self.last_alive_timestamp = update.last_alive_timestamp
