"""
Request/response models for the topology HTTP API.

Request models only validate shape; every semantic check is left to the
coordinators.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, IPvAnyAddress

from system_model.domain.entities import (
    Cluster,
    ClusterRequest,
    ClusterState,
    ClusterStatus,
    ClusterType,
    ClusterUpdate,
    MultitenantSupport,
    Node,
    NodeRequest,
    NodeState,
    NodeStatus,
    NodeUpdate,
    Organization,
    OrganizationUpdate,
    Role,
    RoleRequest,
)


# Organizations
class CreateOrganizationRequest(BaseModel):
    """Organization creation request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200)


class UpdateOrganizationRequest(BaseModel):
    """Organization update request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(None, min_length=1, max_length=200)

    def to_update(self) -> OrganizationUpdate:
        return OrganizationUpdate(name=self.name)


class OrganizationResponse(BaseModel):
    organization_id: str
    name: str
    created: int
    cluster_ids: list[str]
    node_ids: list[str]
    role_ids: list[str]

    @classmethod
    def from_entity(cls, organization: Organization) -> OrganizationResponse:
        return cls(
            organization_id=organization.organization_id,
            name=organization.name,
            created=organization.created,
            cluster_ids=sorted(organization.cluster_ids),
            node_ids=sorted(organization.node_ids),
            role_ids=sorted(organization.role_ids),
        )


# Clusters
class CreateClusterRequest(BaseModel):
    """Cluster creation request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200)
    hostname: str = ""
    control_plane_hostname: str = ""
    cluster_type: ClusterType = ClusterType.KUBERNETES
    multitenant: MultitenantSupport = MultitenantSupport.YES
    labels: dict[str, str] = Field(default_factory=dict)
    cluster_id: str | None = Field(None, min_length=1)

    def to_request(self) -> ClusterRequest:
        return ClusterRequest(
            name=self.name,
            hostname=self.hostname,
            control_plane_hostname=self.control_plane_hostname,
            cluster_type=self.cluster_type,
            multitenant=self.multitenant,
            labels=dict(self.labels),
            cluster_id=self.cluster_id,
        )


class UpdateClusterRequest(BaseModel):
    """Cluster update request. Omitted fields are left untouched."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str | None = Field(None, min_length=1, max_length=200)
    hostname: str | None = None
    status: ClusterStatus | None = None
    state: ClusterState | None = None
    last_alive_timestamp: int | None = Field(None, ge=0)
    add_labels: dict[str, str] = Field(default_factory=dict)
    remove_labels: list[str] = Field(default_factory=list)

    def to_update(self) -> ClusterUpdate:
        return ClusterUpdate(
            name=self.name,
            hostname=self.hostname,
            status=self.status,
            state=self.state,
            last_alive_timestamp=self.last_alive_timestamp,
            add_labels=dict(self.add_labels),
            remove_labels=list(self.remove_labels),
        )


class ClusterResponse(BaseModel):
    cluster_id: str
    organization_id: str
    name: str
    cluster_type: ClusterType
    hostname: str
    control_plane_hostname: str
    multitenant: MultitenantSupport
    status: ClusterStatus
    state: ClusterState | None
    labels: dict[str, str]
    cordon: bool
    last_alive_timestamp: int
    node_ids: list[str]

    @classmethod
    def from_entity(cls, cluster: Cluster) -> ClusterResponse:
        return cls(
            cluster_id=cluster.cluster_id,
            organization_id=cluster.organization_id,
            name=cluster.name,
            cluster_type=cluster.cluster_type,
            hostname=cluster.hostname,
            control_plane_hostname=cluster.control_plane_hostname,
            multitenant=cluster.multitenant,
            status=cluster.status,
            state=cluster.state,
            labels=dict(cluster.labels),
            cordon=cluster.cordon,
            last_alive_timestamp=cluster.last_alive_timestamp,
            node_ids=list(cluster.node_ids),
        )


# Nodes
class CreateNodeRequest(BaseModel):
    """Node creation request."""

    ip: IPvAnyAddress
    labels: dict[str, str] = Field(default_factory=dict)
    node_id: str | None = Field(None, min_length=1)

    def to_request(self) -> NodeRequest:
        return NodeRequest(ip=str(self.ip), labels=dict(self.labels), node_id=self.node_id)


class UpdateNodeRequest(BaseModel):
    """Node update request. Omitted fields are left untouched."""

    status: NodeStatus | None = None
    state: NodeState | None = None
    add_labels: dict[str, str] = Field(default_factory=dict)
    remove_labels: list[str] = Field(default_factory=list)

    def to_update(self) -> NodeUpdate:
        return NodeUpdate(
            status=self.status,
            state=self.state,
            add_labels=dict(self.add_labels),
            remove_labels=list(self.remove_labels),
        )


class RemoveNodesRequest(BaseModel):
    """Bulk node removal request."""

    node_ids: list[str] = Field(..., min_length=1)


class NodeResponse(BaseModel):
    node_id: str
    organization_id: str
    cluster_id: str
    ip: str
    labels: dict[str, str]
    status: NodeStatus
    state: NodeState

    @classmethod
    def from_entity(cls, node: Node) -> NodeResponse:
        return cls(
            node_id=node.node_id,
            organization_id=node.organization_id,
            cluster_id=node.cluster_id,
            ip=node.ip,
            labels=dict(node.labels),
            status=node.status,
            state=node.state,
        )


# Roles
class CreateRoleRequest(BaseModel):
    """Role creation request."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    internal: bool = False
    role_id: str | None = Field(None, min_length=1)

    def to_request(self) -> RoleRequest:
        return RoleRequest(
            name=self.name,
            description=self.description,
            internal=self.internal,
            role_id=self.role_id,
        )


class RoleResponse(BaseModel):
    role_id: str
    organization_id: str
    name: str
    description: str
    internal: bool
    created: int

    @classmethod
    def from_entity(cls, role: Role) -> RoleResponse:
        return cls(
            role_id=role.role_id,
            organization_id=role.organization_id,
            name=role.name,
            description=role.description,
            internal=role.internal,
            created=role.created,
        )


class ErrorResponse(BaseModel):
    """Body of every error response."""

    error: str
    message: str
    identifiers: dict[str, Any] = Field(default_factory=dict)
