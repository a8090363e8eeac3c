"""
Topology API endpoints.

Each endpoint decodes its request, invokes exactly one coordinator
operation and encodes the result. Errors are mapped by the handlers in
``errors``.
"""

import logging

from fastapi import APIRouter, Depends, Request, Response, status
from fastapi.responses import JSONResponse

from system_model.infrastructure.container import TopologyContainer

from .schemas import (
    ClusterResponse,
    CreateClusterRequest,
    CreateNodeRequest,
    CreateOrganizationRequest,
    CreateRoleRequest,
    NodeResponse,
    OrganizationResponse,
    RemoveNodesRequest,
    RoleResponse,
    UpdateClusterRequest,
    UpdateNodeRequest,
    UpdateOrganizationRequest,
)

logger = logging.getLogger(__name__)

organizations_router = APIRouter(prefix="/organizations", tags=["Organizations"])
clusters_router = APIRouter(prefix="/organizations/{organization_id}/clusters", tags=["Clusters"])
nodes_router = APIRouter(prefix="/organizations/{organization_id}", tags=["Nodes"])
roles_router = APIRouter(prefix="/organizations/{organization_id}/roles", tags=["Roles"])
health_router = APIRouter(tags=["Health"])


def get_container(request: Request) -> TopologyContainer:
    """Get the container attached to the running application."""
    return request.app.state.container  # type: ignore[no-any-return]


# Organizations
@organizations_router.post(
    "", status_code=status.HTTP_201_CREATED, response_model=OrganizationResponse
)
async def add_organization(
    body: CreateOrganizationRequest, container: TopologyContainer = Depends(get_container)
) -> OrganizationResponse:
    organization = await container.organizations.add_organization(body.name)
    return OrganizationResponse.from_entity(organization)


@organizations_router.get("", response_model=list[OrganizationResponse])
async def list_organizations(
    container: TopologyContainer = Depends(get_container),
) -> list[OrganizationResponse]:
    organizations = await container.organizations.list_organizations()
    return [OrganizationResponse.from_entity(organization) for organization in organizations]


@organizations_router.get("/{organization_id}", response_model=OrganizationResponse)
async def get_organization(
    organization_id: str, container: TopologyContainer = Depends(get_container)
) -> OrganizationResponse:
    organization = await container.organizations.get_organization(organization_id)
    return OrganizationResponse.from_entity(organization)


@organizations_router.patch("/{organization_id}", response_model=OrganizationResponse)
async def update_organization(
    organization_id: str,
    body: UpdateOrganizationRequest,
    container: TopologyContainer = Depends(get_container),
) -> OrganizationResponse:
    organization = await container.organizations.update_organization(
        organization_id, body.to_update()
    )
    return OrganizationResponse.from_entity(organization)


# Clusters
@clusters_router.post("", status_code=status.HTTP_201_CREATED, response_model=ClusterResponse)
async def add_cluster(
    organization_id: str,
    body: CreateClusterRequest,
    container: TopologyContainer = Depends(get_container),
) -> ClusterResponse:
    cluster = await container.clusters.add_cluster(organization_id, body.to_request())
    return ClusterResponse.from_entity(cluster)


@clusters_router.get("", response_model=list[ClusterResponse])
async def list_clusters(
    organization_id: str, container: TopologyContainer = Depends(get_container)
) -> list[ClusterResponse]:
    clusters = await container.clusters.list_clusters(organization_id)
    return [ClusterResponse.from_entity(cluster) for cluster in clusters]


@clusters_router.get("/{cluster_id}", response_model=ClusterResponse)
async def get_cluster(
    organization_id: str, cluster_id: str, container: TopologyContainer = Depends(get_container)
) -> ClusterResponse:
    cluster = await container.clusters.get_cluster(organization_id, cluster_id)
    return ClusterResponse.from_entity(cluster)


@clusters_router.patch("/{cluster_id}", response_model=ClusterResponse)
async def update_cluster(
    organization_id: str,
    cluster_id: str,
    body: UpdateClusterRequest,
    container: TopologyContainer = Depends(get_container),
) -> ClusterResponse:
    cluster = await container.clusters.update_cluster(
        organization_id, cluster_id, body.to_update()
    )
    return ClusterResponse.from_entity(cluster)


@clusters_router.delete("/{cluster_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_cluster(
    organization_id: str, cluster_id: str, container: TopologyContainer = Depends(get_container)
) -> Response:
    await container.clusters.remove_cluster(organization_id, cluster_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@clusters_router.post("/{cluster_id}/cordon", response_model=ClusterResponse)
async def cordon_cluster(
    organization_id: str, cluster_id: str, container: TopologyContainer = Depends(get_container)
) -> ClusterResponse:
    cluster = await container.clusters.cordon_cluster(organization_id, cluster_id)
    return ClusterResponse.from_entity(cluster)


@clusters_router.post("/{cluster_id}/uncordon", response_model=ClusterResponse)
async def uncordon_cluster(
    organization_id: str, cluster_id: str, container: TopologyContainer = Depends(get_container)
) -> ClusterResponse:
    cluster = await container.clusters.uncordon_cluster(organization_id, cluster_id)
    return ClusterResponse.from_entity(cluster)


# Nodes
@nodes_router.post("/nodes", status_code=status.HTTP_201_CREATED, response_model=NodeResponse)
async def add_node(
    organization_id: str,
    body: CreateNodeRequest,
    container: TopologyContainer = Depends(get_container),
) -> NodeResponse:
    node = await container.nodes.add_node(organization_id, body.to_request())
    return NodeResponse.from_entity(node)


@nodes_router.post("/nodes/remove", status_code=status.HTTP_204_NO_CONTENT)
async def remove_nodes(
    organization_id: str,
    body: RemoveNodesRequest,
    container: TopologyContainer = Depends(get_container),
) -> Response:
    await container.nodes.remove_nodes(organization_id, body.node_ids)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


@nodes_router.patch("/nodes/{node_id}", response_model=NodeResponse)
async def update_node(
    organization_id: str,
    node_id: str,
    body: UpdateNodeRequest,
    container: TopologyContainer = Depends(get_container),
) -> NodeResponse:
    node = await container.nodes.update_node(organization_id, node_id, body.to_update())
    return NodeResponse.from_entity(node)


@nodes_router.post("/clusters/{cluster_id}/nodes/{node_id}", response_model=NodeResponse)
async def attach_node(
    organization_id: str,
    cluster_id: str,
    node_id: str,
    container: TopologyContainer = Depends(get_container),
) -> NodeResponse:
    node = await container.nodes.attach_node(organization_id, cluster_id, node_id)
    return NodeResponse.from_entity(node)


@nodes_router.get("/clusters/{cluster_id}/nodes", response_model=list[NodeResponse])
async def list_nodes(
    organization_id: str, cluster_id: str, container: TopologyContainer = Depends(get_container)
) -> list[NodeResponse]:
    nodes = await container.nodes.list_nodes(organization_id, cluster_id)
    return [NodeResponse.from_entity(node) for node in nodes]


# Roles
@roles_router.post("", status_code=status.HTTP_201_CREATED, response_model=RoleResponse)
async def add_role(
    organization_id: str,
    body: CreateRoleRequest,
    container: TopologyContainer = Depends(get_container),
) -> RoleResponse:
    role = await container.roles.add_role(organization_id, body.to_request())
    return RoleResponse.from_entity(role)


@roles_router.get("", response_model=list[RoleResponse])
async def list_roles(
    organization_id: str, container: TopologyContainer = Depends(get_container)
) -> list[RoleResponse]:
    roles = await container.roles.list_roles(organization_id)
    return [RoleResponse.from_entity(role) for role in roles]


@roles_router.get("/{role_id}", response_model=RoleResponse)
async def get_role(
    organization_id: str, role_id: str, container: TopologyContainer = Depends(get_container)
) -> RoleResponse:
    role = await container.roles.get_role(organization_id, role_id)
    return RoleResponse.from_entity(role)


@roles_router.delete("/{role_id}", status_code=status.HTTP_204_NO_CONTENT)
async def remove_role(
    organization_id: str, role_id: str, container: TopologyContainer = Depends(get_container)
) -> Response:
    await container.roles.remove_role(organization_id, role_id)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


# Health
@health_router.get("/health")
async def health(container: TopologyContainer = Depends(get_container)) -> JSONResponse:
    report = await container.health_check()
    code = status.HTTP_200_OK if report["status"] == "healthy" else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=code, content=report)
