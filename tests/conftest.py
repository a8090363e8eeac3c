"""Global pytest configuration and fixtures."""

# Standard library imports
from unittest.mock import AsyncMock

# Third-party imports
import pytest

# Local imports
from system_model.application.coordinators import (
    ClusterCoordinator,
    NodeCoordinator,
    OrganizationCoordinator,
    RoleCoordinator,
)
from system_model.domain.entities import ClusterRequest, NodeRequest, RoleRequest
from system_model.infrastructure.repositories import (
    InMemoryClusterStore,
    InMemoryNodeStore,
    InMemoryOrganizationIndex,
    InMemoryRoleStore,
)


@pytest.fixture
def mock_adapter() -> AsyncMock:
    """Mock PostgreSQL adapter for store tests."""
    adapter = AsyncMock()
    adapter.execute_query.return_value = "EXECUTE 1"
    adapter.fetch_one.return_value = None
    adapter.fetch_all.return_value = []
    adapter.fetch_values.return_value = []
    return adapter


# Stores
@pytest.fixture
def organizations() -> InMemoryOrganizationIndex:
    return InMemoryOrganizationIndex()


@pytest.fixture
def clusters() -> InMemoryClusterStore:
    return InMemoryClusterStore()


@pytest.fixture
def nodes() -> InMemoryNodeStore:
    return InMemoryNodeStore()


@pytest.fixture
def roles() -> InMemoryRoleStore:
    return InMemoryRoleStore()


# Coordinators
@pytest.fixture
def organization_coordinator(organizations) -> OrganizationCoordinator:
    return OrganizationCoordinator(organizations)


@pytest.fixture
def cluster_coordinator(organizations, clusters, nodes) -> ClusterCoordinator:
    return ClusterCoordinator(organizations, clusters, nodes)


@pytest.fixture
def node_coordinator(organizations, clusters, nodes) -> NodeCoordinator:
    return NodeCoordinator(organizations, clusters, nodes)


@pytest.fixture
def role_coordinator(organizations, roles) -> RoleCoordinator:
    return RoleCoordinator(organizations, roles)


# Seeded topology
@pytest.fixture
async def org1(organization_coordinator):
    """An empty organization."""
    return await organization_coordinator.add_organization("org1")


@pytest.fixture
async def c1(cluster_coordinator, org1):
    """A cluster of org1."""
    return await cluster_coordinator.add_cluster(org1.organization_id, ClusterRequest(name="c1"))


@pytest.fixture
async def c2(cluster_coordinator, org1):
    """A second cluster of org1."""
    return await cluster_coordinator.add_cluster(org1.organization_id, ClusterRequest(name="c2"))


@pytest.fixture
async def n1(node_coordinator, org1):
    """An unattached node of org1."""
    return await node_coordinator.add_node(org1.organization_id, NodeRequest(ip="10.0.0.1"))


@pytest.fixture
async def n2(node_coordinator, org1):
    """A second unattached node of org1."""
    return await node_coordinator.add_node(org1.organization_id, NodeRequest(ip="10.0.0.2"))


@pytest.fixture
async def r1(role_coordinator, org1):
    """A role of org1."""
    return await role_coordinator.add_role(org1.organization_id, RoleRequest(name="admin"))
