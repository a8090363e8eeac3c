"""
End-to-end topology scenarios across all coordinators.

Runs against independent in-memory stores wired by the container, the same
way the service wires them at startup.
"""

# Standard library imports
import asyncio

# Third-party imports
import pytest

# Local imports
from system_model.application.exceptions_application import NodeAlreadyAttachedError
from system_model.application.interfaces.exceptions import EntityNotFoundError
from system_model.domain.entities import ClusterRequest, NodeRequest, RoleRequest
from system_model.infrastructure.config import AppConfig
from system_model.infrastructure.container import TopologyContainer


@pytest.fixture
def container():
    return TopologyContainer(AppConfig())


@pytest.fixture
async def topology(container):
    """org1 with clusters c1 and c2 and an unattached node n1."""
    org = await container.organizations.add_organization("org1")
    c1 = await container.clusters.add_cluster(org.organization_id, ClusterRequest(name="c1"))
    c2 = await container.clusters.add_cluster(org.organization_id, ClusterRequest(name="c2"))
    n1 = await container.nodes.add_node(org.organization_id, NodeRequest(ip="10.0.0.1"))
    return org.organization_id, c1.cluster_id, c2.cluster_id, n1.node_id


async def snapshot(container):
    """Capture every store's contents."""
    stores = container.stores
    organizations = await stores.organizations.list()
    result = {}
    for organization in organizations:
        org_id = organization.organization_id
        clusters = await stores.organizations.list_clusters(org_id)
        result[org_id] = {
            "clusters": {cid: await stores.clusters.list_nodes(cid) for cid in clusters},
            "nodes": [
                (await stores.nodes.get(nid)).cluster_id
                for nid in await stores.organizations.list_nodes(org_id)
            ],
            "roles": await stores.organizations.list_roles(org_id),
        }
    return result


@pytest.mark.integration
class TestTopologyScenarios:
    """Test the reference scenarios."""

    async def test_add_node_to_organization(self, container):
        """Test an added node is unattached and listed by its organization."""
        org = await container.organizations.add_organization("org1")

        node = await container.nodes.add_node(org.organization_id, NodeRequest(ip="10.0.0.1"))

        assert node.node_id
        assert node.cluster_id == ""
        organization = await container.organizations.get_organization(org.organization_id)
        assert node.node_id in organization.node_ids

    async def test_attach_and_list(self, container, topology):
        """Test an attached node is the only node listed by its cluster."""
        org_id, c1, _, n1 = topology

        await container.nodes.attach_node(org_id, c1, n1)

        listed = await container.nodes.list_nodes(org_id, c1)
        assert [node.node_id for node in listed] == [n1]

    async def test_remove_attached_node(self, container, topology):
        """Test removing an attached node clears every reference."""
        org_id, c1, _, n1 = topology
        await container.nodes.attach_node(org_id, c1, n1)

        await container.nodes.remove_nodes(org_id, [n1])

        assert await container.nodes.list_nodes(org_id, c1) == []
        assert not await container.stores.nodes.exists(n1)
        assert not await container.stores.organizations.node_exists(org_id, n1)

    async def test_remove_unknown_node(self, container, topology):
        """Test removing an unknown node fails without side effects."""
        org_id, c1, _, n1 = topology
        await container.nodes.attach_node(org_id, c1, n1)
        before = await snapshot(container)

        with pytest.raises(EntityNotFoundError):
            await container.nodes.remove_nodes(org_id, ["missing-id"])

        assert await snapshot(container) == before

    async def test_remove_mixed_ids(self, container, topology):
        """Test one unknown id fails the whole call before any write."""
        org_id, c1, _, n1 = topology
        await container.nodes.attach_node(org_id, c1, n1)
        before = await snapshot(container)

        with pytest.raises(EntityNotFoundError):
            await container.nodes.remove_nodes(org_id, [n1, "missing-id"])

        assert await snapshot(container) == before

    async def test_concurrent_attach(self, container, topology):
        """Test concurrent attaches on in-memory stores leave the node in exactly one cluster."""
        org_id, c1, c2, n1 = topology

        results = await asyncio.gather(
            container.nodes.attach_node(org_id, c1, n1),
            container.nodes.attach_node(org_id, c2, n1),
            return_exceptions=True,
        )

        failures = [r for r in results if isinstance(r, Exception)]
        assert len(failures) == 1
        assert isinstance(failures[0], NodeAlreadyAttachedError)

        c1_nodes = await container.stores.clusters.list_nodes(c1)
        c2_nodes = await container.stores.clusters.list_nodes(c2)
        assert (c1_nodes + c2_nodes).count(n1) == 1
        node = await container.stores.nodes.get(n1)
        assert node.cluster_id in (c1, c2)
        assert n1 in (await container.stores.clusters.list_nodes(node.cluster_id))

    async def test_move_node_between_clusters(self, container, topology):
        """Test a node moves by removing its cluster then attaching elsewhere."""
        org_id, c1, c2, n1 = topology
        await container.nodes.attach_node(org_id, c1, n1)

        await container.clusters.remove_cluster(org_id, c1)
        node = await container.nodes.attach_node(org_id, c2, n1)

        assert node.cluster_id == c2
        assert [n.node_id for n in await container.nodes.list_nodes(org_id, c2)] == [n1]

    async def test_full_teardown(self, container, topology):
        """Test removing every entity leaves empty memberships."""
        org_id, c1, c2, n1 = topology
        role = await container.roles.add_role(org_id, RoleRequest(name="admin"))
        await container.nodes.attach_node(org_id, c1, n1)

        await container.roles.remove_role(org_id, role.role_id)
        await container.clusters.remove_cluster(org_id, c1)
        await container.clusters.remove_cluster(org_id, c2)
        await container.nodes.remove_nodes(org_id, [n1])

        organization = await container.organizations.get_organization(org_id)
        assert organization.cluster_ids == set()
        assert organization.node_ids == set()
        assert organization.role_ids == set()
