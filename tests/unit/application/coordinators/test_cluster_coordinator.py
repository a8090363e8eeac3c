"""
Unit tests for the cluster coordinator.
"""

# Standard library imports
from unittest.mock import AsyncMock

# Third-party imports
import pytest

# Local imports
from system_model.application.exceptions_application import ConsistencyError
from system_model.application.interfaces.exceptions import (
    DuplicateEntityError,
    EntityNotFoundError,
    MembershipNotFoundError,
    StoreUnavailableError,
)
from system_model.domain.entities import (
    UNATTACHED,
    ClusterRequest,
    ClusterStatus,
    ClusterUpdate,
)


def unavailable(*args, **kwargs):
    raise StoreUnavailableError("store down")


@pytest.mark.unit
class TestAddCluster:
    """Test cluster creation."""

    async def test_add_cluster(self, cluster_coordinator, organizations, clusters, org1):
        """Test the cluster is stored and linked."""
        cluster = await cluster_coordinator.add_cluster(
            org1.organization_id, ClusterRequest(name="edge", labels={"zone": "a"})
        )

        stored = await clusters.get(cluster.cluster_id)
        assert stored.name == "edge"
        assert stored.labels == {"zone": "a"}
        assert stored.node_ids == []
        assert await organizations.cluster_exists(org1.organization_id, cluster.cluster_id)

    async def test_unknown_organization(self, cluster_coordinator):
        """Test adding to a missing organization fails."""
        with pytest.raises(EntityNotFoundError):
            await cluster_coordinator.add_cluster("missing", ClusterRequest(name="edge"))

    async def test_membership_failure_then_retry(
        self, cluster_coordinator, organizations, clusters, org1, monkeypatch
    ):
        """Test an unlinked cluster is reported and a retry links it."""
        add_membership = organizations.add_cluster
        monkeypatch.setattr(organizations, "add_cluster", AsyncMock(side_effect=unavailable))
        request = ClusterRequest(name="edge", cluster_id="c-retry")

        with pytest.raises(ConsistencyError):
            await cluster_coordinator.add_cluster(org1.organization_id, request)
        assert await clusters.exists("c-retry")

        monkeypatch.setattr(organizations, "add_cluster", add_membership)
        cluster = await cluster_coordinator.add_cluster(org1.organization_id, request)

        assert cluster.cluster_id == "c-retry"
        assert await organizations.cluster_exists(org1.organization_id, "c-retry")

        with pytest.raises(DuplicateEntityError):
            await cluster_coordinator.add_cluster(org1.organization_id, request)


@pytest.mark.unit
class TestReadAndUpdateCluster:
    """Test reads and updates."""

    async def test_get_and_list(self, cluster_coordinator, org1, c1, c2):
        """Test clusters are readable through their organization."""
        fetched = await cluster_coordinator.get_cluster(org1.organization_id, c1.cluster_id)
        listed = await cluster_coordinator.list_clusters(org1.organization_id)

        assert fetched.name == "c1"
        assert {cluster.cluster_id for cluster in listed} == {c1.cluster_id, c2.cluster_id}

    async def test_get_foreign_cluster(self, cluster_coordinator, organization_coordinator, c1):
        """Test a cluster is not visible through another organization."""
        other = await organization_coordinator.add_organization("org2")

        with pytest.raises(MembershipNotFoundError):
            await cluster_coordinator.get_cluster(other.organization_id, c1.cluster_id)

    async def test_update_keeps_node_list(self, cluster_coordinator, node_coordinator, org1, c1, n1):
        """Test an update never touches the node list."""
        await node_coordinator.attach_node(org1.organization_id, c1.cluster_id, n1.node_id)

        updated = await cluster_coordinator.update_cluster(
            org1.organization_id,
            c1.cluster_id,
            ClusterUpdate(name="renamed", status=ClusterStatus.ONLINE, add_labels={"k": "v"}),
        )
        fetched = await cluster_coordinator.get_cluster(org1.organization_id, c1.cluster_id)

        assert updated.name == "renamed"
        assert fetched.status == ClusterStatus.ONLINE
        assert fetched.labels == {"k": "v"}
        assert fetched.node_ids == [n1.node_id]

    async def test_list_with_dangling_cluster(self, cluster_coordinator, organizations, org1):
        """Test a listed cluster without a record is a consistency fault."""
        await organizations.add_cluster(org1.organization_id, "ghost")

        with pytest.raises(ConsistencyError):
            await cluster_coordinator.list_clusters(org1.organization_id)


@pytest.mark.unit
class TestCordon:
    """Test cordon and uncordon."""

    async def test_cordon_and_uncordon(self, cluster_coordinator, clusters, org1, c1):
        """Test the cordon flag toggles and is persisted."""
        cordoned = await cluster_coordinator.cordon_cluster(org1.organization_id, c1.cluster_id)
        assert cordoned.cordon is True
        assert (await clusters.get(c1.cluster_id)).cordon is True

        uncordoned = await cluster_coordinator.uncordon_cluster(org1.organization_id, c1.cluster_id)
        assert uncordoned.cordon is False
        assert (await clusters.get(c1.cluster_id)).cordon is False

    async def test_cordon_is_idempotent(self, cluster_coordinator, clusters, org1, c1, monkeypatch):
        """Test cordoning a cordoned cluster writes nothing."""
        await cluster_coordinator.cordon_cluster(org1.organization_id, c1.cluster_id)
        update = AsyncMock()
        monkeypatch.setattr(clusters, "update", update)

        cluster = await cluster_coordinator.cordon_cluster(org1.organization_id, c1.cluster_id)

        assert cluster.cordon is True
        update.assert_not_called()


@pytest.mark.unit
class TestRemoveCluster:
    """Test cluster removal."""

    async def test_remove_detaches_nodes(
        self, cluster_coordinator, node_coordinator, organizations, clusters, nodes, org1, c1, n1, n2
    ):
        """Test nodes survive with a cleared cluster id."""
        await node_coordinator.attach_node(org1.organization_id, c1.cluster_id, n1.node_id)
        await node_coordinator.attach_node(org1.organization_id, c1.cluster_id, n2.node_id)

        await cluster_coordinator.remove_cluster(org1.organization_id, c1.cluster_id)

        assert not await clusters.exists(c1.cluster_id)
        assert not await organizations.cluster_exists(org1.organization_id, c1.cluster_id)
        assert (await nodes.get(n1.node_id)).cluster_id == UNATTACHED
        assert (await nodes.get(n2.node_id)).cluster_id == UNATTACHED
        assert await organizations.node_exists(org1.organization_id, n1.node_id)

    async def test_detached_node_can_join_another_cluster(
        self, cluster_coordinator, node_coordinator, org1, c1, c2, n1
    ):
        """Test a node freed by cluster removal can be attached again."""
        await node_coordinator.attach_node(org1.organization_id, c1.cluster_id, n1.node_id)
        await cluster_coordinator.remove_cluster(org1.organization_id, c1.cluster_id)

        node = await node_coordinator.attach_node(org1.organization_id, c2.cluster_id, n1.node_id)

        assert node.cluster_id == c2.cluster_id

    async def test_remove_unknown_cluster(self, cluster_coordinator, org1):
        """Test removing a cluster not in the organization fails."""
        with pytest.raises(MembershipNotFoundError):
            await cluster_coordinator.remove_cluster(org1.organization_id, "missing")

    async def test_record_removal_failure_restores_everything(
        self,
        cluster_coordinator,
        node_coordinator,
        organizations,
        clusters,
        nodes,
        org1,
        c1,
        n1,
        monkeypatch,
    ):
        """Test a failed cluster removal re-links the cluster and re-attaches its nodes."""
        await node_coordinator.attach_node(org1.organization_id, c1.cluster_id, n1.node_id)
        monkeypatch.setattr(clusters, "remove", AsyncMock(side_effect=unavailable))

        with pytest.raises(StoreUnavailableError):
            await cluster_coordinator.remove_cluster(org1.organization_id, c1.cluster_id)

        assert await organizations.cluster_exists(org1.organization_id, c1.cluster_id)
        assert await clusters.list_nodes(c1.cluster_id) == [n1.node_id]
        assert (await nodes.get(n1.node_id)).cluster_id == c1.cluster_id

    async def test_listed_node_without_record_is_skipped(
        self, cluster_coordinator, clusters, org1, c1
    ):
        """Test a dangling list entry does not block removal."""
        await clusters.add_node(c1.cluster_id, "ghost")

        await cluster_coordinator.remove_cluster(org1.organization_id, c1.cluster_id)

        assert not await clusters.exists(c1.cluster_id)
