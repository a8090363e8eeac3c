"""
Unit tests for the node coordinator.

Tests add, update, attach, list and remove against in-memory stores, with
store failures injected to exercise compensation and consistency faults.
"""

# Standard library imports
import asyncio
from unittest.mock import AsyncMock

# Third-party imports
import pytest

# Local imports
from system_model.application.exceptions_application import (
    ConsistencyError,
    NodeAlreadyAttachedError,
)
from system_model.application.interfaces.exceptions import (
    DuplicateEntityError,
    DuplicateMembershipError,
    EntityNotFoundError,
    MembershipNotFoundError,
    StoreUnavailableError,
)
from system_model.domain.entities import (
    UNATTACHED,
    Node,
    NodeRequest,
    NodeState,
    NodeStatus,
    NodeUpdate,
)


def unavailable(*args, **kwargs):
    raise StoreUnavailableError("store down")


@pytest.mark.unit
class TestAddNode:
    """Test node creation."""

    async def test_add_node(self, node_coordinator, organizations, nodes, org1):
        """Test a new node is stored unattached and linked to its organization."""
        node = await node_coordinator.add_node(org1.organization_id, NodeRequest(ip="10.0.0.1"))

        assert node.cluster_id == UNATTACHED
        assert node.organization_id == org1.organization_id
        assert await nodes.exists(node.node_id)
        assert await organizations.node_exists(org1.organization_id, node.node_id)

    async def test_unknown_organization(self, node_coordinator, nodes):
        """Test adding to a missing organization fails before any write."""
        with pytest.raises(EntityNotFoundError) as exc_info:
            await node_coordinator.add_node("missing", NodeRequest(ip="10.0.0.1"))

        assert exc_info.value.entity_type == "Organization"
        assert exc_info.value.identifiers == {"organization_id": "missing"}

    async def test_membership_failure_is_consistency_error(
        self, node_coordinator, organizations, nodes, org1, monkeypatch
    ):
        """Test a stored node that cannot be linked is reported, not deleted."""
        monkeypatch.setattr(organizations, "add_node", AsyncMock(side_effect=unavailable))

        with pytest.raises(ConsistencyError) as exc_info:
            await node_coordinator.add_node(
                org1.organization_id, NodeRequest(ip="10.0.0.1", node_id="n-retry")
            )

        assert exc_info.value.identifiers["node_id"] == "n-retry"
        assert isinstance(exc_info.value.cause, StoreUnavailableError)
        assert await nodes.exists("n-retry")

    async def test_retry_resumes_at_membership(
        self, node_coordinator, organizations, nodes, org1, monkeypatch
    ):
        """Test retrying with the same id links the already stored node."""
        add_membership = organizations.add_node
        monkeypatch.setattr(organizations, "add_node", AsyncMock(side_effect=unavailable))
        with pytest.raises(ConsistencyError):
            await node_coordinator.add_node(
                org1.organization_id, NodeRequest(ip="10.0.0.1", node_id="n-retry")
            )

        monkeypatch.setattr(organizations, "add_node", add_membership)
        node = await node_coordinator.add_node(
            org1.organization_id, NodeRequest(ip="10.0.0.9", node_id="n-retry")
        )

        assert node.node_id == "n-retry"
        assert node.ip == "10.0.0.1"
        assert await organizations.node_exists(org1.organization_id, "n-retry")

    async def test_retry_of_completed_add_is_duplicate(self, node_coordinator, org1):
        """Test repeating a finished add with the same id is rejected."""
        request = NodeRequest(ip="10.0.0.1", node_id="n-7")
        await node_coordinator.add_node(org1.organization_id, request)

        with pytest.raises(DuplicateEntityError):
            await node_coordinator.add_node(org1.organization_id, request)

    async def test_retry_with_foreign_node_id_is_duplicate(
        self, node_coordinator, organization_coordinator, org1
    ):
        """Test an id stored for another organization cannot be claimed."""
        other = await organization_coordinator.add_organization("org2")
        await node_coordinator.add_node(
            other.organization_id, NodeRequest(ip="10.0.0.1", node_id="n-7")
        )

        with pytest.raises(DuplicateEntityError):
            await node_coordinator.add_node(
                org1.organization_id, NodeRequest(ip="10.0.0.2", node_id="n-7")
            )


@pytest.mark.unit
class TestUpdateNode:
    """Test node updates."""

    async def test_update_node(self, node_coordinator, nodes, org1, n1):
        """Test status, state and labels are persisted."""
        updated = await node_coordinator.update_node(
            org1.organization_id,
            n1.node_id,
            NodeUpdate(status=NodeStatus.RUNNING, state=NodeState.ASSIGNED, add_labels={"a": "b"}),
        )

        stored = await nodes.get(n1.node_id)
        assert updated.status == NodeStatus.RUNNING
        assert stored.status == NodeStatus.RUNNING
        assert stored.state == NodeState.ASSIGNED
        assert stored.labels == {"a": "b"}

    async def test_update_non_member(self, node_coordinator, organization_coordinator, n1):
        """Test a node of another organization is not found."""
        other = await organization_coordinator.add_organization("org2")

        with pytest.raises(MembershipNotFoundError):
            await node_coordinator.update_node(other.organization_id, n1.node_id, NodeUpdate())


@pytest.mark.unit
class TestAttachNode:
    """Test attaching nodes to clusters."""

    async def test_attach(self, node_coordinator, clusters, nodes, org1, c1, n1):
        """Test the cluster lists the node and the node records the cluster."""
        node = await node_coordinator.attach_node(org1.organization_id, c1.cluster_id, n1.node_id)

        assert node.cluster_id == c1.cluster_id
        assert (await nodes.get(n1.node_id)).cluster_id == c1.cluster_id
        assert await clusters.list_nodes(c1.cluster_id) == [n1.node_id]

    async def test_preconditions_checked_in_order(self, node_coordinator, org1, c1, n1):
        """Test missing organization, cluster and node are each not-found."""
        with pytest.raises(EntityNotFoundError) as exc_info:
            await node_coordinator.attach_node("missing", c1.cluster_id, n1.node_id)
        assert exc_info.value.entity_type == "Organization"

        with pytest.raises(MembershipNotFoundError) as exc_info:
            await node_coordinator.attach_node(org1.organization_id, "missing", n1.node_id)
        assert exc_info.value.entity_type == "Cluster"

        with pytest.raises(MembershipNotFoundError) as exc_info:
            await node_coordinator.attach_node(org1.organization_id, c1.cluster_id, "missing")
        assert exc_info.value.entity_type == "Node"

    async def test_attach_twice_to_same_cluster(self, node_coordinator, org1, c1, n1):
        """Test attaching an attached node to its own cluster is a duplicate."""
        await node_coordinator.attach_node(org1.organization_id, c1.cluster_id, n1.node_id)

        with pytest.raises(DuplicateMembershipError):
            await node_coordinator.attach_node(org1.organization_id, c1.cluster_id, n1.node_id)

    async def test_reattach_to_other_cluster_rejected(
        self, node_coordinator, clusters, nodes, org1, c1, c2, n1
    ):
        """Test a node attached elsewhere is rejected before any write."""
        await node_coordinator.attach_node(org1.organization_id, c1.cluster_id, n1.node_id)

        with pytest.raises(NodeAlreadyAttachedError) as exc_info:
            await node_coordinator.attach_node(org1.organization_id, c2.cluster_id, n1.node_id)

        assert exc_info.value.identifiers["requested_cluster_id"] == c2.cluster_id
        assert await clusters.list_nodes(c2.cluster_id) == []
        assert (await nodes.get(n1.node_id)).cluster_id == c1.cluster_id

    async def test_node_update_failure_is_consistency_error(
        self, node_coordinator, clusters, nodes, org1, c1, n1, monkeypatch
    ):
        """Test a failed node update after listing reports both ids."""
        monkeypatch.setattr(nodes, "update", AsyncMock(side_effect=unavailable))

        with pytest.raises(ConsistencyError) as exc_info:
            await node_coordinator.attach_node(org1.organization_id, c1.cluster_id, n1.node_id)

        assert exc_info.value.identifiers["cluster_id"] == c1.cluster_id
        assert exc_info.value.identifiers["node_id"] == n1.node_id
        assert await clusters.node_exists(c1.cluster_id, n1.node_id)

    async def test_retry_resumes_at_node_update(
        self, node_coordinator, clusters, nodes, org1, c1, n1, monkeypatch
    ):
        """Test retrying an interrupted attach completes it without a duplicate list entry."""
        update = nodes.update
        monkeypatch.setattr(nodes, "update", AsyncMock(side_effect=unavailable))
        with pytest.raises(ConsistencyError):
            await node_coordinator.attach_node(org1.organization_id, c1.cluster_id, n1.node_id)

        monkeypatch.setattr(nodes, "update", update)
        node = await node_coordinator.attach_node(org1.organization_id, c1.cluster_id, n1.node_id)

        assert node.cluster_id == c1.cluster_id
        assert await clusters.list_nodes(c1.cluster_id) == [n1.node_id]

    async def test_cluster_list_failure_has_no_effect(
        self, node_coordinator, clusters, nodes, org1, c1, n1, monkeypatch
    ):
        """Test a failure of the first write leaves everything untouched."""
        monkeypatch.setattr(clusters, "add_node", AsyncMock(side_effect=unavailable))

        with pytest.raises(StoreUnavailableError):
            await node_coordinator.attach_node(org1.organization_id, c1.cluster_id, n1.node_id)

        assert (await nodes.get(n1.node_id)).cluster_id == UNATTACHED

    async def test_concurrent_attach_with_suspending_store(
        self, node_coordinator, clusters, nodes, org1, c1, c2, n1, monkeypatch
    ):
        """Test attaches that interleave after the node read both succeed."""
        read = nodes.get

        async def suspending_get(key):
            node = await read(key)
            await asyncio.sleep(0)
            return node

        monkeypatch.setattr(nodes, "get", suspending_get)
        org_id = org1.organization_id

        results = await asyncio.gather(
            node_coordinator.attach_node(org_id, c1.cluster_id, n1.node_id),
            node_coordinator.attach_node(org_id, c2.cluster_id, n1.node_id),
        )

        assert [node.cluster_id for node in results] == [c1.cluster_id, c2.cluster_id]
        assert await clusters.list_nodes(c1.cluster_id) == [n1.node_id]
        assert await clusters.list_nodes(c2.cluster_id) == [n1.node_id]
        assert (await read(n1.node_id)).cluster_id == c2.cluster_id


@pytest.mark.unit
class TestListNodes:
    """Test listing a cluster's nodes."""

    async def test_attachment_order(self, node_coordinator, org1, c1, n1, n2):
        """Test nodes come back in attachment order."""
        await node_coordinator.attach_node(org1.organization_id, c1.cluster_id, n2.node_id)
        await node_coordinator.attach_node(org1.organization_id, c1.cluster_id, n1.node_id)

        listed = await node_coordinator.list_nodes(org1.organization_id, c1.cluster_id)

        assert [node.node_id for node in listed] == [n2.node_id, n1.node_id]

    async def test_dangling_reference(self, node_coordinator, clusters, org1, c1):
        """Test a listed id without a node record is a consistency fault."""
        await clusters.add_node(c1.cluster_id, "ghost")

        with pytest.raises(ConsistencyError) as exc_info:
            await node_coordinator.list_nodes(org1.organization_id, c1.cluster_id)

        assert exc_info.value.identifiers["node_id"] == "ghost"


@pytest.mark.unit
class TestRemoveNodes:
    """Test node removal."""

    async def test_remove_attached_node(
        self, node_coordinator, organizations, clusters, nodes, org1, c1, n1
    ):
        """Test references are retracted and the record removed."""
        await node_coordinator.attach_node(org1.organization_id, c1.cluster_id, n1.node_id)

        await node_coordinator.remove_nodes(org1.organization_id, [n1.node_id])

        assert not await nodes.exists(n1.node_id)
        assert not await organizations.node_exists(org1.organization_id, n1.node_id)
        assert await clusters.list_nodes(c1.cluster_id) == []

    async def test_remove_unattached_and_duplicate_ids(self, node_coordinator, nodes, org1, n1, n2):
        """Test repeated ids are removed once."""
        await node_coordinator.remove_nodes(org1.organization_id, [n1.node_id, n2.node_id, n1.node_id])

        assert not await nodes.exists(n1.node_id)
        assert not await nodes.exists(n2.node_id)

    async def test_unknown_id_has_no_side_effects(
        self, node_coordinator, organizations, nodes, org1, n1
    ):
        """Test one unknown id fails the call before any node is removed."""
        with pytest.raises(EntityNotFoundError):
            await node_coordinator.remove_nodes(org1.organization_id, [n1.node_id, "missing-id"])

        assert await nodes.exists(n1.node_id)
        assert await organizations.node_exists(org1.organization_id, n1.node_id)

    async def test_second_remove_is_not_found(self, node_coordinator, org1, n1):
        """Test removing the same node twice fails the second time."""
        await node_coordinator.remove_nodes(org1.organization_id, [n1.node_id])

        with pytest.raises(EntityNotFoundError):
            await node_coordinator.remove_nodes(org1.organization_id, [n1.node_id])

    async def test_record_removal_failure_is_compensated(
        self, node_coordinator, organizations, clusters, nodes, org1, c1, n1, monkeypatch
    ):
        """Test a failed record removal restores cluster list and membership."""
        await node_coordinator.attach_node(org1.organization_id, c1.cluster_id, n1.node_id)
        monkeypatch.setattr(nodes, "remove", AsyncMock(side_effect=unavailable))

        with pytest.raises(StoreUnavailableError):
            await node_coordinator.remove_nodes(org1.organization_id, [n1.node_id])

        assert await organizations.node_exists(org1.organization_id, n1.node_id)
        assert await clusters.list_nodes(c1.cluster_id) == [n1.node_id]
        assert (await nodes.get(n1.node_id)).cluster_id == c1.cluster_id

    async def test_failure_stops_remaining_ids(
        self, node_coordinator, nodes, org1, n1, n2, monkeypatch
    ):
        """Test ids after the failing one are left untouched."""
        remove = nodes.remove
        calls = []

        async def remove_first_only(node_id):
            calls.append(node_id)
            if len(calls) > 1:
                raise StoreUnavailableError("store down")
            await remove(node_id)

        monkeypatch.setattr(nodes, "remove", remove_first_only)

        with pytest.raises(StoreUnavailableError):
            await node_coordinator.remove_nodes(org1.organization_id, [n1.node_id, n2.node_id])

        assert not await nodes.exists(n1.node_id)
        assert await nodes.exists(n2.node_id)

    async def test_missing_cluster_entry_is_consistency_error(
        self, node_coordinator, clusters, nodes, org1, c1, n1
    ):
        """Test a node claiming a cluster that does not list it is drift."""
        await nodes.update(
            Node(
                node_id=n1.node_id,
                organization_id=org1.organization_id,
                cluster_id=c1.cluster_id,
                ip=n1.ip,
            )
        )

        with pytest.raises(ConsistencyError) as exc_info:
            await node_coordinator.remove_nodes(org1.organization_id, [n1.node_id])

        assert exc_info.value.identifiers["cluster_id"] == c1.cluster_id
        assert await nodes.exists(n1.node_id)

    async def test_compensation_failure_still_raises_original(
        self, node_coordinator, organizations, nodes, org1, n1, monkeypatch
    ):
        """Test a failed compensation is swallowed and the original error raised."""
        monkeypatch.setattr(nodes, "remove", AsyncMock(side_effect=unavailable))
        monkeypatch.setattr(
            organizations, "add_node", AsyncMock(side_effect=RuntimeError("index down"))
        )

        with pytest.raises(StoreUnavailableError):
            await node_coordinator.remove_nodes(org1.organization_id, [n1.node_id])

        assert not await organizations.node_exists(org1.organization_id, n1.node_id)
