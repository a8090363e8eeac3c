"""
Node Coordinator

Multi-store sagas over the node store, the cluster store's node lists and
the organization index.

Safe failure points:
- add_node: a failure after the node is stored is reported as a consistency
  fault; retrying with the same node id resumes at the membership step.
- attach_node: every precondition runs before the first write. A failure
  after the cluster lists the node is reported as a consistency fault;
  retrying resumes at the node update.
- remove_nodes: references are retracted before the record is removed, so
  after any failure the node record is still resolvable.

Coordinators provide best-effort sequential consistency, not isolation. No
lock spans the stores, so two attach_node calls for the same node can both
pass the attachment check when a store call suspends between the check and
the writes, as every PostgreSQL call does. Both clusters then list the node
and the node record names the cluster written last. Callers that need one
attach per node at a time serialize above the coordinator.
"""

from system_model.application.exceptions_application import (
    ConsistencyError,
    NodeAlreadyAttachedError,
)
from system_model.application.interfaces.exceptions import (
    DuplicateMembershipError,
    EntityNotFoundError,
)
from system_model.application.interfaces.repositories import (
    IClusterStore,
    INodeStore,
    IOrganizationIndex,
)
from system_model.domain.entities import Node, NodeRequest, NodeUpdate
from system_model.infrastructure.monitoring.logging import log_coordinator_operation

from .base import TopologyCoordinator
from .saga import Saga


class NodeCoordinator(TopologyCoordinator):
    """Coordinates node lifecycle and cluster attachment."""

    def __init__(
        self,
        organizations: IOrganizationIndex,
        clusters: IClusterStore,
        nodes: INodeStore,
    ) -> None:
        super().__init__(organizations)
        self.clusters = clusters
        self.nodes = nodes

    @log_coordinator_operation("add_node")
    async def add_node(self, organization_id: str, request: NodeRequest) -> Node:
        """
        Add an unattached node to an organization.

        Args:
            organization_id: Owning organization
            request: Node attributes, optionally with the identifier of an
                interrupted earlier attempt

        Returns:
            The created node, with an empty cluster id

        Raises:
            EntityNotFoundError: If the organization does not exist
            DuplicateEntityError: If the node already exists
            ConsistencyError: If the node was stored but could not be linked
                to the organization
        """
        await self._require_organization(organization_id)

        node = Node.create(organization_id, request)
        return await self._add_with_membership(
            "add_node",
            "Node",
            organization_id,
            node.node_id,
            node,
            self.nodes,
            self.organizations.node_exists,
            self.organizations.add_node,
            retry=request.node_id is not None,
        )

    @log_coordinator_operation("update_node")
    async def update_node(self, organization_id: str, node_id: str, update: NodeUpdate) -> Node:
        """
        Update the status, state or labels of a node.

        Raises:
            EntityNotFoundError: If the organization does not exist or the node
                is not a member of it
        """
        await self._require_organization(organization_id)
        await self._require_member(
            organization_id, "Node", node_id, self.organizations.node_exists
        )

        node = await self.nodes.get(node_id)
        node.apply_update(update)
        await self.nodes.update(node)
        return node

    @log_coordinator_operation("attach_node")
    async def attach_node(self, organization_id: str, cluster_id: str, node_id: str) -> Node:
        """
        Attach a node to a cluster of the same organization.

        The attachment check and the writes are separate store calls.
        Concurrent attaches of one node to different clusters can interleave
        between them on a backend whose calls suspend, leaving the node
        listed by both clusters.

        Args:
            organization_id: Organization owning both the cluster and the node
            cluster_id: Target cluster
            node_id: Node to attach

        Returns:
            The attached node

        Raises:
            EntityNotFoundError: If the organization does not exist, or the
                cluster or node is not a member of it
            DuplicateMembershipError: If the node is already attached to this
                cluster
            NodeAlreadyAttachedError: If the node is attached to another
                cluster
            ConsistencyError: If the cluster lists the node but the node
                record could not be updated
        """
        await self._require_organization(organization_id)
        await self._require_member(
            organization_id, "Cluster", cluster_id, self.organizations.cluster_exists
        )
        await self._require_member(
            organization_id, "Node", node_id, self.organizations.node_exists
        )

        node = await self.nodes.get(node_id)
        if node.cluster_id == cluster_id:
            raise DuplicateMembershipError("Cluster", cluster_id, "Node", node_id)
        if node.is_attached:
            raise NodeAlreadyAttachedError(node_id, node.cluster_id, cluster_id)

        saga = Saga(
            "attach_node",
            identifiers={
                "organization_id": organization_id,
                "cluster_id": cluster_id,
                "node_id": node_id,
            },
        )

        if await self.clusters.node_exists(cluster_id, node_id):
            # Left behind by an attach whose node update failed
            self.logger.warning(
                f"Cluster {cluster_id} already lists unattached node {node_id}; "
                "resuming attach at the node update",
                extra={"cluster_id": cluster_id, "node_id": node_id},
            )

            async def already_listed() -> None:
                return None

            saga.add_step("node already in cluster", already_listed)
        else:
            saga.add_step(
                "add node to cluster", lambda: self.clusters.add_node(cluster_id, node_id)
            )

        node.cluster_id = cluster_id
        saga.add_step("set node cluster", lambda: self.nodes.update(node))
        await saga.execute()
        return node

    @log_coordinator_operation("list_nodes")
    async def list_nodes(self, organization_id: str, cluster_id: str) -> list[Node]:
        """
        List the nodes attached to a cluster, in attachment order.

        Raises:
            EntityNotFoundError: If the organization does not exist or the
                cluster is not a member of it
            ConsistencyError: If the cluster lists a node that has no record
        """
        await self._require_organization(organization_id)
        await self._require_member(
            organization_id, "Cluster", cluster_id, self.organizations.cluster_exists
        )

        node_ids = await self.clusters.list_nodes(cluster_id)
        return await self._resolve_members(
            "list_nodes", organization_id, "Node", node_ids, self.nodes
        )

    @log_coordinator_operation("remove_nodes")
    async def remove_nodes(self, organization_id: str, node_ids: list[str]) -> None:
        """
        Remove nodes from an organization.

        Every id is resolved before the first write, so an unknown id fails
        the whole call without side effects. Nodes are then removed one at a
        time; the first failure stops processing of the remaining ids.

        Raises:
            EntityNotFoundError: If the organization does not exist or any
                node is not a member of it
            ConsistencyError: If a node claims a cluster that does not list it
        """
        await self._require_organization(organization_id)

        nodes = []
        for node_id in dict.fromkeys(node_ids):
            await self._require_member(
                organization_id, "Node", node_id, self.organizations.node_exists
            )
            nodes.append(await self.nodes.get(node_id))

        for node in nodes:
            await self._remove_node(organization_id, node)

    async def _remove_node(self, organization_id: str, node: Node) -> None:
        node_id = node.node_id
        saga = Saga(
            "remove_nodes",
            identifiers={
                "organization_id": organization_id,
                "cluster_id": node.cluster_id,
                "node_id": node_id,
            },
        )

        if node.is_attached:
            cluster_id = node.cluster_id
            saga.add_step(
                "remove node from cluster",
                lambda: self._detach_from_cluster(organization_id, cluster_id, node_id),
                compensation=lambda: self.clusters.add_node(cluster_id, node_id),
            )
        saga.add_step(
            "unlink node from organization",
            lambda: self.organizations.delete_node(organization_id, node_id),
            compensation=lambda: self.organizations.add_node(organization_id, node_id),
        )
        saga.add_step("remove node", lambda: self.nodes.remove(node_id))
        await saga.execute()

    async def _detach_from_cluster(self, organization_id: str, cluster_id: str, node_id: str) -> None:
        try:
            await self.clusters.delete_node(cluster_id, node_id)
        except EntityNotFoundError as e:
            raise ConsistencyError(
                "remove_nodes",
                f"node '{node_id}' claims cluster '{cluster_id}' but is not listed by it",
                identifiers={
                    "organization_id": organization_id,
                    "cluster_id": cluster_id,
                    "node_id": node_id,
                },
                cause=e,
            ) from e
