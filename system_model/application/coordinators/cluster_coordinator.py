"""
Cluster Coordinator

Cluster lifecycle over the cluster store, the organization index and, on
removal, the node store. Removing a cluster detaches its nodes but never
deletes them.
"""

from system_model.application.interfaces.exceptions import EntityNotFoundError
from system_model.application.interfaces.repositories import (
    IClusterStore,
    INodeStore,
    IOrganizationIndex,
)
from system_model.domain.entities import UNATTACHED, Cluster, ClusterRequest, ClusterUpdate
from system_model.infrastructure.monitoring.logging import log_coordinator_operation

from .base import TopologyCoordinator
from .saga import Saga


class ClusterCoordinator(TopologyCoordinator):
    """Coordinates cluster operations within an organization."""

    def __init__(
        self,
        organizations: IOrganizationIndex,
        clusters: IClusterStore,
        nodes: INodeStore,
    ) -> None:
        super().__init__(organizations)
        self.clusters = clusters
        self.nodes = nodes

    async def _require_cluster(self, organization_id: str, cluster_id: str) -> None:
        await self._require_organization(organization_id)
        await self._require_member(
            organization_id, "Cluster", cluster_id, self.organizations.cluster_exists
        )

    @log_coordinator_operation("add_cluster")
    async def add_cluster(self, organization_id: str, request: ClusterRequest) -> Cluster:
        """
        Create a cluster in an organization.

        Raises:
            EntityNotFoundError: If the organization does not exist
            DuplicateEntityError: If the cluster already exists
            ConsistencyError: If the cluster was stored but could not be
                linked to the organization
        """
        await self._require_organization(organization_id)

        cluster = Cluster.create(organization_id, request)
        return await self._add_with_membership(
            "add_cluster",
            "Cluster",
            organization_id,
            cluster.cluster_id,
            cluster,
            self.clusters,
            self.organizations.cluster_exists,
            self.organizations.add_cluster,
            retry=request.cluster_id is not None,
        )

    @log_coordinator_operation("update_cluster")
    async def update_cluster(
        self, organization_id: str, cluster_id: str, update: ClusterUpdate
    ) -> Cluster:
        await self._require_cluster(organization_id, cluster_id)

        cluster = await self.clusters.get(cluster_id)
        cluster.apply_update(update)
        await self.clusters.update(cluster)
        return cluster

    @log_coordinator_operation("get_cluster")
    async def get_cluster(self, organization_id: str, cluster_id: str) -> Cluster:
        await self._require_cluster(organization_id, cluster_id)
        return await self.clusters.get(cluster_id)

    @log_coordinator_operation("list_clusters")
    async def list_clusters(self, organization_id: str) -> list[Cluster]:
        await self._require_organization(organization_id)
        cluster_ids = await self.organizations.list_clusters(organization_id)
        return await self._resolve_members(
            "list_clusters", organization_id, "Cluster", cluster_ids, self.clusters
        )

    @log_coordinator_operation("cordon_cluster")
    async def cordon_cluster(self, organization_id: str, cluster_id: str) -> Cluster:
        """Stop scheduling onto a cluster. Cordoning a cordoned cluster is a no-op."""
        return await self._set_cordon(organization_id, cluster_id, True)

    @log_coordinator_operation("uncordon_cluster")
    async def uncordon_cluster(self, organization_id: str, cluster_id: str) -> Cluster:
        """Resume scheduling onto a cluster. Uncordoning an uncordoned cluster is a no-op."""
        return await self._set_cordon(organization_id, cluster_id, False)

    async def _set_cordon(self, organization_id: str, cluster_id: str, cordon: bool) -> Cluster:
        await self._require_cluster(organization_id, cluster_id)

        cluster = await self.clusters.get(cluster_id)
        if cluster.cordon == cordon:
            return cluster

        cluster.cordon = cordon
        await self.clusters.update(cluster)
        return cluster

    @log_coordinator_operation("remove_cluster")
    async def remove_cluster(self, organization_id: str, cluster_id: str) -> None:
        """
        Remove a cluster, detaching its nodes first.

        For every attached node the cluster list entry is deleted, then the
        node's cluster id is cleared. The organization membership is
        retracted next and the cluster record removed last. Any failure
        undoes the completed steps in reverse and re-raises.

        Raises:
            EntityNotFoundError: If the organization does not exist or the
                cluster is not a member of it
        """
        await self._require_cluster(organization_id, cluster_id)

        node_ids = await self.clusters.list_nodes(cluster_id)
        saga = Saga(
            "remove_cluster",
            identifiers={
                "organization_id": organization_id,
                "cluster_id": cluster_id,
                "node_ids": node_ids,
            },
        )

        for node_id in node_ids:
            saga.add_step(
                f"remove node {node_id} from cluster",
                lambda n=node_id: self.clusters.delete_node(cluster_id, n),
                compensation=lambda n=node_id: self.clusters.add_node(cluster_id, n),
            )
            saga.add_step(
                f"clear cluster of node {node_id}",
                lambda n=node_id: self._set_node_cluster(n, cluster_id, UNATTACHED),
                compensation=lambda n=node_id: self._set_node_cluster(n, UNATTACHED, cluster_id),
            )

        saga.add_step(
            "unlink cluster from organization",
            lambda: self.organizations.delete_cluster(organization_id, cluster_id),
            compensation=lambda: self.organizations.add_cluster(organization_id, cluster_id),
        )
        saga.add_step("remove cluster", lambda: self.clusters.remove(cluster_id))
        await saga.execute()

        self.logger.info(
            f"Removed cluster {cluster_id} and detached {len(node_ids)} nodes",
            extra={"organization_id": organization_id, "cluster_id": cluster_id},
        )

    async def _set_node_cluster(self, node_id: str, expected: str, cluster_id: str) -> None:
        """Move a node's cluster id from ``expected`` to ``cluster_id``."""
        try:
            node = await self.nodes.get(node_id)
        except EntityNotFoundError:
            # The list entry pointed at a node with no record; nothing to clear
            self.logger.warning(
                f"Cluster list referenced missing node {node_id}",
                extra={"node_id": node_id},
            )
            return

        if node.cluster_id != expected:
            self.logger.warning(
                f"Node {node_id} claims cluster '{node.cluster_id}', expected '{expected}'",
                extra={"node_id": node_id},
            )
            return

        node.cluster_id = cluster_id
        await self.nodes.update(node)
