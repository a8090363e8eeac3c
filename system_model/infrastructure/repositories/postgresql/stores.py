"""
PostgreSQL Store Implementations

Concrete PostgreSQL stores for organizations, clusters, nodes and roles.
Membership sets and cluster node lists live in their own tables and are
never written by ``update``.
"""

from __future__ import annotations

# Standard library imports
import logging
from typing import Any

# Third-party imports
from psycopg.types.json import Jsonb

# Local imports
from system_model.application.interfaces.exceptions import (
    DuplicateMembershipError,
    MembershipNotFoundError,
)
from system_model.domain.entities import (
    Cluster,
    ClusterState,
    ClusterStatus,
    ClusterType,
    MultitenantSupport,
    Node,
    NodeState,
    NodeStatus,
    Organization,
    Role,
)

from .base import PostgreSQLEntityStore

logger = logging.getLogger(__name__)


class PostgreSQLNodeStore(PostgreSQLEntityStore[Node]):
    """PostgreSQL implementation of the node store."""

    entity_type = "Node"
    table = "nodes"
    key_column = "node_id"
    columns = ("organization_id", "cluster_id", "ip", "labels", "status", "state")

    def _key(self, entity: Node) -> str:
        return entity.node_id

    def _map_entity_to_values(self, entity: Node) -> tuple[Any, ...]:
        return (
            entity.organization_id,
            entity.cluster_id,
            entity.ip,
            Jsonb(entity.labels),
            entity.status.value,
            entity.state.value,
        )

    def _map_record_to_entity(self, record: dict[str, Any]) -> Node:
        return Node(
            node_id=record["node_id"],
            organization_id=record["organization_id"],
            cluster_id=record["cluster_id"] or "",
            ip=record["ip"],
            labels=dict(record["labels"] or {}),
            status=NodeStatus(record["status"]),
            state=NodeState(record["state"]),
        )


class PostgreSQLRoleStore(PostgreSQLEntityStore[Role]):
    """PostgreSQL implementation of the role store."""

    entity_type = "Role"
    table = "roles"
    key_column = "role_id"
    columns = ("organization_id", "name", "description", "internal", "created")

    def _key(self, entity: Role) -> str:
        return entity.role_id

    def _map_entity_to_values(self, entity: Role) -> tuple[Any, ...]:
        return (
            entity.organization_id,
            entity.name,
            entity.description,
            entity.internal,
            entity.created,
        )

    def _map_record_to_entity(self, record: dict[str, Any]) -> Role:
        return Role(
            role_id=record["role_id"],
            organization_id=record["organization_id"],
            name=record["name"],
            description=record["description"] or "",
            internal=bool(record["internal"]),
            created=int(record["created"]),
        )


class PostgreSQLClusterStore(PostgreSQLEntityStore[Cluster]):
    """
    PostgreSQL implementation of the cluster store.

    Node lists are kept in ``cluster_nodes``; a sequence column preserves
    insertion order.
    """

    entity_type = "Cluster"
    table = "clusters"
    key_column = "cluster_id"
    columns = (
        "organization_id",
        "name",
        "cluster_type",
        "hostname",
        "control_plane_hostname",
        "multitenant",
        "status",
        "state",
        "labels",
        "cordon",
        "last_alive_timestamp",
    )

    def _key(self, entity: Cluster) -> str:
        return entity.cluster_id

    def _map_entity_to_values(self, entity: Cluster) -> tuple[Any, ...]:
        return (
            entity.organization_id,
            entity.name,
            entity.cluster_type.value,
            entity.hostname,
            entity.control_plane_hostname,
            entity.multitenant.value,
            entity.status.value,
            entity.state.value if entity.state is not None else None,
            Jsonb(entity.labels),
            entity.cordon,
            entity.last_alive_timestamp,
        )

    def _map_record_to_entity(self, record: dict[str, Any]) -> Cluster:
        return Cluster(
            cluster_id=record["cluster_id"],
            organization_id=record["organization_id"],
            name=record["name"],
            cluster_type=ClusterType(record["cluster_type"]),
            hostname=record["hostname"] or "",
            control_plane_hostname=record["control_plane_hostname"] or "",
            multitenant=MultitenantSupport(record["multitenant"]),
            status=ClusterStatus(record["status"]),
            state=ClusterState(record["state"]) if record["state"] else None,
            labels=dict(record["labels"] or {}),
            cordon=bool(record["cordon"]),
            last_alive_timestamp=int(record["last_alive_timestamp"] or 0),
        )

    async def _load_unlocked(self, record: dict[str, Any]) -> Cluster:
        cluster = self._map_record_to_entity(record)
        cluster.node_ids = await self._node_ids_unlocked(cluster.cluster_id)
        return cluster

    async def _node_ids_unlocked(self, cluster_id: str) -> list[str]:
        return await self.adapter.fetch_values(
            "SELECT node_id FROM cluster_nodes WHERE cluster_id = %s ORDER BY position",
            cluster_id,
        )

    async def _node_listed_unlocked(self, cluster_id: str, node_id: str) -> bool:
        record = await self.adapter.fetch_one(
            "SELECT 1 AS found FROM cluster_nodes WHERE cluster_id = %s AND node_id = %s",
            cluster_id,
            node_id,
        )
        return record is not None

    async def _remove_side_rows_unlocked(self, key: str) -> None:
        await self.adapter.execute_query("DELETE FROM cluster_nodes WHERE cluster_id = %s", key)

    def _tables(self) -> tuple[str, ...]:
        return ("cluster_nodes", self.table)

    async def add_node(self, cluster_id: str, node_id: str) -> None:
        """
        Append a node to the cluster's node list.

        Raises:
            EntityNotFoundError: If the cluster does not exist
            DuplicateMembershipError: If the node is already listed
        """
        async with self._locked(cluster_id=cluster_id, node_id=node_id):
            await self._require_unlocked(cluster_id)
            if await self._node_listed_unlocked(cluster_id, node_id):
                raise DuplicateMembershipError("Cluster", cluster_id, "Node", node_id)
            await self.adapter.execute_query(
                "INSERT INTO cluster_nodes (cluster_id, node_id) VALUES (%s, %s)",
                cluster_id,
                node_id,
            )
        logger.debug(f"Listed node {node_id} in cluster {cluster_id}")

    async def node_exists(self, cluster_id: str, node_id: str) -> bool:
        async with self._locked(cluster_id=cluster_id, node_id=node_id):
            return await self._node_listed_unlocked(cluster_id, node_id)

    async def list_nodes(self, cluster_id: str) -> list[str]:
        async with self._locked(cluster_id=cluster_id):
            await self._require_unlocked(cluster_id)
            return await self._node_ids_unlocked(cluster_id)

    async def delete_node(self, cluster_id: str, node_id: str) -> None:
        """
        Remove a node from the cluster's node list.

        Raises:
            EntityNotFoundError: If the cluster does not exist
            MembershipNotFoundError: If the node is not listed
        """
        async with self._locked(cluster_id=cluster_id, node_id=node_id):
            await self._require_unlocked(cluster_id)
            if not await self._node_listed_unlocked(cluster_id, node_id):
                raise MembershipNotFoundError("Cluster", cluster_id, "Node", node_id)
            await self.adapter.execute_query(
                "DELETE FROM cluster_nodes WHERE cluster_id = %s AND node_id = %s",
                cluster_id,
                node_id,
            )
        logger.debug(f"Unlisted node {node_id} from cluster {cluster_id}")


# Membership kind -> (table, member column)
_MEMBERSHIP_TABLES = {
    "Cluster": ("organization_clusters", "cluster_id"),
    "Node": ("organization_nodes", "node_id"),
    "Role": ("organization_roles", "role_id"),
}


class PostgreSQLOrganizationIndex(PostgreSQLEntityStore[Organization]):
    """
    PostgreSQL implementation of the organization index.

    Membership operations check only the organization row and the
    membership table, never the member's own store.
    """

    entity_type = "Organization"
    table = "organizations"
    key_column = "organization_id"
    columns = ("name", "created")

    def _key(self, entity: Organization) -> str:
        return entity.organization_id

    def _map_entity_to_values(self, entity: Organization) -> tuple[Any, ...]:
        return (entity.name, entity.created)

    def _map_record_to_entity(self, record: dict[str, Any]) -> Organization:
        return Organization(
            organization_id=record["organization_id"],
            name=record["name"],
            created=int(record["created"]),
        )

    async def _load_unlocked(self, record: dict[str, Any]) -> Organization:
        organization = self._map_record_to_entity(record)
        key = organization.organization_id
        organization.cluster_ids = set(await self._members_unlocked("Cluster", key))
        organization.node_ids = set(await self._members_unlocked("Node", key))
        organization.role_ids = set(await self._members_unlocked("Role", key))
        return organization

    async def _remove_side_rows_unlocked(self, key: str) -> None:
        for table, _ in _MEMBERSHIP_TABLES.values():
            await self.adapter.execute_query(
                f"DELETE FROM {table} WHERE organization_id = %s", key  # nosec B608
            )

    def _tables(self) -> tuple[str, ...]:
        return (*(table for table, _ in _MEMBERSHIP_TABLES.values()), self.table)

    async def exists_by_name(self, name: str) -> bool:
        async with self._locked(name=name):
            record = await self.adapter.fetch_one(
                "SELECT 1 AS found FROM organizations WHERE name = %s LIMIT 1", name
            )
            return record is not None

    async def list(self) -> list[Organization]:
        async with self._locked():
            records = await self.adapter.fetch_all(
                "SELECT organization_id, name, created FROM organizations ORDER BY created, name"
            )
            return [await self._load_unlocked(record) for record in records]

    # Generic membership operations
    @staticmethod
    def _member_identifiers(kind: str, organization_id: str, member_id: str) -> dict[str, str]:
        return {"organization_id": organization_id, f"{kind.lower()}_id": member_id}

    async def _members_unlocked(self, kind: str, organization_id: str) -> list[str]:
        table, column = _MEMBERSHIP_TABLES[kind]
        return await self.adapter.fetch_values(
            f"SELECT {column} FROM {table} WHERE organization_id = %s ORDER BY {column}",  # nosec B608
            organization_id,
        )

    async def _is_member_unlocked(self, kind: str, organization_id: str, member_id: str) -> bool:
        table, column = _MEMBERSHIP_TABLES[kind]
        record = await self.adapter.fetch_one(
            f"SELECT 1 AS found FROM {table} WHERE organization_id = %s AND {column} = %s",  # nosec B608
            organization_id,
            member_id,
        )
        return record is not None

    async def _add_member(self, kind: str, organization_id: str, member_id: str) -> None:
        table, column = _MEMBERSHIP_TABLES[kind]
        async with self._locked(**self._member_identifiers(kind, organization_id, member_id)):
            await self._require_unlocked(organization_id)
            if await self._is_member_unlocked(kind, organization_id, member_id):
                raise DuplicateMembershipError(self.entity_type, organization_id, kind, member_id)
            await self.adapter.execute_query(
                f"INSERT INTO {table} (organization_id, {column}) VALUES (%s, %s)",  # nosec B608
                organization_id,
                member_id,
            )
        logger.debug(f"Linked {kind.lower()} {member_id} to organization {organization_id}")

    async def _member_exists(self, kind: str, organization_id: str, member_id: str) -> bool:
        async with self._locked(**self._member_identifiers(kind, organization_id, member_id)):
            return await self._is_member_unlocked(kind, organization_id, member_id)

    async def _list_members(self, kind: str, organization_id: str) -> list[str]:
        async with self._locked(organization_id=organization_id):
            await self._require_unlocked(organization_id)
            return await self._members_unlocked(kind, organization_id)

    async def _delete_member(self, kind: str, organization_id: str, member_id: str) -> None:
        table, column = _MEMBERSHIP_TABLES[kind]
        async with self._locked(**self._member_identifiers(kind, organization_id, member_id)):
            await self._require_unlocked(organization_id)
            if not await self._is_member_unlocked(kind, organization_id, member_id):
                raise MembershipNotFoundError(self.entity_type, organization_id, kind, member_id)
            await self.adapter.execute_query(
                f"DELETE FROM {table} WHERE organization_id = %s AND {column} = %s",  # nosec B608
                organization_id,
                member_id,
            )
        logger.debug(f"Unlinked {kind.lower()} {member_id} from organization {organization_id}")

    # Clusters
    async def add_cluster(self, organization_id: str, cluster_id: str) -> None:
        await self._add_member("Cluster", organization_id, cluster_id)

    async def cluster_exists(self, organization_id: str, cluster_id: str) -> bool:
        return await self._member_exists("Cluster", organization_id, cluster_id)

    async def list_clusters(self, organization_id: str) -> list[str]:
        return await self._list_members("Cluster", organization_id)

    async def delete_cluster(self, organization_id: str, cluster_id: str) -> None:
        await self._delete_member("Cluster", organization_id, cluster_id)

    # Nodes
    async def add_node(self, organization_id: str, node_id: str) -> None:
        await self._add_member("Node", organization_id, node_id)

    async def node_exists(self, organization_id: str, node_id: str) -> bool:
        return await self._member_exists("Node", organization_id, node_id)

    async def list_nodes(self, organization_id: str) -> list[str]:
        return await self._list_members("Node", organization_id)

    async def delete_node(self, organization_id: str, node_id: str) -> None:
        await self._delete_member("Node", organization_id, node_id)

    # Roles
    async def add_role(self, organization_id: str, role_id: str) -> None:
        await self._add_member("Role", organization_id, role_id)

    async def role_exists(self, organization_id: str, role_id: str) -> bool:
        return await self._member_exists("Role", organization_id, role_id)

    async def list_roles(self, organization_id: str) -> list[str]:
        return await self._list_members("Role", organization_id)

    async def delete_role(self, organization_id: str, role_id: str) -> None:
        await self._delete_member("Role", organization_id, role_id)
