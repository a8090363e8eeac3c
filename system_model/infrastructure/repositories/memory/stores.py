"""
In-memory stores for organizations, clusters, nodes and roles.

Membership sets and cluster node lists live in side tables next to the
records; ``update`` replaces the record only and never touches them.
"""

from __future__ import annotations

import copy

from system_model.application.interfaces.exceptions import (
    DuplicateMembershipError,
    EntityNotFoundError,
    MembershipNotFoundError,
)
from system_model.domain.entities import Cluster, Node, Organization, Role

from .base import InMemoryEntityStore


class InMemoryNodeStore(InMemoryEntityStore[Node]):
    entity_type = "Node"
    key_attribute = "node_id"


class InMemoryRoleStore(InMemoryEntityStore[Role]):
    entity_type = "Role"
    key_attribute = "role_id"


class InMemoryClusterStore(InMemoryEntityStore[Cluster]):
    """Cluster records plus each cluster's ordered node list."""

    entity_type = "Cluster"
    key_attribute = "cluster_id"

    def __init__(self) -> None:
        super().__init__()
        self._node_lists: dict[str, list[str]] = {}

    def _to_stored(self, entity: Cluster) -> Cluster:
        stored = copy.deepcopy(entity)
        stored.node_ids = []
        return stored

    def _from_stored(self, key: str, stored: Cluster) -> Cluster:
        cluster = copy.deepcopy(stored)
        cluster.node_ids = list(self._node_lists.get(key, []))
        return cluster

    def _on_added(self, key: str) -> None:
        self._node_lists[key] = []

    def _on_removed(self, key: str) -> None:
        self._node_lists.pop(key, None)

    def _on_cleared(self) -> None:
        self._node_lists.clear()

    def _node_list(self, cluster_id: str) -> list[str]:
        if cluster_id not in self._records:
            raise EntityNotFoundError(self.entity_type, cluster_id)
        return self._node_lists.setdefault(cluster_id, [])

    async def add_node(self, cluster_id: str, node_id: str) -> None:
        async with self._lock:
            node_ids = self._node_list(cluster_id)
            if node_id in node_ids:
                raise DuplicateMembershipError("Cluster", cluster_id, "Node", node_id)
            node_ids.append(node_id)

    async def node_exists(self, cluster_id: str, node_id: str) -> bool:
        async with self._lock:
            return node_id in self._node_lists.get(cluster_id, [])

    async def list_nodes(self, cluster_id: str) -> list[str]:
        async with self._lock:
            return list(self._node_list(cluster_id))

    async def delete_node(self, cluster_id: str, node_id: str) -> None:
        async with self._lock:
            node_ids = self._node_list(cluster_id)
            if node_id not in node_ids:
                raise MembershipNotFoundError("Cluster", cluster_id, "Node", node_id)
            node_ids.remove(node_id)


class InMemoryOrganizationIndex(InMemoryEntityStore[Organization]):
    """Organization records plus their cluster, node and role membership sets."""

    entity_type = "Organization"
    key_attribute = "organization_id"

    _KINDS = ("cluster", "node", "role")

    def __init__(self) -> None:
        super().__init__()
        self._members: dict[str, dict[str, set[str]]] = {kind: {} for kind in self._KINDS}

    def _to_stored(self, entity: Organization) -> Organization:
        stored = copy.deepcopy(entity)
        stored.cluster_ids = set()
        stored.node_ids = set()
        stored.role_ids = set()
        return stored

    def _from_stored(self, key: str, stored: Organization) -> Organization:
        organization = copy.deepcopy(stored)
        organization.cluster_ids = set(self._members["cluster"].get(key, ()))
        organization.node_ids = set(self._members["node"].get(key, ()))
        organization.role_ids = set(self._members["role"].get(key, ()))
        return organization

    def _on_added(self, key: str) -> None:
        for kind in self._KINDS:
            self._members[kind][key] = set()

    def _on_removed(self, key: str) -> None:
        for kind in self._KINDS:
            self._members[kind].pop(key, None)

    def _on_cleared(self) -> None:
        for kind in self._KINDS:
            self._members[kind].clear()

    async def exists_by_name(self, name: str) -> bool:
        async with self._lock:
            return any(record.name == name for record in self._records.values())

    async def list(self) -> list[Organization]:
        async with self._lock:
            return [self._from_stored(key, record) for key, record in self._records.items()]

    # Generic membership operations
    def _member_set(self, kind: str, organization_id: str) -> set[str]:
        if organization_id not in self._records:
            raise EntityNotFoundError(self.entity_type, organization_id)
        return self._members[kind].setdefault(organization_id, set())

    async def _add_member(self, kind: str, organization_id: str, member_id: str) -> None:
        async with self._lock:
            members = self._member_set(kind, organization_id)
            if member_id in members:
                raise DuplicateMembershipError(
                    self.entity_type, organization_id, kind.capitalize(), member_id
                )
            members.add(member_id)

    async def _member_exists(self, kind: str, organization_id: str, member_id: str) -> bool:
        async with self._lock:
            return member_id in self._members[kind].get(organization_id, ())

    async def _list_members(self, kind: str, organization_id: str) -> list[str]:
        async with self._lock:
            return sorted(self._member_set(kind, organization_id))

    async def _delete_member(self, kind: str, organization_id: str, member_id: str) -> None:
        async with self._lock:
            members = self._member_set(kind, organization_id)
            if member_id not in members:
                raise MembershipNotFoundError(
                    self.entity_type, organization_id, kind.capitalize(), member_id
                )
            members.discard(member_id)

    # Clusters
    async def add_cluster(self, organization_id: str, cluster_id: str) -> None:
        await self._add_member("cluster", organization_id, cluster_id)

    async def cluster_exists(self, organization_id: str, cluster_id: str) -> bool:
        return await self._member_exists("cluster", organization_id, cluster_id)

    async def list_clusters(self, organization_id: str) -> list[str]:
        return await self._list_members("cluster", organization_id)

    async def delete_cluster(self, organization_id: str, cluster_id: str) -> None:
        await self._delete_member("cluster", organization_id, cluster_id)

    # Nodes
    async def add_node(self, organization_id: str, node_id: str) -> None:
        await self._add_member("node", organization_id, node_id)

    async def node_exists(self, organization_id: str, node_id: str) -> bool:
        return await self._member_exists("node", organization_id, node_id)

    async def list_nodes(self, organization_id: str) -> list[str]:
        return await self._list_members("node", organization_id)

    async def delete_node(self, organization_id: str, node_id: str) -> None:
        await self._delete_member("node", organization_id, node_id)

    # Roles
    async def add_role(self, organization_id: str, role_id: str) -> None:
        await self._add_member("role", organization_id, role_id)

    async def role_exists(self, organization_id: str, role_id: str) -> bool:
        return await self._member_exists("role", organization_id, role_id)

    async def list_roles(self, organization_id: str) -> list[str]:
        return await self._list_members("role", organization_id)

    async def delete_role(self, organization_id: str, role_id: str) -> None:
        await self._delete_member("role", organization_id, role_id)
