"""
Store Interface Definitions

Defines the contracts that infrastructure stores must implement.
Every entity family is persisted by its own store exposing only
single-entity operations; no store offers multi-key transactions.
"""

from __future__ import annotations

# Standard library imports
from abc import abstractmethod
from typing import Protocol, TypeVar

# Local imports
from system_model.domain.entities import Cluster, Node, Organization, Role

K = TypeVar("K", contravariant=True)
V = TypeVar("V")


class IEntityStore(Protocol[K, V]):
    """
    Single-entity-type store.

    Implementations serialize their own operations behind one lock covering
    the whole store. Values returned by ``get`` are copies; mutating them
    has no effect on the stored record.
    """

    @abstractmethod
    async def add(self, entity: V) -> None:
        """
        Insert a new entity.

        Raises:
            DuplicateEntityError: If the key is already present
            StoreUnavailableError: If the storage cannot be reached
        """
        ...

    @abstractmethod
    async def update(self, entity: V) -> None:
        """
        Replace an existing entity.

        Raises:
            EntityNotFoundError: If the key is absent
            StoreUnavailableError: If the storage cannot be reached
        """
        ...

    @abstractmethod
    async def exists(self, key: K) -> bool:
        """
        Check whether a key is present.

        Raises:
            StoreUnavailableError: If the storage cannot be reached
        """
        ...

    @abstractmethod
    async def get(self, key: K) -> V:
        """
        Retrieve a copy of an entity.

        Raises:
            EntityNotFoundError: If the key is absent
            StoreUnavailableError: If the storage cannot be reached
        """
        ...

    @abstractmethod
    async def remove(self, key: K) -> None:
        """
        Delete an entity.

        Raises:
            EntityNotFoundError: If the key is absent
            StoreUnavailableError: If the storage cannot be reached
        """
        ...

    @abstractmethod
    async def clear(self) -> None:
        """Empty the store. Used by tests and maintenance tooling only."""
        ...


class INodeStore(IEntityStore[str, Node], Protocol):
    """Node store interface."""


class IRoleStore(IEntityStore[str, Role], Protocol):
    """Role store interface."""


class IClusterStore(IEntityStore[str, Cluster], Protocol):
    """
    Cluster store interface.

    Besides the cluster records, the store owns each cluster's node list:
    ordered by insertion, duplicates forbidden. ``update`` never touches the
    node list.
    """

    @abstractmethod
    async def add_node(self, cluster_id: str, node_id: str) -> None:
        """
        Append a node id to the cluster's node list.

        Raises:
            EntityNotFoundError: If the cluster does not exist
            DuplicateMembershipError: If the node is already listed
        """
        ...

    @abstractmethod
    async def node_exists(self, cluster_id: str, node_id: str) -> bool:
        """Check if a node id is in the cluster's node list."""
        ...

    @abstractmethod
    async def list_nodes(self, cluster_id: str) -> list[str]:
        """
        Return the cluster's node list in insertion order.

        Raises:
            EntityNotFoundError: If the cluster does not exist
        """
        ...

    @abstractmethod
    async def delete_node(self, cluster_id: str, node_id: str) -> None:
        """
        Remove a node id from the cluster's node list.

        Raises:
            EntityNotFoundError: If the cluster does not exist
            MembershipNotFoundError: If the node is not listed
        """
        ...


class IOrganizationIndex(IEntityStore[str, Organization], Protocol):
    """
    Organization store with per-organization membership sets.

    Membership operations never consult the cluster, node or role stores:
    retracting a membership succeeds even when the underlying record is
    already gone.
    """

    @abstractmethod
    async def exists_by_name(self, name: str) -> bool:
        """Check if an organization with this name exists."""
        ...

    @abstractmethod
    async def list(self) -> list[Organization]:
        """Return every organization."""
        ...

    # Clusters
    @abstractmethod
    async def add_cluster(self, organization_id: str, cluster_id: str) -> None:
        """
        Link a cluster to an organization.

        Raises:
            EntityNotFoundError: If the organization does not exist
            DuplicateMembershipError: If the cluster is already linked
        """
        ...

    @abstractmethod
    async def cluster_exists(self, organization_id: str, cluster_id: str) -> bool:
        """Check if a cluster is linked to an organization."""
        ...

    @abstractmethod
    async def list_clusters(self, organization_id: str) -> list[str]:
        """Return the cluster ids linked to an organization."""
        ...

    @abstractmethod
    async def delete_cluster(self, organization_id: str, cluster_id: str) -> None:
        """
        Unlink a cluster from an organization.

        Raises:
            EntityNotFoundError: If the organization does not exist
            MembershipNotFoundError: If the cluster is not linked
        """
        ...

    # Nodes
    @abstractmethod
    async def add_node(self, organization_id: str, node_id: str) -> None:
        """Link a node to an organization."""
        ...

    @abstractmethod
    async def node_exists(self, organization_id: str, node_id: str) -> bool:
        """Check if a node is linked to an organization."""
        ...

    @abstractmethod
    async def list_nodes(self, organization_id: str) -> list[str]:
        """Return the node ids linked to an organization."""
        ...

    @abstractmethod
    async def delete_node(self, organization_id: str, node_id: str) -> None:
        """Unlink a node from an organization."""
        ...

    # Roles
    @abstractmethod
    async def add_role(self, organization_id: str, role_id: str) -> None:
        """Link a role to an organization."""
        ...

    @abstractmethod
    async def role_exists(self, organization_id: str, role_id: str) -> bool:
        """Check if a role is linked to an organization."""
        ...

    @abstractmethod
    async def list_roles(self, organization_id: str) -> list[str]:
        """Return the role ids linked to an organization."""
        ...

    @abstractmethod
    async def delete_role(self, organization_id: str, role_id: str) -> None:
        """Unlink a role from an organization."""
        ...
