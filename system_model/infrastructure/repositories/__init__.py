"""
Store Infrastructure Module

Concrete implementations of the store interfaces: an in-memory variant for
tests and single-process deployments, and a PostgreSQL variant.
"""

from .memory import (
    InMemoryClusterStore,
    InMemoryNodeStore,
    InMemoryOrganizationIndex,
    InMemoryRoleStore,
)
from .postgresql import (
    PostgreSQLClusterStore,
    PostgreSQLNodeStore,
    PostgreSQLOrganizationIndex,
    PostgreSQLRoleStore,
)

__all__ = [
    "InMemoryClusterStore",
    "InMemoryNodeStore",
    "InMemoryOrganizationIndex",
    "InMemoryRoleStore",
    "PostgreSQLClusterStore",
    "PostgreSQLNodeStore",
    "PostgreSQLOrganizationIndex",
    "PostgreSQLRoleStore",
]
