"""PostgreSQL store implementations."""

from .base import PostgreSQLEntityStore
from .stores import (
    PostgreSQLClusterStore,
    PostgreSQLNodeStore,
    PostgreSQLOrganizationIndex,
    PostgreSQLRoleStore,
)

__all__ = [
    "PostgreSQLEntityStore",
    "PostgreSQLClusterStore",
    "PostgreSQLNodeStore",
    "PostgreSQLOrganizationIndex",
    "PostgreSQLRoleStore",
]
