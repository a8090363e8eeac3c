"""In-memory store implementations."""

from .base import InMemoryEntityStore
from .stores import (
    InMemoryClusterStore,
    InMemoryNodeStore,
    InMemoryOrganizationIndex,
    InMemoryRoleStore,
)

__all__ = [
    "InMemoryEntityStore",
    "InMemoryClusterStore",
    "InMemoryNodeStore",
    "InMemoryOrganizationIndex",
    "InMemoryRoleStore",
]
