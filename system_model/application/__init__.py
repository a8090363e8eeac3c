"""
Application Layer - Coordination of multi-store operations

This layer contains:
- Interfaces: Store contracts and the store exception taxonomy
- Coordinators: Saga-style operations spanning several stores

Depends on domain layer, orchestrates store operations.
Defines interfaces that infrastructure layer must implement.
"""

from .exceptions_application import (
    ApplicationException,
    ConsistencyError,
    NodeAlreadyAttachedError,
)
from .interfaces import (
    DuplicateEntityError,
    DuplicateMembershipError,
    EntityNotFoundError,
    IClusterStore,
    IEntityStore,
    INodeStore,
    IntegrityError,
    IOrganizationIndex,
    IRoleStore,
    MembershipNotFoundError,
    RepositoryError,
    StoreTimeoutError,
    StoreUnavailableError,
)

__all__ = [
    # Store interfaces
    "IEntityStore",
    "IClusterStore",
    "INodeStore",
    "IOrganizationIndex",
    "IRoleStore",
    # Exceptions
    "ApplicationException",
    "ConsistencyError",
    "NodeAlreadyAttachedError",
    "RepositoryError",
    "EntityNotFoundError",
    "MembershipNotFoundError",
    "DuplicateEntityError",
    "DuplicateMembershipError",
    "StoreUnavailableError",
    "StoreTimeoutError",
    "IntegrityError",
]
