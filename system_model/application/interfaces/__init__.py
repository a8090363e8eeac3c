"""
Application Interfaces - Store Contracts

This module defines the interface contracts that the infrastructure layer
must implement. Following the dependency inversion principle, the application
layer defines what it needs, and the infrastructure layer provides it.
"""

from .exceptions import (
    DuplicateEntityError,
    DuplicateMembershipError,
    EntityNotFoundError,
    IntegrityError,
    MembershipNotFoundError,
    RepositoryError,
    StoreTimeoutError,
    StoreUnavailableError,
)
from .repositories import (
    IClusterStore,
    IEntityStore,
    INodeStore,
    IOrganizationIndex,
    IRoleStore,
)

__all__ = [
    # Store interfaces
    "IEntityStore",
    "IClusterStore",
    "INodeStore",
    "IOrganizationIndex",
    "IRoleStore",
    # Exceptions
    "RepositoryError",
    "EntityNotFoundError",
    "MembershipNotFoundError",
    "DuplicateEntityError",
    "DuplicateMembershipError",
    "StoreUnavailableError",
    "StoreTimeoutError",
    "IntegrityError",
]
