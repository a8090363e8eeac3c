"""
Store Exception Definitions

Defines exceptions that stores may raise.
Following clean architecture principles - these are application-level exceptions.
Stores surface only "already exists", "not found" and "unavailable" failures;
consistency faults across stores are detected and raised by coordinators.
"""

# Standard library imports
from typing import Any


class RepositoryError(Exception):
    """Base exception for store operations."""

    def __init__(
        self,
        message: str,
        cause: Exception | None = None,
        identifiers: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message)
        self.cause = cause
        self.identifiers = identifiers or {}


class EntityNotFoundError(RepositoryError):
    """Raised when an entity is not found in the store."""

    def __init__(self, entity_type: str, identifier: str) -> None:
        super().__init__(
            f"{entity_type} with identifier '{identifier}' not found",
            identifiers={f"{entity_type.lower()}_id": identifier},
        )
        self.entity_type = entity_type
        self.identifier = identifier


class DuplicateEntityError(RepositoryError):
    """Raised when attempting to create an entity that already exists."""

    def __init__(self, entity_type: str, identifier: str) -> None:
        super().__init__(
            f"{entity_type} with identifier '{identifier}' already exists",
            identifiers={f"{entity_type.lower()}_id": identifier},
        )
        self.entity_type = entity_type
        self.identifier = identifier


class MembershipNotFoundError(EntityNotFoundError):
    """Raised when a member id is not linked to its parent."""

    def __init__(
        self, parent_type: str, parent_id: str, member_type: str, member_id: str
    ) -> None:
        RepositoryError.__init__(
            self,
            f"{member_type} '{member_id}' is not a member of {parent_type} '{parent_id}'",
            identifiers={
                f"{parent_type.lower()}_id": parent_id,
                f"{member_type.lower()}_id": member_id,
            },
        )
        self.entity_type = member_type
        self.identifier = member_id
        self.parent_type = parent_type
        self.parent_id = parent_id


class DuplicateMembershipError(DuplicateEntityError):
    """Raised when a member id is already linked to its parent."""

    def __init__(
        self, parent_type: str, parent_id: str, member_type: str, member_id: str
    ) -> None:
        RepositoryError.__init__(
            self,
            f"{member_type} '{member_id}' is already a member of {parent_type} '{parent_id}'",
            identifiers={
                f"{parent_type.lower()}_id": parent_id,
                f"{member_type.lower()}_id": member_id,
            },
        )
        self.entity_type = member_type
        self.identifier = member_id
        self.parent_type = parent_type
        self.parent_id = parent_id


class StoreUnavailableError(RepositoryError):
    """Raised when the underlying storage cannot be reached."""

    def __init__(
        self,
        message: str = "Store is unavailable",
        cause: Exception | None = None,
        identifiers: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, cause, identifiers)


class StoreTimeoutError(StoreUnavailableError):
    """Raised when a store operation times out."""

    def __init__(
        self,
        operation: str,
        timeout_seconds: float,
        identifiers: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            f"Operation '{operation}' timed out after {timeout_seconds} seconds",
            identifiers=identifiers,
        )
        self.operation = operation
        self.timeout_seconds = timeout_seconds


class IntegrityError(RepositoryError):
    """Raised when a database integrity constraint is violated."""

    def __init__(self, constraint: str, message: str | None = None) -> None:
        msg = f"Integrity constraint '{constraint}' violated"
        if message:
            msg += f": {message}"
        super().__init__(msg)
        self.constraint = constraint
