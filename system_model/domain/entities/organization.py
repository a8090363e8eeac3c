"""
Organization Entity - Owner of clusters, nodes and roles
"""

from __future__ import annotations

# Standard library imports
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4


def _now() -> int:
    return int(datetime.now(UTC).timestamp())


@dataclass
class OrganizationUpdate:
    """Mutable display attributes of an organization."""

    name: str | None = None


@dataclass
class Organization:
    """
    Organization entity.

    The membership sets are a denormalized index maintained by the
    organization store. They are filled in on read and are never written
    through a plain update of the organization record.
    """

    # Identity
    organization_id: str = field(default_factory=lambda: str(uuid4()))

    # Display attributes
    name: str = ""
    created: int = field(default_factory=_now)

    # Membership sets
    cluster_ids: set[str] = field(default_factory=set)
    node_ids: set[str] = field(default_factory=set)
    role_ids: set[str] = field(default_factory=set)

    def __post_init__(self) -> None:
        """Validate organization after initialization"""
        if not self.organization_id:
            raise ValueError("Organization identifier cannot be empty")
        if not self.name:
            raise ValueError("Organization name cannot be empty")

    @classmethod
    def create(cls, name: str) -> Organization:
        """Create a new organization with a fresh identifier."""
        return cls(name=name)

    def apply_update(self, update: OrganizationUpdate) -> None:
        """Apply the fields set in the update."""
        if update.name is not None:
            if not update.name:
                raise ValueError("Organization name cannot be empty")
            self.name = update.name

    def __str__(self) -> str:
        return f"Organization({self.organization_id}, {self.name})"
