"""
Role Entity
"""

from __future__ import annotations

# Standard library imports
from dataclasses import dataclass, field
from datetime import UTC, datetime
from uuid import uuid4


@dataclass
class RoleRequest:
    """Request parameters for creating a role."""

    name: str
    description: str = ""
    internal: bool = False
    role_id: str | None = None


@dataclass
class Role:
    """
    Role entity.

    Unique within its organization's logical scope, stored keyed only by
    the role identifier.
    """

    role_id: str = field(default_factory=lambda: str(uuid4()))
    organization_id: str = ""
    name: str = ""
    description: str = ""
    internal: bool = False
    created: int = field(default_factory=lambda: int(datetime.now(UTC).timestamp()))

    def __post_init__(self) -> None:
        if not self.role_id:
            raise ValueError("Role identifier cannot be empty")
        if not self.organization_id:
            raise ValueError("Role organization cannot be empty")
        if not self.name:
            raise ValueError("Role name cannot be empty")

    @classmethod
    def create(cls, organization_id: str, request: RoleRequest) -> Role:
        role = cls(
            organization_id=organization_id,
            name=request.name,
            description=request.description,
            internal=request.internal,
        )
        if request.role_id:
            role.role_id = request.role_id
        return role
