"""
Role Coordinator

Two-store saga over the role store and the organization index. Removal
retracts the membership first and re-adds it if the record removal fails.
"""

from system_model.application.interfaces.repositories import IOrganizationIndex, IRoleStore
from system_model.domain.entities import Role, RoleRequest
from system_model.infrastructure.monitoring.logging import log_coordinator_operation

from .base import TopologyCoordinator
from .saga import Saga


class RoleCoordinator(TopologyCoordinator):
    """Coordinates role operations within an organization."""

    def __init__(self, organizations: IOrganizationIndex, roles: IRoleStore) -> None:
        super().__init__(organizations)
        self.roles = roles

    @log_coordinator_operation("add_role")
    async def add_role(self, organization_id: str, request: RoleRequest) -> Role:
        """
        Create a role in an organization.

        Args:
            organization_id: Owning organization
            request: Role attributes, optionally with the identifier of an
                interrupted earlier attempt

        Returns:
            The created role

        Raises:
            EntityNotFoundError: If the organization does not exist
            DuplicateEntityError: If the role already exists
            ConsistencyError: If the role was stored but could not be linked
        """
        await self._require_organization(organization_id)

        role = Role.create(organization_id, request)
        return await self._add_with_membership(
            "add_role",
            "Role",
            organization_id,
            role.role_id,
            role,
            self.roles,
            self.organizations.role_exists,
            self.organizations.add_role,
            retry=request.role_id is not None,
        )

    @log_coordinator_operation("get_role")
    async def get_role(self, organization_id: str, role_id: str) -> Role:
        await self._require_organization(organization_id)
        await self._require_member(
            organization_id, "Role", role_id, self.organizations.role_exists
        )
        return await self.roles.get(role_id)

    @log_coordinator_operation("list_roles")
    async def list_roles(self, organization_id: str) -> list[Role]:
        await self._require_organization(organization_id)
        role_ids = await self.organizations.list_roles(organization_id)
        return await self._resolve_members(
            "list_roles", organization_id, "Role", role_ids, self.roles
        )

    @log_coordinator_operation("remove_role")
    async def remove_role(self, organization_id: str, role_id: str) -> None:
        """
        Remove a role from an organization.

        The membership is retracted first. If removing the record then fails,
        the membership is re-added and the original error is raised; a failed
        re-add is only logged.

        Raises:
            EntityNotFoundError: If the organization does not exist or the role
                is not a member of it
        """
        await self._require_organization(organization_id)
        await self._require_member(
            organization_id, "Role", role_id, self.organizations.role_exists
        )

        saga = Saga(
            "remove_role", identifiers={"organization_id": organization_id, "role_id": role_id}
        )
        saga.add_step(
            "unlink role from organization",
            lambda: self.organizations.delete_role(organization_id, role_id),
            compensation=lambda: self.organizations.add_role(organization_id, role_id),
        )
        saga.add_step("remove role", lambda: self.roles.remove(role_id))
        await saga.execute()
