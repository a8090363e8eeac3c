"""
Organization Coordinator

Creates, reads and renames organizations. Organizations are the root of the
topology, so these operations touch only the organization index.
"""

from system_model.application.interfaces.exceptions import DuplicateEntityError
from system_model.domain.entities import Organization, OrganizationUpdate
from system_model.infrastructure.monitoring.logging import log_coordinator_operation

from .base import TopologyCoordinator


class OrganizationCoordinator(TopologyCoordinator):
    """Coordinates organization lifecycle operations."""

    @log_coordinator_operation("add_organization")
    async def add_organization(self, name: str) -> Organization:
        """
        Create an organization.

        Args:
            name: Display name, unique across organizations

        Returns:
            The created organization

        Raises:
            DuplicateEntityError: If an organization with this name exists
        """
        if await self.organizations.exists_by_name(name):
            raise DuplicateEntityError("Organization", name)

        organization = Organization.create(name)
        await self.organizations.add(organization)
        self.logger.info(f"Created organization {organization}")
        return organization

    @log_coordinator_operation("get_organization")
    async def get_organization(self, organization_id: str) -> Organization:
        return await self.organizations.get(organization_id)

    @log_coordinator_operation("list_organizations")
    async def list_organizations(self) -> list[Organization]:
        return await self.organizations.list()

    @log_coordinator_operation("update_organization")
    async def update_organization(
        self, organization_id: str, update: OrganizationUpdate
    ) -> Organization:
        """
        Rename an organization.

        Raises:
            EntityNotFoundError: If the organization does not exist
            DuplicateEntityError: If another organization already uses the name
        """
        organization = await self.organizations.get(organization_id)
        if (
            update.name is not None
            and update.name != organization.name
            and await self.organizations.exists_by_name(update.name)
        ):
            raise DuplicateEntityError("Organization", update.name)

        organization.apply_update(update)
        await self.organizations.update(organization)
        return organization
