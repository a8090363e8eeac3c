"""
Shared precondition checks and the add-with-membership saga used by the
topology coordinators.
"""

import logging
from collections.abc import Awaitable, Callable
from typing import Any, TypeVar

from system_model.application.exceptions_application import ConsistencyError
from system_model.application.interfaces.exceptions import (
    DuplicateEntityError,
    EntityNotFoundError,
    MembershipNotFoundError,
)
from system_model.application.interfaces.repositories import IEntityStore, IOrganizationIndex

from .saga import Saga

T = TypeVar("T")

MembershipOp = Callable[[str, str], Awaitable[Any]]


class TopologyCoordinator:
    """Base class for coordinators composing the organization index with entity stores."""

    def __init__(self, organizations: IOrganizationIndex) -> None:
        self.organizations = organizations
        self.logger = logging.getLogger(f"{__name__}.{self.__class__.__name__}")

    async def _require_organization(self, organization_id: str) -> None:
        if not await self.organizations.exists(organization_id):
            raise EntityNotFoundError("Organization", organization_id)

    async def _require_member(
        self, organization_id: str, member_type: str, member_id: str, exists: MembershipOp
    ) -> None:
        if not await exists(organization_id, member_id):
            raise MembershipNotFoundError("Organization", organization_id, member_type, member_id)

    async def _resolve_members(
        self,
        operation: str,
        organization_id: str,
        entity_type: str,
        ids: list[str],
        store: IEntityStore[str, T],
    ) -> list[T]:
        """
        Fetch every record referenced by an index the system maintains itself.

        A listed id without a record is a dangling reference, reported as a
        consistency fault rather than a not-found.
        """
        entities = []
        for entity_id in ids:
            try:
                entities.append(await store.get(entity_id))
            except EntityNotFoundError as e:
                key = f"{entity_type.lower()}_id"
                self.logger.error(
                    f"Dangling {entity_type.lower()} reference {entity_id} "
                    f"in organization {organization_id}",
                    extra={"organization_id": organization_id, key: entity_id},
                )
                raise ConsistencyError(
                    operation,
                    f"{entity_type} '{entity_id}' is listed but has no record",
                    identifiers={"organization_id": organization_id, key: entity_id},
                    cause=e,
                ) from e
        return entities

    async def _add_with_membership(
        self,
        operation: str,
        entity_type: str,
        organization_id: str,
        entity_id: str,
        entity: T,
        store: IEntityStore[str, T],
        membership_exists: MembershipOp,
        add_membership: MembershipOp,
        retry: bool,
    ) -> T:
        """
        Store a new entity, then link it to its organization.

        The store write has no compensation, so a failed membership step is
        reported as a consistency fault and the caller is expected to retry
        with the same identifier. On retry, an entity that
        is already stored for this organization but not yet linked resumes
        at the membership step.
        """
        key = f"{entity_type.lower()}_id"
        saga = Saga(operation, identifiers={"organization_id": organization_id, key: entity_id})

        if retry and await store.exists(entity_id):
            existing = await store.get(entity_id)
            owner = existing.organization_id  # type: ignore[attr-defined]
            if owner != organization_id or await membership_exists(organization_id, entity_id):
                raise DuplicateEntityError(entity_type, entity_id)

            self.logger.warning(
                f"{entity_type} {entity_id} is stored without membership in "
                f"organization {organization_id}; resuming {operation} at the membership step",
                extra={"organization_id": organization_id, key: entity_id},
            )
            entity = existing

            async def already_stored() -> T:
                return existing

            saga.add_step(f"{entity_type.lower()} already stored", already_stored)
        else:
            saga.add_step(f"store {entity_type.lower()}", lambda: store.add(entity))

        saga.add_step(
            f"link {entity_type.lower()} to organization",
            lambda: add_membership(organization_id, entity_id),
        )
        await saga.execute()
        return entity
