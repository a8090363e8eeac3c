"""
Dependency Injection Container - Central container for application dependencies.

Builds every store exactly once for the configured backend and hands the
same instances to the coordinators. The PostgreSQL backend needs an open
connection, so its stores only exist after ``initialize()``.
"""

# Standard library imports
import logging
from dataclasses import dataclass
from typing import Any

# Local imports
from system_model.application.coordinators import (
    ClusterCoordinator,
    NodeCoordinator,
    OrganizationCoordinator,
    RoleCoordinator,
)
from system_model.application.interfaces.exceptions import StoreUnavailableError
from system_model.application.interfaces.repositories import (
    IClusterStore,
    INodeStore,
    IOrganizationIndex,
    IRoleStore,
)
from system_model.infrastructure.config import AppConfig
from system_model.infrastructure.database import DatabaseConnection, MigrationManager
from system_model.infrastructure.repositories import (
    InMemoryClusterStore,
    InMemoryNodeStore,
    InMemoryOrganizationIndex,
    InMemoryRoleStore,
    PostgreSQLClusterStore,
    PostgreSQLNodeStore,
    PostgreSQLOrganizationIndex,
    PostgreSQLRoleStore,
)

logger = logging.getLogger(__name__)


@dataclass
class Stores:
    """The four stores shared by every coordinator."""

    organizations: IOrganizationIndex
    clusters: IClusterStore
    nodes: INodeStore
    roles: IRoleStore


class TopologyContainer:
    """
    Container for the topology service.

    Usage::

        container = TopologyContainer(AppConfig.from_env())
        await container.initialize()
        ...
        await container.cleanup()
    """

    def __init__(self, config: AppConfig | None = None, stores: Stores | None = None) -> None:
        """
        Initialize the container.

        Args:
            config: Application configuration, read from the environment if omitted
            stores: Pre-built stores; when given the configured backend is ignored
        """
        self.config = config or AppConfig.from_env()
        self._database: DatabaseConnection | None = None
        self._stores: Stores | None = stores
        self._coordinators: dict[type[Any], Any] = {}
        self._initialized = False

        if self._stores is None and not self.config.store.uses_database:
            self._stores = Stores(
                organizations=InMemoryOrganizationIndex(),
                clusters=InMemoryClusterStore(),
                nodes=InMemoryNodeStore(),
                roles=InMemoryRoleStore(),
            )
        if self._stores is not None:
            self._wire_coordinators(self._stores)

        logger.info(f"Dependency injection container created (backend={self.backend})")

    @property
    def backend(self) -> str:
        return self.config.store.backend

    @property
    def stores(self) -> Stores:
        if self._stores is None:
            raise StoreUnavailableError("Stores are not available before initialize()")
        return self._stores

    def _wire_coordinators(self, stores: Stores) -> None:
        self._coordinators = {
            OrganizationCoordinator: OrganizationCoordinator(stores.organizations),
            ClusterCoordinator: ClusterCoordinator(
                stores.organizations, stores.clusters, stores.nodes
            ),
            NodeCoordinator: NodeCoordinator(stores.organizations, stores.clusters, stores.nodes),
            RoleCoordinator: RoleCoordinator(stores.organizations, stores.roles),
        }

    def _get(self, cls: type[Any]) -> Any:
        if cls not in self._coordinators:
            raise StoreUnavailableError(f"{cls.__name__} is not available before initialize()")
        return self._coordinators[cls]

    @property
    def organizations(self) -> OrganizationCoordinator:
        return self._get(OrganizationCoordinator)

    @property
    def clusters(self) -> ClusterCoordinator:
        return self._get(ClusterCoordinator)

    @property
    def nodes(self) -> NodeCoordinator:
        return self._get(NodeCoordinator)

    @property
    def roles(self) -> RoleCoordinator:
        return self._get(RoleCoordinator)

    async def initialize(self) -> None:
        """Open the database connection and apply migrations when configured."""
        if self._initialized:
            return

        if self._stores is None:
            self._database = DatabaseConnection(self.config.database)
            adapter = await self._database.connect()
            applied = await MigrationManager(adapter).migrate_to_latest()
            logger.info(f"Database schema ready ({applied} migrations applied)")
            self._stores = Stores(
                organizations=PostgreSQLOrganizationIndex(adapter),
                clusters=PostgreSQLClusterStore(adapter),
                nodes=PostgreSQLNodeStore(adapter),
                roles=PostgreSQLRoleStore(adapter),
            )
            self._wire_coordinators(self._stores)

        self._initialized = True
        logger.info("Container initialized successfully")

    async def health_check(self) -> dict[str, Any]:
        """Report backend health."""
        if self._database is None:
            return {"status": "healthy", "backend": self.backend}

        healthy = self._database.is_connected and await self._database.adapter.health_check()
        return {"status": "healthy" if healthy else "unhealthy", "backend": self.backend}

    async def cleanup(self) -> None:
        """Release the database connection."""
        if self._database is not None:
            await self._database.disconnect()
            self._database = None
        self._initialized = False
        logger.info("Container cleaned up")
