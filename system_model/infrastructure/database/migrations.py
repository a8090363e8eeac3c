"""
Database Migration System

Schema versioning for the PostgreSQL stores. Migrations are applied in
version order and recorded in the ``schema_migrations`` table.
"""

# Standard library imports
import logging
from dataclasses import dataclass
from datetime import UTC, datetime

# Local imports
from system_model.application.interfaces.exceptions import RepositoryError

from .adapter import PostgreSQLAdapter

logger = logging.getLogger(__name__)


@dataclass
class Migration:
    """Represents a database migration."""

    version: str
    name: str
    up_sql: str
    applied_at: datetime | None = None


# Statements are idempotent so a migration interrupted before it was
# recorded can be applied again.
SCHEMA_MIGRATIONS = [
    Migration(
        version="001",
        name="create_topology_tables",
        up_sql="""
        CREATE TABLE IF NOT EXISTS organizations (
            organization_id TEXT PRIMARY KEY,
            name TEXT NOT NULL,
            created BIGINT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS organization_clusters (
            organization_id TEXT NOT NULL,
            cluster_id TEXT NOT NULL,
            PRIMARY KEY (organization_id, cluster_id)
        );

        CREATE TABLE IF NOT EXISTS organization_nodes (
            organization_id TEXT NOT NULL,
            node_id TEXT NOT NULL,
            PRIMARY KEY (organization_id, node_id)
        );

        CREATE TABLE IF NOT EXISTS organization_roles (
            organization_id TEXT NOT NULL,
            role_id TEXT NOT NULL,
            PRIMARY KEY (organization_id, role_id)
        );

        CREATE TABLE IF NOT EXISTS clusters (
            cluster_id TEXT PRIMARY KEY,
            organization_id TEXT NOT NULL,
            name TEXT NOT NULL,
            cluster_type TEXT NOT NULL,
            hostname TEXT NOT NULL DEFAULT '',
            control_plane_hostname TEXT NOT NULL DEFAULT '',
            multitenant TEXT NOT NULL,
            status TEXT NOT NULL,
            state TEXT,
            labels JSONB NOT NULL DEFAULT '{}'::jsonb,
            cordon BOOLEAN NOT NULL DEFAULT FALSE,
            last_alive_timestamp BIGINT NOT NULL DEFAULT 0
        );

        CREATE TABLE IF NOT EXISTS cluster_nodes (
            cluster_id TEXT NOT NULL,
            node_id TEXT NOT NULL,
            position BIGSERIAL,
            PRIMARY KEY (cluster_id, node_id)
        );

        CREATE TABLE IF NOT EXISTS nodes (
            node_id TEXT PRIMARY KEY,
            organization_id TEXT NOT NULL,
            cluster_id TEXT NOT NULL DEFAULT '',
            ip TEXT NOT NULL,
            labels JSONB NOT NULL DEFAULT '{}'::jsonb,
            status TEXT NOT NULL,
            state TEXT NOT NULL
        );

        CREATE TABLE IF NOT EXISTS roles (
            role_id TEXT PRIMARY KEY,
            organization_id TEXT NOT NULL,
            name TEXT NOT NULL,
            description TEXT NOT NULL DEFAULT '',
            internal BOOLEAN NOT NULL DEFAULT FALSE,
            created BIGINT NOT NULL
        );
        """,
    ),
    Migration(
        version="002",
        name="index_lookup_columns",
        up_sql="""
        CREATE INDEX IF NOT EXISTS idx_organizations_name ON organizations(name);
        CREATE INDEX IF NOT EXISTS idx_cluster_nodes_position ON cluster_nodes(cluster_id, position);
        """,
    ),
]


class MigrationManager:
    """
    Manages database schema migrations.

    Applies pending schema changes in version order and records each one.
    """

    # Migration table name is a constant - not user input
    MIGRATIONS_TABLE = "schema_migrations"

    def __init__(
        self, adapter: PostgreSQLAdapter, migrations: list[Migration] | None = None
    ) -> None:
        self.adapter = adapter
        self._migrations: list[Migration] = [
            Migration(m.version, m.name, m.up_sql)
            for m in (SCHEMA_MIGRATIONS if migrations is None else migrations)
        ]

    async def initialize(self) -> None:
        """Create the migrations tracking table if it doesn't exist."""
        create_table_sql = f"""
        CREATE TABLE IF NOT EXISTS {self.MIGRATIONS_TABLE} (
            version VARCHAR(50) PRIMARY KEY,
            name VARCHAR(200) NOT NULL,
            applied_at TIMESTAMP WITH TIME ZONE NOT NULL DEFAULT NOW(),
            execution_time_ms INTEGER
        )
        """
        await self.adapter.execute_query(create_table_sql)
        logger.info("Migration system initialized")

    async def get_applied_versions(self) -> dict[str, datetime]:
        """
        Get applied migration versions from database.

        Returns:
            Mapping of version to the time it was applied
        """
        # nosec B608 - table name is a constant, not user input
        query = f"SELECT version, applied_at FROM {self.MIGRATIONS_TABLE} ORDER BY version"
        records = await self.adapter.fetch_all(query)
        return {record["version"]: record["applied_at"] for record in records}

    async def get_pending_migrations(self) -> list[Migration]:
        """Get migrations not yet applied, in version order."""
        applied = await self.get_applied_versions()
        return [
            m for m in sorted(self._migrations, key=lambda x: x.version) if m.version not in applied
        ]

    async def apply_migration(self, migration: Migration) -> None:
        """
        Apply a single migration.

        Raises:
            RepositoryError: If migration fails
        """
        start_time = datetime.now(UTC)
        logger.info(f"Applying migration {migration.version}: {migration.name}")

        try:
            await self.adapter.execute_query(migration.up_sql)

            execution_time = int((datetime.now(UTC) - start_time).total_seconds() * 1000)
            # nosec B608 - table name is a constant, not user input
            insert_query = f"""
            INSERT INTO {self.MIGRATIONS_TABLE} (version, name, applied_at, execution_time_ms)
            VALUES (%s, %s, %s, %s)
            ON CONFLICT (version) DO NOTHING
            """
            await self.adapter.execute_query(
                insert_query, migration.version, migration.name, start_time, execution_time
            )
        except RepositoryError as e:
            logger.error(f"Failed to apply migration {migration.version}: {e}")
            raise RepositoryError(f"Migration {migration.version} failed: {e}", e) from e

        migration.applied_at = start_time
        logger.info(f"Migration {migration.version} applied successfully in {execution_time}ms")

    async def migrate_to_latest(self) -> int:
        """
        Apply all pending migrations.

        Returns:
            Number of migrations applied
        """
        await self.initialize()
        pending_migrations = await self.get_pending_migrations()

        if not pending_migrations:
            logger.info("No pending migrations")
            return 0

        logger.info(f"Applying {len(pending_migrations)} pending migrations")
        for migration in pending_migrations:
            await self.apply_migration(migration)

        logger.info(f"Applied {len(pending_migrations)} migrations successfully")
        return len(pending_migrations)
