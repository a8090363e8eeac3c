"""
Database Connection Management

Connection pool lifecycle for the PostgreSQL backend. The pool is opened
once at process start and handed to the stores through the adapter.
"""

# Standard library imports
import asyncio
import logging

# Third-party imports
import psycopg
from psycopg_pool import AsyncConnectionPool

# Local imports
from system_model.application.interfaces.exceptions import StoreUnavailableError
from system_model.infrastructure.config import DatabaseConfig

from .adapter import PostgreSQLAdapter

logger = logging.getLogger(__name__)


class DatabaseConnection:
    """
    Database connection manager.

    Manages a single psycopg3 connection pool and the adapter built on it.
    """

    def __init__(self, config: DatabaseConfig) -> None:
        self.config = config
        self._pool: AsyncConnectionPool | None = None
        self._adapter: PostgreSQLAdapter | None = None
        self._is_closed = False

    @property
    def is_connected(self) -> bool:
        """Check if connection pool is active."""
        return self._pool is not None and not self._pool.closed

    @property
    def adapter(self) -> PostgreSQLAdapter:
        if self._adapter is None:
            raise StoreUnavailableError("Database connection has not been opened")
        return self._adapter

    async def connect(self) -> PostgreSQLAdapter:
        """
        Open the connection pool, retrying with exponential backoff.

        Returns:
            Adapter bound to the open pool

        Raises:
            StoreUnavailableError: If connection fails after all attempts
        """
        if self._is_closed:
            raise StoreUnavailableError("Connection manager has been closed")

        if self.is_connected and self._adapter is not None:
            return self._adapter

        attempts = max(1, self.config.max_connect_attempts)
        delay = 0.5
        for attempt in range(attempts):
            logger.info(
                f"Connecting to database (attempt {attempt + 1}/{attempts}): "
                f"{self.config.host}:{self.config.port}/{self.config.database}"
            )
            pool = AsyncConnectionPool(
                conninfo=self.config.build_dsn(),
                min_size=self.config.min_pool_size,
                max_size=self.config.max_pool_size,
                max_idle=self.config.max_idle_time,
                max_lifetime=self.config.max_lifetime,
                timeout=self.config.command_timeout,
                open=False,
            )
            try:
                await asyncio.wait_for(pool.open(wait=True), self.config.server_connection_timeout)
                async with pool.connection() as conn, conn.cursor() as cur:
                    await cur.execute("SELECT 1")
                    await cur.fetchone()
            except (TimeoutError, psycopg.OperationalError, OSError) as e:
                await pool.close()
                if attempt == attempts - 1:
                    logger.error(f"Failed to connect to database after {attempts} attempts: {e}")
                    raise StoreUnavailableError(
                        f"Failed to connect to database after {attempts} attempts: {e}", e
                    ) from e
                logger.warning(
                    f"Connection attempt {attempt + 1} failed: {e}. "
                    f"Retrying in {delay:.2f} seconds..."
                )
                await asyncio.sleep(delay)
                delay *= 2
                continue

            self._pool = pool
            self._adapter = PostgreSQLAdapter(pool, self.config.command_timeout)
            logger.info(
                f"Database connected. Pool size: "
                f"{self.config.min_pool_size}-{self.config.max_pool_size}"
            )
            return self._adapter

        raise StoreUnavailableError("Failed to establish database connection")

    async def disconnect(self) -> None:
        """Close database connection pool."""
        if self._is_closed:
            return

        logger.info("Disconnecting from database...")
        if self._pool is not None and not self._pool.closed:
            await self._pool.close()
        self._pool = None
        self._adapter = None
        self._is_closed = True
        logger.info("Database disconnected")
