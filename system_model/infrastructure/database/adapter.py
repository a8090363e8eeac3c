"""
PostgreSQL Database Adapter

Provides async database operations using psycopg3 for the PostgreSQL stores.
Handles connection acquisition, query execution and translation of driver
errors into the store exception taxonomy.
"""

# Standard library imports
import asyncio
import builtins
import logging
from collections.abc import AsyncGenerator, Sequence
from contextlib import asynccontextmanager
from typing import Any

# Third-party imports
import psycopg
from psycopg import AsyncConnection
from psycopg.rows import Row, dict_row
from psycopg_pool import AsyncConnectionPool, PoolTimeout

# Local imports
from system_model.application.interfaces.exceptions import (
    IntegrityError,
    RepositoryError,
    StoreTimeoutError,
    StoreUnavailableError,
)

logger = logging.getLogger(__name__)


class PostgreSQLAdapter:
    """
    PostgreSQL database adapter using psycopg3.

    Every call runs on its own pooled connection in autocommit mode; stores
    never share a transaction.
    """

    def __init__(self, pool: AsyncConnectionPool, command_timeout: float = 30.0) -> None:
        """
        Initialize adapter with connection pool.

        Args:
            pool: psycopg3 async connection pool
            command_timeout: Default timeout in seconds for a single query
        """
        self._pool = pool
        self._command_timeout = command_timeout

    @property
    def pool(self) -> AsyncConnectionPool:
        """Get the connection pool."""
        return self._pool

    @asynccontextmanager
    async def acquire_connection(self) -> AsyncGenerator[AsyncConnection, None]:
        """
        Acquire a database connection from the pool.

        Yields:
            Database connection

        Raises:
            StoreTimeoutError: If no connection frees up in time
            StoreUnavailableError: If connection cannot be acquired
        """
        try:
            async with self._pool.connection() as connection:
                yield connection
        except PoolTimeout as e:
            logger.error(f"Connection acquisition timed out: {e}")
            raise StoreTimeoutError("acquire_connection", self._pool.timeout) from e

    async def _run(
        self,
        operation: str,
        query: str,
        args: Sequence[Any],
        timeout: float | None,
        fetch: str | None,
    ) -> Any:
        timeout = timeout or self._command_timeout
        try:
            async with asyncio.timeout(timeout):
                async with (
                    self.acquire_connection() as conn,
                    conn.cursor(row_factory=dict_row) as cur,
                ):
                    await cur.execute(query, args)
                    if fetch == "one":
                        return await cur.fetchone()
                    if fetch == "all":
                        return await cur.fetchall()
                    return f"EXECUTE {cur.rowcount}"
        except StoreUnavailableError:
            raise
        except psycopg.IntegrityError as e:
            logger.error(f"Integrity constraint violated: {e} | Query: {query[:100]}...")
            constraint = getattr(getattr(e, "diag", None), "constraint_name", None) or "unknown"
            raise IntegrityError(constraint, str(e)) from e
        except psycopg.errors.QueryCanceled as e:
            logger.error(f"{operation} cancelled by server timeout | Query: {query[:100]}...")
            raise StoreTimeoutError(operation, timeout) from e
        except psycopg.OperationalError as e:
            logger.error(f"{operation} failed: {e} | Query: {query[:100]}...")
            raise StoreUnavailableError(f"Database unavailable during {operation}: {e}", e) from e
        except builtins.TimeoutError as e:
            logger.error(f"{operation} timed out: {query[:100]}...")
            raise StoreTimeoutError(operation, timeout) from e
        except psycopg.Error as e:
            logger.error(f"{operation} failed: {e} | Query: {query[:100]}...")
            raise RepositoryError(f"{operation} failed: {e}", e) from e

    async def execute_query(self, query: str, *args: Any, timeout: float | None = None) -> str:
        """
        Execute a SQL query that doesn't return data.

        Args:
            query: SQL query string
            *args: Query parameters
            timeout: Query timeout in seconds

        Returns:
            Query status string

        Raises:
            StoreUnavailableError: If the database cannot be reached
            StoreTimeoutError: If query times out
        """
        result = await self._run("execute_query", query, args, timeout, fetch=None)
        logger.debug(f"Query executed: {query[:100]}... | Result: {result}")
        return result

    async def fetch_one(self, query: str, *args: Any, timeout: float | None = None) -> Row | None:
        """
        Fetch a single record from the database.

        Returns:
            Record if found, None otherwise
        """
        result = await self._run("fetch_one", query, args, timeout, fetch="one")
        logger.debug(f"Fetch one query: {query[:100]}... | Found: {result is not None}")
        return result

    async def fetch_all(self, query: str, *args: Any, timeout: float | None = None) -> list[Row]:
        """Fetch all records from the database."""
        result = await self._run("fetch_all", query, args, timeout, fetch="all")
        logger.debug(f"Fetch all query: {query[:100]}... | Count: {len(result)}")
        return result

    async def fetch_values(self, query: str, *args: Any, timeout: float | None = None) -> list[Any]:
        """
        Fetch values from a single column.

        Returns:
            List of values from first column
        """
        records = await self.fetch_all(query, *args, timeout=timeout)
        if not records:
            return []
        first_key = next(iter(records[0].keys()))
        return [record[first_key] for record in records]

    async def health_check(self) -> bool:
        """
        Perform a health check on the database connection.

        Returns:
            True if database is healthy, False otherwise
        """
        try:
            await self.fetch_one("SELECT 1")
            return True
        except RepositoryError as e:
            logger.error(f"Health check failed: {e}")
            return False

    def __str__(self) -> str:
        return f"PostgreSQLAdapter(Pool(max_size={self._pool.max_size}))"
