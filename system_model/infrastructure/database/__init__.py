"""
Database Infrastructure Module

PostgreSQL access for the persistent stores, using psycopg3 with a
psycopg_pool connection pool.
"""

from .adapter import PostgreSQLAdapter
from .connection import DatabaseConnection
from .migrations import Migration, MigrationManager

__all__ = [
    "PostgreSQLAdapter",
    "DatabaseConnection",
    "Migration",
    "MigrationManager",
]
