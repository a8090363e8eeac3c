"""Infrastructure Layer for the System Model.

Concrete implementations of the application layer store interfaces:

- In-memory stores guarded by one asyncio lock per store
- PostgreSQL stores over a pooled psycopg adapter
- Database connection management and schema migrations
- Environment driven configuration
- Structured logging
- The dependency container wiring stores into coordinators
"""
