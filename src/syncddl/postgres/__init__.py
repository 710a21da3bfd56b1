"""PostgreSQL connection handling."""

from syncddl.postgres.client import PostgresClient
from syncddl.postgres.scope import ConnectionScope, ConnectionScopeExecutor

__all__ = [
    "ConnectionScope",
    "ConnectionScopeExecutor",
    "PostgresClient",
]
