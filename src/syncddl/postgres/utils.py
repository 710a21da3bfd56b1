"""Utility functions for PostgreSQL operations.

Extracts common DB wiring from the CLI for reuse and testability.
"""

from typing import Optional

from syncddl.config import Config
from syncddl.postgres.client import PostgresClient
from syncddl.schema.identifiers import IdentifierNormalizer
from syncddl.synchronizer import SchemaSynchronizer


def build_config_and_validate(
    *,
    service: Optional[str] = None,
    conninfo: Optional[str] = None,
) -> Config:
    """Load config from ~/.pg_service.conf/env and validate for DB operations.

    Args:
        service: libpq service name (overrides PGSERVICE)
        conninfo: Explicit connection string (overrides SYNCDDL_CONNINFO)

    Returns:
        Config: Validated configuration.

    Raises:
        ConfigError: If required configuration is missing.
    """
    config = Config.from_env(service=service, conninfo=conninfo)
    config.validate_for_db_ops()
    return config


def make_client(config: Config) -> PostgresClient:
    """Create an unopened client.

    Use it as a context manager to hold one connection for a whole pass; an
    unopened client is opened and closed per statement by the connection scope.
    """
    config.validate_for_db_ops()
    return PostgresClient(conninfo=config.conninfo())


def make_synchronizer(config: Config, client: PostgresClient) -> SchemaSynchronizer:
    """Wire a synchronizer with the naming and schema settings from config."""
    return SchemaSynchronizer.for_client(
        client,
        normalizer=IdentifierNormalizer(suffix=config.name_suffix),
        default_schema=config.default_schema,
        ensure_primary_key=config.ensure_primary_key,
    )
