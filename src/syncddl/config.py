"""Configuration management for syncddl."""

import configparser
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from psycopg.conninfo import make_conninfo

from syncddl.exceptions import ConfigError
from syncddl.types import ProviderType

NAME_SUFFIX_STRATEGIES = ("hash", "random")

_TRUE_VALUES = {"1", "true", "yes", "on"}


def pg_service_file() -> Path:
    """Location of the libpq service file (PGSERVICEFILE or ~/.pg_service.conf)."""
    explicit = os.environ.get("PGSERVICEFILE")
    if explicit:
        return Path(explicit)
    return Path.home() / ".pg_service.conf"


def load_pg_service(service: str) -> dict[str, str]:
    """Load connection settings for a service from the libpq service file.

    Args:
        service: Section name in the service file

    Returns:
        Dict with any of host, port, dbname, user, password

    Raises:
        ConfigError: If the file exists but the service is not defined
    """
    cfg_path = pg_service_file()
    if not cfg_path.exists():
        return {}

    config = configparser.ConfigParser()
    config.read(cfg_path)

    if service not in config:
        available = config.sections() or ["<none>"]
        raise ConfigError(
            f"Service '{service}' not found in {cfg_path}. "
            f"Available services: {', '.join(available)}"
        )

    section = config[service]
    return {
        key: section[key].strip()
        for key in ("host", "port", "dbname", "user", "password")
        if key in section
    }


def _parse_bool(value: str) -> bool:
    return value.strip().lower() in _TRUE_VALUES


@dataclass
class Config:
    """Configuration for syncddl."""

    schema_dir: str = "schema"
    target_provider: str = ProviderType.POSTGRES
    default_schema: str = "public"
    name_suffix: str = "hash"
    ensure_primary_key: bool = False
    conninfo_override: Optional[str] = None
    pg_host: Optional[str] = None
    pg_port: Optional[str] = None
    pg_database: Optional[str] = None
    pg_user: Optional[str] = None
    pg_password: Optional[str] = None

    def __post_init__(self) -> None:
        if self.name_suffix not in NAME_SUFFIX_STRATEGIES:
            raise ConfigError(
                f"Invalid name suffix strategy {self.name_suffix!r}, "
                f"expected one of: {', '.join(NAME_SUFFIX_STRATEGIES)}"
            )

    @classmethod
    def from_env(
        cls,
        *,
        schema_dir: Optional[str] = None,
        default_schema: Optional[str] = None,
        name_suffix: Optional[str] = None,
        ensure_primary_key: Optional[bool] = None,
        conninfo: Optional[str] = None,
        pg_host: Optional[str] = None,
        pg_port: Optional[str] = None,
        pg_database: Optional[str] = None,
        pg_user: Optional[str] = None,
        pg_password: Optional[str] = None,
        service: Optional[str] = None,
    ) -> "Config":
        """Load configuration from the service file, env vars, with CLI overrides.

        Priority (highest to lowest):
        1. Explicit parameters (CLI args)
        2. Environment variables
        3. ~/.pg_service.conf section (--service or PGSERVICE)
        """
        service_cfg = {}
        service_name = service or os.environ.get("PGSERVICE")
        if service_name:
            service_cfg = load_pg_service(service_name)

        def resolve(explicit, env_key, cfg_key=None):
            if explicit is not None:
                return explicit
            env_val = os.environ.get(env_key)
            if env_val is not None:
                return env_val
            if cfg_key and cfg_key in service_cfg:
                return service_cfg[cfg_key]
            return None

        if ensure_primary_key is None:
            ensure_primary_key = _parse_bool(
                os.environ.get("SYNCDDL_ENSURE_PRIMARY_KEY", "false")
            )

        return cls(
            schema_dir=schema_dir
            if schema_dir is not None
            else os.environ.get("SYNCDDL_SCHEMA_DIR", "schema"),
            default_schema=default_schema
            if default_schema is not None
            else os.environ.get("SYNCDDL_DEFAULT_SCHEMA", "public"),
            name_suffix=name_suffix
            if name_suffix is not None
            else os.environ.get("SYNCDDL_NAME_SUFFIX", "hash"),
            ensure_primary_key=ensure_primary_key,
            conninfo_override=resolve(conninfo, "SYNCDDL_CONNINFO"),
            pg_host=resolve(pg_host, "PGHOST", "host"),
            pg_port=resolve(pg_port, "PGPORT", "port"),
            pg_database=resolve(pg_database, "PGDATABASE", "dbname"),
            pg_user=resolve(pg_user, "PGUSER", "user"),
            pg_password=resolve(pg_password, "PGPASSWORD", "password"),
        )

    def conninfo(self) -> str:
        """Build the libpq connection string.

        An explicit SYNCDDL_CONNINFO wins; individual fields are layered on top.
        """
        params = {
            "host": self.pg_host,
            "port": self.pg_port,
            "dbname": self.pg_database,
            "user": self.pg_user,
            "password": self.pg_password,
        }
        return make_conninfo(
            self.conninfo_override or "",
            **{k: v for k, v in params.items() if v is not None},
        )

    def validate_for_db_ops(self) -> None:
        """Validate that all required fields for database operations are present.

        Raises:
            ConfigError: If host, database or user is missing.
        """
        if self.conninfo_override:
            return

        missing = []
        if not self.pg_host:
            missing.append("host (set PGHOST, --conninfo or --service)")
        if not self.pg_database:
            missing.append("database (set PGDATABASE, --conninfo or --service)")
        if not self.pg_user:
            missing.append("user (set PGUSER, --conninfo or --service)")

        if missing:
            raise ConfigError(
                "Missing required configuration:\n  - " + "\n  - ".join(missing)
            )
