"""Catalog introspection against PostgreSQL."""

from typing import Any, Optional, Protocol, Sequence

from syncddl.schema.identifiers import server_identifier


class CatalogExecutor(Protocol):
    """Protocol for the query side of ConnectionScopeExecutor."""

    def fetchall(
        self, sql: str, params: Sequence[Any], target: str
    ) -> list[dict[str, Any]]: ...


class SchemaIntrospector:
    """Existence checks for schemas, tables and constraints.

    Nothing is cached: every call reflects the live catalog. An empty schema
    name resolves to current_schema() on the server.
    """

    _SCHEMA_EXISTS_SQL = """
        SELECT 1
        FROM information_schema.schemata
        WHERE schema_name = %s
    """

    _TABLE_EXISTS_SQL = """
        SELECT 1
        FROM information_schema.tables
        WHERE table_schema = COALESCE(%s::text, current_schema())
          AND table_name = %s
    """

    _CONSTRAINTS_SQL = """
        SELECT con.conname AS constraint_name
        FROM pg_catalog.pg_constraint con
        JOIN pg_catalog.pg_class rel ON rel.oid = con.conrelid
        JOIN pg_catalog.pg_namespace nsp ON nsp.oid = rel.relnamespace
        WHERE con.contype = %s
          AND nsp.nspname = COALESCE(%s::text, current_schema())
          AND rel.relname = %s
    """

    def __init__(self, executor: CatalogExecutor) -> None:
        self._executor = executor

    def schema_exists(self, schema_name: str) -> bool:
        rows = self._executor.fetchall(self._SCHEMA_EXISTS_SQL, (schema_name,), schema_name)
        return bool(rows)

    def table_exists(self, schema_name: Optional[str], table_name: str) -> bool:
        rows = self._executor.fetchall(
            self._TABLE_EXISTS_SQL,
            (schema_name or None, table_name),
            _target(schema_name, table_name),
        )
        return bool(rows)

    def primary_key_exists(self, schema_name: Optional[str], table_name: str) -> bool:
        rows = self._executor.fetchall(
            self._CONSTRAINTS_SQL,
            ("p", schema_name or None, table_name),
            _target(schema_name, table_name),
        )
        return bool(rows)

    def get_foreign_keys(self, schema_name: Optional[str], table_name: str) -> set[str]:
        """Names of the foreign key constraints defined on a table."""
        rows = self._executor.fetchall(
            self._CONSTRAINTS_SQL,
            ("f", schema_name or None, table_name),
            _target(schema_name, table_name),
        )
        return {row["constraint_name"] for row in rows}

    def foreign_key_exists(
        self, table_name: str, schema_name: Optional[str], relation_name: str
    ) -> bool:
        """Case-insensitive check for a named foreign key on a table.

        The catalog holds names already cut to the server identifier limit, so
        the wanted name is cut the same way before comparing.
        """
        wanted = server_identifier(relation_name).casefold()
        return any(
            name.casefold() == wanted
            for name in self.get_foreign_keys(schema_name, table_name)
        )


def _target(schema_name: Optional[str], table_name: str) -> str:
    return f"{schema_name}.{table_name}" if schema_name else table_name
