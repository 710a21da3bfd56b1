"""Shared test helpers for syncddl tests."""

import re
from typing import Optional

from syncddl.postgres.scope import ConnectionScope, ConnectionScopeExecutor
from syncddl.schema.codegen import DdlStatementBuilder
from syncddl.schema.identifiers import IdentifierNormalizer, server_identifier
from syncddl.schema.introspect import SchemaIntrospector
from syncddl.schema.models import AutoIncrement, Column, Relation, Table
from syncddl.synchronizer import SchemaSynchronizer
from syncddl.types import DbType

_SCHEMA_RE = re.compile(r'^CREATE SCHEMA IF NOT EXISTS "([^"]+)"')
_TABLE_RE = re.compile(r'^CREATE TABLE IF NOT EXISTS (?:"([^"]+)"\.)?"([^"]+)"')
_ALTER_RE = re.compile(
    r'^ALTER TABLE (?:"([^"]+)"\.)?"([^"]+)" ADD CONSTRAINT "([^"]+)"\s+(PRIMARY KEY|FOREIGN KEY)'
)
_DROP_RE = re.compile(r'^DROP TABLE (?:"([^"]+)"\.)?"([^"]+)"')


class FakeCatalogClient:
    """In-memory stand-in for PostgresClient.

    Tracks open/close calls and keeps a tiny catalog that is updated by the
    DDL the synchronizer executes, so catalog queries see earlier statements.
    Empty schema names resolve to "public", and constraint names are stored
    cut to the server identifier limit.
    """

    def __init__(
        self,
        is_open: bool = False,
        schemas: Optional[set[str]] = None,
        tables: Optional[set[tuple[str, str]]] = None,
        primary_keys: Optional[set[tuple[str, str]]] = None,
        foreign_keys: Optional[dict[tuple[str, str], set[str]]] = None,
    ) -> None:
        self._open = is_open
        self.connect_calls = 0
        self.close_calls = 0
        self.executed: list[str] = []
        self.queries: list[tuple[str, tuple]] = []
        self.transactions: list[object] = []
        self.fail_on: Optional[str] = None
        self.fail_connect = False
        self.schemas = set(schemas or {"public"})
        self.tables = set(tables or set())
        self.primary_keys = set(primary_keys or set())
        self.foreign_keys = {k: set(v) for k, v in (foreign_keys or {}).items()}

    @property
    def is_open(self) -> bool:
        return self._open

    def connect(self) -> None:
        if self.fail_connect:
            raise OSError("connection refused")
        self.connect_calls += 1
        self._open = True

    def close(self) -> None:
        self.close_calls += 1
        self._open = False

    def __enter__(self) -> "FakeCatalogClient":
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def execute(self, sql_statement, params=None, transaction=None) -> None:
        assert self._open, "execute on a closed connection"
        self.transactions.append(transaction)
        if self.fail_on and self.fail_on in sql_statement:
            raise RuntimeError(f"engine rejected: {self.fail_on}")
        self.executed.append(sql_statement)
        self._apply(sql_statement)

    def fetchall(self, sql_statement, params=None, transaction=None) -> list[dict]:
        assert self._open, "fetchall on a closed connection"
        self.transactions.append(transaction)
        params = tuple(params or ())
        self.queries.append((sql_statement, params))

        if "information_schema.schemata" in sql_statement:
            return [{"?column?": 1}] if params[0] in self.schemas else []

        if "information_schema.tables" in sql_statement:
            schema, table = params
            return [{"?column?": 1}] if (schema or "public", table) in self.tables else []

        if "pg_constraint" in sql_statement:
            contype, schema, table = params
            key = (schema or "public", table)
            if contype == "p":
                return [{"constraint_name": "pk"}] if key in self.primary_keys else []
            return [{"constraint_name": n} for n in sorted(self.foreign_keys.get(key, ()))]

        return []

    def _apply(self, sql: str) -> None:
        if m := _SCHEMA_RE.match(sql):
            self.schemas.add(m.group(1))
        elif m := _TABLE_RE.match(sql):
            self.tables.add((m.group(1) or "public", m.group(2)))
        elif m := _ALTER_RE.match(sql):
            key = (m.group(1) or "public", m.group(2))
            if m.group(4) == "PRIMARY KEY":
                self.primary_keys.add(key)
            else:
                self.foreign_keys.setdefault(key, set()).add(server_identifier(m.group(3)))
        elif m := _DROP_RE.match(sql):
            key = (m.group(1) or "public", m.group(2))
            self.tables.discard(key)
            self.primary_keys.discard(key)
            self.foreign_keys.pop(key, None)


def make_synchronizer(
    client: FakeCatalogClient,
    transaction: object = None,
    ensure_primary_key: bool = False,
    normalizer: Optional[IdentifierNormalizer] = None,
) -> SchemaSynchronizer:
    executor = ConnectionScopeExecutor(ConnectionScope(client, transaction))
    builder = DdlStatementBuilder(normalizer=normalizer or IdentifierNormalizer())
    return SchemaSynchronizer(
        executor,
        builder,
        SchemaIntrospector(executor),
        ensure_primary_key=ensure_primary_key,
    )


def make_orders_table(schema_name: Optional[str] = "sales") -> Table:
    """The sales.orders table: identity id plus a nullable amount."""
    return Table(
        name="orders",
        schema_name=schema_name,
        columns=[
            Column(
                name="id",
                db_type=DbType.INT32,
                nullable=False,
                auto_increment=AutoIncrement(seed=1, step=1),
            ),
            Column(
                name="amount",
                db_type=DbType.DECIMAL,
                precision=10,
                scale=2,
                nullable=True,
            ),
        ],
        primary_keys=["id"],
    )


def make_order_lines_table(schema_name: Optional[str] = "sales") -> Table:
    return Table(
        name="order_lines",
        schema_name=schema_name,
        columns=[
            Column(name="id", db_type=DbType.INT64, nullable=False),
            Column(name="order_id", db_type=DbType.INT32, nullable=False),
            Column(name="parent_line_id", db_type=DbType.INT64),
        ],
        primary_keys=["id"],
    )


def make_order_relations(orders: Table, lines: Table) -> list[Relation]:
    return [
        Relation(
            name="fk_order_lines_orders",
            table=lines,
            parent_table=orders,
            keys=["order_id"],
            parent_keys=["id"],
        ),
        Relation(
            name="fk_order_lines_parent",
            table=lines,
            parent_table=lines,
            keys=["parent_line_id"],
            parent_keys=["id"],
        ),
    ]
