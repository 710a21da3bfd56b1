"""Materialize table descriptors on the target: schema, table, primary key, foreign keys."""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Iterable, Optional

from syncddl.postgres.scope import ConnectionScope, ConnectionScopeExecutor
from syncddl.schema.codegen import DdlStatementBuilder
from syncddl.schema.identifiers import IdentifierNormalizer
from syncddl.schema.introspect import SchemaIntrospector
from syncddl.schema.models import DEFAULT_SCHEMA, Relation, Schema, Table
from syncddl.schema.typemap import TypeMetadataProvider
from syncddl.types import DdlOperation, PlannedStatement

if TYPE_CHECKING:
    import psycopg

    from syncddl.postgres.client import PostgresClient

__all__ = [
    "MaterializationResult",
    "SchemaSynchronizer",
    "plan_statements",
]

logger = logging.getLogger(__name__)


@dataclass
class MaterializationResult:
    """Statements executed (or, in a dry run, planned) during a pass."""

    statements: list[PlannedStatement] = field(default_factory=list)
    dry_run: bool = False

    @property
    def executed_count(self) -> int:
        return 0 if self.dry_run else len(self.statements)

    def operations(self) -> list[DdlOperation]:
        return [s.operation for s in self.statements]


def plan_statements(schema: Schema, builder: DdlStatementBuilder) -> list[PlannedStatement]:
    """
    Pure function: every statement an empty target would receive.

    Tables are emitted in declaration order (schema, table, primary key), then
    all non-self-referencing foreign keys.
    """
    statements: list[PlannedStatement] = []
    created_schemas: set[str] = set()

    for table in schema.tables.values():
        schema_stmt = builder.create_schema(table)
        if schema_stmt is not None and schema_stmt.target.lower() not in created_schemas:
            created_schemas.add(schema_stmt.target.lower())
            statements.append(schema_stmt)
        statements.append(builder.create_table(table))
        if table.primary_keys:
            statements.append(builder.create_primary_key(table))

    for table in schema.tables.values():
        for relation in schema.relations_for(table):
            if not relation.is_self_referencing:
                statements.append(builder.create_foreign_key(relation))

    return statements


class SchemaSynchronizer:
    """
    Idempotently create the physical schema for table descriptors.

    Every step is guarded by a live catalog check, so running a pass against
    an already materialized target executes nothing. Steps are not wrapped in
    a transaction here; pass one in through the ConnectionScope for atomicity.
    """

    def __init__(
        self,
        executor: ConnectionScopeExecutor,
        builder: DdlStatementBuilder,
        introspector: SchemaIntrospector,
        ensure_primary_key: bool = False,
    ) -> None:
        self._executor = executor
        self._builder = builder
        self._introspector = introspector
        self._ensure_primary_key = ensure_primary_key

    @classmethod
    def for_client(
        cls,
        client: PostgresClient,
        transaction: Optional[psycopg.Transaction] = None,
        *,
        type_metadata: Optional[TypeMetadataProvider] = None,
        normalizer: Optional[IdentifierNormalizer] = None,
        default_schema: str = DEFAULT_SCHEMA,
        ensure_primary_key: bool = False,
    ) -> SchemaSynchronizer:
        """Wire a synchronizer around a borrowed client and optional transaction."""
        executor = ConnectionScopeExecutor(ConnectionScope(client, transaction))
        builder = DdlStatementBuilder(
            type_metadata=type_metadata,
            normalizer=normalizer,
            default_schema=default_schema,
        )
        return cls(
            executor,
            builder,
            SchemaIntrospector(executor),
            ensure_primary_key=ensure_primary_key,
        )

    @property
    def builder(self) -> DdlStatementBuilder:
        return self._builder

    def need_to_create_schema(self, table: Table) -> bool:
        if self._builder.is_default_schema(table.schema_name):
            return False
        return not self._introspector.schema_exists(table.schema_name)

    def need_to_create_table(self, table: Table) -> bool:
        return not self._introspector.table_exists(table.schema_name, table.name)

    def need_to_create_primary_key(self, table: Table) -> bool:
        if not table.primary_keys:
            return False
        return not self._introspector.primary_key_exists(table.schema_name, table.name)

    def need_to_create_foreign_key(self, relation: Relation) -> bool:
        # Self references are skipped: an initial sync cannot order parent rows first.
        if relation.is_self_referencing:
            return False
        return not self._introspector.foreign_key_exists(
            relation.table.name,
            relation.table.schema_name,
            self._builder.relation_name(relation),
        )

    def materialize_table(
        self,
        table: Table,
        relations: Iterable[Relation] = (),
        dry_run: bool = False,
    ) -> MaterializationResult:
        """Run the full pipeline for one table."""
        result = MaterializationResult(dry_run=dry_run)
        self._create_table_objects(table, result, set())
        self._create_foreign_keys(table, relations, result)
        return result

    def materialize(self, schema: Schema, dry_run: bool = False) -> MaterializationResult:
        """
        Materialize every table, then every foreign key.

        Foreign keys are deferred until all tables exist, so parents declared
        after their children still resolve. A schema is created (or, in a dry
        run, planned) at most once per pass.
        """
        result = MaterializationResult(dry_run=dry_run)
        planned_schemas: set[str] = set()
        for table in schema.tables.values():
            self._create_table_objects(table, result, planned_schemas)
        for table in schema.tables.values():
            self._create_foreign_keys(table, schema.relations_for(table), result)

        if not result.statements:
            logger.info("Schema is up to date. No DDL to execute.")
        return result

    def drop_table(self, table: Table, dry_run: bool = False) -> MaterializationResult:
        """Drop a table if it exists."""
        result = MaterializationResult(dry_run=dry_run)
        if not self.need_to_create_table(table):
            self._run(self._builder.drop_table(table), result)
        return result

    def _create_table_objects(
        self,
        table: Table,
        result: MaterializationResult,
        planned_schemas: set[str],
    ) -> None:
        # schema, then table, then primary key; foreign keys run separately
        schema_key = (table.schema_name or "").casefold()
        if schema_key not in planned_schemas and self.need_to_create_schema(table):
            self._run(self._builder.create_schema(table), result)
            planned_schemas.add(schema_key)

        needs_table = self.need_to_create_table(table)
        if needs_table:
            self._run(self._builder.create_table(table), result)

        if self._should_create_primary_key(table, created=needs_table):
            self._run(self._builder.create_primary_key(table), result)

    def _should_create_primary_key(self, table: Table, created: bool) -> bool:
        if not table.primary_keys:
            return False
        if created:
            return True
        return self._ensure_primary_key and self.need_to_create_primary_key(table)

    def _create_foreign_keys(
        self, table: Table, relations: Iterable[Relation], result: MaterializationResult
    ) -> None:
        for relation in relations:
            if not relation.table.same_table(table):
                continue
            if relation.is_self_referencing:
                logger.debug(f"Skipping self-referencing relation {relation.name}")
                continue
            if self.need_to_create_foreign_key(relation):
                self._run(self._builder.create_foreign_key(relation), result)

    def _run(self, statement: PlannedStatement, result: MaterializationResult) -> None:
        label = f"{statement.operation.value}: {statement.target}"
        if result.dry_run:
            logger.info(f"[DRY RUN] Would apply {label}")
        else:
            logger.info(f"Applying {label}...")
            self._executor.execute(statement)
        result.statements.append(statement)
