"""Generate PostgreSQL DDL statements from table and relation descriptors."""

from typing import Optional

from syncddl.exceptions import CodegenError
from syncddl.schema.identifiers import (
    IdentifierNormalizer,
    normalized_name,
    qualified_name,
    quote_identifier,
)
from syncddl.schema.models import DEFAULT_SCHEMA, Column, Relation, Table
from syncddl.schema.typemap import PostgresTypeMetadata, TypeMetadataProvider
from syncddl.types import DdlOperation, PlannedStatement, ProviderType


class DdlStatementBuilder:
    """Build DDL statement text. Nothing is executed here."""

    def __init__(
        self,
        type_metadata: Optional[TypeMetadataProvider] = None,
        normalizer: Optional[IdentifierNormalizer] = None,
        target_provider: str = ProviderType.POSTGRES,
        default_schema: str = DEFAULT_SCHEMA,
    ):
        self.type_metadata = type_metadata or PostgresTypeMetadata()
        self.normalizer = normalizer or IdentifierNormalizer()
        self.target_provider = target_provider
        self.default_schema = default_schema

    def is_default_schema(self, schema_name: Optional[str]) -> bool:
        """True for an empty schema or the engine default (case-insensitive)."""
        return not schema_name or schema_name.lower() == self.default_schema.lower()

    def primary_key_name(self, table: Table) -> str:
        return "PK_" + self.normalizer.normalize(normalized_name(table.schema_name, table.name))

    def relation_name(self, relation: Relation) -> str:
        return self.normalizer.normalize(relation.name)

    def create_schema(self, table: Table) -> Optional[PlannedStatement]:
        """Generate CREATE SCHEMA, or None for the default schema."""
        if self.is_default_schema(table.schema_name):
            return None
        sql = f"CREATE SCHEMA IF NOT EXISTS {quote_identifier(table.schema_name)}"
        return PlannedStatement(DdlOperation.CREATE_SCHEMA, table.schema_name, sql)

    def create_table(self, table: Table) -> PlannedStatement:
        """Generate CREATE TABLE IF NOT EXISTS."""
        if not table.columns:
            raise CodegenError(f"Table '{table.qualified_name}' has no columns")

        col_defs = [f"    {self._column_definition(table, col)}" for col in table.columns]
        columns_sql = ",\n".join(col_defs)
        fqn = qualified_name(table.schema_name, table.name)
        sql = f"CREATE TABLE IF NOT EXISTS {fqn} (\n{columns_sql}\n)"
        return PlannedStatement(DdlOperation.CREATE_TABLE, table.qualified_name, sql)

    def _column_definition(self, table: Table, col: Column) -> str:
        origin = table.provider_for(col)
        type_string = self.type_metadata.map_type_string(
            col.original_type, col.db_type, col.max_length, origin, self.target_provider
        )
        precision = self.type_metadata.map_precision_clause(
            col.original_type,
            col.db_type,
            col.max_length,
            col.precision,
            col.scale,
            origin,
            self.target_provider,
        )

        parts = [quote_identifier(col.name), type_string + precision]
        if col.auto_increment is not None:
            seed, step = col.auto_increment.seed, col.auto_increment.step
            parts.append(f"GENERATED ALWAYS AS IDENTITY (INCREMENT {step} START {seed})")

        # computed columns cannot be enforced NOT NULL at creation time
        parts.append("NULL" if col.nullable or col.read_only else "NOT NULL")

        # default expressions are engine-native text, only portable within a provider
        if col.default and origin == self.target_provider:
            parts.append(f"DEFAULT {col.default}")

        return " ".join(parts)

    def create_primary_key(self, table: Table) -> PlannedStatement:
        """Generate ALTER TABLE ADD CONSTRAINT PRIMARY KEY."""
        if not table.primary_keys:
            raise CodegenError(
                f"Cannot add a primary key to '{table.qualified_name}' without key columns"
            )
        fqn = qualified_name(table.schema_name, table.name)
        pk_name = quote_identifier(self.primary_key_name(table))
        cols = ", ".join(quote_identifier(c) for c in table.primary_keys)
        sql = f"ALTER TABLE {fqn} ADD CONSTRAINT {pk_name} PRIMARY KEY ({cols})"
        return PlannedStatement(DdlOperation.CREATE_PRIMARY_KEY, table.qualified_name, sql)

    def create_foreign_key(self, relation: Relation) -> PlannedStatement:
        """Generate ALTER TABLE ADD CONSTRAINT FOREIGN KEY."""
        if not relation.keys or len(relation.keys) != len(relation.parent_keys):
            raise CodegenError(
                f"Relation '{relation.name}' needs matching child and parent keys, "
                f"got {len(relation.keys)} and {len(relation.parent_keys)}"
            )
        child = qualified_name(relation.table.schema_name, relation.table.name)
        parent = qualified_name(relation.parent_table.schema_name, relation.parent_table.name)
        fk_name = quote_identifier(self.relation_name(relation))
        child_cols = ", ".join(quote_identifier(c) for c in relation.keys)
        parent_cols = ", ".join(quote_identifier(c) for c in relation.parent_keys)
        sql = (
            f"ALTER TABLE {child} ADD CONSTRAINT {fk_name}\n"
            f"FOREIGN KEY ({child_cols})\n"
            f"REFERENCES {parent} ({parent_cols})"
        )
        return PlannedStatement(DdlOperation.CREATE_FOREIGN_KEY, relation.name, sql)

    def drop_table(self, table: Table) -> PlannedStatement:
        """Generate DROP TABLE."""
        fqn = qualified_name(table.schema_name, table.name)
        return PlannedStatement(DdlOperation.DROP_TABLE, table.qualified_name, f"DROP TABLE {fqn}")
