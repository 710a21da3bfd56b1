"""Schema descriptors, DDL generation and catalog introspection."""

from syncddl.schema.codegen import DdlStatementBuilder
from syncddl.schema.identifiers import IdentifierNormalizer, NameCache
from syncddl.schema.introspect import SchemaIntrospector
from syncddl.schema.models import (
    AutoIncrement,
    Column,
    Relation,
    Schema,
    Table,
)
from syncddl.schema.typemap import PostgresTypeMetadata, TypeMetadataProvider
from syncddl.schema.validator import (
    SchemaValidator,
    ValidationIssue,
    ValidationResult,
)

__all__ = [
    "AutoIncrement",
    "Column",
    "DdlStatementBuilder",
    "IdentifierNormalizer",
    "NameCache",
    "PostgresTypeMetadata",
    "Relation",
    "Schema",
    "SchemaIntrospector",
    "SchemaValidator",
    "Table",
    "TypeMetadataProvider",
    "ValidationIssue",
    "ValidationResult",
]
