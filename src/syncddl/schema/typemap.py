"""Map logical column types to PostgreSQL type strings."""

from typing import Optional, Protocol

from syncddl.types import DbType, ProviderType


class TypeMetadataProvider(Protocol):
    """Protocol for the type mapping used by the DDL builder.

    Implementations must be deterministic for identical inputs.
    """

    def map_type_string(
        self,
        original_type: Optional[str],
        db_type: DbType,
        max_length: int,
        origin_provider: str,
        target_provider: str,
    ) -> str: ...

    def map_precision_clause(
        self,
        original_type: Optional[str],
        db_type: DbType,
        max_length: int,
        precision: int,
        scale: int,
        origin_provider: str,
        target_provider: str,
    ) -> str: ...


class PostgresTypeMetadata:
    """Type metadata for PostgreSQL targets.

    Columns read from a PostgreSQL origin keep their original type string;
    everything else is mapped from the logical DbType.
    """

    TYPE_MAP: dict[DbType, str] = {
        DbType.ANSI_STRING: "varchar",
        DbType.ANSI_STRING_FIXED_LENGTH: "char",
        DbType.BINARY: "bytea",
        DbType.BOOLEAN: "boolean",
        DbType.BYTE: "smallint",
        DbType.CURRENCY: "numeric",
        DbType.DATE: "date",
        DbType.DATETIME: "timestamp",
        DbType.DATETIME_OFFSET: "timestamptz",
        DbType.DECIMAL: "numeric",
        DbType.DOUBLE: "double precision",
        DbType.GUID: "uuid",
        DbType.INT16: "smallint",
        DbType.INT32: "integer",
        DbType.INT64: "bigint",
        DbType.OBJECT: "jsonb",
        DbType.SINGLE: "real",
        DbType.STRING: "varchar",
        DbType.STRING_FIXED_LENGTH: "char",
        DbType.TIME: "time",
        DbType.XML: "xml",
    }

    LENGTH_TYPES = {"varchar", "character varying", "char", "character", "bpchar"}
    NUMERIC_TYPES = {"numeric", "decimal"}

    def map_type_string(
        self,
        original_type: Optional[str],
        db_type: DbType,
        max_length: int,
        origin_provider: str,
        target_provider: str,
    ) -> str:
        if original_type and origin_provider == target_provider == ProviderType.POSTGRES:
            return original_type.lower()

        pg_type = self.TYPE_MAP.get(db_type, "text")
        if pg_type == "varchar" and max_length <= 0:
            return "text"
        return pg_type

    def map_precision_clause(
        self,
        original_type: Optional[str],
        db_type: DbType,
        max_length: int,
        precision: int,
        scale: int,
        origin_provider: str,
        target_provider: str,
    ) -> str:
        type_string = self.map_type_string(
            original_type, db_type, max_length, origin_provider, target_provider
        )
        if "(" in type_string:
            return ""

        if type_string in self.LENGTH_TYPES:
            return f"({max_length})" if max_length > 0 else ""

        if type_string in self.NUMERIC_TYPES and precision > 0:
            # numeric precision is capped at 1000 by PostgreSQL
            precision = min(precision, 1000)
            scale = max(0, min(scale, precision))
            return f"({precision},{scale})"

        return ""
