"""Core type definitions for syncddl."""

from dataclasses import dataclass
from enum import Enum
from typing import TypeAlias

TableName: TypeAlias = str
ColumnName: TypeAlias = str
SchemaName: TypeAlias = str
RelationName: TypeAlias = str

__all__ = [
    "TableName",
    "ColumnName",
    "SchemaName",
    "RelationName",
    "DbType",
    "DdlOperation",
    "ProviderType",
    "PlannedStatement",
]


class ProviderType:
    """Provider tags carried by table descriptors."""

    POSTGRES = "postgres"
    SQLSERVER = "sqlserver"
    MYSQL = "mysql"
    SQLITE = "sqlite"


class DbType(Enum):
    """Engine-agnostic logical column types."""

    ANSI_STRING = "ansi_string"
    ANSI_STRING_FIXED_LENGTH = "ansi_string_fixed_length"
    BINARY = "binary"
    BOOLEAN = "boolean"
    BYTE = "byte"
    CURRENCY = "currency"
    DATE = "date"
    DATETIME = "datetime"
    DATETIME_OFFSET = "datetime_offset"
    DECIMAL = "decimal"
    DOUBLE = "double"
    GUID = "guid"
    INT16 = "int16"
    INT32 = "int32"
    INT64 = "int64"
    OBJECT = "object"
    SINGLE = "single"
    STRING = "string"
    STRING_FIXED_LENGTH = "string_fixed_length"
    TIME = "time"
    XML = "xml"


class DdlOperation(Enum):
    """DDL statement kinds, in pipeline order."""

    CREATE_SCHEMA = "create_schema"
    CREATE_TABLE = "create_table"
    CREATE_PRIMARY_KEY = "create_primary_key"
    CREATE_FOREIGN_KEY = "create_foreign_key"
    DROP_TABLE = "drop_table"


@dataclass(frozen=True)
class PlannedStatement:
    """A single DDL statement with the object it targets."""

    operation: DdlOperation
    target: str
    sql: str
