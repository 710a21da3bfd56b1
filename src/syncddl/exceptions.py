"""Exception classes for syncddl."""

from typing import Optional

from syncddl.types import DdlOperation

__all__ = [
    "SyncDdlError",
    "SchemaLoadError",
    "ValidationError",
    "CodegenError",
    "ConfigError",
    "ConnectionOpenError",
    "IntrospectionError",
    "DdlExecutionError",
    "SchemaCreationError",
    "TableCreationError",
    "TableDropError",
    "PrimaryKeyCreationError",
    "ForeignKeyCreationError",
    "error_for_operation",
]

# duplicate_schema, duplicate_table, duplicate_object
DUPLICATE_SQLSTATES = frozenset({"42P06", "42P07", "42710"})


class SyncDdlError(Exception):
    """Base exception for syncddl."""


class SchemaLoadError(SyncDdlError):
    """Error loading schema definition files."""


class ValidationError(SyncDdlError):
    """Table or relation descriptors are structurally invalid."""


class CodegenError(SyncDdlError):
    """Error generating DDL from descriptors."""


class ConfigError(SyncDdlError):
    """Error in configuration."""


class ConnectionOpenError(SyncDdlError):
    """The borrowed connection could not be opened."""

    def __init__(self, target: str, engine_error: str):
        self.target = target
        self.engine_error = engine_error
        super().__init__(f"Could not open connection for {target}: {engine_error}")


class _StatementError(SyncDdlError):
    action = "Statement"

    def __init__(
        self,
        target: str,
        statement: str,
        engine_error: str,
        sqlstate: Optional[str] = None,
    ):
        self.target = target
        self.statement = statement
        self.engine_error = engine_error
        self.sqlstate = sqlstate
        super().__init__(f"{self.action} failed for {target}: {engine_error}")

    @property
    def already_exists(self) -> bool:
        """True when the engine rejected the statement because the object exists."""
        return self.sqlstate in DUPLICATE_SQLSTATES


class IntrospectionError(_StatementError):
    """Error querying the target catalog."""

    action = "Catalog query"


class DdlExecutionError(_StatementError):
    """Base error for a failed DDL statement."""


class SchemaCreationError(DdlExecutionError):
    action = "CREATE SCHEMA"


class TableCreationError(DdlExecutionError):
    action = "CREATE TABLE"


class TableDropError(DdlExecutionError):
    action = "DROP TABLE"


class PrimaryKeyCreationError(DdlExecutionError):
    action = "ADD PRIMARY KEY"


class ForeignKeyCreationError(DdlExecutionError):
    action = "ADD FOREIGN KEY"


_OPERATION_ERRORS: dict[DdlOperation, type[DdlExecutionError]] = {
    DdlOperation.CREATE_SCHEMA: SchemaCreationError,
    DdlOperation.CREATE_TABLE: TableCreationError,
    DdlOperation.CREATE_PRIMARY_KEY: PrimaryKeyCreationError,
    DdlOperation.CREATE_FOREIGN_KEY: ForeignKeyCreationError,
    DdlOperation.DROP_TABLE: TableDropError,
}


def error_for_operation(operation: DdlOperation) -> type[DdlExecutionError]:
    """Return the error class raised when a statement of this kind fails."""
    return _OPERATION_ERRORS[operation]
