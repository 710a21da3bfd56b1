"""Schema representation classes."""

from dataclasses import dataclass, field
from typing import Optional

from syncddl.types import DbType, ProviderType

DEFAULT_SCHEMA = "public"


@dataclass(frozen=True)
class AutoIncrement:
    """Identity column seed and step."""

    seed: int = 1
    step: int = 1


@dataclass
class Column:
    """Column definition."""

    name: str
    db_type: DbType = DbType.STRING
    original_type: Optional[str] = None
    original_provider: Optional[str] = None
    max_length: int = 0
    precision: int = 0
    scale: int = 0
    nullable: bool = True
    read_only: bool = False
    auto_increment: Optional[AutoIncrement] = None
    default: Optional[str] = None

    def __post_init__(self) -> None:
        if self.original_type is not None:
            self.original_type = self.original_type.strip()

    @property
    def is_auto_increment(self) -> bool:
        return self.auto_increment is not None


@dataclass
class Table:
    """Table definition."""

    name: str
    columns: list[Column]
    primary_keys: list[str] = field(default_factory=list)
    schema_name: Optional[str] = None
    original_provider: str = ProviderType.POSTGRES

    @property
    def qualified_name(self) -> str:
        """Unquoted `schema.table`, or the bare table name without a schema."""
        if self.schema_name:
            return f"{self.schema_name}.{self.name}"
        return self.name

    def get_column(self, name: str) -> Optional[Column]:
        """Get a column by name."""
        for col in self.columns:
            if col.name == name:
                return col
        return None

    def provider_for(self, column: Column) -> str:
        """Origin provider of a column, falling back to the table's."""
        return column.original_provider or self.original_provider

    def same_table(self, other: "Table", default_schema: str = DEFAULT_SCHEMA) -> bool:
        """Compare by schema and name, case-insensitively.

        An empty schema is treated as the default schema.
        """
        own_schema = (self.schema_name or default_schema).casefold()
        other_schema = (other.schema_name or default_schema).casefold()
        return own_schema == other_schema and self.name.casefold() == other.name.casefold()


@dataclass
class Relation:
    """Foreign key relation from a child table to a parent table."""

    name: str
    table: Table
    parent_table: Table
    keys: list[str]
    parent_keys: list[str]

    @property
    def is_self_referencing(self) -> bool:
        return self.table.same_table(self.parent_table)

    @property
    def key_pairs(self) -> list[tuple[str, str]]:
        """Child/parent column pairs in declared order."""
        return list(zip(self.keys, self.parent_keys))


@dataclass
class Schema:
    """Complete schema definition: tables keyed by qualified name, plus relations."""

    tables: dict[str, Table]
    relations: list[Relation] = field(default_factory=list)

    def get_table(self, name: str) -> Optional[Table]:
        """Get a table by qualified name."""
        return self.tables.get(name)

    def table_names(self) -> set[str]:
        """Get all qualified table names."""
        return set(self.tables.keys())

    def relations_for(self, table: Table) -> list[Relation]:
        """Relations in which the table is the child."""
        return [r for r in self.relations if r.table.same_table(table)]
