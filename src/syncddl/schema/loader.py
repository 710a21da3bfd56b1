"""Load table and relation descriptors from YAML files."""

from pathlib import Path

import yaml

from syncddl.exceptions import SchemaLoadError
from syncddl.schema.models import AutoIncrement, Column, Relation, Schema, Table
from syncddl.types import DbType, ProviderType

RELATIONS_FILE = "relations.yaml"

VALID_TABLE_FIELDS = {
    "table",
    "schema",
    "description",
    "provider",
    "columns",
    "primary_key",
}

VALID_COLUMN_FIELDS = {
    "name",
    "type",
    "original_type",
    "provider",
    "max_length",
    "precision",
    "scale",
    "nullable",
    "read_only",
    "auto_increment",
    "default",
}

VALID_RELATION_FIELDS = {
    "name",
    "table",
    "parent_table",
    "keys",
    "parent_keys",
}


def load_schema(schema_path: Path) -> Schema:
    """Load schema from a directory of YAML files or a single file."""
    if schema_path.is_file():
        return _load_single_file(schema_path)
    elif schema_path.is_dir():
        return _load_directory(schema_path)
    else:
        raise SchemaLoadError(f"Schema path does not exist: {schema_path}")


def _read_yaml(file_path: Path) -> dict:
    with open(file_path) as f:
        try:
            data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise SchemaLoadError(f"Invalid YAML in {file_path}: {e}") from e
    if data is None:
        raise SchemaLoadError(f"Empty YAML file: {file_path}")
    if not isinstance(data, dict):
        raise SchemaLoadError(f"Expected a mapping at the top of {file_path}")
    return data


def _add_table(tables: dict[str, Table], table: Table, where: str) -> None:
    if table.qualified_name in tables:
        raise SchemaLoadError(
            f"Duplicate table name '{table.qualified_name}' found in {where}"
        )
    tables[table.qualified_name] = table


def _load_directory(directory: Path) -> Schema:
    """Load schema from a directory: one table per file plus relations.yaml."""
    tables: dict[str, Table] = {}
    for yaml_file in sorted(directory.glob("*.yaml")):
        if yaml_file.name == RELATIONS_FILE:
            continue
        _add_table(tables, _parse_table_dict(_read_yaml(yaml_file)), "directory")

    relations: list[Relation] = []
    relations_file = directory / RELATIONS_FILE
    if relations_file.exists():
        data = _read_yaml(relations_file)
        relations = [_parse_relation(r, tables) for r in data.get("relations") or []]

    return Schema(tables=tables, relations=relations)


def _load_single_file(file_path: Path) -> Schema:
    """Load schema from a single YAML file."""
    data = _read_yaml(file_path)

    if "tables" in data:
        tables: dict[str, Table] = {}
        for table_data in data.get("tables") or []:
            _add_table(tables, _parse_table_dict(table_data), "file")
        relations = [_parse_relation(r, tables) for r in data.get("relations") or []]
        return Schema(tables=tables, relations=relations)
    else:
        table = _parse_table_dict(data)
        return Schema(tables={table.qualified_name: table})


def _parse_table_dict(data: dict) -> Table:
    """Parse a table definition from a dictionary."""
    unknown_fields = set(data.keys()) - VALID_TABLE_FIELDS
    if unknown_fields:
        raise SchemaLoadError(
            f"Unknown field(s) in table definition: {', '.join(sorted(unknown_fields))}"
        )

    name = data.get("table")
    if not name:
        raise SchemaLoadError("Table definition missing 'table' field")

    columns = [_parse_column(col) for col in data.get("columns") or []]

    seen = set()
    for col in columns:
        if col.name in seen:
            raise SchemaLoadError(f"Duplicate column name '{col.name}' in table '{name}'")
        seen.add(col.name)

    primary_key = _key_list(data.get("primary_key"))

    return Table(
        name=name,
        columns=columns,
        primary_keys=primary_key,
        schema_name=data.get("schema"),
        original_provider=data.get("provider", ProviderType.POSTGRES),
    )


def _key_list(value) -> list[str]:
    """A key column list; a single column may be written as a plain string."""
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    if not isinstance(value, list):
        raise SchemaLoadError(f"Expected a column name or a list of column names, got {value!r}")
    return [str(v) for v in value]


def _parse_db_type(value: str, column_name: str) -> DbType:
    try:
        return DbType(str(value).lower())
    except ValueError:
        valid = ", ".join(t.value for t in DbType)
        raise SchemaLoadError(
            f"Column '{column_name}' has unknown type '{value}'. Valid types: {valid}"
        ) from None


def _parse_column(data: dict) -> Column:
    """Parse a column definition from a dictionary."""
    unknown_fields = set(data.keys()) - VALID_COLUMN_FIELDS
    if unknown_fields:
        raise SchemaLoadError(
            f"Unknown field(s) in column definition: {', '.join(sorted(unknown_fields))}"
        )

    name = data.get("name")
    if not name:
        raise SchemaLoadError("Column definition missing 'name' field")

    col_type = data.get("type")
    if not col_type:
        raise SchemaLoadError(f"Column '{name}' missing 'type' field")

    auto_increment = None
    if (ai_data := data.get("auto_increment")) is not None:
        if ai_data is True:
            auto_increment = AutoIncrement()
        elif isinstance(ai_data, dict):
            auto_increment = AutoIncrement(
                seed=int(ai_data.get("seed", 1)),
                step=int(ai_data.get("step", 1)),
            )
        elif ai_data is not False:
            raise SchemaLoadError(
                f"Column '{name}' auto_increment must be true or a mapping with seed/step"
            )

    default = data.get("default")
    return Column(
        name=name,
        db_type=_parse_db_type(col_type, name),
        original_type=data.get("original_type"),
        original_provider=data.get("provider"),
        max_length=int(data.get("max_length", 0)),
        precision=int(data.get("precision", 0)),
        scale=int(data.get("scale", 0)),
        nullable=data.get("nullable", True),
        read_only=data.get("read_only", False),
        auto_increment=auto_increment,
        default=str(default) if default is not None else None,
    )


def _parse_relation(data: dict, tables: dict[str, Table]) -> Relation:
    """Parse a relation, resolving child and parent tables by qualified name."""
    unknown_fields = set(data.keys()) - VALID_RELATION_FIELDS
    if unknown_fields:
        raise SchemaLoadError(
            f"Unknown field(s) in relation definition: {', '.join(sorted(unknown_fields))}"
        )

    name = data.get("name")
    if not name:
        raise SchemaLoadError("Relation definition missing 'name' field")

    def resolve(key: str) -> Table:
        table_name = data.get(key)
        if not table_name:
            raise SchemaLoadError(f"Relation '{name}' missing '{key}' field")
        table = tables.get(table_name)
        if table is None:
            raise SchemaLoadError(
                f"Relation '{name}' references unknown table '{table_name}'"
            )
        return table

    return Relation(
        name=name,
        table=resolve("table"),
        parent_table=resolve("parent_table"),
        keys=_key_list(data.get("keys")),
        parent_keys=_key_list(data.get("parent_keys")),
    )
