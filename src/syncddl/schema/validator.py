"""Schema validation: structural checks on table and relation descriptors."""

from dataclasses import dataclass
from typing import Literal, Optional

from syncddl.exceptions import ValidationError
from syncddl.schema.models import Relation, Schema, Table


@dataclass
class ValidationIssue:
    """A single problem found in the descriptors."""

    table: Optional[str]
    relation: Optional[str]
    kind: Literal[
        "no_columns",
        "missing_primary_key",
        "unknown_primary_key_column",
        "key_cardinality",
        "unknown_key_column",
        "invalid_auto_increment",
    ]
    message: str


@dataclass
class ValidationResult:
    """Result of descriptor validation.

    ok is True iff issues is empty. CLI uses this flag for exit code (0 if ok, 1 otherwise).
    """

    ok: bool
    issues: list[ValidationIssue]

    def raise_for_issues(self) -> None:
        if not self.ok:
            raise ValidationError(
                "Invalid schema:\n  - " + "\n  - ".join(i.message for i in self.issues)
            )


class SchemaValidator:
    """Validate descriptors before any DDL is generated.

    Synchronized tables need a non-empty primary key drawn from their own
    columns, and every relation needs child and parent keys of equal,
    non-zero length that exist on the respective tables.
    """

    def validate(self, schema: Schema) -> ValidationResult:
        issues: list[ValidationIssue] = []
        for table in schema.tables.values():
            issues.extend(self._validate_table(table))
        for relation in schema.relations:
            issues.extend(self._validate_relation(relation))
        return ValidationResult(ok=len(issues) == 0, issues=issues)

    def _validate_table(self, table: Table) -> list[ValidationIssue]:
        name = table.qualified_name
        issues: list[ValidationIssue] = []

        if not table.columns:
            issues.append(
                ValidationIssue(name, None, "no_columns", f"Table '{name}' has no columns")
            )

        if not table.primary_keys:
            issues.append(
                ValidationIssue(
                    name,
                    None,
                    "missing_primary_key",
                    f"Table '{name}' has no primary key",
                )
            )

        for pk_col in table.primary_keys:
            if table.get_column(pk_col) is None:
                issues.append(
                    ValidationIssue(
                        name,
                        None,
                        "unknown_primary_key_column",
                        f"Primary key column '{pk_col}' not found in table '{name}'",
                    )
                )

        for col in table.columns:
            if col.auto_increment is not None and col.auto_increment.step == 0:
                issues.append(
                    ValidationIssue(
                        name,
                        None,
                        "invalid_auto_increment",
                        f"Column '{col.name}' in '{name}' has an auto-increment step of 0",
                    )
                )

        return issues

    def _validate_relation(self, relation: Relation) -> list[ValidationIssue]:
        issues: list[ValidationIssue] = []

        if not relation.keys or len(relation.keys) != len(relation.parent_keys):
            issues.append(
                ValidationIssue(
                    relation.table.qualified_name,
                    relation.name,
                    "key_cardinality",
                    f"Relation '{relation.name}' has {len(relation.keys)} child key(s) "
                    f"and {len(relation.parent_keys)} parent key(s)",
                )
            )

        for table, keys in (
            (relation.table, relation.keys),
            (relation.parent_table, relation.parent_keys),
        ):
            for key in keys:
                if table.get_column(key) is None:
                    issues.append(
                        ValidationIssue(
                            table.qualified_name,
                            relation.name,
                            "unknown_key_column",
                            f"Relation '{relation.name}' uses column '{key}' "
                            f"not found in table '{table.qualified_name}'",
                        )
                    )

        return issues
