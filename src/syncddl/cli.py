"""Command-line interface for syncddl."""

import argparse
import logging
import sys
from pathlib import Path

import psycopg

from syncddl.config import Config
from syncddl.exceptions import ConfigError, DdlExecutionError, SyncDdlError
from syncddl.postgres.utils import (
    build_config_and_validate,
    make_client,
    make_synchronizer,
)
from syncddl.schema.codegen import DdlStatementBuilder
from syncddl.schema.identifiers import IdentifierNormalizer
from syncddl.schema.loader import load_schema
from syncddl.schema.validator import SchemaValidator
from syncddl.synchronizer import plan_statements
from syncddl.types import PlannedStatement


def _add_db_args(parser: argparse.ArgumentParser) -> None:
    parser.add_argument("--service", help="libpq service name from ~/.pg_service.conf")
    parser.add_argument("--conninfo", help="libpq connection string")


def main() -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(
        prog="syncddl",
        description="Materialize table descriptors as PostgreSQL DDL",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Log SQL text")
    subparsers = parser.add_subparsers(dest="command", required=True)

    validate_parser = subparsers.add_parser("validate", help="Validate schema files")
    validate_parser.add_argument("--schema-path", type=Path, default=None)

    plan_parser = subparsers.add_parser("plan", help="Show DDL that would be executed")
    plan_parser.add_argument("--schema-path", type=Path, default=None)
    plan_parser.add_argument(
        "--online",
        action="store_true",
        help="Check the live catalog and show only missing objects (requires DB connection)",
    )
    _add_db_args(plan_parser)

    apply_parser = subparsers.add_parser("apply", help="Create missing schemas, tables and keys")
    apply_parser.add_argument("--schema-path", type=Path, default=None)
    apply_parser.add_argument(
        "--dry-run",
        action="store_true",
        help="Show statements without executing",
    )
    _add_db_args(apply_parser)

    drop_parser = subparsers.add_parser("drop", help="Drop a table if it exists")
    drop_parser.add_argument("table", help="Qualified table name (schema.table)")
    drop_parser.add_argument("--schema-path", type=Path, default=None)
    _add_db_args(drop_parser)

    args = parser.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO, format="%(message)s"
    )

    if args.command == "validate":
        return cmd_validate(args)
    elif args.command == "plan":
        return cmd_plan(args)
    elif args.command == "apply":
        return cmd_apply(args)
    elif args.command == "drop":
        return cmd_drop(args)
    else:
        print(f"Command '{args.command}' not yet implemented", file=sys.stderr)
        return 1


def _schema_path(args: argparse.Namespace, config: Config) -> Path:
    return args.schema_path if args.schema_path is not None else Path(config.schema_dir)


def _print_statements(statements: list[PlannedStatement]) -> None:
    for stmt in statements:
        print(f"-- {stmt.operation.value}: {stmt.target}")
        print(stmt.sql + ";")
        print()


def cmd_validate(args: argparse.Namespace) -> int:
    """Validate schema files."""
    try:
        schema = load_schema(_schema_path(args, Config.from_env()))
        result = SchemaValidator().validate(schema)
        if not result.ok:
            print(f"Found {len(result.issues)} issues:", file=sys.stderr)
            for issue in result.issues:
                print(f"  - {issue.message}", file=sys.stderr)
            return 1
        print(f"Validated {len(schema.tables)} tables:")
        for name in sorted(schema.table_names()):
            table = schema.get_table(name)
            print(f"  - {name} ({len(table.columns)} columns)")
        return 0
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except Exception as e:
        print(f"Validation error: {e}", file=sys.stderr)
        return 1


def cmd_plan(args: argparse.Namespace) -> int:
    """Show DDL (offline mode plans against an empty target, online mode checks the DB)."""
    try:
        if args.online:
            config = build_config_and_validate(service=args.service, conninfo=args.conninfo)
        else:
            config = Config.from_env()
        schema = load_schema(_schema_path(args, config))
        SchemaValidator().validate(schema).raise_for_issues()

        if args.online:
            with make_client(config) as client:
                synchronizer = make_synchronizer(config, client)
                statements = synchronizer.materialize(schema, dry_run=True).statements
        else:
            builder = DdlStatementBuilder(
                normalizer=IdentifierNormalizer(suffix=config.name_suffix),
                default_schema=config.default_schema,
            )
            statements = plan_statements(schema, builder)

        if not statements:
            print("No changes to apply")
            return 0

        _print_statements(statements)
        return 0
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except Exception as e:
        print(f"Plan error: {e}", file=sys.stderr)
        return 1


def cmd_apply(args: argparse.Namespace) -> int:
    """Create missing schemas, tables, primary keys and foreign keys."""
    try:
        config = build_config_and_validate(service=args.service, conninfo=args.conninfo)
        schema = load_schema(_schema_path(args, config))
        SchemaValidator().validate(schema).raise_for_issues()

        with make_client(config) as client:
            synchronizer = make_synchronizer(config, client)
            result = synchronizer.materialize(schema, dry_run=args.dry_run)

        if args.dry_run:
            _print_statements(result.statements)
            print(f"[DRY RUN] {len(result.statements)} statements pending")
        else:
            print(f"Executed {result.executed_count} statements")
        return 0
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except DdlExecutionError as e:
        print(f"DDL error on {e.target}: {e.engine_error}", file=sys.stderr)
        return 1
    except psycopg.Error as e:
        print(f"Connection error: {e}", file=sys.stderr)
        return 1
    except SyncDdlError as e:
        print(f"Apply error: {e}", file=sys.stderr)
        return 1


def cmd_drop(args: argparse.Namespace) -> int:
    """Drop a declared table if it exists."""
    try:
        config = build_config_and_validate(service=args.service, conninfo=args.conninfo)
        schema = load_schema(_schema_path(args, config))
        table = schema.get_table(args.table)
        if table is None:
            print(f"Table '{args.table}' is not declared in the schema", file=sys.stderr)
            return 1

        with make_client(config) as client:
            result = make_synchronizer(config, client).drop_table(table)
        if result.statements:
            print(f"Dropped {table.qualified_name}")
        else:
            print(f"Table {table.qualified_name} does not exist")
        return 0
    except ConfigError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 2
    except psycopg.Error as e:
        print(f"Connection error: {e}", file=sys.stderr)
        return 1
    except SyncDdlError as e:
        print(f"Drop error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
