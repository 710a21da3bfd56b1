"""Borrowed connection scope and statement execution."""

from __future__ import annotations

import logging
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, Iterator, Optional, Sequence

from syncddl.exceptions import (
    ConnectionOpenError,
    IntrospectionError,
    error_for_operation,
)
from syncddl.types import PlannedStatement

if TYPE_CHECKING:
    import psycopg

    from syncddl.postgres.client import PostgresClient

__all__ = ["ConnectionScope", "ConnectionScopeExecutor"]

logger = logging.getLogger(__name__)


def _sqlstate(exc: BaseException) -> Optional[str]:
    return getattr(exc, "sqlstate", None)


class ConnectionScope:
    """A borrowed client plus an optional borrowed transaction.

    The scope never closes a connection it did not open itself.
    """

    def __init__(
        self,
        client: PostgresClient,
        transaction: Optional[psycopg.Transaction] = None,
    ) -> None:
        self.client = client
        self.transaction = transaction

    @contextmanager
    def acquire(self, target: str) -> Iterator[PostgresClient]:
        """Open the client if needed; close it on exit only if opened here."""
        opened_here = not self.client.is_open
        if opened_here:
            try:
                self.client.connect()
            except Exception as exc:
                logger.debug(f"Could not open connection for {target}", exc_info=True)
                raise ConnectionOpenError(target=target, engine_error=str(exc)) from exc
        try:
            yield self.client
        finally:
            if opened_here and self.client.is_open:
                self.client.close()


class ConnectionScopeExecutor:
    """Run DDL statements and catalog queries inside a ConnectionScope."""

    def __init__(self, scope: ConnectionScope) -> None:
        self.scope = scope

    def execute(self, statement: PlannedStatement) -> None:
        """Execute a DDL statement, raising the typed error for its operation."""
        error_cls = error_for_operation(statement.operation)
        with self.scope.acquire(statement.target) as client:
            logger.debug(statement.sql)
            try:
                client.execute(statement.sql, transaction=self.scope.transaction)
            except Exception as exc:
                logger.debug(
                    f"Error during {statement.operation.value} on {statement.target}",
                    exc_info=True,
                )
                raise error_cls(
                    target=statement.target,
                    statement=statement.sql,
                    engine_error=str(exc),
                    sqlstate=_sqlstate(exc),
                ) from exc

    def fetchall(
        self, sql: str, params: Sequence[Any], target: str
    ) -> list[dict[str, Any]]:
        """Run a catalog query, raising IntrospectionError on failure."""
        with self.scope.acquire(target) as client:
            try:
                return client.fetchall(sql, params, transaction=self.scope.transaction)
            except Exception as exc:
                logger.debug(f"Error during catalog query on {target}", exc_info=True)
                raise IntrospectionError(
                    target=target,
                    statement=sql,
                    engine_error=str(exc),
                    sqlstate=_sqlstate(exc),
                ) from exc
