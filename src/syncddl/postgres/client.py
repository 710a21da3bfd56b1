from typing import Any, Optional, Sequence

import psycopg
from psycopg.rows import dict_row


class PostgresClient:
    """Thin wrapper around a psycopg connection for DDL and catalog queries.

    The client either wraps a connection the caller already holds
    (`from_connection`) or opens one lazily from a conninfo string. Whether
    it is open is visible through `is_open`, which lets a connection scope
    decide if it owns the close.
    """

    def __init__(
        self,
        conninfo: Optional[str] = None,
        connection: Optional[psycopg.Connection] = None,
        autocommit: bool = True,
    ) -> None:
        self._conninfo = conninfo
        self._conn = connection
        self._autocommit = autocommit

    @classmethod
    def from_connection(cls, connection: psycopg.Connection) -> "PostgresClient":
        return cls(connection=connection)

    @property
    def connection(self) -> Optional[psycopg.Connection]:
        return self._conn

    @property
    def is_open(self) -> bool:
        return self._conn is not None and not self._conn.closed

    def connect(self) -> None:
        """Open a new connection. Must be called before execute/fetchall."""
        if self.is_open:
            raise RuntimeError("Already connected. Call close() before reconnecting.")
        if self._conninfo is None:
            raise RuntimeError("No conninfo available to open a connection.")

        self._conn = psycopg.connect(
            self._conninfo, autocommit=self._autocommit, row_factory=dict_row
        )

    def execute(
        self,
        sql_statement: str,
        params: Optional[Sequence[Any]] = None,
        transaction: Optional[psycopg.Transaction] = None,
    ) -> None:
        conn = self._require_connection(transaction)
        with conn.cursor() as cursor:
            cursor.execute(sql_statement, params)

    def fetchall(
        self,
        sql_statement: str,
        params: Optional[Sequence[Any]] = None,
        transaction: Optional[psycopg.Transaction] = None,
    ) -> list[dict[str, Any]]:
        conn = self._require_connection(transaction)
        with conn.cursor(row_factory=dict_row) as cursor:
            cursor.execute(sql_statement, params)
            return cursor.fetchall()

    def _require_connection(
        self, transaction: Optional[psycopg.Transaction]
    ) -> psycopg.Connection:
        if not self.is_open:
            raise RuntimeError("Not connected. Call connect() first.")
        if transaction is not None and transaction.connection is not self._conn:
            raise ValueError("Transaction belongs to a different connection.")
        return self._conn

    def close(self) -> None:
        if self._conn is not None:
            try:
                self._conn.close()
            finally:
                if self._conninfo is not None:
                    self._conn = None

    def __enter__(self) -> "PostgresClient":
        self.connect()
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()
