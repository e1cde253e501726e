"""
Multi-statement helpers: batch transactions and multi-row INSERT.

`run_statements_in_transaction` runs an ordered list of statements on one
pooled connection and commits them together, rolling back on the first
failure. `bulk_insert` sends a whole batch of rows as a single INSERT with
sequentially numbered `$n` placeholders.
"""

from __future__ import annotations

from typing import Any, Iterable, List, Mapping, Optional, Sequence, Tuple, Union

import psycopg
from psycopg import RawCursor
from psycopg_pool import ConnectionPool

from pgfacade.errors import BulkInsertError, EmptyInsertError, TransactionError
from pgfacade.infrastructure.db_factory import apply_statement_timeout
from pgfacade.utils.logging import get_logger
from pgfacade.utils.profiler import timed

log = get_logger(__name__)

Statement = Tuple[str, Sequence[Any]]
Statements = Union[Sequence[Statement], Mapping[str, Sequence[Any]]]


def _ordered(statements: Statements) -> List[Statement]:
    # mappings keep insertion order, so both forms execute deterministically
    if isinstance(statements, Mapping):
        return [(sql, args) for sql, args in statements.items()]
    return [(sql, args) for sql, args in statements]


def _rollback(conn: Any) -> None:
    # the statement error is what the caller needs to see
    try:
        conn.rollback()
    except psycopg.Error:
        log.warning("Rollback failed", exc_info=True)


@timed("Executed statements in one transaction")
def run_statements_in_transaction(
    pool: ConnectionPool,
    statements: Statements,
    *,
    timeout: Optional[float] = None,
) -> None:
    """
    Execute several statements atomically on one connection.

    Parameters
    ----------
    pool : ConnectionPool
        Pool to borrow the connection from.
    statements : sequence of (sql, args) pairs, or mapping of sql -> args
        Statements in execution order. Mappings run in insertion order.
    timeout : float, optional
        Seconds to wait for a pooled connection, and the statement timeout
        applied to every statement of the transaction.

    Raises
    ------
    TransactionError
        If no connection could be obtained, a statement failed (after rolling
        back), or the commit failed. The driver error is chained as the cause.
    """
    batch = _ordered(statements)

    try:
        conn = pool.getconn(timeout=timeout)
    except Exception as exc:
        raise TransactionError("failed to begin transaction") from exc

    try:
        try:
            apply_statement_timeout(conn, timeout)
        except psycopg.Error as exc:
            _rollback(conn)
            raise TransactionError("failed to begin transaction") from exc

        with RawCursor(conn) as cur:
            for index, (sql, args) in enumerate(batch):
                try:
                    cur.execute(sql, list(args) if args else None)
                except psycopg.Error as exc:
                    _rollback(conn)
                    log.debug(
                        "Rolled back transaction",
                        extra={"statement_index": index, "sql": sql},
                    )
                    raise TransactionError("failed to execute query") from exc
        try:
            conn.commit()
        except psycopg.Error as exc:
            raise TransactionError("failed to commit transaction") from exc
    finally:
        pool.putconn(conn)


def build_bulk_insert(
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
) -> Tuple[str, List[Any]]:
    """
    Build a multi-row INSERT and its flattened argument list.

    Placeholders are numbered row-major across all rows, so
    `build_bulk_insert("t", ["a", "b"], [[1, 2], [3, 4]])` gives
    `("INSERT INTO t (a,b) VALUES ($1,$2),($3,$4)", [1, 2, 3, 4])`.
    Rows are not checked against `columns`.

    Raises
    ------
    EmptyInsertError
        If `rows` is empty.
    """
    values: List[str] = []
    args: List[Any] = []
    for row in rows:
        placeholders = [f"${len(args) + j + 1}" for j in range(len(row))]
        values.append(f"({','.join(placeholders)})")
        args.extend(row)

    if not values:
        raise EmptyInsertError("no values provided for insert")

    query = f"INSERT INTO {table} ({','.join(columns)}) VALUES {','.join(values)}"
    return query, args


@timed("Executed bulk insert into {table}")
def bulk_insert(
    pool: ConnectionPool,
    table: str,
    columns: Sequence[str],
    rows: Sequence[Sequence[Any]],
    *,
    timeout: Optional[float] = None,
) -> None:
    """
    Insert many rows with a single statement.

    Raises
    ------
    EmptyInsertError
        If `rows` is empty; nothing is sent to the database.
    BulkInsertError
        If the database rejects the statement.
    """
    query, args = build_bulk_insert(table, columns, rows)

    with pool.connection(timeout=timeout) as conn:
        try:
            apply_statement_timeout(conn, timeout)
            with RawCursor(conn) as cur:
                cur.execute(query, args)
        except psycopg.Error as exc:
            raise BulkInsertError(f"bulk insert failed: {exc}") from exc


__all__ = [
    "Statement",
    "Statements",
    "build_bulk_insert",
    "bulk_insert",
    "run_statements_in_transaction",
]
