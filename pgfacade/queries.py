"""
Generic query helpers over a psycopg connection pool.

Each helper borrows one connection from the pool for the duration of the
call, runs a single statement with PostgreSQL-native `$n` placeholders
(psycopg `RawCursor`) and decodes the result into one of a few shapes:

- `query_structs`     -> list of row objects matched by column name
- `query_simple`      -> list of scalars matched by position
- `query_one`         -> exactly one scalar
- `query_one_struct`  -> exactly one row object
- `query_json`        -> one JSON object column as a dict
- `execute` / `exec_json` -> statements without a result set

Every helper is wrapped by `timed`, so each call logs its SQL and elapsed
time. Driver errors propagate unchanged; decoding problems raise `DecodeError`.

Usage:
    from pgfacade.queries import query_structs

    users = query_structs(pool, User, "SELECT id, name FROM users WHERE id > $1", 10)
"""

from __future__ import annotations

import json
from contextlib import contextmanager
from typing import Any, Dict, Generator, List, Optional, Sequence, Type, TypeVar

from psycopg import RawCursor
from psycopg_pool import ConnectionPool

from pgfacade.errors import DecodeError, NoRowsError, TooManyRowsError
from pgfacade.infrastructure.db_factory import apply_statement_timeout
from pgfacade.rows import scalar_row, struct_row
from pgfacade.utils.profiler import timed

T = TypeVar("T")


@contextmanager
def _cursor(
    pool: ConnectionPool,
    row_factory: Any = None,
    timeout: Optional[float] = None,
) -> Generator[RawCursor[Any], None, None]:
    """
    Borrow a connection and open a `$n`-placeholder cursor on it.

    `timeout` bounds both the wait for a connection and each statement run
    on it. The pool commits when the block exits cleanly and rolls back
    otherwise.
    """
    with pool.connection(timeout=timeout) as conn:
        apply_statement_timeout(conn, timeout)
        with RawCursor(conn, row_factory=row_factory) as cur:
            yield cur


def _params(args: Sequence[Any]) -> Optional[List[Any]]:
    return list(args) if args else None


def _exactly_one(cur: RawCursor[Any]) -> Any:
    rows = cur.fetchmany(2)
    if not rows:
        raise NoRowsError("no rows in result set")
    if len(rows) > 1:
        raise TooManyRowsError("expected one row, got more")
    return rows[0]


@timed("Executed {sql}")
def query_structs(
    pool: ConnectionPool,
    row_type: Type[T],
    sql: str,
    *args: Any,
    timeout: Optional[float] = None,
) -> List[T]:
    """
    Run a query and decode every row into `row_type` by column name.

    Pass `dict` as `row_type` to get plain column mappings.
    """
    with _cursor(pool, struct_row(row_type), timeout) as cur:
        cur.execute(sql, _params(args))
        return cur.fetchall()


@timed("Executed {sql}")
def query_simple(
    pool: ConnectionPool,
    row_type: Any,
    sql: str,
    *args: Any,
    timeout: Optional[float] = None,
) -> List[Any]:
    """
    Run a query and decode each row positionally into `row_type`.

    Meant for single-column result sets; several columns need a tuple type.
    """
    with _cursor(pool, scalar_row(row_type), timeout) as cur:
        cur.execute(sql, _params(args))
        return cur.fetchall()


@timed("Executed {sql}")
def query_one(
    pool: ConnectionPool,
    row_type: Any,
    sql: str,
    *args: Any,
    timeout: Optional[float] = None,
) -> Any:
    """
    Run a query returning exactly one row with one column.

    Raises
    ------
    NoRowsError
        If the query returned nothing.
    TooManyRowsError
        If the query returned more than one row.
    """
    with _cursor(pool, scalar_row(row_type), timeout) as cur:
        cur.execute(sql, _params(args))
        return _exactly_one(cur)


@timed("Executed {sql}")
def query_one_struct(
    pool: ConnectionPool,
    row_type: Type[T],
    sql: str,
    *args: Any,
    timeout: Optional[float] = None,
) -> T:
    """
    Run a query returning exactly one row and decode it by column name.
    """
    with _cursor(pool, struct_row(row_type), timeout) as cur:
        cur.execute(sql, _params(args))
        return _exactly_one(cur)


@timed("Executed {sql}")
def execute(
    pool: ConnectionPool,
    sql: str,
    *args: Any,
    timeout: Optional[float] = None,
) -> None:
    """Run a statement that returns no rows (INSERT, UPDATE, DELETE)."""
    with _cursor(pool, timeout=timeout) as cur:
        cur.execute(sql, _params(args))


def _json_object(value: Any) -> Dict[str, Any]:
    if isinstance(value, (bytes, bytearray, memoryview)):
        value = bytes(value).decode("utf-8")
    if isinstance(value, str):
        try:
            value = json.loads(value)
        except ValueError as exc:
            raise DecodeError(f"column is not valid JSON: {exc}") from exc
    if not isinstance(value, dict):
        raise DecodeError(f"expected a JSON object, got {type(value).__name__}")
    return value


@timed("Executed {sql}")
def query_json(
    pool: ConnectionPool,
    sql: str,
    *args: Any,
    timeout: Optional[float] = None,
) -> Dict[str, Any]:
    """
    Run a query returning one row with a single JSON/JSONB column.

    JSON text columns are parsed too; anything that is not a JSON object
    raises `DecodeError`.
    """
    with _cursor(pool, timeout=timeout) as cur:
        cur.execute(sql, _params(args))
        row = _exactly_one(cur)
    if len(row) != 1:
        raise DecodeError(f"expected one JSON column, got {len(row)}")
    return _json_object(row[0])


@timed("Executed {sql}")
def exec_json(
    pool: ConnectionPool,
    sql: str,
    json_data: Dict[str, Any],
    *args: Any,
    timeout: Optional[float] = None,
) -> None:
    """
    Serialize `json_data` and run `sql` with it as the last positional argument.

    With two caller arguments the JSON text binds to `$3`.
    """
    payload = json.dumps(json_data)
    with _cursor(pool, timeout=timeout) as cur:
        cur.execute(sql, [*args, payload])


__all__ = [
    "exec_json",
    "execute",
    "query_json",
    "query_one",
    "query_one_struct",
    "query_simple",
    "query_structs",
]
