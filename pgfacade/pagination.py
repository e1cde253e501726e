"""
Query rewriting helpers: LIMIT/OFFSET pagination and CTE prefixes.

Both rewrite the SQL text and delegate to `query_simple`, so results are
decoded positionally.
"""

from __future__ import annotations

from typing import Any, List, Optional, Tuple

from psycopg_pool import ConnectionPool

from pgfacade.queries import query_simple
from pgfacade.utils.profiler import timed


def paginate(sql: str, args: Tuple[Any, ...], limit: int, offset: int) -> Tuple[str, List[Any]]:
    """
    Append `LIMIT $n+1 OFFSET $n+2` to `sql`, where n is the current argument count.

    The base query must not already end in a LIMIT/OFFSET clause.
    """
    n = len(args)
    return f"{sql} LIMIT ${n + 1} OFFSET ${n + 2}", [*args, limit, offset]


@timed("Executed {sql}")
def query_with_pagination(
    pool: ConnectionPool,
    row_type: Any,
    sql: str,
    limit: int,
    offset: int,
    *args: Any,
    timeout: Optional[float] = None,
) -> List[Any]:
    """Run `sql` with LIMIT/OFFSET bound to the two placeholders after `args`."""
    paginated_sql, paginated_args = paginate(sql, args, limit, offset)
    return query_simple(pool, row_type, paginated_sql, *paginated_args, timeout=timeout)


@timed("Executed CTE query")
def query_with_cte(
    pool: ConnectionPool,
    row_type: Any,
    cte: str,
    query: str,
    *args: Any,
    timeout: Optional[float] = None,
) -> List[Any]:
    """
    Run `WITH <cte> <query>`.

    `cte` is the body after WITH, e.g. `"recent AS (SELECT ...)"`; it is not
    validated here.
    """
    sql = f"WITH {cte} {query}"
    return query_simple(pool, row_type, sql, *args, timeout=timeout)


__all__ = ["paginate", "query_with_cte", "query_with_pagination"]
