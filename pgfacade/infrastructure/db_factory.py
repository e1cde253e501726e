"""
Connection pool factory for pgfacade.

Builds a psycopg_pool `ConnectionPool` from a `DBConfig` and releases it at
shutdown. The caller owns the returned pool: create it once, pass it to every
query helper, and hand it to `close` exactly once.
"""

from __future__ import annotations

import math
from typing import Any, Dict, Optional

import psycopg
from psycopg.conninfo import conninfo_to_dict, make_conninfo
from psycopg_pool import ConnectionPool

from pgfacade.config import DBConfig
from pgfacade.errors import PoolConfigError, PoolCreationError
from pgfacade.utils.logging import get_logger

log = get_logger(__name__)

# psycopg_pool's own default for min_size
POOL_MIN_SIZE = 4

STATEMENT_TIMEOUT_SQL = "SELECT set_config('statement_timeout', %s, true)"


def build_conninfo(cfg: DBConfig) -> str:
    """
    Compose a libpq key/value connection string from the configuration.

    An empty SSL mode is left out so libpq applies its own default.
    """
    return make_conninfo(
        host=cfg.host,
        port=str(cfg.port),
        user=cfg.user,
        password=cfg.password,
        dbname=cfg.db,
        sslmode=cfg.ssl_mode or None,
    )


def _connect_timeout_seconds(cfg: DBConfig) -> int:
    # libpq only understands whole seconds
    return max(1, math.ceil(cfg.connect_timeout.total_seconds()))


def apply_statement_timeout(conn: Any, timeout: Optional[float]) -> None:
    """
    Bound every statement of the current transaction to `timeout` seconds.

    The setting is transaction-local, so it ends with the commit or rollback
    and never leaks into the next borrower of a pooled connection. A server
    side expiry raises `psycopg.errors.QueryCanceled`. `None` is a no-op.
    """
    if timeout is None:
        return
    timeout_ms = max(1, math.ceil(timeout * 1000))
    conn.execute(STATEMENT_TIMEOUT_SQL, (str(timeout_ms),))


def new_pool(
    cfg: DBConfig,
    *,
    min_size: Optional[int] = None,
    wait: bool = False,
    open_timeout: float = 30.0,
) -> ConnectionPool:
    """
    Create and open a connection pool for the given configuration.

    Parameters
    ----------
    cfg : DBConfig
        Connection parameters. `max_conn` and `connect_timeout` override the
        pool size and the libpq connect timeout only when both are non-zero;
        otherwise psycopg_pool's own sizing and libpq's own timeout apply.
    min_size : int, optional
        Minimum number of idle connections to keep. Defaults to the pool's
        own minimum, capped at `max_conn` when the overrides apply.
    wait : bool
        Block until `min_size` connections are established. Without it the
        pool connects in the background, so bad credentials surface on the
        first query instead.
    open_timeout : float
        Seconds to wait for the pool to fill when `wait` is set.

    Returns
    -------
    ConnectionPool
        An open pool.

    Raises
    ------
    PoolConfigError
        If the generated connection string cannot be parsed.
    PoolCreationError
        If the pool cannot be created or opened.
    """
    try:
        params = conninfo_to_dict(build_conninfo(cfg))
    except psycopg.ProgrammingError as exc:
        raise PoolConfigError(f"failed to parse config: {exc}") from exc

    sizing: Dict[str, int] = {}
    kwargs: Dict[str, Any] = {}
    if min_size is not None:
        sizing["min_size"] = min_size
    if cfg.has_pool_overrides:
        sizing["max_size"] = cfg.max_conn
        sizing["min_size"] = min(sizing.get("min_size", POOL_MIN_SIZE), cfg.max_conn)
        kwargs["connect_timeout"] = _connect_timeout_seconds(cfg)

    pool: Optional[ConnectionPool] = None
    try:
        pool = ConnectionPool(
            conninfo=make_conninfo(**params),
            kwargs=kwargs,
            open=False,
            **sizing,
        )
        pool.open(wait=wait, timeout=open_timeout)
    except Exception as exc:
        if pool is not None:
            pool.close()
        raise PoolCreationError(f"failed to create connection pool: {exc}") from exc

    log.info(
        "Connection pool opened",
        extra={
            "host": cfg.host,
            "port": cfg.port,
            "db": cfg.db,
            "min_size": pool.min_size,
            "max_size": pool.max_size,
        },
    )
    return pool


def close(pool: Optional[ConnectionPool]) -> None:
    """
    Close the pool and release all of its connections.

    A missing pool is a no-op.
    """
    if pool is not None:
        pool.close()


__all__ = [
    "apply_statement_timeout",
    "build_conninfo",
    "close",
    "new_pool",
]
