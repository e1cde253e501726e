"""
pgfacade - thin convenience layer over a psycopg connection pool.

This package opens pooled PostgreSQL connections, runs parameterized SQL and
maps rows onto caller-supplied types:

- Pool lifecycle (`new_pool`, `close`)
- Row-to-struct and scalar query helpers
- Single-row, JSON and statement helpers
- Batch transactions and multi-row INSERT
- LIMIT/OFFSET pagination and CTE wrapping

Every query helper logs its SQL text and elapsed time through a swappable
timing sink (see `configure_query_timing`).
"""

from __future__ import annotations

__version__ = "0.1.0"
__license__ = "MIT"

# Public API exports
from pgfacade.config import DBConfig, Settings, get_settings
from pgfacade.errors import (
    BulkInsertError,
    DecodeError,
    EmptyInsertError,
    NoRowsError,
    PgFacadeError,
    PoolConfigError,
    PoolCreationError,
    TooManyRowsError,
    TransactionError,
)
from pgfacade.infrastructure.db_factory import (
    apply_statement_timeout,
    build_conninfo,
    close,
    new_pool,
)
from pgfacade.pagination import query_with_cte, query_with_pagination
from pgfacade.queries import (
    exec_json,
    execute,
    query_json,
    query_one,
    query_one_struct,
    query_simple,
    query_structs,
)
from pgfacade.rows import scalar_row, struct_row
from pgfacade.transactions import (
    build_bulk_insert,
    bulk_insert,
    run_statements_in_transaction,
)
from pgfacade.utils.logging import configure_logging, get_logger
from pgfacade.utils.profiler import configure_query_timing, profile_block, timed

__all__ = [
    # Version info
    "__version__",
    "__license__",
    # Configuration
    "DBConfig",
    "Settings",
    "get_settings",
    # Pool lifecycle
    "apply_statement_timeout",
    "build_conninfo",
    "close",
    "new_pool",
    # Query helpers
    "exec_json",
    "execute",
    "query_json",
    "query_one",
    "query_one_struct",
    "query_simple",
    "query_structs",
    "query_with_cte",
    "query_with_pagination",
    # Batch helpers
    "build_bulk_insert",
    "bulk_insert",
    "run_statements_in_transaction",
    # Row decoding
    "scalar_row",
    "struct_row",
    # Errors
    "PgFacadeError",
    "PoolConfigError",
    "PoolCreationError",
    "DecodeError",
    "NoRowsError",
    "TooManyRowsError",
    "TransactionError",
    "BulkInsertError",
    "EmptyInsertError",
    # Logging and timing
    "configure_logging",
    "get_logger",
    "configure_query_timing",
    "profile_block",
    "timed",
]
