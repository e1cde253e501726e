"""
Infrastructure package for pgfacade.

Centralizes connection pool lifecycle: building the connection string,
creating the pool, and closing it at shutdown.
"""

from pgfacade.infrastructure.db_factory import (
    apply_statement_timeout,
    build_conninfo,
    close,
    new_pool,
)

__all__ = [
    "apply_statement_timeout",
    "build_conninfo",
    "close",
    "new_pool",
]
