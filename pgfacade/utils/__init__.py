"""
Utilities package for pgfacade.

Exports shared helpers for logging and query timing. Keep this package
lightweight and free of database logic.
"""

from pgfacade.utils.logging import configure_logging, get_logger
from pgfacade.utils.profiler import (
    ProfileStats,
    QueryTimer,
    configure_query_timing,
    profile_block,
    timed,
)

__all__ = [
    "configure_logging",
    "get_logger",
    "ProfileStats",
    "QueryTimer",
    "configure_query_timing",
    "profile_block",
    "timed",
]
