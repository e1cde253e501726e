"""
Timing utilities for pgfacade.

Every query helper is wrapped by `timed`, which measures wall-clock time with
`profile_block` and reports it through a swappable sink. The sink can be
pointed at another logger or disabled with `configure_query_timing` without
touching any call site.

Usage examples:
    from pgfacade.utils.profiler import profile_block, timed

    with profile_block("warmup") as stats:
        run_warmup()
    print(stats.duration_seconds)

    @timed("Executed {sql}")
    def execute(pool, sql, *args):
        ...
"""

from __future__ import annotations

import contextlib
import functools
import inspect
import logging
import time
from dataclasses import dataclass, field
from typing import Any, Callable, Generator, Optional, TypeVar

F = TypeVar("F", bound=Callable[..., Any])


@dataclass
class ProfileStats:
    """
    Container for timing measurements.
    """

    label: str
    start_ts: float = field(default=0.0)
    end_ts: float = field(default=0.0)
    duration_seconds: float = field(default=0.0)
    failed: bool = field(default=False)
    extra: dict[str, Any] = field(default_factory=dict)


@contextlib.contextmanager
def profile_block(label: str) -> Generator[ProfileStats, None, None]:
    """
    Context manager measuring the wall-clock duration of a block.

    `failed` is set when the block raises; the exception is re-raised.
    """
    stats = ProfileStats(label=label)
    stats.start_ts = time.perf_counter()
    try:
        yield stats
    except BaseException:
        stats.failed = True
        raise
    finally:
        stats.end_ts = time.perf_counter()
        stats.duration_seconds = stats.end_ts - stats.start_ts


class QueryTimer:
    """
    Sink for timing lines emitted by `timed`.

    Parameters
    ----------
    logger : logging.Logger
        Destination logger; lines are written at `level`.
    enabled : bool
        When False, `record` does nothing.
    level : int
        Logging level for timing lines.
    """

    def __init__(
        self,
        logger: logging.Logger,
        enabled: bool = True,
        level: int = logging.INFO,
    ) -> None:
        self.logger = logger
        self.enabled = enabled
        self.level = level

    def record(self, message: str, stats: ProfileStats) -> None:
        if not self.enabled:
            return
        self.logger.log(
            self.level,
            "%s in %.6fs",
            message,
            stats.duration_seconds,
            extra={
                "label": stats.label,
                "duration_seconds": stats.duration_seconds,
                "failed": stats.failed,
                **stats.extra,
            },
        )


_DEFAULT_LOGGER_NAME = "pgfacade.queries"
_timer = QueryTimer(logging.getLogger(_DEFAULT_LOGGER_NAME))


def get_query_timer() -> QueryTimer:
    """Return the active timing sink."""
    return _timer


def configure_query_timing(
    logger: Optional[logging.Logger] = None,
    enabled: bool = True,
    level: int = logging.INFO,
) -> QueryTimer:
    """
    Replace the timing sink used by every `timed` function.

    Parameters
    ----------
    logger : logging.Logger, optional
        Logger receiving timing lines. Defaults to the `pgfacade.queries` logger.
    enabled : bool
        Set False to silence timing entirely.
    level : int
        Logging level for timing lines.

    Returns
    -------
    QueryTimer
        The newly installed sink.
    """
    global _timer
    _timer = QueryTimer(
        logger or logging.getLogger(_DEFAULT_LOGGER_NAME), enabled=enabled, level=level
    )
    return _timer


def timed(message: str) -> Callable[[F], F]:
    """
    Decorator logging how long each call of the wrapped function took.

    `message` is formatted with the call's bound arguments, so
    `@timed("Executed {sql}")` reports the SQL text of each call. A line is
    written whether the call returns or raises; results and exceptions pass
    through untouched.

    Example
    -------
        @timed("Executed bulk insert into {table}")
        def bulk_insert(pool, table, columns, rows):
            ...
    """

    def decorator(func: F) -> F:
        signature = inspect.signature(func)

        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            bound = signature.bind(*args, **kwargs)
            bound.apply_defaults()
            text = message.format_map(bound.arguments)
            stats: Optional[ProfileStats] = None
            try:
                with profile_block(func.__name__) as stats:
                    if "sql" in bound.arguments:
                        stats.extra["sql"] = bound.arguments["sql"]
                    return func(*args, **kwargs)
            finally:
                if stats is not None:
                    _timer.record(text, stats)

        return wrapper  # type: ignore[return-value]

    return decorator


__all__ = [
    "ProfileStats",
    "QueryTimer",
    "configure_query_timing",
    "get_query_timer",
    "profile_block",
    "timed",
]
