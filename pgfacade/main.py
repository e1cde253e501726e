from __future__ import annotations

import sys
from typing import List, Optional

import typer

from pgfacade.config import get_settings
from pgfacade.infrastructure.db_factory import close, new_pool
from pgfacade.pagination import paginate
from pgfacade.queries import execute, query_structs
from pgfacade.reporter import print_rows, rows_to_json
from pgfacade.utils.logging import configure_logging
from pgfacade.utils.profiler import configure_query_timing

app = typer.Typer(help="pgfacade CLI: run ad-hoc SQL through the pooled query helpers.")


def _setup() -> None:
    settings = get_settings()
    configure_logging(level=settings.log_level, json_logs=settings.log_json)
    configure_query_timing(enabled=settings.query_timing_enabled)


@app.command()
def info() -> None:
    """
    Show effective configuration values.
    """
    cfg = get_settings().db_config()
    overrides = (
        f"max_conn={cfg.max_conn} connect_timeout={cfg.connect_timeout.total_seconds():g}s"
        if cfg.has_pool_overrides
        else "pool defaults"
    )
    typer.echo(
        f"DB={cfg.user}:***@{cfg.host}:{cfg.port}/{cfg.db} | "
        f"sslmode={cfg.ssl_mode or 'default'} | {overrides}"
    )


@app.command()
def query(
    sql: str = typer.Argument(..., help="SQL text using $1, $2, ... placeholders."),
    args: Optional[List[str]] = typer.Argument(None, help="Positional parameters (as text)."),
    limit: Optional[int] = typer.Option(
        None,
        "--limit",
        "-l",
        help="Append LIMIT/OFFSET to the query.",
    ),
    offset: int = typer.Option(0, "--offset", help="Offset used together with --limit."),
    as_json: bool = typer.Option(False, "--json", help="Print rows as JSON instead of a table."),
) -> None:
    """
    Run a query and print the returned rows.
    """
    _setup()
    params = tuple(args or ())
    if limit is not None:
        sql, paged = paginate(sql, params, limit, offset)
        params = tuple(paged)

    pool = new_pool(get_settings().db_config())
    try:
        rows = query_structs(pool, dict, sql, *params)
    finally:
        close(pool)

    if as_json:
        typer.echo(rows_to_json(rows))
    else:
        print_rows(rows)


@app.command("exec")
def exec_(
    sql: str = typer.Argument(..., help="Statement using $1, $2, ... placeholders."),
    args: Optional[List[str]] = typer.Argument(None, help="Positional parameters (as text)."),
) -> None:
    """
    Run a statement that returns no rows.
    """
    _setup()
    pool = new_pool(get_settings().db_config())
    try:
        execute(pool, sql, *(args or ()))
    finally:
        close(pool)
    typer.echo("OK")


def main() -> None:
    try:
        app()
    except KeyboardInterrupt:
        typer.echo("Cancelled by user.", err=True)
        sys.exit(130)


if __name__ == "__main__":
    main()
