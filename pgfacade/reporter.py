from __future__ import annotations

import json
from datetime import date, datetime
from decimal import Decimal
from typing import Any, Dict, List, Optional

from rich import box
from rich.console import Console
from rich.markup import escape
from rich.table import Table


def _cell(value: Any) -> str:
    """Render one value the way psql would show it, with NULL made visible."""
    if value is None:
        return "[dim]NULL[/dim]"
    if isinstance(value, (dict, list)):
        return escape(json.dumps(value, default=str))
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Decimal):
        return format(value, "f")
    return escape(str(value))


def print_rows(
    rows: List[Dict[str, Any]],
    title: Optional[str] = None,
    console: Optional[Console] = None,
) -> None:
    """
    Render query rows as a rich table.

    Columns follow the key order of the first row. An empty result prints a
    notice instead of an empty table.
    """
    console = console or Console()

    if not rows:
        console.print("[yellow]No rows returned.[/yellow]")
        return

    table = Table(
        title=title,
        box=box.ROUNDED,
        caption=f"{len(rows):,} row(s)",
    )

    columns = list(rows[0].keys())
    for name in columns:
        table.add_column(name, style="cyan", overflow="fold")

    for row in rows:
        table.add_row(*(_cell(row.get(name)) for name in columns))

    console.print(table)


def rows_to_json(rows: List[Dict[str, Any]]) -> str:
    """Serialize rows for `--json` output."""
    return json.dumps(rows, indent=2, default=str)
