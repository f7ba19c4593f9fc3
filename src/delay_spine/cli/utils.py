"""
CLI utility helpers -- consoles and output formatting.
"""

from __future__ import annotations

import json
from typing import Any

from rich.console import Console
from rich.table import Table

from delay_spine.engine.observers import StatisticsObserver

console = Console()
err_console = Console(stderr=True)


def print_line(line: str) -> None:
    """Sink for LoggingObserver lines."""
    console.print(line, markup=False, highlight=False, soft_wrap=True)


def print_error_line(line: str) -> None:
    err_console.print(line, style="bold red", markup=False, highlight=False, soft_wrap=True)


def print_json(payload: Any) -> None:
    console.print_json(json.dumps(payload, default=str))


def print_rows(rows: list[dict[str, Any]], *, title: str = "") -> None:
    """Render a list of dicts as a Rich table."""
    if not rows:
        console.print("[dim]No items.[/dim]")
        return
    table = Table(title=title or None, show_lines=False, pad_edge=False)
    for position, col in enumerate(rows[0]):
        table.add_column(col, overflow="fold", no_wrap=position == 0)
    for row in rows:
        table.add_row(*(str(v) for v in row.values()))
    console.print(table)


def print_statistics(stats: StatisticsObserver) -> None:
    snapshot = stats.snapshot()
    table = Table(title="Run Statistics", show_header=False, pad_edge=False)
    table.add_column("metric", style="cyan")
    table.add_column("value")
    table.add_row("Duration", f"{snapshot.duration_seconds * 1000:.2f}ms")
    table.add_row("Elements Completed", str(snapshot.count))
    table.add_row("Total Delay", f"{snapshot.total_delay:g}")
    table.add_row("Average Delay", f"{snapshot.average_delay:.2f}")
    for kind, n in snapshot.event_counts.items():
        table.add_row(kind.value, str(n))
    console.print(table)
