"""
Root Typer application for the delay-spine CLI.

Commands:
    run         Run the engine over a list of weights
    strategies  List registered strategy kinds
"""

from __future__ import annotations

import asyncio

import typer
from typer import Typer

from delay_spine import __version__
from delay_spine.cli.utils import (
    console,
    err_console,
    print_error_line,
    print_json,
    print_line,
    print_rows,
    print_statistics,
)
from delay_spine.core.config import ConfigStore
from delay_spine.core.errors import ConfigError, ValidationError
from delay_spine.core.logging import configure_logging
from delay_spine.core.result import Result
from delay_spine.engine.elements import Element, as_elements
from delay_spine.engine.observers import HistoryObserver, LoggingObserver, StatisticsObserver
from delay_spine.engine.runner import Runner, run_with_timeout
from delay_spine.engine.strategies import StrategyKind, build_default_registry

app = Typer(
    name="delay-spine",
    help="delay-spine — event-driven delayed execution engine.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)


# ── Version callback ─────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    if value:
        typer.echo(f"delay-spine {__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: bool | None = typer.Option(  # noqa: UP007
        None,
        "--version",
        "-V",
        help="Show version and exit.",
        callback=_version_callback,
        is_eager=True,
    ),
) -> None:
    """delay-spine CLI — run weighted elements through an execution strategy."""


# ── Commands ─────────────────────────────────────────────────────────────


@app.command()
def run(
    weights: list[float] = typer.Argument(..., help="Element weights (milliseconds by default)"),
    strategy: str = typer.Option(
        StrategyKind.DELAYED_CANCELLABLE.value, "--strategy", "-s", help="Strategy kind"
    ),
    cancel_after: float | None = typer.Option(
        None, "--cancel-after", "-c", min=0, help="Cancel the run after this many seconds"
    ),
    prefix: str = typer.Option("", "--prefix", "-p", help="Prefix for every event line"),
    timestamps: bool = typer.Option(False, "--timestamps", help="Show event timestamps"),
    no_logging: bool = typer.Option(False, "--no-logging", help="Suppress event lines"),
    stats: bool = typer.Option(False, "--stats", help="Print run statistics"),
    history: bool = typer.Option(False, "--history", help="Print the event history"),
    log_level: str = typer.Option("WARNING", "--log-level", help="Internal log level"),
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """Run the engine over WEIGHTS and report the outcome."""
    # keep --json output parseable
    configure_logging(level="CRITICAL" if json_out else log_level, json_format=False, cache_loggers=False)

    try:
        store = ConfigStore()
        store.update(
            log_prefix=prefix,
            show_timestamps=timestamps,
            enable_logging=not (no_logging or json_out),
        )
    except ConfigError as e:
        err_console.print(f"[bold red]Error[/bold red] ({e.category.value}): {e.message}")
        raise typer.Exit(code=2) from e

    statistics = StatisticsObserver()
    recorder = HistoryObserver()
    observers = [
        LoggingObserver(store, sink=print_line, error_sink=print_error_line),
        statistics,
        recorder,
    ]
    runner = Runner(store, include_default_observers=False)
    elements = as_elements(weights)

    try:
        result = asyncio.run(_run(runner, elements, strategy, observers, cancel_after))
    except ValidationError as e:
        err_console.print(f"[bold red]Invalid input[/bold red]: {e.message}")
        raise typer.Exit(code=2) from e
    except ConfigError as e:
        err_console.print(f"[bold red]Error[/bold red] ({e.category.value}): {e.message}")
        raise typer.Exit(code=2) from e

    if json_out:
        print_json(
            {
                "result": _result_payload(result),
                "statistics": statistics.snapshot().to_dict(),
                "history": [entry.event.to_dict() for entry in recorder.entries()],
            }
        )
    else:
        if stats:
            print_statistics(statistics)
        if history:
            for line in recorder.render():
                print_line(line)
        if result.is_ok():
            processed = " ".join(str(e) for e in result.unwrap())
            console.print(f"[green]Processed[/green]: {processed}", highlight=False)

    if result.is_err():
        if not json_out:
            err_console.print(f"[bold red]Run failed[/bold red]: {result.error}")  # type: ignore[union-attr]
        raise typer.Exit(code=1)


@app.command()
def strategies(
    json_out: bool = typer.Option(False, "--json"),
) -> None:
    """List registered strategy kinds."""
    rows = build_default_registry().describe()
    if json_out:
        print_json(rows)
        return
    print_rows(rows, title="Strategies")


# ── Helpers ──────────────────────────────────────────────────────────────


async def _run(
    runner: Runner,
    elements: list[Element],
    kind: str,
    observers: list,
    cancel_after: float | None,
) -> Result[list[Element]]:
    if cancel_after is None:
        return await runner.run(elements, kind, observers=observers)
    return await run_with_timeout(runner, elements, cancel_after, kind, observers=observers)


def _result_payload(result: Result[list[Element]]) -> dict:
    if result.is_ok():
        return {"ok": True, "value": [e.weight for e in result.unwrap()]}
    return result.to_dict()


if __name__ == "__main__":
    app()
