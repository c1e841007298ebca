"""
taskmatch CLI

  taskmatch filter --tasks <file>     (run matchers, print matches or targets)
  taskmatch orders                    (matcher type priority)
  taskmatch status --config <file>    (configured matchers)
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Optional

import typer
from dotenv import load_dotenv
from loguru import logger
from pydantic import ValidationError
from rich.console import Console
from rich.markup import escape
from rich.table import Table

from taskmatch import __version__
from taskmatch.config_loader import build_matchers, load_config
from taskmatch.errors import ConfigError
from taskmatch.filter import TaskFilter
from taskmatch.matchers import matcher_orders
from taskmatch.models import load_tasks
from taskmatch.targets import build_targets

load_dotenv()

app = typer.Typer(
    name="taskmatch",
    help="Match discovered tasks against service, task definition and docker label patterns.",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

console = Console()
err_console = Console(stderr=True)


def version_callback(value: bool):
    if value:
        console.print(f"taskmatch v{__version__}")
        raise typer.Exit()


@app.callback()
def main(
    version: Optional[bool] = typer.Option(
        None,
        "--version",
        callback=version_callback,
        is_eager=True,
        help="Show the version and exit.",
    ),
):
    pass


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------

@app.command("filter")
def filter_tasks(
    tasks_file: Path = typer.Option(..., "--tasks", "-t", help="YAML or JSON file of discovered tasks"),
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Matcher config YAML"),
    workers: Optional[int] = typer.Option(None, "--workers", "-w", help="Matcher worker threads"),
    as_json: bool = typer.Option(False, "--json", help="Print scrape targets as JSON"),
    strict: bool = typer.Option(False, "--strict", help="Exit non-zero if any matcher failed"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Enable debug logging"),
):
    """Run all matchers over the tasks and print what matched."""
    _configure_logging(verbose)

    if not tasks_file.exists():
        console.print(f"[red]Tasks file not found: {tasks_file}[/]")
        raise typer.Exit(1)

    try:
        config = load_config(config_file)
        tasks = load_tasks(tasks_file)
    except (ConfigError, ValidationError, ValueError) as e:
        err_console.print(f"[red]{escape(str(e))}[/]")
        raise typer.Exit(1)

    task_filter = TaskFilter(
        build_matchers(config),
        max_workers=workers or config.max_workers,
    )
    matched, err = task_filter.filter(tasks)

    if as_json:
        targets = build_targets(matched)
        typer.echo(json.dumps([t.model_dump() for t in targets], indent=2))
    else:
        _print_matches(matched)

    if err is not None:
        for e in err.exceptions:
            err_console.print(f"[red]✗ {escape(str(e))}[/]", highlight=False)
        if strict:
            raise typer.Exit(1)


@app.command()
def orders():
    """Show matcher type priority. Earlier types win."""
    table = Table(title="Matcher Priority", border_style="cyan")
    table.add_column("Priority")
    table.add_column("Type")
    for tpe in matcher_orders():
        table.add_row(str(tpe.priority), tpe.value)
    console.print(table)


@app.command()
def status(
    config_file: Optional[Path] = typer.Option(None, "--config", "-c", help="Matcher config YAML"),
):
    """Show configured matchers."""
    try:
        config = load_config(config_file)
    except ConfigError as e:
        err_console.print(f"[red]{escape(str(e))}[/]")
        raise typer.Exit(1)

    matchers = build_matchers(config)
    table = Table(title="Configured Matchers", border_style="cyan")
    table.add_column("Type")
    table.add_column("Index", style="dim")
    table.add_column("Pattern")
    table.add_column("Ports")

    for tpe in matcher_orders():
        for index, m in enumerate(matchers.get(tpe, [])):
            ports = ", ".join(str(p) for p in m.export.metrics_ports) or "[dim]from label[/]"
            table.add_row(tpe.value, str(index), m.describe(), ports)

    console.print(table)
    console.print(f"[dim]max_workers={config.max_workers} job_name={config.job_name or '—'}[/]")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _print_matches(matched) -> None:
    if not matched:
        console.print("[dim]No tasks matched.[/]")
        return

    table = Table(title="Matched Containers", border_style="bright_green")
    table.add_column("Task", style="dim")
    table.add_column("Container")
    table.add_column("Matcher")
    table.add_column("Port")
    table.add_column("Path")
    table.add_column("Job")

    for task in matched:
        for c in task.matched:
            name = task.containers[c.container_index].name
            for t in c.targets:
                table.add_row(
                    f"{task.index}",
                    f"{c.container_index}:{name}",
                    f"{t.matcher_type.value}[{t.matcher_index}]",
                    str(t.port),
                    t.metrics_path,
                    t.job or "—",
                )

    console.print(table)


def _configure_logging(verbose: bool) -> None:
    logger.remove()
    if verbose:
        logger.add(
            lambda msg: err_console.print(f"[dim]{escape(str(msg))}[/]", highlight=False, end=""),
            level="DEBUG",
            format="{time:HH:mm:ss} | {level:<7} | {message}",
        )
    else:
        logger.add(
            lambda msg: err_console.print(f"[dim]{escape(str(msg))}[/]", highlight=False, end=""),
            level="WARNING",
            format="{message}",
        )


# ---------------------------------------------------------------------------
# Entry
# ---------------------------------------------------------------------------

if __name__ == "__main__":
    app()
