"""Typer CLI for wbsgen."""

from __future__ import annotations

import json
import sys
from pathlib import Path
from typing import Annotated, Optional

import typer
from loguru import logger
from rich.console import Console
from rich.table import Table

from wbsgen.export import default_filename, export_csv, export_xlsx
from wbsgen.models import ProjectForm, Task
from wbsgen.scheduler import diagnose, propagate
from wbsgen.wbs import (
    effort_summary,
    generate_wbs,
    set_percent_complete,
    set_resource_name,
    update_effort,
)

app = typer.Typer(
    name="wbsgen",
    help="Generate a business-day WBS schedule from effort estimates.",
    no_args_is_help=True,
)
console = Console()


@app.callback()
def main(
    verbose: Annotated[bool, typer.Option("--verbose", "-v", help="Show debug logging")] = False,
) -> None:
    logger.remove()
    logger.add(sys.stderr, level="DEBUG" if verbose else "WARNING")


def _parse_assignments(values: list[str] | None, option: str) -> list[tuple[str, str]]:
    """Split repeated ``ID=VALUE`` options into pairs."""
    pairs: list[tuple[str, str]] = []
    for raw in values or []:
        task_id, sep, value = raw.partition("=")
        if not sep or not task_id.strip():
            console.print(f"[red]{option} expects ID=VALUE, got '{raw}'.[/red]")
            raise typer.Exit(1)
        pairs.append((task_id.strip(), value.strip()))
    return pairs


def _require_known(tasks: list[Task], task_id: str) -> None:
    if task_id not in {t.id for t in tasks}:
        known = ", ".join(t.id for t in tasks)
        console.print(f"[red]Task {task_id} not found. Known tasks: {known}[/red]")
        raise typer.Exit(1)


def _print_tasks(tasks: list[Task], title: str) -> None:
    table = Table(title=title)
    table.add_column("ID")
    table.add_column("Task Name")
    table.add_column("Depends On")
    table.add_column("Effort (d)")
    table.add_column("Start")
    table.add_column("End")
    table.add_column("% Complete")
    table.add_column("Resource")

    for t in tasks:
        table.add_row(
            t.id,
            t.name,
            ", ".join(t.dependencies) or "-",
            f"{t.effort:g}",
            t.start_date or "-",
            t.end_date or "-",
            t.percent_complete or "-",
            t.resource_name or "-",
            style=None if t.end_date else "bold red",
        )

    console.print(table)


def _print_summary(tasks: list[Task]) -> None:
    summary = effort_summary(tasks)
    console.print("\n[bold underline]Effort Summary[/bold underline]\n")
    console.print(f"  Development Phase: [bold]{summary.development_phase:g}[/bold] days")
    console.print(f"  UAT & Support:     [bold]{summary.uat_support:g}[/bold] days")
    console.print(f"  Go-Live:           [bold]{summary.go_live:g}[/bold] days")
    console.print(f"  Total:             [bold blue]{summary.total:g}[/bold blue] days\n")


def _print_unschedulable(tasks: list[Task]) -> None:
    reasons = diagnose(tasks)
    if not reasons:
        return
    console.print(f"[bold red]{len(reasons)} task(s) could not be scheduled:[/bold red]")
    for tid, reason in reasons.items():
        console.print(f"  {tid}: {reason}")


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command()
def generate(
    ticket: Annotated[str, typer.Option("--ticket", help="Ticket ID")] = "",
    developer: Annotated[str, typer.Option(help="Developer name")] = "",
    ba: Annotated[str, typer.Option("--ba", help="Business analyst name")] = "",
    start: Annotated[str, typer.Option(help="Project start date (YYYY-MM-DD)")] = "",
    effort: Annotated[Optional[list[str]], typer.Option("--effort", "-e", help="Effort override, e.g. coding=2.5")] = None,
    percent: Annotated[Optional[list[str]], typer.Option("--percent", help="Percent complete, e.g. design=50%")] = None,
    resource: Annotated[Optional[list[str]], typer.Option("--resource", help="Resource override, e.g. golive=Ops")] = None,
    xlsx: Annotated[Optional[str], typer.Option("--xlsx", help="Export to an Excel file ('-' for <ticket>.xlsx)")] = None,
    csv: Annotated[Optional[str], typer.Option("--csv", help="Export to a CSV file")] = None,
    as_json: Annotated[bool, typer.Option("--json", help="Print tasks as JSON")] = False,
) -> None:
    """Generate the six-step WBS for a ticket and apply effort edits.

    Each --effort edit reschedules the whole WBS. Efforts below 0.1 days
    (or non-numeric values) are treated as 0.1.
    """
    form = ProjectForm(ticket_id=ticket, developer=developer, ba=ba, start_date=start)
    try:
        tasks = generate_wbs(form)
    except ValueError as e:
        console.print(f"[red]{e}[/red]")
        raise typer.Exit(1)

    for task_id, value in _parse_assignments(effort, "--effort"):
        _require_known(tasks, task_id)
        tasks = update_effort(tasks, task_id, value)
    for task_id, value in _parse_assignments(percent, "--percent"):
        _require_known(tasks, task_id)
        tasks = set_percent_complete(tasks, task_id, value)
    for task_id, value in _parse_assignments(resource, "--resource"):
        _require_known(tasks, task_id)
        tasks = set_resource_name(tasks, task_id, value)

    if as_json:
        typer.echo(json.dumps({
            "form": form.to_dict(),
            "tasks": [t.to_dict() for t in tasks],
            "summary": effort_summary(tasks).to_dict(),
        }, indent=2))
    else:
        _print_tasks(tasks, f"WBS {ticket}")
        _print_summary(tasks)

    if xlsx:
        path = export_xlsx(ticket, tasks, default_filename(ticket) if xlsx == "-" else xlsx)
        console.print(f"[green]Exported WBS to {path}[/green]")
    if csv:
        path = export_csv(ticket, tasks, csv)
        console.print(f"[green]Exported WBS to {path}[/green]")


@app.command()
def schedule(
    file: Annotated[Path, typer.Argument(help="JSON file with a list of tasks")],
    as_json: Annotated[bool, typer.Option("--json", help="Print tasks as JSON")] = False,
) -> None:
    """Schedule an arbitrary task graph read from a JSON file.

    Each entry needs id and name; effort, dependencies and (for root tasks)
    start_date are optional. Tasks that cannot be scheduled are listed with
    the reason.
    """
    try:
        raw = json.loads(file.read_text())
        if isinstance(raw, dict):
            raw = raw.get("tasks", [])
        tasks = [Task.from_dict(d) for d in raw]
    except (OSError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if not tasks:
        console.print("No tasks to schedule.")
        return

    try:
        scheduled = propagate(tasks)
    except ValueError as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)

    if as_json:
        typer.echo(json.dumps({
            "tasks": [t.to_dict() for t in scheduled],
            "unschedulable": diagnose(scheduled),
        }, indent=2))
        return

    _print_tasks(scheduled, "Schedule")
    _print_unschedulable(scheduled)
