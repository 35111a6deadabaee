"""MCP server for wbsgen — exposes WBS generation and effort edits to AI assistants."""

from __future__ import annotations

import json
import sys
from dataclasses import dataclass, field

from loguru import logger
from mcp.server.fastmcp import FastMCP

from wbsgen.export import export_xlsx
from wbsgen.models import ProjectForm, Task
from wbsgen.scheduler import diagnose
from wbsgen.wbs import (
    effort_summary,
    generate_wbs as build_wbs,
    set_percent_complete as apply_percent_complete,
    set_resource_name as apply_resource_name,
    update_effort as apply_effort,
)

mcp = FastMCP(
    "wbsgen",
    instructions="""\
wbsgen builds a work breakdown structure (WBS) for a ticket: six tasks in a \
chain (Design -> Coding -> Unit Test -> Function Test -> UAT & Support -> \
Go-Live), each with an effort in working days (fractions allowed, minimum 0.1).

Key concepts:
- **Business days**: Mon-Fri only. Weekends carry no capacity; there is no holiday calendar.
- **Shared days**: a task ending part-way through a day leaves the rest of \
that day to the next task (remaining_capacity_at_end), so 0.5 + 0.5 fits in one day.
- **Rescheduling**: every effort edit recomputes all dates from scratch.

Typical workflow:
1. generate_wbs with ticket id, developer, BA and start date (YYYY-MM-DD)
2. update_effort for each estimate (task ids: design, coding, unittest, \
functiontest, uatsupport, golive)
3. get_wbs / get_effort_summary to review
4. export_wbs to write the Excel sheet

The WBS lives only as long as this server process.\
""",
)


@dataclass
class Session:
    """The WBS currently being edited. Tools replace ``tasks`` wholesale."""

    form: ProjectForm | None = None
    tasks: list[Task] = field(default_factory=list)


_session = Session()


def _require_wbs() -> list[Task]:
    if _session.form is None or not _session.tasks:
        raise ValueError("No WBS generated yet. Call generate_wbs first.")
    return _session.tasks


def _wbs_to_json(tasks: list[Task]) -> str:
    result = {
        "ticket_id": _session.form.ticket_id if _session.form else "",
        "tasks": [t.to_dict() for t in tasks],
        "summary": effort_summary(tasks).to_dict(),
    }
    unschedulable = diagnose(tasks)
    if unschedulable:
        result["unschedulable"] = unschedulable
    return json.dumps(result, indent=2)


# ---------------------------------------------------------------------------
# Write tools
# ---------------------------------------------------------------------------


@mcp.tool()
def generate_wbs(ticket_id: str, developer: str, ba: str, start_date: str) -> str:
    """Generate a fresh six-task WBS, replacing any WBS in this session.

    Args:
        ticket_id: Ticket identifier, also used as the export file name
        developer: Developer assigned to coding and unit test
        ba: Business analyst assigned to design and function test
        start_date: Project start date (YYYY-MM-DD)
    """
    form = ProjectForm(ticket_id=ticket_id, developer=developer, ba=ba, start_date=start_date)
    try:
        tasks = build_wbs(form)
    except ValueError as e:
        return f"Error: {e}"
    _session.form = form
    _session.tasks = tasks
    return _wbs_to_json(tasks)


@mcp.tool()
def update_effort(task_id: str, effort: float) -> str:
    """Change a task's effort (working days) and reschedule every task.

    Args:
        task_id: One of design, coding, unittest, functiontest, uatsupport, golive
        effort: New effort in days; values below 0.1 are raised to 0.1
    """
    try:
        tasks = _require_wbs()
    except ValueError as e:
        return f"Error: {e}"
    if task_id not in {t.id for t in tasks}:
        return f"Error: task {task_id} not found."
    _session.tasks = apply_effort(tasks, task_id, effort)
    return _wbs_to_json(_session.tasks)


@mcp.tool()
def set_percent_complete(task_id: str, percent_complete: str) -> str:
    """Record progress text (e.g. "50%") for a task. Dates are not affected."""
    try:
        _session.tasks = apply_percent_complete(_require_wbs(), task_id, percent_complete)
    except ValueError as e:
        return f"Error: {e}"
    return f"Set {task_id} to {percent_complete}."


@mcp.tool()
def set_resource_name(task_id: str, resource_name: str) -> str:
    """Assign a person to a task. Dates are not affected."""
    try:
        _session.tasks = apply_resource_name(_require_wbs(), task_id, resource_name)
    except ValueError as e:
        return f"Error: {e}"
    return f"Assigned {task_id} to {resource_name}."


@mcp.tool()
def export_wbs(path: str | None = None) -> str:
    """Write the WBS to an Excel file.

    Args:
        path: Output path; defaults to <ticket_id>.xlsx in the working directory
    """
    try:
        tasks = _require_wbs()
        out = export_xlsx(_session.form.ticket_id, tasks, path)
    except (ValueError, OSError) as e:
        return f"Error: {e}"
    return f"Exported WBS to {out}"


# ---------------------------------------------------------------------------
# Read tools
# ---------------------------------------------------------------------------


@mcp.tool()
def get_wbs() -> str:
    """Get every task with its dates, effort and leftover same-day capacity."""
    try:
        return _wbs_to_json(_require_wbs())
    except ValueError as e:
        return f"Error: {e}"


@mcp.tool()
def get_effort_summary() -> str:
    """Get effort totals (days) for the development, UAT & support and go-live phases."""
    try:
        tasks = _require_wbs()
    except ValueError as e:
        return f"Error: {e}"
    return json.dumps(effort_summary(tasks).to_dict(), indent=2)


def main():
    """Entry point for the MCP server."""
    logger.remove()
    logger.add(sys.stderr, level="INFO")
    mcp.run(transport="stdio")


if __name__ == "__main__":
    main()
