"""WBS template, effort edits and phase summaries on top of the scheduler."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import date

from loguru import logger

from wbsgen.models import (
    DEFAULT_EFFORT,
    EffortSummary,
    Phase,
    ProjectForm,
    Task,
    clamp_effort,
)
from wbsgen.scheduler import propagate


@dataclass(frozen=True)
class TemplateStep:
    id: str
    name: str
    phase: Phase
    resource: str  # "developer", "ba" or "" for unassigned


# Each step depends on the one before it.
TEMPLATE: tuple[TemplateStep, ...] = (
    TemplateStep("design", "Task Design", Phase.DEVELOPMENT, "ba"),
    TemplateStep("coding", "Task Coding", Phase.DEVELOPMENT, "developer"),
    TemplateStep("unittest", "Task Unit Test", Phase.DEVELOPMENT, "developer"),
    TemplateStep("functiontest", "Task Function Test", Phase.DEVELOPMENT, "ba"),
    TemplateStep("uatsupport", "Task UAT & Support", Phase.UAT_SUPPORT, ""),
    TemplateStep("golive", "Task Conduct Go-live", Phase.GO_LIVE, ""),
)

PHASE_OF: dict[str, Phase] = {step.id: step.phase for step in TEMPLATE}

PHASE_TITLES: dict[Phase, str] = {
    Phase.DEVELOPMENT: "I.Update logic report",
    Phase.UAT_SUPPORT: "II.UAT & Support",
    Phase.GO_LIVE: "III.Go Live",
}

FIELD_LABELS: dict[str, str] = {
    "ticket_id": "Ticket ID",
    "developer": "Developer",
    "ba": "BA",
    "start_date": "Start Date",
}


def generate_schedule(
    project_start_date: date | str,
    developer: str = "",
    ba: str = "",
) -> list[Task]:
    """Build the six-step template starting on *project_start_date* and
    schedule it."""
    start = (
        project_start_date.isoformat()
        if isinstance(project_start_date, date)
        else date.fromisoformat(project_start_date).isoformat()
    )
    people = {"developer": developer, "ba": ba, "": ""}

    tasks: list[Task] = []
    previous: str | None = None
    for step in TEMPLATE:
        tasks.append(
            Task(
                id=step.id,
                name=step.name,
                effort=DEFAULT_EFFORT,
                dependencies=[previous] if previous else [],
                start_date=None if previous else start,
                resource_name=people[step.resource],
            )
        )
        previous = step.id

    logger.info(f"Generating WBS from {start}")
    return propagate(tasks)


def generate_wbs(form: ProjectForm) -> list[Task]:
    """Validate the project form, then generate the schedule.

    Raises ValueError naming the missing required fields.
    """
    missing = form.missing_fields()
    if missing:
        labels = ", ".join(FIELD_LABELS[name] for name in missing)
        raise ValueError(f"Please fill in all required fields: {labels}")
    return generate_schedule(form.start_date, form.developer, form.ba)


def _find(tasks: list[Task], task_id: str) -> int | None:
    for i, t in enumerate(tasks):
        if t.id == task_id:
            return i
    return None


def update_effort(tasks: list[Task], task_id: str, new_effort) -> list[Task]:
    """Set one task's effort and reschedule the whole set."""
    idx = _find(tasks, task_id)
    if idx is None:
        logger.warning(f"Effort edit for unknown task {task_id}; schedule unchanged")
        return [replace(t, dependencies=list(t.dependencies)) for t in tasks]

    updated = list(tasks)
    updated[idx] = replace(tasks[idx], effort=clamp_effort(new_effort))
    return propagate(updated)


def _set_text(tasks: list[Task], task_id: str, **changes) -> list[Task]:
    idx = _find(tasks, task_id)
    if idx is None:
        raise ValueError(f"Task {task_id} not found")
    updated = list(tasks)
    updated[idx] = replace(tasks[idx], **changes)
    return updated


def set_percent_complete(tasks: list[Task], task_id: str, value: str) -> list[Task]:
    return _set_text(tasks, task_id, percent_complete=value)


def set_resource_name(tasks: list[Task], task_id: str, value: str) -> list[Task]:
    return _set_text(tasks, task_id, resource_name=value)


def effort_summary(tasks: list[Task]) -> EffortSummary:
    """Sum effort per phase. Tasks outside the template ids count nowhere."""
    totals = {phase: 0.0 for phase in Phase}
    for t in tasks:
        phase = PHASE_OF.get(t.id)
        if phase is not None:
            totals[phase] += t.effort
    return EffortSummary(
        development_phase=totals[Phase.DEVELOPMENT],
        uat_support=totals[Phase.UAT_SUPPORT],
        go_live=totals[Phase.GO_LIVE],
    )


# ---------------------------------------------------------------------------
# Export layout
# ---------------------------------------------------------------------------


@dataclass
class WbsRow:
    """One line of the exported WBS sheet."""

    task_name: str
    effort: float | None = None
    start_date: str | None = None
    end_date: str | None = None
    percent_complete: str = ""
    resource_name: str = ""
    bold: bool = False


def wbs_rows(ticket_id: str, tasks: list[Task]) -> list[WbsRow]:
    """Lay out the ticket row, then each phase heading followed by its tasks."""
    summary = effort_summary(tasks)
    phase_totals = {
        Phase.DEVELOPMENT: summary.development_phase,
        Phase.UAT_SUPPORT: summary.uat_support,
        Phase.GO_LIVE: summary.go_live,
    }

    rows = [WbsRow(ticket_id or "WBS", bold=True)]
    for phase in Phase:
        rows.append(WbsRow(f"\t{PHASE_TITLES[phase]}", effort=phase_totals[phase], bold=True))
        for t in tasks:
            if PHASE_OF.get(t.id) != phase:
                continue
            rows.append(
                WbsRow(
                    f"\t\t{t.name}",
                    effort=t.effort,
                    start_date=t.start_date,
                    end_date=t.end_date,
                    percent_complete=t.percent_complete or "0%",
                    resource_name=t.resource_name,
                )
            )
    return rows
