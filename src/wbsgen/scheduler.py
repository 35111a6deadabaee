"""Business-day scheduling with fractional-day effort propagation."""

from __future__ import annotations

import math
from dataclasses import dataclass, replace
from datetime import date, timedelta

import networkx as nx
from loguru import logger

from wbsgen.models import Task

MAX_PASSES = 10
EPSILON = 1e-9


@dataclass(frozen=True)
class NextAvailable:
    """Where a dependent task may start, and how much of that day is taken."""

    start_date: date
    used_capacity: float


def _as_date(value: date | str) -> date:
    if isinstance(value, date):
        return value
    return date.fromisoformat(value)


# ---------------------------------------------------------------------------
# Business-day helpers
# ---------------------------------------------------------------------------


def next_business_day(day: date | str) -> date:
    """Return the first Mon-Fri date strictly after *day*."""
    current = _as_date(day) + timedelta(days=1)
    while current.weekday() >= 5:
        current += timedelta(days=1)
    return current


# ---------------------------------------------------------------------------
# Effort / capacity arithmetic
# ---------------------------------------------------------------------------


def compute_end_date(
    start: date | str,
    effort: float,
    used_capacity_on_start_day: float = 0.0,
) -> date:
    """Return the day on which *effort* days of work starting at *start*
    are fully consumed.

    The start day only offers ``1 - used_capacity_on_start_day``; every
    following business day offers a full day. Raises ValueError for a
    non-finite effort.
    """
    if not math.isfinite(effort):
        raise ValueError(f"Effort must be a finite number of days, got {effort!r}")
    current = _as_date(start)
    available = 1.0 - used_capacity_on_start_day
    remaining = effort - min(effort, available)

    while remaining > EPSILON:
        current = next_business_day(current)
        remaining -= min(remaining, 1.0)

    return current


def compute_remaining_capacity_at_end(
    effort: float,
    predecessor_remaining_capacity: float = 0.0,
) -> float:
    """Capacity left on the task's end date for whichever task follows.

    Whole days of carry are dropped: a sum of 1 or more keeps only its
    fractional part, so the result is always in [0, 1).
    """
    remaining = round(1.0 - effort % 1 + predecessor_remaining_capacity, 9)
    if remaining >= 1:
        remaining -= math.floor(remaining)
    return remaining


def resolve_next_available(
    dependency_end_date: date | str,
    dependency_remaining_capacity: float,
) -> NextAvailable:
    end = _as_date(dependency_end_date)
    if dependency_remaining_capacity > 0:
        return NextAvailable(end, 1.0 - dependency_remaining_capacity)
    return NextAvailable(next_business_day(end), 0.0)


# ---------------------------------------------------------------------------
# Propagation
# ---------------------------------------------------------------------------


def _apply(task: Task, start: str | None, end: str | None, remaining: float) -> bool:
    """Write computed values onto *task*; return True if anything changed."""
    changed = (
        task.start_date != start
        or task.end_date != end
        or task.remaining_capacity_at_end != remaining
    )
    task.start_date = start
    task.end_date = end
    task.remaining_capacity_at_end = remaining
    return changed


def _latest_dependency(task: Task, by_id: dict[str, Task]) -> Task | None:
    """The dependency with the latest end date, or None while any dependency
    is missing or still unscheduled. Ties go to the first in list order."""
    latest: Task | None = None
    for dep_id in task.dependencies:
        dep = by_id.get(dep_id)
        if dep is None or not dep.end_date:
            return None
        # ISO dates compare correctly as strings
        if latest is None or dep.end_date > latest.end_date:
            latest = dep
    return latest


def propagate(tasks: list[Task]) -> list[Task]:
    """Recompute start, end and leftover capacity for every task.

    Runs passes over the whole set until nothing changes or MAX_PASSES is
    reached. The input list is not modified; a new list of copies is returned.
    """
    result = [replace(t, dependencies=list(t.dependencies)) for t in tasks]
    by_id = {t.id: t for t in result}

    for t in result:
        if t.is_root:
            if not t.start_date:
                _apply(t, None, None, 0.0)
        else:
            _apply(t, None, None, 0.0)

    passes = 0
    converged = False
    while passes < MAX_PASSES:
        passes += 1
        changed = False

        for t in result:
            if not t.is_root or not t.start_date:
                continue
            end = compute_end_date(t.start_date, t.effort)
            remaining = compute_remaining_capacity_at_end(t.effort)
            changed |= _apply(t, t.start_date, end.isoformat(), remaining)

        for t in result:
            if t.is_root:
                continue
            dep = _latest_dependency(t, by_id)
            if dep is None:
                continue
            nxt = resolve_next_available(dep.end_date, dep.remaining_capacity_at_end)
            end = compute_end_date(nxt.start_date, t.effort, nxt.used_capacity)
            remaining = compute_remaining_capacity_at_end(
                t.effort, dep.remaining_capacity_at_end
            )
            changed |= _apply(t, nxt.start_date.isoformat(), end.isoformat(), remaining)

        if not changed:
            converged = True
            break

    if converged:
        logger.debug(f"Propagation converged after {passes} pass(es) over {len(result)} tasks")
    else:
        logger.warning(f"Propagation stopped at the {MAX_PASSES}-pass ceiling without converging")

    unscheduled = [t.id for t in result if not t.end_date]
    if unscheduled:
        logger.warning(f"Unschedulable tasks: {', '.join(unscheduled)}")

    return result


# ---------------------------------------------------------------------------
# Graph diagnostics
# ---------------------------------------------------------------------------


def build_dag(tasks: list[Task]) -> nx.DiGraph:
    """Dependency graph with edges dependency -> dependent.

    Dependency ids that are not in *tasks* are stored on the dependent's
    node under ``missing`` instead of becoming nodes.
    """
    G = nx.DiGraph()
    ids = {t.id for t in tasks}
    for t in tasks:
        G.add_node(t.id, task=t, missing=[d for d in t.dependencies if d not in ids])
    for t in tasks:
        for dep in t.dependencies:
            if dep in ids:
                G.add_edge(dep, t.id)
    return G


def diagnose(tasks: list[Task]) -> dict[str, str]:
    """Explain why each task without an end date could not be scheduled."""
    G = build_dag(tasks)
    in_cycle: set[str] = set()
    for component in nx.strongly_connected_components(G):
        if len(component) > 1:
            in_cycle |= component
    in_cycle |= {n for n in G.nodes if G.has_edge(n, n)}

    reasons: dict[str, str] = {}
    for t in tasks:
        if t.end_date:
            continue
        missing = G.nodes[t.id]["missing"]
        if missing:
            reasons[t.id] = f"depends on unknown task(s): {', '.join(missing)}"
        elif t.id in in_cycle:
            reasons[t.id] = "part of a dependency cycle"
        elif t.is_root:
            reasons[t.id] = "no start date"
        else:
            blockers = [
                p for p in G.predecessors(t.id) if not G.nodes[p]["task"].end_date
            ]
            if blockers:
                reasons[t.id] = f"blocked by unschedulable task(s): {', '.join(blockers)}"
            else:
                reasons[t.id] = f"not reached within {MAX_PASSES} passes"
    return reasons
