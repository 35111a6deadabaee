"""Task model, project form and effort summary definitions."""

from __future__ import annotations

import enum
import math
from dataclasses import dataclass, field

from loguru import logger

MIN_EFFORT = 0.1
DEFAULT_EFFORT = 1.0


def clamp_effort(value) -> float:
    """Coerce user input to a valid effort. Never raises: anything that is
    not a finite number of at least MIN_EFFORT becomes MIN_EFFORT."""
    try:
        effort = float(value)
    except (TypeError, ValueError):
        logger.debug(f"Non-numeric effort {value!r}; using {MIN_EFFORT}")
        return MIN_EFFORT
    if not math.isfinite(effort) or effort < MIN_EFFORT:
        return MIN_EFFORT
    return effort


class Phase(enum.StrEnum):
    DEVELOPMENT = "development"
    UAT_SUPPORT = "uat_support"
    GO_LIVE = "go_live"


@dataclass
class ProjectForm:
    """Project parameters collected before a WBS is generated."""

    ticket_id: str = ""
    developer: str = ""
    ba: str = ""
    start_date: str = ""

    REQUIRED = ("ticket_id", "developer", "ba", "start_date")

    def missing_fields(self) -> list[str]:
        return [name for name in self.REQUIRED if not str(getattr(self, name) or "").strip()]

    def to_dict(self) -> dict:
        return {
            "ticket_id": self.ticket_id,
            "developer": self.developer,
            "ba": self.ba,
            "start_date": self.start_date,
        }

    @classmethod
    def from_dict(cls, d: dict) -> ProjectForm:
        return cls(
            ticket_id=d.get("ticket_id", ""),
            developer=d.get("developer", ""),
            ba=d.get("ba", ""),
            start_date=d.get("start_date", ""),
        )


@dataclass
class Task:
    """A single schedulable WBS task. Effort is in working days."""

    id: str
    name: str
    effort: float
    dependencies: list[str] = field(default_factory=list)
    start_date: str | None = None
    end_date: str | None = None
    remaining_capacity_at_end: float = 0.0  # unused share of the end-date workday
    percent_complete: str = ""
    resource_name: str = ""

    @property
    def is_root(self) -> bool:
        return not self.dependencies

    @property
    def is_scheduled(self) -> bool:
        return bool(self.start_date and self.end_date)

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "effort": self.effort,
            "dependencies": self.dependencies,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "remaining_capacity_at_end": self.remaining_capacity_at_end,
            "percent_complete": self.percent_complete,
            "resource_name": self.resource_name,
        }

    @classmethod
    def from_dict(cls, d: dict) -> Task:
        if "id" not in d or "name" not in d:
            raise ValueError(f"Task entry needs 'id' and 'name': {d!r}")
        deps = d.get("dependencies", [])
        if not isinstance(deps, list):
            raise ValueError(f"Task {d['id']}: 'dependencies' must be a list, got {deps!r}")
        return cls(
            id=str(d["id"]),
            name=d["name"],
            effort=clamp_effort(d.get("effort", DEFAULT_EFFORT)),
            dependencies=[str(dep) for dep in deps],
            start_date=d.get("start_date") or None,
            end_date=d.get("end_date") or None,
            remaining_capacity_at_end=float(d.get("remaining_capacity_at_end") or 0.0),
            percent_complete=d.get("percent_complete", ""),
            resource_name=d.get("resource_name", ""),
        )


@dataclass
class EffortSummary:
    """Effort totals per WBS phase, in days."""

    development_phase: float = 0.0
    uat_support: float = 0.0
    go_live: float = 0.0

    @property
    def total(self) -> float:
        return self.development_phase + self.uat_support + self.go_live

    def to_dict(self) -> dict:
        return {
            "development_phase": self.development_phase,
            "uat_support": self.uat_support,
            "go_live": self.go_live,
            "total": self.total,
        }
