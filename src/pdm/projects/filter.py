"""Split the registry into past, current and next projects."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime, timezone
from typing import Iterable

from pdm.projects.registry import Project


@dataclass(frozen=True)
class FilteredProjects:
    past: list[Project] = field(default_factory=list)
    current: Project | None = None
    next: Project | None = None

    def is_current(self, project_id: str) -> bool:
        return self.current is not None and self.current.id == project_id

    def is_next(self, project_id: str) -> bool:
        return self.next is not None and self.next.id == project_id

    def landing(self) -> Project | None:
        """Project the home page points to: current, else next, else the last finished one."""
        if self.current:
            return self.current
        if self.next:
            return self.next
        return self.past[-1] if self.past else None


def _today(now: datetime | date | None) -> date:
    if now is None:
        return datetime.now(timezone.utc).date()
    if isinstance(now, datetime):
        return now.date()
    return now


def is_running(project: Project, day: date) -> bool:
    return project.start_date <= day and (project.end_date is None or project.end_date >= day)


def filter_projects(projects: Iterable[Project], now: datetime | date | None = None) -> FilteredProjects:
    """Classify projects relative to ``now`` (UTC day granularity).

    When several projects run at the same time, the one that started last is
    current; the others stay unclassified.
    """
    day = _today(now)
    projects = list(projects)

    running = [p for p in projects if is_running(p, day)]
    current = max(running, key=lambda p: (p.start_date, p.id)) if running else None

    upcoming = [p for p in projects if p.start_date > day]
    nxt = min(upcoming, key=lambda p: (p.start_date, p.id)) if upcoming else None

    past = sorted(
        (p for p in projects if p.end_date is not None and p.end_date < day),
        key=lambda p: (p.end_date, p.id),
    )
    return FilteredProjects(past=past, current=current, next=nxt)
