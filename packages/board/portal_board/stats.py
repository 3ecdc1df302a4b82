"""Dashboard statistics over the project list."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Sequence

from portal_shared.schemas.common import ProjectStatus
from portal_shared.schemas.projects import Project


@dataclass(frozen=True)
class CompletionRate:
    name: str
    completion: float  # percent, 0-100
    status: ProjectStatus


def progress(project: Project) -> int:
    """Completed tasks as a rounded percentage; 0 for a project with no tasks."""
    if not project.tasks:
        return 0
    done = sum(1 for t in project.tasks if t.completed)
    return round(done / len(project.tasks) * 100)


def status_counts(projects: Sequence[Project]) -> dict[ProjectStatus, int]:
    counts: dict[ProjectStatus, int] = {}
    for project in projects:
        status = project.status or ProjectStatus.ON_TRACK
        counts[status] = counts.get(status, 0) + 1
    return counts


def completion_rates(projects: Sequence[Project]) -> list[CompletionRate]:
    rates = []
    for project in projects:
        total = len(project.tasks)
        done = sum(1 for t in project.tasks if t.completed)
        rates.append(
            CompletionRate(
                name=project.name,
                completion=(done / total) * 100 if total else 0.0,
                status=project.status or ProjectStatus.ON_TRACK,
            )
        )
    return rates


def top_completion(projects: Sequence[Project], limit: int = 5) -> list[CompletionRate]:
    """Projects with the highest completion rate, best first."""
    return sorted(completion_rates(projects), key=lambda r: r.completion, reverse=True)[:limit]
