from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, List, Optional

from artbot.schemas.project import Project, ProjectStatus, TaskType


@dataclass
class ProjectOutcome:
    project_id: str
    completed: bool
    fallback_tasks: int
    total_tasks: int
    overall_score: Optional[float] = None


def summarize_project(project: Project) -> ProjectOutcome:
    critique = project.task_of(TaskType.CRITIQUE)
    score = None
    if critique is not None and critique.result and not critique.is_fallback:
        score = critique.result[0].get("overall_score")
    return ProjectOutcome(
        project_id=project.id,
        completed=project.status == ProjectStatus.COMPLETED,
        fallback_tasks=sum(1 for t in project.completed_tasks if t.is_fallback),
        total_tasks=len(project.completed_tasks),
        overall_score=score,
    )


def completion_rate(outcomes: List[ProjectOutcome]) -> float:
    if not outcomes:
        return 0.0
    return sum(1 for o in outcomes if o.completed) / len(outcomes)


def fallback_rate(outcomes: Iterable[ProjectOutcome]) -> float:
    """Share of finished tasks that were produced by placeholder content."""
    outcomes = list(outcomes)
    total = sum(o.total_tasks for o in outcomes)
    if not total:
        return 0.0
    return sum(o.fallback_tasks for o in outcomes) / total
