from __future__ import annotations

import copy
import threading
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Optional, Tuple

from artbot.errors import ProjectStateError
from artbot.schemas.messages import AgentRole


class ProjectStage(str, Enum):
    PLANNING = "planning"
    STYLING = "styling"
    REFINEMENT = "refinement"
    CRITIQUE = "critique"
    COMPLETED = "completed"

    def next(self) -> "ProjectStage":
        index = STAGE_ORDER.index(self)
        if index + 1 >= len(STAGE_ORDER):
            raise ProjectStateError("completed is terminal")
        return STAGE_ORDER[index + 1]


STAGE_ORDER: Tuple[ProjectStage, ...] = tuple(ProjectStage)


class TaskType(str, Enum):
    IDEATION = "ideation"
    STYLING = "styling"
    REFINEMENT = "refinement"
    CRITIQUE = "critique"


class ProjectStatus(str, Enum):
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    STALLED = "stalled"
    CANCELLED = "cancelled"


# Each working stage opens exactly one task of a fixed type for a fixed agent.
STAGE_ASSIGNMENTS: Dict[ProjectStage, Tuple[TaskType, AgentRole]] = {
    ProjectStage.PLANNING: (TaskType.IDEATION, AgentRole.IDEATOR),
    ProjectStage.STYLING: (TaskType.STYLING, AgentRole.STYLIST),
    ProjectStage.REFINEMENT: (TaskType.REFINEMENT, AgentRole.REFINER),
    ProjectStage.CRITIQUE: (TaskType.CRITIQUE, AgentRole.CRITIC),
}


class CancellationToken:
    """Thread-safe flag checked before every stage transition."""

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()


@dataclass(frozen=True)
class ProjectBrief:
    """Read-only view of a project's creative brief handed to agents."""

    id: str
    title: str
    description: str
    requirements: Tuple[str, ...] = ()

    def text(self) -> str:
        return f"{self.title} {self.description} {' '.join(self.requirements)}".lower()

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "requirements": list(self.requirements),
        }


@dataclass(frozen=True)
class Task:
    id: str
    type: TaskType
    assigned_role: AgentRole
    input_payload: Dict[str, Any] = field(default_factory=dict)
    result: Any = None
    strategy: Optional[str] = None
    is_fallback: bool = False

    @classmethod
    def for_stage(cls, stage: ProjectStage, input_payload: Dict[str, Any]) -> "Task":
        if stage not in STAGE_ASSIGNMENTS:
            raise ProjectStateError(f"stage {stage.value} does not open a task")
        task_type, role = STAGE_ASSIGNMENTS[stage]
        return cls(
            id=f"task-{task_type.value}-{uuid.uuid4().hex[:8]}",
            type=task_type,
            assigned_role=role,
            input_payload=input_payload,
        )

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "type": self.type.value,
            "assigned_role": self.assigned_role.value,
            "result": copy.deepcopy(self.result),
            "strategy": self.strategy,
            "is_fallback": self.is_fallback,
        }


@dataclass
class Project:
    """A brief moving through the fixed stage pipeline. Owned by the Director."""

    id: str
    title: str
    description: str
    requirements: List[str] = field(default_factory=list)
    stage: ProjectStage = ProjectStage.PLANNING
    completed_tasks: List[Task] = field(default_factory=list)
    status: ProjectStatus = ProjectStatus.IN_PROGRESS
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    error: Optional[str] = None

    @property
    def brief(self) -> ProjectBrief:
        return ProjectBrief(
            id=self.id,
            title=self.title,
            description=self.description,
            requirements=tuple(self.requirements),
        )

    @property
    def is_terminal(self) -> bool:
        return self.status in (ProjectStatus.COMPLETED, ProjectStatus.CANCELLED)

    def task_of(self, task_type: TaskType) -> Optional[Task]:
        return next((t for t in self.completed_tasks if t.type == task_type), None)

    def complete_task(self, task: Task) -> ProjectStage:
        """Record ``task`` for the current stage and move one stage forward."""
        self._ensure_mutable()
        expected, _ = STAGE_ASSIGNMENTS[self.stage]
        if task.type != expected:
            raise ProjectStateError(
                f"{task.type.value} task cannot complete stage {self.stage.value}"
            )
        self.completed_tasks.append(task)
        self.stage = self.stage.next()
        if self.stage == ProjectStage.COMPLETED:
            self.status = ProjectStatus.COMPLETED
        return self.stage

    def mark_stalled(self, reason: str) -> None:
        self._ensure_mutable()
        self.status = ProjectStatus.STALLED
        self.error = reason

    def mark_cancelled(self) -> None:
        self._ensure_mutable()
        self.status = ProjectStatus.CANCELLED

    def resume(self) -> None:
        self._ensure_mutable()
        if self.status != ProjectStatus.STALLED:
            raise ProjectStateError(f"cannot resume a {self.status.value} project")
        self.status = ProjectStatus.IN_PROGRESS
        self.error = None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "requirements": list(self.requirements),
            "stage": self.stage.value,
            "status": self.status.value,
            "created_at": self.created_at.isoformat(),
            "error": self.error,
            "completed_tasks": [t.as_dict() for t in self.completed_tasks],
        }

    def _ensure_mutable(self) -> None:
        if self.is_terminal:
            raise ProjectStateError(f"project {self.id} is {self.status.value}")
