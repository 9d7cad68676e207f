"""Typed payloads carried in :attr:`Message.content`.

Each payload names its ``action``; handlers dispatch with ``isinstance``.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, ClassVar, Mapping, Optional, Tuple, Union

if TYPE_CHECKING:
    from artbot.schemas.messages import AgentRole
    from artbot.schemas.project import CancellationToken, ProjectBrief, Task


@dataclass(frozen=True)
class CreateProject:
    action: ClassVar[str] = "create_project"

    title: str
    description: str
    requirements: Tuple[str, ...] = ()
    project_id: Optional[str] = None


@dataclass(frozen=True)
class CancelProject:
    action: ClassVar[str] = "cancel_project"

    project_id: str


@dataclass(frozen=True)
class ResumeProject:
    action: ClassVar[str] = "resume_project"

    project_id: str


@dataclass(frozen=True)
class AssignTask:
    action: ClassVar[str] = "assign_task"

    task: "Task"
    project: "ProjectBrief"
    cancel_token: Optional["CancellationToken"] = field(default=None, compare=False)


@dataclass(frozen=True)
class TaskCompleted:
    action: ClassVar[str] = "task_completed"

    task_id: str
    result: Any
    strategy: Optional[str] = None
    is_fallback: bool = False


@dataclass(frozen=True)
class TaskFailed:
    action: ClassVar[str] = "task_failed"

    task_id: str
    reason: str


@dataclass(frozen=True)
class DeliveryFailed:
    """Sent by the bus when a point-to-point request produced no reply."""

    action: ClassVar[str] = "delivery_failed"

    message_id: str
    reason: str


@dataclass(frozen=True)
class ProvideFeedback:
    action: ClassVar[str] = "provide_feedback"

    target_role: "AgentRole"
    strategy: str
    rating: float


@dataclass(frozen=True)
class ProjectFeedback:
    action: ClassVar[str] = "project_feedback"

    project_id: str
    rating: float
    strategies: Mapping[str, str] = field(default_factory=dict)


@dataclass(frozen=True)
class FeedbackAcknowledged:
    action: ClassVar[str] = "feedback_acknowledged"

    strategy: str
    new_weight: float


Action = Union[
    CreateProject,
    CancelProject,
    ResumeProject,
    AssignTask,
    TaskCompleted,
    TaskFailed,
    DeliveryFailed,
    ProvideFeedback,
    ProjectFeedback,
    FeedbackAcknowledged,
]
