"""Director: owner of the Project state machine.

Stages advance ``planning -> styling -> refinement -> critique -> completed``
one step per accepted ``task_completed``. Exactly one task is awaited at any
time; completions for any other task id are stale and discarded, so the first
valid completion per stage wins.
"""
from __future__ import annotations

import copy
import logging
import uuid
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional

from artbot.agents.base import BaseAgent
from artbot.errors import ProjectStateError
from artbot.memory.archive import ProjectArchive
from artbot.schemas.actions import (
    AssignTask,
    CancelProject,
    CreateProject,
    DeliveryFailed,
    FeedbackAcknowledged,
    ProjectFeedback,
    ResumeProject,
    TaskCompleted,
    TaskFailed,
)
from artbot.schemas.messages import AgentContext, AgentRole, Message, MessageType
from artbot.schemas.project import (
    CancellationToken,
    Project,
    ProjectStage,
    ProjectStatus,
    Task,
    TaskType,
)

logger = logging.getLogger(__name__)


@dataclass
class DirectorContext(AgentContext):
    current_project: Optional[Project] = None
    awaiting_task: Optional[Task] = None
    awaiting_message_id: Optional[str] = None
    cancel_token: Optional[CancellationToken] = None
    strategies_used: Dict[str, str] = field(default_factory=dict)

    @property
    def project_stage(self) -> Optional[ProjectStage]:
        return self.current_project.stage if self.current_project else None

    def snapshot(self) -> Dict[str, Any]:
        project = self.current_project
        return {
            "project_stage": project.stage.value if project else None,
            "project_status": project.status.value if project else None,
            "current_project": project.as_dict() if project else None,
            "awaiting_task": self.awaiting_task.id if self.awaiting_task else None,
            "strategies_used": dict(self.strategies_used),
        }


class DirectorAgent(BaseAgent):
    role = AgentRole.DIRECTOR

    def __init__(
        self,
        archive: ProjectArchive | None = None,
        auto_feedback: bool = True,
        memory_limit: Optional[int] = 200,
    ) -> None:
        super().__init__(context=DirectorContext(), memory_limit=memory_limit)
        self.archive = archive
        self.auto_feedback = auto_feedback

    @property
    def project(self) -> Optional[Project]:
        return self.state.context.current_project

    @property
    def awaiting_task(self) -> Optional[Task]:
        return self.state.context.awaiting_task

    def cancellation_token(self, project_id: str) -> Optional[CancellationToken]:
        context: DirectorContext = self.state.context
        if context.current_project and context.current_project.id == project_id:
            return context.cancel_token
        return None

    # -- requests -----------------------------------------------------------

    def handle_request(self, message: Message) -> Optional[Message]:
        content = message.content
        if isinstance(content, CreateProject):
            return self._create_project(content)
        if isinstance(content, CancelProject):
            return self._cancel_project(content.project_id)
        if isinstance(content, ResumeProject):
            return self._resume_project(content.project_id)
        return None

    def _create_project(self, content: CreateProject) -> Optional[Message]:
        context: DirectorContext = self.state.context
        active = context.current_project
        if active is not None and active.status == ProjectStatus.IN_PROGRESS:
            logger.warning("Ignoring create_project %r: project %s still in progress", content.title, active.id)
            return None

        if active is not None and active.status == ProjectStatus.STALLED and self.archive is not None:
            logger.info("Archiving abandoned stalled project %s", active.id)
            self.archive.save(active)

        project = Project(
            id=content.project_id or f"project-{uuid.uuid4().hex[:8]}",
            title=content.title,
            description=content.description,
            requirements=list(content.requirements),
        )
        context.current_project = project
        context.cancel_token = CancellationToken()
        context.strategies_used = {}
        logger.info("Created project %s (%s)", project.id, project.title)
        return self._assign_stage_task(project, previous=None)

    def _cancel_project(self, project_id: str) -> Optional[Message]:
        token = self.cancellation_token(project_id)
        if token is None:
            logger.info("cancel_project for unknown project %s", project_id)
            return None
        token.cancel()
        self._check_cancelled()
        return None

    def _resume_project(self, project_id: str) -> Optional[Message]:
        project = self.project
        if project is None or project.id != project_id:
            logger.info("resume_project for unknown project %s", project_id)
            return None
        try:
            project.resume()
        except ProjectStateError as exc:
            logger.warning("Cannot resume %s: %s", project_id, exc)
            return None
        previous = project.completed_tasks[-1] if project.completed_tasks else None
        logger.info("Resuming project %s at %s", project.id, project.stage.value)
        return self._assign_stage_task(project, previous=previous)

    # -- responses ----------------------------------------------------------

    def handle_response(self, message: Message) -> Optional[Message]:
        content = message.content
        if isinstance(content, TaskCompleted):
            return self._on_task_completed(content)
        if isinstance(content, TaskFailed):
            if self._is_awaited(content.task_id):
                self._stall(f"{message.from_role} failed {content.task_id}: {content.reason}")
            else:
                logger.info("Discarding stale task_failed for %s", content.task_id)
            return None
        if isinstance(content, DeliveryFailed):
            if content.message_id == self.state.context.awaiting_message_id:
                self._stall(f"{message.from_role} did not complete the task: {content.reason}")
            else:
                logger.info("Ignoring delivery failure for message %s", content.message_id)
            return None
        if isinstance(content, FeedbackAcknowledged):
            logger.debug("%s acknowledged feedback: %s=%.3f", message.from_role, content.strategy, content.new_weight)
        return None

    def _on_task_completed(self, content: TaskCompleted) -> Optional[Message]:
        context: DirectorContext = self.state.context
        if not self._is_awaited(content.task_id):
            logger.info("Discarding stale completion for task %s", content.task_id)
            return None
        if self._check_cancelled():
            return None

        project = context.current_project
        task = replace(
            context.awaiting_task,
            result=copy.deepcopy(content.result),
            strategy=content.strategy,
            is_fallback=content.is_fallback,
        )
        context.awaiting_task = None
        context.awaiting_message_id = None
        if content.strategy:
            context.strategies_used[task.assigned_role.value] = content.strategy

        previous_stage = project.stage
        stage = project.complete_task(task)
        logger.info(
            "Project %s: %s -> %s%s",
            project.id, previous_stage.value, stage.value, " (fallback output)" if task.is_fallback else "",
        )

        if stage == ProjectStage.COMPLETED:
            return self._finalize(project)
        return self._assign_stage_task(project, previous=task)

    # -- helpers ------------------------------------------------------------

    def _assign_stage_task(self, project: Project, previous: Optional[Task]) -> Message:
        context: DirectorContext = self.state.context
        payload: Dict[str, Any] = {"brief": project.brief.as_dict()}
        if previous is not None:
            payload["previous_type"] = previous.type.value
            payload["previous"] = copy.deepcopy(previous.result)
        task = Task.for_stage(project.stage, payload)
        message = self.create_message(
            task.assigned_role.value,
            AssignTask(task=task, project=project.brief, cancel_token=context.cancel_token),
            MessageType.REQUEST,
        )
        context.awaiting_task = task
        context.awaiting_message_id = message.id
        logger.info("Assigned %s task %s to %s", task.type.value, task.id, task.assigned_role.value)
        return message

    def _finalize(self, project: Project) -> Optional[Message]:
        logger.info("Project %s completed", project.id)
        if self.archive is not None:
            self.archive.save(project)
        if not self.auto_feedback:
            return None

        critique = project.task_of(TaskType.CRITIQUE)
        if critique is None or critique.is_fallback or not critique.result:
            logger.info("Skipping feedback for %s: no genuine critique", project.id)
            return None
        rating = critique.result[0].get("overall_score")
        if rating is None:
            return None
        return self.create_message(
            None,
            ProjectFeedback(
                project_id=project.id,
                rating=float(rating),
                strategies=dict(self.state.context.strategies_used),
            ),
            MessageType.FEEDBACK,
        )

    def _is_awaited(self, task_id: str) -> bool:
        awaiting = self.state.context.awaiting_task
        return awaiting is not None and awaiting.id == task_id

    def _stall(self, reason: str) -> None:
        context: DirectorContext = self.state.context
        project = context.current_project
        context.awaiting_task = None
        context.awaiting_message_id = None
        if project is None or project.is_terminal:
            return
        project.mark_stalled(reason)
        logger.error("Project %s stalled at %s: %s", project.id, project.stage.value, reason)

    def _check_cancelled(self) -> bool:
        context: DirectorContext = self.state.context
        project = context.current_project
        if project is None or context.cancel_token is None or not context.cancel_token.cancelled:
            return False
        if not project.is_terminal:
            project.mark_cancelled()
            logger.info("Project %s cancelled at %s", project.id, project.stage.value)
            if self.archive is not None:
                self.archive.save(project)
        context.awaiting_task = None
        context.awaiting_message_id = None
        return True
