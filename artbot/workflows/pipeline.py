from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

from artbot.agents.critic import CriticAgent
from artbot.agents.director import DirectorAgent
from artbot.agents.ideator import IdeatorAgent
from artbot.agents.refiner import RefinerAgent
from artbot.agents.stylist import StylistAgent
from artbot.memory.archive import ProjectArchive
from artbot.memory.transcript import Transcript
from artbot.schemas.actions import CancelProject, CreateProject, ResumeProject
from artbot.schemas.messages import EXTERNAL_SENDER, AgentRole, Message, MessageType
from artbot.schemas.project import Project, ProjectStatus
from artbot.tools.image_synthesis import ImageSynthesisTool
from artbot.utils.image_clients import ImageClient
from artbot.utils.llm_clients import LLMClient
from artbot.utils.settings import AppConfig
from artbot.workflows.bus import MultiAgentSystem

logger = logging.getLogger(__name__)


def create_project_message(
    title: str,
    description: str,
    requirements: Iterable[str] = (),
    project_id: Optional[str] = None,
) -> Message:
    """Broadcast request that starts a project; only the Director reacts to it."""
    return Message(
        from_role=EXTERNAL_SENDER,
        to_role=None,
        type=MessageType.REQUEST,
        content=CreateProject(
            title=title,
            description=description,
            requirements=tuple(requirements),
            project_id=project_id,
        ),
    )


def build_system(
    config: AppConfig,
    llm_client: LLMClient,
    image_client: ImageClient | None = None,
    archive: ProjectArchive | None = None,
) -> MultiAgentSystem:
    """Wire the five agents onto a fresh bus, Director first."""
    workflow = config.workflow
    shared = {
        "max_tokens": config.llm.max_tokens,
        "learning_rate": workflow.learning_rate,
        "preferred_k": workflow.preferred_k,
    }
    refiner_tools = []
    if image_client is not None:
        refiner_tools.append(
            ImageSynthesisTool(
                image_client,
                width=config.image.width,
                height=config.image.height,
                steps=config.image.steps,
                guidance_scale=config.image.guidance_scale,
            )
        )

    agents = [
        DirectorAgent(
            archive=archive,
            auto_feedback=workflow.auto_feedback,
            memory_limit=config.agent(AgentRole.DIRECTOR.value).memory_limit,
        )
    ]
    for agent_cls, tools in (
        (IdeatorAgent, []),
        (StylistAgent, []),
        (RefinerAgent, refiner_tools),
        (CriticAgent, []),
    ):
        agent_config = config.agent(agent_cls.role.value)
        agents.append(
            agent_cls(
                llm_client,
                tools=tools,
                temperature=agent_config.temperature,
                memory_limit=agent_config.memory_limit,
                **shared,
            )
        )
    return MultiAgentSystem(
        agents=agents,
        transcript=Transcript(maxlen=workflow.transcript_limit),
        max_cascade_depth=workflow.max_cascade_depth,
    )


@dataclass
class PipelineResult:
    project: Optional[Project]
    states: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    stalled: bool = False

    @property
    def completed(self) -> bool:
        return self.project is not None and self.project.status == ProjectStatus.COMPLETED


class ArtPipeline:
    """Drives one brief through the bus and reports where it ended up."""

    def __init__(self, system: MultiAgentSystem) -> None:
        director = system.agent(AgentRole.DIRECTOR)
        if not isinstance(director, DirectorAgent):
            raise ValueError("the system has no Director registered")
        self.system = system
        self.director = director

    def run(
        self,
        title: str,
        description: str,
        requirements: Iterable[str] = (),
        project_id: Optional[str] = None,
    ) -> PipelineResult:
        self.system.send_message(create_project_message(title, description, requirements, project_id))
        return self._result()

    def resume(self, project_id: str) -> PipelineResult:
        """Re-issue the current stage of a stalled project, e.g. after ``reset_agent``."""
        self.system.send_message(self._to_director(ResumeProject(project_id=project_id)))
        return self._result()

    def _result(self) -> PipelineResult:
        project = self.director.project
        stalled = project is None or project.status == ProjectStatus.STALLED
        if project is not None and project.status == ProjectStatus.IN_PROGRESS:
            # the cascade settled without finishing: some reply never arrived
            awaiting = self.director.awaiting_task
            logger.error(
                "Project %s stopped at %s waiting on %s",
                project.id, project.stage.value, awaiting.id if awaiting else "nothing",
            )
            stalled = True
        elif project is not None and project.status == ProjectStatus.STALLED:
            logger.error("Project %s stalled: %s", project.id, project.error)
        return PipelineResult(project=project, states=self.system.get_system_state(), stalled=stalled)

    def cancel(self, project_id: str) -> None:
        """Safe to call from another thread while ``run`` is in progress."""
        token = self.director.cancellation_token(project_id)
        if token is not None:
            # seen at the next stage transition, even mid-cascade
            token.cancel()
        self.system.send_message(self._to_director(CancelProject(project_id=project_id)))

    def completed_projects(self) -> List[Project]:
        archive = self.director.archive
        return archive.all() if archive is not None else []

    def _to_director(self, content) -> Message:
        return Message(
            from_role=EXTERNAL_SENDER,
            to_role=AgentRole.DIRECTOR,
            type=MessageType.REQUEST,
            content=content,
        )
