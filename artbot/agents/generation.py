from __future__ import annotations

import copy
import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Mapping, Optional, Type

from pydantic import BaseModel

from artbot.agents.base import BaseAgent
from artbot.agents.strategies import StrategyProfile, StrategyTable
from artbot.errors import LLMClientError, MalformedResponseError, TaskCancelled
from artbot.schemas.actions import (
    AssignTask,
    FeedbackAcknowledged,
    ProjectFeedback,
    ProvideFeedback,
    TaskCompleted,
    TaskFailed,
)
from artbot.schemas.messages import AgentContext, Message, MessageType
from artbot.schemas.project import CancellationToken, ProjectBrief, Task, TaskType
from artbot.tools.base import Tool
from artbot.utils.llm_clients import ChatMessage, LLMClient
from artbot.utils.parsing import parse_records

logger = logging.getLogger(__name__)


@dataclass
class GenerationResult:
    records: List[Dict[str, Any]]
    strategy: Enum
    is_fallback: bool = False


@dataclass
class GenerationContext(AgentContext):
    table: Optional[StrategyTable] = None
    current_task: Optional[Task] = None
    last_strategy: Optional[Enum] = None
    last_result: List[Dict[str, Any]] = field(default_factory=list)
    last_is_fallback: bool = False

    def snapshot(self) -> Dict[str, Any]:
        return {
            "current_task": self.current_task.id if self.current_task else None,
            "last_strategy": self.last_strategy.value if self.last_strategy else None,
            "last_result": copy.deepcopy(self.last_result),
            "last_is_fallback": self.last_is_fallback,
            **(self.table.snapshot() if self.table else {}),
        }


class GenerationAgent(BaseAgent):
    """Shared machinery of Ideator, Stylist, Refiner and Critic.

    Subclasses declare the strategy enum and its profiles, the record model
    parsed from the completion, the prompt texts and the placeholder records
    used when the completion service fails.
    """

    task_type: ClassVar[TaskType]
    strategy_enum: ClassVar[Type[Enum]]
    profiles: ClassVar[Mapping[Enum, StrategyProfile]]
    record_model: ClassVar[Type[BaseModel]]
    system_prompt: ClassVar[str]
    deliverable: ClassVar[str]
    fallback_records: ClassVar[List[Dict[str, Any]]]
    default_temperature: ClassVar[float] = 0.7
    max_records: ClassVar[Optional[int]] = None

    def __init__(
        self,
        llm_client: LLMClient,
        tools: List[Tool] | None = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        learning_rate: float = 0.1,
        preferred_k: int = 3,
        memory_limit: Optional[int] = 100,
    ) -> None:
        self.llm_client = llm_client
        self.temperature = self.default_temperature if temperature is None else temperature
        self.max_tokens = max_tokens
        self.learning_rate = learning_rate
        self.preferred_k = preferred_k
        super().__init__(
            context=GenerationContext(),
            tools=tools,
            memory_limit=memory_limit,
        )

    @property
    def strategy_table(self) -> StrategyTable:
        table = self.state.context.table
        if table is None:
            raise RuntimeError(f"{self.role.value} used before initialize()")
        return table

    def setup(self) -> None:
        self.state.context.table = StrategyTable(
            self.strategy_enum,
            self.profiles,
            learning_rate=self.learning_rate,
            preferred_k=self.preferred_k,
        )

    # -- adaptive selection -------------------------------------------------

    def select_strategy(self, project: ProjectBrief) -> Enum:
        return self.strategy_table.select(project.text())

    def apply_feedback(self, strategy: Enum | str, rating: float) -> float:
        return self.strategy_table.apply_feedback(self.strategy_table.parse(strategy), rating)

    # -- generation ---------------------------------------------------------

    def generate(
        self,
        task: Task,
        project: ProjectBrief,
        strategy: Enum,
        cancel_token: Optional[CancellationToken] = None,
    ) -> GenerationResult:
        messages = self.build_messages(task, project, strategy)
        try:
            text = self.llm_client.complete(
                messages,
                temperature=self.temperature,
                max_tokens=self.max_tokens,
            )
            records = [
                r.model_dump()
                for r in parse_records(text, self.record_model)
            ]
        except (LLMClientError, MalformedResponseError) as exc:
            if cancel_token is not None and cancel_token.cancelled:
                raise TaskCancelled(f"{task.id} cancelled before fallback") from exc
            logger.warning(
                "%s falling back for task %s (%s): %s",
                self.role.value, task.id, strategy.value, exc,
            )
            return GenerationResult(
                records=self.fallback(task, project, strategy),
                strategy=strategy,
                is_fallback=True,
            )

        if self.max_records is not None:
            records = records[: self.max_records]
        return GenerationResult(
            records=self.finalize(records, task, project, strategy),
            strategy=strategy,
        )

    def build_messages(self, task: Task, project: ProjectBrief, strategy: Enum) -> List[ChatMessage]:
        profile = self.strategy_table.profiles[strategy]
        system = (
            f"{self.system_prompt}\n\n"
            f"You are working with the {strategy.value.upper()} approach: {profile.framing}"
        )
        lines = [
            f"Project title: {project.title}",
            f"Description: {project.description}",
            f"Requirements: {', '.join(project.requirements) or '(none)'}",
        ]
        previous = task.input_payload.get("previous")
        if previous is not None:
            previous_type = task.input_payload.get("previous_type", "previous stage")
            lines.append(f"Output of the {previous_type} stage:")
            lines.append(json.dumps(previous, indent=2, default=str))
        lines.append("")
        lines.append(self.deliverable)
        lines.append("Reply with JSON only, inside a ```json fenced block.")
        return [
            ChatMessage(role="system", content=system),
            ChatMessage(role="user", content="\n".join(lines)),
        ]

    def fallback(self, task: Task, project: ProjectBrief, strategy: Enum) -> List[Dict[str, Any]]:
        return copy.deepcopy(self.fallback_records)

    def finalize(
        self,
        records: List[Dict[str, Any]],
        task: Task,
        project: ProjectBrief,
        strategy: Enum,
    ) -> List[Dict[str, Any]]:
        """Hook for post-processing parsed records (the Refiner renders images here)."""
        return records

    # -- message handlers ---------------------------------------------------

    def handle_request(self, message: Message) -> Optional[Message]:
        content = message.content
        if not isinstance(content, AssignTask):
            return None
        if content.task.assigned_role != self.role:
            logger.warning(
                "%s received task %s meant for %s",
                self.role.value, content.task.id, content.task.assigned_role.value,
            )
            return None

        task, token = content.task, content.cancel_token
        context: GenerationContext = self.state.context
        context.current_task = task
        try:
            if token is not None and token.cancelled:
                raise TaskCancelled(f"{task.id} cancelled before generation")
            strategy = self.select_strategy(content.project)
            logger.info("%s handling %s with %s strategy", self.role.value, task.id, strategy.value)
            result = self.generate(task, content.project, strategy, cancel_token=token)
        except TaskCancelled as exc:
            logger.info("%s abandoned task: %s", self.role.value, exc)
            return self.reply_to(message, TaskFailed(task_id=task.id, reason="cancelled"))
        finally:
            context.current_task = None

        context.last_strategy = result.strategy
        context.last_result = copy.deepcopy(result.records)
        context.last_is_fallback = result.is_fallback
        return self.reply_to(
            message,
            TaskCompleted(
                task_id=task.id,
                result=result.records,
                strategy=result.strategy.value,
                is_fallback=result.is_fallback,
            ),
        )

    def handle_feedback(self, message: Message) -> Optional[Message]:
        content = message.content
        if isinstance(content, ProvideFeedback):
            if content.target_role != self.role:
                return None
            strategy, rating = content.strategy, content.rating
        elif isinstance(content, ProjectFeedback):
            strategy = content.strategies.get(self.role.value)
            if strategy is None:
                return None
            rating = content.rating
        else:
            return None

        try:
            new_weight = self.apply_feedback(strategy, rating)
        except ValueError as exc:
            logger.warning("%s ignored feedback: %s", self.role.value, exc)
            return None
        logger.info("%s learned from rating %.1f: %s -> %.3f", self.role.value, rating, strategy, new_weight)
        return self.reply_to(
            message,
            FeedbackAcknowledged(strategy=str(strategy), new_weight=new_weight),
            MessageType.RESPONSE,
        )
