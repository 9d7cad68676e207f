from __future__ import annotations

import logging
from abc import ABC
from typing import Any, Dict, Iterable, List, Optional

from artbot.schemas.actions import Action
from artbot.schemas.messages import (
    AgentContext,
    AgentRole,
    AgentState,
    AgentStatus,
    Message,
    MessageType,
)
from artbot.tools.base import Tool

logger = logging.getLogger(__name__)


class BaseAgent(ABC):
    """Base contract for every agent registered on the bus.

    Subclasses override the ``handle_*`` methods they care about; the rest
    answer ``None`` (no reply).
    """

    role: AgentRole

    def __init__(
        self,
        context: AgentContext,
        tools: Iterable[Tool] | None = None,
        memory_limit: Optional[int] = 100,
    ) -> None:
        self.state = AgentState(role=self.role, context=context, memory_limit=memory_limit)
        self.tools: List[Tool] = list(tools or [])
        self._initialized = False

    @property
    def status(self) -> AgentStatus:
        return self.state.status

    @property
    def context(self) -> AgentContext:
        return self.state.context

    def initialize(self) -> None:
        if self._initialized:
            return
        self.setup()
        self._initialized = True
        logger.debug("%s initialized", self.role.value)

    def setup(self) -> None:
        """Role-specific preparation run once by :meth:`initialize`."""

    def register_tool(self, tool: Tool) -> None:
        self.tools.append(tool)

    def process(self, message: Message) -> Optional[Message]:
        self.state.remember(message)
        self.state.status = AgentStatus.WORKING
        try:
            handler = {
                MessageType.REQUEST: self.handle_request,
                MessageType.RESPONSE: self.handle_response,
                MessageType.UPDATE: self.handle_update,
                MessageType.FEEDBACK: self.handle_feedback,
            }.get(message.type)
            if handler is None:
                return None
            return handler(message)
        finally:
            self.state.status = AgentStatus.IDLE

    def handle_request(self, message: Message) -> Optional[Message]:
        return None

    def handle_response(self, message: Message) -> Optional[Message]:
        return None

    def handle_update(self, message: Message) -> Optional[Message]:
        return None

    def handle_feedback(self, message: Message) -> Optional[Message]:
        return None

    def mark_error(self, exc: BaseException) -> None:
        self.state.status = AgentStatus.ERROR
        self.state.last_error = f"{type(exc).__name__}: {exc}"

    def reset(self) -> None:
        self.state.status = AgentStatus.IDLE
        self.state.last_error = None

    def snapshot(self) -> Dict[str, Any]:
        return self.state.snapshot()

    def create_message(
        self,
        to_role: Optional[str],
        content: Action,
        message_type: MessageType,
    ) -> Message:
        return Message(
            from_role=self.role.value,
            to_role=to_role,
            type=message_type,
            content=content,
        )

    def reply_to(
        self,
        message: Message,
        content: Action,
        message_type: MessageType = MessageType.RESPONSE,
    ) -> Message:
        return self.create_message(message.from_role, content, message_type)
