from __future__ import annotations

import logging
import threading
from typing import Any, Dict, Iterable, List, Optional

from artbot.agents.base import BaseAgent
from artbot.errors import ConfigurationError
from artbot.memory.transcript import Transcript
from artbot.schemas.actions import DeliveryFailed
from artbot.schemas.messages import (
    EXTERNAL_SENDER,
    AgentStatus,
    Message,
    MessageType,
    role_key,
)

logger = logging.getLogger(__name__)


class MultiAgentSystem:
    """Agent registry and synchronous message router.

    ``send_message`` returns once every reply it triggered has been routed.
    Replies addressed to :data:`EXTERNAL_SENDER` are collected in ``outbox``.
    """

    def __init__(
        self,
        agents: Iterable[BaseAgent] | None = None,
        transcript: Transcript | None = None,
        max_cascade_depth: int = 32,
    ) -> None:
        self._agents: Dict[str, BaseAgent] = {}
        self._lock = threading.RLock()
        self.transcript = transcript if transcript is not None else Transcript()
        self.outbox: List[Message] = []
        self.max_cascade_depth = max_cascade_depth
        for agent in agents or []:
            self.register_agent(agent)

    @property
    def roles(self) -> List[str]:
        return list(self._agents)

    def agent(self, role: str) -> Optional[BaseAgent]:
        return self._agents.get(role_key(role))

    def register_agent(self, agent: BaseAgent) -> None:
        key = role_key(agent.role)
        if key in self._agents:
            raise ConfigurationError(f"an agent is already registered for role {key}")
        agent.initialize()
        self._agents[key] = agent
        logger.debug("Registered %s", key)

    def reset_agent(self, role: str) -> None:
        agent = self.agent(role)
        if agent is None:
            raise ConfigurationError(f"no agent registered for role {role_key(role)}")
        agent.reset()

    def get_system_state(self) -> Dict[str, Dict[str, Any]]:
        return {role: agent.snapshot() for role, agent in self._agents.items()}

    def send_message(self, message: Message) -> None:
        with self._lock:
            self._route(message, depth=0)

    def _route(self, message: Message, depth: int) -> None:
        if depth > self.max_cascade_depth:
            logger.error(
                "Dropping %s from %s: cascade deeper than %d",
                message.action, message.from_role, self.max_cascade_depth,
            )
            return
        self.transcript.append(message)

        if message.to_role is None:
            targets = list(self._agents.values())
        elif message.to_role == EXTERNAL_SENDER:
            self.outbox.append(message)
            return
        else:
            agent = self._agents.get(message.to_role)
            if agent is None:
                logger.warning(
                    "Dropping %s from %s: no agent registered for %s",
                    message.action, message.from_role, message.to_role,
                )
                return
            targets = [agent]

        logger.debug(
            "Routing %s %s from %s to %s",
            message.type.value, message.action, message.from_role, message.to_role or "*",
        )
        for agent in targets:
            reply = self._deliver(agent, message)
            if reply is not None:
                self._route(reply, depth + 1)

    def _deliver(self, agent: BaseAgent, message: Message) -> Optional[Message]:
        role = role_key(agent.role)
        if agent.status == AgentStatus.ERROR:
            logger.warning("Skipping %s for %s: agent is in error state", message.action, role)
            return self._delivery_failure(message, role, "agent in error state")
        try:
            reply = agent.process(message)
        except Exception as exc:
            logger.exception("%s failed while handling %s", role, message.action)
            agent.mark_error(exc)
            return self._delivery_failure(message, role, f"{type(exc).__name__}: {exc}")
        if reply is None:
            return self._delivery_failure(message, role, "no reply")
        return reply

    def _delivery_failure(self, message: Message, role: str, reason: str) -> Optional[Message]:
        # only point-to-point requests from registered agents are owed a reply
        if (
            message.type != MessageType.REQUEST
            or message.is_broadcast
            or message.from_role not in self._agents
        ):
            return None
        return Message(
            from_role=role,
            to_role=message.from_role,
            type=MessageType.RESPONSE,
            content=DeliveryFailed(message_id=message.id, reason=reason),
        )
