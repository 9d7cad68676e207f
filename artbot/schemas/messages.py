from __future__ import annotations

import uuid
from collections import deque
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Deque, Dict, Optional

from artbot.schemas.actions import Action

EXTERNAL_SENDER = "external"


class MessageType(str, Enum):
    REQUEST = "request"
    RESPONSE = "response"
    UPDATE = "update"
    FEEDBACK = "feedback"


class AgentRole(str, Enum):
    DIRECTOR = "director"
    IDEATOR = "ideator"
    STYLIST = "stylist"
    REFINER = "refiner"
    CRITIC = "critic"


class AgentStatus(str, Enum):
    IDLE = "idle"
    WORKING = "working"
    WAITING = "waiting"
    ERROR = "error"


def role_key(role: str) -> str:
    return role.value if isinstance(role, Enum) else str(role)


def new_message_id() -> str:
    return f"msg-{uuid.uuid4().hex[:12]}"


@dataclass(frozen=True)
class Message:
    """Single unit exchanged between agents through the bus.

    ``to_role`` of ``None`` means broadcast. Both role fields hold an
    :class:`AgentRole` value or :data:`EXTERNAL_SENDER` for callers outside
    the system.
    """

    from_role: str
    to_role: Optional[str]
    type: MessageType
    content: Action
    id: str = field(default_factory=new_message_id)
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    def __post_init__(self) -> None:
        # plain strings keep registry lookups independent of Enum hashing
        object.__setattr__(self, "from_role", role_key(self.from_role))
        if self.to_role is not None:
            object.__setattr__(self, "to_role", role_key(self.to_role))

    @property
    def action(self) -> str:
        return self.content.action

    @property
    def is_broadcast(self) -> bool:
        return self.to_role is None


class AgentContext:
    """Role-specific private record held in :class:`AgentState`."""

    def snapshot(self) -> Dict[str, Any]:
        return {}


@dataclass
class AgentState:
    """Private state of one agent; only the owning agent mutates it."""

    role: AgentRole
    context: AgentContext
    status: AgentStatus = AgentStatus.IDLE
    memory_limit: Optional[int] = 100
    last_error: Optional[str] = None
    memory: Deque[Message] = field(init=False)

    def __post_init__(self) -> None:
        self.memory = deque(maxlen=self.memory_limit)

    def remember(self, message: Message) -> None:
        self.memory.append(message)

    def snapshot(self) -> Dict[str, Any]:
        return {
            "role": self.role.value,
            "status": self.status.value,
            "context": self.context.snapshot(),
            "memory_size": len(self.memory),
            "last_error": self.last_error,
        }
