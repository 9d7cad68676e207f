from __future__ import annotations

from collections import deque
from typing import Deque, Iterable, List, Optional

from artbot.schemas.messages import Message


class Transcript:
    """Log of every message routed through the bus.

    With ``maxlen`` set, the oldest messages are dropped once the log is full.
    """

    def __init__(self, maxlen: Optional[int] = None) -> None:
        self.maxlen = maxlen
        self._messages: Deque[Message] = deque(maxlen=maxlen)

    def reset(self, initial: Iterable[Message] | None = None) -> None:
        self._messages = deque(initial or [], maxlen=self.maxlen)

    def append(self, message: Message) -> None:
        self._messages.append(message)

    def last(self, k: int = 1) -> List[Message]:
        if k <= 0:
            return []
        return list(self._messages)[-k:]

    def all(self) -> List[Message]:
        return list(self._messages)

    def by_action(self, action: str) -> List[Message]:
        return [m for m in self._messages if m.action == action]

    def __len__(self) -> int:
        return len(self._messages)
