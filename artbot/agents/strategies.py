"""Adaptive strategy selection shared by the generation agents.

Each agent declares an ``Enum`` of strategies and a :class:`StrategyProfile`
per member. The table scores a brief against keyword sets, and learns from
ratings with an exponential moving average:

    weight = weight * (1 - learning_rate) + (rating / 10) * learning_rate
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from enum import Enum
from typing import Dict, Generic, List, Mapping, Tuple, TypeVar

from artbot.errors import ConfigurationError

logger = logging.getLogger(__name__)

StrategyT = TypeVar("StrategyT", bound=Enum)

MAX_RATING = 10.0


@dataclass(frozen=True)
class StrategyProfile:
    keywords: Tuple[str, ...]
    default_weight: float
    framing: str


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


class StrategyTable(Generic[StrategyT]):
    """Per-agent weight table. Updates are serialized by an internal lock."""

    def __init__(
        self,
        strategy_enum: type[StrategyT],
        profiles: Mapping[StrategyT, StrategyProfile],
        learning_rate: float = 0.1,
        preferred_k: int = 3,
    ) -> None:
        missing = [s for s in strategy_enum if s not in profiles]
        if missing:
            raise ConfigurationError(f"no profile for strategies: {[s.value for s in missing]}")
        self.strategy_enum = strategy_enum
        self.profiles = dict(profiles)
        self.learning_rate = learning_rate
        self.preferred_k = preferred_k
        self._lock = threading.Lock()
        self._weights: Dict[StrategyT, float] = {
            s: _clamp(profiles[s].default_weight) for s in strategy_enum
        }
        self._preferred: List[StrategyT] = self._rank()

    @property
    def weights(self) -> Dict[StrategyT, float]:
        with self._lock:
            return dict(self._weights)

    @property
    def preferred(self) -> List[StrategyT]:
        with self._lock:
            return list(self._preferred)

    def weight(self, strategy: StrategyT) -> float:
        with self._lock:
            return self._weights[strategy]

    def parse(self, value: str | StrategyT) -> StrategyT:
        if isinstance(value, self.strategy_enum):
            return value
        try:
            return self.strategy_enum(value)
        except ValueError as exc:
            raise ValueError(f"unknown {self.strategy_enum.__name__} strategy: {value!r}") from exc

    def score(self, text: str) -> Dict[StrategyT, float]:
        text = text.lower()
        weights = self.weights
        return {
            s: sum(1 for word in self.profiles[s].keywords if word in text) * weights[s]
            for s in self.strategy_enum
        }

    def select(self, text: str) -> StrategyT:
        scores = self.score(text)
        # max() keeps the first maximal item, i.e. declaration order breaks ties
        return max(self.strategy_enum, key=lambda s: scores[s])

    def apply_feedback(self, strategy: StrategyT, rating: float) -> float:
        if not 0 <= rating <= MAX_RATING:
            logger.warning("Rating %s for %s outside [0, 10], clamping", rating, strategy.value)
        normalized = _clamp(rating, 0.0, MAX_RATING) / MAX_RATING
        with self._lock:
            current = self._weights[strategy]
            updated = _clamp(current * (1 - self.learning_rate) + normalized * self.learning_rate)
            self._weights[strategy] = updated
            self._preferred = self._rank()
        logger.debug("%s weight %.4f -> %.4f", strategy.value, current, updated)
        return updated

    def snapshot(self) -> Dict[str, object]:
        with self._lock:
            return {
                "weights": {s.value: w for s, w in self._weights.items()},
                "preferred": [s.value for s in self._preferred],
            }

    def _rank(self) -> List[StrategyT]:
        # sorted() is stable, so equal weights keep declaration order
        ordered = sorted(self.strategy_enum, key=lambda s: -self._weights[s])
        return ordered[: self.preferred_k]
