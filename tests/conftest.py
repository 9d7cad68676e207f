from __future__ import annotations

import json
from typing import Dict, List, Optional, Sequence

import pytest

from artbot.errors import ImageGenerationError, LLMClientError
from artbot.utils.image_clients import ImageClient, ImageRequest
from artbot.utils.llm_clients import ChatMessage, LLMClient
from artbot.utils.settings import AppConfig, ImageConfig

IDEAS = [
    {
        "title": "Sediment of Noise",
        "description": "Layers of denoised form settling into a landscape",
        "elements": ["grain", "strata", "soft gradients"],
        "styles": ["generative", "abstract"],
        "emotionalImpact": "quiet awe",
    },
    {
        "title": "Second Opinion",
        "description": "The same scene drawn twice by diverging processes",
        "elements": ["diptych", "mirrored forms"],
        "styles": ["conceptual"],
        "emotionalImpact": "unease",
    },
]

STYLES = [
    {
        "name": "Nocturne Drift",
        "description": "Film-still night palette with diffused edges",
        "visualCharacteristics": ["grain", "halation"],
        "colorPalette": ["ink blue", "sodium orange"],
        "texture": "film grain",
        "composition": "low horizon",
    }
]

ARTWORK = {
    "title": "Sediment of Noise",
    "description": "A night landscape resolving out of static",
    "prompt": "layered static resolving into a night landscape, film grain",
    "negativePrompt": "text, watermark",
    "visualElements": ["strata", "static"],
    "composition": {"structure": "horizontal bands"},
    "colorUsage": {"palette": ["ink blue"], "dominant": "ink blue"},
    "texture": {"type": "grain"},
    "emotionalImpact": {"primary": "awe"},
}

CRITIQUE = {
    "strengths": ["coherent palette"],
    "areasForImprovement": ["focal point is weak"],
    "scores": {"composition": 7, "concept": 8},
    "overallScore": 8,
    "recommendations": ["strengthen the focal point"],
    "analysisNotes": "Solid.",
}


def fenced(value) -> str:
    return f"Here you go:\n```json\n{json.dumps(value)}\n```"


DEFAULT_REPLIES = {
    "Ideator agent": fenced(IDEAS),
    "Stylist agent": fenced(STYLES),
    "Refiner agent": fenced(ARTWORK),
    "Critic agent": fenced(CRITIQUE),
}


class ScriptedLLMClient(LLMClient):
    """Answers by matching a marker in the system prompt."""

    def __init__(self, replies: Optional[Dict[str, str]] = None) -> None:
        self.replies = dict(DEFAULT_REPLIES if replies is None else replies)
        self.calls: List[Sequence[ChatMessage]] = []

    def complete(self, messages, temperature=0.7, max_tokens=None, model=None) -> str:
        self.calls.append(messages)
        system = messages[0].content
        for marker, reply in self.replies.items():
            if marker in system:
                if isinstance(reply, Exception):
                    raise reply
                return reply
        raise LLMClientError("scripted", "no scripted reply")


class FailingLLMClient(LLMClient):
    def __init__(self) -> None:
        self.calls = 0

    def complete(self, messages, temperature=0.7, max_tokens=None, model=None) -> str:
        self.calls += 1
        raise LLMClientError("stub", "service unavailable")


class StubImageClient(ImageClient):
    name = "stub"

    def __init__(self, url: str = "https://images.test/1.png", fail: bool = False) -> None:
        self.url = url
        self.fail = fail
        self.requests: List[ImageRequest] = []

    def generate(self, request: ImageRequest) -> str:
        self.requests.append(request)
        if self.fail:
            raise ImageGenerationError(self.name, "down")
        return self.url


@pytest.fixture
def scripted_llm() -> ScriptedLLMClient:
    return ScriptedLLMClient()


@pytest.fixture
def failing_llm() -> FailingLLMClient:
    return FailingLLMClient()


@pytest.fixture
def app_config() -> AppConfig:
    return AppConfig(image=ImageConfig(provider="none"))
