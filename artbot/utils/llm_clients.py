from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Sequence

from openai import OpenAI, OpenAIError

from artbot.errors import ConfigurationError, LLMClientError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ChatMessage:
    role: str
    content: str


class LLMClient(ABC):
    """Lightweight interface so agents can swap between real and stub models."""

    @abstractmethod
    def complete(
        self,
        messages: Sequence[ChatMessage],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> str:
        """Return the completion text or raise :class:`LLMClientError`."""


class OpenAILLMClient(LLMClient):
    """Chat completions against any OpenAI-compatible endpoint.

    Timeout and retry policy are delegated to the ``openai`` client: every
    call is bounded by ``timeout`` seconds and retried at most ``max_retries``
    times.
    """

    def __init__(
        self,
        model: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout: float = 60.0,
        max_retries: int = 1,
        provider: str = "openai",
    ) -> None:
        self.model = model
        self.provider = provider
        try:
            self._client = OpenAI(
                api_key=api_key,
                base_url=base_url,
                timeout=timeout,
                max_retries=max_retries,
            )
        except OpenAIError as exc:
            raise ConfigurationError(f"{provider} client unavailable: {exc}") from exc

    def complete(
        self,
        messages: Sequence[ChatMessage],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> str:
        params = {
            "model": model or self.model,
            "messages": [{"role": m.role, "content": m.content} for m in messages],
            "temperature": temperature,
        }
        if max_tokens:
            params["max_tokens"] = max_tokens
        try:
            response = self._client.chat.completions.create(**params)
        except OpenAIError as exc:
            raise LLMClientError(self.provider, str(exc)) from exc

        content = response.choices[0].message.content if response.choices else None
        if not content:
            raise LLMClientError(self.provider, "empty completion")
        return content


class EchoLLMClient(LLMClient):
    """Offline stand-in: echoes the first line of the last message.

    The echo is not JSON, so agents fall back to their placeholder records.
    """

    def complete(
        self,
        messages: Sequence[ChatMessage],
        temperature: float = 0.7,
        max_tokens: Optional[int] = None,
        model: Optional[str] = None,
    ) -> str:
        last = messages[-1].content.strip().splitlines() if messages else []
        return f"echo: {last[0] if last else ''}"


def build_llm_client(config) -> LLMClient:
    """Instantiate the completion client described by ``config`` (an ``LLMConfig``)."""
    if config.provider == "echo":
        return EchoLLMClient()
    if config.provider in ("openai", "deepseek"):
        api_key = os.getenv(config.api_key_env) if config.api_key_env else None
        if not api_key:
            logger.warning("%s is not set; %s calls will fail", config.api_key_env, config.provider)
        return OpenAILLMClient(
            model=config.model,
            api_key=api_key or "missing",
            base_url=config.base_url,
            timeout=config.timeout,
            max_retries=config.max_retries,
            provider=config.provider,
        )
    raise ConfigurationError(f"unknown llm provider: {config.provider}")
