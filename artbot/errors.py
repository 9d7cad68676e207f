from __future__ import annotations


class ArtBotError(Exception):
    """Base exception for the orchestration layer."""


class ConfigurationError(ArtBotError):
    """Invalid system wiring or settings (duplicate roles, unknown providers)."""


class ProjectStateError(ArtBotError):
    """Illegal transition attempted on a Project."""


class ProviderError(ArtBotError):
    """External service failed or replied with something unusable."""

    def __init__(self, provider: str, message: str) -> None:
        self.provider = provider
        self.message = message
        super().__init__(f"[{provider}] {message}")


class LLMClientError(ProviderError):
    """Text completion call failed."""


class ImageGenerationError(ProviderError):
    """Image synthesis call failed."""


class MalformedResponseError(ArtBotError):
    """Completion text could not be parsed into the expected records."""


class TaskCancelled(ArtBotError):
    """Raised inside an agent when its project was cancelled mid-task."""
