from __future__ import annotations

import logging
import os
import time
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, Optional

import httpx
from openai import OpenAI, OpenAIError

from artbot.errors import ConfigurationError, ImageGenerationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ImageRequest:
    prompt: str
    width: int = 1024
    height: int = 1024
    steps: int = 28
    guidance_scale: float = 3.0


class ImageClient(ABC):
    name: str = "image"

    @abstractmethod
    def generate(self, request: ImageRequest) -> str:
        """Return the URL of the synthesized image or raise :class:`ImageGenerationError`."""


class ReplicateImageClient(ImageClient):
    """Creates a Replicate prediction and polls it until it settles."""

    name = "replicate"
    BASE_URL = "https://api.replicate.com/v1"
    _TERMINAL_FAILURES = ("failed", "canceled")
    # the cinestill FLUX fine-tune only engages with its trigger word
    FLUX_TRIGGER = "CNSTLL"
    FLUX_KEYWORDS = ("cinestill 800t", "film grain", "night time", "4k")

    def __init__(
        self,
        api_key: str,
        model: str,
        timeout: float = 60.0,
        poll_interval: float = 2.0,
        max_poll_attempts: int = 30,
        max_retries: int = 1,
        transport: Optional[httpx.BaseTransport] = None,
    ) -> None:
        self.model = model
        self.poll_interval = poll_interval
        self.max_poll_attempts = max_poll_attempts
        self.max_retries = max_retries
        self._client = httpx.Client(
            base_url=self.BASE_URL,
            timeout=timeout,
            headers={"Authorization": f"Token {api_key}", "Content-Type": "application/json"},
            transport=transport,
        )

    def generate(self, request: ImageRequest) -> str:
        payload = {
            "version": self.model,
            "input": {
                "prompt": self.prepare_prompt(request.prompt),
                "width": request.width,
                "height": request.height,
                "num_inference_steps": request.steps,
                "guidance_scale": request.guidance_scale,
            },
        }
        prediction = self._request("POST", "/predictions", json=payload)
        prediction_id = prediction.get("id")
        if not prediction_id:
            raise ImageGenerationError(self.name, "prediction id missing from response")

        for _ in range(self.max_poll_attempts):
            status = prediction.get("status")
            if status == "succeeded":
                return self._first_url(prediction.get("output"))
            if status in self._TERMINAL_FAILURES:
                raise ImageGenerationError(
                    self.name, f"prediction {prediction_id} {status}: {prediction.get('error') or 'unknown error'}"
                )
            time.sleep(self.poll_interval)
            prediction = self._request("GET", f"/predictions/{prediction_id}")
        raise ImageGenerationError(
            self.name, f"prediction {prediction_id} timed out after {self.max_poll_attempts} polls"
        )

    def prepare_prompt(self, prompt: str) -> str:
        if "flux-cinestill" not in self.model and "adirik/flux" not in self.model:
            return prompt
        if self.FLUX_TRIGGER not in prompt:
            prompt = f"{self.FLUX_TRIGGER} {prompt}"
        missing = [k for k in self.FLUX_KEYWORDS if k not in prompt.lower()]
        if missing:
            prompt = f"{prompt}, {', '.join(missing)}"
        return prompt

    def close(self) -> None:
        self._client.close()

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        last_error: Optional[Exception] = None
        for attempt in range(self.max_retries + 1):
            try:
                response = self._client.request(method, path, **kwargs)
                response.raise_for_status()
                try:
                    return response.json()
                except ValueError as exc:
                    raise ImageGenerationError(self.name, f"non-JSON response from {path}") from exc
            except httpx.HTTPStatusError as exc:
                # 4xx is the caller's fault; retrying will not help
                if exc.response.status_code < 500:
                    raise ImageGenerationError(self.name, f"{exc.response.status_code}: {exc.response.text}") from exc
                last_error = exc
            except httpx.HTTPError as exc:
                last_error = exc
            logger.warning("Replicate %s %s failed (attempt %d): %s", method, path, attempt + 1, last_error)
        raise ImageGenerationError(self.name, str(last_error))

    def _first_url(self, output: Any) -> str:
        if isinstance(output, list) and output:
            return str(output[0])
        if isinstance(output, dict) and output:
            return str(next(iter(output.values())))
        if isinstance(output, str) and output:
            return output
        raise ImageGenerationError(self.name, "prediction succeeded without output")


class DalleImageClient(ImageClient):
    name = "dalle"

    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = "dall-e-3",
        timeout: float = 60.0,
        max_retries: int = 1,
    ) -> None:
        self.model = model
        try:
            self._client = OpenAI(api_key=api_key, timeout=timeout, max_retries=max_retries)
        except OpenAIError as exc:
            raise ConfigurationError(f"dall-e client unavailable: {exc}") from exc

    def generate(self, request: ImageRequest) -> str:
        try:
            response = self._client.images.generate(
                model=self.model,
                prompt=request.prompt,
                n=1,
                size=f"{request.width}x{request.height}",
                response_format="url",
            )
        except OpenAIError as exc:
            raise ImageGenerationError(self.name, str(exc)) from exc
        if not response.data or not response.data[0].url:
            raise ImageGenerationError(self.name, "no image url returned")
        return response.data[0].url


class FallbackImageClient(ImageClient):
    """Tries ``primary`` first and ``secondary`` when it fails."""

    name = "fallback"

    def __init__(self, primary: ImageClient, secondary: ImageClient) -> None:
        self.primary = primary
        self.secondary = secondary

    def generate(self, request: ImageRequest) -> str:
        try:
            return self.primary.generate(request)
        except ImageGenerationError as exc:
            logger.warning("%s failed (%s), falling back to %s", self.primary.name, exc, self.secondary.name)
        return self.secondary.generate(request)


def build_image_client(config) -> Optional[ImageClient]:
    """Instantiate the image client chain described by ``config`` (an ``ImageConfig``)."""
    if config.provider == "none":
        return None

    openai_key = os.getenv(config.fallback_api_key_env) if config.fallback_api_key_env else None
    dalle = DalleImageClient(
        api_key=openai_key or "missing",
        model=config.fallback_model,
        timeout=config.timeout,
        max_retries=config.max_retries,
    )
    if config.provider == "dalle":
        return dalle
    if config.provider == "replicate":
        api_key = os.getenv(config.api_key_env, "")
        if not api_key:
            logger.warning("%s is not set; using %s only", config.api_key_env, dalle.name)
            return dalle
        replicate = ReplicateImageClient(
            api_key=api_key,
            model=config.model,
            timeout=config.timeout,
            poll_interval=config.poll_interval,
            max_poll_attempts=config.max_poll_attempts,
            max_retries=config.max_retries,
        )
        return FallbackImageClient(replicate, dalle)
    raise ConfigurationError(f"unknown image provider: {config.provider}")
