from __future__ import annotations

import logging
from typing import Any, Dict

from artbot.errors import ImageGenerationError
from artbot.tools.base import Tool
from artbot.utils.image_clients import ImageClient, ImageRequest

logger = logging.getLogger(__name__)


class ImageSynthesisTool(Tool):
    """Renders a prompt through the configured image client.

    Never raises for provider errors: ``{"ok": False, "reason": ...}`` is
    returned instead so the refinement stage can still complete.
    """

    def __init__(
        self,
        client: ImageClient,
        width: int = 1024,
        height: int = 1024,
        steps: int = 28,
        guidance_scale: float = 3.0,
    ) -> None:
        super().__init__(name="image_synthesis")
        self.client = client
        self.width = width
        self.height = height
        self.steps = steps
        self.guidance_scale = guidance_scale

    def run(self, query: Dict[str, Any]) -> Dict[str, Any]:
        prompt = (query.get("prompt") or "").strip()
        if not prompt:
            return {"ok": False, "url": None, "reason": "empty prompt"}

        request = ImageRequest(
            prompt=prompt,
            width=query.get("width", self.width),
            height=query.get("height", self.height),
            steps=query.get("steps", self.steps),
            guidance_scale=query.get("guidance_scale", self.guidance_scale),
        )
        try:
            url = self.client.generate(request)
        except ImageGenerationError as exc:
            logger.warning("Image synthesis failed: %s", exc)
            return {"ok": False, "url": None, "reason": str(exc)}
        return {"ok": True, "url": url, "reason": None}
