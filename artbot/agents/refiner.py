from __future__ import annotations

import logging
from enum import Enum
from typing import Any, Dict, List, Optional

from artbot.agents.generation import GenerationAgent
from artbot.agents.strategies import StrategyProfile
from artbot.schemas.messages import AgentRole
from artbot.schemas.project import ProjectBrief, Task, TaskType
from artbot.schemas.records import ArtworkRecord
from artbot.tools.image_synthesis import ImageSynthesisTool

logger = logging.getLogger(__name__)


class RefinementFocus(str, Enum):
    COMPOSITION = "composition"
    COLOR = "color"
    TEXTURE = "texture"
    LIGHTING = "lighting"
    DETAIL = "detail"


REFINEMENT_PROFILES = {
    RefinementFocus.COMPOSITION: StrategyProfile(
        keywords=("composition", "balance", "structure", "form", "space"),
        default_weight=0.8,
        framing="tighten structure, focal points, flow and balance.",
    ),
    RefinementFocus.COLOR: StrategyProfile(
        keywords=("color", "palette", "hue", "tone", "contrast"),
        default_weight=0.7,
        framing="resolve the palette, dominant color, accents and transitions.",
    ),
    RefinementFocus.TEXTURE: StrategyProfile(
        keywords=("texture", "surface", "material", "grain", "brush"),
        default_weight=0.6,
        framing="develop surface texture, materials and mark-making.",
    ),
    RefinementFocus.LIGHTING: StrategyProfile(
        keywords=("light", "shadow", "night", "glow", "atmosphere"),
        default_weight=0.6,
        framing="shape light, shadow and atmosphere to direct the eye.",
    ),
    RefinementFocus.DETAIL: StrategyProfile(
        keywords=("detail", "element", "complexity", "intricate", "precise"),
        default_weight=0.5,
        framing="add precise detail and emergent complexity without clutter.",
    ),
}


class RefinerAgent(GenerationAgent):
    """Merges ideas and styles into one artwork and renders it as an image."""

    role = AgentRole.REFINER
    task_type = TaskType.REFINEMENT
    strategy_enum = RefinementFocus
    profiles = REFINEMENT_PROFILES
    record_model = ArtworkRecord
    default_temperature = 0.6
    max_records = 1
    system_prompt = (
        "You are the Refiner agent in a multi-agent art creation system. "
        "Your role is to combine the strongest idea and style into one refined artwork "
        "and write the image generation prompt for it."
    )
    deliverable = (
        "Describe the refined artwork as a single JSON object with the keys "
        '"title", "description", "prompt" (image generation prompt), "negativePrompt", '
        '"visualElements" (list), "composition" (object with structure, focalPoints, flow, '
        'balance), "colorUsage" (object with palette, dominant, accents, transitions), '
        '"texture" (object with type, details, materials) and "emotionalImpact" '
        "(object with primary, secondary, notes)."
    )
    fallback_records = [
        {
            "title": "Fallback Artwork",
            "description": "A simple composition of basic shapes",
            "prompt": "",
            "negative_prompt": "",
            "image_url": None,
            "visual_elements": ["simple shapes"],
            "composition": {"structure": "centered", "focal_points": [], "flow": "", "balance": "symmetrical"},
            "color_usage": {"palette": ["primary colors"], "dominant": "", "accents": [], "transitions": ""},
            "texture": {"type": "smooth", "details": "", "materials": ""},
            "emotional_impact": {"primary": "calm", "secondary": "", "notes": ""},
        }
    ]

    @property
    def image_tool(self) -> Optional[ImageSynthesisTool]:
        return next((t for t in self.tools if isinstance(t, ImageSynthesisTool)), None)

    def finalize(
        self,
        records: List[Dict[str, Any]],
        task: Task,
        project: ProjectBrief,
        strategy: Enum,
    ) -> List[Dict[str, Any]]:
        tool = self.image_tool
        if tool is None:
            return records

        for artwork in records:
            prompt = artwork.get("prompt") or f"{artwork['title']}: {artwork['description']}"
            outcome = tool.run({"prompt": prompt})
            artwork["prompt"] = prompt
            artwork["image_url"] = outcome["url"]
            if not outcome["ok"]:
                logger.warning("No image for %s: %s", task.id, outcome["reason"])
        return records
