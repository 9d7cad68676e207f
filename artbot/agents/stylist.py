from __future__ import annotations

from enum import Enum

from artbot.agents.generation import GenerationAgent
from artbot.agents.strategies import StrategyProfile
from artbot.schemas.messages import AgentRole
from artbot.schemas.project import TaskType
from artbot.schemas.records import StyleRecord


class StyleApproach(str, Enum):
    SURREAL = "surreal"
    PAINTERLY = "painterly"
    MINIMALIST = "minimalist"
    EXPRESSIONIST = "expressionist"
    CINEMATIC = "cinematic"
    DIGITAL = "digital"
    ORGANIC = "organic"


STYLE_PROFILES = {
    StyleApproach.SURREAL: StrategyProfile(
        keywords=("surreal", "dream", "paradox", "illusion", "impossible", "magritte"),
        default_weight=0.8,
        framing="dreamlike juxtapositions, impossible scenes and quiet visual paradoxes.",
    ),
    StyleApproach.PAINTERLY: StrategyProfile(
        keywords=("paint", "oil", "brush", "canvas", "traditional", "fine art"),
        default_weight=0.7,
        framing="visible brushwork, canvas texture and the handling of traditional painting.",
    ),
    StyleApproach.MINIMALIST: StrategyProfile(
        keywords=("minimal", "simple", "clean", "space", "balance"),
        default_weight=0.6,
        framing="reduction to essentials, generous negative space and restrained palettes.",
    ),
    StyleApproach.EXPRESSIONIST: StrategyProfile(
        keywords=("emotion", "expressive", "gesture", "bold", "intense"),
        default_weight=0.6,
        framing="gestural marks, bold color and distortion in service of feeling.",
    ),
    StyleApproach.CINEMATIC: StrategyProfile(
        keywords=("cinematic", "film", "light", "night", "scene"),
        default_weight=0.7,
        framing="film-still lighting, grain and staged scenes with a clear focal subject.",
    ),
    StyleApproach.DIGITAL: StrategyProfile(
        keywords=("digital", "generative", "diffusion", "glitch", "pixel", "algorithm"),
        default_weight=0.5,
        framing="generative and digital aesthetics, embracing algorithmic texture.",
    ),
    StyleApproach.ORGANIC: StrategyProfile(
        keywords=("organic", "nature", "evolve", "growth", "flow"),
        default_weight=0.5,
        framing="natural growth patterns, flowing forms and evolving structures.",
    ),
}


class StylistAgent(GenerationAgent):
    """Develops artistic styles for the ideas produced in planning."""

    role = AgentRole.STYLIST
    task_type = TaskType.STYLING
    strategy_enum = StyleApproach
    profiles = STYLE_PROFILES
    record_model = StyleRecord
    system_prompt = (
        "You are the Stylist agent in a multi-agent art creation system. "
        "Your role is to develop distinctive artistic styles that suit the generated ideas."
    )
    deliverable = (
        "Develop 3 artistic styles as a JSON array. Each style is an object with the keys "
        '"name", "description", "visualCharacteristics" (list), "colorPalette" (list), '
        '"texture" and "composition".'
    )
    fallback_records = [
        {
            "name": "Fallback Style",
            "description": "A restrained style built from basic forms",
            "visual_characteristics": ["clean lines", "simple shapes"],
            "color_palette": ["black", "white", "primary red"],
            "texture": "smooth",
            "composition": "centered subject with balanced negative space",
        }
    ]
