from __future__ import annotations

from enum import Enum

from artbot.agents.generation import GenerationAgent
from artbot.agents.strategies import StrategyProfile
from artbot.schemas.messages import AgentRole
from artbot.schemas.project import TaskType
from artbot.schemas.records import IdeaRecord


class IdeationApproach(str, Enum):
    CONCEPTUAL = "conceptual"
    NARRATIVE = "narrative"
    VISUAL = "visual"
    EMOTIONAL = "emotional"
    TECHNICAL = "technical"
    CULTURAL = "cultural"
    EXPERIMENTAL = "experimental"


IDEATION_PROFILES = {
    IdeationApproach.CONCEPTUAL: StrategyProfile(
        keywords=("concept", "abstract", "idea", "philosophy", "meaning", "evolve", "emergent"),
        default_weight=0.8,
        framing=(
            "focus on abstract concepts, philosophical themes and meaning. "
            "Generate ideas that challenge perception and provoke thought."
        ),
    ),
    IdeationApproach.NARRATIVE: StrategyProfile(
        keywords=("story", "narrative", "character", "plot", "sequence"),
        default_weight=0.6,
        framing="focus on storytelling, characters and sequential art that conveys a narrative.",
    ),
    IdeationApproach.VISUAL: StrategyProfile(
        keywords=("visual", "composition", "color", "form", "texture"),
        default_weight=0.9,
        framing="focus on composition, color theory, form, texture and visual impact.",
    ),
    IdeationApproach.EMOTIONAL: StrategyProfile(
        keywords=("emotion", "feeling", "mood", "atmosphere", "expression"),
        default_weight=0.7,
        framing="focus on emotional impact and resonance with the viewer.",
    ),
    IdeationApproach.TECHNICAL: StrategyProfile(
        keywords=("technique", "method", "process", "execution", "craft", "diffusion", "generative", "algorithm"),
        default_weight=0.5,
        framing="focus on execution methods, processes and generative techniques.",
    ),
    IdeationApproach.CULTURAL: StrategyProfile(
        keywords=("culture", "reference", "history", "society", "tradition"),
        default_weight=0.6,
        framing="focus on cultural references, heritage and social context.",
    ),
    IdeationApproach.EXPERIMENTAL: StrategyProfile(
        keywords=("experiment", "innovative", "novel", "unique", "unconventional"),
        default_weight=0.4,
        framing="focus on unconventional, innovative and experimental approaches.",
    ),
}


class IdeatorAgent(GenerationAgent):
    """Turns the brief into a handful of candidate art ideas."""

    role = AgentRole.IDEATOR
    task_type = TaskType.IDEATION
    strategy_enum = IdeationApproach
    profiles = IDEATION_PROFILES
    record_model = IdeaRecord
    default_temperature = 0.8
    system_prompt = (
        "You are the Ideator agent in a multi-agent art creation system. "
        "Your role is to generate creative, diverse and novel ideas from project requirements."
    )
    deliverable = (
        "Generate 5 art ideas as a JSON array. Each idea is an object with the keys "
        '"title", "description", "elements" (list of key visual elements), '
        '"styles" (list of potential styles) and "emotionalImpact".'
    )
    fallback_records = [
        {
            "title": "Fallback Idea",
            "description": "A simple concept using basic elements",
            "elements": ["simple shapes", "primary colors"],
            "styles": ["minimalist"],
            "emotional_impact": "calm",
        }
    ]
