from __future__ import annotations

from enum import Enum

from artbot.agents.generation import GenerationAgent
from artbot.agents.strategies import StrategyProfile
from artbot.schemas.messages import AgentRole
from artbot.schemas.project import TaskType
from artbot.schemas.records import CritiqueRecord


class CritiqueLens(str, Enum):
    FORMAL = "formal"
    CONCEPTUAL = "conceptual"
    EMOTIONAL = "emotional"
    TECHNICAL = "technical"
    CONTEXTUAL = "contextual"


CRITIQUE_PROFILES = {
    CritiqueLens.FORMAL: StrategyProfile(
        keywords=("composition", "balance", "form", "color", "visual"),
        default_weight=0.7,
        framing="judge the formal qualities: composition, balance, color and form.",
    ),
    CritiqueLens.CONCEPTUAL: StrategyProfile(
        keywords=("concept", "meaning", "idea", "abstract", "philosophy"),
        default_weight=0.8,
        framing="judge how clearly and originally the work carries its concept.",
    ),
    CritiqueLens.EMOTIONAL: StrategyProfile(
        keywords=("emotion", "mood", "feeling", "atmosphere", "expression"),
        default_weight=0.6,
        framing="judge the emotional resonance and the coherence of the mood.",
    ),
    CritiqueLens.TECHNICAL: StrategyProfile(
        keywords=("technique", "execution", "detail", "generative", "diffusion"),
        default_weight=0.5,
        framing="judge execution quality, technique and attention to detail.",
    ),
    CritiqueLens.CONTEXTUAL: StrategyProfile(
        keywords=("history", "culture", "reference", "tradition", "inspired"),
        default_weight=0.5,
        framing="judge the work against its references and art-historical context.",
    ),
}


class CriticAgent(GenerationAgent):
    """Evaluates the refined artwork and scores it out of ten."""

    role = AgentRole.CRITIC
    task_type = TaskType.CRITIQUE
    strategy_enum = CritiqueLens
    profiles = CRITIQUE_PROFILES
    record_model = CritiqueRecord
    default_temperature = 0.3
    max_records = 1
    system_prompt = (
        "You are the Critic agent in a multi-agent art creation system. "
        "Your role is to evaluate the refined artwork honestly and give actionable feedback."
    )
    deliverable = (
        "Critique the artwork as a single JSON object with the keys "
        '"strengths" (list), "areasForImprovement" (list), "scores" (object mapping '
        'criterion to a 0-10 score), "overallScore" (0-10), "recommendations" (list) '
        'and "analysisNotes".'
    )
    fallback_records = [
        {
            "strengths": ["The pipeline produced a complete artwork description"],
            "areas_for_improvement": ["Critique unavailable; review manually"],
            "scores": {},
            "overall_score": 5.0,
            "recommendations": [],
            "analysis_notes": "Placeholder critique produced without the completion service.",
        }
    ]
