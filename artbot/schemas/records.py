from __future__ import annotations

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class GenerationRecord(BaseModel):
    """Common config: accept camelCase or snake_case keys, keep unknown keys."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="allow",
    )


class IdeaRecord(GenerationRecord):
    title: str
    description: str
    elements: List[str] = Field(default_factory=list)
    styles: List[str] = Field(default_factory=list)
    emotional_impact: str = ""


class StyleRecord(GenerationRecord):
    name: str
    description: str
    visual_characteristics: List[str] = Field(default_factory=list)
    color_palette: List[str] = Field(default_factory=list)
    texture: str = ""
    composition: str = ""


class ArtworkRecord(GenerationRecord):
    title: str
    description: str
    prompt: str = ""
    negative_prompt: str = ""
    image_url: Optional[str] = None
    visual_elements: List[str] = Field(default_factory=list)
    composition: Dict[str, Any] = Field(default_factory=dict)
    color_usage: Dict[str, Any] = Field(default_factory=dict)
    texture: Dict[str, Any] = Field(default_factory=dict)
    emotional_impact: Dict[str, Any] = Field(default_factory=dict)


class CritiqueRecord(GenerationRecord):
    strengths: List[str] = Field(default_factory=list)
    areas_for_improvement: List[str] = Field(default_factory=list)
    scores: Dict[str, float] = Field(default_factory=dict)
    overall_score: float = Field(ge=0, le=10)
    recommendations: List[str] = Field(default_factory=list)
    analysis_notes: str = ""
