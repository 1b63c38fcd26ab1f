# backend/app/models.py

from typing import Dict, List, Optional

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """JSON uses camelCase, Python uses snake_case."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_json(self) -> dict:
        return self.model_dump(by_alias=True, exclude_none=True)


# ---------- /api/generate ----------

class GenerationRequest(CamelModel):
    image: Optional[str] = None
    prompt: Optional[str] = None
    category: Optional[str] = None
    style: Optional[str] = None
    text_option: Optional[str] = None
    focus: Optional[str] = None
    color_scheme: Optional[str] = None
    selected_template: Optional[str] = None
    aspect_ratio: Optional[str] = "16:9"


class CandidateMetadata(CamelModel):
    variation: str
    aspect_ratio: str
    model: str
    description: str = ""
    filter: Optional[str] = None


class ThumbnailCandidate(CamelModel):
    model_config = ConfigDict(frozen=True)

    id: str
    url: str
    prompt: str
    original_prompt: str
    optimization_score: float
    timestamp: str
    metadata: CandidateMetadata
    css_filter: Optional[str] = None


# ---------- /api/rewrite ----------

class RewriteRequest(CamelModel):
    prompt: Optional[str] = None
    industry: Optional[str] = None
    target_audience: Optional[str] = None
    style_preferences: Optional[str] = None
    iterations: Optional[int] = 1


class QualityMetric(CamelModel):
    score: float
    missing: List[str] = []


class QualityMetrics(CamelModel):
    specificity: QualityMetric
    visual_elements: QualityMetric
    emotional_triggers: QualityMetric
    clickworthiness: QualityMetric
    technical_optimization: QualityMetric

    def scores(self) -> Dict[str, float]:
        return {name: metric.score for name, metric in self}


class PromptValidation(CamelModel):
    score: float
    is_optimal: bool
    improvements: List[str] = []


class PromptVariation(CamelModel):
    id: str
    style: str
    prompt: str
    optimized_for: str


# ---------- /api/iterate ----------

class IterateRequest(CamelModel):
    original_prompt: Optional[str] = None
    iteration_type: Optional[str] = None
    modifications: Optional[str] = None
    original_thumbnail_id: Optional[str] = None
    image: Optional[str] = None
    aspect_ratio: Optional[str] = "16:9"


class IterationRecord(CamelModel):
    id: int
    original_thumbnail_id: Optional[str] = None
    filename: str
    prompt: str
    iteration_type: str
    modifications: Optional[str] = None
    generated_at: str
    status: str
    url: Optional[str] = None
