# backend/app/agents/quality_agent.py

import re
from typing import Dict, List, Optional, Tuple

from ..models import PromptValidation, QualityMetric, QualityMetrics

# metric -> (keywords, matches needed for a full score)
QUALITY_KEYWORDS: Dict[str, Tuple[Tuple[str, ...], int]] = {
    "specificity": (
        ("detailed", "close-up", "dramatic", "vibrant", "bold", "contrasting"),
        3,
    ),
    "visual_elements": (
        ("lighting", "composition", "color", "contrast", "text overlay"),
        3,
    ),
    "emotional_triggers": (
        ("shocking", "amazing", "secret", "revealed", "exclusive", "urgent"),
        2,
    ),
    "clickworthiness": (
        ("arrow", "circle", "highlight", "reaction", "before/after"),
        2,
    ),
    "technical_optimization": (
        ("high resolution", "1280x720", "readable text", "mobile-friendly"),
        2,
    ),
}

# metric -> (cutoff, correction added when the score is below it)
CORRECTIONS: Dict[str, Tuple[float, str]] = {
    "specificity": (0.7, "Add more specific visual descriptors and detailed elements"),
    "visual_elements": (0.7, "Include lighting, composition, and color specifications"),
    "emotional_triggers": (0.5, "Add emotional triggers and curiosity-inducing elements"),
    "clickworthiness": (
        0.5,
        "Include click-worthy visual elements like arrows, circles, or reactions",
    ),
    "technical_optimization": (
        0.5,
        "Specify technical requirements for optimal thumbnail generation",
    ),
}

VALIDATION_PATTERNS = {
    "hasEmotionalHook": re.compile(r"shocking|amazing|secret|exclusive|revealed", re.I),
    "hasVisualElements": re.compile(r"color|lighting|composition|contrast", re.I),
    "hasClickTriggers": re.compile(r"arrow|circle|highlight|reaction", re.I),
    "hasTechnicalSpecs": re.compile(r"resolution|contrast|readable", re.I),
}

OPTIMAL_SCORE = 0.8


def score_keywords(prompt: str, keywords: Tuple[str, ...], threshold: int) -> QualityMetric:
    text = (prompt or "").lower()
    found = [kw for kw in keywords if kw.lower() in text]
    missing = [kw for kw in keywords if kw not in found]
    return QualityMetric(score=min(len(found) / threshold, 1.0), missing=missing)


def analyze_prompt_quality(prompt: str) -> QualityMetrics:
    return QualityMetrics(
        **{
            name: score_keywords(prompt, keywords, threshold)
            for name, (keywords, threshold) in QUALITY_KEYWORDS.items()
        }
    )


def generate_corrections(metrics: QualityMetrics) -> List[str]:
    corrections = []
    for name, (cutoff, correction) in CORRECTIONS.items():
        if getattr(metrics, name).score < cutoff:
            corrections.append(correction)
    return corrections


def validate_prompt(prompt: str, industry: Optional[str] = None) -> PromptValidation:
    """
    Composite check of a rewritten prompt. Five yes/no checks, score is the
    share that pass; 0.8 or better counts as optimal.
    """
    text = prompt or ""
    checks = {
        name: bool(pattern.search(text)) for name, pattern in VALIDATION_PATTERNS.items()
    }
    checks["hasIndustryContext"] = (
        bool(re.search(re.escape(industry), text, re.I)) if industry else True
    )

    order = (
        "hasEmotionalHook",
        "hasVisualElements",
        "hasClickTriggers",
        "hasIndustryContext",
        "hasTechnicalSpecs",
    )
    passed = sum(1 for name in order if checks[name])
    score = passed / len(order)

    return PromptValidation(
        score=score,
        is_optimal=score >= OPTIMAL_SCORE,
        improvements=[name for name in order if not checks[name]],
    )
