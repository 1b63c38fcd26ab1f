# backend/app/agents/mock_agent.py

import logging
from datetime import datetime, timezone
from typing import List

from ..logging_config import inc_metric
from ..models import CandidateMetadata, ThumbnailCandidate

log = logging.getLogger("vizora")

MOCK_MODEL_NAME = "Mock Generator"

# (variation, css filter, score, description)
MOCK_VARIATIONS = (
    (
        "primary",
        "brightness(1.1) contrast(1.2) saturate(1.3)",
        0.92,
        "Enhanced primary version",
    ),
    (
        "dramatic",
        "brightness(0.8) contrast(1.8) saturate(1.6) hue-rotate(10deg)",
        0.88,
        "Dramatic high-contrast version",
    ),
    (
        "vibrant",
        "brightness(1.3) contrast(1.2) saturate(1.8) hue-rotate(-5deg)",
        0.85,
        "Bright and vibrant version",
    ),
)


def create_mock_thumbnails(
    image_url: str,
    prompt: str,
    aspect_ratio: str = "16:9",
) -> List[ThumbnailCandidate]:
    """
    Non-AI result set: the untouched input image three times, told apart only
    by a CSS filter for the UI and a fixed score.
    """
    log.info(f"🎭 Building mock thumbnails ({aspect_ratio})")
    inc_metric("mock_fallbacks")

    timestamp = datetime.now(timezone.utc).isoformat()
    return [
        ThumbnailCandidate(
            id=f"mock_{variation}",
            url=image_url,
            prompt=prompt,
            original_prompt=prompt,
            optimization_score=score,
            timestamp=timestamp,
            metadata=CandidateMetadata(
                variation=variation,
                aspect_ratio=aspect_ratio,
                model=MOCK_MODEL_NAME,
                description=description,
                filter=css_filter,
            ),
            css_filter=css_filter,
        )
        for variation, css_filter, score, description in MOCK_VARIATIONS
    ]
