# backend/app/agents/variation_agent.py

import logging
import time
from datetime import datetime, timezone
from typing import List

from ..gemini_client import ImageGenerationClient
from ..logging_config import inc_metric, measure
from ..models import CandidateMetadata, ThumbnailCandidate
from ..utils import DecodedImage
from .mock_agent import create_mock_thumbnails

log = logging.getLogger("vizora")

PRIMARY_SCORE = 0.95
AI_SCORE_STEP = 0.03
FILTER_BASE_SCORE = 0.85

# (name, prompt suffix, css filter used when the variation call fails)
VARIATIONS = (
    (
        "dramatic",
        "Make it more dramatic with higher contrast and bold elements.",
        "brightness(0.9) contrast(1.4) saturate(1.3)",
    ),
    (
        "vibrant",
        "Make the colors more vibrant and eye-catching with punchy saturation.",
        "brightness(1.2) contrast(1.2) saturate(1.6)",
    ),
    (
        "professional",
        "Make it clean and professional with minimal distractions.",
        "brightness(1.1) contrast(1.1) saturate(0.9)",
    ),
)


def ai_variation_score(position: int) -> float:
    return round(PRIMARY_SCORE - AI_SCORE_STEP * position, 2)


def filter_variation_score(position: int) -> float:
    return round(FILTER_BASE_SCORE - AI_SCORE_STEP * (position - 1), 2)


def _candidate_id(name: str) -> str:
    return f"thumb_{int(time.time() * 1000)}_{name}"


async def run_variation_agent(
    client: ImageGenerationClient,
    prompt: str,
    image: DecodedImage,
    aspect_ratio: str = "16:9",
    model_label: str = "Gemini 2.5 Flash",
) -> List[ThumbnailCandidate]:
    """
    Primary thumbnail plus one candidate per entry in VARIATIONS.

    If the primary call produces nothing the whole set comes from the mock
    generator. A failed variation reuses the primary image with its CSS filter.
    """
    log.info("🎨 Generating primary thumbnail")
    with measure("primary_generation"):
        primary_url = await client.generate(prompt, image.data, image.mime_type, aspect_ratio)

    if primary_url is None:
        log.warning("⚠️ Primary generation produced no image, using mock thumbnails")
        return create_mock_thumbnails(image.data_uri, prompt, aspect_ratio)

    thumbnails: List[ThumbnailCandidate] = [
        ThumbnailCandidate(
            id=_candidate_id("primary"),
            url=primary_url,
            prompt=prompt,
            original_prompt=prompt,
            optimization_score=PRIMARY_SCORE,
            timestamp=datetime.now(timezone.utc).isoformat(),
            metadata=CandidateMetadata(
                variation="primary",
                aspect_ratio=aspect_ratio,
                model=model_label,
                description="AI-generated primary version",
            ),
        )
    ]

    for position, (name, suffix, css_filter) in enumerate(VARIATIONS, start=1):
        variation_prompt = f"{prompt} {suffix}"
        log.info(f"🎨 Generating {name} variation")
        url = await client.generate(variation_prompt, image.data, image.mime_type, aspect_ratio)

        if url is not None:
            thumbnails.append(
                ThumbnailCandidate(
                    id=_candidate_id(name),
                    url=url,
                    prompt=variation_prompt,
                    original_prompt=prompt,
                    optimization_score=ai_variation_score(position),
                    timestamp=datetime.now(timezone.utc).isoformat(),
                    metadata=CandidateMetadata(
                        variation=name,
                        aspect_ratio=aspect_ratio,
                        model=model_label,
                        description=f"AI-generated {name} variation",
                    ),
                )
            )
            continue

        inc_metric("filter_fallbacks")
        log.info(f"🪄 {name} variation failed, reusing primary image with CSS filter")
        thumbnails.append(
            ThumbnailCandidate(
                id=_candidate_id(name),
                url=primary_url,
                prompt=variation_prompt,
                original_prompt=prompt,
                optimization_score=filter_variation_score(position),
                timestamp=datetime.now(timezone.utc).isoformat(),
                metadata=CandidateMetadata(
                    variation=name,
                    aspect_ratio=aspect_ratio,
                    model=f"{model_label} + Filter",
                    description=f"{name} variation",
                    filter=css_filter,
                ),
                css_filter=css_filter,
            )
        )

    log.info(f"✅ Generated {len(thumbnails)} thumbnails")
    return thumbnails
