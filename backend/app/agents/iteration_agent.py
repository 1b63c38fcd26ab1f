# backend/app/agents/iteration_agent.py

import logging
import time
from datetime import datetime, timezone
from typing import Optional

from ..gemini_client import ImageGenerationClient
from ..models import IterationRecord
from ..utils import DecodedImage

log = logging.getLogger("vizora")

ITERATION_SUFFIXES = {
    "more_vibrant": (
        "Make the colors more vibrant and eye-catching. Increase saturation and "
        "contrast for better visual impact."
    ),
    "add_text": (
        "Add bold, readable text overlay that stands out. Use high contrast colors "
        "for maximum readability."
    ),
    "change_background": (
        "Change the background to something more dramatic and engaging. Use "
        "gradients or dynamic backgrounds."
    ),
    "different_style": (
        "Apply a different artistic style - make it more modern, minimalist, or "
        "dramatic based on the content."
    ),
}


def build_iteration_prompt(
    original_prompt: str,
    iteration_type: str,
    modifications: Optional[str] = None,
) -> str:
    mods = (modifications or "").strip()
    if iteration_type in ITERATION_SUFFIXES:
        return f"{original_prompt} {ITERATION_SUFFIXES[iteration_type]}"
    if iteration_type == "custom":
        return f"{original_prompt} {mods}".rstrip()
    return f"{original_prompt} Apply the requested modifications: {mods}".rstrip()


async def run_iteration_agent(
    client: ImageGenerationClient,
    original_prompt: str,
    iteration_type: str,
    modifications: Optional[str] = None,
    original_thumbnail_id: Optional[str] = None,
    image: Optional[DecodedImage] = None,
    aspect_ratio: str = "16:9",
) -> IterationRecord:
    """
    Build the follow-up prompt for an existing thumbnail. When the caller
    sends the thumbnail image the prompt is also run through Gemini.
    """
    prompt = build_iteration_prompt(original_prompt, iteration_type, modifications)
    iteration_id = int(time.time() * 1000)

    url = None
    status = "prompt_ready"
    if image is not None:
        log.info(f"🔁 Regenerating thumbnail {original_thumbnail_id} ({iteration_type})")
        url = await client.generate(prompt, image.data, image.mime_type, aspect_ratio)
        status = "generated" if url else "fallback"

    return IterationRecord(
        id=iteration_id,
        original_thumbnail_id=original_thumbnail_id,
        filename=f"iteration_{original_thumbnail_id}_{iteration_id}.png",
        prompt=prompt,
        iteration_type=iteration_type,
        modifications=modifications,
        generated_at=datetime.now(timezone.utc).isoformat(),
        status=status,
        url=url,
    )
