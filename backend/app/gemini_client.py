import asyncio
import base64
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Optional

from google import genai
from google.genai import types

from .logging_config import inc_metric

log = logging.getLogger("vizora")

# Substrings (lowercased) of provider errors that retrying will not fix.
NON_RETRYABLE_MARKERS = (
    "429",
    "quota",
    "rate limit",
    "too many requests",
    "exceeded",
    "billing",
    "plan",
)

# (prompt, image bytes, mime type, aspect ratio) -> raw provider response
Transport = Callable[[str, bytes, str, str], Awaitable[Any]]
Sleep = Callable[[float], Awaitable[None]]


class AttemptStatus(str, Enum):
    SUCCESS = "success"
    RETRYABLE = "retryable"
    TERMINAL = "terminal"


@dataclass(frozen=True)
class AttemptResult:
    status: AttemptStatus
    image: Optional[str] = None
    error: Optional[str] = None


def is_non_retryable(message: str) -> bool:
    message = (message or "").lower()
    return any(marker in message for marker in NON_RETRYABLE_MARKERS)


def extract_image(response: Any) -> Optional[str]:
    """
    Return the first inline image of a generate_content response as a data URI.
    Missing candidates, parts or image data all mean "no image" (None).
    """
    candidates = getattr(response, "candidates", None) or []
    if not candidates:
        return None

    content = getattr(candidates[0], "content", None)
    parts = getattr(content, "parts", None) or []
    for part in parts:
        inline = getattr(part, "inline_data", None)
        data = getattr(inline, "data", None)
        if not data:
            continue
        mime_type = getattr(inline, "mime_type", None) or "image/png"
        if isinstance(data, (bytes, bytearray)):
            data = base64.b64encode(data).decode("utf-8")
        return f"data:{mime_type};base64,{data}"
    return None


def make_genai_transport(api_key: str, model: str) -> Transport:
    """Build a transport around the google-genai SDK (sync call in a worker thread)."""
    client = genai.Client(api_key=api_key)

    async def transport(prompt: str, image: bytes, mime_type: str, aspect_ratio: str) -> Any:
        config = types.GenerateContentConfig(
            response_modalities=["TEXT", "IMAGE"],
            image_config=types.ImageConfig(aspect_ratio=aspect_ratio),
        )
        return await asyncio.to_thread(
            client.models.generate_content,
            model=model,
            contents=[prompt, types.Part.from_bytes(data=image, mime_type=mime_type)],
            config=config,
        )

    return transport


class ImageGenerationClient:
    """
    One image-to-image Gemini call with bounded retry.

    generate() returns a data URI or None and never raises for provider
    failures: an unconfigured key, quota errors, exhausted retries and empty
    responses all come back as None so callers can fall back.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gemini-2.5-flash-image-preview",
        max_retries: int = 2,
        base_delay: float = 1.0,
        timeout: float = 90.0,
        transport: Optional[Transport] = None,
        sleep: Sleep = asyncio.sleep,
    ):
        self.api_key = api_key
        self.model = model
        self.max_retries = max_retries
        self.base_delay = base_delay
        self.timeout = timeout
        self._sleep = sleep
        self._transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def _get_transport(self) -> Transport:
        if self._transport is None:
            self._transport = make_genai_transport(self.api_key, self.model)
        return self._transport

    def backoff_delay(self, attempt: int) -> float:
        # attempt 1 -> 2s, attempt 2 -> 4s with the default base delay
        return self.base_delay * (2 ** attempt)

    async def _attempt(
        self, prompt: str, image: bytes, mime_type: str, aspect_ratio: str
    ) -> AttemptResult:
        inc_metric("gemini_calls")
        try:
            response = await asyncio.wait_for(
                self._get_transport()(prompt, image, mime_type, aspect_ratio),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError:
            inc_metric("gemini_errors")
            return AttemptResult(
                AttemptStatus.RETRYABLE, error=f"Gemini request timed out after {self.timeout}s"
            )
        except Exception as e:
            inc_metric("gemini_errors")
            message = str(e)
            if is_non_retryable(message):
                return AttemptResult(AttemptStatus.TERMINAL, error=message)
            return AttemptResult(AttemptStatus.RETRYABLE, error=message)

        image_uri = extract_image(response)
        if image_uri is None:
            return AttemptResult(AttemptStatus.TERMINAL, error="No image in response")
        return AttemptResult(AttemptStatus.SUCCESS, image=image_uri)

    async def generate(
        self,
        prompt: str,
        image: bytes,
        mime_type: str = "image/jpeg",
        aspect_ratio: str = "16:9",
    ) -> Optional[str]:
        if not self.enabled:
            log.info("🔌 No Gemini API key configured, skipping image generation")
            return None

        attempts = self.max_retries + 1
        for attempt in range(attempts):
            if attempt > 0:
                delay = self.backoff_delay(attempt)
                inc_metric("gemini_retries")
                await self._sleep(delay)

            result = await self._attempt(prompt, image, mime_type, aspect_ratio)

            if result.status is AttemptStatus.SUCCESS:
                return result.image

            if result.status is AttemptStatus.TERMINAL:
                log.warning(
                    f"⚠️ Gemini attempt {attempt + 1}/{attempts} failed (not retrying): {result.error}"
                )
                return None

            log.warning(f"⚠️ Gemini attempt {attempt + 1}/{attempts} failed: {result.error}")

        log.error(f"❌ Gemini image generation failed after {attempts} attempts")
        return None
