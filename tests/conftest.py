"""Shared pytest fixtures for Vizora tests."""

import base64
import io
from types import SimpleNamespace
from typing import Any, List, Optional

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from backend.app.config import Settings
from backend.app.gemini_client import ImageGenerationClient
from backend.app.logging_config import reset_metrics
from backend.app.main import create_app


def make_png(width: int = 64, height: int = 36, color=(200, 30, 30)) -> bytes:
    buffered = io.BytesIO()
    Image.new("RGB", (width, height), color).save(buffered, format="PNG")
    return buffered.getvalue()


def make_image_response(data: bytes = b"generated-bytes", mime_type: str = "image/png"):
    """Mimic the shape of a google-genai GenerateContentResponse with one image part."""
    text_part = SimpleNamespace(text="Here is your thumbnail", inline_data=None)
    image_part = SimpleNamespace(
        text=None, inline_data=SimpleNamespace(data=data, mime_type=mime_type)
    )
    return SimpleNamespace(
        candidates=[SimpleNamespace(content=SimpleNamespace(parts=[text_part, image_part]))]
    )


class FakeTransport:
    """Scripted provider: each call pops the next outcome (exception or response)."""

    def __init__(self, outcomes: List[Any]):
        self.outcomes = list(outcomes)
        self.calls: List[dict] = []

    async def __call__(self, prompt: str, image: bytes, mime_type: str, aspect_ratio: str):
        self.calls.append(
            {"prompt": prompt, "image": image, "mime_type": mime_type, "aspect_ratio": aspect_ratio}
        )
        outcome = self.outcomes.pop(0) if self.outcomes else make_image_response()
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


class RecordingSleep:
    def __init__(self):
        self.delays: List[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeTextClient:
    """Stands in for TextGenerationClient; replies are returned in order."""

    def __init__(self, replies: List[Any], model: str = "fake-gpt"):
        self.replies = list(replies)
        self.model = model
        self.calls: List[dict] = []

    async def complete(self, system: str, user: str) -> str:
        self.calls.append({"system": system, "user": user})
        reply = self.replies.pop(0) if len(self.replies) > 1 else self.replies[0]
        if isinstance(reply, BaseException):
            raise reply
        return reply


@pytest.fixture(autouse=True)
def clean_metrics():
    reset_metrics()
    yield
    reset_metrics()


@pytest.fixture
def png_bytes() -> bytes:
    return make_png()


@pytest.fixture
def image_data_uri(png_bytes: bytes) -> str:
    return "data:image/png;base64," + base64.b64encode(png_bytes).decode("utf-8")


@pytest.fixture
def recording_sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def test_settings() -> Settings:
    """Settings with no provider credentials."""
    return Settings(google_api_key=None, openai_api_key=None)


def build_image_client(
    transport: Optional[FakeTransport],
    sleep: Optional[RecordingSleep] = None,
    api_key: Optional[str] = "test-key",
) -> ImageGenerationClient:
    return ImageGenerationClient(
        api_key=api_key,
        transport=transport,
        sleep=sleep or RecordingSleep(),
    )


@pytest.fixture
def test_client(test_settings: Settings) -> TestClient:
    """API client with no credentials: image generation falls back to mocks."""
    return TestClient(create_app(settings=test_settings))
