# backend/app/config.py

import os
from pathlib import Path
from typing import Optional

from pydantic import BaseModel

DEFAULT_TEMPLATES_DIR = Path(__file__).resolve().parent / "prompt_templates"

_TRUE_VALUES = {"1", "true", "yes", "on"}


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in _TRUE_VALUES


class Settings(BaseModel):
    """
    Runtime configuration.

    Built from environment variables (and a .env file, loaded by main.py)
    through `Settings.from_env()`. Tests construct it directly.
    """

    google_api_key: Optional[str] = None
    openai_api_key: Optional[str] = None

    image_model: str = "gemini-2.5-flash-image-preview"
    image_model_label: str = "Gemini 2.5 Flash"
    text_model: str = "gpt-4o"

    templates_dir: Path = DEFAULT_TEMPLATES_DIR
    max_upload_bytes: int = 10 * 1024 * 1024
    crop_uploads: bool = False

    max_retries: int = 2
    retry_base_delay: float = 1.0
    image_timeout: float = 90.0

    @property
    def image_generation_enabled(self) -> bool:
        return bool(self.google_api_key)

    @property
    def text_generation_enabled(self) -> bool:
        return bool(self.openai_api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        google_key = (
            os.getenv("GOOGLE_AI_API_KEY")
            or os.getenv("GEMINI_API_KEY")
            or os.getenv("GOOGLE_API_KEY")
        )
        defaults = cls()
        return cls(
            google_api_key=google_key or None,
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            image_model=os.getenv("VIZORA_IMAGE_MODEL", defaults.image_model),
            text_model=os.getenv("VIZORA_TEXT_MODEL", defaults.text_model),
            templates_dir=Path(
                os.getenv("VIZORA_TEMPLATES_DIR", str(defaults.templates_dir))
            ),
            max_upload_bytes=int(
                os.getenv("VIZORA_MAX_UPLOAD_BYTES", defaults.max_upload_bytes)
            ),
            crop_uploads=_env_flag("VIZORA_CROP_UPLOADS"),
            retry_base_delay=float(
                os.getenv("VIZORA_RETRY_BASE_DELAY", defaults.retry_base_delay)
            ),
            image_timeout=float(
                os.getenv("VIZORA_IMAGE_TIMEOUT", defaults.image_timeout)
            ),
        )
