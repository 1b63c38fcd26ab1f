# backend/app/openai_client.py

import asyncio
import logging
from typing import Optional

from openai import AsyncOpenAI

from .logging_config import inc_metric

log = logging.getLogger("vizora")


class TextGenerationError(RuntimeError):
    pass


class TextGenerationClient:
    """
    Async chat-completion helper used by the prompt rewriter.

    Unlike the image client this raises TextGenerationError: a rewrite
    without a model has nothing sensible to fall back to except the
    canned fallback prompt the route returns.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str = "gpt-4o",
        max_tokens: int = 400,
        temperature: float = 0.8,
        timeout: float = 60.0,
    ):
        self.api_key = api_key
        self.model = model
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.timeout = timeout
        self._client: Optional[AsyncOpenAI] = None

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    def _get_client(self) -> AsyncOpenAI:
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self.api_key)
        return self._client

    async def complete(self, system: str, user: str) -> str:
        if not self.enabled:
            raise TextGenerationError("OPENAI_API_KEY is not configured")

        inc_metric("openai_calls")
        try:
            completion = await asyncio.wait_for(
                self._get_client().chat.completions.create(
                    model=self.model,
                    messages=[
                        {"role": "system", "content": system},
                        {"role": "user", "content": user},
                    ],
                    max_tokens=self.max_tokens,
                    temperature=self.temperature,
                ),
                timeout=self.timeout,
            )
        except asyncio.TimeoutError as e:
            inc_metric("openai_errors")
            raise TextGenerationError(f"OpenAI request timed out after {self.timeout}s") from e
        except Exception as e:
            inc_metric("openai_errors")
            raise TextGenerationError(str(e)) from e

        content = completion.choices[0].message.content if completion.choices else None
        if not content or not content.strip():
            raise TextGenerationError("OpenAI returned an empty completion")
        return content.strip()
