"""
Language-model access for reflections and the agent search tool.

Reflection generation only needs `complete(system_prompt, user_prompt) -> str`;
anything with that method can stand in for the OpenAI-backed model (tests use a
canned fake). SDK failures surface as GenerationFailedError.
"""
from __future__ import annotations

import logging
from typing import Any, Optional, Protocol

import openai
from openai import OpenAI

from app.core.config import settings
from app.core.errors import GenerationFailedError, ModelNotConfiguredError

logger = logging.getLogger(__name__)


class ReflectionModel(Protocol):
    def complete(self, system_prompt: str, user_prompt: str) -> str: ...


def _content_text(content: Any) -> str:
    """Message content may be a plain string or a list of text chunks."""
    if content is None:
        return ""
    if isinstance(content, list):
        return "".join(
            (chunk.get("text") if isinstance(chunk, dict) else getattr(chunk, "text", None)) or ""
            for chunk in content
        )
    return str(content)


class OpenAIReflectionModel:
    """Chat-completions call constrained to a single JSON object reply."""

    def __init__(self, client: OpenAI, model: str):
        self.client = client
        self.model = model

    def complete(self, system_prompt: str, user_prompt: str) -> str:
        try:
            completion = self.client.chat.completions.create(
                model=self.model,
                response_format={"type": "json_object"},
                messages=[
                    {"role": "system", "content": system_prompt},
                    {"role": "user", "content": user_prompt},
                ],
            )
        except openai.OpenAIError as exc:
            logger.error("Reflection model call failed: %s", exc)
            raise GenerationFailedError(message=f"Model call failed: {exc}") from exc

        if not completion.choices:
            return ""
        return _content_text(completion.choices[0].message.content)


_client: Optional[OpenAI] = None


def get_openai_client() -> OpenAI:
    """Process-wide OpenAI client; raises when no API key is configured."""
    global _client
    if not settings.OPENAI_API_KEY:
        raise ModelNotConfiguredError()
    if _client is None:
        _client = OpenAI(api_key=settings.OPENAI_API_KEY)
    return _client


def get_reflection_model() -> ReflectionModel:
    """FastAPI dependency for the reflection model."""
    return OpenAIReflectionModel(
        client=get_openai_client(),
        model=settings.OPENAI_REFLECTION_MODEL,
    )
