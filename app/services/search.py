"""
Web search tool for the voice agent.

One OpenAI Responses call with the built-in `web_search` tool, asked to
answer with `{"results": [{title, url, snippet}, ...]}` (top three).
"""
from __future__ import annotations

import json
import logging
from typing import Any, Optional, Protocol

import openai
from openai import OpenAI

from app.core.config import settings
from app.core.errors import GenerationFailedError
from app.services.llm import get_openai_client

logger = logging.getLogger(__name__)

SEARCH_SYSTEM_PROMPT = (
    "You are a concise research aide. Always call the web_search tool first and "
    "return JSON with an array named results (title,url,snippet). Limit to top three items."
)


class WebSearcher(Protocol):
    def search(self, query: str) -> str: ...


class OpenAIWebSearcher:
    def __init__(self, client: OpenAI, model: str):
        self.client = client
        self.model = model

    def search(self, query: str) -> str:
        try:
            response = self.client.responses.create(
                model=self.model,
                max_output_tokens=600,
                tools=[{"type": "web_search"}],
                input=[
                    {"role": "system", "content": SEARCH_SYSTEM_PROMPT},
                    {"role": "user", "content": query},
                ],
            )
        except openai.OpenAIError as exc:
            logger.error("Web search call failed: %s", exc)
            raise GenerationFailedError(message=f"Search call failed: {exc}") from exc
        return response.output_text or ""


def get_web_searcher() -> WebSearcher:
    return OpenAIWebSearcher(client=get_openai_client(), model=settings.OPENAI_SEARCH_MODEL)


def parse_search_results(raw_text: str) -> Optional[dict[str, Any]]:
    """The decoded reply, or None when it is not `{"results": [...]}`."""
    if not raw_text:
        return None
    try:
        parsed = json.loads(raw_text)
    except ValueError:
        logger.warning("Search reply was not JSON: %r", raw_text[:200])
        return None
    if not isinstance(parsed, dict) or not isinstance(parsed.get("results"), list):
        return None
    return parsed
