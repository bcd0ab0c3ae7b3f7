"""LLM client abstraction for the board assistant.

This module wraps calls to the OpenAI API behind the ``NarrativeGenerator``
interface used by the executive summary. Any object with a matching
``generate`` coroutine can stand in for it.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Optional, Protocol

from openai import AsyncOpenAI
from pydantic import BaseModel

from board_assistant.core.errors import BoardAssistantError


logger = logging.getLogger("board_assistant.llm")

DEFAULT_SYSTEM_PROMPT = (
    "You are a senior Trello consultant who produces structured, actionable analyses."
)


class LLMConfig(BaseModel):
    """Configuration for the LLM client."""

    model: str = "gpt-4o-mini"
    max_tokens: int = 1500
    temperature: float = 0.2
    request_timeout: int = 60


class NarrativeGenerator(Protocol):
    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> str:
        ...


def safe_json_loads(value: str) -> Any:
    """Safely parse a JSON string, returning None on failure."""

    try:
        return json.loads(value)
    except (TypeError, ValueError):
        logger.debug("Failed to parse JSON from model output")
        return None


class OpenAINarrator:
    """``NarrativeGenerator`` backed by OpenAI chat completions."""

    def __init__(self, api_key: Optional[str], config: Optional[LLMConfig] = None) -> None:
        self._api_key = api_key
        self._config = config or LLMConfig()
        self._client: Optional[AsyncOpenAI] = None

    def _get_client(self) -> AsyncOpenAI:
        """Return a configured OpenAI client or raise if the API key is missing."""

        if not self._api_key:
            logger.error("OPENAI_API_KEY is not set; narrative generation is unavailable")
            raise BoardAssistantError.generation_unavailable("OPENAI_API_KEY is not set")
        if self._client is None:
            self._client = AsyncOpenAI(api_key=self._api_key)
        return self._client

    async def generate(
        self,
        prompt: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
    ) -> str:
        cfg = self._config
        client = self._get_client()

        try:
            response = await client.chat.completions.create(
                model=cfg.model,
                messages=[
                    {"role": "system", "content": system_prompt or DEFAULT_SYSTEM_PROMPT},
                    {"role": "user", "content": prompt},
                ],
                max_tokens=cfg.max_tokens,
                temperature=cfg.temperature if temperature is None else temperature,
                timeout=cfg.request_timeout,
            )
        except Exception as exc:  # noqa: BLE001
            logger.error("Error while calling OpenAI chat completion: %r", exc)
            raise BoardAssistantError.generation_unavailable("LLM_CALL_FAILED") from exc

        if not response or not getattr(response, "choices", None):
            logger.warning("Empty response from LLM")
            raise BoardAssistantError.generation_unavailable("EMPTY_RESPONSE")

        content = response.choices[0].message.content or ""
        if isinstance(content, list):
            content = "".join(part.get("text", "") for part in content if isinstance(part, dict))
        if not isinstance(content, str):
            content = str(content)

        content = content.strip()
        if not content:
            raise BoardAssistantError.generation_unavailable("EMPTY_RESPONSE")
        return content
