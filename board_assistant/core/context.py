"""Dependency container for the analytics services.

The Trello read client and the narrative generator are built once at process
start and handed to every analytics entry point through ``AnalyticsContext``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Callable, Optional

from board_assistant.config.settings import Settings
from board_assistant.core.llm import LLMConfig, NarrativeGenerator, OpenAINarrator
from board_assistant.services.trello import TrelloReadClient
from board_assistant.utils.timeparse import utcnow


@dataclass
class AnalyticsContext:
    trello: TrelloReadClient
    narrator: Optional[NarrativeGenerator] = None
    clock: Callable[[], datetime] = field(default=utcnow)

    def now(self) -> datetime:
        return self.clock()


def build_context(settings: Settings) -> AnalyticsContext:
    """Wire the production collaborators from settings."""

    narrator: Optional[NarrativeGenerator] = None
    if settings.openai_api_key:
        narrator = OpenAINarrator(settings.openai_api_key, LLMConfig(model=settings.openai_model))

    return AnalyticsContext(trello=TrelloReadClient(settings), narrator=narrator)
