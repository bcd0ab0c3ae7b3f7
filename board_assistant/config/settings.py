"""Runtime settings for the board assistant.

Values come from the process environment (optionally populated from a .env
file by ``main.py``).
"""

from __future__ import annotations

import os
from typing import Optional

from pydantic import BaseModel


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        return default


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        return default


class Settings(BaseModel):
    """Configuration for the Trello read client and the narrative generator."""

    trello_api_key: str = ""
    trello_api_token: str = ""
    trello_base_url: str = "https://api.trello.com/1"
    default_board: Optional[str] = None
    request_timeout: float = 15.0
    actions_page_size: int = 1000  # Trello's maximum page size for actions
    max_action_pages: int = 10
    openai_api_key: Optional[str] = None
    openai_model: str = "gpt-4o-mini"

    @classmethod
    def from_env(cls) -> "Settings":
        """Build settings from environment variables."""

        return cls(
            trello_api_key=os.getenv("TRELLO_API_KEY", ""),
            trello_api_token=os.getenv("TRELLO_API_TOKEN", ""),
            trello_base_url=os.getenv("TRELLO_BASE_URL") or "https://api.trello.com/1",
            default_board=os.getenv("TRELLO_DEFAULT_BOARD") or None,
            request_timeout=_env_float("TRELLO_TIMEOUT", 15.0),
            actions_page_size=_env_int("TRELLO_ACTIONS_PAGE_SIZE", 1000),
            max_action_pages=_env_int("TRELLO_MAX_ACTION_PAGES", 10),
            openai_api_key=os.getenv("OPENAI_API_KEY") or None,
            openai_model=os.getenv("OPENAI_MODEL") or "gpt-4o-mini",
        )
