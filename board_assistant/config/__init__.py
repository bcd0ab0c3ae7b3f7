"""Configuration package for the board assistant."""

from board_assistant.config.settings import Settings

__all__ = [
    "Settings",
]
